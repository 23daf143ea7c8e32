"""Win/loss predicates, checked last on every tick.

Priority order (first match wins):

  1. total_score >= target_score                -> WIN
  2. tick_count >= max_ticks                    -> TIMEOUT
  3. every agent in merge_conflict (any agents) -> ALL_BLOCKED
  4. every agent's distraction_time > max_ticks / 2
     and tick_count > 30                        -> RESOURCE_STARVATION
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .agent import AgentState
from .state import GameOutcome

if TYPE_CHECKING:
    from .state import GameState

# Starvation can't trigger before this tick
_STARVATION_GRACE_TICKS = 30

_DESCRIPTIONS: dict[GameOutcome, str] = {
    GameOutcome.WIN: "Feature complete. The demo was a success!",
    GameOutcome.TIMEOUT: "The hackathon ended. The demo crashed.",
    GameOutcome.ALL_BLOCKED: "Everyone is stuck resolving merge conflicts.",
    GameOutcome.RESOURCE_STARVATION: "The whole team is at the coffee station.",
}


def evaluate_outcome(state: GameState) -> GameOutcome | None:
    if state.total_score >= state.target_score:
        return GameOutcome.WIN
    if state.tick_count >= state.max_ticks:
        return GameOutcome.TIMEOUT
    agents = state.agents
    if agents and all(a.state is AgentState.MERGE_CONFLICT for a in agents):
        return GameOutcome.ALL_BLOCKED
    if (
        agents
        and state.tick_count > _STARVATION_GRACE_TICKS
        and all(a.distraction_time > state.max_ticks / 2 for a in agents)
    ):
        return GameOutcome.RESOURCE_STARVATION
    return None


def describe_outcome(outcome: GameOutcome) -> str:
    return _DESCRIPTIONS[outcome]
