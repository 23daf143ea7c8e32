"""AgentBehaviors — per-tick auto-resolution of what each developer does.

Architecture
------------
AgentBehaviors runs once per tick after the environment injector, walking
agents in list order:

  - Agents serving a merge-conflict penalty only count it down.  When it
    reaches zero they go back to ``coding`` but sit out the rest of the
    tick (including conflict detection).
  - Headphones buff counts down; on expiry the agent is distractible again.
  - Crunch time (remaining fraction <= ``crunch_threshold``) doubles steps
    and forces ``panicking`` for display, without changing what the agent
    actually does.
  - Un-buffed agents within ``distraction_radius`` of pizza or an energy
    drink walk to the nearest one and eat it on arrival.  That ends their
    tick.
  - Everyone else walks to the nearest active repo and commits on arrival.

Committing is also the target of explicit ``commit`` requests, which always
take the safe path.  Only auto-resolved commits during crunch time gamble
on a force push.
"""

from __future__ import annotations

import random
from typing import TYPE_CHECKING

from loguru import logger

from .agent import Agent, AgentState
from .grid import CellKind
from .movement import walk_toward

if TYPE_CHECKING:
    from crunchtime.config import Settings
    from .grid import Cell
    from .state import GameState


class AgentBehaviors:
    """Decides movement and consequent action for each agent, each tick."""

    def __init__(self, settings: Settings, rng: random.Random) -> None:
        self._settings = settings
        self._rng = rng

    def tick(self, state: GameState) -> set[str]:
        """Resolve every agent.

        Returns:
            Participant ids that were penalized at the start of the tick and
            therefore sat it out.
        """
        crunch = state.time_pressure <= self._settings.crunch_threshold
        sat_out: set[str] = set()
        for agent in state.agents:
            if agent.is_blocked:
                self._serve_penalty(state, agent)
                sat_out.add(agent.participant_id)
                continue
            self._resolve(state, agent, crunch)
        return sat_out

    # -- Per-agent resolution ---------------------------------------------------

    def _serve_penalty(self, state: GameState, agent: Agent) -> None:
        agent.conflict_ticks_left -= 1
        if agent.conflict_ticks_left <= 0:
            agent.conflict_ticks_left = 0
            agent.state = AgentState.CODING
            state.log.record(
                agent, "conflict_resolved", "resolved the merge conflict", state.tick_count,
            )

    def _resolve(self, state: GameState, agent: Agent, crunch: bool) -> None:
        if agent.has_headphones:
            agent.headphone_ticks_left -= 1
            if agent.headphone_ticks_left <= 0:
                agent.has_headphones = False
                agent.headphone_ticks_left = 0
                state.log.record(
                    agent, "headphones_expired", "headphones battery died", state.tick_count,
                )

        steps = self._settings.crunch_steps if crunch else 1
        if crunch:
            agent.state = AgentState.PANICKING

        grid = state.grid
        if not agent.has_headphones:
            nearby = grid.cells_in_range(agent.x, agent.y, self._settings.distraction_radius)
            if nearby:
                if not crunch:
                    agent.state = AgentState.DISTRACTED
                target = nearby[0]
                agent.x, agent.y = walk_toward(
                    agent.x, agent.y, target.x, target.y, steps, grid.width, grid.height,
                )
                if agent.position == target.position:
                    self.consume(state, agent, target)
                return

        repo = grid.nearest_of_kind(agent.x, agent.y, CellKind.REPO)
        if repo is None:
            if not crunch:
                agent.state = AgentState.IDLE
            return

        if not crunch:
            agent.state = AgentState.CODING
        agent.x, agent.y = walk_toward(
            agent.x, agent.y, repo.x, repo.y, steps, grid.width, grid.height,
        )
        if agent.position == repo.position:
            self.commit(state, agent, under_pressure=crunch)

    # -- Actions ----------------------------------------------------------------

    def consume(self, state: GameState, agent: Agent, cell: Cell) -> None:
        """Apply the consumable's effect to ``agent`` and clear the cell."""
        kind = cell.kind
        if kind is CellKind.PIZZA:
            gained = self._settings.pizza_distraction
            agent.distraction_time += gained
            detail = f"grabbed a slice of pizza (+{gained} coffee time)"
        elif kind is CellKind.ENERGY_DRINK:
            gained = self._settings.energy_drink_distraction
            agent.distraction_time += gained
            detail = f"chugged an energy drink (+{gained} coffee time)"
        elif kind is CellKind.HEADPHONES:
            agent.has_headphones = True
            agent.headphone_ticks_left = self._settings.headphones_duration
            detail = (
                f"put on noise-cancelling headphones "
                f"({self._settings.headphones_duration} ticks of focus)"
            )
        else:
            raise ValueError(f"{kind.value} is not consumable")
        cell.reset()
        agent.last_action_tick = state.tick_count
        state.log.record(agent, "consume", detail, state.tick_count)

    def commit(self, state: GameState, agent: Agent, under_pressure: bool = False) -> None:
        """Push one commit, or under pressure maybe force push over others' work."""
        agent.last_action_tick = state.tick_count
        if under_pressure and self._rng.random() < self._settings.force_push_chance:
            wanted = self._rng.randint(
                self._settings.force_push_min, self._settings.force_push_max,
            )
            removed = min(wanted, state.total_score)
            self._revert_commits(state, agent, removed)
            agent.force_push_count += 1
            logger.debug(f"Game {state.game_id}: {agent.name} force pushed, -{removed}")
            state.log.record(
                agent, "force_push",
                f"force pushed and wiped {removed} commits (total {state.total_score})",
                state.tick_count,
            )
            return

        agent.commits += 1
        state.total_score += 1
        state.log.record(
            agent, "commit",
            f"pushed a commit ({agent.commits} personal, total {state.total_score})",
            state.tick_count,
        )

    def _revert_commits(self, state: GameState, agent: Agent, count: int) -> None:
        """Remove ``count`` commits, the force pusher's own first, then others in order."""
        remaining = count
        victims = [agent] + [a for a in state.agents if a is not agent]
        for victim in victims:
            if remaining == 0:
                break
            taken = min(victim.commits, remaining)
            victim.commits -= taken
            remaining -= taken
        state.total_score -= count - remaining
