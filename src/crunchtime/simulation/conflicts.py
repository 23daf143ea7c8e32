"""ConflictDetector — merge conflicts from agents sharing a repo.

Runs once per tick after behavior resolution.  Agents standing on the same
repo cell form a group; any group of two or more is a conflict and every
member is locked in ``merge_conflict`` for ``conflict_penalty`` ticks.
Agents already penalized, or that sat out this tick, are not counted.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .agent import Agent, AgentState
from .grid import CellKind

if TYPE_CHECKING:
    from crunchtime.config import Settings
    from .state import GameState


class ConflictDetector:
    """Groups agents by occupied repo and penalizes shared cells."""

    def __init__(self, settings: Settings) -> None:
        self._penalty = settings.conflict_penalty

    def detect(
        self, state: GameState, exclude: set[str] | None = None,
    ) -> list[list[Agent]]:
        """Find and penalize conflicts. Returns the conflicting groups."""
        exclude = exclude or set()
        groups: dict[tuple[int, int], list[Agent]] = {}
        for agent in state.agents:
            if agent.is_blocked or agent.participant_id in exclude:
                continue
            if state.grid.cell(agent.x, agent.y).kind is not CellKind.REPO:
                continue
            groups.setdefault(agent.position, []).append(agent)

        conflicts = [group for group in groups.values() if len(group) >= 2]
        for group in conflicts:
            for agent in group:
                others = ", ".join(a.name for a in group if a is not agent)
                agent.state = AgentState.MERGE_CONFLICT
                agent.conflict_ticks_left = self._penalty
                agent.conflict_count += 1
                state.log.record(
                    agent, "merge_conflict",
                    f"hit a merge conflict with {others} at ({agent.x}, {agent.y})",
                    state.tick_count,
                )
        return conflicts
