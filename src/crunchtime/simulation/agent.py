"""Agent — one hackathon participant on the grid.

The engine owns every Agent.  External actors only request moves and
actions; the engine validates and applies them, and auto-resolves what the
agent does on each tick.

Timers (headphones buff, merge-conflict penalty) are plain integer
countdowns decremented once per tick.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class AgentState(str, Enum):
    """Behavioral state shown for an agent."""
    CODING = "coding"
    DISTRACTED = "distracted"
    PANICKING = "panicking"
    MERGE_CONFLICT = "merge_conflict"
    IDLE = "idle"


@dataclass
class Agent:
    """Mutable per-participant record."""

    participant_id: str
    name: str
    x: int = 0
    y: int = 0
    state: AgentState = AgentState.IDLE
    commits: int = 0
    has_headphones: bool = False
    headphone_ticks_left: int = 0
    speed_multiplier: float = 1.0
    last_action_tick: int = 0
    distraction_time: int = 0
    conflict_ticks_left: int = 0
    conflict_count: int = 0
    force_push_count: int = 0

    @property
    def position(self) -> tuple[int, int]:
        return (self.x, self.y)

    @property
    def is_blocked(self) -> bool:
        """True while serving a merge-conflict penalty."""
        return self.conflict_ticks_left > 0
