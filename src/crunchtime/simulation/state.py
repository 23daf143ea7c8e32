"""GameState — everything one game owns, plus derived progress metrics."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .agent import Agent
    from .game_log import GameLog
    from .grid import Grid


class GamePhase(str, Enum):
    """Strictly forward: LOBBY -> ACTIVE -> OVER."""
    LOBBY = "LOBBY"
    ACTIVE = "ACTIVE"
    OVER = "OVER"


class SubPhase(str, Enum):
    NORMAL = "NORMAL"
    CRUNCH_TIME = "CRUNCH_TIME"


class GameOutcome(str, Enum):
    WIN = "WIN"
    TIMEOUT = "TIMEOUT"
    ALL_BLOCKED = "ALL_BLOCKED"
    RESOURCE_STARVATION = "RESOURCE_STARVATION"


@dataclass
class GameState:
    """Mutable state of one game, mutated in place by each tick."""

    game_id: str
    max_ticks: int
    target_score: int
    log: GameLog
    phase: GamePhase = GamePhase.LOBBY
    grid: Grid | None = None
    tick_count: int = 0
    total_score: int = 0
    outcome: GameOutcome | None = None
    agents: list[Agent] = field(default_factory=list)
    sub_phase: SubPhase = SubPhase.NORMAL
    time_remaining_percent: float = 100.0
    feature_progress: float = 0.0
    current_actor_name: str | None = None
    current_actor_state: str | None = None

    def get_agent(self, participant_id: str) -> Agent | None:
        for agent in self.agents:
            if agent.participant_id == participant_id:
                return agent
        return None

    @property
    def time_pressure(self) -> float:
        """Fraction of the game still remaining (1.0 at start, 0.0 at the end)."""
        return (self.max_ticks - self.tick_count) / self.max_ticks

    def recalculate_metrics(self, crunch_threshold: float) -> None:
        self.time_remaining_percent = max(0.0, self.time_pressure * 100.0)
        self.feature_progress = min(100.0, self.total_score / self.target_score * 100.0)
        if self.time_pressure <= crunch_threshold:
            self.sub_phase = SubPhase.CRUNCH_TIME
        else:
            self.sub_phase = SubPhase.NORMAL
