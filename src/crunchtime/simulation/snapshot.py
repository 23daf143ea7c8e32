"""Canonical snapshot schema for persisting and restoring a game.

One schema only: the collaborator's storage adapter maps whatever it keeps
on disk onto these field names.  ``GameSnapshot`` is both the public view
returned by ``SimulationEngine.snapshot()`` and the input accepted by
``SimulationEngine.from_snapshot()``, so a stored snapshot plus the same
randomness sequence replays identically.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .agent import Agent, AgentState
from .game_log import GameEvent, GameLog
from .grid import Cell, CellKind, Grid
from .state import GameOutcome, GamePhase, GameState, SubPhase

if TYPE_CHECKING:
    from crunchtime.comms.event_bus import EventBus


class CellSnapshot(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    x: int = Field(ge=0)
    y: int = Field(ge=0)
    kind: CellKind
    active: bool
    spawned_at: Optional[int] = Field(None, ge=0)
    expires_at: Optional[int] = Field(None, ge=0)


class AgentSnapshot(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    participant_id: str
    name: str
    x: int = Field(ge=0)
    y: int = Field(ge=0)
    state: AgentState
    commits: int = Field(ge=0)
    has_headphones: bool
    headphone_ticks_left: int = Field(ge=0)
    speed_multiplier: float = Field(gt=0)
    last_action_tick: int = Field(ge=0)
    distraction_time: int = Field(ge=0)
    conflict_ticks_left: int = Field(ge=0)
    conflict_count: int = Field(ge=0)
    force_push_count: int = Field(ge=0)

    @model_validator(mode="after")
    def _check_timers(self) -> AgentSnapshot:
        if self.conflict_ticks_left > 0 and self.state is not AgentState.MERGE_CONFLICT:
            raise ValueError(
                f"agent {self.participant_id} has a conflict penalty but is {self.state.value}"
            )
        if self.has_headphones != (self.headphone_ticks_left > 0):
            raise ValueError(
                f"agent {self.participant_id} headphones flag disagrees with its timer"
            )
        return self


class EventSnapshot(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    agent_id: str
    agent_name: str
    action: str
    detail: str
    tick: int = Field(ge=0)
    timestamp: float


class GameSnapshot(BaseModel):
    """Serializable view of one game."""

    id: str
    phase: GamePhase
    sub_phase: SubPhase = SubPhase.NORMAL
    tick_count: int = Field(ge=0)
    max_ticks: int = Field(gt=0)
    time_remaining_percent: float = Field(100.0, ge=0.0, le=100.0)
    feature_progress: float = Field(0.0, ge=0.0, le=100.0)
    total_score: int = Field(ge=0)
    target_score: int = Field(gt=0)
    outcome: Optional[GameOutcome] = None
    grid: list[list[CellSnapshot]] = []
    agents: list[AgentSnapshot] = []
    event_log: list[EventSnapshot] = []
    logs: list[str] = []
    current_actor_name: Optional[str] = None
    current_actor_state: Optional[str] = None

    @model_validator(mode="after")
    def _check_consistency(self) -> GameSnapshot:
        if self.phase is GamePhase.LOBBY and self.grid:
            raise ValueError("LOBBY snapshot cannot carry a grid")
        if self.phase is not GamePhase.LOBBY and not self.grid:
            raise ValueError(f"{self.phase.value} snapshot requires a grid")
        if (self.outcome is None) != (self.phase is not GamePhase.OVER):
            raise ValueError("outcome is set exactly when phase is OVER")
        if self.tick_count > self.max_ticks:
            raise ValueError(f"tick_count {self.tick_count} exceeds max_ticks {self.max_ticks}")
        ids = [a.participant_id for a in self.agents]
        if len(ids) != len(set(ids)):
            raise ValueError("duplicate participant ids")
        if self.grid:
            width = len(self.grid[0])
            for y, row in enumerate(self.grid):
                if len(row) != width:
                    raise ValueError(f"grid row {y} has {len(row)} cells, expected {width}")
                for x, cell in enumerate(row):
                    if (cell.x, cell.y) != (x, y):
                        raise ValueError(f"cell at [{y}][{x}] claims ({cell.x}, {cell.y})")
            for agent in self.agents:
                if not (0 <= agent.x < width and 0 <= agent.y < len(self.grid)):
                    raise ValueError(f"agent {agent.participant_id} is off the grid")
        if self.total_score != sum(a.commits for a in self.agents):
            raise ValueError("total_score does not match the agents' commits")
        return self


def build_snapshot(state: GameState) -> GameSnapshot:
    grid = []
    if state.grid is not None:
        grid = [
            [CellSnapshot.model_validate(cell) for cell in row]
            for row in state.grid.rows
        ]
    return GameSnapshot(
        id=state.game_id,
        phase=state.phase,
        sub_phase=state.sub_phase,
        tick_count=state.tick_count,
        max_ticks=state.max_ticks,
        time_remaining_percent=state.time_remaining_percent,
        feature_progress=state.feature_progress,
        total_score=state.total_score,
        target_score=state.target_score,
        outcome=state.outcome,
        grid=grid,
        agents=[AgentSnapshot.model_validate(a) for a in state.agents],
        event_log=[EventSnapshot.model_validate(e) for e in state.log.events],
        logs=list(state.log.lines),
        current_actor_name=state.current_actor_name,
        current_actor_state=state.current_actor_state,
    )


def restore_state(
    snapshot: GameSnapshot,
    log_limit: int,
    clock: Callable[[], float],
    event_bus: EventBus | None = None,
) -> GameState:
    """Rebuild a live GameState from a validated snapshot."""
    grid = None
    if snapshot.grid:
        grid = Grid.from_rows([
            [Cell(**cell.model_dump()) for cell in row] for row in snapshot.grid
        ])
    log = GameLog(
        log_limit,
        clock,
        event_bus,
        events=[GameEvent(**e.model_dump()) for e in snapshot.event_log],
        lines=snapshot.logs,
        game_id=snapshot.id,
    )
    return GameState(
        game_id=snapshot.id,
        max_ticks=snapshot.max_ticks,
        target_score=snapshot.target_score,
        log=log,
        phase=snapshot.phase,
        grid=grid,
        tick_count=snapshot.tick_count,
        total_score=snapshot.total_score,
        outcome=snapshot.outcome,
        agents=[Agent(**a.model_dump()) for a in snapshot.agents],
        sub_phase=snapshot.sub_phase,
        time_remaining_percent=snapshot.time_remaining_percent,
        feature_progress=snapshot.feature_progress,
        current_actor_name=snapshot.current_actor_name,
        current_actor_state=snapshot.current_actor_state,
    )
