"""Simulation subsystem — grid, agents, tick pipeline, game registry."""
from .agent import Agent, AgentState
from .behaviors import AgentBehaviors
from .conflicts import ConflictDetector
from .engine import SimulationEngine
from .environment import EnvironmentInjector, EnvironmentItem
from .errors import (
    CellOccupiedError,
    InsufficientParticipantsError,
    InvalidActionError,
    InvalidPhaseError,
    NotFoundError,
    NotOnRequiredCellError,
    OutOfBoundsError,
    SimulationError,
)
from .game_log import GameEvent, GameLog
from .grid import Cell, CellKind, Grid, agent_spawn_positions, manhattan_distance
from .movement import step_toward, walk_toward
from .outcome import evaluate_outcome
from .registry import GameRegistry
from .snapshot import GameSnapshot
from .state import GameOutcome, GamePhase, GameState, SubPhase

__all__ = [
    "Agent",
    "AgentBehaviors",
    "AgentState",
    "Cell",
    "CellKind",
    "CellOccupiedError",
    "ConflictDetector",
    "EnvironmentInjector",
    "EnvironmentItem",
    "GameEvent",
    "GameLog",
    "GameOutcome",
    "GamePhase",
    "GameRegistry",
    "GameSnapshot",
    "GameState",
    "Grid",
    "InsufficientParticipantsError",
    "InvalidActionError",
    "InvalidPhaseError",
    "NotFoundError",
    "NotOnRequiredCellError",
    "OutOfBoundsError",
    "SimulationEngine",
    "SimulationError",
    "SubPhase",
    "agent_spawn_positions",
    "evaluate_outcome",
    "manhattan_distance",
    "step_toward",
    "walk_toward",
]
