"""SimulationEngine — one hackathon game, advanced one tick at a time.

Architecture
------------
The engine owns a single GameState and is its only writer.  Every public
operation runs under one re-entrant lock, so a tick and an explicit action
on the same game never interleave.  Different engines share nothing and
can be advanced concurrently.

Lifecycle:

  LOBBY --start()--> ACTIVE --(outcome)--> OVER

  - ``admit()`` only in LOBBY.
  - ``start()`` needs ``min_participants``; builds the grid from the layout
    template and lines agents up along the bottom edge.
  - ``advance_tick()`` is a no-op outside ACTIVE.

Tick pipeline (order is fixed):

  tick_count += 1
  environment.tick()      expiry sweep, spawn, bonus, outage
  behaviors.tick()        per-agent resolution in list order
  conflicts.detect()      shared-repo merge conflicts
  recalculate_metrics()   progress, time remaining, crunch sub-phase
  evaluate_outcome()      WIN / TIMEOUT / ALL_BLOCKED / RESOURCE_STARVATION

Randomness (``random.Random``) and the clock are injected so a seeded game
replays exactly.  Validation always precedes mutation: a raised
SimulationError leaves the game untouched.

Events published on the EventBus (when attached):
  - ``game_event``: every game log entry
  - ``game_state_change``: phase transitions
  - ``game_over``: final outcome
"""

from __future__ import annotations

import random
import threading
import time
import uuid
from typing import TYPE_CHECKING, Any, Callable

from loguru import logger

from crunchtime.config import Settings, settings as default_settings

from .agent import Agent, AgentState
from .behaviors import AgentBehaviors
from .conflicts import ConflictDetector
from .environment import EnvironmentInjector
from .errors import (
    InsufficientParticipantsError,
    InvalidActionError,
    InvalidPhaseError,
    NotFoundError,
    NotOnRequiredCellError,
)
from .game_log import GameLog
from .grid import CellKind, Grid, agent_spawn_positions, parse_coords
from .movement import step_toward
from .outcome import describe_outcome, evaluate_outcome
from .snapshot import GameSnapshot, build_snapshot, restore_state
from .state import GameOutcome, GamePhase, GameState, SubPhase

if TYPE_CHECKING:
    from crunchtime.comms.event_bus import EventBus

ACTIONS = ("commit", "move", "consume")
ACTIVITIES = ("thinking", "typing")


class SimulationEngine:
    """Owns one game's state and runs its ordered tick pipeline."""

    def __init__(
        self,
        game_id: str | None = None,
        settings: Settings | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.time,
        event_bus: EventBus | None = None,
        max_ticks: int | None = None,
        target_score: int | None = None,
    ) -> None:
        self._settings = settings or default_settings
        self._rng = rng if rng is not None else random.Random()
        self._clock = clock
        self._event_bus = event_bus
        self._lock = threading.RLock()

        self.environment = EnvironmentInjector(self._settings, self._rng)
        self.behaviors = AgentBehaviors(self._settings, self._rng)
        self.conflicts = ConflictDetector(self._settings)

        if max_ticks is None:
            max_ticks = self._settings.max_ticks
        if target_score is None:
            target_score = self._settings.target_score
        if max_ticks <= 0 or target_score <= 0:
            raise ValueError(
                f"max_ticks and target_score must be positive "
                f"(got {max_ticks}, {target_score})"
            )

        game_id = game_id or uuid.uuid4().hex
        self._state = GameState(
            game_id=game_id,
            max_ticks=max_ticks,
            target_score=target_score,
            log=GameLog(self._settings.log_limit, clock, event_bus, game_id=game_id),
        )

    @classmethod
    def from_snapshot(
        cls,
        data: dict[str, Any] | GameSnapshot,
        settings: Settings | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.time,
        event_bus: EventBus | None = None,
    ) -> SimulationEngine:
        """Rebuild an engine from ``snapshot()`` output.

        Raises:
            pydantic.ValidationError: If the snapshot is malformed.
        """
        snapshot = GameSnapshot.model_validate(data)
        engine = cls(
            game_id=snapshot.id,
            settings=settings,
            rng=rng,
            clock=clock,
            event_bus=event_bus,
        )
        engine._state = restore_state(
            snapshot, engine._settings.log_limit, clock, event_bus,
        )
        return engine

    # -- Read access ------------------------------------------------------------

    @property
    def game_id(self) -> str:
        return self._state.game_id

    @property
    def phase(self) -> GamePhase:
        return self._state.phase

    @property
    def state(self) -> GameState:
        """Live game state. Treat as read-only outside the engine."""
        return self._state

    @property
    def settings(self) -> Settings:
        return self._settings

    def set_event_bus(self, event_bus: EventBus | None) -> None:
        with self._lock:
            self._event_bus = event_bus
            self._state.log.set_event_bus(event_bus)

    def snapshot(self) -> dict[str, Any]:
        """Serializable copy of the whole game."""
        with self._lock:
            return build_snapshot(self._state).model_dump(mode="json")

    # -- Lifecycle --------------------------------------------------------------

    def admit(self, participant_id: str, name: str) -> Agent:
        """Add a participant while the game is in LOBBY."""
        with self._lock:
            state = self._state
            if state.phase is not GamePhase.LOBBY:
                raise InvalidPhaseError(f"Cannot admit in phase {state.phase.value}")
            if state.get_agent(participant_id) is not None:
                raise InvalidActionError(f"Participant {participant_id} already in game")
            agent = Agent(participant_id=participant_id, name=name)
            state.agents.append(agent)
            state.log.record(agent, "join", f"{name} joined the hackathon", state.tick_count)
            logger.info(f"Game {state.game_id}: admitted {name} ({len(state.agents)} total)")
            return agent

    def start(self) -> None:
        """LOBBY -> ACTIVE. Irreversible."""
        with self._lock:
            state = self._state
            if state.phase is not GamePhase.LOBBY:
                raise InvalidPhaseError(f"Cannot start in phase {state.phase.value}")
            needed = self._settings.min_participants
            if len(state.agents) < needed:
                raise InsufficientParticipantsError(
                    f"Not enough participants ({len(state.agents)}/{needed})"
                )

            grid = Grid.from_template(self._settings.grid_width, self._settings.grid_height)
            slots = agent_spawn_positions(len(state.agents), grid.width, grid.height)
            for agent, (x, y) in zip(state.agents, slots):
                agent.x, agent.y = x, y
                agent.state = AgentState.CODING

            state.grid = grid
            state.phase = GamePhase.ACTIVE
            state.recalculate_metrics(self._settings.crunch_threshold)
            state.log.system(
                f"Hackathon started! {len(state.agents)} developers, "
                f"{state.target_score} commits to ship in {state.max_ticks} ticks.",
                state.tick_count,
            )
            logger.info(f"Game {state.game_id}: started with {len(state.agents)} agents")
            self._publish_state_change()

    def advance_tick(self) -> bool:
        """Run one tick. Returns False (and does nothing) unless ACTIVE."""
        with self._lock:
            state = self._state
            if state.phase is not GamePhase.ACTIVE:
                return False
            state.tick_count += 1
            self.environment.tick(state)
            sat_out = self.behaviors.tick(state)
            self.conflicts.detect(state, exclude=sat_out)
            self._settle()
            return True

    # -- Explicit requests ------------------------------------------------------

    def apply_action(
        self, participant_id: str, action: str, params: dict[str, Any] | None = None,
    ) -> str:
        """Apply a participant-requested action. Returns a short result message."""
        with self._lock:
            state = self._state
            if state.phase is not GamePhase.ACTIVE:
                raise InvalidPhaseError(f"Cannot act in phase {state.phase.value}")
            agent = state.get_agent(participant_id)
            if agent is None:
                raise NotFoundError(f"Participant {participant_id} not in game")
            if action not in ACTIONS:
                raise InvalidActionError(f"Unknown action: {action!r}")
            params = params or {}
            if not isinstance(params, dict):
                raise InvalidActionError("params must be an object")

            if action == "commit":
                message = self._action_commit(agent)
            elif action == "move":
                message = self._action_move(agent, params)
            else:
                message = self._action_consume(agent)
            self._settle()
            return message

    def _action_commit(self, agent: Agent) -> str:
        state = self._state
        cell = state.grid.cell(agent.x, agent.y)
        if cell.kind is not CellKind.REPO or not cell.active:
            raise NotOnRequiredCellError(f"{agent.name} is not on an active repo")
        self.behaviors.commit(state, agent, under_pressure=False)
        return f"Committed ({state.total_score}/{state.target_score})"

    def _action_move(self, agent: Agent, params: dict[str, Any]) -> str:
        state = self._state
        x, y = parse_coords(params.get("x"), params.get("y"), "move")
        to_x, to_y = state.grid.clamp(x, y)
        agent.x, agent.y = step_toward(
            agent.x, agent.y, to_x, to_y, state.grid.width, state.grid.height,
        )
        agent.last_action_tick = state.tick_count
        state.log.record(
            agent, "move", f"moved to ({agent.x}, {agent.y})", state.tick_count,
        )
        return f"Moved to ({agent.x}, {agent.y})"

    def _action_consume(self, agent: Agent) -> str:
        state = self._state
        cell = state.grid.cell(agent.x, agent.y)
        if not cell.is_consumable:
            raise NotOnRequiredCellError(f"Nothing to consume at ({agent.x}, {agent.y})")
        kind = cell.kind
        self.behaviors.consume(state, agent, cell)
        return f"Consumed {kind.value}"

    def place_environment_item(
        self, item: str, x: int | None = None, y: int | None = None,
    ) -> str:
        """Operator override: drop a consumable or crash every repo."""
        with self._lock:
            state = self._state
            if state.phase is not GamePhase.ACTIVE:
                raise InvalidPhaseError(f"Cannot change environment in phase {state.phase.value}")
            return self.environment.place_item(state, item, x, y)

    def set_actor_activity(self, participant_id: str, activity: str | None) -> None:
        """Show (or clear, with None) which agent is thinking or typing."""
        with self._lock:
            state = self._state
            agent = state.get_agent(participant_id)
            if agent is None:
                raise NotFoundError(f"Participant {participant_id} not in game")
            if activity is not None and activity not in ACTIVITIES:
                raise InvalidActionError(
                    f"activity must be one of {', '.join(ACTIVITIES)} or None"
                )
            state.current_actor_name = agent.name if activity else None
            state.current_actor_state = activity

    # -- Internals --------------------------------------------------------------

    def _settle(self) -> None:
        """Recalculate metrics and end the game if an outcome matched."""
        state = self._state
        was_crunch = state.sub_phase is SubPhase.CRUNCH_TIME
        state.recalculate_metrics(self._settings.crunch_threshold)
        if state.sub_phase is SubPhase.CRUNCH_TIME and not was_crunch:
            state.log.system(
                "CRUNCH TIME! Everyone is panicking.", state.tick_count, action="crunch_time",
            )
            logger.info(f"Game {state.game_id}: crunch time at tick {state.tick_count}")

        outcome = evaluate_outcome(state)
        if outcome is not None:
            self._end(outcome)

    def _end(self, outcome: GameOutcome) -> None:
        state = self._state
        state.phase = GamePhase.OVER
        state.outcome = outcome
        state.log.system(
            f"GAME OVER ({outcome.value}): {describe_outcome(outcome)} "
            f"{state.total_score}/{state.target_score} commits after {state.tick_count} ticks.",
            state.tick_count, action="game_over",
        )
        logger.info(
            f"Game {state.game_id}: over at tick {state.tick_count} "
            f"with {outcome.value} ({state.total_score}/{state.target_score})"
        )
        if self._event_bus is not None:
            self._event_bus.publish("game_over", {
                "game_id": state.game_id,
                "outcome": outcome.value,
                "total_score": state.total_score,
                "target_score": state.target_score,
                "tick": state.tick_count,
            })
        self._publish_state_change()

    def _publish_state_change(self) -> None:
        if self._event_bus is None:
            return
        state = self._state
        self._event_bus.publish("game_state_change", {
            "game_id": state.game_id,
            "phase": state.phase.value,
            "tick": state.tick_count,
        })
