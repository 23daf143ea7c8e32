"""GameRegistry — in-memory set of independent games keyed by id.

The registry only guards its own id map.  Each SimulationEngine carries its
own lock, so operations on one game never wait on another.  Rejected
operations are logged and re-raised unchanged; retry policy belongs to the
caller.
"""

from __future__ import annotations

import random
import threading
import time
import uuid
from typing import TYPE_CHECKING, Any, Callable

from loguru import logger

from .engine import SimulationEngine
from .errors import InvalidActionError, NotFoundError, SimulationError
from .state import GamePhase

if TYPE_CHECKING:
    from crunchtime.comms.event_bus import EventBus
    from crunchtime.config import Settings


class GameRegistry:
    """Creates, looks up and bulk-advances SimulationEngines."""

    def __init__(
        self,
        settings: Settings | None = None,
        rng_factory: Callable[[str], random.Random] | None = None,
        clock: Callable[[], float] = time.time,
        event_bus: EventBus | None = None,
    ) -> None:
        self._settings = settings
        self._rng_factory = rng_factory or (lambda game_id: random.Random())
        self._clock = clock
        self._event_bus = event_bus
        self._games: dict[str, SimulationEngine] = {}
        self._lock = threading.Lock()

    def create_game(self, game_id: str | None = None, **kwargs: Any) -> SimulationEngine:
        """New LOBBY game. Extra kwargs go to SimulationEngine (max_ticks, ...)."""
        game_id = game_id or uuid.uuid4().hex
        engine = SimulationEngine(
            game_id=game_id,
            settings=self._settings,
            rng=self._rng_factory(game_id),
            clock=self._clock,
            event_bus=self._event_bus,
            **kwargs,
        )
        with self._lock:
            if engine.game_id in self._games:
                raise InvalidActionError(f"Game {engine.game_id} already exists")
            self._games[engine.game_id] = engine
        logger.info(f"Registry: created game {engine.game_id}")
        return engine

    def restore(self, snapshot: dict[str, Any]) -> SimulationEngine:
        """Register an engine rebuilt from a stored snapshot (replacing any live copy)."""
        game_id = snapshot.get("id", "")
        engine = SimulationEngine.from_snapshot(
            snapshot,
            settings=self._settings,
            rng=self._rng_factory(game_id),
            clock=self._clock,
            event_bus=self._event_bus,
        )
        with self._lock:
            self._games[engine.game_id] = engine
        return engine

    def get(self, game_id: str) -> SimulationEngine:
        with self._lock:
            engine = self._games.get(game_id)
        if engine is None:
            raise NotFoundError(f"Game {game_id} not found")
        return engine

    def remove(self, game_id: str) -> bool:
        with self._lock:
            return self._games.pop(game_id, None) is not None

    def active_games(self) -> list[SimulationEngine]:
        with self._lock:
            games = list(self._games.values())
        return [g for g in games if g.phase is GamePhase.ACTIVE]

    def advance_all(self) -> int:
        """Advance every ACTIVE game by one tick. Returns how many advanced."""
        return sum(1 for engine in self.active_games() if engine.advance_tick())

    def reset(self) -> None:
        with self._lock:
            count = len(self._games)
            self._games.clear()
        logger.info(f"Registry: cleared {count} games")

    # -- Guarded operations -----------------------------------------------------

    def apply_action(
        self,
        game_id: str,
        participant_id: str,
        action: str,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Apply an action and return ``{"message", "state"}``."""
        engine = self.get(game_id)
        try:
            message = engine.apply_action(participant_id, action, params)
        except SimulationError as e:
            logger.warning(f"Game {game_id}: {action} by {participant_id} rejected: {e}")
            raise
        return {"message": message, "state": engine.snapshot()}

    def place_environment_item(
        self, game_id: str, item: str, x: int | None = None, y: int | None = None,
    ) -> dict[str, Any]:
        engine = self.get(game_id)
        try:
            message = engine.place_environment_item(item, x, y)
        except SimulationError as e:
            logger.warning(f"Game {game_id}: environment {item} rejected: {e}")
            raise
        return {"message": message, "state": engine.snapshot()}
