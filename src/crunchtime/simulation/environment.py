"""EnvironmentInjector — expiry sweep and random hackathon events.

Architecture
------------
Runs once at the start of every tick, in a fixed order:

  1. expiry sweep — consumables past ``expires_at`` revert to empty,
     outaged repos come back online.
  2. resource spawn (``spawn_chance``) — a pizza or energy drink appears on
     a random empty cell for ``consumable_lifetime`` ticks.
  3. bonus event (``bonus_chance``) — one random agent, if not stuck in a
     merge conflict, is credited ``bonus_commits``.
  4. outage event (``outage_chance``) — one random active repo goes down
     for ``outage_duration`` ticks.

The three probability draws are independent and always happen, in that
order, so a fixed seed replays the same tick.  The sweep runs first
because a spawn may land on a cell it just freed.

``place_item`` is the administrative override used by the dashboard:
seed a consumable on a chosen cell, or crash every repo at once.
"""

from __future__ import annotations

import random
from enum import Enum
from typing import TYPE_CHECKING

from loguru import logger

from .errors import CellOccupiedError, InvalidActionError, OutOfBoundsError
from .grid import CellKind, parse_coords

if TYPE_CHECKING:
    from crunchtime.config import Settings
    from .state import GameState


class EnvironmentItem(str, Enum):
    """Things an operator can drop into a running game."""
    PIZZA = "pizza"
    ENERGY_DRINK = "energy_drink"
    HEADPHONES = "headphones"
    SERVER_CRASH = "server_crash"


_SPAWNABLE = (CellKind.PIZZA, CellKind.ENERGY_DRINK)

_LABELS: dict[CellKind, str] = {
    CellKind.PIZZA: "Pizza",
    CellKind.ENERGY_DRINK: "Energy drink",
    CellKind.HEADPHONES: "Noise-cancelling headphones",
}


class EnvironmentInjector:
    """Per-tick environment maintenance and event injection."""

    def __init__(self, settings: Settings, rng: random.Random) -> None:
        self._settings = settings
        self._rng = rng

    def tick(self, state: GameState) -> None:
        self.sweep_expired(state)
        self._maybe_spawn_resource(state)
        self._maybe_grant_bonus(state)
        self._maybe_outage(state)

    # -- Expiry -----------------------------------------------------------------

    def sweep_expired(self, state: GameState) -> None:
        """Revert every cell whose window closed at or before this tick."""
        for cell in state.grid.cells():
            if cell.expires_at is None or cell.expires_at > state.tick_count:
                continue
            if cell.is_consumable:
                logger.debug(f"Game {state.game_id}: {cell.kind.value} at {cell.position} expired")
                cell.reset()
            else:
                cell.active = True
                cell.spawned_at = None
                cell.expires_at = None
                state.log.system(
                    f"Repo at ({cell.x}, {cell.y}) is back online", state.tick_count,
                )

    # -- Random events ----------------------------------------------------------

    def _maybe_spawn_resource(self, state: GameState) -> None:
        if self._rng.random() >= self._settings.spawn_chance:
            return
        kind = self._rng.choice(_SPAWNABLE)
        cell = state.grid.random_empty_cell(self._rng)
        if cell is None:
            return
        state.grid.place(
            cell.x, cell.y, kind, state.tick_count, self._settings.consumable_lifetime,
        )
        state.log.system(
            f"{_LABELS[kind]} appeared at ({cell.x}, {cell.y})", state.tick_count,
            action="spawn",
        )

    def _maybe_grant_bonus(self, state: GameState) -> None:
        if self._rng.random() >= self._settings.bonus_chance:
            return
        if not state.agents:
            return
        agent = self._rng.choice(state.agents)
        if agent.is_blocked:
            return
        bonus = self._settings.bonus_commits
        agent.commits += bonus
        state.total_score += bonus
        state.log.record(
            agent, "bonus",
            f"found a working snippet on Stack Overflow (+{bonus} commits, "
            f"total {state.total_score})",
            state.tick_count,
        )

    def _maybe_outage(self, state: GameState) -> None:
        if self._rng.random() >= self._settings.outage_chance:
            return
        repos = state.grid.active_repos()
        if not repos:
            return
        cell = self._rng.choice(repos)
        self._take_down(state, cell)
        logger.warning(f"Game {state.game_id}: repo at {cell.position} went down")
        state.log.system(
            f"Server outage! Repo at ({cell.x}, {cell.y}) is down for "
            f"{self._settings.outage_duration} ticks",
            state.tick_count, action="server_outage",
        )

    def _take_down(self, state: GameState, cell) -> None:
        cell.active = False
        cell.spawned_at = state.tick_count
        cell.expires_at = state.tick_count + self._settings.outage_duration

    # -- Operator override ------------------------------------------------------

    def place_item(
        self, state: GameState, item: str, x: int | None = None, y: int | None = None,
    ) -> str:
        """Seed a consumable at (x, y) or crash every active repo.

        Raises:
            InvalidActionError: Unknown item or missing coordinates.
            OutOfBoundsError: (x, y) outside the grid.
            CellOccupiedError: Target cell is not empty.
        """
        try:
            item = EnvironmentItem(item)
        except ValueError:
            raise InvalidActionError(f"Unknown environment item: {item!r}") from None

        if item is EnvironmentItem.SERVER_CRASH:
            repos = state.grid.active_repos()
            for cell in repos:
                self._take_down(state, cell)
            logger.warning(f"Game {state.game_id}: server crash took down {len(repos)} repos")
            state.log.system(
                f"SERVER CRASH! {len(repos)} repos down for "
                f"{self._settings.outage_duration} ticks",
                state.tick_count, action="server_outage",
            )
            return f"Server crash: {len(repos)} repos down"

        x, y = parse_coords(x, y, item.value)
        if not state.grid.in_bounds(x, y):
            raise OutOfBoundsError(f"({x}, {y}) is outside the grid")
        target = state.grid.cell(x, y)
        if target.kind is not CellKind.EMPTY:
            raise CellOccupiedError(f"({x}, {y}) already holds {target.kind.value}")

        kind = CellKind(item.value)
        state.grid.place(x, y, kind, state.tick_count, self._settings.consumable_lifetime)
        state.log.system(
            f"{_LABELS[kind]} dropped at ({x}, {y})", state.tick_count, action="spawn",
        )
        return f"Placed {item.value} at ({x}, {y})"
