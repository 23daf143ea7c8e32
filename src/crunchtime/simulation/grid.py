"""Grid — the hackathon floor plan and its spatial queries.

Architecture
------------
The grid is a fixed width x height array of Cells, built once when a game
starts from a static layout template:

  - four repos (scoring nodes) at symmetric points near the corners
  - three utility nodes across the middle row (coffee, supabase, mongodb)

Fixed nodes never change kind; only their ``active`` flag toggles (a
server outage deactivates a repo until its ``expires_at`` tick).
Consumables (pizza, energy drink, headphones) are created on empty cells
with a spawn/expiry window and revert to empty when consumed or expired.

All scans walk the grid in row-major order (y outer, x inner).  Nearest
queries keep the first cell found at the minimum Manhattan distance, so
ties always resolve to the cell with the lowest (y, x).
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from enum import Enum
from typing import Iterator

from .errors import InvalidActionError


class CellKind(str, Enum):
    """What occupies a grid cell."""
    EMPTY = "empty"
    REPO = "repo"
    COFFEE_STATION = "coffee_station"
    SUPABASE_NODE = "supabase_node"
    MONGODB_NODE = "mongodb_node"
    PIZZA = "pizza"
    ENERGY_DRINK = "energy_drink"
    HEADPHONES = "headphones"


UTILITY_KINDS = frozenset({
    CellKind.COFFEE_STATION,
    CellKind.SUPABASE_NODE,
    CellKind.MONGODB_NODE,
})

CONSUMABLE_KINDS = frozenset({
    CellKind.PIZZA,
    CellKind.ENERGY_DRINK,
    CellKind.HEADPHONES,
})

# Consumables that pull un-buffed agents off course
DISTRACTION_KINDS = frozenset({CellKind.PIZZA, CellKind.ENERGY_DRINK})

# Layout template — (x, y) positions
REPO_POSITIONS: list[tuple[int, int]] = [(3, 3), (16, 3), (3, 11), (16, 11)]
UTILITY_POSITIONS: dict[CellKind, tuple[int, int]] = {
    CellKind.COFFEE_STATION: (10, 7),
    CellKind.SUPABASE_NODE: (5, 7),
    CellKind.MONGODB_NODE: (14, 7),
}


@dataclass
class Cell:
    """One grid square."""

    x: int
    y: int
    kind: CellKind = CellKind.EMPTY
    active: bool = True
    spawned_at: int | None = None
    expires_at: int | None = None

    @property
    def position(self) -> tuple[int, int]:
        return (self.x, self.y)

    @property
    def is_consumable(self) -> bool:
        return self.kind in CONSUMABLE_KINDS

    def reset(self) -> None:
        """Revert to a plain empty cell."""
        self.kind = CellKind.EMPTY
        self.active = True
        self.spawned_at = None
        self.expires_at = None


def manhattan_distance(x1: int, y1: int, x2: int, y2: int) -> int:
    return abs(x1 - x2) + abs(y1 - y2)


class Grid:
    """Rectangular cell array with row-major query helpers."""

    def __init__(self, width: int, height: int) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"Grid dimensions must be positive: {width}x{height}")
        self.width = width
        self.height = height
        self.rows: list[list[Cell]] = [
            [Cell(x, y) for x in range(width)] for y in range(height)
        ]

    @classmethod
    def from_template(cls, width: int, height: int) -> Grid:
        """Build the standard hackathon floor.

        Raises:
            ValueError: If any template node falls outside the grid.
        """
        grid = cls(width, height)
        placements = [(pos, CellKind.REPO) for pos in REPO_POSITIONS]
        placements += [(pos, kind) for kind, pos in UTILITY_POSITIONS.items()]
        for (x, y), kind in placements:
            if not grid.in_bounds(x, y):
                raise ValueError(
                    f"Layout node {kind.value} at ({x}, {y}) outside {width}x{height} grid"
                )
            grid.rows[y][x].kind = kind
        return grid

    @classmethod
    def from_rows(cls, rows: list[list[Cell]]) -> Grid:
        """Adopt already-built rows (used when restoring a snapshot)."""
        grid = cls(len(rows[0]), len(rows))
        grid.rows = rows
        return grid

    # -- Access -----------------------------------------------------------------

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def cell(self, x: int, y: int) -> Cell:
        return self.rows[y][x]

    def cells(self) -> Iterator[Cell]:
        """Iterate every cell in row-major order."""
        for row in self.rows:
            yield from row

    def clamp(self, x: int, y: int) -> tuple[int, int]:
        return (
            max(0, min(self.width - 1, x)),
            max(0, min(self.height - 1, y)),
        )

    # -- Queries ----------------------------------------------------------------

    def nearest_of_kind(
        self, x: int, y: int, kind: CellKind, active_only: bool = True,
    ) -> Cell | None:
        """Closest cell of ``kind`` by Manhattan distance (first found wins ties)."""
        nearest: Cell | None = None
        best = None
        for cell in self.cells():
            if cell.kind is not kind or (active_only and not cell.active):
                continue
            dist = manhattan_distance(x, y, cell.x, cell.y)
            if best is None or dist < best:
                best = dist
                nearest = cell
        return nearest

    def cells_in_range(
        self,
        x: int,
        y: int,
        range_: int,
        kinds: frozenset[CellKind] = DISTRACTION_KINDS,
    ) -> list[Cell]:
        """Active cells of ``kinds`` within ``range_``, nearest first.

        The sort is stable, so equal distances keep row-major order.
        """
        found = [
            cell for cell in self.cells()
            if cell.kind in kinds and cell.active
            and manhattan_distance(x, y, cell.x, cell.y) <= range_
        ]
        found.sort(key=lambda c: manhattan_distance(x, y, c.x, c.y))
        return found

    def empty_cells(self) -> list[Cell]:
        return [cell for cell in self.cells() if cell.kind is CellKind.EMPTY]

    def random_empty_cell(self, rng: random.Random) -> Cell | None:
        """Uniformly chosen empty cell, or None when the floor is full."""
        empty = self.empty_cells()
        if not empty:
            return None
        return empty[rng.randrange(len(empty))]

    def active_repos(self) -> list[Cell]:
        return [
            cell for cell in self.cells()
            if cell.kind is CellKind.REPO and cell.active
        ]

    # -- Mutation ---------------------------------------------------------------

    def place(self, x: int, y: int, kind: CellKind, tick: int, lifetime: int) -> Cell:
        """Put a consumable on a cell with a [tick, tick + lifetime) window."""
        cell = self.rows[y][x]
        cell.kind = kind
        cell.active = True
        cell.spawned_at = tick
        cell.expires_at = tick + lifetime
        return cell


def agent_spawn_positions(count: int, width: int, height: int) -> list[tuple[int, int]]:
    """Evenly spaced spawn slots along the bottom edge."""
    y = height - 1
    spacing = width // (count + 1)
    return [(min(width - 1, spacing * (i + 1)), y) for i in range(count)]


def parse_coords(x, y, what: str) -> tuple[int, int]:
    """Validate caller-supplied coordinates (ints, not bools or strings).

    Raises:
        InvalidActionError: If either coordinate is missing or not an int.
    """
    for value in (x, y):
        if not isinstance(value, int) or isinstance(value, bool):
            raise InvalidActionError(f"{what} requires integer x and y")
    return (x, y)
