"""Greedy single-step grid movement.

Agents walk one cell per step along the axis with the larger remaining
delta.  When |dx| == |dy| the horizontal axis wins.  There are no diagonal
moves and results are clamped to the grid.
"""

from __future__ import annotations


def step_toward(
    from_x: int,
    from_y: int,
    to_x: int,
    to_y: int,
    width: int,
    height: int,
) -> tuple[int, int]:
    """Return the position one step from (from_x, from_y) toward (to_x, to_y)."""
    dx = to_x - from_x
    dy = to_y - from_y
    if dx == 0 and dy == 0:
        return (from_x, from_y)

    x, y = from_x, from_y
    if abs(dx) >= abs(dy):
        x += 1 if dx > 0 else -1
    else:
        y += 1 if dy > 0 else -1

    x = max(0, min(width - 1, x))
    y = max(0, min(height - 1, y))
    return (x, y)


def walk_toward(
    from_x: int,
    from_y: int,
    to_x: int,
    to_y: int,
    steps: int,
    width: int,
    height: int,
) -> tuple[int, int]:
    """Take up to ``steps`` single steps, stopping early on arrival."""
    x, y = from_x, from_y
    for _ in range(steps):
        if (x, y) == (to_x, to_y):
            break
        x, y = step_toward(x, y, to_x, to_y, width, height)
    return (x, y)
