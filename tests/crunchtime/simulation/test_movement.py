"""Unit tests for greedy grid movement."""

from __future__ import annotations

import pytest

from crunchtime.simulation.movement import step_toward, walk_toward

pytestmark = pytest.mark.unit

W, H = 20, 15


class TestStepToward:
    def test_larger_horizontal_delta_moves_x(self):
        assert step_toward(0, 0, 3, 1, W, H) == (1, 0)

    def test_tie_prefers_horizontal(self):
        assert step_toward(0, 0, 1, 1, W, H) == (1, 0)
        assert step_toward(5, 13, 3, 11, W, H) == (4, 13)

    def test_larger_vertical_delta_moves_y(self):
        assert step_toward(5, 14, 3, 11, W, H) == (5, 13)

    def test_negative_directions(self):
        assert step_toward(10, 10, 2, 9, W, H) == (9, 10)
        assert step_toward(10, 10, 9, 2, W, H) == (10, 9)

    def test_already_there(self):
        assert step_toward(4, 4, 4, 4, W, H) == (4, 4)

    def test_clamped_to_grid(self):
        assert step_toward(19, 0, 25, 0, W, H) == (19, 0)
        assert step_toward(0, 14, 0, 30, W, H) == (0, 14)

    def test_exactly_one_cell_per_step(self):
        x, y = step_toward(0, 0, 19, 14, W, H)
        assert abs(x) + abs(y) == 1


class TestWalkToward:
    def test_multiple_steps(self):
        assert walk_toward(5, 14, 3, 11, 2, W, H) == (4, 13)

    def test_stops_on_arrival(self):
        assert walk_toward(3, 12, 3, 11, 2, W, H) == (3, 11)

    def test_zero_steps(self):
        assert walk_toward(1, 1, 5, 5, 0, W, H) == (1, 1)

    def test_full_walk_reaches_target(self):
        assert walk_toward(0, 14, 16, 3, 100, W, H) == (16, 3)
