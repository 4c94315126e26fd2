"""Tests for post-processing passes: edge bugs, rooms, platforms, freeze islands."""

from dataclasses import replace

import numpy as np
import pytest

from levelgen.config import DEFAULT_PROFILE, DiscreteDistribution
from levelgen.generation.postprocess import (
    fix_edge_bugs,
    generate_room,
    place_platforms,
    remove_freeze_islands,
)
from levelgen.generation.validation import find_edge_bugs
from levelgen.grid import CellType, Grid, Position
from levelgen.walk import WeightedSampler


def _sampler(seed: int = 0) -> WeightedSampler:
    return WeightedSampler(seed, DiscreteDistribution(values=None, weights=(1, 1, 1, 1)))


def _make_cave(width: int = 20, height: int = 12) -> Grid:
    """Hookable frame around an empty interior (rows 1..height-3)."""
    grid = Grid.filled(width, height, Position(2, 2))
    grid.set_area(
        Position(1, 1), Position(width - 2, height - 3), CellType.EMPTY, overwrite=True
    )
    return grid


def _path_mask(grid: Grid, history: list[Position]) -> np.ndarray:
    mask = np.zeros(grid.cells.shape, dtype=bool)
    for p in history:
        mask[p.x, p.y] = True
    return mask


class TestFixEdgeBugs:
    def test_ring_next_to_walls_frozen(self):
        grid = Grid.filled(7, 7, Position(3, 3))
        grid.set_area(Position(1, 1), Position(5, 5), CellType.EMPTY, overwrite=True)
        fixed = fix_edge_bugs(grid)
        assert fixed.sum() == 16
        assert grid.get(Position(3, 3)) is CellType.EMPTY
        assert grid.count(CellType.FREEZE) == 16
        assert not find_edge_bugs(grid).any()

    def test_diagonal_contact_counts(self):
        grid = Grid.filled(5, 5, Position(2, 2), cell=CellType.EMPTY)
        grid.set(Position(0, 0), CellType.HOOKABLE)
        fix_edge_bugs(grid)
        assert grid.get(Position(1, 1)) is CellType.FREEZE
        assert grid.get(Position(2, 2)) is CellType.EMPTY

    def test_other_cells_untouched(self):
        grid = Grid.filled(5, 5, Position(2, 2), cell=CellType.EMPTY)
        grid.set(Position(2, 2), CellType.SPAWN)
        fix_edge_bugs(grid)
        assert grid.count(CellType.FREEZE) == 0


class TestGenerateRoom:
    def test_start_room_layout(self):
        grid = Grid.filled(21, 21, Position(10, 10))
        generate_room(grid, Position(10, 10), 4, CellType.START)
        # 9x9 room minus a 5-wide platform and the spawn line above it
        assert grid.count(CellType.EMPTY) == 81 - 10
        assert grid.count(CellType.SPAWN) == 5
        assert (grid.cells[8:13, 10] == CellType.HOOKABLE).all()
        assert (grid.cells[8:13, 9] == CellType.SPAWN).all()
        # 11x11 border ring
        assert grid.count(CellType.START) == 40
        assert grid.get(Position(5, 5)) is CellType.START
        assert grid.get(Position(4, 4)) is CellType.HOOKABLE

    def test_finish_room_has_no_spawn(self):
        grid = Grid.filled(21, 21, Position(10, 10))
        generate_room(grid, Position(10, 10), 4, CellType.FINISH)
        assert grid.count(CellType.SPAWN) == 0
        assert grid.count(CellType.FINISH) == 40

    def test_border_does_not_overwrite_non_hookable(self):
        grid = Grid.filled(21, 21, Position(10, 10))
        grid.set(Position(15, 10), CellType.FREEZE)
        generate_room(grid, Position(10, 10), 4, CellType.FINISH)
        assert grid.get(Position(15, 10)) is CellType.FREEZE

    def test_room_clips_at_edge(self):
        grid = Grid.filled(10, 10, Position(1, 1))
        generate_room(grid, Position(1, 1), 4, CellType.START)
        # spawn line x=-1..3 on row 0, clipped to x=0..3
        assert grid.count(CellType.SPAWN) == 4

    def test_rejects_other_zones(self):
        grid = Grid.filled(10, 10, Position(5, 5))
        with pytest.raises(ValueError):
            generate_room(grid, Position(5, 5), 3, CellType.FREEZE)


class TestPlatforms:
    def _profile(self, **overrides):
        base = replace(
            DEFAULT_PROFILE,
            plat_min_distance=5,
            plat_width_bounds=(3, 3),
            plat_height_bounds=(1, 1),
            plat_min_empty_height=4,
        )
        return replace(base, **overrides)

    def test_platforms_rest_on_floor(self):
        grid = _make_cave()
        history = [Position(x, 2) for x in range(2, 18)]
        placed = place_platforms(
            grid, history, _path_mask(grid, history), self._profile(), _sampler()
        )
        assert len(placed) == 3
        assert placed[0] == (Position(6, 9), Position(8, 9))
        for top_left, bottom_right in placed:
            assert bottom_right.y == 9
            row = grid.cells[top_left.x:bottom_right.x + 1, 9]
            assert (row == CellType.HOOKABLE).all()

    def test_platforms_avoid_path_neighbourhood(self):
        grid = _make_cave()
        history = [Position(x, 8) for x in range(2, 18)]
        placed = place_platforms(
            grid, history, _path_mask(grid, history), self._profile(), _sampler()
        )
        assert placed == []

    def test_needs_empty_headroom(self):
        grid = _make_cave()
        grid.set_area(Position(1, 6), Position(18, 6), CellType.FREEZE, overwrite=True)
        history = [Position(x, 7) for x in range(2, 18)]
        placed = place_platforms(
            grid, history, _path_mask(grid, history), self._profile(), _sampler()
        )
        assert placed == []

    def test_overhang(self):
        grid = _make_cave()
        grid.set(Position(6, 10), CellType.EMPTY)
        history = [Position(2, 2), Position(7, 2)]
        strict = self._profile(plat_min_distance=1)
        assert place_platforms(
            grid.copy(), history, _path_mask(grid, history), strict, _sampler()
        ) == []
        soft = self._profile(plat_min_distance=1, plat_soft_overhang=True)
        placed = place_platforms(
            grid, history, _path_mask(grid, history), soft, _sampler()
        )
        assert placed == [(Position(6, 9), Position(8, 9))]


class TestFreezeIslands:
    ROWS = [
        "........",
        ".~~.....",
        ".~~...~.",
        "......~#",
    ]

    def test_removes_small_detached_islands(self):
        grid = Grid.from_chars(self.ROWS, Position(0, 0))
        cleared = remove_freeze_islands(grid, min_size=5)
        assert cleared == 4
        assert grid.get(Position(1, 1)) is CellType.EMPTY
        # touches hookable terrain, kept
        assert grid.get(Position(6, 2)) is CellType.FREEZE

    def test_large_islands_kept(self):
        grid = Grid.from_chars(self.ROWS, Position(0, 0))
        assert remove_freeze_islands(grid, min_size=4) == 0

    def test_disabled(self):
        grid = Grid.from_chars(self.ROWS, Position(0, 0))
        assert remove_freeze_islands(grid, min_size=0) == 0
        assert grid.count(CellType.FREEZE) == 6
