"""Integration tests for full level generation.

Covers determinism, connectivity, the freeze buffer invariant, skip
safety, the straight two-waypoint example, config rejection, stuck and
out-of-bounds walkers.
"""

from dataclasses import replace

import numpy as np
import pytest
import scipy.ndimage

from levelgen.config import (
    DEFAULT_PROFILE,
    DEFAULT_SKELETON,
    BuiltinPresets,
    DiscreteDistribution,
    GenerationProfile,
    MapSkeleton,
)
from levelgen.errors import BoundsError, ConfigError, StuckError
from levelgen.generation import Generator, generate_map, validate_map
from levelgen.generation.validation import find_edge_bugs, passable_mask, room_mask
from levelgen.grid import CellType, Grid, Position

# Strong goal bias so runs finish in a few hundred steps per leg.
FAST_PROFILE = replace(
    DEFAULT_PROFILE,
    name="fast",
    shift_weights=DiscreteDistribution(values=None, weights=(0.85, 0.05, 0.05, 0.05)),
)

STRAIGHT = MapSkeleton(
    name="straight",
    waypoints=(Position(50, 250), Position(250, 250)),
    width=300,
    height=300,
)


def _run(
    profile: GenerationProfile = FAST_PROFILE,
    seed: int = 42,
    skeleton: MapSkeleton = DEFAULT_SKELETON,
    max_steps: int = 50_000,
) -> Generator:
    gen = Generator(profile, seed, skeleton)
    gen.run(max_steps)
    gen.post_processing()
    return gen


def _spawn_reaches_finish(grid: Grid) -> bool:
    labels, _ = scipy.ndimage.label(passable_mask(grid))
    spawn_labels = set(labels[grid.mask(CellType.SPAWN)].tolist())
    finish_labels = set(labels[grid.mask(CellType.FINISH)].tolist())
    return bool(spawn_labels & finish_labels)


@pytest.fixture(scope="module")
def straight_run() -> Generator:
    return _run(seed=42, skeleton=STRAIGHT, max_steps=500)


@pytest.fixture(scope="module")
def s_runs() -> list[Generator]:
    presets = BuiltinPresets().profiles()
    return [
        _run(FAST_PROFILE, seed=1),
        _run(FAST_PROFILE, seed=2),
        _run(presets["default"], seed=3),
        _run(presets["hard"], seed=4),
    ]


class TestStraightExample:
    """Seed 42 on a single straight leg finishes within 500 steps."""

    def test_finishes_within_budget(self, straight_run: Generator) -> None:
        assert straight_run.finished
        assert straight_run.walker.steps < 500

    def test_spawn_at_first_waypoint(self, straight_run: Generator) -> None:
        assert straight_run.map.spawn == Position(50, 250)
        spawn_cells = straight_run.map.positions(CellType.SPAWN)
        assert Position(50, 249) in spawn_cells

    def test_finish_border_surrounds_last_position(self, straight_run: Generator) -> None:
        end = straight_run.walker.pos
        finish_cells = straight_run.map.positions(CellType.FINISH)
        assert finish_cells
        ring = straight_run.profile.room_margin + 1
        assert all(c.chebyshev(end) == ring for c in finish_cells)

    def test_map_checks_pass(self, straight_run: Generator) -> None:
        grid = straight_run.map
        assert validate_map(grid, straight_run.walker.pos, straight_run.profile.room_margin) == []


class TestDeterminism:
    def test_same_seed_identical_grid(self):
        a = generate_map(5000, 7, FAST_PROFILE, STRAIGHT)
        b = generate_map(5000, 7, FAST_PROFILE, STRAIGHT)
        assert a.cells.tobytes() == b.cells.tobytes()
        assert a.spawn == b.spawn

    def test_different_seed_different_grid(self):
        a = generate_map(5000, 7, FAST_PROFILE, STRAIGHT)
        b = generate_map(5000, 8, FAST_PROFILE, STRAIGHT)
        assert not np.array_equal(a.cells, b.cells)

    def test_manual_stepping_matches_generate_map(self):
        small_s = BuiltinPresets().skeletons()["small_s"]
        gen = Generator(FAST_PROFILE, 9, small_s)
        while not gen.finished:
            gen.step()
        gen.post_processing()
        expected = generate_map(10**6, 9, FAST_PROFILE, small_s)
        assert np.array_equal(gen.map.cells, expected.cells)
        assert gen.map.spawn == expected.spawn


class TestLevelProperties:
    """Structural guarantees on full S-shaped levels."""

    def test_all_finished(self, s_runs: list[Generator]) -> None:
        assert all(gen.finished for gen in s_runs)

    def test_connectivity(self, s_runs: list[Generator]) -> None:
        for gen in s_runs:
            assert _spawn_reaches_finish(gen.map)

    def test_path_stays_empty(self, s_runs: list[Generator]) -> None:
        for gen in s_runs:
            rooms = room_mask(
                gen.map.cells.shape,
                [gen.map.spawn, gen.walker.pos],
                gen.profile.room_margin,
            )
            path = gen.walker.path_mask() & ~rooms
            assert (gen.map.cells[path] == CellType.EMPTY).all()

    def test_buffer_invariant_outside_rooms(self, s_runs: list[Generator]) -> None:
        for gen in s_runs:
            rooms = room_mask(
                gen.map.cells.shape,
                [gen.map.spawn, gen.walker.pos],
                gen.profile.room_margin,
            )
            assert not find_edge_bugs(gen.map, exclude=rooms).any()

    def test_skip_safety(self, s_runs: list[Generator]) -> None:
        for gen in s_runs:
            p = gen.profile
            lo, hi = p.skip_length_bounds
            total = gen.walker.steps
            assert sum(s.length for s in gen.skips) <= p.max_level_skip * total
            for i, a in enumerate(gen.skips):
                assert lo <= a.length <= hi
                for b in gen.skips[i + 1:]:
                    assert a.start.distance_squared(b.start) >= p.skip_min_spacing_sqr

    def test_only_known_cells(self, s_runs: list[Generator]) -> None:
        for gen in s_runs:
            assert gen.map.cells.max() <= max(CellType)
            assert gen.map.count(CellType.SPAWN) > 0


class TestGeneratorLifecycle:
    def test_zero_kernel_size_rejected_before_run(self):
        profile = replace(
            DEFAULT_PROFILE,
            inner_size_probs=DiscreteDistribution(values=(0, 3), weights=(0.5, 0.5)),
        )
        with pytest.raises(ConfigError) as exc:
            Generator(profile, seed=1)
        assert exc.value.parameter == "inner_size_probs"
        with pytest.raises(ConfigError):
            generate_map(100, 1, profile)

    def test_invalid_skeleton_rejected(self):
        skeleton = MapSkeleton(name="bad", waypoints=(Position(400, 10),))
        with pytest.raises(ConfigError):
            Generator(DEFAULT_PROFILE, seed=1, skeleton=skeleton)

    def test_run_respects_budget(self):
        gen = Generator(DEFAULT_PROFILE, seed=3)
        taken = gen.run(25)
        assert taken == 25
        assert gen.walker.steps == 25
        assert not gen.finished

    def test_budget_exhausted_is_logged(self, caplog):
        gen = Generator(DEFAULT_PROFILE, seed=3)
        with caplog.at_level("WARNING"):
            gen.run(10)
        assert "budget" in caplog.text

    def test_step_after_finish_is_noop(self, straight_run: Generator) -> None:
        steps = straight_run.walker.steps
        straight_run.step()
        assert straight_run.walker.steps == steps

    def test_post_processing_runs_once(self):
        gen = Generator(FAST_PROFILE, seed=1, skeleton=STRAIGHT)
        gen.run(1000)
        gen.post_processing()
        with pytest.raises(RuntimeError):
            gen.post_processing()

    def test_result(self, straight_run: Generator) -> None:
        result = straight_run.result()
        assert result.grid is straight_run.map
        assert result.seed == 42
        assert result.finished
        assert result.finish == straight_run.walker.pos


class TestRunFailures:
    def test_stuck_walker(self):
        profile = replace(FAST_PROFILE, pos_lock_max_dist=50.0, pos_lock_max_delay=5)
        gen = Generator(profile, seed=1, skeleton=STRAIGHT)
        with pytest.raises(StuckError) as exc:
            gen.run(100)
        assert exc.value.step == 5

    def test_walker_leaving_grid(self):
        profile = replace(
            DEFAULT_PROFILE,
            shift_weights=DiscreteDistribution(values=None, weights=(0.0, 0.0, 0.0, 1.0)),
        )
        skeleton = MapSkeleton(
            name="edge", waypoints=(Position(2, 15), Position(27, 15)), width=30, height=30
        )
        gen = Generator(profile, seed=1, skeleton=skeleton)
        with pytest.raises(BoundsError) as exc:
            gen.run(10)
        assert exc.value.step == 3

    def test_momentum_draws_straight_corridor(self):
        profile = replace(
            DEFAULT_PROFILE,
            momentum_prob=1.0,
            max_subwaypoint_dist=1000.0,
            shift_weights=DiscreteDistribution(values=None, weights=(1.0, 1.0, 1.0, 1.0)),
        )
        gen = Generator(profile, seed=11, skeleton=STRAIGHT)
        for _ in range(30):
            gen.step()
        history = gen.walker.history
        moves = {b - a for a, b in zip(history, history[1:])}
        assert len(moves) == 1
