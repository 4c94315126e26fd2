"""Tests for subwaypoint insertion."""

from dataclasses import replace

from levelgen.config import DEFAULT_PROFILE, DEFAULT_SKELETON, DiscreteDistribution
from levelgen.grid import Position
from levelgen.walk import WeightedSampler, generate_subwaypoints


def _sampler(seed: int = 0) -> WeightedSampler:
    return WeightedSampler(seed, DiscreteDistribution(values=None, weights=(1, 1, 1, 1)))


class TestSubwaypoints:
    def test_originals_kept_in_order(self):
        wps = DEFAULT_SKELETON.waypoints
        result = generate_subwaypoints(wps, DEFAULT_PROFILE, _sampler(), 300, 300)
        indices = [result.index(wp) for wp in wps]
        assert indices == sorted(indices)
        assert result[0] == wps[0]
        assert result[-1] == wps[-1]

    def test_leg_split_count(self):
        profile = replace(DEFAULT_PROFILE, subwaypoint_max_shift_dist=0.0)
        wps = (Position(0, 10), Position(200, 10))
        result = generate_subwaypoints(wps, profile, _sampler(), 300, 300)
        # 200 cells at max 50 per piece -> 4 pieces, 3 inserted points
        assert result == (
            Position(0, 10),
            Position(50, 10),
            Position(100, 10),
            Position(150, 10),
            Position(200, 10),
        )

    def test_jitter_bounded(self):
        profile = replace(DEFAULT_PROFILE, subwaypoint_max_shift_dist=5.0)
        wps = (Position(20, 150), Position(280, 150))
        result = generate_subwaypoints(wps, profile, _sampler(3), 300, 300)
        for sub in result[1:-1]:
            assert abs(sub.y - 150) <= 5

    def test_clipped_inside_grid(self):
        profile = replace(
            DEFAULT_PROFILE, max_subwaypoint_dist=5.0, subwaypoint_max_shift_dist=10.0
        )
        wps = (Position(0, 0), Position(29, 0))
        result = generate_subwaypoints(wps, profile, _sampler(1), 30, 30)
        for sub in result[1:-1]:
            assert 1 <= sub.x <= 28
            assert 1 <= sub.y <= 28

    def test_short_leg_no_insertions(self):
        wps = (Position(10, 10), Position(20, 10))
        result = generate_subwaypoints(wps, DEFAULT_PROFILE, _sampler(), 100, 100)
        assert result == wps

    def test_deterministic(self):
        wps = DEFAULT_SKELETON.waypoints
        a = generate_subwaypoints(wps, DEFAULT_PROFILE, _sampler(9), 300, 300)
        b = generate_subwaypoints(wps, DEFAULT_PROFILE, _sampler(9), 300, 300)
        assert a == b

    def test_empty(self):
        assert generate_subwaypoints((), DEFAULT_PROFILE, _sampler(), 10, 10) == ()
