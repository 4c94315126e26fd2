"""Generator: owns the grid, sampler and walker of one seeded run.

Usage:
    gen = Generator(profile, seed=42, skeleton=skeleton)
    gen.run(max_steps=100_000)
    gen.post_processing()
    grid = gen.map

or in one call via generate_map(). A Generator is single-threaded; run
several generators in parallel processes for batch generation.
"""

import logging

from levelgen.config.defaults import DEFAULT_SKELETON
from levelgen.config.profile import (
    GenerationProfile,
    MapSkeleton,
    check_profile,
    check_skeleton,
)
from levelgen.generation.postprocess import (
    fix_edge_bugs,
    generate_room,
    place_platforms,
    remove_freeze_islands,
)
from levelgen.generation.skips import generate_skips
from levelgen.generation.types import GenerationResult, Skip
from levelgen.generation.validation import validate_map
from levelgen.grid.grid import Grid
from levelgen.grid.types import CellType, Position
from levelgen.walk.sampler import WeightedSampler
from levelgen.walk.walker import Walker
from levelgen.walk.waypoints import generate_subwaypoints

log = logging.getLogger(__name__)


class Generator:
    """Seeded level generator.

    Args:
        profile: Generation parameters, validated on construction.
        seed: Run seed. Same seed, profile and skeleton give the same level.
        skeleton: Waypoint layout and map dimensions.

    Raises:
        ConfigError: If the profile or skeleton is invalid.
    """

    def __init__(
        self,
        profile: GenerationProfile,
        seed: int,
        skeleton: MapSkeleton = DEFAULT_SKELETON,
    ) -> None:
        check_profile(profile)
        check_skeleton(skeleton)

        self.profile = profile
        self.skeleton = skeleton
        self.seed = seed
        self.rnd = WeightedSampler(seed, profile.shift_weights)

        width, height = skeleton.width, skeleton.height
        spawn = skeleton.spawn
        self.map = Grid.filled(width, height, spawn)

        waypoints = generate_subwaypoints(
            skeleton.waypoints, profile, self.rnd, width, height
        )
        self.walker = Walker(
            pos=spawn,
            waypoints=waypoints,
            profile=profile,
            shape=(width, height),
            inner_size=profile.max_inner_size,
            outer_margin=profile.max_outer_margin,
            inner_circularity=0.0,
            outer_circularity=0.1,
        )

        self.skips: list[Skip] = []
        self.platforms: list[tuple[Position, Position]] = []
        self._post_processed = False

    @property
    def finished(self) -> bool:
        return self.walker.finished

    def step(self) -> None:
        """Advance the walker by one tick. No-op once finished.

        Raises:
            BoundsError: If the walker tried to leave the grid.
            StuckError: If the walker stopped making progress.
        """
        self.walker.step(self.map, self.rnd)

    def run(self, max_steps: int) -> int:
        """Step until the walker finished or ``max_steps`` ticks were taken.

        Returns:
            Number of ticks taken by this call.
        """
        log.info(
            "Generating '%s' on '%s' (%dx%d), seed=%d, max_steps=%d",
            self.profile.name,
            self.skeleton.name,
            self.map.width,
            self.map.height,
            self.seed,
            max_steps,
        )
        taken = 0
        while not self.walker.finished and taken < max_steps:
            self.step()
            taken += 1

        if self.walker.finished:
            log.info(
                "Walker finished after %d steps at %s",
                self.walker.steps,
                self.walker.pos,
            )
        else:
            log.warning(
                "Step budget of %d exhausted before the walker finished "
                "(waypoint %d/%d)",
                max_steps,
                self.walker.waypoint_index,
                len(self.walker.waypoints),
            )
        return taken

    def post_processing(self) -> None:
        """Platforms, skips, freeze islands, edge bugs, then the rooms.

        Raises:
            RuntimeError: If called a second time.
        """
        if self._post_processed:
            raise RuntimeError("post_processing() already ran for this generator")
        self._post_processed = True

        p = self.profile
        self.platforms = place_platforms(
            self.map, self.walker.history, self.walker.path_mask(), p, self.rnd
        )
        self.skips = generate_skips(
            self.map, self.walker.history, self.walker.carve_step, p
        )
        remove_freeze_islands(self.map, p.min_freeze_size)
        fix_edge_bugs(self.map)
        generate_room(self.map, self.map.spawn, p.room_margin, CellType.START)
        generate_room(self.map, self.walker.pos, p.room_margin, CellType.FINISH)

        for problem in validate_map(self.map, self.walker.pos, p.room_margin):
            log.warning("Map check failed: %s", problem)

    def result(self) -> GenerationResult:
        return GenerationResult(
            grid=self.map,
            seed=self.seed,
            steps=self.walker.steps,
            finished=self.walker.finished,
            finish=self.walker.pos,
            skips=tuple(self.skips),
            platforms=len(self.platforms),
        )

    @classmethod
    def generate(
        cls,
        max_steps: int,
        seed: int,
        profile: GenerationProfile,
        skeleton: MapSkeleton = DEFAULT_SKELETON,
    ) -> GenerationResult:
        """Run and post-process a fresh generator, returning the full result."""
        gen = cls(profile, seed, skeleton)
        gen.run(max_steps)
        gen.post_processing()
        return gen.result()


def generate_map(
    max_steps: int,
    seed: int,
    profile: GenerationProfile,
    skeleton: MapSkeleton = DEFAULT_SKELETON,
) -> Grid:
    """Generate a complete level in one call.

    Raises:
        ConfigError: If the profile or skeleton is invalid.
        BoundsError: If the walker tried to leave the grid.
        StuckError: If the walker stopped making progress.
    """
    return Generator.generate(max_steps, seed, profile, skeleton).grid
