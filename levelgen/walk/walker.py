"""Random-walk agent that carves the level one cell per tick.

The walker steers toward its current waypoint by ranking the four
cardinal moves best to worst and drawing a rank from the profile's shift
table, optionally repeating its previous move (momentum). After every
move it stamps the inner kernel as EMPTY and the outer kernel as FREEZE,
then locks history positions it has left behind and raises StuckError
when too many positions stay unlocked.
"""

import logging
from enum import Enum
from typing import Sequence

import numpy as np

from levelgen.config.profile import GenerationProfile
from levelgen.errors import BoundsError, StuckError
from levelgen.grid.grid import Grid
from levelgen.grid.kernel import Kernel
from levelgen.grid.types import CellType, Position, ShiftDirection
from levelgen.walk.sampler import WeightedSampler

log = logging.getLogger(__name__)

INNER_ELIGIBLE = (CellType.HOOKABLE, CellType.FREEZE)
OUTER_ELIGIBLE = (CellType.HOOKABLE,)


class WalkerState(Enum):
    WALKING = "walking"
    FINISHED = "finished"


class Walker:
    """Stateful walker for one generation run.

    Args:
        pos: Start position (the spawn).
        waypoints: Waypoints in traversal order.
        profile: Validated generation profile, borrowed for the run.
        shape: (width, height) of the grid the walker will carve.
        inner_size: Initial inner kernel size.
        outer_margin: Initial outer margin (outer size = inner size + margin).
        inner_circularity: Initial inner kernel circularity.
        outer_circularity: Initial outer kernel circularity.
    """

    def __init__(
        self,
        pos: Position,
        waypoints: Sequence[Position],
        profile: GenerationProfile,
        shape: tuple[int, int],
        inner_size: int,
        outer_margin: int,
        inner_circularity: float = 0.0,
        outer_circularity: float = 0.1,
    ) -> None:
        self.pos = pos
        self.waypoints = tuple(waypoints)
        self.waypoint_index = 0
        self.profile = profile
        self.state = WalkerState.FINISHED if not self.waypoints else WalkerState.WALKING

        self.inner_size = inner_size
        self.outer_margin = outer_margin
        self.inner_circularity = inner_circularity
        self.outer_circularity = outer_circularity
        self.inner_kernel = Kernel.from_size(inner_size, inner_circularity)
        self.outer_kernel = Kernel.from_size(inner_size + outer_margin, outer_circularity)

        self.steps = 0
        self.last_shift: ShiftDirection | None = None  # momentum, reset per waypoint
        self.prev_shift: ShiftDirection | None = None  # pulse, never reset
        self.pulse_counter = 0

        self.history: list[Position] = [pos]
        self.lock_index = 0
        self.locked = np.zeros(shape, dtype=bool)
        # step at which each cell was first carved EMPTY, -1 if never
        self.carve_step = np.full(shape, -1, dtype=np.int32)

    @property
    def finished(self) -> bool:
        return self.state is WalkerState.FINISHED

    @property
    def goal(self) -> Position | None:
        if self.finished:
            return None
        return self.waypoints[self.waypoint_index]

    def is_goal_reached(self) -> bool:
        goal = self.goal
        if goal is None:
            return False
        return self.pos.distance_squared(goal) <= self.profile.waypoint_reached_dist

    def advance_waypoint(self) -> None:
        """Move the cursor to the next waypoint, finishing after the last."""
        self.waypoint_index += 1
        self.last_shift = None
        if self.waypoint_index >= len(self.waypoints):
            self.state = WalkerState.FINISHED
            log.debug("Walker finished at %s after %d steps", self.pos, self.steps)
        else:
            log.debug(
                "Waypoint %d/%d reached at step %d, next goal %s",
                self.waypoint_index,
                len(self.waypoints),
                self.steps,
                self.goal,
            )

    def mutate_kernel(self, sampler: WeightedSampler) -> None:
        """Independently resample kernel parameters with the profile probabilities.

        A mutated kernel is replaced by a new Kernel value; unmutated
        kernels are kept as they are.
        """
        p = self.profile
        inner_changed = False
        outer_changed = False

        if sampler.with_probability(p.inner_rad_mut_prob):
            self.inner_circularity = float(sampler.sample_distribution(p.circ_probs))
            inner_changed = True
        if sampler.with_probability(p.inner_size_mut_prob):
            self.inner_size = int(sampler.sample_distribution(p.inner_size_probs))
            inner_changed = True
            outer_changed = True
        if sampler.with_probability(p.outer_rad_mut_prob):
            self.outer_circularity = float(sampler.sample_distribution(p.circ_probs))
            outer_changed = True
        if sampler.with_probability(p.outer_size_mut_prob):
            self.outer_margin = int(sampler.sample_distribution(p.outer_margin_probs))
            outer_changed = True

        if inner_changed:
            self.inner_kernel = Kernel.from_size(self.inner_size, self.inner_circularity)
        if outer_changed:
            self.outer_kernel = Kernel.from_size(
                self.inner_size + self.outer_margin, self.outer_circularity
            )

    def ranked_shifts(self, goal: Position) -> list[ShiftDirection]:
        """All four moves ordered best to worst by remaining squared distance.

        Ties keep ShiftDirection declaration order.
        """
        return sorted(
            ShiftDirection, key=lambda d: self.pos.shifted(d).distance_squared(goal)
        )

    def _is_locked(self, grid: Grid, pos: Position) -> bool:
        return grid.in_bounds(pos) and bool(self.locked[pos.x, pos.y])

    def choose_shift(self, grid: Grid, sampler: WeightedSampler) -> ShiftDirection:
        """Pick the next move: momentum first, otherwise a ranked weighted draw.

        Raises:
            StuckError: If every move leads into a locked cell.
        """
        goal = self.goal
        ranked = [
            d for d in self.ranked_shifts(goal)
            if not self._is_locked(grid, self.pos.shifted(d))
        ]
        if not ranked:
            raise StuckError(
                f"Walker boxed in by locked cells at {self.pos} (step {self.steps})",
                step=self.steps,
                delay=len(self.history) - self.lock_index,
            )

        if self.last_shift is not None and sampler.with_probability(
            self.profile.momentum_prob
        ):
            if self.last_shift in ranked:
                return self.last_shift

        return ranked[sampler.sample_shift_rank(len(ranked))]

    def _step_kernels(self, shift: ShiftDirection) -> tuple[Kernel, Kernel]:
        """Kernels to carve with this tick, after fade and pulse."""
        p = self.profile
        inner = self.inner_kernel
        outer = self.outer_kernel

        if self.steps < p.fade_steps:
            t = self.steps / max(p.fade_steps - 1, 1)
            size = round(p.fade_max_size + (p.fade_min_size - p.fade_max_size) * t)
            inner = Kernel.from_size(size, self.inner_circularity)
            outer = Kernel.from_size(size + self.outer_margin, self.outer_circularity)

        if p.enable_pulse:
            straight = self.prev_shift is shift
            delay = p.pulse_straight_delay if straight else p.pulse_corner_delay
            self.pulse_counter += 1
            if self.pulse_counter >= delay:
                self.pulse_counter = 0
                inner = Kernel.from_size(p.pulse_max_kernel_size, self.inner_circularity)
                outer = Kernel.from_size(
                    p.pulse_max_kernel_size + self.outer_margin, self.outer_circularity
                )

        return inner, outer

    def _lock_around(self, pos: Position) -> None:
        half = self.profile.lock_kernel_size // 2
        x0 = max(pos.x - half, 0)
        y0 = max(pos.y - half, 0)
        self.locked[x0:pos.x + half + 1, y0:pos.y + half + 1] = True

    def _update_locks(self) -> None:
        """Lock history positions left behind and check the lock delay.

        Raises:
            StuckError: If more than pos_lock_max_delay positions are unlocked.
        """
        p = self.profile
        while (
            self.lock_index < len(self.history)
            and self.history[self.lock_index].distance(self.pos) > p.pos_lock_max_dist
        ):
            self._lock_around(self.history[self.lock_index])
            self.lock_index += 1

        delay = len(self.history) - self.lock_index
        if delay > p.pos_lock_max_delay:
            raise StuckError(
                f"Walker stuck near {self.pos}: {delay} steps without leaving "
                f"a {p.pos_lock_max_dist:.1f} radius (max {p.pos_lock_max_delay})",
                step=self.steps,
                delay=delay,
            )

    def step(self, grid: Grid, sampler: WeightedSampler) -> None:
        """Advance the walker by one tick and carve around its new position.

        No-op once finished.

        Raises:
            BoundsError: If the chosen move leaves the grid.
            StuckError: If the walker stopped making progress.
        """
        if self.finished:
            return

        if self.is_goal_reached():
            self.advance_waypoint()
            if self.finished:
                return

        self.mutate_kernel(sampler)

        shift = self.choose_shift(grid, sampler)
        new_pos = self.pos.shifted(shift)
        if not grid.in_bounds(new_pos):
            raise BoundsError(
                f"Step {self.steps + 1} would move walker from {self.pos} "
                f"to {new_pos}, outside {grid.width}x{grid.height} grid",
                position=new_pos,
                step=self.steps + 1,
            )

        inner, outer = self._step_kernels(shift)
        self.pos = new_pos
        self.last_shift = shift
        self.prev_shift = shift
        self.steps += 1

        # Fuzz only softens the freeze buffer; the inner stamp stays solid
        # so the 3x3 around every path cell is never left hookable.
        carved = inner.apply(grid, self.pos, CellType.EMPTY, INNER_ELIGIBLE)
        self.carve_step[carved] = self.steps
        outer.apply(
            grid,
            self.pos,
            CellType.FREEZE,
            OUTER_ELIGIBLE,
            sampler,
            self.profile.kernel_edge_fuzz,
        )

        self.history.append(self.pos)
        self._update_locks()

    def path_mask(self) -> np.ndarray:
        """Boolean mask of every position the walker has stood on."""
        mask = np.zeros(self.locked.shape, dtype=bool)
        xs = [p.x for p in self.history]
        ys = [p.y for p in self.history]
        mask[xs, ys] = True
        return mask
