"""Skip detection, validation and carving.

A skip is a short straight tunnel through the wall separating two parts
of the walker's path. Skips must stay local: a tunnel that links distant
parts of the level would let players bypass most of it, or connect
regions that were meant to be disjoint. Every candidate therefore passes
through a SkipValidator that enforces

1. tunnel length within skip_length_bounds,
2. the tunnel bypasses more walker steps than it is long,
3. squared distance to every accepted skip >= skip_min_spacing_sqr,
4. cumulative bypassed steps <= max_level_skip * total path length. The
   first candidate that would break this closes the validator for the
   rest of the run.

Rejections raise SkipRejected, which generate_skips() catches and logs;
they never fail the run.
"""

import logging
from collections.abc import Iterator

import numpy as np

from levelgen.config.profile import GenerationProfile
from levelgen.errors import SkipRejected
from levelgen.generation.types import Skip
from levelgen.grid.grid import Grid
from levelgen.grid.types import CellType, Position, ShiftDirection

log = logging.getLogger(__name__)


class SkipValidator:
    """Stateful accept/reject gate for skip candidates of one run.

    Args:
        profile: Supplies skip bounds, spacing and level-skip fraction.
        total_path_length: Walker steps in the run.
    """

    def __init__(self, profile: GenerationProfile, total_path_length: int) -> None:
        self.min_length, self.max_length = profile.skip_length_bounds
        self.min_spacing_sqr = profile.skip_min_spacing_sqr
        self.budget = profile.max_level_skip * total_path_length
        self.accepted: list[Skip] = []
        self.total_gain = 0
        self.closed = False

    def validate(self, skip: Skip) -> None:
        """Check a candidate against all rules without accepting it.

        Raises:
            SkipRejected: With the reason the candidate is unsafe.
        """
        if self.closed:
            raise SkipRejected("skip budget exhausted for this run")
        if not self.min_length <= skip.length <= self.max_length:
            raise SkipRejected(
                f"length {skip.length} outside [{self.min_length}, {self.max_length}]"
            )
        if skip.gain <= skip.length:
            raise SkipRejected(
                f"gain {skip.gain} does not exceed length {skip.length}"
            )
        for other in self.accepted:
            dist = skip.start.distance_squared(other.start)
            if dist < self.min_spacing_sqr:
                raise SkipRejected(
                    f"{dist} from accepted skip at {other.start} "
                    f"(min {self.min_spacing_sqr})"
                )
        if self.total_gain + skip.gain > self.budget:
            self.closed = True
            raise SkipRejected(
                f"cumulative gain {self.total_gain + skip.gain} exceeds "
                f"budget {self.budget:.1f}"
            )

    def accept(self, skip: Skip) -> None:
        """Validate and record a candidate.

        Raises:
            SkipRejected: If the candidate fails validation.
        """
        self.validate(skip)
        self.accepted.append(skip)
        self.total_gain += skip.gain


def find_skip_candidates(
    grid: Grid,
    history: list[Position],
    carve_step: np.ndarray,
    max_length: int,
    corridor_reach: int,
) -> Iterator[Skip]:
    """Yield straight-line skip candidates seen from the walker's path.

    From every history position and each direction, the scan crosses at
    most ``corridor_reach`` EMPTY cells of the own corridor, then up to
    ``max_length`` non-empty cells, and yields a candidate when it lands
    on an EMPTY cell carved by the walker. Duplicate (start, direction)
    pairs are yielded once.

    Args:
        grid: Grid after walking.
        history: Walker positions in step order.
        carve_step: Step at which each cell was first carved, -1 if never.
        max_length: Longest wall crossing to consider.
        corridor_reach: Max EMPTY cells to cross before reaching the wall.
    """
    cells = grid.cells
    seen: set[tuple[Position, ShiftDirection]] = set()

    for pos in history:
        for direction in ShiftDirection:
            p = pos
            reach = 0
            while reach < corridor_reach:
                nxt = p.shifted(direction)
                if not grid.in_bounds(nxt) or cells[nxt.x, nxt.y] != CellType.EMPTY:
                    break
                p = nxt
                reach += 1
            start = p
            if (start, direction) in seen:
                continue
            seen.add((start, direction))

            length = 0
            q = start.shifted(direction)
            while grid.in_bounds(q) and cells[q.x, q.y] != CellType.EMPTY:
                length += 1
                if length > max_length:
                    break
                q = q.shifted(direction)
            if length == 0 or length > max_length or not grid.in_bounds(q):
                continue

            start_step = int(carve_step[start.x, start.y])
            end_step = int(carve_step[q.x, q.y])
            if start_step < 0 or end_step < 0:
                continue
            yield Skip(
                start=start,
                end=q,
                direction=direction,
                length=length,
                gain=end_step - start_step,
            )


def carve_skip(grid: Grid, skip: Skip) -> None:
    """Carve an EMPTY tunnel with a one-cell FREEZE band over hookable cells."""
    x0 = min(skip.start.x, skip.end.x)
    x1 = max(skip.start.x, skip.end.x)
    y0 = min(skip.start.y, skip.end.y)
    y1 = max(skip.start.y, skip.end.y)
    px, py = skip.direction.perpendicular()
    px, py = abs(px), abs(py)

    grid.set_area(
        Position(x0 - px, y0 - py),
        Position(x1 + px, y1 + py),
        CellType.FREEZE,
        overwrite=False,
    )
    first = skip.start.shifted(skip.direction)
    last = skip.end.shifted(skip.direction.opposite())
    grid.set_area(
        Position(min(first.x, last.x), min(first.y, last.y)),
        Position(max(first.x, last.x), max(first.y, last.y)),
        CellType.EMPTY,
        overwrite=True,
    )


def generate_skips(
    grid: Grid,
    history: list[Position],
    carve_step: np.ndarray,
    profile: GenerationProfile,
) -> list[Skip]:
    """Find, validate and carve all skips for a finished walk.

    Candidates are collected from the grid as it was after walking, then
    validated in path order; rejected candidates are logged and dropped.

    Returns:
        Accepted skips in acceptance order.
    """
    corridor_reach = max(
        profile.max_inner_size,
        profile.fade_max_size,
        profile.pulse_max_kernel_size if profile.enable_pulse else 0,
    ) // 2 + 1
    candidates = list(
        find_skip_candidates(
            grid, history, carve_step, profile.skip_length_bounds[1], corridor_reach
        )
    )

    validator = SkipValidator(profile, total_path_length=len(history) - 1)
    rejected = 0
    for candidate in candidates:
        try:
            validator.accept(candidate)
        except SkipRejected as e:
            rejected += 1
            log.debug("Skip %s -> %s rejected: %s", candidate.start, candidate.end, e.reason)
            continue
        carve_skip(grid, candidate)

    log.info(
        "Skips: %d accepted, %d rejected, %d/%.0f steps bypassed",
        len(validator.accepted),
        rejected,
        validator.total_gain,
        validator.budget,
    )
    return validator.accepted
