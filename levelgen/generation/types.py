"""Result data structures for level generation and storage."""

from dataclasses import dataclass

from levelgen.grid.grid import Grid
from levelgen.grid.types import Position, ShiftDirection


@dataclass(frozen=True, slots=True)
class Skip:
    """A straight shortcut tunnel between two stretches of the path.

    ``start`` is the last EMPTY cell before the wall, ``end`` the first
    EMPTY cell behind it; ``length`` counts the non-empty cells crossed
    and ``gain`` the walker steps the shortcut bypasses.
    """

    start: Position
    end: Position
    direction: ShiftDirection
    length: int
    gain: int


@dataclass(frozen=True)
class GenerationResult:
    """Finished level plus the run facts needed to reproduce or inspect it.

    Uses frozen=True but omits slots=True since the grid wraps a numpy
    array that is still mutated in place by callers that own it.
    """

    grid: Grid
    seed: int
    steps: int  # walker steps actually taken
    finished: bool  # walker reached its last waypoint within the budget
    finish: Position  # walker position at the end of the run
    skips: tuple[Skip, ...] = ()
    platforms: int = 0
