"""Grid module: cell types, positions, the tile grid and kernel stamps."""

from levelgen.grid.grid import Grid
from levelgen.grid.kernel import Kernel
from levelgen.grid.types import (
    CELL_CHARS,
    CellType,
    Position,
    ShiftDirection,
)

__all__ = [
    "CELL_CHARS",
    "CellType",
    "Grid",
    "Kernel",
    "Position",
    "ShiftDirection",
]
