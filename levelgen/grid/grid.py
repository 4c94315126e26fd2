"""Tile grid with rectangular fill primitives.

Cells are stored in a (width, height) uint8 array indexed [x, y] so that
array indices line up with Position coordinates. Single-cell access is
strict and raises BoundsError; the area primitives clip at the grid edge.
"""

from dataclasses import dataclass

import numpy as np

from levelgen.errors import BoundsError
from levelgen.grid.types import CELL_CHARS, CHAR_CELLS, CellType, Position


@dataclass
class Grid:
    """Mutable level grid plus its spawn coordinate.

    Owned by a single Generator for the lifetime of one run.
    """

    cells: np.ndarray  # uint8 array of shape (width, height)
    spawn: Position

    @classmethod
    def filled(
        cls,
        width: int,
        height: int,
        spawn: Position,
        cell: CellType = CellType.HOOKABLE,
    ) -> "Grid":
        """Create a width x height grid with every cell set to ``cell``."""
        cells = np.full((width, height), int(cell), dtype=np.uint8)
        grid = cls(cells=cells, spawn=spawn)
        if not grid.in_bounds(spawn):
            raise BoundsError(
                f"Spawn {spawn} outside {width}x{height} grid", position=spawn
            )
        return grid

    @property
    def width(self) -> int:
        return self.cells.shape[0]

    @property
    def height(self) -> int:
        return self.cells.shape[1]

    def in_bounds(self, pos: Position) -> bool:
        return 0 <= pos.x < self.width and 0 <= pos.y < self.height

    def _check(self, pos: Position) -> None:
        if not self.in_bounds(pos):
            raise BoundsError(
                f"{pos} outside {self.width}x{self.height} grid", position=pos
            )

    def get(self, pos: Position) -> CellType:
        self._check(pos)
        return CellType(int(self.cells[pos.x, pos.y]))

    def set(self, pos: Position, cell: CellType) -> None:
        self._check(pos)
        self.cells[pos.x, pos.y] = int(cell)

    def _clip(
        self, top_left: Position, bottom_right: Position
    ) -> tuple[int, int, int, int] | None:
        """Clip an inclusive rectangle to the grid as half-open slices."""
        x0 = max(top_left.x, 0)
        y0 = max(top_left.y, 0)
        x1 = min(bottom_right.x, self.width - 1) + 1
        y1 = min(bottom_right.y, self.height - 1) + 1
        if x0 >= x1 or y0 >= y1:
            return None
        return x0, x1, y0, y1

    def set_area(
        self,
        top_left: Position,
        bottom_right: Position,
        cell: CellType,
        overwrite: bool,
    ) -> None:
        """Fill the inclusive rectangle between two corners.

        With ``overwrite=False`` only cells that are still HOOKABLE (the
        default terrain) are replaced, so earlier markers survive.
        """
        bounds = self._clip(top_left, bottom_right)
        if bounds is None:
            return
        x0, x1, y0, y1 = bounds
        region = self.cells[x0:x1, y0:y1]
        if overwrite:
            region[:, :] = int(cell)
        else:
            region[region == CellType.HOOKABLE] = int(cell)

    def set_area_border(
        self,
        outer_top_left: Position,
        outer_bottom_right: Position,
        cell: CellType,
        overwrite: bool,
    ) -> None:
        """Fill only the one-cell ring on the rectangle's perimeter."""
        bounds = self._clip(outer_top_left, outer_bottom_right)
        if bounds is None:
            return
        x0, x1, y0, y1 = bounds

        ring = np.zeros((x1 - x0, y1 - y0), dtype=bool)
        # Only the perimeter rows/columns that survived clipping belong
        # to the ring.
        if outer_top_left.x == x0:
            ring[0, :] = True
        if outer_bottom_right.x == x1 - 1:
            ring[-1, :] = True
        if outer_top_left.y == y0:
            ring[:, 0] = True
        if outer_bottom_right.y == y1 - 1:
            ring[:, -1] = True

        region = self.cells[x0:x1, y0:y1]
        if not overwrite:
            ring &= region == CellType.HOOKABLE
        region[ring] = int(cell)

    def mask(self, cell: CellType) -> np.ndarray:
        """Boolean (width, height) mask of cells equal to ``cell``."""
        return self.cells == int(cell)

    def count(self, cell: CellType) -> int:
        return int(np.count_nonzero(self.cells == int(cell)))

    def positions(self, cell: CellType) -> list[Position]:
        xs, ys = np.nonzero(self.cells == int(cell))
        return [Position(int(x), int(y)) for x, y in zip(xs, ys)]

    def copy(self) -> "Grid":
        return Grid(cells=self.cells.copy(), spawn=self.spawn)

    def to_chars(self) -> list[str]:
        """Encode the grid as one string per row (y), one char per cell."""
        lookup = np.array(
            [CELL_CHARS[CellType(i)] for i in range(len(CellType))]
        )
        return ["".join(row) for row in lookup[self.cells.T]]

    @classmethod
    def from_chars(cls, rows: list[str], spawn: Position) -> "Grid":
        """Inverse of :meth:`to_chars`."""
        height = len(rows)
        width = len(rows[0]) if rows else 0
        cells = np.empty((width, height), dtype=np.uint8)
        for y, row in enumerate(rows):
            if len(row) != width:
                raise ValueError(
                    f"Row {y} has {len(row)} cells, expected {width}"
                )
            for x, char in enumerate(row):
                cells[x, y] = int(CHAR_CELLS[char])
        return cls(cells=cells, spawn=spawn)
