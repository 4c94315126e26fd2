"""Circular/elliptical stamp used to carve terrain around the walker.

Membership metric: an offset (dx, dy) with max(|dx|, |dy|) <= radius is
part of the kernel iff

    dx^2 + dy^2 <= R^2,   R = (radius + 0.5) * (1 + circularity * (sqrt(2) - 1))

Circularity 0 yields a rasterised disc, circularity 1 the full square. The
half-cell padding makes every radius >= 1 kernel cover the 3x3
neighbourhood of its centre, which keeps the walker's own path clear of
solid terrain after edge-bug repair.
"""

import math
from dataclasses import dataclass
from functools import lru_cache
from typing import TYPE_CHECKING

import numpy as np

from levelgen.grid.grid import Grid
from levelgen.grid.types import CellType, Position

if TYPE_CHECKING:
    from levelgen.walk.sampler import WeightedSampler


@lru_cache(maxsize=256)
def _kernel_mask(radius: int, circularity: float) -> np.ndarray:
    reach = (radius + 0.5) * (1.0 + circularity * (math.sqrt(2.0) - 1.0))
    offsets = np.arange(-radius, radius + 1)
    dx, dy = np.meshgrid(offsets, offsets, indexing="ij")
    mask = dx * dx + dy * dy <= reach * reach + 1e-9
    mask.setflags(write=False)
    return mask


@lru_cache(maxsize=256)
def _kernel_shell(radius: int, circularity: float) -> np.ndarray:
    mask = _kernel_mask(radius, circularity)
    padded = np.pad(mask, 1, constant_values=False)
    interior = (
        padded[:-2, 1:-1] & padded[2:, 1:-1] & padded[1:-1, :-2] & padded[1:-1, 2:]
    )
    shell = mask & ~interior
    shell.setflags(write=False)
    return shell


@dataclass(frozen=True, slots=True)
class Kernel:
    """Immutable stamp shape. Replaced, never mutated, when it changes."""

    radius: int
    circularity: float

    def __post_init__(self) -> None:
        if self.radius < 0:
            raise ValueError(f"Kernel radius must be >= 0, got {self.radius}")
        if not 0.0 <= self.circularity <= 1.0:
            raise ValueError(
                f"Kernel circularity must be in [0, 1], got {self.circularity}"
            )

    @classmethod
    def from_size(cls, size: int, circularity: float) -> "Kernel":
        """Kernel for a profile size (diameter), radius = size // 2."""
        if size < 1:
            raise ValueError(f"Kernel size must be >= 1, got {size}")
        return cls(radius=size // 2, circularity=circularity)

    @property
    def size(self) -> int:
        return 2 * self.radius + 1

    def mask(self) -> np.ndarray:
        """Read-only boolean array of shape (size, size), centre at [r, r]."""
        return _kernel_mask(self.radius, float(self.circularity))

    def shell(self) -> np.ndarray:
        """Mask cells that have at least one 4-neighbour outside the mask."""
        return _kernel_shell(self.radius, float(self.circularity))

    def contains(self, offset: Position) -> bool:
        if max(abs(offset.x), abs(offset.y)) > self.radius:
            return False
        return bool(self.mask()[offset.x + self.radius, offset.y + self.radius])

    def apply(
        self,
        grid: Grid,
        center: Position,
        cell: CellType,
        eligible: tuple[CellType, ...],
        sampler: "WeightedSampler | None" = None,
        edge_fuzz: float = 0.0,
    ) -> np.ndarray:
        """Stamp ``cell`` onto the grid around ``center``.

        Only cells whose current type is in ``eligible`` are written. The
        bounding box is clipped at the grid edge. With ``edge_fuzz > 0``
        each shell cell is skipped with that probability, drawn from
        ``sampler``.

        Args:
            grid: Grid to modify in place.
            center: Stamp centre.
            cell: Cell type to write.
            eligible: Cell types that may be overwritten.
            sampler: Run sampler, required when edge_fuzz > 0.
            edge_fuzz: Probability of dropping a shell cell.

        Returns:
            Boolean (width, height) mask of the cells that changed.
        """
        r = self.radius
        x0 = max(center.x - r, 0)
        y0 = max(center.y - r, 0)
        x1 = min(center.x + r + 1, grid.width)
        y1 = min(center.y + r + 1, grid.height)
        changed = np.zeros(grid.cells.shape, dtype=bool)
        if x0 >= x1 or y0 >= y1:
            return changed

        kx0 = x0 - (center.x - r)
        ky0 = y0 - (center.y - r)
        kx1 = kx0 + (x1 - x0)
        ky1 = ky0 + (y1 - y0)
        stamp = self.mask()[kx0:kx1, ky0:ky1].copy()

        if edge_fuzz > 0.0:
            if sampler is None:
                raise ValueError("edge_fuzz requires a sampler")
            shell = self.shell()[kx0:kx1, ky0:ky1]
            draws = sampler.uniform_float(0.0, 1.0, size=stamp.shape)
            stamp &= ~(shell & (draws < edge_fuzz))

        region = grid.cells[x0:x1, y0:y1]
        writable = stamp & np.isin(region, [int(c) for c in eligible])
        writable &= region != int(cell)
        region[writable] = int(cell)
        changed[x0:x1, y0:y1] = writable
        return changed
