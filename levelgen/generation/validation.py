"""Structural checks for a finished level.

Each check returns a list of problem strings (empty = valid) in the same
way profile validation does, so the generator can log every problem and
tests can assert on the full list.
"""

import logging

import numpy as np
import scipy.ndimage

from levelgen.grid.grid import Grid
from levelgen.grid.types import CellType, Position

log = logging.getLogger(__name__)

PASSABLE = (CellType.EMPTY, CellType.SPAWN, CellType.START, CellType.FINISH)

# 4-connectivity for movement, 8-connectivity for edge contact
_CROSS = scipy.ndimage.generate_binary_structure(2, 1)
_BLOCK = np.ones((3, 3), dtype=bool)


def passable_mask(grid: Grid) -> np.ndarray:
    return np.isin(grid.cells, [int(c) for c in PASSABLE])


def check_connectivity(grid: Grid) -> list[str]:
    """Check that some SPAWN cell reaches some FINISH cell through passable cells.

    Returns:
        List of error strings (empty = connected).
    """
    errors: list[str] = []
    spawn = grid.mask(CellType.SPAWN)
    finish = grid.mask(CellType.FINISH)
    if not spawn.any():
        errors.append("map has no spawn cells")
    if not finish.any():
        errors.append("map has no finish cells")
    if errors:
        return errors

    labels, _ = scipy.ndimage.label(passable_mask(grid), structure=_CROSS)
    spawn_labels = set(np.unique(labels[spawn]).tolist())
    finish_labels = set(np.unique(labels[finish]).tolist())
    if not spawn_labels & finish_labels:
        errors.append("finish is not reachable from spawn")
    return errors


def room_mask(
    shape: tuple[int, int], centers: list[Position], margin: int
) -> np.ndarray:
    """Mask of the squares within Chebyshev distance ``margin`` of each centre."""
    mask = np.zeros(shape, dtype=bool)
    for c in centers:
        x0 = max(c.x - margin, 0)
        y0 = max(c.y - margin, 0)
        mask[x0:c.x + margin + 1, y0:c.y + margin + 1] = True
    return mask


def find_edge_bugs(grid: Grid, exclude: np.ndarray | None = None) -> np.ndarray:
    """Mask of EMPTY cells 8-adjacent to a HOOKABLE cell.

    Args:
        grid: Grid to inspect.
        exclude: Optional mask of cells to ignore (e.g. rooms).
    """
    near_hookable = scipy.ndimage.binary_dilation(
        grid.mask(CellType.HOOKABLE), structure=_BLOCK
    )
    bugs = grid.mask(CellType.EMPTY) & near_hookable
    if exclude is not None:
        bugs &= ~exclude
    return bugs


def validate_map(grid: Grid, finish: Position, room_margin: int) -> list[str]:
    """Run all structural checks on a post-processed level.

    Args:
        grid: Post-processed grid.
        finish: Centre of the finish room.
        room_margin: Half-size of the start and finish rooms.

    Returns:
        List of error strings (empty = valid level).
    """
    errors = check_connectivity(grid)

    rooms = room_mask(grid.cells.shape, [grid.spawn, finish], room_margin)
    bugs = find_edge_bugs(grid, exclude=rooms)
    n_bugs = int(bugs.sum())
    if n_bugs:
        xs, ys = np.nonzero(bugs)
        errors.append(
            f"{n_bugs} empty cells touch hookable terrain, "
            f"first at {Position(int(xs[0]), int(ys[0]))}"
        )
    return errors
