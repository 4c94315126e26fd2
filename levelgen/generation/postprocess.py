"""Post-processing passes that run once after the walk finished.

Passes run in a fixed order from Generator.post_processing(): platforms,
skips, freeze-island removal, edge-bug repair, then the start and finish
rooms. Every pass mutates the grid in place.
"""

import logging

import numpy as np
import scipy.ndimage

from levelgen.config.profile import GenerationProfile
from levelgen.grid.grid import Grid
from levelgen.grid.types import CellType, Position
from levelgen.walk.sampler import WeightedSampler

log = logging.getLogger(__name__)

# 8-neighbourhood structuring element
_BLOCK = np.ones((3, 3), dtype=bool)


def fix_edge_bugs(grid: Grid) -> np.ndarray:
    """Turn every EMPTY cell 8-adjacent to a HOOKABLE cell into FREEZE.

    Cells outside the grid count as non-hookable.

    Returns:
        Boolean mask of the repaired cells.
    """
    hookable = grid.mask(CellType.HOOKABLE)
    near_hookable = scipy.ndimage.binary_dilation(hookable, structure=_BLOCK)
    bugs = grid.mask(CellType.EMPTY) & near_hookable
    grid.cells[bugs] = int(CellType.FREEZE)
    log.debug("Fixed %d edge bugs", int(bugs.sum()))
    return bugs


def generate_room(grid: Grid, pos: Position, margin: int, zone: CellType) -> None:
    """Carve a start or finish room centred on ``pos``.

    The room is a (2*margin+1) square of EMPTY cells with a HOOKABLE
    platform through the centre row. The start room gets a SPAWN line on
    top of the platform. A one-cell ring of ``zone`` just outside the
    room replaces hookable cells only.

    Args:
        grid: Grid to carve into; areas clip at the grid edge.
        pos: Room centre.
        margin: Half-size of the room, at least 2.
        zone: CellType.START or CellType.FINISH.

    Raises:
        ValueError: If ``zone`` is not START or FINISH.
    """
    if zone not in (CellType.START, CellType.FINISH):
        raise ValueError(f"Room zone must be START or FINISH, got {zone!r}")

    m = margin
    grid.set_area(
        Position(pos.x - m, pos.y - m),
        Position(pos.x + m, pos.y + m),
        CellType.EMPTY,
        overwrite=True,
    )
    grid.set_area(
        Position(pos.x - (m - 2), pos.y),
        Position(pos.x + (m - 2), pos.y),
        CellType.HOOKABLE,
        overwrite=True,
    )
    if zone == CellType.START:
        grid.set_area(
            Position(pos.x - (m - 2), pos.y - 1),
            Position(pos.x + (m - 2), pos.y - 1),
            CellType.SPAWN,
            overwrite=True,
        )
    grid.set_area_border(
        Position(pos.x - m - 1, pos.y - m - 1),
        Position(pos.x + m + 1, pos.y + m + 1),
        zone,
        overwrite=False,
    )
    log.debug("Generated %s room at %s (margin %d)", zone.name.lower(), pos, margin)


def _try_platform(
    grid: Grid,
    pos: Position,
    profile: GenerationProfile,
    sampler: WeightedSampler,
    forbidden: np.ndarray,
) -> tuple[Position, Position] | None:
    """Try to rest one platform on the floor below ``pos``."""
    cells = grid.cells
    width = sampler.uniform_int(*profile.plat_width_bounds)
    height = sampler.uniform_int(*profile.plat_height_bounds)
    if width == 0 or height == 0:
        return None

    floor_y = pos.y + 1
    while floor_y < grid.height and cells[pos.x, floor_y] == CellType.EMPTY:
        floor_y += 1
    if floor_y >= grid.height:
        return None

    x0 = pos.x - width // 2
    x1 = x0 + width - 1
    top = floor_y - height
    clear_top = top - profile.plat_min_empty_height
    if x0 < 0 or x1 >= grid.width or clear_top < 0:
        return None

    block = cells[x0:x1 + 1, clear_top:floor_y]
    if not (block == CellType.EMPTY).all():
        return None
    if forbidden[x0:x1 + 1, top:floor_y].any():
        return None

    support = cells[x0:x1 + 1, floor_y] != CellType.EMPTY
    supported = support.any() if profile.plat_soft_overhang else support.all()
    if not supported:
        return None

    top_left = Position(x0, top)
    bottom_right = Position(x1, floor_y - 1)
    grid.set_area(top_left, bottom_right, CellType.HOOKABLE, overwrite=True)
    return top_left, bottom_right


def place_platforms(
    grid: Grid,
    history: list[Position],
    path_mask: np.ndarray,
    profile: GenerationProfile,
    sampler: WeightedSampler,
) -> list[tuple[Position, Position]]:
    """Place hookable platforms along the walker path.

    Starting plat_min_distance steps into the history, each position is
    tried in turn; after a successful placement the next
    plat_min_distance positions are skipped. Platforms never touch the
    8-neighbourhood of a path cell.

    Returns:
        (top_left, bottom_right) corners of the placed platforms.
    """
    forbidden = scipy.ndimage.binary_dilation(path_mask, structure=_BLOCK)
    placed: list[tuple[Position, Position]] = []
    i = profile.plat_min_distance
    while i < len(history):
        rect = _try_platform(grid, history[i], profile, sampler, forbidden)
        if rect is not None:
            placed.append(rect)
            i += profile.plat_min_distance
        else:
            i += 1
    log.info("Placed %d platforms", len(placed))
    return placed


def remove_freeze_islands(grid: Grid, min_size: int) -> int:
    """Clear small FREEZE blobs that do not touch hookable terrain.

    Components are 8-connected. A component smaller than ``min_size``
    that has no HOOKABLE cell in its 8-neighbourhood becomes EMPTY.

    Returns:
        Number of cells cleared.
    """
    if min_size <= 0:
        return 0

    freeze = grid.mask(CellType.FREEZE)
    labels, n_labels = scipy.ndimage.label(freeze, structure=_BLOCK)
    if n_labels == 0:
        return 0

    sizes = np.bincount(labels.ravel(), minlength=n_labels + 1)
    near_hookable = scipy.ndimage.binary_dilation(
        grid.mask(CellType.HOOKABLE), structure=_BLOCK
    )
    touching = np.unique(labels[near_hookable & freeze])

    removable = sizes < min_size
    removable[0] = False
    removable[touching] = False
    clear = removable[labels]
    grid.cells[clear] = int(CellType.EMPTY)

    cleared = int(clear.sum())
    log.debug(
        "Removed %d freeze islands (%d cells)", int(removable.sum()), cleared
    )
    return cleared
