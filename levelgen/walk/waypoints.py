"""Subwaypoint insertion between the skeleton's waypoints.

Every leg is split into pieces no longer than max_subwaypoint_dist and
the intermediate points are jittered; skeleton waypoints stay fixed.
"""

import logging
import math

from levelgen.config.profile import GenerationProfile
from levelgen.grid.types import Position
from levelgen.walk.sampler import WeightedSampler

log = logging.getLogger(__name__)


def generate_subwaypoints(
    waypoints: tuple[Position, ...],
    profile: GenerationProfile,
    sampler: WeightedSampler,
    width: int,
    height: int,
) -> tuple[Position, ...]:
    """Insert jittered intermediate waypoints along every leg.

    Args:
        waypoints: Skeleton waypoints in traversal order.
        profile: Supplies max_subwaypoint_dist and subwaypoint_max_shift_dist.
        sampler: Run sampler for the jitter.
        width: Grid width, used to keep points one cell inside the grid.
        height: Grid height.

    Returns:
        Waypoints with subwaypoints inserted, in traversal order. Every
        original waypoint is present and unmodified.
    """
    if not waypoints:
        return ()

    shift = profile.subwaypoint_max_shift_dist
    result: list[Position] = [waypoints[0]]

    for start, end in zip(waypoints, waypoints[1:]):
        n_segments = max(1, math.ceil(start.distance(end) / profile.max_subwaypoint_dist))
        for i in range(1, n_segments):
            t = i / n_segments
            x = start.x + (end.x - start.x) * t
            y = start.y + (end.y - start.y) * t
            if shift > 0:
                x += sampler.uniform_float(-shift, shift)
                y += sampler.uniform_float(-shift, shift)
            sub = Position(
                min(max(round(x), 1), width - 2),
                min(max(round(y), 1), height - 2),
            )
            result.append(sub)
        result.append(end)

    log.debug(
        "Expanded %d waypoints to %d (max leg %.1f)",
        len(waypoints),
        len(result),
        profile.max_subwaypoint_dist,
    )
    return tuple(result)
