"""Walk module: seeded sampler, subwaypoints and the carving walker."""

from levelgen.walk.sampler import WeightedSampler
from levelgen.walk.walker import Walker, WalkerState
from levelgen.walk.waypoints import generate_subwaypoints

__all__ = [
    "Walker",
    "WalkerState",
    "WeightedSampler",
    "generate_subwaypoints",
]
