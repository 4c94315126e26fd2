"""Generation module: the seeded generator, post-processing passes and level cache."""

from levelgen.generation.cache import generate_or_load_map, load_map, map_cache_key, save_map
from levelgen.generation.generator import Generator, generate_map
from levelgen.generation.postprocess import (
    fix_edge_bugs,
    generate_room,
    place_platforms,
    remove_freeze_islands,
)
from levelgen.generation.skips import SkipValidator, generate_skips
from levelgen.generation.types import GenerationResult, Skip
from levelgen.generation.validation import check_connectivity, validate_map

__all__ = [
    "GenerationResult",
    "Generator",
    "Skip",
    "SkipValidator",
    "check_connectivity",
    "fix_edge_bugs",
    "generate_map",
    "generate_or_load_map",
    "generate_room",
    "generate_skips",
    "load_map",
    "map_cache_key",
    "place_platforms",
    "remove_freeze_islands",
    "save_map",
    "validate_map",
]
