"""Generation profiles and map skeletons: frozen, hashable, serializable dataclasses."""

from levelgen.config.defaults import DEFAULT_PROFILE, DEFAULT_SKELETON
from levelgen.config.hashing import config_hash
from levelgen.config.presets import BuiltinPresets, DirectoryPresets, PresetProvider
from levelgen.config.profile import (
    DiscreteDistribution,
    GenerationProfile,
    MapSkeleton,
    check_profile,
    check_skeleton,
    validate_profile,
    validate_skeleton,
)
from levelgen.config.serialization import (
    profile_from_dict,
    profile_from_json,
    profile_to_json,
    skeleton_from_dict,
    skeleton_from_json,
    skeleton_to_json,
)

__all__ = [
    "BuiltinPresets",
    "DEFAULT_PROFILE",
    "DEFAULT_SKELETON",
    "DirectoryPresets",
    "DiscreteDistribution",
    "GenerationProfile",
    "MapSkeleton",
    "PresetProvider",
    "check_profile",
    "check_skeleton",
    "config_hash",
    "profile_from_dict",
    "profile_from_json",
    "profile_to_json",
    "skeleton_from_dict",
    "skeleton_from_json",
    "skeleton_to_json",
    "validate_profile",
    "validate_skeleton",
]
