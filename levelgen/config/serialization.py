"""JSON serialization and deserialization for profiles and skeletons."""

import json
from dataclasses import asdict
from typing import Any

from dacite import Config as DaciteConfig
from dacite import from_dict

from levelgen.config.profile import GenerationProfile, MapSkeleton

_DACITE_CONFIG = DaciteConfig(
    cast=[tuple],
    check_types=True,
    strict=True,
)


def profile_to_json(profile: GenerationProfile) -> str:
    """Serialize a GenerationProfile to a JSON string.

    Uses sorted keys and 2-space indent for human readability and diffability.
    """
    return json.dumps(asdict(profile), indent=2, sort_keys=True)


def profile_from_dict(d: dict[str, Any]) -> GenerationProfile:
    """Build a GenerationProfile from a plain dictionary.

    Missing keys fall back to the dataclass defaults. Unknown keys are
    rejected (strict=True) so typos in preset files surface immediately.
    """
    return from_dict(data_class=GenerationProfile, data=d, config=_DACITE_CONFIG)


def profile_from_json(json_str: str) -> GenerationProfile:
    """Deserialize a JSON string to a GenerationProfile.

    The result is not validated; pass it through check_profile() (the
    Generator does this) before running.
    """
    return profile_from_dict(json.loads(json_str))


def skeleton_to_json(skeleton: MapSkeleton) -> str:
    """Serialize a MapSkeleton to a JSON string."""
    return json.dumps(asdict(skeleton), indent=2, sort_keys=True)


def skeleton_from_dict(d: dict[str, Any]) -> MapSkeleton:
    """Build a MapSkeleton from a plain dictionary."""
    return from_dict(data_class=MapSkeleton, data=d, config=_DACITE_CONFIG)


def skeleton_from_json(json_str: str) -> MapSkeleton:
    """Deserialize a JSON string to a MapSkeleton."""
    return skeleton_from_dict(json.loads(json_str))
