"""Default profile and skeleton: the single source of truth for run parameters."""

from levelgen.config.profile import GenerationProfile, MapSkeleton

# All-default values: 300x300 S-shaped skeleton spawning at (50, 250),
# inner sizes {3, 5}, outer margins {0, 2}, fade 6 -> 3 over 60 steps.
DEFAULT_PROFILE = GenerationProfile()
DEFAULT_SKELETON = MapSkeleton()
