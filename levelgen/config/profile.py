"""Generation profile and map skeleton dataclasses, frozen and slotted.

Profiles are plain values: constructing one never fails on bad numbers so
that a provider can load a file and report every problem at once.
validate_profile() collects the problems, check_profile() turns them into
a ConfigError before a run starts.
"""

from dataclasses import dataclass, field
from typing import Any

from levelgen.errors import ConfigError
from levelgen.grid.types import Position


@dataclass(frozen=True, slots=True)
class DiscreteDistribution:
    """Weighted table over discrete values.

    ``values=None`` marks a rank-indexed table (weight i belongs to the
    i-th best option chosen by the caller).
    """

    values: tuple[Any, ...] | None
    weights: tuple[float, ...]

    def problems(self) -> list[str]:
        errors: list[str] = []
        if not self.weights:
            errors.append("weights must not be empty")
            return errors
        if self.values is not None and len(self.values) != len(self.weights):
            errors.append(
                f"{len(self.values)} values but {len(self.weights)} weights"
            )
        if any(w < 0 for w in self.weights):
            errors.append(f"negative weight in {self.weights}")
        if sum(self.weights) <= 0:
            errors.append("weights sum to zero")
        return errors


@dataclass(frozen=True, slots=True)
class GenerationProfile:
    """Tunable parameters for one generation run."""

    name: str = "default"
    description: str | None = None
    version: str = "1.0"

    # kernel mutation probabilities
    inner_rad_mut_prob: float = 0.25
    inner_size_mut_prob: float = 0.5
    outer_rad_mut_prob: float = 0.25
    outer_size_mut_prob: float = 0.5

    # rank-indexed direction weights, best to worst towards the goal
    shift_weights: DiscreteDistribution = field(
        default_factory=lambda: DiscreteDistribution(
            values=None, weights=(0.4, 0.22, 0.2, 0.18)
        )
    )
    momentum_prob: float = 0.01
    waypoint_reached_dist: int = 250  # squared distance

    inner_size_probs: DiscreteDistribution = field(
        default_factory=lambda: DiscreteDistribution(
            values=(3, 5), weights=(0.25, 0.75)
        )
    )
    outer_margin_probs: DiscreteDistribution = field(
        default_factory=lambda: DiscreteDistribution(
            values=(0, 2), weights=(0.5, 0.5)
        )
    )
    circ_probs: DiscreteDistribution = field(
        default_factory=lambda: DiscreteDistribution(
            values=(0.0, 0.6, 0.8), weights=(0.75, 0.15, 0.05)
        )
    )
    kernel_edge_fuzz: float = 0.0

    # skips
    skip_length_bounds: tuple[int, int] = (3, 11)
    skip_min_spacing_sqr: int = 45
    max_level_skip: float = 0.9  # fraction of total path length

    # platforms
    plat_min_distance: int = 75
    plat_width_bounds: tuple[int, int] = (3, 5)
    plat_height_bounds: tuple[int, int] = (1, 2)
    plat_min_empty_height: int = 4
    plat_soft_overhang: bool = False

    min_freeze_size: int = 0

    # pulse
    enable_pulse: bool = False
    pulse_straight_delay: int = 10
    pulse_corner_delay: int = 5
    pulse_max_kernel_size: int = 4

    # fade
    fade_steps: int = 60
    fade_max_size: int = 6
    fade_min_size: int = 3

    # subwaypoints
    max_subwaypoint_dist: float = 50.0
    subwaypoint_max_shift_dist: float = 5.0

    # position locking
    pos_lock_max_dist: float = 20.0
    pos_lock_max_delay: int = 1000
    lock_kernel_size: int = 9

    room_margin: int = 4

    @property
    def max_inner_size(self) -> int:
        return max(self.inner_size_probs.values or (1,))

    @property
    def max_outer_margin(self) -> int:
        return max(self.outer_margin_probs.values or (0,))


@dataclass(frozen=True, slots=True)
class MapSkeleton:
    """Waypoint layout and dimensions of a level. The first waypoint is the spawn."""

    name: str = "default"
    waypoints: tuple[Position, ...] = (
        Position(50, 250),
        Position(250, 250),
        Position(250, 150),
        Position(50, 150),
        Position(50, 50),
        Position(250, 50),
    )
    width: int = 300
    height: int = 300

    @property
    def spawn(self) -> Position:
        return self.waypoints[0]


_PROBABILITIES = (
    "inner_rad_mut_prob",
    "inner_size_mut_prob",
    "outer_rad_mut_prob",
    "outer_size_mut_prob",
    "momentum_prob",
    "kernel_edge_fuzz",
    "max_level_skip",
)

_BOUNDS = ("skip_length_bounds", "plat_width_bounds", "plat_height_bounds")


def _profile_problems(profile: GenerationProfile) -> list[tuple[str, str]]:
    problems: list[tuple[str, str]] = []

    # 1. Discrete tables must be well-formed
    for name in ("shift_weights", "inner_size_probs", "outer_margin_probs", "circ_probs"):
        dist: DiscreteDistribution = getattr(profile, name)
        for msg in dist.problems():
            problems.append((name, f"{name}: {msg}"))
        if name != "shift_weights" and dist.values is None:
            problems.append((name, f"{name}: values are required"))

    if len(profile.shift_weights.weights) != 4:
        problems.append(
            ("shift_weights", "shift_weights: expected 4 rank weights, "
             f"got {len(profile.shift_weights.weights)}")
        )

    # 2. No zero-sized inner kernel
    for size in profile.inner_size_probs.values or ():
        if size <= 0:
            problems.append(
                ("inner_size_probs", f"inner_size_probs: invalid kernel size {size}")
            )
    for margin in profile.outer_margin_probs.values or ():
        if margin < 0:
            problems.append(
                ("outer_margin_probs", f"outer_margin_probs: negative margin {margin}")
            )
    for circ in profile.circ_probs.values or ():
        if not 0.0 <= circ <= 1.0:
            problems.append(
                ("circ_probs", f"circ_probs: circularity {circ} outside [0, 1]")
            )

    # 3. Fade bounds
    if profile.fade_max_size <= 0 or profile.fade_min_size <= 0:
        problems.append(
            ("fade_max_size", "fade kernel sizes must be larger than zero")
        )

    # 4. Subwaypoints
    if profile.max_subwaypoint_dist <= 0:
        problems.append(
            ("max_subwaypoint_dist", "max subwaypoint distance must be > 0")
        )
    if profile.subwaypoint_max_shift_dist < 0:
        problems.append(
            ("subwaypoint_max_shift_dist", "subwaypoint shift must be >= 0")
        )

    # 5. Probabilities and (min, max) bounds
    for name in _PROBABILITIES:
        value = getattr(profile, name)
        if not 0.0 <= value <= 1.0:
            problems.append((name, f"{name} must be in [0, 1], got {value}"))
    for name in _BOUNDS:
        low, high = getattr(profile, name)
        if low < 0 or low > high:
            problems.append((name, f"{name} must satisfy 0 <= min <= max, got {(low, high)}"))

    # 6. Remaining scalar constraints
    if profile.enable_pulse and profile.pulse_max_kernel_size <= 0:
        problems.append(
            ("pulse_max_kernel_size", "pulse kernel size must be larger than zero")
        )
    if profile.enable_pulse and min(
        profile.pulse_straight_delay, profile.pulse_corner_delay
    ) <= 0:
        problems.append(("pulse_straight_delay", "pulse delays must be > 0"))
    if profile.room_margin < 2:
        problems.append(("room_margin", "room_margin must be >= 2"))
    if profile.lock_kernel_size < 1:
        problems.append(("lock_kernel_size", "lock_kernel_size must be >= 1"))
    if profile.pos_lock_max_dist <= 0:
        problems.append(("pos_lock_max_dist", "pos_lock_max_dist must be > 0"))
    if profile.plat_min_distance < 1:
        problems.append(("plat_min_distance", "plat_min_distance must be >= 1"))
    if profile.waypoint_reached_dist < 0:
        problems.append(
            ("waypoint_reached_dist", "waypoint_reached_dist must be >= 0")
        )

    return problems


def validate_profile(profile: GenerationProfile) -> list[str]:
    """Validate a generation profile.

    Returns:
        List of error strings (empty = valid profile).
    """
    return [msg for _, msg in _profile_problems(profile)]


def check_profile(profile: GenerationProfile) -> None:
    """Raise ConfigError if the profile would break a run.

    Raises:
        ConfigError: With the first offending parameter and all messages.
    """
    problems = _profile_problems(profile)
    if problems:
        raise ConfigError(
            f"Invalid profile '{profile.name}': "
            + "; ".join(msg for _, msg in problems),
            parameter=problems[0][0],
        )


def validate_skeleton(skeleton: MapSkeleton) -> list[str]:
    """Validate a map skeleton.

    Returns:
        List of error strings (empty = valid skeleton).
    """
    errors: list[str] = []
    if skeleton.width <= 0 or skeleton.height <= 0:
        errors.append(
            f"map dimensions must be positive, got {skeleton.width}x{skeleton.height}"
        )
    if not skeleton.waypoints:
        errors.append("map skeleton needs at least one waypoint")
    for wp in skeleton.waypoints:
        if not (0 <= wp.x < skeleton.width and 0 <= wp.y < skeleton.height):
            errors.append(
                f"waypoint {wp} outside {skeleton.width}x{skeleton.height} grid"
            )
    return errors


def check_skeleton(skeleton: MapSkeleton) -> None:
    """Raise ConfigError if the skeleton cannot seed a run."""
    errors = validate_skeleton(skeleton)
    if errors:
        raise ConfigError(
            f"Invalid map skeleton '{skeleton.name}': " + "; ".join(errors),
            parameter="waypoints",
        )
