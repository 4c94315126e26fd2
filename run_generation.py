#!/usr/bin/env python3
"""Entry point for generating platformer levels.

Chains the generation stages into a single executable command:
config loading -> walk -> post-processing -> validation -> cache/output.

Usage:
    python run_generation.py --preset default --seed 42
    python run_generation.py --profile profile.json --skeleton map.json --out level.txt
    python run_generation.py --preset hard --seed 7 --dry-run
"""

import argparse
import logging
import sys
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from dacite import DaciteError

from levelgen.config import (
    BuiltinPresets,
    GenerationProfile,
    MapSkeleton,
    config_hash,
    profile_from_json,
    skeleton_from_json,
    validate_profile,
    validate_skeleton,
)
from levelgen.errors import BoundsError, ConfigError, StuckError

log = logging.getLogger(__name__)


@contextmanager
def stage_timer(name: str) -> Generator[None, None, None]:
    """Context manager that prints stage banners with elapsed time."""
    print(f"\n=== {name} ===")
    log.info("Starting: %s", name)
    t0 = time.monotonic()
    yield
    elapsed = time.monotonic() - t0
    print(f"... done in {elapsed:.1f}s")
    log.info("Completed: %s in %.1fs", name, elapsed)


def load_profile(path: str | None, preset: str) -> GenerationProfile:
    """Read a profile from a JSON file, or look up a builtin preset."""
    if path is not None:
        return profile_from_json(Path(path).read_text())
    profiles = BuiltinPresets().profiles()
    if preset not in profiles:
        raise ConfigError(
            f"Unknown profile preset '{preset}', choose from {sorted(profiles)}",
            parameter="preset",
        )
    return profiles[preset]


def load_skeleton(path: str | None, preset: str) -> MapSkeleton:
    """Read a skeleton from a JSON file, or look up a builtin preset."""
    if path is not None:
        return skeleton_from_json(Path(path).read_text())
    skeletons = BuiltinPresets().skeletons()
    if preset not in skeletons:
        raise ConfigError(
            f"Unknown skeleton preset '{preset}', choose from {sorted(skeletons)}",
            parameter="skeleton_preset",
        )
    return skeletons[preset]


def run_generation(
    profile: GenerationProfile,
    skeleton: MapSkeleton,
    seed: int,
    max_steps: int,
    cache_dir: Path | None,
    out: Path | None,
) -> None:
    """Generate one level, optionally via the cache, and write the text dump.

    Raises:
        ConfigError: If the profile or skeleton is invalid.
        StuckError: If the walker stopped making progress.
        BoundsError: If the walker tried to leave the grid.
    """
    # Lazy imports to keep --dry-run fast
    from levelgen.generation import Generator as LevelGenerator
    from levelgen.generation import generate_or_load_map, validate_map

    pipeline_start = time.monotonic()

    with stage_timer("Level Generation"):
        if cache_dir is not None:
            result = generate_or_load_map(profile, skeleton, seed, max_steps, cache_dir)
        else:
            result = LevelGenerator.generate(max_steps, seed, profile, skeleton)
        log.info(
            "Level: %dx%d, steps=%d, finished=%s, skips=%d, platforms=%d",
            result.grid.width,
            result.grid.height,
            result.steps,
            result.finished,
            len(result.skips),
            result.platforms,
        )

    with stage_timer("Validation"):
        problems = validate_map(result.grid, result.finish, profile.room_margin)
        for problem in problems:
            log.warning("Map check failed: %s", problem)

    if out is not None:
        with stage_timer("Write Level"):
            out.parent.mkdir(parents=True, exist_ok=True)
            out.write_text("\n".join(result.grid.to_chars()) + "\n")
            log.info("Level written to %s", out)

    total_elapsed = time.monotonic() - pipeline_start
    print(f"\n{'=' * 60}")
    print(f"Generation complete in {total_elapsed:.1f}s")
    print(f"  Steps:     {result.steps} ({'finished' if result.finished else 'budget exhausted'})")
    print(f"  Skips:     {len(result.skips)}")
    print(f"  Platforms: {result.platforms}")
    print(f"  Checks:    {'PASSED' if not problems else f'{len(problems)} FAILED'}")
    if out is not None:
        print(f"  Output:    {out}")
    print(f"{'=' * 60}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate a platformer level")
    profile_group = parser.add_mutually_exclusive_group()
    profile_group.add_argument("--profile", type=str, help="Path to profile JSON file")
    profile_group.add_argument(
        "--preset", type=str, default="default", help="Builtin profile preset name"
    )
    skeleton_group = parser.add_mutually_exclusive_group()
    skeleton_group.add_argument("--skeleton", type=str, help="Path to skeleton JSON file")
    skeleton_group.add_argument(
        "--skeleton-preset",
        type=str,
        default="default",
        help="Builtin skeleton preset name",
    )
    parser.add_argument("--seed", type=int, default=0, help="Run seed")
    parser.add_argument(
        "--max-steps", type=int, default=100_000, help="Walker step budget"
    )
    parser.add_argument(
        "--cache-dir",
        type=str,
        default=None,
        help="Directory for the level cache (disabled when omitted)",
    )
    parser.add_argument(
        "--out", type=str, default=None, help="Write the level as text to this path"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate the configuration without generating",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable DEBUG-level logging",
    )
    args = parser.parse_args()

    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    for path in (args.profile, args.skeleton):
        if path is not None and not Path(path).exists():
            print(f"Error: config file not found: {path}", file=sys.stderr)
            sys.exit(1)

    try:
        profile = load_profile(args.profile, args.preset)
        skeleton = load_skeleton(args.skeleton, args.skeleton_preset)
    except (ConfigError, ValueError, DaciteError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"Profile:   {profile.name} ({config_hash(profile)})")
    print(f"Skeleton:  {skeleton.name} {skeleton.width}x{skeleton.height}, "
          f"{len(skeleton.waypoints)} waypoints")
    print(f"Seed:      {args.seed}")
    print(f"Max steps: {args.max_steps}")

    if args.dry_run:
        errors = validate_profile(profile) + validate_skeleton(skeleton)
        for error in errors:
            print(f"  - {error}")
        if errors:
            print(f"\n[dry-run] {len(errors)} configuration problems.")
            sys.exit(1)
        print("\n[dry-run] Config loaded successfully. Exiting.")
        return

    try:
        run_generation(
            profile,
            skeleton,
            args.seed,
            args.max_steps,
            Path(args.cache_dir) if args.cache_dir else None,
            Path(args.out) if args.out else None,
        )
    except (ConfigError, StuckError, BoundsError) as e:
        log.error("Generation failed: %s", e)
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
