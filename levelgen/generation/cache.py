"""Level caching by config hash with compressed npz cell storage.

Caches generated levels to disk so repeated runs with the same profile,
skeleton, seed and step budget skip the walk and post-processing.
"""

import json
import logging
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path

import numpy as np

from levelgen.config.hashing import config_hash
from levelgen.config.profile import GenerationProfile, MapSkeleton
from levelgen.generation.generator import Generator
from levelgen.generation.types import GenerationResult, Skip
from levelgen.generation.validation import validate_map
from levelgen.grid.grid import Grid
from levelgen.grid.types import Position, ShiftDirection

log = logging.getLogger(__name__)

DEFAULT_CACHE_DIR = Path(".cache/maps")


def map_cache_key(
    profile: GenerationProfile,
    skeleton: MapSkeleton,
    seed: int,
    max_steps: int,
) -> str:
    """Compute cache key for a generation run.

    Key = hash(profile, skeleton, max_steps) + seed.

    Returns:
        Cache key string like "a1b2c3d4e5f6a7b8_s42".
    """
    h = config_hash(
        profile, extra={"skeleton": asdict(skeleton), "max_steps": max_steps}
    )
    return f"{h}_s{seed}"


def _position(d: list[int]) -> Position:
    return Position(int(d[0]), int(d[1]))


def save_map(
    result: GenerationResult,
    profile: GenerationProfile,
    skeleton: MapSkeleton,
    max_steps: int,
    cache_dir: Path = DEFAULT_CACHE_DIR,
) -> Path:
    """Save a generated level to the cache.

    Stores:
    - cells.npz: compressed (width, height) uint8 cell array
    - metadata.json: spawn, finish, run facts and accepted skips

    Returns:
        Path to the cache directory for this level.
    """
    key = map_cache_key(profile, skeleton, result.seed, max_steps)
    cache_path = cache_dir / key
    cache_path.mkdir(parents=True, exist_ok=True)

    np.savez_compressed(cache_path / "cells.npz", cells=result.grid.cells)

    metadata = {
        "width": result.grid.width,
        "height": result.grid.height,
        "spawn": list(result.grid.spawn.as_tuple()),
        "finish": list(result.finish.as_tuple()),
        "seed": result.seed,
        "steps": result.steps,
        "finished": result.finished,
        "platforms": result.platforms,
        "skips": [
            {
                "start": list(s.start.as_tuple()),
                "end": list(s.end.as_tuple()),
                "direction": s.direction.name,
                "length": s.length,
                "gain": s.gain,
            }
            for s in result.skips
        ],
        "profile": profile.name,
        "skeleton": skeleton.name,
        "max_steps": max_steps,
        "cache_key": key,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    with open(cache_path / "metadata.json", "w") as f:
        json.dump(metadata, f, indent=2)

    log.info("Map cached at %s", cache_path)
    return cache_path


def load_map(
    profile: GenerationProfile,
    skeleton: MapSkeleton,
    seed: int,
    max_steps: int,
    cache_dir: Path = DEFAULT_CACHE_DIR,
) -> GenerationResult | None:
    """Load a cached level if it exists.

    Returns:
        GenerationResult on a cache hit, None on a miss.
    """
    cache_path = cache_dir / map_cache_key(profile, skeleton, seed, max_steps)

    for fname in ("cells.npz", "metadata.json"):
        if not (cache_path / fname).exists():
            return None

    with np.load(cache_path / "cells.npz") as data:
        cells = data["cells"].astype(np.uint8)
    with open(cache_path / "metadata.json") as f:
        metadata = json.load(f)

    skips = tuple(
        Skip(
            start=_position(s["start"]),
            end=_position(s["end"]),
            direction=ShiftDirection[s["direction"]],
            length=s["length"],
            gain=s["gain"],
        )
        for s in metadata["skips"]
    )
    result = GenerationResult(
        grid=Grid(cells=cells, spawn=_position(metadata["spawn"])),
        seed=metadata["seed"],
        steps=metadata["steps"],
        finished=metadata["finished"],
        finish=_position(metadata["finish"]),
        skips=skips,
        platforms=metadata["platforms"],
    )
    log.info("Map loaded from cache: %s", cache_path)
    return result


def generate_or_load_map(
    profile: GenerationProfile,
    skeleton: MapSkeleton,
    seed: int,
    max_steps: int,
    cache_dir: Path = DEFAULT_CACHE_DIR,
) -> GenerationResult:
    """Generate a level or load it from the cache if available.

    On a miss the level is generated, validated and stored. Levels that
    fail validation are returned but not cached.
    """
    key = map_cache_key(profile, skeleton, seed, max_steps)

    cached = load_map(profile, skeleton, seed, max_steps, cache_dir)
    if cached is not None:
        log.info("Cache hit for %s", key)
        return cached

    log.info("Cache miss for %s, generating...", key)
    result = Generator.generate(max_steps, seed, profile, skeleton)

    problems = validate_map(result.grid, result.finish, profile.room_margin)
    if problems:
        log.warning("Not caching %s: %s", key, "; ".join(problems))
        return result

    save_map(result, profile, skeleton, max_steps, cache_dir)
    return result
