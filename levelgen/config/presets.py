"""Preset providers: named profiles and map skeletons.

The engine never reaches for presets itself; callers (the CLI, tests)
pick a provider and pass the chosen objects in. BuiltinPresets ships the
in-code presets, DirectoryPresets reads ``profiles/*.json`` and
``skeletons/*.json`` from a directory.
"""

import logging
from dataclasses import replace
from pathlib import Path
from typing import Mapping, Protocol

from dacite import DaciteError

from levelgen.config.defaults import DEFAULT_PROFILE, DEFAULT_SKELETON
from levelgen.config.profile import (
    DiscreteDistribution,
    GenerationProfile,
    MapSkeleton,
)
from levelgen.config.serialization import profile_from_json, skeleton_from_json
from levelgen.grid.types import Position

log = logging.getLogger(__name__)


class PresetProvider(Protocol):
    """Capability set for anything that can hand out named presets."""

    def profiles(self) -> Mapping[str, GenerationProfile]: ...

    def skeletons(self) -> Mapping[str, MapSkeleton]: ...


_EASY = replace(
    DEFAULT_PROFILE,
    name="easy",
    description="Wide, goal-directed corridors with few size changes",
    shift_weights=DiscreteDistribution(values=None, weights=(0.55, 0.2, 0.15, 0.1)),
    inner_size_probs=DiscreteDistribution(values=(5, 7), weights=(0.6, 0.4)),
    outer_margin_probs=DiscreteDistribution(values=(2,), weights=(1.0,)),
    inner_size_mut_prob=0.2,
    momentum_prob=0.05,
)

_HARD = replace(
    DEFAULT_PROFILE,
    name="hard",
    description="Narrow winding corridors with pulsing kernels",
    shift_weights=DiscreteDistribution(values=None, weights=(0.35, 0.25, 0.22, 0.18)),
    inner_size_probs=DiscreteDistribution(values=(3, 4), weights=(0.7, 0.3)),
    outer_margin_probs=DiscreteDistribution(values=(0, 1, 2), weights=(0.3, 0.4, 0.3)),
    enable_pulse=True,
    pulse_max_kernel_size=5,
    kernel_edge_fuzz=0.1,
    min_freeze_size=4,
)

_SMALL_S = MapSkeleton(
    name="small_s",
    waypoints=(
        Position(30, 120),
        Position(120, 120),
        Position(120, 70),
        Position(30, 70),
        Position(30, 25),
        Position(120, 25),
    ),
    width=150,
    height=150,
)

_STRAIGHT = MapSkeleton(
    name="straight",
    waypoints=(Position(50, 250), Position(250, 250)),
    width=300,
    height=300,
)


class BuiltinPresets:
    """Presets defined in code."""

    def profiles(self) -> Mapping[str, GenerationProfile]:
        return {p.name: p for p in (DEFAULT_PROFILE, _EASY, _HARD)}

    def skeletons(self) -> Mapping[str, MapSkeleton]:
        return {s.name: s for s in (DEFAULT_SKELETON, _SMALL_S, _STRAIGHT)}


class DirectoryPresets:
    """Presets stored as JSON files under a directory.

    Layout::

        root/profiles/<anything>.json    -> GenerationProfile
        root/skeletons/<anything>.json   -> MapSkeleton

    Presets are keyed by their ``name`` field, not the file name. Files
    that fail to parse are logged and skipped.
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def profiles(self) -> Mapping[str, GenerationProfile]:
        return self._load("profiles", profile_from_json)

    def skeletons(self) -> Mapping[str, MapSkeleton]:
        return self._load("skeletons", skeleton_from_json)

    def _load(self, subdir: str, parse) -> dict:
        presets = {}
        directory = self.root / subdir
        if not directory.is_dir():
            log.debug("No preset directory at %s", directory)
            return presets
        for path in sorted(directory.glob("*.json")):
            try:
                preset = parse(path.read_text())
            except (OSError, ValueError, DaciteError) as e:
                log.warning("Couldn't parse preset %s: %s", path, e)
                continue
            presets[preset.name] = preset
        log.info("Loaded %d %s from %s", len(presets), subdir, directory)
        return presets
