"""Seeded random source with discrete weighted sampling.

Each generation run owns exactly one WeightedSampler built from its seed;
there is no module-level RNG. Identical seed and identical call sequence
reproduce identical draws (numpy PCG64 via default_rng).
"""

from typing import Any, Sequence

import numpy as np

from levelgen.config.profile import DiscreteDistribution
from levelgen.errors import ConfigError


def _probabilities(weights: Sequence[float], what: str) -> np.ndarray:
    w = np.asarray(weights, dtype=np.float64)
    if w.ndim != 1 or w.size == 0:
        raise ConfigError(f"{what}: weights must be a non-empty sequence")
    if np.any(w < 0) or not np.all(np.isfinite(w)):
        raise ConfigError(f"{what}: weights must be finite and >= 0, got {weights}")
    total = w.sum()
    if total <= 0:
        raise ConfigError(f"{what}: weights sum to zero")
    return w / total


class WeightedSampler:
    """Random source for every probabilistic decision of one run.

    Args:
        seed: Run seed.
        shift_weights: Rank-indexed direction table (best to worst).
    """

    def __init__(self, seed: int, shift_weights: DiscreteDistribution) -> None:
        self.seed = seed
        self.rng = np.random.default_rng(seed)
        self.shift_weights = tuple(float(w) for w in shift_weights.weights)
        _probabilities(self.shift_weights, "shift_weights")

    def sample_weighted(self, values: Sequence[Any], weights: Sequence[float]) -> Any:
        """Pick one value with probability proportional to its weight.

        Raises:
            ConfigError: On length mismatch, negative weights or an all-zero table.
        """
        if len(values) != len(weights):
            raise ConfigError(
                f"{len(values)} values but {len(weights)} weights"
            )
        p = _probabilities(weights, "sample_weighted")
        return values[int(self.rng.choice(len(values), p=p))]

    def sample_distribution(self, dist: DiscreteDistribution) -> Any:
        if dist.values is None:
            raise ConfigError("distribution has no values to sample")
        return self.sample_weighted(dist.values, dist.weights)

    def sample_shift_rank(self, n_valid: int) -> int:
        """Draw a rank in [0, n_valid) from the shift table.

        The table is truncated to the first ``n_valid`` ranks. If those
        carry no weight the best rank (0) is returned without a draw.
        """
        if n_valid <= 0:
            raise ValueError("no valid shift to rank")
        w = np.asarray(self.shift_weights[:n_valid])
        total = w.sum()
        if total <= 0:
            return 0
        return int(self.rng.choice(len(w), p=w / total))

    def with_probability(self, p: float) -> bool:
        return bool(self.rng.random() < p)

    def uniform_float(
        self, low: float, high: float, size: int | tuple[int, ...] | None = None
    ) -> float | np.ndarray:
        """Uniform draw(s) in [low, high)."""
        if size is None:
            return float(self.rng.uniform(low, high))
        return self.rng.uniform(low, high, size=size)

    def uniform_int(self, low: int, high: int) -> int:
        """Uniform integer in [low, high] (inclusive)."""
        if high < low:
            raise ValueError(f"empty range [{low}, {high}]")
        return int(self.rng.integers(low, high + 1))
