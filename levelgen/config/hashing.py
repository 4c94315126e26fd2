"""Deterministic config hashing using SHA-256 over sorted JSON.

Level cache keys hash the profile with the skeleton and step budget folded
in through ``extra``; the seed is appended to the key separately.
"""

import hashlib
import json
from dataclasses import asdict
from typing import Any


def config_hash(config: Any, extra: dict[str, Any] | None = None) -> str:
    """Deterministic SHA-256 hash of a profile or skeleton.

    Args:
        config: Any dataclass instance.
        extra: Optional additional key/value pairs folded into the hash
            (e.g. seed and step budget for cache keys).

    Returns:
        First 16 hex characters of the SHA-256 hash.
    """
    d = asdict(config)
    if extra:
        d = {"config": d, "extra": extra}
    serialized = json.dumps(
        d,
        sort_keys=True,
        ensure_ascii=True,
        separators=(",", ":"),
        indent=None,
    )
    return hashlib.sha256(serialized.encode("utf-8")).hexdigest()[:16]
