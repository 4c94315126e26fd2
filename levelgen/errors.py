"""Error taxonomy for level generation.

ConfigError and StuckError abort a run, BoundsError flags a walker that
tried to leave the grid, and SkipRejected is raised and caught inside the
skip pass without failing the run.
"""

from typing import Any


class LevelGenError(Exception):
    """Base class for all generation errors."""


class ConfigError(LevelGenError, ValueError):
    """Raised when a profile or map skeleton fails validation."""

    def __init__(self, message: str, parameter: str | None = None) -> None:
        super().__init__(message)
        self.parameter = parameter


class BoundsError(LevelGenError, IndexError):
    """Raised when a step or cell access would leave the grid."""

    def __init__(
        self, message: str, position: Any = None, step: int | None = None
    ) -> None:
        super().__init__(message)
        self.position = position
        self.step = step


class StuckError(LevelGenError):
    """Raised when the walker stops making progress for too long."""

    def __init__(self, message: str, step: int, delay: int) -> None:
        super().__init__(message)
        self.step = step
        self.delay = delay


class SkipRejected(LevelGenError):
    """A skip candidate failed validation. Recovered by the skip pass."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason
