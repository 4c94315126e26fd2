"""Cell, direction and position types shared by the grid and the walker."""

import math
from dataclasses import dataclass
from enum import Enum, IntEnum


class CellType(IntEnum):
    """Closed set of tile types. Values are the stored uint8 codes."""

    EMPTY = 0
    HOOKABLE = 1
    FREEZE = 2
    SPAWN = 3
    START = 4
    FINISH = 5


# One character per cell type, used by the text codec.
CELL_CHARS: dict[CellType, str] = {
    CellType.EMPTY: ".",
    CellType.HOOKABLE: "#",
    CellType.FREEZE: "~",
    CellType.SPAWN: "S",
    CellType.START: "<",
    CellType.FINISH: ">",
}

CHAR_CELLS: dict[str, CellType] = {c: t for t, c in CELL_CHARS.items()}


class ShiftDirection(Enum):
    """Cardinal walker moves. y grows downward."""

    UP = (0, -1)
    RIGHT = (1, 0)
    DOWN = (0, 1)
    LEFT = (-1, 0)

    @property
    def dx(self) -> int:
        return self.value[0]

    @property
    def dy(self) -> int:
        return self.value[1]

    def opposite(self) -> "ShiftDirection":
        return _OPPOSITES[self]

    def perpendicular(self) -> tuple[int, int]:
        """Unit offset perpendicular to this direction."""
        return (self.dy, self.dx)


_OPPOSITES = {
    ShiftDirection.UP: ShiftDirection.DOWN,
    ShiftDirection.DOWN: ShiftDirection.UP,
    ShiftDirection.LEFT: ShiftDirection.RIGHT,
    ShiftDirection.RIGHT: ShiftDirection.LEFT,
}


@dataclass(frozen=True, slots=True)
class Position:
    """Integer grid coordinate."""

    x: int
    y: int

    def __add__(self, other: "Position") -> "Position":
        return Position(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Position") -> "Position":
        return Position(self.x - other.x, self.y - other.y)

    def shifted(self, direction: ShiftDirection, amount: int = 1) -> "Position":
        return Position(
            self.x + direction.dx * amount, self.y + direction.dy * amount
        )

    def distance_squared(self, other: "Position") -> int:
        dx = self.x - other.x
        dy = self.y - other.y
        return dx * dx + dy * dy

    def distance(self, other: "Position") -> float:
        return math.sqrt(self.distance_squared(other))

    def chebyshev(self, other: "Position") -> int:
        return max(abs(self.x - other.x), abs(self.y - other.y))

    def as_tuple(self) -> tuple[int, int]:
        return (self.x, self.y)
