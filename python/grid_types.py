"""
Shared type definitions for the gridsketch system.
"""

from __future__ import annotations

import math
from dataclasses import dataclass


# =============================================================================
# Vectors and Boxes
# =============================================================================


@dataclass(frozen=True)
class Vector:
    """A 2D grid or screen coordinate."""

    x: int
    y: int

    def add(self, other: Vector) -> Vector:
        return Vector(self.x + other.x, self.y + other.y)

    def subtract(self, other: Vector) -> Vector:
        return Vector(self.x - other.x, self.y - other.y)

    def scale(self, factor: float) -> Vector:
        return Vector(self.x * factor, self.y * factor)

    def length(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y)

    def __add__(self, other: Vector) -> Vector:
        return self.add(other)

    def __sub__(self, other: Vector) -> Vector:
        return self.subtract(other)


DIR_LEFT = Vector(-1, 0)
DIR_RIGHT = Vector(1, 0)
DIR_UP = Vector(0, -1)
DIR_DOWN = Vector(0, 1)

DIRECTIONS = (DIR_LEFT, DIR_RIGHT, DIR_UP, DIR_DOWN)
DIAGONALS = (
    DIR_LEFT + DIR_UP,
    DIR_LEFT + DIR_DOWN,
    DIR_RIGHT + DIR_UP,
    DIR_RIGHT + DIR_DOWN,
)


@dataclass(frozen=True)
class Box:
    """A rectangle normalized from two arbitrary corners (edges inclusive)."""

    start_x: int
    start_y: int
    end_x: int
    end_y: int

    @classmethod
    def from_corners(cls, a: Vector, b: Vector) -> Box:
        return cls(min(a.x, b.x), min(a.y, b.y), max(a.x, b.x), max(a.y, b.y))

    def top_left(self) -> Vector:
        return Vector(self.start_x, self.start_y)

    def bottom_right(self) -> Vector:
        return Vector(self.end_x, self.end_y)

    def contains(self, position: Vector) -> bool:
        return (
            self.start_x <= position.x <= self.end_x
            and self.start_y <= position.y <= self.end_y
        )


# =============================================================================
# Markers and Glyphs
# =============================================================================

SPECIAL_VALUE = "+"  # Generic line/corner marker
ALT_SPECIAL_VALUE = "^"  # Arrow marker

SPECIAL_LINE_H = "-"
SPECIAL_LINE_V = "|"
SPECIAL_ARROW_LEFT = "<"
SPECIAL_ARROW_UP = "^"
SPECIAL_ARROW_RIGHT = ">"
SPECIAL_ARROW_DOWN = "v"

SPECIAL_VALUES = (SPECIAL_VALUE, "‒", "–", SPECIAL_LINE_H, SPECIAL_LINE_V)
ALT_SPECIAL_VALUES = (
    SPECIAL_ARROW_RIGHT,
    SPECIAL_ARROW_LEFT,
    SPECIAL_ARROW_UP,
    SPECIAL_ARROW_DOWN,
)
ALL_SPECIAL_VALUES = SPECIAL_VALUES + ALT_SPECIAL_VALUES

ERASE_CHAR = " "  # Thin space, never typed by a user

# Key names passed to tools alongside single printable characters
KEY_RETURN = "<enter>"
KEY_BACKSPACE = "<backspace>"
KEY_COPY = "<copy>"
KEY_PASTE = "<paste>"
KEY_CUT = "<cut>"
KEY_UP = "<up>"
KEY_DOWN = "<down>"
KEY_LEFT = "<left>"
KEY_RIGHT = "<right>"


# =============================================================================
# Cells
# =============================================================================


@dataclass
class Cell:
    """A grid slot: a committed value plus an optional in-progress scratch value."""

    value: str | None = None
    scratch: str | None = None

    @property
    def raw_value(self) -> str | None:
        return self.scratch if self.scratch is not None else self.value

    def is_special(self) -> bool:
        return self.raw_value in ALL_SPECIAL_VALUES

    def is_empty(self) -> bool:
        return self.value is None and self.scratch is None

    def has_scratch(self) -> bool:
        return self.scratch is not None

    def is_erase(self) -> bool:
        return self.scratch == ERASE_CHAR


@dataclass
class CellContext:
    """Which neighbours of a cell are structural markers."""

    left: bool = False
    right: bool = False
    up: bool = False
    down: bool = False
    left_up: bool = False
    right_up: bool = False
    left_down: bool = False
    right_down: bool = False

    def sum(self) -> int:
        """Number of structural cardinal neighbours."""
        return [self.left, self.right, self.up, self.down].count(True)

    def extended_sum(self) -> int:
        """Number of structural neighbours including diagonals."""
        return [
            self.left,
            self.right,
            self.up,
            self.down,
            self.left_up,
            self.left_down,
            self.right_up,
            self.right_down,
        ].count(True)


# A touched cell awaiting commit, and one entry of an undo/redo change set
PendingEdit = tuple[Vector, Cell]
MappedValue = tuple[Vector, str | None]
ChangeSet = list[MappedValue]
