from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

if TYPE_CHECKING:
    from .grid import GameGrid


Offset = Tuple[int, int]
Offsets = Tuple[Offset, Offset, Offset, Offset]


class Shape(IntEnum):
    EMPTY = 0
    O = 1
    I = 2
    J = 3
    L = 4
    Z = 5
    S = 6
    T = 7


PLAYABLE_SHAPES: Tuple[Shape, ...] = tuple(s for s in Shape if s is not Shape.EMPTY)


# Default orientation; y grows downward, (0, 0) is the anchor cell.
BASE_OFFSETS: Dict[Shape, Offsets] = {
    Shape.O: ((0, -1), (0, 0), (1, 0), (1, -1)),
    Shape.I: ((0, -1), (0, 0), (0, 1), (0, 2)),
    Shape.J: ((1, -1), (1, 0), (1, 1), (0, 1)),
    Shape.L: ((0, -1), (0, 0), (0, 1), (1, 1)),
    Shape.Z: ((1, -1), (1, 0), (0, 0), (0, 1)),
    Shape.S: ((0, -1), (0, 0), (1, 0), (1, 1)),
    Shape.T: ((0, -1), (0, 0), (0, 1), (1, 0)),
    Shape.EMPTY: ((0, 0), (0, 0), (0, 0), (0, 0)),
}


def base_offsets(shape: Shape) -> Offsets:
    return BASE_OFFSETS[Shape(shape)]


def rotate_right(offsets: Offsets) -> Offsets:
    """Quarter turn clockwise about the anchor: (dx, dy) -> (-dy, dx)."""
    return tuple((-dy, dx) for dx, dy in offsets)  # type: ignore[return-value]


def rotate_left(offsets: Offsets) -> Offsets:
    """Quarter turn counter-clockwise about the anchor: (dx, dy) -> (dy, -dx)."""
    return tuple((dy, -dx) for dx, dy in offsets)  # type: ignore[return-value]


def shape_from_index(index: int) -> Shape:
    """Map a randomizer draw in [0, 7) to a playable shape."""
    if not 0 <= index < len(PLAYABLE_SHAPES):
        raise ValueError(f"shape index out of range: {index}")
    return PLAYABLE_SHAPES[index]


@dataclass
class Piece:
    """A shape placed on the board at anchor (x, y).

    The offsets are authoritative; `rotation` only counts quarter turns
    (0..3) for consumers that want to pick a sprite orientation.
    """

    shape: Shape
    x: int = 0
    y: int = 0
    rotation: int = 0
    offsets: Optional[Offsets] = None

    def __post_init__(self) -> None:
        self.shape = Shape(self.shape)
        if self.offsets is None:
            self.offsets = base_offsets(self.shape)
        else:
            self.offsets = tuple((int(dx), int(dy)) for dx, dy in self.offsets)  # type: ignore[assignment]

    def cells(self, dx: int = 0, dy: int = 0) -> List[Tuple[int, int]]:
        return [(self.x + ox + dx, self.y + oy + dy) for ox, oy in self.offsets]

    def min_x(self) -> int:
        return min(dx for dx, _ in self.offsets)

    def max_x(self) -> int:
        return max(dx for dx, _ in self.offsets)

    def min_y(self) -> int:
        return min(dy for _, dy in self.offsets)

    def max_y(self) -> int:
        return max(dy for _, dy in self.offsets)

    def copy(self) -> "Piece":
        return Piece(self.shape, self.x, self.y, self.rotation, self.offsets)

    def try_move(self, grid: "GameGrid", dx: int, dy: int) -> bool:
        if not grid.can_place(self, dx, dy):
            return False
        self.x += dx
        self.y += dy
        return True

    def try_rotate(self, grid: "GameGrid", direction: int) -> bool:
        """Rotate right for direction > 0, left otherwise. No wall kicks."""
        if direction > 0:
            rotated = rotate_right(self.offsets)
            step = 1
        else:
            rotated = rotate_left(self.offsets)
            step = -1
        candidate = Piece(self.shape, self.x, self.y, self.rotation, rotated)
        if not grid.can_place(candidate):
            return False
        self.offsets = candidate.offsets
        self.rotation = (self.rotation + step) % 4
        return True

    def rotate_right(self, grid: "GameGrid") -> bool:
        return self.try_rotate(grid, 1)

    def rotate_left(self, grid: "GameGrid") -> bool:
        return self.try_rotate(grid, -1)
