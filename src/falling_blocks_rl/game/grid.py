from __future__ import annotations

from typing import Iterable, List, Tuple

import numpy as np

from .pieces import Piece, Shape


Coordinate = Tuple[int, int]


class GameGrid:
    """Falling-block playfield.

    Cells are stored as a (height, width) int8 array indexed ``[y, x]`` with
    row 0 at the top. 0 marks an empty cell; any other value is the
    ``Shape`` that locked there.
    """

    def __init__(self, width: int = 10, height: int = 20) -> None:
        self.width = int(width)
        self.height = int(height)
        self.grid = np.zeros((self.height, self.width), dtype=np.int8)

    def reset(self) -> None:
        self.grid.fill(Shape.EMPTY)

    def is_inside(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def is_cell_empty(self, x: int, y: int) -> bool:
        # Anything outside the board counts as occupied.
        if not self.is_inside(x, y):
            return False
        return self.grid[y, x] == Shape.EMPTY

    def cell(self, x: int, y: int) -> Shape:
        if not self.is_inside(x, y):
            raise IndexError(f"cell ({x}, {y}) is outside the {self.width}x{self.height} board")
        return Shape(int(self.grid[y, x]))

    def cells_fit(self, cells: Iterable[Coordinate]) -> bool:
        for x, y in cells:
            if not self.is_cell_empty(x, y):
                return False
        return True

    def can_place(self, piece: Piece, dx: int = 0, dy: int = 0) -> bool:
        return self.cells_fit(piece.cells(dx, dy))

    def lock(self, piece: Piece) -> None:
        """Write the piece's shape into the cells it covers."""
        if not self.can_place(piece):
            raise ValueError(f"cannot lock {piece.shape.name} at ({piece.x}, {piece.y})")
        for x, y in piece.cells():
            self.grid[y, x] = int(piece.shape)

    def is_row_full(self, row: int) -> bool:
        return bool(np.all(self.grid[row] != Shape.EMPTY))

    def find_full_rows(self) -> List[int]:
        return [int(r) for r in np.where(np.all(self.grid != Shape.EMPTY, axis=1))[0]]

    def clear_row(self, row: int) -> None:
        """Drop everything above `row` by one and open an empty row at the top."""
        if not 0 <= row < self.height:
            raise ValueError(f"row out of range: {row}")
        self.grid[1 : row + 1] = self.grid[0:row].copy()
        self.grid[0].fill(Shape.EMPTY)

    def clear_full_rows(self) -> int:
        # Bottom-to-top; after a clear the same index holds the row that was
        # above it, so it is examined again before moving up.
        cleared = 0
        row = self.height - 1
        while row >= 0:
            if self.is_row_full(row):
                self.clear_row(row)
                cleared += 1
            else:
                row -= 1
        return cleared

    def get_max_height(self) -> int:
        # y=0 is top; find first non-empty from top
        non_empty_rows = np.where(np.any(self.grid != Shape.EMPTY, axis=1))[0]
        if non_empty_rows.size == 0:
            return 0
        top_index = int(non_empty_rows[0])
        return self.height - top_index

    def column_heights(self) -> List[int]:
        heights: List[int] = []
        for x in range(self.width):
            filled = np.flatnonzero(self.grid[:, x])
            heights.append(self.height - int(filled[0]) if filled.size else 0)
        return heights

    def count_holes(self) -> int:
        holes = 0
        for x in range(self.width):
            column = self.grid[:, x]
            seen_block = False
            for cell in column:
                if cell != Shape.EMPTY:
                    seen_block = True
                elif seen_block:
                    holes += 1
        return holes

    def get_bumpiness(self) -> int:
        heights = self.column_heights()
        return sum(abs(heights[i] - heights[i + 1]) for i in range(len(heights) - 1))

    def clone_state(self) -> np.ndarray:
        return self.grid.copy()

    def load_state(self, cells: np.ndarray) -> None:
        cells = np.asarray(cells, dtype=np.int8)
        if cells.shape != (self.height, self.width):
            raise ValueError(
                f"board shape {cells.shape} does not match ({self.height}, {self.width})"
            )
        self.grid = cells.copy()

    def copy(self) -> "GameGrid":
        new_grid = GameGrid(self.width, self.height)
        new_grid.grid = self.grid.copy()
        return new_grid
