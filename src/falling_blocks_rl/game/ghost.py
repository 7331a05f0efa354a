from __future__ import annotations

from typing import Tuple

from .grid import GameGrid
from .pieces import Piece


def ghost_of(grid: GameGrid, piece: Piece) -> Piece:
    """Copy of `piece` dropped as far as it can go. Neither argument is touched."""
    ghost = piece.copy()
    while ghost.try_move(grid, 0, 1):
        pass
    return ghost


def project(grid: GameGrid, piece: Piece) -> Tuple[int, int]:
    ghost = ghost_of(grid, piece)
    return ghost.x, ghost.y
