"""Game module for Falling Blocks RL.

Exports the core game engine and supporting classes:
- GameGrid: Board cells, collision tests and row clearing
- Piece: Positioned tetromino with move/rotate requests
- Shape: Enum of tetromino kinds plus the empty cell marker
- ScoringRules / LevelProgress: Line-clear scoring and level progression
- FallingBlocksGame: Session state machine driven by commands and gravity ticks
"""

from .grid import GameGrid
from .pieces import PLAYABLE_SHAPES, Piece, Shape, base_offsets, rotate_left, rotate_right
from .ghost import ghost_of, project
from .rules import LevelProgress, ScoringRules, gravity_delay_ms
from .timer import GravityTimer
from .core import (
    GAMEPLAY_ACTIONS,
    Action,
    FallingBlocksGame,
    GameBackup,
    GameConfig,
    GameSnapshot,
    SessionState,
)

__all__ = [
    "GameGrid",
    "Piece",
    "Shape",
    "PLAYABLE_SHAPES",
    "base_offsets",
    "rotate_left",
    "rotate_right",
    "ghost_of",
    "project",
    "ScoringRules",
    "LevelProgress",
    "gravity_delay_ms",
    "GravityTimer",
    "FallingBlocksGame",
    "GameConfig",
    "GameBackup",
    "GameSnapshot",
    "SessionState",
    "Action",
    "GAMEPLAY_ACTIONS",
]
