from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Callable, Dict, Optional, Set

import numpy as np

from .ghost import ghost_of
from .grid import GameGrid
from .pieces import PLAYABLE_SHAPES, Piece, Shape, shape_from_index
from .rules import LevelProgress, ScoringRules, gravity_delay_ms
from .timer import GravityTimer

logger = logging.getLogger(__name__)


class Action(IntEnum):
    LEFT = 0
    RIGHT = 1
    ROTATE_CW = 2
    ROTATE_CCW = 3
    SOFT_DROP = 4
    HARD_DROP = 5
    NONE = 6
    PAUSE = 7


# Actions an agent may take; pausing is left to the player.
GAMEPLAY_ACTIONS = tuple(a for a in Action if a is not Action.PAUSE)

# Keys that fire once per press however long they are held.
_LATCHED_ACTIONS = frozenset((Action.ROTATE_CW, Action.ROTATE_CCW, Action.PAUSE))


class SessionState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    GAME_OVER = "game_over"
    WON = "won"


@dataclass
class GameConfig:
    board_width: int = 10
    board_height: int = 20
    win_level: int = 60
    base_gravity_delay_ms: int = 800
    ghost_enabled: bool = True
    random_seed: Optional[int] = None

    def __post_init__(self) -> None:
        if self.board_width < 1 or self.board_height < 1:
            raise ValueError(
                f"board dimensions must be positive, got {self.board_width}x{self.board_height}"
            )
        if self.win_level < 1:
            raise ValueError(f"win_level must be at least 1, got {self.win_level}")
        if self.base_gravity_delay_ms < 0:
            raise ValueError(
                f"base_gravity_delay_ms must not be negative, got {self.base_gravity_delay_ms}"
            )


@dataclass(frozen=True)
class GameBackup:
    """In-memory copy of an interrupted game, used to resume it later."""

    cells: np.ndarray
    score: int
    lines_removed: int
    level: int
    combo_count: int
    level_progress: int
    active_piece: Optional[Piece]
    next_shape: Shape


@dataclass(frozen=True)
class GameSnapshot:
    cells: np.ndarray
    active_piece: Optional[Piece]
    ghost_piece: Optional[Piece]
    next_shape: Shape
    score: int
    lines_removed: int
    level: int
    state: SessionState
    gravity_delay_ms: int

    @property
    def running(self) -> bool:
        return self.state in (SessionState.RUNNING, SessionState.PAUSED)

    @property
    def paused(self) -> bool:
        return self.state is SessionState.PAUSED

    @property
    def game_over(self) -> bool:
        return self.state is SessionState.GAME_OVER

    @property
    def has_won(self) -> bool:
        return self.state is SessionState.WON


class FallingBlocksGame:
    """One game session: board, active/next piece, counters and the state machine.

    Every command returns True when it changed something and False when it
    was rejected (illegal move, wrong state). Rejections are never errors.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        rules: Optional[ScoringRules] = None,
        backup: Optional[GameBackup] = None,
    ) -> None:
        self.config = config or GameConfig()
        self.rules = rules or ScoringRules()
        self.rng = random.Random(self.config.random_seed)
        self.grid = GameGrid(self.config.board_width, self.config.board_height)
        self.timer = GravityTimer()
        self.state = SessionState.IDLE
        self.score = 0
        self.lines_removed = 0
        self.combo_count = 0
        self.pieces_locked = 0
        self.last_lines_cleared = 0
        self.progress = self._new_progress()
        self.current_piece: Optional[Piece] = None
        self.ghost_piece: Optional[Piece] = None
        self.next_shape = Shape.EMPTY
        self._held: Set[Action] = set()
        self._commands: Dict[Action, Callable[[], bool]] = {
            Action.LEFT: self.move_left,
            Action.RIGHT: self.move_right,
            Action.ROTATE_CW: self.rotate_right,
            Action.ROTATE_CCW: self.rotate_left,
            Action.SOFT_DROP: self.soft_drop,
            Action.HARD_DROP: self.hard_drop,
            Action.PAUSE: self.toggle_pause,
        }
        if backup is not None:
            self.restore(backup)
        else:
            self.reset()

    @property
    def level(self) -> int:
        return self.progress.level

    @property
    def level_progress(self) -> int:
        return self.progress.progress

    @property
    def running(self) -> bool:
        return self.state in (SessionState.RUNNING, SessionState.PAUSED)

    @property
    def paused(self) -> bool:
        return self.state is SessionState.PAUSED

    @property
    def game_over(self) -> bool:
        return self.state is SessionState.GAME_OVER

    @property
    def has_won(self) -> bool:
        return self.state is SessionState.WON

    @property
    def gravity_delay_ms(self) -> int:
        return gravity_delay_ms(self.level, self.config.win_level, self.config.base_gravity_delay_ms)

    def _new_progress(self, level: int = 1, progress: int = 0) -> LevelProgress:
        return LevelProgress(
            win_level=self.config.win_level,
            rows_per_level=self.rules.rows_per_level,
            level=level,
            progress=progress,
        )

    def reset(self) -> None:
        self.grid.reset()
        self.timer.reset()
        self.state = SessionState.IDLE
        self.score = 0
        self.lines_removed = 0
        self.combo_count = 0
        self.pieces_locked = 0
        self.last_lines_cleared = 0
        self.progress = self._new_progress()
        self.current_piece = None
        self.ghost_piece = None
        self.next_shape = Shape.EMPTY
        self._held.clear()

    def start(self) -> bool:
        if self.state is not SessionState.IDLE:
            return False
        self.state = SessionState.RUNNING
        logger.info("session started at level %d", self.level)
        if self.current_piece is None:
            self._spawn_piece()
        return True

    def restart(self) -> bool:
        self.reset()
        self.state = SessionState.RUNNING
        logger.info("session restarted")
        self._spawn_piece()
        return True

    def stop(self) -> Optional[GameBackup]:
        """End the session. Returns a backup unless the game already ended."""
        if self.state is SessionState.IDLE:
            return None
        if self.state in (SessionState.GAME_OVER, SessionState.WON):
            self.reset()
            return None
        backup = self.capture_backup()
        self.state = SessionState.IDLE
        self.timer.reset()
        logger.info("session stopped with score %d", self.score)
        return backup

    def pause(self) -> bool:
        if self.state is not SessionState.RUNNING:
            return False
        self.state = SessionState.PAUSED
        return True

    def resume(self) -> bool:
        if self.state is not SessionState.PAUSED:
            return False
        self.state = SessionState.RUNNING
        return True

    def toggle_pause(self) -> bool:
        if self.state is SessionState.PAUSED:
            return self.resume()
        return self.pause()

    def focus_lost(self) -> bool:
        return self.pause()

    def can_act(self) -> bool:
        return self.state is SessionState.RUNNING and self.current_piece is not None

    def move_left(self) -> bool:
        return self._shift(-1)

    def move_right(self) -> bool:
        return self._shift(1)

    def _shift(self, dx: int) -> bool:
        if not self.can_act():
            return False
        moved = self.current_piece.try_move(self.grid, dx, 0)
        if moved:
            self._refresh_ghost()
        return moved

    def rotate_right(self) -> bool:
        return self._rotate(1)

    def rotate_left(self) -> bool:
        return self._rotate(-1)

    def _rotate(self, direction: int) -> bool:
        if not self.can_act():
            return False
        rotated = self.current_piece.try_rotate(self.grid, direction)
        if rotated:
            self._refresh_ghost()
        return rotated

    def on_gravity_tick(self) -> bool:
        """Move the active piece down one row, or lock it if it cannot move."""
        if not self.can_act():
            return False
        if self.current_piece.try_move(self.grid, 0, 1):
            return True
        self._lock_and_spawn()
        return True

    def soft_drop(self) -> bool:
        return self.on_gravity_tick()

    def hard_drop(self) -> bool:
        if not self.can_act():
            return False
        while self.current_piece.try_move(self.grid, 0, 1):
            pass
        self._lock_and_spawn()
        return True

    def advance(self, elapsed_ms: float) -> int:
        """Feed wall-clock time to the gravity timer; returns the number of ticks fired."""
        if self.state is not SessionState.RUNNING:
            return 0
        self.timer.advance(elapsed_ms)
        ticks = 0
        while self.state is SessionState.RUNNING and self.timer.tick(self.gravity_delay_ms):
            self.on_gravity_tick()
            ticks += 1
        return ticks

    def step(self, action: Action) -> bool:
        command = self._commands.get(Action(action))
        if command is None:
            return False
        return command()

    def press(self, action: Action) -> bool:
        """Key-down from an input layer. Rotation and pause fire once per press."""
        action = Action(action)
        if action in _LATCHED_ACTIONS:
            if action in self._held:
                return False
            self._held.add(action)
        return self.step(action)

    def release(self, action: Action) -> None:
        self._held.discard(Action(action))

    def _draw_shape(self) -> Shape:
        return shape_from_index(self.rng.randrange(len(PLAYABLE_SHAPES)))

    def _spawn_piece(self) -> bool:
        if self.next_shape is Shape.EMPTY:
            shape = self._draw_shape()
            self.next_shape = self._draw_shape()
        else:
            shape = self.next_shape
            self.next_shape = self._draw_shape()

        piece = Piece(shape)
        piece.x = self.grid.width // 2 - 1
        piece.y = -piece.min_y()
        self.current_piece = piece

        if not self.grid.can_place(piece):
            self.ghost_piece = None
            self.state = SessionState.GAME_OVER
            logger.info(
                "game over: %s blocked at spawn, score %d, lines %d",
                shape.name, self.score, self.lines_removed,
            )
            return False
        self._refresh_ghost()
        logger.debug("spawned %s, next %s", shape.name, self.next_shape.name)
        return True

    def _lock_and_spawn(self) -> None:
        self._lock_piece()
        if self.state is SessionState.RUNNING:
            self._spawn_piece()

    def _lock_piece(self) -> int:
        piece = self.current_piece
        assert piece is not None
        self.grid.lock(piece)
        self.pieces_locked += 1
        self.current_piece = None
        self.ghost_piece = None

        lines = self.grid.clear_full_rows()
        self.lines_removed += lines
        self.last_lines_cleared = lines
        if lines > 0:
            self.combo_count += 1
            self.score += self.rules.score_for_lines(lines, self.combo_count)
        else:
            self.combo_count = 0
        logger.debug("locked %s, cleared %d rows, combo %d", piece.shape.name, lines, self.combo_count)

        if self.progress.add_rows(lines):
            logger.info("level %d, gravity %d ms", self.level, self.gravity_delay_ms)
        if self.progress.won:
            self.state = SessionState.WON
            logger.info("won at level %d with score %d", self.level, self.score)
        return lines

    def _refresh_ghost(self) -> None:
        if self.config.ghost_enabled and self.current_piece is not None:
            self.ghost_piece = ghost_of(self.grid, self.current_piece)
        else:
            self.ghost_piece = None

    def snapshot(self) -> GameSnapshot:
        cells = self.grid.clone_state()
        cells.flags.writeable = False
        return GameSnapshot(
            cells=cells,
            active_piece=self.current_piece.copy() if self.current_piece is not None else None,
            ghost_piece=self.ghost_piece.copy() if self.ghost_piece is not None else None,
            next_shape=self.next_shape,
            score=self.score,
            lines_removed=self.lines_removed,
            level=self.level,
            state=self.state,
            gravity_delay_ms=self.gravity_delay_ms,
        )

    def get_state(self) -> np.ndarray:
        # Overlay current piece on a copy of the grid for observation
        state = self.grid.clone_state()
        if self.current_piece is not None and not self.game_over:
            for x, y in self.current_piece.cells():
                if self.grid.is_inside(x, y):
                    # Use negative to indicate falling piece overlay
                    state[y, x] = -int(self.current_piece.shape)
        return state

    def capture_backup(self) -> GameBackup:
        if self.state in (SessionState.GAME_OVER, SessionState.WON):
            raise ValueError(f"cannot back up a finished game ({self.state.value})")
        return GameBackup(
            cells=self.grid.clone_state(),
            score=self.score,
            lines_removed=self.lines_removed,
            level=self.level,
            combo_count=self.combo_count,
            level_progress=self.level_progress,
            active_piece=self.current_piece.copy() if self.current_piece is not None else None,
            next_shape=self.next_shape,
        )

    def restore(self, backup: GameBackup) -> None:
        """Load a backup into this session; `start` then resumes it.

        Raises `ValueError` for a backup that could not come from a live game:
        wrong board size, level below 1, level progress outside
        ``[0, rows_per_level)`` or an active piece that does not fit the board.
        """
        if backup.level < 1:
            raise ValueError(f"backup level must be at least 1, got {backup.level}")
        if not 0 <= backup.level_progress < self.rules.rows_per_level:
            raise ValueError(
                f"backup level progress must be in [0, {self.rules.rows_per_level}), "
                f"got {backup.level_progress}"
            )
        self.reset()
        self.grid.load_state(backup.cells)
        if backup.active_piece is not None and not self.grid.can_place(backup.active_piece):
            self.reset()
            raise ValueError(
                f"backup piece {backup.active_piece.shape.name} at "
                f"({backup.active_piece.x}, {backup.active_piece.y}) does not fit the board"
            )
        self.score = backup.score
        self.lines_removed = backup.lines_removed
        self.combo_count = backup.combo_count
        self.progress = self._new_progress(backup.level, backup.level_progress)
        self.current_piece = backup.active_piece.copy() if backup.active_piece is not None else None
        self.next_shape = Shape(backup.next_shape)
        self._refresh_ghost()
        logger.info("restored game at level %d with score %d", self.level, self.score)
