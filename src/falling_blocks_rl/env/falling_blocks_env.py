from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

import numpy as np
import gymnasium as gym
from gymnasium import spaces

from falling_blocks_rl.game import (
    GAMEPLAY_ACTIONS,
    Action,
    FallingBlocksGame,
    GameConfig,
    Piece,
    Shape,
    rotate_left,
    rotate_right,
)


_PALETTE = np.array(
    [
        (20, 20, 26),    # empty
        (240, 240, 0),   # O
        (0, 240, 240),   # I
        (0, 0, 240),     # J
        (240, 160, 0),   # L
        (240, 0, 0),     # Z
        (0, 240, 0),     # S
        (160, 0, 240),   # T
    ],
    dtype=np.uint8,
)


def _compute_action_mask(game: FallingBlocksGame) -> np.ndarray:
    """True for every action that would currently change the game."""
    mask = np.zeros((len(GAMEPLAY_ACTIONS),), dtype=np.bool_)
    mask[Action.NONE] = True
    piece = game.current_piece
    if not game.can_act() or piece is None:
        return mask
    mask[Action.LEFT] = game.grid.can_place(piece, -1, 0)
    mask[Action.RIGHT] = game.grid.can_place(piece, 1, 0)
    mask[Action.ROTATE_CW] = game.grid.can_place(
        Piece(piece.shape, piece.x, piece.y, piece.rotation, rotate_right(piece.offsets))
    )
    mask[Action.ROTATE_CCW] = game.grid.can_place(
        Piece(piece.shape, piece.x, piece.y, piece.rotation, rotate_left(piece.offsets))
    )
    mask[Action.SOFT_DROP] = True
    mask[Action.HARD_DROP] = True
    return mask


class FallingBlocksEnv(gym.Env):
    metadata = {"render_modes": ["rgb_array"], "render_fps": 30}

    def __init__(self, config: Optional[GameConfig] = None, render_mode: Optional[str] = None,
                 reward_weights: Optional[Dict[str, float]] = None,
                 gravity_per_step: bool = True,
                 max_episode_steps: int = 10000,
                 invalid_action_penalty: float = -0.01,
                 step_penalty: float = 0.0,
                 terminal_penalty: float = -10.0) -> None:
        super().__init__()
        self.game = FallingBlocksGame(config)
        self.render_mode = render_mode
        self.gravity_per_step = bool(gravity_per_step)
        self.max_episode_steps = int(max_episode_steps)

        # Reward shaping parameters
        self.invalid_action_penalty = float(invalid_action_penalty)
        self.step_penalty = float(step_penalty)
        self.terminal_penalty = float(terminal_penalty)
        self.reward_weights: Dict[str, float] = {
            # Positive components
            "score": 0.1,            # per engine score point
            "lines": 1.0,            # per row cleared
            # Negative components (penalize increases, measured on each lock)
            "holes": 0.5,
            "bumpiness": 0.05,
            "height": 0.1,
        }
        if reward_weights:
            self.reward_weights.update({k: float(v) for k, v in reward_weights.items()})

        height = self.game.grid.height
        width = self.game.grid.width
        n_shapes = len(Shape)

        # Board with the falling piece overlaid as negative shape values
        self.observation_space = spaces.Dict(
            {
                "board": spaces.Box(low=-(n_shapes - 1), high=n_shapes - 1, shape=(height, width), dtype=np.int8),
                "next_shape": spaces.Discrete(n_shapes),
            }
        )
        self.action_space = spaces.Discrete(len(GAMEPLAY_ACTIONS))

        self._last_obs: Optional[Dict[str, Any]] = None
        self._steps = 0

    def _get_obs(self) -> Dict[str, Any]:
        return {
            "board": self.game.get_state().astype(np.int8),
            "next_shape": int(self.game.next_shape),
        }

    def _get_info(self) -> Dict[str, Any]:
        return {
            "action_mask": _compute_action_mask(self.game),
            "score": self.game.score,
            "lines_removed": self.game.lines_removed,
            "level": self.game.level,
            "pieces_locked": self.game.pieces_locked,
            "steps": self._steps,
        }

    def get_action_mask(self) -> np.ndarray:
        return _compute_action_mask(self.game)

    def reset(self, *, seed: Optional[int] = None, options: Optional[dict] = None) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        super().reset(seed=seed)
        if seed is not None:
            self.game.rng.seed(seed)
        self.game.restart()
        self._steps = 0
        obs = self._get_obs()
        info = self._get_info()
        self._last_obs = obs
        return obs, info

    def step(self, action: int):
        action = Action(int(action))
        if action not in GAMEPLAY_ACTIONS:
            raise ValueError(f"action {action!r} is not available to agents")

        truncated = False
        score_before = self.game.score
        lines_before = self.game.lines_removed
        locks_before = self.game.pieces_locked
        holes_before = self.game.grid.count_holes()
        bump_before = self.game.grid.get_bumpiness()
        height_before = self.game.grid.get_max_height()

        changed = self.game.step(action)
        if self.gravity_per_step and self.game.pieces_locked == locks_before:
            self.game.on_gravity_tick()

        reward_components: Dict[str, float] = {
            "score": self.reward_weights["score"] * float(self.game.score - score_before),
            "lines": self.reward_weights["lines"] * float(self.game.lines_removed - lines_before),
        }
        if self.game.pieces_locked != locks_before:
            reward_components["holes"] = -self.reward_weights["holes"] * float(
                max(0, self.game.grid.count_holes() - holes_before))
            reward_components["bumpiness"] = -self.reward_weights["bumpiness"] * float(
                max(0, self.game.grid.get_bumpiness() - bump_before))
            reward_components["height"] = -self.reward_weights["height"] * float(
                max(0, self.game.grid.get_max_height() - height_before))
        if not changed and action is not Action.NONE:
            reward_components["invalid"] = self.invalid_action_penalty

        # Step and terminal shaping
        reward_components["step"] = self.step_penalty
        terminated = bool(self.game.game_over or self.game.has_won)
        self._steps += 1
        if self._steps >= self.max_episode_steps:
            truncated = True
        if self.game.game_over:
            reward_components["terminal"] = self.terminal_penalty

        reward = float(sum(reward_components.values()))

        obs = self._get_obs()
        info = self._get_info()
        info["reward_components"] = reward_components
        info["engine_score_delta"] = float(self.game.score - score_before)
        self._last_obs = obs
        return obs, reward, terminated, truncated, info

    def render(self) -> Optional[np.ndarray]:
        if self.render_mode != "rgb_array":
            return None
        board = self._last_obs["board"] if self._last_obs is not None else self.game.get_state()
        cell = 12
        img = _PALETTE[np.abs(board.astype(np.int16))]
        return np.repeat(np.repeat(img, cell, axis=0), cell, axis=1)

    def close(self) -> None:
        pass
