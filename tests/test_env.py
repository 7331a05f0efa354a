import gymnasium as gym
import numpy as np
import pytest

import falling_blocks_rl.env  # noqa: F401
from falling_blocks_rl.env.falling_blocks_env import FallingBlocksEnv
from falling_blocks_rl.env.wrappers import ActionMaskWrapper, ResampleInvalidActionWrapper
from falling_blocks_rl.game import Action, Piece, Shape


def test_registered_env_resets_to_running_game():
    env = gym.make("FallingBlocks-10x20-v0")
    obs, info = env.reset(seed=0)
    assert obs["board"].shape == (20, 10)
    assert obs["board"].dtype == np.int8
    assert (obs["board"] < 0).sum() == 4
    assert 1 <= obs["next_shape"] <= 7
    assert info["action_mask"].shape == (7,)
    assert env.observation_space.contains(obs)
    env.close()


def test_reset_with_seed_is_reproducible():
    env = FallingBlocksEnv()
    first, _ = env.reset(seed=11)
    second, _ = env.reset(seed=11)
    assert np.array_equal(first["board"], second["board"])
    assert first["next_shape"] == second["next_shape"]


def test_step_applies_action_then_gravity():
    env = FallingBlocksEnv()
    env.reset(seed=1)
    game = env.unwrapped.game
    game.current_piece = Piece(Shape.O, x=4, y=5)
    obs, reward, terminated, truncated, info = env.step(Action.LEFT)
    assert (game.current_piece.x, game.current_piece.y) == (3, 6)
    assert not terminated and not truncated


def test_hard_drop_locks_without_extra_tick():
    env = FallingBlocksEnv()
    env.reset(seed=1)
    game = env.game
    _, _, _, _, info = env.step(Action.HARD_DROP)
    assert info["pieces_locked"] == 1
    spawned = game.current_piece
    assert spawned.y == -spawned.min_y()


def test_line_clear_is_rewarded():
    env = FallingBlocksEnv()
    env.reset(seed=1)
    game = env.game
    game.grid.grid[19, :9] = Shape.Z
    game.current_piece = Piece(Shape.I, x=9, y=1)
    _, reward, _, _, info = env.step(Action.HARD_DROP)
    assert info["engine_score_delta"] == 10.0
    assert info["reward_components"]["lines"] == pytest.approx(1.0)
    assert reward > 0


def test_action_mask_reflects_walls():
    env = FallingBlocksEnv()
    env.reset(seed=1)
    env.game.current_piece = Piece(Shape.I, x=0, y=5)
    mask = env.get_action_mask()
    assert not mask[Action.LEFT]
    assert mask[Action.RIGHT]
    assert mask[Action.HARD_DROP]
    assert mask[Action.NONE]


def test_game_over_terminates_with_penalty():
    env = FallingBlocksEnv()
    env.reset(seed=1)
    env.game.grid.grid[1:20, 2:] = Shape.T
    env.game.current_piece = Piece(Shape.I, x=0, y=1)
    _, reward, terminated, _, info = env.step(Action.HARD_DROP)
    assert terminated
    assert info["reward_components"]["terminal"] == env.terminal_penalty
    assert not info["action_mask"][Action.LEFT]


def test_truncation_at_step_limit():
    env = FallingBlocksEnv(max_episode_steps=2)
    env.reset(seed=1)
    assert not env.step(Action.NONE)[3]
    assert env.step(Action.NONE)[3]


def test_pause_is_not_an_agent_action():
    env = FallingBlocksEnv()
    env.reset(seed=1)
    with pytest.raises(ValueError):
        env.step(Action.PAUSE)


def test_rgb_render():
    env = FallingBlocksEnv(render_mode="rgb_array")
    env.reset(seed=1)
    img = env.render()
    assert img.shape == (20 * 12, 10 * 12, 3)
    assert img.dtype == np.uint8


def test_resample_wrapper_replaces_blocked_actions():
    env = ResampleInvalidActionWrapper(FallingBlocksEnv())
    env.reset(seed=3)
    game = env.unwrapped.game
    game.current_piece = Piece(Shape.I, x=0, y=5)
    _, _, _, _, info = env.step(Action.LEFT)
    assert "invalid" not in info["reward_components"]


def test_mask_wrapper_forwards_mask():
    env = ActionMaskWrapper(gym.make("FallingBlocks-10x20-v0"))
    env.reset(seed=0)
    assert env.get_action_mask().dtype == np.bool_
