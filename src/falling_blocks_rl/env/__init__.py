"""Gymnasium environments for Falling Blocks RL."""

from __future__ import annotations

from gymnasium.envs.registration import register

# Register default falling-block environment (classic 10x20 board)
register(
    id="FallingBlocks-10x20-v0",
    entry_point="falling_blocks_rl.env.falling_blocks_env:FallingBlocksEnv",
)

__all__ = ["FallingBlocks-10x20-v0"]
