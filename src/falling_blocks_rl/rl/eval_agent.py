from __future__ import annotations

import argparse
from typing import List

import numpy as np

from falling_blocks_rl.rl.train_ppo import ENV_ID, make_env


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser()
    p.add_argument("--algo", choices=["ppo", "maskable"], default="ppo")
    p.add_argument("--model", type=str, required=True)
    p.add_argument("--episodes", type=int, default=5)
    p.add_argument("--max_steps", type=int, default=5000)
    p.add_argument("--seed", type=int, default=0)
    return p


def main() -> None:
    args = build_parser().parse_args()
    if args.algo == "maskable":
        from sb3_contrib import MaskablePPO as Algo
    else:
        from stable_baselines3 import PPO as Algo

    env = make_env(ENV_ID, resample=(args.algo == "ppo"))
    model = Algo.load(args.model, device="auto")

    scores: List[int] = []
    lines: List[int] = []
    for ep in range(args.episodes):
        obs, info = env.reset(seed=args.seed + ep)
        total_reward = 0.0
        for _ in range(args.max_steps):
            if args.algo == "maskable":
                action, _ = model.predict(obs, deterministic=True, action_masks=env.get_action_mask())
            else:
                action, _ = model.predict(obs, deterministic=True)
            obs, reward, terminated, truncated, info = env.step(int(action))
            total_reward += float(reward)
            if terminated or truncated:
                break
        scores.append(int(info["score"]))
        lines.append(int(info["lines_removed"]))
        print(f"episode {ep + 1}/{args.episodes}: reward={total_reward:.1f} score={info['score']} "
              f"lines={info['lines_removed']} level={info['level']}")
    env.close()
    print(f"mean score {np.mean(scores):.1f}  mean lines {np.mean(lines):.1f}")


if __name__ == "__main__":  # pragma: no cover
    main()
