from __future__ import annotations

import random

import gymnasium as gym

import falling_2048.env  # noqa: F401


def run_random(steps: int = 500, env_id: str = "Falling2048-Easy-v0") -> None:
    env = gym.make(env_id)
    obs, info = env.reset()
    total_reward = 0.0
    episodes = 0
    for _ in range(steps):
        # Prefer actions that are not blocked
        mask = info.get("action_mask")
        if mask is not None and mask.any():
            action = random.choice([i for i, ok in enumerate(mask) if ok])
        else:
            action = env.action_space.sample()
        obs, reward, terminated, truncated, info = env.step(action)
        total_reward += float(reward)
        if terminated or truncated:
            episodes += 1
            print(f"episode {episodes}: score {info['score']} (best {info['best_score']})")
            obs, info = env.reset()
    env.close()
    print(f"Random agent total reward: {total_reward:.2f}")


if __name__ == "__main__":  # pragma: no cover
    run_random()
