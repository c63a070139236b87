from __future__ import annotations

import argparse
import os

import gymnasium as gym

# Ensure envs are registered
import falling_2048.env  # noqa: F401
from falling_2048.env.wrappers import Log2ObservationScaler, ResampleInvalidActionWrapper


ENV_IDS = {
    "easy": "Falling2048-Easy-v0",
    "medium": "Falling2048-Medium-v0",
    "hard": "Falling2048-Hard-v0",
}


def make_env(env_id: str, seed: int | None = None) -> gym.Env:
    env = gym.make(env_id)
    env = Log2ObservationScaler(env)
    # Resample blocked moves for vanilla PPO
    env = ResampleInvalidActionWrapper(env)
    if seed is not None:
        env.reset(seed=seed)
    return env


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser()
    p.add_argument("--difficulty", choices=sorted(ENV_IDS), default="easy")
    p.add_argument("--timesteps", type=int, default=200_000)
    p.add_argument("--logdir", type=str, default="./logs/ppo")
    p.add_argument("--save_path", type=str, default="./models/ppo_falling2048.zip")
    p.add_argument("--n_envs", type=int, default=4)
    p.add_argument("--seed", type=int, default=None)
    return p


def main() -> None:
    args = build_parser().parse_args()
    env_id = ENV_IDS[args.difficulty]

    from stable_baselines3 import PPO
    from stable_baselines3.common.vec_env import SubprocVecEnv, VecMonitor

    def make_env_idx(i: int):
        def thunk():
            seed = None if args.seed is None else args.seed + i
            return make_env(env_id, seed)
        return thunk

    vec_env = SubprocVecEnv([make_env_idx(i) for i in range(args.n_envs)])
    vec_env = VecMonitor(vec_env)
    model = PPO(
        policy="MultiInputPolicy",
        env=vec_env,
        verbose=1,
        tensorboard_log=args.logdir,
    )

    os.makedirs(os.path.dirname(args.save_path) or ".", exist_ok=True)
    model.learn(total_timesteps=args.timesteps)
    model.save(args.save_path)


if __name__ == "__main__":  # pragma: no cover
    main()
