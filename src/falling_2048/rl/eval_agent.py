from __future__ import annotations

import argparse
from statistics import mean

from falling_2048.rl.train_ppo import ENV_IDS, make_env


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser()
    p.add_argument("--model", type=str, required=True)
    p.add_argument("--difficulty", choices=sorted(ENV_IDS), default="easy")
    p.add_argument("--episodes", type=int, default=10)
    p.add_argument("--show", action="store_true", help="print the final grid of each episode")
    return p


def main() -> None:
    args = build_parser().parse_args()

    from stable_baselines3 import PPO

    env = make_env(ENV_IDS[args.difficulty])
    model = PPO.load(args.model, device="auto")

    scores = []
    tiles = []
    for episode in range(args.episodes):
        obs, info = env.reset()
        done = False
        while not done:
            action, _ = model.predict(obs, deterministic=True)
            obs, reward, terminated, truncated, info = env.step(int(action))
            done = terminated or truncated
        game = env.unwrapped.game
        stats = game.get_game_stats()
        scores.append(stats["final_score"])
        tiles.append(stats["highest_tile"])
        print(f"episode {episode + 1}: score {stats['final_score']}  highest tile {stats['highest_tile']}")
        if args.show:
            print(game.grid.to_text())
    env.close()
    print(f"mean score {mean(scores):.1f}  best tile {max(tiles)}")


if __name__ == "__main__":  # pragma: no cover
    main()
