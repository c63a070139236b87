from __future__ import annotations

import argparse
import os
import random
from typing import List
import sys

import numpy as np

from falling_2048.game import Difficulty, Falling2048Game, GameAnalytics, GameConfig, reachable_columns


N_FEATURES = 7


def extract_features(game: Falling2048Game, column: int) -> np.ndarray:
    quality = GameAnalytics.evaluate_drop(game, column)
    if not quality["valid"]:
        # Unreachable column -> sentinel features
        return np.array([-1.0] * N_FEATURES, dtype=np.float32)

    # Features: [bias, log2 score, d_height, d_bump, d_filled, fill_ratio, tops_out]
    return np.array([
        1.0,
        float(np.log2(1 + quality["score_gained"])),
        float(quality["height_increase"]),
        float(quality["bumpiness_change"]),
        float(quality["filled_change"]),
        float(quality["fill_ratio_after"]),
        float(quality["tops_out"]),
    ], dtype=np.float32)


def enumerate_actions(game: Falling2048Game) -> List[int]:
    if game.active_block is None or game.is_over:
        return []
    return reachable_columns(game.grid, game.active_block)


def _print_progress(ep_idx: int, total: int, last_return: float, last_steps: int) -> None:
    width = 30
    filled = int(width * (ep_idx + 1) / max(1, total))
    bar = "=" * filled + "." * (width - filled)
    msg = f"\r[{bar}] {ep_idx + 1}/{total}  return={last_return:.1f}  drops={last_steps}"
    print(msg, end="", file=sys.stdout, flush=True)


def train_linear_q(episodes: int = 500, epsilon: float = 0.1, alpha: float = 1e-3, gamma: float = 0.99,
                   seed: int = 0, difficulty: Difficulty = Difficulty.EASY, max_drops: int = 2000,
                   progress: bool = True) -> np.ndarray:
    random.seed(seed)
    w = np.zeros((N_FEATURES,), dtype=np.float32)  # weights for features

    for ep in range(episodes):
        game = Falling2048Game(GameConfig(difficulty=difficulty, random_seed=seed + ep, spawn_delay_ms=0))
        done = False
        ep_return = 0.0
        steps = 0

        while not done and steps < max_drops:
            actions = enumerate_actions(game)
            if not actions:
                break
            # epsilon-greedy over reachable columns
            if random.random() < epsilon:
                a = random.choice(actions)
            else:
                a = max(actions, key=lambda col: float(np.dot(w, extract_features(game, col))))

            # Features BEFORE the drop changes the grid
            phi_sa = extract_features(game, a)

            score_before = game.score
            game.drop_into(a)
            reward = float(game.score - score_before)
            ep_return += reward
            steps += 1

            # TD target using next state's greedy evaluation
            next_actions = enumerate_actions(game)
            if game.is_over or not next_actions:
                target = reward
                done = True
            else:
                q_next_max = max(float(np.dot(w, extract_features(game, a2))) for a2 in next_actions)
                target = reward + gamma * q_next_max

            # Update
            q_sa = float(np.dot(w, phi_sa))
            td_error = target - q_sa
            w += alpha * td_error * phi_sa

        if progress:
            _print_progress(ep, episodes, ep_return, steps)
        elif (ep + 1) % 50 == 0:
            print(f"Episode {ep+1}/{episodes} return={ep_return:.1f} drops={steps}")

    if progress:
        print()
    return w


def main() -> None:
    p = argparse.ArgumentParser()
    p.add_argument("--episodes", type=int, default=500)
    p.add_argument("--epsilon", type=float, default=0.1)
    p.add_argument("--alpha", type=float, default=1e-3)
    p.add_argument("--gamma", type=float, default=0.99)
    p.add_argument("--seed", type=int, default=0)
    p.add_argument("--difficulty", choices=[d.value for d in Difficulty], default="easy")
    p.add_argument("--out", type=str, default="models/linear_q_weights.npy")
    p.add_argument("--no-progress", action="store_true")
    args = p.parse_args()

    w = train_linear_q(args.episodes, args.epsilon, args.alpha, args.gamma, args.seed,
                       difficulty=Difficulty(args.difficulty), progress=not args.no_progress)
    os.makedirs(os.path.dirname(args.out) or ".", exist_ok=True)
    np.save(args.out, w)
    print(f"Saved weights to {args.out}")


if __name__ == "__main__":  # pragma: no cover
    main()
