from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

import numpy as np
import gymnasium as gym
from gymnasium import spaces

from falling_2048.game import (
    Action,
    Difficulty,
    Falling2048Game,
    GameAnalytics,
    GameConfig,
    can_move_left,
    can_move_right,
)


# 2**17 is far beyond anything reachable on the largest tier
MAX_EXPONENT = 17


def _exponents(values: np.ndarray) -> np.ndarray:
    out = np.zeros(values.shape, dtype=np.int8)
    filled = values > 0
    out[filled] = np.log2(values[filled]).astype(np.int8)
    return out


def _exponent(value: int) -> int:
    return int(value).bit_length() - 1 if value > 0 else 0


def _compute_action_mask(game: Falling2048Game) -> np.ndarray:
    mask = np.zeros((len(Action),), dtype=np.bool_)
    block = game.active_block
    if game.is_over or block is None:
        mask[Action.NONE] = True
        return mask
    mask[Action.LEFT] = can_move_left(game.grid, block)
    mask[Action.RIGHT] = can_move_right(game.grid, block)
    mask[Action.SOFT_DROP] = True
    mask[Action.HARD_DROP] = True
    mask[Action.NONE] = True
    return mask


class Falling2048Env(gym.Env):
    """One env step is one player action followed by one automatic fall step.

    Actions follow :class:`falling_2048.game.Action`. Drops already move the
    block down, so they are not followed by an extra fall step.
    """

    metadata = {"render_modes": ["rgb_array"], "render_fps": 10}

    def __init__(self, difficulty: Difficulty | str = Difficulty.EASY,
                 render_mode: Optional[str] = None,
                 reward_weights: Optional[Dict[str, float]] = None,
                 invalid_action_penalty: float = -0.1,
                 step_penalty: float = 0.0,
                 terminal_penalty: float = -10.0,
                 max_episode_steps: int = 5000) -> None:
        super().__init__()
        config = GameConfig(difficulty=Difficulty(difficulty), spawn_delay_ms=0)
        self.game = Falling2048Game(config)
        self.render_mode = render_mode

        self.invalid_action_penalty = float(invalid_action_penalty)
        self.step_penalty = float(step_penalty)
        self.terminal_penalty = float(terminal_penalty)
        self.max_episode_steps = int(max_episode_steps)
        self.reward_weights: Dict[str, float] = {
            "score": 0.1,       # per point of merge score
            "height": 0.5,      # penalize stack height increase
        }
        if reward_weights:
            self.reward_weights.update({k: float(v) for k, v in reward_weights.items()})

        tier = self.game.tier
        self.observation_space = spaces.Dict(
            {
                "grid": spaces.Box(low=0, high=MAX_EXPONENT, shape=(tier.height, tier.width), dtype=np.int8),
                # x, y and exponent of the falling block (all 0 when there is none)
                "active": spaces.Box(
                    low=0,
                    high=max(tier.width, tier.height, MAX_EXPONENT),
                    shape=(3,),
                    dtype=np.int16,
                ),
                "next": spaces.Discrete(MAX_EXPONENT + 1),
            }
        )
        self.action_space = spaces.Discrete(len(Action))

        self._last_obs: Optional[Dict[str, Any]] = None
        self._steps = 0

    def _get_obs(self) -> Dict[str, Any]:
        active = np.zeros((3,), dtype=np.int16)
        block = self.game.active_block
        if block is not None:
            active[:] = (block.x, block.y, _exponent(block.value))
        return {
            "grid": _exponents(self.game.grid.values),
            "active": active,
            "next": _exponent(self.game.next_value),
        }

    def _get_info(self) -> Dict[str, Any]:
        return {
            "action_mask": _compute_action_mask(self.game),
            "score": self.game.score,
            "best_score": self.game.best_score,
            "steps": self._steps,
        }

    def get_action_mask(self) -> np.ndarray:
        return _compute_action_mask(self.game)

    def reset(self, *, seed: Optional[int] = None, options: Optional[dict] = None) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        super().reset(seed=seed)
        # Route spawn sampling through the env's seeded generator
        self.game.rng = self.np_random
        self.game.reset()
        self._steps = 0
        obs = self._get_obs()
        self._last_obs = obs
        return obs, self._get_info()

    def step(self, action: int | Action):
        action = Action(int(action))
        height_before = GameAnalytics.get_board_features(self.game.grid)["max_height"]

        _, score_delta, _, game_info = self.game.step(action)
        if not self.game.is_over and action not in (Action.SOFT_DROP, Action.HARD_DROP):
            score_before_fall = self.game.score
            self.game.fall_step()
            score_delta += self.game.score - score_before_fall

        height_after = GameAnalytics.get_board_features(self.game.grid)["max_height"]

        reward_components: Dict[str, float] = {
            "score": self.reward_weights["score"] * float(score_delta),
            "height": -self.reward_weights["height"] * float(max(0, height_after - height_before)),
            "step": self.step_penalty,
        }
        if not game_info["accepted"]:
            reward_components["invalid"] = self.invalid_action_penalty

        terminated = bool(self.game.is_over)
        self._steps += 1
        truncated = self._steps >= self.max_episode_steps
        if terminated:
            reward_components["terminal"] = self.terminal_penalty

        reward = float(sum(reward_components.values()))
        obs = self._get_obs()
        info = self._get_info()
        info["reward_components"] = reward_components
        info["engine_score_delta"] = float(score_delta)
        self._last_obs = obs
        return obs, reward, terminated, truncated, info

    def render(self) -> Optional[np.ndarray]:
        if self.render_mode != "rgb_array":
            return None
        state = self.game.get_state()
        cell = 16
        h, w = state.shape
        img = np.zeros((h * cell, w * cell, 3), dtype=np.uint8)
        for y in range(h):
            for x in range(w):
                img[y * cell : (y + 1) * cell - 1, x * cell : (x + 1) * cell - 1, :] = _color_for_value(int(state[y, x]))
        return img

    def close(self) -> None:
        pass


def _color_for_value(v: int) -> Tuple[int, int, int]:
    palette = {
        0: (30, 30, 36),
        2: (59, 130, 246),
        4: (6, 182, 212),
        8: (16, 185, 129),
        16: (34, 197, 94),
        32: (168, 85, 247),
        64: (139, 92, 246),
        128: (245, 158, 11),
        256: (234, 179, 8),
        512: (249, 115, 22),
        1024: (244, 63, 94),
        2048: (251, 191, 36),
    }
    if v < 0:
        # Falling block is drawn brighter
        r, g, b = palette.get(-v, (156, 163, 175))
        return (min(255, r + 60), min(255, g + 60), min(255, b + 60))
    return palette.get(v, (156, 163, 175))
