from __future__ import annotations

import numpy as np
import gymnasium as gym
from gymnasium import spaces


class ResampleInvalidActionWrapper(gym.Wrapper):
    """If a sampled action is blocked, resample uniformly among allowed ones.

    Useful when training with vanilla PPO (no action masking).
    """

    def step(self, action):  # type: ignore[override]
        if isinstance(self.action_space, spaces.Discrete):
            mask = self.get_action_mask()
            if 0 <= int(action) < mask.shape[0] and not bool(mask[int(action)]):
                valid_idxs = np.flatnonzero(mask)
                if valid_idxs.size > 0:
                    action = int(self.np_random.choice(valid_idxs))
        return self.env.step(action)

    def get_action_mask(self) -> np.ndarray:
        return self.env.unwrapped.get_action_mask()


class Log2ObservationScaler(gym.ObservationWrapper):
    """Scales grid exponents into [0, 1] floats for networks that expect them."""

    def __init__(self, env: gym.Env, max_exponent: int = 17):
        super().__init__(env)
        self.max_exponent = float(max_exponent)
        inner = env.observation_space
        assert isinstance(inner, spaces.Dict)
        grid_shape = inner["grid"].shape
        self.observation_space = spaces.Dict(
            {
                "grid": spaces.Box(low=0.0, high=1.0, shape=grid_shape, dtype=np.float32),
                "active": inner["active"],
                "next": inner["next"],
            }
        )

    def observation(self, observation):  # type: ignore[override]
        scaled = dict(observation)
        scaled["grid"] = observation["grid"].astype(np.float32) / self.max_exponent
        return scaled
