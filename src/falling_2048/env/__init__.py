"""Gymnasium environments for Falling 2048."""

from __future__ import annotations

from gymnasium.envs.registration import register

# One environment per difficulty tier
register(
    id="Falling2048-Easy-v0",
    entry_point="falling_2048.env.falling_2048_env:Falling2048Env",
    kwargs={"difficulty": "easy"},
)

register(
    id="Falling2048-Medium-v0",
    entry_point="falling_2048.env.falling_2048_env:Falling2048Env",
    kwargs={"difficulty": "medium"},
)

register(
    id="Falling2048-Hard-v0",
    entry_point="falling_2048.env.falling_2048_env:Falling2048Env",
    kwargs={"difficulty": "hard"},
)

__all__ = ["Falling2048-Easy-v0", "Falling2048-Medium-v0", "Falling2048-Hard-v0"]
