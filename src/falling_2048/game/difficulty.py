from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple

from .grid import is_power_of_two


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


SpawnWeights = Tuple[Tuple[int, float], ...]


@dataclass(frozen=True)
class DifficultyConfig:
    """Everything a difficulty tier fixes for the length of one session."""

    width: int
    height: int
    fall_interval_ms: int
    fast_fall_interval_ms: int
    spawn_weights: SpawnWeights

    def __post_init__(self) -> None:
        if self.width < 1 or self.height < 2:
            raise ValueError(f"grid too small: {self.width}x{self.height}")
        if self.fall_interval_ms <= 0 or self.fast_fall_interval_ms <= 0:
            raise ValueError("fall intervals must be positive")
        if not self.spawn_weights:
            raise ValueError("spawn_weights must not be empty")
        for value, weight in self.spawn_weights:
            if not is_power_of_two(value):
                raise ValueError(f"spawn value must be a power of two >= 2, got {value}")
            if weight <= 0:
                raise ValueError(f"spawn weight for {value} must be positive, got {weight}")

    @property
    def spawn_column(self) -> int:
        return self.width // 2

    @property
    def spawn_values(self) -> Tuple[int, ...]:
        return tuple(value for value, _ in self.spawn_weights)

    def sample_value(self, u: float) -> int:
        return sample_spawn_value(self.spawn_weights, u)


def sample_spawn_value(weights: SpawnWeights, u: float) -> int:
    """Pick a spawn value from a uniform draw `u` in [0, 1).

    Returns the first value whose cumulative weight exceeds `u`. When rounding
    leaves `u` above the last cumulative weight, the most likely value wins.
    """
    cumulative = 0.0
    for value, weight in weights:
        cumulative += weight
        if u < cumulative:
            return value
    return max(weights, key=lambda item: item[1])[0]


DIFFICULTY_CONFIGS: Dict[Difficulty, DifficultyConfig] = {
    Difficulty.EASY: DifficultyConfig(
        width=5,
        height=8,
        fall_interval_ms=1000,
        fast_fall_interval_ms=50,
        spawn_weights=((2, 0.75), (4, 0.25)),
    ),
    Difficulty.MEDIUM: DifficultyConfig(
        width=5,
        height=10,
        fall_interval_ms=800,
        fast_fall_interval_ms=50,
        spawn_weights=((2, 0.75), (4, 0.20), (8, 0.05)),
    ),
    Difficulty.HARD: DifficultyConfig(
        width=6,
        height=12,
        fall_interval_ms=500,
        fast_fall_interval_ms=40,
        spawn_weights=((2, 0.60), (4, 0.25), (8, 0.10), (16, 0.05)),
    ),
}
