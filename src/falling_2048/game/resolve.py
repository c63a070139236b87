from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional

from .gravity import GravityResult, apply_gravity
from .grid import GameGrid, Position
from .merge import MergeResult, find_and_merge


PassCallback = Callable[[int, GravityResult, MergeResult], None]


@dataclass
class SettleResult:
    grid: GameGrid
    rounds: int
    score_gained: int = 0
    merged_positions: List[Position] = field(default_factory=list)


def settle(grid: GameGrid, on_pass: Optional[PassCallback] = None) -> SettleResult:
    """Alternate gravity and merge passes until one round changes nothing.

    `on_pass(round, gravity, merge)` is called after every round, including
    the final quiet one.
    """
    rounds = 0
    score_gained = 0
    merged: List[Position] = []
    while True:
        rounds += 1
        gravity = apply_gravity(grid)
        merge = find_and_merge(gravity.grid)
        grid = merge.grid
        score_gained += merge.score_gained
        merged.extend(merge.merged_positions)
        if on_pass is not None:
            on_pass(rounds, gravity, merge)
        if not (gravity.moved or merge.merged):
            break
    return SettleResult(grid=grid, rounds=rounds, score_gained=score_gained, merged_positions=merged)
