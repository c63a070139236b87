from __future__ import annotations

from typing import Iterable, List, Optional

from falling_2048.game import (
    Block,
    Difficulty,
    Falling2048Game,
    GameConfig,
    GameGrid,
    InMemoryBestScoreStore,
)


class FixedRandom:
    """Uniform source that replays the given draws, repeating the last one."""

    def __init__(self, draws: Iterable[float] = (0.0,)) -> None:
        self.draws: List[float] = list(draws) or [0.0]
        self.calls = 0

    def random(self) -> float:
        value = self.draws[min(self.calls, len(self.draws) - 1)]
        self.calls += 1
        return value


class FailingStore:
    def __init__(self, fail_load: bool = True, fail_save: bool = True) -> None:
        self.fail_load = fail_load
        self.fail_save = fail_save
        self.save_attempts = 0

    def load(self, difficulty):
        if self.fail_load:
            raise OSError("storage unavailable")
        return 0

    def save(self, difficulty, score):
        self.save_attempts += 1
        if self.fail_save:
            raise OSError("storage unavailable")


def make_game(difficulty: Difficulty = Difficulty.EASY, draws: Iterable[float] = (0.0,),
              spawn_delay_ms: int = 0, store=None) -> Falling2048Game:
    """Game with deterministic spawns (value 2 by default) and no spawn delay."""
    return Falling2048Game(
        GameConfig(difficulty=difficulty, spawn_delay_ms=spawn_delay_ms),
        store=store if store is not None else InMemoryBestScoreStore(),
        rng=FixedRandom(draws),
    )


def place(grid: GameGrid, value: int, x: int, y: int, block_id: Optional[int] = None) -> Block:
    block = Block(id=block_id if block_id is not None else 1000 + y * grid.width + x, value=value, x=x, y=y)
    grid.put(block)
    return block


def assert_occupancy(game_or_grid) -> None:
    grid = getattr(game_or_grid, "grid", game_or_grid)
    seen_ids = set()
    for y in range(grid.height):
        for x in range(grid.width):
            block = grid.get(x, y)
            if block is None:
                continue
            assert (block.x, block.y) == (x, y)
            assert block.value >= 2 and block.value & (block.value - 1) == 0
            assert block.id not in seen_ids
            seen_ids.add(block.id)
    active = getattr(game_or_grid, "active_block", None)
    if active is not None:
        assert grid.is_empty(active.x, active.y)
        assert active.id not in seen_ids
