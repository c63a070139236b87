from __future__ import annotations

import itertools
import logging
import random
from dataclasses import dataclass, replace
from enum import Enum, IntEnum
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

import numpy as np
from blinker import Signal

from .difficulty import DIFFICULTY_CONFIGS, Difficulty, DifficultyConfig
from .gravity import GravityResult
from .grid import Block, GameGrid, Position
from .merge import MergeResult
from .persistence import BestScoreStore, InMemoryBestScoreStore
from .resolve import settle
from .rules import (
    can_move_down,
    can_move_left,
    can_move_right,
    check_game_over,
    drop_row,
    reachable_columns,
)


logger = logging.getLogger(__name__)


class Action(IntEnum):
    LEFT = 0
    RIGHT = 1
    SOFT_DROP = 2
    HARD_DROP = 3
    NONE = 4


class Phase(Enum):
    SPAWNING = "spawning"
    FALLING = "falling"
    LOCKING = "locking"
    RESOLVING = "resolving"
    GAME_OVER = "game_over"


class RandomSource(Protocol):
    def random(self) -> float: ...


@dataclass
class GameConfig:
    difficulty: Difficulty = Difficulty.EASY
    random_seed: Optional[int] = None
    # Delay between the start of a session and its first block
    spawn_delay_ms: int = 300

    @property
    def tier(self) -> DifficultyConfig:
        return DIFFICULTY_CONFIGS[Difficulty(self.difficulty)]


@dataclass(frozen=True)
class GameSnapshot:
    """Read-only view of the game after a completed transition."""

    grid: Tuple[Tuple[Optional[Block], ...], ...]
    active_block: Optional[Block]
    next_value: int
    score: int
    best_score: int
    is_over: bool
    is_paused: bool
    is_fast_falling: bool
    phase: Phase
    difficulty: Difficulty
    merged_positions: Tuple[Position, ...] = ()

    @property
    def height(self) -> int:
        return len(self.grid)

    @property
    def width(self) -> int:
        return len(self.grid[0]) if self.grid else 0

    def blocks(self) -> List[Block]:
        return [block for row in self.grid for block in row if block is not None]

    def to_array(self) -> np.ndarray:
        state = np.zeros((self.height, self.width), dtype=np.int64)
        for block in self.blocks():
            state[block.y, block.x] = block.value
        if self.active_block is not None and not self.is_over:
            # Negative marks the falling block
            state[self.active_block.y, self.active_block.x] = -self.active_block.value
        return state


@dataclass(frozen=True)
class ResolveReport:
    rounds: int
    score_gained: int
    merged_positions: Tuple[Position, ...]
    game_over: bool


class Falling2048Game:
    """Turn controller for one falling-2048 session at a time.

    All state changes go through the public commands below. A command that
    cannot apply (blocked move, paused or finished game, resolution already
    running) returns ``False`` and leaves the state untouched.

    Observers connect to ``state_changed`` (sent with ``snapshot=`` after every
    accepted command) and ``resolve_pass`` (sent once per gravity/merge round with that
    round's ``grid``, after the whole resolution has been applied).
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        store: Optional[BestScoreStore] = None,
        rng: Optional[RandomSource] = None,
    ) -> None:
        self.config = config or GameConfig()
        self.store: BestScoreStore = store if store is not None else InMemoryBestScoreStore()
        self.rng: RandomSource = rng if rng is not None else random.Random(self.config.random_seed)
        self.state_changed = Signal("state_changed")
        self.resolve_pass = Signal("resolve_pass")
        self._ids = itertools.count(1)
        self._resolving = False
        self.best_score = self._load_best()
        self._start_session()

    # ---------- Session ----------
    @property
    def difficulty(self) -> Difficulty:
        return Difficulty(self.config.difficulty)

    @property
    def tier(self) -> DifficultyConfig:
        return self.config.tier

    @property
    def fall_interval_ms(self) -> int:
        if self.is_fast_falling:
            return self.tier.fast_fall_interval_ms
        return self.tier.fall_interval_ms

    @property
    def is_resolving(self) -> bool:
        return self._resolving

    def _start_session(self) -> None:
        tier = self.tier
        self.grid = GameGrid(tier.width, tier.height)
        self.active_block: Optional[Block] = None
        self.next_value = self._draw_value()
        self.score = 0
        self.is_over = False
        self.is_paused = False
        self.is_fast_falling = False
        self.last_merged_positions: Tuple[Position, ...] = ()
        self.blocks_placed = 0
        self.merges_total = 0
        self.resolve_rounds_total = 0
        self._fall_elapsed_ms = 0
        self._spawn_pending_ms: Optional[int] = None
        self.phase = Phase.SPAWNING
        if self.config.spawn_delay_ms > 0:
            self._spawn_pending_ms = self.config.spawn_delay_ms
        else:
            self._spawn()

    def reset(self) -> bool:
        """Start over at the same difficulty. The best score survives."""
        if self._resolving:
            return False
        logger.debug("Resetting %s session (score %d)", self.difficulty.value, self.score)
        self._start_session()
        self._emit()
        return True

    def set_difficulty(self, difficulty: Difficulty) -> bool:
        """Replace the session with a fresh one at another tier."""
        if self._resolving:
            return False
        self.config = replace(self.config, difficulty=Difficulty(difficulty))
        self.best_score = self._load_best()
        self._start_session()
        self._emit()
        return True

    # ---------- Randomness ----------
    def _draw_value(self) -> int:
        return self.tier.sample_value(self.rng.random())

    # ---------- Best score ----------
    def _load_best(self) -> int:
        try:
            return int(self.store.load(self.difficulty))
        except (OSError, ValueError) as exc:
            logger.warning("Could not load best score for %s: %s", self.difficulty.value, exc)
            return 0

    def _persist_best(self) -> None:
        try:
            self.store.save(self.difficulty, self.best_score)
        except (OSError, ValueError) as exc:
            # Best score is still tracked in memory for this session
            logger.warning("Could not save best score for %s: %s", self.difficulty.value, exc)

    # ---------- Spawning ----------
    def spawn_block(self) -> bool:
        if self._resolving or self.is_over or self.is_paused or self.active_block is not None:
            return False
        self._spawn()
        self._emit()
        return True

    def _spawn(self) -> None:
        self._spawn_pending_ms = None
        x = self.tier.spawn_column
        if not self.grid.is_empty(x, 0):
            logger.info("Spawn cell (%d, 0) is blocked", x)
            self._finish_game()
            return
        self.active_block = Block(id=next(self._ids), value=self.next_value, x=x, y=0, is_new=True)
        self.next_value = self._draw_value()
        self._fall_elapsed_ms = 0
        self.phase = Phase.FALLING

    def _finish_game(self) -> None:
        self.is_over = True
        self.is_fast_falling = False
        self.active_block = None
        self.phase = Phase.GAME_OVER
        self.best_score = max(self.score, self.best_score)
        self._persist_best()
        logger.info("Game over on %s with score %d (best %d)", self.difficulty.value, self.score, self.best_score)

    # ---------- Player commands ----------
    def _accepts_input(self) -> bool:
        return (
            not self._resolving
            and not self.is_over
            and not self.is_paused
            and self.active_block is not None
        )

    def move_left(self) -> bool:
        if not self._accepts_input() or not can_move_left(self.grid, self.active_block):
            return False
        block = self.active_block
        self.active_block = block.moved_to(block.x - 1, block.y)
        self._emit()
        return True

    def move_right(self) -> bool:
        if not self._accepts_input() or not can_move_right(self.grid, self.active_block):
            return False
        block = self.active_block
        self.active_block = block.moved_to(block.x + 1, block.y)
        self._emit()
        return True

    def move_down(self) -> bool:
        """Soft drop by one row. Never locks."""
        if not self._accepts_input() or not can_move_down(self.grid, self.active_block):
            return False
        self._descend()
        self._emit()
        return True

    def fall_step(self) -> bool:
        """One automatic-fall step: descend, then lock if the block has landed."""
        if not self._accepts_input():
            return False
        self._fall()
        self._emit()
        return True

    def hard_drop(self) -> bool:
        if not self._accepts_input():
            return False
        block = self.active_block
        self.active_block = replace(block, y=drop_row(self.grid, block), is_new=False)
        self._lock_and_resolve()
        self._emit()
        return True

    def start_fast_fall(self) -> bool:
        if self._resolving or self.is_over or self.is_paused or self.is_fast_falling:
            return False
        self.is_fast_falling = True
        self._emit()
        return True

    def stop_fast_fall(self) -> bool:
        if self._resolving or not self.is_fast_falling:
            return False
        self.is_fast_falling = False
        self._emit()
        return True

    def toggle_pause(self) -> bool:
        if self._resolving or self.is_over:
            return False
        self.is_paused = not self.is_paused
        if not self.is_paused:
            self._fall_elapsed_ms = 0
        self._emit()
        return True

    # ---------- Timer ----------
    def tick(self, elapsed_ms: int) -> bool:
        """Advance the automatic-fall timer by `elapsed_ms`.

        Runs a pending spawn once its delay has passed, otherwise one fall step
        per elapsed interval. Returns whether anything changed.
        """
        if self._resolving or self.is_over or self.is_paused:
            return False
        if self._spawn_pending_ms is not None:
            self._spawn_pending_ms -= elapsed_ms
            if self._spawn_pending_ms > 0:
                return False
            self._spawn()
            self._emit()
            return True
        if self.active_block is None:
            return False

        changed = False
        self._fall_elapsed_ms += elapsed_ms
        while self.active_block is not None and self._fall_elapsed_ms >= self.fall_interval_ms:
            self._fall_elapsed_ms -= self.fall_interval_ms
            changed = True
            if self._fall():
                break
        if changed:
            self._emit()
        return changed

    def _descend(self) -> None:
        block = self.active_block
        self.active_block = replace(block, y=block.y + 1, is_new=False)

    def _fall(self) -> bool:
        """Descend one row if possible; lock when resting. Returns whether it locked."""
        if can_move_down(self.grid, self.active_block):
            self._descend()
        if not can_move_down(self.grid, self.active_block):
            self._lock_and_resolve()
            return True
        return False

    # ---------- Lock and resolve ----------
    def _lock_and_resolve(self) -> Optional[ResolveReport]:
        """Lock the active block and settle the grid, then spawn or finish.

        The grid and score are settled before any ``resolve_pass`` receiver
        runs. If a receiver raises, the exception propagates only after the
        next block has spawned or the game has ended.
        """
        if self._resolving:
            return None
        block = self.active_block
        assert block is not None
        self.phase = Phase.LOCKING
        self.grid.clear_flags()
        self.grid.put(replace(block, is_new=False, is_merging=False))
        self.active_block = None
        self.blocks_placed += 1
        logger.debug("Locked %d at (%d, %d)", block.value, block.x, block.y)

        self.phase = Phase.RESOLVING
        report, passes = self._resolve()
        self._resolving = True
        try:
            for round_no, gravity, merge in passes:
                self.resolve_pass.send(
                    self,
                    round=round_no,
                    grid=merge.grid,
                    moves=list(gravity.moves),
                    merged_positions=list(merge.merged_positions),
                    score_gained=merge.score_gained,
                )
        finally:
            self._resolving = False
            self.last_merged_positions = report.merged_positions
            if report.game_over:
                self._finish_game()
            else:
                self._spawn()
        return report

    def _resolve(self) -> Tuple[ResolveReport, List[Tuple[int, GravityResult, MergeResult]]]:
        """Settle the grid and apply the score. Returns the report and every round."""
        passes: List[Tuple[int, GravityResult, MergeResult]] = []
        result = settle(self.grid, lambda round_no, gravity, merge: passes.append((round_no, gravity, merge)))
        self.grid = result.grid
        self.score += result.score_gained
        self.merges_total += len(result.merged_positions)
        self.resolve_rounds_total += result.rounds
        if self.score > self.best_score:
            self.best_score = self.score
            self._persist_best()
        logger.debug("Resolved in %d rounds, +%d points", result.rounds, result.score_gained)
        report = ResolveReport(
            rounds=result.rounds,
            score_gained=result.score_gained,
            merged_positions=tuple(result.merged_positions),
            game_over=check_game_over(self.grid),
        )
        return report, passes

    # ---------- Planning ----------
    def simulate_drop(self, column: int) -> Tuple[bool, int, Optional[GameGrid]]:
        """Preview dropping the active block into `column` without touching the game.

        Returns (reachable, score gained, settled grid). A column is reachable
        when the block can slide there along its current row.
        """
        block = self.active_block
        if block is None or self.is_over or column not in reachable_columns(self.grid, block):
            return False, 0, None
        temp = self.grid.copy()
        temp.clear_flags()
        landed = replace(block, x=column, y=block.y, is_new=False)
        temp.put(replace(landed, y=drop_row(temp, landed)))
        result = settle(temp)
        return True, result.score_gained, result.grid

    def drop_into(self, column: int) -> bool:
        """Slide the active block to `column` and hard drop it."""
        block = self.active_block
        if not self._accepts_input() or column not in reachable_columns(self.grid, block):
            return False
        self.active_block = block.moved_to(column, block.y)
        return self.hard_drop()

    # ---------- Observation ----------
    def subscribe(self, fn: Callable[..., Any]) -> Callable[..., Any]:
        """Connect `fn(sender, snapshot=...)` to every accepted transition."""
        self.state_changed.connect(fn, weak=False)
        return fn

    def _emit(self) -> None:
        if self.state_changed.receivers:
            self.state_changed.send(self, snapshot=self.snapshot())

    def snapshot(self) -> GameSnapshot:
        return GameSnapshot(
            grid=self.grid.rows(),
            active_block=self.active_block,
            next_value=self.next_value,
            score=self.score,
            best_score=self.best_score,
            is_over=self.is_over,
            is_paused=self.is_paused,
            is_fast_falling=self.is_fast_falling,
            phase=self.phase,
            difficulty=self.difficulty,
            merged_positions=self.last_merged_positions,
        )

    def get_state(self) -> np.ndarray:
        return self.snapshot().to_array()

    # ---------- Agent entry point ----------
    def step(self, action: Action) -> Tuple[np.ndarray, int, bool, Dict[str, Any]]:
        """Apply one discrete action; returns (state, score delta, done, info)."""
        if self.is_over:
            return self.get_state(), 0, True, {"accepted": False, "score": self.score}

        before = self.score
        action = Action(action)
        if action == Action.LEFT:
            accepted = self.move_left()
        elif action == Action.RIGHT:
            accepted = self.move_right()
        elif action == Action.SOFT_DROP:
            accepted = self.fall_step()
        elif action == Action.HARD_DROP:
            accepted = self.hard_drop()
        else:
            accepted = True

        info = {
            "accepted": accepted,
            "score": self.score,
            "blocks_placed": self.blocks_placed,
        }
        return self.get_state(), self.score - before, self.is_over, info

    def get_game_stats(self) -> dict:
        return {
            "final_score": self.score,
            "best_score": self.best_score,
            "blocks_placed": self.blocks_placed,
            "merges": self.merges_total,
            "resolve_rounds": self.resolve_rounds_total,
            "highest_tile": self.grid.max_value(),
            "avg_score_per_block": self.score / max(1, self.blocks_placed),
        }
