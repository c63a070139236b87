"""Game module for Falling 2048.

Exports the simulation engine and supporting pieces:
- GameGrid / Block: Grid representation of settled blocks
- can_move_* / drop_row / check_game_over: Movement and game-over rules
- apply_gravity: Collapses gaps beneath settled blocks
- find_and_merge: One pass of equal-value merging
- settle: Gravity and merge passes until the grid is stable
- Difficulty / DifficultyConfig: Per-tier grid size, fall speed and spawn odds
- Falling2048Game: Turn controller and session state
- GameAnalytics: Grid features and drop previews for agents
"""

from .grid import Block, GameGrid, Position
from .rules import (
    can_move_down,
    can_move_left,
    can_move_right,
    check_game_over,
    drop_row,
    reachable_columns,
)
from .gravity import GravityResult, apply_gravity
from .merge import MergeResult, find_and_merge
from .resolve import SettleResult, settle
from .difficulty import DIFFICULTY_CONFIGS, Difficulty, DifficultyConfig, sample_spawn_value
from .persistence import BestScoreStore, InMemoryBestScoreStore, JsonFileBestScoreStore
from .core import Action, Falling2048Game, GameConfig, GameSnapshot, Phase, ResolveReport
from .analytics import GameAnalytics

__all__ = [
    "Block",
    "GameGrid",
    "Position",
    "can_move_down",
    "can_move_left",
    "can_move_right",
    "check_game_over",
    "drop_row",
    "reachable_columns",
    "GravityResult",
    "apply_gravity",
    "MergeResult",
    "find_and_merge",
    "SettleResult",
    "settle",
    "DIFFICULTY_CONFIGS",
    "Difficulty",
    "DifficultyConfig",
    "sample_spawn_value",
    "BestScoreStore",
    "InMemoryBestScoreStore",
    "JsonFileBestScoreStore",
    "Action",
    "Falling2048Game",
    "GameConfig",
    "GameSnapshot",
    "Phase",
    "ResolveReport",
    "GameAnalytics",
]
