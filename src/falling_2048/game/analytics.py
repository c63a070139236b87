from __future__ import annotations

from typing import List

import numpy as np

from .core import Falling2048Game
from .grid import GameGrid


class GameAnalytics:
    """Helpers for analyzing grids and candidate drops"""

    @staticmethod
    def get_board_features(grid: GameGrid) -> dict:
        occupied = grid.values != 0
        height_map: List[int] = []
        for col in range(grid.width):
            filled = np.flatnonzero(occupied[:, col])
            height_map.append(int(grid.height - filled[0]) if filled.size else 0)
        values = grid.values
        horizontal = _one_step_apart(values[:, :-1], values[:, 1:])
        vertical = _one_step_apart(values[:-1, :], values[1:, :])
        return {
            "max_height": max(height_map) if height_map else 0,
            "avg_height": float(np.mean(height_map)) if height_map else 0.0,
            "bumpiness": sum(abs(height_map[i] - height_map[i + 1]) for i in range(len(height_map) - 1)),
            "filled_cells": int(occupied.sum()),
            "fill_ratio": float(occupied.sum()) / float(grid.width * grid.height),
            "highest_tile": grid.max_value(),
            # Neighbours one doubling apart, i.e. one merge away from matching
            "near_pairs": int(horizontal.sum() + vertical.sum()),
            "spawn_row_free": not grid.row_occupied(0),
        }

    @staticmethod
    def evaluate_drop(game: Falling2048Game, column: int) -> dict:
        reachable, gained, settled = game.simulate_drop(column)
        if not reachable or settled is None:
            return {"valid": False}
        before = GameAnalytics.get_board_features(game.grid)
        after = GameAnalytics.get_board_features(settled)
        return {
            "valid": True,
            "score_gained": gained,
            "height_increase": after["max_height"] - before["max_height"],
            "bumpiness_change": after["bumpiness"] - before["bumpiness"],
            "filled_change": after["filled_cells"] - before["filled_cells"],
            "fill_ratio_after": after["fill_ratio"],
            "tops_out": not after["spawn_row_free"],
        }


def _one_step_apart(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    filled = (a != 0) & (b != 0)
    return filled & ((a == b * 2) | (b == a * 2))
