from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Tuple

from .grid import GameGrid, Position


@dataclass
class GravityResult:
    grid: GameGrid
    moved: bool
    moves: List[Tuple[Position, Position]] = field(default_factory=list)


def apply_gravity(grid: GameGrid) -> GravityResult:
    """Drop every settled block onto whatever is beneath it.

    Columns are independent. Each column is scanned from the row above the
    bottom upward, so a block always lands on an already settled one and a
    single call leaves the grid stable. The input grid is not modified.
    """
    new_grid = grid.copy()
    moves: List[Tuple[Position, Position]] = []

    for col in range(new_grid.width):
        for row in range(new_grid.height - 2, -1, -1):
            if new_grid.is_empty(col, row):
                continue
            target = row
            while target < new_grid.height - 1 and new_grid.is_empty(col, target + 1):
                target += 1
            if target != row:
                new_grid.move((col, row), (col, target))
                moves.append(((col, row), (col, target)))

    return GravityResult(grid=new_grid, moved=bool(moves), moves=moves)
