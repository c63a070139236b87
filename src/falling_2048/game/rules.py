from __future__ import annotations

from typing import List

from .grid import Block, GameGrid


# Movement is blocked by occupancy only; values never matter until the block locks.


def can_move_down(grid: GameGrid, block: Block) -> bool:
    if block.y >= grid.height - 1:
        return False
    return grid.is_empty(block.x, block.y + 1)


def can_move_left(grid: GameGrid, block: Block) -> bool:
    if block.x <= 0:
        return False
    return grid.is_empty(block.x - 1, block.y)


def can_move_right(grid: GameGrid, block: Block) -> bool:
    if block.x >= grid.width - 1:
        return False
    return grid.is_empty(block.x + 1, block.y)


def drop_row(grid: GameGrid, block: Block) -> int:
    """Lowest row the block reaches by falling straight down its column."""
    y = block.y
    while y < grid.height - 1 and grid.is_empty(block.x, y + 1):
        y += 1
    return y


def check_game_over(grid: GameGrid) -> bool:
    """True when anything rests in the spawn row of a settled grid."""
    return grid.row_occupied(0)


def reachable_columns(grid: GameGrid, block: Block) -> List[int]:
    """Columns the block can slide to along its current row, left to right."""
    left = block.x
    while left > 0 and grid.is_empty(left - 1, block.y):
        left -= 1
    right = block.x
    while right < grid.width - 1 and grid.is_empty(right + 1, block.y):
        right += 1
    return list(range(left, right + 1))
