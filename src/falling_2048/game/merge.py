from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import List, Set

from .grid import Block, GameGrid, Position


@dataclass
class MergeResult:
    grid: GameGrid
    merged: bool
    score_gained: int = 0
    merged_positions: List[Position] = field(default_factory=list)


def find_and_merge(grid: GameGrid) -> MergeResult:
    """Run one merge pass over a gravity-stable grid.

    Cells are visited bottom row first, left to right. A block merges into an
    equal block directly below it, otherwise it absorbs an equal block to its
    right. Every cell joins at most one merge per pass, so a freshly doubled
    block that now matches a neighbour waits for the next pass. Score is the
    sum of the resulting values. Merged blocks come out flagged `is_merging`;
    flags already on the grid are left for the caller to clear. The input grid
    is not modified.
    """
    new_grid = grid.copy()
    processed: Set[Position] = set()
    merged_positions: List[Position] = []
    score_gained = 0

    for row in range(new_grid.height - 1, -1, -1):
        for col in range(new_grid.width):
            block = new_grid.get(col, row)
            if block is None or (col, row) in processed:
                continue

            if row < new_grid.height - 1:
                below = new_grid.get(col, row + 1)
                if below is not None and below.value == block.value and (col, row + 1) not in processed:
                    new_grid.remove(col, row)
                    new_grid.remove(col, row + 1)
                    new_grid.put(_doubled(below))
                    score_gained += below.value * 2
                    merged_positions.append((col, row + 1))
                    processed.add((col, row))
                    processed.add((col, row + 1))
                    continue

            if col < new_grid.width - 1:
                right = new_grid.get(col + 1, row)
                if right is not None and right.value == block.value and (col + 1, row) not in processed:
                    new_grid.remove(col + 1, row)
                    new_grid.remove(col, row)
                    new_grid.put(_doubled(block))
                    score_gained += block.value * 2
                    merged_positions.append((col, row))
                    processed.add((col, row))
                    processed.add((col + 1, row))

    return MergeResult(
        grid=new_grid,
        merged=bool(merged_positions),
        score_gained=score_gained,
        merged_positions=merged_positions,
    )


def _doubled(block: Block) -> Block:
    return replace(block, value=block.value * 2, is_new=False, is_merging=True)
