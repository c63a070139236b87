from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterator, Optional, Sequence, Tuple

import numpy as np


Position = Tuple[int, int]


def is_power_of_two(value: int) -> bool:
    return value >= 2 and (value & (value - 1)) == 0


@dataclass(frozen=True)
class Block:
    """A numbered block. `is_new` and `is_merging` are presentation hints only."""

    id: int
    value: int
    x: int
    y: int
    is_new: bool = False
    is_merging: bool = False

    @property
    def position(self) -> Position:
        return (self.x, self.y)

    def moved_to(self, x: int, y: int) -> "Block":
        return replace(self, x=x, y=y)


class GameGrid:
    """Discrete 2D grid of optional blocks.

    Cells are stored in three parallel arrays indexed ``[y, x]``: the block
    value (0 for empty), the block id and the merge flag. ``y = 0`` is the
    spawn row at the top.
    """

    def __init__(self, width: int, height: int) -> None:
        if width < 1 or height < 1:
            raise ValueError(f"grid must be at least 1x1, got {width}x{height}")
        self.width = int(width)
        self.height = int(height)
        self.values = np.zeros((self.height, self.width), dtype=np.int64)
        self.ids = np.zeros((self.height, self.width), dtype=np.int64)
        self.merging = np.zeros((self.height, self.width), dtype=np.bool_)

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[int]], first_id: int = 1) -> "GameGrid":
        """Build a grid from nested lists of values, 0 meaning empty.

        Ids are handed out row-major starting at `first_id`.
        """
        height = len(rows)
        width = len(rows[0]) if height else 0
        grid = cls(width, height)
        next_id = first_id
        for y, row in enumerate(rows):
            if len(row) != width:
                raise ValueError("all rows must have the same width")
            for x, value in enumerate(row):
                if value:
                    grid.put(Block(id=next_id, value=int(value), x=x, y=y))
                    next_id += 1
        return grid

    def is_inside(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def _check(self, x: int, y: int) -> None:
        if not self.is_inside(x, y):
            raise IndexError(f"cell ({x}, {y}) outside {self.width}x{self.height} grid")

    def is_empty(self, x: int, y: int) -> bool:
        self._check(x, y)
        return bool(self.values[y, x] == 0)

    def get(self, x: int, y: int) -> Optional[Block]:
        self._check(x, y)
        value = int(self.values[y, x])
        if value == 0:
            return None
        return Block(
            id=int(self.ids[y, x]),
            value=value,
            x=x,
            y=y,
            is_merging=bool(self.merging[y, x]),
        )

    def put(self, block: Block) -> None:
        self._check(block.x, block.y)
        if not is_power_of_two(block.value):
            raise ValueError(f"block value must be a power of two >= 2, got {block.value}")
        if self.values[block.y, block.x] != 0:
            raise ValueError(f"cell ({block.x}, {block.y}) is already occupied")
        self.values[block.y, block.x] = block.value
        self.ids[block.y, block.x] = block.id
        self.merging[block.y, block.x] = block.is_merging

    def remove(self, x: int, y: int) -> Optional[Block]:
        block = self.get(x, y)
        if block is not None:
            self.values[y, x] = 0
            self.ids[y, x] = 0
            self.merging[y, x] = False
        return block

    def move(self, src: Position, dst: Position) -> None:
        """Relocate the block at `src` to the empty cell `dst`."""
        block = self.remove(*src)
        if block is None:
            raise ValueError(f"no block at {src}")
        self.put(block.moved_to(*dst))

    def blocks(self) -> Iterator[Block]:
        """Yield every block, row-major from the top."""
        for y, x in zip(*np.nonzero(self.values)):
            block = self.get(int(x), int(y))
            assert block is not None
            yield block

    def row_occupied(self, y: int) -> bool:
        self._check(0, y)
        return bool(np.any(self.values[y, :] != 0))

    def occupied_count(self) -> int:
        return int(np.count_nonzero(self.values))

    def max_value(self) -> int:
        return int(self.values.max()) if self.values.size else 0

    def clear_flags(self) -> None:
        self.merging.fill(False)

    def copy(self) -> "GameGrid":
        new_grid = GameGrid(self.width, self.height)
        new_grid.values = self.values.copy()
        new_grid.ids = self.ids.copy()
        new_grid.merging = self.merging.copy()
        return new_grid

    def same_layout(self, other: "GameGrid") -> bool:
        return (
            self.width == other.width
            and self.height == other.height
            and np.array_equal(self.values, other.values)
            and np.array_equal(self.ids, other.ids)
        )

    def rows(self) -> Tuple[Tuple[Optional[Block], ...], ...]:
        return tuple(
            tuple(self.get(x, y) for x in range(self.width)) for y in range(self.height)
        )

    def to_text(self, active: Optional[Block] = None) -> str:
        """Render the grid as text, one row per line; empty cells are dots."""
        cell_width = max(len(str(self.max_value())), len(str(active.value)) if active else 1, 1)
        lines = []
        for y in range(self.height):
            cells = []
            for x in range(self.width):
                if active is not None and active.position == (x, y):
                    cells.append(str(active.value).rjust(cell_width))
                elif self.values[y, x]:
                    cells.append(str(int(self.values[y, x])).rjust(cell_width))
                else:
                    cells.append("·".rjust(cell_width))
            lines.append(" ".join(cells))
        return "\n".join(lines)
