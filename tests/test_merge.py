import numpy as np

from falling_2048.game import GameGrid, apply_gravity, find_and_merge

from tests.helpers import assert_occupancy


def test_no_merge_when_values_differ():
    grid = GameGrid.from_rows([
        [0, 0, 0],
        [4, 0, 0],
        [2, 8, 2],
    ])
    result = find_and_merge(grid)
    assert result.merged is False
    assert result.score_gained == 0
    assert result.merged_positions == []
    assert result.grid.same_layout(grid)


def test_vertical_merge_keeps_lower_block():
    grid = GameGrid.from_rows([
        [0, 0],
        [2, 0],
        [2, 0],
    ])
    lower_id = grid.get(0, 2).id
    result = find_and_merge(grid)
    assert result.merged is True
    assert result.score_gained == 4
    assert result.merged_positions == [(0, 2)]
    assert result.grid.get(0, 1) is None
    merged = result.grid.get(0, 2)
    assert merged.value == 4 and merged.id == lower_id and merged.is_merging


def test_horizontal_merge_keeps_left_block():
    grid = GameGrid.from_rows([[0, 8, 8]])
    left_id = grid.get(1, 0).id
    result = find_and_merge(grid)
    assert result.score_gained == 16
    assert result.merged_positions == [(1, 0)]
    assert result.grid.get(2, 0) is None
    assert result.grid.get(1, 0).value == 16
    assert result.grid.get(1, 0).id == left_id


def test_vertical_merge_wins_over_horizontal():
    grid = GameGrid.from_rows([
        [4, 4],
        [4, 2],
    ])
    result = find_and_merge(grid)
    # Bottom-left is visited first but has nothing equal below or right;
    # the top-left block then prefers its lower neighbour.
    np.testing.assert_array_equal(result.grid.values, np.array([
        [0, 4],
        [8, 2],
    ]))
    assert result.merged_positions == [(0, 1)]
    assert result.score_gained == 8


def test_each_cell_merges_once_per_pass():
    grid = GameGrid.from_rows([[2, 2, 2, 2, 2]])
    result = find_and_merge(grid)
    np.testing.assert_array_equal(result.grid.values, np.array([[4, 0, 4, 0, 2]]))
    assert result.merged_positions == [(0, 0), (2, 0)]
    assert result.score_gained == 8


def test_chained_merge_is_deferred_to_next_pass():
    grid = GameGrid.from_rows([
        [2],
        [2],
        [4],
    ])
    first = find_and_merge(grid)
    # 2+2 lands on the middle cell as 4; it does not merge with the 4 below yet
    np.testing.assert_array_equal(first.grid.values, np.array([[0], [4], [4]]))
    assert first.score_gained == 4
    second = find_and_merge(apply_gravity(first.grid).grid)
    np.testing.assert_array_equal(second.grid.values, np.array([[0], [0], [8]]))
    assert second.score_gained == 8


def test_freshly_merged_block_below_is_left_alone():
    grid = GameGrid.from_rows([
        [4, 0],
        [2, 2],
    ])
    result = find_and_merge(grid)
    # The bottom pair becomes a 4 under the top 4, but that cell already merged this pass
    np.testing.assert_array_equal(result.grid.values, np.array([[4, 0], [4, 0]]))
    assert result.score_gained == 4
    assert result.merged_positions == [(0, 1)]


def test_merge_is_deterministic():
    rng = np.random.default_rng(11)
    for _ in range(30):
        values = rng.choice([0, 2, 2, 4, 8], size=(8, 5))
        grid = apply_gravity(GameGrid.from_rows(values.tolist())).grid
        a = find_and_merge(grid)
        b = find_and_merge(grid)
        assert a.grid.same_layout(b.grid)
        assert a.score_gained == b.score_gained
        assert set(a.merged_positions) == set(b.merged_positions)
        assert a.score_gained == sum(a.grid.get(x, y).value for x, y in a.merged_positions)
        assert_occupancy(a.grid)


def test_merge_does_not_mutate_input():
    grid = GameGrid.from_rows([[2, 2]])
    find_and_merge(grid)
    assert grid.get(1, 0).value == 2
