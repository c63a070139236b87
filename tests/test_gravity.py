import numpy as np

from falling_2048.game import GameGrid, apply_gravity

from tests.helpers import assert_occupancy


def test_gravity_on_settled_grid_is_noop():
    grid = GameGrid.from_rows([
        [0, 0, 0],
        [0, 4, 0],
        [2, 8, 0],
    ])
    result = apply_gravity(grid)
    assert result.moved is False
    assert result.moves == []
    assert result.grid.same_layout(grid)


def test_gravity_collapses_gaps_per_column():
    grid = GameGrid.from_rows([
        [2, 0, 16],
        [0, 4, 0],
        [0, 0, 0],
        [0, 8, 0],
    ])
    result = apply_gravity(grid)
    assert result.moved is True
    np.testing.assert_array_equal(result.grid.values, np.array([
        [0, 0, 0],
        [0, 0, 0],
        [0, 4, 0],
        [2, 8, 16],
    ]))
    assert_occupancy(result.grid)


def test_gravity_keeps_column_order_and_ids():
    grid = GameGrid.from_rows([
        [2],
        [0],
        [4],
        [0],
        [0],
    ])
    top_id = grid.get(0, 0).id
    mid_id = grid.get(0, 2).id
    result = apply_gravity(grid)
    assert result.grid.get(0, 4).id == mid_id
    assert result.grid.get(0, 3).id == top_id
    assert result.grid.get(0, 3).y == 3
    assert ((0, 2), (0, 4)) in result.moves
    assert ((0, 0), (0, 3)) in result.moves


def test_gravity_does_not_mutate_input():
    grid = GameGrid.from_rows([[2], [0]])
    apply_gravity(grid)
    assert grid.get(0, 0) is not None
    assert grid.get(0, 1) is None


def test_gravity_is_idempotent():
    rng = np.random.default_rng(7)
    for _ in range(50):
        values = rng.choice([0, 0, 0, 2, 4, 8], size=(10, 5))
        grid = GameGrid.from_rows(values.tolist())
        first = apply_gravity(grid)
        second = apply_gravity(first.grid)
        assert second.moved is False
        assert second.grid.same_layout(first.grid)
        assert first.grid.occupied_count() == grid.occupied_count()
