import pytest

from falling_2048.game import DIFFICULTY_CONFIGS, Difficulty, DifficultyConfig, sample_spawn_value


def test_tier_dimensions():
    assert (DIFFICULTY_CONFIGS[Difficulty.EASY].width, DIFFICULTY_CONFIGS[Difficulty.EASY].height) == (5, 8)
    assert (DIFFICULTY_CONFIGS[Difficulty.MEDIUM].width, DIFFICULTY_CONFIGS[Difficulty.MEDIUM].height) == (5, 10)
    assert (DIFFICULTY_CONFIGS[Difficulty.HARD].width, DIFFICULTY_CONFIGS[Difficulty.HARD].height) == (6, 12)


def test_tiers_get_faster_and_richer():
    easy, medium, hard = (DIFFICULTY_CONFIGS[d] for d in Difficulty)
    assert easy.fall_interval_ms > medium.fall_interval_ms > hard.fall_interval_ms
    assert easy.spawn_values == (2, 4)
    assert medium.spawn_values == (2, 4, 8)
    assert hard.spawn_values == (2, 4, 8, 16)
    for tier in (easy, medium, hard):
        assert tier.fast_fall_interval_ms < tier.fall_interval_ms
        assert sum(w for _, w in tier.spawn_weights) == pytest.approx(1.0)


def test_spawn_column_is_center():
    assert DIFFICULTY_CONFIGS[Difficulty.EASY].spawn_column == 2
    assert DIFFICULTY_CONFIGS[Difficulty.HARD].spawn_column == 3


def test_cumulative_sampling_boundaries():
    weights = ((2, 0.75), (4, 0.20), (8, 0.05))
    assert sample_spawn_value(weights, 0.0) == 2
    assert sample_spawn_value(weights, 0.7499) == 2
    assert sample_spawn_value(weights, 0.75) == 4
    assert sample_spawn_value(weights, 0.9499) == 4
    assert sample_spawn_value(weights, 0.96) == 8


def test_sampling_falls_back_to_most_likely_value():
    # Weights that do not reach 1.0 leave a gap at the top of the range
    weights = ((2, 0.5), (4, 0.3))
    assert sample_spawn_value(weights, 0.95) == 2


@pytest.mark.parametrize("kwargs", [
    {"width": 0},
    {"height": 1},
    {"fall_interval_ms": 0},
    {"spawn_weights": ()},
    {"spawn_weights": ((3, 1.0),)},
    {"spawn_weights": ((2, 0.0),)},
])
def test_invalid_configs_are_rejected(kwargs):
    base = dict(width=5, height=8, fall_interval_ms=800, fast_fall_interval_ms=50, spawn_weights=((2, 1.0),))
    base.update(kwargs)
    with pytest.raises(ValueError):
        DifficultyConfig(**base)
