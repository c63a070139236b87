import random

import pytest

from falling_2048.game import Difficulty, Falling2048Game, GameConfig, InMemoryBestScoreStore, Phase

from tests.helpers import assert_occupancy

COMMANDS = ["left", "right", "down", "fall", "drop", "tick", "fast", "slow"]


def _apply(game: Falling2048Game, command: str, rng: random.Random) -> bool:
    if command == "left":
        return game.move_left()
    if command == "right":
        return game.move_right()
    if command == "down":
        return game.move_down()
    if command == "fall":
        return game.fall_step()
    if command == "drop":
        return game.hard_drop()
    if command == "tick":
        return game.tick(rng.choice([16, 50, 300, 1000]))
    if command == "fast":
        return game.start_fast_fall()
    return game.stop_fast_fall()


@pytest.mark.parametrize("difficulty", list(Difficulty))
@pytest.mark.parametrize("seed", [0, 1, 2])
def test_random_play_keeps_invariants(difficulty, seed):
    rng = random.Random(seed)
    game = Falling2048Game(
        GameConfig(difficulty=difficulty, random_seed=seed, spawn_delay_ms=rng.choice([0, 300])),
        store=InMemoryBestScoreStore(),
    )
    values = set(game.tier.spawn_values)
    last_score = game.score

    for _ in range(1500):
        if game.is_over:
            frozen = game.grid.copy()
            assert game.active_block is None
            assert game.phase is Phase.GAME_OVER
            assert game.best_score >= game.score
            assert not _apply(game, rng.choice(COMMANDS), rng)
            assert game.grid.same_layout(frozen)
            game.reset()
            last_score = game.score
            continue

        _apply(game, rng.choice(COMMANDS), rng)

        assert_occupancy(game)
        assert game.score >= last_score
        assert (game.score - last_score) % 2 == 0
        last_score = game.score
        assert game.best_score >= game.score
        assert game.next_value in values
        assert not game.is_resolving
        if game.active_block is not None:
            assert game.active_block.value in values
            assert game.phase is Phase.FALLING



def test_same_seed_same_game():
    def play(seed):
        game = Falling2048Game(GameConfig(difficulty=Difficulty.MEDIUM, random_seed=seed, spawn_delay_ms=0))
        for col in [0, 4, 2, 1, 3] * 6:
            if game.is_over:
                break
            game.drop_into(col) or game.hard_drop()
        return game.score, game.grid.rows()

    assert play(7) == play(7)
