import pytest

from falling_blocks_rl.game import LevelProgress, ScoringRules, gravity_delay_ms


def test_base_scores_and_combo_multiplier():
    rules = ScoringRules()
    assert [rules.score_for_lines(n) for n in range(5)] == [0, 10, 25, 50, 85]
    assert rules.score_for_lines(4, combo=2) == 170
    assert rules.score_for_lines(5) == 0


def test_rows_per_level_must_be_positive():
    with pytest.raises(ValueError):
        ScoringRules(rows_per_level=0)


def test_level_progress_carries_remainder():
    progress = LevelProgress(win_level=60)
    assert progress.add_rows(4) == 0
    assert progress.add_rows(4) == 0
    assert progress.add_rows(3) == 1
    assert (progress.level, progress.progress) == (2, 1)


def test_level_progress_handles_multi_level_jumps():
    progress = LevelProgress(win_level=60, rows_per_level=2)
    assert progress.add_rows(4) == 2
    assert progress.level == 3


def test_win_after_completing_the_last_level():
    progress = LevelProgress(win_level=2, level=1)
    progress.add_rows(10)
    assert progress.level == 2
    assert not progress.won
    progress.add_rows(10)
    assert progress.level == 2
    assert progress.won


def test_gravity_curve_endpoints():
    assert gravity_delay_ms(0, 60, 800) == 800
    assert gravity_delay_ms(60, 60, 800) == 0
    assert gravity_delay_ms(30, 60, 1000) == int(1000 - 1000 * 2 ** -0.5)


def test_gravity_curve_accelerates():
    delays = [gravity_delay_ms(level) for level in range(61)]
    assert all(a >= b for a, b in zip(delays, delays[1:]))
    # steepest at the start, flattening toward the win level
    assert delays[0] - delays[10] > delays[50] - delays[60]
