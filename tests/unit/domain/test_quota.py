import pytest

from olympiad.quiz.domain.models import Difficulty, QuizConfig
from olympiad.quiz.domain.quota import compute_distribution, round_half_up


def config(total, easy, medium, hard):
    return QuizConfig(
        daily_quiz_question_count=total,
        easy_percentage=easy,
        medium_percentage=medium,
        hard_percentage=hard,
    )


def test_default_config_splits_40_40_20():
    dist = compute_distribution(QuizConfig())

    assert dist.total == 10
    assert (dist.easy_count, dist.medium_count, dist.hard_count) == (4, 4, 2)


def test_five_questions_round_to_2_2_1():
    dist = compute_distribution(config(5, 40, 40, 20))

    assert (dist.easy_count, dist.medium_count, dist.hard_count) == (2, 2, 1)


def test_hard_absorbs_rounding_remainder():
    # 7 * 33% = 2.31 -> 2 each, hard takes the remaining 3
    dist = compute_distribution(config(7, 33, 33, 34))

    assert (dist.easy_count, dist.medium_count, dist.hard_count) == (2, 2, 3)


def test_halves_round_up():
    # 9 * 50% = 4.5 -> 5 (not banker's rounding to 4)
    dist = compute_distribution(config(9, 50, 30, 20))

    assert dist.easy_count == 5


def test_zero_percent_buckets_are_floored_at_one():
    dist = compute_distribution(config(10, 0, 0, 100))

    assert dist.easy_count == 1
    assert dist.medium_count == 1
    assert dist.hard_count == 10


def test_floor_lets_sum_exceed_total():
    """
    Flagged behaviour: the 1-per-bucket floor is applied after the split,
    so `total` acts as a soft cap and the overflow is kept.
    """
    dist = compute_distribution(config(10, 0, 0, 100))

    overflow = dist.easy_count + dist.medium_count + dist.hard_count - dist.total
    assert overflow == 2


def test_negative_hard_remainder_is_floored():
    # 5 * 50% = 2.5 -> 3 twice; hard = 5 - 6 = -1 -> 1
    dist = compute_distribution(config(5, 50, 50, 0))

    assert (dist.easy_count, dist.medium_count, dist.hard_count) == (3, 3, 1)


def test_count_for_maps_difficulties():
    dist = compute_distribution(config(5, 40, 40, 20))

    assert dist.count_for(Difficulty.EASY) == 2
    assert dist.count_for(Difficulty.MEDIUM) == 2
    assert dist.count_for(Difficulty.HARD) == 1


@pytest.mark.parametrize("value,expected", [(0.5, 1), (1.49, 1), (2.5, 3), (4.0, 4)])
def test_round_half_up(value, expected):
    assert round_half_up(value) == expected
