import math

from olympiad.quiz.domain.models import Distribution, QuizConfig


def round_half_up(value: float) -> int:
    # round() would send 4.5 to 4; quotas round halves upward
    return math.floor(value + 0.5)


def compute_distribution(config: QuizConfig) -> Distribution:
    """
    Splits the configured total into per-difficulty counts.

    Hard absorbs the rounding remainder, then every bucket is floored at 1.
    The floor is applied after the split, so the three counts may add up
    to more than `total` (by at most 2). Callers treat `total` as a soft
    cap and the overflow is not trimmed.

    Example:
        >>> compute_distribution(QuizConfig(daily_quiz_question_count=10,
        ...     easy_percentage=0, medium_percentage=0, hard_percentage=100))
        Distribution(total=10, easy_count=1, medium_count=1, hard_count=10)
    """
    total = config.daily_quiz_question_count
    easy = round_half_up(total * config.easy_percentage / 100)
    medium = round_half_up(total * config.medium_percentage / 100)
    hard = total - easy - medium

    return Distribution(
        total=total,
        easy_count=max(1, easy),
        medium_count=max(1, medium),
        hard_count=max(1, hard),
    )
