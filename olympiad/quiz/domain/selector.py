import math
from collections.abc import Sequence
from datetime import date
from typing import TypeVar

from olympiad.config import EngineConfig
from olympiad.quiz.domain.models import Difficulty, Distribution, Question
from olympiad.shared.telemetry import Telemetry

T = TypeVar("T")


def pseudo_random(x: int) -> float:
    """Fractional part of sin(x) * 10000. Pure, in [0, 1)."""
    value = math.sin(x) * 10000
    return value - math.floor(value)


def seeded_shuffle(items: Sequence[T], seed: int) -> list[T]:
    """Fisher-Yates driven by pseudo_random. Returns a new list."""
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = math.floor(pseudo_random(seed + i) * (i + 1))
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def seed_for_date(day: date) -> int:
    """2025-12-01 -> 20251201"""
    return day.year * 10000 + day.month * 100 + day.day


def stable_order(questions: Sequence[Question]) -> list[Question]:
    # Store read order is not guaranteed; shuffling must start from a fixed one
    return sorted(questions, key=lambda q: q.id)


class DeterministicSelector:
    """
    Pure Domain Logic.
    Builds the day's question list from per-difficulty buckets so that the
    result depends only on (bucket contents, seed).
    """

    ORDER = (Difficulty.EASY, Difficulty.MEDIUM, Difficulty.HARD)

    def __init__(self) -> None:
        self.telemetry = Telemetry("DeterministicSelector")

    def select(
        self,
        buckets: dict[Difficulty, list[Question]],
        distribution: Distribution,
        seed: int,
    ) -> list[Question]:
        selected: list[Question] = []
        easy_overflow: list[Question] = []

        # 1. Per-bucket shuffle, always easy -> medium -> hard
        for difficulty in self.ORDER:
            pool = stable_order(buckets.get(difficulty, []))
            offset = EngineConfig.BUCKET_SEED_OFFSETS[difficulty.value]
            shuffled = seeded_shuffle(pool, seed + offset)
            quota = distribution.count_for(difficulty)

            selected.extend(shuffled[:quota])
            if difficulty is Difficulty.EASY:
                easy_overflow = shuffled[quota:]

            if len(pool) < quota:
                self.telemetry.log_warning(
                    "Bucket under quota",
                    difficulty=difficulty.value,
                    available=len(pool),
                    quota=quota,
                )

        # 2. Backfill from unused easy questions
        if len(selected) < distribution.total:
            needed = distribution.total - len(selected)
            selected.extend(easy_overflow[:needed])

        # 3. Interleave difficulties
        return seeded_shuffle(selected, seed + EngineConfig.FINAL_SHUFFLE_OFFSET)
