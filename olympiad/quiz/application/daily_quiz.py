from collections.abc import Callable
from datetime import date, datetime, timezone

from olympiad.config import EngineConfig, Language
from olympiad.quiz.application.config_service import QuizConfigService
from olympiad.quiz.domain.errors import FutureQuizDateError
from olympiad.quiz.domain.models import (
    DailyQuizResult,
    DailySelection,
    Difficulty,
    Distribution,
    Question,
    SelectionSource,
)
from olympiad.quiz.domain.ports import IDailySelectionStore, IQuestionRepository
from olympiad.quiz.domain.quota import compute_distribution
from olympiad.quiz.domain.selector import DeterministicSelector, seed_for_date
from olympiad.shared.telemetry import Telemetry, measure_time, record_cache_lookup


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


class DailyQuizService:
    """
    Serves the day's question set per language.

    The first request for a (date, language) computes the selection and
    persists it; every later request returns the stored record unchanged.
    There is no lock around the computation: concurrent first requests
    compute identical content and the keyed upsert makes the race harmless.
    """

    def __init__(
        self,
        questions: IQuestionRepository,
        selections: IDailySelectionStore,
        config_service: QuizConfigService,
        selector: DeterministicSelector | None = None,
        today: Callable[[], date] = utc_today,
    ) -> None:
        self.questions = questions
        self.selections = selections
        self.config_service = config_service
        self.selector = selector or DeterministicSelector()
        self.today = today
        self.telemetry = Telemetry("DailyQuizService")

    @measure_time("get_daily_questions")
    def get_or_create(
        self, language: Language, quiz_date: date | None = None
    ) -> DailyQuizResult:
        today = self.today()
        day = quiz_date or today
        key = day.isoformat()
        if day > today:
            # Only today and earlier days are served
            raise FutureQuizDateError(key, today.isoformat())

        existing = self.selections.get_selection(key, language)
        if existing and existing.questions:
            record_cache_lookup(language.value, hit=True)
            return DailyQuizResult(selection=existing, cached=True)

        record_cache_lookup(language.value, hit=False)
        selection = self.build_selection(day, language)

        if selection.questions:
            # Persist before answering so followers hit the read path
            self.selections.upsert_selection(selection)
            self.telemetry.log_info(
                "Daily selection stored",
                date=key,
                language=language.value,
                count=selection.question_count,
                source=selection.source.value,
            )
        else:
            # Not cached: the next request retries once the bank is filled
            self.telemetry.log_warning(
                "No questions available", date=key, language=language.value
            )

        return DailyQuizResult(selection=selection, cached=False)

    def build_selection(self, day: date, language: Language) -> DailySelection:
        """Pure function of (day, language, config, bank contents)."""
        distribution = compute_distribution(self.config_service.get_config())
        seed = seed_for_date(day)

        buckets: dict[Difficulty, list[Question]] = {
            difficulty: self.questions.fetch_by_difficulty(language, difficulty)
            for difficulty in DeterministicSelector.ORDER
        }

        if any(buckets.values()):
            picked = self.selector.select(buckets, distribution, seed)
            return self._selection(day, language, seed, picked, SelectionSource.SEEDED)

        return self._fallback(day, language, seed, distribution)

    def _fallback(
        self, day: date, language: Language, seed: int, distribution: Distribution
    ) -> DailySelection:
        """
        No question carries a recognised difficulty tag. Take the first
        `total` questions in stored order, unshuffled.
        """
        if self.questions.count_all(language) == 0:
            return DailySelection(
                date=day.isoformat(),
                language=language,
                seed=seed,
                source=SelectionSource.EMPTY,
                message=EngineConfig.EMPTY_POOL_MESSAGE,
            )

        self.telemetry.log_warning(
            "Difficulty buckets empty, using unfiltered fallback",
            language=language.value,
            total=distribution.total,
        )
        picked = self.questions.fetch_all(language, distribution.total)
        return self._selection(day, language, seed, picked, SelectionSource.FALLBACK)

    @staticmethod
    def _selection(
        day: date,
        language: Language,
        seed: int,
        picked: list[Question],
        source: SelectionSource,
    ) -> DailySelection:
        views = [q.to_view() for q in picked]
        return DailySelection(
            date=day.isoformat(),
            language=language,
            questions=views,
            seed=seed,
            question_count=len(views),
            source=source,
        )
