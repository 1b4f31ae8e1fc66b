from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from unittest.mock import MagicMock

import pytest

from olympiad.config import Language
from olympiad.quiz.adapters.db_manager import DatabaseManager
from olympiad.quiz.adapters.sqlite_repository import SQLiteQuizRepository
from olympiad.quiz.application.config_service import QuizConfigService
from olympiad.quiz.application.daily_quiz import DailyQuizService
from olympiad.quiz.domain.errors import FutureQuizDateError, RepositoryError
from olympiad.quiz.domain.models import DailySelection, QuizConfig, SelectionSource
from olympiad.quiz.domain.ports import IDailySelectionStore, IQuestionRepository
from tests.factories import bank, raw_question


def ids(result):
    return [q.id for q in result.selection.questions]


def set_config(repo, total, easy, medium, hard):
    QuizConfigService(repo).update_config(
        {
            "dailyQuizQuestionCount": total,
            "easyPercentage": easy,
            "mediumPercentage": medium,
            "hardPercentage": hard,
        }
    )


class TestDailySelectionCache:
    def test_first_request_computes_and_stores(self, balanced_repo, daily_service):
        result = daily_service.get_or_create(Language.ENGLISH)

        assert result.cached is False
        assert result.selection.date == "2025-12-01"
        assert result.selection.seed == 20251201
        assert result.selection.source is SelectionSource.SEEDED

        stored = balanced_repo.get_selection("2025-12-01", Language.ENGLISH)
        assert stored is not None
        assert [q.id for q in stored.questions] == ids(result)

    def test_second_request_is_served_from_cache(self, balanced_repo, daily_service):
        first = daily_service.get_or_create(Language.ENGLISH)
        second = daily_service.get_or_create(Language.ENGLISH)

        assert second.cached is True
        assert second.selection == first.selection

    def test_cached_record_survives_config_and_pool_changes(
        self, balanced_repo, daily_service
    ):
        first = daily_service.get_or_create(Language.ENGLISH)

        set_config(balanced_repo, 20, 20, 40, 40)
        balanced_repo.seed_questions(Language.ENGLISH, bank(easy=10))

        again = daily_service.get_or_create(Language.ENGLISH)
        assert again.cached is True
        assert ids(again) == ids(first)

    def test_empty_prior_record_is_overwritten(self, balanced_repo, daily_service):
        balanced_repo.upsert_selection(
            DailySelection(date="2025-12-01", language=Language.ENGLISH, seed=1)
        )

        result = daily_service.get_or_create(Language.ENGLISH)

        assert result.cached is False
        assert result.selection.question_count > 0
        stored = balanced_repo.get_selection("2025-12-01", Language.ENGLISH)
        assert stored.seed == 20251201

    def test_languages_are_independent(self, balanced_repo, daily_service):
        balanced_repo.seed_questions(Language.HINDI, bank(easy=2, medium=2, hard=2))

        english = daily_service.get_or_create(Language.ENGLISH)
        hindi = daily_service.get_or_create(Language.HINDI)

        assert hindi.cached is False
        assert english.selection.language is Language.ENGLISH
        assert hindi.selection.language is Language.HINDI

    def test_other_days_do_not_touch_stored_record(self, balanced_repo, daily_service):
        day_one = daily_service.get_or_create(Language.ENGLISH, date(2025, 12, 1))
        before = balanced_repo.get_selection("2025-12-01", Language.ENGLISH)

        day_two = daily_service.get_or_create(Language.ENGLISH, date(2025, 11, 30))

        assert day_two.cached is False
        assert day_two.selection.seed == 20251130
        assert balanced_repo.get_selection("2025-12-01", Language.ENGLISH) == before
        assert before.questions == day_one.selection.questions


class TestQuizDate:
    def test_future_day_is_rejected_and_not_stored(self, balanced_repo, daily_service):
        with pytest.raises(FutureQuizDateError):
            daily_service.get_or_create(Language.ENGLISH, date(2025, 12, 2))

        assert balanced_repo.get_selection("2025-12-02", Language.ENGLISH) is None

    def test_past_day_is_served(self, balanced_repo, daily_service):
        result = daily_service.get_or_create(Language.ENGLISH, date(2025, 1, 15))

        assert result.selection.seed == 20250115


class TestEndToEnd:
    def test_five_question_day(self, balanced_repo, daily_service, fixed_day):
        set_config(balanced_repo, 5, 40, 40, 20)

        first = daily_service.get_or_create(Language.ENGLISH, fixed_day)

        difficulties = Counter(q.difficulty.value for q in first.selection.questions)
        assert first.selection.question_count == 5
        assert difficulties == {"easy": 2, "medium": 2, "hard": 1}

        again = daily_service.get_or_create(Language.ENGLISH, fixed_day)
        assert again.cached is True
        assert ids(again) == ids(first)


class TestDeterminism:
    def test_independent_stores_produce_identical_selection(self, fixed_day):
        docs = bank(easy=6, medium=6, hard=6)
        results = []
        for ordering in (docs, list(reversed(docs))):
            manager = DatabaseManager(":memory:")
            repo = SQLiteQuizRepository(manager)
            repo.seed_questions(Language.ENGLISH, ordering)
            service = DailyQuizService(repo, repo, QuizConfigService(repo))
            results.append(service.get_or_create(Language.ENGLISH, fixed_day))
            manager.close()

        assert ids(results[0]) == ids(results[1])
        assert results[0].selection.seed == results[1].selection.seed

    def test_concurrent_first_requests_agree(self, balanced_repo, daily_service):
        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(
                pool.map(lambda _: daily_service.get_or_create(Language.ENGLISH), range(16))
            )

        orders = {tuple(ids(r)) for r in results}
        assert len(orders) == 1
        stored = balanced_repo.get_selection("2025-12-01", Language.ENGLISH)
        assert tuple(q.id for q in stored.questions) in orders


class TestFallback:
    def test_untagged_pool_returns_first_total_in_stored_order(
        self, in_memory_repo, daily_service
    ):
        docs = [raw_question(f"q{i:02d}", difficulty=None) for i in range(10)]
        in_memory_repo.seed_questions(Language.ENGLISH, list(reversed(docs)))
        set_config(in_memory_repo, 5, 40, 40, 20)

        result = daily_service.get_or_create(Language.ENGLISH)

        assert result.selection.source is SelectionSource.FALLBACK
        assert ids(result) == ["q00", "q01", "q02", "q03", "q04"]

    def test_unrecognised_tags_use_full_pool_when_total_allows(
        self, in_memory_repo, daily_service
    ):
        docs = [raw_question(f"q{i:02d}", difficulty="expert") for i in range(10)]
        in_memory_repo.seed_questions(Language.ENGLISH, docs)

        result = daily_service.get_or_create(Language.ENGLISH)

        assert result.selection.question_count == 10
        assert ids(result) == [f"q{i:02d}" for i in range(10)]

    def test_fallback_selection_is_cached(self, in_memory_repo, daily_service):
        in_memory_repo.seed_questions(
            Language.ENGLISH, [raw_question("q1", difficulty=None)]
        )

        daily_service.get_or_create(Language.ENGLISH)
        second = daily_service.get_or_create(Language.ENGLISH)

        assert second.cached is True
        assert ids(second) == ["q1"]

    def test_empty_pool_is_a_valid_outcome(self, in_memory_repo, daily_service):
        result = daily_service.get_or_create(Language.TAMIL)
        response = result.to_response()

        assert response["success"] is True
        assert response["questions"] == []
        assert response["count"] == 0
        assert response["error"] == "No questions available in database"
        assert in_memory_repo.get_selection("2025-12-01", Language.TAMIL) is None


class TestRepositoryFailure:
    def test_failure_propagates_and_nothing_is_cached(self, fixed_day):
        questions = MagicMock(spec=IQuestionRepository)
        questions.fetch_by_difficulty.side_effect = RepositoryError("store down")
        selections = MagicMock(spec=IDailySelectionStore)
        selections.get_selection.return_value = None
        config_service = MagicMock(spec=QuizConfigService)
        config_service.get_config.return_value = QuizConfig()

        service = DailyQuizService(questions, selections, config_service)

        with pytest.raises(RepositoryError):
            service.get_or_create(Language.ENGLISH, fixed_day)
        selections.upsert_selection.assert_not_called()
