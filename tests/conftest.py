from datetime import date

import pytest

from olympiad.config import Language
from olympiad.quiz.adapters.db_manager import DatabaseManager
from olympiad.quiz.adapters.sqlite_repository import SQLiteQuizRepository
from olympiad.quiz.application.config_service import QuizConfigService
from olympiad.quiz.application.daily_quiz import DailyQuizService
from olympiad.quiz.domain.models import Difficulty, Question
from tests.factories import bank

FIXED_DAY = date(2025, 12, 1)


@pytest.fixture
def fixed_day():
    return FIXED_DAY


@pytest.fixture
def sample_question():
    return Question(
        id="Q1",
        text="Who speaks the teachings of the Gita?",
        options=["Arjuna", "Krishna", "Bhishma", "Sanjaya"],
        correct_option_index=1,
        difficulty=Difficulty.EASY,
        category="Characters",
        language=Language.ENGLISH,
    )


@pytest.fixture
def db_manager():
    manager = DatabaseManager(db_path=":memory:")
    yield manager
    manager.close()


@pytest.fixture
def in_memory_repo(db_manager):
    """Returns a clean, empty in-memory repository."""
    return SQLiteQuizRepository(db_manager=db_manager)


@pytest.fixture
def balanced_repo(in_memory_repo):
    """English bank with 3 easy, 3 medium and 3 hard questions."""
    in_memory_repo.seed_questions(Language.ENGLISH, bank(easy=3, medium=3, hard=3))
    return in_memory_repo


@pytest.fixture
def config_service(in_memory_repo):
    return QuizConfigService(in_memory_repo)


@pytest.fixture
def daily_service(in_memory_repo, config_service):
    return DailyQuizService(
        in_memory_repo, in_memory_repo, config_service, today=lambda: FIXED_DAY
    )
