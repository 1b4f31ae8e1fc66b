from abc import ABC, abstractmethod
from typing import Any

from olympiad.config import Language
from olympiad.quiz.domain.models import (
    CreditAward,
    DailySelection,
    Difficulty,
    Question,
    QuizAttempt,
    QuizConfig,
)


class IQuestionRepository(ABC):
    """
    Read access to the per-language question banks. Every fetch returns
    questions ordered by id.
    """

    @abstractmethod
    def is_empty(self) -> bool:
        """True when no language has any question stored."""
        pass

    @abstractmethod
    def fetch_by_difficulty(
        self, language: Language, difficulty: Difficulty
    ) -> list[Question]:
        """Case-insensitive match on the stored difficulty tag."""
        pass

    @abstractmethod
    def fetch_all(self, language: Language, limit: int) -> list[Question]:
        pass

    @abstractmethod
    def count_all(self, language: Language) -> int:
        pass

    @abstractmethod
    def count_by_difficulty(self, language: Language) -> dict[Difficulty, int]:
        pass

    @abstractmethod
    def seed_questions(self, language: Language, raw_docs: list[dict[str, Any]]) -> int:
        """Upserts raw question documents; returns how many were stored."""
        pass


class IDailySelectionStore(ABC):
    @abstractmethod
    def get_selection(self, quiz_date: str, language: Language) -> DailySelection | None:
        pass

    @abstractmethod
    def upsert_selection(self, selection: DailySelection) -> None:
        """Atomic single-document upsert keyed by (date, language)."""
        pass


class IQuizConfigStore(ABC):
    @abstractmethod
    def get_config(self) -> QuizConfig | None:
        pass

    @abstractmethod
    def save_config(self, config: QuizConfig) -> None:
        pass


class IAttemptStore(ABC):
    @abstractmethod
    def has_attempt(self, profile_id: str, quiz_date: str, quiz_type: str) -> bool:
        pass

    @abstractmethod
    def save_attempt(self, attempt: QuizAttempt) -> None:
        pass


class ICreditLedger(ABC):
    @abstractmethod
    def award(self, award: CreditAward) -> None:
        pass

    @abstractmethod
    def total_credits(self, user_id: str, profile_id: str) -> int:
        pass


class IQuizRepository(
    IQuestionRepository,
    IDailySelectionStore,
    IQuizConfigStore,
    IAttemptStore,
    ICreditLedger,
):
    """Everything a single storage backend provides to the engine."""
