from typing import Any

from olympiad.config import Language
from olympiad.quiz.application.config_service import QuizConfigService
from olympiad.quiz.domain.models import Difficulty
from olympiad.quiz.domain.ports import IQuestionRepository
from olympiad.quiz.domain.quota import compute_distribution


class PoolStatsService:
    """Read-only reports on a language's question bank."""

    def __init__(
        self, questions: IQuestionRepository, config_service: QuizConfigService
    ) -> None:
        self.questions = questions
        self.config_service = config_service

    def stats(self, language: Language) -> dict[str, int]:
        counts = self.questions.count_by_difficulty(language)
        return {
            "total": self.questions.count_all(language),
            **{d.value: counts.get(d, 0) for d in Difficulty},
        }

    def validate(self, language: Language) -> dict[str, Any]:
        """
        Checks every bucket against the current quota. The message names
        the first bucket (easy, medium, hard) that falls short.
        """
        distribution = compute_distribution(self.config_service.get_config())
        counts = self.questions.count_by_difficulty(language)

        message = "Sufficient questions available"
        valid = True
        for difficulty in Difficulty:
            need = distribution.count_for(difficulty)
            have = counts.get(difficulty, 0)
            if have < need:
                valid = False
                message = (
                    f"Not enough {difficulty.value} questions. Need {need}, have {have}"
                )
                break

        return {
            "valid": valid,
            "message": message,
            "distribution": distribution.model_dump(),
            "available": {d.value: counts.get(d, 0) for d in Difficulty},
        }
