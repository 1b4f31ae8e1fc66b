from datetime import date, datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from olympiad.config import EngineConfig, Language


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# --- Enums ---
class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @classmethod
    def parse(cls, raw: object) -> "Difficulty | None":
        """Case-insensitive lookup; anything unrecognised maps to None."""
        if not isinstance(raw, str):
            return None
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return None


class SelectionSource(str, Enum):
    SEEDED = "seeded"
    FALLBACK = "fallback"
    EMPTY = "empty"


# --- Entities ---
class Question(BaseModel):
    id: str
    text: str
    options: list[str] = Field(min_length=4, max_length=4)
    correct_option_index: int = Field(default=0, ge=0, le=3)
    difficulty: Difficulty | None = None
    category: str = EngineConfig.DEFAULT_CATEGORY
    language: Language = EngineConfig.BASE_LANGUAGE

    def to_view(self) -> "QuestionView":
        return QuestionView(
            id=self.id,
            question=self.text,
            options=list(self.options),
            correct_answer=self.correct_option_index,
            difficulty=self.difficulty,
            category=self.category,
        )


class QuestionView(BaseModel):
    """
    The client-facing question shape. Serialized with camelCase keys.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str
    question: str
    options: list[str]
    correct_answer: int = Field(alias="correctAnswer")
    difficulty: Difficulty | None = None
    category: str = EngineConfig.DEFAULT_CATEGORY


class QuizConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: str = EngineConfig.CONFIG_TYPE
    daily_quiz_question_count: int = Field(
        default=EngineConfig.DEFAULT_QUESTION_COUNT, alias="dailyQuizQuestionCount"
    )
    easy_percentage: int = Field(
        default=EngineConfig.DEFAULT_EASY_PERCENTAGE, alias="easyPercentage"
    )
    medium_percentage: int = Field(
        default=EngineConfig.DEFAULT_MEDIUM_PERCENTAGE, alias="mediumPercentage"
    )
    hard_percentage: int = Field(
        default=EngineConfig.DEFAULT_HARD_PERCENTAGE, alias="hardPercentage"
    )
    created_at: datetime = Field(default_factory=utc_now, alias="createdAt")
    updated_at: datetime = Field(default_factory=utc_now, alias="updatedAt")

    def validation_errors(self) -> list[str]:
        errors = []
        count = self.daily_quiz_question_count
        if not (
            EngineConfig.MIN_QUESTION_COUNT <= count <= EngineConfig.MAX_QUESTION_COUNT
        ):
            errors.append(
                f"Question count must be between {EngineConfig.MIN_QUESTION_COUNT} "
                f"and {EngineConfig.MAX_QUESTION_COUNT}, got {count}"
            )
        total = self.easy_percentage + self.medium_percentage + self.hard_percentage
        if total != 100:
            errors.append(f"Percentages must sum to 100, got {total}")
        return errors


class Distribution(BaseModel):
    total: int
    easy_count: int
    medium_count: int
    hard_count: int

    def count_for(self, difficulty: Difficulty) -> int:
        return {
            Difficulty.EASY: self.easy_count,
            Difficulty.MEDIUM: self.medium_count,
            Difficulty.HARD: self.hard_count,
        }[difficulty]


class DailySelection(BaseModel):
    """
    The persisted question set for one (date, language). Never mutated
    once stored with a non-empty question list.
    """

    date: str
    language: Language
    questions: list[QuestionView] = []
    seed: int
    generated_at: datetime = Field(default_factory=utc_now)
    question_count: int = 0
    source: SelectionSource = SelectionSource.SEEDED
    message: str | None = None

    @field_validator("date")
    @classmethod
    def _iso_date(cls, value: str) -> str:
        date.fromisoformat(value)
        return value


# --- (Data Transfer Object) ---
class DailyQuizResult(BaseModel):
    selection: DailySelection
    cached: bool

    def to_response(self) -> dict:
        payload = {
            "success": True,
            "questions": [
                q.model_dump(mode="json", by_alias=True)
                for q in self.selection.questions
            ],
            "count": self.selection.question_count,
            "date": self.selection.date,
            "seed": self.selection.seed,
            "cached": self.cached,
            "language": self.selection.language.value,
        }
        if self.selection.message:
            payload["error"] = self.selection.message
        return payload


class QuizSubmission(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    profile_id: str = Field(alias="profileId")
    user_id: str = Field(alias="userId")
    score: int | None = None
    correct_answers: int = Field(alias="correctAnswers", ge=0)
    total_questions: int = Field(alias="totalQuestions", ge=0)
    time_spent: int = Field(default=0, alias="timeSpent", ge=0)
    language: Language = EngineConfig.BASE_LANGUAGE
    answers: dict[str, int] = {}

    @field_validator("language", mode="before")
    @classmethod
    def _resolve_language(cls, value: object) -> Language:
        return Language.from_param(value if isinstance(value, str) else None)


class QuizAttempt(BaseModel):
    profile_id: str
    user_id: str
    date: str
    type: str = EngineConfig.DAILY_QUIZ_TYPE
    answers: dict[str, int] = {}
    score: int
    correct_answers: int
    total_questions: int
    time_spent: int = 0
    language: Language = EngineConfig.BASE_LANGUAGE
    completed_at: datetime = Field(default_factory=utc_now)


class CreditAward(BaseModel):
    user_id: str
    profile_id: str
    amount: int
    source: str = EngineConfig.DAILY_QUIZ_CREDIT_SOURCE
    description: str = ""
    created_at: datetime = Field(default_factory=utc_now)
