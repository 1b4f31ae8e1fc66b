import os
from enum import Enum
from typing import Final


class Language(str, Enum):
    # Each member maps 1:1 onto a per-language question collection
    ENGLISH = "english"
    HINDI = "hindi"
    MARATHI = "marathi"
    TAMIL = "tamil"
    TELUGU = "telugu"
    KANNADA = "kannada"
    MALAYALAM = "malayalam"
    GUJARATI = "gujarati"
    BENGALI = "bengali"
    ODIA = "odia"
    NEPALI = "nepali"

    @classmethod
    def from_param(cls, value: str | None) -> "Language":
        """Resolves a request parameter, falling back to the base language."""
        if not value:
            return EngineConfig.BASE_LANGUAGE
        try:
            return cls(value.strip().lower())
        except ValueError:
            return EngineConfig.BASE_LANGUAGE


class EngineConfig:
    # --- Infrastructure Switch ---
    BACKEND: str = os.getenv("OLYMPIAD_BACKEND", "sqlite")
    DB_PATH: str = os.getenv("OLYMPIAD_DB_PATH", "data/olympiad.db")
    SEED_FILE: str = os.getenv("OLYMPIAD_SEED_FILE", "data/seed_questions.json")
    SUPABASE_URL: str = os.getenv("SUPABASE_URL", "")
    SUPABASE_KEY: str = os.getenv("SUPABASE_KEY", "")
    METRICS_PORT: int = int(os.getenv("OLYMPIAD_METRICS_PORT", "8001"))

    # --- App Identity ---
    APP_TITLE = "Olympiad Quiz API"
    SERVICE_NAME = "olympiad-quiz-api"

    # --- Languages ---
    BASE_LANGUAGE: Final["Language"] = Language.ENGLISH

    # --- Question Defaults ---
    DEFAULT_CATEGORY: Final[str] = "General"
    OPTION_LETTERS: Final[tuple[str, ...]] = ("A", "B", "C", "D")

    # --- Quiz Config Defaults & Limits ---
    CONFIG_TYPE: Final[str] = "daily"
    DEFAULT_QUESTION_COUNT = 10
    DEFAULT_EASY_PERCENTAGE = 40
    DEFAULT_MEDIUM_PERCENTAGE = 40
    DEFAULT_HARD_PERCENTAGE = 20
    MIN_QUESTION_COUNT: Final[int] = 5
    MAX_QUESTION_COUNT: Final[int] = 50

    # --- Deterministic Selection ---
    # Distinct seed offsets keep bucket shuffles independent of each other
    BUCKET_SEED_OFFSETS: Final[dict[str, int]] = {
        "easy": 0,
        "medium": 1000,
        "hard": 2000,
    }
    FINAL_SHUFFLE_OFFSET: Final[int] = 3000

    # --- Submissions & Credits ---
    DAILY_QUIZ_TYPE: Final[str] = "daily"
    DAILY_QUIZ_CREDIT_SOURCE: Final[str] = "dailyQuiz"
    DAILY_QUIZ_CREDITS_PER_CORRECT = 10

    EMPTY_POOL_MESSAGE: Final[str] = "No questions available in database"
