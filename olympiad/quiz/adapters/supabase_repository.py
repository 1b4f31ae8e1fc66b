from typing import Any, cast

from postgrest.exceptions import APIError
from postgrest.types import CountMethod

from olympiad.config import EngineConfig, Language
from olympiad.quiz.domain.errors import DuplicateAttemptError, RepositoryError
from olympiad.quiz.domain.models import (
    CreditAward,
    DailySelection,
    Difficulty,
    Question,
    QuizAttempt,
    QuizConfig,
)
from olympiad.quiz.domain.parsing import parse_question, raw_difficulty
from olympiad.quiz.domain.ports import IQuizRepository
from olympiad.shared.telemetry import Telemetry, measure_time
from supabase import Client, create_client

# Postgres SQLSTATE for a primary key / unique constraint violation
UNIQUE_VIOLATION = "23505"


class SupabaseQuizRepository(IQuizRepository):
    """
    Same tables as the SQLite schema, served through PostgREST. Question
    documents live in the `json_data` jsonb column.
    """

    def __init__(self, url: str, key: str, client: Client | None = None) -> None:
        self.telemetry = Telemetry("SupabaseRepository")
        try:
            self.client: Client = client or create_client(url, key)
        except Exception as e:
            self.telemetry.log_error("Failed to initialize Supabase client", e)
            raise RepositoryError(str(e)) from e

    def _execute(self, operation: str, query: Any) -> Any:
        try:
            return query.execute()
        except Exception as e:
            self.telemetry.log_error(f"{operation} failed", e)
            raise RepositoryError(f"{operation} failed: {e}") from e

    def _parse_rows(self, rows: list[dict[str, Any]], language: Language) -> list[Question]:
        questions = []
        for row in rows:
            try:
                questions.append(parse_question(row["json_data"], language))
            except ValueError as e:
                self.telemetry.log_error("Skipping unparseable question", e)
        return questions

    def is_empty(self) -> bool:
        response = self._execute(
            "is_empty",
            self.client.table("questions")
            .select("id", count=cast(CountMethod, "exact"))
            .limit(1),
        )
        return (response.count or 0) == 0

    # --- Question Repository ---

    @measure_time("sb_fetch_by_difficulty")
    def fetch_by_difficulty(
        self, language: Language, difficulty: Difficulty
    ) -> list[Question]:
        response = self._execute(
            "fetch_by_difficulty",
            self.client.table("questions")
            .select("json_data")
            .eq("language", language.value)
            .ilike("difficulty", difficulty.value)
            .order("id"),
        )
        return self._parse_rows(cast(list[dict[str, Any]], response.data), language)

    @measure_time("sb_fetch_all")
    def fetch_all(self, language: Language, limit: int) -> list[Question]:
        response = self._execute(
            "fetch_all",
            self.client.table("questions")
            .select("json_data")
            .eq("language", language.value)
            .order("id")
            .limit(limit),
        )
        return self._parse_rows(cast(list[dict[str, Any]], response.data), language)

    def count_all(self, language: Language) -> int:
        response = self._execute(
            "count_all",
            self.client.table("questions")
            .select("id", count=cast(CountMethod, "exact"))
            .eq("language", language.value)
            .limit(1),
        )
        return response.count or 0

    def count_by_difficulty(self, language: Language) -> dict[Difficulty, int]:
        counts = {}
        for difficulty in Difficulty:
            response = self._execute(
                "count_by_difficulty",
                self.client.table("questions")
                .select("id", count=cast(CountMethod, "exact"))
                .eq("language", language.value)
                .ilike("difficulty", difficulty.value)
                .limit(1),
            )
            counts[difficulty] = response.count or 0
        return counts

    def seed_questions(self, language: Language, raw_docs: list[dict[str, Any]]) -> int:
        data = [
            {
                "language": language.value,
                "id": str(doc.get("id", doc.get("_id"))),
                "difficulty": raw_difficulty(doc),
                "json_data": doc,
            }
            for doc in raw_docs
            if doc.get("id", doc.get("_id")) is not None
        ]

        # Upsert in chunks of 100 to keep payloads small
        chunk_size = 100
        for i in range(0, len(data), chunk_size):
            chunk = data[i : i + chunk_size]
            self._execute(
                "seed_questions",
                self.client.table("questions").upsert(chunk, on_conflict="language,id"),
            )

        self.telemetry.log_info(
            "Seeded questions to Supabase", language=language.value, count=len(data)
        )
        return len(data)

    # --- Daily Selection Store ---

    @measure_time("sb_get_selection")
    def get_selection(self, quiz_date: str, language: Language) -> DailySelection | None:
        response = self._execute(
            "get_selection",
            self.client.table("daily_selections")
            .select("json_data")
            .eq("quiz_date", quiz_date)
            .eq("language", language.value)
            .limit(1),
        )
        data = cast(list[dict[str, Any]], response.data)
        if not data:
            return None
        return DailySelection.model_validate(data[0]["json_data"])

    @measure_time("sb_upsert_selection")
    def upsert_selection(self, selection: DailySelection) -> None:
        payload = {
            "quiz_date": selection.date,
            "language": selection.language.value,
            "json_data": selection.model_dump(mode="json"),
            "generated_at": selection.generated_at.isoformat(),
        }
        self._execute(
            "upsert_selection",
            self.client.table("daily_selections").upsert(
                payload, on_conflict="quiz_date,language"
            ),
        )

    # --- Quiz Config Store ---

    def get_config(self) -> QuizConfig | None:
        response = self._execute(
            "get_config",
            self.client.table("quiz_config")
            .select("json_data")
            .eq("type", EngineConfig.CONFIG_TYPE)
            .limit(1),
        )
        data = cast(list[dict[str, Any]], response.data)
        return QuizConfig.model_validate(data[0]["json_data"]) if data else None

    def save_config(self, config: QuizConfig) -> None:
        self._execute(
            "save_config",
            self.client.table("quiz_config").upsert(
                {
                    "type": config.type,
                    "json_data": config.model_dump(mode="json"),
                    "updated_at": config.updated_at.isoformat(),
                },
                on_conflict="type",
            ),
        )

    # --- Attempts & Credits ---

    def has_attempt(self, profile_id: str, quiz_date: str, quiz_type: str) -> bool:
        response = self._execute(
            "has_attempt",
            self.client.table("quiz_attempts")
            .select("profile_id")
            .eq("profile_id", profile_id)
            .eq("quiz_date", quiz_date)
            .eq("quiz_type", quiz_type)
            .limit(1),
        )
        return bool(response.data)

    @measure_time("sb_save_attempt")
    def save_attempt(self, attempt: QuizAttempt) -> None:
        try:
            self._execute(
                "save_attempt",
                self.client.table("quiz_attempts").insert(
                    {
                        "profile_id": attempt.profile_id,
                        "quiz_date": attempt.date,
                        "quiz_type": attempt.type,
                        "json_data": attempt.model_dump(mode="json"),
                    }
                ),
            )
        except RepositoryError as e:
            cause = e.__cause__
            if isinstance(cause, APIError) and cause.code == UNIQUE_VIOLATION:
                raise DuplicateAttemptError(attempt.profile_id, attempt.date) from e
            raise

    def award(self, award: CreditAward) -> None:
        self._execute(
            "award",
            self.client.table("credit_transactions").insert(
                award.model_dump(mode="json")
            ),
        )

    def total_credits(self, user_id: str, profile_id: str) -> int:
        response = self._execute(
            "total_credits",
            self.client.table("credit_transactions")
            .select("amount")
            .eq("user_id", user_id)
            .eq("profile_id", profile_id),
        )
        return sum(int(row["amount"]) for row in cast(list[dict[str, Any]], response.data))
