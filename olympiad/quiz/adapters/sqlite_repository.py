import json
import sqlite3
from typing import Any

from olympiad.config import EngineConfig, Language
from olympiad.quiz.adapters.db_manager import DatabaseManager
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


class SQLiteQuizRepository(IQuizRepository):
    def __init__(self, db_manager: DatabaseManager) -> None:
        self.telemetry = Telemetry("SQLiteRepository")
        self.db_manager = db_manager

    def _parse_rows(self, rows: list[tuple[str]], language: Language) -> list[Question]:
        questions = []
        for (json_data,) in rows:
            try:
                questions.append(parse_question(json.loads(json_data), language))
            except ValueError as e:
                # One malformed document must not take the whole bank down
                self.telemetry.log_error("Skipping unparseable question", e)
        return questions

    def is_empty(self) -> bool:
        """Helper for the Seeder."""
        with self.db_manager.transaction() as conn:
            row = conn.execute("SELECT count(*) FROM questions").fetchone()
        return (row[0] if row else 0) == 0

    # --- Question Repository ---

    @measure_time("db_fetch_by_difficulty")
    def fetch_by_difficulty(
        self, language: Language, difficulty: Difficulty
    ) -> list[Question]:
        with self.db_manager.transaction() as conn:
            rows = conn.execute(
                """
                SELECT json_data
                FROM questions
                WHERE language = ?
                  AND lower(difficulty) = ?
                ORDER BY id
                """,
                (language.value, difficulty.value),
            ).fetchall()
        return self._parse_rows(rows, language)

    @measure_time("db_fetch_all")
    def fetch_all(self, language: Language, limit: int) -> list[Question]:
        with self.db_manager.transaction() as conn:
            rows = conn.execute(
                "SELECT json_data FROM questions WHERE language = ? ORDER BY id LIMIT ?",
                (language.value, limit),
            ).fetchall()
        return self._parse_rows(rows, language)

    def count_all(self, language: Language) -> int:
        with self.db_manager.transaction() as conn:
            row = conn.execute(
                "SELECT count(*) FROM questions WHERE language = ?", (language.value,)
            ).fetchone()
        return row[0] if row else 0

    def count_by_difficulty(self, language: Language) -> dict[Difficulty, int]:
        counts = {d: 0 for d in Difficulty}
        with self.db_manager.transaction() as conn:
            rows = conn.execute(
                """
                SELECT lower(difficulty), count(*)
                FROM questions
                WHERE language = ?
                GROUP BY lower(difficulty)
                """,
                (language.value,),
            ).fetchall()
        for tag, count in rows:
            difficulty = Difficulty.parse(tag)
            if difficulty:
                counts[difficulty] = count
        return counts

    def seed_questions(self, language: Language, raw_docs: list[dict[str, Any]]) -> int:
        stored = 0
        with self.db_manager.transaction() as conn:
            for doc in raw_docs:
                doc_id = doc.get("id", doc.get("_id"))
                if doc_id is None:
                    self.telemetry.log_warning("Skipping question without id")
                    continue
                conn.execute(
                    """
                    INSERT OR REPLACE INTO questions (language, id, difficulty, json_data)
                    VALUES (?, ?, ?, ?)
                    """,
                    (
                        language.value,
                        str(doc_id),
                        raw_difficulty(doc),
                        json.dumps(doc, ensure_ascii=False, default=str),
                    ),
                )
                stored += 1
        self.telemetry.log_info("Seeded questions", language=language.value, count=stored)
        return stored

    # --- Daily Selection Store ---

    @measure_time("db_get_selection")
    def get_selection(self, quiz_date: str, language: Language) -> DailySelection | None:
        with self.db_manager.transaction() as conn:
            row = conn.execute(
                "SELECT json_data FROM daily_selections WHERE quiz_date = ? AND language = ?",
                (quiz_date, language.value),
            ).fetchone()
        if not row:
            return None
        return DailySelection.model_validate_json(row[0])

    @measure_time("db_upsert_selection")
    def upsert_selection(self, selection: DailySelection) -> None:
        # Single statement: the document lands whole or not at all
        with self.db_manager.transaction() as conn:
            conn.execute(
                """
                INSERT INTO daily_selections (quiz_date, language, json_data, generated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(quiz_date, language) DO UPDATE SET
                    json_data    = excluded.json_data,
                    generated_at = excluded.generated_at
                """,
                (
                    selection.date,
                    selection.language.value,
                    selection.model_dump_json(),
                    selection.generated_at.isoformat(),
                ),
            )

    # --- Quiz Config Store ---

    def get_config(self) -> QuizConfig | None:
        with self.db_manager.transaction() as conn:
            row = conn.execute(
                "SELECT json_data FROM quiz_config WHERE type = ?",
                (EngineConfig.CONFIG_TYPE,),
            ).fetchone()
        return QuizConfig.model_validate_json(row[0]) if row else None

    def save_config(self, config: QuizConfig) -> None:
        with self.db_manager.transaction() as conn:
            conn.execute(
                """
                INSERT INTO quiz_config (type, json_data, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(type) DO UPDATE SET
                    json_data  = excluded.json_data,
                    updated_at = excluded.updated_at
                """,
                (config.type, config.model_dump_json(), config.updated_at.isoformat()),
            )

    # --- Attempts & Credits ---

    def has_attempt(self, profile_id: str, quiz_date: str, quiz_type: str) -> bool:
        with self.db_manager.transaction() as conn:
            row = conn.execute(
                """
                SELECT 1
                FROM quiz_attempts
                WHERE profile_id = ? AND quiz_date = ? AND quiz_type = ?
                """,
                (profile_id, quiz_date, quiz_type),
            ).fetchone()
        return row is not None

    @measure_time("db_save_attempt")
    def save_attempt(self, attempt: QuizAttempt) -> None:
        try:
            with self.db_manager.transaction() as conn:
                conn.execute(
                    """
                    INSERT INTO quiz_attempts (profile_id, quiz_date, quiz_type, json_data)
                    VALUES (?, ?, ?, ?)
                    """,
                    (
                        attempt.profile_id,
                        attempt.date,
                        attempt.type,
                        attempt.model_dump_json(),
                    ),
                )
        except RepositoryError as e:
            # Lost a race against a concurrent submission for the same day
            if isinstance(e.__cause__, sqlite3.IntegrityError):
                raise DuplicateAttemptError(attempt.profile_id, attempt.date) from e
            raise

    def award(self, award: CreditAward) -> None:
        with self.db_manager.transaction() as conn:
            conn.execute(
                """
                INSERT INTO credit_transactions
                    (user_id, profile_id, amount, source, description, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    award.user_id,
                    award.profile_id,
                    award.amount,
                    award.source,
                    award.description,
                    award.created_at.isoformat(),
                ),
            )
        self.telemetry.log_info(
            "Credits awarded",
            user_id=award.user_id,
            profile_id=award.profile_id,
            amount=award.amount,
            source=award.source,
        )

    def total_credits(self, user_id: str, profile_id: str) -> int:
        with self.db_manager.transaction() as conn:
            row = conn.execute(
                """
                SELECT COALESCE(SUM(amount), 0)
                FROM credit_transactions
                WHERE user_id = ? AND profile_id = ?
                """,
                (user_id, profile_id),
            ).fetchone()
        return int(row[0]) if row else 0
