import os
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager

from olympiad.quiz.domain.errors import RepositoryError
from olympiad.shared.telemetry import Telemetry, measure_time


class DatabaseManager:
    """
    Responsible for:
    1. Managing the SQLite connection lifecycle (explicit open / close).
    2. Initializing the schema (DDL) and migrating older databases.
    3. Serializing statements on the shared connection across worker threads.
    """

    def __init__(self, db_path: str = "data/olympiad.db") -> None:
        self.db_path = db_path
        self.telemetry = Telemetry("DatabaseManager")
        self._shared_connection: sqlite3.Connection | None = None
        self._lock = threading.RLock()

        self._ensure_db_exists()
        self._init_schema()
        self._migrate_schema()

    def get_connection(self) -> sqlite3.Connection:
        """Returns a usable connection, reconnecting if necessary."""
        with self._lock:
            if self._shared_connection:
                try:
                    self._shared_connection.execute("SELECT 1")
                    return self._shared_connection
                except sqlite3.ProgrammingError:
                    # Closed externally
                    self._shared_connection = None

            conn = sqlite3.connect(self.db_path, check_same_thread=False)
            if self.db_path != ":memory:":
                conn.execute("PRAGMA journal_mode=WAL")

            self._shared_connection = conn
            return conn

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """
        Runs a unit of work on the shared connection: commit on success,
        rollback on failure. Driver errors surface as RepositoryError.
        """
        with self._lock:
            conn = self.get_connection()
            try:
                yield conn
                conn.commit()
            except sqlite3.Error as e:
                conn.rollback()
                self.telemetry.log_error("Transaction failed", e, db_path=self.db_path)
                raise RepositoryError(str(e)) from e
            except Exception:
                conn.rollback()
                raise

    def close(self) -> None:
        with self._lock:
            if self._shared_connection:
                self._shared_connection.close()
                self._shared_connection = None

    def _ensure_db_exists(self) -> None:
        if self.db_path == ":memory:":
            return
        dir_name = os.path.dirname(self.db_path)
        if dir_name:
            os.makedirs(dir_name, exist_ok=True)

    @measure_time("db_init_schema")
    def _init_schema(self) -> None:
        with self.transaction() as conn:
            # Raw question documents, one bank per language
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS questions
                (
                    language   TEXT NOT NULL,
                    id         TEXT NOT NULL,
                    difficulty TEXT,
                    json_data  TEXT NOT NULL,
                    PRIMARY KEY (language, id)
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS daily_selections
                (
                    quiz_date    TEXT NOT NULL,
                    language     TEXT NOT NULL,
                    json_data    TEXT NOT NULL,
                    generated_at DATETIME,
                    PRIMARY KEY (quiz_date, language)
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS quiz_config
                (
                    type       TEXT PRIMARY KEY,
                    json_data  TEXT NOT NULL,
                    updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS quiz_attempts
                (
                    profile_id TEXT NOT NULL,
                    quiz_date  TEXT NOT NULL,
                    quiz_type  TEXT NOT NULL,
                    json_data  TEXT NOT NULL,
                    PRIMARY KEY (profile_id, quiz_date, quiz_type)
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS credit_transactions
                (
                    id          INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id     TEXT    NOT NULL,
                    profile_id  TEXT    NOT NULL,
                    amount      INTEGER NOT NULL,
                    source      TEXT    NOT NULL,
                    description TEXT,
                    created_at  DATETIME
                )
                """
            )

    def _migrate_schema(self) -> None:
        with self.transaction() as conn:
            columns = [info[1] for info in conn.execute("PRAGMA table_info(questions)")]

            # Migration: banks imported before difficulty was indexed
            if "difficulty" not in columns:
                self.telemetry.log_info("Migrating: Adding difficulty to questions")
                conn.execute("ALTER TABLE questions ADD COLUMN difficulty TEXT")
                conn.execute(
                    """
                    UPDATE questions
                    SET difficulty = lower(trim(COALESCE(
                            json_extract(json_data, '$.difficulty'),
                            json_extract(json_data, '$.Difficulty'))))
                    """
                )
