class QuizEngineError(Exception):
    """Base class for errors surfaced to callers of the quiz engine."""


class ConfigurationError(QuizEngineError, ValueError):
    """A quiz configuration update failed validation. Nothing was stored."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        super().__init__("; ".join(errors))


class RepositoryError(QuizEngineError):
    """The underlying store could not be reached or a query failed."""


class DuplicateAttemptError(QuizEngineError):
    def __init__(self, profile_id: str, quiz_date: str) -> None:
        self.profile_id = profile_id
        self.quiz_date = quiz_date
        super().__init__(
            f"Profile {profile_id} already submitted the daily quiz for {quiz_date}"
        )


class FutureQuizDateError(QuizEngineError, ValueError):
    """A daily selection was requested for a day that has not started yet."""

    def __init__(self, quiz_date: str, today: str) -> None:
        self.quiz_date = quiz_date
        self.today = today
        super().__init__(f"Quiz for {quiz_date} is not available before that day")
