from collections.abc import Callable
from datetime import date

from olympiad.config import EngineConfig
from olympiad.quiz.application.daily_quiz import utc_today
from olympiad.quiz.domain.errors import DuplicateAttemptError
from olympiad.quiz.domain.models import CreditAward, QuizAttempt, QuizSubmission
from olympiad.quiz.domain.ports import IAttemptStore, ICreditLedger
from olympiad.quiz.domain.quota import round_half_up
from olympiad.shared.telemetry import Telemetry, measure_time


class SubmissionService:
    """
    Records a completed daily quiz and pays out credits. One daily attempt
    per profile per day.
    """

    def __init__(
        self,
        attempts: IAttemptStore,
        ledger: ICreditLedger,
        today: Callable[[], date] = utc_today,
    ) -> None:
        self.attempts = attempts
        self.ledger = ledger
        self.today = today
        self.telemetry = Telemetry("SubmissionService")

    @staticmethod
    def compute_score(correct: int, total: int) -> int:
        return round_half_up(correct / total * 100) if total > 0 else 0

    @measure_time("submit_daily_quiz")
    def submit(self, submission: QuizSubmission) -> tuple[QuizAttempt, int]:
        """Returns the stored attempt and the number of credits awarded."""
        # Attempts are keyed on the server day
        quiz_date = self.today().isoformat()
        quiz_type = EngineConfig.DAILY_QUIZ_TYPE

        if self.attempts.has_attempt(submission.profile_id, quiz_date, quiz_type):
            self.telemetry.log_warning(
                "Duplicate daily submission",
                profile_id=submission.profile_id,
                date=quiz_date,
            )
            raise DuplicateAttemptError(submission.profile_id, quiz_date)

        score = submission.score
        if score is None:
            score = self.compute_score(
                submission.correct_answers, submission.total_questions
            )

        attempt = QuizAttempt(
            profile_id=submission.profile_id,
            user_id=submission.user_id,
            date=quiz_date,
            type=quiz_type,
            answers=submission.answers,
            score=score,
            correct_answers=submission.correct_answers,
            total_questions=submission.total_questions,
            time_spent=submission.time_spent,
            language=submission.language,
        )
        self.attempts.save_attempt(attempt)

        credits = submission.correct_answers * EngineConfig.DAILY_QUIZ_CREDITS_PER_CORRECT
        if credits > 0:
            self.ledger.award(
                CreditAward(
                    user_id=submission.user_id,
                    profile_id=submission.profile_id,
                    amount=credits,
                    description=(
                        f"Daily quiz {quiz_date}: "
                        f"{submission.correct_answers}/{submission.total_questions} correct"
                    ),
                )
            )

        self.telemetry.log_info(
            "Daily quiz submitted",
            profile_id=submission.profile_id,
            date=quiz_date,
            score=score,
            credits=credits,
        )
        return attempt, credits
