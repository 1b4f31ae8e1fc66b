from datetime import date
from typing import Any

from fastapi import APIRouter, Body, HTTPException, Query, Request

from olympiad.config import Language
from olympiad.quiz.domain.models import QuizSubmission

router = APIRouter(prefix="/quiz", tags=["quiz"])


def get_services(request: Request) -> Any:
    return request.app.state.services


def _parse_date(value: str | None) -> date | None:
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid date: {value}") from None


@router.get("/daily-questions")
def daily_questions(
    request: Request,
    language: str | None = None,
    quiz_date: str | None = Query(default=None, alias="date"),
) -> dict[str, Any]:
    """
    Today's question set for a language. Every caller on the same day
    receives the same questions in the same order.
    """
    services = get_services(request)
    result = services.daily_quiz.get_or_create(
        Language.from_param(language), _parse_date(quiz_date)
    )
    return result.to_response()


@router.get("/config")
def read_config(request: Request) -> dict[str, Any]:
    config = get_services(request).config.get_config()
    return {"success": True, "config": config.model_dump(mode="json", by_alias=True)}


@router.put("/config")
def update_config(
    request: Request, payload: dict[str, Any] = Body(...)
) -> dict[str, Any]:
    config = get_services(request).config.update_config(payload)
    return {"success": True, "config": config.model_dump(mode="json", by_alias=True)}


@router.get("/stats")
def pool_stats(request: Request, language: str | None = None) -> dict[str, Any]:
    lang = Language.from_param(language)
    stats = get_services(request).pool_stats.stats(lang)
    return {"success": True, "language": lang.value, "stats": stats}


@router.get("/validate")
def validate_pool(request: Request, language: str | None = None) -> dict[str, Any]:
    lang = Language.from_param(language)
    report = get_services(request).pool_stats.validate(lang)
    return {"success": True, "language": lang.value, **report}


@router.post("/submit")
def submit_quiz(request: Request, submission: QuizSubmission) -> dict[str, Any]:
    attempt, credits = get_services(request).submissions.submit(submission)
    return {
        "success": True,
        "attempt": attempt.model_dump(mode="json"),
        "creditsAwarded": credits,
    }
