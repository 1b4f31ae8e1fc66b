from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import date

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from olympiad.api.routes import router
from olympiad.config import EngineConfig
from olympiad.quiz.adapters.db_manager import DatabaseManager
from olympiad.quiz.adapters.seeder import DataSeeder
from olympiad.quiz.adapters.sqlite_repository import SQLiteQuizRepository
from olympiad.quiz.application.config_service import QuizConfigService
from olympiad.quiz.application.daily_quiz import DailyQuizService, utc_today
from olympiad.quiz.application.pool_stats import PoolStatsService
from olympiad.quiz.application.submission import SubmissionService
from olympiad.quiz.domain.errors import (
    ConfigurationError,
    DuplicateAttemptError,
    FutureQuizDateError,
    RepositoryError,
)
from olympiad.quiz.domain.ports import IQuizRepository
from olympiad.shared.telemetry import Telemetry

telemetry = Telemetry("Api")


@dataclass
class Services:
    daily_quiz: DailyQuizService
    config: QuizConfigService
    pool_stats: PoolStatsService
    submissions: SubmissionService
    close: Callable[[], None] = field(default=lambda: None)


def build_services(
    repo: IQuizRepository,
    today: Callable[[], date] = utc_today,
    close: Callable[[], None] = lambda: None,
) -> Services:
    config = QuizConfigService(repo)
    return Services(
        daily_quiz=DailyQuizService(repo, repo, config, today=today),
        config=config,
        pool_stats=PoolStatsService(repo, config),
        submissions=SubmissionService(repo, repo, today=today),
        close=close,
    )


def build_default_services() -> Services:
    """Composition root driven by EngineConfig / environment."""
    if EngineConfig.BACKEND == "supabase":
        from olympiad.quiz.adapters.supabase_repository import SupabaseQuizRepository

        repo: IQuizRepository = SupabaseQuizRepository(
            EngineConfig.SUPABASE_URL, EngineConfig.SUPABASE_KEY
        )
        close: Callable[[], None] = lambda: None
    else:
        db_manager = DatabaseManager(EngineConfig.DB_PATH)
        repo = SQLiteQuizRepository(db_manager)
        close = db_manager.close

    DataSeeder(repo).seed_if_empty(EngineConfig.SEED_FILE)
    return build_services(repo, close=close)


def create_app(services_factory: Callable[[], Services] = build_default_services) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        services = services_factory()
        app.state.services = services
        telemetry.log_info("Quiz API started", backend=EngineConfig.BACKEND)
        try:
            yield
        finally:
            services.close()
            telemetry.log_info("Quiz API stopped")

    app = FastAPI(title=EngineConfig.APP_TITLE, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def trace_requests(request: Request, call_next):
        trace_id = Telemetry.start_trace()
        response = await call_next(request)
        response.headers["X-Trace-Id"] = trace_id
        return response

    @app.exception_handler(ConfigurationError)
    async def configuration_error(request: Request, exc: ConfigurationError):
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": str(exc), "details": exc.errors},
        )

    @app.exception_handler(FutureQuizDateError)
    async def future_quiz_date(request: Request, exc: FutureQuizDateError):
        return JSONResponse(status_code=400, content={"success": False, "error": str(exc)})

    @app.exception_handler(DuplicateAttemptError)
    async def duplicate_attempt(request: Request, exc: DuplicateAttemptError):
        return JSONResponse(status_code=409, content={"success": False, "error": str(exc)})

    @app.exception_handler(RepositoryError)
    async def repository_error(request: Request, exc: RepositoryError):
        telemetry.log_error("Request failed on storage", exc, path=request.url.path)
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "Question store unavailable"},
        )

    app.include_router(router)

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "healthy"}

    return app
