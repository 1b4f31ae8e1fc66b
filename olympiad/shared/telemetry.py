import logging
import sys
import time
import uuid
from collections.abc import Callable
from contextvars import ContextVar
from functools import wraps
from typing import Any, ParamSpec, TypeVar, cast

from prometheus_client import REGISTRY, Counter, Histogram

# --- Correlation id shared by every log line of one request ---
trace_id_ctx: ContextVar[str] = ContextVar("trace_id", default="system")

DURATION_METRIC = "olympiad_method_duration_seconds"
CACHE_METRIC = "olympiad_daily_selection_lookups"

METHOD_DURATION: Histogram
CACHE_LOOKUPS: Counter


def _registered(name: str) -> Any:
    # Re-imports (uvicorn reload, pytest collection) must not register twice
    return REGISTRY._names_to_collectors[name]


try:
    METHOD_DURATION = Histogram(
        DURATION_METRIC, "Time spent in engine methods", ["component", "method"]
    )
except ValueError:
    METHOD_DURATION = cast(Histogram, _registered(DURATION_METRIC))

try:
    CACHE_LOOKUPS = Counter(
        CACHE_METRIC, "Daily selection cache lookups", ["language", "outcome"]
    )
except ValueError:
    # Counters register under both the base name and the _total suffix
    CACHE_LOOKUPS = cast(Counter, _registered(CACHE_METRIC))

P = ParamSpec("P")
R = TypeVar("R")


def measure_time(metric_name: str) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """
    Times an instance method into METHOD_DURATION and logs the outcome
    through the instance's `telemetry` attribute when it has one.
    """

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            owner: Any = args[0] if args else None
            component = owner.__class__.__name__ if owner is not None else "Unknown"
            telemetry = getattr(owner, "telemetry", None)

            start = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                elapsed = time.perf_counter() - start
                METHOD_DURATION.labels(component=component, method=func.__name__).observe(
                    elapsed
                )
                if telemetry:
                    telemetry.log_error(
                        f"Failed: {metric_name}", e, duration_ms=round(elapsed * 1000, 2)
                    )
                raise

            elapsed = time.perf_counter() - start
            METHOD_DURATION.labels(component=component, method=func.__name__).observe(
                elapsed
            )
            if telemetry:
                telemetry.log_info(metric_name, duration_ms=round(elapsed * 1000, 2))
            return result

        return wrapper

    return decorator


def record_cache_lookup(language: str, hit: bool) -> None:
    CACHE_LOOKUPS.labels(language=language, outcome="hit" if hit else "miss").inc()


class Telemetry:
    """
    Per-component logging facade. Every line carries the current trace id.
    """

    def __init__(self, component_name: str) -> None:
        self.component = component_name
        self.logger = logging.getLogger(f"olympiad.{component_name}")
        self._ensure_handler()

    def _ensure_handler(self) -> None:
        # Only attach a console handler when nothing upstream configured one
        if self.logger.handlers or logging.getLogger().handlers:
            return
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        )
        self.logger.addHandler(handler)
        self.logger.setLevel(logging.INFO)

    @staticmethod
    def start_trace() -> str:
        trace_id = uuid.uuid4().hex[:8]
        trace_id_ctx.set(trace_id)
        return trace_id

    @staticmethod
    def get_trace_id() -> str:
        return trace_id_ctx.get()

    def log_info(self, event: str, **fields: Any) -> None:
        self.logger.info(f"[{self.get_trace_id()}] {event} | {fields}")

    def log_warning(self, event: str, **fields: Any) -> None:
        self.logger.warning(f"[{self.get_trace_id()}] {event} | {fields}")

    def log_error(self, event: str, error: Exception, **fields: Any) -> None:
        self.logger.error(
            f"[{self.get_trace_id()}] {event} | Error: {error} | {fields}",
            exc_info=True,
        )
