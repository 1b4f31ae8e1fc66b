"""
Olympiad Quiz API

To run:
    uvicorn app:app --reload --port 8000

Environment:
    OLYMPIAD_BACKEND            sqlite (default) | supabase
    OLYMPIAD_DB_PATH            SQLite file, default data/olympiad.db
    OLYMPIAD_SEED_FILE          JSON question banks loaded into an empty store
    SUPABASE_URL, SUPABASE_KEY  required for the supabase backend
    OTEL_EXPORTER_OTLP_ENDPOINT / OTEL_EXPORTER_OTLP_HEADERS
                                enable trace and log export
"""

import logging
import os

# --- OTel & Observability Imports ---
from opentelemetry import trace
from opentelemetry._logs import set_logger_provider
from opentelemetry.exporter.otlp.proto.grpc._log_exporter import OTLPLogExporter
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

# --- Prometheus Import ---
from prometheus_client import start_http_server

# --- Application Imports ---
from olympiad.api.app import create_app
from olympiad.config import EngineConfig

logger = logging.getLogger("olympiad.bootstrap")


def configure_observability() -> None:
    """
    Sends traces and logs over OTLP when the endpoint is configured and
    exposes Prometheus metrics on EngineConfig.METRICS_PORT.
    """
    endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
    headers = os.getenv("OTEL_EXPORTER_OTLP_HEADERS")

    if endpoint and headers:
        resource = Resource.create({"service.name": EngineConfig.SERVICE_NAME})

        trace_provider = TracerProvider(resource=resource)
        trace_provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint, headers=headers))
        )
        trace.set_tracer_provider(trace_provider)

        logger_provider = LoggerProvider(resource=resource)
        logger_provider.add_log_record_processor(
            BatchLogRecordProcessor(OTLPLogExporter(endpoint=endpoint, headers=headers))
        )
        set_logger_provider(logger_provider)
        logging.getLogger().addHandler(
            LoggingHandler(level=logging.INFO, logger_provider=logger_provider)
        )
    else:
        logger.warning("OTEL env vars not set. Telemetry stays local.")

    try:
        start_http_server(EngineConfig.METRICS_PORT)
        logger.info("Prometheus metrics on port %s", EngineConfig.METRICS_PORT)
    except OSError:
        # Already bound by a previous worker or a --reload restart
        logger.warning("Metrics port %s in use. Skipping.", EngineConfig.METRICS_PORT)


logging.basicConfig(
    level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
)
configure_observability()

app = create_app()
