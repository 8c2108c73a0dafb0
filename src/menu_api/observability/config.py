"""Logging and OpenTelemetry configuration."""

import logging
import os
from typing import Any

from opentelemetry import metrics, trace
from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.botocore import BotocoreInstrumentor
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from pythonjsonlogger import jsonlogger

logger = logging.getLogger(__name__)

DEFAULT_OTLP_ENDPOINT = "http://localhost:4318"
METRIC_EXPORT_INTERVAL_MS = 60000

# Third-party loggers that flood DEBUG output with request dumps
QUIET_LOGGERS = ("botocore", "boto3", "urllib3")


def get_service_resource(environment: str) -> Resource:
    """Describe this process to the telemetry backend.

    Args:
        environment: Deployment environment name

    Returns:
        Resource with service name and environment attributes
    """
    return Resource.create(
        {
            "service.name": os.getenv("OTEL_SERVICE_NAME", "menu-api"),
            "deployment.environment": environment,
        }
    )


def _build_providers(
    resource: Resource, endpoint: str | None
) -> tuple[TracerProvider, MeterProvider]:
    """Create tracer and meter providers, exporting over OTLP when ``endpoint`` is set."""
    tracer_provider = TracerProvider(resource=resource)
    if endpoint is None:
        return tracer_provider, MeterProvider(resource=resource)

    tracer_provider.add_span_processor(
        BatchSpanProcessor(OTLPSpanExporter(endpoint=f"{endpoint}/v1/traces"))
    )
    reader = PeriodicExportingMetricReader(
        OTLPMetricExporter(endpoint=f"{endpoint}/v1/metrics"),
        export_interval_millis=METRIC_EXPORT_INTERVAL_MS,
    )
    return tracer_provider, MeterProvider(resource=resource, metric_readers=[reader])


def setup_observability(app: Any = None, environment: str = "development") -> None:
    """Install global telemetry providers and auto-instrumentation.

    Exporters are left out in the test environment so no spans leave the
    process.

    Args:
        app: Optional FastAPI application to instrument
        environment: Deployment environment name
    """
    endpoint = None
    if environment != "test":
        endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", DEFAULT_OTLP_ENDPOINT)

    tracer_provider, meter_provider = _build_providers(get_service_resource(environment), endpoint)
    trace.set_tracer_provider(tracer_provider)
    metrics.set_meter_provider(meter_provider)

    # DynamoDB calls go through botocore
    BotocoreInstrumentor().instrument()
    if app is not None:
        FastAPIInstrumentor.instrument_app(app)

    logger.info(f"OpenTelemetry configured (environment={environment}, exporter={endpoint})")


def configure_logging(log_level: str = "INFO") -> None:
    """Send all log records to stderr as JSON.

    Replaces any handlers on the root logger.

    Args:
        log_level: Logging level name, overridden by ``LOG_LEVEL``
    """
    level_name = os.getenv("LOG_LEVEL", log_level).upper()
    level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler()
    handler.setFormatter(
        jsonlogger.JsonFormatter(
            "%(asctime)s %(name)s %(levelname)s %(message)s",
            timestamp=True,
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers[:] = [handler]
    root_logger.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.INFO))

    logger.info(f"Structured JSON logging configured at {level_name} level")
