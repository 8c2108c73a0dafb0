"""Logging, OpenTelemetry instrumentation and observability utilities."""

from menu_api.observability.config import configure_logging, setup_observability
from menu_api.observability.decorators import traced

__all__ = ["setup_observability", "configure_logging", "traced"]
