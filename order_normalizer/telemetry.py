"""Tracing and logging setup for hosts embedding the normalizer.

The normalizer is a library: it never configures logging on import. Hosts
call ``configure_logging`` once at startup; tracing initializes lazily on
the first normalized order.
"""

from __future__ import annotations

import logging
import threading

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SimpleSpanProcessor,
    SpanExporter,
)

from order_normalizer.config import config

logger = logging.getLogger(__name__)

SERVICE_NAME = "order-normalizer"
LOG_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"

_provider: TracerProvider | None = None
_tracer: trace.Tracer | None = None
_lock = threading.Lock()


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=getattr(logging, (level or config.log_level).upper(), logging.INFO),
        format=LOG_FORMAT,
    )


def _span_exporter() -> SpanExporter | None:
    if config.otel_endpoint:
        try:
            from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (
                OTLPSpanExporter,
            )
        except ImportError:
            logger.warning("OTLP exporter not installed, falling back to console")
            return ConsoleSpanExporter()
        logger.info("OTLP exporter configured: %s", config.otel_endpoint)
        return OTLPSpanExporter(endpoint=config.otel_endpoint)

    # Console spans only when debugging
    if config.log_level.upper() == "DEBUG":
        return ConsoleSpanExporter()
    return None


def init_telemetry() -> trace.Tracer:
    """Create the tracer provider once and return the normalizer tracer."""
    global _provider, _tracer
    with _lock:
        if _tracer is not None:
            return _tracer

        _provider = TracerProvider(resource=Resource.create({"service.name": SERVICE_NAME}))
        exporter = _span_exporter()
        if exporter is not None:
            _provider.add_span_processor(BatchSpanProcessor(exporter))

        trace.set_tracer_provider(_provider)
        _tracer = _provider.get_tracer(SERVICE_NAME)
        return _tracer


def add_span_exporter(exporter: SpanExporter) -> None:
    """Send finished spans to *exporter* as well, synchronously."""
    init_telemetry()
    _provider.add_span_processor(SimpleSpanProcessor(exporter))


def get_tracer() -> trace.Tracer:
    """Return the normalizer tracer (initializes on first call)."""
    if _tracer is None:
        return init_telemetry()
    return _tracer
