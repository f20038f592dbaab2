from __future__ import annotations

import logging
from typing import Any

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.asyncpg import AsyncPGInstrumentor
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from citypulse.core.config import settings

logger = logging.getLogger(__name__)


def _parse_headers(raw: str | None) -> dict[str, Any] | None:
    if not raw:
        return None
    return {
        kv.split("=", 1)[0].strip(): kv.split("=", 1)[1].strip()
        for kv in raw.split(",")
        if "=" in kv
    }


def configure_tracing(app) -> bool:
    """Instrument the app when tracing is switched on. Returns whether it was."""
    if not settings.otel_enabled or not settings.otel_endpoint:
        return False

    resource = Resource.create({"service.name": settings.project_name, "deployment.environment": settings.environment})
    provider = TracerProvider(resource=resource)
    exporter = OTLPSpanExporter(endpoint=settings.otel_endpoint, headers=_parse_headers(settings.otel_headers))
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)

    FastAPIInstrumentor.instrument_app(app)
    if settings.database_url.startswith("postgresql+asyncpg"):
        AsyncPGInstrumentor().instrument()
    logger.info("OpenTelemetry tracing enabled", extra={"otel_endpoint": settings.otel_endpoint})
    return True
