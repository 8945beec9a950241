"""patternguard OpenTelemetry integration.

Emits one span per evaluated write. Gracefully degrades to no-op if
OpenTelemetry is not installed.

Install: pip install patternguard[otel]
"""

from __future__ import annotations

import contextlib
import os
from typing import Any

try:
    from opentelemetry import trace
    from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor

    _HAS_OTEL = True
except ImportError:
    _HAS_OTEL = False


def has_otel() -> bool:
    """Check if OpenTelemetry is available."""
    return _HAS_OTEL


def _is_provider_configured() -> bool:
    if not _HAS_OTEL:
        return False
    return isinstance(trace.get_tracer_provider(), TracerProvider)


def configure_otel(
    *,
    service_name: str = "patternguard",
    endpoint: str = "http://localhost:4317",
    protocol: str = "grpc",
    resource_attributes: dict[str, str] | None = None,
    force: bool = False,
) -> None:
    """Configure OpenTelemetry span export.

    A no-op when OTel is not installed, or when the host application has
    already set a TracerProvider (unless *force=True*).

    Standard OTel env vars take precedence over arguments:
    - OTEL_SERVICE_NAME overrides *service_name*
    - OTEL_EXPORTER_OTLP_ENDPOINT overrides *endpoint*
    - OTEL_EXPORTER_OTLP_PROTOCOL overrides *protocol*
    """
    if not _HAS_OTEL:
        return

    if _is_provider_configured() and not force:
        return

    actual_service = os.environ.get("OTEL_SERVICE_NAME", service_name)
    actual_endpoint = os.environ.get("OTEL_EXPORTER_OTLP_ENDPOINT", endpoint)
    actual_protocol = os.environ.get("OTEL_EXPORTER_OTLP_PROTOCOL", protocol)

    use_grpc = actual_protocol == "grpc"
    if not use_grpc and actual_endpoint == "http://localhost:4317":
        actual_endpoint = "http://localhost:4318/v1/traces"

    attrs: dict[str, str] = {"service.name": actual_service}
    if resource_attributes:
        attrs.update(resource_attributes)

    provider = TracerProvider(resource=Resource.create(attrs))

    if use_grpc:
        exporter = OTLPSpanExporter(endpoint=actual_endpoint, insecure=True)
    else:
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter as HTTPExporter

        exporter = HTTPExporter(endpoint=actual_endpoint)

    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)


def get_tracer(name: str = "patternguard") -> Any:
    """Get an OTel tracer. Returns no-op if OTel not installed."""
    if not _HAS_OTEL:
        return _NoOpTracer()
    return trace.get_tracer(name)


class _NoOpSpan:
    """Dummy span when OTel is not available."""

    def __enter__(self):
        return self

    def __exit__(self, *args):
        pass

    def set_attribute(self, key: str, value: Any) -> None:
        pass

    def set_status(self, status: Any, description: str | None = None) -> None:
        pass

    def end(self) -> None:
        pass


class _NoOpTracer:
    """Dummy tracer when OTel is not available."""

    def start_span(self, name: str, **kwargs: Any) -> _NoOpSpan:
        return _NoOpSpan()

    def start_as_current_span(self, name: str, **kwargs: Any) -> contextlib.AbstractContextManager:
        @contextlib.contextmanager
        def _noop_ctx():
            yield _NoOpSpan()

        return _noop_ctx()
