"""
OpenTelemetry bootstrap for the OpenTelemetry backend.

Hosts that already configure OpenTelemetry themselves don't need this; the
backend only requires that an SDK TracerProvider is installed globally.

Environment overrides:

  OTEL_SERVICE_NAME              - Overrides service_name argument
  OTEL_EXPORTER_OTLP_ENDPOINT    - OTLP endpoint (e.g. http://localhost:4317)
  OTEL_EXPORTER_OTLP_HEADERS     - Extra headers (e.g. "api-key=xxx,team=web")
"""

from __future__ import annotations

import importlib
import os
from enum import Enum
from typing import Any, Optional

from opentelemetry import metrics, trace
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import (
    ConsoleMetricExporter,
    MetricExporter,
    PeriodicExportingMetricReader,
)
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter, SpanExporter


class ExporterType(str, Enum):
    CONSOLE = "console"
    OTLP_GRPC = "otlp_grpc"
    OTLP_HTTP = "otlp_http"


_OTLP_PACKAGES = {
    ExporterType.OTLP_GRPC: "opentelemetry-exporter-otlp-proto-grpc",
    ExporterType.OTLP_HTTP: "opentelemetry-exporter-otlp-proto-http",
}

# (exporter type, signal) -> (module, class, HTTP path suffix)
_OTLP_EXPORTERS: dict[tuple[ExporterType, str], tuple[str, str, Optional[str]]] = {
    (ExporterType.OTLP_GRPC, "traces"): (
        "opentelemetry.exporter.otlp.proto.grpc.trace_exporter", "OTLPSpanExporter", None,
    ),
    (ExporterType.OTLP_GRPC, "metrics"): (
        "opentelemetry.exporter.otlp.proto.grpc.metric_exporter", "OTLPMetricExporter", None,
    ),
    (ExporterType.OTLP_HTTP, "traces"): (
        "opentelemetry.exporter.otlp.proto.http.trace_exporter", "OTLPSpanExporter", "/v1/traces",
    ),
    (ExporterType.OTLP_HTTP, "metrics"): (
        "opentelemetry.exporter.otlp.proto.http.metric_exporter", "OTLPMetricExporter", "/v1/metrics",
    ),
}


def init_telemetry(
    service_name: str = "relicsight",
    exporter: ExporterType = ExporterType.CONSOLE,
    otlp_endpoint: Optional[str] = None,
    otlp_headers: Optional[dict[str, str]] = None,
    metric_export_interval_ms: int = 10_000,
) -> tuple[TracerProvider, MeterProvider]:
    """
    Install global OpenTelemetry providers for traces and metrics.

    Args:
        service_name: Service name for the OTel resource (usually the app name).
        exporter: Which exporter backend to use.
        otlp_endpoint: OTLP endpoint. Falls back to OTEL_EXPORTER_OTLP_ENDPOINT env var.
        otlp_headers: OTLP headers. Falls back to OTEL_EXPORTER_OTLP_HEADERS env var.
        metric_export_interval_ms: How often to flush metrics.

    Returns:
        Tuple of (TracerProvider, MeterProvider) for testing/shutdown access.
    """
    from relicsight import __version__

    resource = Resource.create(
        {
            "service.name": os.environ.get("OTEL_SERVICE_NAME", service_name),
            "telemetry.sdk.language": "python",
            "relicsight.version": __version__,
        }
    )

    span_exporter: SpanExporter
    metric_exporter: MetricExporter
    if exporter == ExporterType.CONSOLE:
        span_exporter = ConsoleSpanExporter()
        metric_exporter = ConsoleMetricExporter()
    else:
        span_exporter = _create_otlp_exporter(exporter, "traces", otlp_endpoint, otlp_headers)
        metric_exporter = _create_otlp_exporter(exporter, "metrics", otlp_endpoint, otlp_headers)

    tracer_provider = TracerProvider(resource=resource)
    tracer_provider.add_span_processor(BatchSpanProcessor(span_exporter))
    trace.set_tracer_provider(tracer_provider)

    metric_reader = PeriodicExportingMetricReader(
        metric_exporter,
        export_interval_millis=metric_export_interval_ms,
    )
    meter_provider = MeterProvider(resource=resource, metric_readers=[metric_reader])
    metrics.set_meter_provider(meter_provider)

    return tracer_provider, meter_provider


def shutdown_telemetry(
    tracer_provider: TracerProvider,
    meter_provider: MeterProvider,
    timeout_ms: int = 5_000,
) -> None:
    """Flush and shut down providers. Call on process exit."""
    tracer_provider.force_flush(timeout_millis=timeout_ms)
    tracer_provider.shutdown()
    meter_provider.shutdown()


# --- OTLP exporters ---


def _resolve_endpoint(endpoint: Optional[str]) -> str:
    return endpoint or os.environ.get("OTEL_EXPORTER_OTLP_ENDPOINT", "http://localhost:4317")


def _resolve_headers(headers: Optional[dict[str, str]]) -> Optional[dict[str, str]]:
    if headers:
        return headers
    raw = os.environ.get("OTEL_EXPORTER_OTLP_HEADERS")
    if not raw:
        return None
    parsed: dict[str, str] = {}
    for pair in raw.split(","):
        if "=" in pair:
            k, v = pair.split("=", 1)
            parsed[k.strip()] = v.strip()
    return parsed


def _create_otlp_exporter(
    exporter: ExporterType,
    signal: str,
    endpoint: Optional[str],
    headers: Optional[dict[str, str]],
) -> Any:
    module_path, class_name, path_suffix = _OTLP_EXPORTERS[(exporter, signal)]
    try:
        module = importlib.import_module(module_path)
    except ImportError as e:
        raise ImportError(
            f"{exporter.value} exporter requires '{_OTLP_PACKAGES[exporter]}'. "
            "Install with: pip install relicsight[otlp]"
        ) from e

    ep = _resolve_endpoint(endpoint)
    if path_suffix and not ep.endswith(path_suffix):
        ep = ep.rstrip("/") + path_suffix

    kwargs: dict[str, Any] = {"endpoint": ep}
    resolved_headers = _resolve_headers(headers)
    if resolved_headers:
        # gRPC exporters take metadata tuples, HTTP exporters a dict
        kwargs["headers"] = resolved_headers if path_suffix else list(resolved_headers.items())
    return getattr(module, class_name)(**kwargs)
