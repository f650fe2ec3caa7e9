"""
Shared test fixtures for relicsight tests.

OTel global providers can only be set once per process. We use session-scoped
setup for the providers and clear the in-memory exporter before each test.
"""

from __future__ import annotations

import threading
from typing import Iterator, Sequence
from unittest import mock

import pytest
from opentelemetry import metrics, trace
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import InMemoryMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import ReadableSpan, TracerProvider
from opentelemetry.sdk.trace.export import (
    SimpleSpanProcessor,
    SpanExporter,
    SpanExportResult,
)

from relicsight import _state
from relicsight.backends.base import NullBackend
from relicsight.backends.otel import OpenTelemetryBackend
from relicsight.config import FacadeConfig
from relicsight.facade import AgentFacade


class InMemorySpanExporter(SpanExporter):
    """Minimal in-memory exporter for test assertions."""

    def __init__(self) -> None:
        self._spans: list[ReadableSpan] = []
        self._lock = threading.Lock()

    def export(self, spans: Sequence[ReadableSpan]) -> SpanExportResult:
        with self._lock:
            self._spans.extend(spans)
        return SpanExportResult.SUCCESS

    def get_finished_spans(self) -> list[ReadableSpan]:
        with self._lock:
            return list(self._spans)

    def clear(self) -> None:
        with self._lock:
            self._spans.clear()

    def shutdown(self) -> None:
        pass

    def force_flush(self, timeout_millis: int = 0) -> bool:
        return True


# Module-level singletons: set once, reused across all tests
_span_exporter = InMemorySpanExporter()
_metric_reader = InMemoryMetricReader()
_otel_initialized = False


def _ensure_otel() -> None:
    global _otel_initialized
    if _otel_initialized:
        return
    resource = Resource.create({"service.name": "test"})

    tracer_provider = TracerProvider(resource=resource)
    tracer_provider.add_span_processor(SimpleSpanProcessor(_span_exporter))
    trace.set_tracer_provider(tracer_provider)

    meter_provider = MeterProvider(resource=resource, metric_readers=[_metric_reader])
    metrics.set_meter_provider(meter_provider)

    _otel_initialized = True


def metric_names(reader: InMemoryMetricReader) -> set[str]:
    """Names of every metric collected so far."""
    data = reader.get_metrics_data()
    if data is None:
        return set()
    return {
        m.name
        for rm in data.resource_metrics
        for sm in rm.scope_metrics
        for m in sm.metrics
    }


@pytest.fixture(autouse=True)
def _reset_exporter():
    """Clear collected spans and the default facade before each test."""
    _ensure_otel()
    _span_exporter.clear()
    _state.reset()
    yield
    _state.reset()


@pytest.fixture
def span_exporter() -> InMemorySpanExporter:
    """Access the shared in-memory span exporter."""
    return _span_exporter


@pytest.fixture
def metric_reader() -> InMemoryMetricReader:
    """Access the shared in-memory metric reader."""
    return _metric_reader


@pytest.fixture
def backend() -> mock.MagicMock:
    """A recording backend that reports the agent as loaded."""
    recorder = mock.create_autospec(NullBackend, instance=True)
    recorder.name = "recording"
    recorder.is_available.return_value = True
    return recorder


@pytest.fixture
def config() -> FacadeConfig:
    return FacadeConfig(app_name="test-app", backend="null")


@pytest.fixture
def facade(config: FacadeConfig, backend: mock.MagicMock) -> AgentFacade:
    return AgentFacade(config, backend=backend)


@pytest.fixture
def unavailable_backend() -> mock.MagicMock:
    """A recording backend whose agent is not loaded."""
    recorder = mock.create_autospec(NullBackend, instance=True)
    recorder.name = "recording"
    recorder.is_available.return_value = False
    return recorder


@pytest.fixture
def otel_backend() -> Iterator[OpenTelemetryBackend]:
    backend = OpenTelemetryBackend(tracer_name="test-apm", meter_name="test-apm")
    yield backend
    backend.remove_custom_tracers()
