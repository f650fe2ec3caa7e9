"""Tests for OpenTelemetry bootstrap helpers (no global providers are installed here)."""

from __future__ import annotations

from unittest import mock

import pytest

from relicsight.otel_setup import ExporterType, _create_otlp_exporter, _resolve_endpoint, _resolve_headers


class TestResolution:
    def test_endpoint_argument_wins(self, monkeypatch):
        monkeypatch.setenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://env:4317")
        assert _resolve_endpoint("http://arg:4317") == "http://arg:4317"

    def test_endpoint_from_env(self, monkeypatch):
        monkeypatch.setenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://env:4317")
        assert _resolve_endpoint(None) == "http://env:4317"

    def test_endpoint_default(self, monkeypatch):
        monkeypatch.delenv("OTEL_EXPORTER_OTLP_ENDPOINT", raising=False)
        assert _resolve_endpoint(None) == "http://localhost:4317"

    def test_headers_from_env(self, monkeypatch):
        monkeypatch.setenv("OTEL_EXPORTER_OTLP_HEADERS", "api-key=abc, team = web,broken")
        assert _resolve_headers(None) == {"api-key": "abc", "team": "web"}

    def test_no_headers(self, monkeypatch):
        monkeypatch.delenv("OTEL_EXPORTER_OTLP_HEADERS", raising=False)
        assert _resolve_headers(None) is None


class TestOtlpExporters:
    def test_missing_package_has_install_hint(self):
        with mock.patch("relicsight.otel_setup.importlib.import_module", side_effect=ImportError("nope")):
            with pytest.raises(ImportError, match="relicsight\\[otlp\\]"):
                _create_otlp_exporter(ExporterType.OTLP_GRPC, "traces", None, None)

    def test_http_endpoint_gets_signal_path(self, monkeypatch):
        monkeypatch.delenv("OTEL_EXPORTER_OTLP_HEADERS", raising=False)
        fake_module = mock.MagicMock()
        with mock.patch("relicsight.otel_setup.importlib.import_module", return_value=fake_module):
            _create_otlp_exporter(ExporterType.OTLP_HTTP, "metrics", "http://collector:4318/", {"k": "v"})

        fake_module.OTLPMetricExporter.assert_called_once_with(
            endpoint="http://collector:4318/v1/metrics",
            headers={"k": "v"},
        )

    def test_grpc_headers_are_tuples(self):
        fake_module = mock.MagicMock()
        with mock.patch("relicsight.otel_setup.importlib.import_module", return_value=fake_module):
            _create_otlp_exporter(ExporterType.OTLP_GRPC, "traces", "http://collector:4317", {"k": "v"})

        fake_module.OTLPSpanExporter.assert_called_once_with(
            endpoint="http://collector:4317",
            headers=[("k", "v")],
        )
