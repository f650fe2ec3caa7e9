"""Tests for the process default facade."""

from __future__ import annotations

from unittest import mock

from relicsight import _state
from relicsight.backends.base import NullBackend
from relicsight.config import FacadeConfig


class TestDefaultFacade:
    def test_not_initialized(self):
        assert _state.get_facade() is None

    def test_initialize_is_idempotent(self, backend: mock.MagicMock, config: FacadeConfig):
        first = _state.initialize(config, backend=backend)
        second = _state.initialize(FacadeConfig(app_name="other"), backend=NullBackend())
        assert first is second
        assert _state.get_facade() is first
        assert first.config.app_name == "test-app"

    def test_initialize_reads_environment(self, monkeypatch):
        monkeypatch.setenv("NEW_RELIC_APP_NAME", "from-env")
        monkeypatch.setenv("RELICSIGHT_BACKEND", "null")
        facade = _state.initialize()
        assert facade.config.app_name == "from-env"
        assert facade.enabled is False

    def test_init_otel_only_for_opentelemetry_backend(self, backend: mock.MagicMock, config: FacadeConfig):
        with mock.patch("relicsight._state.init_telemetry") as init:
            _state.initialize(config, backend=backend, init_otel=True)
        init.assert_not_called()

    def test_init_otel_bootstraps_providers(self, backend: mock.MagicMock):
        config = FacadeConfig(app_name="shop", backend="opentelemetry")
        providers = (mock.MagicMock(), mock.MagicMock())
        with mock.patch("relicsight._state.init_telemetry", return_value=providers) as init, \
                mock.patch("relicsight._state.atexit.register"):
            _state.initialize(config, backend=backend, init_otel=True)

        assert init.call_args.kwargs["service_name"] == "shop"

        with mock.patch("relicsight._state.shutdown_telemetry") as shutdown:
            _state.shutdown()
        shutdown.assert_called_once_with(*providers)

    def test_shutdown_without_providers_is_noop(self):
        with mock.patch("relicsight._state.shutdown_telemetry") as shutdown:
            _state.shutdown()
        shutdown.assert_not_called()

    def test_reset(self, backend: mock.MagicMock, config: FacadeConfig):
        _state.initialize(config, backend=backend)
        _state.reset()
        assert _state.get_facade() is None
