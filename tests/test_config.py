"""Tests for FacadeConfig."""

import pytest

from relicsight.config import DEFAULT_APP_NAME, FacadeConfig


class TestFacadeConfig:
    def test_defaults(self):
        config = FacadeConfig()
        assert config.app_name == DEFAULT_APP_NAME
        assert config.backend == "auto"
        assert config.ignored_exception_types == set()
        assert config.tracked_cookie_variables == set()

    def test_invalid_backend(self):
        with pytest.raises(ValueError, match="backend"):
            FacadeConfig(backend="datadog")

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("NEW_RELIC_APP_NAME", "shop")
        monkeypatch.setenv("RELICSIGHT_BACKEND", "null")
        monkeypatch.setenv("RELICSIGHT_IGNORED_EXCEPTIONS", "KeyError, app.errors.NotFound")
        monkeypatch.setenv("RELICSIGHT_IGNORED_ERRORS", "deprecated")
        monkeypatch.setenv("RELICSIGHT_SERVER_VARIABLES", "HTTP_HOST,,REMOTE_ADDR")
        monkeypatch.setenv("RELICSIGHT_COOKIE_VARIABLES", "")

        config = FacadeConfig.from_env()

        assert config.app_name == "shop"
        assert config.backend == "null"
        assert config.ignored_exception_types == {"KeyError", "app.errors.NotFound"}
        assert config.ignored_error_substrings == {"deprecated"}
        assert config.tracked_server_variables == {"HTTP_HOST", "REMOTE_ADDR"}
        assert config.tracked_cookie_variables == set()

    def test_explicit_values_win_over_env(self, monkeypatch):
        monkeypatch.setenv("NEW_RELIC_APP_NAME", "shop")
        monkeypatch.setenv("RELICSIGHT_BACKEND", "newrelic")
        config = FacadeConfig.from_env(app_name="admin", backend="null")
        assert config.app_name == "admin"
        assert config.backend == "null"

    def test_mutation_helpers(self):
        config = FacadeConfig()
        config.ignore_exception("KeyError")
        config.ignore_exception("KeyError")
        config.ignore_error("deprecated")
        config.collect_server_variables(["HTTP_HOST"])
        config.collect_server_variables(("REMOTE_ADDR",))
        config.collect_cookie_variables({"locale"})

        assert config.ignored_exception_types == {"KeyError"}
        assert config.ignored_error_substrings == {"deprecated"}
        assert config.tracked_server_variables == {"HTTP_HOST", "REMOTE_ADDR"}
        assert config.tracked_cookie_variables == {"locale"}
