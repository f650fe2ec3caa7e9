"""
New Relic backend: forwards facade calls to the ``newrelic.agent`` API.

The agent module is imported lazily; when it is not installed the backend
reports itself unavailable and the facade never calls it.
"""

from __future__ import annotations

import importlib
import logging
from typing import Any, Optional

from relicsight._context import ContextSlot
from relicsight.backends.base import split_method_path
from relicsight.params import normalize_parameter

logger = logging.getLogger(__name__)

AGENT_MODULE = "newrelic.agent"


class ReportedError(Exception):
    """Carrier for errors reported by code/description rather than as an exception."""


def _import_agent() -> Optional[Any]:
    try:
        return importlib.import_module(AGENT_MODULE)
    except ImportError:
        return None


class NewRelicBackend:
    name = "newrelic"

    # Transaction this backend opened itself, per thread / task
    _tasks = ContextSlot("relicsight_newrelic_task")

    def __init__(self, agent: Optional[Any] = None) -> None:
        self._agent = agent if agent is not None else _import_agent()
        self._app_name: Optional[str] = None

    def is_available(self) -> bool:
        return self._agent is not None

    def set_app_name(self, name: str) -> None:
        self._app_name = name

    def begin_transaction(self, app_name: str) -> None:
        if self._agent.current_transaction() is not None:
            logger.debug("Transaction already active, reusing it")
            return
        application = self._agent.application(self._app_name or app_name)
        task = self._agent.BackgroundTask(application, name="unnamed")
        task.__enter__()
        self._tasks.set(self, task)

    def name_transaction(self, name: str) -> None:
        self._agent.set_transaction_name(name)

    def end_transaction(self, discard: bool = False) -> None:
        if discard:
            self._agent.ignore_transaction()
        task = self._tasks.get(self)
        if task is None:
            self._agent.end_of_transaction()
            return
        self._tasks.set(self, None)
        task.__exit__(None, None, None)

    def ignore_transaction(self) -> None:
        self._agent.ignore_transaction()

    def ignore_apdex(self) -> None:
        self._agent.suppress_apdex_metric()

    def capture_params(self, enabled: bool) -> None:
        self._agent.capture_request_params(enabled)

    def add_custom_tracer(self, method: str) -> None:
        module_path, object_path = split_method_path(method)
        module = importlib.import_module(module_path)
        self._agent.wrap_function_trace(module, object_path)

    def add_custom_parameter(self, key: str, value: Any) -> None:
        self._agent.add_custom_attribute(key, value)

    def custom_metric(self, name: str, value: float) -> None:
        self._agent.record_custom_metric(name, value)

    def notice_exception(self, code: int, exception: BaseException) -> None:
        self._agent.notice_error(
            error=(type(exception), exception, exception.__traceback__),
            attributes={"error.code": code},
        )

    def notice_error(self, code: Any, description: Any, file: Any, line: Any, context: Any = None) -> None:
        error = ReportedError(str(description))
        attributes: dict[str, Any] = {
            "error.code": normalize_parameter(code),
            "error.file": normalize_parameter(file),
            "error.line": normalize_parameter(line),
        }
        if context is not None:
            attributes["error.context"] = normalize_parameter(context)
        self._agent.notice_error(error=(ReportedError, error, None), attributes=attributes)

    def set_user_attributes(self, user: str, account: str, product: str) -> None:
        self._agent.add_custom_attribute("user", user)
        self._agent.add_custom_attribute("account", account)
        self._agent.add_custom_attribute("product", product)
