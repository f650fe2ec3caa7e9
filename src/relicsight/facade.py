"""
AgentFacade: the single gateway between application code and the agent.

Key design decisions:
  1. Availability is probed once, at construction, and held as ``enabled``.
     When the agent is not loaded every operation returns immediately with
     no observable side effect (``set_custom_parameter`` returns False).

  2. Observability never interrupts the host. A failing agent call is
     logged and swallowed; the only error raised to callers is
     InvalidArgument for a non-numeric metric.

  3. Ignore lists and variable allow-lists live in an injected FacadeConfig,
     not in globals. The current transaction name lives in a NamingPolicy
     whose storage is request-scoped.
"""

from __future__ import annotations

import decimal
import logging
import numbers
from typing import Any, Iterable, Optional, Union

from relicsight.backends import AgentBackend, detect_backend
from relicsight.config import FacadeConfig
from relicsight.environment import RequestEnvironment
from relicsight.errors import InvalidArgument
from relicsight.naming import NamingPolicy
from relicsight.params import normalize_parameter, tracked_items

logger = logging.getLogger(__name__)

# Error code sent with exceptions reported through report_exception
EXCEPTION_ERROR_CODE = 0


def exception_type_name(exc_type: type) -> str:
    """Fully qualified name used to match ignored exception types."""
    return f"{exc_type.__module__}.{exc_type.__qualname__}"


class AgentFacade:
    """
    Forwards instrumentation calls to an agent backend.

    Usage:
        facade = AgentFacade(FacadeConfig.from_env())
        facade.start_transaction("Users/view")
        facade.set_custom_parameter("user_id", 42)
        facade.stop_transaction()
    """

    def __init__(
        self,
        config: Optional[FacadeConfig] = None,
        backend: Optional[AgentBackend] = None,
        naming: Optional[NamingPolicy] = None,
    ) -> None:
        self.config = config or FacadeConfig()
        self.backend = backend if backend is not None else detect_backend(self.config.backend)
        self.naming = naming or NamingPolicy()
        self.enabled = bool(self.backend.is_available())
        logger.debug("AgentFacade using backend=%s enabled=%s", self.backend.name, self.enabled)

    def _forward(self, operation: str, *args: Any) -> None:
        """Call ``operation`` on the backend. Agent failures are logged, never raised."""
        try:
            getattr(self.backend, operation)(*args)
        except Exception:
            logger.warning("Agent call %s failed", operation, exc_info=True)

    # --- Application and transactions ---

    def set_application_name(self, name: str) -> None:
        if not self.enabled:
            return
        self._forward("set_app_name", name)

    def start_transaction(self, explicit_name: Optional[str] = None) -> None:
        """Begin a transaction under the configured app name, then name it."""
        if not self.enabled:
            return
        name = self.naming.get_transaction_name(explicit_name)
        if name:
            self.naming.store(name)
        self._forward("begin_transaction", self.config.app_name)
        if name:
            self._forward("name_transaction", name)

    def stop_transaction(self, discard: bool = False) -> None:
        """End the transaction. ``discard`` drops the statistics gathered for it."""
        if not self.enabled:
            return
        self._forward("end_transaction", discard)

    def ignore_current_transaction(self) -> None:
        if not self.enabled:
            return
        self._forward("ignore_transaction")

    def ignore_current_apdex(self) -> None:
        if not self.enabled:
            return
        self._forward("ignore_apdex")

    def set_capture_params(self, enabled: bool) -> None:
        if not self.enabled:
            return
        self._forward("capture_params", enabled)

    def add_custom_tracer(self, method: str) -> None:
        """Have the agent additionally time ``method`` (``"pkg.module:Class.method"``)."""
        if not self.enabled:
            return
        self._forward("add_custom_tracer", method)

    add_tracer = add_custom_tracer
    tracer = add_custom_tracer

    # --- Parameters, metrics, users ---

    def set_custom_parameter(self, key: str, value: Any) -> bool:
        """
        Attach a custom parameter to the current transaction.

        Non-scalar values are JSON-encoded first. Returns False when the
        agent is not loaded.
        """
        if not self.enabled:
            return False
        try:
            value = normalize_parameter(value)
        except Exception:
            logger.warning("Could not encode custom parameter %s", key, exc_info=True)
            return True
        self._forward("add_custom_parameter", key, value)
        return True

    def record_metric(self, key: str, value: Union[int, float, decimal.Decimal]) -> None:
        """
        Record a custom metric.

        Raises:
            InvalidArgument: if ``value`` is not a real number or a Decimal.
        """
        if not self.enabled:
            return
        if isinstance(value, bool) or not isinstance(value, (numbers.Real, decimal.Decimal)):
            raise InvalidArgument(f"Metric value must be numeric, got {type(value).__name__}")
        if isinstance(value, decimal.Decimal):
            value = float(value)
        self._forward("custom_metric", key, value)

    def set_user_attributes(self, user: str, account: str, product: str) -> None:
        if not self.enabled:
            return
        self._forward("set_user_attributes", user, account, product)

    # --- Configuration ---

    def register_ignored_exception_type(self, type_name: Union[str, type]) -> None:
        """Never report exceptions of this type (a class or its name)."""
        if isinstance(type_name, type):
            type_name = exception_type_name(type_name)
        self.config.ignore_exception(type_name)

    def register_ignored_error_substring(self, text: str) -> None:
        """Never report errors whose description contains ``text``."""
        self.config.ignore_error(text)

    def set_tracked_server_variables(self, names: Iterable[str]) -> None:
        self.config.collect_server_variables(names)

    def set_tracked_cookie_variables(self, names: Iterable[str]) -> None:
        self.config.collect_cookie_variables(names)

    # --- Errors ---

    def is_ignored_exception(self, exc: BaseException) -> bool:
        exc_type = type(exc)
        ignored = self.config.ignored_exception_types
        return exception_type_name(exc_type) in ignored or exc_type.__name__ in ignored

    def is_ignored_error(self, description: Any) -> bool:
        text = str(description)
        return any(substring in text for substring in self.config.ignored_error_substrings)

    def report_exception(self, exc: BaseException) -> None:
        if not self.enabled:
            return
        if self.is_ignored_exception(exc):
            return
        self._forward("notice_exception", EXCEPTION_ERROR_CODE, exc)

    def report_error(
        self,
        code: Any,
        description: Any,
        file: Any,
        line: Any,
        context: Any = None,
    ) -> None:
        if not self.enabled:
            return
        if self.is_ignored_error(description):
            return
        self._forward("notice_error", code, description, file, line, context)

    # --- Environment ---

    def collect_environment(self, env: Optional[RequestEnvironment] = None) -> None:
        """
        Attach request data to the transaction.

        Query, form and upload maps are always sent (as ``_get``, ``_post``,
        ``_files``); server variables and cookies only for allow-listed keys.
        """
        if not self.enabled:
            return
        if env is None:
            env = RequestEnvironment.from_process()

        self.set_custom_parameter("_get", dict(env.query))
        self.set_custom_parameter("_post", dict(env.form))
        self.set_custom_parameter("_files", dict(env.files))

        for key, value in tracked_items(env.server, self.config.tracked_server_variables, "server_"):
            self.set_custom_parameter(key, value)

        for key, value in tracked_items(env.cookies, self.config.tracked_cookie_variables, "cookie_"):
            self.set_custom_parameter(key, value)
