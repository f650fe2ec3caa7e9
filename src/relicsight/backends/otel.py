"""
OpenTelemetry backend: maps facade calls onto spans and metrics.

  transaction        -> span (renamed by name_transaction)
  custom parameter   -> attribute on the transaction span
  custom metric      -> histogram named after the metric
  exception / error  -> span exception / "error" event + apm.errors.total
  custom tracer      -> the target callable is wrapped in a child span

The current transaction is tracked per thread / asyncio task via a ContextVar,
so concurrent requests never share a span. Beginning a transaction while one
is active reuses it, as the New Relic agent does.
"""

from __future__ import annotations

import functools
import inspect
import logging
import threading
import time
from typing import Any, Callable, Optional

from opentelemetry import context as otel_context
from opentelemetry import metrics, trace
from opentelemetry.context import Context
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.trace import Span, Status, StatusCode

from relicsight._context import ContextSlot
from relicsight.backends.base import resolve_target
from relicsight.params import normalize_parameter

logger = logging.getLogger(__name__)


class _SpanHandle:
    """Internal bookkeeping for an open transaction span."""

    __slots__ = ("span", "context_token", "otel_context", "name")

    def __init__(self, span: Span, context_token: object, otel_ctx: Context, name: str) -> None:
        self.span = span
        self.context_token = context_token
        self.otel_context = otel_ctx
        self.name = name


class OpenTelemetryBackend:
    name = "opentelemetry"

    _transactions = ContextSlot("relicsight_otel_transaction")

    def __init__(self, tracer_name: str = "relicsight", meter_name: str = "relicsight") -> None:
        self._tracer = trace.get_tracer(tracer_name)
        self._meter = metrics.get_meter(meter_name)
        self._lock = threading.Lock()
        self._app_name: Optional[str] = None
        self._histograms: dict[str, Any] = {}
        # method path -> (owner, attribute, original static attribute)
        self._tracers: dict[str, tuple[Any, str, Any]] = {}

        self._transaction_counter = self._meter.create_counter(
            name="apm.transactions.total",
            description="Total transactions started",
            unit="1",
        )
        self._error_counter = self._meter.create_counter(
            name="apm.errors.total",
            description="Total exceptions and errors reported",
            unit="1",
        )
        self._transaction_duration = self._meter.create_histogram(
            name="apm.transaction.duration_ms",
            description="Transaction duration in milliseconds",
            unit="ms",
        )

    def is_available(self) -> bool:
        return isinstance(trace.get_tracer_provider(), TracerProvider)

    # --- Transactions ---

    def set_app_name(self, name: str) -> None:
        self._app_name = name
        span = self._active_span()
        if span is not None:
            span.set_attribute("apm.application", name)

    def begin_transaction(self, app_name: str) -> None:
        if self._transactions.get(self) is not None:
            logger.debug("Transaction already active, reusing it")
            return
        app = self._app_name or app_name
        self._transaction_counter.add(1, {"apm.application": app})
        span = self._tracer.start_span(name="transaction", attributes={"apm.application": app})
        ctx = trace.set_span_in_context(span)
        token = otel_context.attach(ctx)
        self._transactions.set(self, _SpanHandle(span, token, ctx, "transaction"))

    def name_transaction(self, name: str) -> None:
        handle = self._transactions.get(self)
        if handle is None:
            logger.warning("name_transaction(%s) without an active transaction", name)
            return
        handle.name = name
        handle.span.update_name(name)

    def end_transaction(self, discard: bool = False) -> None:
        handle = self._transactions.get(self)
        if handle is None:
            logger.warning("end_transaction without an active transaction")
            return
        self._transactions.set(self, None)

        span = handle.span
        if span.is_recording():
            span.set_attribute("apm.discarded", discard)
            # An OK status would overwrite an error reported during the transaction
            status = getattr(span, "status", None)
            if status is None or status.status_code == StatusCode.UNSET:
                span.set_status(Status(StatusCode.OK))
        start = getattr(span, "start_time", None)
        span.end()
        if start and not discard:
            duration_ms = (time.time_ns() - start) / 1_000_000
            self._transaction_duration.record(duration_ms, {"apm.transaction": handle.name})
        otel_context.detach(handle.context_token)  # type: ignore[arg-type]

    def ignore_transaction(self) -> None:
        self._set_attribute("apm.ignored", True)

    def ignore_apdex(self) -> None:
        self._set_attribute("apm.apdex.ignored", True)

    def capture_params(self, enabled: bool) -> None:
        self._set_attribute("apm.capture_params", enabled)

    # --- Custom tracers ---

    def add_custom_tracer(self, method: str) -> None:
        with self._lock:
            if method in self._tracers:
                return
            _, owner, attribute, _ = resolve_target(method)
            static = inspect.getattr_static(owner, attribute)
            if isinstance(static, (staticmethod, classmethod)):
                wrapped: Any = type(static)(self._wrap(method, static.__func__))
            else:
                wrapped = self._wrap(method, static)
            setattr(owner, attribute, wrapped)
            self._tracers[method] = (owner, attribute, static)
        logger.debug("Custom tracer installed on %s", method)

    def remove_custom_tracers(self) -> None:
        """Restore every callable wrapped by add_custom_tracer."""
        with self._lock:
            for owner, attribute, original in self._tracers.values():
                setattr(owner, attribute, original)
            self._tracers.clear()

    def _wrap(self, method: str, func: Callable[..., Any]) -> Callable[..., Any]:
        tracer = self._tracer

        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def _traced_async(*args: Any, **kwargs: Any) -> Any:
                with tracer.start_as_current_span(method, attributes={"apm.tracer": method}):
                    return await func(*args, **kwargs)

            return _traced_async

        @functools.wraps(func)
        def _traced(*args: Any, **kwargs: Any) -> Any:
            with tracer.start_as_current_span(method, attributes={"apm.tracer": method}):
                return func(*args, **kwargs)

        return _traced

    # --- Attributes and metrics ---

    def add_custom_parameter(self, key: str, value: Any) -> None:
        self._set_attribute(key, value)

    def custom_metric(self, name: str, value: float) -> None:
        with self._lock:
            histogram = self._histograms.get(name)
            if histogram is None:
                histogram = self._meter.create_histogram(name=name, description=f"Custom metric {name}")
                self._histograms[name] = histogram
        histogram.record(value, self._metric_attrs())

    def set_user_attributes(self, user: str, account: str, product: str) -> None:
        self._set_attribute("enduser.id", user)
        self._set_attribute("apm.account", account)
        self._set_attribute("apm.product", product)

    # --- Errors ---

    def notice_exception(self, code: int, exception: BaseException) -> None:
        self._error_counter.add(1, {"error.type": type(exception).__name__})
        span = self._active_span()
        if span is None or not span.is_recording():
            return
        span.record_exception(exception, attributes={"error.code": code})
        span.set_status(Status(StatusCode.ERROR, str(exception)))

    def notice_error(self, code: Any, description: Any, file: Any, line: Any, context: Any = None) -> None:
        self._error_counter.add(1, {"error.type": "error"})
        span = self._active_span()
        if span is None or not span.is_recording():
            return
        attrs: dict[str, Any] = {
            "error.code": normalize_parameter(code),
            "error.message": normalize_parameter(description),
            "code.filepath": normalize_parameter(file),
            "code.lineno": normalize_parameter(line),
        }
        if context is not None:
            attrs["error.context"] = normalize_parameter(context)
        span.add_event("error", attributes=attrs)
        span.set_status(Status(StatusCode.ERROR, str(description)))

    # --- Helpers ---

    def _active_span(self) -> Optional[Span]:
        handle = self._transactions.get(self)
        if handle is not None:
            return handle.span
        span = trace.get_current_span()
        return span if span.is_recording() else None

    def _set_attribute(self, key: str, value: Any) -> None:
        span = self._active_span()
        if span is None or not span.is_recording():
            logger.debug("No active transaction for attribute %s", key)
            return
        span.set_attribute(key, value)

    def _metric_attrs(self) -> dict[str, str]:
        handle = self._transactions.get(self)
        return {"apm.transaction": handle.name} if handle else {}
