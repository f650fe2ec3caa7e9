"""
Mixin for host controllers and commands.

Usage:
    class UsersController(TransactionMixin, BaseController):
        def dispatch(self, request):
            self.set_name(RequestDescriptor.from_params(request.route_params))
            self.start()
            try:
                return super().dispatch(request)
            except Exception as e:
                self.send_exception(e)
                raise
            finally:
                self.stop()

The mixin keeps its own transaction name and delegates everything else to
an AgentFacade: ``self.apm`` when the host assigns one, else the process
default from ``relicsight._state``.
"""

from __future__ import annotations

from typing import Any, Optional

from relicsight import _state
from relicsight.facade import AgentFacade
from relicsight.naming import Descriptor, NamingPolicy


class TransactionMixin:
    apm: Optional[AgentFacade] = None

    @property
    def _naming(self) -> NamingPolicy:
        policy = self.__dict__.get("_transaction_naming")
        if policy is None:
            policy = NamingPolicy()
            self.__dict__["_transaction_naming"] = policy
        return policy

    @property
    def _facade(self) -> AgentFacade:
        return self.apm if self.apm is not None else _state.initialize()

    def set_name(self, descriptor: Descriptor) -> None:
        """Set the transaction name from a command or request descriptor."""
        self._naming.set_name(descriptor)

    def get_name(self) -> str:
        return self._naming.get_name()

    def application_name(self, name: str) -> None:
        self._facade.set_application_name(name)

    def start(self, name: Optional[str] = None) -> None:
        self._facade.start_transaction(self._naming.get_transaction_name(name))

    def stop(self, ignore: bool = False) -> None:
        self._facade.stop_transaction(ignore)

    def ignore_transaction(self) -> None:
        self._facade.ignore_current_transaction()

    def ignore_apdex(self) -> None:
        self._facade.ignore_current_apdex()

    def parameter(self, key: str, value: Any) -> None:
        self._facade.set_custom_parameter(key, value)

    def metric(self, key: str, value: float) -> None:
        self._facade.record_metric(key, value)

    def capture_params(self, capture: bool) -> None:
        self._facade.set_capture_params(capture)

    def add_tracer(self, method: str) -> None:
        self._facade.add_custom_tracer(method)

    def user(self, user: str, account: str, product: str) -> None:
        self._facade.set_user_attributes(user, account, product)

    def send_exception(self, exc: BaseException) -> None:
        self._facade.report_exception(exc)

    def send_error(self, code: Any, description: Any, file: Any, line: Any, context: Any = None) -> None:
        self._facade.report_error(code, description, file, line, context)
