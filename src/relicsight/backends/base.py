"""
The agent SDK boundary.

A backend is the narrow set of calls the facade is allowed to make against
a monitoring agent. The facade never talks to an agent library directly.
"""

from __future__ import annotations

import importlib
from types import ModuleType
from typing import Any, Optional, Protocol, runtime_checkable


@runtime_checkable
class AgentBackend(Protocol):
    name: str

    def is_available(self) -> bool: ...

    def set_app_name(self, name: str) -> None: ...

    def begin_transaction(self, app_name: str) -> None: ...

    def name_transaction(self, name: str) -> None: ...

    def end_transaction(self, discard: bool = False) -> None: ...

    def ignore_transaction(self) -> None: ...

    def ignore_apdex(self) -> None: ...

    def capture_params(self, enabled: bool) -> None: ...

    def add_custom_tracer(self, method: str) -> None: ...

    def add_custom_parameter(self, key: str, value: Any) -> None: ...

    def custom_metric(self, name: str, value: float) -> None: ...

    def notice_exception(self, code: int, exception: BaseException) -> None: ...

    def notice_error(
        self,
        code: Any,
        description: Any,
        file: Any,
        line: Any,
        context: Any = None,
    ) -> None: ...

    def set_user_attributes(self, user: str, account: str, product: str) -> None: ...


class NullBackend:
    """Stand-in used when no agent is loaded. Every call is a no-op."""

    name = "null"

    def is_available(self) -> bool:
        return False

    def set_app_name(self, name: str) -> None:
        pass

    def begin_transaction(self, app_name: str) -> None:
        pass

    def name_transaction(self, name: str) -> None:
        pass

    def end_transaction(self, discard: bool = False) -> None:
        pass

    def ignore_transaction(self) -> None:
        pass

    def ignore_apdex(self) -> None:
        pass

    def capture_params(self, enabled: bool) -> None:
        pass

    def add_custom_tracer(self, method: str) -> None:
        pass

    def add_custom_parameter(self, key: str, value: Any) -> None:
        pass

    def custom_metric(self, name: str, value: float) -> None:
        pass

    def notice_exception(self, code: int, exception: BaseException) -> None:
        pass

    def notice_error(self, code: Any, description: Any, file: Any, line: Any, context: Any = None) -> None:
        pass

    def set_user_attributes(self, user: str, account: str, product: str) -> None:
        pass


def split_method_path(method: str) -> tuple[str, str]:
    """
    Split a tracer target into ``(module_path, object_path)``.

    Accepts ``"pkg.module:Class.method"`` and, for convenience,
    ``"pkg.module.function"`` (the last dotted segment is the object).
    """
    if ":" in method:
        module_path, object_path = method.split(":", 1)
    elif "." in method:
        module_path, object_path = method.rsplit(".", 1)
    else:
        raise ValueError(f"Tracer target must be 'module:object.path', got {method!r}")
    if not module_path or not object_path:
        raise ValueError(f"Tracer target must be 'module:object.path', got {method!r}")
    return module_path, object_path


def resolve_target(method: str) -> tuple[ModuleType, Any, str, Any]:
    """
    Import a tracer target.

    Returns ``(module, owner, attribute, original)`` where ``owner`` is the
    object holding ``attribute`` (the module or a class).
    """
    module_path, object_path = split_method_path(method)
    module = importlib.import_module(module_path)
    parts = object_path.split(".")
    owner: Any = module
    for part in parts[:-1]:
        owner = getattr(owner, part)
    attribute = parts[-1]
    original: Optional[Any] = getattr(owner, attribute)
    return module, owner, attribute, original
