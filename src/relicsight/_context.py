"""
Request-scoped values keyed by owner object.

Each slot is one module-level ContextVar holding a weak mapping of
owner -> value. Owners created per request (naming policies, backends in
tests) therefore add no new variables to the thread's context, and their
entries disappear once the owner is garbage collected.

The mapping is copied on every write, so a value set in one thread or
asyncio task is never visible to another.
"""

from __future__ import annotations

import contextvars
import weakref
from typing import Any, Optional


class ContextSlot:
    def __init__(self, name: str, default: Any = None) -> None:
        self._var: contextvars.ContextVar[Optional[weakref.WeakKeyDictionary]] = contextvars.ContextVar(
            name, default=None
        )
        self._default = default

    def get(self, owner: object) -> Any:
        values = self._var.get()
        if values is None:
            return self._default
        return values.get(owner, self._default)

    def set(self, owner: object, value: Any) -> None:
        values: weakref.WeakKeyDictionary = weakref.WeakKeyDictionary()
        current = self._var.get()
        if current is not None:
            values.update(current)
        if value is None:
            values.pop(owner, None)
        else:
            values[owner] = value
        self._var.set(values)

    def size(self) -> int:
        """Number of live owners holding a value in the current context."""
        values = self._var.get()
        return len(values) if values is not None else 0
