"""
Transaction naming.

A transaction name is derived from whatever the host is currently handling:

  - a command (CLI / worker job): its declared name, unchanged
  - a request: ``prefix/plugin/controller/action[.ext]`` with absent
    segments omitted entirely

Descriptors are read through a narrow duck-typed interface, so any object
exposing ``name`` (commands) or ``controller``/``action`` plus the optional
``prefix``/``plugin``/``extension`` accessors (requests) can be passed in.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from relicsight._context import ContextSlot


@dataclass(frozen=True)
class CommandDescriptor:
    """A command invocation. The transaction name is the command's name."""

    name: str


@dataclass(frozen=True)
class RequestDescriptor:
    """
    A routed request.

    ``controller`` and ``action`` are required; ``prefix``, ``plugin`` and
    ``extension`` are optional and dropped from the name when absent.
    """

    controller: str
    action: str
    prefix: Optional[str] = None
    plugin: Optional[str] = None
    extension: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.controller:
            raise ValueError("controller is required")
        if not self.action:
            raise ValueError("action is required")

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> "RequestDescriptor":
        """Build a descriptor from routing parameters (``ext`` or ``extension`` for the suffix)."""
        return cls(
            controller=params["controller"],
            action=params["action"],
            prefix=params.get("prefix") or None,
            plugin=params.get("plugin") or None,
            extension=params.get("ext") or params.get("extension") or None,
        )


Descriptor = Union[CommandDescriptor, RequestDescriptor, Any]


def _is_request(descriptor: Any) -> bool:
    return hasattr(descriptor, "controller") and hasattr(descriptor, "action")


def derive_name(descriptor: Descriptor) -> str:
    """Compute a transaction name from a command or request descriptor."""
    if isinstance(descriptor, CommandDescriptor):
        return descriptor.name

    if isinstance(descriptor, RequestDescriptor) or _is_request(descriptor):
        segments = [
            getattr(descriptor, "prefix", None),
            getattr(descriptor, "plugin", None),
            descriptor.controller,
            descriptor.action,
        ]
        name = "/".join(str(s) for s in segments if s)

        extension = getattr(descriptor, "extension", None)
        if extension:
            name += "." + str(extension)
        return name

    if hasattr(descriptor, "name"):
        return str(descriptor.name)

    raise TypeError(f"Cannot derive a transaction name from {type(descriptor).__name__}")


class NamingPolicy:
    """
    Holds the current transaction name.

    The stored name is request-scoped: each thread or asyncio task of a
    concurrent host sees only the name it set.
    """

    _names = ContextSlot("relicsight_transaction_name", default="")

    def set_name(self, descriptor: Descriptor) -> str:
        """Derive the name from ``descriptor`` and store it. Returns the name."""
        name = derive_name(descriptor)
        self._names.set(self, name)
        return name

    def store(self, name: str) -> None:
        self._names.set(self, name)

    @property
    def name(self) -> str:
        return self._names.get(self)

    def get_name(self) -> str:
        return self._names.get(self)

    def get_transaction_name(self, explicit_name: Optional[str] = None) -> str:
        """Return ``explicit_name`` if non-empty, else the stored name."""
        if explicit_name:
            return explicit_name
        return self._names.get(self)
