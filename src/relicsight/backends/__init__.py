"""
Agent backends and backend detection.

``auto`` selection tries each registered backend in order and keeps the
first one whose agent is loaded in this process; otherwise the NullBackend
is returned and the facade stays disabled.
"""

from __future__ import annotations

import importlib
import logging

from relicsight.backends.base import AgentBackend, NullBackend

logger = logging.getLogger(__name__)

# Maps backend name -> (import_probe, "module:Class")
#   import_probe : module path to try-import to detect the agent library
_REGISTRY: dict[str, tuple[str, str]] = {
    "newrelic": ("newrelic.agent", "relicsight.backends.newrelic_agent:NewRelicBackend"),
    "opentelemetry": ("opentelemetry.sdk.trace", "relicsight.backends.otel:OpenTelemetryBackend"),
}


def _library_available(import_probe: str) -> bool:
    """Return True if the agent library is importable."""
    try:
        importlib.import_module(import_probe)
        return True
    except ImportError:
        return False


def load_backend(name: str) -> AgentBackend:
    """Instantiate a backend by name. Unknown names raise ValueError."""
    if name == "null":
        return NullBackend()
    entry = _REGISTRY.get(name)
    if entry is None:
        raise ValueError(f"Unknown backend: {name!r}")

    import_probe, target = entry
    if not _library_available(import_probe):
        logger.debug("Backend %s requested but %s is not installed", name, import_probe)
        return NullBackend()

    module_path, class_name = target.split(":")
    backend_cls = getattr(importlib.import_module(module_path), class_name)
    return backend_cls()


def detect_backend(preferred: str = "auto") -> AgentBackend:
    """Return the backend for ``preferred``, probing registered agents when it is ``auto``."""
    if preferred != "auto":
        return load_backend(preferred)

    for name in _REGISTRY:
        backend = load_backend(name)
        if backend.is_available():
            logger.debug("Detected agent backend: %s", name)
            return backend

    logger.debug("No agent backend available, monitoring disabled")
    return NullBackend()


def available_backends() -> list[str]:
    """Names of backends whose agent library is importable in this environment."""
    return [name for name, (import_probe, _) in _REGISTRY.items() if _library_available(import_probe)]


__all__ = [
    "AgentBackend",
    "NullBackend",
    "available_backends",
    "detect_backend",
    "load_backend",
]
