"""
Process-wide default facade.

Hosts that cannot inject an AgentFacade (mixins, module-level helpers) share
the one created here. Configuration is still built once and passed in;
nothing else is global.
"""

from __future__ import annotations

import atexit
import logging
from typing import Optional

from relicsight.backends import AgentBackend
from relicsight.config import FacadeConfig
from relicsight.facade import AgentFacade
from relicsight.otel_setup import ExporterType, init_telemetry, shutdown_telemetry

logger = logging.getLogger(__name__)

_facade: Optional[AgentFacade] = None
_tracer_provider: Optional[object] = None
_meter_provider: Optional[object] = None
_atexit_registered: bool = False


def initialize(
    config: Optional[FacadeConfig] = None,
    backend: Optional[AgentBackend] = None,
    init_otel: bool = False,
    exporter: ExporterType = ExporterType.CONSOLE,
    otlp_endpoint: Optional[str] = None,
    otlp_headers: Optional[dict[str, str]] = None,
) -> AgentFacade:
    """
    Create the default facade.

    Safe to call multiple times -- subsequent calls are no-ops
    and return the existing facade.

    With ``init_otel=True`` and the OpenTelemetry backend selected, the OTel
    providers are configured first (service name = app name) so the backend
    probe finds them.
    """
    global _facade, _tracer_provider, _meter_provider, _atexit_registered

    if _facade is not None:
        return _facade

    config = config or FacadeConfig.from_env()

    if init_otel and config.backend == "opentelemetry":
        _tracer_provider, _meter_provider = init_telemetry(
            service_name=config.app_name,
            exporter=exporter,
            otlp_endpoint=otlp_endpoint,
            otlp_headers=otlp_headers,
        )
        if not _atexit_registered:
            atexit.register(shutdown)
            _atexit_registered = True

    _facade = AgentFacade(config, backend=backend)
    return _facade


def get_facade() -> Optional[AgentFacade]:
    """Return the default facade, or None if not initialized."""
    return _facade


def shutdown() -> None:
    """Flush and shut down OTel providers. Called automatically at process exit."""
    global _tracer_provider, _meter_provider
    try:
        if _tracer_provider and _meter_provider:
            shutdown_telemetry(_tracer_provider, _meter_provider)  # type: ignore[arg-type]
    except Exception:
        logger.debug("Error during telemetry shutdown", exc_info=True)
    _tracer_provider = None
    _meter_provider = None


def reset() -> None:
    """Reset all global state. For testing only."""
    global _facade, _tracer_provider, _meter_provider
    _facade = None
    _tracer_provider = None
    _meter_provider = None
