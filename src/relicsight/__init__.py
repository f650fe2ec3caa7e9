"""
relicsight: a thin façade over an APM agent (New Relic or OpenTelemetry).

Quick start::

    from relicsight import AgentFacade, FacadeConfig, RequestDescriptor

    facade = AgentFacade(FacadeConfig.from_env())
    facade.naming.set_name(RequestDescriptor(controller="Users", action="view", plugin="Admin"))
    facade.start_transaction()          # named "Admin/Users/view"
    facade.set_custom_parameter("user_id", 42)
    facade.stop_transaction()

When no agent is loaded in the process every call is a silent no-op.
"""

from relicsight._state import get_facade, initialize
from relicsight.backends import AgentBackend, NullBackend, available_backends, detect_backend, load_backend
from relicsight.config import FacadeConfig
from relicsight.environment import RequestEnvironment
from relicsight.errors import InvalidArgument
from relicsight.facade import AgentFacade
from relicsight.mixin import TransactionMixin
from relicsight.naming import CommandDescriptor, NamingPolicy, RequestDescriptor, derive_name
from relicsight.otel_setup import ExporterType, init_telemetry, shutdown_telemetry
from relicsight.params import normalize_parameter

__all__ = [
    # Facade
    "AgentFacade",
    "FacadeConfig",
    "InvalidArgument",
    "TransactionMixin",
    "get_facade",
    "initialize",
    # Naming
    "CommandDescriptor",
    "NamingPolicy",
    "RequestDescriptor",
    "derive_name",
    # Environment and payloads
    "RequestEnvironment",
    "normalize_parameter",
    # Backends
    "AgentBackend",
    "NullBackend",
    "available_backends",
    "detect_backend",
    "load_backend",
    # OpenTelemetry bootstrap
    "ExporterType",
    "init_telemetry",
    "shutdown_telemetry",
]

__version__ = "0.1.0"
