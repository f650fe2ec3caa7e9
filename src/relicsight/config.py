"""
Facade configuration.

Built once at startup and injected into the facade. Values can be set
programmatically or through environment variables; explicit values win
over the environment.

  NEW_RELIC_APP_NAME             - application name passed when a transaction begins
  RELICSIGHT_BACKEND             - auto | newrelic | opentelemetry | null
  RELICSIGHT_IGNORED_EXCEPTIONS  - comma-separated exception type names
  RELICSIGHT_IGNORED_ERRORS      - comma-separated error description substrings
  RELICSIGHT_SERVER_VARIABLES    - comma-separated server variable names to collect
  RELICSIGHT_COOKIE_VARIABLES    - comma-separated cookie names to collect
"""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass, field
from typing import Iterable, Optional

DEFAULT_APP_NAME = "Python Application"

BACKEND_CHOICES = ("auto", "newrelic", "opentelemetry", "null")


def _split_env(var: str) -> set[str]:
    raw = os.environ.get(var, "")
    return {item.strip() for item in raw.split(",") if item.strip()}


@dataclass
class FacadeConfig:
    """
    Process-wide agent configuration.

    Attributes:
        app_name:                  Application name handed to the agent at transaction start.
        backend:                   Which agent backend to use ("auto" probes in order).
        ignored_exception_types:   Exception type names that are never reported.
        ignored_error_substrings:  Errors whose description contains any of these are never reported.
        tracked_server_variables:  Allow-list of server variables collected per request.
        tracked_cookie_variables:  Allow-list of cookies collected per request.
    """

    app_name: str = DEFAULT_APP_NAME
    backend: str = "auto"
    ignored_exception_types: set[str] = field(default_factory=set)
    ignored_error_substrings: set[str] = field(default_factory=set)
    tracked_server_variables: set[str] = field(default_factory=set)
    tracked_cookie_variables: set[str] = field(default_factory=set)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.backend not in BACKEND_CHOICES:
            raise ValueError(f"backend must be one of {', '.join(BACKEND_CHOICES)}, got {self.backend!r}")

    @classmethod
    def from_env(
        cls,
        app_name: Optional[str] = None,
        backend: Optional[str] = None,
    ) -> "FacadeConfig":
        return cls(
            app_name=app_name or os.environ.get("NEW_RELIC_APP_NAME", DEFAULT_APP_NAME),
            backend=backend or os.environ.get("RELICSIGHT_BACKEND", "auto"),
            ignored_exception_types=_split_env("RELICSIGHT_IGNORED_EXCEPTIONS"),
            ignored_error_substrings=_split_env("RELICSIGHT_IGNORED_ERRORS"),
            tracked_server_variables=_split_env("RELICSIGHT_SERVER_VARIABLES"),
            tracked_cookie_variables=_split_env("RELICSIGHT_COOKIE_VARIABLES"),
        )

    # --- Mutation helpers ---

    def ignore_exception(self, type_name: str) -> None:
        with self._lock:
            self.ignored_exception_types.add(type_name)

    def ignore_error(self, text: str) -> None:
        with self._lock:
            self.ignored_error_substrings.add(text)

    def collect_server_variables(self, names: Iterable[str]) -> None:
        with self._lock:
            self.tracked_server_variables |= set(names)

    def collect_cookie_variables(self, names: Iterable[str]) -> None:
        with self._lock:
            self.tracked_cookie_variables |= set(names)
