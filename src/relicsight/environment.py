"""Host environment maps read by ``AgentFacade.collect_environment``."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from http.cookies import CookieError, SimpleCookie
from typing import Any, Mapping, Optional
from urllib.parse import parse_qs


def _flatten(parsed: dict[str, list[str]]) -> dict[str, Any]:
    # parse_qs always returns lists; keep repeated keys as lists only
    return {k: v[0] if len(v) == 1 else v for k, v in parsed.items()}


@dataclass(frozen=True)
class RequestEnvironment:
    """
    Read-only snapshot of the maps describing the current request.

    Attributes:
        query:    Query-string parameters.
        form:     Posted form fields.
        files:    Uploaded files (name -> metadata).
        server:   Server / environment variables.
        cookies:  Request cookies.
    """

    query: Mapping[str, Any] = field(default_factory=dict)
    form: Mapping[str, Any] = field(default_factory=dict)
    files: Mapping[str, Any] = field(default_factory=dict)
    server: Mapping[str, Any] = field(default_factory=dict)
    cookies: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_wsgi(
        cls,
        environ: Mapping[str, Any],
        form: Optional[Mapping[str, Any]] = None,
        files: Optional[Mapping[str, Any]] = None,
    ) -> "RequestEnvironment":
        """
        Build from a WSGI environ.

        The body is never read here: posted form fields and uploads belong to
        the host framework and are passed in already parsed.
        """
        query = _flatten(parse_qs(environ.get("QUERY_STRING", ""), keep_blank_values=True))

        cookies: dict[str, str] = {}
        raw_cookie = environ.get("HTTP_COOKIE", "")
        if raw_cookie:
            jar = SimpleCookie()
            try:
                jar.load(raw_cookie)
            except CookieError:
                jar = SimpleCookie()
            cookies = {k: morsel.value for k, morsel in jar.items()}

        server = {k: v for k, v in environ.items() if isinstance(v, str)}

        return cls(
            query=query,
            form=dict(form or {}),
            files=dict(files or {}),
            server=server,
            cookies=cookies,
        )

    @classmethod
    def from_process(cls) -> "RequestEnvironment":
        """Environment of a command or worker: no request maps, process env as server variables."""
        return cls(server=dict(os.environ))
