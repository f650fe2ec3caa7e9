"""
Demo: a tiny WSGI app instrumented through relicsight.

Run:
    pip install -e .
    python examples/demo.py

Uses the OpenTelemetry backend with console exporters, so spans are printed
to stdout. With the New Relic agent installed, set RELICSIGHT_BACKEND=newrelic
and run under ``newrelic-admin run-program`` instead.
"""

from __future__ import annotations

import logging
from wsgiref.util import setup_testing_defaults

from relicsight import FacadeConfig, RequestDescriptor, RequestEnvironment, initialize
from relicsight import _state

logging.basicConfig(level=logging.DEBUG)

ROUTES = {
    "/users/42": {"plugin": "Admin", "controller": "Users", "action": "view"},
    "/pages/home.json": {"controller": "Pages", "action": "display", "ext": "json"},
}


def app(environ, start_response):
    facade = initialize()
    route = ROUTES.get(environ["PATH_INFO"])
    if route is None:
        start_response("404 Not Found", [("Content-Type", "text/plain")])
        return [b"not found"]

    facade.naming.set_name(RequestDescriptor.from_params(route))
    facade.start_transaction()
    try:
        facade.collect_environment(RequestEnvironment.from_wsgi(environ))
        facade.set_user_attributes("alice", "acme", "pro")
        facade.record_metric("demo.rows", 12)
        if route["controller"] == "Pages":
            raise KeyError("missing page")
        start_response("200 OK", [("Content-Type", "text/plain")])
        return [b"ok"]
    except KeyError as e:
        facade.report_exception(e)
        start_response("500 Internal Server Error", [("Content-Type", "text/plain")])
        return [b"error"]
    finally:
        facade.stop_transaction()


def main() -> None:
    config = FacadeConfig(app_name="relicsight-demo", backend="opentelemetry")
    config.collect_server_variables(["HTTP_HOST"])
    config.collect_cookie_variables(["locale"])
    initialize(config, init_otel=True)

    for path in ROUTES:
        environ: dict = {"PATH_INFO": path, "QUERY_STRING": "page=1", "HTTP_COOKIE": "locale=en; session=x"}
        setup_testing_defaults(environ)
        app(environ, lambda status, headers: None)

    _state.shutdown()


if __name__ == "__main__":
    main()
