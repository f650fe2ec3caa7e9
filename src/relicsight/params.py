"""
Payload hygiene for custom parameters.

Agents only accept scalar attribute values, and only allow-listed request
variables are ever forwarded so that sensitive data (session cookies,
credentials in the environment) does not leak by accident.
"""

from __future__ import annotations

import json
from typing import Any, Iterable, Iterator, Mapping

Scalar = (str, int, float, bool)


def is_scalar(value: Any) -> bool:
    return isinstance(value, Scalar)


def normalize_parameter(value: Any) -> Any:
    """
    Make a value safe to hand to the agent.

    Strings, numbers and booleans pass through; anything else (None, dicts,
    lists, objects) is serialized to a JSON string. Values JSON cannot
    encode (mixed or non-primitive keys, cycles) fall back to ``str(value)``.
    """
    if is_scalar(value):
        return value
    try:
        return json.dumps(value, default=str, sort_keys=True)
    except (TypeError, ValueError):
        return str(value)


def tracked_items(
    variables: Mapping[str, Any],
    allowed: Iterable[str],
    prefix: str,
) -> Iterator[tuple[str, Any]]:
    """
    Yield ``(prefix + key.lower(), value)`` for allow-listed keys only.

    Matching is exact on the original key; the forwarded key is lower-cased.
    """
    allow = set(allowed)
    if not allow:
        return
    for key, value in variables.items():
        if key not in allow:
            continue
        yield f"{prefix}{key.lower()}", value
