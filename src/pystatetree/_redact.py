"""Helpers for safe debug logging.

Store state and payloads routinely carry credentials (login forms, API
tokens). This module renders them for log lines with sensitive fields
masked, long strings truncated and nesting capped.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from pydantic import BaseModel

DEFAULT_SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        "password",
        "passwd",
        "secret",
        "token",
        "accesstoken",
        "refreshtoken",
        "apikey",
        "api_key",
        "authorization",
        "cookie",
        "session",
    }
)


def redact_for_log(
    value: Any,
    *,
    max_string: int = 512,
    sensitive_keys: Iterable[str] | None = None,
    _depth: int = 0,
) -> Any:
    """Return a redacted plain copy of *value* suitable for log lines."""
    keys = DEFAULT_SENSITIVE_KEYS if sensitive_keys is None else frozenset(k.lower() for k in sensitive_keys)

    if _depth > 20:
        return "<max-depth>"

    if value is None:
        return None

    if isinstance(value, str):
        if len(value) > max_string:
            return f"{value[:max_string]}…<truncated>"
        return value

    if isinstance(value, (int, float, bool)):
        return value

    if isinstance(value, bytes):
        return f"<bytes:{len(value)}b>"

    if isinstance(value, BaseModel):
        value = value.model_dump()

    if isinstance(value, Mapping):
        redacted: dict[str, Any] = {}
        for k, v in value.items():
            key = str(k)
            if key.lower() in keys:
                redacted[key] = "<redacted>"
            else:
                redacted[key] = redact_for_log(v, max_string=max_string, sensitive_keys=keys, _depth=_depth + 1)
        return redacted

    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return [redact_for_log(v, max_string=max_string, sensitive_keys=keys, _depth=_depth + 1) for v in value]

    return repr(value)
