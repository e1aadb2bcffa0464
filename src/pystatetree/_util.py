"""Small shared helpers: path handling and handler arity."""

from __future__ import annotations

import functools
import inspect
from collections.abc import Callable, Sequence
from typing import Any

ModulePath = str | Sequence[str]


def normalize_path(path: ModulePath) -> tuple[str, ...] | None:
    """Return *path* as a tuple of keys, or ``None`` if it is not a valid path."""
    if isinstance(path, str):
        return (path,)
    if isinstance(path, Sequence) and all(isinstance(key, str) for key in path):
        return tuple(path)
    return None


def get_nested_state(state: Any, path: Sequence[str]) -> Any:
    """Walk *path* from *state*; a missing key raises ``KeyError``."""
    return functools.reduce(lambda current, key: current[key], path, state)


def positional_arity(fn: Callable[..., Any]) -> int | None:
    """Number of positional arguments *fn* accepts (``None`` = unlimited)."""
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):
        return None
    count = 0
    for param in signature.parameters.values():
        if param.kind is inspect.Parameter.VAR_POSITIONAL:
            return None
        if param.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD):
            count += 1
    return count


def call_with_arity(fn: Callable[..., Any], arity: int | None, *args: Any) -> Any:
    """Call *fn* with as many leading *args* as it accepts."""
    if arity is None:
        return fn(*args)
    return fn(*args[:arity])
