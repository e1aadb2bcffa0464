"""Custom exception hierarchy for pystatetree."""

from __future__ import annotations


class StateTreeError(Exception):
    """Base exception for all pystatetree errors."""


class StoreConfigError(StateTreeError):
    """Malformed module definition or store options."""


class ModuleNotRegisteredError(StateTreeError, KeyError):
    """No module is registered at the requested path."""

    def __init__(self, path: tuple[str, ...]) -> None:
        self.path = path
        super().__init__(f"module '{'/'.join(path)}' is not registered")

    def __str__(self) -> str:
        return str(self.args[0])


class StrictModeViolationError(StateTreeError, AssertionError):
    """State was changed outside a mutation handler while strict mode is on.

    Raised synchronously to the code that performed the write. Only
    installed when the store runs in dev mode with ``strict`` enabled.
    """
