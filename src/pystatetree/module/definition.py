"""Pydantic models describing store modules.

A module definition is plain data: a state factory (or literal mapping),
mutation/action/getter tables and nested child modules. Definitions are
usually written as dicts and validated here::

    cart = {
        "namespaced": True,
        "state": lambda: {"items": []},
        "mutations": {"add": lambda state, item: state["items"].append(item)},
        "getters": {"count": lambda state: len(state["items"])},
    }
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from pystatetree.exceptions import StoreConfigError

Handler = Callable[..., Any]


class ActionDefinition(BaseModel):
    """An action with options, e.g. registered at root level from a namespaced module."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    handler: Handler
    root: bool = False


class ModuleDefinition(BaseModel):
    """Raw definition of a single module and its children."""

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    state: Any = None
    mutations: dict[str, Handler] = Field(default_factory=dict)
    actions: dict[str, ActionDefinition | Handler] = Field(default_factory=dict)
    getters: dict[str, Handler] = Field(default_factory=dict)
    modules: dict[str, ModuleDefinition] = Field(default_factory=dict)
    namespaced: bool = False

    @field_validator("state")
    @classmethod
    def _state_is_mapping_or_factory(cls, value: Any) -> Any:
        if value is None or callable(value) or isinstance(value, Mapping):
            return value
        raise ValueError(f"state must be a mapping or a factory, got {type(value).__name__}")

    @classmethod
    def coerce(cls, raw: ModuleDefinition | Mapping[str, Any]) -> ModuleDefinition:
        """Validate *raw* into a definition, raising :class:`StoreConfigError`."""
        if isinstance(raw, cls):
            return raw
        if isinstance(raw, ModuleDefinition):
            raw = dict(raw)
        try:
            return cls.model_validate(raw)
        except ValidationError as exc:
            raise StoreConfigError(f"invalid module definition: {exc}") from exc


class StoreOptions(ModuleDefinition):
    """Root module definition plus store-level options."""

    strict: bool | None = None
    plugins: list[Handler] = Field(default_factory=list)
