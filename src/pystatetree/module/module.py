"""A single node of the module tree."""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from pystatetree.module.definition import ActionDefinition, Handler, ModuleDefinition

if TYPE_CHECKING:
    from pystatetree._context import LocalContext

_UPDATABLE_FIELDS = ("namespaced", "actions", "mutations", "getters")


def _materialize_state(raw_state: Any) -> dict[str, Any]:
    if raw_state is None:
        return {}
    if callable(raw_state):
        state = raw_state()
        return dict(state) if state is not None else {}
    return copy.deepcopy(dict(raw_state))


class Module:
    """Runtime node built from a :class:`ModuleDefinition`.

    ``runtime`` is ``True`` for modules added through
    ``Store.register_module``; only those may be unregistered.
    """

    def __init__(self, raw: ModuleDefinition, *, runtime: bool) -> None:
        self.runtime = runtime
        self._raw = raw
        self._children: dict[str, Module] = {}
        self.state: dict[str, Any] = _materialize_state(raw.state)
        self.context: LocalContext | None = None

    def __repr__(self) -> str:
        return f"Module(namespaced={self.namespaced}, runtime={self.runtime}, children={list(self._children)})"

    @property
    def raw(self) -> ModuleDefinition:
        return self._raw

    @property
    def namespaced(self) -> bool:
        return self._raw.namespaced

    @property
    def children(self) -> Mapping[str, Module]:
        return self._children

    @property
    def mutations(self) -> Mapping[str, Handler]:
        return self._raw.mutations

    @property
    def actions(self) -> Mapping[str, ActionDefinition | Handler]:
        return self._raw.actions

    @property
    def getters(self) -> Mapping[str, Handler]:
        return self._raw.getters

    def add_child(self, key: str, module: Module) -> None:
        self._children[key] = module

    def remove_child(self, key: str) -> None:
        del self._children[key]

    def get_child(self, key: str) -> Module | None:
        return self._children.get(key)

    def has_child(self, key: str) -> bool:
        return key in self._children

    def update(self, raw: ModuleDefinition) -> None:
        """Replace the definition members that *raw* explicitly sets."""
        changes = {name: getattr(raw, name) for name in _UPDATABLE_FIELDS if name in raw.model_fields_set}
        if changes:
            self._raw = self._raw.model_copy(update=changes)

