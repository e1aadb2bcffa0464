"""Binding helpers.

Build small dicts of callables bound to a store, optionally scoped to a
namespaced module, so view code does not have to spell out full types::

    cart = map_getters(store, ["count", "total"], namespace="cart")
    cart["count"]()
"""

from __future__ import annotations

import dataclasses
import functools
from collections.abc import Callable, Iterable, Mapping
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pystatetree._context import LocalContext
    from pystatetree.store import Store

NameMap = Iterable[str] | Mapping[str, Any]


def _normalize_map(names: NameMap) -> list[tuple[str, Any]]:
    if isinstance(names, Mapping):
        return list(names.items())
    return [(name, name) for name in names]


def _normalize_namespace(namespace: str) -> str:
    if namespace and not namespace.endswith("/"):
        return namespace + "/"
    return namespace


def _context_for(store: Store, helper: str, namespace: str) -> LocalContext | None:
    module = store.module_for_namespace(namespace)
    if module is None or module.context is None:
        store._report("module namespace not found in %s(): %s", helper, namespace)
        return None
    return module.context


def map_state(store: Store, states: NameMap, *, namespace: str = "") -> dict[str, Callable[[], Any]]:
    """Map aliases to state readers.

    Values are state keys, or ``fn(state, getters)`` callables receiving the
    (module-local, when namespaced) state and getters.
    """
    namespace = _normalize_namespace(namespace)
    result: dict[str, Callable[[], Any]] = {}

    for alias, value in _normalize_map(states):

        def mapped_state(value: Any = value) -> Any:
            state: Any = store.state
            getters: Mapping[str, Any] = store.getters
            if namespace:
                context = _context_for(store, "map_state", namespace)
                if context is None:
                    return None
                state, getters = context.state, context.getters
            if callable(value):
                return value(state, getters)
            return state[value]

        result[alias] = mapped_state
    return result


def map_getters(store: Store, getters: NameMap, *, namespace: str = "") -> dict[str, Callable[[], Any]]:
    """Map aliases to getter readers (getter names are relative to *namespace*)."""
    namespace = _normalize_namespace(namespace)
    result: dict[str, Callable[[], Any]] = {}

    for alias, name in _normalize_map(getters):
        full_name = namespace + name

        def mapped_getter(full_name: str = full_name) -> Any:
            if namespace and _context_for(store, "map_getters", namespace) is None:
                return None
            if full_name not in store.getters:
                store._report("unknown getter: %s", full_name)
                return None
            return store.getters[full_name]

        result[alias] = mapped_getter
    return result


def map_mutations(store: Store, mutations: NameMap, *, namespace: str = "") -> dict[str, Callable[..., Any]]:
    """Map aliases to committers.

    Values are mutation types, or ``fn(commit, *args)`` callables receiving
    the (module-local, when namespaced) ``commit``.
    """
    namespace = _normalize_namespace(namespace)
    result: dict[str, Callable[..., Any]] = {}

    for alias, value in _normalize_map(mutations):

        def mapped_mutation(*args: Any, value: Any = value) -> Any:
            commit: Callable[..., Any] = store.commit
            if namespace:
                context = _context_for(store, "map_mutations", namespace)
                if context is None:
                    return None
                commit = context.commit
            if callable(value):
                return value(commit, *args)
            return commit(value, *args)

        result[alias] = mapped_mutation
    return result


def map_actions(store: Store, actions: NameMap, *, namespace: str = "") -> dict[str, Callable[..., Any]]:
    """Map aliases to dispatchers; the same rules as :func:`map_mutations` apply."""
    namespace = _normalize_namespace(namespace)
    result: dict[str, Callable[..., Any]] = {}

    for alias, value in _normalize_map(actions):

        def mapped_action(*args: Any, value: Any = value) -> Any:
            dispatch: Callable[..., Any] = store.dispatch
            if namespace:
                context = _context_for(store, "map_actions", namespace)
                if context is None:
                    return None
                dispatch = context.dispatch
            if callable(value):
                return value(dispatch, *args)
            return dispatch(value, *args)

        result[alias] = mapped_action
    return result


@dataclasses.dataclass(frozen=True)
class NamespacedHelpers:
    map_state: Callable[[NameMap], dict[str, Callable[[], Any]]]
    map_getters: Callable[[NameMap], dict[str, Callable[[], Any]]]
    map_mutations: Callable[[NameMap], dict[str, Callable[..., Any]]]
    map_actions: Callable[[NameMap], dict[str, Callable[..., Any]]]


def create_namespaced_helpers(store: Store, namespace: str) -> NamespacedHelpers:
    """Pre-bind the four helpers to *store* and *namespace*."""
    return NamespacedHelpers(
        map_state=functools.partial(map_state, store, namespace=namespace),
        map_getters=functools.partial(map_getters, store, namespace=namespace),
        map_mutations=functools.partial(map_mutations, store, namespace=namespace),
        map_actions=functools.partial(map_actions, store, namespace=namespace),
    )
