"""Installing modules into a store.

Walks the module tree depth-first and, for every module:

- grafts the module's state onto its parent's state at the module key,
- builds the module's :class:`~pystatetree._context.LocalContext`,
- registers its mutations, actions and getters under fully-qualified types
  (``namespace + key``) in the store's flat registries.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Coroutine
from typing import TYPE_CHECKING, Any

from pystatetree._context import ActionContext, LocalContext
from pystatetree._util import call_with_arity, get_nested_state, positional_arity
from pystatetree.module.definition import ActionDefinition, Handler
from pystatetree.module.module import Module

if TYPE_CHECKING:
    from pystatetree.store import Store

MutationHandler = Callable[[Any], None]
ActionHandler = Callable[[Any], Coroutine[Any, Any, Any]]
WrappedGetter = Callable[["Store"], Any]


def install_module(
    store: Store,
    root_state: Any,
    path: tuple[str, ...],
    module: Module,
    *,
    hot: bool = False,
) -> None:
    """Install *module* (and its children) at *path*.

    ``hot`` reinstalls handlers without touching state (hot update, reset
    after unregistering, or ``preserve_state`` registration).
    """
    is_root = not path
    namespace = store._modules.get_namespace(path)

    if module.namespaced:
        existing = store._modules_namespace_map.get(namespace)
        if existing is not None and existing is not module:
            store._report("duplicate namespace %s for the namespaced module %s", namespace, "/".join(path))
        else:
            store._modules_namespace_map[namespace] = module

    if not is_root and not hot:
        parent_state = get_nested_state(root_state, path[:-1])
        module_name = path[-1]

        def graft() -> None:
            if module_name in parent_state:
                store._report(
                    'state field "%s" was overridden by a module with the same name at "%s"',
                    module_name,
                    ".".join(path),
                    level=logging.WARNING,
                )
            parent_state[module_name] = module.state
            module.state = parent_state[module_name]

        store._with_commit(graft)

    local = module.context = LocalContext(store, namespace, path)

    for key, mutation in module.mutations.items():
        register_mutation(store, namespace + key, mutation, local)

    for key, action in module.actions.items():
        if isinstance(action, ActionDefinition):
            action_type = key if action.root else namespace + key
            handler = action.handler
        else:
            action_type = namespace + key
            handler = action
        register_action(store, action_type, handler, local)

    for key, getter in module.getters.items():
        register_getter(store, namespace + key, getter, local)

    for key, child in list(module.children.items()):
        install_module(store, root_state, (*path, key), child, hot=hot)


def register_mutation(store: Store, type_: str, handler: Handler, local: LocalContext) -> None:
    arity = positional_arity(handler)

    def wrapped_mutation_handler(payload: Any) -> None:
        call_with_arity(handler, arity, local.state, payload)

    store._mutations.setdefault(type_, []).append(wrapped_mutation_handler)


def register_action(store: Store, type_: str, handler: Handler, local: LocalContext) -> None:
    arity = positional_arity(handler)
    context = ActionContext(store, local)

    async def wrapped_action_handler(payload: Any) -> Any:
        result = call_with_arity(handler, arity, context, payload)
        if inspect.isawaitable(result):
            result = await result
        return result

    store._actions.setdefault(type_, []).append(wrapped_action_handler)


def register_getter(store: Store, type_: str, getter: Handler, local: LocalContext) -> None:
    if type_ in store._wrapped_getters:
        store._report("duplicate getter key: %s", type_)
        return
    arity = positional_arity(getter)

    def wrapped_getter(root: Store) -> Any:
        return call_with_arity(getter, arity, local.state, local.getters, root.state, root.getters)

    store._wrapped_getters[type_] = wrapped_getter
