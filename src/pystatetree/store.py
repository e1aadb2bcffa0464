"""The store: single source of truth for application state.

Usage::

    store = Store(
        {
            "state": {"count": 0},
            "mutations": {"increment": lambda state, n: state.update(count=state["count"] + n)},
            "modules": {"cart": cart_module},
        }
    )
    store.commit("increment", 5)
    await store.dispatch("cart/checkout", items)
"""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Callable, Mapping
from typing import Any

from pystatetree._context import GetterView, LocalGetters
from pystatetree._install import ActionHandler, MutationHandler, WrappedGetter, install_module
from pystatetree._subscriptions import ActionSubscriber, MutationSubscriber, SubscriberList, Unsubscribe
from pystatetree._util import ModulePath, get_nested_state, normalize_path
from pystatetree.config import StoreConfig
from pystatetree.events import ActionEvent, Command, MutationEvent, resolve_command
from pystatetree.exceptions import StrictModeViolationError
from pystatetree.module.definition import ModuleDefinition, StoreOptions
from pystatetree.module.module import Module
from pystatetree.module.tree import ModuleTree
from pystatetree.reactive import ReactiveEngine, ReactiveRoot, Watch, observe

_logger = logging.getLogger(__name__)


def _resolved(value: Any) -> asyncio.Future[Any]:
    future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
    future.set_result(value)
    return future


class Store:
    """Centralized, module-based state container.

    State changes only through mutations (``commit``); asynchronous work
    goes through actions (``dispatch``). Modules may be namespaced, added
    and removed at runtime, or hot-swapped with ``hot_update``.

    Parameters
    ----------
    options : StoreOptions or mapping, optional
        Root module definition plus ``strict`` and ``plugins``.
    engine : ReactiveEngine, optional
        Reactive engine used to observe state and memoize getters. A new
        engine is created when omitted.
    config : StoreConfig, optional
        Process-level configuration (dev mode, default strictness).
    """

    def __init__(
        self,
        options: StoreOptions | Mapping[str, Any] | None = None,
        *,
        engine: ReactiveEngine | None = None,
        config: StoreConfig | None = None,
    ) -> None:
        store_options = StoreOptions.coerce(options if options is not None else {})
        assert isinstance(store_options, StoreOptions)  # noqa: S101

        self.config = config if config is not None else StoreConfig()
        self.strict = store_options.strict if store_options.strict is not None else self.config.strict
        self._engine = engine if engine is not None else ReactiveEngine()

        self._committing = False
        self._mutations: dict[str, list[MutationHandler]] = {}
        self._actions: dict[str, list[ActionHandler]] = {}
        self._wrapped_getters: dict[str, WrappedGetter] = {}
        self._modules_namespace_map: dict[str, Module] = {}
        self._subscribers: SubscriberList[MutationSubscriber] = SubscriberList()
        self._action_subscribers: SubscriberList[ActionSubscriber] = SubscriberList()
        self._local_getters_cache: dict[str, LocalGetters] = {}
        self._root: ReactiveRoot | None = None
        self._strict_watch: Watch | None = None
        self._getters = GetterView(self, ())
        self._modules = ModuleTree(store_options, dev_mode=self.config.dev_mode)

        # Modules are grafted onto the observed tree so each module.state is the live container.
        state = self._modules.root.state = observe(self._modules.root.state)
        install_module(self, state, (), self._modules.root)
        self._reset_root(state)

        for plugin in store_options.plugins:
            plugin(self)

    # ------------------------------------------------------------------
    # Read surface
    # ------------------------------------------------------------------

    @property
    def state(self) -> Any:
        assert self._root is not None  # noqa: S101
        return self._root.state

    @state.setter
    def state(self, value: Any) -> None:
        self._report("use store.replace_state() to explicitly replace store state.")

    @property
    def getters(self) -> Mapping[str, Any]:
        return self._getters

    @property
    def engine(self) -> ReactiveEngine:
        return self._engine

    def _read_getter(self, name: str) -> Any:
        assert self._root is not None  # noqa: S101
        return self._root.computed(name)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def commit(self, type_or_command: str | Command, payload: Any = None, *, root: bool = False) -> None:
        """Run every mutation handler registered for the type, then notify subscribers.

        ``root`` is accepted for symmetry with module-local ``commit``; the
        store itself always addresses fully-qualified types.
        """
        type_, payload = resolve_command(type_or_command, payload)
        entry = self._mutations.get(type_)
        if not entry:
            self._report("unknown mutation type: %s", type_)
            return

        def run_handlers() -> None:
            for handler in entry:
                handler(payload)

        self._with_commit(run_handlers)

        mutation = MutationEvent(type=type_, payload=payload)
        state = self.state
        for subscriber in self._subscribers.snapshot():
            try:
                subscriber(mutation, state)
            except Exception:
                _logger.exception("Error in mutation subscriber for %s", type_)

    def _with_commit(self, fn: Callable[[], Any]) -> None:
        """Run *fn* as one commit: watchers see its writes together, after it returns."""
        committing = self._committing
        self._committing = True
        try:
            with self._engine.batch():
                fn()
        finally:
            self._committing = committing

    def replace_state(self, state: Any) -> None:
        """Swap the whole state tree (e.g. restoring a snapshot)."""
        root = self._root
        assert root is not None  # noqa: S101

        def swap() -> None:
            root.state = state

        self._with_commit(swap)
        self._sync_module_state()

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def dispatch(
        self,
        type_or_command: str | Command,
        payload: Any = None,
        *,
        root: bool = False,
    ) -> asyncio.Future[Any]:
        """Run every action handler registered for the type.

        Returns a future resolving to the handler's result (a list of
        results when several modules registered the same type). Must be
        called while an event loop is running.
        """
        type_, payload = resolve_command(type_or_command, payload)
        entry = self._actions.get(type_)
        if not entry:
            self._report("unknown action type: %s", type_)
            return _resolved(None)

        action = ActionEvent(type=type_, payload=payload)
        self._notify_action_subscribers("before", action)

        result: asyncio.Future[Any]
        if len(entry) > 1:
            result = asyncio.gather(*(handler(payload) for handler in entry))
        else:
            result = asyncio.ensure_future(entry[0](payload))

        return asyncio.ensure_future(self._settle_action(action, result))

    async def _settle_action(self, action: ActionEvent, result: asyncio.Future[Any]) -> Any:
        try:
            value = await result
        except Exception as exc:
            self._notify_action_subscribers("error", action, exc)
            raise
        self._notify_action_subscribers("after", action)
        return value

    def _notify_action_subscribers(self, phase: str, action: ActionEvent, *extra: Any) -> None:
        state = self.state
        for subscriber in self._action_subscribers.snapshot():
            callback = getattr(subscriber, phase)
            if callback is None:
                continue
            try:
                callback(action, state, *extra)
            except Exception:
                _logger.exception("Error in %s action subscriber for %s", phase, action.type)

    # ------------------------------------------------------------------
    # Subscriptions and watchers
    # ------------------------------------------------------------------

    def subscribe(self, fn: MutationSubscriber, *, prepend: bool = False) -> Unsubscribe:
        """Call ``fn(mutation, state)`` after every commit."""
        return self._subscribers.add(fn, fn, prepend=prepend)

    def subscribe_action(self, fn: Any, *, prepend: bool = False) -> Unsubscribe:
        """Observe dispatches.

        *fn* is either a callable (run before the handlers) or a mapping /
        object with optional ``before``, ``after`` and ``error`` callables.
        """
        return self._action_subscribers.add(fn, ActionSubscriber.from_source(fn), prepend=prepend)

    def watch(
        self,
        getter: Callable[[Any, Mapping[str, Any]], Any],
        callback: Callable[[Any, Any], Any],
        *,
        deep: bool = False,
        immediate: bool = False,
    ) -> Unsubscribe:
        """Call ``callback(new, old)`` whenever ``getter(state, getters)`` changes.

        Writes made by one commit reach the callback once, after the commit.
        Writes outside a commit reach it as they happen.
        """
        if not callable(getter):
            raise TypeError("store.watch only accepts a function.")
        watch = self._engine.watch(
            lambda: getter(self.state, self.getters),
            callback,
            deep=deep,
            immediate=immediate,
        )
        return watch.teardown

    # ------------------------------------------------------------------
    # Dynamic modules
    # ------------------------------------------------------------------

    def register_module(
        self,
        path: ModulePath,
        raw_module: ModuleDefinition | Mapping[str, Any],
        *,
        preserve_state: bool = False,
    ) -> None:
        keys = normalize_path(path)
        if keys is None:
            self._report("module path must be a string or a sequence of strings.")
            return
        if not keys:
            self._report("cannot register the root module by using register_module.")
            return

        module = self._modules.register(keys, raw_module)
        install_module(self, self.state, keys, module, hot=preserve_state)
        self._reset_root(self.state)

    def unregister_module(self, path: ModulePath) -> None:
        keys = normalize_path(path)
        if keys is None or not keys:
            self._report("module path must be a non-empty string or sequence of strings.")
            return

        if not self._modules.unregister(keys):
            return

        def drop_state() -> None:
            parent_state = get_nested_state(self.state, keys[:-1])
            parent_state.pop(keys[-1], None)

        self._with_commit(drop_state)
        self._reset_store()

    def has_module(self, path: ModulePath) -> bool:
        keys = normalize_path(path)
        if keys is None:
            self._report("module path must be a string or a sequence of strings.")
            return False
        return self._modules.is_registered(keys)

    def hot_update(self, new_options: ModuleDefinition | Mapping[str, Any]) -> None:
        """Swap handlers and getters in place, keeping the current state."""
        self._modules.update(new_options)
        self._reset_store()

    def module_for_namespace(self, namespace: str) -> Module | None:
        """Return the namespaced module registered under *namespace* (``"a/b/"``)."""
        return self._modules_namespace_map.get(namespace)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _reset_store(self) -> None:
        self._actions = {}
        self._mutations = {}
        self._wrapped_getters = {}
        self._modules_namespace_map = {}
        state = self.state
        install_module(self, state, (), self._modules.root, hot=True)
        self._reset_root(state)

    def _reset_root(self, state: Any) -> None:
        """Rebuild the reactive root and the getters surface."""
        old_root = self._root

        self._local_getters_cache = {}
        root = self._engine.wrap(state)
        for name, wrapped in self._wrapped_getters.items():
            root.define_computed(name, functools.partial(wrapped, self))
        self._getters = GetterView(self, tuple(self._wrapped_getters))
        self._root = root

        if self._strict_watch is not None:
            self._strict_watch.teardown()
            self._strict_watch = None
        if self.strict and self.config.dev_mode:
            self._enable_strict_mode(root)

        if old_root is not None:
            # Watchers that read the old root or its getters re-run against the new one.
            def clear_old_state() -> None:
                old_root.state = None

            self._with_commit(clear_old_state)
            self._engine.next_tick(old_root.teardown)
        self._sync_module_state()

    def _sync_module_state(self) -> None:
        """Point every module's ``state`` at its container in the live tree."""
        state = self.state
        for path, module in self._modules.walk():
            try:
                module.state = get_nested_state(state, path)
            except (KeyError, TypeError):
                continue

    def _enable_strict_mode(self, root: ReactiveRoot) -> None:
        def assert_committing(_new: Any, _old: Any) -> None:
            if not self._committing:
                raise StrictModeViolationError("do not mutate store state outside mutation handlers.")

        self._strict_watch = root.watch(lambda: root.state, assert_committing, deep=True, catch_errors=False)

    def _report(self, message: str, *args: Any, level: int = logging.ERROR) -> None:
        """Diagnostic channel for configuration and lookup problems (dev mode only)."""
        if self.config.dev_mode:
            _logger.log(level, message, *args)
