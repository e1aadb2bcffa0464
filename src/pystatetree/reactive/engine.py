"""Reactive engine consumed by the store.

A thin layer over snarfx: a root is an observable slot holding the state
tree plus a table of computed getters, and a watch is a snarfx reaction
whose effect calls ``callback(new, old)``. Writes made inside
:meth:`ReactiveEngine.batch` reach watchers once, when the outermost batch
exits.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any

from snarfx import Computed, Observable, _anchor, reaction, transaction

from pystatetree.reactive.observe import StateDict, StateList, is_same, notify_observers, observe, traverse

_logger = logging.getLogger(__name__)

WatchCallback = Callable[[Any, Any], Any]

_FAILED = object()


class _Reading:
    """Selector result as seen by the reaction's change check.

    Deep reads always count as a change; container reads compare by identity.
    """

    __slots__ = ("value", "deep")

    def __init__(self, value: Any, deep: bool) -> None:
        self.value = value
        self.deep = deep

    def __eq__(self, other: object) -> bool:
        return not self.deep and isinstance(other, _Reading) and other.value is self.value

    __hash__ = None  # type: ignore[assignment]


class _StateSlot(Observable):
    __slots__ = ()

    def set(self, value: Any) -> None:
        if is_same(_anchor.values[self._id], value):
            return
        _anchor.values[self._id] = value
        notify_observers(_anchor.observers[self._id])


class _Getter(Computed):
    __slots__ = ()

    def _run(self) -> None:
        if not _anchor.dirty_flags[self._id]:
            _anchor.dirty_flags[self._id] = True
            notify_observers(_anchor.observers[self._id])


class Watch:
    """Calls ``callback(new, old)`` each time *selector* yields a new value.

    With ``deep`` every container below the selected value is tracked and
    any write to one of them counts as a change. ``immediate`` runs the
    callback once on creation with ``old`` set to ``None``. Failures in the
    selector or the callback are logged unless ``catch_errors`` is off, in
    which case they propagate to the writer.
    """

    def __init__(
        self,
        engine: ReactiveEngine,
        selector: Callable[[], Any],
        callback: WatchCallback,
        *,
        deep: bool = False,
        immediate: bool = False,
        catch_errors: bool = True,
    ) -> None:
        self._engine = engine
        self._selector = selector
        self._callback = callback
        self.deep = deep
        self.catch_errors = catch_errors
        self.active = True
        self.value: Any = None
        self._latest: Any = None
        self._reaction = reaction(self._read, self._on_change, fire_immediately=immediate)
        if not immediate:
            self.value = self._latest

    def _read(self) -> Any:
        try:
            value = self._selector()
            if self.deep:
                traverse(value)
        except Exception:
            if not self.catch_errors:
                raise
            _logger.exception("Watcher selector failed")
            return _FAILED
        self._latest = value
        if self.deep or isinstance(value, (StateDict, StateList)):
            return _Reading(value, self.deep)
        return value

    def _on_change(self, reading: Any) -> None:
        if reading is _FAILED or not self.active:
            return
        value = reading.value if isinstance(reading, _Reading) else reading
        old, self.value = self.value, value
        if not self.catch_errors:
            self._callback(value, old)
            return
        try:
            self._callback(value, old)
        except Exception:
            _logger.exception("Watcher callback failed")

    def teardown(self) -> None:
        if not self.active:
            return
        self.active = False
        self._reaction.dispose()
        self._engine.forget(self)


class ReactiveRoot:
    """An observable state slot plus a set of lazily computed values."""

    def __init__(self, engine: ReactiveEngine, state: Any) -> None:
        self._engine = engine
        self._slot = _StateSlot(observe(state))
        self._computed: dict[str, Computed] = {}
        self._watches: list[Watch] = []
        self.destroyed = False

    @property
    def state(self) -> Any:
        return self._slot.get()

    @state.setter
    def state(self, value: Any) -> None:
        self._slot.set(observe(value))

    def define_computed(self, name: str, fn: Callable[[], Any]) -> None:
        previous = self._computed.pop(name, None)
        if previous is not None:
            previous.dispose()
        self._computed[name] = _Getter(fn)

    def has_computed(self, name: str) -> bool:
        return name in self._computed

    def computed(self, name: str) -> Any:
        """Return the memoized value of *name*, recomputing it if stale."""
        return self._computed[name].get()

    def watch(
        self,
        selector: Callable[[], Any],
        callback: WatchCallback,
        *,
        deep: bool = False,
        immediate: bool = False,
        catch_errors: bool = True,
    ) -> Watch:
        watch = self._engine.watch(
            selector, callback, deep=deep, immediate=immediate, catch_errors=catch_errors
        )
        self._watches.append(watch)
        return watch

    def teardown(self) -> None:
        if self.destroyed:
            return
        self.destroyed = True
        for computed in self._computed.values():
            computed.dispose()
        for watch in self._watches:
            watch.teardown()
        self._computed.clear()
        self._watches.clear()
        self._engine.forget_root(self)


class ReactiveEngine:
    """Creates reactive roots and watches and owns their lifetime."""

    def __init__(self) -> None:
        self._roots: list[ReactiveRoot] = []
        self._watches: list[Watch] = []

    def wrap(self, state: Any) -> ReactiveRoot:
        root = ReactiveRoot(self, state)
        self._roots.append(root)
        return root

    def watch(
        self,
        selector: Callable[[], Any],
        callback: WatchCallback,
        *,
        deep: bool = False,
        immediate: bool = False,
        catch_errors: bool = True,
    ) -> Watch:
        watch = Watch(self, selector, callback, deep=deep, immediate=immediate, catch_errors=catch_errors)
        self._watches.append(watch)
        return watch

    @contextmanager
    def batch(self) -> Iterator[None]:
        """Hold watcher callbacks until the outermost batch exits.

        Batches are process-wide: nesting one store's commit inside another
        store's commit defers both until the outer one ends.
        """
        with transaction():
            yield

    def next_tick(self, fn: Callable[[], Any]) -> None:
        """Run *fn* on the next event-loop iteration, or now without a loop."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            fn()
            return
        loop.call_soon(fn)

    def forget(self, watch: Watch) -> None:
        if watch in self._watches:
            self._watches.remove(watch)

    def forget_root(self, root: ReactiveRoot) -> None:
        if root in self._roots:
            self._roots.remove(root)

    def teardown(self) -> None:
        """Release every root and watch created by this engine."""
        for root in list(self._roots):
            root.teardown()
        for watch in list(self._watches):
            watch.teardown()
