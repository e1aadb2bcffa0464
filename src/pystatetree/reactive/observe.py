"""Observable containers for store state.

:class:`StateDict` and :class:`StateList` extend snarfx's ``ObservableDict``
and ``ObservableList`` with the rest of the mapping and sequence protocols,
recursive conversion of plain ``dict``/``list`` values, content equality
and plain copies (``copy.copy``, ``copy.deepcopy`` and ``pickle`` return
builtin containers with no observation attached).

Each container is one observable: a computed or reaction that reads any
part of it depends on the whole container, and every write notifies it
exactly once.
"""

from __future__ import annotations

import copy
from collections.abc import Iterable, Mapping, MutableMapping, MutableSequence
from typing import Any, SupportsIndex

from snarfx import Computed, ObservableDict, ObservableList, _anchor
from snarfx._tracking import schedule

_MISSING = object()


def is_same(old: Any, new: Any) -> bool:
    """Return ``True`` when writing *new* over *old* is not a change."""
    if old is new:
        return True
    if isinstance(old, (dict, list, StateDict, StateList)) or isinstance(new, (dict, list, StateDict, StateList)):
        return False
    if type(old) is not type(new):
        return False
    try:
        return bool(old == new)
    except Exception:  # noqa: BLE001
        return False


def observe(value: Any) -> Any:
    """Return an observable version of *value*.

    Only exact ``dict`` and ``list`` instances are converted; state
    containers are returned as-is and every other value is left untouched.
    """
    if type(value) is dict:
        return StateDict(value)
    if type(value) is list:
        return StateList(value)
    return value


def to_plain(value: Any) -> Any:
    """Unwrap state containers into builtin ``dict``/``list`` without tracking."""
    if isinstance(value, StateDict):
        return {key: to_plain(item) for key, item in value._data.items()}
    if isinstance(value, StateList):
        return [to_plain(item) for item in value._items]
    return value


def notify_observers(observers: Iterable[Any]) -> None:
    """Invalidate computeds at once and schedule every other observer.

    Computeds are marked stale even inside a batch so a getter read later in
    the same commit sees the write. Every observer is handled even if one
    of them raises; the first error is re-raised afterwards.
    """
    first_error: Exception | None = None
    for observer in list(observers):
        try:
            if isinstance(observer, Computed):
                observer._run()
            else:
                schedule(observer)
        except Exception as exc:  # noqa: BLE001
            if first_error is None:
                first_error = exc
    if first_error is not None:
        raise first_error


class _NotifyAll:
    __slots__ = ()

    _id: int

    def _notify(self) -> None:
        notify_observers(_anchor.observers[self._id])


class StateDict(_NotifyAll, ObservableDict, MutableMapping):  # type: ignore[misc]
    """A mapping whose reads are tracked and whose writes notify dependants."""

    __slots__ = ()

    # Identity hash: snarfx keeps containers in dependency sets.
    __hash__ = object.__hash__

    def __init__(self, data: Mapping[Any, Any] | Iterable[tuple[Any, Any]] | None = None, **kwargs: Any) -> None:
        items = dict(data or (), **kwargs)
        super().__init__({key: observe(value) for key, value in items.items()})

    def __repr__(self) -> str:
        return f"StateDict({self._data!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, StateDict):
            other = other._data
        if not isinstance(other, Mapping):
            return NotImplemented
        self._track()
        return self._data == other

    def __copy__(self) -> dict[Any, Any]:
        return dict(self._data)

    def __deepcopy__(self, memo: dict[int, Any]) -> dict[Any, Any]:
        return copy.deepcopy(to_plain(self), memo)

    def __reduce_ex__(self, protocol: SupportsIndex) -> Any:
        return (dict, (to_plain(self),))

    def __setitem__(self, key: Any, value: Any) -> None:
        value = observe(value)
        old = self._data.get(key, _MISSING)
        if old is not _MISSING and is_same(old, value):
            return
        self._data[key] = value
        self._notify()

    def pop(self, key: Any, *default: Any) -> Any:
        if key not in self._data:
            if default:
                return default[0]
            raise KeyError(key)
        value = self._data.pop(key)
        self._notify()
        return value

    def update(self, other: Any = (), /, **kwargs: Any) -> None:
        items = other.items() if isinstance(other, Mapping) else other
        changed = False
        for key, value in [*items, *kwargs.items()]:
            value = observe(value)
            old = self._data.get(key, _MISSING)
            if old is not _MISSING and is_same(old, value):
                continue
            self._data[key] = value
            changed = True
        if changed:
            self._notify()

    def __ior__(self, other: Any) -> StateDict:
        self.update(other)
        return self

    def setdefault(self, key: Any, default: Any = None) -> Any:
        if key not in self._data:
            self[key] = default
        return self[key]


class StateList(_NotifyAll, ObservableList, MutableSequence):  # type: ignore[misc]
    """A sequence whose reads are tracked and whose writes notify dependants."""

    __slots__ = ()

    __hash__ = object.__hash__

    def __init__(self, items: Iterable[Any] = ()) -> None:
        super().__init__([observe(item) for item in items])

    def __repr__(self) -> str:
        return f"StateList({self._items!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, StateList):
            other = other._items
        if not isinstance(other, list):
            return NotImplemented
        self._track()
        return self._items == other

    def __copy__(self) -> list[Any]:
        return list(self._items)

    def __deepcopy__(self, memo: dict[int, Any]) -> list[Any]:
        return copy.deepcopy(to_plain(self), memo)

    def __reduce_ex__(self, protocol: SupportsIndex) -> Any:
        return (list, (to_plain(self),))

    def __setitem__(self, index: Any, value: Any) -> None:
        if isinstance(index, slice):
            self._items[index] = [observe(item) for item in value]
        else:
            self._items[index] = observe(value)
        self._notify()

    def __iadd__(self, other: Iterable[Any]) -> StateList:
        self.extend(other)
        return self

    def append(self, item: Any) -> None:
        super().append(observe(item))

    def extend(self, items: Iterable[Any]) -> None:
        super().extend([observe(item) for item in items])

    def insert(self, index: SupportsIndex, item: Any) -> None:
        super().insert(index, observe(item))

    def index(self, *args: Any) -> int:
        self._track()
        return self._items.index(*args)

    def count(self, item: Any) -> int:
        self._track()
        return self._items.count(item)

    def sort(self, *args: Any, **kwargs: Any) -> None:
        self._items.sort(*args, **kwargs)
        self._notify()

    def reverse(self) -> None:
        self._items.reverse()
        self._notify()


def traverse(value: Any, _seen: set[int] | None = None) -> None:
    """Read every container below *value* so the running derivation depends on all of it."""
    seen = _seen if _seen is not None else set()
    if isinstance(value, StateDict):
        if id(value) in seen:
            return
        seen.add(id(value))
        for key in list(value):
            traverse(value[key], seen)
    elif isinstance(value, StateList):
        if id(value) in seen:
            return
        seen.add(id(value))
        for item in value:
            traverse(item, seen)
