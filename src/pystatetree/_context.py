"""Per-module views of the store.

Every installed module gets a :class:`LocalContext`: module-relative
``state`` and ``getters`` plus ``commit``/``dispatch`` that prefix types
with the module's namespace. All views read through the live store on each
access, so they stay valid across ``replace_state``, module registration
and hot updates.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterator, Mapping
from typing import TYPE_CHECKING, Any

from pystatetree._util import get_nested_state
from pystatetree.events import Command, resolve_command

if TYPE_CHECKING:
    from pystatetree.store import Store

_logger = logging.getLogger(__name__)


class GetterView(Mapping[str, Any]):
    """Read-only, lazily evaluated map of fully-qualified getter names."""

    def __init__(self, store: Store, names: tuple[str, ...]) -> None:
        self._store = store
        self._names = names
        self._lookup = frozenset(names)

    def __getitem__(self, name: str) -> Any:
        if name not in self._lookup:
            raise KeyError(name)
        return self._store._read_getter(name)

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    def __len__(self) -> int:
        return len(self._names)

    def __contains__(self, name: object) -> bool:
        return name in self._lookup

    def __repr__(self) -> str:
        return f"GetterView({list(self._names)!r})"


class LocalGetters(Mapping[str, Any]):
    """Getters of one namespace, with the namespace prefix stripped.

    Every read is delegated to the root getters, so memoization happens in
    one place only.
    """

    def __init__(self, root: Mapping[str, Any], namespace: str) -> None:
        self._root = root
        self._namespace = namespace
        split = len(namespace)
        self._names = tuple(name[split:] for name in root if name.startswith(namespace))

    def __getitem__(self, name: str) -> Any:
        if name not in self._names:
            raise KeyError(name)
        return self._root[self._namespace + name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    def __len__(self) -> int:
        return len(self._names)

    def __repr__(self) -> str:
        return f"LocalGetters({self._namespace!r}, {list(self._names)!r})"


def make_local_getters(store: Store, namespace: str) -> LocalGetters:
    cache = store._local_getters_cache
    local = cache.get(namespace)
    if local is None:
        local = LocalGetters(store.getters, namespace)
        cache[namespace] = local
    return local


class LocalContext:
    """Module-relative view of the store.

    For the root module and modules without a namespace, ``commit`` and
    ``dispatch`` go straight to the store.
    """

    def __init__(self, store: Store, namespace: str, path: tuple[str, ...]) -> None:
        self._store = store
        self.namespace = namespace
        self.path = path

    @property
    def state(self) -> Any:
        return get_nested_state(self._store.state, self.path)

    @property
    def getters(self) -> Mapping[str, Any]:
        if not self.namespace:
            return self._store.getters
        return make_local_getters(self._store, self.namespace)

    def commit(self, type_or_command: str | Command, payload: Any = None, *, root: bool = False) -> None:
        if not self.namespace:
            self._store.commit(type_or_command, payload, root=root)
            return

        local_type, payload = resolve_command(type_or_command, payload)
        target = local_type
        if not root:
            target = self.namespace + local_type
            if self._store.config.dev_mode and target not in self._store._mutations:
                _logger.error("unknown local mutation type: %s, global type: %s", local_type, target)
                return
        self._store.commit(target, payload)

    def dispatch(
        self,
        type_or_command: str | Command,
        payload: Any = None,
        *,
        root: bool = False,
    ) -> asyncio.Future[Any]:
        if not self.namespace:
            return self._store.dispatch(type_or_command, payload, root=root)

        local_type, payload = resolve_command(type_or_command, payload)
        target = local_type
        if not root:
            target = self.namespace + local_type
            if self._store.config.dev_mode and target not in self._store._actions:
                _logger.error("unknown local action type: %s, global type: %s", local_type, target)
                future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
                future.set_result(None)
                return future
        return self._store.dispatch(target, payload)


class ActionContext:
    """First argument of every action handler."""

    def __init__(self, store: Store, local: LocalContext) -> None:
        self._store = store
        self._local = local

    @property
    def state(self) -> Any:
        return self._local.state

    @property
    def getters(self) -> Mapping[str, Any]:
        return self._local.getters

    @property
    def root_state(self) -> Any:
        return self._store.state

    @property
    def root_getters(self) -> Mapping[str, Any]:
        return self._store.getters

    def commit(self, type_or_command: str | Command, payload: Any = None, *, root: bool = False) -> None:
        self._local.commit(type_or_command, payload, root=root)

    def dispatch(
        self,
        type_or_command: str | Command,
        payload: Any = None,
        *,
        root: bool = False,
    ) -> asyncio.Future[Any]:
        return self._local.dispatch(type_or_command, payload, root=root)
