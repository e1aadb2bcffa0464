"""The ownership tree of modules."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping, Sequence
from typing import Any

from pystatetree.exceptions import ModuleNotRegisteredError
from pystatetree.module.definition import ModuleDefinition
from pystatetree.module.module import Module

_logger = logging.getLogger(__name__)


class ModuleTree:
    """Builds and maintains the module tree of a store.

    Paths are tuples of child keys from the root; the empty path is the
    root module itself.
    """

    def __init__(self, raw_root: ModuleDefinition | Mapping[str, Any], *, dev_mode: bool = True) -> None:
        self._dev_mode = dev_mode
        self.root: Module
        self.register((), raw_root, runtime=False)

    def get(self, path: Sequence[str]) -> Module:
        module = self.root
        for index, key in enumerate(path):
            child = module.get_child(key)
            if child is None:
                raise ModuleNotRegisteredError(tuple(path[: index + 1]))
            module = child
        return module

    def get_namespace(self, path: Sequence[str]) -> str:
        """Namespace prefix for *path*: one ``key/`` per namespaced module on the way."""
        module = self.root
        namespace = ""
        for key in path:
            module = module.children[key]
            if module.namespaced:
                namespace += f"{key}/"
        return namespace

    def update(self, raw_root: ModuleDefinition | Mapping[str, Any]) -> None:
        """Merge a new definition tree onto the existing modules in place."""
        self._update((), self.root, ModuleDefinition.coerce(raw_root))

    def _update(self, path: tuple[str, ...], target: Module, raw: ModuleDefinition) -> None:
        target.update(raw)
        if "modules" not in raw.model_fields_set:
            return
        for key, child_raw in raw.modules.items():
            child = target.get_child(key)
            if child is None:
                self._warn(
                    "trying to add a new module '%s' on hot reloading, manual reload is needed",
                    "/".join((*path, key)),
                )
                continue
            self._update((*path, key), child, child_raw)
        for key in target.children:
            if key not in raw.modules:
                self._warn(
                    "trying to remove module '%s' on hot reloading, manual reload is needed",
                    "/".join((*path, key)),
                )

    def register(
        self,
        path: Sequence[str],
        raw: ModuleDefinition | Mapping[str, Any],
        *,
        runtime: bool = True,
    ) -> Module:
        definition = ModuleDefinition.coerce(raw)
        module = Module(definition, runtime=runtime)
        if not path:
            self.root = module
        else:
            parent = self.get(path[:-1])
            parent.add_child(path[-1], module)

        for key, child_raw in definition.modules.items():
            self.register((*path, key), child_raw, runtime=runtime)
        return module

    def unregister(self, path: Sequence[str]) -> bool:
        """Remove the runtime module at *path*; return whether it was removed."""
        try:
            parent = self.get(path[:-1])
        except ModuleNotRegisteredError:
            parent = None
        key = path[-1]
        child = parent.get_child(key) if parent is not None else None

        if child is None:
            self._warn("trying to unregister module '%s', which is not registered", "/".join(path))
            return False
        if not child.runtime:
            self._warn("cannot unregister statically declared module '%s'", "/".join(path))
            return False

        parent.remove_child(key)  # type: ignore[union-attr]
        return True

    def is_registered(self, path: Sequence[str]) -> bool:
        """Whether a child module is registered at *path*; the root path never is."""
        if not path:
            return False
        try:
            parent = self.get(path[:-1])
        except ModuleNotRegisteredError:
            return False
        return parent.has_child(path[-1])

    def walk(self) -> Iterator[tuple[tuple[str, ...], Module]]:
        """Yield (path, module) for every module, parents before children."""
        pending: list[tuple[tuple[str, ...], Module]] = [((), self.root)]
        while pending:
            path, module = pending.pop()
            yield path, module
            pending.extend(((*path, key), child) for key, child in reversed(module.children.items()))

    def _warn(self, message: str, *args: Any) -> None:
        if self._dev_mode:
            _logger.warning(message, *args)
