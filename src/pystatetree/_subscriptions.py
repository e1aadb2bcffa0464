"""Ordered subscriber lists for mutations and actions."""

from __future__ import annotations

import dataclasses
from collections.abc import Callable, Mapping
from typing import Any, Generic, TypeVar

T = TypeVar("T")

Unsubscribe = Callable[[], None]
MutationSubscriber = Callable[[Any, Any], Any]


@dataclasses.dataclass(eq=False, slots=True)
class ActionSubscriber:
    """Action subscriber split into phases.

    ``source`` is the object passed to ``subscribe_action``; it is the
    identity used for de-duplication and removal.
    """

    source: Any
    before: Callable[..., Any] | None = None
    after: Callable[..., Any] | None = None
    error: Callable[..., Any] | None = None

    @classmethod
    def from_source(cls, source: Any) -> ActionSubscriber:
        if callable(source):
            return cls(source=source, before=source)
        if isinstance(source, Mapping):
            return cls(
                source=source,
                before=source.get("before"),
                after=source.get("after"),
                error=source.get("error"),
            )
        return cls(
            source=source,
            before=getattr(source, "before", None),
            after=getattr(source, "after", None),
            error=getattr(source, "error", None),
        )


class SubscriberList(Generic[T]):
    """Insertion-ordered subscribers keyed by the identity of their source."""

    def __init__(self) -> None:
        self._entries: list[tuple[Any, T]] = []

    def __len__(self) -> int:
        return len(self._entries)

    def _index(self, source: Any) -> int:
        for index, (existing, _) in enumerate(self._entries):
            if existing is source:
                return index
        return -1

    def add(self, source: Any, entry: T, *, prepend: bool = False) -> Unsubscribe:
        """Add *entry* unless *source* is already subscribed; return its remover."""
        if self._index(source) < 0:
            if prepend:
                self._entries.insert(0, (source, entry))
            else:
                self._entries.append((source, entry))

        def unsubscribe() -> None:
            index = self._index(source)
            if index > -1:
                del self._entries[index]

        return unsubscribe

    def snapshot(self) -> list[T]:
        """Copy of the current entries, safe against unsubscribe during iteration."""
        return [entry for _, entry in self._entries]
