"""Tests for mutation and action subscribers."""

from __future__ import annotations

import logging
from typing import Any

import pytest

from pystatetree import MutationEvent, Store


def _store() -> Store:
    return Store(
        {
            "state": {"count": 0},
            "mutations": {"inc": lambda state: state.update(count=state["count"] + 1)},
            "actions": {"bump": lambda ctx: ctx.commit("inc")},
        }
    )


def test_subscriber_receives_event_and_state() -> None:
    store = _store()
    seen: list[tuple[MutationEvent, int]] = []
    store.subscribe(lambda mutation, state: seen.append((mutation, state["count"])))

    store.commit("inc")

    [(mutation, count)] = seen
    assert mutation.type == "inc"
    assert mutation.payload is None
    assert count == 1


def test_same_subscriber_is_added_once() -> None:
    store = _store()
    calls: list[str] = []

    def subscriber(mutation: MutationEvent, state: Any) -> None:
        calls.append(mutation.type)

    store.subscribe(subscriber)
    store.subscribe(subscriber)
    store.commit("inc")

    assert calls == ["inc"]


def test_unsubscribe_is_idempotent() -> None:
    store = _store()
    calls: list[str] = []
    unsubscribe = store.subscribe(lambda mutation, state: calls.append(mutation.type))

    unsubscribe()
    unsubscribe()
    store.commit("inc")

    assert calls == []


def test_prepend_runs_first() -> None:
    store = _store()
    order: list[str] = []
    store.subscribe(lambda mutation, state: order.append("appended"))
    store.subscribe(lambda mutation, state: order.append("prepended"), prepend=True)

    store.commit("inc")

    assert order == ["prepended", "appended"]


def test_unsubscribe_during_notification_does_not_skip_others() -> None:
    store = _store()
    order: list[str] = []
    unsubscribers: list[Any] = []

    def first(mutation: MutationEvent, state: Any) -> None:
        order.append("first")
        unsubscribers[0]()

    def second(mutation: MutationEvent, state: Any) -> None:
        order.append("second")

    unsubscribers.append(store.subscribe(first))
    store.subscribe(second)

    store.commit("inc")
    store.commit("inc")

    assert order == ["first", "second", "second"]


def test_failing_mutation_subscriber_is_isolated(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.ERROR, logger="pystatetree.store")
    store = _store()
    calls: list[str] = []

    def broken(mutation: MutationEvent, state: Any) -> None:
        raise RuntimeError("boom")

    store.subscribe(broken)
    store.subscribe(lambda mutation, state: calls.append(mutation.type))

    store.commit("inc")

    assert calls == ["inc"]
    assert store.state["count"] == 1
    assert "Error in mutation subscriber for inc" in caplog.text


@pytest.mark.asyncio
async def test_action_subscriber_dedupe_and_unsubscribe() -> None:
    store = _store()
    calls: list[str] = []

    def subscriber(action: Any, state: Any) -> None:
        calls.append(action.type)

    unsubscribe = store.subscribe_action(subscriber)
    store.subscribe_action(subscriber)
    await store.dispatch("bump")
    unsubscribe()
    await store.dispatch("bump")

    assert calls == ["bump"]
    assert store.state["count"] == 2


@pytest.mark.asyncio
async def test_action_subscriber_object_with_phases() -> None:
    store = _store()
    order: list[str] = []

    class Recorder:
        def before(self, action: Any, state: Any) -> None:
            order.append(f"before:{state['count']}")

        def after(self, action: Any, state: Any) -> None:
            order.append(f"after:{state['count']}")

    store.subscribe_action(Recorder())
    await store.dispatch("bump")

    assert order == ["before:0", "after:1"]


@pytest.mark.asyncio
async def test_prepended_action_subscriber_runs_first() -> None:
    store = _store()
    order: list[str] = []
    store.subscribe_action({"before": lambda action, state: order.append("appended")})
    store.subscribe_action({"before": lambda action, state: order.append("prepended")}, prepend=True)

    await store.dispatch("bump")

    assert order == ["prepended", "appended"]
