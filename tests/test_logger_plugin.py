"""Tests for the logging plugin."""

from __future__ import annotations

import logging
from typing import Any

import pytest

from pystatetree import Store, create_logger

LOGGER_NAME = "pystatetree.plugins.logger"


def _store(plugin: Any) -> Store:
    return Store(
        {
            "state": {"user": None, "count": 0},
            "mutations": {
                "login": lambda state, credentials: state.update(user=credentials),
                "inc": lambda state: state.update(count=state["count"] + 1),
            },
            "actions": {"inc_async": lambda ctx: ctx.commit("inc")},
            "plugins": [plugin],
        }
    )


def _messages(caplog: pytest.LogCaptureFixture) -> list[str]:
    return [record.getMessage() for record in caplog.records if record.name == LOGGER_NAME]


def test_logs_mutation_headline_and_states(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger=LOGGER_NAME)
    store = _store(create_logger())

    store.commit("inc")

    messages = _messages(caplog)
    assert messages[0].startswith("mutation inc @ ")
    assert messages[1] == "prev state: {'user': None, 'count': 0}"
    assert messages[3] == "next state: {'user': None, 'count': 1}"


def test_state_snapshots_are_redacted(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger=LOGGER_NAME)
    store = _store(create_logger())

    store.commit("login", {"name": "ada", "password": "hunter2"})

    text = "\n".join(_messages(caplog))
    assert "hunter2" not in text
    assert "'password': '<redacted>'" in text


def test_headline_only_at_info(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger=LOGGER_NAME)
    store = _store(create_logger())

    store.commit("inc")

    messages = _messages(caplog)
    assert len(messages) == 1
    assert messages[0].startswith("mutation inc")


def test_mutation_filter_and_transformer(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger=LOGGER_NAME)
    store = _store(
        create_logger(
            mutation_filter=lambda mutation, before, after: mutation.type != "inc",
            transformer=lambda state: {"user": state["user"]},
        )
    )

    store.commit("inc")
    store.commit("login", {"name": "ada"})

    messages = _messages(caplog)
    assert not any(message.startswith("mutation inc") for message in messages)
    assert "prev state: {'user': None}" in messages
    assert "next state: {'user': {'name': 'ada'}}" in messages


def test_custom_logger_and_level(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.WARNING, logger="app.store")
    store = _store(create_logger(logger=logging.getLogger("app.store"), level=logging.WARNING, log_actions=False))

    store.commit("inc")

    records = [record for record in caplog.records if record.name == "app.store"]
    assert [record.levelno for record in records] == [logging.WARNING]


@pytest.mark.asyncio
async def test_logs_actions(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger=LOGGER_NAME)
    store = _store(create_logger(log_mutations=False))

    await store.dispatch("inc_async")

    messages = _messages(caplog)
    assert len(messages) == 1
    assert messages[0].startswith("action inc_async @ ")


@pytest.mark.asyncio
async def test_action_filter(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger=LOGGER_NAME)
    store = _store(create_logger(log_mutations=False, action_filter=lambda action, state: False))

    await store.dispatch("inc_async")

    assert _messages(caplog) == []
