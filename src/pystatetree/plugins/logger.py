"""Logging plugin: records every mutation and action through ``logging``."""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from pystatetree._redact import redact_for_log
from pystatetree.events import ActionEvent, MutationEvent

if TYPE_CHECKING:
    from pystatetree.store import Store

_default_logger = logging.getLogger("pystatetree.plugins.logger")


def _identity(value: Any) -> Any:
    return value


def _always(*_args: Any) -> bool:
    return True


def create_logger(
    *,
    mutation_filter: Callable[[MutationEvent, Any, Any], bool] = _always,
    transformer: Callable[[Any], Any] = _identity,
    mutation_transformer: Callable[[MutationEvent], Any] = _identity,
    action_filter: Callable[[ActionEvent, Any], bool] = _always,
    action_transformer: Callable[[ActionEvent], Any] = _identity,
    log_mutations: bool = True,
    log_actions: bool = True,
    logger: logging.Logger | None = None,
    level: int = logging.INFO,
) -> Callable[[Store], None]:
    """Build a plugin that logs mutations and actions.

    Parameters
    ----------
    mutation_filter
        ``(mutation, state_before, state_after) -> bool``; only matching
        mutations are logged.
    transformer
        Applied to both state snapshots before they are rendered.
    mutation_transformer / action_transformer
        Applied to the event before it is rendered.
    action_filter
        ``(action, state) -> bool``; only matching actions are logged.
    logger, level
        Destination logger and record level for the headline entries. State
        snapshots are emitted at ``DEBUG``.
    """
    log = logger if logger is not None else _default_logger

    def plugin(store: Store) -> None:
        prev_state = copy.deepcopy(store.state)

        if log_mutations:

            def on_mutation(mutation: MutationEvent, state: Any) -> None:
                nonlocal prev_state
                next_state = copy.deepcopy(state)
                if mutation_filter(mutation, prev_state, next_state):
                    log.log(
                        level,
                        "mutation %s @ %s",
                        mutation.type,
                        mutation.observed_at.strftime("%H:%M:%S.%f")[:-3],
                    )
                    log.debug("prev state: %s", redact_for_log(transformer(prev_state)))
                    log.debug("mutation: %s", redact_for_log(mutation_transformer(mutation)))
                    log.debug("next state: %s", redact_for_log(transformer(next_state)))
                prev_state = next_state

            store.subscribe(on_mutation)

        if log_actions:

            def on_action(action: ActionEvent, state: Any) -> None:
                if action_filter(action, state):
                    log.log(
                        level,
                        "action %s @ %s",
                        action.type,
                        action.observed_at.strftime("%H:%M:%S.%f")[:-3],
                    )
                    log.debug("action: %s", redact_for_log(action_transformer(action)))

            store.subscribe_action(on_action)

    return plugin
