"""Commands accepted by commit/dispatch and the records handed to subscribers."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Command(BaseModel):
    """A structured mutation or action request.

    ``store.commit(Command(type="cart/add", sku="A1", qty=2))`` is the
    single-value form of ``store.commit("cart/add", payload)``; the command
    itself is handed to the handler as payload, so extra fields are read as
    attributes (``payload.sku``).
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    type: str

    @field_validator("type")
    @classmethod
    def _non_empty_type(cls, value: str) -> str:
        if not value:
            raise ValueError("command type must be non-empty")
        return value


class _StoreEvent(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    type: str
    payload: Any = None
    observed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class MutationEvent(_StoreEvent):
    """A committed mutation, as seen by mutation subscribers."""


class ActionEvent(_StoreEvent):
    """A dispatched action, as seen by action subscribers."""


def resolve_command(type_or_command: str | Command, payload: Any = None) -> tuple[str, Any]:
    """Split a commit/dispatch call into ``(type, payload)``."""
    if isinstance(type_or_command, Command):
        return type_or_command.type, type_or_command
    if isinstance(type_or_command, str):
        return type_or_command, payload
    raise TypeError(f"expects a string or Command as the type, but found {type(type_or_command).__name__}")
