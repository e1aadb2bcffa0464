from __future__ import annotations

from pystatetree._redact import redact_for_log
from pystatetree.events import MutationEvent


def test_redact_for_log_redacts_sensitive_keys() -> None:
    payload = {
        "user": "ada",
        "password": "pw",
        "Token": "abc",
        "nested": {"apiKey": "k", "items": [{"secret": "s", "ok": 1}]},
    }

    redacted = redact_for_log(payload)
    assert redacted["user"] == "ada"
    assert redacted["password"] == "<redacted>"
    assert redacted["Token"] == "<redacted>"
    assert redacted["nested"]["apiKey"] == "<redacted>"
    assert redacted["nested"]["items"] == [{"secret": "<redacted>", "ok": 1}]


def test_redact_for_log_truncates_long_strings() -> None:
    long_value = "x" * 600
    redacted = redact_for_log({"value": long_value}, max_string=10)
    assert redacted["value"].startswith("x" * 10)
    assert "<truncated>" in redacted["value"]


def test_redact_for_log_custom_keys() -> None:
    redacted = redact_for_log({"card": "4111", "password": "pw"}, sensitive_keys=["CARD"])
    assert redacted == {"card": "<redacted>", "password": "pw"}


def test_redact_for_log_handles_models_and_bytes() -> None:
    event = MutationEvent(type="login", payload={"password": "pw", "user": "ada"})

    redacted = redact_for_log(event)
    assert redacted["type"] == "login"
    assert redacted["payload"] == {"password": "<redacted>", "user": "ada"}
    assert redact_for_log(b"\x00\x01") == "<bytes:2b>"


def test_redact_for_log_caps_depth() -> None:
    value: dict[str, object] = {}
    cursor = value
    for _ in range(30):
        cursor["next"] = {}
        cursor = cursor["next"]  # type: ignore[assignment]

    rendered = redact_for_log(value)
    for _ in range(21):
        rendered = rendered["next"]
    assert rendered == "<max-depth>"
