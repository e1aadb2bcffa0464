"""Store configuration for pystatetree."""

from __future__ import annotations

import dataclasses
import os
from typing import Any


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class StoreConfig:
    """Process-level store configuration.

    Parameters
    ----------
    strict : bool
        Install the strict-mode checker, which raises
        :class:`~pystatetree.exceptions.StrictModeViolationError` when state
        changes outside a mutation handler. A store's own ``strict`` option
        takes precedence when it is set.
    dev_mode : bool
        Development build. When ``False`` (production) configuration and
        lookup diagnostics are not logged and the strict-mode checker is
        never installed, even if ``strict`` is requested.
    """

    strict: bool = False
    dev_mode: bool = True

    @classmethod
    def from_env(cls, **overrides: Any) -> StoreConfig:
        """Create configuration from environment variables.

        Reads ``PYSTATETREE_STRICT``, ``PYSTATETREE_DEV_MODE`` and
        ``PYSTATETREE_ENV`` (``production`` turns dev mode off unless
        ``PYSTATETREE_DEV_MODE`` says otherwise). Explicit keyword
        arguments override environment values.
        """
        env = os.environ

        config_kwargs: dict[str, Any] = {}
        if "strict" not in overrides:
            config_kwargs["strict"] = _env_bool(env.get("PYSTATETREE_STRICT"), False)

        if "dev_mode" not in overrides:
            environment = (env.get("PYSTATETREE_ENV") or "").strip().lower()
            default_dev = environment not in {"production", "prod"}
            config_kwargs["dev_mode"] = _env_bool(env.get("PYSTATETREE_DEV_MODE"), default_dev)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
