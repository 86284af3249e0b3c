"""Registry configuration for sharedstore."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from sharedstore._constants import DEFAULT_STORE_NAME
from sharedstore.exceptions import StoreConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_float(name: str, value: str) -> float:
    try:
        return float(value)
    except ValueError as exc:
        raise StoreConfigError(f"{name} must be a number, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class RegistryConfig:
    """Registry configuration.

    Parameters
    ----------
    default_store_name : str
        Name used by bindings that never declare one.
    attach_timeout : float or None
        Seconds a pending binding waits for its container before giving up
        with :class:`~sharedstore.exceptions.StoreNeverReadyError`.
        ``None`` (or any value ``<= 0``) waits forever.
    reject_duplicate_attach : bool
        Raise :class:`~sharedstore.exceptions.DuplicateAttachError` when a
        caller attaches twice to one container instead of silently reusing
        the first subscription.
    """

    default_store_name: str = DEFAULT_STORE_NAME
    attach_timeout: float | None = None
    reject_duplicate_attach: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.default_store_name, str) or not self.default_store_name.strip():
            raise StoreConfigError("default_store_name must be a non-empty string")

    @property
    def effective_attach_timeout(self) -> float | None:
        """The attach timeout, or ``None`` when waiting is unbounded."""
        if self.attach_timeout is None or self.attach_timeout <= 0:
            return None
        return float(self.attach_timeout)

    @classmethod
    def from_env(cls, **overrides: Any) -> RegistryConfig:
        """Create configuration from environment variables.

        Reads ``SHAREDSTORE_DEFAULT_STORE_NAME``,
        ``SHAREDSTORE_ATTACH_TIMEOUT`` and
        ``SHAREDSTORE_REJECT_DUPLICATE_ATTACH``. Explicit keyword arguments
        override environment values.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        name_env = env.get("SHAREDSTORE_DEFAULT_STORE_NAME")
        if name_env is not None and "default_store_name" not in overrides:
            config_kwargs["default_store_name"] = name_env

        timeout_env = env.get("SHAREDSTORE_ATTACH_TIMEOUT")
        if timeout_env is not None and "attach_timeout" not in overrides:
            config_kwargs["attach_timeout"] = _env_float("SHAREDSTORE_ATTACH_TIMEOUT", timeout_env)

        if "reject_duplicate_attach" not in overrides:
            config_kwargs["reject_duplicate_attach"] = _env_bool(
                env.get("SHAREDSTORE_REJECT_DUPLICATE_ATTACH"),
                False,
            )

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
