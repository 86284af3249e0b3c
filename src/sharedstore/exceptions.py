"""Custom exception hierarchy for sharedstore."""

from __future__ import annotations


class StoreError(Exception):
    """Base exception for all sharedstore errors."""


class StoreConfigError(StoreError):
    """Invalid configuration or reducer."""


class InvalidStoreNameError(StoreError, ValueError):
    """Store name is empty, blank or not a string."""


class NoSuchStoreError(StoreError, KeyError):
    """No container has been created for the requested store name."""

    def __init__(self, store_name: str) -> None:
        self.store_name = store_name
        super().__init__(f"No store named {store_name!r} has been created")

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message.
        return str(self.args[0])


class DuplicateAttachError(StoreError):
    """A caller attached twice to the same container without detaching.

    Only raised when the registry is configured with
    ``reject_duplicate_attach=True``; by default the existing subscription
    is reused.
    """

    def __init__(self, store_name: str, caller_id: str) -> None:
        self.store_name = store_name
        self.caller_id = caller_id
        super().__init__(f"{caller_id} is already attached to store {store_name!r}")


class StoreNeverReadyError(StoreError, TimeoutError):
    """A pending attach gave up waiting for its container to be created."""

    def __init__(self, store_name: str, timeout: float) -> None:
        self.store_name = store_name
        self.timeout = timeout
        super().__init__(f"Store {store_name!r} was not created within {timeout:g}s")
