"""Process-wide registry of named state containers.

The registry is the only component allowed to create containers. Creation is
idempotent by name: the first ``(name, reducer)`` pair wins and later
reducers for the same name are discarded, so accumulated state is never
thrown away by a redundant declaration.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from sharedstore._summary import summarize_for_log
from sharedstore.config import RegistryConfig
from sharedstore.container import (
    Action,
    ContainerFactory,
    Listener,
    Reducer,
    StateContainer,
    Unsubscribe,
    create_container,
)
from sharedstore.exceptions import (
    DuplicateAttachError,
    InvalidStoreNameError,
    NoSuchStoreError,
    StoreConfigError,
    StoreNeverReadyError,
)

_logger = logging.getLogger(__name__)


def normalize_store_name(name: Any) -> str:
    """Validate a store name and strip surrounding whitespace."""
    if not isinstance(name, str):
        raise InvalidStoreNameError(f"Store name must be a string, got {type(name).__name__}")
    normalized = name.strip()
    if not normalized:
        raise InvalidStoreNameError("Store name must be non-empty")
    return normalized


@dataclass(frozen=True, slots=True)
class StoreEntry:
    """A created container together with the reducer it was built from."""

    name: str
    container: StateContainer
    reducer: Reducer


class StoreRegistry:
    """Mapping from store name to exactly one state container.

    Besides the containers themselves the registry tracks one subscription
    per ``(store name, caller id)`` and the futures of callers waiting for a
    container that has not been created yet.
    """

    def __init__(
        self,
        config: RegistryConfig | None = None,
        *,
        container_factory: ContainerFactory = create_container,
    ) -> None:
        self._config = config if config is not None else RegistryConfig()
        self._container_factory = container_factory
        self._entries: dict[str, StoreEntry] = {}
        self._subscriptions: dict[str, dict[str, Unsubscribe]] = {}
        self._waiters: dict[str, list[asyncio.Future[StateContainer]]] = {}

    @property
    def config(self) -> RegistryConfig:
        return self._config

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.strip() in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    # ------------------------------------------------------------------
    # Creation and lookup
    # ------------------------------------------------------------------

    def ensure_container(self, name: str, reducer: Reducer) -> StoreEntry:
        """Create the container for *name* unless one already exists.

        If an entry exists, it is returned untouched and *reducer* is
        discarded.
        """
        store_name = normalize_store_name(name)
        if not callable(reducer):
            raise StoreConfigError(f"Reducer for store {store_name!r} must be callable")

        existing = self._entries.get(store_name)
        if existing is not None:
            if existing.reducer is not reducer:
                _logger.debug("Store %r already exists; discarding new reducer %r", store_name, reducer)
            return existing

        container = self._container_factory(reducer)
        entry = StoreEntry(name=store_name, container=container, reducer=reducer)
        self._entries[store_name] = entry
        _logger.debug("Created store %r", store_name)
        self._resolve_waiters(store_name, container)
        return entry

    def get_entry(self, name: str) -> StoreEntry | None:
        return self._entries.get(normalize_store_name(name))

    def get_container(self, name: str) -> StateContainer | None:
        """Look up a container. Never creates one."""
        entry = self.get_entry(name)
        return entry.container if entry is not None else None

    def has_container(self, name: str) -> bool:
        return self.get_entry(name) is not None

    def _require_container(self, name: str) -> tuple[str, StateContainer]:
        store_name = normalize_store_name(name)
        entry = self._entries.get(store_name)
        if entry is None:
            raise NoSuchStoreError(store_name)
        return store_name, entry.container

    def all_containers(self) -> Mapping[str, StateContainer]:
        """Read-only snapshot of every container, keyed by store name."""
        return MappingProxyType({name: entry.container for name, entry in self._entries.items()})

    # ------------------------------------------------------------------
    # Dispatch and state
    # ------------------------------------------------------------------

    def dispatch(self, name: str, action: Action) -> Any:
        """Forward *action* to the container registered under *name*.

        Subscribers are notified synchronously, in subscription order,
        before this returns.
        """
        store_name, container = self._require_container(name)
        if _logger.isEnabledFor(logging.DEBUG):
            _logger.debug("Dispatching to %r: %s", store_name, summarize_for_log(action))
        return container.dispatch(action)

    def get_state(self, name: str) -> Any:
        _, container = self._require_container(name)
        return container.get_state()

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def attach(self, name: str, caller_id: str, listener: Listener) -> Unsubscribe:
        """Subscribe *listener* on behalf of *caller_id*.

        A caller holds at most one subscription per container. Attaching
        again returns the existing handle, or raises
        :class:`DuplicateAttachError` when the registry is configured to
        reject duplicates.
        """
        store_name, container = self._require_container(name)
        if not callable(listener):
            raise StoreConfigError("Listener must be callable")

        callers = self._subscriptions.setdefault(store_name, {})
        if caller_id in callers:
            if self._config.reject_duplicate_attach:
                raise DuplicateAttachError(store_name, caller_id)
            _logger.debug("%s already attached to %r; reusing subscription", caller_id, store_name)
            return self._handle(store_name, caller_id)

        callers[caller_id] = container.subscribe(listener)
        _logger.debug("%s attached to %r", caller_id, store_name)
        return self._handle(store_name, caller_id)

    def _handle(self, store_name: str, caller_id: str) -> Unsubscribe:
        def release() -> None:
            self.detach(store_name, caller_id)

        return release

    def detach(self, name: str, caller_id: str) -> bool:
        """Release *caller_id*'s subscription. Returns whether one existed."""
        store_name = normalize_store_name(name)
        callers = self._subscriptions.get(store_name)
        if not callers or caller_id not in callers:
            return False
        unsubscribe = callers.pop(caller_id)
        if not callers:
            del self._subscriptions[store_name]
        unsubscribe()
        _logger.debug("%s detached from %r", caller_id, store_name)
        return True

    def is_attached(self, name: str, caller_id: str) -> bool:
        return caller_id in self._subscriptions.get(normalize_store_name(name), {})

    def subscriber_count(self, name: str) -> int:
        return len(self._subscriptions.get(normalize_store_name(name), {}))

    # ------------------------------------------------------------------
    # Waiting for creation
    # ------------------------------------------------------------------

    async def wait_for_container(self, name: str, *, timeout: float | None = None) -> StateContainer:
        """Return the container for *name*, waiting until it is created.

        Yields one loop turn before registering as a waiter so creations
        scheduled in the current turn are picked up without waiting.
        """
        store_name = normalize_store_name(name)
        container = self.get_container(store_name)
        if container is not None:
            return container

        await asyncio.sleep(0)
        container = self.get_container(store_name)
        if container is not None:
            return container

        future: asyncio.Future[StateContainer] = asyncio.get_running_loop().create_future()
        self._waiters.setdefault(store_name, []).append(future)
        try:
            if timeout is None:
                return await future
            try:
                return await asyncio.wait_for(future, timeout)
            except TimeoutError as exc:
                raise StoreNeverReadyError(store_name, timeout) from exc
        finally:
            self._discard_waiter(store_name, future)

    def pending_waiters(self, name: str) -> int:
        return len(self._waiters.get(normalize_store_name(name), []))

    def _discard_waiter(self, store_name: str, future: asyncio.Future[StateContainer]) -> None:
        waiters = self._waiters.get(store_name)
        if waiters is None:
            return
        if future in waiters:
            waiters.remove(future)
        if not waiters:
            self._waiters.pop(store_name, None)

    def _resolve_waiters(self, store_name: str, container: StateContainer) -> None:
        for future in self._waiters.pop(store_name, []):
            if not future.done():
                future.set_result(container)


_default_registry: StoreRegistry | None = None


def default_registry() -> StoreRegistry:
    """Process-wide registry used by bindings that are not given one."""
    global _default_registry
    if _default_registry is None:
        _default_registry = StoreRegistry(RegistryConfig.from_env())
    return _default_registry
