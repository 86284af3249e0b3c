"""Per-caller binding to a named store.

A :class:`StoreBinding` is what an embedding component framework holds for
each component instance. It collects the reducer and store name (in either
order), makes sure the container exists once both are known, and drives the
attach/wait/detach lifecycle from ``activate()``/``deactivate()``.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections.abc import Callable, Mapping
from typing import Any

from sharedstore._constants import (
    ATTR_ACTION,
    ATTR_ROOT_REDUCER,
    ATTR_STORE_NAME,
    BINDING_ID_PREFIX,
    OBSERVED_ATTRIBUTES,
)
from sharedstore.container import Action, Reducer, StateContainer
from sharedstore.events import BindingState, StateChangeEvent
from sharedstore.exceptions import StoreConfigError, StoreError, StoreNeverReadyError
from sharedstore.registry import StoreRegistry, default_registry, normalize_store_name

_logger = logging.getLogger(__name__)

StateChangeListener = Callable[[StateChangeEvent], None]

_binding_ids = itertools.count()


def _require_running_loop(name: str) -> asyncio.AbstractEventLoop:
    try:
        return asyncio.get_running_loop()
    except RuntimeError as exc:
        raise StoreError(
            f"Store {name!r} does not exist yet; waiting for it requires a running event loop"
        ) from exc


class StoreBinding:
    """One caller's view of a shared store.

    Usage::

        binding = StoreBinding(registry, reducer=root_reducer, store_name="TODOS")
        binding.add_listener(on_change)
        async with binding:
            binding.dispatch_action({"type": "ADD", "text": "milk"})
    """

    observed_attributes: tuple[str, ...] = OBSERVED_ATTRIBUTES

    def __init__(
        self,
        registry: StoreRegistry | None = None,
        *,
        reducer: Reducer | None = None,
        store_name: str | None = None,
        listener: StateChangeListener | None = None,
    ) -> None:
        self._registry = registry if registry is not None else default_registry()
        self.binding_id = f"{BINDING_ID_PREFIX}-{next(_binding_ids)}"
        self._reducer: Reducer | None = None
        self._store_name = self._registry.config.default_store_name
        self._attached_name: str | None = None
        self._active = False
        self._state = BindingState.UNBOUND
        self._pending: asyncio.Task[None] | None = None
        self._listeners: list[StateChangeListener] = []
        self.last_error: StoreError | None = None

        if listener is not None:
            self.add_listener(listener)
        if store_name is not None:
            self.declare_store_name(store_name)
        if reducer is not None:
            self.declare_reducer(reducer)

    def __repr__(self) -> str:
        return f"<StoreBinding {self.binding_id} store={self._store_name!r} state={self._state.value}>"

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    @property
    def registry(self) -> StoreRegistry:
        return self._registry

    @property
    def reducer(self) -> Reducer | None:
        return self._reducer

    @reducer.setter
    def reducer(self, value: Reducer | None) -> None:
        self.declare_reducer(value)

    @property
    def store_name(self) -> str:
        return self._store_name

    @store_name.setter
    def store_name(self, value: str) -> None:
        self.declare_store_name(value)

    @property
    def state(self) -> BindingState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def attached_store_name(self) -> str | None:
        return self._attached_name

    def declare_reducer(self, reducer: Reducer | None) -> None:
        """Set the reducer used if this binding ends up creating the store.

        Has no effect on a container that already exists.
        """
        if reducer is not None and not callable(reducer):
            raise StoreConfigError("Reducer must be callable")
        self._reducer = reducer
        self._ensure_if_ready()

    def declare_store_name(self, name: str) -> None:
        """Point this binding at *name*.

        A binding that is pending or attached under another name is
        detached and re-attached to the new store.
        """
        new_name = normalize_store_name(name)
        previous = self._store_name
        moving = new_name != previous and self._state in (BindingState.PENDING, BindingState.ATTACHED)
        if moving and self._reducer is None and not self._registry.has_container(new_name):
            # Nothing is released unless the move can complete.
            _require_running_loop(new_name)
        self._store_name = new_name
        self._ensure_if_ready()
        if moving:
            _logger.debug("%s moving from %r to %r", self.binding_id, previous, new_name)
            self._cancel_pending()
            self._release()
            self._begin_attach()

    def _ensure_if_ready(self) -> None:
        if self._reducer is not None and self._store_name:
            self._registry.ensure_container(self._store_name, self._reducer)

    def attribute_changed(self, name: str, old_value: Any, new_value: Any) -> None:
        """Route a framework attribute change to the matching setter."""
        if name == ATTR_ROOT_REDUCER:
            self.declare_reducer(new_value)
        elif name == ATTR_STORE_NAME:
            self.declare_store_name(new_value)
        elif name == ATTR_ACTION:
            self.dispatch_action(new_value)

    # ------------------------------------------------------------------
    # Dispatch and state
    # ------------------------------------------------------------------

    def dispatch_action(self, action: Action) -> Any:
        """Dispatch *action* against this binding's current store."""
        return self._registry.dispatch(self._store_name, action)

    def dispatch_to(self, name: str, action: Action) -> Any:
        """Dispatch *action* against any store, attached or not."""
        return self._registry.dispatch(name, action)

    def _set_action(self, value: Action) -> None:
        self.dispatch_action(value)

    action = property(None, _set_action, doc="Write-only: assigning an action dispatches it.")

    def get_current_state(self) -> Any:
        return self._registry.get_state(self._store_name)

    def get_stores(self) -> Mapping[str, StateContainer]:
        return self._registry.all_containers()

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def add_listener(self, listener: StateChangeListener) -> None:
        if not callable(listener):
            raise StoreConfigError("Listener must be callable")
        self._listeners.append(listener)

    def remove_listener(self, listener: StateChangeListener) -> None:
        self._listeners = [cb for cb in self._listeners if cb is not listener]

    def _on_container_change(self) -> None:
        name = self._attached_name
        if name is None or not self._active:
            return
        event = StateChangeEvent(
            store_name=name,
            binding_id=self.binding_id,
            state=self._registry.get_state(name),
        )
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                _logger.exception("Error in state change listener of %s", self.binding_id)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def activate(self) -> None:
        """Attach to the current store, or start waiting for it to exist.

        Attaching to an existing container happens synchronously. Waiting
        for a missing container needs a running event loop.
        """
        if self._state is BindingState.ATTACHED and self._attached_name is not None:
            # Reuses the existing subscription, or raises if duplicates are rejected.
            self._registry.attach(self._attached_name, self.binding_id, self._on_container_change)
            return
        if self._state is BindingState.PENDING:
            return

        self._active = True
        self.last_error = None
        self._begin_attach()

    def deactivate(self) -> None:
        """Stop waiting, release the subscription, and stop notifications."""
        self._active = False
        self._cancel_pending()
        self._release()
        if self._state in (BindingState.PENDING, BindingState.ATTACHED):
            self._state = BindingState.DETACHED

    async def wait_attached(self) -> bool:
        """Wait for a pending attach to settle.

        Returns whether the binding is attached. Re-raises the timeout if
        the store never appeared.
        """
        # A rename while pending replaces the task; follow the current one.
        while (task := self._pending) is not None:
            await asyncio.wait({task})
            if self._pending is task:
                break
        if self.last_error is not None:
            raise self.last_error
        return self._state is BindingState.ATTACHED

    async def __aenter__(self) -> StoreBinding:
        self.activate()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        self.deactivate()

    def _begin_attach(self) -> None:
        name = self._store_name
        if self._registry.has_container(name):
            self._attach_now(name)
            return

        try:
            loop = _require_running_loop(name)
        except StoreError:
            self._active = False
            self._state = BindingState.UNBOUND
            raise

        self._state = BindingState.PENDING
        _logger.debug("%s waiting for store %r", self.binding_id, name)
        self._pending = loop.create_task(self._attach_when_ready(name), name=f"{self.binding_id}-attach")

    async def _attach_when_ready(self, name: str) -> None:
        task = asyncio.current_task()
        try:
            await self._registry.wait_for_container(name, timeout=self._registry.config.effective_attach_timeout)
        except StoreNeverReadyError as exc:
            if self._pending is not task:
                return
            self._pending = None
            self._active = False
            self._state = BindingState.UNBOUND
            self.last_error = exc
            _logger.warning("%s gave up waiting for store %r after %ss", self.binding_id, name, exc.timeout)
            return

        # Torn down or redirected to another store while waiting.
        if not self._active or self._pending is not task:
            return
        self._pending = None
        self._attach_now(name)

    def _attach_now(self, name: str) -> None:
        self._registry.attach(name, self.binding_id, self._on_container_change)
        self._attached_name = name
        self._state = BindingState.ATTACHED

    def _cancel_pending(self) -> None:
        task = self._pending
        self._pending = None
        if task is not None and not task.done():
            task.cancel()

    def _release(self) -> None:
        name = self._attached_name
        self._attached_name = None
        if name is not None:
            self._registry.detach(name, self.binding_id)
