"""State container contract and the default pydux-backed factory.

The registry never reimplements dispatch/subscribe semantics; it only
depends on the small surface described by :class:`StateContainer`.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol

import pydux

Action = dict[str, Any]
Reducer = Callable[[Any, Action], Any]
Listener = Callable[[], None]
Unsubscribe = Callable[[], None]


class StateContainer(Protocol):
    """A single-reducer store: dispatch, read state, subscribe."""

    def dispatch(self, action: Action) -> Any: ...

    def get_state(self) -> Any: ...

    def subscribe(self, listener: Listener) -> Unsubscribe: ...


ContainerFactory = Callable[[Reducer], StateContainer]


def create_container(reducer: Reducer) -> StateContainer:
    """Build a container for *reducer* using :func:`pydux.create_store`.

    The reducer is called once with ``state=None`` while the store
    initialises, so it must supply its own initial state.
    """
    return pydux.create_store(reducer)
