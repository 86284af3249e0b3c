from __future__ import annotations

import pytest
from pydantic import ValidationError

from sharedstore.events import BindingState, StateChangeEvent


def test_state_change_event_is_frozen() -> None:
    event = StateChangeEvent(store_name=" TODOS ", binding_id="store-binding-1", state={"a": 1})
    assert event.store_name == "TODOS"
    assert event.emitted_at.tzinfo is not None
    with pytest.raises(ValidationError):
        event.state = {}  # type: ignore[misc]


def test_state_change_event_requires_store_name() -> None:
    with pytest.raises(ValidationError):
        StateChangeEvent(store_name="  ", binding_id="store-binding-1", state={})


def test_binding_state_values() -> None:
    assert [s.value for s in BindingState] == ["unbound", "pending", "attached", "detached"]
