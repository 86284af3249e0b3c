from __future__ import annotations

import copy
from typing import Any

import pytest

from sharedstore.registry import StoreRegistry

INITIAL_STATE: dict[str, Any] = {
    "variable1": 5,
    "variable2": "this is a string",
    "variable3": {
        "prop1": 1,
        "prop2": "this is another string",
    },
}


def _root_reducer(state: Any, action: dict[str, Any]) -> Any:
    if state is None:
        state = copy.deepcopy(INITIAL_STATE)
    action_type = action.get("type")
    if action_type == "CHANGE_VARIABLE_1":
        return {**state, "variable1": action["variable1"]}
    if action_type == "REPLACE_STATE":
        return action["state"]
    return state


def _counter_reducer(state: Any, action: dict[str, Any]) -> Any:
    if state is None:
        state = {"count": 0}
    if action.get("type") == "INCREMENT":
        return {"count": state["count"] + 1}
    return state


@pytest.fixture
def initial_state() -> dict[str, Any]:
    return copy.deepcopy(INITIAL_STATE)


@pytest.fixture
def root_reducer():
    return _root_reducer


@pytest.fixture
def counter_reducer():
    return _counter_reducer


@pytest.fixture
def registry() -> StoreRegistry:
    return StoreRegistry()
