"""Binding lifecycle states and change notifications."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BindingState(StrEnum):
    UNBOUND = "unbound"
    PENDING = "pending"
    ATTACHED = "attached"
    DETACHED = "detached"


class StateChangeEvent(BaseModel):
    """Full state snapshot delivered to a binding's listeners."""

    model_config = ConfigDict(frozen=True)

    store_name: str = Field(..., description="Store whose state changed")
    binding_id: str = Field(..., description="Binding that received the notification")
    state: Any = Field(..., description="Complete current state (not a diff)")
    emitted_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("store_name")
    @classmethod
    def _normalize_store_name(cls, value: str) -> str:
        name = value.strip()
        if not name:
            raise ValueError("store_name must be non-empty")
        return name
