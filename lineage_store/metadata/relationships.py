"""
Edges between nodes: events, associations and attributions.

All three are create-only. Endpoint ids and the event type are optional at
the model level so that the store, not pydantic, reports a missing field as
INVALID_ARGUMENT.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .enums import EventType
from .primitives import EventStep, coerce_path


class Event(BaseModel):
    """A directional, typed link between an artifact and an execution."""

    model_config = ConfigDict(extra="forbid")

    id: Optional[int] = Field(None, description="Store-assigned identifier")
    artifact_id: Optional[int] = Field(None, description="Linked artifact")
    execution_id: Optional[int] = Field(None, description="Linked execution")
    type: Optional[EventType] = Field(None, description="Role of the artifact")
    milliseconds_since_epoch: Optional[int] = Field(
        None, description="Event time; the store fills in now when unset"
    )
    path: List[EventStep] = Field(
        default_factory=list, description="Position of the artifact in the execution"
    )

    @field_validator("path", mode="before")
    @classmethod
    def _wrap_steps(cls, value):
        return coerce_path(value)


class Association(BaseModel):
    """Membership of an execution in a context."""

    model_config = ConfigDict(extra="forbid")

    id: Optional[int] = None
    execution_id: Optional[int] = None
    context_id: Optional[int] = None


class Attribution(BaseModel):
    """Membership of an artifact in a context."""

    model_config = ConfigDict(extra="forbid")

    id: Optional[int] = None
    artifact_id: Optional[int] = None
    context_id: Optional[int] = None
