"""
Node instances: artifacts, executions and contexts.

``properties`` must conform to the owning type's schema; ``custom_properties``
are free-form. Both accept plain Python scalars, which are wrapped into
typed values on validation.
"""

from typing import ClassVar, Dict, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .enums import TypeKind
from .primitives import Value, coerce_value_map


class _NodeBase(BaseModel):
    model_config = ConfigDict(extra="forbid")

    kind: ClassVar[TypeKind]

    id: Optional[int] = Field(None, description="Store-assigned identifier")
    type_id: Optional[int] = Field(None, description="Owning type id")
    properties: Dict[str, Value] = Field(
        default_factory=dict, description="Schema-backed properties"
    )
    custom_properties: Dict[str, Value] = Field(
        default_factory=dict, description="Unconstrained properties"
    )

    @field_validator("properties", "custom_properties", mode="before")
    @classmethod
    def _wrap_scalars(cls, value):
        return coerce_value_map(value)


class Artifact(_NodeBase):
    """A data or model artifact, addressed by ``uri``."""

    kind: ClassVar[TypeKind] = TypeKind.ARTIFACT

    uri: Optional[str] = Field(None, description="Free-form location")


class Execution(_NodeBase):
    """A run of some component."""

    kind: ClassVar[TypeKind] = TypeKind.EXECUTION


class Context(_NodeBase):
    """A named grouping of artifacts and executions.

    Invariants:
    - ``name`` is required and unique within ``type_id``.
    """

    kind: ClassVar[TypeKind] = TypeKind.CONTEXT

    name: str = Field("", description="Name, unique within the type")


AnyNode = Union[Artifact, Execution, Context]

NODE_MODELS: Dict[TypeKind, Type[_NodeBase]] = {
    TypeKind.ARTIFACT: Artifact,
    TypeKind.EXECUTION: Execution,
    TypeKind.CONTEXT: Context,
}
