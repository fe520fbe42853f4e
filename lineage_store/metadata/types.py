"""
Type definitions: named property schemas for artifacts, executions and
contexts.

A type's ``id`` is assigned by the store. ``name`` must be non-empty when a
type is created, but may be empty in an update request that resolves its
target by id.
"""

from typing import ClassVar, Dict, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, Field

from .enums import PropertyType, TypeKind
from .primitives import ArtifactStructType


class _TypeBase(BaseModel):
    model_config = ConfigDict(extra="forbid")

    kind: ClassVar[TypeKind]

    id: Optional[int] = Field(None, description="Store-assigned identifier")
    name: str = Field("", description="Type name, unique per kind by convention")
    properties: Dict[str, PropertyType] = Field(
        default_factory=dict, description="Property name to value kind"
    )


class ArtifactType(_TypeBase):
    """Schema for artifacts."""

    kind: ClassVar[TypeKind] = TypeKind.ARTIFACT


class ExecutionType(_TypeBase):
    """Schema for executions, with an optional input/output signature."""

    kind: ClassVar[TypeKind] = TypeKind.EXECUTION

    input_type: Optional[ArtifactStructType] = Field(
        None, description="Permitted shape of input artifacts"
    )
    output_type: Optional[ArtifactStructType] = Field(
        None, description="Permitted shape of output artifacts"
    )


class ContextType(_TypeBase):
    """Schema for contexts."""

    kind: ClassVar[TypeKind] = TypeKind.CONTEXT


AnyType = Union[ArtifactType, ExecutionType, ContextType]

TYPE_MODELS: Dict[TypeKind, Type[_TypeBase]] = {
    TypeKind.ARTIFACT: ArtifactType,
    TypeKind.EXECUTION: ExecutionType,
    TypeKind.CONTEXT: ContextType,
}
