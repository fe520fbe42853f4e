"""
Lineage metadata model.

Defines the records the store reads and writes:

- Types: ArtifactType, ExecutionType, ContextType (named property schemas)
- Nodes: Artifact, Execution, Context (instances of a type)
- Edges: Event (artifact <-> execution), Association (execution <-> context),
  Attribution (artifact <-> context)

Lineage graph:
    Context -- Association -- Execution -- Event -- Artifact -- Attribution -- Context
"""

# Enums
from .enums import EventType, PropertyType, TypeKind

# Primitives
from .primitives import (
    AnyArtifactStructType,
    ArtifactStructType,
    DictArtifactStructType,
    DoubleValue,
    EventStep,
    IntValue,
    NoneArtifactStructType,
    StringValue,
    Value,
    make_value,
    now_millis,
)

# Types, nodes and edges
from .types import TYPE_MODELS, AnyType, ArtifactType, ContextType, ExecutionType
from .nodes import NODE_MODELS, AnyNode, Artifact, Context, Execution
from .relationships import Association, Attribution, Event

__all__ = [
    # Enums
    "TypeKind",
    "PropertyType",
    "EventType",
    # Primitives
    "IntValue",
    "DoubleValue",
    "StringValue",
    "Value",
    "make_value",
    "now_millis",
    "AnyArtifactStructType",
    "NoneArtifactStructType",
    "DictArtifactStructType",
    "ArtifactStructType",
    "EventStep",
    # Types
    "ArtifactType",
    "ExecutionType",
    "ContextType",
    "AnyType",
    "TYPE_MODELS",
    # Nodes
    "Artifact",
    "Execution",
    "Context",
    "AnyNode",
    "NODE_MODELS",
    # Edges
    "Event",
    "Association",
    "Attribution",
]
