"""
Store services for the lineage store.
"""

from .access_object import MetadataAccessObject
from .migration import MigrationEngine, parse_bool
from .node_store import NodeStore
from .relationships import RelationshipGraph
from .type_registry import TypeRegistry

__all__ = [
    "MetadataAccessObject",
    "MigrationEngine",
    "NodeStore",
    "RelationshipGraph",
    "TypeRegistry",
    "parse_bool",
]
