"""
Lineage Store

Storage-access core of an ML lineage metadata store: typed artifacts,
executions and contexts, the events and memberships linking them, and a
versioned, reversible schema.
"""

import importlib.metadata

__version__ = importlib.metadata.version("lineage-store")

from .db import LIBRARY_VERSION, QueryExecutor, RecordSet, SQLAlchemyQueryExecutor
from .errors import ErrorCode, MetadataStoreError
from .metadata import (
    Artifact,
    ArtifactType,
    Association,
    Attribution,
    Context,
    ContextType,
    Event,
    EventType,
    Execution,
    ExecutionType,
    PropertyType,
    TypeKind,
)
from .store import MetadataAccessObject

__all__ = [
    "LIBRARY_VERSION",
    "QueryExecutor",
    "RecordSet",
    "SQLAlchemyQueryExecutor",
    "ErrorCode",
    "MetadataStoreError",
    "MetadataAccessObject",
    "Artifact",
    "ArtifactType",
    "Association",
    "Attribution",
    "Context",
    "ContextType",
    "Event",
    "EventType",
    "Execution",
    "ExecutionType",
    "PropertyType",
    "TypeKind",
]
