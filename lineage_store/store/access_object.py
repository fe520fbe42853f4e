"""
Metadata Access Object.

The single entry point over one executor and one query config. Access
operations run inside the caller's transaction:

    store = MetadataAccessObject.from_url("sqlite://")
    store.init_metadata_source_if_not_exists()
    with store.transaction():
        type_id = store.create_type(ArtifactType(name="Model"))
        store.create_artifact(Artifact(type_id=type_id, uri="/models/1"))

Schema operations (``init_*``, ``downgrade_metadata_source``) manage their
own transactions and must be called with none open.
"""

from contextlib import contextmanager
from typing import Generator, List, Optional

from ..db.executor import QueryExecutor
from ..db.query_config import MetadataSourceQueryConfig
from ..db.sqlalchemy_executor import SQLAlchemyQueryExecutor
from ..db.sqlite_config import build_sqlite_query_config
from ..metadata import (
    AnyType,
    Artifact,
    Association,
    Attribution,
    Context,
    Event,
    Execution,
    TypeKind,
)
from .migration import MigrationEngine
from .node_store import NodeStore
from .relationships import RelationshipGraph
from .type_registry import TypeRegistry


class MetadataAccessObject:
    """Facade over the type registry, node store, graph and migrations."""

    def __init__(
        self,
        executor: QueryExecutor,
        config: Optional[MetadataSourceQueryConfig] = None,
        library_version: Optional[int] = None,
    ):
        self.executor = executor
        self.config = config or build_sqlite_query_config()
        self.types = TypeRegistry(executor, self.config)
        self.nodes = NodeStore(executor, self.config, types=self.types)
        self.graph = RelationshipGraph(executor, self.config, nodes=self.nodes)
        self.migrations = MigrationEngine(executor, self.config, library_version)

    @classmethod
    def from_url(
        cls, database_url: Optional[str] = None, **kwargs
    ) -> "MetadataAccessObject":
        return cls(SQLAlchemyQueryExecutor.from_url(database_url), **kwargs)

    @contextmanager
    def transaction(self) -> Generator["MetadataAccessObject", None, None]:
        with self.executor.transaction():
            yield self

    def close(self) -> None:
        self.executor.close()

    # schema

    def init_metadata_source(self) -> None:
        self.migrations.init_metadata_source()

    def init_metadata_source_if_not_exists(
        self, enable_upgrade_migration: bool = False
    ) -> None:
        self.migrations.init_metadata_source_if_not_exists(enable_upgrade_migration)

    def downgrade_metadata_source(self, to_schema_version: int) -> None:
        self.migrations.downgrade_metadata_source(to_schema_version)

    def get_schema_version(self) -> int:
        return self.migrations.get_schema_version()

    def get_library_version(self) -> int:
        return self.migrations.get_library_version()

    # types

    def create_type(self, type_: AnyType) -> int:
        return self.types.create_type(type_)

    def update_type(self, type_: AnyType) -> None:
        self.types.update_type(type_)

    def find_type_by_id(self, type_id: int, kind: TypeKind) -> AnyType:
        return self.types.find_type_by_id(type_id, kind)

    def find_type_by_name(self, name: str, kind: TypeKind) -> AnyType:
        return self.types.find_type_by_name(name, kind)

    def find_types(self, kind: TypeKind) -> List[AnyType]:
        return self.types.find_types(kind)

    # artifacts

    def create_artifact(self, artifact: Artifact) -> int:
        return self.nodes.create_node(artifact)

    def update_artifact(self, artifact: Artifact) -> None:
        self.nodes.update_node(artifact)

    def find_artifact_by_id(self, artifact_id: int) -> Artifact:
        return self.nodes.find_node_by_id(artifact_id, TypeKind.ARTIFACT)

    def find_artifacts(self) -> List[Artifact]:
        return self.nodes.find_nodes(TypeKind.ARTIFACT)

    def find_artifacts_by_type_id(self, type_id: int) -> List[Artifact]:
        return self.nodes.find_nodes_by_type_id(type_id, TypeKind.ARTIFACT)

    def find_artifacts_by_uri(self, uri: str) -> List[Artifact]:
        return self.nodes.find_artifacts_by_uri(uri)

    # executions

    def create_execution(self, execution: Execution) -> int:
        return self.nodes.create_node(execution)

    def update_execution(self, execution: Execution) -> None:
        self.nodes.update_node(execution)

    def find_execution_by_id(self, execution_id: int) -> Execution:
        return self.nodes.find_node_by_id(execution_id, TypeKind.EXECUTION)

    def find_executions(self) -> List[Execution]:
        return self.nodes.find_nodes(TypeKind.EXECUTION)

    def find_executions_by_type_id(self, type_id: int) -> List[Execution]:
        return self.nodes.find_nodes_by_type_id(type_id, TypeKind.EXECUTION)

    # contexts

    def create_context(self, context: Context) -> int:
        return self.nodes.create_node(context)

    def update_context(self, context: Context) -> None:
        self.nodes.update_node(context)

    def find_context_by_id(self, context_id: int) -> Context:
        return self.nodes.find_node_by_id(context_id, TypeKind.CONTEXT)

    def find_contexts(self) -> List[Context]:
        return self.nodes.find_nodes(TypeKind.CONTEXT)

    def find_contexts_by_type_id(self, type_id: int) -> List[Context]:
        return self.nodes.find_nodes_by_type_id(type_id, TypeKind.CONTEXT)

    def find_context_by_type_id_and_name(self, type_id: int, name: str) -> Context:
        return self.nodes.find_context_by_type_id_and_name(type_id, name)

    # edges

    def create_event(self, event: Event) -> int:
        return self.graph.create_event(event)

    def create_association(self, association: Association) -> int:
        return self.graph.create_association(association)

    def create_attribution(self, attribution: Attribution) -> int:
        return self.graph.create_attribution(attribution)

    def find_events_by_artifact(self, artifact_id: int) -> List[Event]:
        return self.graph.find_events_by_artifact(artifact_id)

    def find_events_by_execution(self, execution_id: int) -> List[Event]:
        return self.graph.find_events_by_execution(execution_id)

    def find_contexts_by_execution(self, execution_id: int) -> List[Context]:
        return self.graph.find_contexts_by_execution(execution_id)

    def find_contexts_by_artifact(self, artifact_id: int) -> List[Context]:
        return self.graph.find_contexts_by_artifact(artifact_id)

    def find_executions_by_context(self, context_id: int) -> List[Execution]:
        return self.graph.find_executions_by_context(context_id)

    def find_artifacts_by_context(self, context_id: int) -> List[Artifact]:
        return self.graph.find_artifacts_by_context(context_id)
