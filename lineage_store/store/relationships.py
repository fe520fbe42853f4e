"""
Relationship Graph.

Create-only edges between nodes and the traversal reads over them:

- Event: artifact <-> execution, typed, with a timestamp and a path
- Association: execution <-> context
- Attribution: artifact <-> context

A broken endpoint is malformed input, so it fails INVALID_ARGUMENT rather
than NOT_FOUND. Traversals return nodes in edge creation order.
"""

from typing import Any, Dict, List, Optional

from ..db.executor import QueryExecutor
from ..db.query_config import MetadataSourceQueryConfig
from ..errors import already_exists, invalid_argument
from ..metadata import (
    Artifact,
    Association,
    Attribution,
    Context,
    Event,
    EventStep,
    EventType,
    Execution,
    TypeKind,
    now_millis,
)
from ._base import StoreService
from .node_store import NodeStore


class RelationshipGraph(StoreService):
    """Service for events, associations and attributions."""

    def __init__(
        self,
        executor: QueryExecutor,
        config: MetadataSourceQueryConfig,
        nodes: Optional[NodeStore] = None,
    ):
        super().__init__(executor, config)
        self.nodes = nodes or NodeStore(executor, config)

    def create_event(self, event: Event) -> int:
        """Record an artifact's role in an execution; returns the event id."""
        # required fields are checked before any lookup
        if not event.artifact_id:
            raise self._reject(invalid_argument("No artifact_id is given for the event"))
        if not event.execution_id:
            raise self._reject(invalid_argument("No execution_id is given for the event"))
        if event.type is None or event.type == EventType.UNKNOWN:
            raise self._reject(
                invalid_argument("No event type is given for the event"),
                artifact_id=event.artifact_id,
                execution_id=event.execution_id,
            )

        self._require_endpoint(event.artifact_id, TypeKind.ARTIFACT)
        self._require_endpoint(event.execution_id, TypeKind.EXECUTION)

        timestamp = event.milliseconds_since_epoch
        if timestamp is None:
            timestamp = now_millis()
        event_id = self._insert(
            "insert_event",
            artifact_id=event.artifact_id,
            execution_id=event.execution_id,
            type=event.type.code,
            milliseconds_since_epoch=timestamp,
        )
        for step in event.path:
            self._run(
                "insert_event_path",
                event_id=event_id,
                is_index_step=1 if step.is_index_step else 0,
                step_index=step.index,
                step_key=step.key,
            )
        return event_id

    def create_association(self, association: Association) -> int:
        self._require_endpoint(association.execution_id, TypeKind.EXECUTION)
        self._require_endpoint(association.context_id, TypeKind.CONTEXT)
        pair = {
            "context_id": association.context_id,
            "execution_id": association.execution_id,
        }
        if self._first("select_association_by_pair", **pair) is not None:
            raise self._reject(
                already_exists(
                    f"Execution {association.execution_id} is already associated "
                    f"with context {association.context_id}"
                ),
                **pair,
            )
        return self._insert("insert_association", **pair)

    def create_attribution(self, attribution: Attribution) -> int:
        self._require_endpoint(attribution.artifact_id, TypeKind.ARTIFACT)
        self._require_endpoint(attribution.context_id, TypeKind.CONTEXT)
        pair = {
            "context_id": attribution.context_id,
            "artifact_id": attribution.artifact_id,
        }
        if self._first("select_attribution_by_pair", **pair) is not None:
            raise self._reject(
                already_exists(
                    f"Artifact {attribution.artifact_id} is already attributed "
                    f"to context {attribution.context_id}"
                ),
                **pair,
            )
        return self._insert("insert_attribution", **pair)

    def find_contexts_by_execution(self, execution_id: int) -> List[Context]:
        rows = self._run("select_contexts_by_execution_id", execution_id=execution_id)
        return self.nodes.load_all(rows.as_dicts(), TypeKind.CONTEXT)

    def find_contexts_by_artifact(self, artifact_id: int) -> List[Context]:
        rows = self._run("select_contexts_by_artifact_id", artifact_id=artifact_id)
        return self.nodes.load_all(rows.as_dicts(), TypeKind.CONTEXT)

    def find_executions_by_context(self, context_id: int) -> List[Execution]:
        rows = self._run("select_executions_by_context_id", context_id=context_id)
        return self.nodes.load_all(rows.as_dicts(), TypeKind.EXECUTION)

    def find_artifacts_by_context(self, context_id: int) -> List[Artifact]:
        rows = self._run("select_artifacts_by_context_id", context_id=context_id)
        return self.nodes.load_all(rows.as_dicts(), TypeKind.ARTIFACT)

    def find_events_by_artifact(self, artifact_id: int) -> List[Event]:
        rows = self._run("select_events_by_artifact_id", artifact_id=artifact_id)
        return [self._load_event(row) for row in rows.as_dicts()]

    def find_events_by_execution(self, execution_id: int) -> List[Event]:
        rows = self._run("select_events_by_execution_id", execution_id=execution_id)
        return [self._load_event(row) for row in rows.as_dicts()]

    def _require_endpoint(self, node_id: Optional[int], kind: TypeKind) -> None:
        if not node_id:
            raise self._reject(
                invalid_argument(f"No {kind.value.lower()}_id is given"), kind=kind.value
            )
        if not self.nodes.exists(node_id, kind):
            raise self._reject(
                invalid_argument(f"No {kind.value} found with id {node_id}"),
                node_id=node_id,
            )

    def _load_event(self, row: Dict[str, Any]) -> Event:
        path = [
            EventStep(index=step["step_index"])
            if step["is_index_step"]
            else EventStep(key=step["step_key"])
            for step in self._run("select_event_path", event_id=row["id"]).as_dicts()
        ]
        return Event(
            id=row["id"],
            artifact_id=row["artifact_id"],
            execution_id=row["execution_id"],
            type=EventType.from_code(row["type"]),
            milliseconds_since_epoch=row["milliseconds_since_epoch"],
            path=path,
        )
