"""
Node Store.

Typed CRUD over artifacts, executions and contexts. ``properties`` are
checked against the owning type's schema; ``custom_properties`` are not.

Update is a full replacement of both property maps, the inverse of the
type registry's additive merge.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from ..db.executor import QueryExecutor
from ..db.query_config import MetadataSourceQueryConfig
from ..errors import already_exists, invalid_argument, not_found
from ..metadata import (
    NODE_MODELS,
    AnyNode,
    AnyType,
    Context,
    DoubleValue,
    IntValue,
    StringValue,
    TypeKind,
    Value,
)
from ._base import StoreService
from .type_registry import TypeRegistry

# Columns stored on the node row besides id and type_id
NODE_COLUMNS: Dict[TypeKind, Tuple[str, ...]] = {
    TypeKind.ARTIFACT: ("uri",),
    TypeKind.EXECUTION: (),
    TypeKind.CONTEXT: ("name",),
}


def _prefix(kind: TypeKind) -> str:
    return kind.value.lower()


def _value_columns(value: Value) -> Dict[str, Any]:
    return {
        "int_value": value.value if isinstance(value, IntValue) else None,
        "double_value": value.value if isinstance(value, DoubleValue) else None,
        "string_value": value.value if isinstance(value, StringValue) else None,
    }


def _load_value(row: Mapping[str, Any]) -> Value:
    if row["int_value"] is not None:
        return IntValue(value=int(row["int_value"]))
    if row["double_value"] is not None:
        return DoubleValue(value=float(row["double_value"]))
    return StringValue(value=row["string_value"] or "")


class NodeStore(StoreService):
    """Service for managing artifacts, executions and contexts."""

    def __init__(
        self,
        executor: QueryExecutor,
        config: MetadataSourceQueryConfig,
        types: Optional[TypeRegistry] = None,
    ):
        super().__init__(executor, config)
        self.types = types or TypeRegistry(executor, config)

    def create_node(self, node: AnyNode) -> int:
        """Insert a node and its properties; returns the new id."""
        kind = node.kind
        if not node.type_id:
            raise self._reject(
                invalid_argument(f"No type_id is given for the {kind.value}"),
                kind=kind.value,
            )
        node_type = self.types.find_type_by_id(node.type_id, kind)
        self._check_properties(node, node_type)

        if isinstance(node, Context):
            self._check_context_name(node, type_id=node.type_id)

        node_id = self._insert(
            f"insert_{_prefix(kind)}", type_id=node.type_id, **self._columns(node)
        )
        self._insert_properties(kind, node_id, node)
        return node_id

    def update_node(self, node: AnyNode) -> None:
        """Replace a node's columns and both property maps."""
        kind = node.kind
        if node.id is None:
            raise self._reject(
                invalid_argument(f"No id is given for the {kind.value} to update"),
                kind=kind.value,
            )
        stored = self._first(f"select_{_prefix(kind)}_by_id", id=node.id)
        if stored is None:
            raise self._reject(
                invalid_argument(f"Cannot find {kind.value} with id {node.id}"),
                node_id=node.id,
            )
        if node.type_id is not None and node.type_id != stored["type_id"]:
            raise self._reject(
                invalid_argument(
                    f"{kind.value} {node.id} has type_id {stored['type_id']}; "
                    f"type_id cannot be changed to {node.type_id}"
                ),
                node_id=node.id,
            )
        node_type = self.types.find_type_by_id(stored["type_id"], kind)
        self._check_properties(node, node_type)

        if isinstance(node, Context):
            self._check_context_name(
                node, type_id=stored["type_id"], exclude_id=node.id
            )

        columns = self._columns(node)
        if columns:
            self._run(f"update_{_prefix(kind)}", id=node.id, **columns)
        self._run(f"delete_{_prefix(kind)}_properties", node_id=node.id)
        self._insert_properties(kind, node.id, node)

    def find_node_by_id(self, node_id: int, kind: TypeKind) -> AnyNode:
        row = self._first(f"select_{_prefix(kind)}_by_id", id=node_id)
        if row is None:
            raise not_found(f"No {kind.value} found with id {node_id}")
        return self.load(row, kind)

    def find_nodes(self, kind: TypeKind) -> List[AnyNode]:
        return self.load_all(self._run(f"select_{_prefix(kind)}s").as_dicts(), kind)

    def find_nodes_by_type_id(self, type_id: int, kind: TypeKind) -> List[AnyNode]:
        rows = self._run(f"select_{_prefix(kind)}s_by_type_id", type_id=type_id)
        return self.load_all(rows.as_dicts(), kind)

    def find_artifacts_by_uri(self, uri: str) -> List[AnyNode]:
        rows = self._run("select_artifacts_by_uri", uri=uri)
        return self.load_all(rows.as_dicts(), TypeKind.ARTIFACT)

    def find_context_by_type_id_and_name(self, type_id: int, name: str) -> Context:
        row = self._first(
            "select_context_by_type_id_and_name", type_id=type_id, name=name
        )
        if row is None:
            raise not_found(f"No context named {name!r} with type_id {type_id}")
        return self.load(row, TypeKind.CONTEXT)

    def exists(self, node_id: Optional[int], kind: TypeKind) -> bool:
        if not node_id:
            return False
        return self._first(f"select_{_prefix(kind)}_by_id", id=node_id) is not None

    def load(self, row: Mapping[str, Any], kind: TypeKind) -> AnyNode:
        """Build a node model from a node row plus its property rows."""
        properties: Dict[str, Value] = {}
        custom_properties: Dict[str, Value] = {}
        records = self._run(f"select_{_prefix(kind)}_properties", node_id=row["id"])
        for record in records.as_dicts():
            target = custom_properties if record["is_custom_property"] else properties
            target[record["name"]] = _load_value(record)

        fields = {column: row[column] for column in NODE_COLUMNS[kind]}
        return NODE_MODELS[kind](
            id=row["id"],
            type_id=row["type_id"],
            properties=properties,
            custom_properties=custom_properties,
            **fields,
        )

    def load_all(self, rows: Iterable[Mapping[str, Any]], kind: TypeKind) -> List[AnyNode]:
        return [self.load(row, kind) for row in rows]

    def _columns(self, node: AnyNode) -> Dict[str, Any]:
        return {column: getattr(node, column) for column in NODE_COLUMNS[node.kind]}

    def _check_properties(self, node: AnyNode, node_type: AnyType) -> None:
        for name, value in node.properties.items():
            declared = node_type.properties.get(name)
            if declared is None:
                raise self._reject(
                    invalid_argument(
                        f"Property {name!r} is not declared by type {node_type.name!r}"
                    ),
                    type_id=node_type.id,
                )
            if declared != value.property_type:
                raise self._reject(
                    invalid_argument(
                        f"Property {name!r} of type {node_type.name!r} is declared "
                        f"{declared.value} but got {value.property_type.value}"
                    ),
                    type_id=node_type.id,
                )

    def _check_context_name(
        self, context: Context, type_id: int, exclude_id: Optional[int] = None
    ) -> None:
        if not context.name:
            raise self._reject(
                invalid_argument("Context name should not be empty"), type_id=type_id
            )
        clash = self._first(
            "select_context_by_type_id_and_name", type_id=type_id, name=context.name
        )
        if clash is not None and clash["id"] != exclude_id:
            raise self._reject(
                already_exists(
                    f"Context {context.name!r} already exists for type_id {type_id}"
                ),
                type_id=type_id,
            )

    def _insert_properties(self, kind: TypeKind, node_id: int, node: AnyNode) -> None:
        query = f"insert_{_prefix(kind)}_property"
        for is_custom, values in ((0, node.properties), (1, node.custom_properties)):
            for name, value in values.items():
                self._run(
                    query,
                    node_id=node_id,
                    name=name,
                    is_custom_property=is_custom,
                    **_value_columns(value),
                )
