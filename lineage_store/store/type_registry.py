"""
Type Registry.

Creates, updates and reads the named property schemas of the three node
kinds. All kinds share the ``Type`` table and its id sequence; every lookup
is scoped by kind, so a row of another kind never satisfies it.

Update policy is additive merge: properties can be added, never removed or
redefined.
"""

from typing import Any, Dict, List, Mapping

from ..errors import already_exists, invalid_argument, not_found
from ..metadata import (
    TYPE_MODELS,
    AnyType,
    ExecutionType,
    PropertyType,
    TypeKind,
)
from ..metadata.primitives import dump_struct_type, load_struct_type
from ._base import StoreService


class TypeRegistry(StoreService):
    """Service for managing artifact, execution and context types."""

    def create_type(self, type_: AnyType) -> int:
        """Insert a type and its property schema; returns the new id."""
        kind = type_.kind
        if not type_.name:
            raise self._reject(
                invalid_argument("No type name is specified"), kind=kind.value
            )
        self._check_property_kinds(type_.properties, type_.name)

        input_type = output_type = None
        if isinstance(type_, ExecutionType):
            input_type = dump_struct_type(type_.input_type)
            output_type = dump_struct_type(type_.output_type)

        type_id = self._insert(
            "insert_type",
            name=type_.name,
            type_kind=kind.code,
            input_type=input_type,
            output_type=output_type,
        )
        for name, property_type in type_.properties.items():
            self._insert_property(type_id, name, property_type)
        return type_id

    def update_type(self, type_: AnyType) -> None:
        """Merge new properties into a stored type.

        The target is resolved by ``id`` when set, otherwise by ``name``.
        Nothing is written unless every submitted property passes.
        """
        kind = type_.kind
        stored = self._resolve_for_update(type_)

        additions: Dict[str, PropertyType] = {}
        for name, property_type in type_.properties.items():
            if property_type == PropertyType.UNKNOWN:
                raise self._reject(
                    invalid_argument(
                        f"Property {name!r} of type {stored.name!r} has unknown kind"
                    ),
                    type_id=stored.id,
                )
            existing = stored.properties.get(name)
            if existing is None:
                additions[name] = property_type
            elif existing != property_type:
                raise self._reject(
                    already_exists(
                        f"Property {name!r} of type {stored.name!r} is already "
                        f"defined as {existing.value}; cannot redefine as "
                        f"{property_type.value}"
                    ),
                    type_id=stored.id,
                    kind=kind.value,
                )

        for name, property_type in additions.items():
            self._insert_property(stored.id, name, property_type)

    def find_type_by_id(self, type_id: int, kind: TypeKind) -> AnyType:
        row = self._first("select_type_by_id", id=type_id, type_kind=kind.code)
        if row is None:
            raise not_found(f"No {kind.value} type found with id {type_id}")
        return self._build(row, kind)

    def find_type_by_name(self, name: str, kind: TypeKind) -> AnyType:
        """Return the type of ``kind`` named ``name`` (lowest id on repeats)."""
        row = self._first("select_type_by_name", name=name, type_kind=kind.code)
        if row is None:
            raise not_found(f"No {kind.value} type found with name {name!r}")
        return self._build(row, kind)

    def find_types(self, kind: TypeKind) -> List[AnyType]:
        rows = self._run("select_types_by_kind", type_kind=kind.code).as_dicts()
        return [self._build(row, kind) for row in rows]

    def _resolve_for_update(self, type_: AnyType) -> AnyType:
        kind = type_.kind
        if type_.id is None and not type_.name:
            raise self._reject(
                invalid_argument("Type update needs an id or a name"), kind=kind.value
            )

        if type_.id is not None:
            row = self._first("select_type_by_id", id=type_.id, type_kind=kind.code)
            if row is None:
                raise self._reject(
                    invalid_argument(f"No {kind.value} type with id {type_.id}"),
                    type_id=type_.id,
                )
            if type_.name and row["name"] != type_.name:
                raise self._reject(
                    invalid_argument(
                        f"Type id {type_.id} is named {row['name']!r}, "
                        f"not {type_.name!r}"
                    ),
                    type_id=type_.id,
                )
        else:
            row = self._first("select_type_by_name", name=type_.name, type_kind=kind.code)
            if row is None:
                raise self._reject(
                    invalid_argument(f"No {kind.value} type named {type_.name!r}"),
                    kind=kind.value,
                )
        return self._build(row, kind)

    def _check_property_kinds(
        self, properties: Mapping[str, PropertyType], type_name: str
    ) -> None:
        for name, property_type in properties.items():
            if property_type == PropertyType.UNKNOWN:
                raise self._reject(
                    invalid_argument(
                        f"Property {name!r} of type {type_name!r} has unknown kind"
                    )
                )

    def _insert_property(
        self, type_id: int, name: str, property_type: PropertyType
    ) -> None:
        self._run(
            "insert_type_property",
            type_id=type_id,
            name=name,
            data_type=property_type.code,
        )

    def _build(self, row: Dict[str, Any], kind: TypeKind) -> AnyType:
        properties = {
            record["name"]: PropertyType.from_code(record["data_type"])
            for record in self._run(
                "select_type_properties", type_id=row["id"]
            ).as_dicts()
        }
        fields: Dict[str, Any] = {
            "id": row["id"],
            "name": row["name"],
            "properties": properties,
        }
        if kind == TypeKind.EXECUTION:
            fields["input_type"] = load_struct_type(row.get("input_type"))
            fields["output_type"] = load_struct_type(row.get("output_type"))
        return TYPE_MODELS[kind](**fields)
