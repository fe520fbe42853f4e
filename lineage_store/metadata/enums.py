"""
Canonical enums for lineage metadata.

Each enum also knows the small integer code it is stored under, so query
templates only ever see integers.
"""

from enum import Enum


class TypeKind(str, Enum):
    """The three node kinds a type can describe."""

    EXECUTION = "Execution"
    ARTIFACT = "Artifact"
    CONTEXT = "Context"

    @property
    def code(self) -> int:
        return _TYPE_KIND_CODES[self]

    @classmethod
    def from_code(cls, code: int) -> "TypeKind":
        for kind, value in _TYPE_KIND_CODES.items():
            if value == int(code):
                return kind
        raise ValueError(f"Unknown type kind code: {code}")


_TYPE_KIND_CODES = {
    TypeKind.EXECUTION: 0,
    TypeKind.ARTIFACT: 1,
    TypeKind.CONTEXT: 2,
}


class PropertyType(str, Enum):
    """Value kinds a type schema may declare.

    UNKNOWN only exists so that callers can be told it is not allowed.
    """

    UNKNOWN = "UNKNOWN"
    INT = "INT"
    DOUBLE = "DOUBLE"
    STRING = "STRING"

    @property
    def code(self) -> int:
        return _PROPERTY_TYPE_CODES[self]

    @classmethod
    def from_code(cls, code: int) -> "PropertyType":
        for property_type, value in _PROPERTY_TYPE_CODES.items():
            if value == int(code):
                return property_type
        return cls.UNKNOWN


_PROPERTY_TYPE_CODES = {
    PropertyType.UNKNOWN: 0,
    PropertyType.INT: 1,
    PropertyType.DOUBLE: 2,
    PropertyType.STRING: 3,
}


class EventType(str, Enum):
    """Direction and role of an artifact relative to an execution."""

    UNKNOWN = "UNKNOWN"
    DECLARED_OUTPUT = "DECLARED_OUTPUT"
    DECLARED_INPUT = "DECLARED_INPUT"
    INPUT = "INPUT"
    OUTPUT = "OUTPUT"
    INTERNAL_INPUT = "INTERNAL_INPUT"
    INTERNAL_OUTPUT = "INTERNAL_OUTPUT"

    @property
    def code(self) -> int:
        return list(EventType).index(self)

    @classmethod
    def from_code(cls, code: int) -> "EventType":
        members = list(EventType)
        if 0 <= int(code) < len(members):
            return members[int(code)]
        return cls.UNKNOWN
