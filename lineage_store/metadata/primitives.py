"""
Shared building blocks for lineage metadata.

- Property values are a closed tagged union of IntValue, DoubleValue and
  StringValue, discriminated by ``kind``.
- Execution signatures are a recursive ArtifactStructType union of any, none
  and dict variants.
- Event paths are a list of EventStep, each an index or a key.
"""

import time
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictFloat,
    StrictInt,
    StrictStr,
    TypeAdapter,
    field_validator,
    model_validator,
)

from .enums import PropertyType


def now_millis() -> int:
    """Current wall-clock time in milliseconds since the epoch."""
    return int(time.time() * 1000)


class IntValue(BaseModel):
    """An integer property value."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["INT"] = "INT"
    value: StrictInt

    @property
    def property_type(self) -> PropertyType:
        return PropertyType.INT


class DoubleValue(BaseModel):
    """A double property value."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["DOUBLE"] = "DOUBLE"
    value: StrictFloat

    @field_validator("value", mode="before")
    @classmethod
    def _widen_int(cls, value: Any) -> Any:
        # bool is an int subclass but never a double
        if isinstance(value, int) and not isinstance(value, bool):
            return float(value)
        return value

    @property
    def property_type(self) -> PropertyType:
        return PropertyType.DOUBLE


class StringValue(BaseModel):
    """A string property value."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["STRING"] = "STRING"
    value: StrictStr

    @property
    def property_type(self) -> PropertyType:
        return PropertyType.STRING


Value = Annotated[
    Union[IntValue, DoubleValue, StringValue], Field(discriminator="kind")
]

_value_adapter: TypeAdapter = TypeAdapter(Value)


def make_value(raw: Any) -> Union[IntValue, DoubleValue, StringValue]:
    """Wrap a plain Python scalar (or a value dict) into a typed Value."""
    if isinstance(raw, (IntValue, DoubleValue, StringValue)):
        return raw
    if isinstance(raw, bool):
        raise ValueError("Boolean property values are not supported")
    if isinstance(raw, int):
        return IntValue(value=raw)
    if isinstance(raw, float):
        return DoubleValue(value=raw)
    if isinstance(raw, str):
        return StringValue(value=raw)
    if isinstance(raw, dict):
        return _value_adapter.validate_python(raw)
    raise ValueError(f"Unsupported property value: {raw!r}")


def coerce_value_map(raw: Any) -> Any:
    """Before-validator helper turning {name: scalar} into {name: Value}."""
    if not isinstance(raw, dict):
        return raw
    return {name: make_value(value) for name, value in raw.items()}


class AnyArtifactStructType(BaseModel):
    """Accepts any artifact shape."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["any"] = "any"


class NoneArtifactStructType(BaseModel):
    """Accepts no artifact at all."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["none"] = "none"


class DictArtifactStructType(BaseModel):
    """A named mapping of nested artifact shapes."""

    model_config = ConfigDict(extra="forbid")

    kind: Literal["dict"] = "dict"
    properties: Dict[str, "ArtifactStructType"] = Field(default_factory=dict)


ArtifactStructType = Annotated[
    Union[AnyArtifactStructType, NoneArtifactStructType, DictArtifactStructType],
    Field(discriminator="kind"),
]

DictArtifactStructType.model_rebuild()

_struct_adapter: TypeAdapter = TypeAdapter(ArtifactStructType)


def dump_struct_type(struct_type: Optional[BaseModel]) -> Optional[str]:
    """Serialize a signature for storage; None stays None."""
    if struct_type is None:
        return None
    return struct_type.model_dump_json()


def load_struct_type(text: Optional[str]) -> Optional[BaseModel]:
    """Parse a stored signature; NULL or empty text means no signature."""
    if not text:
        return None
    return _struct_adapter.validate_json(text)


class EventStep(BaseModel):
    """One step of an event path: an array index or a map key."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    index: Optional[int] = None
    key: Optional[str] = None

    @model_validator(mode="after")
    def _exactly_one(self) -> "EventStep":
        if (self.index is None) == (self.key is None):
            raise ValueError("An event step is either an index or a key")
        return self

    @property
    def is_index_step(self) -> bool:
        return self.index is not None


def coerce_path(raw: Any) -> Any:
    """Before-validator helper accepting ints and strings as path steps."""
    if not isinstance(raw, list):
        return raw
    steps: List[Any] = []
    for step in raw:
        if isinstance(step, bool):
            raise ValueError("Boolean event path steps are not supported")
        if isinstance(step, int):
            steps.append(EventStep(index=step))
        elif isinstance(step, str):
            steps.append(EventStep(key=step))
        else:
            steps.append(step)
    return steps
