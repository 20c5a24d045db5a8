"""
Library of builtin converters.
"""

from __future__ import annotations

from collections.abc import Hashable, Mapping, Sequence
from collections.abc import Set as AbstractSet
from datetime import date, datetime, time, timedelta
from decimal import Decimal, InvalidOperation
from enum import Enum
from pathlib import (
    Path,
    PosixPath,
    PurePath,
    PurePosixPath,
    PureWindowsPath,
    WindowsPath,
)
from typing import Any
from urllib.parse import SplitResult, urlsplit
from uuid import UUID

from ..exceptions import ConfigurationError
from ..inspecting.annotations import Annotation
from .converter import BaseConverter

__all__ = [
    "BoolConverter",
    "IntConverter",
    "FloatConverter",
    "StrConverter",
    "DecimalConverter",
    "DateConverter",
    "TimeConverter",
    "DateTimeConverter",
    "TimedeltaConverter",
    "UUIDConverter",
    "PathConverter",
    "URLConverter",
    "EnumConverter",
    "ArrayConverter",
    "PrimitiveArrayConverter",
    "BytesConverter",
    "ListConverter",
    "SetConverter",
    "SetAsListConverter",
    "MapConverter",
    "BUILTIN_CONVERTERS",
    "PRIMITIVE_ARRAY_ELEMENT_TYPES",
]


def _require_type(node: Any, expected: type | tuple[type, ...], name: str):
    if not isinstance(node, expected):
        raise TypeError(
            f"Expected {name}, got '{node}' of type '{type(node).__qualname__}'"
        )


class BoolConverter(BaseConverter[bool, bool]):
    def serialize(self, obj: bool, /) -> bool:
        return obj

    def deserialize(self, node: bool, /) -> bool:
        _require_type(node, bool, "bool")
        return node


class IntConverter(BaseConverter[int, int]):
    """
    Converter for integers of arbitrary size; rejects booleans.
    """

    def serialize(self, obj: int, /) -> int:
        if isinstance(obj, bool):
            raise TypeError(f"Expected int, got bool '{obj}'")
        return int(obj)

    def deserialize(self, node: int, /) -> int:
        if isinstance(node, bool) or not isinstance(node, int):
            raise TypeError(
                f"Expected int, got '{node}' of type '{type(node).__qualname__}'"
            )
        return int(node)


class FloatConverter(BaseConverter[float | int, float]):
    """
    Converter for floats; integers are accepted and widened.
    """

    def serialize(self, obj: float | int, /) -> float:
        return float(obj)

    def deserialize(self, node: float | int, /) -> float:
        if isinstance(node, bool) or not isinstance(node, (int, float)):
            raise TypeError(
                f"Expected float, got '{node}' of type '{type(node).__qualname__}'"
            )
        return float(node)


class StrConverter(BaseConverter[str, str]):
    def serialize(self, obj: str, /) -> str:
        return str(obj)

    def deserialize(self, node: str, /) -> str:
        _require_type(node, str, "str")
        return str(node)


class DecimalConverter(BaseConverter[Decimal, str]):
    """
    Converter for decimals to/from strings, preserving precision.
    """

    def serialize(self, obj: Decimal, /) -> str:
        return str(obj)

    def deserialize(self, node: str, /) -> Decimal:
        if isinstance(node, bool) or not isinstance(node, (str, int, float)):
            raise TypeError(
                f"Expected decimal string, got '{node}' of type "
                f"'{type(node).__qualname__}'"
            )
        try:
            return Decimal(str(node))
        except InvalidOperation as e:
            raise ValueError(f"Invalid decimal string: '{node}'") from e


class DateConverter(BaseConverter[date, str]):
    """
    Converter for ISO date strings to/from python date objects. Native date values
    read by the text format are accepted as-is.
    """

    def serialize(self, obj: date, /) -> str:
        return obj.isoformat()

    def deserialize(self, node: str, /) -> date:
        if type(node) is date:
            return node
        _require_type(node, str, "ISO date string")
        return date.fromisoformat(node)


class TimeConverter(BaseConverter[time, str]):
    """
    Converter for ISO time strings to/from python time objects, i.e. `HH:MM:SS` or
    `HH:MM:SS.ffffff`.
    """

    def serialize(self, obj: time, /) -> str:
        return obj.isoformat()

    def deserialize(self, node: str, /) -> time:
        if isinstance(node, time):
            return time(
                node.hour, node.minute, node.second, node.microsecond, node.tzinfo
            )
        _require_type(node, str, "ISO time string")
        return time.fromisoformat(node)


class DateTimeConverter(BaseConverter[datetime, str]):
    """
    Converter for ISO datetime strings to/from python datetime objects.
    """

    def serialize(self, obj: datetime, /) -> str:
        return obj.isoformat()

    def deserialize(self, node: str, /) -> datetime:
        if isinstance(node, datetime):
            return datetime.fromisoformat(node.isoformat())
        _require_type(node, str, "ISO datetime string")
        return datetime.fromisoformat(node)


class TimedeltaConverter(BaseConverter[timedelta, float]):
    """
    Converter for durations to/from total seconds.
    """

    def serialize(self, obj: timedelta, /) -> float:
        return obj.total_seconds()

    def deserialize(self, node: float, /) -> timedelta:
        if isinstance(node, bool) or not isinstance(node, (int, float)):
            raise TypeError(
                f"Expected number of seconds, got '{node}' of type "
                f"'{type(node).__qualname__}'"
            )
        return timedelta(seconds=node)


class UUIDConverter(BaseConverter[UUID, str]):
    def serialize(self, obj: UUID, /) -> str:
        return str(obj)

    def deserialize(self, node: str, /) -> UUID:
        _require_type(node, str, "UUID string")
        return UUID(node)


class PathConverter(BaseConverter[PurePath, str]):
    """
    Converter for filesystem paths to/from strings, for a specific path class.
    """

    path_cls: type[PurePath]

    def __init__(self, path_cls: type[PurePath] = Path, /):
        self.path_cls = path_cls

    def __repr__(self) -> str:
        return f"PathConverter({self.path_cls.__qualname__})"

    def serialize(self, obj: PurePath, /) -> str:
        return str(obj)

    def deserialize(self, node: str, /) -> PurePath:
        _require_type(node, str, "path string")
        return self.path_cls(node)


class URLConverter(BaseConverter[SplitResult, str]):
    """
    Converter for URLs, represented as results of `urllib.parse.urlsplit()`.
    """

    def serialize(self, obj: SplitResult, /) -> str:
        return obj.geturl()

    def deserialize(self, node: str, /) -> SplitResult:
        _require_type(node, str, "URL string")
        return urlsplit(node)


class EnumConverter(BaseConverter[Enum, str]):
    """
    Converter for enum members to/from their names.
    """

    enum_cls: type[Enum]

    def __init__(self, enum_cls: type[Enum], /):
        self.enum_cls = enum_cls

    def __repr__(self) -> str:
        return f"EnumConverter({self.enum_cls.__qualname__})"

    @property
    def value_annotation(self) -> Annotation | None:
        return Annotation(self.enum_cls)

    def serialize(self, obj: Enum, /) -> str:
        return obj.name

    def deserialize(self, node: str, /) -> Enum:
        _require_type(node, str, "enum name")
        try:
            return self.enum_cls[node]
        except KeyError:
            names = ", ".join(self.enum_cls.__members__)
            raise ValueError(
                f"Enum '{self.enum_cls.__qualname__}' does not contain a member "
                f"named '{node}'; valid names are: {names}"
            ) from None


class _NullPolicyMixin:
    """
    Handling of `None` items within collections.
    """

    output_nulls: bool
    input_nulls: bool

    def _serialize_items(
        self, items: Any, converter: BaseConverter[Any, Any]
    ) -> list[Any]:
        return [
            converter.serialize(i) if i is not None else None
            for i in items
            if i is not None or self.output_nulls
        ]

    def _deserialize_items(
        self, nodes: Any, converter: BaseConverter[Any, Any]
    ) -> list[Any]:
        return [
            converter.deserialize(n) if n is not None else None
            for n in nodes
            if n is not None or self.input_nulls
        ]


class ArrayConverter(_NullPolicyMixin, BaseConverter[tuple[Any, ...], list[Any]]):
    """
    Converter for variadic tuples to/from lists, converting each item with the
    converter of the item type.
    """

    def __init__(
        self,
        element_converter: BaseConverter[Any, Any],
        /,
        *,
        output_nulls: bool = False,
        input_nulls: bool = False,
    ):
        self.element_converter = element_converter
        self.output_nulls = output_nulls
        self.input_nulls = input_nulls

    def __repr__(self) -> str:
        return f"ArrayConverter({self.element_converter})"

    def serialize(self, obj: tuple[Any, ...], /) -> list[Any]:
        return self._serialize_items(obj, self.element_converter)

    def deserialize(self, node: list[Any], /) -> tuple[Any, ...]:
        _require_type(node, (list, tuple), "list")
        return tuple(self._deserialize_items(node, self.element_converter))


PRIMITIVE_ARRAY_ELEMENT_TYPES: tuple[type, ...] = (bool, int, float, str)
"""
Item types of variadic tuples converted without selecting a converter per item.
"""


class PrimitiveArrayConverter(BaseConverter[tuple[Any, ...], list[Any]]):
    """
    Converter for variadic tuples of scalars, e.g. `tuple[int, ...]`. Items can't be
    `None`.
    """

    element_type: type

    def __init__(self, element_type: type, /):
        assert element_type in PRIMITIVE_ARRAY_ELEMENT_TYPES
        self.element_type = element_type
        self.__converter = BUILTIN_CONVERTERS[element_type]

    def __repr__(self) -> str:
        return f"PrimitiveArrayConverter({self.element_type.__qualname__})"

    def serialize(self, obj: tuple[Any, ...], /) -> list[Any]:
        return [self.__converter.serialize(i) for i in obj]

    def deserialize(self, node: list[Any], /) -> tuple[Any, ...]:
        _require_type(node, (list, tuple), "list")
        return tuple(self.__converter.deserialize(n) for n in node)


class BytesConverter(BaseConverter[bytes | bytearray, list[int]]):
    """
    Converter for `bytes` or `bytearray` to/from lists of integers.
    """

    bytes_cls: type[bytes] | type[bytearray]

    def __init__(self, bytes_cls: type[bytes] | type[bytearray] = bytes, /):
        self.bytes_cls = bytes_cls

    def __repr__(self) -> str:
        return f"BytesConverter({self.bytes_cls.__qualname__})"

    def serialize(self, obj: bytes | bytearray, /) -> list[int]:
        return list(obj)

    def deserialize(self, node: list[int], /) -> bytes | bytearray:
        _require_type(node, (list, tuple), "list of byte values")
        return self.bytes_cls(node)


class ListConverter(_NullPolicyMixin, BaseConverter[Sequence[Any], list[Any]]):
    def __init__(
        self,
        element_converter: BaseConverter[Any, Any],
        /,
        *,
        output_nulls: bool = False,
        input_nulls: bool = False,
    ):
        self.element_converter = element_converter
        self.output_nulls = output_nulls
        self.input_nulls = input_nulls

    def __repr__(self) -> str:
        return f"ListConverter({self.element_converter})"

    def serialize(self, obj: Sequence[Any], /) -> list[Any]:
        return self._serialize_items(obj, self.element_converter)

    def deserialize(self, node: list[Any], /) -> list[Any]:
        _require_type(node, (list, tuple), "list")
        return self._deserialize_items(node, self.element_converter)


class SetConverter(_NullPolicyMixin, BaseConverter[AbstractSet[Any], set[Any]]):
    """
    Converter for sets to/from sets, for formats which support them natively.
    """

    def __init__(
        self,
        element_converter: BaseConverter[Any, Any],
        /,
        *,
        set_cls: type[set[Any]] | type[frozenset[Any]] = set,
        output_nulls: bool = False,
        input_nulls: bool = False,
    ):
        self.element_converter = element_converter
        self.set_cls = set_cls
        self.output_nulls = output_nulls
        self.input_nulls = input_nulls

    def __repr__(self) -> str:
        return f"SetConverter({self.element_converter})"

    def serialize(self, obj: AbstractSet[Any], /) -> set[Any]:
        nodes = self._serialize_items(obj, self.element_converter)
        for node in nodes:
            if not isinstance(node, Hashable):
                raise ConfigurationError(
                    f"Converter '{self.element_converter}' serialized a set item to "
                    f"unhashable '{type(node).__qualname__}', which can't be a set "
                    "item; serialize sets as lists instead"
                )
        return set(nodes)

    def deserialize(self, node: set[Any], /) -> AbstractSet[Any]:
        _require_type(node, (set, frozenset), "set")
        return self.set_cls(self._deserialize_items(node, self.element_converter))


class SetAsListConverter(_NullPolicyMixin, BaseConverter[AbstractSet[Any], list[Any]]):
    """
    Converter for sets to/from lists, for formats without a set type. Iteration
    order of the set determines the order of the list.
    """

    def __init__(
        self,
        element_converter: BaseConverter[Any, Any],
        /,
        *,
        set_cls: type[set[Any]] | type[frozenset[Any]] = set,
        output_nulls: bool = False,
        input_nulls: bool = False,
    ):
        self.element_converter = element_converter
        self.set_cls = set_cls
        self.output_nulls = output_nulls
        self.input_nulls = input_nulls

    def __repr__(self) -> str:
        return f"SetAsListConverter({self.element_converter})"

    def serialize(self, obj: AbstractSet[Any], /) -> list[Any]:
        return self._serialize_items(obj, self.element_converter)

    def deserialize(self, node: list[Any], /) -> AbstractSet[Any]:
        _require_type(node, (list, tuple, set, frozenset), "list")
        return self.set_cls(self._deserialize_items(node, self.element_converter))


class MapConverter(BaseConverter[Mapping[Any, Any], dict[Any, Any]]):
    """
    Converter for mappings to/from dicts, preserving insertion order. The null
    policies apply to values.
    """

    def __init__(
        self,
        key_converter: BaseConverter[Any, Any],
        value_converter: BaseConverter[Any, Any],
        /,
        *,
        output_nulls: bool = False,
        input_nulls: bool = False,
    ):
        self.key_converter = key_converter
        self.value_converter = value_converter
        self.output_nulls = output_nulls
        self.input_nulls = input_nulls

    def __repr__(self) -> str:
        return f"MapConverter({self.key_converter}, {self.value_converter})"

    def serialize(self, obj: Mapping[Any, Any], /) -> dict[Any, Any]:
        return {
            self.key_converter.serialize(k): (
                self.value_converter.serialize(v) if v is not None else None
            )
            for k, v in obj.items()
            if v is not None or self.output_nulls
        }

    def deserialize(self, node: dict[Any, Any], /) -> dict[Any, Any]:
        _require_type(node, Mapping, "mapping")
        return {
            self.key_converter.deserialize(k): (
                self.value_converter.deserialize(v) if v is not None else None
            )
            for k, v in node.items()
            if v is not None or self.input_nulls
        }


BUILTIN_CONVERTERS: dict[type, BaseConverter[Any, Any]] = {
    bool: BoolConverter(),
    int: IntConverter(),
    float: FloatConverter(),
    str: StrConverter(),
    Decimal: DecimalConverter(),
    date: DateConverter(),
    time: TimeConverter(),
    datetime: DateTimeConverter(),
    timedelta: TimedeltaConverter(),
    UUID: UUIDConverter(),
    SplitResult: URLConverter(),
    **{
        path_cls: PathConverter(path_cls)
        for path_cls in (
            Path,
            PosixPath,
            WindowsPath,
            PurePath,
            PurePosixPath,
            PureWindowsPath,
        )
    },
}
"""
Stateless converters for builtin scalar types, by exact type.
"""
