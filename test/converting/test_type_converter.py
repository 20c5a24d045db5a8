"""
Tests for conversion of configuration types to/from mappings.
"""

from abc import abstractmethod
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Annotated, Any, Self

from pytest import raises

from configcraft.converting.builtin_converters import StrConverter
from configcraft.converting.converter import BaseConverter, Converter
from configcraft.converting.type_converter import TypeConverter
from configcraft.exceptions import ConfigurationError
from configcraft.markers import Ignore, SerializeWith, post_process
from configcraft.properties import ConfigurationProperties, NameFormatters


class Mode(Enum):
    FAST = "fast"
    SAFE = "safe"


@dataclass
class Flat:
    a: int = 0
    b: str | None = "default"


@dataclass
class Server:
    host: str = "localhost"
    port: int = 8080


@dataclass
class AppConfig:
    name: str = "app"
    max_connections: int = 10
    ratio: float = 0.5
    mode: Mode = Mode.SAFE
    started: date | None = None
    server: Server = field(default_factory=Server)
    tags: list[str] = field(default_factory=list)
    limits: dict[str, int] = field(default_factory=dict)
    ids: set[int] = field(default_factory=set)
    weights: tuple[float, ...] = ()
    _private: int = 1
    skipped: Annotated[int, Ignore()] = 2


@dataclass(frozen=True)
class FrozenConfig:
    value: int = 1
    items: tuple[str, ...] = ("a",)


def test_round_trip():
    """
    Test serializing and deserializing a flat record.
    """
    converter = TypeConverter(
        Flat, ConfigurationProperties(output_nulls=True, input_nulls=True)
    )

    serialized = converter.serialize(Flat(a=5, b="hi"))
    assert serialized == {"a": 5, "b": "hi"}
    assert converter.deserialize(serialized) == Flat(a=5, b="hi")

    serialized = converter.serialize(Flat(a=5, b=None))
    assert serialized == {"a": 5, "b": None}
    assert converter.deserialize(serialized) == Flat(a=5, b=None)


def test_nested():
    """
    Test nested configuration types, collections and field filtering.
    """
    config = AppConfig(
        name="svc",
        mode=Mode.FAST,
        started=date(2024, 1, 2),
        server=Server(port=9000),
        tags=["x", "y"],
        limits={"cpu": 2},
        ids={3},
        weights=(1.0, 2.5),
    )
    converter = TypeConverter(AppConfig)

    serialized = converter.serialize(config)
    assert serialized == {
        "name": "svc",
        "max_connections": 10,
        "ratio": 0.5,
        "mode": "FAST",
        "started": "2024-01-02",
        "server": {"host": "localhost", "port": 9000},
        "tags": ["x", "y"],
        "limits": {"cpu": 2},
        "ids": [3],
        "weights": [1.0, 2.5],
    }

    # field order is preserved
    assert list(serialized) == [
        "name",
        "max_connections",
        "ratio",
        "mode",
        "started",
        "server",
        "tags",
        "limits",
        "ids",
        "weights",
    ]

    assert converter.deserialize(serialized) == config


def test_null_omission():
    """
    Test `None` values are omitted and missing keys take default values.
    """
    converter = TypeConverter(Flat)

    assert converter.serialize(Flat(a=1, b=None)) == {"a": 1}

    # missing key: default value
    assert converter.deserialize({"a": 1}) == Flat(a=1, b="default")

    # explicit None with input nulls disabled: default value
    assert converter.deserialize({"a": 1, "b": None}) == Flat(a=1, b="default")

    # explicit None with input nulls enabled: None
    converter = TypeConverter(Flat, ConfigurationProperties(input_nulls=True))
    assert converter.deserialize({"a": 1, "b": None}) == Flat(a=1, b=None)


def test_defaults_fresh():
    """
    Test defaults of missing elements are taken from a fresh default instance
    for each deserialization.
    """
    converter = TypeConverter(AppConfig)

    first = converter.deserialize({})
    second = converter.deserialize({})
    assert first == AppConfig()
    assert first.tags is not second.tags
    assert first.server is not second.server


def test_frozen():
    """
    Test deserializing frozen dataclasses.
    """
    converter = TypeConverter(FrozenConfig)
    assert converter.deserialize({"value": 2, "items": ["b", "c"]}) == FrozenConfig(
        value=2, items=("b", "c")
    )


def test_name_formatter():
    """
    Test keys are formatted consistently.
    """
    properties = ConfigurationProperties(name_formatter=NameFormatters.LOWER_KEBAB)
    converter = TypeConverter(AppConfig, properties)

    serialized = converter.serialize(AppConfig(max_connections=3))
    assert serialized["max-connections"] == 3
    assert "max_connections" not in serialized

    assert converter.deserialize({"max-connections": 4}).max_connections == 4


def test_primitive_nulls():
    """
    Test primitive elements can't be assigned `None`.
    """
    converter = TypeConverter(Flat, ConfigurationProperties(input_nulls=True))
    with raises(ConfigurationError, match="Cannot set element 'Flat.a' to None"):
        _ = converter.deserialize({"a": None})

    properties = ConfigurationProperties(
        post_processors_by_condition=[(lambda e: e.name == "a", lambda _: None)]
    )
    converter = TypeConverter(Flat, properties)
    with raises(
        ConfigurationError,
        match="Post-processors must not return None for primitive elements",
    ):
        _ = converter.deserialize({"a": 1})


def test_post_processors():
    """
    Test post-processors by condition are applied in order, including to defaults.
    """
    properties = ConfigurationProperties(
        post_processors_by_condition=[
            (lambda e: e.value_annotation.concrete_type is int, lambda v: v * 2),
            (lambda e: e.name == "a", lambda v: v + 1),
            (lambda e: e.name == "b", lambda v: v.upper() if v is not None else v),
        ]
    )
    converter = TypeConverter(Flat, properties)

    assert converter.deserialize({"a": 5}) == Flat(a=11, b="DEFAULT")
    assert converter.deserialize({}) == Flat(a=1, b="DEFAULT")

    # result type mismatch
    properties = ConfigurationProperties(
        post_processors_by_condition=[(lambda e: e.name == "a", str)]
    )
    with raises(ConfigurationError, match="produced a value of type 'str'"):
        _ = TypeConverter(Flat, properties).deserialize({"a": 5})

    # post-processor rejecting the value's type
    properties = ConfigurationProperties(
        post_processors_by_condition=[(lambda e: e.name == "b", lambda v: v + 1)]
    )
    with raises(ConfigurationError, match="does not match the type post-processor"):
        _ = TypeConverter(Flat, properties).deserialize({"b": "x"})


def test_mismatch():
    """
    Test values and nodes of unexpected types are reported with context.
    """
    converter = TypeConverter(Flat)

    with raises(
        ConfigurationError,
        match="Serialization of value 'x' for element 'Flat.a' of type 'Flat' failed",
    ):
        _ = converter.serialize(Flat(a="x"))  # type: ignore

    with raises(
        ConfigurationError,
        match="Deserialization of value 'x' for element 'Flat.a' of type 'Flat' failed",
    ):
        _ = converter.deserialize({"a": "x"})

    with raises(
        ConfigurationError, match="'Mode' does not contain a member named 'SLOW'"
    ):
        _ = TypeConverter(AppConfig).deserialize({"mode": "SLOW"})


def test_unhashable_set_items():
    """
    Test sets of configuration types can only be serialized as lists, as their items
    are serialized to mappings.
    """

    @dataclass
    class WithSet:
        items: set[FrozenConfig] = field(default_factory=set)

    config = WithSet(items={FrozenConfig(value=2)})

    converter = TypeConverter(
        WithSet, ConfigurationProperties(serialize_sets_as_lists=False)
    )
    with raises(ConfigurationError, match="unhashable 'dict'"):
        _ = converter.serialize(config)

    serialized = TypeConverter(WithSet).serialize(config)
    assert serialized == {"items": [{"value": 2, "items": ["a"]}]}
    assert TypeConverter(WithSet).deserialize(serialized) == config


def test_custom_converter_errors():
    """
    Test errors of custom converters are wrapped, naming the converter.
    """

    class FailingConverter(BaseConverter[int, int]):
        def serialize(self, obj: int, /) -> int:
            raise RuntimeError("boom")

        def deserialize(self, node: int, /) -> int:
            return str(node)  # type: ignore

    @dataclass
    class Holder:
        value: Annotated[int, SerializeWith(FailingConverter)] = 0

    converter = TypeConverter(Holder)
    with raises(ConfigurationError, match="FailingConverter.*boom") as exc_info:
        _ = converter.serialize(Holder())
    assert isinstance(exc_info.value.__cause__, RuntimeError)

    with raises(ConfigurationError, match="returned a value of type 'str'"):
        _ = converter.deserialize({"value": 1})


def test_function_converter():
    """
    Test function-based converters registered by type.
    """

    @dataclass
    class Point:
        x: int = 0
        y: int = 0

    @dataclass
    class Shape:
        origin: Point = field(default_factory=Point)

    point_converter = Converter(
        Point,
        serialize=lambda p: [p.x, p.y],
        deserialize=lambda n: Point(*n),
    )
    properties = ConfigurationProperties(converters_by_type={Point: point_converter})
    converter = TypeConverter(Shape, properties)

    assert converter.serialize(Shape(Point(1, 2))) == {"origin": [1, 2]}
    assert converter.deserialize({"origin": [3, 4]}) == Shape(Point(3, 4))


def test_not_configuration_type():
    """
    Test types which aren't dataclasses or aren't default-constructible.
    """
    with raises(ConfigurationError, match="must be a dataclass"):
        _ = TypeConverter(int)

    @dataclass
    class Required:
        value: int

    converter = TypeConverter(Required)
    with raises(ConfigurationError, match="must be default-constructible"):
        _ = converter.deserialize({"value": 1})


def test_post_process_hook():
    """
    Test object-level post-processing methods.
    """

    @dataclass
    class Mutating:
        value: int = 0

        @post_process
        def double(self):
            self.value *= 2

    assert TypeConverter(Mutating).deserialize({"value": 2}) == Mutating(4)

    @dataclass
    class Replacing:
        value: int = 0

        @post_process
        def normalize(self) -> Self:
            return Replacing(abs(self.value))

    assert TypeConverter(Replacing).deserialize({"value": -3}) == Replacing(3)


def test_post_process_hook_errors():
    """
    Test invalid object-level post-processing methods.
    """

    @dataclass
    class Multiple:
        @post_process
        def first(self):
            pass

        @post_process
        def second(self):
            pass

    with raises(ConfigurationError, match="more than one method for post-processing"):
        _ = TypeConverter(Multiple)

    @dataclass
    class Static:
        @post_process
        @staticmethod
        def hook():
            pass

    with raises(ConfigurationError, match="must be neither abstract nor static"):
        _ = TypeConverter(Static)

    @dataclass
    class Abstract:
        @post_process
        @abstractmethod
        def hook(self):
            pass

    with raises(ConfigurationError, match="must be neither abstract nor static"):
        _ = TypeConverter(Abstract)

    @dataclass
    class WithParams:
        @post_process
        def hook(self, value: int):
            pass

    with raises(ConfigurationError, match="must not define any parameters"):
        _ = TypeConverter(WithParams)

    @dataclass
    class WrongReturn:
        @post_process
        def hook(self) -> int:
            return 1

    with raises(ConfigurationError, match="neither 'None' nor '.*WrongReturn'"):
        _ = TypeConverter(WrongReturn)


def test_any_converter():
    """
    Test converter accepting any value skips the value check.
    """

    class PassThrough(BaseConverter[Any, Any]):
        def serialize(self, obj: Any, /) -> Any:
            return obj

        def deserialize(self, node: Any, /) -> Any:
            return node

    properties = ConfigurationProperties(converters_by_type={int: PassThrough()})
    converter = TypeConverter(Flat, properties)
    assert converter.serialize(Flat(a=3)) == {"a": 3, "b": "default"}

    # builtin converters are still used for other types
    assert isinstance(converter.converters["b"], StrConverter)
