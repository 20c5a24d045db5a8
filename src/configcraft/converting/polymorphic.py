"""
Polymorphic configuration types: families of types serialized along with a
discriminator property identifying the concrete type.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from threading import Lock
from typing import Any, overload

from ..exceptions import ConfigurationError
from ..inspecting.annotations import Annotation
from ..markers import SerializeWith, get_polymorphic_types, get_type_markers, mark_type
from ..properties import ConfigurationProperties, ConverterContext
from .converter import BaseConverter
from .type_converter import TypeConverter

__all__ = [
    "Polymorphic",
    "PolymorphicConverter",
    "TypeRegistry",
    "TYPE_REGISTRY",
    "polymorphic",
    "get_qualified_name",
]

_logger = logging.getLogger(__name__)


def get_qualified_name(cls: type, /) -> str:
    """
    Get fully-qualified name of a class, used to identify polymorphic types without
    an alias.
    """
    return f"{cls.__module__}.{cls.__qualname__}"


class TypeRegistry:
    """
    Lookup of types by name, used to resolve discriminator values not declared as
    aliases. Explicitly registered names are checked first, then the fully-qualified
    names of subclasses of the polymorphic base.
    """

    __types: dict[str, type]

    def __init__(self, *types: type):
        self.__types = {}
        for cls in types:
            self.register(cls)

    def __repr__(self) -> str:
        return f"TypeRegistry({list(self.__types)})"

    @overload
    def register[T: type](self, cls: T, /) -> T: ...

    @overload
    def register[T: type](self, cls: T, /, *, name: str) -> T: ...

    def register[T: type](self, cls: T, /, *, name: str | None = None) -> T:
        """
        Register type under the given name or its fully-qualified name. Returns the
        type so it can be used as a decorator.
        """
        self.__types[name or get_qualified_name(cls)] = cls
        return cls

    def resolve(self, name: str, base: type, /) -> type | None:
        """
        Get type by name, or `None` if no such type is known.
        """
        if (cls := self.__types.get(name)) is not None:
            return cls
        return next(
            (cls for cls in _iter_subclasses(base) if get_qualified_name(cls) == name),
            None,
        )


TYPE_REGISTRY = TypeRegistry()
"""
Registry used if none is passed via `ConfigurationProperties.type_registry`.
"""


class PolymorphicConverter(BaseConverter[Any, dict[str, Any]]):
    """
    Converter for a polymorphic family: delegates to the converter of the concrete
    type of each instance, adding the discriminator property when serializing and
    reading it when deserializing. Converters for concrete types are created when
    first needed.
    """

    base: type
    """
    Base type of the family.
    """

    property: str
    """
    Name of the discriminator property.
    """

    __properties: ConfigurationProperties
    __type_by_alias: dict[str, type]
    __alias_by_type: dict[type, str]
    __converters: dict[type, TypeConverter[Any]]
    __lock: Lock

    def __init__(self, context: ConverterContext, /):
        base = context.annotation.concrete_type
        assert base is not None

        marker = next(
            (m for m in get_type_markers(base) if isinstance(m, Polymorphic)), None
        )
        if marker is None:
            raise ConfigurationError(
                f"Type '{get_qualified_name(base)}' is not marked as polymorphic"
            )
        if not marker.property.strip():
            raise ConfigurationError(
                "Polymorphic types must not use a blank property name but type "
                f"'{get_qualified_name(base)}' uses one."
            )

        self.base = base
        self.property = marker.property
        self.__properties = context.properties
        self.__type_by_alias = {}
        self.__alias_by_type = {}
        self.__converters = {}
        self.__lock = Lock()

        for entry in get_polymorphic_types(base):
            alias = entry.alias or get_qualified_name(entry.type)
            if alias in self.__type_by_alias:
                raise ConfigurationError(
                    "Polymorphic types must not use the same alias for multiple "
                    f"types. Alias '{alias}' appears more than once."
                )
            if entry.type in self.__alias_by_type:
                raise ConfigurationError(
                    "Polymorphic types must not contain multiple definitions for the "
                    f"same subtype. Type '{get_qualified_name(entry.type)}' appears "
                    "more than once."
                )
            self.__type_by_alias[alias] = entry.type
            self.__alias_by_type[entry.type] = alias

    def __repr__(self) -> str:
        return f"PolymorphicConverter({self.base.__qualname__})"

    @property
    def value_annotation(self) -> Annotation | None:
        return Annotation(self.base)

    def serialize(self, obj: Any, /) -> dict[str, Any]:
        cls = type(obj)
        serialized = self.__get_converter(cls).serialize(obj)

        if self.property in serialized:
            raise ConfigurationError(
                f"Polymorphic serialization for type '{get_qualified_name(self.base)}' "
                "failed. The type contains a configuration element with name "
                f"'{self.property}' but that name is used as the polymorphic property."
            )

        alias = self.__alias_by_type.get(cls) or get_qualified_name(cls)
        return {self.property: alias, **serialized}

    def deserialize(self, node: dict[str, Any], /) -> Any:
        if not isinstance(node, Mapping):
            raise TypeError(
                f"Expected mapping for polymorphic type '{self.base.__qualname__}', "
                f"got '{node}' of type '{type(node).__qualname__}'"
            )

        identifier = node.get(self.property)
        if identifier is None:
            raise ConfigurationError(
                f"Polymorphic deserialization for type "
                f"'{get_qualified_name(self.base)}' failed.\nThe property "
                f"'{self.property}' which holds the type is missing.\nValue to be "
                f"deserialized:\n{node}"
            )
        if not isinstance(identifier, str):
            raise ConfigurationError(
                f"Polymorphic deserialization for type "
                f"'{get_qualified_name(self.base)}' failed. The type identifier "
                f"'{identifier}' which should hold the type is not a string but of "
                f"type '{type(identifier).__qualname__}'."
            )

        cls = self.__resolve(identifier)
        return self.__get_converter(cls).deserialize(node)

    def __resolve(self, identifier: str) -> type:
        if (cls := self.__type_by_alias.get(identifier)) is not None:
            return cls

        registry = self.__properties.type_registry or TYPE_REGISTRY
        cls = registry.resolve(identifier, self.base)
        if cls is None:
            raise ConfigurationError(
                f"Polymorphic deserialization for type "
                f"'{get_qualified_name(self.base)}' failed. The class '{identifier}' "
                "does not exist."
            )
        if not (isinstance(cls, type) and issubclass(cls, self.base)):
            raise ConfigurationError(
                f"Polymorphic deserialization for type "
                f"'{get_qualified_name(self.base)}' failed. The class '{identifier}' "
                "is not a subtype of it."
            )
        return cls

    def __get_converter(self, cls: type) -> TypeConverter[Any]:
        with self.__lock:
            converter = self.__converters.get(cls)
            if converter is None:
                _logger.debug(
                    "Creating converter for '%s' in polymorphic family '%s'",
                    get_qualified_name(cls),
                    get_qualified_name(self.base),
                )
                converter = TypeConverter(cls, self.__properties)
                self.__converters[cls] = converter
            return converter


@SerializeWith(PolymorphicConverter)
@dataclass(frozen=True)
class Polymorphic:
    """
    Marker of a polymorphic family's base type; attached with `polymorphic()`.
    """

    property: str = "type"
    """
    Name of the discriminator property.
    """


@overload
def polymorphic[T: type](cls: T, /) -> T: ...


@overload
def polymorphic[T: type](*, property: str = "type") -> Callable[[T], T]: ...


def polymorphic[T: type](
    cls: T | None = None, /, *, property: str = "type"
) -> T | Callable[[T], T]:
    """
    Mark a configuration type as the base of a polymorphic family. Elements
    declared with this type are serialized along with a discriminator property
    holding the alias or fully-qualified name of the concrete type:

    ```python
    @polymorphic(property="kind")
    @dataclass
    class Shape: ...
    ```

    Aliases are declared with `polymorphic_types()`.
    """

    def wrap(cls: T) -> T:
        return mark_type(cls, Polymorphic(property))

    return wrap(cls) if cls is not None else wrap


def _iter_subclasses(cls: type) -> Iterator[type]:
    seen: set[type] = set()
    stack = [cls]
    while stack:
        current = stack.pop()
        if current in seen:
            continue
        seen.add(current)
        yield current
        stack += current.__subclasses__()
