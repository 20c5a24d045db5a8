"""
Options which control how configuration types are serialized.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import Field, dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from .converting.converter import BaseConverter
    from .converting.polymorphic import TypeRegistry
    from .elements import ConfigurationElement
    from .inspecting.annotations import Annotation

__all__ = [
    "NameFormatter",
    "NameFormatters",
    "ConverterContext",
    "ConfigurationProperties",
    "default_field_filter",
]

type ConverterFactory = Callable[[ConverterContext], BaseConverter[Any, Any] | None]
type ElementPredicate = Callable[[ConfigurationElement], bool]
type TypePredicate = Callable[[Any], bool]


class NameFormatter(Protocol):
    """
    Maps a field name to the key used in serialized form.
    """

    def format(self, name: str, /) -> str: ...


class _FuncNameFormatter:
    def __init__(self, name: str, func: Callable[[str], str]):
        self.__name = name
        self.__func = func

    def __repr__(self) -> str:
        return f"NameFormatters.{self.__name}"

    def format(self, name: str, /) -> str:
        return self.__func(name)


def _split_words(name: str) -> list[str]:
    # leading/trailing underscores are not word separators
    return [w for w in re.split(r"_+", name) if w]


def _lower_camel(name: str) -> str:
    words = _split_words(name)
    if not words:
        return name
    return words[0].lower() + "".join(w.capitalize() for w in words[1:])


def _upper_camel(name: str) -> str:
    words = _split_words(name)
    if not words:
        return name
    return "".join(w.capitalize() for w in words)


class NameFormatters:
    """
    Builtin name formatters for `snake_case` field names.
    """

    IDENTITY: NameFormatter = _FuncNameFormatter("IDENTITY", lambda name: name)
    """
    Use field names as-is.
    """

    LOWER_KEBAB: NameFormatter = _FuncNameFormatter(
        "LOWER_KEBAB", lambda name: "-".join(w.lower() for w in _split_words(name))
    )
    """
    `max_connections` -> `max-connections`
    """

    LOWER_CAMEL: NameFormatter = _FuncNameFormatter("LOWER_CAMEL", _lower_camel)
    """
    `max_connections` -> `maxConnections`
    """

    UPPER_CAMEL: NameFormatter = _FuncNameFormatter("UPPER_CAMEL", _upper_camel)
    """
    `max_connections` -> `MaxConnections`
    """

    UPPER_UNDERSCORE: NameFormatter = _FuncNameFormatter(
        "UPPER_UNDERSCORE", lambda name: "_".join(w.upper() for w in _split_words(name))
    )
    """
    `max_connections` -> `MAX_CONNECTIONS`
    """


def default_field_filter(f: Field[Any], /) -> bool:
    """
    Accept fields which aren't private by naming convention.
    """
    return not f.name.startswith("_")


@dataclass(frozen=True)
class ConverterContext:
    """
    Information passed to converter factories and to custom converter classes
    whose constructor takes a single parameter annotated with this class.
    """

    properties: ConfigurationProperties
    """
    Properties in effect for the configuration type being processed.
    """

    element: ConfigurationElement
    """
    Element whose converter is being selected.
    """

    annotation: Annotation
    """
    Annotation at the current nesting level of the element's type.
    """


@dataclass(frozen=True, kw_only=True)
class ConfigurationProperties:
    """
    Options passed by user to control conversion of configuration types. Immutable once
    created.
    """

    converter_factories_by_type: Mapping[type, ConverterFactory] = field(
        default_factory=dict
    )
    """
    Factories creating converters for exact types, given the context of the element
    being processed. A factory must return a converter.
    """

    converters_by_type: Mapping[type, BaseConverter[Any, Any]] = field(
        default_factory=dict
    )
    """
    Converters for exact types.
    """

    converters_by_condition: Sequence[
        tuple[TypePredicate, BaseConverter[Any, Any]]
    ] = ()
    """
    Converters for annotations matching a predicate, checked in order. Predicates
    receive the concrete class if the annotation denotes one, the raw annotation
    otherwise.
    """

    post_processors_by_condition: Sequence[
        tuple[ElementPredicate, Callable[[Any], Any]]
    ] = ()
    """
    Functions applied to deserialized values of elements matching a predicate, in
    order.
    """

    output_nulls: bool = False
    """
    Whether to write `None` values when serializing; if `False`, they're omitted.
    """

    input_nulls: bool = False
    """
    Whether to assign `None` values read when deserializing; if `False`, the
    element keeps its default value.
    """

    serialize_sets_as_lists: bool = True
    """
    Whether to serialize sets as lists, for formats which can't represent sets.
    """

    name_formatter: NameFormatter = NameFormatters.IDENTITY
    """
    Formatter for keys in serialized form and for comment paths.
    """

    field_filter: Callable[[Field[Any]], bool] = default_field_filter
    """
    Predicate selecting which dataclass fields are configuration elements.
    """

    type_registry: TypeRegistry | None = None
    """
    Registry to look up polymorphic types by name if not found among the declared
    aliases; defaults to the global registry.
    """

    def __post_init__(self):
        # freeze mutable containers passed in
        object.__setattr__(
            self,
            "converter_factories_by_type",
            MappingProxyType(dict(self.converter_factories_by_type)),
        )
        object.__setattr__(
            self, "converters_by_type", MappingProxyType(dict(self.converters_by_type))
        )
        object.__setattr__(
            self, "converters_by_condition", tuple(self.converters_by_condition)
        )
        object.__setattr__(
            self,
            "post_processors_by_condition",
            tuple(self.post_processors_by_condition),
        )
