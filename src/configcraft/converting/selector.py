"""
Selection of converters for configuration elements based on their types.
"""

from __future__ import annotations

import logging
from collections.abc import (
    Mapping,
    MutableMapping,
    MutableSequence,
    MutableSet,
    Sequence,
)
from collections.abc import Set as AbstractSet
from enum import Enum
from typing import Any

from ..elements import ConfigurationElement, is_configuration_type
from ..exceptions import ConfigurationError
from ..inspecting.annotations import Annotation
from ..markers import SerializeWith, get_declared_serialize_with, get_type_markers
from ..properties import ConfigurationProperties, ConverterContext
from .builtin_converters import (
    BUILTIN_CONVERTERS,
    PRIMITIVE_ARRAY_ELEMENT_TYPES,
    ArrayConverter,
    BytesConverter,
    EnumConverter,
    ListConverter,
    MapConverter,
    PrimitiveArrayConverter,
    SetAsListConverter,
    SetConverter,
)
from .converter import BaseConverter, instantiate_converter

__all__ = [
    "ConverterSelector",
    "MAX_NESTING",
    "MAX_TYPE_DEPTH",
]

MAX_NESTING = 64
"""
Maximum depth of type arguments within a single element's type.
"""

MAX_TYPE_DEPTH = 64
"""
Maximum depth of configuration types nested within each other.
"""

_LIST_TYPES = (list, Sequence, MutableSequence)
_SET_TYPES = (set, frozenset, AbstractSet, MutableSet)
_MAP_TYPES = (dict, Mapping, MutableMapping)

_logger = logging.getLogger(__name__)


class ConverterSelector:
    """
    Selects converters for elements by walking their types. The nesting level
    starts at 0 for an element's type and is incremented for each descent into a
    type argument, e.g. for `list[set[str]]` the nesting of `list` is 0, of `set` 1
    and of `str` 2.

    At each nesting level the first match wins:

    1. `SerializeWith` in the element's metadata, if its nesting equals the current
       one
    1. Converter factory registered for the class
    1. Converter registered for the class
    1. `SerializeWith` applied to the class itself
    1. Marker on the class whose own class has `SerializeWith` applied
    1. Converter registered for a condition the annotation satisfies
    1. Builtin converter by annotation shape: scalars, enums, arrays, configuration
       types, lists, sets and maps
    """

    __properties: ConfigurationProperties
    __type_chain: tuple[type, ...]

    def __init__(
        self,
        properties: ConfigurationProperties,
        /,
        *,
        type_chain: tuple[type, ...] = (),
    ):
        """
        :param properties: Properties in effect
        :param type_chain: Configuration types currently being built, outermost
        first; selecting a converter for any of these is a recursive definition
        """
        self.__properties = properties
        self.__type_chain = type_chain

    def select(self, element: ConfigurationElement, /) -> BaseConverter[Any, Any]:
        """
        Select converter for element.

        :raises ConfigurationError: If no converter can be selected
        """
        return self.__select(element.value_annotation, element, 0)

    def __select(
        self, annotation: Annotation, element: ConfigurationElement, nesting: int
    ) -> BaseConverter[Any, Any]:
        if nesting > MAX_NESTING:
            raise ConfigurationError(
                f"Recursive type definitions are not supported: type of element "
                f"'{element}' exceeds a nesting of {MAX_NESTING}"
            )

        # optional types are selected like their non-optional counterparts
        annotation = annotation.strip_optional()

        if (custom := self.__select_custom(annotation, element, nesting)) is not None:
            return custom

        if annotation.is_class:
            return self.__select_for_class(annotation, element, nesting)
        if annotation.is_parameterized:
            return self.__select_for_parameterized(annotation, element, nesting)

        if annotation.is_wildcard:
            reason = "Wildcard types cannot be serialized."
        elif annotation.is_type_var:
            reason = "Type variables cannot be serialized."
        elif annotation.is_union:
            reason = "Union types other than optional types cannot be serialized."
        elif annotation.is_literal:
            reason = "Literal types cannot be serialized."
        else:
            reason = "Unsupported kind of type."
        raise ConfigurationError(_base_message(annotation, element) + reason)

    def __select_custom(
        self, annotation: Annotation, element: ConfigurationElement, nesting: int
    ) -> BaseConverter[Any, Any] | None:
        properties = self.__properties

        serialize_with = element.get_metadata(SerializeWith)
        if serialize_with is not None and serialize_with.nesting == nesting:
            return self.__instantiate(serialize_with, annotation, element)

        if annotation.is_class:
            cls = annotation.raw

            if (factory := properties.converter_factories_by_type.get(cls)) is not None:
                converter = factory(ConverterContext(properties, element, annotation))
                if converter is None:
                    raise ConfigurationError(
                        f"Converter factories must not return None, but the factory "
                        f"for type '{annotation.name}' did for element '{element}'"
                    )
                return converter

            if (converter := properties.converters_by_type.get(cls)) is not None:
                return converter

            if (serialize_with := get_declared_serialize_with(cls)) is not None:
                return self.__instantiate(serialize_with, annotation, element)

            for marker in get_type_markers(cls):
                serialize_with = get_declared_serialize_with(type(marker))
                if serialize_with is not None:
                    return self.__instantiate(serialize_with, annotation, element)

        for predicate, converter in properties.converters_by_condition:
            if predicate(annotation.raw):
                return converter

        return None

    def __select_for_class(
        self, annotation: Annotation, element: ConfigurationElement, nesting: int
    ) -> BaseConverter[Any, Any]:
        cls = annotation.raw

        if (converter := BUILTIN_CONVERTERS.get(cls)) is not None:
            return converter
        if issubclass(cls, Enum):
            return EnumConverter(cls)
        if cls in (bytes, bytearray):
            return BytesConverter(cls)
        if is_configuration_type(cls):
            return self.__new_type_converter(cls, element)

        raise ConfigurationError(
            f"Missing converter for type '{annotation.name}' of element '{element}'. "
            "Either make it a dataclass or provide a custom converter for it."
        )

    def __select_for_parameterized(
        self, annotation: Annotation, element: ConfigurationElement, nesting: int
    ) -> BaseConverter[Any, Any]:
        origin = annotation.origin
        args = annotation.arg_annotations
        properties = self.__properties
        null_policy = {
            "output_nulls": properties.output_nulls,
            "input_nulls": properties.input_nulls,
        }

        if origin is tuple:
            if not annotation.is_variadic_tuple:
                raise ConfigurationError(
                    _base_message(annotation, element)
                    + "Tuples of fixed length cannot be serialized, use "
                    "variadic tuples like 'tuple[int, ...]' instead."
                )
            item_annotation = args[0]
            if item_annotation.is_type_var:
                raise ConfigurationError(
                    _base_message(annotation, element)
                    + "Generic array types cannot be serialized."
                )
            if item_annotation.raw in PRIMITIVE_ARRAY_ELEMENT_TYPES:
                return PrimitiveArrayConverter(item_annotation.raw)
            item_converter = self.__select(item_annotation, element, nesting + 1)
            return ArrayConverter(item_converter, **null_policy)

        if origin in _LIST_TYPES:
            item_converter = self.__select(args[0], element, nesting + 1)
            return ListConverter(item_converter, **null_policy)

        if origin in _SET_TYPES:
            item_converter = self.__select(args[0], element, nesting + 1)
            set_cls = frozenset if origin is frozenset else set
            if properties.serialize_sets_as_lists:
                return SetAsListConverter(
                    item_converter, set_cls=set_cls, **null_policy
                )
            return SetConverter(item_converter, set_cls=set_cls, **null_policy)

        if origin in _MAP_TYPES:
            key_annotation = args[0]
            if key_annotation.is_class and (
                key_annotation.raw in BUILTIN_CONVERTERS
                or issubclass(key_annotation.raw, Enum)
            ):
                key_converter = self.__select_for_class(
                    key_annotation, element, nesting + 1
                )
                value_converter = self.__select(args[1], element, nesting + 1)
                return MapConverter(key_converter, value_converter, **null_policy)
            raise ConfigurationError(
                _base_message(annotation, element)
                + "Map keys can only be of simple or enum type."
            )

        raise ConfigurationError(
            _base_message(annotation, element)
            + "Parameterized types other than lists, sets, maps and variadic tuples "
            "cannot be serialized."
        )

    def __new_type_converter(
        self, cls: type, element: ConfigurationElement
    ) -> BaseConverter[Any, Any]:
        from .type_converter import TypeConverter

        if cls in self.__type_chain or len(self.__type_chain) >= MAX_TYPE_DEPTH:
            chain = " -> ".join(t.__qualname__ for t in (*self.__type_chain, cls))
            raise ConfigurationError(
                f"Recursive type definitions are not supported: element '{element}' "
                f"leads to {chain}"
            )
        return TypeConverter(cls, self.__properties, type_chain=self.__type_chain)

    def __instantiate(
        self,
        serialize_with: SerializeWith,
        annotation: Annotation,
        element: ConfigurationElement,
    ) -> BaseConverter[Any, Any]:
        _logger.debug(
            "Using converter class %s for type '%s' of element '%s'",
            serialize_with.converter,
            annotation.name,
            element,
        )
        context = ConverterContext(self.__properties, element, annotation)
        return instantiate_converter(serialize_with.converter, context)


def _base_message(annotation: Annotation, element: ConfigurationElement) -> str:
    return (
        f"Cannot select converter for type '{annotation.name}' of element "
        f"'{element}'.\n"
    )
