"""
Converter for configuration types to/from mappings, element by element.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from types import MappingProxyType, NoneType
from typing import Any, Self

from ..elements import (
    ConfigurationElement,
    get_elements,
    is_configuration_type,
    new_default_instance,
)
from ..exceptions import ConfigurationError
from ..inspecting.annotations import Annotation
from ..inspecting.functions import SignatureInfo
from ..markers import is_post_process
from ..properties import ConfigurationProperties
from .converter import BaseConverter
from .selector import ConverterSelector

__all__ = [
    "TypeConverter",
]

_logger = logging.getLogger(__name__)


class TypeConverter[T](BaseConverter[T, dict[str, Any]]):
    """
    Converts instances of a configuration type to/from mappings of formatted element
    names to nodes. Converters for all elements are selected upon construction.
    """

    cls: type[T]
    """
    Configuration type.
    """

    properties: ConfigurationProperties
    """
    Properties in effect.
    """

    elements: tuple[ConfigurationElement, ...]
    """
    Elements in field order.
    """

    converters: Mapping[str, BaseConverter[Any, Any]]
    """
    Mapping of element name to converter.
    """

    __post_processor: Callable[[T], T] | None

    def __init__(
        self,
        cls: type[T],
        properties: ConfigurationProperties | None = None,
        /,
        *,
        type_chain: tuple[type, ...] = (),
    ):
        if not is_configuration_type(cls):
            raise ConfigurationError(
                f"Type '{getattr(cls, '__qualname__', cls)}' is not a configuration "
                "type, must be a dataclass"
            )

        self.cls = cls
        self.properties = properties = properties or ConfigurationProperties()
        self.elements = get_elements(cls, properties)

        selector = ConverterSelector(properties, type_chain=(*type_chain, cls))
        try:
            self.converters = MappingProxyType(
                {e.name: selector.select(e) for e in self.elements}
            )
        except RecursionError as e:
            raise ConfigurationError(
                f"Recursive type definitions are not supported: '{cls.__qualname__}'"
            ) from e

        self.__post_processor = _get_post_processor(cls)

        _logger.debug(
            "Built converter for '%s': %s",
            cls.__qualname__,
            {e.name: c for e, c in zip(self.elements, self.converters.values())},
        )

    def __repr__(self) -> str:
        return f"TypeConverter({self.cls.__qualname__})"

    @property
    def value_annotation(self) -> Annotation | None:
        return Annotation(self.cls)

    def serialize(self, obj: T, /) -> dict[str, Any]:
        formatter = self.properties.name_formatter
        result: dict[str, Any] = {}

        for element in self.elements:
            value = element.get_value(obj)
            if value is None and not self.properties.output_nulls:
                continue
            result[formatter.format(element.name)] = self.__serialize_element(
                element, value
            )

        return result

    def deserialize(self, node: dict[str, Any], /) -> T:
        if not isinstance(node, Mapping):
            raise TypeError(
                f"Expected mapping for '{self.cls.__qualname__}', got '{node}' of "
                f"type '{type(node).__qualname__}'"
            )

        formatter = self.properties.name_formatter
        instance = new_default_instance(self.cls)
        defaults: T | None = None

        def get_default(element: ConfigurationElement) -> Any:
            nonlocal defaults
            if defaults is None:
                defaults = new_default_instance(self.cls)
            return element.get_value(defaults)

        for element in self.elements:
            key = formatter.format(element.name)

            if key not in node:
                value = get_default(element)
            elif node[key] is None and self.properties.input_nulls:
                value = None
            elif node[key] is None:
                value = get_default(element)
            else:
                value = self.__deserialize_element(element, node[key])

            value = self.__post_process_element(element, value)
            element.set_value(instance, value)

        if self.__post_processor is not None:
            instance = self.__post_processor(instance)

        return instance

    def __serialize_element(self, element: ConfigurationElement, value: Any) -> Any:
        if value is None:
            return None

        converter = self.converters[element.name]
        value_annotation = converter.value_annotation

        try:
            if value_annotation is not None and not value_annotation.check_instance(
                value
            ):
                raise TypeError(
                    f"Expected '{value_annotation.name}', got "
                    f"'{type(value).__qualname__}'"
                )
            return converter.serialize(value)
        except ConfigurationError:
            raise
        except TypeError as e:
            raise ConfigurationError(
                f"Serialization of value '{value}' for element '{element}' of type "
                f"'{element.declaring_type.__qualname__}' failed.\n"
                "The type of the object to be serialized does not match the type "
                f"the converter '{converter}' expects: {e}"
            ) from e
        except Exception as e:
            raise ConfigurationError(
                f"Serialization of value '{value}' for element '{element}' of type "
                f"'{element.declaring_type.__qualname__}' failed with converter "
                f"'{converter}': {e}"
            ) from e

    def __deserialize_element(self, element: ConfigurationElement, node: Any) -> Any:
        converter = self.converters[element.name]
        base_message = (
            f"Deserialization of value '{node}' for element '{element}' of type "
            f"'{element.declaring_type.__qualname__}' failed."
        )

        try:
            value = converter.deserialize(node)
        except ConfigurationError:
            raise
        except TypeError as e:
            raise ConfigurationError(
                f"{base_message}\nThe type of the object to be deserialized does not "
                f"match the type the converter '{converter}' expects: {e}"
            ) from e
        except Exception as e:
            raise ConfigurationError(f"{base_message}\n{e}") from e

        if value is not None and not element.value_annotation.check_instance(value):
            raise ConfigurationError(
                f"{base_message}\nConverter '{converter}' returned a value of type "
                f"'{type(value).__qualname__}', but the element is of type "
                f"'{element.value_annotation.name}'."
            )

        return value

    def __post_process_element(self, element: ConfigurationElement, value: Any) -> Any:
        post_processed = False

        for predicate, post_processor in self.properties.post_processors_by_condition:
            if not predicate(element):
                continue
            try:
                value = post_processor(value)
            except TypeError as e:
                raise ConfigurationError(
                    f"Deserialization of value '{value}' for element '{element}' of "
                    f"type '{element.declaring_type.__qualname__}' failed.\n"
                    "The type of the object to be deserialized does not match the "
                    f"type post-processor '{post_processor}' expects: {e}"
                ) from e
            post_processed = True

        if value is None:
            if element.is_primitive and post_processed:
                raise ConfigurationError(
                    "Post-processors must not return None for primitive elements "
                    f"but some post-processor of element '{element}' does."
                )
            if element.is_primitive:
                raise ConfigurationError(
                    f"Cannot set element '{element}' to None. Elements of type "
                    f"'{element.value_annotation.name}' cannot be assigned None."
                )
        elif post_processed and not element.value_annotation.check_instance(value):
            raise ConfigurationError(
                f"Post-processing of element '{element}' produced a value of type "
                f"'{type(value).__qualname__}', but the element is of type "
                f"'{element.value_annotation.name}'."
            )

        return value


def _get_post_processor[T](cls: type[T]) -> Callable[[T], T] | None:
    """
    Get object-level post-processor from the method marked with `@post_process`,
    declared directly on the class.
    """
    hooks = [
        (name, attr) for name, attr in cls.__dict__.items() if is_post_process(attr)
    ]

    if not hooks:
        return None
    if len(hooks) > 1:
        names = ", ".join(name for name, _ in hooks)
        raise ConfigurationError(
            "Configuration types must not define more than one method for "
            f"post-processing but type '{cls.__qualname__}' defines {len(hooks)}: "
            f"{names}"
        )

    name, method = hooks[0]
    if isinstance(method, (staticmethod, classmethod)) or getattr(
        method, "__isabstractmethod__", False
    ):
        raise ConfigurationError(
            "Post-processing methods must be neither abstract nor static, but "
            f"post-processing method '{name}' of type '{cls.__qualname__}' is."
        )

    sig_info = SignatureInfo(method)
    params = sig_info.get_params()
    if len(params) != 1:
        raise ConfigurationError(
            "Post-processing methods must not define any parameters besides 'self' "
            f"but post-processing method '{name}' of type '{cls.__qualname__}' "
            f"defines {max(len(params) - 1, 0)}."
        )

    try:
        return_annotation = sig_info.get_return_annotation(
            localns={cls.__name__: cls, "Self": Self}
        )
    except NameError as e:
        raise ConfigurationError(
            f"Failed to resolve return type of post-processing method '{name}' of "
            f"type '{cls.__qualname__}': {e}"
        ) from e

    if return_annotation is NoneType:
        returns_instance = False
    elif return_annotation is cls or return_annotation is Self:
        returns_instance = True
    else:
        raise ConfigurationError(
            "The return type of post-processing methods must either be 'None' or "
            "the same type as the configuration type in which the post-processing "
            f"method is defined. The return type of the post-processing method of "
            f"type '{cls.__qualname__}' is neither 'None' nor '{cls.__qualname__}'."
        )

    def post_process(instance: T) -> T:
        result = method(instance)
        if not returns_instance:
            return instance
        if not isinstance(result, cls):
            raise ConfigurationError(
                f"Post-processing method '{name}' of type '{cls.__qualname__}' "
                f"returned '{result}' instead of an instance of the type."
            )
        return result

    return post_process
