"""
Converter abstraction: conversion of values to/from nodes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from functools import cache
from typing import Any

from ..exceptions import ConfigurationError
from ..inspecting.annotations import Annotation
from ..inspecting.functions import SignatureInfo
from ..inspecting.generics import extract_arg
from ..properties import ConverterContext

__all__ = [
    "BaseConverter",
    "Converter",
    "instantiate_converter",
]


class BaseConverter[ValueT, NodeT](ABC):
    """
    Converts values of a type to nodes (`serialize()`) and back (`deserialize()`).

    Subclasses should pass concrete type parameters, e.g.
    `BaseConverter[Point, list[int]]`; the value type is used to detect values
    of a type the converter can't handle before passing them to `serialize()`.
    """

    def __repr__(self) -> str:
        return f"{type(self).__qualname__}()"

    @property
    def value_annotation(self) -> Annotation | None:
        """
        Annotation of values this converter accepts, if known.
        """
        return _get_value_annotation(type(self))

    @abstractmethod
    def serialize(self, obj: ValueT, /) -> NodeT:
        """
        Convert value to node.
        """

    @abstractmethod
    def deserialize(self, node: NodeT, /) -> ValueT:
        """
        Convert node to value.
        """


class Converter[ValueT, NodeT](BaseConverter[ValueT, NodeT]):
    """
    Converter backed by functions:

    ```python
    Converter(Point, serialize=lambda p: [p.x, p.y], deserialize=lambda n: Point(*n))
    ```
    """

    __value_type: type[ValueT]
    __serialize: Callable[[ValueT], NodeT]
    __deserialize: Callable[[NodeT], ValueT]

    def __init__(
        self,
        value_type: type[ValueT],
        /,
        *,
        serialize: Callable[[ValueT], NodeT],
        deserialize: Callable[[NodeT], ValueT],
    ):
        self.__value_type = value_type
        self.__serialize = serialize
        self.__deserialize = deserialize

    def __repr__(self) -> str:
        return f"Converter({self.__value_type.__qualname__})"

    @property
    def value_annotation(self) -> Annotation | None:
        return Annotation(self.__value_type)

    def serialize(self, obj: ValueT, /) -> NodeT:
        return self.__serialize(obj)

    def deserialize(self, node: NodeT, /) -> ValueT:
        return self.__deserialize(node)


def instantiate_converter(
    converter_cls: type[BaseConverter[Any, Any]], context: ConverterContext, /
) -> BaseConverter[Any, Any]:
    """
    Create an instance of a converter class: passes the context if the constructor
    takes a single parameter annotated with `ConverterContext`, otherwise no
    arguments.

    :raises ConfigurationError: If the class is not a converter or can't be
    instantiated
    """
    if not (
        isinstance(converter_cls, type) and issubclass(converter_cls, BaseConverter)
    ):
        raise ConfigurationError(
            f"Class '{converter_cls}' used with SerializeWith is not a converter class"
        )

    try:
        if _takes_context(converter_cls):
            return converter_cls(context)  # type: ignore
        return converter_cls()
    except ConfigurationError:
        raise
    except Exception as e:
        raise ConfigurationError(
            f"Failed to instantiate converter class '{converter_cls.__qualname__}': {e}"
        ) from e


def _takes_context(converter_cls: type) -> bool:
    try:
        sig_info = SignatureInfo(converter_cls.__init__)
    except ValueError:
        # no introspectable signature, e.g. builtin base
        return False

    # self and context
    params = sig_info.get_params(positional=True)
    if len(params) != 2:
        return False

    try:
        annotation = sig_info.get_param_annotation(params[1].name)
    except NameError as e:
        raise ConfigurationError(
            "Failed to resolve constructor parameters of converter class "
            f"'{converter_cls.__qualname__}': {e}"
        ) from e
    return annotation is ConverterContext


@cache
def _get_value_annotation(converter_cls: type) -> Annotation | None:
    try:
        arg = extract_arg(converter_cls, BaseConverter, "ValueT")
    except TypeError:
        return None
    if arg is None:
        return None
    return Annotation(arg)
