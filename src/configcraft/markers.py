"""
Declarations attached to configuration types and their fields: converter
overrides, comments, ignored fields, polymorphic families and post-processing
hooks.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .converting.converter import BaseConverter

__all__ = [
    "SerializeWith",
    "Comment",
    "Ignore",
    "PolymorphicType",
    "mark_type",
    "get_type_markers",
    "get_declared_serialize_with",
    "polymorphic_types",
    "get_polymorphic_types",
    "post_process",
    "is_post_process",
]

_SERIALIZE_WITH_ATTR = "__configcraft_serialize_with__"
_MARKERS_ATTR = "__configcraft_markers__"
_POLYMORPHIC_TYPES_ATTR = "__configcraft_polymorphic_types__"
_POST_PROCESS_ATTR = "__configcraft_post_process__"


@dataclass(frozen=True)
class SerializeWith:
    """
    Selects a converter class regardless of the type it's applied to.

    As field metadata, e.g. `Annotated[list[set[str]], SerializeWith(C, nesting=1)]`,
    it applies at the given nesting level of the field's type: 0 is the field type
    itself, 1 its type arguments (list items, map values) and so on.

    As a class decorator, it applies whenever that exact class (not a subclass) is
    encountered; `nesting` has no effect. A marker class decorated this way makes
    any class marked with it use the converter (see `mark_type()`).
    """

    converter: type[BaseConverter]
    """
    Converter class, instantiated with a `ConverterContext` if its constructor takes
    a single parameter annotated with it, otherwise without arguments.
    """

    nesting: int = 0
    """
    Nesting level at which to apply the converter, if used as field metadata.
    """

    def __call__[T: type](self, cls: T, /) -> T:
        setattr(cls, _SERIALIZE_WITH_ATTR, self)
        return cls


@dataclass(frozen=True, init=False)
class Comment:
    """
    Documentation attached to a field, written above it in the text format.
    Entries containing line breaks are split into separate lines.
    """

    lines: tuple[str, ...]

    def __init__(self, *lines: str):
        object.__setattr__(self, "lines", lines)


@dataclass(frozen=True)
class Ignore:
    """
    Excludes a field from serialization, deserialization and comment extraction.
    """


@dataclass(frozen=True)
class PolymorphicType:
    """
    Entry in the alias table of a polymorphic family.
    """

    type: type
    """
    Concrete subtype.
    """

    alias: str = ""
    """
    Value of the discriminator property for this type. If blank, the fully-qualified
    type name is used.
    """


def mark_type[T: type](cls: T, marker: Any, /) -> T:
    """
    Attach a marker object to the class itself; not inherited by subclasses.
    """
    markers = cls.__dict__.get(_MARKERS_ATTR)
    if markers is None:
        markers = []
        setattr(cls, _MARKERS_ATTR, markers)
    markers.append(marker)
    return cls


def get_type_markers(cls: type, /) -> tuple[Any, ...]:
    """
    Get markers declared directly on the class.
    """
    return tuple(cls.__dict__.get(_MARKERS_ATTR, ()))


def get_declared_serialize_with(cls: type, /) -> SerializeWith | None:
    """
    Get converter override declared directly on the class, ignoring base classes.
    """
    annotation = cls.__dict__.get(_SERIALIZE_WITH_ATTR)
    assert annotation is None or isinstance(annotation, SerializeWith)
    return annotation


def polymorphic_types(base: type, /, *entries: PolymorphicType | type) -> None:
    """
    Declare subtypes of a polymorphic family, optionally with aliases. Types
    passed directly are registered under their fully-qualified name.

    Subtypes are defined after their base, so this is called once they exist:

    ```python
    polymorphic_types(Shape, PolymorphicType(Circle, "circle"), Square)
    ```
    """
    declared = base.__dict__.get(_POLYMORPHIC_TYPES_ATTR)
    if declared is None:
        declared = []
        setattr(base, _POLYMORPHIC_TYPES_ATTR, declared)
    declared += [
        e if isinstance(e, PolymorphicType) else PolymorphicType(e) for e in entries
    ]


def get_polymorphic_types(base: type, /) -> tuple[PolymorphicType, ...]:
    return tuple(base.__dict__.get(_POLYMORPHIC_TYPES_ATTR, ()))


def post_process[F: Callable[..., Any]](func: F, /) -> F:
    """
    Mark a method of a configuration type to be called once an instance has been
    deserialized. The method must not take parameters besides `self` and must either
    return `None` or an instance of the declaring type, which then replaces the
    deserialized instance.
    """
    target = func.__func__ if isinstance(func, (staticmethod, classmethod)) else func
    setattr(target, _POST_PROCESS_ATTR, True)
    return func


def is_post_process(obj: Any, /) -> bool:
    """
    Check whether a class attribute was marked with `post_process()`.
    """
    target = obj.__func__ if isinstance(obj, (staticmethod, classmethod)) else obj
    return getattr(target, _POST_PROCESS_ATTR, False) is True
