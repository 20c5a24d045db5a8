"""
Discovery of configuration elements, i.e. the fields of configuration types.
"""

from __future__ import annotations

import dataclasses
import inspect
from collections.abc import Iterable
from dataclasses import MISSING, dataclass
from functools import cached_property
from typing import Any, get_type_hints

from .exceptions import ConfigurationError
from .inspecting.annotations import Annotation
from .markers import Ignore
from .properties import ConfigurationProperties
from .typedefs import METADATA_KEY, PRIMITIVE_TYPES

__all__ = [
    "ConfigurationElement",
    "is_configuration_type",
    "get_elements",
    "new_default_instance",
]


@dataclass(frozen=True)
class ConfigurationElement:
    """
    A field of a configuration type along with its type and metadata.
    """

    name: str
    """
    Field name, before formatting.
    """

    annotation: Annotation
    """
    Declared type of the field, possibly optional.
    """

    metadata: tuple[Any, ...]
    """
    Metadata objects from `Annotated[]` extras and `dataclasses.field()` metadata.
    """

    declaring_type: type
    """
    Configuration type declaring this field.
    """

    def __repr__(self) -> str:
        return f"{self.declaring_type.__qualname__}.{self.name}"

    @cached_property
    def value_annotation(self) -> Annotation:
        """
        Declared type with `None` stripped if optional; used for converter selection.
        """
        return self.annotation.strip_optional()

    @property
    def is_nullable(self) -> bool:
        return self.annotation.is_optional

    @property
    def is_primitive(self) -> bool:
        """
        Whether this element can never be `None`.
        """
        return (
            not self.is_nullable
            and self.value_annotation.concrete_type in PRIMITIVE_TYPES
        )

    def get_metadata[T](self, metadata_cls: type[T], /) -> T | None:
        """
        Get the first metadata object of the given type, if any.
        """
        return next((m for m in self.metadata if isinstance(m, metadata_cls)), None)

    def get_value(self, holder: Any, /) -> Any:
        return getattr(holder, self.name)

    def set_value(self, holder: Any, value: Any, /):
        # works for frozen dataclasses as well
        object.__setattr__(holder, self.name, value)


def is_configuration_type(obj: Any, /) -> bool:
    """
    Check whether object is a configuration type, i.e. a dataclass type.
    """
    return isinstance(obj, type) and dataclasses.is_dataclass(obj)


def get_elements(
    cls: type, properties: ConfigurationProperties, /
) -> tuple[ConfigurationElement, ...]:
    """
    Get elements of configuration type in field order, excluding fields rejected by
    the field filter and fields marked with `Ignore()`.

    :raises ConfigurationError: If type is not a configuration type or its type hints
    can't be resolved
    """
    if not is_configuration_type(cls):
        raise ConfigurationError(f"Type '{cls.__qualname__}' is not a dataclass")

    try:
        type_hints = get_type_hints(cls, include_extras=True)
    except NameError as e:
        raise ConfigurationError(
            f"Failed to resolve type hints of '{cls.__qualname__}': {e}"
        ) from e

    elements: list[ConfigurationElement] = []
    for f in dataclasses.fields(cls):
        if not properties.field_filter(f):
            continue

        annotation = Annotation(type_hints[f.name])
        metadata = _collect_metadata(annotation, f.metadata.get(METADATA_KEY, ()))
        if any(isinstance(m, Ignore) for m in metadata):
            continue

        elements.append(
            ConfigurationElement(
                name=f.name,
                annotation=annotation,
                metadata=metadata,
                declaring_type=_get_declaring_type(cls, f.name),
            )
        )

    return tuple(elements)


def new_default_instance[T](cls: type[T], /) -> T:
    """
    Create an instance of configuration type with all fields set to their defaults.

    :raises ConfigurationError: If not all fields have defaults or construction fails
    """
    missing = [
        f.name
        for f in dataclasses.fields(cls)  # type: ignore
        if f.init and f.default is MISSING and f.default_factory is MISSING
    ]
    if missing:
        raise ConfigurationError(
            f"Configuration type '{cls.__qualname__}' must be default-constructible, "
            f"but fields {missing} have no default value"
        )
    try:
        return cls()
    except Exception as e:
        raise ConfigurationError(
            f"Failed to create default instance of configuration type "
            f"'{cls.__qualname__}': {e}"
        ) from e


def _collect_metadata(annotation: Annotation, field_metadata: Any) -> tuple[Any, ...]:
    metadata = list(annotation.extras)

    # extras of optional member, e.g. Annotated[int, ...] | None
    if annotation.is_optional:
        metadata += annotation.strip_optional().extras

    if isinstance(field_metadata, Iterable) and not isinstance(field_metadata, str):
        metadata += field_metadata
    else:
        metadata.append(field_metadata)

    return tuple(metadata)


def _get_declaring_type(cls: type, name: str) -> type:
    """
    Get the most derived class in the MRO which annotates the field.
    """
    for base in cls.__mro__:
        if name in inspect.get_annotations(base):
            return base
    return cls
