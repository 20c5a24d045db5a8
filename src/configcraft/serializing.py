"""
Entry points to convert configuration objects to/from nodes.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Mapping
from typing import Any

from .comments import CommentNode, CommentNodeExtractor
from .converting.type_converter import TypeConverter
from .exceptions import ConfigurationError
from .properties import ConfigurationProperties
from .typedefs import NodeType

__all__ = [
    "serialize",
    "deserialize",
    "extract_comments",
]


def serialize(
    obj: Any, /, properties: ConfigurationProperties | None = None
) -> dict[str, NodeType]:
    """
    Serialize configuration object to a mapping of formatted element names to nodes.

    :raises ConfigurationError: If the object's type is not supported or conversion
    fails
    """
    return TypeConverter(type(obj), properties).serialize(obj)


def deserialize[T](
    node: Mapping[str, NodeType],
    cls: type[T],
    /,
    properties: ConfigurationProperties | None = None,
) -> T:
    """
    Deserialize mapping to an instance of the configuration type. Elements missing
    from the mapping keep their default values.

    :raises ConfigurationError: If the type is not supported or conversion fails
    """
    if not isinstance(node, Mapping):
        raise ConfigurationError(
            f"Cannot deserialize '{cls.__qualname__}' from '{node}' of type "
            f"'{type(node).__qualname__}', expected a mapping"
        )
    return TypeConverter(cls, properties).deserialize(dict(node))


def extract_comments(
    obj: Any, /, properties: ConfigurationProperties | None = None
) -> deque[CommentNode]:
    """
    Get comments of configuration object's elements, depth-first in field order.
    """
    return CommentNodeExtractor(properties).extract(obj)
