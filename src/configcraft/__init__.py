"""
Conversion of dataclass-based configuration objects to/from trees of primitive
values, with comments, polymorphic types and post-processing.
"""

from .comments import CommentNode, CommentNodeExtractor
from .converting.converter import BaseConverter, Converter
from .converting.polymorphic import TYPE_REGISTRY, TypeRegistry, polymorphic
from .converting.type_converter import TypeConverter
from .elements import ConfigurationElement
from .exceptions import ConfigurationError
from .markers import (
    Comment,
    Ignore,
    PolymorphicType,
    SerializeWith,
    polymorphic_types,
    post_process,
)
from .properties import (
    ConfigurationProperties,
    ConverterContext,
    NameFormatter,
    NameFormatters,
)
from .serializing import deserialize, extract_comments, serialize

__all__ = [
    "CommentNode",
    "CommentNodeExtractor",
    "BaseConverter",
    "Converter",
    "TYPE_REGISTRY",
    "TypeRegistry",
    "polymorphic",
    "TypeConverter",
    "ConfigurationElement",
    "ConfigurationError",
    "Comment",
    "Ignore",
    "PolymorphicType",
    "SerializeWith",
    "polymorphic_types",
    "post_process",
    "ConfigurationProperties",
    "ConverterContext",
    "NameFormatter",
    "NameFormatters",
    "deserialize",
    "extract_comments",
    "serialize",
]
