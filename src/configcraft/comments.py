"""
Extraction of comments attached to configuration elements.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from .elements import ConfigurationElement, get_elements, is_configuration_type
from .exceptions import ConfigurationError
from .markers import Comment
from .properties import ConfigurationProperties

__all__ = [
    "CommentNode",
    "CommentNodeExtractor",
]


@dataclass(frozen=True)
class CommentNode:
    """
    Comment lines of an element along with the path of formatted element names
    leading to it from the root object.
    """

    comments: tuple[str, ...]
    path: tuple[str, ...]


class CommentNodeExtractor:
    """
    Walks an object graph depth-first, in field order, collecting comments of
    elements. Descends into elements whose declared type is a configuration type,
    using the fields of the value's actual type.
    """

    properties: ConfigurationProperties

    def __init__(self, properties: ConfigurationProperties | None = None, /):
        self.properties = properties or ConfigurationProperties()

    def extract(self, obj: Any, /) -> deque[CommentNode]:
        """
        Extract comment nodes in the order they're encountered: parents before their
        children, siblings in field order.

        :raises ConfigurationError: If object is not an instance of a configuration
        type
        """
        if not is_configuration_type(type(obj)):
            raise ConfigurationError(
                f"Cannot extract comments from '{type(obj).__qualname__}', "
                "not a configuration type"
            )

        formatter = self.properties.name_formatter
        result: deque[CommentNode] = deque()

        # explicit stacks so deeply nested objects don't hit the recursion limit
        frames: list[tuple[Iterator[ConfigurationElement], Any]] = [self.__frame(obj)]
        names: list[str] = []

        while frames:
            elements, holder = frames.pop()

            for element in elements:
                value = element.get_value(holder)
                if value is None and not self.properties.output_nulls:
                    continue

                name = formatter.format(element.name)
                if (comment := element.get_metadata(Comment)) is not None:
                    result.append(CommentNode(_split_lines(comment), (*names, name)))

                if value is not None and is_configuration_type(
                    element.value_annotation.concrete_type
                ):
                    # resume remaining siblings once the child is done
                    frames += [(elements, holder), self.__frame(value)]
                    names.append(name)
                    break
            else:
                if names:
                    names.pop()

        return result

    def __frame(self, obj: Any) -> tuple[Iterator[ConfigurationElement], Any]:
        return iter(get_elements(type(obj), self.properties)), obj


def _split_lines(comment: Comment) -> tuple[str, ...]:
    return tuple(line for entry in comment.lines for line in entry.split("\n"))
