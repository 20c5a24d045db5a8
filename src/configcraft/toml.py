"""
Layer to map configuration objects to/from TOML text via `tomlkit`, writing element
comments above the corresponding keys and tables.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import tomlkit
from tomlkit.container import Container
from tomlkit.exceptions import ParseError
from tomlkit.items import Table

from .exceptions import ConfigurationError
from .properties import ConfigurationProperties
from .serializing import deserialize, extract_comments, serialize

__all__ = [
    "dumps",
    "loads",
]

type _CommentMap = Mapping[tuple[str, ...], tuple[str, ...]]

_logger = logging.getLogger(__name__)


def dumps(obj: Any, /, properties: ConfigurationProperties | None = None) -> str:
    """
    Serialize configuration object to TOML text.

    :raises ConfigurationError: If conversion fails or the serialized form can't be
    represented in TOML, e.g. it contains `None`
    """
    properties = properties or ConfigurationProperties()
    node = serialize(obj, properties)
    comments = {c.path: c.comments for c in extract_comments(obj, properties)}

    document = tomlkit.document()
    _fill(document, node, (), comments)
    text = tomlkit.dumps(document)

    _logger.debug(
        "Rendered TOML for '%s' with %d comments",
        type(obj).__qualname__,
        len(comments),
    )
    return text


def loads[T](
    text: str, cls: type[T], /, properties: ConfigurationProperties | None = None
) -> T:
    """
    Parse TOML text and deserialize it to an instance of the configuration type.

    :raises ConfigurationError: If the text is not valid TOML or conversion fails
    """
    try:
        document = tomlkit.loads(text)
    except ParseError as e:
        raise ConfigurationError(f"Invalid TOML for '{cls.__qualname__}': {e}") from e

    _logger.debug("Parsed TOML for '%s'", cls.__qualname__)
    return deserialize(document.unwrap(), cls, properties)


def _fill(
    container: Container | Table,
    mapping: Mapping[Any, Any],
    path: tuple[str, ...],
    comments: _CommentMap,
):
    """
    Add mapping entries to container. Plain values are added before tables since
    TOML assigns any key following a table header to that table.
    """
    for key in mapping:
        if not isinstance(key, str):
            raise ConfigurationError(
                f"TOML keys must be strings, got '{key}' of type "
                f"'{type(key).__qualname__}' at '{_format_path(path)}'"
            )

    plain = [(k, v) for k, v in mapping.items() if not _is_table_like(v)]
    tables = [(k, v) for k, v in mapping.items() if _is_table_like(v)]

    for key, value in plain:
        _add_comments(container, comments.get((*path, key), ()))
        container.add(key, _to_item(value, (*path, key)))

    for key, value in tables:
        header = _header_comments(container, comments.get((*path, key), ()))
        if isinstance(value, Mapping):
            # always render header so its comments aren't dropped
            table = tomlkit.table(is_super_table=False if header else None)
            _fill(table, value, (*path, key), comments)
            # set once filled, tomlkit indents children by the spaces it contains
            table.trivia.indent = header
            container.add(key, table)
        else:
            aot = tomlkit.aot()
            for i, entry in enumerate(value):
                table = tomlkit.table()
                # comments are only tracked for configuration objects, not list items
                _fill(table, entry, (*path, key, str(i)), {})
                if i == 0:
                    table.trivia.indent = header
                aot.append(table)
            container.add(key, aot)


def _add_comments(container: Container | Table, lines: tuple[str, ...]):
    for line in lines:
        container.add(tomlkit.comment(line))


def _header_comments(container: Container | Table, lines: tuple[str, ...]) -> str:
    """
    Render comments as the leading trivia of a table header, so they stay directly
    above it. Tables which follow other items are separated by a blank line.
    """
    if not lines:
        return ""
    body = container.body if isinstance(container, Container) else container.value.body
    separator = "\n" if body else ""
    return separator + "".join(tomlkit.comment(line).as_string() for line in lines)


def _is_table_like(value: Any) -> bool:
    if isinstance(value, Mapping):
        return True
    return (
        isinstance(value, list)
        and len(value) > 0
        and all(isinstance(v, Mapping) for v in value)
    )


def _to_item(value: Any, path: tuple[str, ...]) -> Any:
    _check_value(value, path)
    return tomlkit.item(value)


def _check_value(value: Any, path: tuple[str, ...]):
    if value is None:
        raise ConfigurationError(
            f"TOML cannot represent null values, found one at '{_format_path(path)}'"
        )
    if isinstance(value, (set, frozenset)):
        raise ConfigurationError(
            f"TOML cannot represent sets, found one at '{_format_path(path)}'; "
            "serialize sets as lists instead"
        )
    if isinstance(value, Mapping):
        for k, v in value.items():
            if not isinstance(k, str):
                raise ConfigurationError(
                    f"TOML keys must be strings, got '{k}' of type "
                    f"'{type(k).__qualname__}' at '{_format_path(path)}'"
                )
            _check_value(v, (*path, k))
    elif isinstance(value, list):
        for i, v in enumerate(value):
            _check_value(v, (*path, str(i)))


def _format_path(path: tuple[str, ...]) -> str:
    return ".".join(path) or "<root>"
