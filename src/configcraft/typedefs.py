"""
Basic definitions shared throughout the package.
"""

from __future__ import annotations

from typing import Any

__all__ = [
    "NodeType",
    "ScalarType",
    "PRIMITIVE_TYPES",
    "METADATA_KEY",
]

type ScalarType = str | int | float | bool
"""
Scalar values a serialized node may hold, besides `None`.
"""

type NodeType = ScalarType | None | list[NodeType] | set[Any] | dict[Any, NodeType]
"""
Format-agnostic tree produced by serialization and consumed by deserialization:
ordered mappings (insertion order preserved), sequences, sets (only if sets are not
serialized as lists), and scalars.
"""

PRIMITIVE_TYPES: tuple[type, ...] = (bool, int, float)
"""
Types which a non-optional element can never be `None` for.
"""

METADATA_KEY = "configcraft"
"""
Key under which element metadata is looked up in `dataclasses.field(metadata=...)`.
"""
