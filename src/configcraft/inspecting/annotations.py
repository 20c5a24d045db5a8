"""
Utilities to inspect type annotations.
"""

from __future__ import annotations

from functools import cached_property
from types import GenericAlias, NoneType, UnionType
from typing import (
    Annotated,
    Any,
    Literal,
    TypeAliasType,
    TypeVar,
    Union,
    get_args,
    get_origin,
)

__all__ = [
    "Annotation",
    "is_union",
    "unwrap_alias",
    "split_annotated",
    "flatten_union",
]


class Annotation:
    """
    Representation of a field annotation as seen by converter selection: the raw
    type, its generic origin and arguments, and any `Annotated[]` extras.

    Unwraps `TypeAlias` and `Annotated` if applicable. Argument annotations are
    created lazily so recursive type aliases don't recurse upon construction.
    """

    raw: Any
    """
    Original annotation after stripping `Annotated[]` if applicable. May be a generic
    type.
    """

    extras: tuple[Any, ...]
    """
    Annotation extras, if `Annotated[]` was passed.
    """

    origin: Any
    """
    Origin, non-`None` if annotation is a generic type.
    """

    args: tuple[Any, ...]
    """
    Generic type parameters.
    """

    def __init__(self, annotation: Any, /):
        raw, extras = split_annotated(unwrap_alias(annotation))
        raw = unwrap_alias(raw)

        self.raw = raw
        self.extras = extras
        self.origin = get_origin(raw)
        self.args = get_args(raw)

    def __repr__(self) -> str:
        raw = f"{self.raw}"
        extras = f"extras={self.extras}"
        return f"Annotation({', '.join((raw, extras))})"

    def __eq__(self, other: Any, /) -> bool:
        if not isinstance(other, Annotation):
            return False
        return self.raw == other.raw and self.extras == other.extras

    def __hash__(self) -> int:
        return hash(self.raw)

    @property
    def name(self) -> str:
        """
        Readable name for error messages.
        """
        if isinstance(self.raw, type) and not self.args:
            return self.raw.__qualname__
        return str(self.raw)

    @cached_property
    def arg_annotations(self) -> tuple[Annotation, ...]:
        """
        Annotation info for generic type parameters, empty for `Literal[]`.
        """
        if self.is_literal:
            return ()
        return tuple(Annotation(a) for a in self.args)

    @property
    def concrete_type(self) -> type | None:
        """
        Concrete (non-generic) class of this annotation, or `None` if it does not
        denote a single class (type variables, `Any`, unions, literals).
        """
        if self.is_union or self.is_literal or self.is_type_var or self.raw is Any:
            return None
        concrete_type = self.origin or self.raw
        if concrete_type is None:
            return NoneType
        return concrete_type if isinstance(concrete_type, type) else None

    @property
    def is_class(self) -> bool:
        """
        Whether this annotation is a plain, unparameterized class other than `Any`
        or `object`.
        """
        return (
            isinstance(self.raw, type) and self.origin is None and not self.is_wildcard
        )

    @property
    def is_parameterized(self) -> bool:
        """
        Whether this annotation is a generic class with type arguments.
        """
        return isinstance(self.origin, type) and bool(self.args) and not self.is_union

    @property
    def is_union(self) -> bool:
        return is_union(self.raw)

    @property
    def is_literal(self) -> bool:
        return self.origin is Literal

    @property
    def is_type_var(self) -> bool:
        return isinstance(self.raw, TypeVar)

    @property
    def is_wildcard(self) -> bool:
        """
        Whether this annotation accepts any type, i.e. `Any` or `object`.
        """
        return self.raw is Any or self.raw is object

    @property
    def is_optional(self) -> bool:
        """
        Whether this annotation is a union admitting `None`.
        """
        return self.is_union and any(a.raw in (None, NoneType) for a in self._members)

    @property
    def is_variadic_tuple(self) -> bool:
        """
        Whether this annotation is like `tuple[int, ...]`.
        """
        return (
            self.origin is tuple and len(self.args) == 2 and self.args[1] is Ellipsis
        )

    def strip_optional(self) -> Annotation:
        """
        Get the annotation without `None`, e.g. `int` from `int | None`. Unions with
        more than one remaining member are returned as a union of those members.
        """
        if not self.is_optional:
            return self
        members = [a for a in self._members if a.raw not in (None, NoneType)]
        if len(members) == 1:
            return members[0]
        return Annotation(Union[tuple(m.raw for m in members)])

    def check_instance(self, obj: Any, /) -> bool:
        """
        Shallow check whether object is an instance of this annotation; roughly
        equivalent to `isinstance(obj, annotation)` without recursing into
        collections. Annotations without a concrete type accept any object.
        """
        if self.is_union:
            return any(a.check_instance(obj) for a in self._members)
        if self.is_literal:
            return any(obj == value for value in self.args)
        concrete_type = self.concrete_type
        if concrete_type is None:
            return True
        return isinstance(obj, concrete_type)

    @cached_property
    def _members(self) -> tuple[Annotation, ...]:
        return tuple(Annotation(a) for a in flatten_union(self.raw))


def is_union(annotation: Any, /) -> bool:
    """
    Check whether annotation is a union, accommodating both `int | str`
    and `Union[int, str]`.
    """
    return isinstance(annotation, UnionType) or get_origin(annotation) is Union


def unwrap_alias(annotation: Any, /) -> Any:
    """
    If annotation is a `TypeAlias`, extract the corresponding definition.
    """
    if isinstance(annotation, TypeAliasType):
        return annotation.__value__
    elif isinstance(annotation, GenericAlias):
        # might have e.g.:
        # type MyType[T] = list[T]
        # unwrap_alias(MyType[T])
        origin = get_origin(annotation)
        if isinstance(origin, TypeAliasType):
            # have e.g. MyType[T], return list[T]
            return origin.__value__
    return annotation


def split_annotated(annotation: Any, /) -> tuple[Any, tuple[Any, ...]]:
    """
    If annotation is an `Annotated`, split it into the wrapped annotation and extras.
    """
    if get_origin(annotation) is Annotated:
        args = get_args(annotation)
        assert len(args)
        return args[0], tuple(annotation.__metadata__)
    return annotation, ()


def flatten_union(annotation: Any, /) -> tuple[Any, ...]:
    """
    If annotation is a union, recursively flatten it into its constituent types;
    otherwise return the annotation as-is. Unions wrapped by `Annotated[]` are kept
    intact along with their extras.

    Unwraps aliases at each recursion.
    """
    return tuple(_recurse_union(annotation))


def _recurse_union(annotation: Any, /) -> list[Any]:
    args: list[Any] = []
    annotation_ = unwrap_alias(annotation)

    if is_union(annotation_):
        for a in get_args(annotation_):
            args += _recurse_union(a)
    else:
        args.append(annotation_)

    return args
