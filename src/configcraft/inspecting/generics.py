"""
Utilities to inspect type parameters of generic classes.
"""

from __future__ import annotations

from typing import Any, TypeVar, cast, get_args, get_origin

__all__ = [
    "extract_arg_map",
    "extract_arg",
]


def extract_arg_map(cls: type, base_cls: type, /) -> dict[str, Any]:
    """
    Extract from `cls` a mapping of type parameter names to parameters that were
    passed to `base_cls`. Unresolved parameters are mapped to their `TypeVar`.

    :param cls: The class or generic alias to extract type parameters from
    :param base_cls: The base class whose type parameters should be extracted
    :raises TypeError: If `base_cls` is not in `cls`'s inheritance hierarchy
    :return: Dict mapping parameter names to their resolved types or unresolved TypeVars
    """
    arg_map = _find_args(cls, base_cls, {})
    if arg_map is None:
        raise TypeError(
            f"Base class {base_cls} not found in {cls}'s inheritance hierarchy"
        )
    return arg_map


def extract_arg(cls: type, base_cls: type, name: str, /) -> Any | None:
    """
    Extract from `cls` the resolved type parameter that was passed to `base_cls`
    for its parameter by name.

    :param cls: The class to extract the type parameter from
    :param base_cls: The base class whose type parameter should be extracted
    :param name: Parameter name
    :raises TypeError: If `base_cls` is not in `cls`'s inheritance hierarchy
    :raises KeyError: If parameter name not found
    :return: The resolved type, or `None` if it remains a TypeVar
    """
    arg_map = extract_arg_map(cls, base_cls)
    if name not in arg_map:
        raise KeyError(
            f"Type parameter '{name}' not found in {base_cls}. "
            f"Available parameters: {list(arg_map.keys())}"
        )
    arg = arg_map[name]
    return None if isinstance(arg, TypeVar) else arg


def _get_parameters(cls: Any) -> tuple[TypeVar, ...]:
    """
    Get `__parameters__` attribute, defaulting to an empty tuple.
    """
    parameters = cast(tuple[Any, ...], getattr(cls, "__parameters__", ()))
    return tuple(p for p in parameters if isinstance(p, TypeVar))


def _get_bases(cls: type, attr: str) -> list[Any]:
    return list(cast(tuple[Any, ...], getattr(cls, attr, ())))


def _find_args(
    cls: Any, base_cls: type, tv_map: dict[TypeVar, Any]
) -> dict[str, Any] | None:
    origin, args = get_origin(cls), get_args(cls)

    # cls is base_cls itself: parameters are unresolved
    if cls is base_cls:
        return {t.__name__: tv_map.get(t, t) for t in _get_parameters(base_cls)}

    # build type_var_map for this level first
    if isinstance(origin, type) and args:
        tv_map = tv_map.copy()
        for type_param, arg in zip(_get_parameters(origin), args):
            tv_map[type_param] = (
                tv_map.get(arg, arg) if isinstance(arg, TypeVar) else arg
            )

    if origin is base_cls:
        return {t.__name__: tv_map.get(t, t) for t in _get_parameters(base_cls)}

    # recurse into bases - use origin's bases if we have a generic alias
    base_check = origin if isinstance(origin, type) else cls
    bases = _get_bases(base_check, "__orig_bases__") + _get_bases(
        base_check, "__bases__"
    )

    for base in bases:
        if (result := _find_args(base, base_cls, tv_map)) is not None:
            return result

    return None
