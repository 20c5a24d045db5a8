"""
Utilities to inspect functions.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable
from dataclasses import dataclass
from inspect import Parameter
from types import MappingProxyType
from typing import Any, get_type_hints

__all__ = [
    "ParameterInfo",
    "SignatureInfo",
]

_POSITIONAL_KINDS = (Parameter.POSITIONAL_ONLY, Parameter.POSITIONAL_OR_KEYWORD)


@dataclass
class ParameterInfo:
    """
    Encapsulates information about a function parameter.
    """

    parameter: Parameter
    """
    Parameter from `inspect` module.
    """

    @property
    def name(self) -> str:
        return self.parameter.name


class SignatureInfo:
    """
    Encapsulates information extracted from a function signature.
    """

    func: Callable[..., Any]
    """
    Function passed in.
    """

    params: MappingProxyType[str, ParameterInfo]
    """
    Mapping of parameter name to info.
    """

    def __init__(self, func: Callable[..., Any], /):
        self.func = func
        sig = inspect.signature(func)
        self.params = MappingProxyType(
            {name: ParameterInfo(param) for name, param in sig.parameters.items()}
        )

    def __repr__(self) -> str:
        return f"{getattr(self.func, '__qualname__', self.func)}({list(self.params)})"

    def get_return_annotation(self, localns: dict[str, Any] | None = None) -> Any:
        """
        Get return annotation, resolving stringized annotations from `__future__`
        import.

        :raises NameError: If the annotation can't be resolved
        """
        type_hints = get_type_hints(self.func, localns=localns)
        return type_hints.get("return", type(None))

    def get_param_annotation(self, name: str, /) -> Any | None:
        """
        Get annotation of parameter by name, resolving stringized annotations from
        `__future__` import, or `None` if the parameter isn't annotated.

        :raises NameError: If the annotation can't be resolved
        """
        return get_type_hints(self.func).get(name)

    def get_params(
        self, *, positional: bool | None = None
    ) -> tuple[ParameterInfo, ...]:
        """
        Get parameters, optionally filtering by whether they're positional.
        """
        params = self.params.values()
        if positional is not None:
            params = [
                p
                for p in params
                if (p.parameter.kind in _POSITIONAL_KINDS) == positional
            ]
        return tuple(params)
