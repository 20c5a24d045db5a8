"""
Tests for function signature utilities.
"""

from __future__ import annotations

from types import NoneType

from configcraft.inspecting.functions import ParameterInfo, SignatureInfo


class Holder:
    def method(self) -> Holder:
        return self

    def no_return(self):
        pass

    def with_params(self, holder: Holder, count: int, untyped, /):
        pass


def test_params():
    """
    Test extracting parameters of a function.
    """

    def func(x: int, /, y: str = "", *args: int, z: bool, **kwargs: int) -> bool:
        return True

    sig = SignatureInfo(func)
    assert sig.func is func
    assert list(sig.params) == ["x", "y", "args", "z", "kwargs"]

    param_x = sig.params["x"]
    assert isinstance(param_x, ParameterInfo)
    assert param_x.name == "x"

    assert [p.name for p in sig.get_params(positional=True)] == ["x", "y"]
    assert [p.name for p in sig.get_params(positional=False)] == [
        "args",
        "z",
        "kwargs",
    ]
    assert len(sig.get_params()) == 5


def test_return_annotation():
    """
    Test resolving return annotations, including stringized ones.
    """
    sig = SignatureInfo(Holder.method)
    assert sig.get_return_annotation() is Holder

    sig = SignatureInfo(Holder.no_return)
    assert sig.get_return_annotation() is NoneType


def test_param_annotation():
    """
    Test resolving parameter annotations, including stringized ones.
    """
    sig = SignatureInfo(Holder.with_params)
    assert sig.get_param_annotation("holder") is Holder
    assert sig.get_param_annotation("count") is int
    assert sig.get_param_annotation("untyped") is None


def test_constructor_signature():
    """
    Test positional parameters of a constructor include `self`.
    """

    class Converter:
        def __init__(self, context: object, /):
            self.context = context

    sig = SignatureInfo(Converter.__init__)
    params = sig.get_params(positional=True)
    assert [p.name for p in params] == ["self", "context"]
    assert sig.get_param_annotation("context") is object
