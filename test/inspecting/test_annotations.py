"""
Tests for `Annotation` class.
"""

from collections.abc import Sequence
from typing import Annotated, Any, Literal, Optional, TypeVar, Union

from configcraft.inspecting.annotations import Annotation, flatten_union

type ListAlias = list[int]
type RecursiveAlias = list[RecursiveAlias] | int

T = TypeVar("T")


def test_alias():
    """
    Test normalizing type alias.
    """
    a = Annotation(ListAlias)
    assert a.origin is list
    assert len(a.args) == 1
    assert a.args[0] is int
    assert a.is_parameterized


def test_recursive_alias():
    """
    Test recursive alias is unwrapped lazily.
    """
    a = Annotation(RecursiveAlias)
    assert a.is_union
    assert len(a.arg_annotations) == 2

    arg1, arg2 = a.arg_annotations
    assert arg1.concrete_type is list
    assert arg2.concrete_type is int

    # argument of list is the alias again
    assert arg1.arg_annotations[0].is_union


def test_union():
    """
    Test methods of defining unions.
    """
    a = Annotation(int | str)
    assert a.is_union
    assert not a.is_parameterized
    assert a.concrete_type is None

    a = Annotation(Union[int, str])
    assert a.is_union


def test_optional():
    """
    Test detecting and stripping optional types.
    """
    a = Annotation(int | None)
    assert a.is_optional
    assert a.strip_optional() == Annotation(int)

    a = Annotation(Optional[list[str]])
    assert a.is_optional
    assert a.strip_optional().origin is list

    # extras of the optional member are preserved
    a = Annotation(Annotated[int, "meta"] | None)
    stripped = a.strip_optional()
    assert stripped.raw is int
    assert stripped.extras == ("meta",)

    # non-optional unions are returned as-is
    a = Annotation(int | str)
    assert not a.is_optional
    assert a.strip_optional() is a

    # remaining members stay a union
    a = Annotation(int | str | None)
    assert a.strip_optional().is_union
    assert not a.strip_optional().is_optional


def test_annotated():
    """
    Test extras are split from `Annotated[]`.
    """
    a = Annotation(Annotated[list[int], "a", "b"])
    assert a.raw == list[int]
    assert a.extras == ("a", "b")
    assert a.origin is list


def test_kinds():
    """
    Test classification of annotations.
    """
    assert Annotation(int).is_class
    assert not Annotation(list[int]).is_class
    assert Annotation(list[int]).is_parameterized
    assert Annotation(Sequence[int]).is_parameterized
    assert not Annotation(list).is_parameterized

    assert Annotation(Any).is_wildcard
    assert Annotation(object).is_wildcard
    assert not Annotation(Any).is_class

    assert Annotation(T).is_type_var
    assert Annotation(T).concrete_type is None

    assert Annotation(Literal["a", "b"]).is_literal
    assert Annotation(Literal["a", "b"]).arg_annotations == ()

    assert Annotation(tuple[int, ...]).is_variadic_tuple
    assert not Annotation(tuple[int, str]).is_variadic_tuple


def test_check_instance():
    """
    Test shallow instance checks.
    """
    assert Annotation(int).check_instance(1)
    assert not Annotation(int).check_instance("1")
    assert Annotation(list[int]).check_instance(["a"])
    assert Annotation(int | str).check_instance("1")
    assert not Annotation(int | str).check_instance(1.0)
    assert Annotation(Literal["a"]).check_instance("a")
    assert not Annotation(Literal["a"]).check_instance("b")
    assert Annotation(Any).check_instance(object())
    assert Annotation(Sequence[int]).check_instance((1, 2))


def test_name():
    """
    Test readable names.
    """
    assert Annotation(int).name == "int"
    assert Annotation(list[int]).name == "list[int]"


def test_flatten_union():
    """
    Test flattening nested unions.
    """
    assert flatten_union(int | (str | None)) == (int, str, type(None))
    assert flatten_union(int) == (int,)
