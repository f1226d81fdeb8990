"""
Return-shape resolution and row folding for declarative query methods.

The shape comes from the method's return annotation, never from the number
of rows returned, so ``adapt`` is a pure function of (shape, rows).
"""

import collections.abc
import types
import typing
from collections.abc import Sequence
from typing import Any, Callable, Union

from ..exceptions import UnsupportedReturnShapeError
from ..models.descriptors import ResultShape

# Declared collection types and the container rows are returned in.
COLLECTION_TYPES: dict[Any, type] = {
    list: list,
    tuple: tuple,
    set: set,
    frozenset: frozenset,
    collections.abc.Sequence: list,
    collections.abc.Collection: list,
    collections.abc.Iterable: list,
}


def is_concrete_type(tp: Any) -> bool:
    if typing.get_origin(tp) is not None:
        return False
    return isinstance(tp, type) and tp is not type(None) and tp is not Any


def _element_of(args: tuple, method_name: str, return_type: Any) -> type:
    if len(args) == 2 and args[1] is Ellipsis:
        args = args[:1]
    if len(args) != 1 or not is_concrete_type(args[0]):
        raise UnsupportedReturnShapeError(method_name, return_type)
    return args[0]


def resolve_shape(method: Callable) -> tuple[ResultShape, type, type]:
    """
    Derive the result shape of ``method`` from its return annotation.

    Returns:
        Tuple of (shape, element type, container type). The container is only
        meaningful for ``ResultShape.COLLECTION``.

    Raises:
        UnsupportedReturnShapeError: If the annotation is missing or is not a
            concrete class, an optional class or a collection of a class.
    """
    name = getattr(method, "__name__", repr(method))
    try:
        hints = typing.get_type_hints(method)
    except (NameError, TypeError) as exc:
        raise UnsupportedReturnShapeError(name, f"unresolvable annotation ({exc})") from exc

    if "return" not in hints:
        raise UnsupportedReturnShapeError(name, None)
    return_type = hints["return"]

    origin = typing.get_origin(return_type)
    args = typing.get_args(return_type)

    if origin is Union or origin is types.UnionType:
        members = [arg for arg in args if arg is not type(None)]
        if len(members) == 1 and len(args) == 2 and is_concrete_type(members[0]):
            return ResultShape.OPTIONAL, members[0], list
        raise UnsupportedReturnShapeError(name, return_type)

    if origin in COLLECTION_TYPES:
        if origin is tuple and (len(args) != 2 or args[1] is not Ellipsis):
            raise UnsupportedReturnShapeError(name, return_type)
        element_type = _element_of(args, name, return_type)
        container = COLLECTION_TYPES[origin]
        # rows of unhashable entities (mutable pydantic models) cannot form a set
        if container in (set, frozenset) and getattr(element_type, "__hash__", None) is None:
            raise UnsupportedReturnShapeError(name, return_type)
        return ResultShape.COLLECTION, element_type, container

    if origin is None and is_concrete_type(return_type) and return_type not in COLLECTION_TYPES:
        return ResultShape.SINGLE, return_type, list

    raise UnsupportedReturnShapeError(name, return_type)


def adapt(shape: ResultShape, rows: Sequence[Any], container: type = list) -> Any:
    """
    Fold driver rows into the declared result shape.

    ``SINGLE`` returns the first row and silently drops the rest; zero rows
    yield ``None`` for both ``SINGLE`` and ``OPTIONAL`` and an empty container
    for ``COLLECTION``.
    """
    if shape is ResultShape.COLLECTION:
        return container(rows)
    return rows[0] if rows else None
