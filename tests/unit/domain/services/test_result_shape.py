"""
Unit tests for return shape resolution and row folding.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any, List, Optional, Union

import pytest
from pydantic import BaseModel

from graph_repository.domain.exceptions import UnsupportedReturnShapeError
from graph_repository.domain.models import ResultShape
from graph_repository.domain.services.result_shape import adapt, resolve_shape


class Person(BaseModel):
    name: str


class Place(BaseModel):
    city: str


class Badge(BaseModel, frozen=True):
    code: str


def single(self) -> Person: ...
def optional(self) -> Optional[Person]: ...
def optional_pipe(self) -> Person | None: ...
def listed(self) -> list[Person]: ...
def typing_list(self) -> List[Person]: ...
def sequence(self) -> Sequence[Person]: ...
def iterable(self) -> Iterable[Person]: ...
def tupled(self) -> tuple[Person, ...]: ...
def as_set(self) -> set[int]: ...
def frozen_set(self) -> frozenset[Badge]: ...
def scalar(self) -> int: ...


def no_annotation(self): ...
def returns_none(self) -> None: ...
def returns_any(self) -> Any: ...
def mapping(self) -> dict[str, Person]: ...
def union(self) -> Union[Person, Place]: ...
def optional_union(self) -> Optional[Union[Person, Place]]: ...
def fixed_tuple(self) -> tuple[Person, Person]: ...
def bare_list(self) -> list: ...
def nested(self) -> list[list[Person]]: ...
def mutable_set(self) -> set[Person]: ...
def mutable_frozenset(self) -> frozenset[Person]: ...


class TestResolveShape:
    """Test cases for resolve_shape()."""

    @pytest.mark.parametrize(
        "method,shape,element,container",
        [
            (single, ResultShape.SINGLE, Person, list),
            (scalar, ResultShape.SINGLE, int, list),
            (optional, ResultShape.OPTIONAL, Person, list),
            (optional_pipe, ResultShape.OPTIONAL, Person, list),
            (listed, ResultShape.COLLECTION, Person, list),
            (typing_list, ResultShape.COLLECTION, Person, list),
            (sequence, ResultShape.COLLECTION, Person, list),
            (iterable, ResultShape.COLLECTION, Person, list),
            (tupled, ResultShape.COLLECTION, Person, tuple),
            (as_set, ResultShape.COLLECTION, int, set),
            (frozen_set, ResultShape.COLLECTION, Badge, frozenset),
        ],
    )
    def test_supported_shapes(self, method, shape, element, container):
        assert resolve_shape(method) == (shape, element, container)

    @pytest.mark.parametrize(
        "method",
        [
            no_annotation,
            returns_none,
            returns_any,
            mapping,
            union,
            optional_union,
            fixed_tuple,
            bare_list,
            nested,
            mutable_set,
            mutable_frozenset,
        ],
    )
    def test_unsupported_shapes(self, method):
        with pytest.raises(UnsupportedReturnShapeError) as exc_info:
            resolve_shape(method)
        assert exc_info.value.method_name == method.__name__
        assert method.__name__ in str(exc_info.value)

    def test_unresolvable_forward_reference(self):
        def broken(self) -> "MissingEntity": ...  # noqa: F821

        with pytest.raises(UnsupportedReturnShapeError):
            resolve_shape(broken)


class TestAdapt:
    """Test cases for adapt()."""

    def test_collection_with_no_rows_is_empty_list(self):
        result = adapt(ResultShape.COLLECTION, [])
        assert result == []
        assert result is not None

    def test_collection_preserves_order(self):
        rows = [Person(name="b"), Person(name="a"), Person(name="c")]
        assert adapt(ResultShape.COLLECTION, rows) == rows

    def test_collection_uses_declared_container(self):
        assert adapt(ResultShape.COLLECTION, [1, 2], tuple) == (1, 2)
        assert adapt(ResultShape.COLLECTION, [1, 1, 2], set) == {1, 2}
        assert adapt(ResultShape.COLLECTION, [], tuple) == ()

    def test_optional_with_no_rows_is_none(self):
        assert adapt(ResultShape.OPTIONAL, []) is None

    def test_optional_with_one_row(self):
        row = Person(name="Ada")
        assert adapt(ResultShape.OPTIONAL, [row]) is row

    def test_single_with_no_rows_is_none(self):
        assert adapt(ResultShape.SINGLE, []) is None

    def test_single_truncates_to_first_row(self):
        rows = [Person(name="first"), Person(name="second")]
        assert adapt(ResultShape.SINGLE, rows) is rows[0]
