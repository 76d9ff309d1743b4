# tests/test_arbitrary.py
"""
Tests for the primitive generator/shrinker catalog.
"""

import math

import pytest

from propcheck.arbitrary import (
    Arbitrary,
    Bool,
    Char,
    Float,
    Int,
    ListOf,
    OptionalOf,
    Text,
    TupleOf,
    instance_for,
    shrink_bool,
    shrink_char,
    shrink_float,
    shrink_int,
    shrink_list,
    shrink_optional,
    shrink_text,
    shrink_tuple,
)
from propcheck.errors import ArgumentsError
from propcheck.gen import Gen
from tests.conftest import rng_stream


def _draws(instance, n=100, size=10):
    gen = instance.arbitrary()
    return [gen.run(r, size) for r in rng_stream(n)]


def _descend(shrinker, value, limit=10_000):
    """Follow first candidates; return the number of steps to a fixpoint."""
    steps = 0
    candidates = shrinker(value)
    while candidates:
        value = candidates[0]
        candidates = shrinker(value)
        steps += 1
        assert steps < limit
    return steps


class TestShrinkInt:

    def test_zero(self):
        assert shrink_int(0) == []

    def test_positive(self):
        assert shrink_int(5) == [0, 3, 4]

    def test_negative(self):
        assert shrink_int(-5) == [5, 0, -3, -4]

    def test_one(self):
        assert shrink_int(1) == [0]

    def test_never_contains_input(self):
        for x in range(-50, 51):
            assert x not in shrink_int(x)

    def test_well_founded(self):
        for x in (-1000, -7, 3, 999_999):
            _descend(shrink_int, x)


class TestShrinkOthers:

    def test_bool(self):
        assert shrink_bool(True) == [False]
        assert shrink_bool(False) == []

    def test_float(self):
        assert shrink_float(0.0) == []
        assert shrink_float(2.5) == [0.0, 2.0, 1.25]
        assert shrink_float(-3.0) == [0.0, 3.0, -1.5]

    @pytest.mark.parametrize("x", [math.inf, -math.inf, math.nan])
    def test_float_non_finite(self, x):
        assert shrink_float(x) == [0.0]

    def test_float_well_founded(self):
        _descend(shrink_float, 1e300)

    def test_char(self):
        assert shrink_char("a") == []
        assert shrink_char("b") == ["a"]
        assert shrink_char("z") == list("abcABC123 \n")

    def test_list_removes_then_shrinks_elements(self):
        assert shrink_list([1, 2, 3, 4]) == [
            [],
            [3, 4], [1, 2],
            [2, 3, 4], [1, 3, 4], [1, 2, 4], [1, 2, 3],
        ]
        assert shrink_list([2], shrink_int) == [[], [0], [1]]

    def test_list_empty(self):
        assert shrink_list([]) == []

    def test_text(self):
        assert shrink_text("") == []
        assert "" in shrink_text("ab")
        assert "aa" in shrink_text("ab")

    def test_text_well_founded(self):
        _descend(shrink_text, "Hello, world!")

    def test_tuple(self):
        assert shrink_tuple((1, True), [shrink_int, shrink_bool]) == [(0, True), (1, False)]

    def test_optional(self):
        assert shrink_optional(None, shrink_int) == []
        assert shrink_optional(3, shrink_int) == [None, 0, 2]


class TestInstances:

    def test_int_bounded_by_size(self):
        assert all(-10 <= x <= 10 for x in _draws(Int()))
        assert set(_draws(Int(), size=0)) == {0}

    def test_bool(self):
        assert set(_draws(Bool())) == {False, True}

    def test_float(self):
        assert set(_draws(Float(), size=0)) == {0.0}
        assert all(-10.0 <= x <= 10.0 for x in _draws(Float()))

    def test_char_printable(self):
        assert all(" " <= c <= "~" for c in _draws(Char()))

    def test_text(self):
        for s in _draws(Text()):
            assert len(s) <= 10
            assert all(" " <= c <= "~" for c in s)

    def test_list(self):
        assert all(len(xs) <= 10 for xs in _draws(ListOf(Int())))

    def test_non_empty_list(self):
        instance = ListOf(Int(), non_empty=True)
        assert all(xs for xs in _draws(instance, size=0))
        assert [] not in instance.shrink([1, 2])

    def test_tuple(self):
        for value in _draws(TupleOf(Int(), Bool(), Char())):
            assert len(value) == 3
            assert isinstance(value[1], bool)

    def test_tuple_shrink(self):
        assert TupleOf(Int(), Bool()).shrink((1, True)) == [(0, True), (1, False)]

    def test_optional(self):
        values = _draws(OptionalOf(Int()), n=200)
        assert None in values
        assert any(v is not None for v in values)

    def test_default_shrink_is_empty(self):
        class Unit(Arbitrary):
            def arbitrary(self):
                return Gen.pure(())

        assert Unit().shrink(()) == []
        assert repr(Unit()) == "Unit()"

    def test_repr(self):
        assert repr(ListOf(OptionalOf(Int()))) == "ListOf(OptionalOf(Int()))"
        assert repr(TupleOf(Int(), Bool())) == "TupleOf(Int(), Bool())"


class TestInstanceFor:

    @pytest.mark.parametrize("tp,cls", [(int, Int), (bool, Bool), (float, Float), (str, Text)])
    def test_builtins(self, tp, cls):
        assert isinstance(instance_for(tp), cls)

    def test_unknown(self):
        with pytest.raises(ArgumentsError):
            instance_for(dict)
