# tests/test_shrink_search.py
"""
Tests for the greedy minimal-failure search.
"""

import io

import pytest

from propcheck.arbitrary import shrink_int
from propcheck.errors import ArgumentsError
from propcheck.property import TestResult, as_property, exception_result, shrinking
from propcheck.rose import Rose
from propcheck.shrink_search import expand_children, find_minimal_failing_test_case
from propcheck.reporter import TextReporter
from tests.conftest import make_state, reduce_case


def _below_ten(n):
    return TestResult.succeeded() if n < 10 else TestResult.failed(str(n))


def _search(prop, **state_changes):
    node = reduce_case(prop)
    state = make_state(**state_changes)
    return find_minimal_failing_test_case(state, node.root(), expand_children(node))


class TestGreedyDescent:

    def test_reaches_local_minimum(self):
        outcome = _search(shrinking(shrink_int, 100, _below_ten))
        assert outcome.result.reason == "10"
        assert outcome.num_shrinks == 4

    def test_counts_rejected_candidates(self):
        outcome = _search(shrinking(shrink_int, 100, _below_ten))
        assert outcome.failed_attempts == 9
        assert outcome.trailing_attempts == 4

    def test_already_minimal(self):
        outcome = _search(shrinking(shrink_int, 10, _below_ten))
        assert outcome.num_shrinks == 0
        assert outcome.result.reason == "10"

    def test_no_candidates(self):
        outcome = _search(as_property(False))
        assert outcome.num_shrinks == 0
        assert outcome.result.reason == "Falsifiable"

    def test_max_shrinks(self):
        outcome = _search(shrinking(shrink_int, 100, _below_ten), max_shrinks=2)
        assert outcome.num_shrinks == 2
        assert outcome.result.reason == "25"

    def test_max_shrinks_zero(self):
        outcome = _search(shrinking(shrink_int, 100, _below_ten), max_shrinks=0)
        assert outcome.num_shrinks == 0
        assert outcome.result.reason == "100"

    def test_deep_descent_flat_memory(self):
        # A linear chain of 5000 single-candidate steps.
        prop = shrinking(lambda n: [n - 1] if n > 0 else [], 5000, lambda _n: False)
        assert _search(prop).num_shrinks == 5000


class TestExceptions:

    def test_exception_root_not_shrunk(self):
        state = make_state()
        result = exception_result(RuntimeError("boom"))
        outcome = find_minimal_failing_test_case(state, result, [Rose.pure(result)])
        assert outcome.num_shrinks == 0
        assert outcome.result is result

    def test_throwing_candidate_is_childless_failure(self):
        def prop(n):
            if n == 50:
                raise ValueError("fifty")
            return _below_ten(n)

        outcome = _search(shrinking(shrink_int, 100, prop))
        assert outcome.num_shrinks == 1
        assert outcome.result.exception == "ValueError: fifty"

    def test_setup_errors_propagate(self):
        def prop(n):
            if n == 50:
                raise ArgumentsError("bad setup")
            return _below_ten(n)

        with pytest.raises(ArgumentsError):
            _search(shrinking(shrink_int, 100, prop))

    def test_expand_children_of_nothing(self):
        assert expand_children(None) == []


class TestCallbacks:

    def test_each_failing_candidate_reported(self):
        calls = []
        prop = shrinking(
            shrink_int, 100,
            lambda n: as_property(_below_ten(n)).when_each_fail(lambda: calls.append(n)),
        )
        _search(prop, silence=False, reporter=TextReporter(stream=io.StringIO()))
        assert calls == [50, 25, 13, 10]

    def test_silence_suppresses(self):
        calls = []
        prop = shrinking(
            shrink_int, 100,
            lambda n: as_property(_below_ten(n)).when_each_fail(lambda: calls.append(n)),
        )
        _search(prop)
        assert calls == []
