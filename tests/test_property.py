# tests/test_property.py
"""
Tests for TestResult, Property and the testable combinators.
"""

import pytest

from propcheck.arbitrary import shrink_int
from propcheck.errors import EmptyChoiceError, GeneratorExhaustedError, NotTestableError
from propcheck.gen import Gen
from propcheck.property import (
    CONJUNCTION_EXPECT_FAILURE,
    DISJUNCTION_EXPECT_FAILURE,
    Callback,
    CallbackKind,
    CallbackTiming,
    Discard,
    Prop,
    Property,
    TestResult,
    as_property,
    conjamb,
    conjoin,
    describe_exception,
    disjoin,
    equals,
    exception_result,
    format_labels,
    implies,
    shrinking,
    union_max,
)
from propcheck.rose import Rose, RoseValue
from tests.conftest import child_results, evaluate, reduce_case


def _lazy(result, calls):
    """A property whose outcome records when it is evaluated."""

    def thunk():
        calls.append(result)
        return result

    return Property(Gen.pure(Prop(RoseValue(thunk, list))))


class TestTestResult:

    def test_constructors(self):
        assert TestResult.succeeded().is_success
        assert TestResult.failed("no").is_failure
        assert TestResult.failed("no").reason == "no"
        assert TestResult.rejected().is_discard

    def test_lift_bool(self):
        assert TestResult.lift_bool(True).ok is True
        failed = TestResult.lift_bool(False)
        assert failed.ok is False and failed.reason == "Falsifiable"

    def test_replace(self):
        r = TestResult.succeeded().replace(abort=True)
        assert r.abort and r.ok is True

    def test_describe_exception(self):
        assert describe_exception(ValueError("bad")) == "ValueError: bad"
        assert describe_exception(KeyError()) == "KeyError"

    def test_exception_result(self):
        r = exception_result(ZeroDivisionError("division by zero"))
        assert r.ok is False
        assert r.exception == "ZeroDivisionError: division by zero"
        assert r.reason == r.exception

    def test_exhausted_generator_is_discard(self):
        assert exception_result(GeneratorExhaustedError(100)).is_discard


class TestAsProperty:

    def test_bool(self):
        assert evaluate(True).ok is True
        assert evaluate(False).reason == "Falsifiable"

    def test_result(self):
        assert evaluate(TestResult.failed("x")).reason == "x"

    def test_discard(self):
        assert evaluate(Discard()).is_discard
        assert evaluate(Discard).is_discard

    def test_gen_of_testables(self):
        gen = Gen.sized(lambda n: Gen.pure(n > 5))
        assert evaluate(gen, size=6).ok is True
        assert evaluate(gen, size=5).ok is False

    def test_prop(self):
        assert evaluate(Prop(Rose.pure(TestResult.succeeded()))).ok is True

    def test_custom_testable(self):
        class AlwaysFails:
            def to_property(self):
                return as_property(False)

        assert evaluate(AlwaysFails()).ok is False

    def test_property_identity(self):
        prop = as_property(True)
        assert as_property(prop) is prop

    @pytest.mark.parametrize("value", [42, "yes", None, [True]])
    def test_not_testable(self, value):
        with pytest.raises(NotTestableError):
            as_property(value)


class TestControl:

    def test_invert(self):
        assert evaluate(as_property(True).invert()).ok is False
        assert evaluate(as_property(False).invert()).ok is True

    def test_invert_keeps_discard(self):
        assert evaluate(as_property(Discard()).invert()).is_discard

    def test_invert_keeps_exception_failure(self):
        r = evaluate(Property.from_result(exception_result(RuntimeError("x"))).invert())
        assert r.ok is False

    def test_once_and_again(self):
        assert evaluate(as_property(True).once()).abort
        assert not evaluate(as_property(True).once().again()).abort

    def test_expect_failure(self):
        assert evaluate(as_property(True).expect_failure()).expect is False

    def test_map_size(self):
        prop = as_property(Gen.sized(lambda n: Gen.pure(n == 10))).map_size(lambda _n: 10)
        assert evaluate(prop, size=3).ok is True

    def test_map_result(self):
        prop = as_property(True).map_result(lambda r: r.replace(reason="seen"))
        assert evaluate(prop).reason == "seen"

    def test_map_total_result_protects(self):
        prop = as_property(True).map_total_result(lambda r: 1 // 0)
        r = evaluate(prop)
        assert r.ok is False
        assert r.exception.startswith("ZeroDivisionError")

    def test_no_shrinking(self):
        prop = shrinking(shrink_int, 8, lambda n: n < 3).no_shrinking()
        assert reduce_case(prop).children() == []


class TestLabels:

    def test_label(self):
        r = evaluate(as_property(True).label("small"))
        assert r.labels == {"small": 0}
        assert r.stamp == frozenset({"small"})

    def test_collect(self):
        assert evaluate(as_property(True).collect(3)).stamp == frozenset({"3"})

    def test_classify_false_condition(self):
        r = evaluate(as_property(True).classify(False, "never"))
        assert r.labels == {} and r.stamp == frozenset()

    def test_cover_keeps_largest_requirement(self):
        r = evaluate(as_property(True).cover(True, 50, "x").label("x"))
        assert r.labels == {"x": 50}

    def test_several_labels(self):
        r = evaluate(as_property(True).label("a").label("b"))
        assert r.stamp == frozenset({"a", "b"})

    def test_format_labels(self):
        assert format_labels(TestResult.succeeded()) == "(.)"
        r = evaluate(as_property(True).label("b").label("a"))
        assert format_labels(r) == "(a, b)"

    def test_union_max(self):
        assert union_max({"a": 1, "b": 5}, {"b": 2, "c": 3}) == {"a": 1, "b": 5, "c": 3}


class TestCallbacks:

    def test_with_callback_prepends(self):
        first = Callback(CallbackTiming.AFTER_TEST, CallbackKind.NOT_COUNTEREXAMPLE, print)
        second = Callback(CallbackTiming.AFTER_TEST, CallbackKind.COUNTEREXAMPLE, print)
        r = evaluate(as_property(True).with_callback(first).with_callback(second))
        assert r.callbacks == (second, first)

    def test_counterexample_kind(self):
        r = evaluate(as_property(False).counterexample("x = 1"))
        (callback,) = r.callbacks
        assert callback.timing is CallbackTiming.AFTER_FINAL_FAILURE
        assert callback.kind is CallbackKind.COUNTEREXAMPLE

    def test_when_fail_timing(self):
        (callback,) = evaluate(as_property(False).when_fail(lambda: None)).callbacks
        assert callback.timing is CallbackTiming.AFTER_FINAL_FAILURE

    def test_when_each_fail_timing(self):
        (callback,) = evaluate(as_property(False).when_each_fail(lambda: None)).callbacks
        assert callback.timing is CallbackTiming.AFTER_TEST

    def test_verbose_promotes_counterexamples(self):
        r = evaluate(as_property(False).counterexample("x").verbose())
        assert len(r.callbacks) == 2
        assert all(c.timing is CallbackTiming.AFTER_TEST for c in r.callbacks)


class TestConjoin:

    def test_all_pass(self):
        r = evaluate(conjoin(as_property(True).label("a"), as_property(True).label("b")))
        assert r.ok is True
        assert r.stamp == frozenset({"a", "b"})

    def test_empty_passes(self):
        assert evaluate(conjoin()).ok is True

    def test_failure_carries_prior_labels(self):
        r = evaluate(conjoin(as_property(True).label("before"), False))
        assert r.ok is False
        assert "before" in r.stamp

    def test_stops_at_first_failure(self):
        calls = []
        r = evaluate(conjoin(False, _lazy(TestResult.succeeded(), calls)))
        assert r.ok is False
        assert calls == []

    def test_discard_then_pass_discards(self):
        assert evaluate(conjoin(Discard(), True)).is_discard

    def test_discard_then_failure_fails(self):
        assert evaluate(conjoin(Discard(), False)).ok is False

    def test_expect_failure_inside(self):
        r = evaluate(conjoin(True, as_property(True).expect_failure()))
        assert r.ok is False
        assert r.reason == CONJUNCTION_EXPECT_FAILURE

    def test_clears_abort(self):
        assert not evaluate(conjoin(as_property(True).once())).abort

    def test_failing_conjunct_keeps_shrinks(self):
        node = reduce_case(conjoin(True, shrinking(shrink_int, 8, lambda n: n < 3)))
        assert node.root().ok is False
        assert [r.ok for r in child_results(node)] == [True, False, False, False]


class TestDisjoin:

    def test_any_pass(self):
        assert evaluate(disjoin(False, True)).ok is True

    def test_all_fail_joins_reasons(self):
        r = evaluate(disjoin(TestResult.failed("a"), TestResult.failed("b")))
        assert r.ok is False
        assert r.reason == "a, b"

    def test_single(self):
        assert evaluate(disjoin(False)).reason == "Falsifiable"

    def test_empty_fails(self):
        assert evaluate(disjoin()).ok is False

    def test_discard_beats_failure(self):
        assert evaluate(disjoin(Discard(), False)).is_discard
        assert evaluate(disjoin(False, Discard())).is_discard

    def test_first_exception_wins(self):
        r = evaluate(disjoin(
            TestResult.failed("a"),
            TestResult(ok=False, reason="b", exception="E1"),
            TestResult(ok=False, reason="c", exception="E2"),
        ))
        assert r.exception == "E1"
        assert r.reason == "a, b, c"

    def test_expect_failure_inside(self):
        r = evaluate(disjoin(as_property(False).expect_failure()))
        assert r.reason == DISJUNCTION_EXPECT_FAILURE
        r = evaluate(disjoin(False, as_property(True).expect_failure()))
        assert r.reason == DISJUNCTION_EXPECT_FAILURE


class TestOtherCombinators:

    def test_conjamb(self):
        assert evaluate(conjamb(lambda: True, lambda: True)).ok is True

    def test_conjamb_builds_only_chosen(self):
        built = []

        def choice(tag):
            def thunk():
                built.append(tag)
                return True
            return thunk

        evaluate(conjamb(choice("a"), choice("b")))
        assert len(built) == 1

    def test_conjamb_empty(self):
        with pytest.raises(EmptyChoiceError):
            conjamb()

    def test_implies(self):
        assert evaluate(implies(True, False)).ok is False
        assert evaluate(implies(False, False)).is_discard

    def test_implies_lazy(self):
        calls = []
        evaluate(implies(False, lambda: calls.append(1)))
        assert calls == []
        assert evaluate(implies(True, lambda: True)).ok is True

    def test_equals(self):
        assert evaluate(equals([1], [1])).ok is True
        r = evaluate(equals(1, 2))
        assert r.ok is False
        assert r.callbacks[0].kind is CallbackKind.COUNTEREXAMPLE


class TestShrinking:

    def test_root_and_children(self):
        node = reduce_case(shrinking(shrink_int, 8, lambda n: n < 3))
        assert node.root().ok is False
        assert [r.ok for r in child_results(node)] == [True, False, False, False]

    def test_candidate_equal_to_parent_dropped(self):
        seen = []

        def prop(n):
            seen.append(n)
            return False

        node = reduce_case(shrinking(lambda n: [n, n - 1] if n > 0 else [], 2, prop))
        assert len(node.children()) == 1
