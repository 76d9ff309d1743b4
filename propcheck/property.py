"""
propcheck.property
==================

Properties and the testable algebra.

Layers
------
``TestResult``
    The outcome of evaluating one test case: pass / fail / discard plus the
    labels, stamp and callbacks that the test loop consumes.
``Prop``
    A ``Rose[TestResult]``: one outcome together with the lazily computed
    outcomes of its shrink candidates.
``Property``
    A ``Gen[Prop]``: how to draw a test case and evaluate it.

Anything that can become a ``Property`` is *testable*: ``bool``,
``TestResult``, :class:`Discard`, ``Prop``, ``Property``, a ``Gen`` of
testables, and any object with a ``to_property()`` method.
:func:`as_property` performs the conversion.

Evaluation order
----------------
All effects (user predicates, callbacks, exception protection) run while
the test loop forces the rose tree, never while the tree is being built.
The conjunction combinator in particular evaluates its conjuncts one by one
inside a single suspended node, stopping at the first failure.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import Enum, auto
from functools import reduce
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Dict,
    FrozenSet,
    List,
    Optional,
    Protocol,
    Sequence,
    Tuple,
    TypeVar,
    Union,
    runtime_checkable,
)

from .errors import (
    ArgumentsError,
    EmptyChoiceError,
    GeneratorConfigError,
    GeneratorExhaustedError,
    NotTestableError,
)
from .gen import Gen, promote, sequence
from .rose import Rose, RoseSuspended, RoseValue, join_rose

if TYPE_CHECKING:
    from .checker import CheckerState

A = TypeVar("A")

CONJUNCTION_EXPECT_FAILURE = "expectFailure may not occur inside a conjunction"
DISJUNCTION_EXPECT_FAILURE = "expectFailure may not occur inside a disjunction"

# Errors in test *setup* are never turned into property failures.
SETUP_ERRORS: Tuple[type, ...] = (GeneratorConfigError, ArgumentsError)


# ═══════════════════════════════════════════════════════════════════════════════
# RESULTS AND CALLBACKS
# ═══════════════════════════════════════════════════════════════════════════════

class Quantification(Enum):
    UNIVERSAL = auto()
    EXISTENTIAL = auto()


class CallbackTiming(Enum):
    AFTER_TEST = auto()           # after every evaluated test case
    AFTER_FINAL_FAILURE = auto()  # once, on the minimal counterexample


class CallbackKind(Enum):
    COUNTEREXAMPLE = auto()
    NOT_COUNTEREXAMPLE = auto()


@dataclass(frozen=True)
class Callback:
    """A side effect the test loop runs with ``(state, result)``."""

    timing: CallbackTiming
    kind: CallbackKind
    fn: Callable[["CheckerState", "TestResult"], None]

    def __call__(self, state: "CheckerState", result: "TestResult") -> None:
        self.fn(state, result)


@dataclass(frozen=True)
class TestResult:
    """The outcome of one test case.

    ``ok`` is ``True`` for a pass, ``False`` for a failure and ``None`` for
    a discard.  ``labels`` maps each label to the coverage percentage it
    requires (0 for plain labels); ``stamp`` is the set of labels this case
    was classified under.
    """

    __test__ = False  # not a pytest test class

    ok: Optional[bool]
    expect: bool = True
    reason: str = ""
    exception: Optional[str] = None
    labels: Dict[str, int] = field(default_factory=dict)
    stamp: FrozenSet[str] = frozenset()
    callbacks: Tuple[Callback, ...] = ()
    abort: bool = False
    quantifier: Quantification = Quantification.UNIVERSAL

    @classmethod
    def succeeded(cls) -> "TestResult":
        return cls(ok=True)

    @classmethod
    def failed(cls, reason: str = "") -> "TestResult":
        return cls(ok=False, reason=reason)

    @classmethod
    def rejected(cls) -> "TestResult":
        return cls(ok=None)

    @classmethod
    def lift_bool(cls, value: bool) -> "TestResult":
        return cls.succeeded() if value else cls.failed("Falsifiable")

    @property
    def is_success(self) -> bool:
        return self.ok is True

    @property
    def is_failure(self) -> bool:
        return self.ok is False

    @property
    def is_discard(self) -> bool:
        return self.ok is None

    def replace(self, **changes: Any) -> "TestResult":
        return dataclasses.replace(self, **changes)


def describe_exception(exc: BaseException) -> str:
    text = str(exc)
    return f"{type(exc).__name__}: {text}" if text else type(exc).__name__


def exception_result(exc: BaseException, reason: Optional[str] = None) -> TestResult:
    """Convert an exception raised by user code into a test outcome.

    A generator that ran out of attempts means the case does not apply, so
    it becomes a discard.  Anything else is a failure carrying the
    exception marker, which disables shrinking.
    """
    if isinstance(exc, GeneratorExhaustedError):
        return TestResult.rejected()
    description = describe_exception(exc)
    return TestResult(
        ok=False,
        reason=description if reason is None else reason,
        exception=description,
    )


# ═══════════════════════════════════════════════════════════════════════════════
# PROP / PROPERTY
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Prop:
    """A tree of test outcomes."""

    rose: Rose[TestResult]

    def to_property(self) -> "Property":
        return Property(Gen.pure(self))


@runtime_checkable
class Testable(Protocol):
    def to_property(self) -> "Property":
        ...


class Discard:
    """A testable that always discards the current case."""

    def to_property(self) -> "Property":
        return Property.from_result(TestResult.rejected())

    def __repr__(self) -> str:
        return "Discard()"


class Property:
    """A generator of test outcome trees, with the labelling and
    callback combinators as methods."""

    __slots__ = ("gen",)

    def __init__(self, gen: Gen[Prop]) -> None:
        self.gen = gen

    @staticmethod
    def from_result(result: TestResult) -> "Property":
        return Property(Gen.pure(Prop(Rose.pure(result))))

    def to_property(self) -> "Property":
        return self

    def __repr__(self) -> str:
        return f"Property({self.gen!r})"

    # ------------------------------------------------------------------
    # Mapping
    # ------------------------------------------------------------------

    def map_prop(self, f: Callable[[Prop], Prop]) -> "Property":
        return Property(self.gen.map(f))

    def map_size(self, f: Callable[[int], int]) -> "Property":
        gen = self.gen
        return Property(Gen.sized(lambda n: gen.resize(f(n))))

    def map_rose_result(
        self, f: Callable[[Rose[TestResult]], Rose[TestResult]]
    ) -> "Property":
        return self.map_prop(lambda prop: Prop(f(prop.rose)))

    def map_result(self, f: Callable[[TestResult], TestResult]) -> "Property":
        return self.map_rose_result(lambda rose: rose.map(f))

    def map_total_result(self, f: Callable[[TestResult], TestResult]) -> "Property":
        """Like :meth:`map_result`, but exceptions raised while evaluating
        any node become failed results."""
        return self.map_rose_result(lambda rose: protect_results(rose.map(f)))

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------

    def invert(self) -> "Property":
        """Swap pass and fail.

        Discards stay discards, and a failure caused by an exception stays
        a failure.
        """
        return self.map_result(
            lambda r: r if r.ok is None or r.exception is not None
            else r.replace(ok=not r.ok)
        )

    def once(self) -> "Property":
        """Stop the run after this test case."""
        return self.map_result(lambda r: r.replace(abort=True))

    def again(self) -> "Property":
        return self.map_result(lambda r: r.replace(abort=False))

    def no_shrinking(self) -> "Property":
        return self.map_rose_result(
            lambda rose: rose.on_rose(lambda result, _children: Rose.pure(result))
        )

    def expect_failure(self) -> "Property":
        """Succeed only if some test case fails."""
        return self.map_total_result(lambda r: r.replace(expect=False))

    # ------------------------------------------------------------------
    # Callbacks
    # ------------------------------------------------------------------

    def with_callback(self, callback: Callback) -> "Property":
        return self.map_result(
            lambda r: r.replace(callbacks=(callback,) + r.callbacks)
        )

    def counterexample(self, text: str) -> "Property":
        """Print *text* under the report of the minimal failing case."""
        return self.with_callback(
            Callback(
                CallbackTiming.AFTER_FINAL_FAILURE,
                CallbackKind.COUNTEREXAMPLE,
                lambda state, _result: state.reporter.write(text),
            )
        )

    def when_fail(self, action: Callable[[], None]) -> "Property":
        """Run *action* once, after the final failure."""
        return self.with_callback(
            Callback(
                CallbackTiming.AFTER_FINAL_FAILURE,
                CallbackKind.NOT_COUNTEREXAMPLE,
                lambda _state, _result: action(),
            )
        )

    def when_each_fail(self, action: Callable[[], None]) -> "Property":
        """Run *action* after every failing test case, shrinks included."""

        def _fire(_state: "CheckerState", result: TestResult) -> None:
            if result.ok is False:
                action()

        return self.with_callback(
            Callback(CallbackTiming.AFTER_TEST, CallbackKind.NOT_COUNTEREXAMPLE, _fire)
        )

    def verbose(self) -> "Property":
        """Report every test case, and show counterexamples as they occur."""
        return self.map_result(lambda r: r.replace(callbacks=_chatty(r.callbacks)))

    # ------------------------------------------------------------------
    # Labelling
    # ------------------------------------------------------------------

    def label(self, name: str) -> "Property":
        return self.classify(True, name)

    def collect(self, value: Any) -> "Property":
        return self.label(str(value))

    def classify(self, condition: bool, name: str) -> "Property":
        return self.cover(condition, 0, name)

    def cover(self, condition: bool, percentage: int, name: str) -> "Property":
        """When *condition* holds, stamp the case with *name* and require
        that at least *percentage* percent of passing cases carry it."""
        if not condition:
            return self

        def _stamp(r: TestResult) -> TestResult:
            labels = dict(r.labels)
            labels[name] = max(labels.get(name, percentage), percentage)
            return r.replace(labels=labels, stamp=r.stamp | {name})

        return self.map_result(_stamp)


# ═══════════════════════════════════════════════════════════════════════════════
# CONVERSION
# ═══════════════════════════════════════════════════════════════════════════════

TestableLike = Union[Property, Prop, TestResult, Discard, bool, Gen[Any], Testable]


def as_property(value: Any) -> Property:
    """Convert any testable value into a :class:`Property`."""
    if isinstance(value, Property):
        return value
    if isinstance(value, bool):
        return Property.from_result(TestResult.lift_bool(value))
    if isinstance(value, TestResult):
        return Property.from_result(value)
    if value is Discard:
        return Discard().to_property()
    if isinstance(value, Gen):
        return Property(value.flat_map(lambda inner: as_property(inner).gen))
    if isinstance(value, Testable):
        return value.to_property()
    raise NotTestableError(value)


def protect_results(rose: Rose[TestResult]) -> Rose[TestResult]:
    """Guard every node so exceptions become failed results."""
    if isinstance(rose, RoseSuspended):
        force = rose.force
        return RoseSuspended(lambda: protect_results(_protect_rose(force)))

    assert isinstance(rose, RoseValue)
    children = rose.children
    return RoseValue(
        lambda: _protect(rose.root),
        lambda: [protect_results(child) for child in children()],
    )


def _protect(thunk: Callable[[], TestResult]) -> TestResult:
    try:
        return thunk()
    except SETUP_ERRORS:
        raise
    except Exception as exc:
        return exception_result(exc)


def _protect_rose(action: Callable[[], Rose[TestResult]]) -> Rose[TestResult]:
    try:
        return action()
    except SETUP_ERRORS:
        raise
    except Exception as exc:
        return Rose.pure(exception_result(exc))


# ═══════════════════════════════════════════════════════════════════════════════
# COMBINATORS
# ═══════════════════════════════════════════════════════════════════════════════

def _roses(testables: Sequence[Any]) -> Gen[List[Rose[TestResult]]]:
    return sequence([as_property(t).gen.map(lambda p: p.rose) for t in testables])


def conjoin(*testables: Any) -> Property:
    """Pass only if every testable passes.

    Conjuncts are evaluated in order and evaluation stops at the first
    failure, which then carries the labels, stamp and callbacks of the
    conjuncts that passed before it.  A discard makes the whole conjunction
    a discard unless a later conjunct fails.
    """
    return Property(
        _roses(testables).map(lambda roses: Prop(_conjunction(roses)))
    ).again()


def _conjunction(roses: List[Rose[TestResult]]) -> Rose[TestResult]:
    def _evaluate() -> Rose[TestResult]:
        labels: Dict[str, int] = {}
        stamp: FrozenSet[str] = frozenset()
        callbacks: Tuple[Callback, ...] = ()
        discarded = False

        for rose in roses:
            node = rose.reduce()
            result = node.root()
            if not result.expect:
                return Rose.pure(TestResult.failed(CONJUNCTION_EXPECT_FAILURE))
            if result.ok is False:
                return node.map(_with_prior(labels, stamp, callbacks))
            callbacks = callbacks + result.callbacks
            if result.ok is None:
                discarded = True
                continue
            labels = union_max(labels, result.labels)
            stamp = stamp | result.stamp

        if discarded:
            return Rose.pure(TestResult.rejected())
        return Rose.pure(
            TestResult(ok=True, labels=labels, stamp=stamp, callbacks=callbacks)
        )

    return RoseSuspended(_evaluate)


def _with_prior(
    labels: Dict[str, int],
    stamp: FrozenSet[str],
    callbacks: Tuple[Callback, ...],
) -> Callable[[TestResult], TestResult]:
    def _merge(r: TestResult) -> TestResult:
        return r.replace(
            labels=union_max(labels, r.labels),
            stamp=stamp | r.stamp,
            callbacks=callbacks + r.callbacks,
        )

    return _merge


def disjoin(*testables: Any) -> Property:
    """Pass if any testable passes.

    When all fail, the result's reason joins the individual reasons with
    ``", "`` and carries the first exception marker found.  An empty
    disjunction fails.
    """

    def _combine(roses: List[Rose[TestResult]]) -> Prop:
        if not roses:
            return Prop(Rose.pure(TestResult.failed()))
        first = roses[0].flat_map(
            lambda r: Rose.pure(
                r if r.expect else TestResult.failed(DISJUNCTION_EXPECT_FAILURE)
            )
        )
        return Prop(reduce(_disjunction, roses[1:], first))

    return Property(_roses(testables).map(_combine)).again()


def _disjunction(p: Rose[TestResult], q: Rose[TestResult]) -> Rose[TestResult]:
    def _left(r1: TestResult) -> Rose[TestResult]:
        if not r1.expect:
            return Rose.pure(TestResult.failed(DISJUNCTION_EXPECT_FAILURE))
        if r1.ok is True:
            return Rose.pure(r1)

        def _right(r2: TestResult) -> Rose[TestResult]:
            if not r2.expect:
                return Rose.pure(TestResult.failed(DISJUNCTION_EXPECT_FAILURE))
            if r2.ok is True:
                return Rose.pure(r2)
            if r1.ok is None:
                return Rose.pure(r1)
            if r2.ok is None:
                return Rose.pure(r2)
            return Rose.pure(
                TestResult(
                    ok=False,
                    reason=", ".join([r1.reason, r2.reason]),
                    exception=r1.exception if r1.exception is not None else r2.exception,
                    callbacks=r1.callbacks + r2.callbacks,
                )
            )

        return q.flat_map(_right)

    return p.flat_map(_left)


def conjamb(*thunks: Callable[[], Any]) -> Property:
    """Pick one of the properties at random; only the chosen one is built."""
    if not thunks:
        raise EmptyChoiceError("conjamb")
    choices = tuple(thunks)
    gen = Gen.choose((0, len(choices) - 1)).flat_map(
        lambda i: as_property(choices[i]()).gen
    )
    return Property(gen).again()


def implies(condition: bool, testable: Any) -> Property:
    """*testable* when *condition* holds, a discard otherwise.

    *testable* may be a zero-argument callable, in which case it is only
    called when *condition* holds.
    """
    if not condition:
        return Property.from_result(TestResult.rejected())
    if callable(testable) and not isinstance(testable, (Property, Gen, type)):
        testable = testable()
    return as_property(testable)


def equals(lhs: Any, rhs: Any) -> Property:
    same = lhs == rhs
    relation = "==" if same else "!="
    return as_property(bool(same)).counterexample(f"{lhs!r} {relation} {rhs!r}")


def shrinking(
    shrinker: Callable[[A], Sequence[A]],
    initial: A,
    prop_fn: Callable[[A], Any],
) -> Property:
    """Test *initial* and, lazily, every candidate *shrinker* derives from it.

    Candidates equal to the value they were shrunk from are dropped, so the
    shrink search can never revisit a value.
    """

    def _tree(value: A) -> Rose[Gen[Prop]]:
        return RoseValue(
            lambda: as_property(prop_fn(value)).gen,
            lambda: [
                _tree(candidate)
                for candidate in shrinker(value)
                if not _same(candidate, value)
            ],
        )

    return Property(
        promote(_tree(initial)).map(
            lambda rose: Prop(join_rose(rose.map(lambda prop: prop.rose)))
        )
    )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def union_max(left: Dict[str, int], right: Dict[str, int]) -> Dict[str, int]:
    merged = dict(left)
    for key, value in right.items():
        merged[key] = max(merged[key], value) if key in merged else value
    return merged


def _same(a: Any, b: Any) -> bool:
    try:
        return bool(a == b)
    except (TypeError, ValueError):
        return False


def format_labels(result: TestResult) -> str:
    if not result.labels:
        return "(.)"
    return "(" + ", ".join(sorted(result.labels)) + ")"


def _chatty(callbacks: Tuple[Callback, ...]) -> Tuple[Callback, ...]:
    def _report(state: "CheckerState", result: TestResult) -> None:
        if result.ok is True:
            state.reporter.write("Passed: " + format_labels(result))
        elif result.ok is False:
            state.reporter.write("Failed: " + format_labels(result))
            state.reporter.write(
                f"Pass the seed values {state.rng} to replay the test."
            )
        else:
            state.reporter.write("Discarded: " + format_labels(result))

    promoted = tuple(
        dataclasses.replace(c, timing=CallbackTiming.AFTER_TEST)
        if c.timing is CallbackTiming.AFTER_FINAL_FAILURE
        and c.kind is CallbackKind.COUNTEREXAMPLE
        else c
        for c in callbacks
    )
    return (
        Callback(CallbackTiming.AFTER_TEST, CallbackKind.COUNTEREXAMPLE, _report),
    ) + promoted


def run_callbacks(
    state: "CheckerState", result: TestResult, timing: CallbackTiming
) -> None:
    """Fire *result*'s callbacks registered for *timing* (unless silenced)."""
    if state.silence:
        return
    for callback in result.callbacks:
        if callback.timing is timing:
            callback(state, result)
