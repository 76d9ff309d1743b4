"""
propcheck.checker
=================

The test loop.

:func:`run_property` draws test cases of growing size, evaluates them, and
stops on the first of:

* the success budget is spent (``Success``, subject to coverage and
  expected-failure checks),
* a test case asked to stop (``once``),
* the discard budget is spent (``GaveUp``),
* a test case failed (shrink, then ``Failure``).

Each iteration replaces the immutable :class:`CheckerState`; nothing is
mutated in place.  The loop is the single place where exceptions from user
code are caught and converted into failed test results.

Every :class:`Result` carries a ``(seed, size)`` pair.  For a failure it is
the random state and size of the failing test, so feeding it back through
``Arguments(replay=...)`` reproduces the failure as the first test case.
For the other outcomes it is the pair the run started from, which replays
the whole run.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, FrozenSet, Optional, Tuple, Union

from .config import Arguments
from .gen import Gen
from .property import (
    SETUP_ERRORS,
    CallbackTiming,
    Prop,
    Quantification,
    TestResult,
    as_property,
    exception_result,
    run_callbacks,
    union_max,
)
from .random_gen import StdGen, new_std_gen
from .reporter import TextReporter
from .rose import RoseValue
from .shrink_search import expand_children, find_minimal_failing_test_case

logger = logging.getLogger(__name__)

EXISTENTIAL_FAILURE_REASON = "Could not satisfy existential"


# ═══════════════════════════════════════════════════════════════════════════════
# RESULTS
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Result:
    """Outcome of a whole run."""

    num_tests: int
    seed: StdGen
    size: int
    labels: Dict[str, int] = field(default_factory=dict)
    num_discarded: int = 0

    is_pass: ClassVar[bool] = False

    @property
    def replay(self) -> Tuple[StdGen, int]:
        return self.seed, self.size

    @property
    def passed(self) -> bool:
        return self.is_pass


@dataclass(frozen=True)
class Success(Result):
    is_pass: ClassVar[bool] = True


@dataclass(frozen=True)
class GaveUp(Result):
    pass


@dataclass(frozen=True)
class Failure(Result):
    num_shrinks: int = 0
    reason: str = ""
    result: Optional[TestResult] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class ExistentialFailure(Result):
    reason: str = EXISTENTIAL_FAILURE_REASON
    result: Optional[TestResult] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class NoExpectedFailure(Result):
    pass


@dataclass(frozen=True)
class InsufficientCoverage(Result):
    pass


# ═══════════════════════════════════════════════════════════════════════════════
# STATE
# ═══════════════════════════════════════════════════════════════════════════════

def compute_size(
    successes: int, discards: int, max_success: int, max_size: int
) -> int:
    """Size for the next test: ramps to ``max_size`` over the success
    budget and is nudged up by one for every ten discards."""
    m = max_size
    if (
        (successes // m) * m + m <= max_success
        or successes >= max_success
        or max_success % m == 0
    ):
        return min(successes % m + discards // 10, m)
    return min((successes % m) * m // (max_success % m) + discards // 10, m)


@dataclass(frozen=True)
class CheckerState:
    name: str
    max_success: int
    max_discard: int
    max_size: int
    rng: StdGen
    reporter: TextReporter
    replay_size: Optional[int] = None
    max_shrinks: Optional[int] = None
    successes: int = 0
    discards: int = 0
    labels: Dict[str, int] = field(default_factory=dict)
    collected: Tuple[FrozenSet[str], ...] = ()
    has_fulfilled_expected_failure: bool = False
    successful_shrinks: int = 0
    failed_shrink_steps: int = 0
    shrink_distance: int = 0
    should_abort: bool = False
    quantifier: Quantification = Quantification.UNIVERSAL
    silence: bool = False

    @classmethod
    def initial(
        cls,
        arguments: Arguments,
        reporter: Optional[TextReporter] = None,
    ) -> "CheckerState":
        seed, replay_size = (
            arguments.replay if arguments.replay is not None else (new_std_gen(), None)
        )
        return cls(
            name=arguments.name,
            max_success=arguments.max_success,
            max_discard=arguments.max_discard,
            max_size=arguments.max_size,
            rng=seed,
            reporter=reporter or TextReporter(silent=arguments.silence),
            replay_size=replay_size,
            max_shrinks=arguments.max_shrinks,
            silence=arguments.silence,
        )

    def replace(self, **changes: Any) -> "CheckerState":
        return dataclasses.replace(self, **changes)

    def size(self) -> int:
        """Size of the next test case; a replay size applies to the first only."""
        if self.replay_size is not None and self.successes == 0 and self.discards == 0:
            return self.replay_size
        return compute_size(self.successes, self.discards, self.max_success, self.max_size)

    def label_percentage(self, label: str) -> int:
        """Share of passing test cases stamped with *label*, in percent."""
        if self.successes == 0:
            return 0
        occurrences = sum(1 for stamp in self.collected if label in stamp)
        return occurrences * 100 // self.successes

    def insufficient_coverage(self) -> bool:
        return any(
            self.label_percentage(label) < required
            for label, required in self.labels.items()
        )

    def summary(self) -> Dict[str, int]:
        return {label: self.label_percentage(label) for label in sorted(self.labels)}


# ═══════════════════════════════════════════════════════════════════════════════
# LOOP
# ═══════════════════════════════════════════════════════════════════════════════

def run_property(
    testable: Any,
    arguments: Optional[Arguments] = None,
    reporter: Optional[TextReporter] = None,
) -> Result:
    """Check *testable* under *arguments* and return the outcome."""
    args = arguments if arguments is not None else Arguments()
    gen = as_property(testable).gen
    state = CheckerState.initial(args, reporter)
    start = (state.rng, state.size())
    logger.info(
        "checking %s (seed %s, %d tests)",
        state.name or "<unnamed>", state.rng, state.max_success,
    )

    while True:
        step = _run_one(state, gen, start)
        if isinstance(step, Result):
            logger.info("%s: %s", state.name or "<unnamed>", type(step).__name__)
            return step
        state = step
        if state.successes >= state.max_success or state.should_abort:
            result = _done(state, start)
            logger.info("%s: %s", state.name or "<unnamed>", type(result).__name__)
            return result
        if state.discards and state.discards >= state.max_discard:
            state.reporter.gave_up(state)
            logger.info("%s: gave up after %d discards", state.name or "<unnamed>", state.discards)
            return GaveUp(
                num_tests=state.successes,
                seed=start[0],
                size=start[1],
                labels=state.summary(),
                num_discarded=state.discards,
            )


def quick_check(
    testable: Any,
    name: str = "",
    arguments: Optional[Arguments] = None,
    **overrides: Any,
) -> Result:
    """Run *testable* with arguments taken from the environment.

    Keyword *overrides* (``max_success=...`` and so on) win over the
    ``PROPCHECK_*`` variables.
    """
    if arguments is None:
        arguments = Arguments.from_environ(name=name, **overrides)
    elif name or overrides:
        arguments = arguments.replace(**({"name": name} if name else {}), **overrides)
    return run_property(testable, arguments)


def _evaluate(
    gen: Gen[Prop], rng: StdGen, size: int
) -> Tuple[TestResult, Optional[RoseValue[TestResult]]]:
    try:
        node = gen.run(rng, size).rose.reduce()
        return node.root(), node
    except SETUP_ERRORS:
        raise
    except Exception as exc:
        logger.debug("test case raised %r", exc)
        return exception_result(exc), None


def _run_one(
    state: CheckerState, gen: Gen[Prop], start: Tuple[StdGen, int]
) -> Union[CheckerState, Result]:
    size = state.size()
    this_run, carried = state.rng.split()
    result, node = _evaluate(gen, this_run, size)
    run_callbacks(state, result, CallbackTiming.AFTER_TEST)
    logger.debug("test %d at size %d: ok=%s", state.successes + state.discards + 1, size, result.ok)

    if result.ok is True:
        if result.quantifier is Quantification.EXISTENTIAL:
            state.reporter.witness_found(state)
            return Success(
                num_tests=state.successes + 1,
                seed=start[0],
                size=start[1],
                labels=state.summary(),
                num_discarded=state.discards,
            )
        return state.replace(
            successes=state.successes + 1,
            labels=union_max(state.labels, result.labels),
            collected=state.collected + (result.stamp,),
            has_fulfilled_expected_failure=result.expect,
            rng=carried,
            should_abort=result.abort,
            quantifier=result.quantifier,
        )

    if result.ok is None:
        return state.replace(
            discards=state.discards + 1,
            labels=union_max(state.labels, result.labels),
            has_fulfilled_expected_failure=result.expect,
            rng=carried,
            should_abort=result.abort,
            quantifier=result.quantifier,
        )

    if result.quantifier is Quantification.EXISTENTIAL:
        nstate = state.replace(
            discards=state.discards + 1,
            has_fulfilled_expected_failure=result.expect,
            rng=carried,
            should_abort=result.abort,
            quantifier=result.quantifier,
        )
        if nstate.discards < nstate.max_discard:
            return nstate
        nstate.reporter.existential_failure(nstate, EXISTENTIAL_FAILURE_REASON)
        run_callbacks(nstate, result, CallbackTiming.AFTER_FINAL_FAILURE)
        return ExistentialFailure(
            num_tests=state.successes + 1,
            seed=state.rng,
            size=size,
            labels=state.summary(),
            num_discarded=nstate.discards,
            result=result,
        )

    return _fail(state, result, node, size, start)


def _fail(
    state: CheckerState,
    result: TestResult,
    node: Optional[RoseValue[TestResult]],
    size: int,
    start: Tuple[StdGen, int],
) -> Result:
    state.reporter.failure_header(state, expected=result.expect)
    outcome = find_minimal_failing_test_case(state, result, expand_children(node))
    shrunk = state.replace(
        successful_shrinks=outcome.num_shrinks,
        failed_shrink_steps=outcome.failed_attempts - outcome.trailing_attempts,
        shrink_distance=outcome.trailing_attempts,
    )
    minimal = outcome.result
    state.reporter.minimum_case(shrunk, minimal, outcome.num_shrinks)
    run_callbacks(shrunk, minimal, CallbackTiming.AFTER_FINAL_FAILURE)

    if not result.expect:
        return Success(
            num_tests=state.successes + 1,
            seed=start[0],
            size=start[1],
            labels=state.summary(),
            num_discarded=state.discards,
        )

    state.reporter.replay_hint(state.rng, size)
    logger.debug(
        "minimal failure after %d shrinks (%d candidates rejected)",
        outcome.num_shrinks, outcome.failed_attempts,
    )
    return Failure(
        num_tests=state.successes + 1,
        seed=state.rng,
        size=size,
        labels=state.summary(),
        num_discarded=state.discards,
        num_shrinks=outcome.num_shrinks,
        reason=minimal.reason,
        result=minimal,
    )


def _done(state: CheckerState, start: Tuple[StdGen, int]) -> Result:
    common = dict(
        num_tests=state.successes,
        seed=start[0],
        size=start[1],
        labels=state.summary(),
        num_discarded=state.discards,
    )
    if not state.has_fulfilled_expected_failure:
        if state.insufficient_coverage():
            # Unmet coverage is the failure that was expected.
            state.reporter.insufficient_coverage(state, expected_failure=True)
            return Success(**common)
        state.reporter.no_expected_failure(state)
        return NoExpectedFailure(**common)
    if state.insufficient_coverage():
        state.reporter.insufficient_coverage(state)
        return InsufficientCoverage(**common)
    state.reporter.passed(state)
    return Success(**common)
