# tests/conftest.py
"""
Shared fixtures and helpers for the propcheck test-suite.

Helpers are plain functions so test modules can import them directly::

    from tests.conftest import FIXED_SEED, evaluate, quiet
"""

from __future__ import annotations

import io
import os
from typing import Any, List, Tuple

import pytest

from propcheck.checker import CheckerState, Result, run_property
from propcheck.config import Arguments
from propcheck.property import TestResult, as_property
from propcheck.random_gen import StdGen
from propcheck.reporter import TextReporter
from propcheck.rose import RoseValue


FIXED_SEED = StdGen(1958234, 128475)


# ---------------------------------------------------------------------------
# Random state helpers
# ---------------------------------------------------------------------------

def rng_stream(n: int, seed: StdGen = FIXED_SEED) -> List[StdGen]:
    """*n* independent generators split off *seed*."""
    out: List[StdGen] = []
    rng = seed
    for _ in range(n):
        here, rng = rng.split()
        out.append(here)
    return out


# ---------------------------------------------------------------------------
# Property evaluation helpers
# ---------------------------------------------------------------------------

def reduce_case(
    testable: Any, rng: StdGen = FIXED_SEED, size: int = 10
) -> RoseValue[TestResult]:
    """Draw one test case and force it to a value node."""
    return as_property(testable).gen.run(rng, size).rose.reduce()


def evaluate(testable: Any, rng: StdGen = FIXED_SEED, size: int = 10) -> TestResult:
    """The outcome of a single test case."""
    return reduce_case(testable, rng, size).root()


def child_results(node: RoseValue[TestResult]) -> List[TestResult]:
    return [child.reduce().root() for child in node.children()]


# ---------------------------------------------------------------------------
# Run helpers
# ---------------------------------------------------------------------------

def quiet(testable: Any, **kwargs: Any) -> Result:
    """Run *testable* with all output suppressed."""
    return run_property(testable, Arguments(silence=True, **kwargs))


def capture(testable: Any, **kwargs: Any) -> Tuple[Result, str]:
    """Run *testable* and return the result with everything it printed."""
    stream = io.StringIO()
    result = run_property(testable, Arguments(**kwargs), TextReporter(stream=stream))
    return result, stream.getvalue()


def make_state(**changes: Any) -> CheckerState:
    """A fresh, silent checker state writing into a ``StringIO``."""
    state = CheckerState.initial(
        Arguments(replay=(FIXED_SEED, 0), silence=True),
        TextReporter(stream=io.StringIO()),
    )
    return state.replace(**changes)


def reporter_output(state: CheckerState) -> str:
    return state.reporter.stream.getvalue()


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def rng() -> StdGen:
    return FIXED_SEED


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every ``PROPCHECK_*`` variable for the duration of a test."""
    for key in list(os.environ):
        if key.startswith("PROPCHECK_"):
            monkeypatch.delenv(key)
    return monkeypatch
