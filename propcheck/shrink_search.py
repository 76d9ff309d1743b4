"""
propcheck.shrink_search
=======================

Greedy search for a minimal failing test case.

Starting from a failing root, the candidates are scanned in order and the
first one that still fails becomes the new current case; its own candidates
replace the list and the scan restarts.  The search ends at a local minimum
(a full scan finds no failing candidate) or when there are no candidates
left.  It runs in a single loop, holding only the current candidate list,
so memory stays flat however deep the descent goes.

A root failure that carries an exception marker is reported as-is: an
exception path is not a reliable guide for shrinking.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Tuple

from .property import (
    SETUP_ERRORS,
    CallbackTiming,
    TestResult,
    exception_result,
    run_callbacks,
)
from .rose import Rose, RoseValue

if TYPE_CHECKING:
    from .checker import CheckerState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ShrinkOutcome:
    """Counters and the minimal failing result of one shrink search.

    ``num_shrinks`` counts successful descents, ``failed_attempts`` every
    candidate that did not fail, and ``trailing_attempts`` the candidates
    tried since the last successful descent.
    """

    num_shrinks: int
    failed_attempts: int
    trailing_attempts: int
    result: TestResult


def find_minimal_failing_test_case(
    state: "CheckerState",
    result: TestResult,
    branches: List[Rose[TestResult]],
) -> ShrinkOutcome:
    if result.exception is not None:
        logger.debug("not shrinking a failure raised by an exception")
        return ShrinkOutcome(0, 0, 0, result)

    current = result
    num_shrinks = 0
    failed_attempts = 0
    trailing = 0

    while branches:
        if state.max_shrinks is not None and num_shrinks >= state.max_shrinks:
            logger.debug("shrink limit of %d steps reached", state.max_shrinks)
            break

        trailing = 0
        for branch in branches:
            candidate, node = _force(branch)
            run_callbacks(state, candidate, CallbackTiming.AFTER_TEST)
            if candidate.ok is False:
                current = candidate
                branches = expand_children(node)
                num_shrinks += 1
                logger.debug("shrink step %d: %s", num_shrinks, candidate.reason)
                break
            trailing += 1
            failed_attempts += 1
        else:
            break

    return ShrinkOutcome(num_shrinks, failed_attempts, trailing, current)


def _force(branch: Rose[TestResult]) -> Tuple[TestResult, Optional[RoseValue[TestResult]]]:
    """Evaluate one candidate; an exception makes it a childless failure."""
    try:
        node = branch.reduce()
        return node.root(), node
    except SETUP_ERRORS:
        raise
    except Exception as exc:
        return exception_result(exc), None


def expand_children(node: Optional[RoseValue[TestResult]]) -> List[Rose[TestResult]]:
    if node is None:
        return []
    try:
        return list(node.children())
    except SETUP_ERRORS:
        raise
    except Exception:
        logger.debug("computing shrink candidates raised; stopping here", exc_info=True)
        return []
