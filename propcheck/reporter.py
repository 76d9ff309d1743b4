"""
propcheck.reporter
==================

Human-readable rendering of a run.

The test loop calls into a :class:`TextReporter` at each terminal event;
the reporter turns the checker state into the familiar lines::

    *** Passed 100 tests (23% small).
    *** Failed! Proposition: reverse is involutive
    Falsifiable (after 4 tests and 3 shrinks):
    [0, 1]
    Replay with 1958234 128475 and size 3

Counterexample callbacks write through :meth:`TextReporter.write` so their
lines land between the reason line and the replay hint.  A silent reporter
writes nothing at all.
"""

from __future__ import annotations

import sys
from collections import Counter
from typing import TYPE_CHECKING, List, Optional, TextIO

from .config import format_replay
from .random_gen import StdGen

if TYPE_CHECKING:
    from .checker import CheckerState
    from .property import TestResult


def pluralize(word: str, n: int) -> str:
    return word if n == 1 else word + "s"


def _percent(n: int) -> str:
    return f"{n:>2}%"


class TextReporter:
    """Writes run reports to a text stream (``sys.stdout`` by default)."""

    def __init__(self, stream: Optional[TextIO] = None, silent: bool = False) -> None:
        self._stream = stream
        self.silent = silent

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdout

    def write(self, text: str = "", end: str = "\n") -> None:
        if self.silent:
            return
        self.stream.write(text + end)
        self.stream.flush()

    # ------------------------------------------------------------------
    # Distribution
    # ------------------------------------------------------------------

    def distribution(self, state: "CheckerState") -> List[str]:
        """Unmet coverage lines followed by the label table, largest first."""
        covers = [
            f"only {state.label_percentage(label)}% {label}, not {required}%"
            for label, required in sorted(state.labels.items())
            if state.label_percentage(label) < required
        ]

        plain = {label for label, required in state.labels.items() if required == 0}
        combos = Counter(
            ", ".join(sorted(stamp & plain)) for stamp in state.collected
        )
        combos.pop("", None)
        successes = max(state.successes, 1)
        table = sorted(
            (
                (count * 100 // successes, combo)
                for combo, count in combos.items()
            ),
            key=lambda entry: (-entry[0], entry[1]),
        )
        return covers + [f"{_percent(pct)} {combo}" for pct, combo in table]

    def _finish(self, header: str, state: "CheckerState") -> None:
        lines = self.distribution(state)
        if not lines:
            self.write(header + ".")
        elif len(lines) == 1:
            self.write(f"{header} ({lines[0].strip()}).")
        else:
            self.write(header + ":")
            for line in lines:
                self.write(line)

    # ------------------------------------------------------------------
    # Terminal events
    # ------------------------------------------------------------------

    def passed(self, state: "CheckerState") -> None:
        n = state.successes
        self._finish(f"*** Passed {n} {pluralize('test', n)}", state)

    def witness_found(self, state: "CheckerState") -> None:
        n = state.successes + state.discards + 1
        self.write(f"*** Passed: found a witness after {n} {pluralize('test', n)}.")

    def gave_up(self, state: "CheckerState") -> None:
        n = state.successes
        self._finish(
            f"*** Gave up! Passed only {n} {pluralize('test', n)}, "
            f"{state.discards} discarded",
            state,
        )

    def insufficient_coverage(self, state: "CheckerState", expected_failure: bool = False) -> None:
        if expected_failure:
            self.write("+++ OK, failed as expected. ", end="")
        n = state.successes
        self._finish(f"*** Insufficient coverage after {n} {pluralize('test', n)}", state)

    def no_expected_failure(self, state: "CheckerState") -> None:
        n = state.successes
        self._finish(
            f"*** Failed! Passed {n} {pluralize('test', n)} (expected failure)", state
        )

    def failure_header(self, state: "CheckerState", expected: bool) -> None:
        prefix = "*** Failed! " if expected else "+++ OK, failed as expected. "
        self.write(prefix + (f"Proposition: {state.name}" if state.name else ""))

    def minimum_case(self, state: "CheckerState", result: "TestResult", num_shrinks: int) -> None:
        n = state.successes + 1
        after = f"after {n} {pluralize('test', n)}"
        if num_shrinks > 0:
            after += f" and {num_shrinks} {pluralize('shrink', num_shrinks)}"
        self.write(f"{result.reason} ({after}):")

    def existential_failure(self, state: "CheckerState", reason: str) -> None:
        n = state.discards
        self.failure_header(state, expected=True)
        self.write(f"{reason} (after {n} {pluralize('test', n)}):")

    def replay_hint(self, seed: StdGen, size: int) -> None:
        self.write(format_replay(seed, size))
