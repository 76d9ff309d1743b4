# propcheck/errors.py
"""
propcheck Error Types

Structured exceptions for everything that is a *programmer error in test
setup* rather than a property outcome.  Property outcomes (failures,
discards, unmet coverage, unmet expected failures) are never exceptions;
they are ``TestResult`` values and ``Result`` variants.

Hierarchy::

    PropCheckError (base)
    ├── GeneratorConfigError     - empty choice lists, invalid weights
    ├── GeneratorExhaustedError  - such_that ran out of attempts
    ├── ArgumentsError           - invalid run budgets / sizes
    │   └── ReplayFormatError    - malformed replay token
    ├── PropertyTargetError      - CLI target could not be resolved
    └── InternalError            - engine invariant broken (should never happen)

Error codes follow the pattern ``PC-NNNN``:
  - 1000-1999: Generator construction
  - 2000-2999: Configuration
  - 3000-3999: Command line
  - 9000-9999: Internal
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique
from typing import Any, Dict, Optional


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR CLASSIFICATION
# ═══════════════════════════════════════════════════════════════════════════════

@unique
class ErrorPhase(Enum):
    """Where in the pipeline the error was detected."""

    CONSTRUCTION = "construction"   # building generators / properties
    GENERATION = "generation"       # drawing values
    CONFIGURATION = "configuration" # Arguments, environment, replay tokens
    COMMAND_LINE = "command-line"
    INTERNAL = "internal"


@dataclass(frozen=True)
class ErrorCode:
    """A ``PC-NNNN`` error code with its phase."""

    number: int
    phase: ErrorPhase

    @property
    def code(self) -> str:
        return f"PC-{self.number:04d}"

    def __str__(self) -> str:
        return self.code

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ErrorCode):
            return self.number == other.number
        if isinstance(other, str):
            return self.code == other
        return False

    def __hash__(self) -> int:
        return hash(self.number)


class ErrorCodes:
    """Predefined error codes."""

    # Generator construction (1000-1999)
    EMPTY_CHOICE = ErrorCode(1000, ErrorPhase.CONSTRUCTION)
    INVALID_WEIGHT = ErrorCode(1001, ErrorPhase.CONSTRUCTION)
    EMPTY_RANGE = ErrorCode(1002, ErrorPhase.CONSTRUCTION)
    UNSUPPORTED_RANGE_TYPE = ErrorCode(1003, ErrorPhase.CONSTRUCTION)
    NOT_TESTABLE = ErrorCode(1004, ErrorPhase.CONSTRUCTION)
    NOT_ARBITRARY = ErrorCode(1005, ErrorPhase.CONSTRUCTION)
    GENERATOR_EXHAUSTED = ErrorCode(1100, ErrorPhase.GENERATION)

    # Configuration (2000-2999)
    INVALID_ARGUMENT = ErrorCode(2000, ErrorPhase.CONFIGURATION)
    INVALID_REPLAY = ErrorCode(2001, ErrorPhase.CONFIGURATION)
    REPLAY_SEED_RANGE = ErrorCode(2002, ErrorPhase.CONFIGURATION)
    INVALID_ENVIRONMENT = ErrorCode(2003, ErrorPhase.CONFIGURATION)

    # Command line (3000-3999)
    TARGET_NOT_FOUND = ErrorCode(3000, ErrorPhase.COMMAND_LINE)
    TARGET_NOT_TESTABLE = ErrorCode(3001, ErrorPhase.COMMAND_LINE)

    # Internal (9000-9999)
    INTERNAL_ERROR = ErrorCode(9000, ErrorPhase.INTERNAL)
    UNREDUCED_ROSE = ErrorCode(9001, ErrorPhase.INTERNAL)


# ═══════════════════════════════════════════════════════════════════════════════
# EXCEPTIONS
# ═══════════════════════════════════════════════════════════════════════════════

class PropCheckError(Exception):
    """
    Base exception for all propcheck errors.

    Carries a structured :class:`ErrorCode` and an optional hint that the
    CLI prints underneath the message.
    """

    default_code: ErrorCode = ErrorCodes.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        hint: str = "",
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.hint = hint
        self.cause = cause

    def with_hint(self, hint: str) -> "PropCheckError":
        self.hint = hint
        return self

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "code": self.code.code,
            "phase": self.code.phase.value,
            "message": self.message,
        }
        if self.hint:
            out["hint"] = self.hint
        if self.cause is not None:
            out["cause"] = repr(self.cause)
        return out

    def __str__(self) -> str:
        text = f"{self.code}: {self.message}"
        if self.hint:
            text += f"\n  hint: {self.hint}"
        return text


# ───────────────────────────────────────────────────────────────────────────────
# GENERATOR ERRORS
# ───────────────────────────────────────────────────────────────────────────────

class GeneratorConfigError(PropCheckError):
    """A generator was built from an invalid description (fail fast)."""

    default_code = ErrorCodes.EMPTY_CHOICE


class EmptyChoiceError(GeneratorConfigError):
    """``one_of`` / ``frequency`` / ``elements`` given nothing to choose from."""

    def __init__(self, combinator: str, **kwargs: Any) -> None:
        super().__init__(
            f"{combinator} used with an empty list",
            code=ErrorCodes.EMPTY_CHOICE,
            hint="Provide at least one alternative",
            **kwargs,
        )
        self.combinator = combinator


class InvalidWeightError(GeneratorConfigError):
    """``frequency`` given a non-positive or non-integer weight."""

    def __init__(self, weight: Any, position: int, **kwargs: Any) -> None:
        super().__init__(
            f"frequency weight at position {position} must be a positive "
            f"integer, got {weight!r}",
            code=ErrorCodes.INVALID_WEIGHT,
            **kwargs,
        )
        self.weight = weight
        self.position = position


class GeneratorExhaustedError(PropCheckError):
    """``such_that`` could not find a value satisfying its predicate."""

    default_code = ErrorCodes.GENERATOR_EXHAUSTED

    def __init__(self, attempts: int, **kwargs: Any) -> None:
        super().__init__(
            f"such_that gave up after {attempts} rounds without a value "
            f"satisfying the predicate",
            hint="Loosen the predicate or generate satisfying values directly",
            **kwargs,
        )
        self.attempts = attempts


class NotTestableError(GeneratorConfigError):
    """A value that cannot be turned into a property was used as one."""

    def __init__(self, value: Any, **kwargs: Any) -> None:
        super().__init__(
            f"{type(value).__name__} is not testable",
            code=ErrorCodes.NOT_TESTABLE,
            hint="Return a bool, a TestResult, Discard(), a Property or a Gen",
            **kwargs,
        )
        self.value = value


# ───────────────────────────────────────────────────────────────────────────────
# CONFIGURATION ERRORS
# ───────────────────────────────────────────────────────────────────────────────

class ArgumentsError(PropCheckError):
    """Invalid run configuration."""

    default_code = ErrorCodes.INVALID_ARGUMENT


class ReplayFormatError(ArgumentsError):
    """A replay token could not be parsed or names out-of-range seeds."""

    default_code = ErrorCodes.INVALID_REPLAY

    def __init__(self, token: str, message: str = "", **kwargs: Any) -> None:
        super().__init__(
            message or f"cannot parse replay token {token!r}",
            hint='Expected e.g. "1234 5678 37" or "Replay with 1234 5678 and size 37"',
            **kwargs,
        )
        self.token = token


# ───────────────────────────────────────────────────────────────────────────────
# COMMAND LINE / INTERNAL ERRORS
# ───────────────────────────────────────────────────────────────────────────────

class PropertyTargetError(PropCheckError):
    """A ``module:attribute`` target could not be loaded."""

    default_code = ErrorCodes.TARGET_NOT_FOUND


class InternalError(PropCheckError):
    """An engine invariant was violated.  Always a bug in propcheck."""

    default_code = ErrorCodes.INTERNAL_ERROR
