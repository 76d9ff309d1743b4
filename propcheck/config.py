"""
propcheck.config
================

Run configuration.

:class:`Arguments` holds the budgets of one run and an optional replay
pair.  It is validated on construction; every invalid value raises
:class:`~propcheck.errors.ArgumentsError` immediately rather than surfacing
as a property failure later.

Replay tokens
-------------
A failing run reports ``Replay with <seed1> <seed2> and size <n>``.  The
same text, or any of the shorter spellings below, can be fed back through
``--replay`` or ``PROPCHECK_REPLAY``::

    1234 5678 37
    (1234, 5678), 37
    seed=1234,5678 size=37
    Replay with 1234 5678 and size 37

Tokens are parsed with a small parsimonious PEG grammar.

Environment
-----------
``Arguments.from_environ`` reads ``PROPCHECK_REPLAY``,
``PROPCHECK_MAX_SUCCESS``, ``PROPCHECK_MAX_DISCARD``, ``PROPCHECK_MAX_SIZE``
and ``PROPCHECK_SILENT``.
"""

from __future__ import annotations

import dataclasses
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from parsimonious.exceptions import ParseError, VisitationError
from parsimonious.grammar import Grammar
from parsimonious.nodes import Node, NodeVisitor

from .errors import ArgumentsError, ErrorCodes, ReplayFormatError
from .random_gen import SEED1_RANGE, SEED2_RANGE, StdGen

logger = logging.getLogger(__name__)

ENV_REPLAY = "PROPCHECK_REPLAY"
ENV_MAX_SUCCESS = "PROPCHECK_MAX_SUCCESS"
ENV_MAX_DISCARD = "PROPCHECK_MAX_DISCARD"
ENV_MAX_SIZE = "PROPCHECK_MAX_SIZE"
ENV_SILENT = "PROPCHECK_SILENT"

_TRUE_WORDS = frozenset({"1", "true", "yes", "on"})
_FALSE_WORDS = frozenset({"", "0", "false", "no", "off"})


# ═══════════════════════════════════════════════════════════════════
#  REPLAY TOKEN GRAMMAR
# ═══════════════════════════════════════════════════════════════════

REPLAY_GRAMMAR = Grammar(r'''
    token       = _ (reported / keyed / paired / bare) _

    reported    = "Replay with" __ int __ int __ "and" __ "size" __ int
    keyed       = "seed" _ "=" _ int seed_sep int __ "size" _ "=" _ int
    paired      = "(" _ int _ "," _ int _ ")" _ ","? _ int
    bare        = int __ int __ int

    seed_sep    = ~r"\s*,\s*" / __
    int         = ~r"-?[0-9]+"
    __          = ~r"\s+"
    _           = ~r"\s*"
''')


class _ReplayVisitor(NodeVisitor):
    """Collects the integers of a replay token in order."""

    def visit_int(self, node: Node, visited_children: List[Any]) -> int:
        return int(node.text)

    def generic_visit(self, node: Node, visited_children: List[Any]) -> List[int]:
        out: List[int] = []
        for child in visited_children:
            if isinstance(child, list):
                out.extend(child)
            elif isinstance(child, int):
                out.append(child)
        return out


def parse_replay(token: str) -> Tuple[StdGen, int]:
    """Parse a replay token into ``(seed, size)``."""
    try:
        tree = REPLAY_GRAMMAR.parse(token)
        seed1, seed2, size = _ReplayVisitor().visit(tree)
    except (ParseError, VisitationError) as exc:
        raise ReplayFormatError(token, cause=exc) from exc

    lo1, hi1 = SEED1_RANGE
    lo2, hi2 = SEED2_RANGE
    if not (lo1 <= seed1 <= hi1 and lo2 <= seed2 <= hi2):
        raise ReplayFormatError(
            token,
            f"replay seeds ({seed1}, {seed2}) out of range; expected "
            f"[{lo1}, {hi1}] and [{lo2}, {hi2}]",
            code=ErrorCodes.REPLAY_SEED_RANGE,
        )
    if size < 0:
        raise ReplayFormatError(token, f"replay size must be non-negative, got {size}")
    return StdGen(seed1, seed2), size


def format_replay(seed: StdGen, size: int) -> str:
    """The replay hint printed under a failure; accepted by :func:`parse_replay`."""
    return f"Replay with {seed} and size {size}"


# ═══════════════════════════════════════════════════════════════════
#  ARGUMENTS
# ═══════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Arguments:
    """Budgets and replay information for one run.

    ``max_discard=0`` tolerates no discards: the first one ends the run.
    """

    replay: Optional[Tuple[StdGen, int]] = None
    max_success: int = 100
    max_discard: int = 500
    max_size: int = 100
    name: str = ""
    silence: bool = False
    max_shrinks: Optional[int] = None

    def __post_init__(self) -> None:
        if self.max_success < 1:
            raise ArgumentsError(f"max_success must be at least 1, got {self.max_success}")
        if self.max_discard < 0:
            raise ArgumentsError(f"max_discard must be non-negative, got {self.max_discard}")
        if self.max_size < 1:
            raise ArgumentsError(f"max_size must be at least 1, got {self.max_size}")
        if self.max_shrinks is not None and self.max_shrinks < 0:
            raise ArgumentsError(f"max_shrinks must be non-negative, got {self.max_shrinks}")
        if self.replay is not None:
            seed, size = self.replay
            if not isinstance(seed, StdGen):
                raise ArgumentsError(
                    f"replay seed must be a StdGen, got {type(seed).__name__}"
                ).with_hint("Use parse_replay() to build one from a token")
            if size < 0:
                raise ArgumentsError(f"replay size must be non-negative, got {size}")

    def replace(self, **changes: Any) -> "Arguments":
        return dataclasses.replace(self, **changes)

    def with_replay(self, token: str) -> "Arguments":
        return self.replace(replay=parse_replay(token))

    @classmethod
    def from_environ(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        **overrides: Any,
    ) -> "Arguments":
        """Build arguments from ``PROPCHECK_*`` variables.

        Keyword *overrides* win over the environment.
        """
        env = os.environ if environ is None else environ
        values: Dict[str, Any] = {}

        token = env.get(ENV_REPLAY)
        if token:
            values["replay"] = parse_replay(token)
        for key, field_name in (
            (ENV_MAX_SUCCESS, "max_success"),
            (ENV_MAX_DISCARD, "max_discard"),
            (ENV_MAX_SIZE, "max_size"),
        ):
            raw = env.get(key)
            if raw is not None and raw.strip():
                values[field_name] = _env_int(key, raw)
        raw_silent = env.get(ENV_SILENT)
        if raw_silent is not None:
            values["silence"] = _env_bool(ENV_SILENT, raw_silent)

        if values:
            logger.debug("arguments from environment: %s", sorted(values))
        values.update(overrides)
        return cls(**values)


def _env_int(key: str, raw: str) -> int:
    try:
        return int(raw.strip())
    except ValueError as exc:
        raise ArgumentsError(
            f"{key} must be an integer, got {raw!r}",
            code=ErrorCodes.INVALID_ENVIRONMENT,
            cause=exc,
        ) from exc


def _env_bool(key: str, raw: str) -> bool:
    word = raw.strip().lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    raise ArgumentsError(
        f"{key} must be a boolean, got {raw!r}",
        code=ErrorCodes.INVALID_ENVIRONMENT,
        hint="Use one of 1/0, true/false, yes/no, on/off",
    )
