"""
propcheck.random_gen
====================

Deterministic, splittable pseudorandom source.

``StdGen`` is L'Ecuyer's combined multiplicative linear congruential
generator: two LCGs with moduli ``2147483563`` and ``2147483399`` are
stepped in lock-step and combined by subtraction, giving a period of about
``2.3e18``.  The generator is an immutable value: every draw returns the
drawn integer *and* the successor generator, so identical seeds always
reproduce identical sequences.

``split`` derives two generators from one in O(1) without consuming any
extra entropy; this is what lets every generator combinator hand an
independent stream to each of its children.

Ranged draws
------------
``random_int_in_range`` avoids modulo bias by accumulating entropy over as
many draws as needed to reach ``width * 1000`` possible values before
reducing modulo the width.  Python integers are unbounded, so this is exact
for arbitrarily wide ranges.

Process-wide default
--------------------
``new_std_gen`` hands out fresh generators split from one module-level
instance seeded from the clock.  It is the *only* shared mutable state in
the package and is guarded by a lock; core combinators never touch it.
"""

from __future__ import annotations

import os
import threading
import time
from dataclasses import dataclass
from typing import Any, Tuple

from .errors import ErrorCodes, GeneratorConfigError

# ---------------------------------------------------------------------------
# Generator constants
# ---------------------------------------------------------------------------

_M1 = 2147483563            # modulus of the first LCG
_M2 = 2147483399            # modulus of the second LCG
_A1, _Q1, _R1 = 40014, 53668, 12211
_A2, _Q2, _R2 = 40692, 52774, 3791

GEN_RANGE: Tuple[int, int] = (1, _M1 - 1)
"""Closed interval of values produced by :meth:`StdGen.next`."""

SEED1_RANGE: Tuple[int, int] = (1, _M1 - 1)
SEED2_RANGE: Tuple[int, int] = (1, _M2 - 1)

_ENTROPY_FACTOR = 1000      # oversampling factor for ranged integer draws
_FLOAT_BITS = 53


def _quot(a: int, b: int) -> int:
    """Integer division truncating toward zero."""
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b >= 0) else -q


def _rem(a: int, b: int) -> int:
    """Remainder matching :func:`_quot`."""
    return a - b * _quot(a, b)


# ---------------------------------------------------------------------------
# StdGen
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StdGen:
    """An immutable L'Ecuyer generator state: a pair of seeds."""

    seed1: int
    seed2: int

    @classmethod
    def from_seed(cls, seed: int) -> "StdGen":
        """Derive a generator from a single integer seed."""
        s = seed & ((1 << 63) - 1)
        q, s1 = divmod(s, _M1 - 1)
        s2 = q % (_M2 - 1)
        return cls(s1 + 1, s2 + 1)

    def next(self) -> Tuple[int, "StdGen"]:
        """Return a value in :data:`GEN_RANGE` and the advanced generator."""
        s1, s2 = self.seed1, self.seed2

        k = _quot(s1, _Q1)
        s1 = _A1 * (s1 - k * _Q1) - k * _R1
        if s1 < 0:
            s1 += _M1

        k = _quot(s2, _Q2)
        s2 = _A2 * (s2 - k * _Q2) - k * _R2
        if s2 < 0:
            s2 += _M2

        z = s1 - s2
        if z < 1:
            z += _M1 - 1
        return z, StdGen(s1, s2)

    def split(self) -> Tuple["StdGen", "StdGen"]:
        """Derive two independent generators."""
        s1, s2 = self.seed1, self.seed2
        _, stepped = self.next()
        left = StdGen(1 if s1 == _M1 - 1 else s1 + 1, stepped.seed2)
        right = StdGen(stepped.seed1, _M2 - 1 if s2 == 1 else s2 - 1)
        return left, right

    @property
    def gen_range(self) -> Tuple[int, int]:
        return GEN_RANGE

    def __str__(self) -> str:
        return f"{self.seed1} {self.seed2}"


# ---------------------------------------------------------------------------
# Ranged draws
# ---------------------------------------------------------------------------

def random_int_in_range(lo: int, hi: int, gen: StdGen) -> Tuple[int, StdGen]:
    """Uniform integer in the closed interval ``[lo, hi]``."""
    if lo > hi:
        return random_int_in_range(hi, lo, gen)

    genlo, genhi = GEN_RANGE
    base = genhi - genlo + 1
    width = hi - lo + 1
    target = width * _ENTROPY_FACTOR

    magnitude, acc = 1, 0
    while magnitude < target:
        x, gen = gen.next()
        acc = acc * base + (x - genlo)
        magnitude *= base
    return lo + acc % width, gen


def random_unit_float(gen: StdGen) -> Tuple[float, StdGen]:
    """Uniform float in ``[0, 1)`` with 53 bits of precision."""
    bits, gen = random_int_in_range(0, (1 << _FLOAT_BITS) - 1, gen)
    return bits / float(1 << _FLOAT_BITS), gen


def random_float_in_range(lo: float, hi: float, gen: StdGen) -> Tuple[float, StdGen]:
    if lo > hi:
        return random_float_in_range(hi, lo, gen)
    coef, gen = random_unit_float(gen)
    # Halving first keeps the span finite near the float limits.
    value = 2.0 * (0.5 * lo + coef * (0.5 * hi - 0.5 * lo))
    return min(max(value, lo), hi), gen


def random_bool(gen: StdGen, lo: bool = False, hi: bool = True) -> Tuple[bool, StdGen]:
    x, gen = random_int_in_range(int(lo), int(hi), gen)
    return x == 1, gen


def random_char_in_range(lo: str, hi: str, gen: StdGen) -> Tuple[str, StdGen]:
    code, gen = random_int_in_range(ord(lo), ord(hi), gen)
    return chr(code), gen


def random_in_range(lo: Any, hi: Any, gen: StdGen) -> Tuple[Any, StdGen]:
    """Dispatch a closed-interval draw on the type of the bounds.

    Supports ``bool``, ``int``, ``float`` (mixed int/float bounds promote to
    float) and single-character ``str``.
    """
    if isinstance(lo, bool) and isinstance(hi, bool):
        return random_bool(gen, lo, hi)
    if isinstance(lo, int) and isinstance(hi, int):
        return random_int_in_range(lo, hi, gen)
    if isinstance(lo, (int, float)) and isinstance(hi, (int, float)):
        return random_float_in_range(float(lo), float(hi), gen)
    if isinstance(lo, str) and isinstance(hi, str) and len(lo) == len(hi) == 1:
        return random_char_in_range(lo, hi, gen)
    raise GeneratorConfigError(
        f"cannot draw from range ({lo!r}, {hi!r})",
        code=ErrorCodes.UNSUPPORTED_RANGE_TYPE,
        hint="Bounds must both be bool, int, float or single characters",
    )


# ---------------------------------------------------------------------------
# Process-wide default generator
# ---------------------------------------------------------------------------

def _clock_seed() -> int:
    ns = time.time_ns()
    seconds, nanos = divmod(ns, 1_000_000_000)
    return seconds * 12345 + nanos + time.process_time_ns() + os.getpid()


_default_lock = threading.Lock()
_default_gen: StdGen = StdGen.from_seed(_clock_seed())


def new_std_gen() -> StdGen:
    """Split a fresh generator off the process-wide default."""
    global _default_gen
    with _default_lock:
        left, right = _default_gen.split()
        _default_gen = left
    return right


def reseed_default(seed: int) -> None:
    """Reset the process-wide default generator (for reproducible sessions)."""
    global _default_gen
    with _default_lock:
        _default_gen = StdGen.from_seed(seed)
