"""
propcheck.arbitrary
===================

A small catalog of generator/shrinker pairs for primitive Python values.

An *Arbitrary instance* is any object with an ``arbitrary()`` method
returning a :class:`~propcheck.gen.Gen` and, optionally, a ``shrink(value)``
method returning smaller candidates.  The classes here cover ``int``,
``bool``, ``float``, single characters, ``str``, lists, tuples and optional
values, and compose::

    for_all(ListOf(OptionalOf(Int())), lambda xs: ...)

Every shrinker here is well-founded: it never returns its input, and
repeatedly taking candidates always reaches a value with no candidates.
That guarantees termination of the shrink search even for properties that
fail on every input.
"""

from __future__ import annotations

import abc
import math
from typing import Any, Callable, Dict, Generic, List, Optional, Sequence, Tuple, TypeVar

from .errors import ArgumentsError
from .gen import Gen

T = TypeVar("T")

Shrinker = Callable[[T], Sequence[T]]


# ---------------------------------------------------------------------------
# Shrinking functions
# ---------------------------------------------------------------------------

def shrink_int(x: int) -> List[int]:
    """Candidates toward zero: ``-x`` for negatives, then ``0`` and the
    values halfway, three quarters ... of the way from ``0`` to ``x``."""
    out: List[int] = []
    if x < 0:
        out.append(-x)
    if x == 0:
        return out
    out.append(0)
    step = _quot2(x)
    while step != 0:
        out.append(x - step)
        step = _quot2(step)
    return [c for c in out if c != x]


def _quot2(n: int) -> int:
    return -((-n) // 2) if n < 0 else n // 2


def shrink_bool(b: bool) -> List[bool]:
    return [False] if b else []


def shrink_float(x: float) -> List[float]:
    if x == 0.0:
        return []
    if not math.isfinite(x):
        return [0.0]
    out = [0.0]
    if x < 0:
        out.append(-x)
    truncated = float(math.trunc(x))
    if truncated not in out and truncated != x:
        out.append(truncated)
    half = x / 2.0
    if abs(half) >= 1.0 and half not in out:
        out.append(half)
    return out


# Characters in the order they are preferred as counterexamples.
_SIMPLE_CHARS = "abcABC123 \n"


def shrink_char(c: str) -> List[str]:
    rank = _SIMPLE_CHARS.find(c)
    if rank < 0:
        rank = len(_SIMPLE_CHARS)
    return list(_SIMPLE_CHARS[:rank])


def shrink_list(xs: Sequence[T], shrink_elem: Optional[Shrinker[T]] = None) -> List[List[T]]:
    """Shorter lists first (removing chunks of halving size), then the
    list with one element shrunk."""
    items = list(xs)
    n = len(items)
    out: List[List[T]] = []
    k = n
    while k > 0:
        out.extend(_removes(k, items))
        k //= 2
    if shrink_elem is not None:
        for i, item in enumerate(items):
            for smaller in shrink_elem(item):
                out.append(items[:i] + [smaller] + items[i + 1:])
    return out


def _removes(k: int, items: List[T]) -> List[List[T]]:
    """Every list obtained by deleting one aligned chunk of *k* elements."""
    out: List[List[T]] = []
    for start in range(0, len(items) - k + 1, k):
        out.append(items[:start] + items[start + k:])
    return out


def shrink_text(s: str) -> List[str]:
    return ["".join(cs) for cs in shrink_list(list(s), shrink_char)]


def shrink_tuple(xs: Tuple[Any, ...], shrinkers: Sequence[Shrinker[Any]]) -> List[Tuple[Any, ...]]:
    out: List[Tuple[Any, ...]] = []
    for i, (item, shrinker) in enumerate(zip(xs, shrinkers)):
        for smaller in shrinker(item):
            out.append(xs[:i] + (smaller,) + xs[i + 1:])
    return out


def shrink_optional(x: Optional[T], shrink_elem: Shrinker[T]) -> List[Optional[T]]:
    if x is None:
        return []
    return [None] + list(shrink_elem(x))


# ---------------------------------------------------------------------------
# Instances
# ---------------------------------------------------------------------------

class Arbitrary(abc.ABC, Generic[T]):
    """A generator of ``T`` with a matching shrinker."""

    @abc.abstractmethod
    def arbitrary(self) -> Gen[T]:
        ...

    def shrink(self, value: T) -> Sequence[T]:
        return []

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class Int(Arbitrary[int]):
    """Integers in ``[-size, size]``."""

    def arbitrary(self) -> Gen[int]:
        return Gen.sized(lambda n: Gen.choose((-n, n)))

    def shrink(self, value: int) -> List[int]:
        return shrink_int(value)


class Bool(Arbitrary[bool]):
    def arbitrary(self) -> Gen[bool]:
        return Gen.choose((False, True))

    def shrink(self, value: bool) -> List[bool]:
        return shrink_bool(value)


class Float(Arbitrary[float]):
    """Floats in ``[-size, size]``."""

    def arbitrary(self) -> Gen[float]:
        return Gen.sized(
            lambda n: Gen.pure(0.0) if n == 0 else Gen.choose((-float(n), float(n)))
        )

    def shrink(self, value: float) -> List[float]:
        return shrink_float(value)


class Char(Arbitrary[str]):
    """Printable ASCII characters."""

    def arbitrary(self) -> Gen[str]:
        return Gen.choose((" ", "~"))

    def shrink(self, value: str) -> List[str]:
        return shrink_char(value)


class Text(Arbitrary[str]):
    """Strings of printable ASCII whose length grows with the size."""

    def arbitrary(self) -> Gen[str]:
        return Char().arbitrary().proliferate().map("".join)

    def shrink(self, value: str) -> List[str]:
        return shrink_text(value)


class ListOf(Arbitrary[List[T]]):
    def __init__(self, elem: Arbitrary[T], non_empty: bool = False) -> None:
        self.elem = elem
        self.non_empty = non_empty

    def arbitrary(self) -> Gen[List[T]]:
        gen = self.elem.arbitrary()
        return gen.proliferate_non_empty() if self.non_empty else gen.proliferate()

    def shrink(self, value: List[T]) -> List[List[T]]:
        candidates = shrink_list(value, self.elem.shrink)
        if self.non_empty:
            return [c for c in candidates if c]
        return candidates

    def __repr__(self) -> str:
        return f"ListOf({self.elem!r})"


class TupleOf(Arbitrary[Tuple[Any, ...]]):
    def __init__(self, *elems: Arbitrary[Any]) -> None:
        self.elems = elems

    def arbitrary(self) -> Gen[Tuple[Any, ...]]:
        return Gen.zip(*(e.arbitrary() for e in self.elems))

    def shrink(self, value: Tuple[Any, ...]) -> List[Tuple[Any, ...]]:
        return shrink_tuple(value, [e.shrink for e in self.elems])

    def __repr__(self) -> str:
        return f"TupleOf({', '.join(map(repr, self.elems))})"


class OptionalOf(Arbitrary[Optional[T]]):
    """``None`` a quarter of the time, otherwise a value of *elem*."""

    def __init__(self, elem: Arbitrary[T]) -> None:
        self.elem = elem

    def arbitrary(self) -> Gen[Optional[T]]:
        return Gen.frequency([(1, Gen.pure(None)), (3, self.elem.arbitrary())])

    def shrink(self, value: Optional[T]) -> List[Optional[T]]:
        return shrink_optional(value, self.elem.shrink)

    def __repr__(self) -> str:
        return f"OptionalOf({self.elem!r})"


_BUILTIN_INSTANCES: Dict[type, Callable[[], Arbitrary[Any]]] = {
    int: Int,
    bool: Bool,
    float: Float,
    str: Text,
}


def instance_for(tp: type) -> Arbitrary[Any]:
    """The instance for a builtin type, e.g. ``instance_for(int)``."""
    try:
        return _BUILTIN_INSTANCES[tp]()
    except KeyError:
        raise ArgumentsError(
            f"no Arbitrary instance for {tp.__name__}",
            hint="Use one of int, bool, float, str or pass an instance",
        ) from None
