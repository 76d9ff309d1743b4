"""
propcheck.quantifiers
=====================

Turning predicates over generated values into properties.

``for_all(gen, pred)``
    Universal quantification.  *gen* may be a ``Gen`` (no shrinking) or an
    :class:`~propcheck.arbitrary.Arbitrary` instance (its ``arbitrary()``
    generator and ``shrink`` function are used).  Several sources nest::

        for_all(Int(), ListOf(Int()), lambda n, xs: len(xs * n) >= 0)

``for_all_shrink(gen, shrinker, pred)``
    Universal quantification with an explicit shrinker.
``for_all_no_shrink(gen, pred)``
    Universal quantification without shrinking.
``exists(gen, pred)``
    Bounded existential search: succeeds as soon as one drawn value
    satisfies *pred*; fails with ``ExistentialFailure`` once the discard
    budget is spent.  Never shrinks.

Predicates may return anything testable.  An exception raised by the
predicate becomes a failed test case (reported, not shrunk); the drawn
value is always attached as a counterexample.
"""

from __future__ import annotations

from typing import Any, Callable, List, Sequence, Tuple, TypeVar

from .arbitrary import Arbitrary, instance_for
from .errors import ArgumentsError
from .gen import Gen
from .property import (
    SETUP_ERRORS,
    Property,
    Quantification,
    as_property,
    describe_exception,
    exception_result,
    shrinking,
)

A = TypeVar("A")


def _no_shrink(_value: Any) -> List[Any]:
    return []


def _source(source: Any) -> Tuple[Gen[Any], Callable[[Any], Sequence[Any]]]:
    """Generator and shrinker of a ``Gen``, an Arbitrary instance or class,
    or a builtin type with a registered instance."""
    if isinstance(source, Gen):
        return source, _no_shrink
    if isinstance(source, type):
        source = source() if issubclass(source, Arbitrary) else instance_for(source)
    factory = getattr(source, "arbitrary", None)
    if factory is None:
        raise ArgumentsError(
            f"cannot quantify over {type(source).__name__}",
            hint="Pass a Gen or an Arbitrary instance such as Int()",
        )
    return factory(), getattr(source, "shrink", _no_shrink)


def for_all(*args: Any) -> Property:
    """``for_all(source, ..., pred)``: *pred* must hold for all drawn values."""
    if len(args) < 2 or not callable(args[-1]):
        raise ArgumentsError("for_all expects one or more sources followed by a predicate")
    *sources, pred = args
    gen, shrinker = _source(sources[0])
    if len(sources) == 1:
        return for_all_shrink(gen, shrinker, pred)
    rest = sources[1:]
    return for_all_shrink(
        gen,
        shrinker,
        lambda x: for_all(*rest, lambda *ys: pred(x, *ys)),
    )


def for_all_shrink(
    gen: Gen[A],
    shrinker: Callable[[A], Sequence[A]],
    pred: Callable[[A], Any],
) -> Property:
    def _test(value: A) -> Property:
        try:
            prop = as_property(pred(value))
        except SETUP_ERRORS:
            raise
        except Exception as exc:
            reason = f'Test case threw an exception: "{describe_exception(exc)}"'
            prop = Property.from_result(exception_result(exc, reason))
        return prop.counterexample(repr(value))

    return Property(gen.flat_map(lambda x: shrinking(shrinker, x, _test).gen)).again()


def for_all_no_shrink(gen: Gen[A], pred: Callable[[A], Any]) -> Property:
    return for_all_shrink(gen, _no_shrink, pred)


def exists(source: Any, pred: Callable[[Any], Any]) -> Property:
    """Search for a value satisfying *pred*."""
    gen, _ = _source(source)
    search = for_all_no_shrink(gen, lambda x: as_property(pred(x)).invert()).invert()
    return search.map_result(lambda r: r.replace(quantifier=Quantification.EXISTENTIAL))
