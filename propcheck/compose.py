"""
propcheck.compose
=================

Imperative construction of generators.

``compose`` builds a generator from a plain function that pulls values out
of a :class:`GenComposer`::

    point = compose(lambda c: Point(c.generate(Int()), c.generate(Int())))

The composer owns a private random-state cursor for the duration of one
``run`` and splits it once per ``generate`` call, so the values are
independent of each other and reproducible from the generator's input.
"""

from __future__ import annotations

from typing import Any, Callable, TypeVar, Union

from .errors import ErrorCodes, GeneratorConfigError
from .gen import Gen
from .random_gen import StdGen

T = TypeVar("T")


class GenComposer:
    """Short-lived cursor over one ``(rng, size)`` pair."""

    __slots__ = ("_rng", "_size")

    def __init__(self, rng: StdGen, size: int) -> None:
        self._rng = rng
        self._size = size

    @property
    def size(self) -> int:
        return self._size

    def generate(self, source: Union[Gen[T], Any]) -> T:
        """Draw from a ``Gen`` or from anything exposing ``arbitrary()``."""
        gen = source if isinstance(source, Gen) else _arbitrary_of(source)
        here, self._rng = self._rng.split()
        return gen.run(here, self._size)


def compose(build: Callable[[GenComposer], T]) -> Gen[T]:
    return Gen(lambda rng, size: build(GenComposer(rng, size)))


def _arbitrary_of(source: Any) -> Gen[Any]:
    factory = getattr(source, "arbitrary", None)
    if factory is None:
        raise GeneratorConfigError(
            f"{type(source).__name__} is neither a Gen nor an Arbitrary instance",
            code=ErrorCodes.NOT_ARBITRARY,
        )
    return factory()
