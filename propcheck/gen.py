"""
propcheck.gen
=============

The generator algebra.

A ``Gen[T]`` is a pure function ``(StdGen, size) -> T``.  Every combinator
that runs more than one generator splits the random state first, so each
child draws from an independent stream and the result depends only on the
``(rng, size)`` pair it was handed.  Size is threaded through, never chosen
internally; ``sized``, ``resize`` and ``scale`` are the only ways to look at
or change it.

Combinators that cannot work with their arguments (``one_of([])``,
non-positive ``frequency`` weights, an empty ``from_elements_in`` range)
raise :class:`~propcheck.errors.GeneratorConfigError` when the generator is
*built*, not when it is run.
"""

from __future__ import annotations

import math
from typing import (
    Any,
    Callable,
    Generic,
    List,
    Optional,
    Sequence,
    Tuple,
    TypeVar,
    overload,
)

from .errors import (
    EmptyChoiceError,
    ErrorCodes,
    GeneratorConfigError,
    GeneratorExhaustedError,
    InvalidWeightError,
)
from .random_gen import StdGen, _quot, new_std_gen, random_in_range
from .rose import Rose

A = TypeVar("A")
B = TypeVar("B")
C = TypeVar("C")
D = TypeVar("D")
E = TypeVar("E")
F = TypeVar("F")
R = TypeVar("R")

GENERATE_SIZE = 30
SAMPLE_SIZES = range(2, 21)

# Rounds of such_that_optional tried by such_that before giving up; each
# round runs at one size larger than the last.
SUCH_THAT_MAX_ROUNDS = 100

_INT64_MAX = (1 << 63) - 1


class Gen(Generic[A]):
    """A generator of values of type ``A``."""

    __slots__ = ("_run",)

    def __init__(self, run: Callable[[StdGen, int], A]) -> None:
        self._run = run

    def run(self, rng: StdGen, size: int) -> A:
        """Draw one value at the given random state and size."""
        return self._run(rng, size)

    def __repr__(self) -> str:
        return f"Gen({getattr(self._run, '__qualname__', self._run)!r})"

    # ------------------------------------------------------------------
    # Functor / Applicative / Monad
    # ------------------------------------------------------------------

    @staticmethod
    def pure(value: A) -> "Gen[A]":
        return Gen(lambda _rng, _size: value)

    def map(self, f: Callable[[A], B]) -> "Gen[B]":
        run = self._run
        return Gen(lambda rng, size: f(run(rng, size)))

    def flat_map(self, f: Callable[[A], "Gen[B]"]) -> "Gen[B]":
        run = self._run

        def _run(rng: StdGen, size: int) -> B:
            r1, r2 = rng.split()
            return f(run(r1, size)).run(r2, size)

        return Gen(_run)

    def ap(self, fn: "Gen[Callable[[A], B]]") -> "Gen[B]":
        """Apply the function drawn from *fn* to the value drawn from self."""
        run = self._run

        def _run(rng: StdGen, size: int) -> B:
            r1, r2 = rng.split()
            return fn.run(r1, size)(run(r2, size))

        return Gen(_run)

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    @overload
    @staticmethod
    def zip(g1: "Gen[A]", g2: "Gen[B]") -> "Gen[Tuple[A, B]]": ...

    @overload
    @staticmethod
    def zip(g1: "Gen[A]", g2: "Gen[B]", g3: "Gen[C]") -> "Gen[Tuple[A, B, C]]": ...

    @overload
    @staticmethod
    def zip(
        g1: "Gen[A]", g2: "Gen[B]", g3: "Gen[C]", g4: "Gen[D]"
    ) -> "Gen[Tuple[A, B, C, D]]": ...

    @overload
    @staticmethod
    def zip(
        g1: "Gen[A]", g2: "Gen[B]", g3: "Gen[C]", g4: "Gen[D]", g5: "Gen[E]"
    ) -> "Gen[Tuple[A, B, C, D, E]]": ...

    @overload
    @staticmethod
    def zip(
        g1: "Gen[A]",
        g2: "Gen[B]",
        g3: "Gen[C]",
        g4: "Gen[D]",
        g5: "Gen[E]",
        g6: "Gen[F]",
    ) -> "Gen[Tuple[A, B, C, D, E, F]]": ...

    @overload
    @staticmethod
    def zip(*gens: "Gen[Any]") -> "Gen[Tuple[Any, ...]]": ...

    @staticmethod
    def zip(*gens: "Gen[Any]") -> "Gen[Tuple[Any, ...]]":
        """Run each generator on its own split, in positional order.

        ``n`` generators cost ``n - 1`` splits: generator ``i`` gets the left
        half of the ``i``-th split and the last one gets what remains.
        """
        runs = tuple(g._run for g in gens)

        def _run(rng: StdGen, size: int) -> Tuple[Any, ...]:
            out: List[Any] = []
            for run in runs[:-1]:
                here, rng = rng.split()
                out.append(run(here, size))
            if runs:
                out.append(runs[-1](rng, size))
            return tuple(out)

        return Gen(_run)

    @staticmethod
    def map_n(f: Callable[..., R], *gens: "Gen[Any]") -> "Gen[R]":
        """``zip`` the generators and apply *f* to the drawn values."""
        return Gen.zip(*gens).map(lambda values: f(*values))

    # ------------------------------------------------------------------
    # Size
    # ------------------------------------------------------------------

    @staticmethod
    def sized(f: Callable[[int], "Gen[A]"]) -> "Gen[A]":
        return Gen(lambda rng, size: f(size).run(rng, size))

    def resize(self, n: int) -> "Gen[A]":
        run = self._run
        return Gen(lambda rng, _size: run(rng, n))

    def scale(self, f: Callable[[int], int]) -> "Gen[A]":
        return Gen.sized(lambda n: self.resize(f(n)))

    # ------------------------------------------------------------------
    # Choice
    # ------------------------------------------------------------------

    @staticmethod
    def choose(bounds: Tuple[Any, Any]) -> "Gen[Any]":
        """Uniform value in the closed interval ``bounds`` (either order)."""
        lo, hi = bounds
        return Gen(lambda rng, _size: random_in_range(lo, hi, rng)[0])

    @staticmethod
    def one_of(gens: Sequence["Gen[A]"]) -> "Gen[A]":
        choices = tuple(gens)
        if not choices:
            raise EmptyChoiceError("one_of")
        return Gen.choose((0, len(choices) - 1)).flat_map(lambda i: choices[i])

    @staticmethod
    def frequency(pairs: Sequence[Tuple[int, "Gen[A]"]]) -> "Gen[A]":
        """Choose a generator with probability proportional to its weight."""
        table = tuple(pairs)
        if not table:
            raise EmptyChoiceError("frequency")
        for position, (weight, _) in enumerate(table):
            if isinstance(weight, bool) or not isinstance(weight, int) or weight <= 0:
                raise InvalidWeightError(weight, position)
        total = sum(weight for weight, _ in table)
        return Gen.choose((1, total)).flat_map(lambda n: _pick(n, table))

    @staticmethod
    def weighted(pairs: Sequence[Tuple[int, A]]) -> "Gen[A]":
        return Gen.frequency([(weight, Gen.pure(value)) for weight, value in pairs])

    @staticmethod
    def elements(xs: Sequence[A]) -> "Gen[A]":
        items = tuple(xs)
        if not items:
            raise EmptyChoiceError("elements")
        return Gen.choose((0, len(items) - 1)).map(lambda i: items[i])

    @staticmethod
    def from_elements_in(lo: A, hi: A) -> "Gen[A]":
        """Uniform value in the non-empty closed range ``[lo, hi]``."""
        if lo > hi:  # type: ignore[operator]
            raise GeneratorConfigError(
                f"from_elements_in used with empty interval [{lo!r}, {hi!r}]",
                code=ErrorCodes.EMPTY_RANGE,
            )
        return Gen.choose((lo, hi))

    @staticmethod
    def from_initial_segments(xs: Sequence[A]) -> "Gen[List[A]]":
        """Non-empty prefixes of *xs* whose length grows with the size."""
        items = list(xs)
        if not items:
            raise EmptyChoiceError("from_initial_segments")

        def _segment(n: int) -> "Gen[List[A]]":
            end = int(math.log(n + 1) * len(items) / math.log(100))
            return Gen.pure(items[: max(1, end)])

        return Gen.sized(_segment)

    @staticmethod
    def from_shuffling_elements(xs: Sequence[A]) -> "Gen[List[A]]":
        """A random permutation of *xs*."""
        items = list(xs)
        keys = Gen.choose((-_INT64_MAX, _INT64_MAX)).proliferate_sized(len(items))

        def _shuffle(ns: List[int]) -> List[A]:
            order = sorted(range(len(items)), key=lambda i: ns[i])
            return [items[i] for i in order]

        return keys.map(_shuffle)

    # ------------------------------------------------------------------
    # Filtering
    # ------------------------------------------------------------------

    def such_that_optional(self, pred: Callable[[A], bool]) -> "Gen[Optional[A]]":
        """Search for a value satisfying *pred*, or ``None``.

        Attempt ``k`` runs at size ``2*k + bound`` where ``bound`` starts at
        ``max(size, 1)`` and drops by one per attempt, so there are
        ``max(size, 1)`` attempts in all.  Each attempt draws from a fresh split.
        """
        run = self._run

        def _run(rng: StdGen, size: int) -> Optional[A]:
            bound = max(size, 1)
            k = 0
            while bound > 0:
                here, rng = rng.split()
                candidate = run(here, 2 * k + bound)
                if pred(candidate):
                    return candidate
                k += 1
                bound -= 1
            return None

        return Gen(_run)

    def such_that(self, pred: Callable[[A], bool]) -> "Gen[A]":
        """Like :meth:`such_that_optional` but retries at growing sizes.

        Raises :class:`GeneratorExhaustedError` after
        :data:`SUCH_THAT_MAX_ROUNDS` rounds; the test loop counts that as a
        discarded test.
        """
        search = self.such_that_optional(pred)

        def _run(rng: StdGen, size: int) -> A:
            for _ in range(SUCH_THAT_MAX_ROUNDS):
                rng, here = rng.split()
                found = search.run(here, size)
                if found is not None:
                    return found
                size += 1
            raise GeneratorExhaustedError(SUCH_THAT_MAX_ROUNDS)

        return Gen(_run)

    # ------------------------------------------------------------------
    # Collections
    # ------------------------------------------------------------------

    def proliferate_sized(self, k: int) -> "Gen[List[A]]":
        """Exactly *k* independent values, drawn in order."""
        if k < 0:
            raise GeneratorConfigError(
                f"proliferate_sized needs a non-negative length, got {k}",
                code=ErrorCodes.EMPTY_RANGE,
            )
        return sequence([self] * k)

    def proliferate(self) -> "Gen[List[A]]":
        """A list whose length is drawn from ``[0, size]``."""
        return Gen.sized(
            lambda n: Gen.choose((0, n)).flat_map(self.proliferate_sized)
        )

    def proliferate_non_empty(self) -> "Gen[List[A]]":
        """A list whose length is drawn from ``[1, max(1, size)]``."""
        return Gen.sized(
            lambda n: Gen.choose((1, max(1, n))).flat_map(self.proliferate_sized)
        )

    # ------------------------------------------------------------------
    # Perturbation
    # ------------------------------------------------------------------

    def variant(self, seed: int) -> "Gen[A]":
        """Perturb the random state by the bits of *seed*.

        Distinct seeds select distinct paths through the split tree, so
        equal inputs always yield the same stream and different inputs
        (almost always) different ones.
        """
        run = self._run
        return Gen(lambda rng, size: run(_vary(seed, rng), size))

    # ------------------------------------------------------------------
    # Convenience entry points
    # ------------------------------------------------------------------

    def generate(self, rng: Optional[StdGen] = None) -> A:
        """One value at size 30, from *rng* or the process-wide default."""
        return self.run(rng if rng is not None else new_std_gen(), GENERATE_SIZE)

    def sample(self, rng: Optional[StdGen] = None) -> List[A]:
        """One value at each size from 2 to 20."""
        return sequence([self.resize(n) for n in SAMPLE_SIZES]).generate(rng)


# ---------------------------------------------------------------------------
# Free functions
# ---------------------------------------------------------------------------

def sequence(gens: Sequence[Gen[A]]) -> Gen[List[A]]:
    """Run the generators left to right, each on a fresh split."""
    runs = tuple(g._run for g in gens)

    def _run(rng: StdGen, size: int) -> List[A]:
        out: List[A] = []
        for run in runs:
            here, rng = rng.split()
            out.append(run(here, size))
        return out

    return Gen(_run)


def join(gen: Gen[Gen[A]]) -> Gen[A]:
    return gen.flat_map(lambda inner: inner)


def delay() -> Gen[Callable[[Gen[A]], A]]:
    """Capture the current ``(rng, size)`` as an evaluator of generators."""
    return Gen(lambda rng, size: lambda g: g.run(rng, size))


def promote(rose: Rose[Gen[A]]) -> Gen[Rose[A]]:
    """Turn a tree of generators into a generator of trees.

    Every node is evaluated against one captured random state, so the whole
    shrink tree, not only its root, is reproducible from a single draw.
    """
    return delay().flat_map(lambda evaluate: Gen.pure(rose.map(evaluate)))


def _pick(n: int, table: Sequence[Tuple[int, Gen[A]]]) -> Gen[A]:
    for weight, gen in table:
        if n <= weight:
            return gen
        n -= weight
    return table[-1][1]


def _vary(seed: int, rng: StdGen) -> StdGen:
    while True:
        left, right = rng.split()
        rng = left if seed % 2 == 0 else right
        halved = _quot(seed, 2)
        if halved == seed:
            return rng
        seed = halved
