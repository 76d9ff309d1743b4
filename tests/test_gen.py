# tests/test_gen.py
"""
Tests for the generator algebra.
"""

import pytest

from propcheck.errors import (
    EmptyChoiceError,
    ErrorCodes,
    GeneratorConfigError,
    GeneratorExhaustedError,
    InvalidWeightError,
)
from propcheck.gen import SAMPLE_SIZES, Gen, delay, join, promote, sequence
from propcheck.rose import Rose
from tests.conftest import rng_stream

BIG = Gen.choose((0, 10 ** 9))


def _draws(gen, n=200, size=10):
    return [gen.run(r, size) for r in rng_stream(n)]


class TestMonad:

    def test_deterministic(self, rng):
        gen = BIG.proliferate()
        assert gen.run(rng, 10) == gen.run(rng, 10)

    def test_pure_ignores_state(self, rng):
        assert Gen.pure("x").run(rng, 0) == "x"
        assert Gen.pure("x").run(rng.split()[1], 99) == "x"

    def test_map(self, rng):
        assert BIG.map(lambda x: -x).run(rng, 5) == -BIG.run(rng, 5)

    def test_flat_map_splits(self, rng):
        gen = BIG.flat_map(lambda x: BIG.map(lambda y: (x, y)))
        left, right = rng.split()
        assert gen.run(rng, 5) == (BIG.run(left, 5), BIG.run(right, 5))

    def test_ap(self, rng):
        gen = BIG.ap(Gen.pure(lambda x: x + 1))
        assert gen.run(rng, 5) == BIG.run(rng.split()[1], 5) + 1

    def test_join(self, rng):
        assert join(Gen.pure(Gen.pure(4))).run(rng, 1) == 4


class TestProducts:

    def test_zip_uses_split_chain(self, rng):
        h1, rest = rng.split()
        h2, last = rest.split()
        assert Gen.zip(BIG, BIG, BIG).run(rng, 3) == (
            BIG.run(h1, 3), BIG.run(h2, 3), BIG.run(last, 3),
        )

    def test_zip_six(self, rng):
        values = Gen.zip(*[Gen.pure(i) for i in range(6)]).run(rng, 0)
        assert values == (0, 1, 2, 3, 4, 5)

    def test_zip_positions_independent(self, rng):
        a, b = Gen.zip(BIG, BIG).run(rng, 0)
        assert a != b

    def test_map_n(self, rng):
        assert Gen.map_n(lambda a, b: a + b, Gen.pure(1), Gen.pure(2)).run(rng, 0) == 3

    def test_sequence(self, rng):
        assert sequence([Gen.pure(1), Gen.pure(2)]).run(rng, 0) == [1, 2]
        assert sequence([]).run(rng, 0) == []


class TestSize:

    def test_sized_sees_size(self, rng):
        assert Gen.sized(Gen.pure).run(rng, 17) == 17

    def test_resize(self, rng):
        assert Gen.sized(Gen.pure).resize(3).run(rng, 17) == 3

    def test_scale(self, rng):
        assert Gen.sized(Gen.pure).scale(lambda n: n * 2).run(rng, 7) == 14


class TestChoice:

    def test_choose_int(self):
        assert all(2 <= x <= 4 for x in _draws(Gen.choose((2, 4))))

    def test_choose_reversed(self):
        assert all(2 <= x <= 4 for x in _draws(Gen.choose((4, 2))))

    def test_choose_float(self):
        assert all(-1.0 <= x <= 1.0 for x in _draws(Gen.choose((-1.0, 1.0))))

    def test_choose_char(self):
        assert set(_draws(Gen.choose(("a", "c")))) <= set("abc")

    def test_one_of(self):
        gen = Gen.one_of([Gen.pure("a"), Gen.pure("b")])
        assert set(_draws(gen)) == {"a", "b"}

    def test_one_of_empty(self):
        with pytest.raises(EmptyChoiceError):
            Gen.one_of([])

    def test_frequency_single(self):
        assert set(_draws(Gen.frequency([(3, Gen.pure("x"))]))) == {"x"}

    def test_frequency_respects_weights(self):
        draws = _draws(Gen.frequency([(1, Gen.pure("a")), (19, Gen.pure("b"))]), n=400)
        assert draws.count("b") > draws.count("a") * 3

    def test_frequency_empty(self):
        with pytest.raises(EmptyChoiceError) as info:
            Gen.frequency([])
        assert info.value.code == ErrorCodes.EMPTY_CHOICE

    @pytest.mark.parametrize("weight", [0, -1, 1.5, True, "2"])
    def test_frequency_invalid_weight(self, weight):
        with pytest.raises(InvalidWeightError) as info:
            Gen.frequency([(1, Gen.pure(1)), (weight, Gen.pure(2))])
        assert info.value.position == 1
        assert info.value.code == ErrorCodes.INVALID_WEIGHT

    def test_weighted(self):
        assert set(_draws(Gen.weighted([(1, "p"), (1, "q")]))) == {"p", "q"}

    def test_elements(self):
        assert set(_draws(Gen.elements("xyz"))) == set("xyz")

    def test_elements_empty(self):
        with pytest.raises(EmptyChoiceError):
            Gen.elements([])

    def test_from_elements_in(self):
        assert all(1 <= x <= 3 for x in _draws(Gen.from_elements_in(1, 3)))

    def test_from_elements_in_empty(self):
        with pytest.raises(GeneratorConfigError) as info:
            Gen.from_elements_in(5, 1)
        assert info.value.code == ErrorCodes.EMPTY_RANGE

    def test_initial_segments(self, rng):
        items = [1, 2, 3, 4, 5]
        gen = Gen.from_initial_segments(items)
        assert gen.run(rng, 0) == [1]
        assert gen.run(rng, 1000) == items
        for n in range(0, 100, 7):
            segment = gen.run(rng, n)
            assert segment and segment == items[: len(segment)]

    def test_shuffling_is_permutation(self):
        items = list(range(8))
        for perm in _draws(Gen.from_shuffling_elements(items), n=20):
            assert sorted(perm) == items

    def test_shuffling_varies(self):
        perms = {tuple(p) for p in _draws(Gen.from_shuffling_elements(range(6)), n=30)}
        assert len(perms) > 1


class TestFiltering:

    def test_such_that_optional_finds(self):
        gen = BIG.such_that_optional(lambda x: x % 2 == 0)
        for value in _draws(gen, n=50):
            assert value is None or value % 2 == 0

    def test_such_that_optional_none(self, rng):
        assert BIG.such_that_optional(lambda _x: False).run(rng, 10) is None

    @pytest.mark.parametrize("size,attempts", [(0, 1), (1, 1), (5, 5)])
    def test_such_that_optional_attempts(self, rng, size, attempts):
        sizes = []
        gen = Gen.sized(Gen.pure).such_that_optional(lambda n: sizes.append(n) and False)
        assert gen.run(rng, size) is None
        assert len(sizes) == attempts
        assert sizes == [2 * k + max(size, 1) - k for k in range(attempts)]

    def test_such_that(self):
        for value in _draws(BIG.such_that(lambda x: x % 3 == 0), n=50):
            assert value % 3 == 0

    def test_such_that_exhausted(self, rng):
        with pytest.raises(GeneratorExhaustedError):
            Gen.pure(1).such_that(lambda _x: False).run(rng, 0)


class TestCollections:

    def test_proliferate_sized(self, rng):
        assert len(BIG.proliferate_sized(3).run(rng, 0)) == 3
        assert BIG.proliferate_sized(0).run(rng, 0) == []

    def test_proliferate_sized_negative(self):
        with pytest.raises(GeneratorConfigError):
            BIG.proliferate_sized(-1)

    def test_proliferate_bounded_by_size(self):
        assert all(len(xs) <= 6 for xs in _draws(BIG.proliferate(), size=6))

    def test_proliferate_size_zero(self, rng):
        assert BIG.proliferate().run(rng, 0) == []

    def test_proliferate_non_empty(self):
        assert all(len(xs) >= 1 for xs in _draws(BIG.proliferate_non_empty(), size=0))


class TestVariant:

    def test_same_seed_same_stream(self, rng):
        assert BIG.variant(12).run(rng, 0) == BIG.variant(12).run(rng, 0)

    def test_different_seeds_differ(self, rng):
        values = {BIG.variant(seed).run(rng, 0) for seed in range(25)}
        assert len(values) == 25

    def test_negative_seed_terminates(self, rng):
        BIG.variant(-(2 ** 40)).run(rng, 0)


class TestEntryPoints:

    def test_generate_with_rng(self, rng):
        gen = Gen.sized(Gen.pure)
        assert gen.generate(rng) == 30

    def test_generate_default(self):
        assert 0 <= BIG.generate() <= 10 ** 9

    def test_sample_sizes(self, rng):
        assert Gen.sized(Gen.pure).sample(rng) == list(SAMPLE_SIZES)

    def test_delay(self, rng):
        evaluate = delay().run(rng, 7)
        assert evaluate(Gen.sized(Gen.pure)) == 7
        assert evaluate(BIG) == BIG.run(rng, 7)

    def test_promote(self, rng):
        tree = Rose.node(Gen.sized(Gen.pure), lambda: [Rose.pure(Gen.pure(0))])
        node = promote(tree).run(rng, 5).reduce()
        assert node.root() == 5
        assert [c.reduce().root() for c in node.children()] == [0]

    def test_repr(self):
        assert repr(BIG).startswith("Gen(")
