"""Tests for random variate sources and duration supplies."""

import math

import pytest

from facility_sim import LcgRandom, MersenneRandom, RandomGenerator, make_random_source
from facility_sim.models import ComponentKind, ServiceRates, WorkstationId
from facility_sim.supply import FacilitySupply, draw_durations, exponential_duration


@pytest.mark.parametrize("source_class", [LcgRandom, MersenneRandom])
class TestRandomSources:
    """Behaviour shared by every generator."""

    def test_floats_in_unit_interval(self, source_class):
        rng = source_class(42)
        values = [rng.float() for _ in range(2000)]
        assert all(0.0 <= v < 1.0 for v in values)
        # crude uniformity check
        assert 0.4 < sum(values) / len(values) < 0.6

    def test_same_seed_same_stream(self, source_class):
        a, b = source_class(9), source_class(9)
        assert [a.float() for _ in range(20)] == [b.float() for _ in range(20)]
        assert [a.boolean() for _ in range(20)] == [b.boolean() for _ in range(20)]

    def test_different_seeds_differ(self, source_class):
        a, b = source_class(1), source_class(2)
        assert [a.float() for _ in range(5)] != [b.float() for _ in range(5)]

    def test_booleans_are_fair_and_not_alternating(self, source_class):
        rng = source_class(3)
        values = [rng.boolean() for _ in range(4000)]
        assert 0.4 < sum(values) / len(values) < 0.6
        # i.i.d. draws repeat the previous value about half the time
        repeats = sum(a == b for a, b in zip(values, values[1:]))
        assert 0.4 < repeats / (len(values) - 1) < 0.6


class TestLcgRandom:
    """Tests for the full-period linear congruential generator."""

    def test_parameters_give_full_period(self):
        """c coprime with m and a = 1 (mod 4) for a power-of-two modulus."""
        for seed in (0, 1, 17, 123456789):
            rng = LcgRandom(seed)
            assert rng.m == 2**40
            assert math.gcd(rng.c, rng.m) == 1
            assert rng.a % 4 == 1
            assert 0 <= rng.x < rng.m

    @pytest.mark.parametrize("seed", [1, 2, 17, 12345])
    def test_booleans_after_supply_draws_repeat(self, seed):
        """Inspector 2's choices follow the supply draws on the same source."""
        rng = LcgRandom(seed)
        FacilitySupply.generate(rng, ServiceRates(), 3000)
        values = [rng.boolean() for _ in range(200)]
        assert any(a == b for a, b in zip(values, values[1:]))
        assert 0.3 < sum(values) / len(values) < 0.7

    def test_unseeded_source_works(self):
        rng = LcgRandom()
        assert 0.0 <= rng.float() < 1.0


class TestFactory:
    def test_generator_mapping(self):
        assert make_random_source(RandomGenerator.LCG) is LcgRandom
        assert make_random_source(RandomGenerator.MERSENNE) is MersenneRandom

    def test_factory_builds_seeded_source(self):
        factory = make_random_source(RandomGenerator.MERSENNE)
        assert factory(5).float() == MersenneRandom(5).float()


class TestSupply:
    """Tests for exponential duration supplies."""

    def test_exponential_inverse_cdf(self):
        assert exponential_duration(0.0, 0.5).minutes == 0.0
        # median of Exp(rate) is ln 2 / rate
        assert exponential_duration(0.5, 0.1).minutes == pytest.approx(
            math.log(2) / 0.1
        )

    def test_sample_mean_near_inverse_rate(self):
        durations = draw_durations(MersenneRandom(0), rate=0.1, count=5000)
        mean = sum(d.minutes for d in durations) / len(durations)
        assert mean == pytest.approx(10.0, rel=0.1)

    def test_generate_counts_every_station(self):
        supply = FacilitySupply.generate(MersenneRandom(1), ServiceRates(), 25)
        assert all(len(supply.assembly[ws]) == 25 for ws in WorkstationId)
        assert all(len(supply.inspection[k]) == 25 for k in ComponentKind)
        assert all(d.minutes >= 0 for d in supply.assembly[WorkstationId.WS2])

    def test_generate_is_reproducible(self):
        a = FacilitySupply.generate(LcgRandom(4), ServiceRates(), 10)
        b = FacilitySupply.generate(LcgRandom(4), ServiceRates(), 10)
        assert list(a.inspection[ComponentKind.C3]) == list(b.inspection[ComponentKind.C3])

    def test_from_minutes_fills_missing_stations(self):
        supply = FacilitySupply.from_minutes(
            assembly={WorkstationId.WS1: [1.0, 2.0]},
            inspection={ComponentKind.C1: [3.0]},
        )
        assert [d.minutes for d in supply.assembly[WorkstationId.WS1]] == [1.0, 2.0]
        assert len(supply.assembly[WorkstationId.WS3]) == 0
        assert len(supply.inspection[ComponentKind.C2]) == 0
