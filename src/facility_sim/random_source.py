"""Pluggable random variate sources.

Every replication draws its durations and Inspector 2's choices from a single
source, so a seed fully determines a run.
"""

import math
import random
import time
from typing import Callable, Optional, Protocol

from facility_sim.models import RandomGenerator


class RandomSource(Protocol):
    """Produces i.i.d. uniform floats in [0, 1) and fair booleans."""

    def float(self) -> float: ...

    def boolean(self) -> bool: ...


class MersenneRandom:
    """RandomSource backed by the standard library Mersenne Twister."""

    def __init__(self, seed: Optional[int] = None):
        self._rng = random.Random(seed)

    def float(self) -> float:
        return self._rng.random()

    def boolean(self) -> bool:
        return self._rng.random() < 0.5


_MASK64 = (1 << 64) - 1
_MASK32 = (1 << 32) - 1


def _lcg_step(x: int, a: int, c: int, m: int) -> int:
    """One wrapping 64-bit LCG step, reduced modulo ``m``."""
    return ((((a * x) & _MASK64) + c) & _MASK64) % m


class LcgRandom:
    """Mixed linear congruential generator with a 2^40 modulus.

    The increment and multiplier are derived from the seed so that c is
    coprime with m and a = 4k + 1, which gives the full period.
    """

    INIT_SEED = 11774353
    BIG_PRIME = 999999000001
    MODULUS_BITS = 40

    def __init__(self, seed: Optional[int] = None):
        if seed is None:
            # bit-reversed sub-second nanoseconds, as a 32-bit value
            nanos = time.time_ns() % 1_000_000_000
            seed = int(f"{nanos:032b}"[::-1], 2)
        seed = self.INIT_SEED + (seed & _MASK32)
        m = 2**self.MODULUS_BITS

        c = (seed << 25) & _MASK64
        c_multiplier = (4 * ((seed >> 7) + 1) + 1) & _MASK32
        while c < self.INIT_SEED or math.gcd(m, c) != 1:
            c = _lcg_step(((c + c) & _MASK64) >> 5, c_multiplier, 0, self.BIG_PRIME)

        a = _lcg_step(seed + 1, self.INIT_SEED, c, 2**24) & _MASK32
        while a < self.INIT_SEED or math.gcd(a, 4) != 4:
            a = _lcg_step(a, self.INIT_SEED, c, 2**24) & _MASK32
        a += 1

        self.a = a
        self.c = c
        self.m = m
        self.x = _lcg_step((seed << 2) & _MASK64, a, c, m)

    def next_value(self) -> int:
        self.x = (self.a * self.x + self.c) % self.m
        return self.x

    def float(self) -> float:
        return self.next_value() / self.m

    def boolean(self) -> bool:
        # low bits of a power-of-two LCG have short periods; use the top bit
        return (self.next_value() >> (self.MODULUS_BITS - 1)) == 0


def make_random_source(
    generator: RandomGenerator,
) -> Callable[[Optional[int]], RandomSource]:
    """Return a seed -> RandomSource factory for the configured generator."""
    if generator is RandomGenerator.LCG:
        return LcgRandom
    if generator is RandomGenerator.MERSENNE:
        return MersenneRandom
    raise ValueError(f"Unknown random generator: {generator}")
