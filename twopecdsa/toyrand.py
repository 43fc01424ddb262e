"""
Sampling helpers.

Nothing in here touches a module level generator. Callers pass the source of
randomness explicitly; any random.Random instance works. Production code uses
secrets.SystemRandom (stateless, backed by os.urandom), tests use a seeded
random.Random so runs are reproducible.
"""

import math
import random
import secrets


def default_rng() -> random.Random:
    return secrets.SystemRandom()


def int_sample(bound: int, rng: random.Random) -> int:
    """Uniform integer in [1, bound)."""
    if bound <= 1:
        raise ValueError(f"Empty sample range [1, {bound})")
    return rng.randrange(1, bound)


def sample_range(low: int, high: int, rng: random.Random) -> int:
    """Uniform integer in [low, high], both ends inclusive."""
    if high < low:
        raise ValueError(f"Empty sample range [{low}, {high}]")
    return rng.randrange(low, high + 1)


def sample_unit(n: int, rng: random.Random) -> int:
    """Uniform element of the multiplicative group Z_n^*."""
    while True:
        r = rng.randrange(1, n)
        if math.gcd(r, n) == 1:
            return r


def random_bytes(length: int, rng: random.Random) -> bytes:
    return rng.getrandbits(8 * length).to_bytes(length, byteorder='big')
