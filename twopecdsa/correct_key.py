"""
Interactive proof that a Paillier modulus N is well formed.

Based on the N-th root argument of Section 3.2 of
https://eprint.iacr.org/2018/057.pdf, run interactively as in Lindell's
two party ECDSA (https://eprint.iacr.org/2017/552.pdf):

    verifier: pick random s_i in Z_N^*, send sn_i = s_i^N mod N
    prover:   recover s_i = sn_i^(N^-1 mod phi(N)) mod N, send H(s_1..s_m)
    verifier: accept iff the digest matches its own H(s_1..s_m)

N-th roots are unique exactly when gcd(N, phi(N)) = 1. If N has a square
factor p^2 the map x -> x^N is p-to-1 and the prover can only guess which
root the verifier picked, so it fails each round with probability at least
1 - 1/p. N being a prime would pass the root test, so the verifier also
checks that directly, together with N having no prime factor below
SMALL_PRIME_BOUND.

The challenge carries the verifier's own Fiat-Shamir proof that it knows the
roots it asks for. Without it a malicious verifier could use the prover as an
oracle for N-th roots of values of its choosing.
"""

from collections import namedtuple
from functools import lru_cache
from typing import List

import hmac
import math
import random

from phe.util import is_prime, powmod

from .hashing import challenge_bits, digest_ints
from .paillier_keys import PaillierPrivateKey
from .toyrand import sample_unit


# below value is from sections 6.2.3
# https://eprint.iacr.org/2018/987.pdf
SMALL_PRIME_BOUND = 6370

ROOTS_LABEL = b"twopecdsa/correct-key/roots"
CHALLENGE_LABEL = b"twopecdsa/correct-key/challenge"

CorrectKeyChallenge = namedtuple("CorrectKeyChallenge", ["sn", "e", "z"])
VerificationAid = namedtuple("VerificationAid", ["s_digest"])
CorrectKeyProof = namedtuple("CorrectKeyProof", ["s_digest"])


@lru_cache(maxsize=None)
def calc_allprimes_under_alpha(alpha: int) -> List[int]:
    sieve = bytearray([1]) * (alpha + 1)
    sieve[0:2] = b"\x00\x00"
    for i in range(2, math.isqrt(alpha) + 1):
        if sieve[i]:
            sieve[i * i::i] = bytearray(len(sieve[i * i::i]))
    return [i for i, is_p in enumerate(sieve) if is_p]


@lru_cache(maxsize=None)
def _primorial(alpha: int) -> int:
    return math.prod(calc_allprimes_under_alpha(alpha))


def check_modulus(N: int, min_bits: int) -> bool:
    """
    Cheap structural checks the root test can't do on its own.
    """
    if not isinstance(N, int) or N <= 0 or N % 2 == 0:
        return False
    if N.bit_length() < min_bits:
        return False
    # check that N is not divisible by any prime less than alpha
    if math.gcd(_primorial(SMALL_PRIME_BOUND), N) != 1:
        return False
    return not is_prime(N)


def _challenge_seed(N: int, sn: List[int], an: List[int]) -> bytes:
    return digest_ints(CHALLENGE_LABEL, [N, len(sn)] + sn + an)


def generate_challenge(N: int, rounds: int, rng: random.Random):
    """
    Verifier side. Returns (challenge for the prover, aid kept by the verifier).
    """
    s = [sample_unit(N, rng) for _ in range(rounds)]
    sn = [powmod(si, N, N) for si in s]
    # proof of knowledge of the roots s_i, one sigma round per s_i.
    a = [sample_unit(N, rng) for _ in range(rounds)]
    an = [powmod(ai, N, N) for ai in a]
    e = _challenge_seed(N, sn, an)
    bits = challenge_bits(e, rounds)
    z = [(ai * powmod(si, ei, N)) % N for ai, si, ei in zip(a, s, bits)]
    aid = VerificationAid(s_digest=digest_ints(ROOTS_LABEL, [N] + s))
    return CorrectKeyChallenge(sn=sn, e=e, z=z), aid


def check_challenge(N: int, challenge: CorrectKeyChallenge, rounds: int) -> bool:
    """
    Prover side: is the verifier entitled to the roots it asks for?
    """
    if not isinstance(challenge, CorrectKeyChallenge) or not isinstance(challenge.e, bytes):
        return False
    if not all(isinstance(v, (list, tuple)) and len(v) == rounds
               for v in (challenge.sn, challenge.z)):
        return False
    for v in list(challenge.sn) + list(challenge.z):
        if not isinstance(v, int) or not 0 < v < N or math.gcd(v, N) != 1:
            return False
    bits = challenge_bits(challenge.e, rounds)
    # a_i^N = z_i^N / sn_i^e_i
    an = [(powmod(zi, N, N) * pow(sni, -ei, N)) % N
          for zi, sni, ei in zip(challenge.z, challenge.sn, bits)]
    return hmac.compare_digest(_challenge_seed(N, list(challenge.sn), an), challenge.e)


def proove(private_key: PaillierPrivateKey, challenge: CorrectKeyChallenge) -> CorrectKeyProof:
    """
    This function returns a digest of the N-th roots of the challenge points.
    Call check_challenge first.
    """
    p, q = private_key.p, private_key.q
    N = p * q
    totient = (p - 1) * (q - 1)
    N_inv_mod_totient = pow(N, -1, totient)
    roots = [powmod(sni, N_inv_mod_totient, N) for sni in challenge.sn]
    return CorrectKeyProof(s_digest=digest_ints(ROOTS_LABEL, [N] + roots))


def verify(proof: CorrectKeyProof, aid: VerificationAid) -> bool:
    if not isinstance(proof, CorrectKeyProof) or not isinstance(proof.s_digest, bytes):
        return False
    return hmac.compare_digest(proof.s_digest, aid.s_digest)
