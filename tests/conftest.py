import random

import pytest
from ecdsa import SECP256k1

from twopecdsa import party_one, party_two
from twopecdsa.ecdsa_op import EC
from twopecdsa.params import ProtocolParams

# smallest modulus check_params allows for secp256k1 is 896 bits.
FAST_PARAMS = ProtocolParams(
    curve=SECP256k1,
    paillier_bits=1024,
    correct_key_rounds=40,
    range_proof_rounds=40,
)


def run_keygen(params, rng_one, rng_two):
    """Honest key generation. Returns (party one share, party two share)."""
    p1 = party_one.KeyGen(params, rng_one)
    p2 = party_two.KeyGen(params, rng_two)
    p1_first = p1.first_message()
    p2_first = p2.first_message(p1_first)
    p1_second = p1.second_message(p2_first)
    p2.second_message(p1_second)
    p1_third = p1.third_message()
    challenge = p2.correct_key_challenge(p1_third)
    proof = p1.correct_key_proof(challenge)
    p2_share = p2.finish(proof)
    return p1.key_share(), p2_share


def run_sign(p1_share, p2_share, message, rng_one, rng_two):
    p1 = party_one.Sign(p1_share, message, rng_one)
    p2 = party_two.Sign(p2_share, message, rng_two)
    p1_first = p1.first_message()
    p2_first = p2.first_message(p1_first)
    p1_second = p1.second_message(p2_first)
    partial_sig = p2.partial_signature(p1_second)
    return p1.compute_signature(partial_sig)


@pytest.fixture
def rng():
    return random.Random(20240611)


@pytest.fixture(scope="session")
def fast_params():
    return FAST_PARAMS


@pytest.fixture(scope="session")
def ec():
    return EC(SECP256k1)


@pytest.fixture(scope="session")
def key_shares():
    """One completed key generation shared by the signing tests. Don't close it."""
    return run_keygen(FAST_PARAMS, random.Random(1), random.Random(2))
