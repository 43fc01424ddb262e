import random

import pytest

from twopecdsa.paillier_keys import encrypt, generate_keypair
from twopecdsa.range_proof import MaskResponse, OpenResponse, proove, verify

ROUNDS = 24


@pytest.fixture(scope="module")
def keypair():
    return generate_keypair(1024, random.Random(5))


def prove_for(ec, pub, x, rng, Q=None):
    c, r = encrypt(pub, x, rng)
    raw = c.ciphertext(be_secure=False)
    Q = Q or ec.pub_key_from_priv(x)
    return raw, Q, proove(ec, pub, x, r, Q, raw, ROUNDS, rng)


def test_honest_range_proof(ec, keypair, rng):
    pub, _ = keypair
    for x in (1, ec.order // 3 - 1, rng.randrange(1, ec.order // 3)):
        c, Q, proof = prove_for(ec, pub, x, rng)
        assert verify(ec, pub, c, Q, proof, ROUNDS)
        # verifying the same transcript again gives the same answer.
        assert verify(ec, pub, c, Q, proof, ROUNDS)


def test_challenge_selects_both_kinds(ec, keypair, rng):
    pub, _ = keypair
    _, _, proof = prove_for(ec, pub, 12345, rng)
    kinds = {type(resp) for resp in proof.responses}
    assert kinds == {OpenResponse, MaskResponse}
    for bit, resp in zip(proof.challenge, proof.responses):
        assert isinstance(resp, OpenResponse if bit == 0 else MaskResponse)


@pytest.mark.parametrize("offset", [5, 2 ** 40])
def test_out_of_range_plaintext_rejected(ec, keypair, rng, offset):
    pub, _ = keypair
    x = ec.order + offset
    c, _, proof = prove_for(ec, pub, x, rng, Q=ec.pub_key_from_priv(x % ec.order))
    assert not verify(ec, pub, c, ec.pub_key_from_priv(x % ec.order), proof, ROUNDS)


def test_plaintext_far_above_third_rejected(ec, keypair, rng):
    pub, _ = keypair
    x = ec.order - 10
    c, Q, proof = prove_for(ec, pub, x, rng)
    assert not verify(ec, pub, c, Q, proof, ROUNDS)


def test_plaintext_must_match_point(ec, keypair, rng):
    pub, _ = keypair
    x = 424242
    c, _, proof = prove_for(ec, pub, x, rng, Q=ec.pub_key_from_priv(x + 1))
    assert not verify(ec, pub, c, ec.pub_key_from_priv(x + 1), proof, ROUNDS)
    # a valid proof doesn't transfer to another point either
    c, Q, proof = prove_for(ec, pub, x, rng)
    assert not verify(ec, pub, c, ec.pub_key_from_priv(x + 1), proof, ROUNDS)


def test_corrupted_opening_rejected(ec, keypair, rng):
    pub, _ = keypair
    c, Q, proof = prove_for(ec, pub, 777, rng)
    responses = list(proof.responses)
    i = next(k for k, resp in enumerate(responses) if isinstance(resp, OpenResponse))
    responses[i] = responses[i]._replace(r1=responses[i].r1 + 1)
    assert not verify(ec, pub, c, Q, proof._replace(responses=responses), ROUNDS)


def test_corrupted_mask_rejected(ec, keypair, rng):
    pub, _ = keypair
    c, Q, proof = prove_for(ec, pub, 777, rng)
    responses = list(proof.responses)
    i = next(k for k, resp in enumerate(responses) if isinstance(resp, MaskResponse))
    responses[i] = responses[i]._replace(masked_x=responses[i].masked_x + 1)
    assert not verify(ec, pub, c, Q, proof._replace(responses=responses), ROUNDS)


def test_corrupted_pairs_rejected(ec, keypair, rng):
    pub, _ = keypair
    c, Q, proof = prove_for(ec, pub, 777, rng)
    c1 = list(proof.pairs.c1)
    c1[0] = c1[0] * 4 % pub.nsquare
    assert not verify(ec, pub, c, Q, proof._replace(pairs=proof.pairs._replace(c1=c1)), ROUNDS)


def test_challenge_and_length_checked(ec, keypair, rng):
    pub, _ = keypair
    c, Q, proof = prove_for(ec, pub, 777, rng)
    flipped = [1 - b for b in proof.challenge]
    assert not verify(ec, pub, c, Q, proof._replace(challenge=flipped), ROUNDS)
    assert not verify(ec, pub, c, Q, proof._replace(commitment=bytes(32)), ROUNDS)
    assert not verify(ec, pub, c, Q, proof, ROUNDS + 1)


def test_fields_must_be_sequences(ec, keypair, rng):
    pub, _ = keypair
    c, Q, proof = prove_for(ec, pub, 777, rng)
    assert not verify(ec, pub, c, Q, proof._replace(pairs=proof.pairs._replace(W2=5)), ROUNDS)
    assert not verify(ec, pub, c, Q, proof._replace(responses=None), ROUNDS)
    assert not verify(ec, pub, c, Q, proof._replace(challenge=b"\x00" * ROUNDS), ROUNDS)
