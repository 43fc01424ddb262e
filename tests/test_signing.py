"""
Tests
"""

import os
import random
import secrets
from hashlib import sha256

import pytest
from ecdsa import BadSignatureError, VerifyingKey
from ecdsa import ecdsa as ecdsa_raw
from ecdsa.ellipticcurve import PointJacobi

from conftest import FAST_PARAMS, run_keygen, run_sign
from twopecdsa import party_one, party_two
from twopecdsa.ecdsa_op import message_to_int
from twopecdsa.errors import (CommitmentMismatch, ProofInvalid, ProtocolAbort, SessionStateError,
                              SignatureVerificationFailed)
from twopecdsa.messages import PartialSig
from twopecdsa.paillier_keys import add, encrypt
from twopecdsa.params import DEFAULT_PARAMS
from twopecdsa.session import ABORTED


def library_verifies(ec, public_key, message, signature):
    """Check with python-ecdsa's own low level verifier, no twopecdsa code involved."""
    point = PointJacobi(ec.curve.curve, public_key.x, public_key.y, 1, ec.order)
    pub = ecdsa_raw.Public_key(ec.curve.generator, point)
    return pub.verifies(message, ecdsa_raw.Signature(signature.r, signature.s))


def test_sign_digest_1234(key_shares, ec):
    p1_share, p2_share = key_shares
    signature = run_sign(p1_share, p2_share, 1234, random.Random(3), random.Random(4))
    assert library_verifies(ec, p1_share.public_key, 1234, signature)
    assert ec.verify(signature, p2_share.public_key, 1234)
    assert not library_verifies(ec, p1_share.public_key, 1235, signature)


def test_low_s(key_shares, ec):
    p1_share, p2_share = key_shares
    for seed in range(4):
        signature = run_sign(p1_share, p2_share, 99, random.Random(seed), random.Random(seed + 100))
        assert 0 < signature.s <= ec.order // 2


def test_mpc_signing_message(key_shares, ec):
    p1_share, p2_share = key_shares
    message_to_sign = secrets.token_bytes(32)
    print(f"bytes to sign: [{message_to_sign.hex().upper()}]")
    digest = message_to_int(ec, message_to_sign)
    signature = run_sign(p1_share, p2_share, digest, random.Random(5), random.Random(6))
    sig_hex = str(signature)
    print(f"public_key = [{p1_share.public_key}] signature = [{sig_hex}]")
    pub = VerifyingKey.from_string(ec.point_bytes(p1_share.public_key),
                                   curve=ec.curve, hashfunc=sha256)
    pub.verify(bytes.fromhex(sig_hex), message_to_sign)
    pytest.raises(BadSignatureError, pub.verify, bytes.fromhex(sig_hex),
                  message_to_sign + b"polysign")


def test_every_session_uses_a_fresh_nonce(key_shares):
    p1_share, p2_share = key_shares
    rs = {run_sign(p1_share, p2_share, 42, None, None).r for _ in range(3)}
    assert len(rs) == 3


def test_tampered_partial_signature(key_shares, rng):
    p1_share, p2_share = key_shares
    p1 = party_one.Sign(p1_share, 777, rng)
    p2 = party_two.Sign(p2_share, 777, rng)
    partial = p2.partial_signature(p1.second_message(p2.first_message(p1.first_message())))
    pk = p2_share.paillier_public_key
    one, _ = encrypt(pk, 1, rng)
    with pytest.raises(SignatureVerificationFailed) as excinfo:
        p1.compute_signature(PartialSig(c3=add(pk, partial.c3, one)))
    # an internal fault, not an ordinary abort
    assert not isinstance(excinfo.value, ProtocolAbort)
    assert p1.state == ABORTED
    assert p1._exchange.secret.wiped


def test_parties_must_sign_same_digest(key_shares, rng):
    p1_share, p2_share = key_shares
    p1 = party_one.Sign(p1_share, 1000, rng)
    p2 = party_two.Sign(p2_share, 1001, rng)
    partial = p2.partial_signature(p1.second_message(p2.first_message(p1.first_message())))
    with pytest.raises(SignatureVerificationFailed):
        p1.compute_signature(partial)


def test_tampered_nonce_decommitment(key_shares, rng):
    p1_share, p2_share = key_shares
    p1 = party_one.Sign(p1_share, 5, rng)
    p2 = party_two.Sign(p2_share, 5, rng)
    decommit = p1.second_message(p2.first_message(p1.first_message()))
    bad = decommit._replace(blind=bytes(len(decommit.blind)))
    with pytest.raises(CommitmentMismatch):
        p2.partial_signature(bad)
    assert p2.state == ABORTED
    assert p2._exchange.secret.wiped


def test_party_one_rejects_bad_nonce_proof(key_shares, rng):
    p1_share, p2_share = key_shares
    p1 = party_one.Sign(p1_share, 5, rng)
    p2 = party_two.Sign(p2_share, 5, rng)
    msg = p2.first_message(p1.first_message())
    proof = msg.d_log_proof
    with pytest.raises(ProofInvalid):
        p1.second_message(msg._replace(d_log_proof=proof._replace(r=(proof.r + 1) % p1.ec.order)))


def test_keygen_proof_does_not_replay_in_signing(key_shares, rng):
    # a d_log proof made for key generation is labelled as such.
    p1_share, p2_share = key_shares
    keygen = party_two.KeyGen(FAST_PARAMS, rng)
    p1 = party_one.Sign(p1_share, 5, rng)
    replayed = keygen.first_message(party_one.KeyGen(FAST_PARAMS, rng).first_message())
    p1.first_message()
    with pytest.raises(ProofInvalid):
        p1.second_message(replayed)


def test_sign_session_is_single_use(key_shares, rng):
    p1_share, p2_share = key_shares
    p1 = party_one.Sign(p1_share, 8, rng)
    p2 = party_two.Sign(p2_share, 8, rng)
    partial = p2.partial_signature(p1.second_message(p2.first_message(p1.first_message())))
    p1.compute_signature(partial)
    assert p1._exchange.secret.wiped and p2._exchange.secret.wiped
    with pytest.raises(SessionStateError):
        p1.compute_signature(partial)
    with pytest.raises(SessionStateError):
        p2.partial_signature(None)


def test_message_is_reduced_mod_order(key_shares, ec):
    p1_share, p2_share = key_shares
    signature = run_sign(p1_share, p2_share, 1234 + ec.order, random.Random(7), random.Random(8))
    assert library_verifies(ec, p1_share.public_key, 1234, signature)


@pytest.mark.skipif(not os.environ.get('SOAK_TEST'), reason="No need to run every time.")
def test_default_params_keygen_and_sign():
    p1_share, p2_share = run_keygen(DEFAULT_PARAMS, None, None)
    ec = p1_share.ec
    for _ in range(2):
        message = secrets.token_bytes(32)
        signature = run_sign(p1_share, p2_share, message_to_int(ec, message), None, None)
        assert library_verifies(ec, p1_share.public_key, message_to_int(ec, message), signature)
