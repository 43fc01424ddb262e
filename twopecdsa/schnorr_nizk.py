"""
This module is an implementation of the Schnorr's NIZK proof of knowledge of
a discrete logarithm over an elliptic curve.
Please refer to https://tools.ietf.org/html/rfc8235#section-3.2

Naming follows the RFC: A = a*G is the public point, V = v*G the prover's
first message, c the Fiat-Shamir challenge and r = v - a*c mod order.
"""

from collections import namedtuple
from hashlib import sha256

import random

from .ecdsa_op import EC
from .toyrand import int_sample


SchnorrNIZK = namedtuple('SchnorrNIZK', ['V', 'A', 'r', 'c', 'user_id'])


def _challenge(ec: EC, V, A, user_id: bytes) -> int:
    return int.from_bytes(sha256(
        ec.point_bytes(ec.generator) +
        ec.point_bytes(V) +
        ec.point_bytes(A) +
        user_id).digest(), byteorder='big') % ec.order


def proove(ec: EC, secret: int, rng: random.Random, user_id: bytes = b"DEFAULT") -> SchnorrNIZK:
    """
    Non Interactive zero knowledge proof that the proover knows the secret.
    """
    v = int_sample(ec.order, rng)
    V = ec.pub_key_from_priv(v)
    A = ec.pub_key_from_priv(secret)
    c = _challenge(ec, V, A, user_id)
    r = (v - secret * c) % ec.order
    return SchnorrNIZK(V=V, A=A, r=r, c=c, user_id=user_id)


def verify(ec: EC, proof: SchnorrNIZK) -> bool:
    """
    Verify the above zero knowledge proof.
    """
    if not (ec.valid(proof.V) and ec.valid(proof.A)):
        return False
    if not isinstance(proof.r, int) or not 0 <= proof.r < ec.order:
        return False
    if not isinstance(proof.user_id, bytes):
        return False
    # calculate challenge again
    if proof.c != _challenge(ec, proof.V, proof.A, proof.user_id):
        return False
    # verify V = G * [r] + A * [c]
    return proof.V == ec.add(ec.pub_key_from_priv(proof.r), ec.scalar_mul(proof.A, proof.c))
