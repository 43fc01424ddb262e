"""
Deployment wide security parameters.

These are fixed per deployment and both parties must agree on them.

Modulus size: Lindell's protocol needs the Paillier plaintext space to hold
rho*q + k2^-1*(m + r*x1*x2) without wrapping, which is below q^3 + q^2.
phe additionally refuses scalars above N/3, so we require
bitlen(N) >= 3 * bitlen(q) + PAILLIER_MARGIN_BITS.

Round counts: every correct-key round and every cut-and-choose round halves a
cheater's chance, so the soundness error is 2^-rounds.
"""

from collections import namedtuple

from ecdsa import SECP256k1

PAILLIER_MARGIN_BITS = 128

ProtocolParams = namedtuple(
    "ProtocolParams",
    ["curve", "paillier_bits", "correct_key_rounds", "range_proof_rounds"],
)

DEFAULT_PARAMS = ProtocolParams(
    curve=SECP256k1,
    paillier_bits=2048,
    correct_key_rounds=128,
    range_proof_rounds=128,
)


def min_paillier_bits(curve) -> int:
    return 3 * curve.order.bit_length() + PAILLIER_MARGIN_BITS


def check_params(params: ProtocolParams) -> ProtocolParams:
    """
    Raise ValueError if params are not safe to run the protocol with.
    Returns params so it can be used inline.
    """
    if params.paillier_bits % 2:
        raise ValueError(f"paillier_bits must be even, got {params.paillier_bits}")
    needed = min_paillier_bits(params.curve)
    if params.paillier_bits < needed:
        raise ValueError(
            f"paillier_bits={params.paillier_bits} is too small for curve "
            f"{params.curve.name}, need at least {needed}")
    if params.correct_key_rounds < 1 or params.range_proof_rounds < 1:
        raise ValueError("round counts must be positive")
    return params
