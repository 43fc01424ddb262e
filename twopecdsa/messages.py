"""
Messages passed between party one and party two.

Transport and serialisation are up to the caller; these are plain immutable
tuples of ints, bytes, Points and phe objects.

KeyGen:
    P1 -> P2  CommitMsg          commitment to x1*G and its proof
    P2 -> P1  PublicShareMsg     x2*G and proof
    P1 -> P2  KeyGenSecondMsg    decommitment, P1 accepted P2's proof
    P1 -> P2  KeyGenThirdMsg     Paillier key, Enc(x1), range proof
    P2 -> P1  CorrectKeyChallenge
    P1 -> P2  CorrectKeyProof

Sign:
    P1 -> P2  CommitMsg          commitment to k1*G
    P2 -> P1  PublicShareMsg     k2*G and proof
    P1 -> P2  DecommitMsg
    P2 -> P1  PartialSig
"""

from collections import namedtuple

from .correct_key import CorrectKeyChallenge, CorrectKeyProof  # noqa: F401
from .key_exchange import CommitMsg, DecommitMsg, PublicShareMsg  # noqa: F401

KeyGenSecondMsg = namedtuple("KeyGenSecondMsg", ["decommitment", "d_log_proof_result"])
KeyGenThirdMsg = namedtuple("KeyGenThirdMsg", ["paillier_public_key", "encrypted_share", "range_proof"])
PartialSig = namedtuple("PartialSig", ["c3"])
