"""
Commitment scheme using a hash function(ROM) and fixed length blinding factor.

Please refer to https://eprint.iacr.org/2020/540.pdf section 2.6
"""

import hashlib
import random

from .errors import CommitmentMismatch, MalformedMessage
from .toyrand import random_bytes

blind_length = 32


def commit(input: bytes, rng: random.Random) -> (bytes, bytes):
    r = random_bytes(blind_length, rng)
    return hashlib.sha3_256(input + r).digest(), r


def verify_commitment(commitment: bytes, r: bytes, input: bytes) -> bool:
    if len(commitment) == 0 or len(r) != blind_length or len(input) == 0:
        return False
    return hashlib.sha3_256(input + r).digest() == commitment


class ReceivedCommitment:
    """
    Receiver side of a commitment. It can be opened once; a second
    attempt raises even when the data would match.
    """

    def __init__(self, commitment: bytes):
        if not isinstance(commitment, bytes) or len(commitment) != hashlib.sha3_256().digest_size:
            raise MalformedMessage("commitment has the wrong size")
        self.commitment = commitment
        self.opened = False

    def open(self, r: bytes, input: bytes) -> bool:
        if self.opened:
            raise CommitmentMismatch("commitment was already opened")
        self.opened = True
        return verify_commitment(self.commitment, r, input)
