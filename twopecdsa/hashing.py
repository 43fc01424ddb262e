"""
Hash plumbing shared by the proofs: integer encoding, MGF1 expansion and
turning a digest into a string of challenge bits (Fiat-Shamir).
"""

from hashlib import sha256
from typing import Iterable, List

import math


def i2osp(x: int, xLen: int) -> bytes:
    """
    https://tools.ietf.org/html/rfc8017#section-4.1
    """
    assert xLen >= 0
    assert x < pow(256, xLen), "Input integer is too big for the xLen."
    # need to return big endian of the integer left padded with zero bytes.
    return x.to_bytes(xLen, byteorder='big')


def mgf1(seed: bytes, mask_len: int) -> bytes:
    """
    This implements the below:
    https://tools.ietf.org/html/rfc8017#appendix-B.2.1
    """

    assert mask_len <= pow(2, 32), "Mask Length is too long."
    hlen = 32  # SHA-256
    res = bytearray()
    for i in range(math.ceil(mask_len / hlen)):
        res.extend(sha256(seed + i2osp(i, 4)).digest())
    return bytes(res[:mask_len])


def int_bytes(x: int) -> bytes:
    """Length prefixed big endian encoding so concatenations stay unambiguous."""
    body = x.to_bytes(max(1, (x.bit_length() + 7) // 8), byteorder='big')
    return i2osp(len(body), 4) + body


def digest_ints(label: bytes, values: Iterable[int]) -> bytes:
    h = sha256(label)
    for v in values:
        h.update(int_bytes(v))
    return h.digest()


def challenge_bits(seed: bytes, count: int) -> List[int]:
    """Expand seed into `count` bits, most significant bit of the first byte first."""
    stream = mgf1(seed, math.ceil(count / 8))
    return [(stream[i // 8] >> (7 - i % 8)) & 1 for i in range(count)]
