"""
Paillier key material on top of python-paillier (phe).

phe supplies the key objects, raw encryption/decryption and the homomorphic
operators on EncryptedNumber. What we add:

    1. key generation driven by a caller supplied rng, with both primes of
       exactly half the modulus length so N has the configured bit length;
    2. encryption that returns the randomness used, since the range proof
       has to open it later;
    3. a membership check for ciphertexts received from the other party,
       run before any homomorphic operation touches them.

All plaintexts here are non negative integers smaller than N/3 and
EncryptedNumber exponents are always 0, so phe's float encoding never kicks in.
"""

import math
import random

from phe import paillier
from phe.util import is_prime

from .errors import MalformedMessage, OutOfRangeCiphertext
from .toyrand import sample_unit

PaillierPublicKey = paillier.PaillierPublicKey
PaillierPrivateKey = paillier.PaillierPrivateKey
EncryptedNumber = paillier.EncryptedNumber


def generate_prime(bits: int, rng: random.Random) -> int:
    """Random prime with exactly `bits` bits and the top two bits set."""
    while True:
        candidate = rng.getrandbits(bits) | (3 << (bits - 2)) | 1
        while candidate.bit_length() == bits:
            if is_prime(candidate):
                return candidate
            candidate += 2


def generate_keypair(n_length: int, rng: random.Random):
    """
    Returns (public_key, private_key) with a modulus of exactly n_length bits.
    """
    half = n_length // 2
    while True:
        p = generate_prime(half, rng)
        q = generate_prime(n_length - half, rng)
        n = p * q
        # equal length primes make gcd(n, phi) = 1 but check anyway.
        if p != q and math.gcd(n, (p - 1) * (q - 1)) == 1 and n.bit_length() == n_length:
            break
    public_key = PaillierPublicKey(n)
    return public_key, PaillierPrivateKey(public_key, p, q)


def encrypt(public_key: PaillierPublicKey, plaintext: int, rng: random.Random):
    """
    Encrypt plaintext under public_key. Returns (ciphertext, randomness).
    """
    r = sample_unit(public_key.n, rng)
    return encrypt_with(public_key, plaintext, r), r


def encrypt_with(public_key: PaillierPublicKey, plaintext: int, r: int) -> EncryptedNumber:
    if not 0 <= plaintext < public_key.n:
        raise ValueError("plaintext outside [0, N)")
    return EncryptedNumber(public_key, public_key.raw_encrypt(plaintext, r_value=r))


def raw_ciphertext(public_key: PaillierPublicKey, plaintext: int, r: int) -> int:
    return public_key.raw_encrypt(plaintext, r_value=r)


def is_valid_ciphertext(public_key: PaillierPublicKey, c) -> bool:
    return (isinstance(c, int) and 0 < c < public_key.nsquare
            and math.gcd(c, public_key.n) == 1)


def check_ciphertext(public_key: PaillierPublicKey, c: EncryptedNumber) -> EncryptedNumber:
    """
    Reject anything that isn't an element of Z_{N^2}^* under public_key.
    """
    if not isinstance(c, EncryptedNumber) or c.exponent != 0:
        raise MalformedMessage("not a Paillier ciphertext")
    if c.public_key != public_key:
        raise MalformedMessage("ciphertext is under a different Paillier key")
    raw = c.ciphertext(be_secure=False)
    if not isinstance(raw, int) or not 0 < raw < public_key.nsquare:
        raise OutOfRangeCiphertext("ciphertext is not in [1, N^2)")
    if math.gcd(raw, public_key.n) != 1:
        raise MalformedMessage("ciphertext is not a unit mod N^2")
    return c


def add(public_key: PaillierPublicKey, c1: EncryptedNumber, c2: EncryptedNumber) -> EncryptedNumber:
    """Ciphertext of the sum of the two plaintexts."""
    check_ciphertext(public_key, c1)
    check_ciphertext(public_key, c2)
    return c1 + c2


def mul(public_key: PaillierPublicKey, c: EncryptedNumber, k: int) -> EncryptedNumber:
    """Ciphertext of plaintext * k for a public scalar 0 <= k <= N/3."""
    check_ciphertext(public_key, c)
    if not 0 <= k <= public_key.max_int:
        raise ValueError("scalar outside [0, N/3]")
    return c * k


def decrypt(private_key: PaillierPrivateKey, c: EncryptedNumber) -> int:
    """Plaintext in [0, N)."""
    check_ciphertext(private_key.public_key, c)
    return private_key.raw_decrypt(c.ciphertext(be_secure=False))
