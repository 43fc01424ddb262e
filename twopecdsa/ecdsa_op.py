"""
Elliptic curve helpers for the two party protocol.

Utilities for:
    1. EC public key generation
    2. EC point validation, addition and scalar multiplication
    3. Scalar inverse mod the group order
    4. Point encoding used inside hashes
    5. Plain (single party) ECDSA verification and low-s normalisation

The arithmetic itself is delegated to the python-ecdsa library
(https://github.com/tlsfuzzer/python-ecdsa) which does it in Jacobian
coordinates. Points travel between the parties as the immutable affine
`Point(x, y)` below so they can be compared, hashed and serialised without
dragging curve objects along.

Signature verification is just implementing:
https://en.wikipedia.org/wiki/Elliptic_Curve_Digital_Signature_Algorithm
"""

from collections import namedtuple
from hashlib import sha256

from ecdsa import SECP256k1
from ecdsa import ecdsa as ecdsa_raw
from ecdsa import util
from ecdsa.ellipticcurve import INFINITY as LIB_INFINITY
from ecdsa.ellipticcurve import PointJacobi


class Point(namedtuple("Point", "x y")):
    def __repr__(self):
        """Uncompressed"""
        if self.x is None:
            return "Point(infinity)"
        return f"04{self.x:0>64X}{self.y:0>64X}"


# The point at infinity. generator * order = O
O = Point(None, None)


class Signature(namedtuple("Signature", "r s")):
    def __repr__(self):
        return f"{self.r:0>64X}{self.s:0>64X}"

    def to_bytes(self, order: int) -> bytes:
        """Raw r || s, the format VerifyingKey.verify expects by default."""
        return util.sigencode_string(self.r, self.s, order)

    def to_der(self, order: int) -> bytes:
        return util.sigencode_der(self.r, self.s, order)


class EC:
    """
    Curve context: generator, order and the group operations.

    `curve` is one of the python-ecdsa curve objects (SECP256k1, NIST256p, ...).
    """

    def __init__(self, curve=SECP256k1):
        self.curve = curve
        self.order = curve.order
        self.field_size = curve.curve.p()
        self._lib_generator = curve.generator
        self.generator = Point(curve.generator.x(), curve.generator.y())
        self._coord_len = (self.field_size.bit_length() + 7) // 8

    def __repr__(self):
        return f"EC({self.curve.name})"

    def _to_lib(self, P: Point):
        if P == O:
            return LIB_INFINITY
        return PointJacobi(self.curve.curve, P.x, P.y, 1, self.order)

    @staticmethod
    def _from_lib(R) -> Point:
        if R == LIB_INFINITY:
            return O
        return Point(R.x(), R.y())

    def valid(self, P) -> bool:
        """
        True iff P is a finite point on the curve with reduced coordinates.
        The point at infinity is never a valid public value in this protocol.
        """
        if not isinstance(P, Point) or P == O:
            return False
        if not (isinstance(P.x, int) and isinstance(P.y, int)):
            return False
        if not (0 <= P.x < self.field_size and 0 <= P.y < self.field_size):
            return False
        # all curves we support have cofactor 1 so on-curve is enough.
        return self.curve.curve.contains_point(P.x, P.y)

    def add(self, P: Point, Q: Point) -> Point:
        if P == O:
            return Q
        if Q == O:
            return P
        return self._from_lib(self._to_lib(P) + self._to_lib(Q))

    def scalar_mul(self, P: Point, scalar: int) -> Point:
        scalar %= self.order
        if scalar == 0 or P == O:
            return O
        if P == self.generator:
            # the library's generator carries precomputed multiples.
            return self._from_lib(self._lib_generator * scalar)
        return self._from_lib(self._to_lib(P) * scalar)

    def pub_key_from_priv(self, private: int) -> Point:
        return self.scalar_mul(self.generator, private)

    def scalar_inv_mod_order(self, x: int) -> int:
        """
        Compute an inverse for x modulo order, assuming that x
        is not divisible by order.
        """
        if x % self.order == 0:
            raise ZeroDivisionError("Impossible inverse")
        return pow(x, -1, self.order)

    def point_bytes(self, P: Point) -> bytes:
        """SEC1 compressed encoding."""
        if P == O:
            raise ValueError("Can't encode the point at infinity")
        prefix = b"\x02" if P.y % 2 == 0 else b"\x03"
        return prefix + P.x.to_bytes(self._coord_len, byteorder='big')

    def compressed_hex(self, P: Point) -> str:
        return self.point_bytes(P).hex().upper()

    def normalize_s(self, signature: Signature) -> Signature:
        """Low-s form: s and order - s both verify, keep the smaller one."""
        if signature.s > self.order // 2:
            return Signature(signature.r, self.order - signature.s)
        return signature

    def verify(self, signature: Signature, public_key: Point, message: int) -> bool:
        """
        Ordinary ECDSA verification of (r, s) over the integer digest `message`.
        """
        if not self.valid(public_key):
            return False
        if not (0 < signature.r < self.order and 0 < signature.s < self.order):
            return False
        pub = ecdsa_raw.Public_key(self._lib_generator, self._to_lib(public_key))
        return pub.verifies(message % self.order,
                            ecdsa_raw.Signature(signature.r, signature.s))


def message_to_int(ec: EC, message: bytes, hashfunc=sha256) -> int:
    """
    Hash message and keep the leftmost bitlen(order) bits, as ECDSA does.
    """
    e = int.from_bytes(hashfunc(message).digest(), byteorder="big")
    L_n = ec.order.bit_length()
    e_bit_len = hashfunc().digest_size * 8
    z = e if L_n >= e_bit_len else e >> (e_bit_len - L_n)
    return z % ec.order
