"""
Cut-and-choose proof that a Paillier ciphertext c = Enc(x; r) holds a small x
which is also the discrete log of a public point Q = x*G.

This is the range proof from Appendix A of Lindell's two party ECDSA
(https://eprint.iacr.org/2017/552.pdf), itself taken from Boudot's "Efficient
proofs that a committed number lies in an interval". Write l = q/3. The
honest prover holds x in [0, l). For each of `rounds` indices it picks
w1 in (l, 2l], sets w2 = w1 - l, swaps the two with probability 1/2, and
publishes

    c1 = Enc(w1; r1), c2 = Enc(w2; r2), W1 = w1*G, W2 = w2*G

The challenge bit for each index comes from hashing everything published so
far (Fiat-Shamir). On bit 0 the prover opens the pair completely and the
verifier checks that it is well formed. On bit 1 it picks the j with
x + w_j in [l, 2l] (there always is one when x is in range) and reveals only
x + w_j and r*r_j. The verifier then checks

    c * c_j == Enc(x + w_j; r*r_j),   (x + w_j)*G == Q + W_j

A prover whose x lies outside [-l, 2l] can't answer bit 1 for any pair. A
prover whose pair is malformed can't answer bit 0. Each index therefore
catches a cheater with probability 1/2.
"""

from collections import namedtuple

import hmac
import logging
import random

from .ecdsa_op import EC, Point
from .hashing import challenge_bits, digest_ints
from .paillier_keys import PaillierPublicKey, is_valid_ciphertext, raw_ciphertext
from .toyrand import sample_range, sample_unit

logger = logging.getLogger(__name__)

PAIRS_LABEL = b"twopecdsa/range-proof/pairs"

EncryptedPairs = namedtuple("EncryptedPairs", ["c1", "c2", "W1", "W2"])
OpenResponse = namedtuple("OpenResponse", ["w1", "r1", "w2", "r2"])
MaskResponse = namedtuple("MaskResponse", ["j", "masked_x", "masked_r"])
RangeProof = namedtuple("RangeProof", ["pairs", "commitment", "challenge", "responses"])


def _commit_pairs(ec: EC, public_key: PaillierPublicKey, c: int, Q: Point,
                  pairs: EncryptedPairs) -> bytes:
    values = [public_key.n, c, Q.x, Q.y, len(pairs.c1)]
    values += list(pairs.c1) + list(pairs.c2)
    for W in list(pairs.W1) + list(pairs.W2):
        values += [W.x, W.y]
    return digest_ints(PAIRS_LABEL, values)


def proove(ec: EC, public_key: PaillierPublicKey, x: int, r: int, Q: Point,
           c: int, rounds: int, rng: random.Random) -> RangeProof:
    """
    x, r: plaintext and randomness of the raw ciphertext c. Q = x*G.
    """
    n = public_key.n
    l = ec.order // 3
    w1 = [sample_range(l + 1, 2 * l, rng) for _ in range(rounds)]
    w2 = [w - l for w in w1]
    for i in range(rounds):
        if rng.getrandbits(1):
            w1[i], w2[i] = w2[i], w1[i]
    r1 = [sample_unit(n, rng) for _ in range(rounds)]
    r2 = [sample_unit(n, rng) for _ in range(rounds)]
    pairs = EncryptedPairs(
        c1=[raw_ciphertext(public_key, w, ri) for w, ri in zip(w1, r1)],
        c2=[raw_ciphertext(public_key, w, ri) for w, ri in zip(w2, r2)],
        W1=[ec.pub_key_from_priv(w) for w in w1],
        W2=[ec.pub_key_from_priv(w) for w in w2],
    )
    commitment = _commit_pairs(ec, public_key, c, Q, pairs)
    bits = challenge_bits(commitment, rounds)

    responses = []
    for i, bit in enumerate(bits):
        if bit == 0:
            responses.append(OpenResponse(w1=w1[i], r1=r1[i], w2=w2[i], r2=r2[i]))
        elif l <= x + w1[i] <= 2 * l:
            responses.append(MaskResponse(j=1, masked_x=x + w1[i], masked_r=r * r1[i] % n))
        else:
            responses.append(MaskResponse(j=2, masked_x=x + w2[i], masked_r=r * r2[i] % n))
    return RangeProof(pairs=pairs, commitment=commitment, challenge=bits, responses=responses)


def _is_unit_below(v, n: int) -> bool:
    return isinstance(v, int) and 0 < v < n


def _check_open(ec, public_key, l, pairs, i, resp: OpenResponse) -> bool:
    if not all(isinstance(v, int) for v in resp):
        return False
    lo, hi = sorted((resp.w1, resp.w2))
    if not (1 <= lo <= l and hi - lo == l):
        return False
    if not (_is_unit_below(resp.r1, public_key.n) and _is_unit_below(resp.r2, public_key.n)):
        return False
    return (pairs.c1[i] == raw_ciphertext(public_key, resp.w1, resp.r1) and
            pairs.c2[i] == raw_ciphertext(public_key, resp.w2, resp.r2) and
            pairs.W1[i] == ec.pub_key_from_priv(resp.w1) and
            pairs.W2[i] == ec.pub_key_from_priv(resp.w2))


def _check_mask(ec, public_key, l, c, Q, pairs, i, resp: MaskResponse) -> bool:
    if resp.j not in (1, 2) or not isinstance(resp.masked_x, int):
        return False
    if not l <= resp.masked_x <= 2 * l:
        return False
    if not _is_unit_below(resp.masked_r, public_key.n):
        return False
    c_j, W_j = (pairs.c1[i], pairs.W1[i]) if resp.j == 1 else (pairs.c2[i], pairs.W2[i])
    combined = c * c_j % public_key.nsquare
    if combined != raw_ciphertext(public_key, resp.masked_x, resp.masked_r):
        return False
    return ec.pub_key_from_priv(resp.masked_x) == ec.add(Q, W_j)


def verify(ec: EC, public_key: PaillierPublicKey, c: int, Q: Point,
           proof: RangeProof, rounds: int) -> bool:
    """
    c is the raw ciphertext of the share, Q the share's public point.
    Every index is checked, opened or masked, against the committed pairs.
    """
    if not isinstance(proof, RangeProof) or not isinstance(proof.pairs, EncryptedPairs):
        return False
    pairs = proof.pairs
    if not all(isinstance(v, (list, tuple)) and len(v) == rounds
               for v in (pairs.c1, pairs.c2, pairs.W1, pairs.W2, proof.responses, proof.challenge)):
        return False
    if not is_valid_ciphertext(public_key, c) or not ec.valid(Q):
        return False
    if not all(is_valid_ciphertext(public_key, ci) for ci in list(pairs.c1) + list(pairs.c2)):
        return False
    if not all(ec.valid(W) for W in list(pairs.W1) + list(pairs.W2)):
        return False

    commitment = _commit_pairs(ec, public_key, c, Q, pairs)
    if not isinstance(proof.commitment, bytes) or not hmac.compare_digest(commitment, proof.commitment):
        return False
    bits = challenge_bits(commitment, rounds)
    if list(proof.challenge) != bits:
        return False

    l = ec.order // 3
    for i, (bit, resp) in enumerate(zip(bits, proof.responses)):
        if bit == 0:
            ok = isinstance(resp, OpenResponse) and _check_open(ec, public_key, l, pairs, i, resp)
        else:
            ok = isinstance(resp, MaskResponse) and _check_mask(ec, public_key, l, c, Q, pairs, i, resp)
        if not ok:
            logger.debug("range proof index %d (challenge bit %d) rejected", i, bit)
            return False
    return True
