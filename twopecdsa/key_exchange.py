"""
Commit-reveal exchange of two EC points.

The committer picks a secret, publishes only H(point, proof, blind), waits for
the responder's point and proof, and then opens. The responder cannot open
anything and simply goes second in the order that matters: its point is sent
after it has received the commitment, so neither side can pick its point as a
function of the other one.

Both the key generation (x1, x2) and every signing session (k1, k2) go
through this exchange. The joint point is own_secret * counterpart_point, so
the joint discrete log is the product of the two secrets.
"""

from collections import namedtuple

import logging
import random

from . import schnorr_nizk
from .commitment_ro import ReceivedCommitment, commit
from .ecdsa_op import EC, Point
from .errors import CommitmentMismatch, MalformedMessage, ProofInvalid
from .hashing import int_bytes
from .secret import SecretScalar
from .toyrand import int_sample

logger = logging.getLogger(__name__)

CommitMsg = namedtuple("CommitMsg", ["commitment"])
PublicShareMsg = namedtuple("PublicShareMsg", ["public_share", "d_log_proof"])
DecommitMsg = namedtuple("DecommitMsg", ["public_share", "d_log_proof", "blind"])


def _commit_payload(public_share: Point, proof) -> bytes:
    # both coordinates, so the opening is bound to exactly the points sent.
    return (int_bytes(public_share.x) + int_bytes(public_share.y) +
            int_bytes(proof.V.x) + int_bytes(proof.V.y) +
            int_bytes(proof.r) +
            int_bytes(proof.c) +
            proof.user_id)


def compute_pubkey(ec: EC, secret_share: SecretScalar, counterpart_public_share: Point) -> Point:
    """Joint public key x1*x2*G from one's own share and the other's public share."""
    return ec.scalar_mul(counterpart_public_share, secret_share.value)


def check_public_share(ec: EC, public_share, proof, expected_user_id: bytes):
    """
    Raise unless `public_share` is a curve point and `proof` a valid Schnorr
    proof of knowledge of its discrete log made for `expected_user_id`.
    """
    if not isinstance(proof, schnorr_nizk.SchnorrNIZK):
        raise MalformedMessage("d_log_proof is not a SchnorrNIZK")
    if not ec.valid(public_share) or not ec.valid(proof.V):
        raise MalformedMessage("public share is not a point on the curve")
    if proof.A != public_share:
        raise MalformedMessage("d_log_proof is for a different point")
    if proof.user_id != expected_user_id:
        raise ProofInvalid(f"d_log_proof bound to {proof.user_id!r}, expected {expected_user_id!r}")
    if not schnorr_nizk.verify(ec, proof):
        raise ProofInvalid("d_log_proof does not verify")


class Committer:
    """
    The side that commits first. `bound` caps the secret, which is drawn
    from [1, bound).
    """

    def __init__(self, ec: EC, rng: random.Random, user_id: bytes,
                 counterpart_user_id: bytes, bound: int = None):
        self.ec = ec
        self.counterpart_user_id = counterpart_user_id
        self.secret = SecretScalar(int_sample(bound or ec.order, rng))
        self.public_share = ec.pub_key_from_priv(self.secret.value)
        self.d_log_proof = schnorr_nizk.proove(ec, self.secret.value, rng, user_id)
        self.commitment, blind = commit(
            _commit_payload(self.public_share, self.d_log_proof), rng)
        self._blind = bytearray(blind)
        self.counterpart = None

    def commit_message(self) -> CommitMsg:
        return CommitMsg(commitment=self.commitment)

    def verify_and_decommit(self, msg: PublicShareMsg) -> DecommitMsg:
        if not isinstance(msg, PublicShareMsg):
            raise MalformedMessage("expected a PublicShareMsg")
        check_public_share(self.ec, msg.public_share, msg.d_log_proof, self.counterpart_user_id)
        self.counterpart = msg.public_share
        logger.debug("committer accepted counterpart point %s", self.ec.compressed_hex(msg.public_share))
        return DecommitMsg(public_share=self.public_share,
                           d_log_proof=self.d_log_proof,
                           blind=bytes(self._blind))

    def joint_point(self) -> Point:
        return compute_pubkey(self.ec, self.secret, self.counterpart)

    def wipe(self):
        self.secret.wipe()
        for i in range(len(self._blind)):
            self._blind[i] = 0


class Responder:
    """
    The side that answers a commitment with its own point in the clear, then
    checks the opening.
    """

    def __init__(self, ec: EC, rng: random.Random, msg: CommitMsg, user_id: bytes,
                 counterpart_user_id: bytes):
        if not isinstance(msg, CommitMsg):
            raise MalformedMessage("expected a CommitMsg")
        self.ec = ec
        self.counterpart_user_id = counterpart_user_id
        self.received = ReceivedCommitment(msg.commitment)
        self.secret = SecretScalar(int_sample(ec.order, rng))
        self.public_share = ec.pub_key_from_priv(self.secret.value)
        self.d_log_proof = schnorr_nizk.proove(ec, self.secret.value, rng, user_id)
        self.counterpart = None

    def _encodable(self, P) -> bool:
        # on-curve is checked after the commitment opens.
        return (isinstance(P, Point) and isinstance(P.x, int) and isinstance(P.y, int)
                and 0 <= P.x < self.ec.field_size and 0 <= P.y < self.ec.field_size)

    def public_message(self) -> PublicShareMsg:
        return PublicShareMsg(public_share=self.public_share, d_log_proof=self.d_log_proof)

    def verify_decommitment(self, msg: DecommitMsg) -> Point:
        if not isinstance(msg, DecommitMsg) or not isinstance(msg.blind, bytes):
            raise MalformedMessage("expected a DecommitMsg")
        proof = msg.d_log_proof
        if not (isinstance(proof, schnorr_nizk.SchnorrNIZK)
                and self._encodable(msg.public_share) and self._encodable(proof.V)
                and isinstance(proof.r, int) and isinstance(proof.c, int)
                and proof.r >= 0 and proof.c >= 0 and isinstance(proof.user_id, bytes)):
            # can't even build the payload, but the commitment is still spent.
            self.received.opened = True
            raise MalformedMessage("decommitment does not carry a point and proof")
        payload = _commit_payload(msg.public_share, proof)
        if not self.received.open(msg.blind, payload):
            raise CommitmentMismatch("decommitment does not match the commitment")
        check_public_share(self.ec, msg.public_share, proof, self.counterpart_user_id)
        self.counterpart = msg.public_share
        logger.debug("responder accepted counterpart point %s", self.ec.compressed_hex(msg.public_share))
        return msg.public_share

    def joint_point(self) -> Point:
        return compute_pubkey(self.ec, self.secret, self.counterpart)

    def wipe(self):
        self.secret.wipe()
