"""
Party two of Lindell's two party ECDSA (https://eprint.iacr.org/2017/552.pdf).

Party two answers party one's commitments, verifies every proof about party
one's Paillier key and encrypted share, and during signing builds the
partial signature homomorphically from Enc(x1) without ever seeing x1.

    keygen = KeyGen(params)
    m1 = keygen.first_message(p1_first)          # -> party one
    keygen.second_message(p1_second)
    challenge = keygen.correct_key_challenge(p1_third)   # -> party one
    share = keygen.finish(correct_key_proof)

    sign = Sign(share, message)
    m1 = sign.first_message(p1_first)            # -> party one
    partial_sig = sign.partial_signature(p1_second)     # -> party one
"""

import logging
import random

from . import correct_key, range_proof
from .ecdsa_op import EC, Point
from .errors import MalformedMessage, ProofInvalid
from .key_exchange import Responder, compute_pubkey
from .messages import (CommitMsg, CorrectKeyChallenge, CorrectKeyProof, DecommitMsg,
                       KeyGenSecondMsg, KeyGenThirdMsg, PartialSig, PublicShareMsg)
from .paillier_keys import (EncryptedNumber, PaillierPublicKey, add, check_ciphertext,
                            encrypt, mul)
from .params import DEFAULT_PARAMS, ProtocolParams, check_params
from .secret import SecretScalar, wipe_all
from .session import INIT, SessionLifecycle, protocol_step
from .toyrand import default_rng, int_sample

logger = logging.getLogger(__name__)

KEYGEN_ID = b"twopecdsa/keygen/party_two"
KEYGEN_COUNTERPART_ID = b"twopecdsa/keygen/party_one"
SIGN_ID = b"twopecdsa/sign/party_two"
SIGN_COUNTERPART_ID = b"twopecdsa/sign/party_one"


class PartyTwoKeyShare:
    """
    What party two keeps after key generation: x2, Q1, party one's Paillier
    public key and Enc(x1). Never contains x1 or the Paillier private key.
    """

    def __init__(self, params: ProtocolParams, secret_share: int, counterpart_public_share: Point,
                 paillier_public_key: PaillierPublicKey, encrypted_share: EncryptedNumber):
        self.params = params
        self.ec = EC(params.curve)
        self.secret_share = SecretScalar(secret_share)
        self.public_share = self.ec.pub_key_from_priv(secret_share)
        self.counterpart_public_share = counterpart_public_share
        self.paillier_public_key = paillier_public_key
        self.encrypted_share = encrypted_share
        self.public_key = compute_pubkey(self.ec, self.secret_share, counterpart_public_share)

    def close(self):
        self.secret_share.wipe()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


class KeyGen(SessionLifecycle):
    name = "party_two.KeyGen"

    def __init__(self, params: ProtocolParams = DEFAULT_PARAMS, rng: random.Random = None):
        self.params = check_params(params)
        self.ec = EC(params.curve)
        self.rng = rng or default_rng()
        self.state = INIT
        self._exchange = None
        self._third = None
        self._aid = None

    def _wipe(self):
        if self._exchange is not None:
            self._exchange.wipe()
        self._third = None
        self._aid = None

    @protocol_step(INIT, "sent_share")
    def first_message(self, msg: CommitMsg) -> PublicShareMsg:
        self._exchange = Responder(self.ec, self.rng, msg, KEYGEN_ID, KEYGEN_COUNTERPART_ID)
        return self._exchange.public_message()

    @protocol_step("sent_share", "verified_share")
    def second_message(self, msg: KeyGenSecondMsg) -> Point:
        """Returns party one's public share Q1 once the opening checks out."""
        if not isinstance(msg, KeyGenSecondMsg):
            raise MalformedMessage("expected a KeyGenSecondMsg")
        if msg.d_log_proof_result is not True:
            raise ProofInvalid("party one rejected our d_log proof")
        return self._exchange.verify_decommitment(msg.decommitment)

    @protocol_step("verified_share", "sent_challenge")
    def correct_key_challenge(self, msg: KeyGenThirdMsg) -> CorrectKeyChallenge:
        if not isinstance(msg, KeyGenThirdMsg) or not isinstance(msg.paillier_public_key, PaillierPublicKey):
            raise MalformedMessage("expected a KeyGenThirdMsg carrying a Paillier public key")
        pk = msg.paillier_public_key
        if not correct_key.check_modulus(pk.n, self.params.paillier_bits):
            raise ProofInvalid("Paillier modulus fails the structural checks")
        check_ciphertext(pk, msg.encrypted_share)
        self._third = msg
        challenge, self._aid = correct_key.generate_challenge(
            pk.n, self.params.correct_key_rounds, self.rng)
        return challenge

    @protocol_step("sent_challenge", "committed")
    def finish(self, proof: CorrectKeyProof) -> PartyTwoKeyShare:
        # the aid is good for exactly one verification.
        aid, self._aid = self._aid, None
        if not correct_key.verify(proof, aid):
            raise ProofInvalid("correct key proof rejected")
        third = self._third
        pk = third.paillier_public_key
        if not range_proof.verify(self.ec, pk, third.encrypted_share.ciphertext(be_secure=False),
                                  self._exchange.counterpart, third.range_proof,
                                  self.params.range_proof_rounds):
            raise ProofInvalid("range proof rejected")
        key_share = PartyTwoKeyShare(self.params, self._exchange.secret.value,
                                     self._exchange.counterpart, pk, third.encrypted_share)
        logger.info("party two: key generation complete, public key %s",
                    self.ec.compressed_hex(key_share.public_key))
        self._wipe()
        return key_share


class Sign(SessionLifecycle):
    """
    One signing session. `message` is the digest as an integer and must be
    the same value party one signs.
    """

    name = "party_two.Sign"

    def __init__(self, key_share: PartyTwoKeyShare, message: int, rng: random.Random = None):
        self.key_share = key_share
        self.params = key_share.params
        self.ec = key_share.ec
        self.message = message % self.ec.order
        self.rng = rng or default_rng()
        self.state = INIT
        self._exchange = None
        self._rho = None
        self._encryption_randomness = None

    def _wipe(self):
        if self._exchange is not None:
            self._exchange.wipe()
        wipe_all(self._rho, self._encryption_randomness)

    @protocol_step(INIT, "sent_nonce")
    def first_message(self, msg: CommitMsg) -> PublicShareMsg:
        self._exchange = Responder(self.ec, self.rng, msg, SIGN_ID, SIGN_COUNTERPART_ID)
        return self._exchange.public_message()

    @protocol_step("sent_nonce", "done")
    def partial_signature(self, msg: DecommitMsg) -> PartialSig:
        """
        c3 = Enc(rho*q + k2^-1*m) + Enc(x1) * (k2^-1*r*x2)
           = Enc(rho*q + k2^-1*(m + r*x1*x2))
        """
        self._exchange.verify_decommitment(msg)
        q = self.ec.order
        pk = self.key_share.paillier_public_key
        R = self._exchange.joint_point()
        r = R.x % q
        if r == 0:
            raise MalformedMessage("ephemeral point gives r = 0")
        k2_inv = self.ec.scalar_inv_mod_order(self._exchange.secret.value)
        self._rho = SecretScalar(int_sample(q * q, self.rng))
        c1, r_enc = encrypt(pk, self._rho.value * q + k2_inv * self.message % q, self.rng)
        self._encryption_randomness = SecretScalar(r_enc)
        v = k2_inv * r * self.key_share.secret_share.value % q
        c2 = mul(pk, self.key_share.encrypted_share, v)
        c3 = add(pk, c1, c2)
        logger.debug("party two: partial signature computed for r=%064X", r)
        self._wipe()
        return PartialSig(c3=c3)
