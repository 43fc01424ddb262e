"""
Party one of Lindell's two party ECDSA (https://eprint.iacr.org/2017/552.pdf).

Party one commits first in every point exchange, owns the Paillier key pair
and is the one who ends up with the finished signature.

    keygen = KeyGen(params)
    m1 = keygen.first_message()                  # -> party two
    m2 = keygen.second_message(p2_first)         # -> party two
    m3 = keygen.third_message()                  # -> party two
    proof = keygen.correct_key_proof(challenge)  # -> party two
    share = keygen.key_share()

    sign = Sign(share, message)
    m1 = sign.first_message()
    m2 = sign.second_message(p2_first)
    signature = sign.compute_signature(partial_sig)
"""

import logging
import random

from . import correct_key, range_proof
from .ecdsa_op import EC, Point, Signature
from .errors import MalformedMessage, ProofInvalid, SessionStateError, SignatureVerificationFailed
from .key_exchange import Committer, compute_pubkey
from .messages import (CommitMsg, CorrectKeyChallenge, CorrectKeyProof, DecommitMsg,
                       KeyGenSecondMsg, KeyGenThirdMsg, PartialSig, PublicShareMsg)
from .paillier_keys import (EncryptedNumber, PaillierPrivateKey, PaillierPublicKey,
                            decrypt, encrypt, generate_keypair)
from .params import DEFAULT_PARAMS, ProtocolParams, check_params
from .secret import SecretScalar, wipe_all
from .session import INIT, SessionLifecycle, protocol_step
from .toyrand import default_rng

logger = logging.getLogger(__name__)

KEYGEN_ID = b"twopecdsa/keygen/party_one"
KEYGEN_COUNTERPART_ID = b"twopecdsa/keygen/party_two"
SIGN_ID = b"twopecdsa/sign/party_one"
SIGN_COUNTERPART_ID = b"twopecdsa/sign/party_two"


class PartyOneKeyShare:
    """
    What party one keeps after key generation: x1, Q2, the Paillier key pair
    and Enc(x1). Never contains x2.
    """

    def __init__(self, params: ProtocolParams, secret_share: int, counterpart_public_share: Point,
                 paillier_public_key: PaillierPublicKey, paillier_private_key: PaillierPrivateKey,
                 encrypted_share: EncryptedNumber):
        self.params = params
        self.ec = EC(params.curve)
        self.secret_share = SecretScalar(secret_share)
        self.public_share = self.ec.pub_key_from_priv(secret_share)
        self.counterpart_public_share = counterpart_public_share
        self.paillier_public_key = paillier_public_key
        self._paillier_private_key = paillier_private_key
        self.encrypted_share = encrypted_share
        self.public_key = compute_pubkey(self.ec, self.secret_share, counterpart_public_share)

    @property
    def paillier_private_key(self) -> PaillierPrivateKey:
        if self._paillier_private_key is None:
            raise SessionStateError("key share has been closed")
        return self._paillier_private_key

    def close(self):
        self.secret_share.wipe()
        self._paillier_private_key = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


class KeyGen(SessionLifecycle):
    """
    Party one's key generation. correct_key_proof() is party one's last
    message, so key_share() is available before party two has checked the
    correct-key and range proofs. Don't use the share until party two has
    confirmed that its finish() succeeded.
    """

    name = "party_one.KeyGen"

    def __init__(self, params: ProtocolParams = DEFAULT_PARAMS, rng: random.Random = None):
        self.params = check_params(params)
        self.ec = EC(params.curve)
        self.rng = rng or default_rng()
        self.state = INIT
        self._exchange = None
        self._paillier_public_key = None
        self._paillier_private_key = None
        self._encrypted_share = None
        self._encryption_randomness = None
        self._key_share = None

    def _wipe(self):
        if self._exchange is not None:
            self._exchange.wipe()
        wipe_all(self._encryption_randomness)
        # the private key survives only inside a finished PartyOneKeyShare.
        self._paillier_private_key = None

    @protocol_step(INIT, "sent_commitment")
    def first_message(self) -> CommitMsg:
        # the range proof only works for x1 < q/3.
        self._exchange = Committer(self.ec, self.rng, KEYGEN_ID, KEYGEN_COUNTERPART_ID,
                                   bound=self.ec.order // 3)
        return self._exchange.commit_message()

    @protocol_step("sent_commitment", "decommitted")
    def second_message(self, msg: PublicShareMsg) -> KeyGenSecondMsg:
        decommitment = self._exchange.verify_and_decommit(msg)
        return KeyGenSecondMsg(decommitment=decommitment, d_log_proof_result=True)

    @protocol_step("decommitted", "sent_paillier")
    def third_message(self) -> KeyGenThirdMsg:
        pk, sk = generate_keypair(self.params.paillier_bits, self.rng)
        self._paillier_public_key, self._paillier_private_key = pk, sk
        x1 = self._exchange.secret.value
        self._encrypted_share, r = encrypt(pk, x1, self.rng)
        self._encryption_randomness = SecretScalar(r)
        proof = range_proof.proove(self.ec, pk, x1, self._encryption_randomness.value,
                                   self._exchange.public_share,
                                   self._encrypted_share.ciphertext(be_secure=False),
                                   self.params.range_proof_rounds, self.rng)
        self._encryption_randomness.wipe()
        logger.debug("party one: Paillier modulus of %d bits, range proof over %d rounds",
                     pk.n.bit_length(), self.params.range_proof_rounds)
        return KeyGenThirdMsg(paillier_public_key=pk, encrypted_share=self._encrypted_share,
                              range_proof=proof)

    @protocol_step("sent_paillier", "committed")
    def correct_key_proof(self, challenge: CorrectKeyChallenge) -> CorrectKeyProof:
        n = self._paillier_public_key.n
        if not correct_key.check_challenge(n, challenge, self.params.correct_key_rounds):
            raise ProofInvalid("correct key challenge is not backed by a valid proof of the roots")
        proof = correct_key.proove(self._paillier_private_key, challenge)
        self._key_share = PartyOneKeyShare(
            self.params, self._exchange.secret.value, self._exchange.counterpart,
            self._paillier_public_key, self._paillier_private_key, self._encrypted_share)
        logger.info("party one: key generation complete, public key %s",
                    self.ec.compressed_hex(self._key_share.public_key))
        self._wipe()
        return proof

    def key_share(self) -> PartyOneKeyShare:
        if self.state != "committed":
            raise SessionStateError(f"no key share in state {self.state!r}")
        return self._key_share


class Sign(SessionLifecycle):
    """
    One signing session. `message` is the digest as an integer (see
    ecdsa_op.message_to_int). A session signs once; sign again with a new one.
    """

    name = "party_one.Sign"

    def __init__(self, key_share: PartyOneKeyShare, message: int, rng: random.Random = None):
        self.key_share = key_share
        self.params = key_share.params
        self.ec = key_share.ec
        self.message = message % self.ec.order
        self.rng = rng or default_rng()
        self.state = INIT
        self._exchange = None

    def _wipe(self):
        if self._exchange is not None:
            self._exchange.wipe()

    @protocol_step(INIT, "sent_commitment")
    def first_message(self) -> CommitMsg:
        self._exchange = Committer(self.ec, self.rng, SIGN_ID, SIGN_COUNTERPART_ID)
        return self._exchange.commit_message()

    @protocol_step("sent_commitment", "decommitted")
    def second_message(self, msg: PublicShareMsg) -> DecommitMsg:
        return self._exchange.verify_and_decommit(msg)

    @protocol_step("decommitted", "signed")
    def compute_signature(self, partial_sig: PartialSig) -> Signature:
        if not isinstance(partial_sig, PartialSig):
            raise MalformedMessage("expected a PartialSig")
        q = self.ec.order
        R = self._exchange.joint_point()
        r = R.x % q
        if r == 0:
            raise MalformedMessage("ephemeral point gives r = 0")
        t = decrypt(self.key_share.paillier_private_key, partial_sig.c3)
        k1_inv = self.ec.scalar_inv_mod_order(self._exchange.secret.value)
        s = k1_inv * t % q
        if s == 0:
            raise MalformedMessage("partial signature gives s = 0")
        signature = self.ec.normalize_s(Signature(r, s))
        if not self.ec.verify(signature, self.key_share.public_key, self.message):
            raise SignatureVerificationFailed("final signature does not verify under the joint public key")
        logger.info("party one: signature produced, r=%064X", r)
        self._wipe()
        return signature
