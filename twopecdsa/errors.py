"""
Exceptions raised by the two party protocol.

Proof modules only answer accept/reject. The party state machines translate a
reject into one of the exceptions below and abort the session.
"""


class ProtocolError(Exception):
    """Base class for everything raised by twopecdsa."""


class ProtocolAbort(ProtocolError):
    """
    The counterparty sent something we refuse to use.

    These are expected outcomes when talking to a malicious peer. The session
    is dead but a new session with fresh randomness may be started.
    """


class ProofInvalid(ProtocolAbort):
    """A Schnorr, correct-key or range proof failed verification."""


class CommitmentMismatch(ProtocolAbort):
    """A decommitment does not open the commitment received earlier."""


class OutOfRangeCiphertext(ProtocolAbort):
    """A Paillier ciphertext is not in [1, N^2)."""


class MalformedMessage(ProtocolAbort):
    """Structurally invalid input: point off the curve, non unit ciphertext, ..."""


class SignatureVerificationFailed(ProtocolError):
    """
    Party one's final self check of the signature failed.

    Either an adversary got something past the earlier proofs or there is a
    bug. Kept out of the ProtocolAbort branch so callers handle it separately.
    """


class SessionStateError(ProtocolError):
    """A step was called out of order or on a finished/aborted session."""
