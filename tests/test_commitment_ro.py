import pytest
import secrets

from twopecdsa.commitment_ro import ReceivedCommitment, blind_length, commit, verify_commitment
from twopecdsa.errors import CommitmentMismatch, MalformedMessage


def test_commitment_scheme(rng):
    value_to_commit = secrets.token_hex(32)
    print(f"value commiting to [{value_to_commit}]")
    C, R = commit(bytes.fromhex(value_to_commit), rng)
    assert len(R) == blind_length
    assert verify_commitment(C, R, bytes.fromhex(value_to_commit))
    # should not match commitment for another value.
    another_value = secrets.token_hex(32)
    print(f"another value [{another_value}]")
    assert not verify_commitment(C, R, bytes.fromhex(another_value))


def test_commitment_needs_matching_blind(rng):
    C, R = commit(b"polysign", rng)
    other = bytes([R[0] ^ 1]) + R[1:]
    assert not verify_commitment(C, other, b"polysign")
    assert not verify_commitment(C, R[:-1], b"polysign")


def test_same_value_commits_differently(rng):
    C1, _ = commit(b"polysign", rng)
    C2, _ = commit(b"polysign", rng)
    assert C1 != C2


def test_received_commitment_opens_once(rng):
    C, R = commit(b"polysign", rng)
    received = ReceivedCommitment(C)
    assert received.open(R, b"polysign")
    with pytest.raises(CommitmentMismatch):
        received.open(R, b"polysign")


def test_received_commitment_rejects_bad_size():
    with pytest.raises(MalformedMessage):
        ReceivedCommitment(b"short")
    with pytest.raises(MalformedMessage):
        ReceivedCommitment(12345)
