"""
Holder for secret integers that can be wiped.

Python ints are immutable and can't be cleared, so the value lives in a
bytearray we own. Every read of .value builds a short lived int; the
bytearray itself is zeroed by wipe(). This doesn't stop the interpreter from
keeping copies of intermediate results around, but it does mean long lived
session and key objects stop holding the secret as soon as they are done.
"""

from .errors import SessionStateError


class SecretScalar:
    __slots__ = ("_buf",)

    def __init__(self, value: int):
        if value < 0:
            raise ValueError("SecretScalar holds non negative integers only")
        length = max(1, (value.bit_length() + 7) // 8)
        self._buf = bytearray(value.to_bytes(length, byteorder='big'))

    @property
    def value(self) -> int:
        if self._buf is None:
            raise SessionStateError("secret value has been wiped")
        return int.from_bytes(self._buf, byteorder='big')

    @property
    def wiped(self) -> bool:
        return self._buf is None

    def wipe(self):
        if self._buf is None:
            return
        for i in range(len(self._buf)):
            self._buf[i] = 0
        self._buf = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.wipe()
        return False

    def __repr__(self):
        return "SecretScalar(<wiped>)" if self._buf is None else "SecretScalar(<redacted>)"


def wipe_all(*secrets):
    """Wipe every SecretScalar given, skipping None."""
    for s in secrets:
        if s is not None:
            s.wipe()
