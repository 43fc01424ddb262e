"""
Step ordering and abort handling for protocol sessions.

Each role (party_one.KeyGen, party_two.Sign, ...) is its own state machine
with its own states. This module only supplies the bookkeeping they share:
refuse steps called out of order, and on any failure mark the session
aborted and wipe its secrets before the exception propagates.
"""

import functools
import logging

from .errors import SessionStateError

logger = logging.getLogger(__name__)

INIT = "init"
ABORTED = "aborted"


def protocol_step(expected: str, advance_to: str):
    """
    Decorator for a session method that may only run in state `expected`
    and moves the session to `advance_to` when it returns.
    """
    def decorator(method):
        @functools.wraps(method)
        def wrapper(self, *args, **kwargs):
            if self.state != expected:
                raise SessionStateError(
                    f"{type(self).__name__}.{method.__name__} needs state "
                    f"{expected!r}, session is {self.state!r}")
            try:
                result = method(self, *args, **kwargs)
            except Exception as exc:
                self.abort(exc)
                raise
            logger.debug("%s: %s -> %s", self.name, self.state, advance_to)
            self.state = advance_to
            return result
        return wrapper
    return decorator


class SessionLifecycle:
    """
    Mixin giving a session a state, abort() and context manager support.
    Subclasses set `name` and implement `_wipe()`.
    """

    name = "session"
    state = INIT

    def _wipe(self):
        raise NotImplementedError

    def abort(self, exc: Exception = None):
        if self.state != ABORTED:
            logger.warning("%s aborted in state %r: %s", self.name, self.state,
                           type(exc).__name__ if exc is not None else "cancelled")
        self.state = ABORTED
        self._wipe()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc is not None and self.state != ABORTED:
            self.abort(exc)
        else:
            self._wipe()
        return False
