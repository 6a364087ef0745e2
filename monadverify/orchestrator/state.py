"""
Verification State Machine
==========================

Allowed status transitions for one verification flow.

    idle -> requesting -> verifying -> completed
    requesting -> failed, verifying -> failed
    any -> idle (reset)

``idle -> verifying`` covers a completion issued directly for a request
confirmed earlier in the same session.

Version: 0.1.0
"""

from monadverify.errors import MonadVerifyError
from monadverify.models.verification import VerificationStatus

TRANSITIONS: dict[VerificationStatus, frozenset[VerificationStatus]] = {
    VerificationStatus.IDLE: frozenset({VerificationStatus.REQUESTING, VerificationStatus.VERIFYING}),
    VerificationStatus.REQUESTING: frozenset({VerificationStatus.VERIFYING, VerificationStatus.FAILED}),
    VerificationStatus.VERIFYING: frozenset({VerificationStatus.COMPLETED, VerificationStatus.FAILED}),
    VerificationStatus.COMPLETED: frozenset(),
    VerificationStatus.FAILED: frozenset(),
}


class InvalidTransitionError(MonadVerifyError):
    """A status change the state machine does not allow."""

    def __init__(self, current: VerificationStatus, target: VerificationStatus) -> None:
        super().__init__(f"Cannot move verification from {current.value} to {target.value}")
        self.current = current
        self.target = target


def can_transition(current: VerificationStatus, target: VerificationStatus) -> bool:
    return target == VerificationStatus.IDLE or target in TRANSITIONS[current]


def check_transition(current: VerificationStatus, target: VerificationStatus) -> None:
    if not can_transition(current, target):
        raise InvalidTransitionError(current, target)
