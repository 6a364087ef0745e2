"""
Orchestrator Module
===================

Two-phase request/complete verification flow with a published progress
state.

Usage:
    from monadverify.orchestrator import VerificationOrchestrator

    orchestrator = VerificationOrchestrator(ledger, wallet, attestations, history)
    state = await orchestrator.request_verification(form)
"""

from monadverify.orchestrator.flow import VerificationOrchestrator
from monadverify.orchestrator.state import (
    TRANSITIONS,
    InvalidTransitionError,
    can_transition,
    check_transition,
)

__all__ = [
    "VerificationOrchestrator",
    "TRANSITIONS",
    "InvalidTransitionError",
    "can_transition",
    "check_transition",
]
