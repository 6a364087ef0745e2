"""
History Module
==============

Verification history reconstructed from contract events.

Components:
- ChainReader: windowed, rate-limit aware log scan with a per-address checkpoint
- BlockCacheRepository: persisted checkpoint and raw events
- reconcile: joins requested and completed events into records
- VerificationHistory: scan + reconcile for one user

Usage:
    from monadverify.history import get_verification_history

    history = get_verification_history()
    records = await history.load_history("0xabc...")
"""

from monadverify.history.cache import BlockCacheRepository
from monadverify.history.reader import ChainReader, merge_events, split_windows
from monadverify.history.reconciler import reconcile
from monadverify.history.service import VerificationHistory
from monadverify.history.stats import (
    compute_history_stats,
    compute_user_stats,
    records_by_data_type,
    records_by_status,
)

# Global history instance
_history: VerificationHistory | None = None


def get_verification_history() -> VerificationHistory:
    """Build the history service from the configured ledger client and store."""
    global _history

    if _history is None:
        from monadverify.ledger import get_ledger_client
        from monadverify.storage import get_store

        reader = ChainReader(get_ledger_client(), BlockCacheRepository(get_store()))
        _history = VerificationHistory(reader)

    return _history


def reset_verification_history() -> None:
    global _history
    _history = None


__all__ = [
    "BlockCacheRepository",
    "ChainReader",
    "VerificationHistory",
    "reconcile",
    "merge_events",
    "split_windows",
    "compute_history_stats",
    "compute_user_stats",
    "records_by_status",
    "records_by_data_type",
    "get_verification_history",
    "reset_verification_history",
]
