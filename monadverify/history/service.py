"""
Verification History
====================

Read side of the verification flow: scan a user's events through the chain
reader and reconcile them into records.

Version: 0.1.0
"""

from monadverify.history.reader import ChainReader
from monadverify.history.reconciler import reconcile
from monadverify.history.stats import compute_history_stats
from monadverify.logging import get_logger
from monadverify.models.verification import (
    HistorySnapshot,
    HistoryStats,
    ScanResult,
    VerificationRecord,
)

logger = get_logger(__name__)


class VerificationHistory:
    """
    Records for a user, kept in sync with the ledger incrementally.

    Usage:
        history = VerificationHistory(reader)
        records = await history.load_history("0xabc...")
    """

    def __init__(self, reader: ChainReader) -> None:
        self.reader = reader

    def _snapshot(self, user: str, result: ScanResult) -> HistorySnapshot:
        address = user.lower()
        records = reconcile(result.requested, result.completed)
        logger.info(
            "history_loaded",
            user=address,
            records=len(records),
            from_cache=result.from_cache,
            skipped_windows=len(result.skipped_ranges),
        )
        return HistorySnapshot(address=address, records=records, scan=result)

    async def sync(self, user: str, current_block: int | None = None) -> HistorySnapshot:
        """Scan new blocks since the checkpoint and reconcile, keeping the scan details."""
        return self._snapshot(user, await self.reader.scan(user, current_block))

    async def force_sync(self, user: str) -> HistorySnapshot:
        """Drop the cached checkpoint and rebuild from the start block."""
        return self._snapshot(user, await self.reader.force_refresh(user))

    async def load_history(
        self,
        user: str,
        current_block: int | None = None,
    ) -> list[VerificationRecord]:
        """Scan new blocks since the checkpoint and return all records, newest first."""
        return (await self.sync(user, current_block)).records

    async def refresh(self, user: str) -> list[VerificationRecord]:
        return await self.load_history(user)

    async def force_refresh(self, user: str) -> list[VerificationRecord]:
        return (await self.force_sync(user)).records

    async def clear_cache(self, user: str) -> None:
        await self.reader.clear_cache(user)

    async def get_stats(self, user: str) -> HistoryStats:
        return compute_history_stats(await self.load_history(user))
