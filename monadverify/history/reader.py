"""
Chain Reader
============

Incremental scan of a user's verification events.

The block range since the last checkpoint is split into fixed windows that
are queried one at a time, oldest first, with a pause between windows to
stay under public RPC rate limits. A window whose queries keep failing is
skipped and recorded; the scan itself never fails because of one window.

Version: 0.1.0
"""

import asyncio
from collections.abc import Awaitable, Callable

from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from monadverify.config import settings
from monadverify.errors import LedgerError, RateLimitError
from monadverify.history.cache import BlockCacheRepository
from monadverify.ledger import LedgerClient
from monadverify.logging import get_logger
from monadverify.models.ledger import BlockRange, EventName, LedgerEvent
from monadverify.models.verification import BlockCache, CachedEvents, ScanResult

logger = get_logger(__name__)

Sleep = Callable[[float], Awaitable[None]]


def split_windows(start: int, end: int, size: int) -> list[BlockRange]:
    """Inclusive ``[start, end]`` cut into consecutive windows of ``size`` blocks."""
    return [
        BlockRange(from_block=lo, to_block=min(lo + size - 1, end))
        for lo in range(start, end + 1, size)
    ]


def merge_events(existing: list[LedgerEvent], new: list[LedgerEvent]) -> list[LedgerEvent]:
    """Append events not already present, keyed by ``(tx_hash, log_index)``."""
    seen = {e.key for e in existing}
    merged = list(existing)
    for event in new:
        if event.key not in seen:
            seen.add(event.key)
            merged.append(event)
    return merged


class ChainReader:
    """
    Windowed, rate-limit aware event scanner with a persistent checkpoint.

    Usage:
        reader = ChainReader(ledger, BlockCacheRepository(get_store()))
        result = await reader.scan("0xabc...")
    """

    def __init__(
        self,
        ledger: LedgerClient,
        cache: BlockCacheRepository,
        sleep: Sleep = asyncio.sleep,
        block_range: int | None = None,
        rate_limit_delay: float | None = None,
        max_retries: int | None = None,
        start_block: int | None = None,
        retry_skipped_windows: bool | None = None,
    ) -> None:
        history = settings.history
        self.ledger = ledger
        self.cache = cache
        self._sleep = sleep
        self.block_range = block_range or history.block_range
        self.rate_limit_delay = (
            rate_limit_delay if rate_limit_delay is not None else history.rate_limit_delay_seconds
        )
        self.max_retries = max_retries if max_retries is not None else history.max_retries
        self.start_block = start_block if start_block is not None else history.start_block
        self.retry_skipped_windows = (
            retry_skipped_windows
            if retry_skipped_windows is not None
            else history.retry_skipped_windows
        )

    async def _query_window(
        self,
        user: str,
        window: BlockRange,
    ) -> tuple[list[LedgerEvent], list[LedgerEvent]]:
        """Both event queries for one window, retried together on rate limits."""
        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type(RateLimitError),
            stop=stop_after_attempt(self.max_retries + 1),
            wait=wait_exponential(multiplier=self.rate_limit_delay, exp_base=2),
            sleep=self._sleep,
            reraise=True,
            before_sleep=lambda retry_state: logger.warning(
                "history_window_rate_limited",
                window=str(window),
                attempt=retry_state.attempt_number,
                wait=retry_state.next_action.sleep,  # type: ignore[union-attr]
            ),
        ):
            with attempt:
                requested = await self.ledger.get_logs(
                    EventName.VERIFICATION_REQUESTED, user, window.from_block, window.to_block
                )
                completed = await self.ledger.get_logs(
                    EventName.VERIFICATION_COMPLETED, user, window.from_block, window.to_block
                )
        return requested, completed

    async def scan(self, user: str, current_block: int | None = None) -> ScanResult:
        """
        Bring the user's cache up to ``current_block`` and return all events.

        Args:
            user: Wallet address whose events to read
            current_block: Chain height to scan to (queried when None)

        Returns:
            Cached plus newly found events, unreconciled
        """
        user = user.lower()
        cached = await self.cache.load(user)
        if current_block is None:
            current_block = await self.ledger.get_block_number()

        pending_gaps = list(cached.skipped_ranges) if cached else []
        rescan_gaps = self.retry_skipped_windows and bool(pending_gaps)

        if cached is not None and cached.last_queried_block >= current_block and not rescan_gaps:
            logger.debug(
                "history_cache_current",
                user=user,
                last_queried_block=cached.last_queried_block,
            )
            return ScanResult(
                requested=cached.events.requested,
                completed=cached.events.completed,
                last_queried_block=cached.last_queried_block,
                from_cache=True,
                skipped_ranges=cached.skipped_ranges,
            )

        start = cached.last_queried_block + 1 if cached is not None else self.start_block
        windows: list[BlockRange] = []
        if rescan_gaps:
            windows.extend(pending_gaps)
            pending_gaps = []
        windows.extend(split_windows(start, current_block, self.block_range))

        logger.info(
            "history_scan_started",
            user=user,
            from_block=start,
            to_block=current_block,
            windows=len(windows),
        )

        new_requested: list[LedgerEvent] = []
        new_completed: list[LedgerEvent] = []
        skipped: list[BlockRange] = []

        for index, window in enumerate(windows):
            if index > 0:
                await self._sleep(self.rate_limit_delay)
            try:
                requested, completed = await self._query_window(user, window)
            except RateLimitError as e:
                logger.warning(
                    "history_window_skipped",
                    window=str(window),
                    reason="rate_limited",
                    error=str(e),
                )
                skipped.append(window)
                await self._sleep(2 * self.rate_limit_delay)
                continue
            except LedgerError as e:
                logger.warning(
                    "history_window_skipped",
                    window=str(window),
                    reason="error",
                    error=str(e),
                )
                skipped.append(window)
                continue

            new_requested.extend(requested)
            new_completed.extend(completed)

        previous = cached.events if cached is not None else CachedEvents()
        last_queried = max(cached.last_queried_block if cached is not None else -1, current_block)
        updated = BlockCache(
            last_queried_block=last_queried,
            events=CachedEvents(
                requested=merge_events(previous.requested, new_requested),
                completed=merge_events(previous.completed, new_completed),
            ),
            skipped_ranges=pending_gaps + skipped,
        )
        await self.cache.save(user, updated)

        logger.info(
            "history_scan_completed",
            user=user,
            last_queried_block=last_queried,
            new_requested=len(new_requested),
            new_completed=len(new_completed),
            skipped=len(skipped),
        )

        return ScanResult(
            requested=updated.events.requested,
            completed=updated.events.completed,
            last_queried_block=last_queried,
            windows_scanned=len(windows) - len(skipped),
            skipped_ranges=updated.skipped_ranges,
        )

    async def clear_cache(self, user: str) -> None:
        await self.cache.clear(user)

    async def force_refresh(self, user: str, current_block: int | None = None) -> ScanResult:
        """Discard the checkpoint and rescan from the start block."""
        await self.clear_cache(user)
        return await self.scan(user, current_block)
