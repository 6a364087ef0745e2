"""
History Routes
==============

Verification history reconstructed from contract events.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, status
from pydantic import BaseModel, Field

from monadverify.history import (
    VerificationHistory,
    compute_history_stats,
    get_verification_history,
    records_by_data_type,
    records_by_status,
)
from monadverify.logging import get_logger
from monadverify.models import BlockRange, HistorySnapshot, HistoryStats, RecordStatus, VerificationRecord

logger = get_logger(__name__)
router = APIRouter()

Address = Annotated[str, Path(pattern=r"^0x[0-9a-fA-F]{40}$", description="Wallet address")]
History = Annotated[VerificationHistory, Depends(get_verification_history)]


# ============================================================================
# Response Models
# ============================================================================


class HistoryResponse(BaseModel):
    """Records for one address, newest first."""

    address: str
    total: int
    records: list[VerificationRecord]
    last_queried_block: int | None = None
    skipped_ranges: list[BlockRange] = Field(default_factory=list)


class CacheClearedResponse(BaseModel):
    address: str
    cleared: bool = True


def _response(snapshot: HistorySnapshot, records: list[VerificationRecord]) -> HistoryResponse:
    return HistoryResponse(
        address=snapshot.address,
        total=len(records),
        records=records,
        last_queried_block=snapshot.scan.last_queried_block,
        skipped_ranges=snapshot.scan.skipped_ranges,
    )


# ============================================================================
# Endpoints
# ============================================================================


@router.get("/{address}", response_model=HistoryResponse)
async def get_history(
    address: Address,
    history: History,
    status_filter: Annotated[RecordStatus | None, Query(alias="status")] = None,
    data_type: Annotated[str | None, Query()] = None,
) -> HistoryResponse:
    """
    Get verification records for an address.

    Scans blocks added since the last cached checkpoint before answering.
    """
    snapshot = await history.sync(address)
    records = snapshot.records
    if status_filter is not None:
        records = records_by_status(records, status_filter)
    if data_type is not None:
        records = records_by_data_type(records, data_type)
    return _response(snapshot, records)


@router.get("/{address}/stats", response_model=HistoryStats)
async def get_history_stats(address: Address, history: History) -> HistoryStats:
    """Summary counters over an address's records."""
    return compute_history_stats(await history.load_history(address))


@router.post("/{address}/refresh", response_model=HistoryResponse)
async def refresh_history(address: Address, history: History) -> HistoryResponse:
    """Discard the cached checkpoint and rescan from the start block."""
    logger.info("history_force_refresh_requested", address=address.lower())
    snapshot = await history.force_sync(address)
    return _response(snapshot, snapshot.records)


@router.delete(
    "/{address}/cache",
    response_model=CacheClearedResponse,
    status_code=status.HTTP_200_OK,
)
async def clear_history_cache(address: Address, history: History) -> CacheClearedResponse:
    await history.clear_cache(address)
    return CacheClearedResponse(address=address.lower())
