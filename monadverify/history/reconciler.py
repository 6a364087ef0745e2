"""
Record Reconciler
=================

Joins ``VerificationRequested`` and ``VerificationCompleted`` events into
verification records.

Pure functions; the result does not depend on the order events arrive in.

Version: 0.1.0
"""

from collections.abc import Iterable
from datetime import UTC, datetime

from monadverify.models.ledger import LedgerEvent
from monadverify.models.verification import RecordStatus, VerificationRecord


def _to_datetime(timestamp: int | None) -> datetime:
    return datetime.fromtimestamp(timestamp or 0, tz=UTC)


def index_completions(completed: Iterable[LedgerEvent]) -> dict[str, LedgerEvent]:
    """
    Map request id to its completion event.

    When a request has several completions the one latest on chain wins.
    Completions missing the request id, outcome or timestamp are dropped.
    """
    index: dict[str, LedgerEvent] = {}
    for event in sorted(completed, key=lambda e: e.position):
        if event.request_id is None or event.success is None or event.timestamp is None:
            continue
        index[event.request_id] = event
    return index


def derive_status(completion: LedgerEvent | None) -> RecordStatus:
    if completion is None:
        return RecordStatus.PENDING
    return RecordStatus.VERIFIED if completion.success else RecordStatus.FAILED


def reconcile(
    requested: Iterable[LedgerEvent],
    completed: Iterable[LedgerEvent],
) -> list[VerificationRecord]:
    """
    Build one record per distinct request id.

    Args:
        requested: ``VerificationRequested`` events, any order
        completed: ``VerificationCompleted`` events, any order

    Returns:
        Records sorted newest first
    """
    completions = index_completions(completed)
    records: dict[str, VerificationRecord] = {}

    for event in sorted(requested, key=lambda e: e.position):
        if not event.request_id or event.request_id in records:
            continue

        completion = completions.get(event.request_id)
        records[event.request_id] = VerificationRecord(
            id=event.request_id,
            request_id=event.request_id,
            data_type=event.data_type or "",
            status=derive_status(completion),
            timestamp=_to_datetime(event.timestamp),
            tx_hash=event.tx_hash,
            block_number=event.block_number,
            completed_at=_to_datetime(completion.timestamp) if completion else None,
            completion_tx_hash=completion.tx_hash if completion else None,
        )

    return sorted(
        records.values(),
        key=lambda r: (r.timestamp, r.block_number or 0, r.request_id),
        reverse=True,
    )
