"""
History Statistics
==================

Filters and summary figures over reconciled records, and the profile score
shown on the dashboard.

Version: 0.1.0
"""

from collections.abc import Sequence
from datetime import UTC, datetime

from monadverify.models.ledger import UserProfile
from monadverify.models.verification import (
    HistoryStats,
    RecordStatus,
    UserStats,
    VerificationRecord,
)

SECONDS_PER_DAY = 24 * 60 * 60

# (max age in days, bonus), checked in order
RECENCY_BONUSES = ((30, 30), (90, 20), (180, 10))


def records_by_status(
    records: Sequence[VerificationRecord],
    status: RecordStatus,
) -> list[VerificationRecord]:
    return [r for r in records if r.status == status]


def records_by_data_type(
    records: Sequence[VerificationRecord],
    data_type: str,
) -> list[VerificationRecord]:
    return [r for r in records if r.data_type == data_type]


def compute_history_stats(records: Sequence[VerificationRecord]) -> HistoryStats:
    """Counts per status, distinct data types and success rate (percent)."""
    total = len(records)
    if total == 0:
        return HistoryStats()

    verified = len(records_by_status(records, RecordStatus.VERIFIED))
    return HistoryStats(
        total=total,
        verified=verified,
        pending=len(records_by_status(records, RecordStatus.PENDING)),
        failed=len(records_by_status(records, RecordStatus.FAILED)),
        unique_data_types=len({r.data_type for r in records}),
        last_verification=max(records, key=lambda r: r.timestamp),
        success_rate=verified / total * 100,
    )


def verification_score(profile: UserProfile, now: float) -> int:
    """
    Score a profile from 0 to 100.

    Verified users get 20 points, 10 per verification up to 50, and a
    recency bonus of 30/20/10 for a last verification under 30/90/180 days.
    """
    if not profile.is_verified:
        return 0

    score = 20 + min(profile.verification_count * 10, 50)
    days_since = (now - profile.last_verification_time) / SECONDS_PER_DAY
    for max_days, bonus in RECENCY_BONUSES:
        if days_since < max_days:
            score += bonus
            break
    return min(score, 100)


def compute_user_stats(
    profile: UserProfile,
    now: float | None = None,
    records: Sequence[VerificationRecord] = (),
) -> UserStats:
    """
    Derive dashboard figures from the contract profile.

    Args:
        profile: Contract counters for the user
        now: Current time in seconds since epoch
        records: Reconciled history, used for the verified data types
    """
    now = datetime.now(UTC).timestamp() if now is None else now
    verified_types = sorted({r.data_type for r in records_by_status(records, RecordStatus.VERIFIED)})

    return UserStats(
        verification_count=profile.verification_count,
        last_verification=(
            datetime.fromtimestamp(profile.last_verification_time, tz=UTC)
            if profile.last_verification_time > 0
            else None
        ),
        verified_data_types=verified_types,
        verification_score=verification_score(profile, now),
    )
