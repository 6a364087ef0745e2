"""
Unit tests for history statistics and the profile score.
"""

from datetime import UTC, datetime

import pytest

from monadverify.history import (
    compute_history_stats,
    compute_user_stats,
    records_by_data_type,
    records_by_status,
)
from monadverify.history.stats import verification_score
from monadverify.models import RecordStatus, UserProfile, VerificationRecord
from tests.conftest import NOW

DAY = 24 * 60 * 60


def record(n: int, status: RecordStatus, data_type: str = "identity", timestamp: int = NOW) -> VerificationRecord:
    request_id = "0x" + f"{n:064x}"
    return VerificationRecord(
        id=request_id,
        request_id=request_id,
        data_type=data_type,
        status=status,
        timestamp=datetime.fromtimestamp(timestamp, tz=UTC),
    )


RECORDS = [
    record(1, RecordStatus.VERIFIED, "identity", NOW - 10),
    record(2, RecordStatus.FAILED, "income", NOW - 20),
    record(3, RecordStatus.PENDING, "income", NOW),
    record(4, RecordStatus.VERIFIED, "education", NOW - 30),
]


class TestFilters:
    def test_by_status(self) -> None:
        verified = records_by_status(RECORDS, RecordStatus.VERIFIED)

        assert [r.request_id for r in verified] == [RECORDS[0].request_id, RECORDS[3].request_id]

    def test_by_data_type(self) -> None:
        assert len(records_by_data_type(RECORDS, "income")) == 2
        assert records_by_data_type(RECORDS, "employment") == []


class TestHistoryStats:
    def test_counts(self) -> None:
        stats = compute_history_stats(RECORDS)

        assert stats.total == 4
        assert stats.verified == 2
        assert stats.failed == 1
        assert stats.pending == 1
        assert stats.unique_data_types == 3
        assert stats.success_rate == 50.0
        assert stats.last_verification == RECORDS[2]

    def test_empty(self) -> None:
        stats = compute_history_stats([])

        assert stats.total == 0
        assert stats.success_rate == 0.0
        assert stats.last_verification is None


class TestVerificationScore:
    """Score = 20 base + 10 per verification (max 50) + recency bonus."""

    def test_unverified(self) -> None:
        profile = UserProfile(verification_count=3, last_verification_time=NOW, is_verified=False)

        assert verification_score(profile, NOW) == 0

    @pytest.mark.parametrize(
        ("count", "age_days", "expected"),
        [
            (1, 0, 60),
            (1, 29, 60),
            (1, 30, 50),
            (2, 89, 60),
            (2, 90, 50),
            (3, 179, 60),
            (3, 180, 50),
            (5, 0, 100),
            (9, 0, 100),
            (9, 365, 70),
        ],
    )
    def test_score(self, count: int, age_days: int, expected: int) -> None:
        profile = UserProfile(
            verification_count=count,
            last_verification_time=NOW - age_days * DAY,
            is_verified=True,
        )

        assert verification_score(profile, NOW) == expected


class TestUserStats:
    def test_from_profile_and_records(self) -> None:
        profile = UserProfile(verification_count=2, last_verification_time=NOW - DAY, is_verified=True)

        stats = compute_user_stats(profile, now=NOW, records=RECORDS)

        assert stats.verification_count == 2
        assert stats.last_verification == datetime.fromtimestamp(NOW - DAY, tz=UTC)
        assert stats.verified_data_types == ["education", "identity"]
        assert stats.verification_score == 70

    def test_never_verified(self) -> None:
        stats = compute_user_stats(UserProfile(), now=NOW)

        assert stats.last_verification is None
        assert stats.verified_data_types == []
        assert stats.verification_score == 0
