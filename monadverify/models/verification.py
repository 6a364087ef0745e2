"""
Verification Models
===================

Verification records, block cache entries and the orchestrator state.

Version: 0.1.0
"""

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field

from monadverify.models.attestation import AttestationSource
from monadverify.models.ledger import BlockRange, LedgerEvent


class DataType(str, Enum):
    """Verifiable data categories supported by the contract."""

    IDENTITY = "identity"
    INCOME = "income"
    CREDIT_SCORE = "credit_score"
    SOCIAL_MEDIA = "social_media"
    EDUCATION = "education"


class RecordStatus(str, Enum):
    """Derived status of a verification record."""

    PENDING = "pending"
    VERIFIED = "verified"
    FAILED = "failed"


class VerificationStatus(str, Enum):
    """Orchestrator state machine states."""

    IDLE = "idle"
    REQUESTING = "requesting"
    VERIFYING = "verifying"
    COMPLETED = "completed"
    FAILED = "failed"


class ErrorKind(str, Enum):
    """Why a verification flow failed."""

    VALIDATION = "validation"
    TRANSACTION = "transaction"
    EXTRACTION = "extraction"
    ATTESTATION = "attestation"


class VerificationRecord(BaseModel):
    """One verification attempt reconstructed from contract events."""

    id: str
    request_id: str
    # Kept as a plain string: the contract may emit categories added after this release
    data_type: str
    status: RecordStatus
    timestamp: datetime
    tx_hash: str | None = None
    block_number: int | None = None
    completed_at: datetime | None = None
    completion_tx_hash: str | None = None


class CachedEvents(BaseModel):
    requested: list[LedgerEvent] = Field(default_factory=list)
    completed: list[LedgerEvent] = Field(default_factory=list)


class BlockCache(BaseModel):
    """Persisted scan checkpoint and raw events for one address."""

    last_queried_block: int = Field(..., ge=-1)
    events: CachedEvents = Field(default_factory=CachedEvents)
    skipped_ranges: list[BlockRange] = Field(default_factory=list)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class ScanResult(BaseModel):
    """Merged events returned by a chain scan, not yet reconciled."""

    requested: list[LedgerEvent] = Field(default_factory=list)
    completed: list[LedgerEvent] = Field(default_factory=list)
    last_queried_block: int
    from_cache: bool = False
    windows_scanned: int = 0
    skipped_ranges: list[BlockRange] = Field(default_factory=list)


class HistorySnapshot(BaseModel):
    """Reconciled records together with the scan that produced them."""

    address: str
    records: list[VerificationRecord] = Field(default_factory=list)
    scan: ScanResult


class VerificationFormData(BaseModel):
    """User input for a verification request."""

    data_type: DataType
    user_data: dict[str, str] = Field(default_factory=dict)


class VerificationState(BaseModel):
    """Client-side progress of one request/complete flow."""

    status: VerificationStatus = VerificationStatus.IDLE
    progress: int = Field(default=0, ge=0, le=100)
    current_step: str = ""
    request_id: str | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None
    data_type: DataType | None = None
    attestation_source: AttestationSource | None = None
    warnings: list[str] = Field(default_factory=list)
    request_tx_hash: str | None = None
    complete_tx_hash: str | None = None
    verification_success: bool | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (VerificationStatus.COMPLETED, VerificationStatus.FAILED)


class HistoryStats(BaseModel):
    """Summary counters over a list of records."""

    total: int = 0
    verified: int = 0
    pending: int = 0
    failed: int = 0
    unique_data_types: int = 0
    last_verification: VerificationRecord | None = None
    success_rate: float = 0.0


class UserStats(BaseModel):
    """Profile-derived score shown on the dashboard."""

    verification_count: int
    last_verification: datetime | None = None
    verified_data_types: list[str] = Field(default_factory=list)
    verification_score: int = Field(..., ge=0, le=100)
