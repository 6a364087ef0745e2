"""
Shared Models
=============

Pydantic models shared across MonadVerify modules.

Models:
- Ledger models (LedgerEvent, BlockRange, TransactionHandle, UserProfile)
- Attestation models (Attestation, AttestationResult, ValidationResult)
- Verification models (VerificationRecord, BlockCache, VerificationState)
- Common response models (ErrorResponse, HealthResponse)
"""

from monadverify.models.attestation import (
    MOCK_SIGNATURE,
    Attestation,
    AttestationResult,
    AttestationSource,
    AttNetworkRequest,
    AttNetworkResponseResolve,
    Attestor,
    EnvironmentStatus,
    Readiness,
    ReadinessLevel,
    ValidationResult,
)
from monadverify.models.common import ErrorResponse, HealthResponse
from monadverify.models.ledger import (
    BlockRange,
    ContractCall,
    ContractFunction,
    ContractStats,
    EventName,
    LedgerEvent,
    TransactionHandle,
    TransactionReceipt,
    UserProfile,
)
from monadverify.models.verification import (
    BlockCache,
    CachedEvents,
    DataType,
    ErrorKind,
    HistoryStats,
    HistorySnapshot,
    RecordStatus,
    ScanResult,
    UserStats,
    VerificationFormData,
    VerificationRecord,
    VerificationState,
    VerificationStatus,
)

__all__ = [
    # Ledger
    "BlockRange",
    "ContractCall",
    "ContractFunction",
    "ContractStats",
    "EventName",
    "LedgerEvent",
    "TransactionHandle",
    "TransactionReceipt",
    "UserProfile",
    # Attestation
    "MOCK_SIGNATURE",
    "Attestation",
    "AttestationResult",
    "AttestationSource",
    "AttNetworkRequest",
    "AttNetworkResponseResolve",
    "Attestor",
    "EnvironmentStatus",
    "Readiness",
    "ReadinessLevel",
    "ValidationResult",
    # Verification
    "BlockCache",
    "CachedEvents",
    "DataType",
    "ErrorKind",
    "HistoryStats",
    "HistorySnapshot",
    "RecordStatus",
    "ScanResult",
    "UserStats",
    "VerificationFormData",
    "VerificationRecord",
    "VerificationState",
    "VerificationStatus",
    # Common
    "ErrorResponse",
    "HealthResponse",
]
