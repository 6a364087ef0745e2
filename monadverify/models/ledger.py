"""
Ledger Models
=============

Raw contract events, block ranges and transaction handles.

Version: 0.1.0
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator


class EventName(str, Enum):
    """Contract events read by the history sync."""

    VERIFICATION_REQUESTED = "VerificationRequested"
    VERIFICATION_COMPLETED = "VerificationCompleted"


class ContractFunction(str, Enum):
    """Contract writes issued by the orchestrator."""

    REQUEST_VERIFICATION = "requestVerification"
    COMPLETE_VERIFICATION = "completeVerification"


class LedgerEvent(BaseModel):
    """
    A decoded contract event.

    Stored verbatim in the block cache, so every field must be JSON
    serialisable. Fields that only exist on one event kind are optional.
    """

    event: EventName
    user: str
    request_id: str | None = None
    data_type: str | None = None
    success: bool | None = None
    timestamp: int | None = Field(default=None, description="Ledger time, seconds since epoch")
    block_number: int
    tx_hash: str
    log_index: int = 0

    @field_validator("user", "tx_hash")
    @classmethod
    def lowercase_hex(cls, v: str) -> str:
        return v.lower()

    @property
    def key(self) -> tuple[str, int]:
        """Identity of the log entry on chain."""
        return (self.tx_hash, self.log_index)

    @property
    def position(self) -> tuple[int, int]:
        """Sort key for on-chain ordering."""
        return (self.block_number, self.log_index)


class BlockRange(BaseModel):
    """Inclusive block window."""

    from_block: int = Field(..., ge=0)
    to_block: int = Field(..., ge=0)

    @property
    def size(self) -> int:
        return self.to_block - self.from_block + 1

    def __str__(self) -> str:
        return f"{self.from_block}-{self.to_block}"


class ContractCall(BaseModel):
    """A contract write to be signed and broadcast by a wallet."""

    function: ContractFunction
    args: list[Any] = Field(default_factory=list)
    value: int = Field(default=0, ge=0, description="Native value in wei")


class TransactionHandle(BaseModel):
    """A broadcast transaction awaiting confirmation."""

    tx_hash: str
    function: ContractFunction
    sender: str
    submitted_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class TransactionReceipt(BaseModel):
    """A mined transaction."""

    tx_hash: str
    block_number: int
    success: bool = True
    gas_used: int = 0


class UserProfile(BaseModel):
    """Per-user counters stored by the contract."""

    verification_count: int = 0
    last_verification_time: int = 0
    is_verified: bool = False


class ContractStats(BaseModel):
    """Contract-wide counters."""

    total_users: int = 0
    total_verifications: int = 0
    contract_balance: int = 0
