"""
Errors
======

Exception hierarchy shared by the ledger, attestation, history and
orchestrator layers.

Precondition errors are raised to the caller before any state changes.
Validation, transaction and extraction errors are turned into a failed
verification state by the orchestrator. Rate-limit errors are retried by
the chain reader.

Version: 0.1.0
"""


class MonadVerifyError(Exception):
    """Base class for all MonadVerify errors."""


# =============================================================================
# Preconditions
# =============================================================================


class PreconditionError(MonadVerifyError):
    """A verification flow cannot start."""


class WalletNotConnectedError(PreconditionError):
    """No wallet address is available."""

    def __init__(self, message: str = "Wallet not connected") -> None:
        super().__init__(message)


class NetworkMismatchError(PreconditionError):
    """The wallet is on the wrong chain and could not be switched."""

    def __init__(self, current_chain_id: int | None, required_chain_id: int) -> None:
        super().__init__(
            f"Wrong network: connected to chain {current_chain_id}, "
            f"required chain {required_chain_id}"
        )
        self.current_chain_id = current_chain_id
        self.required_chain_id = required_chain_id


class FlowInProgressError(PreconditionError):
    """A verification flow is already running on this orchestrator."""

    def __init__(self, status: str) -> None:
        super().__init__(f"Verification flow already {status}; call reset() first")
        self.status = status


class UnknownRequestError(PreconditionError):
    """Completion requested for an id not confirmed in this session."""

    def __init__(self, request_id: str) -> None:
        super().__init__(f"No confirmed verification request {request_id} in this session")
        self.request_id = request_id


# =============================================================================
# Attestation
# =============================================================================


class AttestationError(MonadVerifyError):
    """Attestation generation or validation failed."""


class AttestationUnavailableError(AttestationError):
    """The attestation provider is not initialized or not configured."""


class AttestationValidationError(AttestationError):
    """The attestation payload violates its structural invariants."""

    def __init__(self, errors: list[str], warnings: list[str] | None = None) -> None:
        super().__init__("Attestation validation failed: " + "; ".join(errors))
        self.errors = errors
        self.warnings = warnings or []


# =============================================================================
# Ledger
# =============================================================================


class LedgerError(MonadVerifyError):
    """A ledger read or write failed."""


class RateLimitError(LedgerError):
    """The RPC endpoint rejected a call with a rate-limit signal (HTTP 429)."""

    code = 429


class TransactionError(LedgerError):
    """A transaction was rejected, reverted or never confirmed."""

    def __init__(self, message: str, tx_hash: str | None = None) -> None:
        super().__init__(message)
        self.tx_hash = tx_hash


class TransactionRevertedError(TransactionError):
    """The transaction was mined with a failed status."""


class ConfirmationTimeoutError(TransactionError):
    """No receipt arrived within the caller-supplied timeout."""


class EventExtractionError(LedgerError):
    """An expected event was not found after confirmation."""

    def __init__(self, event: str, tx_hash: str) -> None:
        super().__init__(f"{event} event not found for transaction {tx_hash}")
        self.event = event
        self.tx_hash = tx_hash


# =============================================================================
# Storage
# =============================================================================


class StorageError(MonadVerifyError):
    """The block cache store could not be read or written."""
