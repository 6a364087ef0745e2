"""
Mock Ledger Client
==================

In-memory MonadVerify contract for development and testing.

Mirrors the contract's observable behaviour: fee and data type checks on
``requestVerification``, owner and double-completion checks on
``completeVerification``, the two verification events and the per-user
profile counters. Transactions are mined one per block when a wallet waits
for confirmation.

Version: 0.1.0
"""

import asyncio
import hashlib
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from monadverify.config import LedgerMode, settings
from monadverify.errors import (
    ConfirmationTimeoutError,
    LedgerError,
    TransactionError,
    WalletNotConnectedError,
)
from monadverify.ledger.client import LedgerClient, Wallet
from monadverify.logging import get_logger
from monadverify.models.attestation import Attestation
from monadverify.models.ledger import (
    ContractCall,
    ContractFunction,
    ContractStats,
    EventName,
    LedgerEvent,
    TransactionHandle,
    TransactionReceipt,
    UserProfile,
)
from monadverify.models.verification import DataType

logger = get_logger(__name__)


@dataclass
class _Request:
    request_id: str
    user: str
    data_type: str
    attestation_data: str
    timestamp: int
    completed: bool = False
    success: bool | None = None


@dataclass
class _PendingTx:
    sender: str
    call: ContractCall


@dataclass
class _LogFailure:
    error: Exception
    remaining: int
    from_block: int | None


class MockLedgerClient(LedgerClient):
    """
    In-memory mock ledger.

    Simulates the contract without requiring a node. Data is stored in
    memory and lost on restart. Test hooks allow injecting rate limits,
    forcing verification outcomes and inspecting issued log queries.
    """

    def __init__(
        self,
        chain_id: int | None = None,
        start_block: int = 1000,
        verification_fee: int | None = None,
        clock: Callable[[], int] | None = None,
    ) -> None:
        self._connected = False
        self.chain_id = chain_id or settings.network.chain_id
        self._start_block = start_block
        self._block_number = start_block
        self._verification_fee = (
            verification_fee if verification_fee is not None else settings.ledger.verification_fee_wei
        )
        self._clock = clock or (lambda: int(time.time()))

        # Contract state
        self._supported_types: set[str] = {t.value for t in DataType}
        self._requests: dict[str, _Request] = {}
        self._profiles: dict[str, UserProfile] = {}
        self._balance = 0
        self._nonce = 0
        self._forced_results: dict[str, bool] = {}

        # Chain state
        self._events: list[LedgerEvent] = []
        self._pending: dict[str, _PendingTx] = {}
        self._receipts: dict[str, TransactionReceipt] = {}

        # Test hooks
        self._log_failures: list[_LogFailure] = []
        self.log_queries: list[tuple[EventName, str, int, int]] = []

        logger.debug("mock_ledger_initialized", chain_id=self.chain_id, block=start_block)

    @property
    def mode(self) -> LedgerMode:
        return LedgerMode.MOCK

    async def connect(self) -> None:
        """Simulate connection."""
        self._connected = True
        logger.info("mock_ledger_connected")

    async def disconnect(self) -> None:
        """Simulate disconnection."""
        self._connected = False
        logger.info("mock_ledger_disconnected")

    async def health_check(self) -> dict[str, Any]:
        """Check mock ledger health."""
        return {
            "status": "healthy",
            "mode": self.mode.value,
            "connected": self._connected,
            "chain_id": self.chain_id,
            "block_number": self._block_number,
            "requests": len(self._requests),
            "events": len(self._events),
        }

    # =========================================================================
    # Event Log
    # =========================================================================

    async def get_block_number(self) -> int:
        return self._block_number

    async def get_logs(
        self,
        event: EventName,
        user: str,
        from_block: int,
        to_block: int,
    ) -> list[LedgerEvent]:
        """Filter stored events, honouring injected failures."""
        self.log_queries.append((event, user.lower(), from_block, to_block))

        for failure in self._log_failures:
            if failure.remaining <= 0:
                continue
            if failure.from_block is None or failure.from_block == from_block:
                failure.remaining -= 1
                raise failure.error

        user = user.lower()
        return [
            e
            for e in self._events
            if e.event == event and e.user == user and from_block <= e.block_number <= to_block
        ]

    # =========================================================================
    # Contract Reads
    # =========================================================================

    async def get_user_profile(self, user: str) -> UserProfile:
        return self._profiles.get(user.lower(), UserProfile()).model_copy()

    async def get_contract_stats(self) -> ContractStats:
        return ContractStats(
            total_users=len(self._profiles),
            total_verifications=sum(1 for r in self._requests.values() if r.completed),
            contract_balance=self._balance,
        )

    async def get_verification_fee(self) -> int:
        return self._verification_fee

    def create_wallet(self, address: str | None = None) -> "MockWallet":
        return MockWallet(self, address)

    # =========================================================================
    # Transaction Execution
    # =========================================================================

    def _generate_tx_hash(self) -> str:
        """Generate a mock transaction hash."""
        return "0x" + hashlib.sha256(uuid.uuid4().bytes).hexdigest()

    def _next_block(self) -> int:
        self._block_number += 1
        return self._block_number

    def submit(self, sender: str, call: ContractCall) -> str:
        """Queue a transaction for mining; returns its hash."""
        tx_hash = self._generate_tx_hash()
        self._pending[tx_hash] = _PendingTx(sender=sender.lower(), call=call)
        logger.debug("mock_tx_submitted", tx_hash=tx_hash, function=call.function.value)
        return tx_hash

    def mine(self, tx_hash: str) -> TransactionReceipt:
        """Mine a queued transaction in its own block."""
        if tx_hash in self._receipts:
            return self._receipts[tx_hash]
        pending = self._pending.pop(tx_hash, None)
        if pending is None:
            raise TransactionError(f"Unknown transaction {tx_hash}", tx_hash=tx_hash)

        block_number = self._next_block()
        try:
            self._execute(pending, tx_hash, block_number)
            success = True
        except LedgerError as e:
            logger.info("mock_tx_reverted", tx_hash=tx_hash, reason=str(e))
            success = False

        receipt = TransactionReceipt(tx_hash=tx_hash, block_number=block_number, success=success)
        self._receipts[tx_hash] = receipt
        return receipt

    def _execute(self, tx: _PendingTx, tx_hash: str, block_number: int) -> None:
        if tx.call.function == ContractFunction.REQUEST_VERIFICATION:
            self._request_verification(tx, tx_hash, block_number)
        elif tx.call.function == ContractFunction.COMPLETE_VERIFICATION:
            self._complete_verification(tx, tx_hash, block_number)
        else:
            raise LedgerError(f"Unsupported function {tx.call.function}")

    def _request_verification(self, tx: _PendingTx, tx_hash: str, block_number: int) -> None:
        data_type, attestation = tx.call.args
        if tx.call.value < self._verification_fee:
            raise LedgerError("Insufficient verification fee")
        if data_type not in self._supported_types:
            raise LedgerError(f"Unsupported data type: {data_type}")
        data = attestation.data if isinstance(attestation, Attestation) else str(attestation)
        if not data:
            raise LedgerError("Empty attestation data")

        self._nonce += 1
        request_id = "0x" + hashlib.sha256(
            f"{tx.sender}:{data_type}:{self._nonce}".encode()
        ).hexdigest()
        now = self._clock()
        self._requests[request_id] = _Request(
            request_id=request_id,
            user=tx.sender,
            data_type=data_type,
            attestation_data=data,
            timestamp=now,
        )
        self._balance += tx.call.value
        self._events.append(
            LedgerEvent(
                event=EventName.VERIFICATION_REQUESTED,
                user=tx.sender,
                request_id=request_id,
                data_type=data_type,
                timestamp=now,
                block_number=block_number,
                tx_hash=tx_hash,
            )
        )
        logger.debug("mock_verification_requested", request_id=request_id, user=tx.sender)

    def _complete_verification(self, tx: _PendingTx, tx_hash: str, block_number: int) -> None:
        (request_id,) = tx.call.args
        request = self._requests.get(request_id)
        if request is None:
            raise LedgerError("Verification request not found")
        if request.user != tx.sender:
            raise LedgerError("Unauthorized")
        if request.completed:
            raise LedgerError("Verification already completed")

        success = self._forced_results.get(request.attestation_data, True)
        now = self._clock()
        request.completed = True
        request.success = success

        profile = self._profiles.setdefault(tx.sender, UserProfile())
        if success:
            profile.verification_count += 1
            profile.last_verification_time = now
            profile.is_verified = True

        self._events.append(
            LedgerEvent(
                event=EventName.VERIFICATION_COMPLETED,
                user=tx.sender,
                request_id=request_id,
                success=success,
                timestamp=now,
                block_number=block_number,
                tx_hash=tx_hash,
            )
        )
        logger.debug("mock_verification_completed", request_id=request_id, success=success)

    # =========================================================================
    # Test Utilities
    # =========================================================================

    def add_event(self, event: LedgerEvent) -> None:
        """Append a pre-built event and advance the chain to its block."""
        self._events.append(event)
        self._block_number = max(self._block_number, event.block_number)

    def mine_empty_blocks(self, count: int) -> int:
        """Advance the chain height."""
        self._block_number += count
        return self._block_number

    def inject_log_failure(
        self,
        error: Exception,
        times: int = 1,
        from_block: int | None = None,
    ) -> None:
        """
        Make upcoming ``get_logs`` calls raise.

        Args:
            error: Exception to raise
            times: Number of calls that fail
            from_block: Only fail queries for the window starting here
        """
        self._log_failures.append(_LogFailure(error=error, remaining=times, from_block=from_block))

    def force_verification_result(self, attestation_data: str, result: bool) -> None:
        """Decide the outcome of completions for attestations carrying this data."""
        self._forced_results[attestation_data] = result

    def set_supported_data_type(self, data_type: str, supported: bool) -> None:
        if supported:
            self._supported_types.add(data_type)
        else:
            self._supported_types.discard(data_type)

    def clear_all(self) -> None:
        """Clear all mock data (for testing)."""
        self._requests.clear()
        self._profiles.clear()
        self._events.clear()
        self._pending.clear()
        self._receipts.clear()
        self._forced_results.clear()
        self._log_failures.clear()
        self.log_queries.clear()
        self._balance = 0
        self._nonce = 0
        self._block_number = self._start_block
        logger.debug("mock_ledger_cleared")

    def get_stats(self) -> dict[str, int]:
        """Get storage statistics."""
        return {
            "requests": len(self._requests),
            "events": len(self._events),
            "pending": len(self._pending),
            "block_number": self._block_number,
        }


class MockWallet(Wallet):
    """
    Wallet bound to a MockLedgerClient.

    An address of None models a disconnected browser wallet.
    """

    def __init__(
        self,
        ledger: MockLedgerClient,
        address: str | None = None,
        chain_id: int | None = None,
    ) -> None:
        self._ledger = ledger
        self._address = address.lower() if address else None
        self._chain_id = chain_id if chain_id is not None else ledger.chain_id
        self.allow_chain_switch = True
        self.sent: list[TransactionHandle] = []
        self._reject_next: str | None = None
        self._hang_next = False

    @property
    def address(self) -> str | None:
        return self._address

    async def get_chain_id(self) -> int:
        return self._chain_id

    async def switch_chain(self, chain_id: int) -> None:
        if not self.allow_chain_switch:
            raise LedgerError("User rejected the network switch request")
        logger.info("mock_wallet_switched_chain", from_chain=self._chain_id, to_chain=chain_id)
        self._chain_id = chain_id

    async def send_transaction(self, call: ContractCall) -> TransactionHandle:
        if self._address is None:
            raise WalletNotConnectedError()
        if self._reject_next is not None:
            message, self._reject_next = self._reject_next, None
            raise TransactionError(message)
        if self._chain_id != self._ledger.chain_id:
            raise TransactionError(
                f"Wallet is on chain {self._chain_id}, ledger is chain {self._ledger.chain_id}"
            )

        tx_hash = self._ledger.submit(self._address, call)
        handle = TransactionHandle(tx_hash=tx_hash, function=call.function, sender=self._address)
        self.sent.append(handle)
        return handle

    async def wait_for_confirmation(
        self,
        handle: TransactionHandle,
        timeout: float | None = None,
    ) -> TransactionReceipt:
        if self._hang_next:
            self._hang_next = False
            try:
                await asyncio.wait_for(asyncio.Event().wait(), timeout)
            except TimeoutError as e:
                raise ConfirmationTimeoutError(
                    f"Transaction {handle.tx_hash} not confirmed within {timeout}s",
                    tx_hash=handle.tx_hash,
                ) from e
        return self._ledger.mine(handle.tx_hash)

    # =========================================================================
    # Test Utilities
    # =========================================================================

    def connect(self, address: str) -> None:
        self._address = address.lower()

    def disconnect(self) -> None:
        self._address = None

    def reject_next_transaction(self, message: str = "User rejected the request.") -> None:
        """Make the next ``send_transaction`` fail as if the user declined it."""
        self._reject_next = message

    def hang_next_confirmation(self) -> None:
        """Make the next confirmation wait until its timeout."""
        self._hang_next = True
