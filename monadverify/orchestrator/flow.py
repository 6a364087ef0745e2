"""
Verification Orchestrator
=========================

Drives the two-phase verification write:

1. ``requestVerification(dataType, attestation)`` with the fee, confirmed,
   and the new request id read back from its ``VerificationRequested``
   event.
2. After a short settle delay, ``completeVerification(requestId)``,
   confirmed, and the outcome read from ``VerificationCompleted``.

Progress is published as ``VerificationState`` snapshots to subscribers.
Precondition failures raise before any state change; failures after the
flow has started end in a ``failed`` state instead.

Version: 0.1.0
"""

import asyncio
from collections.abc import Callable
from typing import Any

from monadverify.attestation import AttestationService
from monadverify.config import settings
from monadverify.errors import (
    AttestationError,
    AttestationValidationError,
    EventExtractionError,
    FlowInProgressError,
    LedgerError,
    NetworkMismatchError,
    StorageError,
    TransactionRevertedError,
    UnknownRequestError,
    WalletNotConnectedError,
)
from monadverify.history import VerificationHistory
from monadverify.ledger import LedgerClient, Wallet
from monadverify.logging import bind_context, clear_context, get_logger
from monadverify.models.ledger import (
    ContractCall,
    ContractFunction,
    EventName,
    TransactionHandle,
    TransactionReceipt,
)
from monadverify.models.verification import (
    ErrorKind,
    VerificationFormData,
    VerificationState,
    VerificationStatus,
)
from monadverify.orchestrator.state import check_transition

logger = get_logger(__name__)

Listener = Callable[[VerificationState], None]
Sleep = Callable[[float], Any]

_UNSET: Any = object()


class VerificationOrchestrator:
    """
    Request/complete flow for one wallet.

    Usage:
        orchestrator = VerificationOrchestrator(ledger, wallet, attestations)
        orchestrator.subscribe(lambda state: print(state.progress))
        state = await orchestrator.request_verification(
            VerificationFormData(data_type=DataType.IDENTITY)
        )
    """

    def __init__(
        self,
        ledger: LedgerClient,
        wallet: Wallet,
        attestations: AttestationService,
        history: VerificationHistory | None = None,
        sleep: Sleep = asyncio.sleep,
        settle_delay: float | None = None,
        confirmation_timeout: float | None = _UNSET,
        verification_fee: int | None = None,
        required_chain_id: int | None = None,
    ) -> None:
        self.ledger = ledger
        self.wallet = wallet
        self.attestations = attestations
        self.history = history
        self._sleep = sleep
        self.settle_delay = (
            settle_delay if settle_delay is not None else settings.orchestrator.settle_delay_seconds
        )
        self.confirmation_timeout = (
            settings.ledger.confirmation_timeout_seconds
            if confirmation_timeout is _UNSET
            else confirmation_timeout
        )
        self.verification_fee = (
            verification_fee if verification_fee is not None else settings.ledger.verification_fee_wei
        )
        self.required_chain_id = required_chain_id or settings.network.chain_id

        self._state = VerificationState()
        self._listeners: list[Listener] = []
        self._generation = 0
        self._settle: asyncio.Future[Any] | None = None
        # Set between the idle check and the first status change of a flow
        self._starting = False
        # Request ids confirmed by this orchestrator; survives reset()
        self._confirmed: set[str] = set()

    # =========================================================================
    # State
    # =========================================================================

    @property
    def state(self) -> VerificationState:
        return self._state.model_copy(deep=True)

    @property
    def confirmed_requests(self) -> frozenset[str]:
        return frozenset(self._confirmed)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Receive a state snapshot on every change.

        Returns:
            Callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _update(self, **changes: Any) -> None:
        status = changes.get("status")
        if status is not None:
            check_transition(self._state.status, status)
        self._state = self._state.model_copy(update=changes)
        snapshot = self.state
        for listener in list(self._listeners):
            listener(snapshot)

    def _fail(self, error: Exception, kind: ErrorKind, generation: int) -> VerificationState:
        if self._is_stale(generation):
            logger.info("verification_stale_failure_ignored", error=str(error))
            return self.state
        phase1 = self._state.status == VerificationStatus.REQUESTING
        self._update(
            status=VerificationStatus.FAILED,
            error=str(error),
            error_kind=kind,
            current_step="Verification request failed" if phase1 else "Verification completion failed",
        )
        logger.error(
            "verification_failed",
            error=str(error),
            error_kind=kind.value,
            request_id=self._state.request_id,
        )
        return self.state

    def _is_stale(self, generation: int) -> bool:
        return generation != self._generation

    def reset(self) -> None:
        """Return to idle, abandoning any flow in progress."""
        self._generation += 1
        if self._settle is not None and not self._settle.done():
            self._settle.cancel()
        self._settle = None
        self._starting = False
        self._state = VerificationState()
        clear_context()
        snapshot = self.state
        for listener in list(self._listeners):
            listener(snapshot)
        logger.info("verification_reset", generation=self._generation)

    # =========================================================================
    # Preconditions
    # =========================================================================

    def _require_address(self) -> str:
        address = self.wallet.address
        if not address:
            raise WalletNotConnectedError()
        return address.lower()

    def _claim(self) -> None:
        """Check the orchestrator is idle and reserve it, before any await."""
        if self._starting:
            raise FlowInProgressError("starting")
        if self._state.status != VerificationStatus.IDLE:
            raise FlowInProgressError(self._state.status.value)
        self._starting = True

    async def _begin(self) -> int | None:
        """
        Reserve the orchestrator and bring the wallet onto the required chain.

        Returns:
            Generation of the new flow, or None if reset() ran meanwhile
        """
        self._claim()
        generation = self._generation
        try:
            await self._ensure_network()
        finally:
            if not self._is_stale(generation):
                self._starting = False
        if self._is_stale(generation):
            return None
        return generation

    async def _ensure_network(self) -> None:
        required = self.required_chain_id
        current = await self.wallet.get_chain_id()
        if current == required:
            return

        logger.info("network_switch_requested", current_chain_id=current, required_chain_id=required)
        try:
            await self.wallet.switch_chain(required)
            current = await self.wallet.get_chain_id()
        except LedgerError as e:
            logger.warning("network_switch_failed", error=str(e))
            raise NetworkMismatchError(current, required) from e

        if current != required:
            raise NetworkMismatchError(current, required)

    # =========================================================================
    # Ledger helpers
    # =========================================================================

    async def _confirm(self, handle: TransactionHandle) -> TransactionReceipt:
        receipt = await self.wallet.wait_for_confirmation(handle, self.confirmation_timeout)
        if not receipt.success:
            raise TransactionRevertedError(
                f"Transaction {handle.tx_hash} reverted", tx_hash=handle.tx_hash
            )
        return receipt

    async def _extract_request_id(self, user: str, receipt: TransactionReceipt) -> str:
        """Find the request id emitted by the confirmed request transaction."""
        try:
            events = await self.ledger.get_logs(
                EventName.VERIFICATION_REQUESTED,
                user,
                receipt.block_number,
                receipt.block_number,
            )
        except LedgerError as e:
            raise EventExtractionError(EventName.VERIFICATION_REQUESTED.value, receipt.tx_hash) from e

        tx_hash = receipt.tx_hash.lower()
        for event in events:
            if event.tx_hash == tx_hash and event.request_id:
                return event.request_id
        raise EventExtractionError(EventName.VERIFICATION_REQUESTED.value, receipt.tx_hash)

    async def _read_outcome(self, user: str, receipt: TransactionReceipt) -> bool | None:
        """Outcome flag of the completion, or None when it cannot be read."""
        try:
            events = await self.ledger.get_logs(
                EventName.VERIFICATION_COMPLETED,
                user,
                receipt.block_number,
                receipt.block_number,
            )
        except LedgerError as e:
            logger.warning("verification_outcome_unreadable", tx_hash=receipt.tx_hash, error=str(e))
            return None

        tx_hash = receipt.tx_hash.lower()
        for event in events:
            if event.tx_hash == tx_hash:
                return event.success
        return None

    async def _refresh_history(self, user: str) -> None:
        if self.history is None:
            return
        try:
            await self.history.refresh(user)
        except (LedgerError, StorageError) as e:
            logger.warning("history_refresh_failed", user=user, error=str(e))

    # =========================================================================
    # Phase 1: request
    # =========================================================================

    async def request_verification(self, form: VerificationFormData) -> VerificationState:
        """
        Run the full flow for a data claim.

        Raises:
            WalletNotConnectedError: No wallet address
            FlowInProgressError: State is not idle or another flow is starting
            NetworkMismatchError: Wallet is on another chain and did not switch

        Returns:
            Final state (completed or failed)
        """
        user = self._require_address()
        generation = await self._begin()
        if generation is None:
            return self.state

        data_type = form.data_type.value
        bind_context(user=user, data_type=data_type)
        logger.info("verification_request_started", user=user, data_type=data_type)

        self._update(
            status=VerificationStatus.REQUESTING,
            progress=10,
            current_step="Preparing verification request...",
            data_type=form.data_type,
        )

        try:
            self._update(progress=30, current_step="Generating attestation data...")
            result = await self.attestations.generate(data_type, user, form.user_data or None)
            if self._is_stale(generation):
                return self.state

            validation = self.attestations.validate(result.attestation)
            self._update(attestation_source=result.source, warnings=validation.warnings)
            if validation.warnings:
                logger.warning("attestation_warnings", warnings=validation.warnings)
            if not validation.is_valid:
                raise AttestationValidationError(validation.errors, validation.warnings)

            self._update(progress=50, current_step="Submitting to blockchain...")
            handle = await self.wallet.send_transaction(
                ContractCall(
                    function=ContractFunction.REQUEST_VERIFICATION,
                    args=[data_type, result.attestation],
                    value=self.verification_fee,
                )
            )
            if self._is_stale(generation):
                return self.state

            self._update(
                progress=70,
                current_step="Waiting for transaction confirmation...",
                request_tx_hash=handle.tx_hash,
            )
            receipt = await self._confirm(handle)
            if self._is_stale(generation):
                return self.state

            request_id = await self._extract_request_id(user, receipt)
        except AttestationValidationError as e:
            return self._fail(e, ErrorKind.VALIDATION, generation)
        except AttestationError as e:
            return self._fail(e, ErrorKind.ATTESTATION, generation)
        except EventExtractionError as e:
            return self._fail(e, ErrorKind.EXTRACTION, generation)
        except LedgerError as e:
            return self._fail(e, ErrorKind.TRANSACTION, generation)

        if self._is_stale(generation):
            return self.state

        self._confirmed.add(request_id)
        bind_context(request_id=request_id)
        self._update(request_id=request_id)
        logger.info(
            "verification_request_confirmed",
            request_id=request_id,
            tx_hash=receipt.tx_hash,
            block_number=receipt.block_number,
            explorer=settings.network.tx_url(receipt.tx_hash),
        )

        settle = asyncio.ensure_future(self._sleep(self.settle_delay))
        self._settle = settle
        try:
            await settle
        except asyncio.CancelledError:
            if self._is_stale(generation):
                return self.state
            raise
        finally:
            if self._settle is settle:
                self._settle = None

        if self._is_stale(generation):
            return self.state
        return await self._complete(user, request_id, generation)

    # =========================================================================
    # Phase 2: complete
    # =========================================================================

    async def complete_verification(self, request_id: str) -> VerificationState:
        """
        Complete a request confirmed earlier in this session.

        Used to retry a completion after ``reset()``; the normal flow chains
        into completion automatically.

        Raises:
            WalletNotConnectedError: No wallet address
            UnknownRequestError: Request id was not confirmed by this orchestrator
            FlowInProgressError: State is not idle or another flow is starting
            NetworkMismatchError: Wallet is on another chain and did not switch
        """
        user = self._require_address()
        if request_id not in self._confirmed:
            raise UnknownRequestError(request_id)
        generation = await self._begin()
        if generation is None:
            return self.state
        bind_context(user=user, request_id=request_id)
        return await self._complete(user, request_id, generation)

    async def _complete(self, user: str, request_id: str, generation: int) -> VerificationState:
        self._update(
            status=VerificationStatus.VERIFYING,
            progress=80,
            current_step="Completing verification...",
            request_id=request_id,
        )

        try:
            handle = await self.wallet.send_transaction(
                ContractCall(function=ContractFunction.COMPLETE_VERIFICATION, args=[request_id])
            )
            if self._is_stale(generation):
                return self.state

            self._update(
                progress=90,
                current_step="Finalizing verification...",
                complete_tx_hash=handle.tx_hash,
            )
            receipt = await self._confirm(handle)
        except LedgerError as e:
            return self._fail(e, ErrorKind.TRANSACTION, generation)

        if self._is_stale(generation):
            return self.state

        success = await self._read_outcome(user, receipt)
        self._confirmed.discard(request_id)
        self._update(
            status=VerificationStatus.COMPLETED,
            progress=100,
            current_step="Verification completed successfully!",
            verification_success=success,
        )
        logger.info(
            "verification_completed",
            request_id=request_id,
            tx_hash=receipt.tx_hash,
            success=success,
            explorer=settings.network.tx_url(receipt.tx_hash),
        )

        await self._refresh_history(user)
        return self.state
