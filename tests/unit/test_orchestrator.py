"""
Unit tests for the two-phase verification orchestrator.
"""

import asyncio

import pytest

from monadverify.attestation import AttestationService, MockAttestationProvider
from monadverify.errors import (
    FlowInProgressError,
    LedgerError,
    NetworkMismatchError,
    UnknownRequestError,
    WalletNotConnectedError,
)
from monadverify.history import BlockCacheRepository, ChainReader, VerificationHistory
from monadverify.ledger import MockLedgerClient, MockWallet
from monadverify.models import (
    AttestationSource,
    DataType,
    ErrorKind,
    RecordStatus,
    VerificationFormData,
    VerificationState,
    VerificationStatus,
)
from monadverify.models.attestation import Attestation
from monadverify.orchestrator import (
    InvalidTransitionError,
    VerificationOrchestrator,
    can_transition,
    check_transition,
)
from monadverify.storage import MemoryStore
from tests.conftest import NOW, USER, RecordingSleep

IDENTITY = VerificationFormData(data_type=DataType.IDENTITY)


class NoAttestorsProvider(MockAttestationProvider):
    """Produces attestations without attestors."""

    async def generate_attestation(
        self,
        data_type: str,
        user_address: str,
        user_data: dict[str, str] | None = None,
    ) -> Attestation:
        attestation = await super().generate_attestation(data_type, user_address, user_data)
        return attestation.model_copy(update={"attestors": []})


class YieldingWallet(MockWallet):
    """Yields to the event loop while reporting its chain, like a browser wallet."""

    async def get_chain_id(self) -> int:
        await asyncio.sleep(0)
        return await super().get_chain_id()


class FullDiskStore(MemoryStore):
    """Accepts reads, fails every write."""

    async def set(self, namespace: str, address: str, value: str) -> None:
        raise OSError("disk full")


def record_states(orchestrator: VerificationOrchestrator) -> list[VerificationState]:
    states: list[VerificationState] = []
    orchestrator.subscribe(states.append)
    return states


def reject_completion(orchestrator: VerificationOrchestrator, wallet: MockWallet):
    """Decline the completion transaction of the next flow."""

    def listener(state: VerificationState) -> None:
        if state.progress == 80 and state.status == VerificationStatus.VERIFYING:
            wallet.reject_next_transaction("User rejected the request.")

    return orchestrator.subscribe(listener)


def distinct(values: list) -> list:
    out: list = []
    for v in values:
        if not out or out[-1] != v:
            out.append(v)
    return out


class TestHappyPath:
    """Full request/complete flow against the mock ledger at block 1000."""

    @pytest.mark.asyncio
    async def test_request_and_complete(
        self,
        orchestrator: VerificationOrchestrator,
        ledger: MockLedgerClient,
        wallet: MockWallet,
        sleep: RecordingSleep,
    ) -> None:
        states = record_states(orchestrator)

        final = await orchestrator.request_verification(IDENTITY)

        assert final.status == VerificationStatus.COMPLETED
        assert final.progress == 100
        assert final.verification_success is True
        assert final.is_terminal
        assert final.request_id is not None
        assert final.attestation_source == AttestationSource.MOCK
        assert final.error is None
        assert "Using mock signature - this is for testing only" in final.warnings

        assert distinct([s.progress for s in states]) == [10, 30, 50, 70, 80, 90, 100]
        assert distinct([s.status for s in states]) == [
            VerificationStatus.REQUESTING,
            VerificationStatus.VERIFYING,
            VerificationStatus.COMPLETED,
        ]

        # Request mined at 1001, completion at 1002
        request_handle, complete_handle = wallet.sent
        assert final.request_tx_hash == request_handle.tx_hash
        assert final.complete_tx_hash == complete_handle.tx_hash
        assert await ledger.get_block_number() == 1002

        # Settle delay before phase two
        assert sleep.calls[0] == 2.0

        profile = await ledger.get_user_profile(USER)
        assert profile.verification_count == 1
        assert profile.last_verification_time == NOW

    @pytest.mark.asyncio
    async def test_history_refreshed_after_completion(
        self,
        orchestrator: VerificationOrchestrator,
        history: VerificationHistory,
    ) -> None:
        final = await orchestrator.request_verification(IDENTITY)

        cached = await history.reader.cache.load(USER)
        assert cached is not None
        assert cached.last_queried_block == 1002
        records = await history.load_history(USER)
        assert len(records) == 1
        assert records[0].request_id == final.request_id
        assert records[0].status == RecordStatus.VERIFIED
        assert records[0].block_number == 1001

    @pytest.mark.asyncio
    async def test_failed_verification_outcome(
        self,
        orchestrator: VerificationOrchestrator,
        ledger: MockLedgerClient,
        history: VerificationHistory,
    ) -> None:
        ledger.force_verification_result("verified_identity_data", False)

        final = await orchestrator.request_verification(IDENTITY)

        assert final.status == VerificationStatus.COMPLETED
        assert final.verification_success is False
        records = await history.load_history(USER)
        assert records[0].status == RecordStatus.FAILED

    @pytest.mark.asyncio
    async def test_without_history(
        self,
        ledger: MockLedgerClient,
        wallet: MockWallet,
        attestations: AttestationService,
        sleep: RecordingSleep,
    ) -> None:
        orchestrator = VerificationOrchestrator(ledger, wallet, attestations, sleep=sleep)

        final = await orchestrator.request_verification(IDENTITY)

        assert final.status == VerificationStatus.COMPLETED
        assert sleep.calls == [2.0]

    @pytest.mark.asyncio
    async def test_history_store_failure_does_not_fail_flow(
        self,
        ledger: MockLedgerClient,
        wallet: MockWallet,
        attestations: AttestationService,
        sleep: RecordingSleep,
    ) -> None:
        reader = ChainReader(
            ledger,
            BlockCacheRepository(FullDiskStore(), namespace="test_block_cache"),
            sleep=sleep,
            block_range=500,
            start_block=0,
        )
        orchestrator = VerificationOrchestrator(
            ledger,
            wallet,
            attestations,
            history=VerificationHistory(reader),
            sleep=sleep,
        )

        final = await orchestrator.request_verification(IDENTITY)

        assert final.status == VerificationStatus.COMPLETED
        assert final.verification_success is True


class TestPreconditions:
    """Precondition failures raise and leave the state untouched."""

    @pytest.mark.asyncio
    async def test_wallet_not_connected(self, orchestrator: VerificationOrchestrator, wallet: MockWallet) -> None:
        wallet.disconnect()
        states = record_states(orchestrator)

        with pytest.raises(WalletNotConnectedError):
            await orchestrator.request_verification(IDENTITY)

        assert orchestrator.state.status == VerificationStatus.IDLE
        assert states == []
        assert wallet.sent == []

    @pytest.mark.asyncio
    async def test_flow_in_progress_guard(self, orchestrator: VerificationOrchestrator) -> None:
        await orchestrator.request_verification(IDENTITY)

        with pytest.raises(FlowInProgressError):
            await orchestrator.request_verification(IDENTITY)

        assert orchestrator.state.status == VerificationStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_overlapping_requests(
        self,
        ledger: MockLedgerClient,
        attestations: AttestationService,
        sleep: RecordingSleep,
    ) -> None:
        wallet = YieldingWallet(ledger, USER)
        orchestrator = VerificationOrchestrator(ledger, wallet, attestations, sleep=sleep)

        first, second = await asyncio.gather(
            orchestrator.request_verification(IDENTITY),
            orchestrator.request_verification(IDENTITY),
            return_exceptions=True,
        )

        assert isinstance(first, VerificationState)
        assert first.status == VerificationStatus.COMPLETED
        assert isinstance(second, FlowInProgressError)
        # One request and one completion, both from the first flow
        assert len(wallet.sent) == 2
        assert ledger.get_stats()["requests"] == 1

    @pytest.mark.asyncio
    async def test_reset_during_network_check(
        self,
        ledger: MockLedgerClient,
        attestations: AttestationService,
        sleep: RecordingSleep,
    ) -> None:
        wallet = YieldingWallet(ledger, USER)
        orchestrator = VerificationOrchestrator(ledger, wallet, attestations, sleep=sleep)
        task = asyncio.create_task(orchestrator.request_verification(IDENTITY))
        await asyncio.sleep(0)

        orchestrator.reset()
        result = await task

        assert result.status == VerificationStatus.IDLE
        assert wallet.sent == []
        final = await orchestrator.request_verification(IDENTITY)
        assert final.status == VerificationStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_switches_network(
        self,
        ledger: MockLedgerClient,
        attestations: AttestationService,
        sleep: RecordingSleep,
    ) -> None:
        wallet = MockWallet(ledger, USER, chain_id=1)
        orchestrator = VerificationOrchestrator(ledger, wallet, attestations, sleep=sleep)

        final = await orchestrator.request_verification(IDENTITY)

        assert await wallet.get_chain_id() == ledger.chain_id
        assert final.status == VerificationStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_network_switch_refused(
        self,
        ledger: MockLedgerClient,
        attestations: AttestationService,
        sleep: RecordingSleep,
    ) -> None:
        wallet = MockWallet(ledger, USER, chain_id=1)
        wallet.allow_chain_switch = False
        orchestrator = VerificationOrchestrator(ledger, wallet, attestations, sleep=sleep)

        with pytest.raises(NetworkMismatchError) as exc_info:
            await orchestrator.request_verification(IDENTITY)

        assert exc_info.value.current_chain_id == 1
        assert exc_info.value.required_chain_id == ledger.chain_id
        assert orchestrator.state.status == VerificationStatus.IDLE
        assert wallet.sent == []

        wallet.allow_chain_switch = True
        final = await orchestrator.request_verification(IDENTITY)
        assert final.status == VerificationStatus.COMPLETED


class TestFailures:
    """Failures after the flow has started end in a failed state."""

    @pytest.mark.asyncio
    async def test_empty_attestors_rejected_before_ledger_write(
        self,
        ledger: MockLedgerClient,
        wallet: MockWallet,
        sleep: RecordingSleep,
    ) -> None:
        attestations = AttestationService(
            fallback=NoAttestorsProvider(clock=lambda: NOW),
            clock=lambda: NOW,
        )
        orchestrator = VerificationOrchestrator(ledger, wallet, attestations, sleep=sleep)

        final = await orchestrator.request_verification(IDENTITY)

        assert final.status == VerificationStatus.FAILED
        assert final.error_kind == ErrorKind.VALIDATION
        assert "Missing attestors" in (final.error or "")
        assert final.current_step == "Verification request failed"
        assert wallet.sent == []
        assert ledger.get_stats()["requests"] == 0

    @pytest.mark.asyncio
    async def test_user_rejects_request(self, orchestrator: VerificationOrchestrator, wallet: MockWallet) -> None:
        wallet.reject_next_transaction("User rejected the request.")

        final = await orchestrator.request_verification(IDENTITY)

        assert final.status == VerificationStatus.FAILED
        assert final.error_kind == ErrorKind.TRANSACTION
        assert final.error == "User rejected the request."
        assert final.request_id is None

    @pytest.mark.asyncio
    async def test_reverted_request(
        self,
        ledger: MockLedgerClient,
        wallet: MockWallet,
        attestations: AttestationService,
        sleep: RecordingSleep,
    ) -> None:
        orchestrator = VerificationOrchestrator(
            ledger, wallet, attestations, sleep=sleep, verification_fee=1
        )

        final = await orchestrator.request_verification(IDENTITY)

        assert final.status == VerificationStatus.FAILED
        assert final.error_kind == ErrorKind.TRANSACTION
        assert "reverted" in (final.error or "")
        assert len(wallet.sent) == 1

    @pytest.mark.asyncio
    async def test_confirmation_timeout(
        self,
        ledger: MockLedgerClient,
        wallet: MockWallet,
        attestations: AttestationService,
        sleep: RecordingSleep,
    ) -> None:
        orchestrator = VerificationOrchestrator(
            ledger, wallet, attestations, sleep=sleep, confirmation_timeout=0.01
        )
        wallet.hang_next_confirmation()

        final = await orchestrator.request_verification(IDENTITY)

        assert final.status == VerificationStatus.FAILED
        assert final.error_kind == ErrorKind.TRANSACTION
        assert "not confirmed" in (final.error or "")

    @pytest.mark.asyncio
    async def test_request_id_not_extractable(
        self,
        orchestrator: VerificationOrchestrator,
        ledger: MockLedgerClient,
        wallet: MockWallet,
    ) -> None:
        ledger.inject_log_failure(LedgerError("header not found"), from_block=1001)

        final = await orchestrator.request_verification(IDENTITY)

        assert final.status == VerificationStatus.FAILED
        assert final.error_kind == ErrorKind.EXTRACTION
        assert len(wallet.sent) == 1
        assert orchestrator.confirmed_requests == frozenset()

    @pytest.mark.asyncio
    async def test_completion_rejected_keeps_request_id(
        self,
        orchestrator: VerificationOrchestrator,
        wallet: MockWallet,
    ) -> None:
        reject_completion(orchestrator, wallet)

        final = await orchestrator.request_verification(IDENTITY)

        assert final.status == VerificationStatus.FAILED
        assert final.error_kind == ErrorKind.TRANSACTION
        assert final.request_id is not None
        assert final.current_step == "Verification completion failed"


class TestCompletion:
    """Completion is only issued for requests confirmed in this session."""

    @pytest.mark.asyncio
    async def test_unknown_request_id(self, orchestrator: VerificationOrchestrator, wallet: MockWallet) -> None:
        with pytest.raises(UnknownRequestError):
            await orchestrator.complete_verification("0x" + "0" * 64)

        assert wallet.sent == []
        assert orchestrator.state.status == VerificationStatus.IDLE

    @pytest.mark.asyncio
    async def test_unknown_request_checked_before_network_switch(
        self,
        ledger: MockLedgerClient,
        attestations: AttestationService,
        sleep: RecordingSleep,
    ) -> None:
        wallet = MockWallet(ledger, USER, chain_id=1)
        orchestrator = VerificationOrchestrator(ledger, wallet, attestations, sleep=sleep)

        with pytest.raises(UnknownRequestError):
            await orchestrator.complete_verification("0x" + "0" * 64)

        assert await wallet.get_chain_id() == 1

    @pytest.mark.asyncio
    async def test_request_from_other_session(
        self,
        orchestrator: VerificationOrchestrator,
        ledger: MockLedgerClient,
        wallet: MockWallet,
        attestations: AttestationService,
        sleep: RecordingSleep,
    ) -> None:
        first_wallet = ledger.create_wallet(USER)
        first = VerificationOrchestrator(ledger, first_wallet, attestations, sleep=sleep)
        blocker = reject_completion(first, first_wallet)
        failed = await first.request_verification(IDENTITY)
        blocker()
        assert failed.request_id is not None

        with pytest.raises(UnknownRequestError):
            await orchestrator.complete_verification(failed.request_id)
        assert wallet.sent == []

    @pytest.mark.asyncio
    async def test_retry_completion_after_reset(
        self,
        orchestrator: VerificationOrchestrator,
        ledger: MockLedgerClient,
        wallet: MockWallet,
    ) -> None:
        unsubscribe = reject_completion(orchestrator, wallet)
        failed = await orchestrator.request_verification(IDENTITY)
        unsubscribe()
        request_id = failed.request_id
        assert request_id is not None

        with pytest.raises(FlowInProgressError):
            await orchestrator.complete_verification(request_id)

        orchestrator.reset()
        final = await orchestrator.complete_verification(request_id)

        assert final.status == VerificationStatus.COMPLETED
        assert final.request_id == request_id
        assert final.verification_success is True
        assert (await ledger.get_user_profile(USER)).verification_count == 1

        # A completed request cannot be completed again
        orchestrator.reset()
        with pytest.raises(UnknownRequestError):
            await orchestrator.complete_verification(request_id)


class TestReset:
    @pytest.mark.asyncio
    async def test_reset_clears_state(self, orchestrator: VerificationOrchestrator) -> None:
        await orchestrator.request_verification(IDENTITY)

        orchestrator.reset()

        assert orchestrator.state == VerificationState()

    @pytest.mark.asyncio
    async def test_reset_during_settle_stops_phase_two(
        self,
        ledger: MockLedgerClient,
        wallet: MockWallet,
        attestations: AttestationService,
    ) -> None:
        async def blocking_sleep(seconds: float) -> None:
            await asyncio.Event().wait()

        orchestrator = VerificationOrchestrator(ledger, wallet, attestations, sleep=blocking_sleep)
        task = asyncio.create_task(orchestrator.request_verification(IDENTITY))

        for _ in range(100):
            if orchestrator.state.request_id is not None:
                break
            await asyncio.sleep(0)
        request_id = orchestrator.state.request_id
        assert request_id is not None

        orchestrator.reset()
        result = await task

        assert result.status == VerificationStatus.IDLE
        assert len(wallet.sent) == 1
        assert request_id in orchestrator.confirmed_requests

    @pytest.mark.asyncio
    async def test_unsubscribe(self, orchestrator: VerificationOrchestrator) -> None:
        states: list[VerificationState] = []
        unsubscribe = orchestrator.subscribe(states.append)
        unsubscribe()

        await orchestrator.request_verification(IDENTITY)

        assert states == []


class TestStateMachine:
    def test_allowed_transitions(self) -> None:
        assert can_transition(VerificationStatus.IDLE, VerificationStatus.REQUESTING)
        assert can_transition(VerificationStatus.REQUESTING, VerificationStatus.VERIFYING)
        assert can_transition(VerificationStatus.VERIFYING, VerificationStatus.COMPLETED)
        assert can_transition(VerificationStatus.FAILED, VerificationStatus.IDLE)

    def test_forbidden_transitions(self) -> None:
        assert not can_transition(VerificationStatus.IDLE, VerificationStatus.COMPLETED)
        assert not can_transition(VerificationStatus.COMPLETED, VerificationStatus.REQUESTING)

        with pytest.raises(InvalidTransitionError):
            check_transition(VerificationStatus.FAILED, VerificationStatus.VERIFYING)

    def test_same_status_is_not_a_transition(self) -> None:
        with pytest.raises(InvalidTransitionError):
            check_transition(VerificationStatus.REQUESTING, VerificationStatus.REQUESTING)

        check_transition(VerificationStatus.IDLE, VerificationStatus.IDLE)
