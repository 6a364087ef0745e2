"""
Unit tests for the mock ledger client and wallet.
"""

import pytest

from monadverify.attestation import create_mock_attestation
from monadverify.config import LedgerMode
from monadverify.errors import (
    ConfirmationTimeoutError,
    LedgerError,
    RateLimitError,
    TransactionError,
    WalletNotConnectedError,
)
from monadverify.ledger import MockLedgerClient, MockWallet
from monadverify.models import ContractCall, ContractFunction, EventName
from tests.conftest import NOW, OTHER_USER, USER

FEE = 10**16


def request_call(
    data_type: str = "identity",
    data: str = "verified_identity_data",
    value: int = FEE,
) -> ContractCall:
    return ContractCall(
        function=ContractFunction.REQUEST_VERIFICATION,
        args=[data_type, create_mock_attestation(USER, data, data_type, timestamp=NOW)],
        value=value,
    )


def complete_call(request_id: str) -> ContractCall:
    return ContractCall(function=ContractFunction.COMPLETE_VERIFICATION, args=[request_id])


async def send(wallet: MockWallet, call: ContractCall):
    handle = await wallet.send_transaction(call)
    return await wallet.wait_for_confirmation(handle)


class TestMockLedgerClient:
    """Tests for MockLedgerClient."""

    def test_client_mode(self, ledger: MockLedgerClient) -> None:
        """Test that client reports mock mode."""
        assert ledger.mode == LedgerMode.MOCK

    @pytest.mark.asyncio
    async def test_health_check(self, ledger: MockLedgerClient) -> None:
        await ledger.connect()
        health = await ledger.health_check()

        assert health["status"] == "healthy"
        assert health["connected"] is True
        assert health["block_number"] == 1000

    @pytest.mark.asyncio
    async def test_request_emits_event(self, ledger: MockLedgerClient, wallet: MockWallet) -> None:
        """Test that a request is mined in its own block with a VerificationRequested event."""
        receipt = await send(wallet, request_call())

        assert receipt.success is True
        assert receipt.block_number == 1001

        events = await ledger.get_logs(EventName.VERIFICATION_REQUESTED, USER, 1001, 1001)
        assert len(events) == 1
        event = events[0]
        assert event.tx_hash == receipt.tx_hash
        assert event.user == USER
        assert event.data_type == "identity"
        assert event.timestamp == NOW
        assert event.request_id is not None
        assert event.request_id.startswith("0x")
        assert len(event.request_id) == 66

    @pytest.mark.asyncio
    async def test_request_requires_fee(self, ledger: MockLedgerClient, wallet: MockWallet) -> None:
        receipt = await send(wallet, request_call(value=FEE - 1))

        assert receipt.success is False
        assert await ledger.get_logs(EventName.VERIFICATION_REQUESTED, USER, 0, 2000) == []

    @pytest.mark.asyncio
    async def test_request_rejects_unsupported_type(
        self, ledger: MockLedgerClient, wallet: MockWallet
    ) -> None:
        ledger.set_supported_data_type("income", False)

        receipt = await send(wallet, request_call(data_type="income"))

        assert receipt.success is False

    @pytest.mark.asyncio
    async def test_complete_updates_profile(self, ledger: MockLedgerClient, wallet: MockWallet) -> None:
        """Test that a successful completion updates the user's profile."""
        await send(wallet, request_call())
        (requested,) = await ledger.get_logs(EventName.VERIFICATION_REQUESTED, USER, 0, 2000)

        receipt = await send(wallet, complete_call(requested.request_id))

        assert receipt.success is True
        (completed,) = await ledger.get_logs(EventName.VERIFICATION_COMPLETED, USER, 0, 2000)
        assert completed.request_id == requested.request_id
        assert completed.success is True

        profile = await ledger.get_user_profile(USER)
        assert profile.verification_count == 1
        assert profile.is_verified is True
        assert profile.last_verification_time == NOW

        stats = await ledger.get_contract_stats()
        assert stats.total_verifications == 1
        assert stats.contract_balance == FEE

    @pytest.mark.asyncio
    async def test_forced_failure_leaves_profile(self, ledger: MockLedgerClient, wallet: MockWallet) -> None:
        ledger.force_verification_result("verified_identity_data", False)
        await send(wallet, request_call())
        (requested,) = await ledger.get_logs(EventName.VERIFICATION_REQUESTED, USER, 0, 2000)

        await send(wallet, complete_call(requested.request_id))

        (completed,) = await ledger.get_logs(EventName.VERIFICATION_COMPLETED, USER, 0, 2000)
        assert completed.success is False
        profile = await ledger.get_user_profile(USER)
        assert profile.verification_count == 0
        assert profile.is_verified is False

    @pytest.mark.asyncio
    async def test_double_completion_reverts(self, ledger: MockLedgerClient, wallet: MockWallet) -> None:
        await send(wallet, request_call())
        (requested,) = await ledger.get_logs(EventName.VERIFICATION_REQUESTED, USER, 0, 2000)
        await send(wallet, complete_call(requested.request_id))

        receipt = await send(wallet, complete_call(requested.request_id))

        assert receipt.success is False

    @pytest.mark.asyncio
    async def test_completion_by_other_user_reverts(self, ledger: MockLedgerClient, wallet: MockWallet) -> None:
        await send(wallet, request_call())
        (requested,) = await ledger.get_logs(EventName.VERIFICATION_REQUESTED, USER, 0, 2000)

        other = ledger.create_wallet(OTHER_USER)
        receipt = await send(other, complete_call(requested.request_id))

        assert receipt.success is False

    @pytest.mark.asyncio
    async def test_logs_filtered_by_user_and_range(self, ledger: MockLedgerClient, wallet: MockWallet) -> None:
        await send(wallet, request_call())
        await send(ledger.create_wallet(OTHER_USER), request_call())

        assert len(await ledger.get_logs(EventName.VERIFICATION_REQUESTED, USER, 0, 2000)) == 1
        assert len(await ledger.get_logs(EventName.VERIFICATION_REQUESTED, USER.upper(), 0, 2000)) == 1
        assert await ledger.get_logs(EventName.VERIFICATION_REQUESTED, USER, 1002, 2000) == []

    @pytest.mark.asyncio
    async def test_injected_log_failure(self, ledger: MockLedgerClient) -> None:
        ledger.inject_log_failure(RateLimitError("429 Too Many Requests"), times=2, from_block=500)

        # Other windows are unaffected
        assert await ledger.get_logs(EventName.VERIFICATION_REQUESTED, USER, 0, 499) == []

        for _ in range(2):
            with pytest.raises(RateLimitError):
                await ledger.get_logs(EventName.VERIFICATION_REQUESTED, USER, 500, 999)

        assert await ledger.get_logs(EventName.VERIFICATION_REQUESTED, USER, 500, 999) == []
        assert len(ledger.log_queries) == 4

    @pytest.mark.asyncio
    async def test_mine_empty_blocks(self, ledger: MockLedgerClient) -> None:
        assert ledger.mine_empty_blocks(250) == 1250
        assert await ledger.get_block_number() == 1250

    @pytest.mark.asyncio
    async def test_clear_all(self, ledger: MockLedgerClient, wallet: MockWallet) -> None:
        await send(wallet, request_call())

        ledger.clear_all()

        assert ledger.get_stats() == {"requests": 0, "events": 0, "pending": 0, "block_number": 1000}


class TestMockWallet:
    """Tests for MockWallet."""

    @pytest.mark.asyncio
    async def test_disconnected_wallet(self, ledger: MockLedgerClient) -> None:
        wallet = ledger.create_wallet()

        assert wallet.address is None
        with pytest.raises(WalletNotConnectedError):
            await wallet.send_transaction(request_call())

    @pytest.mark.asyncio
    async def test_rejected_transaction(self, wallet: MockWallet) -> None:
        wallet.reject_next_transaction("User rejected the request.")

        with pytest.raises(TransactionError, match="User rejected"):
            await wallet.send_transaction(request_call())

        # Only the next transaction is rejected
        handle = await wallet.send_transaction(request_call())
        assert handle.tx_hash.startswith("0x")

    @pytest.mark.asyncio
    async def test_wrong_chain(self, ledger: MockLedgerClient) -> None:
        wallet = MockWallet(ledger, USER, chain_id=1)

        with pytest.raises(TransactionError):
            await wallet.send_transaction(request_call())

        await wallet.switch_chain(ledger.chain_id)
        assert await wallet.get_chain_id() == ledger.chain_id

    @pytest.mark.asyncio
    async def test_switch_refused(self, ledger: MockLedgerClient) -> None:
        wallet = MockWallet(ledger, USER, chain_id=1)
        wallet.allow_chain_switch = False

        with pytest.raises(LedgerError):
            await wallet.switch_chain(ledger.chain_id)

    @pytest.mark.asyncio
    async def test_confirmation_timeout(self, wallet: MockWallet) -> None:
        wallet.hang_next_confirmation()
        handle = await wallet.send_transaction(request_call())

        with pytest.raises(ConfirmationTimeoutError) as exc_info:
            await wallet.wait_for_confirmation(handle, timeout=0.01)

        assert exc_info.value.tx_hash == handle.tx_hash
