"""
Test Configuration
==================

Pytest fixtures for MonadVerify tests.
"""

import os
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Set test environment
os.environ["ENVIRONMENT"] = "testing"
os.environ["LEDGER_MODE"] = "mock"
os.environ["CACHE_BACKEND"] = "memory"
os.environ["MOCK_API_DELAY_SECONDS"] = "0"
os.environ["PRIMUS_APP_ID"] = ""

from monadverify.attestation import AttestationService, MockAttestationProvider  # noqa: E402
from monadverify.history import BlockCacheRepository, ChainReader, VerificationHistory  # noqa: E402
from monadverify.ledger import MockLedgerClient, MockWallet  # noqa: E402
from monadverify.orchestrator import VerificationOrchestrator  # noqa: E402
from monadverify.storage import MemoryStore  # noqa: E402

# Fixed ledger time: 2023-11-14T22:13:20Z
NOW = 1_700_000_000
USER = "0x" + "ab" * 20
OTHER_USER = "0x" + "cd" * 20


class RecordingSleep:
    """Async sleep stand-in that records requested delays and returns at once."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Use asyncio backend for async tests."""
    return "asyncio"


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def ledger() -> MockLedgerClient:
    """Fresh mock ledger at block 1000."""
    return MockLedgerClient(start_block=1000, clock=lambda: NOW)


@pytest.fixture
def wallet(ledger: MockLedgerClient) -> MockWallet:
    return ledger.create_wallet(USER)


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def cache(store: MemoryStore) -> BlockCacheRepository:
    return BlockCacheRepository(store, namespace="test_block_cache")


@pytest.fixture
def reader(
    ledger: MockLedgerClient,
    cache: BlockCacheRepository,
    sleep: RecordingSleep,
) -> ChainReader:
    return ChainReader(
        ledger,
        cache,
        sleep=sleep,
        block_range=500,
        rate_limit_delay=1.0,
        max_retries=3,
        start_block=0,
        retry_skipped_windows=False,
    )


@pytest.fixture
def history(reader: ChainReader) -> VerificationHistory:
    return VerificationHistory(reader)


@pytest.fixture
def attestations() -> AttestationService:
    """Mock-only attestation service on the fixed clock."""
    return AttestationService(
        primary=None,
        fallback=MockAttestationProvider(clock=lambda: NOW),
        clock=lambda: NOW,
    )


@pytest.fixture
def orchestrator(
    ledger: MockLedgerClient,
    wallet: MockWallet,
    attestations: AttestationService,
    history: VerificationHistory,
    sleep: RecordingSleep,
) -> VerificationOrchestrator:
    return VerificationOrchestrator(
        ledger,
        wallet,
        attestations,
        history=history,
        sleep=sleep,
        settle_delay=2.0,
        confirmation_timeout=5.0,
    )


@pytest_asyncio.fixture
async def verification_client(
    ledger: MockLedgerClient,
    history: VerificationHistory,
    attestations: AttestationService,
) -> AsyncGenerator[AsyncClient, None]:
    """Create test client for the Verification Service, wired to the mock ledger."""
    from monadverify.attestation import reset_attestation_service, set_attestation_service
    from monadverify.history import get_verification_history
    from monadverify.ledger import reset_ledger_client, set_ledger_client
    from services.verification.main import app

    set_ledger_client(ledger)
    set_attestation_service(attestations)
    app.dependency_overrides[get_verification_history] = lambda: history

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

    app.dependency_overrides.clear()
    reset_ledger_client()
    reset_attestation_service()
