"""
Ledger Client Interface
=======================

Abstract base classes for the MonadVerify contract (reads and log queries)
and for the wallet that signs and broadcasts writes.

Version: 0.1.0
"""

from abc import ABC, abstractmethod
from typing import Any

from monadverify.config import LedgerMode, settings
from monadverify.logging import get_logger
from monadverify.models.ledger import (
    ContractCall,
    ContractStats,
    EventName,
    LedgerEvent,
    TransactionHandle,
    TransactionReceipt,
    UserProfile,
)

logger = get_logger(__name__)


class LedgerClient(ABC):
    """
    Abstract base class for ledger clients.

    Implements the Strategy pattern for different ledger modes.
    """

    @property
    @abstractmethod
    def mode(self) -> LedgerMode:
        """Get the ledger mode."""
        ...

    @abstractmethod
    async def connect(self) -> None:
        """Connect to the network."""
        ...

    @abstractmethod
    async def disconnect(self) -> None:
        """Disconnect from the network."""
        ...

    @abstractmethod
    async def health_check(self) -> dict[str, Any]:
        """Check ledger health."""
        ...

    # =========================================================================
    # Event Log
    # =========================================================================

    @abstractmethod
    async def get_block_number(self) -> int:
        """Current chain height."""
        ...

    @abstractmethod
    async def get_logs(
        self,
        event: EventName,
        user: str,
        from_block: int,
        to_block: int,
    ) -> list[LedgerEvent]:
        """
        Query contract events for one user in an inclusive block range.

        Args:
            event: Event kind to match
            user: Indexed ``user`` topic filter
            from_block: First block of the window
            to_block: Last block of the window

        Returns:
            Decoded events in on-chain order

        Raises:
            RateLimitError: The endpoint signalled rate limiting
            LedgerError: Any other query failure
        """
        ...

    # =========================================================================
    # Contract Reads
    # =========================================================================

    @abstractmethod
    async def get_user_profile(self, user: str) -> UserProfile:
        """Read the contract's per-user counters."""
        ...

    @abstractmethod
    async def get_contract_stats(self) -> ContractStats:
        """Read contract-wide counters."""
        ...

    @abstractmethod
    async def get_verification_fee(self) -> int:
        """Fee in wei required by ``requestVerification``."""
        ...

    # =========================================================================
    # Wallets
    # =========================================================================

    @abstractmethod
    def create_wallet(self, address: str | None = None) -> "Wallet":
        """
        Create a wallet bound to this ledger.

        Args:
            address: Account to act as, where the implementation allows it

        Returns:
            Wallet able to sign and broadcast contract writes
        """
        ...


class Wallet(ABC):
    """
    Signing identity and network context for contract writes.

    The orchestrator only needs these operations plus the exceptions they
    raise; how keys are held is up to the implementation.
    """

    @property
    @abstractmethod
    def address(self) -> str | None:
        """Connected account, or None when disconnected."""
        ...

    @abstractmethod
    async def get_chain_id(self) -> int:
        """Chain the wallet is currently pointed at."""
        ...

    @abstractmethod
    async def switch_chain(self, chain_id: int) -> None:
        """
        Point the wallet at another chain.

        Raises:
            LedgerError: The switch was refused or the chain is unknown
        """
        ...

    @abstractmethod
    async def send_transaction(self, call: ContractCall) -> TransactionHandle:
        """
        Sign and broadcast a contract write.

        Raises:
            TransactionError: The wallet or node rejected the transaction
        """
        ...

    @abstractmethod
    async def wait_for_confirmation(
        self,
        handle: TransactionHandle,
        timeout: float | None = None,
    ) -> TransactionReceipt:
        """
        Block until the transaction is mined.

        Args:
            handle: Transaction returned by ``send_transaction``
            timeout: Seconds to wait, None to wait indefinitely

        Raises:
            ConfirmationTimeoutError: No receipt within ``timeout``
            TransactionError: Any other confirmation failure
        """
        ...


# Global client instance
_client: LedgerClient | None = None


def get_ledger_client() -> LedgerClient:
    """
    Get the configured ledger client instance.

    Returns:
        LedgerClient instance based on settings
    """
    global _client

    if _client is None:
        mode = settings.ledger.mode

        if mode == LedgerMode.MOCK:
            from monadverify.ledger.mock import MockLedgerClient

            _client = MockLedgerClient()
        elif mode in (LedgerMode.TESTNET, LedgerMode.MAINNET):
            from monadverify.ledger.web3_client import Web3LedgerClient

            _client = Web3LedgerClient(mode=mode)
        else:
            raise ValueError(f"Unknown ledger mode: {mode}")

        logger.info(
            "ledger_client_initialized",
            mode=mode.value,
        )

    return _client


def set_ledger_client(client: LedgerClient) -> None:
    """
    Set a custom ledger client.

    Args:
        client: LedgerClient instance
    """
    global _client
    _client = client
    logger.info(
        "ledger_client_set",
        mode=client.mode.value,
    )


def reset_ledger_client() -> None:
    """Reset the client to be re-initialized."""
    global _client
    _client = None
