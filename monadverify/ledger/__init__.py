"""
Ledger Module
=============

Abstraction layer for the MonadVerify contract and the wallet that writes
to it.

Supports:
- Mock (development/testing)
- Testnet (Monad Testnet)
- Mainnet (Monad)

Usage:
    from monadverify.ledger import get_ledger_client

    client = get_ledger_client()
    await client.connect()

    height = await client.get_block_number()
    events = await client.get_logs(
        EventName.VERIFICATION_REQUESTED, user="0xabc...", from_block=0, to_block=499,
    )

    wallet = client.create_wallet("0xabc...")
"""

from monadverify.ledger.client import (
    LedgerClient,
    Wallet,
    get_ledger_client,
    reset_ledger_client,
    set_ledger_client,
)
from monadverify.ledger.mock import MockLedgerClient, MockWallet

__all__ = [
    # Interfaces
    "LedgerClient",
    "Wallet",
    "get_ledger_client",
    "set_ledger_client",
    "reset_ledger_client",
    # Implementations
    "MockLedgerClient",
    "MockWallet",
]
