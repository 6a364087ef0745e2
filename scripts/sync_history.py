#!/usr/bin/env python3
"""
History Sync Script
===================

Scan a wallet's verification events into the block cache and print the
reconciled records.

Usage:
    python scripts/sync_history.py 0xabc...
    python scripts/sync_history.py 0xabc... --force
    python scripts/sync_history.py 0xabc... --status verified

Version: 0.1.0
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from rich.console import Console
from rich.table import Table

from monadverify.errors import LedgerError, StorageError
from monadverify.logging import get_logger, setup_logging

setup_logging(log_level="INFO", json_logs=False, service_name="sync-history")
logger = get_logger(__name__)
console = Console()


def render(address: str, records: list, skipped: list) -> None:
    """Print records as a table."""
    table = Table(title=f"Verification history for {address}")
    table.add_column("Request ID")
    table.add_column("Type")
    table.add_column("Status")
    table.add_column("Requested (UTC)")
    table.add_column("Block", justify="right")

    styles = {"verified": "green", "failed": "red", "pending": "yellow"}
    for record in records:
        table.add_row(
            record.request_id[:18] + "...",
            record.data_type,
            f"[{styles[record.status.value]}]{record.status.value}[/]",
            record.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
            str(record.block_number or ""),
        )

    console.print(table)
    if skipped:
        console.print(
            f"[yellow]{len(skipped)} block window(s) skipped: "
            f"{', '.join(str(r) for r in skipped)}[/]"
        )


async def main(args: argparse.Namespace) -> int:
    """Main sync function."""
    from monadverify.history import get_verification_history, records_by_status
    from monadverify.ledger import get_ledger_client
    from monadverify.models import RecordStatus
    from monadverify.storage import get_store

    ledger = get_ledger_client()
    await ledger.connect()
    history = get_verification_history()

    try:
        if args.force:
            logger.info("history_force_refresh", address=args.address)
            snapshot = await history.force_sync(args.address)
        else:
            snapshot = await history.sync(args.address)
    except (LedgerError, StorageError) as e:
        logger.error("history_sync_failed", error=str(e))
        return 1
    finally:
        await ledger.disconnect()
        await get_store().close()

    records = snapshot.records
    if args.status:
        records = records_by_status(records, RecordStatus(args.status))

    render(args.address, records, snapshot.scan.skipped_ranges)
    return 0


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Sync and print a wallet's MonadVerify history",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "address",
        help="Wallet address to scan",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Clear the block cache and rescan from the start block",
    )
    parser.add_argument(
        "--status",
        choices=["pending", "verified", "failed"],
        help="Only show records with this status",
    )

    return parser.parse_args()


if __name__ == "__main__":
    args = parse_args()
    exit_code = asyncio.run(main(args))
    sys.exit(exit_code)
