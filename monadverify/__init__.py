"""
MonadVerify Core
================

Verification history sync and two-phase verification flow for the
MonadVerify ledger contract.

Modules:
    - config: Configuration management with Pydantic Settings
    - logging: Structured logging with structlog
    - models: Shared Pydantic models (events, records, attestations)
    - ledger: Ledger and wallet interfaces (mock/testnet/mainnet)
    - attestation: Attestation providers, fallback and validation
    - storage: Namespaced key-value stores for the block cache
    - history: Chain reader, block cache, reconciler, history service
    - orchestrator: Request/complete transaction state machine

Version: 0.1.0
"""

__version__ = "0.1.0"
__author__ = "MonadVerify Team"

from monadverify.config import settings
from monadverify.logging import get_logger, setup_logging

__all__ = [
    "settings",
    "get_logger",
    "setup_logging",
    "__version__",
]
