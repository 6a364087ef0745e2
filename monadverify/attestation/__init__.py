"""
Attestation Module
==================

Attestation providers and the service that picks between them.

Providers:
- Primus (zkTLS attestation API)
- Mock (placeholder signatures, development/testing)

Usage:
    from monadverify.attestation import get_attestation_service

    service = get_attestation_service()
    await service.initialize()
    result = await service.generate("income", "0xabc...")
"""

from monadverify.attestation.mock import MockAttestationProvider, create_mock_attestation
from monadverify.attestation.primus import PrimusAttestationProvider
from monadverify.attestation.provider import AttestationProvider
from monadverify.attestation.service import (
    AttestationService,
    get_attestation_service,
    reset_attestation_service,
    set_attestation_service,
)

__all__ = [
    "AttestationProvider",
    "AttestationService",
    "MockAttestationProvider",
    "PrimusAttestationProvider",
    "create_mock_attestation",
    "get_attestation_service",
    "set_attestation_service",
    "reset_attestation_service",
]
