"""
Mock Attestation Provider
=========================

Produces structurally valid attestations with a fixed placeholder
signature. Always available; never cryptographically meaningful.

Version: 0.1.0
"""

import json
import time
from collections.abc import Callable

from monadverify.attestation.provider import AttestationProvider
from monadverify.logging import get_logger
from monadverify.models.attestation import (
    MOCK_SIGNATURE,
    Attestation,
    AttNetworkRequest,
    AttNetworkResponseResolve,
    Attestor,
)

logger = get_logger(__name__)

MOCK_ATTESTOR_ADDRESS = "0x1234567890123456789012345678901234567890"


def create_mock_attestation(
    recipient: str,
    data: str,
    data_type: str = "identity",
    timestamp: int | None = None,
) -> Attestation:
    """Build a placeholder attestation for ``recipient``."""
    return Attestation(
        recipient=recipient,
        request=AttNetworkRequest(
            url="https://api.example.com/verify",
            header=json.dumps({"Content-Type": "application/json"}),
            method="POST",
            body=json.dumps({"type": data_type, "data": data}),
        ),
        response_resolve=[
            AttNetworkResponseResolve(
                key_name="verified",
                parse_type="JSON",
                parse_path="$.verified",
            )
        ],
        data=data,
        att_conditions=json.dumps({"dataType": data_type}),
        timestamp=timestamp if timestamp is not None else int(time.time()),
        addition_params="",
        attestors=[Attestor(attestor_addr=MOCK_ATTESTOR_ADDRESS, url="https://attestor.example.com")],
        signatures=[MOCK_SIGNATURE],
    )


class MockAttestationProvider(AttestationProvider):
    """Drop-in provider for development and tests."""

    def __init__(self, clock: Callable[[], float] | None = None) -> None:
        self._clock = clock or time.time
        self._initialized = False

    @property
    def name(self) -> str:
        return "mock"

    async def initialize(self) -> bool:
        self._initialized = True
        return True

    async def shutdown(self) -> None:
        self._initialized = False

    def is_available(self) -> bool:
        # Usable without initialize(); it holds no resources
        return True

    async def generate_attestation(
        self,
        data_type: str,
        user_address: str,
        user_data: dict[str, str] | None = None,
    ) -> Attestation:
        attestation = create_mock_attestation(
            recipient=user_address,
            data=f"verified_{data_type}_data",
            data_type=data_type,
            timestamp=int(self._clock()),
        )
        logger.debug("mock_attestation_generated", data_type=data_type, recipient=user_address)
        return attestation

    async def verify_attestation(self, attestation: Attestation) -> bool:
        return attestation.has_mock_signature
