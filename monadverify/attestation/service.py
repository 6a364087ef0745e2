"""
Attestation Service
===================

Produces the attestation submitted with ``requestVerification``.

Tries the primary provider (Primus) first and falls back to mock
attestations when it is unavailable, fails, or returns an attestation whose
signatures do not verify. Also performs the structural checks run before any
ledger write.

Version: 0.1.0
"""

import time
from collections.abc import Callable

from monadverify.attestation.mock import MockAttestationProvider
from monadverify.attestation.provider import AttestationProvider
from monadverify.errors import AttestationError
from monadverify.logging import get_logger
from monadverify.models.attestation import (
    MOCK_SIGNATURE,
    Attestation,
    AttestationResult,
    AttestationSource,
    EnvironmentStatus,
    Readiness,
    ReadinessLevel,
    ValidationResult,
)

logger = get_logger(__name__)

MAX_ATTESTATION_AGE_SECONDS = 24 * 60 * 60
FUTURE_TOLERANCE_SECONDS = 300


class AttestationService:
    """
    Attestation generation with fallback, plus pre-submission validation.

    Usage:
        service = AttestationService(primary=PrimusAttestationProvider())
        await service.initialize()
        result = await service.generate("identity", "0xabc...")
        validation = service.validate(result.attestation)
    """

    def __init__(
        self,
        primary: AttestationProvider | None = None,
        fallback: AttestationProvider | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._clock = clock or time.time
        self.primary = primary
        self.fallback = fallback or MockAttestationProvider(clock=self._clock)

    async def initialize(self) -> bool:
        """Initialize providers; returns whether real attestations are possible."""
        await self.fallback.initialize()
        if self.primary is None:
            return False
        return await self.primary.initialize()

    async def shutdown(self) -> None:
        if self.primary is not None:
            await self.primary.shutdown()
        await self.fallback.shutdown()

    @property
    def primary_available(self) -> bool:
        return self.primary is not None and self.primary.is_available()

    async def generate(
        self,
        data_type: str,
        user_address: str,
        user_data: dict[str, str] | None = None,
    ) -> AttestationResult:
        """
        Generate an attestation, falling back to a mock one.

        Args:
            data_type: Verification category
            user_address: Recipient wallet address
            user_data: Optional claim inputs for the primary provider

        Returns:
            AttestationResult with provenance
        """
        if self.primary is not None and self.primary.is_available():
            try:
                attestation = await self.primary.generate_attestation(
                    data_type, user_address, user_data
                )
                if await self.primary.verify_attestation(attestation):
                    logger.info(
                        "attestation_generated",
                        source=self.primary.name,
                        data_type=data_type,
                    )
                    return AttestationResult(
                        attestation=attestation,
                        is_real=True,
                        source=AttestationSource.PRIMUS,
                    )
                logger.warning("attestation_failed_verification", source=self.primary.name)
            except AttestationError as e:
                logger.warning(
                    "attestation_primary_failed",
                    source=self.primary.name,
                    error=str(e),
                )
        else:
            logger.info("attestation_primary_unavailable", data_type=data_type)

        attestation = await self.fallback.generate_attestation(data_type, user_address, user_data)
        logger.info("attestation_generated", source=self.fallback.name, data_type=data_type)
        return AttestationResult(
            attestation=attestation,
            is_real=False,
            source=AttestationSource.MOCK,
        )

    def validate(self, attestation: Attestation, now: int | None = None) -> ValidationResult:
        """
        Structural checks run before submission.

        Errors block submission; warnings are informational.
        """
        errors: list[str] = []
        warnings: list[str] = []
        now = int(self._clock()) if now is None else now

        if not attestation.recipient:
            errors.append("Missing recipient address")
        if not attestation.data:
            errors.append("Missing attestation data")
        if attestation.timestamp <= 0:
            errors.append("Invalid timestamp")
        if not attestation.attestors:
            errors.append("Missing attestors")
        if not attestation.signatures:
            errors.append("Missing signatures")

        if attestation.has_mock_signature:
            warnings.append("Using mock signature - this is for testing only")

        if attestation.timestamp > 0:
            if now - attestation.timestamp > MAX_ATTESTATION_AGE_SECONDS:
                warnings.append("Attestation is older than 24 hours")
            if attestation.timestamp > now + FUTURE_TOLERANCE_SECONDS:
                errors.append("Attestation timestamp is in the future")

        return ValidationResult(is_valid=not errors, errors=errors, warnings=warnings)

    def verification_readiness(self, attestation: Attestation, is_real: bool) -> Readiness:
        """Whether an attestation may go on chain."""
        if not is_real:
            return Readiness(
                status=ReadinessLevel.WARNING,
                message="Using mock attestation for testing. This will work in test mode only.",
                can_proceed=True,
            )

        if not attestation.signatures or attestation.signatures[0] == MOCK_SIGNATURE:
            return Readiness(
                status=ReadinessLevel.ERROR,
                message="Invalid or missing signature. Cannot proceed with verification.",
                can_proceed=False,
            )

        return Readiness(
            status=ReadinessLevel.READY,
            message="Real Primus attestation ready for blockchain verification.",
            can_proceed=True,
        )

    def environment_status(self) -> EnvironmentStatus:
        if self.primary_available:
            return EnvironmentStatus(
                primus_available=True,
                test_mode_recommended=False,
                message="Primus zkTLS SDK is available and ready for real verification.",
            )
        return EnvironmentStatus(
            primus_available=False,
            test_mode_recommended=True,
            message=(
                "Primus zkTLS SDK is not available. Using mock data for testing. "
                "To use real verification, configure Primus credentials and ensure "
                "the SDK is properly initialized."
            ),
        )


# Global service instance
_service: AttestationService | None = None


def get_attestation_service() -> AttestationService:
    """
    Get the attestation service.

    Uses Primus as the primary provider when credentials are configured.
    Call ``initialize()`` on the result before generating attestations.
    """
    global _service

    if _service is None:
        from monadverify.config import settings

        primary: AttestationProvider | None = None
        if settings.attestation.configured:
            from monadverify.attestation.primus import PrimusAttestationProvider

            primary = PrimusAttestationProvider()

        _service = AttestationService(primary=primary)
        logger.info("attestation_service_initialized", primary=primary.name if primary else None)

    return _service


def set_attestation_service(service: AttestationService) -> None:
    global _service
    _service = service


def reset_attestation_service() -> None:
    """Reset the service to be re-initialized."""
    global _service
    _service = None
