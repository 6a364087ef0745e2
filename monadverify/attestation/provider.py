"""
Attestation Provider Base
=========================

Abstract base class for attestation providers.

Providers have an explicit lifecycle: construct, ``initialize()``, use,
``shutdown()``. Availability is queried, never inferred from construction.

Version: 0.1.0
"""

from abc import ABC, abstractmethod

from monadverify.models.attestation import Attestation


class AttestationProvider(ABC):
    """
    Abstract base class for attestation providers.

    Implements the Strategy pattern for swappable attestation backends.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name."""
        ...

    @abstractmethod
    async def initialize(self) -> bool:
        """
        Prepare the provider for use.

        Returns:
            True if the provider is now available
        """
        ...

    @abstractmethod
    async def shutdown(self) -> None:
        """Release provider resources."""
        ...

    @abstractmethod
    def is_available(self) -> bool:
        """Whether ``generate_attestation`` can be called."""
        ...

    @abstractmethod
    async def generate_attestation(
        self,
        data_type: str,
        user_address: str,
        user_data: dict[str, str] | None = None,
    ) -> Attestation:
        """
        Produce an attestation for a data claim.

        Args:
            data_type: Verification category
            user_address: Recipient wallet address
            user_data: Optional claim inputs

        Returns:
            Attestation payload

        Raises:
            AttestationUnavailableError: Provider not initialized
            AttestationError: Generation failed
        """
        ...

    @abstractmethod
    async def verify_attestation(self, attestation: Attestation) -> bool:
        """Check an attestation's signatures with the provider."""
        ...

    async def __aenter__(self) -> "AttestationProvider":
        await self.initialize()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.shutdown()
