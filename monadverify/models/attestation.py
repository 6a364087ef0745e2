"""
Attestation Models
==================

Primus zkTLS attestation payloads as accepted by the MonadVerify contract.

Field aliases follow the vendor's wire names (including its
``reponseResolve`` spelling) so payloads round-trip through the Primus API
unchanged.

Version: 0.1.0
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# 65 zero bytes; the contract's mock verifier accepts it, real verifiers do not
MOCK_SIGNATURE = "0x" + "0" * 130


class AttNetworkRequest(BaseModel):
    """The HTTP request the attestor observed."""

    url: str
    header: str = ""
    method: str = "GET"
    body: str = ""


class AttNetworkResponseResolve(BaseModel):
    """How a value was extracted from the observed response."""

    model_config = ConfigDict(populate_by_name=True)

    key_name: str = Field(..., alias="keyName")
    parse_type: str = Field(..., alias="parseType")
    parse_path: str = Field(..., alias="parsePath")


class Attestor(BaseModel):
    """An attestor node that signed the attestation."""

    model_config = ConfigDict(populate_by_name=True)

    attestor_addr: str = Field(..., alias="attestorAddr")
    url: str = ""


class Attestation(BaseModel):
    """A vendor attestation asserting an off-chain data claim."""

    model_config = ConfigDict(populate_by_name=True)

    recipient: str
    request: AttNetworkRequest
    response_resolve: list[AttNetworkResponseResolve] = Field(
        default_factory=list, alias="reponseResolve"
    )
    data: str
    att_conditions: str = Field(default="", alias="attConditions")
    timestamp: int = Field(..., description="Seconds since epoch")
    addition_params: str = Field(default="", alias="additionParams")
    attestors: list[Attestor] = Field(default_factory=list)
    signatures: list[str] = Field(default_factory=list)

    @property
    def has_mock_signature(self) -> bool:
        return bool(self.signatures) and self.signatures[0] == MOCK_SIGNATURE

    def to_contract_tuple(self) -> tuple[Any, ...]:
        """ABI tuple for ``requestVerification(string, Attestation)``."""
        return (
            self.recipient,
            (self.request.url, self.request.header, self.request.method, self.request.body),
            [(r.key_name, r.parse_type, r.parse_path) for r in self.response_resolve],
            self.data,
            self.att_conditions,
            self.timestamp,
            self.addition_params,
            [(a.attestor_addr, a.url) for a in self.attestors],
            [bytes.fromhex(s.removeprefix("0x")) for s in self.signatures],
        )


class AttestationSource(str, Enum):
    """Where an attestation came from."""

    PRIMUS = "primus"
    MOCK = "mock"


class AttestationResult(BaseModel):
    """Attestation plus its provenance."""

    attestation: Attestation
    is_real: bool
    source: AttestationSource


class ValidationResult(BaseModel):
    """Outcome of structural attestation validation."""

    is_valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class ReadinessLevel(str, Enum):
    READY = "ready"
    WARNING = "warning"
    ERROR = "error"


class Readiness(BaseModel):
    """Whether an attestation can be submitted on chain."""

    status: ReadinessLevel
    message: str
    can_proceed: bool


class EnvironmentStatus(BaseModel):
    """Whether real attestations can be produced in this environment."""

    primus_available: bool
    test_mode_recommended: bool
    message: str
