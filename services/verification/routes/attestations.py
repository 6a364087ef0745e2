"""
Attestation Routes
==================

Attestation environment status.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from monadverify.attestation import AttestationService, get_attestation_service
from monadverify.models import EnvironmentStatus

router = APIRouter()


@router.get("/status", response_model=EnvironmentStatus)
async def get_attestation_status(
    service: Annotated[AttestationService, Depends(get_attestation_service)],
) -> EnvironmentStatus:
    """Whether real Primus attestations can be produced."""
    return service.environment_status()
