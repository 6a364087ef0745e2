"""
Profile Routes
==============

Contract profile counters and the derived verification score.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Path
from pydantic import BaseModel

from monadverify.history import VerificationHistory, compute_user_stats, get_verification_history
from monadverify.ledger import LedgerClient, get_ledger_client
from monadverify.models import ContractStats, UserProfile, UserStats

router = APIRouter()

Address = Annotated[str, Path(pattern=r"^0x[0-9a-fA-F]{40}$", description="Wallet address")]


class ProfileResponse(BaseModel):
    address: str
    profile: UserProfile
    stats: UserStats


@router.get("/contract/stats", response_model=ContractStats)
async def get_contract_stats(
    ledger: Annotated[LedgerClient, Depends(get_ledger_client)],
) -> ContractStats:
    """Contract-wide counters."""
    return await ledger.get_contract_stats()


@router.get("/{address}", response_model=ProfileResponse)
async def get_profile(
    address: Address,
    ledger: Annotated[LedgerClient, Depends(get_ledger_client)],
    history: Annotated[VerificationHistory, Depends(get_verification_history)],
) -> ProfileResponse:
    """Profile counters, score and verified data types for an address."""
    profile = await ledger.get_user_profile(address)
    records = await history.load_history(address)
    return ProfileResponse(
        address=address.lower(),
        profile=profile,
        stats=compute_user_stats(profile, records=records),
    )
