"""
Mock Verification API
=====================

Simulated off-chain verification results for development.

Answers after a configurable delay with a canned result per type; nothing
is actually checked.
"""

import asyncio
import secrets
import time
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel, Field

from monadverify.config import settings
from monadverify.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()

PROVIDER = "MonadVerify Mock API"
API_VERSION = "1.0.0"


class VerifyRequest(BaseModel):
    """Claim to verify."""

    type: str = Field(
        ..., min_length=1, description="identity, income, education, employment or credit"
    )
    data: str = Field(..., min_length=1, description="Claim value")


class VerifyResponse(BaseModel):
    verified: bool
    timestamp: str
    verification_id: str = Field(..., serialization_alias="verificationId")
    provider: str = PROVIDER
    version: str = API_VERSION
    type: str
    data: dict[str, Any]


def _parse_float(value: str, default: float) -> float:
    try:
        return float(value) or default
    except ValueError:
        return default


def _parse_int(value: str, default: int) -> int:
    try:
        return int(value) or default
    except ValueError:
        return default


def simulated_result(claim_type: str, data: str) -> dict[str, Any]:
    """Canned result for a claim type; unknown types come back unverified."""
    now = datetime.now(UTC).isoformat()

    if claim_type == "identity":
        return {
            "name": data,
            "verified": True,
            "confidence": 0.95,
            "sources": ["government_id", "biometric_match"],
            "riskScore": "low",
        }
    if claim_type == "income":
        return {
            "amount": _parse_float(data, 50000.0),
            "currency": "USD",
            "verified": True,
            "confidence": 0.92,
            "sources": ["bank_statements", "tax_records"],
            "period": "annual",
        }
    if claim_type == "education":
        return {
            "institution": data,
            "verified": True,
            "confidence": 0.98,
            "sources": ["diploma_verification", "institution_records"],
            "degree": "Bachelor of Science",
            "graduationYear": 2020,
        }
    if claim_type == "employment":
        return {
            "company": data,
            "verified": True,
            "confidence": 0.94,
            "sources": ["hr_records", "payroll_verification"],
            "position": "Software Engineer",
            "startDate": "2021-01-15",
        }
    if claim_type == "credit":
        return {
            "score": _parse_int(data, 750),
            "verified": True,
            "confidence": 0.96,
            "sources": ["credit_bureau", "payment_history"],
            "rating": "excellent",
            "lastUpdated": now,
        }
    return {
        "value": data,
        "verified": False,
        "confidence": 0.0,
        "sources": [],
        "error": "Unsupported verification type",
    }


@router.post("/verify", response_model=VerifyResponse, response_model_by_alias=True)
async def verify(request: VerifyRequest) -> VerifyResponse:
    """Return a simulated verification result."""
    logger.info("mock_verification_received", type=request.type, data_length=len(request.data))

    await asyncio.sleep(settings.mock_api.delay_seconds)

    known = request.type in ("identity", "income", "education", "employment", "credit")
    response = VerifyResponse(
        verified=True,
        timestamp=datetime.now(UTC).isoformat(),
        verification_id=f"verify_{int(time.time() * 1000)}_{secrets.token_hex(5)[:9]}",
        type=request.type if known else "unknown",
        data=simulated_result(request.type, request.data),
    )
    logger.info(
        "mock_verification_completed",
        verification_id=response.verification_id,
        type=response.type,
        confidence=response.data["confidence"],
    )
    return response
