"""
Primus Attestation Provider
===========================

HTTP client for the Primus zkTLS attestation service.

The flow follows the vendor SDK: build request parameters for a template,
sign them with the app secret, start the attestation, and optionally ask
the service to verify the returned signatures.

Version: 0.1.0
"""

import json
from typing import Any

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from monadverify.attestation.provider import AttestationProvider
from monadverify.config import settings
from monadverify.errors import AttestationError, AttestationUnavailableError
from monadverify.logging import get_logger
from monadverify.models.attestation import Attestation

logger = get_logger(__name__)

# Template IDs registered with Primus for each data type
TEMPLATE_IDS = {
    "identity": "identity-template-id",
    "income": "income-template-id",
    "credit_score": "credit-template-id",
    "education": "education-template-id",
    "employment": "employment-template-id",
    "social_media": "social-template-id",
}

ATTESTATION_CONDITIONS: dict[str, list[dict[str, str]]] = {
    "identity": [
        {"field": "name", "op": "SHA256"},
        {"field": "verified", "op": "=", "value": "true"},
    ],
    "income": [
        {"field": "amount", "op": ">", "value": "0"},
        {"field": "verified", "op": "=", "value": "true"},
    ],
    "credit_score": [
        {"field": "score", "op": ">=", "value": "300"},
        {"field": "score", "op": "<=", "value": "850"},
    ],
    "education": [
        {"field": "institution", "op": "SHA256"},
        {"field": "verified", "op": "=", "value": "true"},
    ],
    "employment": [
        {"field": "company", "op": "SHA256"},
        {"field": "verified", "op": "=", "value": "true"},
    ],
    "social_media": [
        {"field": "platform", "op": "SHA256"},
        {"field": "verified", "op": "=", "value": "true"},
    ],
}

DEFAULT_CONDITIONS = [{"field": "verified", "op": "=", "value": "true"}]


def conditions_for(data_type: str) -> list[dict[str, str]]:
    """Attestation conditions enforced for a data type."""
    return ATTESTATION_CONDITIONS.get(data_type, DEFAULT_CONDITIONS)


class PrimusAttestationProvider(AttestationProvider):
    """
    Primus zkTLS provider.

    Unavailable until ``initialize()`` succeeds, which requires an app id
    and secret.
    """

    def __init__(
        self,
        app_id: str | None = None,
        app_secret: str | None = None,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize Primus provider.

        Args:
            app_id: Primus application id (default from settings)
            app_secret: Primus application secret (default from settings)
            base_url: API base URL (default from settings)
            transport: Optional httpx transport, for tests
        """
        self._app_id = app_id if app_id is not None else settings.attestation.app_id
        self._app_secret = (
            app_secret
            if app_secret is not None
            else settings.attestation.app_secret.get_secret_value()
        )
        self._base_url = base_url or settings.attestation.base_url
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._initialized = False

    @property
    def name(self) -> str:
        return "primus"

    async def initialize(self) -> bool:
        """Open the HTTP client and register the app with Primus."""
        if not self._app_id or not self._app_secret:
            logger.warning("primus_credentials_missing")
            self._initialized = False
            return False

        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=settings.attestation.timeout_seconds,
            transport=self._transport,
            headers={"X-App-Id": self._app_id},
        )

        try:
            body = await self._post(
                "/v1/init",
                {"appId": self._app_id, "appSecret": self._app_secret, "platform": "pc"},
            )
            self._initialized = bool(body.get("initialized", False))
        except (httpx.HTTPError, AttestationError) as e:
            logger.error("primus_initialization_failed", error=str(e))
            self._initialized = False

        logger.info("primus_initialized" if self._initialized else "primus_unavailable")
        return self._initialized

    async def shutdown(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        self._initialized = False
        logger.debug("primus_shutdown")

    def is_available(self) -> bool:
        return self._initialized and self._client is not None

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(settings.attestation.max_retries),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        reraise=True,
        before_sleep=lambda retry_state: logger.warning(
            "primus_retry",
            attempt=retry_state.attempt_number,
            wait=retry_state.next_action.sleep,  # type: ignore[union-attr]
        ),
    )
    async def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        if self._client is None:
            raise AttestationUnavailableError("Primus client is not initialized")
        response = await self._client.post(path, json=payload)
        if response.status_code >= 400:
            raise AttestationError(f"Primus API {path} returned {response.status_code}: {response.text}")
        return response.json()

    async def generate_attestation(
        self,
        data_type: str,
        user_address: str,
        user_data: dict[str, str] | None = None,
    ) -> Attestation:
        if not self.is_available():
            raise AttestationUnavailableError(
                "Primus zkTLS is not available. Configure PRIMUS_APP_ID and PRIMUS_APP_SECRET."
            )

        template_id = TEMPLATE_IDS.get(data_type)
        if template_id is None:
            raise AttestationError(
                f"Unsupported data type: {data_type}. Available types: {', '.join(TEMPLATE_IDS)}"
            )

        request = {
            "appId": self._app_id,
            "templateId": template_id,
            "userAddress": user_address,
            "attMode": {"algorithmType": "proxytls"},
            "attConditions": conditions_for(data_type),
        }
        if user_data:
            request["additionParams"] = json.dumps(user_data)

        logger.info("primus_attestation_started", data_type=data_type, template_id=template_id)

        try:
            signed = await self._post(
                "/v1/sign",
                {"request": json.dumps(request), "appSecret": self._app_secret},
            )
            body = await self._post("/v1/attestations", {"signedRequest": signed["signedRequest"]})
            attestation = Attestation.model_validate(body)
        except httpx.HTTPError as e:
            raise AttestationError(f"Primus request failed: {e}") from e
        except (KeyError, TypeError, ValueError) as e:
            raise AttestationError(f"Malformed Primus response: {e}") from e

        logger.info("primus_attestation_generated", data_type=data_type)
        return attestation

    async def verify_attestation(self, attestation: Attestation) -> bool:
        if not self.is_available():
            raise AttestationUnavailableError("Primus zkTLS is not available")

        try:
            body = await self._post(
                "/v1/attestations/verify",
                {"attestation": attestation.model_dump(by_alias=True)},
            )
        except (httpx.HTTPError, AttestationError, ValueError) as e:
            logger.error("primus_verification_failed", error=str(e))
            return False

        valid = isinstance(body, dict) and body.get("valid") is True
        if not valid:
            logger.warning("primus_signature_invalid")
        return valid
