"""
FacilitatorClient - talks to a remote facilitator's HTTP surface
"""

import logging
from typing import Any

import httpx

from x402_sui.config import NetworkConfig
from x402_sui.encoding import to_json_dict
from x402_sui.exceptions import SettlementError
from x402_sui.types import (
    FacilitatorConfig,
    PaymentPayload,
    PaymentRequirements,
    PaymentResponse,
    SupportedResponse,
    VerifyResponse,
)

logger = logging.getLogger(__name__)


class FacilitatorClient:
    """
    Resource-server side of the facilitator protocol.

    ``verify`` fails closed: an unreachable facilitator, a timeout or an
    error status all read as an invalid payment. ``settle`` raises instead,
    since its caller only logs and records the outcome.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = NetworkConfig.DEFAULT_TIMEOUT,
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Args:
            base_url: Facilitator root URL, e.g. http://localhost:3002
            timeout: Per-request timeout in seconds
            headers: Sent with every request (Authorization and the like)
            transport: httpx transport override, mostly for tests
        """
        self.base_url = base_url.rstrip("/")
        self._client_options: dict[str, Any] = {
            "base_url": self.base_url,
            "timeout": timeout,
            "headers": dict(headers or {}),
            "transport": transport,
        }
        self._http: httpx.AsyncClient | None = None

    @classmethod
    def from_config(
        cls,
        config: FacilitatorConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "FacilitatorClient":
        return cls(config.url, timeout=config.timeout, transport=transport)

    def _client(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(**self._client_options)
        return self._http

    async def close(self) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def health(self) -> dict[str, Any]:
        response = await self._client().get("/health")
        response.raise_for_status()
        return response.json()

    async def supported(self) -> SupportedResponse:
        response = await self._client().get("/supported")
        response.raise_for_status()
        return SupportedResponse.model_validate(response.json())

    async def verify(
        self,
        payload: PaymentPayload,
        requirements: PaymentRequirements,
    ) -> VerifyResponse:
        """POST /verify; never raises on transport or HTTP errors"""
        body = {
            "paymentPayload": to_json_dict(payload),
            "paymentRequirement": to_json_dict(requirements),
        }
        try:
            response = await self._client().post("/verify", json=body)
        except httpx.HTTPError as e:
            logger.error(f"Facilitator at {self.base_url} unreachable during verify: {e!r}")
            return VerifyResponse(isValid=False, invalidReason="facilitator_unreachable")

        if response.is_success:
            return VerifyResponse(isValid=True)

        reason = _failure_reason(response)
        logger.error(f"Facilitator rejected payment ({response.status_code}): {reason}")
        return VerifyResponse(isValid=False, invalidReason=reason)

    async def settle(self, payload: PaymentPayload) -> PaymentResponse:
        """
        POST /settle and return the ledger receipt.

        Raises:
            SettlementError: Facilitator answered with an error status
            httpx.HTTPError: Facilitator unreachable or timed out
        """
        response = await self._client().post(
            "/settle", json={"paymentPayload": to_json_dict(payload)}
        )
        if not response.is_success:
            raise SettlementError(f"Settlement failed: {_failure_reason(response)}")
        return PaymentResponse.model_validate(response.json())


def _failure_reason(response: httpx.Response) -> str:
    """Most specific explanation in an error body: ``reason``, then ``error``"""
    fallback = f"HTTP {response.status_code}"
    try:
        body = response.json()
    except ValueError:
        return response.text or fallback
    if not isinstance(body, dict):
        return fallback
    return str(body.get("reason") or body.get("error") or fallback)
