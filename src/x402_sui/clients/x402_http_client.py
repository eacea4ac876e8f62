"""
X402HttpClient - HTTP client adapter with automatic 402 payment handling
"""

import asyncio
import logging
from typing import Any

import httpx

from x402_sui.clients.x402_client import PaymentRequirementsSelector, X402Client
from x402_sui.encoding import decode_payment_payload, decode_payment_required, encode_payment_payload
from x402_sui.exceptions import (
    InvalidPaymentRequiredError,
    NoPaymentRequirementsError,
    PaymentAmountExceededError,
    SettlementError,
)
from x402_sui.mechanisms.client import ExactSuiClientMechanism
from x402_sui.signers.client.base import ClientSigner
from x402_sui.types import PaymentPayload, PaymentResponse

logger = logging.getLogger(__name__)


PAYMENT_HEADER = "X-PAYMENT"
PAYMENT_RESPONSE_HEADER = "X-PAYMENT-RESPONSE"
PAYMENT_DIGEST_HEADER = "X-PAYMENT-DIGEST"
RECEIPTS_PATH = "/x402/receipts"


class X402HttpClient:
    """
    HTTP client adapter with automatic 402 payment handling.

    Wraps httpx.AsyncClient to automatically handle 402 Payment Required
    responses: the challenge is read from the JSON body, one option is
    chosen, paid for, and the request is retried once with ``X-PAYMENT``.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        x402_client: X402Client,
        max_value: int | None = None,
        selector: PaymentRequirementsSelector | None = None,
    ) -> None:
        """
        Initialize HTTP client adapter.

        Args:
            http_client: httpx.AsyncClient instance
            x402_client: X402Client instance
            max_value: Largest amount, in base units, the client agrees to pay
            selector: Custom payment requirements selector (optional)
        """
        self._http_client = http_client
        self._x402_client = x402_client
        self._max_value = max_value
        self._selector = selector

    @property
    def http_client(self) -> httpx.AsyncClient:
        return self._http_client

    async def request_with_payment(
        self,
        method: str,
        url: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """
        Make HTTP request with automatic 402 payment handling.

        Returns:
            httpx.Response of the original request, or of the paid retry

        Raises:
            InvalidPaymentRequiredError: 402 body is not a payment challenge
            NoPaymentRequirementsError: Challenge offered nothing to pay
            PaymentAmountExceededError: Chosen option costs more than ``max_value``

        Flow:
            1. Send original request
            2. If 402, parse the challenge from the body
            3. Choose an option and check it against max_value
            4. Create payment payload
            5. Retry once with X-PAYMENT header
        """
        logger.info(f"Making {method} request to {url}")
        response = await self._http_client.request(method, url, **kwargs)
        logger.info(f"Received response: status={response.status_code}")

        if response.status_code != 402:
            return response

        logger.info("Received 402 Payment Required, processing payment...")
        accepts = self._parse_payment_required(response)
        if not accepts:
            raise NoPaymentRequirementsError("No payment requirements in 402 response")

        logger.info(f"Parsed payment challenge with {len(accepts)} payment options")
        requirements = await self._x402_client.choose(accepts, self._selector)

        amount = int(requirements.max_amount_required)
        if self._max_value is not None and amount > self._max_value:
            raise PaymentAmountExceededError(amount, self._max_value)

        payment_payload = await self._x402_client.create_payment_payload(
            requirements, str(response.request.url)
        )
        logger.info("Payment payload created, retrying request with payment")

        paid = await self._retry_with_payment(method, url, payment_payload, kwargs)
        receipt = self.get_payment_response(paid)
        if receipt is not None:
            logger.info(f"Payment settled: {receipt.transaction_digest}")
        return paid

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        """GET request with payment handling"""
        return await self.request_with_payment("GET", url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> httpx.Response:
        """POST request with payment handling"""
        return await self.request_with_payment("POST", url, **kwargs)

    async def put(self, url: str, **kwargs: Any) -> httpx.Response:
        """PUT request with payment handling"""
        return await self.request_with_payment("PUT", url, **kwargs)

    async def delete(self, url: str, **kwargs: Any) -> httpx.Response:
        """DELETE request with payment handling"""
        return await self.request_with_payment("DELETE", url, **kwargs)

    def get_payment_response(self, response: httpx.Response) -> PaymentResponse | None:
        """Decode the X-PAYMENT-RESPONSE receipt header, if present and valid"""
        header_value = response.headers.get(PAYMENT_RESPONSE_HEADER)
        if not header_value:
            return None
        try:
            return decode_payment_payload(header_value, PaymentResponse)
        except ValueError as e:
            logger.warning(f"Failed to decode {PAYMENT_RESPONSE_HEADER} header: {e}")
            return None

    async def wait_for_receipt(
        self,
        response: httpx.Response,
        timeout: float = 30.0,
        interval: float = 1.0,
    ) -> PaymentResponse | None:
        """
        Poll the server's receipt endpoint for a paid response.

        Args:
            response: Response of a paid request carrying X-PAYMENT-DIGEST
            timeout: Seconds to keep polling
            interval: Seconds between polls

        Returns:
            PaymentResponse once settled, None if the response carries no
            digest or the receipt did not appear in time

        Raises:
            SettlementError: The server reports that settlement failed
        """
        digest = response.headers.get(PAYMENT_DIGEST_HEADER)
        if not digest:
            return None

        receipt_url = response.request.url.join(f"{RECEIPTS_PATH}/{digest}")
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while True:
            poll = await self._http_client.get(receipt_url)
            if poll.status_code == 200:
                return self.get_payment_response(poll) or PaymentResponse.model_validate(
                    poll.json()
                )
            if poll.status_code == 409:
                error = poll.json().get("error") or "unknown error"
                raise SettlementError(f"Settlement of {digest} failed: {error}")
            if loop.time() + interval >= deadline:
                logger.warning(f"Receipt for {digest} not available after {timeout}s")
                return None
            await asyncio.sleep(interval)

    def _parse_payment_required(self, response: httpx.Response) -> list:
        """Parse the acceptable requirements from a 402 response body"""
        try:
            return decode_payment_required(response.json())
        except ValueError as e:
            logger.error(f"Failed to parse payment challenge from body: {e}")
            raise InvalidPaymentRequiredError(f"Invalid 402 response: {e}") from e

    async def _retry_with_payment(
        self,
        method: str,
        url: str,
        payment_payload: PaymentPayload,
        kwargs: dict[str, Any],
    ) -> httpx.Response:
        """Retry request with payment payload"""
        encoded_payload = encode_payment_payload(payment_payload)

        headers = dict(kwargs.get("headers") or {})
        headers[PAYMENT_HEADER] = encoded_payload
        kwargs = {**kwargs, "headers": headers}

        response = await self._http_client.request(method, url, **kwargs)
        logger.info(f"Payment retry response: status={response.status_code}")

        if response.status_code >= 400:
            logger.error(f"Payment retry failed with body: {response.text[:500]}")

        return response


def wrap_httpx_with_payment(
    signer: ClientSigner,
    http_client: httpx.AsyncClient | None = None,
    max_value: int | None = None,
    rpc_url: str | None = None,
    selector: PaymentRequirementsSelector | None = None,
    network_pattern: str = "sui-*",
) -> X402HttpClient:
    """
    Build a paying HTTP client around an httpx client.

    Args:
        signer: Signer that pays for requests
        http_client: Client to wrap; a new one is created when None
        max_value: Largest amount, in base units, the client agrees to pay
        rpc_url: Fullnode URL for building transfers (network default when None)
        selector: Custom payment requirements selector
        network_pattern: Networks the signer pays on

    Returns:
        X402HttpClient
    """
    x402_client = X402Client().register(
        network_pattern, ExactSuiClientMechanism(signer, rpc_url=rpc_url)
    )
    return X402HttpClient(
        http_client or httpx.AsyncClient(),
        x402_client,
        max_value=max_value,
        selector=selector,
    )
