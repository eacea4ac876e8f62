"""
Tests for X402HttpClient
"""

import base64
import logging
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from x402_sui.clients import X402Client, X402HttpClient
from x402_sui.encoding import decode_payment_payload, encode_payment_payload, encode_payment_required
from x402_sui.exceptions import (
    InvalidPaymentRequiredError,
    NoPaymentRequirementsError,
    PaymentAmountExceededError,
    SettlementError,
)
from x402_sui.types import PaymentPayload, PaymentResponse

URL = "http://testserver/weather"


@pytest.fixture
def payload(sui_requirements):
    return PaymentPayload(
        scheme="exact",
        network=sui_requirements.network,
        transaction=base64.b64encode(b"tx").decode(),
        signature=base64.b64encode(b"sig").decode(),
        amount=sui_requirements.max_amount_required,
        payTo=sui_requirements.pay_to,
        asset=sui_requirements.asset,
    )


@pytest.fixture
def mechanism(payload):
    mechanism = MagicMock()
    mechanism.scheme.return_value = "exact"
    mechanism.get_signer.return_value = None
    mechanism.create_payment_payload = AsyncMock(return_value=payload)
    return mechanism


@pytest.fixture
def x402_client(mechanism):
    return X402Client().register("sui-*", mechanism)


def _server(sui_requirements, paid_response=None, challenge=None):
    """Mock resource server: 402 without X-PAYMENT, ``paid_response`` with it"""
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if "x-payment" not in request.headers:
            body = challenge
            if body is None:
                body = encode_payment_required([sui_requirements], "X-PAYMENT header is required")
            return httpx.Response(402, json=body)
        return paid_response or httpx.Response(200, json={"weather": "sunny"})

    return httpx.MockTransport(handler), seen


@pytest.mark.anyio
async def test_non_402_is_returned_untouched(x402_client, mechanism):
    transport = httpx.MockTransport(lambda request: httpx.Response(200, text="free"))
    async with httpx.AsyncClient(transport=transport) as http:
        response = await X402HttpClient(http, x402_client).get(URL)

    assert response.text == "free"
    mechanism.create_payment_payload.assert_not_awaited()


@pytest.mark.anyio
async def test_pays_and_retries_once(x402_client, sui_requirements, payload, mechanism):
    transport, seen = _server(sui_requirements)
    async with httpx.AsyncClient(transport=transport) as http:
        response = await X402HttpClient(http, x402_client).get(URL, headers={"Accept": "json"})

    assert response.status_code == 200
    assert len(seen) == 2
    retry = seen[1]
    assert retry.headers["accept"] == "json"
    assert decode_payment_payload(retry.headers["x-payment"], PaymentPayload) == payload
    mechanism.create_payment_payload.assert_awaited_once_with(sui_requirements, URL, None)


@pytest.mark.anyio
async def test_retry_response_returned_even_if_rejected(x402_client, sui_requirements):
    rejected = httpx.Response(402, json={"x402Version": 1, "error": "Payment verification failed"})
    transport, seen = _server(sui_requirements, paid_response=rejected)
    async with httpx.AsyncClient(transport=transport) as http:
        response = await X402HttpClient(http, x402_client).post(URL, json={"q": 1})

    assert response.status_code == 402
    assert len(seen) == 2


@pytest.mark.anyio
async def test_over_budget_aborts_before_building_payment(x402_client, sui_requirements, mechanism):
    transport, seen = _server(sui_requirements)
    async with httpx.AsyncClient(transport=transport) as http:
        client = X402HttpClient(http, x402_client, max_value=100)
        with pytest.raises(PaymentAmountExceededError) as exc_info:
            await client.get(URL)

    assert exc_info.value.amount == 1_000_000_000
    assert exc_info.value.max_value == 100
    assert len(seen) == 1
    mechanism.create_payment_payload.assert_not_awaited()


@pytest.mark.anyio
async def test_within_budget_pays(x402_client, sui_requirements):
    transport, _ = _server(sui_requirements)
    async with httpx.AsyncClient(transport=transport) as http:
        client = X402HttpClient(http, x402_client, max_value=1_000_000_000)
        response = await client.get(URL)
    assert response.status_code == 200


@pytest.mark.anyio
async def test_empty_accepts(x402_client, sui_requirements):
    transport, _ = _server(sui_requirements, challenge={"x402Version": 1, "accepts": []})
    async with httpx.AsyncClient(transport=transport) as http:
        with pytest.raises(NoPaymentRequirementsError):
            await X402HttpClient(http, x402_client).get(URL)


@pytest.mark.anyio
async def test_unparseable_challenge(x402_client, sui_requirements):
    transport, _ = _server(sui_requirements, challenge=["not", "a", "challenge"])
    async with httpx.AsyncClient(transport=transport) as http:
        with pytest.raises(InvalidPaymentRequiredError):
            await X402HttpClient(http, x402_client).get(URL)


@pytest.mark.anyio
async def test_fractional_amount_in_challenge(x402_client, sui_requirements, mechanism):
    option = sui_requirements.model_dump(by_alias=True)
    option["maxAmountRequired"] = "1.5"
    transport, seen = _server(sui_requirements, challenge={"x402Version": 1, "accepts": [option]})

    async with httpx.AsyncClient(transport=transport) as http:
        with pytest.raises(InvalidPaymentRequiredError):
            await X402HttpClient(http, x402_client, max_value=10).get(URL)

    assert len(seen) == 1
    mechanism.create_payment_payload.assert_not_awaited()


@pytest.mark.anyio
async def test_unknown_scheme_in_challenge_is_skipped(x402_client, sui_requirements, mechanism):
    upto = sui_requirements.model_dump(by_alias=True)
    upto["scheme"] = "upto"
    exact = sui_requirements.model_dump(by_alias=True)
    transport, _ = _server(
        sui_requirements, challenge={"x402Version": 1, "accepts": [upto, exact]}
    )

    async with httpx.AsyncClient(transport=transport) as http:
        response = await X402HttpClient(http, x402_client).get(URL)

    assert response.status_code == 200
    mechanism.create_payment_payload.assert_awaited_once_with(sui_requirements, URL, None)


@pytest.mark.anyio
async def test_challenge_header_is_ignored(x402_client, sui_requirements):
    def handler(request):
        challenge = encode_payment_payload(
            {"x402Version": 1, "accepts": [sui_requirements.model_dump(by_alias=True)]}
        )
        return httpx.Response(402, headers={"x-payment-required": challenge}, text="")

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
        with pytest.raises(InvalidPaymentRequiredError):
            await X402HttpClient(http, x402_client).get(URL)


@pytest.mark.anyio
async def test_custom_selector(x402_client, sui_requirements, mechanism):
    cheap = sui_requirements.model_copy(update={"max_amount_required": "5"})
    challenge = encode_payment_required([sui_requirements, cheap], "X-PAYMENT header is required")
    transport, _ = _server(sui_requirements, challenge=challenge)

    async with httpx.AsyncClient(transport=transport) as http:
        client = X402HttpClient(http, x402_client, max_value=10, selector=lambda opts: opts[1])
        await client.get(URL)

    mechanism.create_payment_payload.assert_awaited_once_with(cheap, URL, None)


@pytest.mark.anyio
async def test_bad_receipt_header_is_logged_not_raised(x402_client, sui_requirements, caplog):
    paid = httpx.Response(200, headers={"X-PAYMENT-RESPONSE": "%%%"}, json={})
    transport, _ = _server(sui_requirements, paid_response=paid)

    async with httpx.AsyncClient(transport=transport) as http:
        with caplog.at_level(logging.WARNING):
            response = await X402HttpClient(http, x402_client).get(URL)

    assert response.status_code == 200
    assert "X-PAYMENT-RESPONSE" in caplog.text


class TestWaitForReceipt:
    RECEIPT = PaymentResponse(transactionDigest="D1GEST", amount="1", timestamp=1)

    def _paid(self):
        request = httpx.Request("GET", URL + "?city=paris")
        return httpx.Response(200, headers={"X-PAYMENT-DIGEST": "D1GEST"}, request=request)

    @pytest.mark.anyio
    async def test_polls_until_settled(self, x402_client):
        polls = []

        def handler(request):
            polls.append(str(request.url))
            if len(polls) < 2:
                return httpx.Response(404, json={"status": "pending"})
            return httpx.Response(
                200,
                headers={"X-PAYMENT-RESPONSE": encode_payment_payload(self.RECEIPT)},
                json={},
            )

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            receipt = await X402HttpClient(http, x402_client).wait_for_receipt(
                self._paid(), interval=0
            )

        assert receipt == self.RECEIPT
        assert polls[0] == "http://testserver/x402/receipts/D1GEST"

    @pytest.mark.anyio
    async def test_failed_settlement(self, x402_client):
        transport = httpx.MockTransport(
            lambda request: httpx.Response(409, json={"status": "failed", "error": "boom"})
        )
        async with httpx.AsyncClient(transport=transport) as http:
            with pytest.raises(SettlementError, match="boom"):
                await X402HttpClient(http, x402_client).wait_for_receipt(self._paid(), interval=0)

    @pytest.mark.anyio
    async def test_times_out(self, x402_client):
        transport = httpx.MockTransport(
            lambda request: httpx.Response(404, json={"status": "pending"})
        )
        async with httpx.AsyncClient(transport=transport) as http:
            client = X402HttpClient(http, x402_client)
            assert await client.wait_for_receipt(self._paid(), timeout=0, interval=0) is None

    @pytest.mark.anyio
    async def test_no_digest_header(self, x402_client):
        async with httpx.AsyncClient() as http:
            response = httpx.Response(200, request=httpx.Request("GET", URL))
            assert await X402HttpClient(http, x402_client).wait_for_receipt(response) is None
