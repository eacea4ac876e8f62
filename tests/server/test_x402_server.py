"""
Tests for X402Server requirement building and ReceiptStore
"""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from x402_sui.exceptions import DuplicateSettlementError, SettlementError
from x402_sui.facilitator import FacilitatorClient, X402Facilitator
from x402_sui.server import ReceiptStore, X402Server
from x402_sui.types import (
    SUI_COIN_TYPE,
    FacilitatorConfig,
    PaymentResponse,
    PaywallConfig,
    RouteConfig,
    SuiConfig,
    TokenConfig,
    VerifyResponse,
    X402Config,
)

ROUTES = {
    "/weather": RouteConfig(price="1000000000", description="Weather report"),
    "/premium": RouteConfig(price="5", methods=["get", "post"]),
}


@pytest.fixture
def local_server(pay_to):
    return X402Server(pay_to=pay_to, routes=ROUTES, local_facilitator=MagicMock(spec=X402Facilitator))


class TestRouteMatching:
    def test_exact_path_and_method(self, local_server):
        assert local_server.match_route("/weather", "GET") is ROUTES["/weather"]
        assert local_server.match_route("/weather", "POST") is None
        assert local_server.match_route("/weather/", "GET") is None
        assert local_server.match_route("/premium", "post") is ROUTES["/premium"]
        assert local_server.match_route("/free", "GET") is None


class TestBuildPaymentRequirements:
    def test_local_requirement(self, local_server, pay_to):
        req = local_server.build_payment_requirements(
            ROUTES["/weather"], "http://testserver/weather?city=paris", "get"
        )

        assert req.scheme == "exact"
        assert req.network == "sui-localnet"
        assert req.max_amount_required == "1000000000"
        assert req.resource == "http://testserver/weather?city=paris"
        assert req.description == "Weather report"
        assert req.mime_type == ""
        assert req.pay_to == pay_to
        assert req.max_timeout_seconds == 60
        assert req.asset == SUI_COIN_TYPE
        assert req.output_schema.input.type == "http"
        assert req.output_schema.input.method == "GET"
        assert req.output_schema.input.discoverable is True
        assert req.extra is None

    def test_facilitator_marks_fee_payer(self, pay_to):
        server = X402Server(
            pay_to=pay_to, routes=ROUTES, facilitator=FacilitatorConfig(url="http://f.test")
        )
        req = server.build_payment_requirements(ROUTES["/weather"], "http://t/weather", "GET")
        assert req.extra.fee_payer == "facilitator"
        assert server.uses_facilitator

    def test_token_and_network_from_config(self, pay_to):
        config = X402Config(
            suiConfig=SuiConfig(network="sui-testnet"),
            tokenConfig=TokenConfig(coinType="0xc0ffee::usdc::USDC", decimals=6, name="USDC"),
        )
        server = X402Server(
            pay_to=pay_to,
            routes=ROUTES,
            x402_config=config,
            local_facilitator=MagicMock(spec=X402Facilitator),
        )
        req = server.build_payment_requirements(ROUTES["/premium"], "http://t/premium", "POST")
        assert (req.network, req.asset, req.max_amount_required) == (
            "sui-testnet",
            "0xc0ffee::usdc::USDC",
            "5",
        )

    def test_paywall_description_is_fallback(self, pay_to):
        server = X402Server(
            pay_to=pay_to,
            routes=ROUTES,
            paywall=PaywallConfig(description="Pay to read"),
            local_facilitator=MagicMock(spec=X402Facilitator),
        )
        premium = server.build_payment_requirements(ROUTES["/premium"], "http://t/premium", "GET")
        weather = server.build_payment_requirements(ROUTES["/weather"], "http://t/weather", "GET")
        assert premium.description == "Pay to read"
        assert weather.description == "Weather report"

    def test_default_local_facilitator_serves_configured_network(self, pay_to):
        server = X402Server(pay_to=pay_to, routes=ROUTES)
        assert not server.uses_facilitator
        assert [k.network for k in server._local_facilitator.supported().kinds] == ["sui-localnet"]


class TestVerifyAndSettle:
    @pytest.mark.anyio
    async def test_verify_exception_is_a_failure(self, pay_to, sui_requirements):
        local = MagicMock(spec=X402Facilitator)
        local.verify = AsyncMock(side_effect=RuntimeError("node down"))
        server = X402Server(pay_to=pay_to, routes=ROUTES, local_facilitator=local)

        result = await server.verify_payment(MagicMock(), sui_requirements)
        assert result == VerifyResponse(isValid=False, invalidReason="verification_error")

    @pytest.mark.anyio
    async def test_remote_verification(self, pay_to, sui_requirements):
        client = MagicMock(spec=FacilitatorClient)
        client.verify = AsyncMock(return_value=VerifyResponse(isValid=True))
        server = X402Server(pay_to=pay_to, routes=ROUTES, facilitator_client=client)

        payload = MagicMock()
        assert (await server.verify_payment(payload, sui_requirements)).is_valid
        client.verify.assert_awaited_once_with(payload, sui_requirements)

    @pytest.mark.anyio
    async def test_settle_and_record_success(self, pay_to):
        receipt = PaymentResponse(transactionDigest="D", amount="5", timestamp=1)
        local = MagicMock(spec=X402Facilitator)
        local.settle = AsyncMock(return_value=receipt)
        server = X402Server(pay_to=pay_to, routes=ROUTES, local_facilitator=local)

        await server.settle_and_record(MagicMock(), "D")

        record = server.receipts.get("D")
        assert record.status == "settled"
        assert record.receipt == receipt

    @pytest.mark.anyio
    async def test_settle_and_record_failure_is_not_raised(self, pay_to):
        client = MagicMock(spec=FacilitatorClient)
        client.settle = AsyncMock(side_effect=httpx.ConnectError("refused"))
        server = X402Server(pay_to=pay_to, routes=ROUTES, facilitator_client=client)

        await server.settle_and_record(MagicMock(), "D")

        record = server.receipts.get("D")
        assert record.status == "failed"
        assert "refused" in record.error

    @pytest.mark.anyio
    @pytest.mark.parametrize(
        "error",
        [
            DuplicateSettlementError("D"),
            SettlementError("Settlement failed: Transaction D has already been submitted"),
        ],
    )
    async def test_replayed_settlement_keeps_settled_receipt(self, pay_to, error):
        receipt = PaymentResponse(transactionDigest="D", amount="5", timestamp=1)
        local = MagicMock(spec=X402Facilitator)
        local.settle = AsyncMock(side_effect=[receipt, error])
        server = X402Server(pay_to=pay_to, routes=ROUTES, local_facilitator=local)

        await server.settle_and_record(MagicMock(), "D")
        await server.settle_and_record(MagicMock(), "D")

        record = server.receipts.get("D")
        assert record.status == "settled"
        assert record.receipt == receipt

    @pytest.mark.anyio
    async def test_settle_payment_propagates(self, pay_to):
        local = MagicMock(spec=X402Facilitator)
        local.settle = AsyncMock(side_effect=SettlementError("Transaction failed: x"))
        server = X402Server(pay_to=pay_to, routes=ROUTES, local_facilitator=local)

        with pytest.raises(SettlementError):
            await server.settle_payment(MagicMock())


class TestReceiptStore:
    def test_lifecycle(self):
        store = ReceiptStore()
        assert store.get("D") is None

        store.mark_pending("D")
        assert store.get("D").status == "pending"

        receipt = PaymentResponse(transactionDigest="D", amount="1", timestamp=1)
        store.mark_settled("D", receipt)
        assert store.get("D").receipt == receipt

    def test_bounded(self):
        store = ReceiptStore(max_entries=2)
        for digest in ("a", "b", "c"):
            store.mark_pending(digest)
        assert len(store) == 2
        assert store.get("a") is None

    def test_claim_once(self):
        store = ReceiptStore()
        assert store.claim("D")
        assert not store.claim("D")
        assert store.get("D").status == "pending"

    def test_release_only_drops_pending(self):
        store = ReceiptStore()
        store.claim("D")
        store.release("D")
        assert store.get("D") is None
        assert store.claim("D")

        store.mark_settled("D", PaymentResponse(transactionDigest="D", amount="1", timestamp=1))
        store.release("D")
        assert store.get("D").status == "settled"
        assert not store.claim("D")
