"""
Tests for SettlementGuard and X402Facilitator
"""

import base64
from unittest.mock import AsyncMock, MagicMock

import pytest

from x402_sui.exceptions import DuplicateSettlementError, SettlementError, UnsupportedNetworkError
from x402_sui.facilitator import SettlementGuard, X402Facilitator
from x402_sui.types import PaymentPayload, PaymentResponse, VerifyResponse
from x402_sui.utils.transaction import transaction_digest


class TestSettlementGuard:
    def test_in_flight_digest_is_rejected(self):
        guard = SettlementGuard()
        guard.begin("d1")
        with pytest.raises(DuplicateSettlementError) as exc_info:
            guard.begin("d1")
        assert exc_info.value.digest == "d1"

    def test_completed_digest_is_rejected(self):
        guard = SettlementGuard()
        guard.begin("d1")
        guard.complete("d1")
        assert guard.is_settled("d1")
        with pytest.raises(DuplicateSettlementError):
            guard.begin("d1")

    def test_released_digest_can_retry(self):
        guard = SettlementGuard()
        guard.begin("d1")
        guard.release("d1")
        guard.begin("d1")

    def test_oldest_completed_evicted(self):
        guard = SettlementGuard(max_completed=2)
        for digest in ("a", "b", "c"):
            guard.begin(digest)
            guard.complete(digest)
        assert not guard.is_settled("a")
        assert guard.is_settled("b") and guard.is_settled("c")


@pytest.fixture
def payload(sui_requirements):
    return PaymentPayload(
        scheme="exact",
        network="sui-localnet",
        transaction=base64.b64encode(b"tx-1").decode(),
        signature="c2ln",
        amount="1000000000",
        payTo=sui_requirements.pay_to,
        asset=sui_requirements.asset,
    )


@pytest.fixture
def mechanism():
    mechanism = MagicMock()
    mechanism.scheme.return_value = "exact"
    mechanism.verify = AsyncMock(return_value=VerifyResponse(isValid=True))
    mechanism.settle = AsyncMock(
        return_value=PaymentResponse(transactionDigest="d", amount="1000000000", timestamp=1)
    )
    return mechanism


class TestX402Facilitator:
    def test_register_rejects_unknown_network(self, mechanism):
        with pytest.raises(UnsupportedNetworkError):
            X402Facilitator().register(["eip155:1"], mechanism)

    def test_supported_lists_registered_kinds(self, mechanism):
        facilitator = X402Facilitator().register(["sui-localnet", "sui-testnet"], mechanism)
        kinds = facilitator.supported().kinds
        assert {(k.network, k.scheme, k.x402_version) for k in kinds} == {
            ("sui-localnet", "exact", 1),
            ("sui-testnet", "exact", 1),
        }

    @pytest.mark.anyio
    async def test_verify_unsupported_network(self, mechanism, payload, sui_requirements):
        facilitator = X402Facilitator().register(["sui-testnet"], mechanism)
        result = await facilitator.verify(payload, sui_requirements)
        assert not result.is_valid
        mechanism.verify.assert_not_awaited()

    @pytest.mark.anyio
    async def test_verify_delegates(self, mechanism, payload, sui_requirements):
        facilitator = X402Facilitator().register(["sui-localnet"], mechanism)
        assert (await facilitator.verify(payload, sui_requirements)).is_valid
        mechanism.verify.assert_awaited_once_with(payload, sui_requirements)

    @pytest.mark.anyio
    async def test_settle_once_per_transaction(self, mechanism, payload):
        guard = SettlementGuard()
        facilitator = X402Facilitator(guard).register(["sui-localnet"], mechanism)

        await facilitator.settle(payload)
        with pytest.raises(DuplicateSettlementError):
            await facilitator.settle(payload)

        assert mechanism.settle.await_count == 1
        assert guard.is_settled(transaction_digest(b"tx-1"))

    @pytest.mark.anyio
    async def test_failed_settlement_can_be_retried(self, mechanism, payload):
        mechanism.settle.side_effect = [SettlementError("Transaction failed: boom"), mechanism.settle.return_value]
        facilitator = X402Facilitator().register(["sui-localnet"], mechanism)

        with pytest.raises(SettlementError):
            await facilitator.settle(payload)
        assert (await facilitator.settle(payload)).transaction_digest == "d"

    @pytest.mark.anyio
    async def test_settle_without_mechanism(self, payload):
        with pytest.raises(SettlementError):
            await X402Facilitator().settle(payload)
