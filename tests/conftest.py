"""
Pytest configuration and fixtures
"""

import pytest
from fake_sui import RPC_URL, FakeSuiNode

from x402_sui.types import SUI_COIN_TYPE, PaymentRequirements

PAYER_PRIVATE_KEY = "0x" + "4f" * 32
PAY_TO = "0x" + "ab" * 32


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def payer_private_key():
    """Deterministic Ed25519 key for the paying client"""
    return PAYER_PRIVATE_KEY


@pytest.fixture
def pay_to():
    return PAY_TO


@pytest.fixture
def fake_node():
    """Fullnode stand-in with no balances"""
    return FakeSuiNode()


@pytest.fixture
def payer_signer(payer_private_key, fake_node):
    from x402_sui.signers.client import SuiClientSigner

    return SuiClientSigner(
        payer_private_key,
        network="sui-localnet",
        rpc_url=RPC_URL,
        transport=fake_node.transport(),
    )


@pytest.fixture
def funded_payer(payer_signer, fake_node):
    """Payer holding 5 SUI"""
    fake_node.fund(payer_signer.get_address(), 5_000_000_000)
    return payer_signer


@pytest.fixture
def sui_requirements(pay_to):
    return PaymentRequirements(
        scheme="exact",
        network="sui-localnet",
        maxAmountRequired="1000000000",
        resource="http://testserver/weather",
        description="Weather report",
        mimeType="",
        payTo=pay_to,
        maxTimeoutSeconds=60,
        asset=SUI_COIN_TYPE,
    )
