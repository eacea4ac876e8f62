"""
x402 Client SDK
"""

from x402_sui.clients.policies import SufficientBalancePolicy
from x402_sui.clients.token_selection import (
    AssetPreferenceStrategy,
    CheapestOptionStrategy,
    FirstOptionStrategy,
    TokenSelectionStrategy,
)
from x402_sui.clients.x402_client import (
    ClientMechanism,
    PaymentPolicy,
    PaymentRequirementsSelector,
    X402Client,
)
from x402_sui.clients.x402_http_client import X402HttpClient, wrap_httpx_with_payment

__all__ = [
    "AssetPreferenceStrategy",
    "CheapestOptionStrategy",
    "ClientMechanism",
    "FirstOptionStrategy",
    "PaymentPolicy",
    "PaymentRequirementsSelector",
    "SufficientBalancePolicy",
    "TokenSelectionStrategy",
    "X402Client",
    "X402HttpClient",
    "wrap_httpx_with_payment",
]
