"""
x402_sui - HTTP 402 Payment Protocol SDK for Sui

Supports Client, Server, and Facilitator functionality for paying and
charging for HTTP resources with Sui transfers.
"""

__version__ = "0.1.0"

from x402_sui.exceptions import (
    ConfigurationError,
    DuplicateSettlementError,
    InsufficientBalanceError,
    InvalidPaymentRequiredError,
    InvalidPrivateKeyError,
    LedgerError,
    LedgerRpcError,
    NoPaymentRequirementsError,
    PaymentAmountExceededError,
    SettlementError,
    SignatureCreationError,
    SignatureError,
    UnsupportedNetworkError,
    ValidationError,
    X402Error,
)
from x402_sui.types import (
    DEFAULT_TOKEN,
    FacilitatorConfig,
    PaymentPayload,
    PaymentRequired,
    PaymentRequirements,
    PaymentResponse,
    PaywallConfig,
    RouteConfig,
    RoutesConfig,
    SuiConfig,
    TokenConfig,
    VerifyResponse,
    X402Config,
)

__all__ = [
    "__version__",
    # Types
    "DEFAULT_TOKEN",
    "FacilitatorConfig",
    "PaymentPayload",
    "PaymentRequired",
    "PaymentRequirements",
    "PaymentResponse",
    "PaywallConfig",
    "RouteConfig",
    "RoutesConfig",
    "SuiConfig",
    "TokenConfig",
    "VerifyResponse",
    "X402Config",
    # Exceptions
    "X402Error",
    "ConfigurationError",
    "UnsupportedNetworkError",
    "ValidationError",
    "InvalidPaymentRequiredError",
    "NoPaymentRequirementsError",
    "PaymentAmountExceededError",
    "SignatureError",
    "InvalidPrivateKeyError",
    "SignatureCreationError",
    "InsufficientBalanceError",
    "SettlementError",
    "DuplicateSettlementError",
    "LedgerError",
    "LedgerRpcError",
]
