"""
Type definitions for x402 protocol
"""

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator

X402_VERSION = 1

SCHEME_EXACT = "exact"

SuiNetwork = Literal["sui-localnet", "sui-devnet", "sui-testnet", "sui-mainnet"]

SUI_COIN_TYPE = "0x2::sui::SUI"

# Sentinel for extra.feePayer when a facilitator sponsors verification/settlement
FEE_PAYER_FACILITATOR = "facilitator"


class TokenConfig(BaseModel):
    """Asset accepted by a resource server"""

    coin_type: str = Field(alias="coinType")
    decimals: int
    name: str
    symbol: Optional[str] = None

    class Config:
        populate_by_name = True
        frozen = True


DEFAULT_TOKEN = TokenConfig(coinType=SUI_COIN_TYPE, decimals=9, name="SUI", symbol="SUI")


class SuiConfig(BaseModel):
    """Ledger connection settings"""

    network: SuiNetwork = "sui-localnet"
    rpc_url: Optional[str] = Field(None, alias="rpcUrl")

    class Config:
        populate_by_name = True
        frozen = True


class X402Config(BaseModel):
    """Network and token configuration for a deployment"""

    sui_config: SuiConfig = Field(default_factory=SuiConfig, alias="suiConfig")
    token_config: TokenConfig = Field(DEFAULT_TOKEN, alias="tokenConfig")

    class Config:
        populate_by_name = True
        frozen = True


class RouteConfig(BaseModel):
    """Payment policy for a single protected path"""

    methods: list[str] = Field(default_factory=lambda: ["GET"])
    price: str
    description: Optional[str] = None

    class Config:
        frozen = True

    @field_validator("price")
    @classmethod
    def _price_is_base_units(cls, value: str) -> str:
        if not (value.isascii() and value.isdigit()):
            raise ValueError(f"price must be a decimal integer in base units, got {value!r}")
        return value

    @field_validator("methods")
    @classmethod
    def _upper_methods(cls, value: list[str]) -> list[str]:
        return [m.upper() for m in value]


RoutesConfig = dict[str, RouteConfig]


class FacilitatorConfig(BaseModel):
    """Remote facilitator location; absent means in-process verify/settle"""

    url: str
    timeout: float = 30.0

    class Config:
        frozen = True


class PaywallConfig(BaseModel):
    """Presentation hints for the 402 challenge"""

    title: Optional[str] = None
    description: Optional[str] = None
    logo_url: Optional[str] = Field(None, alias="logoUrl")
    theme: Optional[dict[str, str]] = None

    class Config:
        populate_by_name = True
        frozen = True


class InputSchema(BaseModel):
    """How a client reaches the resource"""

    type: str
    method: str
    discoverable: Optional[bool] = None

    class Config:
        frozen = True


class OutputSchema(BaseModel):
    """Structured input-discovery metadata"""

    input: Optional[InputSchema] = None

    class Config:
        frozen = True


class PaymentRequirementsExtra(BaseModel):
    """Extra information in payment requirements"""

    fee_payer: Optional[str] = Field(None, alias="feePayer")

    class Config:
        populate_by_name = True
        frozen = True
        extra = "allow"


class PaymentRequirements(BaseModel):
    """Payment requirements from server"""

    scheme: str = SCHEME_EXACT
    network: str
    max_amount_required: str = Field(alias="maxAmountRequired")
    resource: str
    description: Optional[str] = None
    mime_type: Optional[str] = Field(None, alias="mimeType")
    pay_to: str = Field(alias="payTo")
    max_timeout_seconds: int = Field(alias="maxTimeoutSeconds")
    asset: str
    output_schema: Optional[OutputSchema] = Field(None, alias="outputSchema")
    extra: Optional[PaymentRequirementsExtra] = None

    class Config:
        populate_by_name = True
        frozen = True

    @field_validator("max_amount_required")
    @classmethod
    def _amount_is_base_units(cls, value: str) -> str:
        if not (value.isascii() and value.isdigit()):
            raise ValueError(f"maxAmountRequired must be a decimal integer, got {value!r}")
        return value


class PaymentRequired(BaseModel):
    """Payment required response (402)"""

    x402_version: int = Field(X402_VERSION, alias="x402Version")
    error: Optional[str] = None
    accepts: Optional[list[PaymentRequirements]] = None

    class Config:
        populate_by_name = True


class PaymentPayload(BaseModel):
    """Payment payload sent by client"""

    scheme: str
    network: str
    transaction: str
    signature: str
    amount: str
    pay_to: str = Field(alias="payTo")
    asset: str

    class Config:
        populate_by_name = True
        frozen = True


class PaymentResponse(BaseModel):
    """Settlement receipt"""

    transaction_digest: str = Field(alias="transactionDigest")
    amount: str
    timestamp: int
    effects: Optional[dict[str, Any]] = None

    class Config:
        populate_by_name = True
        frozen = True


class VerifyResponse(BaseModel):
    """Verification result; the reason is for server logs only"""

    is_valid: bool = Field(alias="isValid")
    invalid_reason: Optional[str] = Field(None, alias="invalidReason")

    class Config:
        populate_by_name = True


class SupportedKind(BaseModel):
    """Supported payment kind"""

    x402_version: int = Field(alias="x402Version")
    scheme: str
    network: str

    class Config:
        populate_by_name = True


class SupportedResponse(BaseModel):
    """Supported response from facilitator"""

    kinds: list[SupportedKind]
