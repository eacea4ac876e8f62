"""
X402 Utility Functions
"""

from x402_sui.utils.sui_client import SuiClient, create_sui_client
from x402_sui.utils.transaction import (
    balance_change_for,
    execution_status,
    intent_message_digest,
    normalize_address,
    normalize_coin_type,
    transaction_digest,
)

__all__ = [
    "SuiClient",
    "create_sui_client",
    "balance_change_for",
    "execution_status",
    "intent_message_digest",
    "normalize_address",
    "normalize_coin_type",
    "transaction_digest",
]
