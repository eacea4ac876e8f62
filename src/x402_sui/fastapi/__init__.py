"""
FastAPI integration for x402
"""

from x402_sui.fastapi.middleware import (
    PAYMENT_DIGEST_HEADER,
    PAYMENT_HEADER,
    PAYMENT_RESPONSE_HEADER,
    RECEIPTS_PATH,
    X402Middleware,
)

__all__ = [
    "PAYMENT_DIGEST_HEADER",
    "PAYMENT_HEADER",
    "PAYMENT_RESPONSE_HEADER",
    "RECEIPTS_PATH",
    "X402Middleware",
]
