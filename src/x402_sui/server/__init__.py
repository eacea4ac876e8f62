"""
Server-side payment coordination
"""

from x402_sui.server.receipt_store import ReceiptRecord, ReceiptStore
from x402_sui.server.x402_server import X402Server

__all__ = ["ReceiptRecord", "ReceiptStore", "X402Server"]
