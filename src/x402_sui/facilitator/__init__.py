"""
Facilitator client, core processor and HTTP service
"""

from x402_sui.facilitator.app import create_facilitator_app
from x402_sui.facilitator.facilitator_client import FacilitatorClient
from x402_sui.facilitator.settlement_guard import SettlementGuard
from x402_sui.facilitator.x402_facilitator import FacilitatorMechanism, X402Facilitator

__all__ = [
    "FacilitatorClient",
    "FacilitatorMechanism",
    "SettlementGuard",
    "X402Facilitator",
    "create_facilitator_app",
]
