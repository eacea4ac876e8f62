"""
Payment mechanisms for the exact scheme on Sui
"""

from x402_sui.mechanisms.client import ExactSuiClientMechanism
from x402_sui.mechanisms.facilitator import ExactSuiFacilitatorMechanism

__all__ = ["ExactSuiClientMechanism", "ExactSuiFacilitatorMechanism"]
