"""
Facilitator payment mechanisms
"""

from x402_sui.mechanisms.facilitator.exact_sui import ExactSuiFacilitatorMechanism

__all__ = ["ExactSuiFacilitatorMechanism"]
