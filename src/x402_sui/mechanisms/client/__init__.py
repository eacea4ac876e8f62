"""
Client payment mechanisms
"""

from x402_sui.mechanisms.client.exact_sui import ExactSuiClientMechanism, select_coins

__all__ = ["ExactSuiClientMechanism", "select_coins"]
