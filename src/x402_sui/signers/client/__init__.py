"""
Client Signers
"""

from x402_sui.signers.client.base import ClientSigner
from x402_sui.signers.client.sui_signer import SuiClientSigner

__all__ = ["ClientSigner", "SuiClientSigner"]
