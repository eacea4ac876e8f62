"""
Signers for client-side payment construction
"""

from x402_sui.signers.client import ClientSigner, SuiClientSigner
from x402_sui.signers.utils import public_key_to_address, verify_sui_signature

__all__ = [
    "ClientSigner",
    "SuiClientSigner",
    "public_key_to_address",
    "verify_sui_signature",
]
