"""
Sui signature helpers shared by signers and verifiers.
"""

import base64
import binascii

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

from x402_sui.utils.transaction import blake2b_256, intent_message_digest

# Signature scheme flag prefixed to serialized signatures and address preimages
ED25519_FLAG = 0x00

ED25519_SIGNATURE_LENGTH = 64
ED25519_PUBLIC_KEY_LENGTH = 32


def public_key_to_address(public_key: bytes) -> str:
    """Derive the Sui address of an Ed25519 public key"""
    return "0x" + blake2b_256(bytes([ED25519_FLAG]) + public_key).hex()


def serialize_signature(signature: bytes, public_key: bytes) -> str:
    """flag || signature || public key, base64 encoded"""
    return base64.b64encode(bytes([ED25519_FLAG]) + signature + public_key).decode("ascii")


def verify_sui_signature(tx_bytes: bytes, serialized_signature: str) -> str | None:
    """Check a serialized Ed25519 signature over transaction bytes.

    Returns:
        The signer's address when the signature is valid, otherwise None
    """
    try:
        raw = base64.b64decode(serialized_signature, validate=True)
    except (binascii.Error, ValueError):
        return None

    if len(raw) != 1 + ED25519_SIGNATURE_LENGTH + ED25519_PUBLIC_KEY_LENGTH:
        return None
    if raw[0] != ED25519_FLAG:
        return None

    signature = raw[1 : 1 + ED25519_SIGNATURE_LENGTH]
    public_key = raw[1 + ED25519_SIGNATURE_LENGTH :]
    try:
        Ed25519PublicKey.from_public_bytes(public_key).verify(
            signature, intent_message_digest(tx_bytes)
        )
    except InvalidSignature:
        return None
    return public_key_to_address(public_key)
