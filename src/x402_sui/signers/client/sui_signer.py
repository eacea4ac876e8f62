"""
SuiClientSigner - Sui client signer implementation
"""

import logging

import httpx
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from x402_sui.exceptions import InvalidPrivateKeyError, SignatureCreationError
from x402_sui.signers.client.base import ClientSigner
from x402_sui.signers.utils import public_key_to_address, serialize_signature
from x402_sui.utils.sui_client import SuiClient, create_sui_client
from x402_sui.utils.transaction import intent_message_digest

logger = logging.getLogger(__name__)

PRIVATE_KEY_LENGTH = 32


class SuiClientSigner(ClientSigner):
    """Ed25519 Sui client signer"""

    def __init__(
        self,
        private_key: str,
        network: str | None = None,
        rpc_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._private_key = self._parse_private_key(private_key)
        self._public_key = self._private_key.public_key().public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )
        self._address = public_key_to_address(self._public_key)
        self._network = network
        self._rpc_url = rpc_url
        self._transport = transport
        self._sui_clients: dict[str, SuiClient] = {}
        logger.info(f"SuiClientSigner initialized: address={self._address}, network={network}")

    @classmethod
    def from_private_key(
        cls,
        private_key: str,
        network: str | None = None,
        rpc_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "SuiClientSigner":
        """Create signer from private key.

        Args:
            private_key: Ed25519 secret key as hex (with or without 0x prefix)
            network: Optional Sui network for lazy client initialization
            rpc_url: Optional custom fullnode URL
            transport: Optional httpx transport for the fullnode client

        Returns:
            SuiClientSigner instance
        """
        return cls(private_key, network, rpc_url, transport)

    @classmethod
    def generate(cls, network: str | None = None, rpc_url: str | None = None) -> "SuiClientSigner":
        """Create a signer with a fresh random keypair"""
        raw = Ed25519PrivateKey.generate().private_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PrivateFormat.Raw,
            encryption_algorithm=serialization.NoEncryption(),
        )
        return cls(raw.hex(), network, rpc_url)

    @staticmethod
    def _parse_private_key(private_key: str) -> Ed25519PrivateKey:
        clean_key = private_key.strip()
        if clean_key.startswith("0x"):
            clean_key = clean_key[2:]
        try:
            key_bytes = bytes.fromhex(clean_key)
        except ValueError as e:
            raise InvalidPrivateKeyError(f"Invalid private key format: {e}") from e
        # Some tools export secret || public key
        if len(key_bytes) == 2 * PRIVATE_KEY_LENGTH:
            key_bytes = key_bytes[:PRIVATE_KEY_LENGTH]
        if len(key_bytes) != PRIVATE_KEY_LENGTH:
            raise InvalidPrivateKeyError(
                f"Invalid private key format: expected {PRIVATE_KEY_LENGTH} bytes, "
                f"got {len(key_bytes)}"
            )
        return Ed25519PrivateKey.from_private_bytes(key_bytes)

    def export_private_key(self) -> str:
        """Hex-encoded secret key (0x-prefixed)"""
        raw = self._private_key.private_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PrivateFormat.Raw,
            encryption_algorithm=serialization.NoEncryption(),
        )
        return "0x" + raw.hex()

    def get_address(self) -> str:
        return self._address

    def get_public_key(self) -> bytes:
        return self._public_key

    def get_sui_client(self, network: str | None = None) -> SuiClient:
        """
        Fullnode client for ``network`` (the signer's own network when None).

        Clients are created lazily, one per network. The custom ``rpc_url``
        only serves the signer's own network; other networks use their
        default fullnode.
        """
        target = network or self._network
        if target is None and self._rpc_url is None:
            raise ValueError("network or rpc_url is required to reach the ledger")
        key = target or ""
        client = self._sui_clients.get(key)
        if client is None:
            own_network = self._network is None or target in (None, self._network)
            client = create_sui_client(
                key, rpc_url=self._rpc_url if own_network else None, transport=self._transport
            )
            self._sui_clients[key] = client
        return client

    async def close(self) -> None:
        clients = list(self._sui_clients.values())
        self._sui_clients.clear()
        for client in clients:
            await client.close()

    async def sign_transaction(self, tx_bytes: bytes) -> str:
        """Sign the transaction intent digest with Ed25519"""
        try:
            signature = self._private_key.sign(intent_message_digest(tx_bytes))
        except Exception as e:
            raise SignatureCreationError(f"Failed to sign transaction: {e}") from e
        return serialize_signature(signature, self._public_key)

    async def check_balance(self, asset: str, network: str) -> int:
        client = self.get_sui_client(network)
        balance = await client.get_balance(self._address, asset)
        logger.info(f"Balance check: address={self._address}, asset={asset}, balance={balance}")
        return balance

    def __repr__(self) -> str:
        return f"SuiClientSigner(address={self._address!r}, network={self._network!r})"
