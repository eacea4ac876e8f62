"""
Client signer base interface
"""

from abc import ABC, abstractmethod


class ClientSigner(ABC):
    """
    Abstract base class for client signers.

    Responsible for signing transactions and reporting spendable balances.
    """

    @abstractmethod
    def get_address(self) -> str:
        """Get the signer's account address"""
        pass

    @abstractmethod
    async def sign_transaction(self, tx_bytes: bytes) -> str:
        """
        Sign transaction bytes.

        Args:
            tx_bytes: BCS transaction data

        Returns:
            Serialized signature (base64)
        """
        pass

    @abstractmethod
    async def check_balance(self, asset: str, network: str) -> int:
        """
        Check the signer's balance of an asset.

        Args:
            asset: Coin type
            network: Network identifier

        Returns:
            Balance in base units
        """
        pass
