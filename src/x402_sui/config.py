"""
X402 Network Configuration
Centralized configuration for Sui networks and protocol constants
"""

from typing import Dict

from x402_sui.exceptions import UnsupportedNetworkError


class NetworkConfig:
    """Network configuration for fullnode endpoints and protocol defaults"""

    SUI_LOCALNET = "sui-localnet"
    SUI_DEVNET = "sui-devnet"
    SUI_TESTNET = "sui-testnet"
    SUI_MAINNET = "sui-mainnet"

    FULLNODE_URLS: Dict[str, str] = {
        "sui-localnet": "http://127.0.0.1:9000",
        "sui-devnet": "https://fullnode.devnet.sui.io:443",
        "sui-testnet": "https://fullnode.testnet.sui.io:443",
        "sui-mainnet": "https://fullnode.mainnet.sui.io:443",
    }

    FAUCET_URLS: Dict[str, str] = {
        "sui-localnet": "http://127.0.0.1:9123/gas",
        "sui-devnet": "https://faucet.devnet.sui.io/v2/gas",
        "sui-testnet": "https://faucet.testnet.sui.io/v2/gas",
    }

    # Seconds a client has to complete a payment after the challenge
    MAX_TIMEOUT_SECONDS = 60

    # Gas budget for payment transactions, in MIST
    DEFAULT_GAS_BUDGET = 10_000_000

    # Seconds before an outbound facilitator or fullnode call is abandoned
    DEFAULT_TIMEOUT = 30.0

    @classmethod
    def networks(cls) -> list[str]:
        return list(cls.FULLNODE_URLS)

    @classmethod
    def is_supported(cls, network: str) -> bool:
        return network in cls.FULLNODE_URLS

    @classmethod
    def get_rpc_url(cls, network: str, rpc_url: str | None = None) -> str:
        """Get fullnode JSON-RPC URL for a network.

        Args:
            network: Network identifier (e.g., "sui-testnet")
            rpc_url: Custom endpoint; wins over the network default when set

        Returns:
            RPC URL string

        Raises:
            UnsupportedNetworkError: If network is not supported and no rpc_url is given
        """
        if rpc_url:
            return rpc_url
        url = cls.FULLNODE_URLS.get(network)
        if url is None:
            raise UnsupportedNetworkError(f"Unsupported network: {network}")
        return url

    @classmethod
    def get_faucet_url(cls, network: str) -> str:
        url = cls.FAUCET_URLS.get(network)
        if url is None:
            raise UnsupportedNetworkError(f"No faucet for network: {network}")
        return url
