"""
Async Sui fullnode client.

Thin JSON-RPC wrapper over httpx covering the calls the payment flow needs:
transaction building, dry run, execution, balances and coin listing.
"""

import itertools
import logging
from typing import Any

import httpx

from x402_sui.config import NetworkConfig
from x402_sui.exceptions import LedgerError, LedgerRpcError

logger = logging.getLogger(__name__)

EXECUTE_OPTIONS = {
    "showEffects": True,
    "showEvents": True,
    "showObjectChanges": True,
}

COINS_PAGE_LIMIT = 50


class SuiClient:
    """Async client for the Sui JSON-RPC API"""

    def __init__(
        self,
        url: str,
        timeout: float = NetworkConfig.DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize Sui client.

        Args:
            url: Fullnode JSON-RPC endpoint
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (e.g. for in-process fullnodes)
        """
        self.url = url
        self._timeout = timeout
        self._transport = transport
        self._http_client: httpx.AsyncClient | None = None
        self._ids = itertools.count(1)

    async def __aenter__(self) -> "SuiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client"""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self._timeout, transport=self._transport)
        return self._http_client

    async def close(self) -> None:
        """Close HTTP client"""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def call(self, method: str, params: list[Any]) -> Any:
        """
        Invoke a JSON-RPC method.

        Raises:
            LedgerRpcError: The fullnode answered with an error object
            LedgerError: The fullnode answered with something that is not JSON-RPC
            httpx.HTTPError: Transport failure or non-2xx status
        """
        request_body = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }
        logger.debug("Sui RPC %s -> %s", method, self.url)
        response = await self._get_client().post(self.url, json=request_body)
        response.raise_for_status()
        body = response.json()
        if not isinstance(body, dict):
            raise LedgerError(f"Malformed JSON-RPC response for {method}")
        if body.get("error"):
            error = body["error"]
            raise LedgerRpcError(method, error.get("code"), error.get("message", str(error)))
        if "result" not in body:
            raise LedgerError(f"JSON-RPC response for {method} has no result")
        return body["result"]

    async def get_balance(self, owner: str, coin_type: str) -> int:
        """Total balance of ``coin_type`` owned by ``owner``, in base units"""
        result = await self.call("suix_getBalance", [owner, coin_type])
        return int(result["totalBalance"])

    async def get_coins(self, owner: str, coin_type: str) -> list[dict[str, Any]]:
        """All coin objects of ``coin_type`` owned by ``owner`` (follows pagination)"""
        coins: list[dict[str, Any]] = []
        cursor = None
        while True:
            page = await self.call("suix_getCoins", [owner, coin_type, cursor, COINS_PAGE_LIMIT])
            coins.extend(page.get("data", []))
            if not page.get("hasNextPage") or not page.get("nextCursor"):
                return coins
            cursor = page["nextCursor"]

    async def dry_run_transaction_block(self, tx_bytes: str) -> dict[str, Any]:
        """Simulate base64 transaction bytes against current state, without committing"""
        return await self.call("sui_dryRunTransactionBlock", [tx_bytes])

    async def execute_transaction_block(
        self,
        tx_bytes: str,
        signatures: list[str],
        options: dict[str, bool] | None = None,
        request_type: str = "WaitForLocalExecution",
    ) -> dict[str, Any]:
        """Submit signed base64 transaction bytes for execution"""
        return await self.call(
            "sui_executeTransactionBlock",
            [tx_bytes, signatures, options or EXECUTE_OPTIONS, request_type],
        )

    async def pay_sui(
        self,
        signer: str,
        input_coins: list[str],
        recipients: list[str],
        amounts: list[int],
        gas_budget: int,
    ) -> str:
        """Build a native SUI transfer; gas is paid from the first input coin.

        Returns:
            Base64 transaction bytes (unsigned)
        """
        result = await self.call(
            "unsafe_paySui",
            [signer, input_coins, recipients, [str(a) for a in amounts], str(gas_budget)],
        )
        return result["txBytes"]

    async def pay(
        self,
        signer: str,
        input_coins: list[str],
        recipients: list[str],
        amounts: list[int],
        gas_budget: int,
        gas: str | None = None,
    ) -> str:
        """Build a custom coin transfer; gas is selected by the node when ``gas`` is None.

        Returns:
            Base64 transaction bytes (unsigned)
        """
        result = await self.call(
            "unsafe_pay",
            [signer, input_coins, recipients, [str(a) for a in amounts], gas, str(gas_budget)],
        )
        return result["txBytes"]


def create_sui_client(
    network: str,
    rpc_url: str | None = None,
    timeout: float = NetworkConfig.DEFAULT_TIMEOUT,
    transport: httpx.AsyncBaseTransport | None = None,
) -> SuiClient:
    """Create a SuiClient for the given network.

    Args:
        network: Sui network identifier (sui-localnet/devnet/testnet/mainnet)
        rpc_url: Custom fullnode URL, overrides the network default
        timeout: Per-request timeout in seconds
        transport: Optional httpx transport

    Returns:
        SuiClient instance
    """
    url = NetworkConfig.get_rpc_url(network, rpc_url)
    logger.info("Creating Sui client for network=%s (%s)", network, url)
    return SuiClient(url, timeout=timeout, transport=transport)
