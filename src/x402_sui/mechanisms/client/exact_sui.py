"""
ExactSuiClientMechanism - builds and signs exact-amount Sui transfers.
"""

import logging
from typing import Any

import httpx

from x402_sui.config import NetworkConfig
from x402_sui.encoding import decode_base64_bytes
from x402_sui.exceptions import InsufficientBalanceError
from x402_sui.signers.client.base import ClientSigner
from x402_sui.types import SCHEME_EXACT, SUI_COIN_TYPE, PaymentPayload, PaymentRequirements
from x402_sui.utils.sui_client import SuiClient, create_sui_client
from x402_sui.utils.transaction import normalize_coin_type

logger = logging.getLogger(__name__)


def select_coins(coins: list[dict[str, Any]], target: int) -> tuple[list[str], int]:
    """Pick coins in listing order until their balances cover ``target``.

    Returns:
        (selected coin object ids, total balance of the selection)
    """
    selected: list[str] = []
    total = 0
    for coin in coins:
        selected.append(coin["coinObjectId"])
        total += int(coin["balance"])
        if total >= target:
            break
    return selected, total


class ExactSuiClientMechanism:
    """Client mechanism for the exact scheme on Sui"""

    def __init__(
        self,
        signer: ClientSigner,
        rpc_url: str | None = None,
        gas_budget: int = NetworkConfig.DEFAULT_GAS_BUDGET,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._signer = signer
        self._rpc_url = rpc_url
        self._gas_budget = gas_budget
        self._transport = transport

    def scheme(self) -> str:
        return SCHEME_EXACT

    def get_signer(self) -> ClientSigner:
        return self._signer

    async def create_payment_payload(
        self,
        requirements: PaymentRequirements,
        resource: str,
        extensions: dict[str, Any] | None = None,
    ) -> PaymentPayload:
        """Build the transfer for the requirement, sign it and wrap it in a payload"""
        amount = int(requirements.max_amount_required)
        logger.info(
            "Creating payment: %s %s -> %s for %s",
            amount,
            requirements.asset,
            requirements.pay_to,
            resource,
        )

        async with create_sui_client(
            requirements.network, rpc_url=self._rpc_url, transport=self._transport
        ) as client:
            tx_bytes = await self._build_transfer(client, requirements, amount)

        signature = await self._signer.sign_transaction(decode_base64_bytes(tx_bytes))

        return PaymentPayload(
            scheme=SCHEME_EXACT,
            network=requirements.network,
            transaction=tx_bytes,
            signature=signature,
            amount=requirements.max_amount_required,
            payTo=requirements.pay_to,
            asset=requirements.asset,
        )

    async def _build_transfer(
        self,
        client: SuiClient,
        requirements: PaymentRequirements,
        amount: int,
    ) -> str:
        owner = self._signer.get_address()
        asset = requirements.asset
        is_native = normalize_coin_type(asset) == normalize_coin_type(SUI_COIN_TYPE)

        coins = await client.get_coins(owner, asset)
        if not coins:
            raise InsufficientBalanceError(owner, asset, amount, 0)

        # Native transfers also pay gas out of the same coins
        needed = amount + self._gas_budget if is_native else amount
        coin_ids, total = select_coins(coins, needed)
        if total < needed:
            raise InsufficientBalanceError(owner, asset, needed, total)

        logger.debug("Selected %d coin(s) holding %d for transfer", len(coin_ids), total)

        if is_native:
            return await client.pay_sui(
                owner, coin_ids, [requirements.pay_to], [amount], self._gas_budget
            )
        return await client.pay(
            owner, coin_ids, [requirements.pay_to], [amount], self._gas_budget
        )
