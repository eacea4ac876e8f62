"""
Payment policies: async filters run between mechanism matching and option selection.
"""

import logging
from typing import TYPE_CHECKING

from x402_sui.config import NetworkConfig
from x402_sui.types import SUI_COIN_TYPE, PaymentRequirements
from x402_sui.utils.transaction import normalize_coin_type

if TYPE_CHECKING:
    from x402_sui.clients.x402_client import X402Client

logger = logging.getLogger(__name__)


class SufficientBalancePolicy:
    """Drop options the paying account cannot cover.

    Balances are read through the signer that would pay each option. Paying
    in native SUI also needs the gas budget on top of the amount.

        client.register_policy(SufficientBalancePolicy(client))

    Options with no signer, or whose balance cannot be read, are kept and
    left for the mechanism to fail on.
    """

    def __init__(
        self,
        client: "X402Client",
        gas_budget: int = NetworkConfig.DEFAULT_GAS_BUDGET,
    ) -> None:
        self._client = client
        self._gas_budget = gas_budget

    def _cost(self, req: PaymentRequirements) -> int:
        cost = int(req.max_amount_required)
        if normalize_coin_type(req.asset) == normalize_coin_type(SUI_COIN_TYPE):
            cost += self._gas_budget
        return cost

    async def _can_afford(self, req: PaymentRequirements) -> bool:
        signer = self._client.resolve_signer(req.scheme, req.network)
        if signer is None:
            return True
        try:
            balance = await signer.check_balance(req.asset, req.network)
        except Exception as e:
            logger.warning(f"Balance lookup failed for {req.asset} on {req.network}: {e}")
            return True

        cost = self._cost(req)
        if balance < cost:
            logger.info(
                "Skipping %s on %s: balance %d below %d", req.asset, req.network, balance, cost
            )
            return False
        return True

    async def apply(
        self,
        requirements: list[PaymentRequirements],
    ) -> list[PaymentRequirements]:
        kept = [req for req in requirements if await self._can_afford(req)]
        if requirements and not kept:
            logger.error("Insufficient balance for every payment option")
        return kept
