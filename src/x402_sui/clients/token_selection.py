"""
Selection strategies for choosing which payment option to use.

When a server accepts several assets, the client needs a strategy to pick one.
"""

import logging
from decimal import Decimal
from typing import Protocol, runtime_checkable

from x402_sui.types import DEFAULT_TOKEN, PaymentRequirements
from x402_sui.utils.transaction import normalize_coin_type

logger = logging.getLogger(__name__)


@runtime_checkable
class TokenSelectionStrategy(Protocol):
    """Picks one of several payable options.

    ``accepts`` only holds options a registered mechanism can pay and that
    survived every policy; it may still be empty when called directly.
    """

    async def select(
        self,
        accepts: list[PaymentRequirements],
    ) -> PaymentRequirements:
        """Raises ValueError on an empty list"""
        ...


class FirstOptionStrategy:
    """Default strategy: take the server's first acceptable option."""

    async def select(
        self,
        accepts: list[PaymentRequirements],
    ) -> PaymentRequirements:
        if not accepts:
            raise ValueError("Nothing to select from")
        return accepts[0]


class CheapestOptionStrategy:
    """Pick the option with the lowest amount in whole-token units.

    Amounts are normalized by each asset's decimals so coins with different
    precisions are ranked fairly. Assets missing from ``decimals`` are
    assumed to have 9, like SUI.
    """

    def __init__(self, decimals: dict[str, int] | None = None) -> None:
        self._decimals = {
            normalize_coin_type(coin_type): places
            for coin_type, places in (decimals or {}).items()
        }

    def _normalized_cost(self, req: PaymentRequirements) -> Decimal:
        places = self._decimals.get(normalize_coin_type(req.asset), DEFAULT_TOKEN.decimals)
        return Decimal(req.max_amount_required) / Decimal(10) ** places

    async def select(
        self,
        accepts: list[PaymentRequirements],
    ) -> PaymentRequirements:
        if not accepts:
            raise ValueError("Nothing to select from")

        selected = min(accepts, key=self._normalized_cost)
        logger.info(
            "Selected asset %s on %s (normalized_cost=%s)",
            selected.asset,
            selected.network,
            self._normalized_cost(selected),
        )
        return selected


class AssetPreferenceStrategy:
    """Pick the first option whose asset appears earliest in ``preferred``.

    Falls back to the first option when none of the preferred assets is offered.
    """

    def __init__(self, preferred: list[str]) -> None:
        self._preferred = [normalize_coin_type(a) for a in preferred]

    async def select(
        self,
        accepts: list[PaymentRequirements],
    ) -> PaymentRequirements:
        if not accepts:
            raise ValueError("Nothing to select from")

        for asset in self._preferred:
            for req in accepts:
                if normalize_coin_type(req.asset) == asset:
                    return req

        logger.info("No preferred asset offered, using first option")
        return accepts[0]
