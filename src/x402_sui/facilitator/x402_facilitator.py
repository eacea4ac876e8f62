"""
X402Facilitator - dispatches verify/settle to the mechanism for a network and scheme
"""

import logging
from typing import Protocol

from x402_sui.config import NetworkConfig
from x402_sui.encoding import decode_base64_bytes
from x402_sui.exceptions import SettlementError, UnsupportedNetworkError
from x402_sui.facilitator.settlement_guard import SettlementGuard
from x402_sui.types import (
    X402_VERSION,
    PaymentPayload,
    PaymentRequirements,
    PaymentResponse,
    SupportedKind,
    SupportedResponse,
    VerifyResponse,
)
from x402_sui.utils.transaction import transaction_digest

logger = logging.getLogger(__name__)


class FacilitatorMechanism(Protocol):
    """Ledger-specific verify and settle for one scheme"""

    def scheme(self) -> str: ...

    async def verify(
        self,
        payload: PaymentPayload,
        requirements: PaymentRequirements,
    ) -> VerifyResponse: ...

    async def settle(self, payload: PaymentPayload) -> PaymentResponse: ...


class X402Facilitator:
    """
    Verifies and settles payments through registered mechanisms.

    Backs both the facilitator HTTP service and a resource server that
    settles in-process. Every settlement passes through a SettlementGuard,
    so one signed transaction is submitted to the ledger at most once per
    process.
    """

    def __init__(self, guard: SettlementGuard | None = None) -> None:
        self._by_kind: dict[tuple[str, str], FacilitatorMechanism] = {}
        self._guard = guard or SettlementGuard()

    def register(
        self,
        networks: list[str],
        mechanism: FacilitatorMechanism,
    ) -> "X402Facilitator":
        """
        Serve ``mechanism``'s scheme on each of ``networks``.

        Raises:
            UnsupportedNetworkError: A network is not a known Sui network
        """
        unknown = [n for n in networks if not NetworkConfig.is_supported(n)]
        if unknown:
            raise UnsupportedNetworkError(f"Unsupported network: {', '.join(unknown)}")
        for network in networks:
            self._by_kind[(network, mechanism.scheme())] = mechanism
        return self

    def supported(self) -> SupportedResponse:
        return SupportedResponse(
            kinds=[
                SupportedKind(x402Version=X402_VERSION, scheme=scheme, network=network)
                for network, scheme in self._by_kind
            ]
        )

    async def verify(
        self,
        payload: PaymentPayload,
        requirements: PaymentRequirements,
    ) -> VerifyResponse:
        mechanism = self._by_kind.get((requirements.network, requirements.scheme))
        if mechanism is None:
            logger.error(
                "No mechanism for %s on %s", requirements.scheme, requirements.network
            )
            return VerifyResponse(isValid=False, invalidReason="unsupported_network_scheme")
        return await mechanism.verify(payload, requirements)

    async def settle(self, payload: PaymentPayload) -> PaymentResponse:
        """
        Submit a verified payment to the ledger.

        Raises:
            DuplicateSettlementError: The transaction is in flight or already settled
            SettlementError: No mechanism, or the ledger rejected the transaction
        """
        mechanism = self._by_kind.get((payload.network, payload.scheme))
        if mechanism is None:
            raise SettlementError(
                f"unsupported_network_scheme: {payload.network}/{payload.scheme}"
            )

        digest = transaction_digest(decode_base64_bytes(payload.transaction))
        self._guard.begin(digest)
        try:
            receipt = await mechanism.settle(payload)
        except Exception:
            # let the payer retry the same transaction
            self._guard.release(digest)
            raise
        self._guard.complete(digest)
        return receipt
