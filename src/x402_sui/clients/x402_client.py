"""
X402Client - picks a payment option and builds the payment for it
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Protocol

from x402_sui.exceptions import NoPaymentRequirementsError, UnsupportedNetworkError
from x402_sui.signers.client.base import ClientSigner
from x402_sui.types import PaymentPayload, PaymentRequirements

if TYPE_CHECKING:
    from x402_sui.clients.token_selection import TokenSelectionStrategy

logger = logging.getLogger(__name__)


class ClientMechanism(Protocol):
    """Builds and signs payments for one scheme"""

    def scheme(self) -> str: ...

    def get_signer(self) -> ClientSigner | None: ...

    async def create_payment_payload(
        self,
        requirements: PaymentRequirements,
        resource: str,
        extensions: dict[str, Any] | None = None,
    ) -> PaymentPayload: ...


PaymentRequirementsSelector = Callable[[list[PaymentRequirements]], PaymentRequirements]


class PaymentPolicy(Protocol):
    """Narrows or reorders the payable options before one is chosen"""

    async def apply(
        self,
        requirements: list[PaymentRequirements],
    ) -> list[PaymentRequirements]: ...


@dataclass(frozen=True)
class _Registration:
    pattern: str
    mechanism: ClientMechanism

    @property
    def is_wildcard(self) -> bool:
        return self.pattern.endswith("*")

    def covers(self, scheme: str, network: str) -> bool:
        if self.mechanism.scheme() != scheme:
            return False
        if self.is_wildcard:
            return network.startswith(self.pattern[:-1])
        return network == self.pattern


class X402Client:
    """
    Client-side half of the protocol.

    Mechanisms are registered per network pattern: an exact network name
    ("sui-testnet") or a prefix ending in ``*`` ("sui-*"). Exact names take
    precedence over prefixes; among equals the earliest registration wins.
    """

    def __init__(self, token_strategy: "TokenSelectionStrategy | None" = None) -> None:
        """
        Args:
            token_strategy: Picks among payable options; the first option when None
        """
        self._registrations: list[_Registration] = []
        self._policies: list[PaymentPolicy] = []
        self._token_strategy = token_strategy

    def register(self, network_pattern: str, mechanism: ClientMechanism) -> "X402Client":
        """Register ``mechanism`` for networks matching ``network_pattern``; chainable"""
        registration = _Registration(network_pattern, mechanism)
        self._registrations.append(registration)
        # stable sort keeps registration order within each group
        self._registrations.sort(key=lambda r: r.is_wildcard)
        logger.info(
            "Registered %s for %s networks '%s'",
            type(mechanism).__name__,
            "prefix" if registration.is_wildcard else "exact",
            network_pattern,
        )
        return self

    def register_policy(self, policy: PaymentPolicy) -> "X402Client":
        """Add a policy; policies run in registration order. Chainable."""
        self._policies.append(policy)
        return self

    def mechanism_for(self, scheme: str, network: str) -> ClientMechanism | None:
        for registration in self._registrations:
            if registration.covers(scheme, network):
                return registration.mechanism
        return None

    def resolve_signer(self, scheme: str, network: str) -> ClientSigner | None:
        """Signer that would pay for this scheme on this network, if any"""
        mechanism = self.mechanism_for(scheme, network)
        return mechanism.get_signer() if mechanism is not None else None

    async def select_payment_requirements(
        self,
        accepts: list[PaymentRequirements],
    ) -> PaymentRequirements:
        """
        Choose the option to pay.

        Options without a registered mechanism are dropped first, then each
        policy runs, then the token strategy picks from what is left.

        Raises:
            NoPaymentRequirementsError: ``accepts`` is empty
            UnsupportedNetworkError: Nothing left to pay after filtering
        """
        if not accepts:
            raise NoPaymentRequirementsError("No payment requirements to choose from")

        options = [r for r in accepts if self.mechanism_for(r.scheme, r.network) is not None]
        if len(options) < len(accepts):
            logger.debug("Dropped %d options without a mechanism", len(accepts) - len(options))

        for policy in self._policies:
            options = await policy.apply(options)
            logger.debug("%s left %d options", type(policy).__name__, len(options))

        if not options:
            networks = sorted({r.network for r in accepts})
            logger.error(f"None of the offered payment options can be paid: {networks}")
            raise UnsupportedNetworkError(f"No payable option among networks {networks}")

        if self._token_strategy is None:
            chosen = options[0]
        else:
            chosen = await self._token_strategy.select(options)

        logger.info(
            "Paying %s of %s on %s", chosen.max_amount_required, chosen.asset, chosen.network
        )
        return chosen

    async def choose(
        self,
        accepts: list[PaymentRequirements],
        selector: PaymentRequirementsSelector | None = None,
    ) -> PaymentRequirements:
        """Pick with ``selector`` when given, otherwise as ``select_payment_requirements``"""
        if selector is None:
            return await self.select_payment_requirements(accepts)
        if not accepts:
            raise NoPaymentRequirementsError("No payment requirements to choose from")
        return selector(accepts)

    async def create_payment_payload(
        self,
        requirements: PaymentRequirements,
        resource: str,
        extensions: dict[str, Any] | None = None,
    ) -> PaymentPayload:
        """
        Build and sign the payment for ``requirements``.

        Raises:
            UnsupportedNetworkError: No mechanism covers the requirement
        """
        mechanism = self.mechanism_for(requirements.scheme, requirements.network)
        if mechanism is None:
            raise UnsupportedNetworkError(
                f"No mechanism registered for {requirements.scheme} on {requirements.network}"
            )
        return await mechanism.create_payment_payload(requirements, resource, extensions)

    async def handle_payment(
        self,
        accepts: list[PaymentRequirements],
        resource: str,
        extensions: dict[str, Any] | None = None,
        selector: PaymentRequirementsSelector | None = None,
    ) -> PaymentPayload:
        requirements = await self.choose(accepts, selector)
        return await self.create_payment_payload(requirements, resource, extensions)
