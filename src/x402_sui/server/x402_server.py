"""
X402Server - Core payment server for x402 protocol
"""

import logging
from typing import Any, Optional

from x402_sui.config import NetworkConfig
from x402_sui.encoding import decode_base64_bytes, encode_payment_required
from x402_sui.facilitator.facilitator_client import FacilitatorClient
from x402_sui.facilitator.x402_facilitator import X402Facilitator
from x402_sui.mechanisms.facilitator import ExactSuiFacilitatorMechanism
from x402_sui.server.receipt_store import SETTLED, ReceiptStore
from x402_sui.types import (
    FEE_PAYER_FACILITATOR,
    SCHEME_EXACT,
    FacilitatorConfig,
    InputSchema,
    OutputSchema,
    PaymentPayload,
    PaymentRequirements,
    PaymentRequirementsExtra,
    PaymentResponse,
    PaywallConfig,
    RouteConfig,
    RoutesConfig,
    VerifyResponse,
    X402Config,
)
from x402_sui.utils.transaction import transaction_digest

logger = logging.getLogger(__name__)


class X402Server:
    """
    Core payment server for x402 protocol.

    Holds the route policy and payee, builds payment requirements and routes
    verification/settlement either to a remote facilitator or to an
    in-process X402Facilitator talking to the fullnode directly.
    """

    def __init__(
        self,
        pay_to: str,
        routes: RoutesConfig,
        x402_config: X402Config | None = None,
        facilitator: FacilitatorConfig | None = None,
        paywall: PaywallConfig | None = None,
        facilitator_client: FacilitatorClient | None = None,
        local_facilitator: X402Facilitator | None = None,
        receipts: ReceiptStore | None = None,
    ) -> None:
        """
        Initialize X402Server.

        Args:
            pay_to: Payee address credited by every payment
            routes: Protected paths and their payment policy
            x402_config: Network and token configuration
            facilitator: Remote facilitator; None verifies and settles in-process
            paywall: Presentation hints for the 402 challenge
            facilitator_client: Preconfigured client, used instead of one built from ``facilitator``
            local_facilitator: Preconfigured in-process facilitator
            receipts: Store for post-response settlement outcomes
        """
        self.pay_to = pay_to
        self.routes = {path: RouteConfig.model_validate(route) for path, route in routes.items()}
        self.config = x402_config or X402Config()
        self.paywall = paywall
        self.receipts = receipts or ReceiptStore()

        self._facilitator_client = facilitator_client
        if self._facilitator_client is None and facilitator is not None:
            self._facilitator_client = FacilitatorClient.from_config(facilitator)

        self._local_facilitator: X402Facilitator | None = None
        if self._facilitator_client is None:
            self._local_facilitator = local_facilitator or self._default_local_facilitator()

    def _default_local_facilitator(self) -> X402Facilitator:
        sui_config = self.config.sui_config
        mechanism = ExactSuiFacilitatorMechanism(rpc_url=sui_config.rpc_url)
        return X402Facilitator().register([sui_config.network], mechanism)

    @property
    def network(self) -> str:
        return self.config.sui_config.network

    @property
    def uses_facilitator(self) -> bool:
        return self._facilitator_client is not None

    def match_route(self, path: str, method: str) -> Optional[RouteConfig]:
        """Return the route policy protecting this request, if any"""
        route = self.routes.get(path)
        if route is None or method.upper() not in route.methods:
            return None
        return route

    def build_payment_requirements(
        self,
        route: RouteConfig,
        resource_url: str,
        method: str,
    ) -> PaymentRequirements:
        """Build payment requirements for one request.

        Args:
            route: Route policy; its price is already in base units
            resource_url: Exact URL the client requested
            method: HTTP method of the request

        Returns:
            PaymentRequirements
        """
        description = route.description
        if description is None and self.paywall is not None:
            description = self.paywall.description

        extra = None
        if self.uses_facilitator:
            extra = PaymentRequirementsExtra(feePayer=FEE_PAYER_FACILITATOR)

        return PaymentRequirements(
            scheme=SCHEME_EXACT,
            network=self.network,
            maxAmountRequired=route.price,
            resource=resource_url,
            description=description or "",
            mimeType="",
            payTo=self.pay_to,
            maxTimeoutSeconds=NetworkConfig.MAX_TIMEOUT_SECONDS,
            asset=self.config.token_config.coin_type,
            outputSchema=OutputSchema(
                input=InputSchema(type="http", method=method.upper(), discoverable=True)
            ),
            extra=extra,
        )

    def create_payment_required_response(
        self,
        requirements: list[PaymentRequirements] | None,
        error: str,
    ) -> dict[str, Any]:
        """Create the JSON body of a 402 response"""
        return encode_payment_required(requirements, error)

    async def verify_payment(
        self,
        payload: PaymentPayload,
        requirements: PaymentRequirements,
    ) -> VerifyResponse:
        """
        Verify payment through the facilitator or in-process.

        Never raises; any failure comes back as an invalid VerifyResponse.
        """
        try:
            if self._facilitator_client is not None:
                return await self._facilitator_client.verify(payload, requirements)
            return await self._local_facilitator.verify(payload, requirements)
        except Exception as e:
            logger.error(f"Payment verification raised: {e}", exc_info=True)
            return VerifyResponse(isValid=False, invalidReason="verification_error")

    async def settle_payment(self, payload: PaymentPayload) -> PaymentResponse:
        """
        Execute payment settlement.

        Raises:
            SettlementError: Settlement rejected
            httpx.HTTPError: Facilitator unreachable
        """
        if self._facilitator_client is not None:
            return await self._facilitator_client.settle(payload)
        return await self._local_facilitator.settle(payload)

    async def settle_and_record(self, payload: PaymentPayload, digest: str) -> None:
        """Settle after the response has been sent and publish the outcome.

        Failures are logged only; the resource has already been delivered.
        """
        try:
            receipt = await self.settle_payment(payload)
        except Exception as e:
            existing = self.receipts.get(digest)
            if existing is not None and existing.status == SETTLED:
                # a replay of a payment that already landed on the ledger
                logger.warning(f"Keeping settled receipt for {digest} after: {e}")
                return
            logger.error(f"Settlement failed for {digest}: {e}", exc_info=True)
            self.receipts.mark_failed(digest, str(e) or type(e).__name__)
            return

        if receipt.transaction_digest != digest:
            logger.warning(
                "Ledger digest %s differs from expected %s", receipt.transaction_digest, digest
            )
        logger.info("Settlement succeeded: digest=%s", receipt.transaction_digest)
        self.receipts.mark_settled(digest, receipt)

    @staticmethod
    def payment_digest(payload: PaymentPayload) -> str:
        """Sui transaction digest of the payload's transaction bytes"""
        return transaction_digest(decode_base64_bytes(payload.transaction))

    async def close(self) -> None:
        if self._facilitator_client is not None:
            await self._facilitator_client.close()
