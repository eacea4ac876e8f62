"""
ExactSuiFacilitatorMechanism - verifies and settles exact-amount Sui transfers.
"""

import logging
import time

import httpx

from x402_sui.encoding import decode_base64_bytes
from x402_sui.exceptions import SettlementError
from x402_sui.signers.utils import verify_sui_signature
from x402_sui.types import (
    SCHEME_EXACT,
    PaymentPayload,
    PaymentRequirements,
    PaymentResponse,
    VerifyResponse,
)
from x402_sui.utils.sui_client import create_sui_client
from x402_sui.utils.transaction import balance_change_for, execution_status, normalize_address

logger = logging.getLogger(__name__)


class ExactSuiFacilitatorMechanism:
    """Facilitator mechanism for the exact scheme on Sui.

    Verification never commits anything: field checks are followed by a dry run
    of the signed transaction. Settlement executes the same bytes.
    """

    def __init__(
        self,
        rpc_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        check_signature: bool = True,
        check_transfer: bool = True,
    ) -> None:
        """
        Args:
            rpc_url: Custom fullnode URL; network defaults apply when None
            transport: Optional httpx transport for the fullnode client
            check_signature: Require a valid signature from the dry run's sender
            check_transfer: Require the dry run to credit payTo with the required amount
        """
        self._rpc_url = rpc_url
        self._transport = transport
        self._check_signature = check_signature
        self._check_transfer = check_transfer

    def scheme(self) -> str:
        return SCHEME_EXACT

    async def verify(
        self,
        payload: PaymentPayload,
        requirements: PaymentRequirements,
    ) -> VerifyResponse:
        """Check payload fields against the requirement, then dry-run the transaction"""
        try:
            error = self._validate_fields(payload, requirements)
            if error:
                return VerifyResponse(isValid=False, invalidReason=error)
            return await self._simulate(payload, requirements)
        except Exception as e:
            logger.error(f"Payment verification failed: {e}", exc_info=True)
            return VerifyResponse(isValid=False, invalidReason="verification_error")

    async def settle(self, payload: PaymentPayload) -> PaymentResponse:
        """
        Execute the signed transaction.

        Raises:
            SettlementError: The ledger did not report success
        """
        async with create_sui_client(
            payload.network, rpc_url=self._rpc_url, transport=self._transport
        ) as client:
            result = await client.execute_transaction_block(
                payload.transaction, [payload.signature]
            )

        ok, error = execution_status(result.get("effects"))
        if not ok:
            raise SettlementError(f"Transaction failed: {error}")

        digest = result["digest"]
        logger.info("Payment settled: digest=%s amount=%s", digest, payload.amount)
        return PaymentResponse(
            transactionDigest=digest,
            amount=payload.amount,
            timestamp=int(time.time() * 1000),
            effects=result.get("effects"),
        )

    def _validate_fields(
        self,
        payload: PaymentPayload,
        requirements: PaymentRequirements,
    ) -> str | None:
        if payload.scheme != SCHEME_EXACT:
            logger.error("Invalid payment scheme: %s", payload.scheme)
            return "unsupported_scheme"

        if payload.network != requirements.network:
            logger.error("Network mismatch: %s vs %s", payload.network, requirements.network)
            return "network_mismatch"

        if payload.pay_to != requirements.pay_to:
            logger.error("PayTo address mismatch: %s vs %s", payload.pay_to, requirements.pay_to)
            return "payto_mismatch"

        if payload.asset != requirements.asset:
            logger.error("Asset type mismatch: %s vs %s", payload.asset, requirements.asset)
            return "asset_mismatch"

        try:
            paid = int(payload.amount)
            required = int(requirements.max_amount_required)
        except ValueError:
            logger.error("Invalid payment amount: %s", payload.amount)
            return "invalid_amount"
        if paid < required:
            logger.error("Insufficient payment amount: %d vs %d", paid, required)
            return "insufficient_amount"

        return None

    async def _simulate(
        self,
        payload: PaymentPayload,
        requirements: PaymentRequirements,
    ) -> VerifyResponse:
        tx_bytes = decode_base64_bytes(payload.transaction)

        async with create_sui_client(
            payload.network, rpc_url=self._rpc_url, transport=self._transport
        ) as client:
            dry_run = await client.dry_run_transaction_block(payload.transaction)

        ok, error = execution_status(dry_run.get("effects"))
        if not ok:
            logger.error("Transaction dry run failed: %s", error)
            return VerifyResponse(isValid=False, invalidReason="simulation_failed")

        if self._check_signature:
            signer_address = verify_sui_signature(tx_bytes, payload.signature)
            sender = (dry_run.get("input") or {}).get("sender")
            if signer_address is None or sender is None:
                logger.error("Transaction signature is invalid")
                return VerifyResponse(isValid=False, invalidReason="invalid_signature")
            if normalize_address(sender) != signer_address:
                logger.error("Signature from %s does not match sender %s", signer_address, sender)
                return VerifyResponse(isValid=False, invalidReason="invalid_signature")

        if self._check_transfer:
            credited = balance_change_for(
                dry_run.get("balanceChanges"), requirements.pay_to, requirements.asset
            )
            if credited < int(requirements.max_amount_required):
                logger.error(
                    "Transaction credits %s with %d, required %s",
                    requirements.pay_to,
                    credited,
                    requirements.max_amount_required,
                )
                return VerifyResponse(isValid=False, invalidReason="transfer_mismatch")

        return VerifyResponse(isValid=True)
