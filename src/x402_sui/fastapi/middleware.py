"""
FastAPI middleware for x402 payment processing
"""

import logging
from typing import Any

from starlette.background import BackgroundTask, BackgroundTasks
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from x402_sui.encoding import decode_payment_payload, encode_payment_payload, to_json_dict
from x402_sui.exceptions import ConfigurationError
from x402_sui.server import X402Server
from x402_sui.server.receipt_store import FAILED, SETTLED
from x402_sui.types import (
    FacilitatorConfig,
    PaymentPayload,
    PaywallConfig,
    RoutesConfig,
    X402Config,
)

logger = logging.getLogger(__name__)

PAYMENT_HEADER = "X-PAYMENT"
PAYMENT_RESPONSE_HEADER = "X-PAYMENT-RESPONSE"
PAYMENT_DIGEST_HEADER = "X-PAYMENT-DIGEST"
RECEIPTS_PATH = "/x402/receipts"

ERROR_PAYMENT_REQUIRED = "X-PAYMENT header is required"
ERROR_INVALID_PAYMENT = "Invalid payment format"
ERROR_VERIFICATION_FAILED = "Payment verification failed"


class X402Middleware(BaseHTTPMiddleware):
    """
    Starlette middleware for automatic 402 payment handling.

    Usage:
        app = FastAPI()
        app.add_middleware(
            X402Middleware,
            pay_to="0x...",
            routes={"/weather": RouteConfig(price="1000")},
        )

    Requests to a protected path without ``X-PAYMENT`` get a 402 challenge.
    A verified payment lets the request through; settlement runs after the
    response has been sent and its outcome is published under
    ``GET /x402/receipts/{digest}``, the digest being returned in the
    ``X-PAYMENT-DIGEST`` header of the paid response.
    """

    def __init__(
        self,
        app: ASGIApp,
        pay_to: str | None = None,
        routes: RoutesConfig | None = None,
        facilitator: FacilitatorConfig | None = None,
        x402_config: X402Config | None = None,
        paywall: PaywallConfig | None = None,
        server: X402Server | None = None,
    ) -> None:
        super().__init__(app)
        if server is None:
            if not pay_to or routes is None:
                raise ConfigurationError("pay_to and routes are required without a server")
            server = X402Server(
                pay_to=pay_to,
                routes=routes,
                x402_config=x402_config,
                facilitator=facilitator,
                paywall=paywall,
            )
        self.server = server

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        if request.method == "GET" and path.startswith(RECEIPTS_PATH + "/"):
            return self._receipt_response(path[len(RECEIPTS_PATH) + 1 :])

        route = self.server.match_route(path, request.method)
        if route is None:
            return await call_next(request)

        requirements = self.server.build_payment_requirements(
            route, str(request.url), request.method
        )

        payment_header = request.headers.get(PAYMENT_HEADER)
        if not payment_header:
            logger.debug("Payment required for %s %s", request.method, path)
            return self._payment_required(ERROR_PAYMENT_REQUIRED, [requirements])

        try:
            payload = decode_payment_payload(payment_header, PaymentPayload)
            digest = self.server.payment_digest(payload)
        except ValueError as e:
            logger.error(f"Failed to decode payment payload: {e}")
            return self._payment_required(ERROR_INVALID_PAYMENT)

        # claimed before any await so concurrent replays see it
        if not self.server.receipts.claim(digest):
            logger.error("Payment %s was already presented for %s", digest, path)
            return self._payment_required(ERROR_VERIFICATION_FAILED)

        verify_result = await self.server.verify_payment(payload, requirements)
        if not verify_result.is_valid:
            self.server.receipts.release(digest)
            logger.error(
                "Payment verification failed for %s: %s", path, verify_result.invalid_reason
            )
            return self._payment_required(ERROR_VERIFICATION_FAILED)

        request.state.x402_payment = payload
        try:
            response = await call_next(request)
        except Exception:
            self.server.receipts.release(digest)
            raise

        if response.status_code >= 400:
            self.server.receipts.release(digest)
            logger.info(
                "Handler returned %d for %s, skipping settlement", response.status_code, path
            )
            return response

        response.headers[PAYMENT_DIGEST_HEADER] = digest
        _add_background_task(
            response, BackgroundTask(self.server.settle_and_record, payload, digest)
        )
        return response

    def _payment_required(self, error: str, accepts: list | None = None) -> JSONResponse:
        return JSONResponse(
            status_code=402,
            content=self.server.create_payment_required_response(accepts, error),
        )

    def _receipt_response(self, digest: str) -> JSONResponse:
        record = self.server.receipts.get(digest)
        if record is None:
            return JSONResponse(status_code=404, content={"status": "unknown"})

        if record.status == SETTLED:
            response = JSONResponse(content=to_json_dict(record.receipt))
            response.headers[PAYMENT_RESPONSE_HEADER] = encode_payment_payload(record.receipt)
            return response

        if record.status == FAILED:
            return JSONResponse(status_code=409, content={"status": FAILED, "error": record.error})

        return JSONResponse(status_code=404, content={"status": record.status})


def _add_background_task(response: Response, task: BackgroundTask) -> None:
    """Run ``task`` after the response body has been sent"""
    existing: Any = response.background
    if existing is None:
        response.background = task
        return
    tasks = BackgroundTasks()
    tasks.add_task(existing)
    tasks.add_task(task)
    response.background = tasks

