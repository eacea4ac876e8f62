"""
Facilitator HTTP service.

Exposes verification and settlement over HTTP so resource servers can
delegate ledger connectivity:

    GET  /health     liveness
    GET  /supported  network/scheme combinations
    POST /verify     {paymentPayload, paymentRequirement} -> {valid}
    POST /settle     {paymentPayload} -> PaymentResponse
"""

import logging
import sys
from typing import Any, Optional

import httpx
import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from x402_sui.config import NetworkConfig
from x402_sui.encoding import to_json_dict
from x402_sui.exceptions import ConfigurationError
from x402_sui.facilitator.x402_facilitator import X402Facilitator
from x402_sui.logging_config import setup_logging
from x402_sui.mechanisms.facilitator import ExactSuiFacilitatorMechanism
from x402_sui.types import PaymentPayload, PaymentRequirements

logger = logging.getLogger(__name__)

SERVICE_NAME = "x402-facilitator-sui"


class VerifyRequest(BaseModel):
    """Verify request model"""

    paymentPayload: Optional[PaymentPayload] = None
    paymentRequirement: Optional[PaymentRequirements] = None


class SettleRequest(BaseModel):
    """Settle request model"""

    paymentPayload: Optional[PaymentPayload] = None


def create_facilitator_app(
    rpc_url: str | None = None,
    networks: list[str] | None = None,
    facilitator: X402Facilitator | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """
    Create the facilitator FastAPI application.

    Args:
        rpc_url: Custom fullnode URL used for every registered network
        networks: Networks to serve (default: all known Sui networks)
        facilitator: Preconfigured X402Facilitator; overrides rpc_url/networks
        transport: Optional httpx transport for fullnode calls

    Returns:
        FastAPI application
    """
    if facilitator is None:
        mechanism = ExactSuiFacilitatorMechanism(rpc_url=rpc_url, transport=transport)
        facilitator = X402Facilitator().register(
            networks or NetworkConfig.networks(), mechanism
        )

    app = FastAPI(
        title="X402 Facilitator",
        description="Facilitator service for X402 payment protocol on Sui",
        version="1.0.0",
    )
    app.state.facilitator = facilitator

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.warning("Rejected malformed %s body: %s", request.url.path, exc.errors())
        content: dict[str, Any] = {"error": "Malformed request body"}
        if request.url.path.endswith("/verify"):
            content = {"valid": False, **content}
        return JSONResponse(status_code=400, content=content)

    @app.get("/health")
    async def health():
        """Liveness check"""
        return {"status": "ok", "service": SERVICE_NAME}

    @app.get("/supported")
    async def supported():
        """Get supported capabilities"""
        return facilitator.supported().model_dump(by_alias=True)

    @app.post("/verify")
    async def verify(request: VerifyRequest):
        """Verify a payment payload against the expected requirement"""
        if request.paymentPayload is None or request.paymentRequirement is None:
            return JSONResponse(
                status_code=400,
                content={"valid": False, "error": "Missing paymentPayload or paymentRequirement"},
            )

        try:
            result = await facilitator.verify(request.paymentPayload, request.paymentRequirement)
        except Exception as e:
            logger.error(f"Verify error: {e}", exc_info=True)
            return JSONResponse(
                status_code=500,
                content={"valid": False, "error": str(e) or "Internal server error"},
            )

        if result.is_valid:
            return {"valid": True}

        logger.info("Verification rejected: %s", result.invalid_reason)
        return JSONResponse(
            status_code=400,
            content={
                "valid": False,
                "error": "Payment verification failed",
                "reason": result.invalid_reason,
            },
        )

    @app.post("/settle")
    async def settle(request: SettleRequest):
        """Settle a verified payment on-chain"""
        if request.paymentPayload is None:
            return JSONResponse(status_code=400, content={"error": "Missing paymentPayload"})

        try:
            payment_response = await facilitator.settle(request.paymentPayload)
        except Exception as e:
            logger.error(f"Settle error: {e}", exc_info=True)
            return JSONResponse(
                status_code=500, content={"error": str(e) or "Settlement failed"}
            )

        return to_json_dict(payment_response)

    return app


def main() -> None:
    """Start the facilitator server"""
    from x402_sui.settings import FacilitatorSettings

    setup_logging()
    try:
        settings = FacilitatorSettings.from_env()
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    networks = [settings.network] if settings.network else None
    app = create_facilitator_app(rpc_url=settings.rpc_url, networks=networks)

    logger.info("Starting X402 Facilitator Server (Sui)")
    logger.info("Port: %d", settings.port)
    logger.info("RPC URL: %s", settings.rpc_url or "(using default)")
    for path in ("/health", "/supported", "/verify", "/settle"):
        logger.info("  http://%s:%d%s", settings.host, settings.port, path)

    uvicorn.run(app, host=settings.host, port=settings.port, log_level="info")


if __name__ == "__main__":
    main()
