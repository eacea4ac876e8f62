"""
Example resource server.

Serves a free ``/health`` endpoint and a paid ``/protected`` weather report.
Configure it through ``.env`` (see examples/python/scripts/setup_localnet.py):

    ADDRESS=0x...             payee
    NETWORK=sui-localnet
    FACILITATOR_URL=...       optional; verify and settle in-process when unset
"""

import logging
import sys
from pathlib import Path

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from x402_sui.exceptions import ConfigurationError
from x402_sui.fastapi import PAYMENT_DIGEST_HEADER, PAYMENT_RESPONSE_HEADER, X402Middleware
from x402_sui.logging_config import setup_logging
from x402_sui.settings import ServerSettings
from x402_sui.types import PaywallConfig, RouteConfig

setup_logging()
logging.getLogger("x402_sui").setLevel(logging.DEBUG)
logger = logging.getLogger(__name__)

ENV_FILE = Path(__file__).parent.parent.parent.parent / ".env"

try:
    settings = ServerSettings.from_env(str(ENV_FILE))
except ConfigurationError as e:
    logger.error(f"Configuration error: {e}")
    sys.exit(1)

# One unit of the configured token
PRICE = str(10**settings.token.decimals)

app = FastAPI(title="X402 Sui Server", description="Protected resource server")

app.add_middleware(
    X402Middleware,
    pay_to=settings.address,
    routes={"/protected": RouteConfig(price=PRICE, description="Current weather report")},
    facilitator=settings.facilitator_config(),
    x402_config=settings.x402_config(),
    paywall=PaywallConfig(title="X402 Sui demo"),
)

# Outermost, so 402 challenges carry CORS headers too
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[PAYMENT_DIGEST_HEADER, PAYMENT_RESPONSE_HEADER],
)


@app.get("/health")
async def health():
    return {"status": "ok", "network": settings.network}


@app.get("/protected")
async def protected(request: Request):
    payment = request.state.x402_payment
    logger.info(f"Serving paid request: amount={payment.amount} asset={payment.asset}")
    return {"city": "Lisbon", "temperature": 21, "forecast": "sunny"}


if __name__ == "__main__":
    print("Server Configuration:")
    print(f"  Network: {settings.network}")
    print(f"  Pay To: {settings.address}")
    print(f"  Price: {PRICE} {settings.token.coin_type}")
    print(f"  Facilitator: {settings.facilitator_url or 'in-process'}")
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)
