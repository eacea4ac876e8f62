"""
Prepare a local Sui network for the examples.

Generates a payee and a payer keypair, funds both from the faucet, prints
their balances and writes the matching ``.env`` for the server, facilitator
and client examples.

    sui start --with-faucet --force-regenesis
    python examples/python/scripts/setup_localnet.py [--network sui-devnet]
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import httpx

from x402_sui.config import NetworkConfig
from x402_sui.exceptions import X402Error
from x402_sui.logging_config import setup_logging
from x402_sui.signers.client import SuiClientSigner
from x402_sui.types import SUI_COIN_TYPE

logger = logging.getLogger(__name__)

ENV_FILE = Path(__file__).parent.parent.parent.parent / ".env"

MIST_PER_SUI = 10**9


async def request_faucet(http: httpx.AsyncClient, faucet_url: str, address: str) -> None:
    response = await http.post(
        faucet_url, json={"FixedAmountRequest": {"recipient": address}}
    )
    response.raise_for_status()
    logger.info(f"Faucet funded {address}")


def render_env(network: str, payee: SuiClientSigner, payer: SuiClientSigner) -> str:
    lines = [
        "# Generated by setup_localnet.py",
        f"NETWORK={network}",
        f"SUI_NETWORK={network}",
        f"ADDRESS={payee.get_address()}",
        f"SERVER_SUI_PRIVATE_KEY={payee.export_private_key()}",
        f"USER_SUI_PRIVATE_KEY={payer.export_private_key()}",
        "FACILITATOR_URL=http://localhost:3002",
        "RESOURCE_URL=http://localhost:4021/protected",
        "",
    ]
    return "\n".join(lines)


async def setup(network: str, env_file: Path, force: bool) -> int:
    if env_file.exists() and not force:
        print(f"{env_file} already exists; pass --force to overwrite it")
        return 1

    faucet_url = NetworkConfig.get_faucet_url(network)
    payee = SuiClientSigner.generate(network=network)
    payer = SuiClientSigner.generate(network=network)

    async with httpx.AsyncClient(timeout=60.0) as http:
        for signer in (payee, payer):
            await request_faucet(http, faucet_url, signer.get_address())

    # Faucet transfers land asynchronously
    await asyncio.sleep(2)

    print(f"\nNetwork: {network}")
    for role, signer in (("Payee (server)", payee), ("Payer (client)", payer)):
        balance = await signer.check_balance(SUI_COIN_TYPE, network)
        print(f"  {role}: {signer.get_address()}")
        print(f"    Balance: {balance / MIST_PER_SUI:.4f} SUI")
        await signer.close()

    env_file.write_text(render_env(network, payee, payer))
    print(f"\nWrote {env_file}")
    print("Next steps:")
    print("  python examples/python/facilitator/main.py")
    print("  python examples/python/server/main.py")
    print("  python examples/python/client/main.py")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Fund example accounts on a Sui network")
    parser.add_argument("--network", default=NetworkConfig.SUI_LOCALNET)
    parser.add_argument("--env-file", type=Path, default=ENV_FILE)
    parser.add_argument("--force", action="store_true", help="overwrite an existing .env")
    args = parser.parse_args()

    setup_logging()
    try:
        return asyncio.run(setup(args.network, args.env_file, args.force))
    except (X402Error, httpx.HTTPError) as e:
        logger.error(f"Setup failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
