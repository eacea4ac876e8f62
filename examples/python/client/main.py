import asyncio
import logging
import sys
from pathlib import Path

import httpx

from x402_sui.clients import wrap_httpx_with_payment
from x402_sui.exceptions import ConfigurationError, SettlementError, X402Error
from x402_sui.logging_config import setup_logging
from x402_sui.settings import ClientSettings
from x402_sui.signers.client import SuiClientSigner

setup_logging(logging.DEBUG)
logger = logging.getLogger(__name__)

ENV_FILE = Path(__file__).parent.parent.parent.parent / ".env"


async def main() -> int:
    try:
        settings = ClientSettings.from_env(str(ENV_FILE))
    except ConfigurationError as e:
        print(f"\nError: {e}")
        print("Run examples/python/scripts/setup_localnet.py or edit .env\n")
        return 1

    signer = SuiClientSigner.from_private_key(
        settings.private_key, network=settings.network, rpc_url=settings.rpc_url
    )
    print("Initializing X402 client...")
    print(f"  Network: {settings.network}")
    print(f"  Resource: {settings.resource_url}")
    print(f"  Client Address: {signer.get_address()}")

    async with httpx.AsyncClient(timeout=60.0) as http_client:
        client = wrap_httpx_with_payment(
            signer,
            http_client=http_client,
            max_value=settings.max_payment,
            rpc_url=settings.rpc_url,
        )
        try:
            response = await client.get(settings.resource_url)
            print(f"\nStatus: {response.status_code}")
            print(f"Response: {response.text[:200]}")

            receipt = await client.wait_for_receipt(response)
            if receipt is not None:
                print("\nPayment Response:")
                print(f"  Transaction: {receipt.transaction_digest}")
                print(f"  Amount: {receipt.amount}")
            elif response.status_code == 200:
                print("\nNo receipt yet; settlement may still be in progress")
        except SettlementError as e:
            print(f"\nSettlement failed: {e}")
            return 1
        except X402Error as e:
            logger.error(f"Payment failed: {e}", exc_info=True)
            return 1
        finally:
            await signer.close()
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
