"""
Facilitator Main Entry Point

Starts the facilitator service (/health, /supported, /verify, /settle).
Reads SUI_RPC_URL, SUI_NETWORK and PORT from the environment or ``.env``.
"""

from pathlib import Path

from dotenv import load_dotenv

from x402_sui.facilitator.app import main

load_dotenv(Path(__file__).parent / ".env")
load_dotenv(Path(__file__).parent.parent.parent.parent / ".env")

if __name__ == "__main__":
    main()
