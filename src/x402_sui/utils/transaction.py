"""
Sui transaction helpers: digests, intent messages and effect parsing.
"""

import hashlib
from typing import Any

import base58

# IntentScope::TransactionData, IntentVersion::V0, AppId::Sui
TRANSACTION_INTENT = bytes([0, 0, 0])

TRANSACTION_DATA_SALT = b"TransactionData::"


def blake2b_256(data: bytes) -> bytes:
    return hashlib.blake2b(data, digest_size=32).digest()


def intent_message_digest(tx_bytes: bytes) -> bytes:
    """Digest that a Sui account signs for a transaction"""
    return blake2b_256(TRANSACTION_INTENT + tx_bytes)


def transaction_digest(tx_bytes: bytes) -> str:
    """Base58 transaction digest, as reported by the ledger after execution"""
    return base58.b58encode(blake2b_256(TRANSACTION_DATA_SALT + tx_bytes)).decode("ascii")


def execution_status(effects: dict[str, Any] | None) -> tuple[bool, str | None]:
    """Read ``effects.status`` from a dry run or execution result.

    Returns:
        (succeeded, error message reported by the ledger)
    """
    status = (effects or {}).get("status") or {}
    if status.get("status") == "success":
        return True, None
    return False, status.get("error") or "Unknown error"


def normalize_address(address: str) -> str:
    """Lowercase, 0x-prefixed, zero-padded 32-byte hex address"""
    value = address.lower()
    if value.startswith("0x"):
        value = value[2:]
    return "0x" + value.rjust(64, "0")


def normalize_coin_type(coin_type: str) -> str:
    """Coin type with its package address in long form (0x2::sui::SUI -> 0x00..02::sui::SUI)"""
    address, sep, rest = coin_type.partition("::")
    if not sep:
        return coin_type
    return normalize_address(address) + sep + rest


def balance_change_for(
    balance_changes: list[dict[str, Any]] | None,
    owner: str,
    coin_type: str,
) -> int:
    """Net balance change of ``coin_type`` for an address owner in a dry run"""
    target = normalize_address(owner)
    wanted = normalize_coin_type(coin_type)
    total = 0
    for change in balance_changes or []:
        change_owner = change.get("owner")
        if not isinstance(change_owner, dict):
            continue
        address = change_owner.get("AddressOwner")
        if address is None or normalize_address(address) != target:
            continue
        if normalize_coin_type(change.get("coinType", "")) != wanted:
            continue
        total += int(change.get("amount", "0"))
    return total
