"""
Encoding utilities for x402 protocol
"""

import base64
import json
from typing import Any, TypeVar

from pydantic import BaseModel

from x402_sui.types import PaymentRequired, PaymentRequirements, X402_VERSION

T = TypeVar("T", bound=BaseModel)


def encode_base64(data: str | bytes) -> str:
    """Encode data to base64"""
    if isinstance(data, str):
        data = data.encode("utf-8")
    return base64.b64encode(data).decode("utf-8")


def decode_base64(data: str) -> str:
    """Decode base64 to string"""
    return base64.b64decode(data, validate=True).decode("utf-8")


def decode_base64_bytes(data: str) -> bytes:
    """Decode base64 to bytes"""
    return base64.b64decode(data, validate=True)


def to_json_dict(model: BaseModel) -> dict[str, Any]:
    """Dump a protocol model the way it travels on the wire"""
    return model.model_dump(mode="json", by_alias=True, exclude_none=True)


def encode_payment_payload(payload: BaseModel | dict[str, Any]) -> str:
    """Encode payment payload (or receipt) to base64 for HTTP header"""
    if isinstance(payload, BaseModel):
        json_str = json.dumps(to_json_dict(payload))
    else:
        json_str = json.dumps(payload)
    return encode_base64(json_str)


def decode_payment_payload(encoded: str, model_class: type[T]) -> T:
    """Decode payment payload (or receipt) from base64 HTTP header.

    Raises:
        ValueError: header is not base64, not UTF-8 JSON, or does not match the model
    """
    json_str = decode_base64(encoded)
    data = json.loads(json_str)
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
    return model_class.model_validate(data)


def encode_payment_required(
    accepts: list[PaymentRequirements] | None,
    error: str | None = None,
) -> dict[str, Any]:
    """Build the JSON body of a 402 challenge; ``accepts`` is omitted when None"""
    return to_json_dict(PaymentRequired(x402Version=X402_VERSION, error=error, accepts=accepts))


def decode_payment_required(body: Any) -> list[PaymentRequirements]:
    """Extract the acceptable requirements from a 402 challenge body.

    Returns an empty list when the envelope carries no ``accepts``.

    Raises:
        ValueError: body is not a challenge envelope
    """
    if not isinstance(body, dict):
        raise ValueError("Payment challenge body must be a JSON object")
    payment_required = PaymentRequired.model_validate(body)
    return list(payment_required.accepts or [])
