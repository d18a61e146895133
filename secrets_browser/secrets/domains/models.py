"""Domain models for secret browsing."""
import json
import logging
from dataclasses import dataclass, field
from typing import Dict, Union

from .errors import DecodeError

logger = logging.getLogger(__name__)

MASK = "******"


@dataclass(frozen=True)
class SecretSummary:
    """One entry of the catalog as listed by the store."""
    name: str
    id: str  # ARN or full resource name, unique and stable


@dataclass(frozen=True)
class StructuredValue:
    """Secret whose payload decoded to a JSON object."""
    fields: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class PlainTextValue:
    """Secret whose payload is an opaque string."""
    text: str


SecretValue = Union[StructuredValue, PlainTextValue]


def _field_text(value) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value)


def _decode_structured(raw: str) -> Dict[str, str]:
    """
    Decode a raw payload as a JSON object.

    Raises:
        DecodeError: If the payload is not JSON, or is JSON but not an object
    """
    try:
        decoded = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise DecodeError(str(e))

    if not isinstance(decoded, dict):
        raise DecodeError(f"expected a JSON object, got {type(decoded).__name__}")

    # json.loads keeps object key order
    return {str(key): _field_text(value) for key, value in decoded.items()}


def decode_secret_value(raw: str) -> SecretValue:
    """
    Classify a raw secret payload.

    Args:
        raw: Payload as returned by the store

    Returns:
        StructuredValue if the payload is a JSON object, PlainTextValue otherwise
    """
    try:
        return StructuredValue(fields=_decode_structured(raw))
    except DecodeError as e:
        logger.debug(f"Payload is not a structured record ({e}), treating as plain text")
        return PlainTextValue(text=raw)
