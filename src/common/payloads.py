# ABOUTME: Decodes raw client payloads into validated telemetry and test-log schemas.
# ABOUTME: Tolerates uncompressed bytes from older clients by falling back on gzip failure.

from __future__ import annotations

import gzip
import json
import logging
import zlib
from enum import Enum
from typing import Dict, Type, Union

from pydantic import ValidationError

from .errors import PayloadError
from .schemas import (
    ClientModel,
    DigitSpanRaw,
    KeyTelemetry,
    PointerTelemetry,
    SustainedAttentionRaw,
    TrailMakingRaw,
)

logger = logging.getLogger(__name__)


class PayloadKind(str, Enum):
    POINTER = "pointer"
    KEYBOARD = "keyboard"
    SUSTAINED_ATTENTION = "sustained_attention"
    TRAIL_MAKING = "trail_making"
    DIGIT_SPAN = "digit_span"


RawPayload = Union[PointerTelemetry, KeyTelemetry, SustainedAttentionRaw, TrailMakingRaw, DigitSpanRaw]

PAYLOAD_SCHEMAS: Dict[PayloadKind, Type[ClientModel]] = {
    PayloadKind.POINTER: PointerTelemetry,
    PayloadKind.KEYBOARD: KeyTelemetry,
    PayloadKind.SUSTAINED_ATTENTION: SustainedAttentionRaw,
    PayloadKind.TRAIL_MAKING: TrailMakingRaw,
    PayloadKind.DIGIT_SPAN: DigitSpanRaw,
}


def compress(data: bytes) -> bytes:
    return gzip.compress(data)


def normalize(data: bytes) -> bytes:
    """
    Return the decompressed payload, or the input unchanged when it is not gzip.

    Never raises: corrupt bytes surface later as a parse failure.
    """

    if not data:
        return b""
    try:
        return gzip.decompress(data)
    except (OSError, EOFError, zlib.error) as exc:
        logger.warning("Payload decompression failed, using raw bytes: %s", exc)
        return data


def decode_payload(data: bytes, kind: Union[PayloadKind, str]) -> RawPayload:
    """
    Normalize the payload bytes and validate them against the schema for ``kind``.
    """

    try:
        kind = PayloadKind(kind)
    except ValueError as exc:
        expected = ", ".join(k.value for k in PayloadKind)
        raise ValueError(f"Unsupported payload kind '{kind}'. Expected one of: {expected}.") from exc

    raw = normalize(data)
    if not raw.strip():
        raise PayloadError(kind.value, "payload is empty")

    try:
        document = json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise PayloadError(kind.value, f"not valid JSON ({exc})") from exc

    if not isinstance(document, dict):
        raise PayloadError(kind.value, f"expected a JSON object, got {type(document).__name__}")

    schema = PAYLOAD_SCHEMAS[kind]
    try:
        return schema.model_validate(document)
    except ValidationError as exc:
        raise PayloadError(kind.value, _summarize_validation_error(exc)) from exc


def _summarize_validation_error(exc: ValidationError) -> str:
    errors = exc.errors()
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    summary = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    if len(errors) > 1:
        summary += f" (+{len(errors) - 1} more)"
    return summary
