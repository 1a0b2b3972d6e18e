"""URL fragment codec for sync payloads.

Encoding is canonical JSON (aliases, sorted keys, compact separators, None
fields dropped) compressed with zlib and wrapped in URL-safe base64 without
padding. Decoding reverses each step and validates the result against the
payload schema.

``encode_payload``/``decode_payload`` raise ``CodecError``. ``compress`` and
``decompress`` are the lenient forms used by the sync protocol: they log the
failure and return None so a corrupted link never crashes the caller.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import zlib
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Tuple, Union

from pydantic import ValidationError as PydanticValidationError

from ..config import get_settings
from ..errors import CodecError
from ..metrics import CODEC_OPERATIONS, PAYLOAD_SIZE
from ..rules.core import canonical_json
from .payloads import (
    URL_PAYLOAD_ADAPTER,
    DeltaPayload,
    FullStatePayload,
    ResyncRequestPayload,
    UrlPayload,
)

logger = logging.getLogger(__name__)

__all__ = [
    "CompressionStats",
    "MAX_DECODED_BYTES",
    "compress",
    "decode_payload",
    "decompress",
    "encode_payload",
    "get_compression_stats",
    "payload_to_json",
]

# Upper bound on the inflated JSON; a 3x3 game never comes close.
MAX_DECODED_BYTES = 1 << 20

PayloadLike = Union[UrlPayload, Mapping[str, Any]]
_PAYLOAD_MODELS = (FullStatePayload, DeltaPayload, ResyncRequestPayload)


def _coerce(payload: PayloadLike) -> UrlPayload:
    """Return ``payload`` as one of the payload models, validating anything else."""
    if isinstance(payload, _PAYLOAD_MODELS):
        return payload
    if isinstance(payload, Mapping):
        payload = dict(payload)
    return URL_PAYLOAD_ADAPTER.validate_python(payload)


def payload_to_json(payload: PayloadLike) -> str:
    """Canonical JSON text of ``payload`` in wire (camelCase) form."""
    data = URL_PAYLOAD_ADAPTER.dump_python(
        _coerce(payload), mode="json", by_alias=True, exclude_none=True
    )
    return canonical_json(data)


def _encode(payload: PayloadLike, level: Optional[int]) -> Tuple[UrlPayload, str]:
    if level is None:
        level = get_settings().compression_level
    try:
        model = _coerce(payload)
        text = payload_to_json(model)
    except (PydanticValidationError, TypeError, ValueError) as exc:
        raise CodecError(f"Payload could not be serialized: {exc}", stage="serialize") from exc

    compressed = zlib.compress(text.encode("utf-8"), level)
    return model, base64.urlsafe_b64encode(compressed).decode("ascii").rstrip("=")


def encode_payload(payload: PayloadLike, level: Optional[int] = None) -> str:
    """Encode ``payload`` into a URL fragment (without the leading ``#``)."""
    return _encode(payload, level)[1]


def decode_payload(fragment: str) -> UrlPayload:
    """Decode a URL fragment produced by ``encode_payload``.

    A leading ``#`` and surrounding whitespace are ignored.
    """
    if not isinstance(fragment, str):
        raise CodecError(f"Fragment must be a string, got {type(fragment).__name__}", stage="input")
    text = fragment.strip()
    if text.startswith("#"):
        text = text[1:].strip()
    if not text:
        raise CodecError("Empty URL fragment", stage="input")

    padded = text + "=" * (-len(text) % 4)
    try:
        raw = base64.b64decode(padded.encode("ascii"), altchars=b"-_", validate=True)
    except (binascii.Error, UnicodeEncodeError, ValueError) as exc:
        raise CodecError(f"Invalid base64 data: {exc}", stage="base64") from exc

    inflater = zlib.decompressobj()
    try:
        inflated = inflater.decompress(raw, MAX_DECODED_BYTES)
    except zlib.error as exc:
        raise CodecError(f"Invalid compressed data: {exc}", stage="decompress") from exc
    if inflater.unconsumed_tail:
        raise CodecError(
            f"Decoded payload exceeds {MAX_DECODED_BYTES} bytes", stage="decompress"
        )
    if not inflater.eof:
        raise CodecError("Compressed data is truncated", stage="decompress")

    try:
        data = json.loads(inflated.decode("utf-8"))
    except (ValueError, RecursionError) as exc:
        raise CodecError(f"Invalid JSON: {exc}", stage="json") from exc

    try:
        return URL_PAYLOAD_ADAPTER.validate_python(data)
    except PydanticValidationError as exc:
        raise CodecError(
            f"Payload failed validation with {exc.error_count()} error(s)",
            stage="validate",
            context={"errors": exc.errors(include_url=False)[:3]},
        ) from exc


def compress(payload: PayloadLike) -> Optional[str]:
    """Encode ``payload``; returns None instead of raising on failure."""
    try:
        model, fragment = _encode(payload, None)
    except CodecError as exc:
        CODEC_OPERATIONS.labels(operation="compress", outcome="error").inc()
        logger.warning(f"Failed to compress payload: {exc}")
        return None

    CODEC_OPERATIONS.labels(operation="compress", outcome="ok").inc()
    PAYLOAD_SIZE.labels(payload_type=model.type).observe(len(fragment))
    return fragment


def decompress(fragment: str) -> Optional[UrlPayload]:
    """Decode ``fragment``; returns None for corrupt or invalid input."""
    try:
        payload = decode_payload(fragment)
    except CodecError as exc:
        CODEC_OPERATIONS.labels(operation="decompress", outcome="error").inc()
        logger.warning(f"Failed to decompress payload: {exc}")
        return None

    CODEC_OPERATIONS.labels(operation="decompress", outcome="ok").inc()
    return payload


@dataclass
class CompressionStats:
    original_size: int
    compressed_size: int
    ratio: float

    @property
    def savings_percent(self) -> float:
        if self.original_size == 0:
            return 0.0
        return round(100.0 * (1.0 - self.compressed_size / self.original_size), 1)


def get_compression_stats(payload: PayloadLike) -> CompressionStats:
    """Sizes of the JSON text and the encoded fragment for ``payload``."""
    original = len(payload_to_json(payload))
    encoded = len(encode_payload(payload))
    ratio = encoded / original if original else 0.0
    return CompressionStats(
        original_size=original, compressed_size=encoded, ratio=round(ratio, 3)
    )
