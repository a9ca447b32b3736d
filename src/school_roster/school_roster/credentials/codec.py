"""Scan payload encoding.

The display encoding is base64 over compact JSON, which survives QR
rendering and camera decoding untouched. Raw JSON is accepted as a fallback
for scanners that hand over the plain payload.
"""
from __future__ import annotations

import base64
import binascii
import json
from typing import Any

from ..core.exceptions import InvalidCredentialError
from .model import ScanPayload


def encode_payload(payload: ScanPayload) -> str:
    text = json.dumps(payload.to_dict(), separators=(",", ":"), sort_keys=True)
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def _decode_display(raw: str) -> Any:
    compact = "".join(raw.split())
    data = base64.b64decode(compact, validate=True)
    return json.loads(data.decode("utf-8"))


def _decode_plain(raw: str) -> Any:
    return json.loads(raw)


def decode_payload(raw: str) -> ScanPayload:
    """Decode a scanned blob, trying the display encoding before plain JSON."""

    text = (raw or "").strip()
    if not text:
        raise InvalidCredentialError("Empty credential payload")

    try:
        data = _decode_display(text)
    except (binascii.Error, ValueError):
        try:
            data = _decode_plain(text)
        except ValueError:
            raise InvalidCredentialError("Unable to decode credential payload")

    return ScanPayload.from_dict(data)
