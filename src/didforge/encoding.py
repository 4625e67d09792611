"""
encoding.py — Presentation encodings for byte buffers

Hex (lowercase, 2 chars per byte), standard base64, space-separated bit
strings, and deterministic JSON for hashing and exports. None of these carry
meaning for the pipeline itself: bytes in, bytes out.
"""

from __future__ import annotations
import base64
import binascii
import hashlib
import json
from typing import Any


def to_hex(data: bytes) -> str:
    return bytes(data).hex()


def from_hex(text: str) -> bytes:
    """Parse a hex string, tolerating surrounding whitespace and a ``0x`` prefix."""
    text = text.strip()
    if text[:2].lower() == "0x":
        text = text[2:]
    return bytes.fromhex(text)


def to_base64(data: bytes) -> str:
    return base64.b64encode(bytes(data)).decode("ascii")


def from_base64(text: str) -> bytes:
    try:
        return base64.b64decode(text, validate=True)
    except binascii.Error as exc:
        raise ValueError(f"Invalid base64: {exc}") from exc


def to_bits(data: bytes) -> str:
    """Return ``'00000001 11111111 ...'``: one 8-bit group per byte."""
    return " ".join(format(b, "08b") for b in bytes(data))


def canonical_dumps(obj: Any) -> str:
    """Serialize with sorted keys and no insignificant whitespace."""
    return json.dumps(
        obj,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )


def canonical_hash(obj: Any) -> str:
    """Lowercase hex SHA-256 of the canonical JSON form of ``obj``."""
    return hashlib.sha256(canonical_dumps(obj).encode("utf-8")).hexdigest()
