"""
seed_source.py — 32-byte seed generation (local PRNG vs remote QRNG)

Two provenances:
  - LOCAL_PRNG: the OS CSPRNG via ``secrets``; synchronous, never fails.
  - REMOTE_QRNG: an HTTP(S) call to a quantum random number service that
    answers with JSON ``{"data": [32 uint8 values], ...}``.

A remote failure is always surfaced to the caller. There is no fallback from
QRNG to local randomness: a seed labelled REMOTE_QRNG always came from the
remote service.
"""

from __future__ import annotations
import json
import logging
import secrets
import time
import urllib.error
import urllib.request
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from .encoding import canonical_hash, to_hex
from .errors import (
    InvalidInputLengthError,
    MalformedRemoteDataError,
    TransportFailureError,
)

logger = logging.getLogger(__name__)

SEED_LENGTH = 32

# ANU QRNG: https://qrng.anu.edu.au/
DEFAULT_QRNG_URL = "https://qrng.anu.edu.au/API/jsonI.php?length=32&type=uint8"
DEFAULT_QRNG_SOURCE = "ANU Quantum Random Number Generator"
DEFAULT_TIMEOUT = 10


class SeedProvenance(str, Enum):
    LOCAL_PRNG = "PRNG"
    REMOTE_QRNG = "QRNG"


@dataclass(frozen=True)
class QrngMetadata:
    """Informational metadata for a remote seed. Never used for derivation."""
    verification_id: str
    timestamp: str
    response_time_ms: int
    response_hash: str
    source: str
    endpoint: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "verificationId": self.verification_id,
            "timestamp": self.timestamp,
            "responseTime": self.response_time_ms,
            "responseHash": self.response_hash,
            "source": self.source,
            "endpoint": self.endpoint,
        }


@dataclass(frozen=True)
class Seed:
    data: bytes
    provenance: SeedProvenance
    metadata: Optional[QrngMetadata] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.data, (bytes, bytearray)) or len(self.data) != SEED_LENGTH:
            size = len(self.data) if isinstance(self.data, (bytes, bytearray)) else "non-bytes"
            raise InvalidInputLengthError(f"seed must be exactly {SEED_LENGTH} bytes, got {size}")
        object.__setattr__(self, "data", bytes(self.data))

    def hex(self) -> str:
        return to_hex(self.data)

    def __repr__(self) -> str:
        # Keep seed material out of logs and tracebacks.
        return f"Seed(provenance={self.provenance.value}, data=<{SEED_LENGTH} bytes>)"


def generate_local_seed() -> Seed:
    """Return 32 bytes from the OS CSPRNG."""
    return Seed(secrets.token_bytes(SEED_LENGTH), SeedProvenance.LOCAL_PRNG)


def parse_qrng_payload(body: Any) -> bytes:
    """Extract exactly 32 bytes from a decoded QRNG JSON body.

    Raises:
        MalformedRemoteDataError: If ``data`` is missing, not a list, not 32
            entries long, or holds anything but integers in 0..255.
    """
    if not isinstance(body, dict) or "data" not in body:
        raise MalformedRemoteDataError("response has no 'data' field")

    values = body["data"]
    if not isinstance(values, list):
        raise MalformedRemoteDataError(f"'data' must be a list, got {type(values).__name__}")
    if len(values) != SEED_LENGTH:
        raise MalformedRemoteDataError(f"'data' holds {len(values)} values, expected {SEED_LENGTH}")
    for v in values:
        if isinstance(v, bool) or not isinstance(v, int) or not 0 <= v <= 255:
            raise MalformedRemoteDataError(f"'data' contains a non-byte value: {v!r}")
    return bytes(values)


def fetch_remote_seed(
    url: str = DEFAULT_QRNG_URL,
    timeout: float = DEFAULT_TIMEOUT,
    source: str = DEFAULT_QRNG_SOURCE,
) -> Seed:
    """Fetch a 32-byte seed from a remote QRNG service.

    Args:
        url: Endpoint answering ``{"data": [...32 uint8...]}``.
        timeout: Socket timeout in seconds for the whole request.
        source: Human-readable source name recorded in the metadata.

    Returns:
        Seed: REMOTE_QRNG seed with ``QrngMetadata`` attached.

    Raises:
        TransportFailureError: Connection failure, timeout, or non-2xx status.
        MalformedRemoteDataError: Body is not JSON or lacks 32 valid bytes.
    """
    requested_at = datetime.now(timezone.utc).isoformat()
    started = time.monotonic()
    logger.info("Fetching quantum random data from %s", url)

    req = urllib.request.Request(url, headers={"Accept": "application/json"}, method="GET")
    try:
        with urllib.request.urlopen(req, timeout=timeout) as response:
            status = getattr(response, "status", 200)
            if not 200 <= status < 300:
                raise TransportFailureError(f"{url} returned HTTP {status}")
            raw = response.read()
    except urllib.error.HTTPError as exc:
        logger.error("QRNG endpoint returned HTTP %s", exc.code)
        raise TransportFailureError(f"{url} returned HTTP {exc.code}") from exc
    except (urllib.error.URLError, OSError) as exc:
        logger.error("QRNG endpoint unreachable: %s", exc)
        raise TransportFailureError(f"{url} unreachable: {exc}") from exc

    response_time_ms = int((time.monotonic() - started) * 1000)

    try:
        body = json.loads(raw)
    except (ValueError, UnicodeDecodeError) as exc:
        raise MalformedRemoteDataError(f"response is not valid JSON: {exc}") from exc

    data = parse_qrng_payload(body)
    metadata = QrngMetadata(
        verification_id=str(uuid.uuid4()),
        timestamp=requested_at,
        response_time_ms=response_time_ms,
        response_hash=canonical_hash(body),
        source=source,
        endpoint=url,
    )
    logger.info(
        "Received quantum seed in %d ms (verification id %s)",
        response_time_ms,
        metadata.verification_id,
    )
    return Seed(data, SeedProvenance.REMOTE_QRNG, metadata)


def generate_seed(kind: SeedProvenance | str = SeedProvenance.LOCAL_PRNG, **remote_options: Any) -> Seed:
    """Produce a seed of the requested provenance.

    ``remote_options`` (``url``, ``timeout``, ``source``) are passed to
    :func:`fetch_remote_seed` for REMOTE_QRNG and ignored otherwise.
    """
    kind = SeedProvenance(kind)
    if kind is SeedProvenance.REMOTE_QRNG:
        return fetch_remote_seed(**remote_options)
    return generate_local_seed()
