"""
signing.py — Sign / verify round trips for Ed25519 and Dilithium2

``verify`` never raises: a malformed key, a truncated signature and a
crashing primitive all come back as ``False``. ``sign`` raises on empty input
and wraps primitive errors in ``UnderlyingPrimitiveFailureError``.

When ``algorithm`` is omitted it is inferred from the key size (32-byte
Ed25519 keys, 2528/1312-byte Dilithium2 keys).

Ed25519 signatures are deterministic. Dilithium2 signatures must be treated
as non-deterministic; only their verification is.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Optional, Union

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)

from . import pq_dilithium
from .encoding import to_hex
from .errors import InvalidInputLengthError, UnderlyingPrimitiveFailureError
from .keys import KeyAlgorithm

logger = logging.getLogger(__name__)

Message = Union[bytes, str]


@dataclass
class SelfTestResult:
    success: bool
    signature: Optional[bytes] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "signature": to_hex(self.signature) if self.signature is not None else None,
            "error": self.error,
        }


def _message_bytes(message: Message) -> bytes:
    if isinstance(message, str):
        return message.encode("utf-8")
    return bytes(message)


def _infer_from_private(private_key: bytes) -> KeyAlgorithm:
    if len(private_key) == pq_dilithium.SECRET_KEY_SIZE:
        return KeyAlgorithm.DILITHIUM2
    return KeyAlgorithm.ED25519


def _infer_from_public(public_key: bytes) -> KeyAlgorithm:
    if len(public_key) == pq_dilithium.PUBLIC_KEY_SIZE:
        return KeyAlgorithm.DILITHIUM2
    return KeyAlgorithm.ED25519


def sign(
    message: Message,
    private_key: bytes,
    algorithm: Optional[KeyAlgorithm] = None,
) -> bytes:
    """Produce a detached signature over ``message``.

    Raises:
        InvalidInputLengthError: Empty message or empty key.
        UnderlyingPrimitiveFailureError: The primitive rejected the key or failed.
    """
    data = _message_bytes(message)
    private_key = bytes(private_key or b"")
    if not data:
        raise InvalidInputLengthError("message must not be empty")
    if not private_key:
        raise InvalidInputLengthError("private key must not be empty")

    algorithm = algorithm or _infer_from_private(private_key)
    logger.debug("Signing %d-byte message with %s", len(data), algorithm.value)

    if algorithm is KeyAlgorithm.DILITHIUM2:
        return pq_dilithium.sign(data, private_key)

    try:
        return Ed25519PrivateKey.from_private_bytes(private_key).sign(data)
    except ValueError as exc:
        raise UnderlyingPrimitiveFailureError(f"Ed25519 signing failed: {exc}") from exc


def verify(
    message: Message,
    signature: bytes,
    public_key: bytes,
    algorithm: Optional[KeyAlgorithm] = None,
) -> bool:
    """True only if ``signature`` is a valid signature of ``message`` under ``public_key``."""
    try:
        data = _message_bytes(message)
        signature = bytes(signature)
        public_key = bytes(public_key)
        if not data or not signature or not public_key:
            return False
        algorithm = algorithm or _infer_from_public(public_key)

        if algorithm is KeyAlgorithm.DILITHIUM2:
            return pq_dilithium.verify(data, signature, public_key)

        Ed25519PublicKey.from_public_bytes(public_key).verify(signature, data)
        return True
    except InvalidSignature:
        return False
    except Exception as exc:
        # Any crash in verification reads as "not verified" to the caller.
        logger.debug("Verification error treated as failure: %s", exc)
        return False


def self_test(
    message: Message,
    private_key: bytes,
    public_key: bytes,
    algorithm: Optional[KeyAlgorithm] = None,
) -> SelfTestResult:
    """Sign then immediately verify; report instead of raising."""
    try:
        signature = sign(message, private_key, algorithm)
    except Exception as exc:
        return SelfTestResult(success=False, error=str(exc))

    if not verify(message, signature, public_key, algorithm):
        return SelfTestResult(
            success=False,
            signature=signature,
            error="freshly produced signature failed verification",
        )
    return SelfTestResult(success=True, signature=signature)
