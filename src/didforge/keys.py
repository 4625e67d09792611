"""
keys.py — Seed -> keypair derivation

    derive_keypair(seed32, KeyAlgorithm.ED25519)     private = seed, public = [a]B
    derive_keypair(seed32, KeyAlgorithm.DILITHIUM2)  via pq_dilithium (SHAKE256-fed keygen)

Ed25519 uses the ``cryptography`` package: a 32-byte Ed25519 private key IS
the RFC 8032 seed, so the seed is assigned byte-for-byte and the public key
is the clamped SHA-512 scalar times the base point.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from . import pq_dilithium
from .encoding import to_hex
from .errors import InvalidInputLengthError, UnderlyingPrimitiveFailureError, UnknownAlgorithmError
from .kdf import SEED_LENGTH

ED25519_PUBLIC_KEY_SIZE = 32
ED25519_SIGNATURE_SIZE = 64


class KeyAlgorithm(str, Enum):
    ED25519 = "Ed25519"
    DILITHIUM2 = "Dilithium2"

    @classmethod
    def parse(cls, name: str) -> "KeyAlgorithm":
        """Case-insensitive lookup: ``'ed25519'``, ``'Dilithium2'``, ..."""
        for member in cls:
            if member.value.lower() == name.strip().lower():
                return member
        raise UnknownAlgorithmError(f"unknown algorithm {name!r}; expected one of {[m.value for m in cls]}")


@dataclass(frozen=True)
class KeyPair:
    algorithm: KeyAlgorithm
    public_key: bytes
    private_key: bytes

    def to_hex_dict(self) -> Dict[str, str]:
        return {
            "algorithm": self.algorithm.value,
            "public_key": to_hex(self.public_key),
            "private_key": to_hex(self.private_key),
        }

    def __repr__(self) -> str:
        return (
            f"KeyPair(algorithm={self.algorithm.value}, "
            f"public_key={to_hex(self.public_key)[:16]}..., private_key=<redacted>)"
        )


def _check_seed(seed32: bytes) -> bytes:
    seed32 = bytes(seed32)
    if len(seed32) != SEED_LENGTH:
        raise InvalidInputLengthError(f"seed must be exactly {SEED_LENGTH} bytes, got {len(seed32)}")
    return seed32


def ed25519_public_key(private_key: bytes) -> bytes:
    """Raw 32-byte Ed25519 public key for a raw 32-byte private key (seed)."""
    try:
        sk = Ed25519PrivateKey.from_private_bytes(bytes(private_key))
    except ValueError as exc:
        raise UnderlyingPrimitiveFailureError(f"Ed25519 rejected the private key: {exc}") from exc
    return sk.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)


def derive_ed25519(seed32: bytes) -> KeyPair:
    seed32 = _check_seed(seed32)
    return KeyPair(
        algorithm=KeyAlgorithm.ED25519,
        public_key=ed25519_public_key(seed32),
        private_key=seed32,
    )


def derive_dilithium2(seed32: bytes) -> KeyPair:
    seed32 = _check_seed(seed32)
    public_key, secret_key = pq_dilithium.keypair_from_seed(seed32)
    return KeyPair(
        algorithm=KeyAlgorithm.DILITHIUM2,
        public_key=public_key,
        private_key=secret_key,
    )


def derive_keypair(seed32: bytes, algorithm: KeyAlgorithm | str = KeyAlgorithm.ED25519) -> KeyPair:
    """Derive a keypair for ``algorithm`` from a 32-byte seed.

    Raises:
        InvalidInputLengthError: Seed is not 32 bytes.
        InvalidKeySizeError: Dilithium2 output failed size validation.
        UnderlyingPrimitiveFailureError: The primitive raised.
        PrimitiveUnavailableError: Dilithium2 requested without ``dilithium-py``.
    """
    if isinstance(algorithm, str) and not isinstance(algorithm, KeyAlgorithm):
        algorithm = KeyAlgorithm.parse(algorithm)
    if algorithm is KeyAlgorithm.DILITHIUM2:
        return derive_dilithium2(seed32)
    return derive_ed25519(seed32)


def validate_keypair(keypair: KeyPair) -> bool:
    """Size check for a derived keypair."""
    if keypair.algorithm is KeyAlgorithm.DILITHIUM2:
        return pq_dilithium.validate_keypair(keypair.public_key, keypair.private_key)
    return (
        len(keypair.public_key) == ED25519_PUBLIC_KEY_SIZE
        and len(keypair.private_key) == SEED_LENGTH
    )


def key_info(algorithm: KeyAlgorithm | str) -> Dict[str, Any]:
    """Static facts about an algorithm, for display."""
    if isinstance(algorithm, str) and not isinstance(algorithm, KeyAlgorithm):
        algorithm = KeyAlgorithm.parse(algorithm)
    if algorithm is KeyAlgorithm.DILITHIUM2:
        return {
            "algorithm": "CRYSTALS-Dilithium2 (ML-DSA-44)",
            "public_key_size": pq_dilithium.PUBLIC_KEY_SIZE,
            "private_key_size": pq_dilithium.SECRET_KEY_SIZE,
            "signature_size": pq_dilithium.SIGNATURE_SIZE,
            "security_level": "NIST Level 2 (equivalent to AES-128)",
            "quantum_resistant": True,
            "deterministic_signatures": False,
            "experimental": True,
        }
    return {
        "algorithm": "Ed25519 (RFC 8032)",
        "public_key_size": ED25519_PUBLIC_KEY_SIZE,
        "private_key_size": SEED_LENGTH,
        "signature_size": ED25519_SIGNATURE_SIZE,
        "security_level": "~128-bit classical",
        "quantum_resistant": False,
        "deterministic_signatures": True,
        "experimental": False,
    }
