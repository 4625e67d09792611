"""
pq_dilithium.py — Deterministic Dilithium2 (ML-DSA-44 level) key generation

Backed by ``dilithium-py`` (CRYSTALS-Dilithium round 3 parameter set
Dilithium2: 1312-byte public keys, 2528-byte secret keys, 2420-byte
signatures).

The library's ``keygen()`` takes no seed; it pulls entropy from the
``random_bytes`` provider of the shared ``Dilithium2`` instance (``os.urandom``
by default). To derive a keypair from a 32-byte seed we temporarily replace
that provider with a SHAKE256 stream over the seed (label ``DILITHIUM2-RNG``)
and restore it afterwards.

WARNING: this is a workaround, not a determinism guarantee from any standard.
A different Dilithium implementation, or a different version of this one,
may consume randomness differently and yield different keys for the same
seed. Identifiers built from these keys are experimental.

The library is imported lazily on first use and cached. If it cannot be
loaded only the Dilithium2 path fails (``PrimitiveUnavailableError``); Ed25519
keeps working.
"""

from __future__ import annotations
import logging
import threading
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional, Tuple

from .errors import (
    InvalidInputLengthError,
    InvalidKeySizeError,
    PrimitiveUnavailableError,
    UnderlyingPrimitiveFailureError,
)
from .kdf import SEED_LENGTH, make_deterministic_random_source

logger = logging.getLogger(__name__)

DILITHIUM2_RNG_DOMAIN = "DILITHIUM2-RNG"
PUBLIC_KEY_SIZE = 1312
SECRET_KEY_SIZE = 2528
SIGNATURE_SIZE = 2420

_dilithium2: Optional[Any] = None
_load_lock = threading.Lock()
# Only one randomness substitution may be active in the process at a time.
_substitution_lock = threading.Lock()


def load_dilithium2() -> Any:
    """Return the cached ``dilithium_py`` Dilithium2 instance, importing it once.

    Raises:
        PrimitiveUnavailableError: If ``dilithium-py`` is not installed or
            fails to import.
    """
    global _dilithium2
    if _dilithium2 is not None:
        return _dilithium2
    with _load_lock:
        if _dilithium2 is None:
            try:
                from dilithium_py.dilithium import Dilithium2
            except ImportError as exc:
                raise PrimitiveUnavailableError(
                    "Dilithium2 support requires the 'dilithium-py' package. "
                    f"Install it with: pip install dilithium-py ({exc})"
                ) from exc
            _dilithium2 = Dilithium2
    return _dilithium2


def is_available() -> bool:
    try:
        load_dilithium2()
    except PrimitiveUnavailableError:
        return False
    return True


@contextmanager
def substituted_randomness(scheme: Any, provider: Callable[[int], bytes]) -> Iterator[Any]:
    """Swap ``scheme.random_bytes`` for ``provider`` for the duration of the block.

    The process-wide substitution lock is held for the whole block and the
    original provider is restored even if the block raises.
    """
    with _substitution_lock:
        original = scheme.random_bytes
        scheme.random_bytes = provider
        try:
            yield scheme
        finally:
            scheme.random_bytes = original


def validate_keypair(public_key: bytes, secret_key: bytes) -> bool:
    """True if both keys have the Dilithium2 sizes (1312 / 2528 bytes)."""
    if len(public_key) != PUBLIC_KEY_SIZE:
        logger.warning(
            "Unexpected Dilithium2 public key size: %d, expected %d",
            len(public_key), PUBLIC_KEY_SIZE,
        )
        return False
    if len(secret_key) != SECRET_KEY_SIZE:
        logger.warning(
            "Unexpected Dilithium2 secret key size: %d, expected %d",
            len(secret_key), SECRET_KEY_SIZE,
        )
        return False
    return True


def keypair_from_seed(seed32: bytes) -> Tuple[bytes, bytes]:
    """Derive a Dilithium2 ``(public_key, secret_key)`` from a 32-byte seed.

    Raises:
        InvalidInputLengthError: Seed is not 32 bytes.
        PrimitiveUnavailableError: ``dilithium-py`` cannot be loaded.
        UnderlyingPrimitiveFailureError: The library's key generator raised.
        InvalidKeySizeError: Generated keys do not have the Dilithium2 sizes.
    """
    seed32 = bytes(seed32)
    if len(seed32) != SEED_LENGTH:
        raise InvalidInputLengthError(f"seed must be exactly {SEED_LENGTH} bytes, got {len(seed32)}")

    scheme = load_dilithium2()
    rng = make_deterministic_random_source(seed32, DILITHIUM2_RNG_DOMAIN)

    try:
        with substituted_randomness(scheme, rng):
            public_key, secret_key = scheme.keygen()
    except Exception as exc:
        raise UnderlyingPrimitiveFailureError(f"Dilithium2 keygen failed: {exc}") from exc

    logger.debug("Dilithium2 keygen consumed %d deterministic RNG calls", rng.calls)

    public_key, secret_key = bytes(public_key), bytes(secret_key)
    if not validate_keypair(public_key, secret_key):
        raise InvalidKeySizeError(
            f"got public key {len(public_key)} bytes / secret key {len(secret_key)} bytes, "
            f"expected {PUBLIC_KEY_SIZE} / {SECRET_KEY_SIZE}"
        )
    return public_key, secret_key


def sign(message: bytes, secret_key: bytes) -> bytes:
    """Detached Dilithium2 signature. Determinism across calls is not guaranteed."""
    scheme = load_dilithium2()
    try:
        signature = scheme.sign(secret_key, message)
    except Exception as exc:
        raise UnderlyingPrimitiveFailureError(f"Dilithium2 signing failed: {exc}") from exc
    if not signature:
        raise UnderlyingPrimitiveFailureError("Dilithium2 produced an empty signature")
    return bytes(signature)


def verify(message: bytes, signature: bytes, public_key: bytes) -> bool:
    """Verify a detached Dilithium2 signature; raises whatever the library raises."""
    scheme = load_dilithium2()
    return bool(scheme.verify(public_key, message, signature))
