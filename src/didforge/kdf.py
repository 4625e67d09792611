"""
kdf.py — Deterministic byte expansion (SHAKE256)

Expands a 32-byte seed into an arbitrarily long, domain-separated byte
stream:

    expand(seed, n, label) = SHAKE256(seed || utf8(label))[:n]

``DeterministicRandomSource`` wraps that stream in a cursor so it can stand
in for an ``os.urandom``-style provider expected by key generators that take
no seed argument. When the pool runs dry it is extended with a fresh
sub-label ``f"{label}-EXPAND-{pool_length}"`` per growth step. The pool only
grows, so no two steps share a label and no step repeats an earlier one.
"""

from __future__ import annotations
import hashlib

from .errors import InvalidInputLengthError

SEED_LENGTH = 32
DEFAULT_POOL_SIZE = 4096


def _check_seed(seed32: bytes) -> bytes:
    seed32 = bytes(seed32)
    if len(seed32) != SEED_LENGTH:
        raise InvalidInputLengthError(
            f"seed must be exactly {SEED_LENGTH} bytes, got {len(seed32)}"
        )
    return seed32


def expand(seed32: bytes, output_length: int, domain_label: str) -> bytes:
    """Expand ``seed32`` to ``output_length`` bytes under ``domain_label``.

    Identical arguments always produce identical output; changing any of the
    three changes it. A longer ``output_length`` with the same seed and label
    extends the shorter output (SHAKE256 is prefix-consistent).

    Raises:
        InvalidInputLengthError: If the seed is not 32 bytes or the requested
            length is negative.
    """
    seed32 = _check_seed(seed32)
    if output_length < 0:
        raise InvalidInputLengthError(f"output length must be >= 0, got {output_length}")

    xof = hashlib.shake_256()
    xof.update(seed32)
    xof.update(domain_label.encode("utf-8"))
    return xof.digest(output_length)


class DeterministicRandomSource:
    """Stateful cursor over the expanded stream of a seed.

    Successive ``take(n)`` calls return non-overlapping slices. Instances are
    callable, so ``source(n)`` can replace ``os.urandom(n)``.
    """

    def __init__(self, seed32: bytes, domain_label: str, pool_size: int = DEFAULT_POOL_SIZE):
        if pool_size <= 0:
            raise InvalidInputLengthError(f"pool size must be positive, got {pool_size}")
        self._seed = _check_seed(seed32)
        self.domain_label = domain_label
        self._pool = bytearray(expand(self._seed, pool_size, domain_label))
        self.offset = 0
        self.calls = 0

    @property
    def pool_size(self) -> int:
        return len(self._pool)

    def _grow(self) -> None:
        extension = expand(
            self._seed,
            len(self._pool) * 2,
            f"{self.domain_label}-EXPAND-{len(self._pool)}",
        )
        self._pool.extend(extension)

    def take(self, n: int) -> bytes:
        if n < 0:
            raise InvalidInputLengthError(f"cannot take a negative number of bytes ({n})")
        while self.offset + n > len(self._pool):
            self._grow()
        chunk = bytes(self._pool[self.offset:self.offset + n])
        self.offset += n
        self.calls += 1
        return chunk

    __call__ = take


def make_deterministic_random_source(
    seed32: bytes,
    domain_label: str,
    pool_size: int = DEFAULT_POOL_SIZE,
) -> DeterministicRandomSource:
    """Build a ``DeterministicRandomSource`` over ``expand(seed32, ..., domain_label)``."""
    return DeterministicRandomSource(seed32, domain_label, pool_size=pool_size)
