"""
identity.py — End-to-end identity derivation

seed -> entropy report -> keypair -> did:key, bundled as an ``Identity``.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .did_key import DidKey, build_did_key, verification_method
from .encoding import to_hex
from .entropy import EntropyReport, analyze
from .keys import KeyAlgorithm, KeyPair, derive_keypair
from .seed_source import Seed, SeedProvenance, generate_seed


@dataclass(frozen=True)
class Identity:
    seed: Seed
    entropy: EntropyReport
    keypair: KeyPair
    did_key: DidKey

    @property
    def algorithm(self) -> KeyAlgorithm:
        return self.keypair.algorithm

    def to_dict(self, include_secrets: bool = False) -> Dict[str, Any]:
        """JSON-ready view; seed and private key only with ``include_secrets``."""
        data: Dict[str, Any] = {
            "algorithm": self.algorithm.value,
            "generation_type": self.seed.provenance.value,
            "public_key_hex": to_hex(self.keypair.public_key),
            "did_key": self.did_key.did,
            "experimental": self.did_key.experimental,
            "verificationMethod": verification_method(self.did_key, self.algorithm),
            "entropy": self.entropy.to_dict(),
        }
        if self.seed.metadata is not None:
            data["qrng_metadata"] = self.seed.metadata.to_dict()
        if include_secrets:
            data["seed_hex"] = self.seed.hex()
            data["private_key_hex"] = to_hex(self.keypair.private_key)
        return data


def identity_from_seed(
    seed: Seed,
    algorithm: KeyAlgorithm = KeyAlgorithm.ED25519,
    tag: Optional[bytes] = None,
) -> Identity:
    keypair = derive_keypair(seed.data, algorithm)
    return Identity(
        seed=seed,
        entropy=analyze(seed.data),
        keypair=keypair,
        did_key=build_did_key(keypair.public_key, keypair.algorithm, tag=tag),
    )


def create_identity(
    source: SeedProvenance = SeedProvenance.LOCAL_PRNG,
    algorithm: KeyAlgorithm = KeyAlgorithm.ED25519,
    tag: Optional[bytes] = None,
    **remote_options: Any,
) -> Identity:
    """Generate a fresh seed from ``source`` and derive a full identity from it."""
    seed = generate_seed(source, **remote_options)
    return identity_from_seed(seed, algorithm, tag=tag)
