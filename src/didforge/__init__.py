"""didforge public API.

Seed -> keypair -> did:key derivation with entropy scoring.

Example:
    from didforge import create_identity, KeyAlgorithm

    identity = create_identity(algorithm=KeyAlgorithm.ED25519)
    print(identity.did_key.did)
    print(identity.entropy.label)
"""

from .errors import (
    DidForgeError,
    InvalidInputLengthError,
    UnknownAlgorithmError,
    TransportFailureError,
    MalformedRemoteDataError,
    InvalidKeySizeError,
    UnderlyingPrimitiveFailureError,
    PrimitiveUnavailableError,
    DecodeFormatError,
    AlgorithmTagError,
    IdentityStoreError,
)
from .seed_source import (
    Seed,
    SeedProvenance,
    QrngMetadata,
    generate_seed,
    generate_local_seed,
    fetch_remote_seed,
)
from .entropy import EntropyReport, analyze
from .kdf import expand, DeterministicRandomSource, make_deterministic_random_source
from .keys import KeyAlgorithm, KeyPair, derive_keypair, validate_keypair, key_info
from .did_key import DidKey, build_did_key, encode, decode, register_algorithm_tag
from .signing import SelfTestResult, sign, verify, self_test
from .identity import Identity, create_identity, identity_from_seed
from .identity_store import IdentityRecord, IdentityStore, build_identity_record

__version__ = "0.1.0"

__all__ = [
    "DidForgeError",
    "InvalidInputLengthError",
    "UnknownAlgorithmError",
    "TransportFailureError",
    "MalformedRemoteDataError",
    "InvalidKeySizeError",
    "UnderlyingPrimitiveFailureError",
    "PrimitiveUnavailableError",
    "DecodeFormatError",
    "AlgorithmTagError",
    "IdentityStoreError",
    "Seed",
    "SeedProvenance",
    "QrngMetadata",
    "generate_seed",
    "generate_local_seed",
    "fetch_remote_seed",
    "EntropyReport",
    "analyze",
    "expand",
    "DeterministicRandomSource",
    "make_deterministic_random_source",
    "KeyAlgorithm",
    "KeyPair",
    "derive_keypair",
    "validate_keypair",
    "key_info",
    "DidKey",
    "build_did_key",
    "encode",
    "decode",
    "register_algorithm_tag",
    "SelfTestResult",
    "sign",
    "verify",
    "self_test",
    "Identity",
    "create_identity",
    "identity_from_seed",
    "IdentityRecord",
    "IdentityStore",
    "build_identity_record",
    "__version__",
]
