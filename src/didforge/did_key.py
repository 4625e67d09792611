"""
did_key.py — did:key identifiers

    did:key:z<base58btc(tag || public_key)>

``tag`` is a 2-byte multicodec prefix:

    Ed25519     0xED 0x01   registered multicodec (ed25519-pub, varint)
    Dilithium2  0x12 0x34   EXPERIMENTAL placeholder, no registered codec yet

Identifiers carrying the placeholder tag are not interoperable with other
did:key implementations. The placeholder can be replaced with
``register_algorithm_tag`` once a codec is assigned.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import base58

from .errors import AlgorithmTagError, DecodeFormatError, InvalidInputLengthError
from .keys import KeyAlgorithm

DID_KEY_PREFIX = "did:key:"
MULTIBASE_BASE58BTC = "z"
TAG_LENGTH = 2

ED25519_TAG = b"\xed\x01"
DILITHIUM2_EXPERIMENTAL_TAG = b"\x12\x34"

_algorithm_tags: Dict[KeyAlgorithm, bytes] = {
    KeyAlgorithm.ED25519: ED25519_TAG,
    KeyAlgorithm.DILITHIUM2: DILITHIUM2_EXPERIMENTAL_TAG,
}
_experimental = {KeyAlgorithm.DILITHIUM2}

_VERIFICATION_METHOD_TYPES = {
    KeyAlgorithm.ED25519: "Ed25519VerificationKey2020",
    KeyAlgorithm.DILITHIUM2: "Dilithium2VerificationKey2023",
}


@dataclass(frozen=True)
class DidKey:
    did: str
    multibase: str
    verification_method_id: str
    experimental: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "did": self.did,
            "multibase": self.multibase,
            "verificationMethodId": self.verification_method_id,
            "experimental": self.experimental,
        }


def _check_tag(tag: bytes) -> bytes:
    tag = bytes(tag)
    if len(tag) != TAG_LENGTH:
        raise AlgorithmTagError(f"algorithm tag must be {TAG_LENGTH} bytes, got {len(tag)}")
    return tag


def tag_for(algorithm: KeyAlgorithm) -> bytes:
    return _algorithm_tags[algorithm]


def algorithm_for_tag(tag: bytes) -> Optional[KeyAlgorithm]:
    for algorithm, registered in _algorithm_tags.items():
        if registered == tag:
            return algorithm
    return None


def is_experimental(algorithm: KeyAlgorithm) -> bool:
    return algorithm in _experimental


def register_algorithm_tag(algorithm: KeyAlgorithm, tag: bytes, experimental: bool = True) -> None:
    """Replace the tag used for a non-standard algorithm.

    The registered Ed25519 codec is fixed and cannot be overridden.
    """
    tag = _check_tag(tag)
    if algorithm is KeyAlgorithm.ED25519:
        raise AlgorithmTagError("the Ed25519 multicodec (0xED01) is registered and cannot be changed")
    owner = algorithm_for_tag(tag)
    if owner is not None and owner is not algorithm:
        raise AlgorithmTagError(f"tag 0x{tag.hex()} is already used by {owner.value}")
    _algorithm_tags[algorithm] = tag
    if experimental:
        _experimental.add(algorithm)
    else:
        _experimental.discard(algorithm)


def encode(public_key: bytes, algorithm_tag: bytes) -> str:
    """Build ``did:key:z...`` from a raw public key and a 2-byte tag."""
    tag = _check_tag(algorithm_tag)
    public_key = bytes(public_key)
    if not public_key:
        raise InvalidInputLengthError("public key must not be empty")
    multibase = MULTIBASE_BASE58BTC + base58.b58encode(tag + public_key).decode("ascii")
    return DID_KEY_PREFIX + multibase


def decode(identifier: str) -> Tuple[bytes, bytes]:
    """Split a ``did:key`` identifier into ``(tag, public_key)``.

    Raises:
        DecodeFormatError: Wrong prefix, invalid base58, or a payload shorter
            than tag + 1 byte.
    """
    prefix = DID_KEY_PREFIX + MULTIBASE_BASE58BTC
    if not isinstance(identifier, str) or not identifier.startswith(prefix):
        raise DecodeFormatError(f"identifier must start with '{prefix}'")

    encoded = identifier[len(prefix):]
    try:
        payload = base58.b58decode(encoded)
    except ValueError as exc:
        raise DecodeFormatError(f"invalid base58btc payload: {exc}") from exc

    if len(payload) < TAG_LENGTH + 1:
        raise DecodeFormatError(
            f"payload is {len(payload)} bytes; need a {TAG_LENGTH}-byte tag and key material"
        )
    return payload[:TAG_LENGTH], payload[TAG_LENGTH:]


def build_did_key(
    public_key: bytes,
    algorithm: KeyAlgorithm,
    tag: Optional[bytes] = None,
) -> DidKey:
    """Encode ``public_key`` and wrap it with its multibase and verification method id.

    ``tag`` overrides the registered tag for this call only. 0xED01 belongs to
    Ed25519 alone, in both directions.
    """
    if tag is not None:
        tag = _check_tag(tag)
        if algorithm is KeyAlgorithm.ED25519 and tag != ED25519_TAG:
            raise AlgorithmTagError(
                f"Ed25519 keys are always tagged 0xed01, not 0x{tag.hex()}"
            )
        if algorithm is not KeyAlgorithm.ED25519 and tag == ED25519_TAG:
            raise AlgorithmTagError(f"tag 0xed01 is reserved for Ed25519, not {algorithm.value}")
    did = encode(public_key, tag if tag is not None else tag_for(algorithm))
    multibase = did[len(DID_KEY_PREFIX):]
    experimental = is_experimental(algorithm) or (tag is not None and tag != ED25519_TAG)
    return DidKey(
        did=did,
        multibase=multibase,
        verification_method_id=f"{did}#{multibase}",
        experimental=experimental,
    )


def public_key_from_did(identifier: str, algorithm: Optional[KeyAlgorithm] = None) -> bytes:
    """Decode and, if ``algorithm`` is given, check the tag matches it."""
    tag, public_key = decode(identifier)
    if algorithm is not None and tag != tag_for(algorithm):
        raise DecodeFormatError(
            f"tag 0x{tag.hex()} does not match {algorithm.value} (0x{tag_for(algorithm).hex()})"
        )
    return public_key


def verification_method(did_key: DidKey, algorithm: KeyAlgorithm) -> Dict[str, str]:
    """DID document verification method entry for a did:key."""
    return {
        "id": did_key.verification_method_id,
        "type": _VERIFICATION_METHOD_TYPES[algorithm],
        "controller": did_key.did,
        "publicKeyMultibase": did_key.multibase,
    }
