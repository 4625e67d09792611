"""
test_did_key.py — did:key encoding, decoding and the tag registry
"""

import base58
import pytest

from didforge import did_key
from didforge.did_key import (
    DILITHIUM2_EXPERIMENTAL_TAG,
    ED25519_TAG,
    algorithm_for_tag,
    build_did_key,
    decode,
    encode,
    public_key_from_did,
    register_algorithm_tag,
    verification_method,
)
from didforge.errors import AlgorithmTagError, DecodeFormatError, DidForgeError, InvalidInputLengthError
from didforge.keys import KeyAlgorithm, derive_ed25519

ED_PUB = bytes.fromhex("d75a980182b10ab7d54bfed3c964073a0ee172f3daa62325af021a68f707511a")


@pytest.fixture
def isolated_registry(monkeypatch):
    monkeypatch.setattr(did_key, "_algorithm_tags", dict(did_key._algorithm_tags))
    monkeypatch.setattr(did_key, "_experimental", set(did_key._experimental))


def test_ed25519_did_shape():
    did = encode(ED_PUB, ED25519_TAG)
    # 0xED01 + 32-byte key always renders as z6Mk...
    assert did.startswith("did:key:z6Mk")
    assert base58.b58decode(did[len("did:key:z"):]) == ED25519_TAG + ED_PUB


def test_round_trip_ed25519():
    assert decode(encode(ED_PUB, ED25519_TAG)) == (ED25519_TAG, ED_PUB)


def test_round_trip_dilithium_sized_key():
    pk = bytes(range(256)) * 5 + bytes(32)
    assert len(pk) == 1312
    assert decode(encode(pk, DILITHIUM2_EXPERIMENTAL_TAG)) == (DILITHIUM2_EXPERIMENTAL_TAG, pk)


def test_round_trip_leading_zero_key():
    pk = b"\x00\x00\x01"
    assert decode(encode(pk, ED25519_TAG)) == (ED25519_TAG, pk)


@pytest.mark.parametrize("bad", [
    "",
    "did:key:",
    "did:web:example.com",
    "did:key:f0123",
    "z6MkhaXgBZDvotDkL5257faiztiGiC2QtKLGpbnnEGta2doK",
    "DID:KEY:z6Mk",
])
def test_decode_rejects_wrong_prefix(bad):
    with pytest.raises(DecodeFormatError):
        decode(bad)


def test_decode_rejects_non_string():
    with pytest.raises(DecodeFormatError):
        decode(None)


def test_decode_rejects_invalid_base58():
    # 0, O, I and l are not in the base58btc alphabet
    with pytest.raises(DecodeFormatError):
        decode("did:key:z0OIl")


def test_decode_rejects_short_payload():
    short = "did:key:z" + base58.b58encode(ED25519_TAG).decode("ascii")
    with pytest.raises(DecodeFormatError):
        decode(short)
    with pytest.raises(DecodeFormatError):
        decode("did:key:z")


def test_minimal_payload_accepted():
    minimal = "did:key:z" + base58.b58encode(ED25519_TAG + b"\x01").decode("ascii")
    assert decode(minimal) == (ED25519_TAG, b"\x01")


def test_encode_rejects_bad_tag_and_empty_key():
    with pytest.raises(AlgorithmTagError):
        encode(ED_PUB, b"\xed")
    with pytest.raises(InvalidInputLengthError):
        encode(b"", ED25519_TAG)


def test_build_did_key_fields():
    kp = derive_ed25519(bytes.fromhex("9d61b19deffd5a60ba844af492ec2cc44449c5697b326919703bac031cae7f60"))
    dk = build_did_key(kp.public_key, kp.algorithm)
    assert dk.did == "did:key:" + dk.multibase
    assert dk.verification_method_id == f"{dk.did}#{dk.multibase}"
    assert dk.experimental is False
    assert public_key_from_did(dk.did, KeyAlgorithm.ED25519) == kp.public_key


def test_dilithium_did_is_flagged_experimental():
    dk = build_did_key(bytes(1312), KeyAlgorithm.DILITHIUM2)
    assert dk.experimental is True
    tag, _ = decode(dk.did)
    assert tag == b"\x12\x34"


def test_public_key_from_did_checks_tag():
    did = encode(ED_PUB, DILITHIUM2_EXPERIMENTAL_TAG)
    with pytest.raises(DecodeFormatError):
        public_key_from_did(did, KeyAlgorithm.ED25519)


def test_algorithm_for_tag():
    assert algorithm_for_tag(ED25519_TAG) is KeyAlgorithm.ED25519
    assert algorithm_for_tag(DILITHIUM2_EXPERIMENTAL_TAG) is KeyAlgorithm.DILITHIUM2
    assert algorithm_for_tag(b"\xff\xff") is None


def test_register_replaces_placeholder(isolated_registry):
    register_algorithm_tag(KeyAlgorithm.DILITHIUM2, b"\x90\x24")
    dk = build_did_key(bytes(1312), KeyAlgorithm.DILITHIUM2)
    assert decode(dk.did)[0] == b"\x90\x24"
    assert algorithm_for_tag(DILITHIUM2_EXPERIMENTAL_TAG) is None

    register_algorithm_tag(KeyAlgorithm.DILITHIUM2, b"\x90\x24", experimental=False)
    assert build_did_key(bytes(1312), KeyAlgorithm.DILITHIUM2).experimental is False


def test_register_refuses_ed25519_and_collisions(isolated_registry):
    with pytest.raises(AlgorithmTagError):
        register_algorithm_tag(KeyAlgorithm.ED25519, b"\x12\x34")
    with pytest.raises(AlgorithmTagError):
        register_algorithm_tag(KeyAlgorithm.DILITHIUM2, ED25519_TAG)


def test_per_call_tag_override():
    dk = build_did_key(bytes(1312), KeyAlgorithm.DILITHIUM2, tag=b"\xab\xcd")
    assert decode(dk.did)[0] == b"\xab\xcd"
    assert dk.experimental is True


def test_tag_override_cannot_retag_ed25519():
    with pytest.raises(AlgorithmTagError):
        build_did_key(ED_PUB, KeyAlgorithm.ED25519, tag=b"\x12\x34")
    # Passing the Ed25519 tag explicitly is the same as passing none.
    dk = build_did_key(ED_PUB, KeyAlgorithm.ED25519, tag=ED25519_TAG)
    assert dk == build_did_key(ED_PUB, KeyAlgorithm.ED25519)
    assert dk.experimental is False


def test_tag_override_cannot_claim_ed25519_tag():
    with pytest.raises(AlgorithmTagError):
        build_did_key(bytes(1312), KeyAlgorithm.DILITHIUM2, tag=ED25519_TAG)


def test_tag_override_wrong_length_is_coded_error():
    with pytest.raises(DidForgeError) as e:
        build_did_key(bytes(1312), KeyAlgorithm.DILITHIUM2, tag=b"\x01")
    assert e.value.code == "DIDFORGE_E401"


def test_verification_method():
    dk = build_did_key(ED_PUB, KeyAlgorithm.ED25519)
    vm = verification_method(dk, KeyAlgorithm.ED25519)
    assert vm == {
        "id": dk.verification_method_id,
        "type": "Ed25519VerificationKey2020",
        "controller": dk.did,
        "publicKeyMultibase": dk.multibase,
    }
