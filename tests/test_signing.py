"""
test_signing.py — Sign/verify round trips and the self-test

Dilithium2 signing is NOT asserted to be deterministic: only key generation
is. Tests compare Dilithium2 signatures by verification, never by bytes.
"""

import pytest

from didforge.errors import InvalidInputLengthError, UnderlyingPrimitiveFailureError
from didforge.keys import KeyAlgorithm, derive_keypair
from didforge.signing import SelfTestResult, self_test, sign, verify

SEED = bytes(range(32))
RFC8032_TEST2_SEED = bytes.fromhex("4ccd089b28ff96da9db6c346ec114e0f5b8a319f35aba624da8cf6ed4fb8a6fb")
RFC8032_TEST2_SIG = bytes.fromhex(
    "92a009a9f0d4cab8720e820b5f642540a2b27b5416503f8fb3762223ebdb69da"
    "085ac1e43e15996e458f3613d0f11d8c387b2eaeb4302aeeb00d291612bb0c00"
)

MESSAGES = [
    b"hello",
    "héllo wörld — ☃ 🌍",
    b"x" * 4096,
]


@pytest.fixture(scope="module")
def ed_kp():
    return derive_keypair(SEED, KeyAlgorithm.ED25519)


@pytest.fixture(scope="module")
def pq_kp():
    return derive_keypair(SEED, KeyAlgorithm.DILITHIUM2)


def test_ed25519_rfc8032_signature():
    kp = derive_keypair(RFC8032_TEST2_SEED, KeyAlgorithm.ED25519)
    assert sign(b"\x72", kp.private_key) == RFC8032_TEST2_SIG
    assert verify(b"\x72", RFC8032_TEST2_SIG, kp.public_key) is True


@pytest.mark.parametrize("message", MESSAGES)
def test_ed25519_round_trip(ed_kp, message):
    sig = sign(message, ed_kp.private_key, KeyAlgorithm.ED25519)
    assert len(sig) == 64
    assert verify(message, sig, ed_kp.public_key, KeyAlgorithm.ED25519) is True


def test_ed25519_signatures_deterministic(ed_kp):
    assert sign(b"same", ed_kp.private_key) == sign(b"same", ed_kp.private_key)


@pytest.mark.parametrize("message", MESSAGES)
def test_dilithium2_round_trip(pq_kp, message):
    sig = sign(message, pq_kp.private_key, KeyAlgorithm.DILITHIUM2)
    assert verify(message, sig, pq_kp.public_key, KeyAlgorithm.DILITHIUM2) is True


def test_dilithium2_inferred_from_key_size(pq_kp):
    sig = sign(b"infer", pq_kp.private_key)
    assert len(sig) == 2420
    assert verify(b"infer", sig, pq_kp.public_key) is True


def test_dilithium2_wrong_message(pq_kp):
    sig = sign(b"Message A", pq_kp.private_key)
    assert verify(b"Message B", sig, pq_kp.public_key) is False


def test_ed25519_wrong_message_and_tamper(ed_kp):
    sig = sign(b"Message A", ed_kp.private_key)
    assert verify(b"Message B", sig, ed_kp.public_key) is False
    tampered = bytes([sig[0] ^ 0xFF]) + sig[1:]
    assert verify(b"Message A", tampered, ed_kp.public_key) is False


def test_wrong_key(ed_kp):
    other = derive_keypair(b"\x07" * 32)
    sig = sign(b"msg", ed_kp.private_key)
    assert verify(b"msg", sig, other.public_key) is False


@pytest.mark.parametrize("signature,public_key", [
    (b"", bytes(32)),
    (b"\x00" * 10, bytes(32)),
    (b"\x00" * 64, b""),
    (b"\x00" * 64, b"\x01" * 7),
    (b"\x00" * 2420, b"\x00" * 1312),
    (b"\x00" * 5, b"\x00" * 1312),
])
def test_verify_never_raises_on_garbage(signature, public_key):
    assert verify(b"msg", signature, public_key) is False


def test_verify_cross_algorithm_is_false(ed_kp, pq_kp):
    sig = sign(b"msg", ed_kp.private_key)
    assert verify(b"msg", sig, pq_kp.public_key, KeyAlgorithm.DILITHIUM2) is False


def test_sign_rejects_empty_inputs(ed_kp):
    with pytest.raises(InvalidInputLengthError):
        sign(b"", ed_kp.private_key)
    with pytest.raises(InvalidInputLengthError):
        sign("", ed_kp.private_key)
    with pytest.raises(InvalidInputLengthError):
        sign(b"msg", b"")


def test_sign_wraps_primitive_errors():
    with pytest.raises(UnderlyingPrimitiveFailureError):
        sign(b"msg", b"\x01" * 7, KeyAlgorithm.ED25519)


def test_self_test_success_both_algorithms(ed_kp, pq_kp):
    for kp in (ed_kp, pq_kp):
        result = self_test("self test ✓", kp.private_key, kp.public_key, kp.algorithm)
        assert isinstance(result, SelfTestResult)
        assert result.success is True
        assert result.signature
        assert result.error is None


def test_self_test_mismatched_keys(ed_kp):
    other = derive_keypair(b"\x09" * 32)
    result = self_test("msg", ed_kp.private_key, other.public_key)
    assert result.success is False
    assert result.signature is not None
    assert "failed verification" in result.error


def test_self_test_reports_sign_error(ed_kp):
    result = self_test("", ed_kp.private_key, ed_kp.public_key)
    assert result.success is False
    assert result.signature is None
    assert "DIDFORGE_E100" in result.error
    assert result.to_dict()["signature"] is None
