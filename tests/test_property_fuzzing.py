"""
test_property_fuzzing.py — Property-based checks for the derivation pipeline

Properties tested:
  A. Ed25519 derivation
       A1. private key == seed for every 32-byte seed
       A2. sign/verify round trip for arbitrary non-empty messages
  B. did:key
       B1. decode(encode(pk, tag)) == (tag, pk)
       B2. decode never raises anything but DecodeFormatError
  C. verify
       C1. never raises, always returns bool
  D. KDF
       D1. repeatable for identical arguments
       D2. prefix-consistent across output lengths
  E. Entropy
       E1. report fields stay within their ranges
"""

import pytest

try:
    from hypothesis import given, settings, strategies as st
except ImportError:
    pytest.skip("hypothesis not installed", allow_module_level=True)

from didforge.did_key import decode, encode
from didforge.entropy import analyze
from didforge.errors import DecodeFormatError
from didforge.kdf import expand
from didforge.keys import KeyAlgorithm, derive_keypair
from didforge.signing import sign, verify

seeds = st.binary(min_size=32, max_size=32)
tags = st.binary(min_size=2, max_size=2)
public_keys = st.binary(min_size=1, max_size=2048)


@given(seeds)
@settings(max_examples=100)
def test_a1_ed25519_private_key_is_seed(seed):
    assert derive_keypair(seed, KeyAlgorithm.ED25519).private_key == seed


@given(seeds, st.one_of(st.binary(min_size=1, max_size=2048), st.text(min_size=1)))
@settings(max_examples=50)
def test_a2_ed25519_round_trip(seed, message):
    kp = derive_keypair(seed)
    assert verify(message, sign(message, kp.private_key), kp.public_key) is True


@given(public_keys, tags)
def test_b1_did_round_trip(pk, tag):
    assert decode(encode(pk, tag)) == (tag, pk)


@given(st.text())
def test_b2_decode_only_raises_decode_format_error(text):
    try:
        decode(text)
    except DecodeFormatError:
        pass


@given(st.binary(max_size=3000), st.binary(max_size=1400), st.binary(max_size=64))
@settings(max_examples=50)
def test_c1_verify_never_raises(signature, public_key, message):
    assert verify(message, signature, public_key) in (True, False)


@given(seeds, st.integers(min_value=0, max_value=512), st.text(max_size=32))
def test_d1_expand_repeatable(seed, n, label):
    assert expand(seed, n, label) == expand(seed, n, label)


@given(seeds, st.integers(min_value=0, max_value=256), st.integers(min_value=0, max_value=256))
def test_d2_expand_prefix_consistent(seed, a, b):
    short, long_ = sorted((a, b))
    assert expand(seed, long_, "P")[:short] == expand(seed, short, "P")


@given(st.binary(min_size=1, max_size=4096))
def test_e1_entropy_ranges(data):
    report = analyze(data)
    assert 0.0 <= report.shannon_entropy <= 8.0 + 1e-9
    assert 0.0 <= report.uniformity <= 100.0
    assert 0 <= report.quality_score <= 100
    assert report.label in ("Excellent", "Good", "Acceptable", "Low")
