#!/usr/bin/env python3
"""
didforge — CLI for seed, key and did:key derivation

Commands:
  seed      Generate a 32-byte seed (local PRNG or remote QRNG)
  analyze   Score the entropy quality of a hex buffer
  derive    Derive a keypair and did:key from a hex seed
  did       Decode a did:key identifier
  sign      Sign a message with a hex private key
  verify    Verify a signature against a hex public key
  selftest  Derive from a seed, sign and verify in one step
  identity  Create, list, rename, delete, export and import stored identities
"""

from __future__ import annotations
import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

from .did_key import algorithm_for_tag, decode, is_experimental
from .encoding import from_hex, to_base64, to_bits, to_hex
from .entropy import analyze
from .errors import DidForgeError, UnknownAlgorithmError
from .identity import create_identity, identity_from_seed
from .identity_store import IdentityStore, build_identity_record
from .keys import KeyAlgorithm, key_info
from .seed_source import (
    DEFAULT_QRNG_URL,
    DEFAULT_TIMEOUT,
    Seed,
    SeedProvenance,
    generate_seed,
)
from .signing import self_test, sign, verify


def _fail_with_error(err: DidForgeError) -> None:
    """Print a structured error message from a ``DidForgeError`` and exit.

    Args:
        err: Classified pipeline error.

    Returns:
        None: This function terminates the process.
    """
    context = f" Context: {err.context}." if err.context else ""
    print(f"ERROR: {err.code} ({err.kind}). {err.message}{context} (See: {err.doc_url})")
    sys.exit(1)


def _cli_error(what: str, why: str, fix: str) -> None:
    """Print a teaching-style CLI error and exit.

    Args:
        what: What failed.
        why: Why it failed.
        fix: Recommended remediation.

    Returns:
        None: This function terminates the process.
    """
    print(f"ERROR: {what}. {why}. Fix: {fix}.")
    sys.exit(1)


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def _parse_hex(value: str, what: str) -> bytes:
    try:
        return from_hex(value)
    except ValueError:
        _cli_error(
            f"Invalid {what}",
            "the value is not a hexadecimal string",
            f"pass the {what} as lowercase hex, two characters per byte",
        )
    return b""  # unreachable


def _parse_algorithm(name: str) -> KeyAlgorithm:
    try:
        return KeyAlgorithm.parse(name)
    except UnknownAlgorithmError as exc:
        _cli_error("Unknown algorithm", exc.context, "use ed25519 or dilithium2")
    return KeyAlgorithm.ED25519  # unreachable


def _parse_seed(value: str, provenance: str = "prng") -> Seed:
    return Seed(_parse_hex(value, "seed"), SeedProvenance(provenance.upper()))


def _pq_tag(args: argparse.Namespace) -> Optional[bytes]:
    if not getattr(args, "pq_tag", None):
        return None
    tag = _parse_hex(args.pq_tag, "post-quantum tag")
    if len(tag) != 2:
        _cli_error(
            "Invalid post-quantum tag",
            f"the tag must be exactly 2 bytes, got {len(tag)}",
            "pass four hex characters, e.g. --pq-tag 1234",
        )
    return tag


def cmd_seed(args: argparse.Namespace) -> None:
    """Handle ``didforge seed``."""
    seed = generate_seed(
        SeedProvenance(args.source.upper()),
        **({"url": args.qrng_url, "timeout": args.timeout} if args.source == "qrng" else {}),
    )
    if args.format == "base64":
        rendered = to_base64(seed.data)
    elif args.format == "bits":
        rendered = to_bits(seed.data)
    else:
        rendered = seed.hex()

    if not args.analyze and seed.metadata is None:
        print(rendered)
        return

    out = {"seed": rendered, "generation_type": seed.provenance.value}
    if seed.metadata is not None:
        out["metadata"] = seed.metadata.to_dict()
    if args.analyze:
        out["entropy"] = analyze(seed.data).to_dict()
    _print_json(out)


def cmd_analyze(args: argparse.Namespace) -> None:
    """Handle ``didforge analyze``."""
    _print_json(analyze(_parse_hex(args.data, "buffer")).to_dict())


def cmd_derive(args: argparse.Namespace) -> None:
    """Handle ``didforge derive``: seed -> keypair -> did:key."""
    algorithm = _parse_algorithm(args.algorithm)
    identity = identity_from_seed(_parse_seed(args.seed, args.provenance), algorithm, tag=_pq_tag(args))

    if args.json:
        _print_json(identity.to_dict(include_secrets=args.show_private))
        return

    print(f"algorithm:   {algorithm.value}")
    print(f"public key:  {to_hex(identity.keypair.public_key)}")
    if args.show_private:
        print(f"private key: {to_hex(identity.keypair.private_key)}")
    print(f"did:key:     {identity.did_key.did}")
    print(f"entropy:     {identity.entropy.quality_score}/100 ({identity.entropy.label})")
    if identity.did_key.experimental:
        print("WARNING: experimental multicodec tag; this did:key is not interoperable.")


def cmd_did_decode(args: argparse.Namespace) -> None:
    """Handle ``didforge did decode``."""
    tag, public_key = decode(args.did)
    algorithm = algorithm_for_tag(tag)
    _print_json({
        "tag": tag.hex(),
        "algorithm": algorithm.value if algorithm else None,
        "experimental": algorithm is None or is_experimental(algorithm),
        "public_key": to_hex(public_key),
        "public_key_size": len(public_key),
    })


def cmd_sign(args: argparse.Namespace) -> None:
    """Handle ``didforge sign``."""
    algorithm = _parse_algorithm(args.algorithm) if args.algorithm else None
    signature = sign(args.message, _parse_hex(args.private_key, "private key"), algorithm)
    print(to_hex(signature))


def cmd_verify(args: argparse.Namespace) -> None:
    """Handle ``didforge verify``; exits 1 when the signature does not verify."""
    algorithm = _parse_algorithm(args.algorithm) if args.algorithm else None
    ok = verify(
        args.message,
        _parse_hex(args.signature, "signature"),
        _parse_hex(args.public_key, "public key"),
        algorithm,
    )
    print("VALID" if ok else "INVALID")
    if not ok:
        sys.exit(1)


def cmd_selftest(args: argparse.Namespace) -> None:
    """Handle ``didforge selftest``."""
    algorithm = _parse_algorithm(args.algorithm)
    identity = identity_from_seed(_parse_seed(args.seed), algorithm)
    result = self_test(
        args.message,
        identity.keypair.private_key,
        identity.keypair.public_key,
        algorithm,
    )
    out = result.to_dict()
    out["algorithm"] = algorithm.value
    out["signature_deterministic"] = key_info(algorithm)["deterministic_signatures"]
    _print_json(out)
    if not result.success:
        sys.exit(1)


def cmd_identity(args: argparse.Namespace) -> None:
    """Handle ``didforge identity <action>``."""
    store = IdentityStore(Path(args.store) if args.store else None)

    if args.identity_command == "create":
        remote = {"url": args.qrng_url, "timeout": args.timeout} if args.source == "qrng" else {}
        identity = create_identity(
            SeedProvenance(args.source.upper()),
            _parse_algorithm(args.algorithm),
            tag=_pq_tag(args),
            **remote,
        )
        identity_id = store.save(build_identity_record(identity, custom_name=args.name))
        print(f"Saved {identity.did_key.did}")
        print(f"id: {identity_id}")

    elif args.identity_command == "list":
        for record in store.list():
            name = f" [{record.custom_name}]" if record.custom_name else ""
            print(f"{record.id}  {record.algorithm_type:<10}  {record.generation_type}  {record.did_key[:48]}...{name}")

    elif args.identity_command == "rename":
        if not store.update_name(args.id, args.name):
            _cli_error(f"Identity not found: {args.id}", "no stored record has that id", "run `didforge identity list`")
        print(f"Renamed {args.id} -> {args.name}")

    elif args.identity_command == "delete":
        if not store.delete(args.id):
            _cli_error(f"Identity not found: {args.id}", "no stored record has that id", "run `didforge identity list`")
        print(f"Deleted {args.id}")

    elif args.identity_command == "export":
        text = store.export(args.id) if args.id else store.export_all()
        if text is None:
            _cli_error(f"Identity not found: {args.id}", "no stored record has that id", "run `didforge identity list`")
        if args.out:
            Path(args.out).write_text(text, encoding="utf-8")
            print(f"Exported to {args.out}")
        else:
            print(text)

    elif args.identity_command == "import":
        path = Path(args.file)
        if not path.exists():
            _cli_error(f"Import file not found: {path}", "the path does not exist", "pass a file created by `didforge identity export`")
        result = store.import_json(path.read_text(encoding="utf-8"))
        print(f"Imported {result.success} identities")
        for err in result.errors:
            print(f"  skipped: {err}")


def _add_remote_options(p: argparse.ArgumentParser) -> None:
    p.add_argument("--source", choices=["prng", "qrng"], default="prng", help="Seed source")
    p.add_argument("--qrng-url", default=DEFAULT_QRNG_URL, help="QRNG endpoint returning {'data': [32 uint8]}")
    p.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT, help="QRNG request timeout in seconds")


def main(argv: Optional[list] = None) -> None:
    parser = argparse.ArgumentParser(
        prog="didforge",
        description="didforge CLI: seeds, entropy, keys and did:key identifiers",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p_seed = sub.add_parser("seed", help="Generate a 32-byte seed")
    _add_remote_options(p_seed)
    p_seed.add_argument("--format", choices=["hex", "base64", "bits"], default="hex")
    p_seed.add_argument("--analyze", action="store_true", help="Include an entropy report")

    p_an = sub.add_parser("analyze", help="Score entropy of a hex buffer")
    p_an.add_argument("data", help="Hex-encoded bytes")

    p_der = sub.add_parser("derive", help="Derive keypair and did:key from a seed")
    p_der.add_argument("--seed", required=True, help="32-byte seed as hex")
    p_der.add_argument("--algorithm", default="ed25519", help="ed25519 or dilithium2")
    p_der.add_argument("--provenance", choices=["prng", "qrng"], default="prng")
    p_der.add_argument("--pq-tag", default=None, help="Override the experimental Dilithium2 tag (4 hex chars)")
    p_der.add_argument("--show-private", action="store_true", help="Also print seed/private key")
    p_der.add_argument("--json", action="store_true", help="Print JSON")

    p_did = sub.add_parser("did", help="did:key utilities")
    did_sub = p_did.add_subparsers(dest="did_command", required=True)
    p_did_dec = did_sub.add_parser("decode", help="Decode a did:key into tag and public key")
    p_did_dec.add_argument("did")

    p_sign = sub.add_parser("sign", help="Sign a message")
    p_sign.add_argument("--private-key", required=True, help="Private key as hex")
    p_sign.add_argument("--message", required=True)
    p_sign.add_argument("--algorithm", default=None, help="Inferred from key size when omitted")

    p_ver = sub.add_parser("verify", help="Verify a signature")
    p_ver.add_argument("--public-key", required=True, help="Public key as hex")
    p_ver.add_argument("--signature", required=True, help="Signature as hex")
    p_ver.add_argument("--message", required=True)
    p_ver.add_argument("--algorithm", default=None, help="Inferred from key size when omitted")

    p_st = sub.add_parser("selftest", help="Derive, sign and verify")
    p_st.add_argument("--seed", required=True, help="32-byte seed as hex")
    p_st.add_argument("--algorithm", default="ed25519")
    p_st.add_argument("--message", default="didforge self-test")

    p_id = sub.add_parser("identity", help="Stored identities")
    p_id.add_argument("--store", default=None, help="Path to the identity store JSON file")
    id_sub = p_id.add_subparsers(dest="identity_command", required=True)

    p_id_new = id_sub.add_parser("create", help="Generate and store a new identity")
    _add_remote_options(p_id_new)
    p_id_new.add_argument("--algorithm", default="ed25519")
    p_id_new.add_argument("--pq-tag", default=None)
    p_id_new.add_argument("--name", default=None)

    id_sub.add_parser("list", help="List stored identities")

    p_id_ren = id_sub.add_parser("rename", help="Set a display name")
    p_id_ren.add_argument("id")
    p_id_ren.add_argument("name")

    p_id_del = id_sub.add_parser("delete", help="Delete an identity")
    p_id_del.add_argument("id")

    p_id_exp = id_sub.add_parser("export", help="Export one or all identities")
    p_id_exp.add_argument("id", nargs="?", default=None)
    p_id_exp.add_argument("--out", default=None, help="Write to file instead of stdout")

    p_id_imp = id_sub.add_parser("import", help="Import an export file")
    p_id_imp.add_argument("file")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.command == "seed": cmd_seed(args)
        elif args.command == "analyze": cmd_analyze(args)
        elif args.command == "derive": cmd_derive(args)
        elif args.command == "did": cmd_did_decode(args)
        elif args.command == "sign": cmd_sign(args)
        elif args.command == "verify": cmd_verify(args)
        elif args.command == "selftest": cmd_selftest(args)
        elif args.command == "identity": cmd_identity(args)
    except DidForgeError as err:
        _fail_with_error(err)

if __name__ == "__main__":
    main()
