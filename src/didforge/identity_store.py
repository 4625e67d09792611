"""
identity_store.py — File-backed identity records

Stores derived identities as a JSON array in a single file
(default ``~/.didforge/identities.json``). Records hold lowercase-hex
key material and are exported in a versioned envelope:

    {"version": "1.0.0", "exportedAt": "...", "identity": {...}}      single
    {"version": "1.0.0", "exportedAt": "...", "identities": [...]}    all

The store holds private keys in the clear. It is a teaching aid, not a
keystore.
"""

from __future__ import annotations
import json
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from .encoding import to_hex
from .errors import IdentityStoreError
from .identity import Identity

logger = logging.getLogger(__name__)

EXPORT_VERSION = "1.0.0"
DEFAULT_STORE_PATH = Path.home() / ".didforge" / "identities.json"
REQUIRED_FIELDS = ("didKey", "seed", "privateKey", "publicKey")


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class IdentityRecord:
    did_key: str
    seed: str
    private_key: str
    public_key: str
    multibase: str
    verification_method_id: str
    generation_type: str = "PRNG"
    algorithm_type: str = "Ed25519"
    created_at: str = field(default_factory=_utc_now_iso)
    custom_name: Optional[str] = None
    id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "didKey": self.did_key,
            "seed": self.seed,
            "privateKey": self.private_key,
            "publicKey": self.public_key,
            "multibase": self.multibase,
            "vmId": self.verification_method_id,
            "createdAt": self.created_at,
            "generationType": self.generation_type,
            "algorithmType": self.algorithm_type,
        }
        if self.custom_name is not None:
            data["customName"] = self.custom_name
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "IdentityRecord":
        """Build a record, filling optional fields the way older exports omit them."""
        missing = [k for k in REQUIRED_FIELDS if not data.get(k)]
        if missing:
            raise ValueError(f"missing required fields: {', '.join(missing)}")
        did = str(data["didKey"])
        multibase = data.get("multibase")
        if not multibase:
            parts = did.split(":")
            multibase = parts[2] if len(parts) > 2 else ""
        return cls(
            id=data.get("id"),
            custom_name=data.get("customName"),
            did_key=did,
            seed=str(data["seed"]),
            private_key=str(data["privateKey"]),
            public_key=str(data["publicKey"]),
            multibase=multibase,
            verification_method_id=data.get("vmId") or f"{did}#{multibase}",
            created_at=data.get("createdAt") or _utc_now_iso(),
            generation_type=data.get("generationType") or "PRNG",
            algorithm_type=data.get("algorithmType") or "Ed25519",
        )


@dataclass
class ImportResult:
    success: int = 0
    errors: List[str] = field(default_factory=list)


def build_identity_record(identity: Identity, custom_name: Optional[str] = None) -> IdentityRecord:
    """Turn a derived ``Identity`` into a storable record (hex-encoded fields)."""
    return IdentityRecord(
        did_key=identity.did_key.did,
        seed=identity.seed.hex(),
        private_key=to_hex(identity.keypair.private_key),
        public_key=to_hex(identity.keypair.public_key),
        multibase=identity.did_key.multibase,
        verification_method_id=identity.did_key.verification_method_id,
        generation_type=identity.seed.provenance.value,
        algorithm_type=identity.algorithm.value,
        custom_name=custom_name,
    )


class IdentityStore:
    """JSON-file persistence for ``IdentityRecord`` objects."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else DEFAULT_STORE_PATH

    def _read(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "[]")
        except (OSError, ValueError) as exc:
            raise IdentityStoreError(f"cannot read {self.path}: {exc}") from exc
        if not isinstance(data, list):
            raise IdentityStoreError(f"{self.path} does not hold a JSON array")
        if not all(isinstance(entry, dict) for entry in data):
            raise IdentityStoreError(f"{self.path} holds a non-object identity entry")
        return data

    def _write(self, records: List[Dict[str, Any]]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp.write_text(json.dumps(records, indent=2), encoding="utf-8")
            tmp.replace(self.path)
        except OSError as exc:
            raise IdentityStoreError(f"cannot write {self.path}: {exc}") from exc

    def _parse(self, entry: Dict[str, Any]) -> IdentityRecord:
        try:
            return IdentityRecord.from_dict(entry)
        except ValueError as exc:
            raise IdentityStoreError(
                f"invalid identity {entry.get('id')!r} in {self.path}: {exc}"
            ) from exc

    def list(self) -> List[IdentityRecord]:
        return [self._parse(r) for r in self._read()]

    def get(self, identity_id: str) -> Optional[IdentityRecord]:
        for record in self._read():
            if record.get("id") == identity_id:
                return self._parse(record)
        return None

    def save(self, record: IdentityRecord) -> str:
        """Append ``record`` under a fresh id and return that id."""
        record.id = str(uuid.uuid4())
        records = self._read()
        records.append(record.to_dict())
        self._write(records)
        logger.info("Saved identity %s (%s)", record.id, record.algorithm_type)
        return record.id

    def update_name(self, identity_id: str, custom_name: str) -> bool:
        records = self._read()
        for record in records:
            if record.get("id") == identity_id:
                record["customName"] = custom_name
                self._write(records)
                return True
        return False

    def delete(self, identity_id: str) -> bool:
        records = self._read()
        remaining = [r for r in records if r.get("id") != identity_id]
        if len(remaining) == len(records):
            return False
        self._write(remaining)
        logger.info("Deleted identity %s", identity_id)
        return True

    def export(self, identity_id: str) -> Optional[str]:
        record = self.get(identity_id)
        if record is None:
            return None
        envelope = {
            "version": EXPORT_VERSION,
            "exportedAt": _utc_now_iso(),
            "identity": record.to_dict(),
        }
        return json.dumps(envelope, indent=2)

    def export_all(self) -> str:
        envelope = {
            "version": EXPORT_VERSION,
            "exportedAt": _utc_now_iso(),
            "identities": [r.to_dict() for r in self.list()],
        }
        return json.dumps(envelope, indent=2)

    def import_json(self, text: str) -> ImportResult:
        """Import a single or batch export; skips invalid entries and known DIDs."""
        result = ImportResult()
        try:
            parsed = json.loads(text)
        except ValueError:
            result.errors.append("invalid JSON document")
            return result

        if not isinstance(parsed, dict):
            result.errors.append("invalid export format")
            return result
        entries = [parsed["identity"]] if parsed.get("identity") else parsed.get("identities", [])
        if not isinstance(entries, list):
            result.errors.append("invalid export format")
            return result

        records = self._read()
        known = {r.get("didKey") for r in records}

        for entry in entries:
            if not isinstance(entry, dict):
                result.errors.append("invalid identity entry")
                continue
            try:
                record = IdentityRecord.from_dict(entry)
            except ValueError as exc:
                result.errors.append(f"invalid identity: {exc}")
                continue
            if record.did_key in known:
                result.errors.append(f"duplicate DID: {record.did_key[:20]}...")
                continue
            record.id = str(uuid.uuid4())
            records.append(record.to_dict())
            known.add(record.did_key)
            result.success += 1

        if result.success:
            self._write(records)
            logger.info("Imported %d identities into %s", result.success, self.path)
        return result
