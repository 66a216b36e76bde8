"""
Credential records and the collection manager.

The whole collection is persisted as one JSON array under a single store key
and is always written back in full.
"""

import json
import datetime
import threading
import logging
from dataclasses import dataclass, asdict, fields
from enum import Enum
from typing import Any, Dict, List, Optional

from .crypto import hash_secret
from .errors import CorruptionError, NotFoundError, ValidationError, VaultLockedError
from .storage import SecureRecordStore
from .vault import VaultAccessController
from . import config

logger = logging.getLogger(__name__)


class Category(str, Enum):
    GENERAL = "General"
    SOCIAL_MEDIA = "Social Media"
    BANKING = "Banking"
    WORK = "Work"
    SHOPPING = "Shopping"
    ENTERTAINMENT = "Entertainment"
    EMAIL = "Email"
    GAMING = "Gaming"


@dataclass(frozen=True)
class CredentialRecord:
    """Represents a single stored account. Instances are immutable."""
    id: str
    account: str
    username: str
    secret: str
    website: str = ""
    notes: str = ""
    category: str = Category.GENERAL.value
    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CredentialRecord':
        """Create from dictionary. Raises TypeError on a malformed entry."""
        if not isinstance(data, dict):
            raise TypeError("record is not an object")
        record = cls(**data)
        for field in fields(cls):
            if not isinstance(getattr(record, field.name), str):
                raise TypeError(f"field {field.name} must be a string")
        return record


EDITABLE_FIELDS = ("account", "username", "secret", "website", "notes", "category")


def _now() -> str:
    return datetime.datetime.now().isoformat()


def _check_category(category: str) -> str:
    try:
        return Category(category).value
    except ValueError:
        raise ValidationError(f"Unknown category: {category}") from None


def _check_fields(values: Dict[str, Any]) -> None:
    unknown = set(values) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Fields cannot be set: {', '.join(sorted(unknown))}")
    for name, value in values.items():
        if not isinstance(value, str):
            raise ValidationError(f"Field {name} must be a string")


def _check_required(account: str, secret: str) -> None:
    if not account.strip() or not secret.strip():
        raise ValidationError("Please enter Account and Password")


class CredentialManager:
    """CRUD over the credential collection of an unlocked vault."""

    def __init__(self, store: SecureRecordStore, vault: VaultAccessController):
        self.store = store
        self.vault = vault
        self._lock = threading.Lock()
        self._records: Optional[List[CredentialRecord]] = None
        vault.add_lock_callback(self._forget)

    def _forget(self) -> None:
        """Drop the in-memory collection when the vault locks."""
        with self._lock:
            self._records = None

    def _require_unlocked(self) -> None:
        if not self.vault.is_unlocked:
            raise VaultLockedError("Vault is locked")

    def _load(self) -> List[CredentialRecord]:
        if self._records is not None:
            return self._records

        stored = self.store.get(config.PASSWORDS_KEY)
        if stored is None:
            self._records = []
            return self._records

        try:
            data = json.loads(stored)
            if not isinstance(data, list):
                raise TypeError("collection is not a list")
            records = [CredentialRecord.from_dict(item) for item in data]
        except (ValueError, TypeError) as e:
            logger.error(f"Stored credential collection is corrupted: {e}")
            raise CorruptionError("Failed to load passwords: stored data is corrupted") from e

        self._records = records
        return self._records

    def _save(self, records: List[CredentialRecord]) -> None:
        """Persist the full collection, then adopt it in memory."""
        blob = json.dumps([r.to_dict() for r in records])
        self.store.set(config.PASSWORDS_KEY, blob)
        self._records = records

    def _index(self, records: List[CredentialRecord], record_id: str) -> int:
        for i, record in enumerate(records):
            if record.id == record_id:
                return i
        raise NotFoundError(f"No credential with id {record_id}")

    def _new_id(self, records: List[CredentialRecord], account: str, username: str,
                timestamp: str) -> str:
        existing = {r.id for r in records}
        record_id = hash_secret(f"{account}{username}{timestamp}")
        counter = 0
        while record_id in existing:
            counter += 1
            record_id = hash_secret(f"{account}{username}{timestamp}#{counter}")
        return record_id

    def list(self) -> List[CredentialRecord]:
        """Return a copy of the whole collection, in insertion order."""
        with self._lock:
            self._require_unlocked()
            return list(self._load())

    def get(self, record_id: str) -> CredentialRecord:
        with self._lock:
            self._require_unlocked()
            records = self._load()
            return records[self._index(records, record_id)]

    def add(self, **values: Any) -> CredentialRecord:
        """
        Append a new record and persist the collection.

        Accepts the editable fields (account, username, secret, website,
        notes, category); account and secret are required.
        """
        _check_fields(values)
        account = values.get("account", "")
        secret = values.get("secret", "")
        username = values.get("username", "")
        _check_required(account, secret)
        category = _check_category(values.get("category", config.DEFAULT_CATEGORY))

        with self._lock:
            self._require_unlocked()
            records = self._load()
            now = _now()
            record = CredentialRecord(
                id=self._new_id(records, account, username, now),
                account=account,
                username=username,
                secret=secret,
                website=values.get("website", ""),
                notes=values.get("notes", ""),
                category=category,
                created_at=now,
                updated_at=now,
            )
            self._save(records + [record])
            logger.info(f"Added credential {record.id[:8]}")
            return record

    def update(self, record_id: str, **changes: Any) -> CredentialRecord:
        """
        Merge ``changes`` into an existing record and refresh ``updated_at``.
        ``id`` and ``created_at`` never change.
        """
        _check_fields(changes)
        with self._lock:
            self._require_unlocked()
            records = self._load()
            i = self._index(records, record_id)

            merged = records[i].to_dict()
            merged.update(changes)
            _check_required(merged["account"], merged["secret"])
            merged["category"] = _check_category(merged["category"])
            merged["updated_at"] = _now()

            updated = CredentialRecord.from_dict(merged)
            new_records = list(records)
            new_records[i] = updated
            self._save(new_records)
            logger.info(f"Updated credential {record_id[:8]}")
            return updated

    def remove(self, record_id: str) -> None:
        """Delete a record. Irreversible: callers confirm with the user first."""
        with self._lock:
            self._require_unlocked()
            records = self._load()
            i = self._index(records, record_id)
            self._save(records[:i] + records[i + 1:])
            logger.info(f"Removed credential {record_id[:8]}")

    def search(self, query: str = "", category: str = config.CATEGORY_ALL) -> List[CredentialRecord]:
        """
        Case-insensitive substring match on account, username and website,
        combined with an exact category filter ("All" matches everything).
        """
        if category != config.CATEGORY_ALL:
            category = _check_category(category)
        text = (query or "").lower()
        return [
            r for r in self.list()
            if (text in r.account.lower()
                or text in r.username.lower()
                or text in r.website.lower())
            and (category == config.CATEGORY_ALL or r.category == category)
        ]

    def discard_all(self) -> None:
        """Replace the collection with an empty one (e.g. after corruption)."""
        with self._lock:
            self._require_unlocked()
            self._save([])
            logger.warning("Credential collection discarded")
