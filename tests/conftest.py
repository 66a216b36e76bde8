"""Shared fixtures: in-memory store, scripted biometric gate, vault wiring."""

from typing import Dict, Optional

import pytest

from goodhackers.biometric import AuthenticationType, BiometricGate, BiometricResult
from goodhackers.storage import EncryptedFileStore, SecureRecordStore
from goodhackers.vault import VaultAccessController
from goodhackers.credentials import CredentialManager


class MemoryStore(SecureRecordStore):
    """Dict-backed store that records every individual write."""

    def __init__(self):
        self.data: Dict[str, str] = {}
        self.writes = []

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.writes.append(("set", key))
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.writes.append(("delete", key))
        self.data.pop(key, None)


class FakeGate(BiometricGate):
    def __init__(self, hardware=True, enrolled=True,
                 types=(AuthenticationType.FINGERPRINT,),
                 result=BiometricResult.SUCCESS):
        self.hardware = hardware
        self.enrolled = enrolled
        self.types = frozenset(types)
        self.result = result
        self.prompts = []

    def has_hardware(self):
        return self.hardware

    def is_enrolled(self):
        return self.enrolled

    def supported_types(self):
        return self.types

    def authenticate(self, prompt_text):
        self.prompts.append(prompt_text)
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


SETUP_ARGS = ("secret1", "secret1", "Pet name?", "Fido", "City?", "Paris")


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def gate():
    return FakeGate()


@pytest.fixture
def file_store(tmp_path):
    return EncryptedFileStore(str(tmp_path / "vault.enc"))


@pytest.fixture
def vault(store):
    return VaultAccessController(store)


@pytest.fixture
def unlocked_vault(vault):
    vault.setup(*SETUP_ARGS)
    return vault


@pytest.fixture
def manager(store, unlocked_vault):
    return CredentialManager(store, unlocked_vault)
