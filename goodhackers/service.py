"""
UI-facing entry points of the vault core.

Every operation returns an :class:`OperationResult` instead of raising, so
screens can branch on ``ok`` and ``kind`` and show ``message`` to the user.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional

from .biometric import BiometricGate, PinBiometricGate
from .credentials import CredentialManager
from .errors import VaultError
from .generator import PasswordPolicy, generate_password
from .storage import EncryptedFileStore, SecureRecordStore
from .vault import VaultAccessController
from . import config

logger = logging.getLogger(__name__)

# User-facing text for failures of the store itself.
PERSISTENCE_MESSAGE = "Could not save or load your data."


@dataclass
class OperationResult:
    """Tagged result of a vault operation."""
    ok: bool
    value: Any = None
    kind: Optional[str] = None
    message: str = ""

    @classmethod
    def success(cls, value: Any = None) -> 'OperationResult':
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: VaultError) -> 'OperationResult':
        message = error.message
        if error.kind == "persistence":
            message = f"{PERSISTENCE_MESSAGE} {error.message}".strip()
        return cls(ok=False, kind=error.kind, message=message)


def _run(operation: Callable[[], Any]) -> OperationResult:
    try:
        return OperationResult.success(operation())
    except VaultError as e:
        logger.debug(f"Operation failed ({e.kind}): {e.message}")
        return OperationResult.failure(e)


class VaultService:
    """Wires the access controller, credential manager and generator."""

    def __init__(self, store: SecureRecordStore, gate: Optional[BiometricGate] = None,
                 accepted_types: Iterable = config.BIOMETRIC_ACCEPTED_TYPES):
        self.store = store
        self.vault = VaultAccessController(store, gate, accepted_types)
        self.credentials = CredentialManager(store, self.vault)

    @classmethod
    def open_default(cls) -> 'VaultService':
        """Service over the per-user encrypted store and the desktop PIN gate."""
        return cls(EncryptedFileStore.default(), PinBiometricGate(),
                   accepted_types=config.PIN_GATE_ACCEPTED_TYPES)

    def state(self) -> OperationResult:
        """Current ``VaultState``; a failing store read comes back as a result."""
        return _run(lambda: self.vault.state)

    def setup(self, master_password: str, confirm_password: str, question1: str,
              answer1: str, question2: str, answer2: str,
              enable_biometric: Optional[bool] = None) -> OperationResult:
        return _run(lambda: self.vault.setup(
            master_password, confirm_password, question1, answer1,
            question2, answer2, enable_biometric))

    def unlock_with_password(self, password: str) -> OperationResult:
        return _run(lambda: self.vault.unlock_with_password(password))

    def unlock_with_biometric(self) -> OperationResult:
        return _run(self.vault.unlock_with_biometric)

    def should_offer_biometric(self) -> OperationResult:
        return _run(self.vault.should_offer_biometric)

    def set_biometric_enabled(self, enabled: bool) -> OperationResult:
        return _run(lambda: self.vault.set_biometric_enabled(enabled))

    def lock(self) -> OperationResult:
        return _run(self.vault.lock)

    def on_background(self) -> OperationResult:
        return _run(self.vault.on_background)

    def security_questions(self) -> OperationResult:
        return _run(self.vault.security_questions)

    def verify_recovery(self, answer1: str, answer2: str) -> OperationResult:
        return _run(lambda: self.vault.verify_recovery(answer1, answer2))

    def reset_password(self, new_password: str, confirm_password: str) -> OperationResult:
        return _run(lambda: self.vault.reset_password(new_password, confirm_password))

    def list_credentials(self, search_query: Optional[str] = None,
                         category: Optional[str] = None) -> OperationResult:
        if search_query is None and category is None:
            return _run(self.credentials.list)
        return _run(lambda: self.credentials.search(
            search_query or "", category or config.CATEGORY_ALL))

    def add_credential(self, **values: Any) -> OperationResult:
        return _run(lambda: self.credentials.add(**values))

    def update_credential(self, record_id: str, **changes: Any) -> OperationResult:
        return _run(lambda: self.credentials.update(record_id, **changes))

    def remove_credential(self, record_id: str) -> OperationResult:
        return _run(lambda: self.credentials.remove(record_id))

    def discard_credentials(self) -> OperationResult:
        return _run(self.credentials.discard_all)

    def generate_password(self, length: int = config.PASSWORD_GENERATOR_DEFAULT_LENGTH,
                          policy: Optional[PasswordPolicy] = None) -> OperationResult:
        return _run(lambda: generate_password(length, policy))
