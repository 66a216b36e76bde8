"""
Vault access control.

Decides whether the vault is uninitialized, locked or unlocked, and owns the
setup, unlock (password or biometric) and security-question recovery flows.
Secrets are compared as SHA-256 digests; nothing but digests and question
prompts is written to the record store.
"""

import logging
from enum import Enum
from typing import Callable, Iterable, List, Optional, Tuple

from .biometric import BiometricGate, BiometricResult
from .crypto import hash_secret, hash_answer, digests_equal
from .errors import AuthenticationError, PersistenceError, ValidationError
from .storage import SecureRecordStore
from . import config

logger = logging.getLogger(__name__)


class VaultState(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOCKED = "locked"
    UNLOCKED = "unlocked"


def _validate_new_password(password: str, confirm: str) -> None:
    if len(password) < config.MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Master password must be at least {config.MIN_PASSWORD_LENGTH} characters."
        )
    if password != confirm:
        raise ValidationError("Passwords do not match.")


def _validate_answers(*answers: str) -> None:
    if any(len(a.strip()) < config.MIN_ANSWER_LENGTH for a in answers):
        raise ValidationError(
            f"Security answers must be at least {config.MIN_ANSWER_LENGTH} characters."
        )


class VaultAccessController:
    """Session state machine gating access to the vault."""

    def __init__(self, store: SecureRecordStore, gate: Optional[BiometricGate] = None,
                 accepted_types: Iterable = config.BIOMETRIC_ACCEPTED_TYPES):
        """
        Args:
            store: Record store holding digests, questions and preferences
            gate: Biometric gate, or None on devices without one
            accepted_types: Sensor types that count as biometric capability
        """
        self.store = store
        self.gate = gate
        self.accepted_types = frozenset(accepted_types)
        self.failed_attempts = 0
        self._unlocked = False
        self._recovery_verified = False
        self._lock_callbacks: List[Callable[[], None]] = []

    # State

    @property
    def is_initialized(self) -> bool:
        return self.store.get(config.MASTER_KEY) is not None

    @property
    def is_unlocked(self) -> bool:
        return self._unlocked

    @property
    def state(self) -> VaultState:
        if not self.is_initialized:
            return VaultState.UNINITIALIZED
        return VaultState.UNLOCKED if self._unlocked else VaultState.LOCKED

    @property
    def has_security_questions(self) -> bool:
        return all(self.store.get(key) is not None for key in config.SECURITY_QUESTION_KEYS)

    @property
    def needs_security_questions(self) -> bool:
        """True after a password reset, until setup is run again."""
        return self.is_initialized and not self.has_security_questions

    @property
    def recovery_verified(self) -> bool:
        return self._recovery_verified

    def security_questions(self) -> Tuple[str, str]:
        """Return the two stored question prompts for the recovery screen."""
        q1 = self.store.get(config.SEC_Q1_KEY)
        q2 = self.store.get(config.SEC_Q2_KEY)
        if not q1 or not q2:
            raise ValidationError(
                "Security questions not found. Please set up master password first."
            )
        return q1, q2

    def add_lock_callback(self, callback: Callable[[], None]) -> None:
        """Register a callback run every time the vault locks."""
        self._lock_callbacks.append(callback)

    # Setup

    def setup(self, master_password: str, confirm_password: str,
              question1: str, answer1: str, question2: str, answer2: str,
              enable_biometric: Optional[bool] = None) -> None:
        """
        Create the master password and security questions, then unlock.

        Also completes a vault whose questions were cleared by a password
        reset; in that case ``master_password`` must be the current password.
        ``enable_biometric`` defaults to enabled when the device is capable.
        """
        completing_reset = self.needs_security_questions
        if self.is_initialized and not completing_reset:
            raise ValidationError("Vault is already set up.")

        _validate_new_password(master_password, confirm_password)
        question1, question2 = question1.strip(), question2.strip()
        if not question1 or not question2:
            raise ValidationError("Please fill in both security questions.")
        _validate_answers(answer1, answer2)
        if question1 == question2:
            raise ValidationError("Security questions must be different.")

        password_digest = hash_secret(master_password)
        if completing_reset:
            stored = self.store.get(config.MASTER_KEY)
            if not digests_equal(password_digest, stored):
                raise AuthenticationError("Wrong master password")

        with self.store.staged() as staged:
            staged.set(config.MASTER_KEY, password_digest)
            staged.set(config.SEC_Q1_KEY, question1)
            staged.set(config.SEC_Q1_ANSWER_KEY, hash_answer(answer1))
            staged.set(config.SEC_Q2_KEY, question2)
            staged.set(config.SEC_Q2_ANSWER_KEY, hash_answer(answer2))

        if self.biometric_available():
            enabled = True if enable_biometric is None else enable_biometric
            try:
                self.store.set(config.BIOMETRIC_ENABLED_KEY, "true" if enabled else "false")
            except PersistenceError as e:
                # Non-critical preference: setup still succeeds without it.
                logger.warning(f"Could not save biometric preference: {e}")
        elif enable_biometric:
            logger.info("Biometric unlock requested but not supported on this device")

        logger.info("Master password and security questions saved")
        self._start_session()

    # Unlock / lock

    def unlock_with_password(self, password: str) -> None:
        stored = self.store.get(config.MASTER_KEY)
        if stored is None:
            raise ValidationError("Vault has not been set up.")

        if not digests_equal(hash_secret(password), stored):
            self.failed_attempts += 1
            logger.warning(f"Wrong master password (attempt {self.failed_attempts})")
            raise AuthenticationError("Wrong master password")

        self._start_session()
        logger.info("Vault unlocked with master password")

    def biometric_available(self) -> bool:
        """True when the device can run a biometric challenge."""
        return self.gate is not None and self.gate.is_capable(self.accepted_types)

    def biometric_enabled(self) -> bool:
        return self.store.get(config.BIOMETRIC_ENABLED_KEY) == "true"

    def should_offer_biometric(self) -> bool:
        """Whether the lock screen should offer (or auto-start) biometric unlock."""
        return self.is_initialized and self.biometric_available() and self.biometric_enabled()

    def set_biometric_enabled(self, enabled: bool) -> None:
        if not self.biometric_available():
            raise ValidationError("Biometric authentication is not available on this device.")
        self.store.set(config.BIOMETRIC_ENABLED_KEY, "true" if enabled else "false")
        logger.info(f"Biometric authentication {'enabled' if enabled else 'disabled'}")

    def unlock_with_biometric(self, prompt_text: str = config.BIOMETRIC_PROMPT) -> None:
        """Run the biometric challenge. Failure leaves the password path open."""
        if not self.should_offer_biometric():
            raise ValidationError("Biometric unlock is not available.")

        try:
            result = self.gate.authenticate(prompt_text)
        except Exception as e:
            logger.error(f"Biometric authentication error: {e}")
            raise AuthenticationError(
                "Failed to authenticate with biometrics. Please use your master password."
            ) from e

        if result is BiometricResult.CANCELLED:
            raise AuthenticationError("Biometric authentication cancelled.")
        if result is not BiometricResult.SUCCESS:
            raise AuthenticationError("Biometric authentication failed.")

        self._start_session()
        logger.info("Vault unlocked with biometrics")

    def lock(self) -> None:
        if not self._unlocked:
            return
        self._unlocked = False
        for callback in self._lock_callbacks:
            callback()
        logger.info("Vault locked")

    def on_background(self) -> None:
        """The app lost foreground focus."""
        self.lock()

    def _start_session(self) -> None:
        self._unlocked = True
        self.failed_attempts = 0

    # Recovery

    def verify_recovery(self, answer1: str, answer2: str) -> bool:
        """
        Check both answers against the stored digests (case and surrounding
        whitespace are ignored). Both must match.
        """
        if not self.has_security_questions:
            raise ValidationError(
                "Security questions not found. Please set up master password first."
            )
        _validate_answers(answer1, answer2)

        match1 = digests_equal(hash_answer(answer1), self.store.get(config.SEC_Q1_ANSWER_KEY))
        match2 = digests_equal(hash_answer(answer2), self.store.get(config.SEC_Q2_ANSWER_KEY))
        self._recovery_verified = match1 and match2
        if not self._recovery_verified:
            logger.warning("Security answers did not match")
            raise AuthenticationError("Answers do not match. Cannot reset password.")

        logger.info("Security answers verified")
        return True

    def reset_password(self, new_password: str, confirm_password: str) -> None:
        """
        Replace the master password after a successful :meth:`verify_recovery`.

        The security questions are deleted along with the old digest; the
        vault stays locked and needs setup to add new questions.
        """
        if not self._recovery_verified:
            raise AuthenticationError("Please verify answers to security questions first.")
        _validate_new_password(new_password, confirm_password)

        with self.store.staged() as staged:
            staged.delete(config.MASTER_KEY)
            for key in config.SECURITY_QUESTION_KEYS:
                staged.delete(key)
            staged.set(config.MASTER_KEY, hash_secret(new_password))

        self._recovery_verified = False
        self.failed_attempts = 0
        self.lock()
        logger.info("Master password has been reset; security questions cleared")
