"""
Biometric gate for the vault.

``BiometricGate`` is the interface the vault consumes: capability queries
plus a single authentication challenge. ``PinBiometricGate`` is the desktop
fallback, a PIN prompt whose hash is kept in an owner-only file.
"""

import os
import json
import base64
import hashlib
import logging
from enum import Enum
from typing import Callable, FrozenSet, Iterable, Optional

from cryptography.hazmat.primitives import constant_time

from .utils import set_owner_only_permissions, ensure_private_dir
from . import config

logger = logging.getLogger(__name__)


class AuthenticationType(str, Enum):
    FINGERPRINT = "fingerprint"
    FACE = "face"
    OTHER = "other"


class BiometricResult(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    CANCELLED = "cancelled"


class BiometricGate:
    """Platform biometric capability and challenge."""

    def has_hardware(self) -> bool:
        raise NotImplementedError

    def is_enrolled(self) -> bool:
        raise NotImplementedError

    def supported_types(self) -> FrozenSet[AuthenticationType]:
        raise NotImplementedError

    def authenticate(self, prompt_text: str) -> BiometricResult:
        raise NotImplementedError

    def is_capable(self, accepted_types: Iterable = config.BIOMETRIC_ACCEPTED_TYPES) -> bool:
        """
        True when hardware is present, the user is enrolled and at least one
        accepted sensor type is supported. Probe errors count as "not capable".
        """
        accepted = {AuthenticationType(t) for t in accepted_types}
        try:
            return (
                self.has_hardware()
                and self.is_enrolled()
                and bool(accepted & set(self.supported_types()))
            )
        except Exception as e:
            logger.error(f"Error checking biometric support: {e}")
            return False


def _qt_pin_prompt(prompt_text: str) -> Optional[str]:
    """Ask for the PIN with a Qt password dialog. Returns None when dismissed."""
    from PyQt5.QtWidgets import QApplication, QInputDialog, QLineEdit

    app = QApplication.instance()
    parent = None
    if app:
        for widget in app.topLevelWidgets():
            if widget.isVisible() and widget.isActiveWindow():
                parent = widget
                break

    pin, ok = QInputDialog.getText(
        parent,
        prompt_text,
        config.PIN_PROMPT_ENTER,
        QLineEdit.Password,
        ""
    )
    if ok and pin:
        return pin
    return None


class PinBiometricGate(BiometricGate):
    """
    PIN-based stand-in for a biometric sensor on desktops.

    Reports itself as an ``other``-type sensor that is enrolled once a PIN has
    been set with :meth:`enroll`.
    """

    def __init__(self, auth_file: Optional[str] = None,
                 prompt: Callable[[str], Optional[str]] = _qt_pin_prompt):
        self.auth_file = auth_file or os.path.join(config.config_dir(), config.PIN_AUTH_FILE)
        self._prompt = prompt
        self._stored_hash: Optional[str] = None
        self._load_auth_hash()

    def _hash_pin(self, pin: str) -> bytes:
        return hashlib.pbkdf2_hmac(
            'sha256',
            pin.encode('utf-8'),
            config.PIN_HASH_SALT,
            config.PIN_HASH_ITERATIONS
        )

    def _load_auth_hash(self):
        """Load stored PIN hash if it exists."""
        if not os.path.exists(self.auth_file):
            return
        try:
            with open(self.auth_file, 'r') as f:
                data = json.load(f)
            self._stored_hash = data.get('auth_hash')
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable PIN file {self.auth_file}: {e}")

    def enroll(self, pin: str) -> None:
        """Store the PIN hash. Raises OSError if the file cannot be written."""
        ensure_private_dir(os.path.dirname(os.path.abspath(self.auth_file)))
        data = {'auth_hash': base64.b64encode(self._hash_pin(pin)).decode()}
        with open(self.auth_file, 'w') as f:
            json.dump(data, f)
        set_owner_only_permissions(self.auth_file)
        self._stored_hash = data['auth_hash']
        logger.info("PIN set up successfully")

    def has_hardware(self) -> bool:
        return True

    def is_enrolled(self) -> bool:
        return self._stored_hash is not None

    def supported_types(self) -> FrozenSet[AuthenticationType]:
        return frozenset({AuthenticationType.OTHER})

    def authenticate(self, prompt_text: str) -> BiometricResult:
        if not self._stored_hash:
            return BiometricResult.FAILURE

        pin = self._prompt(prompt_text)
        if pin is None:
            logger.info("PIN authentication cancelled")
            return BiometricResult.CANCELLED

        stored = base64.b64decode(self._stored_hash)
        if constant_time.bytes_eq(self._hash_pin(pin), stored):
            logger.info("PIN authentication successful")
            return BiometricResult.SUCCESS
        logger.warning("PIN authentication failed")
        return BiometricResult.FAILURE
