"""
Good Hackers Password Vault
Copyright (c) 2025

THREAT MODEL:
Local-only vault. Credentials never leave the device. The master password
gate stops casual local access; it does not resist an attacker with control
of the device or OS.
"""

from .errors import (
    VaultError,
    ValidationError,
    AuthenticationError,
    NotFoundError,
    PersistenceError,
    CorruptionError,
    VaultLockedError,
)
from .service import VaultService, OperationResult

__all__ = [
    "VaultError",
    "ValidationError",
    "AuthenticationError",
    "NotFoundError",
    "PersistenceError",
    "CorruptionError",
    "VaultLockedError",
    "VaultService",
    "OperationResult",
]
