"""
Error kinds raised by the vault core.

Every error carries a ``kind`` tag so the UI layer can tell them apart
without inspecting the class hierarchy.
"""


class VaultError(Exception):
    """Base class for all vault errors."""

    kind = "error"

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class ValidationError(VaultError):
    """Input failed a precondition. Raised before any write."""

    kind = "validation"


class AuthenticationError(VaultError):
    """Password, recovery answers or biometric challenge did not match."""

    kind = "authentication"


class NotFoundError(VaultError):
    """A credential id does not exist in the collection."""

    kind = "not_found"


class PersistenceError(VaultError):
    """The record store failed to read, write or delete."""

    kind = "persistence"


class CorruptionError(VaultError):
    """Persisted data could not be decoded into the expected shape."""

    kind = "corruption"


class VaultLockedError(VaultError):
    """The operation requires an unlocked vault."""

    kind = "locked"
