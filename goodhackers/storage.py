"""
Secure record store for the vault.

The vault core only needs string get/set/delete by key. ``EncryptedFileStore``
keeps the whole key/value map in one AES-GCM encrypted file under a random
device key, so every write (including a staged multi-key commit) lands as a
single atomic file replacement.
"""

import os
import json
import struct
import threading
import shutil
import logging
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Tuple

from cryptography.exceptions import InvalidTag

from .crypto import CryptoManager
from .errors import CorruptionError, PersistenceError
from .utils import set_owner_only_permissions, ensure_private_dir
from . import config

logger = logging.getLogger(__name__)


class StagedWrite:
    """Collects set/delete operations to be committed together."""

    def __init__(self):
        self._operations: List[Tuple[str, str, Optional[str]]] = []

    def set(self, key: str, value: str) -> None:
        self._operations.append(("set", key, value))

    def delete(self, key: str) -> None:
        self._operations.append(("delete", key, None))

    @property
    def operations(self) -> List[Tuple[str, str, Optional[str]]]:
        return list(self._operations)


class SecureRecordStore:
    """Interface of an encrypted-at-rest key/value store for small strings."""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        """Delete ``key``. Deleting an absent key is a no-op."""
        raise NotImplementedError

    def commit(self, operations: List[Tuple[str, str, Optional[str]]]) -> None:
        """
        Apply staged operations in order.

        The default is a best-effort sequence of individual writes: a failure
        part-way leaves the earlier writes in place. Stores that can write
        several keys at once override this.
        """
        for op, key, value in operations:
            if op == "set":
                self.set(key, value)
            else:
                self.delete(key)

    @contextmanager
    def staged(self) -> Iterator[StagedWrite]:
        """
        Stage writes inside a ``with`` block and commit them on a clean exit.
        Nothing is written if the block raises.
        """
        staged = StagedWrite()
        yield staged
        self.commit(staged.operations)


class EncryptedFileStore(SecureRecordStore):
    """Record store backed by a single AES-256-GCM encrypted file."""

    VERSION = 1
    MAGIC_BYTES = b'GHVS'  # Good Hackers Vault Store

    def __init__(self, filepath: str, key_path: Optional[str] = None):
        """
        Initialize the file store.
        Args:
            filepath: Path to the encrypted store file
            key_path: Path to the device key file (created on first use).
                Defaults to a file next to the store.
        """
        self.filepath = filepath
        self.key_path = key_path or os.path.join(
            os.path.dirname(os.path.abspath(filepath)), config.DEVICE_KEY_FILE
        )
        self.crypto = CryptoManager()
        self._lock = threading.Lock()
        self._key: Optional[bytes] = None

    @classmethod
    def default(cls) -> 'EncryptedFileStore':
        """Store in the per-user configuration directory."""
        directory = config.config_dir()
        try:
            ensure_private_dir(directory)
        except OSError as e:
            raise PersistenceError(f"Could not create {directory}: {e}") from e
        return cls(os.path.join(directory, config.DEFAULT_STORE_FILE))

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            data = self._read_all()
            data[key] = value
            self._write_all(data)

    def delete(self, key: str) -> None:
        with self._lock:
            data = self._read_all()
            if key in data:
                del data[key]
                self._write_all(data)

    def commit(self, operations: List[Tuple[str, str, Optional[str]]]) -> None:
        """Apply all staged operations in one atomic file replacement."""
        with self._lock:
            data = self._read_all()
            for op, key, value in operations:
                if op == "set":
                    data[key] = value
                else:
                    data.pop(key, None)
            self._write_all(data)

    def _device_key(self) -> bytes:
        """Load the device key, generating it on first use."""
        if self._key is not None:
            return self._key
        try:
            if os.path.exists(self.key_path):
                with open(self.key_path, 'rb') as f:
                    key = f.read()
                if len(key) != self.crypto.KEY_SIZE:
                    raise CorruptionError(f"Device key {self.key_path} has an invalid size")
            elif os.path.exists(self.filepath):
                raise CorruptionError(
                    f"Device key {self.key_path} is missing; {self.filepath} cannot be decrypted")
            else:
                key = self.crypto.generate_key()
                with open(self.key_path, 'wb') as f:
                    f.write(key)
                set_owner_only_permissions(self.key_path)
                logger.info(f"Generated new device key at {self.key_path}")
        except OSError as e:
            logger.error(f"Error accessing device key {self.key_path}: {e}", exc_info=True)
            raise PersistenceError(f"Could not access device key: {e}") from e
        self._key = key
        return key

    def _read_all(self) -> Dict[str, str]:
        if not os.path.exists(self.filepath):
            return {}
        key = self._device_key()
        try:
            with open(self.filepath, 'rb') as f:
                magic = f.read(4)
                if magic != self.MAGIC_BYTES:
                    raise CorruptionError(f"Store file {self.filepath} has an unknown format")

                version = struct.unpack('<I', f.read(4))[0]
                if version != self.VERSION:
                    raise CorruptionError(f"Unsupported store version {version}")

                nonce_size = struct.unpack('<I', f.read(4))[0]
                nonce = f.read(nonce_size)

                tag_size = struct.unpack('<I', f.read(4))[0]
                tag = f.read(tag_size)

                ciphertext_size = struct.unpack('<I', f.read(4))[0]
                ciphertext = f.read(ciphertext_size)
        except OSError as e:
            logger.error(f"Error reading store file {self.filepath}: {e}", exc_info=True)
            raise PersistenceError(f"Could not read store: {e}") from e
        except struct.error as e:
            raise CorruptionError(f"Store file {self.filepath} is truncated") from e

        try:
            plaintext = self.crypto.decrypt(ciphertext, key, nonce, tag)
            data = json.loads(plaintext.decode('utf-8'))
        except (InvalidTag, ValueError) as e:
            raise CorruptionError(f"Store file {self.filepath} could not be decrypted") from e

        if not isinstance(data, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in data.items()
        ):
            raise CorruptionError(f"Store file {self.filepath} does not hold string records")
        return data

    def _write_all(self, data: Dict[str, str]) -> None:
        key = self._device_key()
        plaintext = json.dumps(data).encode('utf-8')
        ciphertext, nonce, tag = self.crypto.encrypt(plaintext, key)
        tmp_path = self.filepath + '.tmp'

        try:
            with open(tmp_path, 'wb') as f:
                # Header
                f.write(self.MAGIC_BYTES)
                f.write(struct.pack('<I', self.VERSION))

                # Nonce
                f.write(struct.pack('<I', len(nonce)))
                f.write(nonce)

                # Tag
                f.write(struct.pack('<I', len(tag)))
                f.write(tag)

                # Ciphertext
                f.write(struct.pack('<I', len(ciphertext)))
                f.write(ciphertext)

            shutil.move(tmp_path, self.filepath)

            if not set_owner_only_permissions(self.filepath):
                logger.warning(f"Failed to set secure file permissions for store: {self.filepath}.")

        except OSError as e:
            logger.error(f"Error saving store file {self.filepath}: {e}", exc_info=True)
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise PersistenceError(f"Could not save store: {e}") from e
