"""
Cryptographic operations for the vault.

Secrets (master password, security answers) are stored as single-pass
SHA-256 digests. The file-backed record store encrypts its contents with
AES-256-GCM under a random device key.
"""

import os
from typing import Tuple
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives import hashes, constant_time
from cryptography.hazmat.backends import default_backend

from . import config


def hash_secret(plaintext: str) -> str:
    """Return the hex SHA-256 digest of ``plaintext``."""
    digest = hashes.Hash(hashes.SHA256(), backend=default_backend())
    digest.update(plaintext.encode('utf-8'))
    return digest.finalize().hex()


def normalize_answer(answer: str) -> str:
    """Trim and lower-case a security answer so case/whitespace never block recovery."""
    return answer.strip().lower()


def hash_answer(answer: str) -> str:
    return hash_secret(normalize_answer(answer))


def digests_equal(a: str, b: str) -> bool:
    """Constant-time comparison of two hex digests."""
    return constant_time.bytes_eq(a.encode('ascii'), b.encode('ascii'))


class CryptoManager:
    """Handles AES-GCM encryption for the record store."""

    KEY_SIZE = config.KEY_SIZE
    NONCE_SIZE = config.NONCE_SIZE

    def __init__(self):
        """Initialize the crypto manager."""
        self.backend = default_backend()

    def generate_key(self) -> bytes:
        """Generate a random AES-256 key."""
        return os.urandom(self.KEY_SIZE)

    def encrypt(self, plaintext: bytes, key: bytes) -> Tuple[bytes, bytes, bytes]:
        """
        Encrypt data using AES-256-GCM.

        Args:
            plaintext: Data to encrypt
            key: 32-byte encryption key

        Returns:
            Tuple of (ciphertext, nonce, tag)
        """
        nonce = os.urandom(self.NONCE_SIZE)
        cipher = Cipher(
            algorithms.AES(key),
            modes.GCM(nonce),
            backend=self.backend
        )
        encryptor = cipher.encryptor()
        ciphertext = encryptor.update(plaintext) + encryptor.finalize()
        return ciphertext, nonce, encryptor.tag

    def decrypt(self, ciphertext: bytes, key: bytes, nonce: bytes, tag: bytes) -> bytes:
        """
        Decrypt data using AES-256-GCM.

        Raises:
            InvalidTag: If authentication fails
        """
        cipher = Cipher(
            algorithms.AES(key),
            modes.GCM(nonce, tag),
            backend=self.backend
        )
        decryptor = cipher.decryptor()
        return decryptor.update(ciphertext) + decryptor.finalize()
