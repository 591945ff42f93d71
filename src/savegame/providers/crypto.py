"""
savegame.providers.crypto
~~~~~~~~~~~~~~~~~~~~~~~~~

Symmetric encryption used by the record codec.  The record format stores the
key next to the ciphertext, so this layer obfuscates save data rather than
protecting it from someone who holds the file.

The default :class:`AesCryptoProvider` uses the `cryptography` package
(AES-CBC with PKCS7 padding).  Each ciphertext carries its own random IV as
its first block.
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

#: AES block size in bytes; also the IV length.
BLOCK_SIZE: int = 16

#: Key sizes accepted by AES (128/192/256 bit).
VALID_KEY_SIZES = (16, 24, 32)


class CryptoProvider(ABC):
    """Encrypts and decrypts save data with a caller-supplied key."""

    @abstractmethod
    def encrypt(self, data: bytes, key: bytes) -> bytes:
        """Encrypt ``data`` with ``key``."""

    @abstractmethod
    def decrypt(self, data: bytes, key: bytes) -> bytes:
        """Decrypt ``data`` with ``key``.

        Must raise when the content cannot be decrypted.
        """

    def generate_random_key(self, length: int) -> bytes:
        """Return ``length`` cryptographically secure random bytes."""
        if length <= 0:
            raise ValueError(f"Key length must be positive, got {length}")
        return os.urandom(length)


def _check_key(key: bytes) -> None:
    if len(key) not in VALID_KEY_SIZES:
        raise ValueError(f"Invalid AES key length: {len(key)}")


class AesCryptoProvider(CryptoProvider):
    """AES-CBC implementation of :class:`CryptoProvider`.

    Output layout: ``iv (16 bytes) || ciphertext``.
    """

    def encrypt(self, data: bytes, key: bytes) -> bytes:
        _check_key(key)
        iv = os.urandom(BLOCK_SIZE)
        padder = padding.PKCS7(algorithms.AES.block_size).padder()
        padded = padder.update(data) + padder.finalize()
        encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
        return iv + encryptor.update(padded) + encryptor.finalize()

    def decrypt(self, data: bytes, key: bytes) -> bytes:
        _check_key(key)
        if len(data) < 2 * BLOCK_SIZE or len(data) % BLOCK_SIZE:
            raise ValueError(f"Invalid AES ciphertext length: {len(data)}")
        iv, body = data[:BLOCK_SIZE], data[BLOCK_SIZE:]
        decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
        padded = decryptor.update(body) + decryptor.finalize()
        unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
        return unpadder.update(padded) + unpadder.finalize()
