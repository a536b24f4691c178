import binascii
import os
from functools import lru_cache

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from devprofile.core import config
from devprofile.core.exceptions import ConfigurationError, DecryptionError, FormatError

KEY_SIZE = 32  # AES-256
IV_SIZE = 16


class TokenCipher:
    """AES-256-CBC cipher for access tokens stored at rest.

    Encoded form is ``<iv hex>:<ciphertext hex>``. A fresh IV is drawn for
    every call to :meth:`encrypt`, so the same token never encrypts to the
    same string twice.
    """

    def __init__(self, key: bytes):
        if len(key) != KEY_SIZE:
            raise ConfigurationError(f"Encryption key must be {KEY_SIZE} bytes, got {len(key)}")
        self._key = key

    @classmethod
    def from_hex(cls, hex_key: str) -> "TokenCipher":
        if not hex_key:
            raise ConfigurationError("ENCRYPTION_KEY not configured in environment")
        if len(hex_key) != KEY_SIZE * 2:
            raise ConfigurationError("ENCRYPTION_KEY must be 64 characters (32 bytes in hex)")
        try:
            key = bytes.fromhex(hex_key)
        except ValueError:
            raise ConfigurationError("ENCRYPTION_KEY must be hex encoded")
        return cls(key)

    def encrypt(self, plaintext: str) -> str:
        """Encrypt a token for storage."""
        iv = os.urandom(IV_SIZE)
        padder = padding.PKCS7(algorithms.AES.block_size).padder()
        padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()

        encryptor = Cipher(algorithms.AES(self._key), modes.CBC(iv)).encryptor()
        ciphertext = encryptor.update(padded) + encryptor.finalize()
        return f"{iv.hex()}:{ciphertext.hex()}"

    def decrypt(self, encoded: str) -> str:
        """Decrypt a stored token."""
        iv, ciphertext = _split(encoded)

        decryptor = Cipher(algorithms.AES(self._key), modes.CBC(iv)).decryptor()
        try:
            padded = decryptor.update(ciphertext) + decryptor.finalize()
            unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
            data = unpadder.update(padded) + unpadder.finalize()
            return data.decode("utf-8")
        except (ValueError, UnicodeDecodeError) as e:
            raise DecryptionError(f"Failed to decrypt token: {e}") from e


def _split(encoded: str):
    if not isinstance(encoded, str):
        raise FormatError("Invalid encrypted token format")
    parts = encoded.split(":")
    if len(parts) != 2:
        raise FormatError("Invalid encrypted token format")
    try:
        iv = binascii.unhexlify(parts[0])
        ciphertext = binascii.unhexlify(parts[1])
    except (binascii.Error, ValueError):
        raise FormatError("Invalid encrypted token format: not hex")
    if len(iv) != IV_SIZE:
        raise FormatError(f"Invalid IV length: {len(iv)}")
    if not ciphertext or len(ciphertext) % IV_SIZE:
        raise FormatError("Invalid ciphertext length")
    return iv, ciphertext


@lru_cache(maxsize=1)
def get_cipher() -> TokenCipher:
    """Process-wide cipher built from ENCRYPTION_KEY. Called on startup."""
    return TokenCipher.from_hex(config.ENCRYPTION_KEY)


def encrypt_token(token: str) -> str:
    return get_cipher().encrypt(token)


def decrypt_token(encrypted: str) -> str:
    return get_cipher().decrypt(encrypted)
