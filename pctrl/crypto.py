#  pctrl - Crypto Engine
#
#  Passphrase-derived AES-256-GCM for credential payloads at rest.
#  Key derivation is Argon2id; each ciphertext carries its own random
#  96-bit nonce as a prefix.
#
#  Without a key the engine is disabled and encrypt/decrypt pass data
#  through unchanged. Encryption is opt-in and tied to PCTRL_PASSPHRASE.
#
#  Depends on: exceptions.py
#  Used by:    store/store.py, store/credentials.py

import logging
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.argon2 import Argon2id

from pctrl.exceptions import CryptoError

logger = logging.getLogger("pctrl.crypto")

KEY_SIZE = 32
NONCE_SIZE = 12
SALT_SIZE = 16

# Argon2id parameters (memory in KiB)
ARGON2_MEMORY_KIB = 19456
ARGON2_ITERATIONS = 2
ARGON2_LANES = 1


def generate_salt() -> bytes:
    return os.urandom(SALT_SIZE)


class CryptoEngine:
    """Symmetric cipher for credential blobs.

    Build with ``CryptoEngine.from_passphrase(passphrase, salt)`` or pass a
    raw 32-byte key. ``CryptoEngine(None)`` yields a disabled engine.
    """

    def __init__(self, key: bytes | None = None):
        if key is not None and len(key) != KEY_SIZE:
            raise CryptoError(f"key must be {KEY_SIZE} bytes, got {len(key)}")
        self._aead = AESGCM(key) if key is not None else None

    @classmethod
    def from_passphrase(cls, passphrase: str | None, salt: bytes) -> "CryptoEngine":
        if not passphrase:
            return cls(None)
        return cls(cls.derive_key(passphrase, salt))

    @staticmethod
    def derive_key(passphrase: str, salt: bytes) -> bytes:
        """Derive a 32-byte key from a passphrase with Argon2id."""
        try:
            kdf = Argon2id(
                salt=salt,
                length=KEY_SIZE,
                iterations=ARGON2_ITERATIONS,
                lanes=ARGON2_LANES,
                memory_cost=ARGON2_MEMORY_KIB,
            )
            return kdf.derive(passphrase.encode("utf-8"))
        except (ValueError, TypeError) as e:
            raise CryptoError(f"key derivation failed: {e}") from e

    @property
    def enabled(self) -> bool:
        return self._aead is not None

    def encrypt(self, plaintext: bytes) -> bytes:
        """Return nonce || ciphertext || tag, or plaintext when disabled."""
        if self._aead is None:
            return plaintext
        nonce = os.urandom(NONCE_SIZE)
        return nonce + self._aead.encrypt(nonce, plaintext, None)

    def decrypt(self, blob: bytes) -> bytes:
        if self._aead is None:
            return blob
        if len(blob) < NONCE_SIZE:
            raise CryptoError(f"ciphertext too short ({len(blob)} bytes)")
        nonce, body = blob[:NONCE_SIZE], blob[NONCE_SIZE:]
        try:
            return self._aead.decrypt(nonce, body, None)
        except InvalidTag as e:
            logger.warning("Credential decryption failed (wrong passphrase or corrupted data)")
            raise CryptoError("decryption failed: authentication tag mismatch") from e
