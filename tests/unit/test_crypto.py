#  pctrl - Crypto Engine Tests
#
#  Depends on: pctrl/crypto.py
#  Used by:    pytest

import pytest

from pctrl.crypto import KEY_SIZE, NONCE_SIZE, SALT_SIZE, CryptoEngine, generate_salt
from pctrl.exceptions import CryptoError, StorageError

SALT = b"0123456789abcdef"


class TestDeriveKey:
    def test_key_is_32_bytes(self):
        key = CryptoEngine.derive_key("hunter2", SALT)
        assert len(key) == KEY_SIZE

    def test_deterministic_for_same_input(self):
        assert CryptoEngine.derive_key("hunter2", SALT) == CryptoEngine.derive_key("hunter2", SALT)

    def test_salt_changes_key(self):
        other = b"fedcba9876543210"
        assert CryptoEngine.derive_key("hunter2", SALT) != CryptoEngine.derive_key("hunter2", other)

    def test_passphrase_changes_key(self):
        assert CryptoEngine.derive_key("hunter2", SALT) != CryptoEngine.derive_key("hunter3", SALT)

    def test_generated_salt_size(self):
        salt = generate_salt()
        assert len(salt) == SALT_SIZE
        assert salt != generate_salt()


class TestEncryptDecrypt:
    def test_roundtrip(self):
        engine = CryptoEngine.from_passphrase("hunter2", SALT)
        blob = engine.encrypt(b'{"type":"api_token","token":"abc"}')
        assert engine.decrypt(blob) == b'{"type":"api_token","token":"abc"}'

    def test_ciphertext_layout(self):
        """nonce (12) + ciphertext (len plaintext) + GCM tag (16)."""
        engine = CryptoEngine.from_passphrase("hunter2", SALT)
        blob = engine.encrypt(b"secret")
        assert len(blob) == NONCE_SIZE + len(b"secret") + 16
        assert b"secret" not in blob

    def test_fresh_nonce_per_call(self):
        engine = CryptoEngine.from_passphrase("hunter2", SALT)
        a = engine.encrypt(b"same")
        b = engine.encrypt(b"same")
        assert a[:NONCE_SIZE] != b[:NONCE_SIZE]
        assert a != b

    def test_wrong_key_raises(self):
        blob = CryptoEngine.from_passphrase("hunter2", SALT).encrypt(b"secret")
        with pytest.raises(CryptoError, match="tag mismatch"):
            CryptoEngine.from_passphrase("wrong", SALT).decrypt(blob)

    def test_corrupted_ciphertext_raises(self):
        engine = CryptoEngine.from_passphrase("hunter2", SALT)
        blob = bytearray(engine.encrypt(b"secret"))
        blob[-1] ^= 0x01
        with pytest.raises(CryptoError):
            engine.decrypt(bytes(blob))

    def test_short_blob_rejected(self):
        engine = CryptoEngine.from_passphrase("hunter2", SALT)
        with pytest.raises(CryptoError, match="too short"):
            engine.decrypt(b"\x00" * (NONCE_SIZE - 1))

    def test_crypto_error_is_storage_error(self):
        engine = CryptoEngine.from_passphrase("hunter2", SALT)
        with pytest.raises(StorageError):
            engine.decrypt(b"short")

    def test_bad_key_length(self):
        with pytest.raises(CryptoError, match="32 bytes"):
            CryptoEngine(b"too-short")


class TestDisabledEngine:
    def test_no_passphrase_disables(self):
        assert CryptoEngine.from_passphrase(None, SALT).enabled is False
        assert CryptoEngine.from_passphrase("", SALT).enabled is False
        assert CryptoEngine.from_passphrase("x", SALT).enabled is True

    def test_passthrough(self):
        engine = CryptoEngine(None)
        assert engine.encrypt(b"plain") == b"plain"
        assert engine.decrypt(b"plain") == b"plain"

    def test_short_input_allowed_when_disabled(self):
        assert CryptoEngine(None).decrypt(b"") == b""
