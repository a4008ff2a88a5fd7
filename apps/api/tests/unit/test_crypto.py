"""
Tests for the AES-256-GCM crypto module.
"""
import base64
import os

import pytest

from cloudctrl.core.config import Settings
from cloudctrl.core.crypto import (
    KEY_LENGTH,
    NONCE_LENGTH,
    SALT_LENGTH,
    TAG_LENGTH,
    CredentialCipher,
    decrypt,
    derive_key,
    encrypt,
    generate_key,
    generate_salt,
    hash_value,
    load_default_cipher,
    secure_compare,
)
from cloudctrl.core.exceptions import AuthenticationError


@pytest.fixture
def key():
    return generate_key()


def _flip_byte(encoded: str, index: int) -> str:
    raw = bytearray(base64.b64decode(encoded))
    raw[index] ^= 0x01
    return base64.b64encode(bytes(raw)).decode("ascii")


def test_encrypt_decrypt_roundtrip(key):
    """Encrypting then decrypting returns the original text."""
    for plaintext in ["", "secret-api-key-value", "ünïcødé ✓ 鍵", "x" * 10_000]:
        assert decrypt(encrypt(plaintext, key), key) == plaintext


def test_encrypted_layout(key):
    """Output is base64(nonce || ciphertext || tag)."""
    plaintext = "hello"
    raw = base64.b64decode(encrypt(plaintext, key))

    assert len(raw) == NONCE_LENGTH + len(plaintext.encode()) + TAG_LENGTH


def test_same_plaintext_produces_different_ciphertexts(key):
    """A fresh nonce per call means equal inputs never encrypt alike."""
    encrypted1 = encrypt("same-secret", key)
    encrypted2 = encrypt("same-secret", key)

    assert encrypted1 != encrypted2
    assert decrypt(encrypted1, key) == decrypt(encrypted2, key) == "same-secret"


def test_nonces_are_unique(key):
    nonces = {base64.b64decode(encrypt("x", key))[:NONCE_LENGTH] for _ in range(10_000)}

    assert len(nonces) == 10_000


@pytest.mark.parametrize("index", [0, NONCE_LENGTH - 1, NONCE_LENGTH, NONCE_LENGTH + 5, -1])
def test_tampering_is_detected(key, index):
    """Flipping any bit in nonce, ciphertext or tag fails authentication."""
    encoded = encrypt('{"accessKeyId":"AKIA"}', key)

    with pytest.raises(AuthenticationError):
        decrypt(_flip_byte(encoded, index), key)


def test_every_byte_is_authenticated(key):
    encoded = encrypt("abc", key)
    length = len(base64.b64decode(encoded))

    for index in range(length):
        with pytest.raises(AuthenticationError):
            decrypt(_flip_byte(encoded, index), key)


def test_wrong_key_fails(key):
    encoded = encrypt("secret", key)

    with pytest.raises(AuthenticationError):
        decrypt(encoded, generate_key())


def test_truncated_blob_fails(key):
    short = base64.b64encode(os.urandom(NONCE_LENGTH + TAG_LENGTH - 1)).decode()

    with pytest.raises(AuthenticationError):
        decrypt(short, key)


def test_invalid_base64_fails(key):
    with pytest.raises(AuthenticationError):
        decrypt("not base64!!", key)


def test_key_length_is_enforced():
    with pytest.raises(ValueError):
        encrypt("x", b"short")
    with pytest.raises(ValueError):
        CredentialCipher(b"\x00" * 16)


def test_generate_key_and_salt():
    assert len(generate_key()) == KEY_LENGTH
    assert generate_key() != generate_key()
    assert len(generate_salt()) == SALT_LENGTH


def test_derive_key_is_deterministic():
    salt = generate_salt()

    key1 = derive_key("correct horse", salt)
    key2 = derive_key("correct horse", salt)

    assert key1 == key2
    assert len(key1) == KEY_LENGTH
    assert derive_key("correct horse", generate_salt()) != key1
    assert derive_key("battery staple", salt) != key1


def test_derive_key_rejects_bad_salt():
    with pytest.raises(ValueError):
        derive_key("password", b"short")


def test_derived_key_encrypts():
    key = derive_key("password", generate_salt())

    assert decrypt(encrypt("payload", key), key) == "payload"


def test_secure_compare():
    assert secure_compare("token-123", "token-123")
    assert not secure_compare("token-123", "token-124")
    assert not secure_compare("token", "token-123")
    assert secure_compare("", "")


def test_hash_value():
    digest = hash_value("user@example.com")

    assert digest == hash_value("user@example.com")
    assert digest != hash_value("other@example.com")
    assert len(digest) == 64


class TestCredentialCipher:
    """CredentialCipher wraps the functions above with the master key."""

    def test_json_roundtrip(self):
        cipher = CredentialCipher(generate_key())
        document = {"accessKeyId": "AKIA123", "secretAccessKey": "s3cr3t", "region": "eu-west-1"}

        blob = cipher.encrypt_json(document)

        assert "AKIA123" not in blob
        assert cipher.decrypt_json(blob) == document

    def test_from_hex_key(self):
        key = generate_key()
        cipher = CredentialCipher.from_encoded_key(key.hex())

        assert decrypt(cipher.encrypt("v"), key) == "v"

    def test_from_base64_key(self):
        key = generate_key()
        cipher = CredentialCipher.from_encoded_key(base64.urlsafe_b64encode(key).decode())

        assert decrypt(cipher.encrypt("v"), key) == "v"

    @pytest.mark.parametrize("encoded", [None, "", "abcd", "zz" * 40])
    def test_rejects_missing_or_invalid_key(self, encoded):
        with pytest.raises(RuntimeError):
            CredentialCipher.from_encoded_key(encoded)

    def test_load_default_cipher_from_settings(self):
        key = generate_key()
        settings = Settings(CREDENTIALS_MASTER_KEY=key.hex())

        cipher = load_default_cipher(settings)

        assert cipher.decrypt(encrypt("ok", key)) == "ok"

    def test_load_default_cipher_requires_key(self):
        with pytest.raises(RuntimeError):
            load_default_cipher(Settings(CREDENTIALS_MASTER_KEY=None))
