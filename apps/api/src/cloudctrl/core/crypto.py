"""AES-256-GCM encryption utilities for credential storage."""
from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
import secrets
from typing import Any, Final

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .config import Settings
from .exceptions import AuthenticationError

NONCE_LENGTH: Final[int] = 12  # 96-bit GCM nonce
TAG_LENGTH: Final[int] = 16  # 128-bit auth tag
KEY_LENGTH: Final[int] = 32  # AES-256
SALT_LENGTH: Final[int] = 16
PBKDF2_ITERATIONS: Final[int] = 100_000


def generate_key() -> bytes:
    """Return a fresh random 256-bit key."""
    return secrets.token_bytes(KEY_LENGTH)


def generate_salt() -> bytes:
    return secrets.token_bytes(SALT_LENGTH)


def derive_key(password: str, salt: bytes) -> bytes:
    """Derive a 256-bit key from a password with PBKDF2-HMAC-SHA256."""
    if len(salt) != SALT_LENGTH:
        raise ValueError(f"salt must be {SALT_LENGTH} bytes")
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=salt,
        iterations=PBKDF2_ITERATIONS,
    )
    return kdf.derive(password.encode())


def _check_key(key: bytes) -> None:
    if len(key) != KEY_LENGTH:
        raise ValueError(f"key must be {KEY_LENGTH} bytes (AES-256)")


def encrypt(plaintext: str, key: bytes) -> str:
    """
    Encrypt ``plaintext`` under AES-256-GCM.

    Returns base64(nonce || ciphertext || tag). A new nonce is drawn for
    every call, so equal plaintexts never produce equal output.
    """
    _check_key(key)
    nonce = secrets.token_bytes(NONCE_LENGTH)
    # AESGCM appends the 16-byte tag to the ciphertext
    sealed = AESGCM(key).encrypt(nonce, plaintext.encode("utf-8"), associated_data=None)
    return base64.b64encode(nonce + sealed).decode("ascii")


def decrypt(encoded: str, key: bytes) -> str:
    """
    Decrypt a value produced by :func:`encrypt`.

    Raises:
        AuthenticationError: the blob is not valid base64, is too short,
            or its tag does not verify under ``key``.
    """
    _check_key(key)
    try:
        combined = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise AuthenticationError("encrypted blob is not valid base64") from exc

    if len(combined) < NONCE_LENGTH + TAG_LENGTH:
        raise AuthenticationError("encrypted blob too short")

    nonce, sealed = combined[:NONCE_LENGTH], combined[NONCE_LENGTH:]
    try:
        raw = AESGCM(key).decrypt(nonce, sealed, associated_data=None)
    except InvalidTag as exc:
        raise AuthenticationError("authentication tag mismatch") from exc
    return raw.decode("utf-8")


def secure_compare(a: str, b: str) -> bool:
    """Timing-safe string comparison. Length mismatch returns early."""
    if len(a) != len(b):
        return False
    return hmac.compare_digest(a.encode(), b.encode())


def hash_value(value: str) -> str:
    """One-way SHA-256 hex digest for non-reversible identifiers."""
    return hashlib.sha256(value.encode()).hexdigest()


class CredentialCipher:
    """Encrypts provider credential documents under the process master key."""

    def __init__(self, key: bytes):
        _check_key(key)
        self._key = key

    @classmethod
    def from_encoded_key(cls, encoded_key: str | None) -> "CredentialCipher":
        if not encoded_key:
            raise RuntimeError(
                "CREDENTIALS_MASTER_KEY must be set for credential encryption"
            )

        try:
            key_bytes = bytes.fromhex(encoded_key)
        except ValueError:
            # Fall back to urlsafe base64 (Fernet-style keys)
            try:
                key_bytes = base64.urlsafe_b64decode(encoded_key)
            except (binascii.Error, ValueError) as exc:
                raise RuntimeError(
                    "CREDENTIALS_MASTER_KEY must be hex encoded or urlsafe base64"
                ) from exc

        if len(key_bytes) != KEY_LENGTH:
            raise RuntimeError(
                "CREDENTIALS_MASTER_KEY must be a 256-bit key (64 hex chars)"
            )
        return cls(key_bytes)

    def encrypt(self, plaintext: str) -> str:
        return encrypt(plaintext, self._key)

    def decrypt(self, encoded: str) -> str:
        return decrypt(encoded, self._key)

    def encrypt_json(self, document: dict[str, Any]) -> str:
        return self.encrypt(json.dumps(document, separators=(",", ":")))

    def decrypt_json(self, encoded: str) -> Any:
        """Decrypt and parse; raises AuthenticationError or json.JSONDecodeError."""
        return json.loads(self.decrypt(encoded))


def load_default_cipher(settings: Settings) -> CredentialCipher:
    """Construct the default cipher using environment configuration."""
    return CredentialCipher.from_encoded_key(settings.CREDENTIALS_MASTER_KEY)
