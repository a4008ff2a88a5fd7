"""Error taxonomy for the credential and cache layer."""
from __future__ import annotations


class CloudCtrlError(Exception):
    """Base class for errors raised by this package."""


class AuthenticationError(CloudCtrlError):
    """AEAD tag verification failed (tampered blob or wrong key)."""


class MalformedCredentialBlob(CloudCtrlError):
    """A stored credential could not be decrypted or lacks required fields."""

    def __init__(self, provider: str, reason: str):
        super().__init__(f"{provider} credential blob is unusable: {reason}")
        self.provider = provider
        self.reason = reason


class CredentialsNotConfigured(CloudCtrlError):
    """Neither a user credential nor a default credential source is available."""

    def __init__(self, provider: str, message: str | None = None):
        super().__init__(message or f"No {provider} credentials configured")
        self.provider = provider


class StoreUnavailable(CloudCtrlError):
    """The persistence layer could not be reached or rejected the operation."""


class CacheUnavailable(StoreUnavailable):
    """Persistence failure inside the response cache."""


class InvalidCredentialPayload(CloudCtrlError):
    """Credential material supplied by a caller is missing required fields."""

    def __init__(self, provider: str, missing: list[str]):
        super().__init__(
            f"Invalid {provider} credentials: missing {', '.join(missing)}"
        )
        self.provider = provider
        self.missing = missing
