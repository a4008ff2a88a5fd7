"""Credential management on behalf of a signed-in user."""
from __future__ import annotations

from typing import Any, Literal, Mapping, Optional

from ..core.crypto import CredentialCipher
from ..core.exceptions import InvalidCredentialPayload, MalformedCredentialBlob
from ..core.logging import get_logger
from ..core.providers import PROVIDERS, Provider, missing_fields, validate_provider
from ..repositories.cache import ResponseCache
from ..repositories.credentials import CredentialRepository
from ..resolvers import ResolverSet

logger = get_logger(__name__)

CredentialHealth = Literal["valid", "invalid", "absent"]


class CredentialService:
    """Encrypts, stores and removes per-user provider credentials."""

    def __init__(
        self,
        store: CredentialRepository,
        cipher: CredentialCipher,
        cache: ResponseCache,
        resolvers: ResolverSet,
    ):
        self._store = store
        self._cipher = cipher
        self._cache = cache
        self._resolvers = resolvers

    async def save(
        self,
        user_id: str,
        credentials: Mapping[str, Optional[Mapping[str, Any]]],
    ) -> dict[str, bool]:
        """
        Replace the user's stored credentials with ``credentials``.

        Providers missing from ``credentials`` are cleared, and the user's
        cached responses are dropped since they came from the old identity.
        """
        supplied = {p: doc for p, doc in credentials.items() if doc}
        if not supplied:
            raise ValueError("At least one cloud credential is required")

        blobs: dict[str, str] = {}
        for provider, document in supplied.items():
            validate_provider(provider)
            missing = missing_fields(provider, document)
            if missing:
                raise InvalidCredentialPayload(provider, missing)
            blobs[provider] = self._cipher.encrypt_json(dict(document))

        await self._store.store(user_id, blobs)
        await self._cache.invalidate_user(user_id)

        return {provider: provider in blobs for provider in PROVIDERS}

    async def summary(self, user_id: str) -> Optional[dict[str, bool]]:
        """Which providers have a stored blob; None when the user has no record."""
        blobs = await self._store.get(user_id)
        if blobs is None:
            return None
        return {provider: provider in blobs for provider in PROVIDERS}

    async def exists(self, user_id: str) -> bool:
        return await self._store.exists(user_id)

    async def remove_provider(self, user_id: str, provider: str) -> bool:
        """Drop one provider's blob, deleting the record once nothing is left."""
        provider = validate_provider(provider)
        blobs = await self._store.get(user_id)
        if not blobs or provider not in blobs:
            return False

        remaining = {p: blob for p, blob in blobs.items() if p != provider}
        if remaining:
            await self._store.store(user_id, remaining)
        else:
            await self._store.delete(user_id)

        await self._cache.invalidate(user_id, provider)
        logger.info("Removed %s credentials for user %s", provider, user_id)
        return True

    async def remove_all(self, user_id: str) -> bool:
        deleted = await self._store.delete(user_id)
        if deleted:
            await self._cache.invalidate_user(user_id)
        return deleted

    async def health(self, user_id: str) -> dict[Provider, CredentialHealth]:
        """
        Report whether each stored blob is usable.

        Resolvers silently fall back to default credentials when a stored
        blob is corrupt; this surfaces that state to the credential owner.
        """
        blobs = await self._store.get(user_id) or {}
        report: dict[Provider, CredentialHealth] = {}
        for provider in PROVIDERS:
            blob = blobs.get(provider)
            if not blob:
                report[provider] = "absent"
                continue
            try:
                self._resolvers.for_provider(provider).decode(blob)
            except MalformedCredentialBlob as exc:
                logger.warning("Stored credentials unusable for user %s: %s", user_id, exc)
                report[provider] = "invalid"
            else:
                report[provider] = "valid"
        return report
