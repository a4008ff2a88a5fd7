from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, ClassVar, Dict, Generic, Hashable, Optional, TypeVar

from ..core.crypto import CredentialCipher
from ..core.exceptions import (
    AuthenticationError,
    CredentialsNotConfigured,
    MalformedCredentialBlob,
)
from ..core.logging import get_logger
from ..core.providers import Provider, missing_fields
from ..repositories.credentials import CredentialRepository

logger = get_logger(__name__)

ConfigT = TypeVar("ConfigT")


class ClientCache:
    """
    Process-wide memo of default-credential client configs keyed by (provider, region).

    Only anonymous resolutions go in here. Racing first requests may each
    build a value; the first one stored wins and later lookups reuse it.
    """

    def __init__(self) -> None:
        self._entries: Dict[Hashable, Any] = {}

    async def get_or_create(self, key: Hashable, factory: Callable[[], Awaitable[Any]]) -> Any:
        if key in self._entries:
            return self._entries[key]
        value = await factory()
        return self._entries.setdefault(key, value)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()


client_cache = ClientCache()


class DefaultCredentialProvider(ABC, Generic[ConfigT]):
    """Process-wide credential source (environment, key files, platform chain)."""

    @abstractmethod
    async def load(self, region: Optional[str] = None) -> Optional[ConfigT]:
        """Return a client config built from default sources, or None if none exist."""

    def missing_message(self) -> Optional[str]:
        """Explain which settings are missing, for CredentialsNotConfigured."""
        return None

    async def project_id(self) -> Optional[str]:
        """Project or account id derivable from the default source, if any."""
        return None


class BaseCredentialResolver(ABC, Generic[ConfigT]):
    """
    Turns an optional user identity into a provider client config.

    A valid credential stored for the user wins. A stored blob that fails
    authentication or lacks required fields is logged and ignored, and the
    process-wide defaults are used instead. Store outages propagate.
    """

    provider: ClassVar[Provider]

    def __init__(
        self,
        store: CredentialRepository,
        cipher: CredentialCipher,
        defaults: DefaultCredentialProvider[ConfigT],
        cache: ClientCache | None = None,
    ):
        self._store = store
        self._cipher = cipher
        self._defaults = defaults
        self._cache = cache if cache is not None else client_cache

    async def resolve(self, user_id: Optional[str] = None, region: Optional[str] = None) -> ConfigT:
        if user_id:
            document = await self.load_user_credential(user_id)
            if document is not None:
                logger.info("Using database %s credentials for user %s", self.provider, user_id)
                # Built fresh on every call; never memoised across users
                return self._from_user_credential(document, region)
            logger.debug("No usable %s credentials for user %s, falling back to defaults", self.provider, user_id)

        return await self._cache.get_or_create(
            (self.provider, self._region_key(region)),
            lambda: self._load_defaults(region),
        )

    async def has_credentials(self, user_id: Optional[str] = None) -> bool:
        try:
            await self.resolve(user_id)
        except CredentialsNotConfigured:
            return False
        return True

    async def load_user_credential(self, user_id: str) -> Optional[dict[str, Any]]:
        """Decrypt and validate the user's stored blob; None when absent or unusable."""
        blobs = await self._store.get(user_id)
        blob = (blobs or {}).get(self.provider)
        if not blob:
            return None

        try:
            return self.decode(blob)
        except MalformedCredentialBlob as exc:
            logger.warning("Ignoring stored credentials for user %s: %s", user_id, exc)
            return None

    def decode(self, blob: str) -> dict[str, Any]:
        """Decrypt a stored blob into a validated credential document."""
        try:
            document = self._cipher.decrypt_json(blob)
        except AuthenticationError as exc:
            raise MalformedCredentialBlob(self.provider, str(exc)) from exc
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise MalformedCredentialBlob(self.provider, "payload is not JSON") from exc

        missing = missing_fields(self.provider, document)
        if missing:
            raise MalformedCredentialBlob(self.provider, f"missing {', '.join(missing)}")
        return document

    async def _load_defaults(self, region: Optional[str]) -> ConfigT:
        config = await self._defaults.load(region)
        if config is None:
            raise CredentialsNotConfigured(self.provider, self._defaults.missing_message())
        logger.info("Using default %s credentials", self.provider)
        return config

    def _region_key(self, region: Optional[str]) -> Optional[str]:
        return region

    @abstractmethod
    def _from_user_credential(self, document: dict[str, Any], region: Optional[str]) -> ConfigT:
        """Build a client config from a validated user credential document."""
