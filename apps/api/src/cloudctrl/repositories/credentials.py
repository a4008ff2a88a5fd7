from __future__ import annotations

from typing import Mapping, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from ..core.exceptions import StoreUnavailable
from ..core.logging import get_logger
from ..core.providers import PROVIDERS
from ..models import UserCredential

logger = get_logger(__name__)

# Driver-level connection failures can surface as bare OSError
_STORE_ERRORS = (SQLAlchemyError, OSError)
_COLUMNS = {provider: f"{provider}_encrypted" for provider in PROVIDERS}


class CredentialRepository:
    """
    Durable per-user storage of encrypted credential blobs.

    Blobs are opaque here: encryption and decryption happen in the caller.
    """

    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory

    async def store(self, user_id: str, blobs: Mapping[str, Optional[str]]) -> None:
        """Upsert the record for ``user_id``; providers without a blob are stored as NULL."""
        values = {column: (blobs.get(provider) or None) for provider, column in _COLUMNS.items()}
        try:
            async with self._session_factory() as session:
                existing = await session.get(UserCredential, user_id)
                if existing:
                    for column, value in values.items():
                        setattr(existing, column, value)
                else:
                    session.add(UserCredential(user_id=user_id, **values))
                await session.commit()
        except _STORE_ERRORS as exc:
            raise StoreUnavailable(f"failed to store credentials: {exc}") from exc

        stored = [provider for provider, column in _COLUMNS.items() if values[column]]
        logger.info("Stored credentials for user %s (providers: %s)", user_id, stored or "none")

    async def get(self, user_id: str) -> Optional[dict[str, str]]:
        """Return the non-null blobs for ``user_id``, or None if no record exists."""
        try:
            async with self._session_factory() as session:
                row = await session.get(UserCredential, user_id)
        except _STORE_ERRORS as exc:
            raise StoreUnavailable(f"failed to load credentials: {exc}") from exc

        if row is None:
            logger.debug("No credentials found for user %s", user_id)
            return None

        return {
            provider: getattr(row, column)
            for provider, column in _COLUMNS.items()
            if getattr(row, column)
        }

    async def delete(self, user_id: str) -> bool:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    delete(UserCredential).where(UserCredential.user_id == user_id)
                )
                await session.commit()
        except _STORE_ERRORS as exc:
            raise StoreUnavailable(f"failed to delete credentials: {exc}") from exc

        removed = result.rowcount > 0
        if removed:
            logger.info("Deleted credentials for user %s", user_id)
        return removed

    async def exists(self, user_id: str) -> bool:
        try:
            async with self._session_factory() as session:
                count = await session.scalar(
                    select(func.count())
                    .select_from(UserCredential)
                    .where(UserCredential.user_id == user_id)
                )
        except _STORE_ERRORS as exc:
            raise StoreUnavailable(f"failed to query credentials: {exc}") from exc
        return bool(count)

    async def list_user_ids(self) -> list[str]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(UserCredential.user_id).order_by(UserCredential.user_id)
                )
                user_ids = list(result.scalars().all())
        except _STORE_ERRORS as exc:
            raise StoreUnavailable(f"failed to list credentials: {exc}") from exc
        return user_ids

    async def clear_all(self) -> int:
        """Remove every credential record (maintenance and tests only)."""
        try:
            async with self._session_factory() as session:
                result = await session.execute(delete(UserCredential))
                await session.commit()
        except _STORE_ERRORS as exc:
            raise StoreUnavailable(f"failed to clear credentials: {exc}") from exc

        logger.warning("Cleared all stored credentials (%d records)", result.rowcount)
        return result.rowcount
