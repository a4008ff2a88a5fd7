"""
Per-user response cache for provider API results.

Entries live for ``CACHE_DURATION`` (24h by default) and are expired lazily:
a read that finds a stale entry deletes it and reports a miss.
``sweep_expired`` removes stale entries in bulk for hygiene.

The daily refresh gate is independent of the TTL. It answers whether a
scheduled refresh for a (user, provider) pair may run right now: only inside
the configured refresh hour, and only once per calendar day.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from ..core.exceptions import CacheUnavailable
from ..core.logging import get_logger
from ..core.providers import PROVIDERS, validate_provider
from ..core.refresh_window import (
    RefreshCountdown,
    in_refresh_window,
    start_of_day,
    time_until_next_refresh,
)
from ..models import CacheEntry, RefreshLog

logger = get_logger(__name__)

CACHE_DURATION = timedelta(hours=24)
DAILY_REFRESH_HOUR = 8

_STORE_ERRORS = (SQLAlchemyError, OSError)

Clock = Callable[[], datetime]


@dataclass
class CacheStats:
    total_entries: int = 0
    per_provider_counts: dict[str, int] = field(
        default_factory=lambda: {provider: 0 for provider in PROVIDERS}
    )
    oldest_entry: Optional[datetime] = None
    newest_entry: Optional[datetime] = None


class ResponseCache:
    """Cache keyed by (user_id, provider, data_type) with a daily refresh gate."""

    def __init__(
        self,
        session_factory: async_sessionmaker,
        ttl: timedelta = CACHE_DURATION,
        refresh_hour: int = DAILY_REFRESH_HOUR,
        clock: Clock = datetime.now,
    ):
        if not 0 <= refresh_hour <= 23:
            raise ValueError("refresh_hour must be between 0 and 23")
        self._session_factory = session_factory
        self._ttl = ttl
        self._refresh_hour = refresh_hour
        self._clock = clock

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    @property
    def refresh_hour(self) -> int:
        return self._refresh_hour

    async def get(self, user_id: str, provider: str, data_type: str) -> Optional[Any]:
        validate_provider(provider)
        key = f"{user_id}:{provider}:{data_type}"
        try:
            async with self._session_factory() as session:
                entry = await session.scalar(
                    select(CacheEntry).where(
                        CacheEntry.user_id == user_id,
                        CacheEntry.provider == provider,
                        CacheEntry.data_type == data_type,
                    )
                )
                if entry is None:
                    logger.debug("Cache miss: %s", key)
                    return None

                if self._clock() > entry.expires_at:
                    await session.delete(entry)
                    await session.commit()
                    logger.info("Cache expired: %s", key)
                    return None

                data = entry.data
        except _STORE_ERRORS as exc:
            raise CacheUnavailable(f"cache read failed for {key}: {exc}") from exc

        logger.debug("Cache hit: %s", key)
        return data

    async def set(self, user_id: str, provider: str, data_type: str, data: Any) -> None:
        validate_provider(provider)
        key = f"{user_id}:{provider}:{data_type}"
        try:
            try:
                await self._upsert(user_id, provider, data_type, data)
            except IntegrityError:
                # A concurrent writer inserted the same key first; overwrite it
                await self._upsert(user_id, provider, data_type, data)
        except _STORE_ERRORS as exc:
            raise CacheUnavailable(f"cache write failed for {key}: {exc}") from exc

        logger.info("Cache set: %s (expires in %s)", key, self._ttl)

    async def _upsert(self, user_id: str, provider: str, data_type: str, data: Any) -> None:
        now = self._clock()
        async with self._session_factory() as session:
            entry = await session.scalar(
                select(CacheEntry).where(
                    CacheEntry.user_id == user_id,
                    CacheEntry.provider == provider,
                    CacheEntry.data_type == data_type,
                )
            )
            if entry:
                entry.data = data
                entry.updated_at = now
                entry.expires_at = now + self._ttl
            else:
                session.add(CacheEntry(
                    user_id=user_id,
                    provider=provider,
                    data_type=data_type,
                    data=data,
                    created_at=now,
                    updated_at=now,
                    expires_at=now + self._ttl,
                ))
            await session.commit()

    async def invalidate(
        self,
        user_id: str,
        provider: str,
        data_type: Optional[str] = None,
    ) -> int:
        """Drop one entry, or every entry for the (user, provider) pair when data_type is omitted."""
        validate_provider(provider)
        statement = delete(CacheEntry).where(
            CacheEntry.user_id == user_id,
            CacheEntry.provider == provider,
        )
        if data_type is not None:
            statement = statement.where(CacheEntry.data_type == data_type)

        removed = await self._execute_delete(statement, f"{user_id}:{provider}:{data_type or '*'}")
        logger.info("Cache invalidated: %s:%s:%s (%d)", user_id, provider, data_type or "*", removed)
        return removed

    async def invalidate_user(self, user_id: str) -> int:
        removed = await self._execute_delete(
            delete(CacheEntry).where(CacheEntry.user_id == user_id), f"{user_id}:*"
        )
        logger.info("Cache invalidated for user %s (%d)", user_id, removed)
        return removed

    async def clear_all(self) -> int:
        removed = await self._execute_delete(delete(CacheEntry), "*")
        logger.warning("Cleared entire response cache (%d entries)", removed)
        return removed

    async def sweep_expired(self) -> int:
        """Bulk-delete entries already past expiry. Idempotent."""
        removed = await self._execute_delete(
            delete(CacheEntry).where(CacheEntry.expires_at < self._clock()), "expired"
        )
        logger.info("Swept %d expired cache entries", removed)
        return removed

    async def _execute_delete(self, statement, scope: str) -> int:
        try:
            async with self._session_factory() as session:
                result = await session.execute(statement)
                await session.commit()
        except _STORE_ERRORS as exc:
            raise CacheUnavailable(f"cache delete failed for {scope}: {exc}") from exc
        return result.rowcount

    async def stats(self, user_id: str) -> CacheStats:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(CacheEntry.provider, CacheEntry.created_at).where(
                        CacheEntry.user_id == user_id
                    )
                )
                rows = result.all()
        except _STORE_ERRORS as exc:
            raise CacheUnavailable(f"cache stats failed for {user_id}: {exc}") from exc

        stats = CacheStats(total_entries=len(rows))
        for provider, created_at in rows:
            if provider in stats.per_provider_counts:
                stats.per_provider_counts[provider] += 1
            if stats.oldest_entry is None or created_at < stats.oldest_entry:
                stats.oldest_entry = created_at
            if stats.newest_entry is None or created_at > stats.newest_entry:
                stats.newest_entry = created_at
        return stats

    # Daily refresh gate

    async def should_daily_refresh(self, user_id: str, provider: str) -> bool:
        validate_provider(provider)
        now = self._clock()
        if not in_refresh_window(now, self._refresh_hour):
            return False

        try:
            async with self._session_factory() as session:
                last_refresh = await session.scalar(
                    select(RefreshLog.refreshed_at)
                    .where(
                        RefreshLog.user_id == user_id,
                        RefreshLog.provider == provider,
                        RefreshLog.refreshed_at >= start_of_day(now),
                    )
                    .order_by(RefreshLog.refreshed_at.desc())
                    .limit(1)
                )
        except _STORE_ERRORS as exc:
            raise CacheUnavailable(f"refresh log read failed for {user_id}:{provider}: {exc}") from exc

        return last_refresh is None

    async def mark_daily_refresh_complete(self, user_id: str, provider: str) -> None:
        validate_provider(provider)
        try:
            async with self._session_factory() as session:
                session.add(RefreshLog(
                    user_id=user_id,
                    provider=provider,
                    refreshed_at=self._clock(),
                ))
                await session.commit()
        except _STORE_ERRORS as exc:
            raise CacheUnavailable(f"refresh log write failed for {user_id}:{provider}: {exc}") from exc

        logger.info("Marked daily refresh complete: %s:%s", user_id, provider)

    def time_until_next_refresh(self, now: Optional[datetime] = None) -> RefreshCountdown:
        return time_until_next_refresh(now or self._clock(), self._refresh_hour)

    async def prune_refresh_log(self, before: datetime) -> int:
        """Delete refresh log rows older than ``before`` (maintenance only)."""
        removed = await self._execute_delete(
            delete(RefreshLog).where(RefreshLog.refreshed_at < before), "refresh_log"
        )
        logger.info("Pruned %d refresh log entries before %s", removed, before.isoformat())
        return removed
