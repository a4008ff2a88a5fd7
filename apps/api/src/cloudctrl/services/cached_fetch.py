"""Cache-first fetch used by the provider overview aggregators."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from ..core.logging import get_logger
from ..repositories.cache import ResponseCache

logger = get_logger(__name__)

# Caller ids never contain the separator; only the anonymous slot does
RESERVED_SEPARATOR = ":"
ANONYMOUS_USER_ID = f"{RESERVED_SEPARATOR}anonymous"


@dataclass(frozen=True)
class CachedResult:
    data: Any
    cached: bool


def validate_user_id(user_id: str) -> str:
    if RESERVED_SEPARATOR in user_id:
        raise ValueError(f"User id must not contain {RESERVED_SEPARATOR!r}")
    return user_id


def cache_user_id(user_id: Optional[str]) -> str:
    if not user_id:
        return ANONYMOUS_USER_ID
    return validate_user_id(user_id)


async def fetch_with_cache(
    cache: ResponseCache,
    user_id: Optional[str],
    provider: str,
    data_type: str,
    loader: Callable[[], Awaitable[Any]],
    force_refresh: bool = False,
) -> CachedResult:
    """
    Serve ``data_type`` from the cache, calling ``loader`` on a miss.

    The cache is bypassed when ``force_refresh`` is set or when the daily
    refresh window is open and this (user, provider) has not refreshed today.
    Concurrent misses for one key each call ``loader``; the last write wins.
    Loader errors propagate and leave the cache untouched. A ``None`` result
    is returned but never cached, since the cache reads it back as a miss.
    """
    key_user = cache_user_id(user_id)
    daily_refresh = await cache.should_daily_refresh(key_user, provider)

    if not force_refresh and not daily_refresh:
        cached = await cache.get(key_user, provider, data_type)
        if cached is not None:
            return CachedResult(data=cached, cached=True)

    if daily_refresh:
        logger.info("Daily refresh for %s:%s:%s", key_user, provider, data_type)

    data = await loader()
    if data is None:
        logger.debug("Loader returned nothing for %s:%s:%s; not cached", key_user, provider, data_type)
    else:
        await cache.set(key_user, provider, data_type, data)
    if daily_refresh:
        await cache.mark_daily_refresh_complete(key_user, provider)
    return CachedResult(data=data, cached=False)
