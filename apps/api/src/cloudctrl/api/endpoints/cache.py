"""Endpoints exposing the caller's response cache state."""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from ...core.providers import PROVIDERS
from ...dependencies import Container, get_container, get_optional_user_id
from ...schemas.credentials import CacheStatsResponse, MessageResponse, RefreshStatusResponse
from ...services.cached_fetch import cache_user_id

router = APIRouter(tags=["cache"])


def _check_provider(provider: str) -> str:
    if provider not in PROVIDERS:
        raise HTTPException(status_code=400, detail="Invalid provider")
    return provider


@router.get("/stats", response_model=CacheStatsResponse)
async def cache_stats(
    user_id: Optional[str] = Depends(get_optional_user_id),
    container: Container = Depends(get_container),
):
    stats = await container.cache.stats(cache_user_id(user_id))
    return CacheStatsResponse(
        total_entries=stats.total_entries,
        providers=stats.per_provider_counts,
        oldest_entry=stats.oldest_entry,
        newest_entry=stats.newest_entry,
    )


@router.get("/refresh/{provider}", response_model=RefreshStatusResponse)
async def refresh_status(
    provider: str,
    user_id: Optional[str] = Depends(get_optional_user_id),
    container: Container = Depends(get_container),
):
    _check_provider(provider)
    countdown = container.cache.time_until_next_refresh()
    return RefreshStatusResponse(
        provider=provider,
        should_refresh=await container.cache.should_daily_refresh(cache_user_id(user_id), provider),
        hours=countdown.hours,
        minutes=countdown.minutes,
        next_refresh=countdown.next_refresh,
    )


@router.delete("/{provider}", response_model=MessageResponse)
async def invalidate_provider(
    provider: str,
    data_type: Optional[str] = None,
    user_id: Optional[str] = Depends(get_optional_user_id),
    container: Container = Depends(get_container),
):
    _check_provider(provider)
    removed = await container.cache.invalidate(cache_user_id(user_id), provider, data_type)
    return MessageResponse(message=f"Invalidated {removed} cached {provider} entries")


@router.delete("", response_model=MessageResponse)
async def invalidate_all(
    user_id: Optional[str] = Depends(get_optional_user_id),
    container: Container = Depends(get_container),
):
    removed = await container.cache.invalidate_user(cache_user_id(user_id))
    return MessageResponse(message=f"Invalidated {removed} cached entries")
