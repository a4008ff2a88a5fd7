from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from functools import lru_cache
from typing import Optional

from fastapi import HTTPException, Request

from .core.config import settings
from .core.crypto import load_default_cipher
from .core.database import AsyncSessionLocal
from .repositories.cache import ResponseCache
from .repositories.credentials import CredentialRepository
from .resolvers import ResolverSet, build_resolvers
from .services.credentials import CredentialService


@dataclass
class Container:
    credential_store: CredentialRepository
    cache: ResponseCache
    resolvers: ResolverSet
    credentials: CredentialService


@lru_cache(maxsize=1)
def get_container() -> Container:
    cipher = load_default_cipher(settings)
    store = CredentialRepository(AsyncSessionLocal)
    cache = ResponseCache(
        AsyncSessionLocal,
        ttl=timedelta(hours=settings.CACHE_DURATION_HOURS),
        refresh_hour=settings.DAILY_REFRESH_HOUR,
    )
    resolvers = build_resolvers(store, cipher, settings)
    return Container(
        credential_store=store,
        cache=cache,
        resolvers=resolvers,
        credentials=CredentialService(store, cipher, cache, resolvers),
    )


def get_optional_user_id(request: Request) -> Optional[str]:
    """User identity set by RequestContextMiddleware; None for anonymous callers."""
    return getattr(request.state, "user_id", None)


def require_user_id(request: Request) -> str:
    user_id = get_optional_user_id(request)
    if not user_id:
        raise HTTPException(status_code=401, detail="Authentication required")
    return user_id
