"""Provider identity overview served through the response cache."""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from ...core.providers import PROVIDERS
from ...dependencies import Container, get_container, get_optional_user_id
from ...schemas.credentials import IdentityResponse
from ...services.identity import get_provider_identity

router = APIRouter(tags=["overview"])


@router.get("/{provider}/identity", response_model=IdentityResponse)
async def provider_identity(
    provider: str,
    refresh: bool = False,
    user_id: Optional[str] = Depends(get_optional_user_id),
    container: Container = Depends(get_container),
):
    """Account / subscription / project the caller's credentials resolve to."""
    if provider not in PROVIDERS:
        raise HTTPException(status_code=400, detail="Invalid provider")

    result = await get_provider_identity(
        container.cache, container.resolvers, user_id, provider, force_refresh=refresh
    )
    return IdentityResponse(cached=result.cached, data=result.data)
