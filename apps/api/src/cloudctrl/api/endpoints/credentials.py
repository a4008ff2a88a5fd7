"""Endpoints for storing and removing a user's cloud credentials."""
from fastapi import APIRouter, Depends, HTTPException

from ...core.providers import PROVIDERS
from ...dependencies import Container, get_container, require_user_id
from ...schemas.credentials import (
    CredentialsHealthResponse,
    CredentialsIn,
    CredentialsSummaryResponse,
    MessageResponse,
    ProviderFlags,
    StoreCredentialsResponse,
)

router = APIRouter(tags=["credentials"])


@router.post("", response_model=StoreCredentialsResponse)
async def store_credentials(
    body: CredentialsIn,
    user_id: str = Depends(require_user_id),
    container: Container = Depends(get_container),
):
    """Encrypt and store credentials; providers omitted from the body are cleared."""
    documents = {
        provider: model.model_dump(by_alias=True, exclude_none=True)
        for provider in PROVIDERS
        if (model := getattr(body, provider)) is not None
    }
    if not documents:
        raise HTTPException(status_code=400, detail="At least one cloud credential is required")

    providers = await container.credentials.save(user_id, documents)
    return StoreCredentialsResponse(providers=ProviderFlags(**providers))


@router.get("", response_model=CredentialsSummaryResponse)
async def get_credentials(
    user_id: str = Depends(require_user_id),
    container: Container = Depends(get_container),
):
    """Which providers are configured. Secrets are never returned."""
    summary = await container.credentials.summary(user_id)
    if summary is None:
        return CredentialsSummaryResponse(has_credentials=False)
    return CredentialsSummaryResponse(has_credentials=True, providers=ProviderFlags(**summary))


@router.get("/status", response_model=CredentialsSummaryResponse)
async def credentials_status(
    user_id: str = Depends(require_user_id),
    container: Container = Depends(get_container),
):
    return CredentialsSummaryResponse(
        has_credentials=await container.credentials.exists(user_id)
    )


@router.get("/health", response_model=CredentialsHealthResponse)
async def credentials_health(
    user_id: str = Depends(require_user_id),
    container: Container = Depends(get_container),
):
    """Flag stored credentials that can no longer be decrypted or are incomplete."""
    return CredentialsHealthResponse(health=await container.credentials.health(user_id))


@router.delete("/{provider}", response_model=MessageResponse)
async def delete_provider_credentials(
    provider: str,
    user_id: str = Depends(require_user_id),
    container: Container = Depends(get_container),
):
    if provider not in PROVIDERS:
        raise HTTPException(status_code=400, detail="Invalid provider")

    if not await container.credentials.remove_provider(user_id, provider):
        raise HTTPException(status_code=404, detail="No credentials found")

    return MessageResponse(message=f"{provider.upper()} credentials deleted")


@router.delete("", response_model=MessageResponse)
async def delete_all_credentials(
    user_id: str = Depends(require_user_id),
    container: Container = Depends(get_container),
):
    if not await container.credentials.remove_all(user_id):
        raise HTTPException(status_code=404, detail="No credentials found")

    return MessageResponse(message="All credentials deleted")
