"""Per-provider identity summary (account / subscription / project)."""
from __future__ import annotations

from typing import Any, Optional

from ..core.providers import validate_provider
from ..repositories.cache import ResponseCache
from ..resolvers import ResolverSet
from .cached_fetch import CachedResult, fetch_with_cache

DATA_TYPE = "identity"


async def _aws_identity(resolvers: ResolverSet, user_id: Optional[str]) -> dict[str, Any]:
    config = await resolvers.aws.resolve(user_id)
    return {
        "provider": "aws",
        "source": config.source,
        "accountId": await resolvers.aws.resolve_account_id(user_id),
        "region": config.region,
        "regions": resolvers.aws.target_regions(),
    }


async def _azure_identity(resolvers: ResolverSet, user_id: Optional[str]) -> dict[str, Any]:
    config = await resolvers.azure.resolve(user_id)
    return {
        "provider": "azure",
        "source": config.source,
        "subscriptionId": config.subscription_id,
        "scope": config.scope,
    }


async def _gcp_identity(resolvers: ResolverSet, user_id: Optional[str]) -> dict[str, Any]:
    config = await resolvers.gcp.resolve(user_id)
    return {
        "provider": "gcp",
        "source": config.source,
        "projectId": await resolvers.gcp.resolve_project_id(user_id),
        "billingAccountId": resolvers.gcp.billing_account_id(),
    }


_BUILDERS = {
    "aws": _aws_identity,
    "azure": _azure_identity,
    "gcp": _gcp_identity,
}


async def get_provider_identity(
    cache: ResponseCache,
    resolvers: ResolverSet,
    user_id: Optional[str],
    provider: str,
    force_refresh: bool = False,
) -> CachedResult:
    """Cached identity summary; raises CredentialsNotConfigured when nothing resolves."""
    builder = _BUILDERS[validate_provider(provider)]
    return await fetch_with_cache(
        cache,
        user_id,
        provider,
        DATA_TYPE,
        lambda: builder(resolvers, user_id),
        force_refresh=force_refresh,
    )
