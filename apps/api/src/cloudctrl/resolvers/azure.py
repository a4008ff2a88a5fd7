"""Azure service principal resolution."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Optional

from ..core.config import Settings
from ..core.exceptions import CredentialsNotConfigured
from ..core.logging import get_logger
from .base import BaseCredentialResolver, DefaultCredentialProvider

logger = get_logger(__name__)

# Settings field and the variable names it is read from, first one set wins
SETTINGS_FIELDS: dict[str, tuple[str, tuple[str, ...]]] = {
    "tenant_id": ("AZURE_TENANT_ID", ("TENANT_ID", "AZURE_TENANT_ID")),
    "client_id": ("AZURE_CLIENT_ID", ("CLIENT_ID", "AZURE_CLIENT_ID")),
    "client_secret": ("AZURE_CLIENT_SECRET", ("CLIENT_SECRET", "AZURE_CLIENT_SECRET")),
    "subscription_id": ("AZURE_SUBSCRIPTION_ID", ("SUBSCRIPTION_ID", "AZURE_SUBSCRIPTION_ID")),
}


@dataclass(frozen=True)
class AzureClientConfig:
    tenant_id: str
    client_id: str
    client_secret: str = field(repr=False)
    subscription_id: str
    source: Literal["database", "environment"]

    @property
    def scope(self) -> str:
        return f"subscriptions/{self.subscription_id}"


def clean_value(raw: Optional[str]) -> str:
    if not raw:
        return ""
    return raw.strip().strip('"')


class EnvAzureCredentials(DefaultCredentialProvider[AzureClientConfig]):
    """Service principal from TENANT_ID/CLIENT_ID/CLIENT_SECRET/SUBSCRIPTION_ID (or AZURE_* aliases)."""

    def __init__(self, settings: Settings):
        self._settings = settings

    def _values(self) -> dict[str, str]:
        return {
            name: clean_value(getattr(self._settings, setting))
            for name, (setting, _) in SETTINGS_FIELDS.items()
        }

    async def load(self, region: Optional[str] = None) -> Optional[AzureClientConfig]:
        values = self._values()
        if not all(values.values()):
            return None
        return AzureClientConfig(source="environment", **values)

    def missing_message(self) -> Optional[str]:
        missing = [
            " or ".join(SETTINGS_FIELDS[name][1])
            for name, value in self._values().items()
            if not value
        ]
        if not missing:
            return None
        return f"Missing required Azure environment variables. Set: {'; '.join(missing)}."


class AzureCredentialResolver(BaseCredentialResolver[AzureClientConfig]):
    provider = "azure"

    def _from_user_credential(self, document: dict[str, Any], region: Optional[str]) -> AzureClientConfig:
        return AzureClientConfig(
            tenant_id=document["tenantId"],
            client_id=document["clientId"],
            client_secret=document["clientSecret"],
            subscription_id=document["subscriptionId"],
            source="database",
        )

    async def resolve_subscription_id(self, user_id: Optional[str] = None) -> Optional[str]:
        try:
            config = await self.resolve(user_id)
        except CredentialsNotConfigured as exc:
            logger.warning("Failed to resolve Azure subscription id: %s", exc)
            return None
        return config.subscription_id
