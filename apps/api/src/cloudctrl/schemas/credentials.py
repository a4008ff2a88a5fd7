"""Schemas for the credential and cache management endpoints."""
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Health = Literal["valid", "invalid", "absent"]


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class AwsCredentialsIn(_CamelModel):
    access_key_id: str = Field(alias="accessKeyId", min_length=1)
    secret_access_key: str = Field(alias="secretAccessKey", min_length=1)
    region: Optional[str] = None


class AzureCredentialsIn(_CamelModel):
    subscription_id: str = Field(alias="subscriptionId", min_length=1)
    client_id: str = Field(alias="clientId", min_length=1)
    client_secret: str = Field(alias="clientSecret", min_length=1)
    tenant_id: str = Field(alias="tenantId", min_length=1)


class GcpCredentialsIn(_CamelModel):
    project_id: str = Field(alias="projectId", min_length=1)
    service_account_email: str = Field(alias="serviceAccountEmail", min_length=1)
    private_key: str = Field(alias="privateKey", min_length=1)


class CredentialsIn(BaseModel):
    """Plaintext credentials; encrypted server-side before storage."""
    aws: Optional[AwsCredentialsIn] = None
    azure: Optional[AzureCredentialsIn] = None
    gcp: Optional[GcpCredentialsIn] = None


class ProviderFlags(BaseModel):
    aws: bool
    azure: bool
    gcp: bool


class StoreCredentialsResponse(BaseModel):
    success: bool = True
    message: str = "Credentials stored successfully"
    providers: ProviderFlags


class CredentialsSummaryResponse(_CamelModel):
    success: bool = True
    has_credentials: bool = Field(serialization_alias="hasCredentials")
    providers: Optional[ProviderFlags] = None


class CredentialsHealthResponse(BaseModel):
    success: bool = True
    health: dict[str, Health]


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class CacheStatsResponse(_CamelModel):
    total_entries: int = Field(serialization_alias="totalEntries")
    providers: dict[str, int]
    oldest_entry: Optional[datetime] = Field(default=None, serialization_alias="oldestEntry")
    newest_entry: Optional[datetime] = Field(default=None, serialization_alias="newestEntry")


class RefreshStatusResponse(_CamelModel):
    provider: str
    should_refresh: bool = Field(serialization_alias="shouldRefresh")
    hours: int
    minutes: int
    next_refresh: datetime = Field(serialization_alias="nextRefresh")


class IdentityResponse(BaseModel):
    cached: bool
    data: dict
