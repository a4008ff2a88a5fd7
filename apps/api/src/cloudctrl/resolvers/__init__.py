from __future__ import annotations

from dataclasses import dataclass

from ..core.config import Settings
from ..core.crypto import CredentialCipher
from ..repositories.credentials import CredentialRepository
from .aws import AwsClientConfig, AwsCredentialResolver, EnvAwsCredentials
from .azure import AzureClientConfig, AzureCredentialResolver, EnvAzureCredentials
from .base import BaseCredentialResolver, ClientCache, DefaultCredentialProvider, client_cache
from .gcp import GcpClientConfig, GcpCredentialResolver, KeyFileGcpCredentials


@dataclass
class ResolverSet:
    aws: AwsCredentialResolver
    azure: AzureCredentialResolver
    gcp: GcpCredentialResolver

    def for_provider(self, provider: str) -> BaseCredentialResolver:
        return getattr(self, provider)


def build_resolvers(
    store: CredentialRepository,
    cipher: CredentialCipher,
    settings: Settings,
    cache: ClientCache | None = None,
) -> ResolverSet:
    """Wire every provider resolver to its environment-backed defaults."""
    return ResolverSet(
        aws=AwsCredentialResolver(store, cipher, EnvAwsCredentials(settings), cache, settings=settings),
        azure=AzureCredentialResolver(store, cipher, EnvAzureCredentials(settings), cache),
        gcp=GcpCredentialResolver(store, cipher, KeyFileGcpCredentials(settings), cache, settings=settings),
    )


__all__ = [
    "AwsClientConfig",
    "AwsCredentialResolver",
    "AzureClientConfig",
    "AzureCredentialResolver",
    "BaseCredentialResolver",
    "ClientCache",
    "DefaultCredentialProvider",
    "GcpClientConfig",
    "GcpCredentialResolver",
    "ResolverSet",
    "build_resolvers",
    "client_cache",
]
