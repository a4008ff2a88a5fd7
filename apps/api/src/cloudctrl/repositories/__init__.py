"""Repository helpers for database persistence."""

from .cache import CacheStats, ResponseCache
from .credentials import CredentialRepository

__all__ = ["CacheStats", "CredentialRepository", "ResponseCache"]
