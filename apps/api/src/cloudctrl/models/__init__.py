from .credential import UserCredential
from .cache_entry import CacheEntry, RefreshLog

__all__ = [
    "UserCredential",
    "CacheEntry",
    "RefreshLog",
]
