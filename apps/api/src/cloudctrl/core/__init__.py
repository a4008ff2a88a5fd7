"""Core modules for the CloudCtrl API."""
from .config import Settings, settings

__all__ = [
    "Settings",
    "settings",
]
