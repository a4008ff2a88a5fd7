"""GCP service account resolution."""
from __future__ import annotations

import asyncio
import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Optional

from ..core.config import Settings
from ..core.logging import get_logger
from .base import BaseCredentialResolver, DefaultCredentialProvider

logger = get_logger(__name__)

DEFAULT_SCOPES: tuple[str, ...] = (
    "https://www.googleapis.com/auth/cloud-platform.read-only",
    "https://www.googleapis.com/auth/compute.readonly",
    "https://www.googleapis.com/auth/devstorage.read_only",
    "https://www.googleapis.com/auth/sqlservice.admin",
    "https://www.googleapis.com/auth/monitoring.read",
    "https://www.googleapis.com/auth/cloud-billing.readonly",
)

TOKEN_URI = "https://oauth2.googleapis.com/token"


@dataclass(frozen=True)
class GcpClientConfig:
    source: Literal["database", "key_file"]
    project_id: Optional[str] = None
    service_account_email: Optional[str] = None
    private_key: Optional[str] = field(default=None, repr=False)
    key_file: Optional[Path] = None
    scopes: tuple[str, ...] = DEFAULT_SCOPES

    def service_account_info(self) -> dict[str, Any]:
        """Service account JSON in the layout Google client libraries accept."""
        if self.key_file is not None:
            return json.loads(self.key_file.read_text(encoding="utf-8"))
        return {
            "type": "service_account",
            "project_id": self.project_id,
            "client_email": self.service_account_email,
            "private_key": self.private_key,
            "token_uri": TOKEN_URI,
        }


class KeyFileGcpCredentials(DefaultCredentialProvider[GcpClientConfig]):
    """Service account key file named by GOOGLE_APPLICATION_CREDENTIALS."""

    def __init__(self, settings: Settings):
        self._settings = settings

    def _key_path(self) -> Optional[Path]:
        raw = self._settings.GOOGLE_APPLICATION_CREDENTIALS
        if not raw or not raw.strip():
            return None
        return Path(raw.strip()).expanduser().resolve()

    async def load(self, region: Optional[str] = None) -> Optional[GcpClientConfig]:
        path = self._key_path()
        if path is None:
            return None
        if not os.access(path, os.R_OK):
            logger.warning("GCP credential file not readable: %s", path)
            return None
        return GcpClientConfig(source="key_file", key_file=path)

    async def project_id(self) -> Optional[str]:
        """Project id recorded in the key file, if any."""
        path = self._key_path()
        if path is None:
            return None
        info = await asyncio.to_thread(lambda: json.loads(path.read_text(encoding="utf-8")))
        return info.get("project_id") if isinstance(info, dict) else None

    def missing_message(self) -> Optional[str]:
        return (
            "No GCP credentials configured. Store a service account for your account or "
            "point GOOGLE_APPLICATION_CREDENTIALS at a readable key file."
        )


class GcpCredentialResolver(BaseCredentialResolver[GcpClientConfig]):
    provider = "gcp"

    def __init__(self, *args: Any, settings: Settings, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self._settings = settings

    def _from_user_credential(self, document: dict[str, Any], region: Optional[str]) -> GcpClientConfig:
        return GcpClientConfig(
            source="database",
            project_id=document["projectId"],
            service_account_email=document["serviceAccountEmail"],
            private_key=document["privateKey"],
        )

    async def resolve_project_id(self, user_id: Optional[str] = None) -> Optional[str]:
        """User credential -> GCP_PROJECT_ID -> key file. None when nothing answers."""
        if user_id:
            document = await self.load_user_credential(user_id)
            if document is not None:
                return document["projectId"]

        if self._settings.GCP_PROJECT_ID:
            return self._settings.GCP_PROJECT_ID

        try:
            return await self._defaults.project_id()
        except (OSError, ValueError) as exc:
            logger.warning("Failed to resolve GCP project id: %s", exc)
            return None

    def billing_account_id(self) -> Optional[str]:
        return self._settings.GCP_BILLING_ACCOUNT_ID or None
