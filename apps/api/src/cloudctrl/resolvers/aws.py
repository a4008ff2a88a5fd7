"""AWS credential resolution and boto3 session construction."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ..core.config import Settings
from ..core.exceptions import CredentialsNotConfigured
from ..core.logging import get_logger
from .base import BaseCredentialResolver, DefaultCredentialProvider

if TYPE_CHECKING:
    from botocore.client import BaseClient

logger = get_logger(__name__)

ROLE_SESSION_NAME = "CloudCtrlDashboardSession"

# Retry/timeout defaults for dashboard reads
DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_CONNECT_TIMEOUT = 10  # seconds
DEFAULT_READ_TIMEOUT = 30  # seconds

FALLBACK_REGIONS = [
    "us-east-1", "us-east-2", "us-west-1", "us-west-2",
    "af-south-1",
    "ap-east-1", "ap-south-1", "ap-south-2",
    "ap-southeast-1", "ap-southeast-2", "ap-southeast-3", "ap-southeast-4",
    "ap-northeast-1", "ap-northeast-2", "ap-northeast-3",
    "ca-central-1", "ca-west-1",
    "eu-central-1", "eu-central-2",
    "eu-west-1", "eu-west-2", "eu-west-3",
    "eu-north-1", "eu-south-1", "eu-south-2",
    "il-central-1",
    "me-south-1", "me-central-1",
    "sa-east-1",
]

CredentialSource = Literal["database", "role", "profile", "environment", "ambient"]


@dataclass(frozen=True)
class AwsClientConfig:
    region: str
    source: CredentialSource
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = field(default=None, repr=False)
    session_token: Optional[str] = field(default=None, repr=False)
    profile: Optional[str] = None
    role_arn: Optional[str] = None

    def session(self) -> boto3.Session:
        """Build a boto3 Session; assumes ``role_arn`` through STS when set."""
        if self.access_key_id and self.secret_access_key:
            return boto3.Session(
                aws_access_key_id=self.access_key_id,
                aws_secret_access_key=self.secret_access_key,
                aws_session_token=self.session_token,
                region_name=self.region,
            )

        base = boto3.Session(profile_name=self.profile, region_name=self.region)
        if not self.role_arn:
            return base

        assumed = base.client("sts").assume_role(
            RoleArn=self.role_arn,
            RoleSessionName=ROLE_SESSION_NAME,
        )["Credentials"]
        return boto3.Session(
            aws_access_key_id=assumed["AccessKeyId"],
            aws_secret_access_key=assumed["SecretAccessKey"],
            aws_session_token=assumed["SessionToken"],
            region_name=self.region,
        )

    def client(self, service_name: str, region_name: Optional[str] = None, **kwargs: Any) -> BaseClient:
        """boto3 client with adaptive retries and bounded timeouts."""
        config = Config(
            retries={"max_attempts": DEFAULT_MAX_ATTEMPTS, "mode": "adaptive"},
            connect_timeout=DEFAULT_CONNECT_TIMEOUT,
            read_timeout=DEFAULT_READ_TIMEOUT,
        )
        return self.session().client(
            service_name, region_name=region_name or self.region, config=config, **kwargs
        )


class EnvAwsCredentials(DefaultCredentialProvider[AwsClientConfig]):
    """
    Default AWS credentials in precedence order: ``AWS_ROLE_ARN`` (with
    ``AWS_PROFILE`` as source credentials), ``AWS_PROFILE``, static
    ``AWS_ACCESS_KEY_ID``/``AWS_SECRET_ACCESS_KEY``, then the ambient boto3
    chain (instance profile, SSO cache, ...).
    """

    def __init__(self, settings: Settings, detect_ambient: bool = True):
        self._settings = settings
        self._detect_ambient = detect_ambient

    async def load(self, region: Optional[str] = None) -> Optional[AwsClientConfig]:
        s = self._settings
        region = region or s.AWS_REGION

        if s.AWS_ROLE_ARN:
            return AwsClientConfig(region=region, source="role", role_arn=s.AWS_ROLE_ARN, profile=s.AWS_PROFILE)
        if s.AWS_PROFILE:
            return AwsClientConfig(region=region, source="profile", profile=s.AWS_PROFILE)
        if s.AWS_ACCESS_KEY_ID and s.AWS_SECRET_ACCESS_KEY:
            return AwsClientConfig(
                region=region,
                source="environment",
                access_key_id=s.AWS_ACCESS_KEY_ID,
                secret_access_key=s.AWS_SECRET_ACCESS_KEY,
            )

        if self._detect_ambient:
            # May hit the instance metadata endpoint
            found = await asyncio.to_thread(lambda: boto3.Session().get_credentials())
            if found is not None:
                return AwsClientConfig(region=region, source="ambient")
        return None

    def missing_message(self) -> Optional[str]:
        return (
            "No AWS credentials configured. Store credentials for your account or set "
            "AWS_ROLE_ARN, AWS_PROFILE or AWS_ACCESS_KEY_ID/AWS_SECRET_ACCESS_KEY."
        )


class AwsCredentialResolver(BaseCredentialResolver[AwsClientConfig]):
    provider = "aws"

    def __init__(self, *args: Any, settings: Settings, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self._settings = settings

    def _region_key(self, region: Optional[str]) -> str:
        return region or self._settings.AWS_REGION

    def _from_user_credential(self, document: dict[str, Any], region: Optional[str]) -> AwsClientConfig:
        return AwsClientConfig(
            region=region or document.get("region") or self._settings.AWS_REGION,
            source="database",
            access_key_id=document["accessKeyId"],
            secret_access_key=document["secretAccessKey"],
        )

    async def resolve_account_id(self, user_id: Optional[str] = None) -> Optional[str]:
        """Account id of the resolved identity via STS; None on any failure."""
        try:
            config = await self.resolve(user_id)
            identity = await asyncio.to_thread(
                lambda: config.client("sts").get_caller_identity()
            )
        except (CredentialsNotConfigured, BotoCoreError, ClientError) as exc:
            logger.warning("Failed to resolve AWS account id: %s", exc)
            return None
        return identity.get("Account")

    def target_regions(self) -> list[str]:
        """Regions to scan: AWS_REGIONS (deduplicated, in order) or the built-in list."""
        raw = self._settings.AWS_REGIONS
        if raw:
            regions = [value.strip() for value in raw.split(",") if value.strip()]
            if regions:
                return list(dict.fromkeys(regions))
        return list(FALLBACK_REGIONS)
