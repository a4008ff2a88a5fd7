from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings"""

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./cloudctrl.db"
    DATABASE_ECHO: bool = False

    # Bearer key gate; open access when unset
    CLOUDCTRL_API_KEY: str | None = None

    # 256-bit key for credential blobs (64 hex chars or urlsafe base64)
    CREDENTIALS_MASTER_KEY: str | None = None

    # Response cache
    CACHE_DURATION_HOURS: int = 24
    DAILY_REFRESH_HOUR: int = 8
    CACHE_SWEEP_INTERVAL_SECONDS: int = 3600

    # AWS defaults
    AWS_REGION: str = "us-east-1"
    AWS_REGIONS: str | None = None
    AWS_PROFILE: str | None = None
    AWS_ROLE_ARN: str | None = None
    AWS_ACCESS_KEY_ID: str | None = None
    AWS_SECRET_ACCESS_KEY: str | None = None

    # GCP defaults
    GOOGLE_APPLICATION_CREDENTIALS: str | None = None
    GCP_PROJECT_ID: str | None = None
    GCP_BILLING_ACCOUNT_ID: str | None = None

    # Azure service principal; the bare names win over the AZURE_* aliases
    AZURE_TENANT_ID: str | None = Field(
        default=None, validation_alias=AliasChoices("TENANT_ID", "AZURE_TENANT_ID")
    )
    AZURE_CLIENT_ID: str | None = Field(
        default=None, validation_alias=AliasChoices("CLIENT_ID", "AZURE_CLIENT_ID")
    )
    AZURE_CLIENT_SECRET: str | None = Field(
        default=None, validation_alias=AliasChoices("CLIENT_SECRET", "AZURE_CLIENT_SECRET")
    )
    AZURE_SUBSCRIPTION_ID: str | None = Field(
        default=None, validation_alias=AliasChoices("SUBSCRIPTION_ID", "AZURE_SUBSCRIPTION_ID")
    )

    # API
    API_PREFIX: str = "/api"
    PROJECT_NAME: str = "CloudCtrl Dashboard API"
    DEBUG: bool = False
    CORS_ORIGINS: list[str] = ["http://localhost:5173"]

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "allow"


settings = Settings()
