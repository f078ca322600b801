"""Application configuration using Pydantic settings."""

from functools import lru_cache
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

MIB = 1024 * 1024


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    environment: Literal["development", "staging", "production"] = "development"

    # Logging
    log_level: str = "INFO"

    # SharePoint site
    sharepoint_base_url: str = ""  # e.g. https://contoso.sharepoint.com
    sharepoint_site_url: str = ""  # e.g. /sites/Team

    # SharePoint credentials (Azure AD app registration)
    sharepoint_tenant_id: str = ""
    sharepoint_client_id: str = ""
    sharepoint_client_secret: str = ""
    sharepoint_certificate_path: str = ""  # PEM private key
    sharepoint_certificate_thumbprint: str = ""
    sharepoint_access_token: str = ""  # Pre-acquired token, skips MSAL

    # Uploads
    sharepoint_chunk_size_mb: int = 100
    sharepoint_large_file_threshold_mb: int = 100

    # HTTP
    sharepoint_request_timeout: float | None = None  # None = no timeout

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Normalize log level to uppercase."""
        return v.upper() if isinstance(v, str) else "INFO"

    @field_validator("sharepoint_base_url", mode="before")
    @classmethod
    def strip_base_url(cls, v: str) -> str:
        """Drop trailing slashes from the tenant origin."""
        return v.strip().rstrip("/") if isinstance(v, str) else v

    @model_validator(mode="after")
    def validate_sharepoint_settings(self) -> "Settings":
        """Validate upload sizing and production SharePoint settings."""
        if self.sharepoint_chunk_size_mb <= 0:
            raise ValueError("SHAREPOINT_CHUNK_SIZE_MB must be positive")

        if self.sharepoint_large_file_threshold_mb < 0:
            raise ValueError("SHAREPOINT_LARGE_FILE_THRESHOLD_MB must not be negative")

        if self.environment == "production":
            errors = []

            if not self.sharepoint_base_url:
                errors.append("SHAREPOINT_BASE_URL is required in production")

            if not self.sharepoint_site_url:
                errors.append("SHAREPOINT_SITE_URL is required in production")

            if not self.has_sharepoint_credentials:
                errors.append(
                    "SHAREPOINT_ACCESS_TOKEN or SHAREPOINT_CLIENT_ID with a "
                    "client secret or certificate is required in production"
                )

            if errors:
                raise ValueError(
                    "Production configuration errors:\n"
                    + "\n".join(f"  - {e}" for e in errors)
                )

        return self

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def has_sharepoint_credentials(self) -> bool:
        """Check if any usable SharePoint credential is configured."""
        if self.sharepoint_access_token:
            return True
        has_app_secret = bool(self.sharepoint_client_secret)
        has_certificate = bool(
            self.sharepoint_certificate_path and self.sharepoint_certificate_thumbprint
        )
        return bool(
            self.sharepoint_tenant_id
            and self.sharepoint_client_id
            and (has_app_secret or has_certificate)
        )

    @property
    def is_sharepoint_configured(self) -> bool:
        """Check if SharePoint site and credentials are configured."""
        return bool(
            self.sharepoint_base_url
            and self.sharepoint_site_url
            and self.has_sharepoint_credentials
        )

    @property
    def sharepoint_chunk_size_bytes(self) -> int:
        """Get chunked upload size in bytes."""
        return self.sharepoint_chunk_size_mb * MIB

    @property
    def sharepoint_large_file_threshold_bytes(self) -> int:
        """Get size above which uploads switch to the chunked protocol."""
        return self.sharepoint_large_file_threshold_mb * MIB


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
