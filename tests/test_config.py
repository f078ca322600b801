"""Tests for configuration validation and SharePoint option building."""

import os
from unittest.mock import patch

import pytest

from sitestore.config import Settings
from sitestore.core.sharepoint.auth import MsalCredentialProvider, StaticTokenProvider
from sitestore.core.sharepoint.client import credentials_from_settings, options_from_settings
from sitestore.core.sharepoint.exceptions import SharePointAuthenticationError

SITE_ENV = {
    "SHAREPOINT_BASE_URL": "https://contoso.sharepoint.com/",
    "SHAREPOINT_SITE_URL": "/sites/Team",
}


def make_settings(env: dict[str, str]) -> Settings:
    with patch.dict(os.environ, env, clear=True):
        return Settings(_env_file=None)


class TestSettingsDefaults:
    """Test default values and derived properties."""

    def test_defaults(self):
        settings = make_settings({})

        assert settings.environment == "development"
        assert settings.is_development is True
        assert settings.sharepoint_chunk_size_bytes == 100 * 1024 * 1024
        assert settings.sharepoint_large_file_threshold_bytes == 100 * 1024 * 1024
        assert settings.sharepoint_request_timeout is None
        assert settings.is_sharepoint_configured is False

    def test_log_level_normalized(self):
        assert make_settings({"LOG_LEVEL": "debug"}).log_level == "DEBUG"

    def test_base_url_trailing_slash_stripped(self):
        assert make_settings(SITE_ENV).sharepoint_base_url == "https://contoso.sharepoint.com"

    def test_chunk_size_from_env(self):
        settings = make_settings({"SHAREPOINT_CHUNK_SIZE_MB": "10"})
        assert settings.sharepoint_chunk_size_bytes == 10 * 1024 * 1024

    def test_timeout_from_env(self):
        settings = make_settings({"SHAREPOINT_REQUEST_TIMEOUT": "45.5"})
        assert settings.sharepoint_request_timeout == 45.5


class TestSettingsValidation:
    """Test SharePoint-specific validation."""

    @pytest.mark.parametrize("value", ["0", "-5"])
    def test_non_positive_chunk_size_rejected(self, value):
        with pytest.raises(ValueError, match="SHAREPOINT_CHUNK_SIZE_MB must be positive"):
            make_settings({"SHAREPOINT_CHUNK_SIZE_MB": value})

    def test_negative_threshold_rejected(self):
        with pytest.raises(ValueError, match="must not be negative"):
            make_settings({"SHAREPOINT_LARGE_FILE_THRESHOLD_MB": "-1"})

    def test_production_requires_site(self):
        env = {"ENVIRONMENT": "production", "SHAREPOINT_ACCESS_TOKEN": "tok"}
        with pytest.raises(ValueError, match="SHAREPOINT_BASE_URL is required"):
            make_settings(env)

    def test_production_requires_credentials(self):
        env = {"ENVIRONMENT": "production", **SITE_ENV}
        with pytest.raises(ValueError, match="SHAREPOINT_ACCESS_TOKEN or SHAREPOINT_CLIENT_ID"):
            make_settings(env)

    def test_production_accepts_complete_config(self):
        env = {
            "ENVIRONMENT": "production",
            **SITE_ENV,
            "SHAREPOINT_TENANT_ID": "tenant",
            "SHAREPOINT_CLIENT_ID": "client",
            "SHAREPOINT_CLIENT_SECRET": "secret",
        }
        settings = make_settings(env)
        assert settings.is_sharepoint_configured is True

    def test_certificate_counts_as_credentials(self):
        env = {
            **SITE_ENV,
            "SHAREPOINT_TENANT_ID": "tenant",
            "SHAREPOINT_CLIENT_ID": "client",
            "SHAREPOINT_CERTIFICATE_PATH": "/secrets/key.pem",
            "SHAREPOINT_CERTIFICATE_THUMBPRINT": "ABCDEF",
        }
        assert make_settings(env).has_sharepoint_credentials is True

    def test_certificate_without_thumbprint_is_incomplete(self):
        env = {
            "SHAREPOINT_TENANT_ID": "tenant",
            "SHAREPOINT_CLIENT_ID": "client",
            "SHAREPOINT_CERTIFICATE_PATH": "/secrets/key.pem",
        }
        assert make_settings(env).has_sharepoint_credentials is False


class TestOptionsFromSettings:
    """Test building client options from settings."""

    def test_static_token_wins(self):
        settings = make_settings(
            {
                **SITE_ENV,
                "SHAREPOINT_ACCESS_TOKEN": "tok",
                "SHAREPOINT_TENANT_ID": "tenant",
                "SHAREPOINT_CLIENT_ID": "client",
                "SHAREPOINT_CLIENT_SECRET": "secret",
            }
        )

        options = options_from_settings(settings)

        assert isinstance(options.login_info, StaticTokenProvider)
        assert options.base_site_url == "https://contoso.sharepoint.com/sites/Team"

    def test_app_credentials_use_msal(self):
        settings = make_settings(
            {
                **SITE_ENV,
                "SHAREPOINT_TENANT_ID": "tenant",
                "SHAREPOINT_CLIENT_ID": "client",
                "SHAREPOINT_CLIENT_SECRET": "secret",
            }
        )

        with patch("msal.ConfidentialClientApplication") as mock_msal_class:
            provider = credentials_from_settings(settings)

        assert isinstance(provider, MsalCredentialProvider)
        assert mock_msal_class.call_args[1]["client_credential"] == "secret"

    def test_unconfigured_raises(self):
        with pytest.raises(SharePointAuthenticationError, match="not configured"):
            options_from_settings(make_settings({}))

    def test_credentials_missing_raises(self):
        with pytest.raises(SharePointAuthenticationError):
            credentials_from_settings(make_settings(SITE_ENV))
