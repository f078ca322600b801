"""Credential providers for SharePoint REST authentication.

A credential provider turns login configuration into the headers and
bearer token the session bootstrap needs. Two providers are available:
- MsalCredentialProvider: App-only client credentials flow via MSAL,
  using either a client secret or a certificate
- StaticTokenProvider: A token acquired elsewhere (CLI, tests, delegated flows)

MSAL handles token caching automatically via its TokenCache.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol, runtime_checkable
from urllib.parse import urlsplit

import msal

from sitestore.core.logging import get_logger
from sitestore.core.sharepoint.exceptions import SharePointAuthenticationError

logger = get_logger(__name__)

AUTHORITY_BASE_URL = "https://login.microsoftonline.com"


@dataclass(frozen=True)
class AuthResult:
    """Outcome of a credential exchange.

    Attributes:
        token: Bearer token for the Authorization header
        headers: Extra headers passed through verbatim to every request
    """

    token: str
    headers: dict[str, str] = field(default_factory=dict)


@runtime_checkable
class CredentialProvider(Protocol):
    """Anything that can authenticate against a SharePoint site."""

    async def get_auth(self, site_url: str) -> AuthResult:
        """Authenticate for the given absolute site URL."""
        ...


def sharepoint_scope(site_url: str) -> list[str]:
    """Build the MSAL resource scope for the tenant hosting site_url.

    Args:
        site_url: Absolute site URL (e.g. https://contoso.sharepoint.com/sites/Team)

    Returns:
        Single-element scope list (e.g. ["https://contoso.sharepoint.com/.default"])
    """
    parts = urlsplit(site_url)
    if not parts.scheme or not parts.netloc:
        raise SharePointAuthenticationError(
            f"Cannot derive SharePoint scope from site URL: {site_url}"
        )
    return [f"{parts.scheme}://{parts.netloc}/.default"]


class MsalCredentialProvider:
    """MSAL-based app-only authentication for SharePoint REST.

    SharePoint's REST API accepts app-only tokens only when the app
    authenticates with a certificate; a client secret works for tenants that
    still allow ACS-style app registrations. Both are supported here and the
    certificate wins when both are given.

    Attributes:
        _msal_app: MSAL ConfidentialClientApplication instance
    """

    def __init__(
        self,
        tenant_id: str,
        client_id: str,
        client_secret: str | None = None,
        certificate_path: str | None = None,
        certificate_thumbprint: str | None = None,
    ) -> None:
        """Initialize MSAL client for the given app registration.

        Args:
            tenant_id: Azure AD tenant ID
            client_id: Azure AD application (client) ID
            client_secret: Application client secret
            certificate_path: Path to a PEM-encoded private key
            certificate_thumbprint: SHA-1 thumbprint of the uploaded certificate

        Raises:
            SharePointAuthenticationError: If no usable credential is given
        """
        if not tenant_id or not client_id:
            raise SharePointAuthenticationError(
                "SharePoint authentication requires a tenant ID and client ID"
            )

        credential = self._build_credential(
            client_secret, certificate_path, certificate_thumbprint
        )
        authority = f"{AUTHORITY_BASE_URL}/{tenant_id}"

        logger.debug(
            "sharepoint_msal_app_creating",
            authority=authority,
            client_id=client_id[:8] + "...",
            credential_type="certificate" if isinstance(credential, dict) else "secret",
        )

        self._msal_app = msal.ConfidentialClientApplication(
            client_id=client_id,
            client_credential=credential,
            authority=authority,
        )

    @staticmethod
    def _build_credential(
        client_secret: str | None,
        certificate_path: str | None,
        certificate_thumbprint: str | None,
    ) -> str | dict[str, str]:
        """Choose the MSAL client_credential value."""
        if certificate_path and certificate_thumbprint:
            try:
                private_key = Path(certificate_path).read_text()
            except OSError as e:
                raise SharePointAuthenticationError(
                    f"Cannot read certificate key {certificate_path}: {e}"
                ) from e
            return {"thumbprint": certificate_thumbprint, "private_key": private_key}

        if client_secret:
            return client_secret

        raise SharePointAuthenticationError(
            "SharePoint authentication requires a client secret or a certificate"
        )

    async def get_auth(self, site_url: str) -> AuthResult:
        """Acquire an app-only token for the tenant hosting site_url.

        First attempts to retrieve a cached token, then falls back
        to acquiring a new token from Azure AD.

        Args:
            site_url: Absolute site URL

        Returns:
            AuthResult carrying the access token

        Raises:
            SharePointAuthenticationError: If token acquisition fails
        """
        scopes = sharepoint_scope(site_url)
        logger.debug("sharepoint_app_token_acquiring", scope=scopes[0])

        result = self._msal_app.acquire_token_silent(scopes=scopes, account=None)
        if result and "access_token" in result:
            logger.debug(
                "sharepoint_app_token_cached",
                expires_in=result.get("expires_in"),
            )
            return AuthResult(token=self._handle_auth_result(result))

        result = self._msal_app.acquire_token_for_client(scopes=scopes)
        return AuthResult(token=self._handle_auth_result(result))

    def _handle_auth_result(self, result: dict[str, Any] | None) -> str:
        """Process MSAL authentication result.

        Args:
            result: MSAL result dictionary containing access_token or error

        Returns:
            Access token string

        Raises:
            SharePointAuthenticationError: If result is None or contains error
        """
        if result is None:
            logger.error("sharepoint_app_token_failed", reason="null_result")
            raise SharePointAuthenticationError(
                "Failed to acquire app token: no result from MSAL"
            )

        if "error" in result:
            error_code = result.get("error", "unknown")
            error_description = result.get("error_description", "No description")

            logger.error(
                "sharepoint_app_token_failed",
                error_code=error_code,
                error_description=error_description[:100],
            )
            raise SharePointAuthenticationError(
                f"Failed to acquire app token: {error_code} - {error_description}"
            )

        access_token = result.get("access_token")
        if not access_token:
            logger.error("sharepoint_app_token_failed", reason="missing_access_token")
            raise SharePointAuthenticationError(
                "Failed to acquire app token: access_token not in response"
            )

        logger.info(
            "sharepoint_app_token_acquired",
            expires_in=result.get("expires_in"),
            token_type=result.get("token_type"),
        )
        return access_token


class StaticTokenProvider:
    """Credential provider for a token acquired outside this package."""

    def __init__(self, token: str, headers: dict[str, str] | None = None) -> None:
        if not token:
            raise SharePointAuthenticationError("Access token must not be empty")
        self._token = token
        self._headers = dict(headers or {})

    async def get_auth(self, site_url: str) -> AuthResult:
        return AuthResult(token=self._token, headers=dict(self._headers))
