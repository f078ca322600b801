"""Session bootstrap for the SharePoint REST API.

A session is established once per client:
1. The credential provider authenticates against the site
2. Authorization and OData verbose JSON headers are assembled
3. POST /_api/contextinfo returns the form digest (anti-forgery token)
4. The digest is stored under X-RequestDigest next to the other headers

The resulting SharePointSession is immutable. It is never refreshed; when
the digest expires, mutating calls fail and the caller creates a new client.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, field_validator

from sitestore.core.logging import get_logger
from sitestore.core.sharepoint.auth import CredentialProvider
from sitestore.core.sharepoint.exceptions import SharePointAuthenticationError

logger = get_logger(__name__)

ODATA_VERBOSE_JSON = "application/json;odata=verbose"
REQUEST_DIGEST_HEADER = "X-RequestDigest"


class SharePointOptions(BaseModel):
    """Construction options for a SharePoint client.

    Attributes:
        base_url: Tenant origin (e.g. https://contoso.sharepoint.com)
        site_url: Server-relative site path (e.g. /sites/Team)
        login_info: Credential provider used once during bootstrap
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    base_url: str
    site_url: str
    login_info: CredentialProvider

    @field_validator("base_url")
    @classmethod
    def normalize_base_url(cls, v: str) -> str:
        """Strip trailing slashes from the tenant origin."""
        v = v.strip().rstrip("/")
        if not v.startswith(("https://", "http://")):
            raise ValueError("base_url must be an absolute http(s) URL")
        return v

    @field_validator("site_url")
    @classmethod
    def normalize_site_url(cls, v: str) -> str:
        """Ensure the site path has a leading and no trailing slash."""
        v = v.strip().strip("/")
        return f"/{v}" if v else ""

    @property
    def base_site_url(self) -> str:
        """Absolute URL of the site."""
        return f"{self.base_url}{self.site_url}"


@dataclass(frozen=True)
class SharePointSession:
    """Authenticated, immutable state shared by every request of a client.

    Attributes:
        base_site_url: Absolute site URL
        api_url: Root of the web API ({base_site_url}/_api/web)
        site_url: Server-relative site prefix used by path formatting
        headers: Read-only header bag sent with every request
    """

    base_site_url: str
    api_url: str
    site_url: str
    headers: Mapping[str, str]

    def request_headers(
        self, overrides: Mapping[str, str] | None = None
    ) -> dict[str, str]:
        """Copy the session headers, replacing any present in overrides."""
        headers = dict(self.headers)
        if overrides:
            headers.update(overrides)
        return headers


def _extract_digest(payload: Any) -> str:
    """Pull FormDigestValue out of a verbose context-info response."""
    digest = payload["d"]["GetContextWebInformation"]["FormDigestValue"]
    if not isinstance(digest, str) or not digest:
        raise ValueError("FormDigestValue is empty")
    return digest


async def bootstrap_session(
    options: SharePointOptions,
    http: httpx.AsyncClient,
) -> SharePointSession:
    """Authenticate and fetch the request digest for a site.

    Args:
        options: Site location and credential provider
        http: HTTP client used for the context-info call

    Returns:
        Fully populated SharePointSession

    Raises:
        SharePointAuthenticationError: If authentication or the
            context-info call fails
    """
    base_site_url = options.base_site_url

    logger.info("sharepoint_session_bootstrap_start", site=base_site_url)

    try:
        auth = await options.login_info.get_auth(base_site_url)
    except SharePointAuthenticationError:
        raise
    except Exception as e:
        logger.error(
            "sharepoint_session_auth_failed",
            site=base_site_url,
            error_type=type(e).__name__,
            error=str(e),
        )
        raise SharePointAuthenticationError(
            f"Authentication against {base_site_url} failed: {e}"
        ) from e

    headers = dict(auth.headers)
    headers["Authorization"] = f"Bearer {auth.token}"
    headers["Accept"] = ODATA_VERBOSE_JSON
    headers["Content-Type"] = "application/json"

    context_info_url = f"{base_site_url}/_api/contextinfo"
    try:
        response = await http.post(context_info_url, headers=headers, content=b"{}")
    except httpx.RequestError as e:
        logger.error(
            "sharepoint_context_info_connection_error",
            url=context_info_url,
            error=str(e),
        )
        raise SharePointAuthenticationError(
            f"Context info request failed: {e}"
        ) from e

    if response.is_error:
        logger.error(
            "sharepoint_context_info_failed",
            url=context_info_url,
            status_code=response.status_code,
        )
        raise SharePointAuthenticationError(
            f"Context info request failed with status {response.status_code}"
        )

    try:
        digest = _extract_digest(response.json())
    except (ValueError, KeyError, TypeError) as e:
        logger.error("sharepoint_context_info_invalid", url=context_info_url)
        raise SharePointAuthenticationError(
            "Context info response did not contain a FormDigestValue"
        ) from e

    headers[REQUEST_DIGEST_HEADER] = digest

    logger.info("sharepoint_session_bootstrap_success", site=base_site_url)

    return SharePointSession(
        base_site_url=base_site_url,
        api_url=f"{base_site_url}/_api/web",
        site_url=options.site_url,
        headers=MappingProxyType(headers),
    )
