"""SharePoint integration for site file storage.

This package wraps the SharePoint REST API (``/_api/web``) for listing,
uploading, downloading and deleting files and folders by server-relative
path.

Modules:
    - exceptions: SharePoint-specific exception classes
    - paths: Path formatting and name validation
    - auth: Credential providers (MSAL, static token)
    - session: Session bootstrap (token + request digest)
    - models: Folder listing models
    - upload: Chunked upload session state
    - client: REST client for file and folder operations
"""

from sitestore.core.sharepoint.auth import (
    AuthResult,
    CredentialProvider,
    MsalCredentialProvider,
    StaticTokenProvider,
)
from sitestore.core.sharepoint.client import (
    SharePointClient,
    create_client_from_settings,
    options_from_settings,
)
from sitestore.core.sharepoint.exceptions import (
    InvalidNameError,
    SharePointAuthenticationError,
    SharePointError,
    SharePointNotFoundError,
    SharePointPermissionError,
    SharePointRateLimitError,
    SharePointRequestError,
    SharePointUploadError,
)
from sitestore.core.sharepoint.models import ListingResult
from sitestore.core.sharepoint.paths import format_path, validate_name
from sitestore.core.sharepoint.session import SharePointOptions, SharePointSession
from sitestore.core.sharepoint.upload import UploadSession, plan_chunks

__all__ = [
    # Exceptions
    "SharePointError",
    "InvalidNameError",
    "SharePointAuthenticationError",
    "SharePointRequestError",
    "SharePointNotFoundError",
    "SharePointPermissionError",
    "SharePointRateLimitError",
    "SharePointUploadError",
    # Auth
    "AuthResult",
    "CredentialProvider",
    "MsalCredentialProvider",
    "StaticTokenProvider",
    # Session
    "SharePointOptions",
    "SharePointSession",
    # Client
    "SharePointClient",
    "create_client_from_settings",
    "options_from_settings",
    # Helpers
    "ListingResult",
    "UploadSession",
    "format_path",
    "plan_chunks",
    "validate_name",
]
