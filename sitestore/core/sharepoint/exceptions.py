"""SharePoint-specific exception classes.

These exceptions map to the failure modes of the SharePoint REST API
(``/_api/web``) for file and folder operations.

Exception Hierarchy:
    SharePointError (base)
    +-- InvalidNameError (local name validation, raised before any request)
    +-- SharePointAuthenticationError (token or context-info bootstrap)
    +-- SharePointUploadError (chunked upload precondition failures)
    +-- SharePointRequestError (non-2xx status or transport failure)
        +-- SharePointNotFoundError (404)
        +-- SharePointPermissionError (401, 403)
        +-- SharePointRateLimitError (429)
"""


class SharePointError(Exception):
    """Base exception for SharePoint operations.

    All SharePoint-related errors should inherit from this class
    to allow catching all SharePoint errors with a single except clause.
    """

    pass


class InvalidNameError(SharePointError, ValueError):
    """Raised when a file or folder name contains forbidden characters.

    SharePoint rejects names containing any of ``" * : < | > ? \\ /``.
    Validation happens locally, so no request is issued.
    """

    def __init__(self, name: str):
        super().__init__(f"Invalid name: {name} contains forbidden characters.")
        self.name = name


class SharePointAuthenticationError(SharePointError):
    """Raised when the SharePoint session cannot be established.

    This can occur when:
    - Client credentials are invalid or not configured
    - MSAL token acquisition fails
    - The context-info call fails or returns no request digest
    """

    pass


class SharePointUploadError(SharePointError):
    """Raised when an upload cannot be started.

    Network and status failures during an upload surface as
    SharePointRequestError; this class covers the local preconditions.
    """

    def __init__(
        self,
        message: str,
        filename: str | None = None,
        bytes_uploaded: int | None = None,
    ):
        super().__init__(message)
        self.filename = filename
        self.bytes_uploaded = bytes_uploaded


class SharePointRequestError(SharePointError):
    """Raised when a REST call returns a non-2xx status or the transport fails.

    Attributes:
        status_code: HTTP status, or None when no response was received
        method: HTTP method of the failed call
        url: Endpoint of the failed call
        detail: Error message extracted from the response body
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        method: str | None = None,
        url: str | None = None,
        detail: str | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.method = method
        self.url = url
        self.detail = detail


class SharePointNotFoundError(SharePointRequestError):
    """Raised when a requested file or folder does not exist (HTTP 404)."""

    pass


class SharePointPermissionError(SharePointRequestError):
    """Raised when the caller lacks permission (HTTP 401/403).

    Distinct from SharePointAuthenticationError, which is raised only
    while the session is being established.
    """

    pass


class SharePointRateLimitError(SharePointRequestError):
    """Raised when SharePoint throttles the request (HTTP 429).

    The retry_after_seconds attribute carries the Retry-After header value.
    Nothing in this package retries; the caller decides.
    """

    def __init__(
        self,
        message: str,
        retry_after_seconds: int | None = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.retry_after_seconds = retry_after_seconds
