"""SharePoint REST API client for site file operations.

Provides async file and folder operations against ``{site}/_api/web``:
- Folder listing with subfolders and files, newest first
- Download to memory or to a local file
- Single-request upload and chunked (session-based) upload
- Folder creation and file deletion

All operations reuse the immutable session established by create().
There is no retry or backoff; every failure surfaces to the caller.
"""

from pathlib import Path
from types import TracebackType
from typing import Any

import httpx
import structlog

from sitestore.config import Settings, get_settings
from sitestore.core.logging import get_logger
from sitestore.core.sharepoint.auth import (
    CredentialProvider,
    MsalCredentialProvider,
    StaticTokenProvider,
)
from sitestore.core.sharepoint.exceptions import (
    SharePointAuthenticationError,
    SharePointNotFoundError,
    SharePointPermissionError,
    SharePointRateLimitError,
    SharePointRequestError,
    SharePointUploadError,
)
from sitestore.core.sharepoint.models import ListingResult
from sitestore.core.sharepoint.paths import (
    encode_name,
    format_path,
    odata_literal,
    validate_name,
)
from sitestore.core.sharepoint.session import (
    SharePointOptions,
    SharePointSession,
    bootstrap_session,
)
from sitestore.core.sharepoint.upload import (
    DEFAULT_CHUNK_SIZE,
    UploadSession,
    plan_chunks,
)

logger = get_logger(__name__)

BINARY_CONTENT_TYPE = "application/octet-stream"


def _error_detail(response: httpx.Response) -> str:
    """Extract the OData error message, falling back to the response text."""
    try:
        message = response.json()["error"]["message"]
        if isinstance(message, dict):
            message = message["value"]
        return str(message)
    except (ValueError, KeyError, TypeError):
        return response.text[:500] or response.reason_phrase


def _parse_retry_after(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _error_for_response(
    response: httpx.Response,
    method: str,
    url: str,
) -> SharePointRequestError:
    """Map a non-2xx response to the matching SharePointRequestError subclass."""
    status = response.status_code
    detail = _error_detail(response)
    message = f"SharePoint API error {status} for {method} {url}: {detail}"
    context: dict[str, Any] = {
        "status_code": status,
        "method": method,
        "url": url,
        "detail": detail,
    }

    if status == 404:
        return SharePointNotFoundError(message, **context)
    if status in (401, 403):
        return SharePointPermissionError(message, **context)
    if status == 429:
        return SharePointRateLimitError(
            message,
            retry_after_seconds=_parse_retry_after(response.headers.get("Retry-After")),
            **context,
        )
    return SharePointRequestError(message, **context)


class SharePointClient:
    """Async client for files and folders in one SharePoint site.

    Create instances with ``await SharePointClient.create(options)``; the
    constructor expects an already bootstrapped session.

    Attributes:
        DEFAULT_CHUNK_SIZE: Chunk size for chunked uploads (100MB)
    """

    DEFAULT_CHUNK_SIZE = DEFAULT_CHUNK_SIZE

    def __init__(
        self,
        session: SharePointSession,
        http: httpx.AsyncClient,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        large_file_threshold: int = DEFAULT_CHUNK_SIZE,
        owns_http: bool = True,
    ) -> None:
        """Initialize client around an established session.

        Args:
            session: Authenticated session from bootstrap_session()
            http: HTTP client used for every request
            chunk_size: Bytes per ContinueUpload call
            large_file_threshold: upload() switches to chunked above this size
            owns_http: Whether close() should close the HTTP client
        """
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")

        self._session = session
        self._http = http
        self._chunk_size = chunk_size
        self._large_file_threshold = large_file_threshold
        self._owns_http = owns_http

    @classmethod
    async def create(
        cls,
        options: SharePointOptions,
        *,
        http: httpx.AsyncClient | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        large_file_threshold: int = DEFAULT_CHUNK_SIZE,
        timeout: float | None = None,
    ) -> "SharePointClient":
        """Authenticate against the site and return a ready client.

        Args:
            options: Site location and credential provider
            http: Optional HTTP client to use instead of a new one
            chunk_size: Bytes per ContinueUpload call
            large_file_threshold: upload() switches to chunked above this size
            timeout: Request timeout in seconds for a new HTTP client
                (None disables timeouts)

        Returns:
            SharePointClient with an established session

        Raises:
            SharePointAuthenticationError: If authentication or the
                context-info call fails
        """
        owns_http = http is None
        if http is None:
            http = httpx.AsyncClient(timeout=timeout)

        try:
            session = await bootstrap_session(options, http)
        except BaseException:
            if owns_http:
                await http.aclose()
            raise

        return cls(
            session,
            http,
            chunk_size=chunk_size,
            large_file_threshold=large_file_threshold,
            owns_http=owns_http,
        )

    @property
    def session(self) -> SharePointSession:
        """The authenticated session shared by all requests."""
        return self._session

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    async def close(self) -> None:
        """Close the HTTP client and release resources."""
        if self._owns_http:
            await self._http.aclose()
            logger.debug("sharepoint_client_closed")

    async def __aenter__(self) -> "SharePointClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    def format_path(self, path: str) -> str:
        """Format a path under this client's site. See paths.format_path."""
        return format_path(path, self._session.site_url)

    def _folder_ref(self, folder_path: str) -> str:
        path = odata_literal(self.format_path(folder_path))
        return f"{self._session.api_url}/GetFolderByServerRelativePath(DecodedUrl='{path}')"

    def _file_ref(self, folder_path: str, file_name: str) -> str:
        path = odata_literal(self.format_path(folder_path))
        name = odata_literal(encode_name(file_name))
        return f"{self._session.api_url}/GetFileByServerRelativePath(DecodedUrl='{path}/{name}')"

    async def _request(
        self,
        method: str,
        url: str,
        *,
        content: bytes | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Send one request with the session headers.

        Args:
            method: HTTP method (GET, POST, DELETE)
            url: Absolute endpoint URL
            content: Raw request body
            headers: Headers overriding the session headers

        Returns:
            httpx.Response on 2xx

        Raises:
            SharePointNotFoundError: On HTTP 404
            SharePointPermissionError: On HTTP 401/403
            SharePointRateLimitError: On HTTP 429
            SharePointRequestError: On other non-2xx statuses or transport errors
        """
        logger.debug("sharepoint_request", method=method, url=url)

        try:
            response = await self._http.request(
                method,
                url,
                content=content,
                headers=self._session.request_headers(headers),
            )
        except httpx.RequestError as e:
            logger.error(
                "sharepoint_connection_error",
                method=method,
                url=url,
                error=str(e),
            )
            raise SharePointRequestError(
                f"Connection error for {method} {url}: {e}",
                method=method,
                url=url,
                detail=str(e),
            ) from e

        if response.is_error:
            error = _error_for_response(response, method, url)
            logger.error(
                "sharepoint_request_failed",
                method=method,
                url=url,
                status_code=response.status_code,
                detail=error.detail[:200] if error.detail else None,
            )
            raise error

        logger.debug(
            "sharepoint_request_success",
            method=method,
            url=url,
            status_code=response.status_code,
        )
        return response

    async def list_folder_contents(self, folder_path: str) -> ListingResult:
        """List subfolders and files of a folder, newest first.

        Args:
            folder_path: Site-relative or server-relative folder path

        Returns:
            ListingResult with folders and files sorted by TimeCreated descending

        Raises:
            SharePointRequestError: If the request fails or the response
                is not a folder listing
        """
        path = odata_literal(self.format_path(folder_path))
        url = (
            f"{self._session.api_url}/GetFolderByServerRelativeUrl('{path}')"
            "?$expand=Folders,Files"
        )

        response = await self._request("GET", url)

        try:
            listing = ListingResult.from_response(response.json())
        except (ValueError, KeyError, TypeError) as e:
            raise SharePointRequestError(
                f"Unexpected folder listing response from {url}",
                status_code=response.status_code,
                method="GET",
                url=url,
            ) from e

        logger.info(
            "sharepoint_list_folder_success",
            folder_path=folder_path,
            folders=len(listing.folders),
            files=len(listing.files),
        )
        return listing

    async def download_file_as_buffer(self, file_path: str) -> bytes:
        """Download a file's raw content.

        Args:
            file_path: Site-relative or server-relative file path

        Returns:
            File content as bytes

        Raises:
            SharePointNotFoundError: If the file does not exist
            SharePointRequestError: For other failures
        """
        path = odata_literal(self.format_path(file_path))
        url = f"{self._session.api_url}/GetFileByServerRelativeUrl('{path}')/$value"

        logger.info("sharepoint_download_start", file_path=file_path)

        response = await self._request("GET", url)

        logger.info(
            "sharepoint_download_success",
            file_path=file_path,
            size=len(response.content),
        )
        return response.content

    async def download_file_to_local(self, file_path: str, local_path: str | Path) -> None:
        """Download a file and write it to the local filesystem.

        The local file is only written once the download has succeeded.

        Args:
            file_path: Site-relative or server-relative file path
            local_path: Destination on the local filesystem
        """
        content = await self.download_file_as_buffer(file_path)
        Path(local_path).write_bytes(content)

    async def upload_file(self, folder_path: str, file_name: str, content: bytes) -> None:
        """Upload a file in a single request, overwriting any existing file.

        Args:
            folder_path: Destination folder
            file_name: Name of the file to create
            content: Full file content

        Raises:
            InvalidNameError: If file_name contains forbidden characters
            SharePointRequestError: If the service rejects the upload
        """
        validate_name(file_name)
        name = odata_literal(encode_name(file_name))
        url = (
            f"{self._folder_ref(folder_path)}"
            f"/Files/AddUsingPath(DecodedUrl='{name}',overwrite=true)"
        )

        logger.info(
            "sharepoint_upload_small_start",
            folder_path=folder_path,
            filename=file_name,
            size=len(content),
        )

        await self._request(
            "POST",
            url,
            content=content,
            headers={"Content-Type": BINARY_CONTENT_TYPE},
        )

        logger.info("sharepoint_upload_small_success", filename=file_name)

    async def upload_file_from_large_buffer(
        self,
        folder_path: str,
        file_name: str,
        content: bytes,
    ) -> None:
        """Upload a file through a chunked upload session.

        Sends StartUploadFile, one ContinueUpload per chunk in order, then
        FinishUpload carrying the last chunk again at its starting offset.
        A failure in any phase aborts the upload; the partial server-side
        session is left behind.

        Args:
            folder_path: Destination folder
            file_name: Name of the file to create
            content: Full file content (must not be empty)

        Raises:
            InvalidNameError: If file_name contains forbidden characters
            SharePointUploadError: If content is empty
            SharePointRequestError: If any phase is rejected
        """
        validate_name(file_name)
        if not content:
            raise SharePointUploadError(
                "Chunked upload requires non-empty content; use upload_file",
                filename=file_name,
                bytes_uploaded=0,
            )

        upload = UploadSession(total_size=len(content))
        name = odata_literal(encode_name(file_name))
        file_ref = self._file_ref(folder_path, file_name)

        with structlog.contextvars.bound_contextvars(
            upload_id=upload.upload_id,
            filename=file_name,
        ):
            logger.info(
                "sharepoint_upload_large_start",
                folder_path=folder_path,
                size=upload.total_size,
                chunk_size=self._chunk_size,
            )

            await self._upload_step(
                upload,
                f"{self._folder_ref(folder_path)}/Files/AddStubUsingPath(DecodedUrl='{name}')"
                f"/StartUploadFile(uploadId='{upload.upload_id}')",
            )

            for offset, length in plan_chunks(upload.total_size, self._chunk_size):
                await self._upload_step(
                    upload,
                    f"{file_ref}/ContinueUpload(uploadId='{upload.upload_id}',"
                    f"fileOffset='{upload.offset}')",
                    content[offset : offset + length],
                )
                upload.advance(length)

                logger.debug(
                    "sharepoint_upload_large_progress",
                    uploaded=upload.offset,
                    total=upload.total_size,
                    percent=upload.percent_complete,
                )

            await self._upload_step(
                upload,
                f"{file_ref}/FinishUpload(uploadId='{upload.upload_id}',"
                f"fileOffset='{upload.finish_offset}')",
                content[upload.finish_offset :],
            )

            logger.info("sharepoint_upload_large_success", size=upload.total_size)

    async def _upload_step(
        self,
        upload: UploadSession,
        url: str,
        content: bytes = b"",
    ) -> None:
        """POST one phase of a chunked upload, logging progress on failure."""
        try:
            await self._request(
                "POST",
                url,
                content=content,
                headers={"Content-Type": BINARY_CONTENT_TYPE},
            )
        except SharePointRequestError as e:
            logger.error(
                "sharepoint_upload_large_failed",
                bytes_uploaded=upload.offset,
                total=upload.total_size,
                status_code=e.status_code,
            )
            raise

    async def upload(self, folder_path: str, file_name: str, content: bytes) -> None:
        """Upload a file, choosing single-request or chunked upload by size.

        Content larger than the large-file threshold goes through the
        chunked protocol; everything else, including empty content, is
        sent in one request.
        """
        if len(content) > self._large_file_threshold:
            await self.upload_file_from_large_buffer(folder_path, file_name, content)
        else:
            await self.upload_file(folder_path, file_name, content)

    async def create_folder(self, parent_path: str, folder_name: str) -> None:
        """Create a folder; fails if it already exists.

        Args:
            parent_path: Folder to create the new folder in
            folder_name: Name of the new folder

        Raises:
            InvalidNameError: If folder_name contains forbidden characters
            SharePointRequestError: If the folder exists or the call is rejected
        """
        validate_name(folder_name)
        path = odata_literal(self.format_path(parent_path))
        name = odata_literal(encode_name(folder_name))
        url = (
            f"{self._session.api_url}/folders"
            f"/AddUsingPath(DecodedUrl='{path}/{name}',overwrite=false)"
        )

        await self._request("POST", url, content=b"")

        logger.info(
            "sharepoint_folder_created",
            parent_path=parent_path,
            folder_name=folder_name,
        )

    async def delete_file(self, folder_path: str, file_name: str) -> None:
        """Delete a file.

        Args:
            folder_path: Folder containing the file
            file_name: Name of the file to delete

        Raises:
            InvalidNameError: If file_name contains forbidden characters
            SharePointNotFoundError: If the file does not exist
            SharePointRequestError: If the call is rejected
        """
        validate_name(file_name)
        path = odata_literal(self.format_path(folder_path))
        name = odata_literal(encode_name(file_name))
        url = f"{self._session.api_url}/GetFileByServerRelativeUrl('{path}/{name}')"

        await self._request("DELETE", url)

        logger.info(
            "sharepoint_file_deleted",
            folder_path=folder_path,
            filename=file_name,
        )


def credentials_from_settings(settings: Settings) -> CredentialProvider:
    """Build the credential provider described by settings.

    A static access token wins over app credentials.

    Raises:
        SharePointAuthenticationError: If no credential is configured
    """
    if settings.sharepoint_access_token:
        return StaticTokenProvider(settings.sharepoint_access_token)

    if not settings.has_sharepoint_credentials:
        raise SharePointAuthenticationError(
            "SharePoint authentication is not configured"
        )

    return MsalCredentialProvider(
        tenant_id=settings.sharepoint_tenant_id,
        client_id=settings.sharepoint_client_id,
        client_secret=settings.sharepoint_client_secret or None,
        certificate_path=settings.sharepoint_certificate_path or None,
        certificate_thumbprint=settings.sharepoint_certificate_thumbprint or None,
    )


def options_from_settings(settings: Settings | None = None) -> SharePointOptions:
    """Build client options from application settings.

    Raises:
        SharePointAuthenticationError: If the site or credentials are missing
    """
    settings = settings or get_settings()

    if not settings.is_sharepoint_configured:
        logger.error("sharepoint_not_configured", reason="missing_required_settings")
        raise SharePointAuthenticationError("SharePoint is not configured")

    return SharePointOptions(
        base_url=settings.sharepoint_base_url,
        site_url=settings.sharepoint_site_url,
        login_info=credentials_from_settings(settings),
    )


async def create_client_from_settings(
    settings: Settings | None = None,
) -> SharePointClient:
    """Create an authenticated client from application settings."""
    settings = settings or get_settings()
    return await SharePointClient.create(
        options_from_settings(settings),
        chunk_size=settings.sharepoint_chunk_size_bytes,
        large_file_threshold=settings.sharepoint_large_file_threshold_bytes,
        timeout=settings.sharepoint_request_timeout,
    )
