"""Server-relative path formatting and name validation for SharePoint.

Paths passed to the client may be relative to the site
(``Shared Documents/Reports``) or already server-relative
(``/sites/Team/Shared Documents/Reports``). ``format_path`` normalises both
to the percent-encoded server-relative form used inside REST URLs.
"""

import re
from urllib.parse import quote, unquote

from sitestore.core.sharepoint.exceptions import InvalidNameError

# Characters SharePoint forbids in a single file or folder name
FORBIDDEN_NAME_CHARS = '"*:<|>?\\/'
_FORBIDDEN_NAME_RE = re.compile(f"[{re.escape(FORBIDDEN_NAME_CHARS)}]")

# Reserved characters left as-is when encoding a path. '#', '?' and '%'
# are always encoded so they cannot end the path or start an escape.
_PATH_SAFE_CHARS = "/;,:@&=+$!*'()"


def validate_name(name: str) -> None:
    """Reject file or folder names SharePoint cannot store.

    Args:
        name: A single name segment (not a path)

    Raises:
        InvalidNameError: If the name contains any of ``" * : < | > ? \\ /``
    """
    if _FORBIDDEN_NAME_RE.search(name):
        raise InvalidNameError(name)


def format_path(path: str, site_url: str) -> str:
    """Return the percent-encoded server-relative form of a path.

    The path is decoded first, so formatting an already formatted path
    returns it unchanged.

    Args:
        path: Site-relative or server-relative path, encoded or not
        site_url: Server-relative site prefix (e.g. /sites/Team), empty
            for the root site

    Returns:
        Percent-encoded path rooted under site_url
    """
    decoded = unquote(path)
    if not site_url or not decoded.startswith(site_url):
        separator = "" if decoded.startswith("/") else "/"
        decoded = f"{site_url}{separator}{decoded}"
    return quote(decoded, safe=_PATH_SAFE_CHARS)


def encode_name(name: str) -> str:
    """Percent-encode a single name segment for use in a URL."""
    return quote(name, safe=_PATH_SAFE_CHARS)


def odata_literal(value: str) -> str:
    """Escape a value for embedding in a single-quoted OData string literal."""
    return value.replace("'", "''")
