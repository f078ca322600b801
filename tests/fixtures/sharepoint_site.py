"""Fake SharePoint site for client tests.

Requests go through httpx.MockTransport so every call the client makes is
recorded and can be asserted on.
"""

import json
from collections.abc import Callable
from types import MappingProxyType
from typing import Any
from urllib.parse import unquote

import httpx

from sitestore.core.sharepoint.session import SharePointSession

BASE_URL = "https://contoso.sharepoint.com"
SITE_URL = "/sites/Team"
BASE_SITE_URL = f"{BASE_URL}{SITE_URL}"
API_URL = f"{BASE_SITE_URL}/_api/web"

SESSION_HEADERS = {
    "Authorization": "Bearer test_token",
    "Accept": "application/json;odata=verbose",
    "Content-Type": "application/json",
    "X-RequestDigest": "0x1234,01 Jan 2026 00:00:00 -0000",
}


def decoded_url(request: httpx.Request) -> str:
    """Percent-decoded URL of a recorded request."""
    return unquote(str(request.url))


def json_response(data: dict[str, Any], status_code: int = 200) -> httpx.Response:
    """Create a JSON httpx Response."""
    return httpx.Response(
        status_code=status_code,
        content=json.dumps(data).encode(),
        headers={"content-type": "application/json"},
    )


def odata_error(message: str, status_code: int) -> httpx.Response:
    """Create a verbose OData error response."""
    return json_response(
        {
            "error": {
                "code": "-1, Microsoft.SharePoint.SPException",
                "message": {"lang": "en-US", "value": message},
            }
        },
        status_code=status_code,
    )


def make_session() -> SharePointSession:
    return SharePointSession(
        base_site_url=BASE_SITE_URL,
        api_url=API_URL,
        site_url=SITE_URL,
        headers=MappingProxyType(dict(SESSION_HEADERS)),
    )


class RecordingSite:
    """Fake SharePoint endpoint that records requests.

    The responder decides the response for each request; by default every
    call succeeds with an empty JSON object.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.responder: Callable[[httpx.Request], httpx.Response] = (
            lambda request: json_response({})
        )

    def handler(self, request: httpx.Request) -> httpx.Response:
        request.read()
        self.requests.append(request)
        return self.responder(request)

    @property
    def urls(self) -> list[str]:
        return [decoded_url(r) for r in self.requests]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)
