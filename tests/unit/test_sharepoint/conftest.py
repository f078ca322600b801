"""Shared fixtures for SharePoint client tests."""

from collections.abc import Callable

import httpx
import pytest

from sitestore.core.sharepoint.client import SharePointClient
from tests.fixtures.sharepoint_site import RecordingSite, make_session


@pytest.fixture
def site() -> RecordingSite:
    return RecordingSite()


@pytest.fixture
def make_client(site: RecordingSite) -> Callable[..., SharePointClient]:
    """Factory for clients wired to the recording site."""

    def _make(**kwargs) -> SharePointClient:
        http = httpx.AsyncClient(transport=site.transport())
        return SharePointClient(make_session(), http, **kwargs)

    return _make
