"""Shared fixtures: a fake web served through httpx.MockTransport and an in-memory store."""

from typing import Dict, List, Optional

import httpx
import pytest

from affiliate_scout.adapters.fetch_client import FetchClient
from affiliate_scout.adapters.record_store import InMemoryRecordStore


class FakeWeb:
    """
    Serves canned pages keyed by absolute URL (a bare origin has no trailing
    slash); anything else answers 404.

    A value may be an HTML string (served with 200), a ``(status, html)``
    tuple, a ``(status, html, headers)`` tuple, or an exception instance to
    raise as a transport failure.
    """

    def __init__(self, pages: Optional[Dict[str, object]] = None):
        self.pages: Dict[str, object] = dict(pages or {})
        self.requested: List[str] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        if request.url.path == "/" and not request.url.query:
            url = url.rstrip("/")
        self.requested.append(url)
        page = self.pages.get(url)
        if page is None:
            return httpx.Response(404, text="not found")
        if isinstance(page, Exception):
            raise page
        if isinstance(page, tuple):
            status, body, *headers = page
            return httpx.Response(status, text=body, headers=headers[0] if headers else None)
        return httpx.Response(200, text=page, headers={"content-type": "text/html"})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def client(self) -> FetchClient:
        return FetchClient(transport=self.transport())


@pytest.fixture
def web() -> FakeWeb:
    return FakeWeb()


@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore()
