"""Shared pytest fixtures for unit tests."""

from __future__ import annotations

from typing import Any, Callable

import httpx
import pytest

from breeze_chms.client import BreezeClient
from breeze_chms.config import get_settings

BASE_URL = "https://demo.breezechms.com"
API_KEY = "5c2d2cbacg3"


class FakeBreezeApi:
    """Mock transport handler that records requests and replays one response."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._respond: Callable[[httpx.Request], httpx.Response] = (
            lambda request: httpx.Response(200, json={})
        )

    def respond_with(self, status_code: int = 200, **kwargs: Any) -> None:
        self._respond = lambda request: httpx.Response(status_code, **kwargs)

    def fail_with(self, exc_type: type[httpx.HTTPError], message: str = "boom") -> None:
        def _raise(request: httpx.Request) -> httpx.Response:
            raise exc_type(message, request=request)

        self._respond = _raise

    @property
    def last_request(self) -> httpx.Request:
        assert self.requests, "no request was sent"
        return self.requests[-1]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._respond(request)


@pytest.fixture
def api() -> FakeBreezeApi:
    return FakeBreezeApi()


@pytest.fixture
def client(api):
    """BreezeClient wired to the fake API."""
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(api))
    return BreezeClient(BASE_URL, API_KEY, http_client=http_client)


@pytest.fixture
def dry_client(api):
    """Dry-run client; any request reaching the fake API is a bug."""
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(api))
    return BreezeClient(BASE_URL, API_KEY, dry_run=True, http_client=http_client)


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
