"""Shared fixtures: a mocked Clinical Tables upstream built on httpx.MockTransport."""

import json
from typing import Any, Callable, List, Optional

import httpx
import pytest

from codes_mcp.config import Settings


class FakeUpstream:
    """Records every request and answers with a canned body."""

    def __init__(self, body: Any = None, status_code: int = 200, raw: Optional[str] = None):
        self.body = body if body is not None else [0, [], None, []]
        self.status_code = status_code
        self.raw = raw
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.raw is not None:
            return httpx.Response(self.status_code, text=self.raw)
        return httpx.Response(self.status_code, content=json.dumps(self.body).encode())

    @property
    def last_url(self) -> str:
        return str(self.requests[-1].url)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


@pytest.fixture
def upstream() -> Callable[..., FakeUpstream]:
    return FakeUpstream


@pytest.fixture
def settings() -> Settings:
    return Settings()
