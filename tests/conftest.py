"""
Shared fixtures: an in-memory transport standing in for the network.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import pytest

from vulnsweep.scanner.core.requester import AsyncRequester, RequestMethod, Response

SEED = 'http://shop.test/'


@dataclass
class Page:
    """Canned HTTP answer for the fake transport."""
    body: str = ''
    status: int = 200
    headers: Optional[Dict[str, str]] = None


@dataclass
class Failure:
    """Canned transport failure (no HTTP response)."""
    reason: str = 'Connection refused'


@dataclass
class Call:
    url: str
    method: str
    data: Optional[Dict[str, Any]]
    allow_redirects: bool


class FakeRequester(AsyncRequester):
    """
    AsyncRequester that answers from a site map instead of the network.

    `site` maps exact URLs to a Page or Failure. `handler`, when given, is
    consulted first with (url, method, data) and may return a Page, a
    Failure or None to fall back to the site map. Unknown URLs get a 404.
    """

    def __init__(self, site: Optional[Dict[str, Any]] = None,
                 handler: Optional[Callable] = None, latency: float = 0.0):
        super().__init__(timeout=1.0, max_concurrent=5)
        self.site = site or {}
        self.handler = handler
        self.latency = latency
        self.calls = []

    async def request(self, url, method=RequestMethod.GET, data=None, headers=None,
                      allow_redirects=True, timeout=None) -> Response:
        self.calls.append(Call(url, method.value, data, allow_redirects))

        async with self.semaphore:
            if self.latency:
                await asyncio.sleep(self.latency)

        answer = self.handler(url, method.value, data) if self.handler else None
        if answer is None:
            answer = self.site.get(url, Page('Not Found', status=404))

        if isinstance(answer, Failure):
            return Response(url=url, status=0, headers={}, body='',
                            error=answer.reason, request_method=method.value)

        return Response(url=url, status=answer.status, headers=dict(answer.headers or {}),
                        body=answer.body, request_method=method.value)

    @property
    def fetched(self):
        return [c.url for c in self.calls]


@pytest.fixture
def fake_requester():
    """Factory for FakeRequester instances."""
    return FakeRequester
