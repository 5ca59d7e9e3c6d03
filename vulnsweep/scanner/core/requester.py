"""
Async HTTP Requester for VulnSweep

The one HTTP client shared by the crawler and the injector. Every request is
bounded by a timeout and by the concurrency semaphore; transport failures are
reported on the Response instead of raised.
"""

import asyncio
import ssl
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

import aiohttp

logger = logging.getLogger(__name__)

BROWSER_USER_AGENT = (
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 '
    '(KHTML, like Gecko) Chrome/124.0 Safari/537.36'
)

# Bodies larger than this are truncated before inspection
MAX_BODY_SIZE = 10 * 1024 * 1024


class RequestMethod(Enum):
    """Methods the scanner sends."""
    GET = 'GET'
    POST = 'POST'

    @classmethod
    def from_string(cls, value: str) -> 'RequestMethod':
        """Form methods other than POST are submitted as GET, like a browser does."""
        return cls.POST if (value or '').strip().upper() == 'POST' else cls.GET


@dataclass
class Response:
    """
    Outcome of one request.

    `error` is set (and `status` is 0) when no HTTP response arrived at all;
    a 4xx or 5xx answer is still a response.
    """
    url: str
    status: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: str = ''
    error: Optional[str] = None
    request_method: str = 'GET'

    @property
    def is_success(self) -> bool:
        return self.error is None and 200 <= self.status < 300


class AsyncRequester:
    """
    Pooled aiohttp client.

    Usable as an async context manager; `request` starts the session lazily
    when it was not started explicitly.
    """

    DEFAULT_HEADERS = {
        'User-Agent': BROWSER_USER_AGENT,
        'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
        'Accept-Language': 'en-US,en;q=0.5',
    }

    def __init__(
            self,
            timeout: float = 10.0,
            max_concurrent: int = 10,
            max_retries: int = 1,
            verify_ssl: bool = True,
            custom_headers: Optional[Dict[str, str]] = None
    ):
        """
        Args:
            timeout: Default per-request timeout in seconds
            max_concurrent: Requests allowed in flight at once
            max_retries: Attempts per request (1 means no retry)
            verify_ssl: Whether to verify TLS certificates
            custom_headers: Headers overriding the defaults
        """
        self.timeout = timeout
        self.max_concurrent = max_concurrent
        self.max_retries = max(1, max_retries)
        self.verify_ssl = verify_ssl
        self.headers = {**self.DEFAULT_HEADERS, **(custom_headers or {})}

        self._session: Optional[aiohttp.ClientSession] = None
        self._semaphore: Optional[asyncio.Semaphore] = None

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def start(self):
        """Open the HTTP session."""
        if self._session is not None and not self._session.closed:
            return

        ssl_context = ssl.create_default_context()
        if not self.verify_ssl:
            ssl_context.check_hostname = False
            ssl_context.verify_mode = ssl.CERT_NONE

        self._session = aiohttp.ClientSession(
            connector=aiohttp.TCPConnector(limit=self.max_concurrent, ssl=ssl_context),
            timeout=aiohttp.ClientTimeout(total=self.timeout),
            headers=self.headers,
            cookie_jar=aiohttp.CookieJar(unsafe=True)
        )

    async def close(self):
        """Close the HTTP session."""
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    @property
    def semaphore(self) -> asyncio.Semaphore:
        """Concurrency bound shared by everything using this requester."""
        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self.max_concurrent)
        return self._semaphore

    async def request(
            self,
            url: str,
            method: RequestMethod = RequestMethod.GET,
            data: Optional[Dict[str, Any]] = None,
            headers: Optional[Dict[str, str]] = None,
            allow_redirects: bool = True,
            timeout: Optional[float] = None
    ) -> Response:
        """
        Send one request.

        Args:
            url: Target URL
            method: HTTP method
            data: Form fields, sent url-encoded in the body
            headers: Extra headers for this request only
            allow_redirects: Follow 3xx responses
            timeout: Seconds before giving up (defaults to the requester's)

        Returns:
            The response; `error` is set when no HTTP response was received
        """
        await self.start()

        client_timeout = aiohttp.ClientTimeout(total=timeout or self.timeout)
        error = None

        for attempt in range(1, self.max_retries + 1):
            try:
                async with self.semaphore:
                    async with self._session.request(
                            method.value, url,
                            data=data,
                            headers=headers,
                            allow_redirects=allow_redirects,
                            timeout=client_timeout
                    ) as resp:
                        body = await resp.text(errors='ignore')
                        return Response(
                            url=str(resp.url),
                            status=resp.status,
                            headers=dict(resp.headers),
                            body=body[:MAX_BODY_SIZE],
                            request_method=method.value
                        )

            except asyncio.TimeoutError:
                error = 'Request timed out'
            except aiohttp.ClientError as e:
                error = str(e) or e.__class__.__name__
            except ValueError as e:
                # Unusable URL; another attempt cannot help
                logger.warning(f"Invalid request for {url}: {e}")
                return Response(url=url, status=0, error=str(e), request_method=method.value)

            logger.warning(f"{method.value} {url} failed: {error} (attempt {attempt}/{self.max_retries})")
            if attempt < self.max_retries:
                await asyncio.sleep(2 ** (attempt - 1))

        return Response(url=url, status=0, error=error, request_method=method.value)

    async def get(self, url: str, **kwargs) -> Response:
        """Send a GET request."""
        return await self.request(url, RequestMethod.GET, **kwargs)
