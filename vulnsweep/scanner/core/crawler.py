"""
Async Web Crawler for VulnSweep

Depth-first crawler that enumerates the attack surface of a site:
- Depth-limited traversal
- Same-host scope (exact hostname match)
- Cycle avoidance through a visited set of exact resolved URLs
- Page ceiling to bound resource use
"""

from typing import Set, List, Dict, Optional, Callable
from urllib.parse import urlparse, parse_qsl
from dataclasses import dataclass, field
import logging

from vulnsweep.scanner.core.requester import AsyncRequester
from vulnsweep.scanner.core.parser import HTMLParser, FormDescriptor, ParsedPage
from vulnsweep.scanner.exceptions import ParseError

logger = logging.getLogger(__name__)

CRAWLABLE_SCHEMES = ('http', 'https')


@dataclass(frozen=True)
class Parameter:
    """An injectable parameter discovered while crawling."""
    url: str
    method: str
    name: str
    source: str  # 'form' or 'query'


@dataclass
class CrawledPage:
    """A single fetch performed by the crawler."""
    url: str
    depth: int
    status: int = 0
    headers: Dict[str, str] = field(default_factory=dict)
    body: str = ''
    error: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return self.error is None and 200 <= self.status < 300


@dataclass
class CrawlResult:
    """Everything the crawler discovered."""
    urls: Set[str] = field(default_factory=set)
    forms: List[FormDescriptor] = field(default_factory=list)
    parameters: List[Parameter] = field(default_factory=list)
    pages: List[CrawledPage] = field(default_factory=list)
    truncated: bool = False

    @property
    def stats(self) -> Dict[str, int]:
        return {
            'urlsFound': len(self.urls),
            'formsFound': len(self.forms),
            'parametersFound': len(self.parameters),
        }

    def page(self, url: str) -> Optional[CrawledPage]:
        for page in self.pages:
            if page.url == url:
                return page
        return None


class AsyncCrawler:
    """
    Async web crawler for vulnerability scanning.

    Pages are fetched one at a time, depth first. A page's links are followed
    before its own forms and query parameters are recorded, so parameters
    found deeper in the site come ahead of the page that links to them.
    A URL is fetched at most once, so traversal terminates on any link graph.
    """

    def __init__(
            self,
            requester: AsyncRequester,
            max_depth: int = 2,
            timeout: Optional[float] = None,
            max_pages: int = 100,
            progress_callback: Optional[Callable[[int, int, str], None]] = None
    ):
        """
        Initialize the crawler.

        Args:
            requester: AsyncRequester instance
            max_depth: Maximum link distance from the seed that is fetched
            timeout: Per-request timeout in seconds
            max_pages: Maximum number of distinct URLs fetched
            progress_callback: Callback for progress updates (current, total, url)
        """
        self.requester = requester
        self.max_depth = max_depth
        self.timeout = timeout
        self.max_pages = max_pages
        self.progress_callback = progress_callback

        self._visited: Set[str] = set()
        self._seed_host: Optional[str] = None
        self.result = CrawlResult()

    async def crawl(self, seed_url: str) -> CrawlResult:
        """
        Crawl website starting from the given URL.

        `self.result` is filled in as pages are processed, so a cancelled
        crawl still leaves a usable partial result behind.
        """
        self._visited = set()
        self._seed_host = urlparse(seed_url).hostname
        self.result = CrawlResult()

        await self._crawl_page(seed_url, 0)

        logger.info(
            f"Crawl of {seed_url} finished: {len(self.result.urls)} URLs, "
            f"{len(self.result.forms)} forms, {len(self.result.parameters)} parameters"
        )
        return self.result

    async def _crawl_page(self, url: str, depth: int):
        """Fetch one page, follow its links, then record what it exposes."""
        if depth > self.max_depth or url in self._visited:
            return

        if len(self._visited) >= self.max_pages:
            if not self.result.truncated:
                logger.warning(f"Page limit of {self.max_pages} reached, skipping {url} and beyond")
            self.result.truncated = True
            return

        self._visited.add(url)
        self.result.urls.add(url)

        if self.progress_callback:
            self.progress_callback(len(self._visited), self.max_pages, url)

        response = await self.requester.get(url, timeout=self.timeout)
        page = CrawledPage(
            url=url,
            depth=depth,
            status=response.status,
            headers=response.headers,
            body=response.body,
            error=response.error
        )
        self.result.pages.append(page)

        if response.error:
            logger.warning(f"Failed to fetch {url}: {response.error}")
            return

        if not response.is_success:
            logger.debug(f"Not descending into {url}: HTTP {response.status}")
            return

        try:
            parsed = HTMLParser(url).parse(response.body)
        except ParseError as e:
            logger.warning(f"Could not parse {url}: {e}")
            parsed = ParsedPage(url=url)

        if depth < self.max_depth:
            for link in parsed.links:
                if self._in_scope(link):
                    await self._crawl_page(link, depth + 1)

        self._record_forms(parsed)
        self._record_query_parameters(url)

    def _record_forms(self, parsed: ParsedPage):
        for form in parsed.forms:
            self.result.forms.append(form)
            for form_field in form.fields:
                self.result.parameters.append(Parameter(
                    url=form.url,
                    method=form.method,
                    name=form_field.name,
                    source='form'
                ))

    def _record_query_parameters(self, url: str):
        for key, _ in parse_qsl(urlparse(url).query, keep_blank_values=True):
            self.result.parameters.append(Parameter(
                url=url,
                method='GET',
                name=key,
                source='query'
            ))

    def _in_scope(self, url: str) -> bool:
        """Same scheme family and exactly the seed's hostname; subdomains are out."""
        try:
            parsed = urlparse(url)
            hostname = parsed.hostname
        except ValueError:
            return False
        if parsed.scheme not in CRAWLABLE_SCHEMES:
            return False
        return hostname is not None and hostname == self._seed_host
