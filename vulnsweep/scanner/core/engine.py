"""
VulnSweep Scanner Engine

The main orchestrator for vulnerability scanning.
Sequences crawl -> injection sweep -> detection -> report assembly.
"""

import asyncio
import logging
import time
import traceback
import uuid
from typing import List, Dict, Optional, Callable, Any, Mapping
from datetime import datetime, timezone
from dataclasses import dataclass, field, replace

from vulnsweep.scanner.core.requester import AsyncRequester
from vulnsweep.scanner.core.crawler import AsyncCrawler, CrawlResult, Parameter
from vulnsweep.scanner.core.injector import RequestInjector
from vulnsweep.scanner.core.validation import (
    ScanRequest, validate_target_url, DEFAULT_DEPTH, DEFAULT_TIMEOUT_MS
)
from vulnsweep.scanner.exceptions import (
    ScannerError, InputError, NetworkError, OrchestratorError
)
from vulnsweep.scanner.modules import (
    Finding, Severity, VulnerabilityClass, INJECTION_CLASSES, classify_injection,
    detect_csrf_risk, detect_missing_security_headers, detect_weak_auth
)
from vulnsweep.scanner.payloads import PAYLOADS

logger = logging.getLogger(__name__)

DEFAULT_MODULES = ['xss', 'sqli', 'csrf']
SUMMARY_SEVERITIES = (Severity.CRITICAL, Severity.HIGH, Severity.MEDIUM, Severity.LOW)


@dataclass
class ScanConfig:
    """Scanner configuration."""
    max_depth: int = DEFAULT_DEPTH
    max_pages: int = 100
    timeout: float = DEFAULT_TIMEOUT_MS / 1000.0
    concurrent_requests: int = 10
    scan_timeout: Optional[float] = 300
    max_retries: int = 1
    verify_ssl: bool = True
    custom_headers: Optional[Dict[str, str]] = None
    scan_modules: List[str] = None

    def __post_init__(self):
        if self.scan_modules is None:
            self.scan_modules = list(DEFAULT_MODULES)

        for module_name in self.scan_modules:
            try:
                VulnerabilityClass(module_name)
            except ValueError:
                raise InputError(f"Unknown scan module: {module_name}")

    @property
    def enabled_classes(self) -> List[VulnerabilityClass]:
        return [VulnerabilityClass(name) for name in self.scan_modules]

    @classmethod
    def from_app_config(cls, settings: Mapping[str, Any], **overrides) -> 'ScanConfig':
        """Build from a Flask-style settings mapping (SCANNER_* keys)."""
        values = {
            'max_depth': settings.get('SCANNER_DEFAULT_DEPTH', DEFAULT_DEPTH),
            'max_pages': settings.get('SCANNER_MAX_PAGES', 100),
            'timeout': settings.get('SCANNER_DEFAULT_TIMEOUT_MS', DEFAULT_TIMEOUT_MS) / 1000.0,
            'concurrent_requests': settings.get('SCANNER_CONCURRENT_REQUESTS', 10),
            'scan_timeout': settings.get('SCANNER_SCAN_TIMEOUT', 300),
            'max_retries': settings.get('SCANNER_MAX_RETRIES', 1),
            'verify_ssl': settings.get('SCANNER_VERIFY_SSL', True),
            'scan_modules': list(settings.get('SCANNER_MODULES', DEFAULT_MODULES)),
        }
        user_agent = settings.get('SCANNER_USER_AGENT')
        if user_agent:
            values['custom_headers'] = {'User-Agent': user_agent}
        values.update(overrides)
        return cls(**values)


@dataclass
class ScanReport:
    """Result of one scan. Not mutated after the engine returns it."""
    id: str
    target_url: str
    started_at: datetime
    duration_seconds: float
    findings: List[Finding] = field(default_factory=list)
    summary: Dict[str, int] = field(default_factory=dict)
    crawl_stats: Dict[str, int] = field(default_factory=dict)
    partial: bool = False
    skipped_tests: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON wire form."""
        return {
            'id': self.id,
            'targetUrl': self.target_url,
            'startedAt': self.started_at.isoformat(),
            'durationSeconds': self.duration_seconds,
            'findings': [f.to_dict() for f in self.findings],
            'summary': dict(self.summary),
            'crawlStats': dict(self.crawl_stats),
            'partial': self.partial,
            'skippedTests': self.skipped_tests,
        }


def summarize(findings: List[Finding]) -> Dict[str, int]:
    """Counts by severity; raises OrchestratorError if the buckets don't add up."""
    summary = {'total': len(findings)}
    for severity in SUMMARY_SEVERITIES:
        summary[severity.value] = sum(1 for f in findings if f.severity is severity)

    bucketed = sum(summary[s.value] for s in SUMMARY_SEVERITIES)
    if bucketed != summary['total']:
        raise OrchestratorError(
            f"Severity summary mismatch: {bucketed} bucketed findings out of {summary['total']}"
        )
    return summary


class ScannerEngine:
    """
    Main vulnerability scanner engine.

    Orchestrates:
    1. Crawling to discover pages, forms and parameters
    2. Injection sweep: every parameter x every payload, run concurrently
    3. CSRF analysis of every discovered form
    4. Optional passive checks on crawled pages
    5. Report assembly

    A failure confined to one (parameter, payload) test is logged and
    skipped. Failing to reach the seed URL, or an inconsistent report, is
    fatal and raises OrchestratorError. When the scan deadline expires the
    outstanding requests are cancelled and a partial report is returned.
    """

    def __init__(
            self,
            config: Optional[ScanConfig] = None,
            requester: Optional[AsyncRequester] = None,
            progress_callback: Optional[Callable[[Dict], None]] = None,
            finding_callback: Optional[Callable[[Finding], None]] = None
    ):
        """
        Initialize the scanner engine.

        Args:
            config: Scanner configuration
            requester: Transport to use; when omitted the engine creates and
                closes its own AsyncRequester
            progress_callback: Called with progress updates
            finding_callback: Called for each finding, in report order
        """
        self.config = config or ScanConfig()
        self.progress_callback = progress_callback
        self.finding_callback = finding_callback
        self._requester = requester

        self._deadline: Optional[float] = None
        self._partial = False
        self._skipped = 0
        self._current_phase = 'idle'

    async def scan(self, target_url: str) -> ScanReport:
        """
        Execute a full vulnerability scan.

        Raises:
            InputError: malformed target URL (before any network activity)
            OrchestratorError: the scan as a whole failed
        """
        target_url = validate_target_url(target_url)

        started_at = datetime.now(timezone.utc)
        start = time.monotonic()
        self._deadline = start + self.config.scan_timeout if self.config.scan_timeout else None
        self._partial = False
        self._skipped = 0

        owns_requester = self._requester is None
        requester = self._requester or AsyncRequester(
            timeout=self.config.timeout,
            max_concurrent=self.config.concurrent_requests,
            max_retries=self.config.max_retries,
            verify_ssl=self.config.verify_ssl,
            custom_headers=self.config.custom_headers
        )

        try:
            if owns_requester:
                await requester.start()

            crawl = await self._phase_crawl(requester, target_url)

            findings: List[Finding] = []
            findings.extend(await self._phase_injection(requester, crawl))
            findings.extend(self._phase_forms(crawl))
            findings.extend(self._phase_passive(crawl, target_url))

            report = ScanReport(
                id=f"scan-{uuid.uuid4().hex[:12]}",
                target_url=target_url,
                started_at=started_at,
                duration_seconds=round(time.monotonic() - start, 3),
                findings=findings,
                summary=summarize(findings),
                crawl_stats=crawl.stats,
                partial=self._partial,
                skipped_tests=self._skipped
            )

            self._update_progress('completed', 100, f'Scan complete. {len(findings)} findings.')
            logger.info(
                f"Scan of {target_url} finished in {report.duration_seconds}s: "
                f"{len(findings)} findings, {self._skipped} skipped tests"
                + (" (partial)" if self._partial else "")
            )
            return report

        except ScannerError:
            raise

        except Exception as e:
            logger.error(f"Scan error: {e}\n{traceback.format_exc()}")
            raise OrchestratorError(f"Scan failed: {e}") from e

        finally:
            if owns_requester:
                await requester.close()

    def _remaining(self) -> Optional[float]:
        """Seconds left before the scan deadline, None when unbounded."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    async def _phase_crawl(self, requester: AsyncRequester, target_url: str) -> CrawlResult:
        """Phase 1: Crawl the target website."""
        self._update_progress('crawling', 5, f'Crawling {target_url}...')

        def crawl_progress(current, total, url):
            progress = 5 + int((min(current, total) / max(total, 1)) * 35)
            self._update_progress('crawling', progress, f'Crawling: {url[:50]}...')

        crawler = AsyncCrawler(
            requester,
            max_depth=self.config.max_depth,
            timeout=self.config.timeout,
            max_pages=self.config.max_pages,
            progress_callback=crawl_progress
        )

        try:
            crawl = await asyncio.wait_for(crawler.crawl(target_url), timeout=self._remaining())
        except asyncio.TimeoutError:
            logger.warning(f"Scan deadline reached while crawling {target_url}, keeping partial crawl")
            self._partial = True
            crawl = crawler.result

        seed_page = crawl.page(target_url)
        if seed_page is None:
            raise OrchestratorError(f"Scan deadline exceeded before {target_url} responded")
        if seed_page.error:
            raise OrchestratorError(f"Could not reach {target_url}: {seed_page.error}")

        self._update_progress(
            'crawling', 40,
            f'Crawl complete. Found {len(crawl.urls)} URLs and {len(crawl.parameters)} parameters.'
        )
        return crawl

    async def _phase_injection(self, requester: AsyncRequester, crawl: CrawlResult) -> List[Finding]:
        """Phase 2: Replay every parameter with every payload."""
        classes = [c for c in INJECTION_CLASSES if c in self.config.enabled_classes]
        jobs = [
            (parameter, vulnerability_class, payload)
            for parameter in crawl.parameters
            for vulnerability_class in classes
            for payload in PAYLOADS[vulnerability_class]
        ]
        if not jobs:
            return []

        self._update_progress('injecting', 45, f'Running {len(jobs)} injection tests...')

        injector = RequestInjector(requester, timeout=self.config.timeout)
        tasks = [asyncio.ensure_future(self._run_test(injector, *job)) for job in jobs]

        remaining = self._remaining()
        if remaining is not None and remaining <= 0:
            pending = set(tasks)
        else:
            _, pending = await asyncio.wait(tasks, timeout=remaining)

        if pending:
            logger.warning(f"Scan deadline reached, cancelling {len(pending)} outstanding injection tests")
            self._partial = True
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

        # Collect in job order so the report order does not depend on timing
        findings = []
        for task in tasks:
            if task.cancelled():
                self._skipped += 1
                continue
            finding = task.result()
            if finding is not None:
                self._add_finding(finding, findings)

        self._update_progress('injecting', 90, 'Injection tests complete.')
        return findings

    async def _run_test(
            self,
            injector: RequestInjector,
            parameter: Parameter,
            vulnerability_class: VulnerabilityClass,
            payload: str
    ) -> Optional[Finding]:
        """Inject one payload into one parameter and classify the response."""
        try:
            response = await injector.inject(parameter.url, parameter.method, parameter.name, payload)
        except NetworkError as e:
            logger.debug(f"Skipping {vulnerability_class.value} test of '{parameter.name}' at {parameter.url}: {e.reason}")
            self._skipped += 1
            return None
        except Exception as e:
            logger.error(f"Injection error on '{parameter.name}' at {parameter.url}: {e}")
            self._skipped += 1
            return None

        try:
            return classify_injection(
                vulnerability_class, response.body, response.headers,
                payload, parameter.url, parameter.name
            )
        except Exception as e:
            logger.error(f"{vulnerability_class.value} detector error on '{parameter.name}' at {parameter.url}: {e}")
            self._skipped += 1
            return None

    def _phase_forms(self, crawl: CrawlResult) -> List[Finding]:
        """Phase 3: CSRF analysis, once per discovered form."""
        findings = []
        if VulnerabilityClass.CSRF not in self.config.enabled_classes:
            return findings

        self._update_progress('forms', 92, f'Checking {len(crawl.forms)} forms for CSRF tokens...')

        for form in crawl.forms:
            try:
                finding = detect_csrf_risk(form.markup, form.url)
            except Exception as e:
                logger.error(f"CSRF check error on {form.url}: {e}")
                continue
            if finding:
                self._add_finding(finding, findings)

        return findings

    def _phase_passive(self, crawl: CrawlResult, target_url: str) -> List[Finding]:
        """Phase 4: Optional checks on already-fetched pages (no extra requests)."""
        findings = []
        enabled = self.config.enabled_classes

        if VulnerabilityClass.SECURITY_HEADERS in enabled:
            seed_page = crawl.page(target_url)
            if seed_page and seed_page.error is None:
                for finding in detect_missing_security_headers(seed_page.headers, seed_page.url):
                    self._add_finding(finding, findings)

        if VulnerabilityClass.WEAK_AUTH in enabled:
            for page in crawl.pages:
                if not page.is_success:
                    continue
                finding = detect_weak_auth(page.body, page.url)
                if finding:
                    self._add_finding(finding, findings)

        return findings

    def _add_finding(self, finding: Finding, findings: List[Finding]):
        """Add a discovered vulnerability."""
        findings.append(finding)

        if self.finding_callback:
            self.finding_callback(finding)

        logger.info(f"Found vulnerability: {finding.type} at {finding.url} ({finding.parameter})")

    def _update_progress(self, phase: str, progress: int, message: str):
        """Update scan progress."""
        self._current_phase = phase

        if self.progress_callback:
            self.progress_callback({
                'phase': phase,
                'progress': progress,
                'message': message,
            })

    @property
    def current_phase(self) -> str:
        """Get current scan phase."""
        return self._current_phase


async def run_scan(
        target_url: str,
        depth: int = DEFAULT_DEPTH,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        config: Optional[ScanConfig] = None,
        requester: Optional[AsyncRequester] = None,
        **engine_kwargs
) -> ScanReport:
    """
    Scan a target once.

    Raises:
        InputError: before any network activity, for a malformed request
        OrchestratorError: when the scan as a whole fails
    """
    request = ScanRequest.create(target_url, depth, timeout_ms)
    return await _execute(request, config, requester, **engine_kwargs)


async def run_scan_request(
        data: Mapping[str, Any],
        config: Optional[ScanConfig] = None,
        requester: Optional[AsyncRequester] = None,
        **engine_kwargs
) -> ScanReport:
    """Scan from the external request shape {targetUrl, depth, timeoutMs}."""
    request = ScanRequest.from_dict(data)
    return await _execute(request, config, requester, **engine_kwargs)


async def _execute(request: ScanRequest, config: Optional[ScanConfig],
                   requester: Optional[AsyncRequester], **engine_kwargs) -> ScanReport:
    config = replace(config or ScanConfig(), max_depth=request.depth, timeout=request.timeout)
    engine = ScannerEngine(config=config, requester=requester, **engine_kwargs)
    return await engine.scan(request.target_url)
