"""
Tests for the scan orchestrator.
"""

from urllib.parse import urlparse, parse_qs

import pytest

from vulnsweep.scanner.core.engine import ScanConfig, ScannerEngine, run_scan, run_scan_request, summarize
from vulnsweep.scanner.exceptions import InputError, OrchestratorError
from vulnsweep.scanner.modules import Finding, Severity, VulnerabilityClass
from vulnsweep.scanner.payloads import SQLI_PAYLOADS, XSS_PAYLOADS

from tests.conftest import FakeRequester, Failure, Page, SEED
from tests.vulnerable_app import create_vulnerable_app

SEARCH = 'http://shop.test/search?q=hi'


def echo_search(url, method, data):
    """Reflect ?q= unescaped on /search, answer everything else from the site map."""
    parsed = urlparse(url)
    if parsed.path == '/search':
        query = parse_qs(parsed.query).get('q', [''])[0]
        return Page(f'<h1>{query}</h1><p>{"Showing related products. " * 5}</p>')
    return None


def shop_requester(**kwargs):
    site = {
        SEED: Page('<a href="/search?q=hi">search</a>'
                   '<form method="POST" action="/comment"><input name="text"></form>'),
    }
    return FakeRequester(site, handler=echo_search, **kwargs)


async def test_reflected_parameter_is_reported_for_every_reflected_payload():
    report = await run_scan(SEED, depth=1, requester=shop_requester())

    reflected = [f for f in report.findings if f.type == 'Reflected XSS']
    assert [f.payload for f in reflected] == XSS_PAYLOADS
    assert all(f.url == SEARCH and f.parameter == 'q' for f in reflected)
    assert report.crawl_stats == {'urlsFound': 2, 'formsFound': 1, 'parametersFound': 2}


async def test_findings_follow_parameter_then_class_then_payload_order():
    report = await run_scan(SEED, depth=1, requester=shop_requester())

    keys = [(f.parameter, f.vulnerability_class.value) for f in report.findings]
    boolean_payloads = [p for p in SQLI_PAYLOADS if ' OR ' in p or ' AND ' in p]
    assert keys == (
        [('q', 'xss')] * len(XSS_PAYLOADS)
        + [('q', 'sqli')] * len(boolean_payloads)
        + [('form', 'csrf')]
    )
    sqli = [f for f in report.findings if f.vulnerability_class is VulnerabilityClass.SQLI]
    assert [f.payload for f in sqli] == boolean_payloads
    assert all(f.type == 'Potential SQL Injection' for f in sqli)


async def test_report_order_is_deterministic_under_varying_latency():
    first = await run_scan(SEED, depth=1, requester=shop_requester())
    second = await run_scan(SEED, depth=1, requester=shop_requester(latency=0.01))

    assert first.findings == second.findings


async def test_summary_matches_findings():
    report = await run_scan(SEED, depth=1, requester=shop_requester())

    summary = report.summary
    assert summary['total'] == len(report.findings)
    assert summary['critical'] + summary['high'] + summary['medium'] + summary['low'] == summary['total']
    assert summary['high'] == sum(1 for f in report.findings if f.severity is Severity.HIGH)


def test_summarize_rejects_unbucketed_findings():
    info = Finding('Note', Severity.INFO, SEED, '', 'N/A', '', '', VulnerabilityClass.XSS)

    with pytest.raises(OrchestratorError):
        summarize([info])


async def test_network_failure_skips_only_that_test():
    def flaky(url, method, data):
        if method == 'GET' and 'onerror' in url:
            return Failure('Connection reset')
        return echo_search(url, method, data)

    site = {SEED: Page('<a href="/search?q=hi">search</a>')}
    report = await run_scan(SEED, depth=1, requester=FakeRequester(site, handler=flaky))

    reflected = [f.payload for f in report.findings if f.type == 'Reflected XSS']
    assert len(reflected) == len(XSS_PAYLOADS) - 1
    assert not any('onerror' in p for p in reflected)
    assert report.skipped_tests == 1
    assert not report.partial


async def test_detector_error_skips_that_class_and_scan_completes(monkeypatch):
    from vulnsweep.scanner.modules import classify_injection

    def broken_sqli(vulnerability_class, *args):
        if vulnerability_class is VulnerabilityClass.SQLI:
            raise RuntimeError('detector exploded')
        return classify_injection(vulnerability_class, *args)

    monkeypatch.setattr('vulnsweep.scanner.core.engine.classify_injection', broken_sqli)
    report = await run_scan(SEED, depth=1, requester=shop_requester())

    classes = {f.vulnerability_class for f in report.findings}
    assert VulnerabilityClass.XSS in classes
    assert VulnerabilityClass.SQLI not in classes
    assert report.skipped_tests == 2 * len(SQLI_PAYLOADS)
    assert not report.partial


async def test_unexpected_injection_error_skips_only_that_test():
    def crashing(url, method, data):
        if method == 'GET' and 'onerror' in url:
            raise RuntimeError('transport bug')
        return echo_search(url, method, data)

    site = {SEED: Page('<a href="/search?q=hi">search</a>')}
    report = await run_scan(SEED, depth=1, requester=FakeRequester(site, handler=crashing))

    reflected = [f.payload for f in report.findings if f.type == 'Reflected XSS']
    assert len(reflected) == len(XSS_PAYLOADS) - 1
    assert report.skipped_tests == 1
    assert report.summary['total'] == len(report.findings)


async def test_invalid_url_fails_before_any_request():
    requester = shop_requester()

    for bad in ('', 'not a url', 'ftp://shop.test/', 'http://'):
        with pytest.raises(InputError):
            await run_scan(bad, requester=requester)

    assert requester.calls == []


@pytest.mark.parametrize('depth,timeout_ms', [(-1, 1000), ('two', 1000), (True, 1000), (1, 0)])
async def test_invalid_options_fail_before_any_request(depth, timeout_ms):
    requester = shop_requester()

    with pytest.raises(InputError):
        await run_scan(SEED, depth=depth, timeout_ms=timeout_ms, requester=requester)

    assert requester.calls == []


async def test_unreachable_seed_is_fatal():
    requester = FakeRequester({SEED: Failure('Name or service not known')})

    with pytest.raises(OrchestratorError, match='Could not reach'):
        await run_scan(SEED, requester=requester)


async def test_error_status_seed_yields_empty_report():
    requester = FakeRequester({SEED: Page('down for maintenance', status=503)})
    report = await run_scan(SEED, requester=requester)

    assert report.findings == []
    assert report.summary['total'] == 0
    assert report.crawl_stats['urlsFound'] == 1


async def test_deadline_returns_partial_report():
    config = ScanConfig(scan_timeout=0.3)
    requester = shop_requester(latency=0.05)

    report = await run_scan(SEED, depth=1, config=config, requester=requester)

    assert report.partial
    assert report.skipped_tests > 0
    assert report.summary['total'] == len(report.findings)


async def test_modules_select_what_runs():
    config = ScanConfig(scan_modules=['sqli'])
    requester = shop_requester()

    report = await run_scan(SEED, depth=1, config=config, requester=requester)

    assert {f.vulnerability_class for f in report.findings} <= {VulnerabilityClass.SQLI}
    injected = [c for c in requester.calls if c.url != SEED and c.url != SEARCH]
    assert len(injected) == 2 * len(SQLI_PAYLOADS)


def test_unknown_module_is_rejected():
    with pytest.raises(InputError):
        ScanConfig(scan_modules=['xss', 'rce'])


async def test_passive_modules_use_crawled_pages_only():
    site = {
        SEED: Page('<p>Default credentials: admin / admin</p>', headers={'X-Frame-Options': 'DENY'}),
    }
    config = ScanConfig(scan_modules=['headers', 'weak_auth'])
    requester = FakeRequester(site)

    report = await run_scan(SEED, depth=0, config=config, requester=requester)

    types = [f.type for f in report.findings]
    assert 'Missing X-Frame-Options' not in types
    assert 'Missing Content-Security-Policy' in types
    assert 'Weak Authentication' in types
    assert requester.fetched == [SEED]


async def test_callbacks_see_findings_and_completion():
    seen, phases = [], []
    engine = ScannerEngine(
        ScanConfig(max_depth=1),
        requester=shop_requester(),
        progress_callback=lambda p: phases.append(p['phase']),
        finding_callback=seen.append
    )

    report = await engine.scan(SEED)

    assert seen == report.findings
    assert phases[0] == 'crawling'
    assert phases[-1] == 'completed'
    assert engine.current_phase == 'completed'


async def test_run_scan_request_uses_wire_keys():
    report = await run_scan_request({'targetUrl': SEED, 'depth': 0, 'timeoutMs': 500},
                                    requester=shop_requester())

    assert report.target_url == SEED
    assert report.crawl_stats['urlsFound'] == 1
    wire = report.to_dict()
    assert set(wire) >= {'id', 'targetUrl', 'findings', 'summary', 'crawlStats', 'partial'}
    assert wire['findings'][0]['class'] in {'xss', 'sqli', 'csrf'}


async def test_run_scan_request_requires_target():
    with pytest.raises(InputError, match='Target URL required'):
        await run_scan_request({'depth': 1})


async def test_full_scan_against_vulnerable_app(aiohttp_server):
    server = await aiohttp_server(create_vulnerable_app())
    seed = str(server.make_url('/'))

    report = await run_scan(seed, depth=2, timeout_ms=5000)

    by_type = {}
    for finding in report.findings:
        by_type.setdefault(finding.type, []).append(finding)

    assert any(f.parameter == 'q' for f in by_type['Reflected XSS'])
    assert any(f.parameter == 'id' for f in by_type['SQL Injection'])
    csrf_urls = [f.url for f in by_type['Missing CSRF Token']]
    assert csrf_urls == [str(server.make_url('/comment'))]
    assert all(urlparse(u).hostname == '127.0.0.1' for u in [f.url for f in report.findings])
    assert str(server.make_url('/deeper')) not in {f.url for f in report.findings}
    assert report.summary['total'] == len(report.findings)
