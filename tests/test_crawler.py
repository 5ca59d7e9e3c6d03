"""
Tests for the depth-first crawler.
"""

from vulnsweep.scanner.core.crawler import AsyncCrawler, Parameter
from vulnsweep.scanner.core.parser import HTMLParser
from vulnsweep.scanner.exceptions import ParseError

from tests.conftest import FakeRequester, Failure, Page, SEED


async def crawl(site, seed=SEED, **kwargs):
    requester = FakeRequester(site)
    result = await AsyncCrawler(requester, **kwargs).crawl(seed)
    return result, requester


async def test_seed_with_link_and_form():
    site = {
        SEED: Page('<a href="/b">x</a><form method="POST" action="/submit"><input name="user"></form>'),
        'http://shop.test/b': Page('<p>b</p>'),
    }
    result, _ = await crawl(site, max_depth=1)

    assert result.urls == {SEED, 'http://shop.test/b'}
    assert len(result.forms) == 1
    form = result.forms[0]
    assert form.url == 'http://shop.test/submit'
    assert form.method == 'POST'
    assert form.field_names == ['user']
    assert Parameter('http://shop.test/submit', 'POST', 'user', 'form') in result.parameters


async def test_depth_zero_fetches_only_the_seed():
    site = {
        SEED: Page('<a href="/b">x</a><form action="/s"><input name="q"></form>'),
        'http://shop.test/b': Page('<p>b</p>'),
    }
    result, requester = await crawl(site, max_depth=0)

    assert requester.fetched == [SEED]
    assert result.urls == {SEED}
    assert [p.name for p in result.parameters] == ['q']


async def test_never_exceeds_max_depth():
    site = {
        SEED: Page('<a href="/1">1</a>'),
        'http://shop.test/1': Page('<a href="/2">2</a>'),
        'http://shop.test/2': Page('<a href="/3">3</a>'),
        'http://shop.test/3': Page('<p>3</p>'),
    }
    result, requester = await crawl(site, max_depth=2)

    assert requester.fetched == [SEED, 'http://shop.test/1', 'http://shop.test/2']
    assert all(page.depth <= 2 for page in result.pages)


async def test_cycles_terminate_and_each_url_is_fetched_once():
    site = {
        SEED: Page('<a href="/a">a</a><a href="/b">b</a>'),
        'http://shop.test/a': Page('<a href="/">home</a><a href="/b">b</a>'),
        'http://shop.test/b': Page('<a href="/a">a</a><a href="/">home</a>'),
    }
    result, requester = await crawl(site, max_depth=10)

    assert sorted(requester.fetched) == sorted(set(requester.fetched))
    assert result.urls == {SEED, 'http://shop.test/a', 'http://shop.test/b'}


async def test_children_are_recorded_before_the_page_itself():
    site = {
        SEED: Page('<a href="/child">c</a><form action="/root"><input name="top"></form>'),
        'http://shop.test/child': Page('<form action="/leaf"><input name="nested"></form>'),
    }
    result, _ = await crawl(site, max_depth=1)

    assert [p.name for p in result.parameters] == ['nested', 'top']


async def test_forms_come_before_query_parameters_of_the_same_page():
    site = {
        SEED: Page('<a href="/search?q=a">s</a>'),
        'http://shop.test/search?q=a': Page('<form action="/filter"><input name="color"></form>'),
    }
    result, _ = await crawl(site, max_depth=1)

    assert [(p.name, p.source) for p in result.parameters] == [('color', 'form'), ('q', 'query')]


async def test_unparseable_page_does_not_stop_its_siblings(monkeypatch):
    class BrokenOnePageParser(HTMLParser):
        def parse(self, html):
            if self.page_url == 'http://shop.test/broken':
                raise ParseError('unreadable document')
            return super().parse(html)

    monkeypatch.setattr('vulnsweep.scanner.core.crawler.HTMLParser', BrokenOnePageParser)
    site = {
        SEED: Page('<a href="/broken">b</a><a href="/fine">f</a>'),
        'http://shop.test/broken': Page('<a href="/hidden">h</a><form action="/x"><input name="lost"></form>'),
        'http://shop.test/fine': Page('<form action="/f"><input name="kept"></form>'),
        'http://shop.test/hidden': Page('<p>never linked</p>'),
    }
    result, requester = await crawl(site, max_depth=2)

    assert requester.fetched == [SEED, 'http://shop.test/broken', 'http://shop.test/fine']
    assert result.page('http://shop.test/broken').status == 200
    assert [p.name for p in result.parameters] == ['kept']


async def test_stays_on_exact_host():
    site = {
        SEED: Page("""
            <a href="http://other.test/">other</a>
            <a href="http://api.shop.test/">subdomain</a>
            <a href="mailto:me@shop.test">mail</a>
            <a href="https://shop.test/secure">same host over https</a>
        """),
        'https://shop.test/secure': Page('<p>ok</p>'),
    }
    result, requester = await crawl(site, max_depth=2)

    assert requester.fetched == [SEED, 'https://shop.test/secure']
    assert result.urls == {SEED, 'https://shop.test/secure'}


async def test_query_parameters_are_recorded_for_visited_urls():
    site = {
        SEED: Page('<a href="/search?q=shoes&page=">s</a>'),
        'http://shop.test/search?q=shoes&page=': Page('<p>results</p>'),
    }
    result, _ = await crawl(site, max_depth=1)

    assert result.parameters == [
        Parameter('http://shop.test/search?q=shoes&page=', 'GET', 'q', 'query'),
        Parameter('http://shop.test/search?q=shoes&page=', 'GET', 'page', 'query'),
    ]


async def test_duplicate_parameters_are_kept():
    form = '<form method="post" action="/login"><input name="user"></form>'
    site = {
        SEED: Page(form + '<a href="/other">o</a>'),
        'http://shop.test/other': Page(form),
    }
    result, _ = await crawl(site, max_depth=1)

    assert [p.name for p in result.parameters] == ['user', 'user']
    assert result.stats == {'urlsFound': 2, 'formsFound': 2, 'parametersFound': 2}


async def test_fetch_failure_is_recorded_and_crawl_continues():
    site = {
        SEED: Page('<a href="/down">d</a><a href="/up">u</a>'),
        'http://shop.test/down': Failure('Request timed out'),
        'http://shop.test/up': Page('<form action="/f"><input name="x"></form>'),
    }
    result, _ = await crawl(site, max_depth=1)

    assert result.page('http://shop.test/down').error == 'Request timed out'
    assert 'http://shop.test/down' in result.urls
    assert [p.name for p in result.parameters] == ['x']


async def test_error_status_pages_are_not_parsed():
    site = {
        SEED: Page('<a href="/missing">m</a>'),
        'http://shop.test/missing': Page('<form action="/f"><input name="x"></form>', status=404),
    }
    result, _ = await crawl(site, max_depth=1)

    assert result.forms == []
    assert result.page('http://shop.test/missing').status == 404


async def test_max_pages_truncates_the_crawl():
    links = ''.join(f'<a href="/p{i}">{i}</a>' for i in range(10))
    site = {SEED: Page(links)}
    site.update({f'http://shop.test/p{i}': Page('<p></p>') for i in range(10)})

    result, requester = await crawl(site, max_depth=1, max_pages=4)

    assert len(requester.fetched) == 4
    assert result.truncated
