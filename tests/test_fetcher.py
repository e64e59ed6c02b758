import asyncio

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from sitecrawler.crawler.fetcher import DEFAULT_USER_AGENT, WebFetcher
from sitecrawler.crawler.scheduler import CrawlCoordinator


async def echo_user_agent(request):
    return web.Response(text=f"<p>{request.headers.get('User-Agent')}</p>", content_type='text/html')


async def not_found(request):
    return web.Response(status=404, text="missing")


async def accepted(request):
    return web.Response(status=202, text="busy")


async def image(request):
    return web.Response(body=b"\x89PNG", content_type='image/png')


async def slow(request):
    await asyncio.sleep(1)
    return web.Response(text="late", content_type='text/html')


async def home(request):
    return web.Response(
        text='<a href="/about/">About</a><a href="/about/">Again</a><a href="https://other.test/">x</a>',
        content_type='text/html'
    )


async def about(request):
    return web.Response(text='<a href="/">Home</a><a href="/gone/">Gone</a>', content_type='text/html')


def build_app():
    app = web.Application()
    app.router.add_get('/', home)
    app.router.add_get('/about/', about)
    app.router.add_get('/ua', echo_user_agent)
    app.router.add_get('/missing', not_found)
    app.router.add_get('/busy', accepted)
    app.router.add_get('/image', image)
    app.router.add_get('/slow', slow)
    return app


def with_server(scenario, **fetcher_kwargs):
    """Run scenario(server, fetcher) against a local aiohttp server."""
    async def runner():
        server = TestServer(build_app())
        await server.start_server()
        try:
            async with WebFetcher(**fetcher_kwargs) as fetcher:
                return await scenario(server, fetcher)
        finally:
            await server.close()

    return asyncio.run(runner())


def test_every_request_carries_browser_user_agent():
    async def scenario(server, fetcher):
        return await fetcher.fetch(str(server.make_url('/ua')))

    result = with_server(scenario)

    assert result.ok
    assert DEFAULT_USER_AGENT in result.content


def test_non_200_response_has_no_body_and_no_error():
    async def scenario(server, fetcher):
        return await fetcher.fetch(str(server.make_url('/missing'))), fetcher.get_stats()

    result, stats = with_server(scenario)

    assert result.status_code == 404
    assert result.content is None
    assert result.error is None
    assert stats['non_200_responses'] == 1


def test_startup_check_reports_server_under_load():
    async def scenario(server, fetcher):
        return await fetcher.probe(str(server.make_url('/busy')))

    result = with_server(scenario)

    assert result.under_load
    assert not result.ok


def test_non_text_content_is_not_downloaded():
    async def scenario(server, fetcher):
        return await fetcher.fetch(str(server.make_url('/image')))

    result = with_server(scenario)

    assert result.status_code == 200
    assert result.content is None


def test_timeout_is_reported_as_transport_failure():
    async def scenario(server, fetcher):
        return await fetcher.fetch(str(server.make_url('/slow')))

    result = with_server(scenario, request_timeout=0.1)

    assert result.status_code == 0
    assert result.error == "Request timeout"


def test_oversized_body_is_reported_as_transport_failure():
    async def scenario(server, fetcher):
        return await fetcher.fetch(str(server.make_url('/'))), fetcher.get_stats()

    result, stats = with_server(scenario, max_content_size=10)

    assert result.status_code == 0
    assert result.error == "Content too large"
    assert result.content is None
    assert stats['failed_requests'] == 1


def test_oversized_page_is_abandoned_not_registered():
    async def scenario(server, fetcher):
        root = str(server.make_url('/'))
        coordinator = CrawlCoordinator(root, fetcher)
        return root, await coordinator.crawl(), coordinator.stats

    root, registry, stats = with_server(scenario, max_content_size=50)

    assert root not in registry
    assert len(registry) == 0
    assert stats.transport_errors == 1


def test_connection_failure_is_returned_not_raised():
    async def scenario():
        async with WebFetcher() as fetcher:
            return await fetcher.fetch("http://127.0.0.1:1/"), fetcher.get_stats()

    result, stats = asyncio.run(scenario())

    assert result.status_code == 0
    assert result.error.startswith("Client error")
    assert stats['failed_requests'] == 1


def test_fetch_requires_started_session():
    with pytest.raises(RuntimeError):
        asyncio.run(WebFetcher().fetch("http://127.0.0.1:1/"))


def test_end_to_end_crawl_of_local_site():
    async def scenario(server, fetcher):
        root = str(server.make_url('/'))
        coordinator = CrawlCoordinator(root, fetcher, max_concurrency=4)
        return root, await coordinator.crawl()

    root, registry = with_server(scenario)
    origin = root.rstrip('/')

    assert registry.as_dict() == {
        root: ["/about/", "/about/"],
        origin + "/about/": ["/", "/gone/"],
    }
