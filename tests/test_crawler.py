# File: tests/test_crawler.py
# Async crawl scenarios against a local aiohttp site
from __future__ import annotations

import asyncio
import time

import pytest
from aiohttp import web

from site_monitor.crawler.crawler import AsyncCrawler
from site_monitor.crawler.models import CrawlPhase
from site_monitor.errors import FatalConfigError
from site_monitor.storage import SnapshotWriter

SITEMAP_PROBES = ("/sitemap.xml", "/sitemap_index.xml", "/sitemap-index.xml")
#: seconds a "slow" handler sleeps in the concurrency test
SLOW_SLEEP: float = 0.5


def sitemap(*urls: str) -> str:
    entries = "".join(f"<url><loc>{u}</loc></url>" for u in urls)
    return f'<?xml version="1.0"?><urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{entries}</urlset>'


@pytest.mark.asyncio()
async def test_homepage_link_and_script(local_site, make_config, crawl, tmp_path):
    local_site.html("/", '<a href="/about">About</a><script src="/app.js"></script>')
    local_site.html("/about", "<h1>About</h1>")
    local_site.text("/app.js", "console.log(1);", content_type="application/javascript")
    base = await local_site.start()
    config = make_config(base)
    storage = SnapshotWriter(config.output_dir, config.pages_dir, config.assets_dir)
    storage.reset()

    result = await crawl(config, storage)

    assert result.pages == [base, local_site.url("/about")]
    assert result.assets == [local_site.url("/app.js")]
    assert result.page_errors == []
    assert result.asset_errors == []
    assert result.seeded_from_sitemap is False
    assert (storage.pages_root / "index.html").read_text(encoding="utf-8").startswith("<a href")
    assert (storage.pages_root / "about.html").exists()
    assert (storage.assets_root / "app.js").read_bytes() == b"console.log(1);"


@pytest.mark.asyncio()
async def test_relative_links_resolve_against_directory_target(local_site, make_config, crawl):
    listing = '<a href="post1">first</a><script src="app.js"></script>'
    local_site.html("/blog", listing)
    local_site.html("/blog/", listing)
    local_site.html("/blog/post1", "<p>post</p>")
    local_site.text("/blog/app.js", "x", content_type="application/javascript")
    await local_site.start()

    result = await crawl(make_config(local_site.url("/blog/"), concurrency=1))

    assert result.pages == [local_site.url("/blog"), local_site.url("/blog/post1")]
    assert result.assets == [local_site.url("/blog/app.js")]
    assert result.page_errors == [] and result.asset_errors == []
    assert local_site.hits["/post1"] == 0


@pytest.mark.asyncio()
async def test_relative_links_follow_directory_style_hrefs(local_site, make_config, crawl):
    local_site.html("/", '<a href="/docs/">docs</a>')
    local_site.html("/docs", '<a href="intro">intro</a>')
    local_site.html("/docs/intro", "<p>intro</p>")
    base = await local_site.start()

    result = await crawl(make_config(base, concurrency=1))

    assert result.pages == [base, local_site.url("/docs"), local_site.url("/docs/intro")]
    assert local_site.hits["/intro"] == 0


@pytest.mark.asyncio()
async def test_relative_links_resolve_against_redirect_location(local_site, make_config, crawl):
    async def to_slash(_):
        raise web.HTTPFound("/guide/")

    local_site.html("/", '<a href="/guide">guide</a>')
    local_site.route("/guide", to_slash)
    local_site.html("/guide/", '<a href="start">start</a>')
    local_site.html("/guide/start", "<p>start</p>")
    base = await local_site.start()

    result = await crawl(make_config(base, concurrency=1))

    assert result.pages == [base, local_site.url("/guide"), local_site.url("/guide/start")]
    assert result.page_errors == []


@pytest.mark.asyncio()
async def test_sitemap_order_is_used_for_seeding(local_site, make_config, crawl):
    local_site.text(
        "/sitemap.xml",
        sitemap(local_site.url("/b"), local_site.url("/a")),
        content_type="application/xml",
    )
    for path in ("/", "/a", "/b"):
        local_site.html(path, "<p>no links</p>")
    base = await local_site.start()

    result = await crawl(make_config(base, concurrency=1))

    assert result.seeded_from_sitemap is True
    assert result.pages == [local_site.url("/b"), local_site.url("/a"), base]
    # first hit wins: later candidates are never probed
    assert local_site.hits["/sitemap_index.xml"] == 0


@pytest.mark.asyncio()
async def test_sitemap_falls_through_to_next_candidate(local_site, make_config, crawl):
    # foreign-only locations are not usable, so the index sitemap is consulted
    local_site.text("/sitemap.xml", sitemap("https://elsewhere.test/x"), content_type="application/xml")
    local_site.text("/sitemap_index.xml", sitemap(local_site.url("/from-index")), content_type="application/xml")
    local_site.html("/", "<p>home</p>")
    local_site.html("/from-index", "<p>indexed</p>")
    base = await local_site.start()

    result = await crawl(make_config(base, concurrency=1))

    assert result.pages == [local_site.url("/from-index"), base]
    assert local_site.hits["/sitemap-index.xml"] == 0


@pytest.mark.asyncio()
async def test_homepage_first_without_sitemap(local_site, make_config, crawl):
    local_site.text("/sitemap.xml", "<html>oops</html>", content_type="text/html")
    local_site.html("/", '<a href="/z">z</a><a href="/y">y</a>')
    local_site.html("/z", "z")
    local_site.html("/y", "y")
    base = await local_site.start()

    result = await crawl(make_config(base, concurrency=1))

    assert result.pages == [base, local_site.url("/z"), local_site.url("/y")]
    assert all(local_site.hits[p] == 1 for p in SITEMAP_PROBES)


@pytest.mark.asyncio()
async def test_server_error_is_recorded_and_traversal_continues(local_site, make_config, crawl):
    local_site.html("/", '<a href="/broken">b</a><a href="/ok">ok</a>')
    local_site.html("/broken", "boom", status=500)
    local_site.html("/ok", "<p>fine</p>")
    base = await local_site.start()

    result = await crawl(make_config(base))

    assert local_site.url("/ok") in result.pages
    assert local_site.url("/broken") in result.pages
    assert [e.to_dict() for e in result.page_errors] == [{"url": local_site.url("/broken"), "status": 500}]


@pytest.mark.asyncio()
async def test_timeout_is_a_fetch_error(local_site, make_config, crawl):
    local_site.html("/", '<a href="/slow">slow</a><a href="/fast">fast</a>')
    local_site.stall("/slow", seconds=5)
    local_site.html("/fast", "<p>fast</p>")
    base = await local_site.start()

    started = time.perf_counter()
    result = await crawl(make_config(base, fetch_timeout_ms=300))

    assert time.perf_counter() - started < 4
    assert local_site.url("/fast") in result.pages
    (error,) = result.page_errors
    assert error.url == local_site.url("/slow")
    assert error.status == "fetch_error"
    assert "timeout" in error.error


@pytest.mark.asyncio()
async def test_connection_refused_is_recorded(unused_tcp_port_factory, make_config, crawl):
    base = f"http://127.0.0.1:{unused_tcp_port_factory()}/"

    result = await crawl(make_config(base))

    assert result.pages == [base]
    assert result.page_errors[0].status == "fetch_error"
    assert result.page_errors[0].error


@pytest.mark.asyncio()
async def test_page_budget_is_never_exceeded(local_site, make_config, crawl):
    links = "".join(f'<a href="/p{i}">{i}</a>' for i in range(20))
    local_site.html("/", links)
    for i in range(20):
        local_site.html(f"/p{i}", links)
    base = await local_site.start()

    result = await crawl(make_config(base, max_pages=5, concurrency=4))

    assert len(result.pages) == 5
    assert len(set(result.pages)) == 5
    fetched = sum(n for path, n in local_site.hits.items() if path not in SITEMAP_PROBES)
    assert fetched == 5


@pytest.mark.asyncio()
async def test_duplicate_links_are_fetched_once(local_site, make_config, crawl):
    local_site.html("/", '<a href="/a">1</a><a href="/a/">2</a><a href="/a#x">3</a><a href="/a?utm=1">4</a>')
    local_site.html("/a", '<a href="/">home</a><a href="/a">self</a>')
    base = await local_site.start()

    result = await crawl(make_config(base, concurrency=4))

    assert result.pages == [base, local_site.url("/a")]
    assert local_site.hits["/a"] == 1
    assert local_site.hits["/"] == 1


@pytest.mark.asyncio()
async def test_skippable_and_foreign_links_are_ignored(local_site, make_config, crawl):
    foreign = f"http://localhost:{local_site.port}/foreign"
    local_site.html(
        "/",
        f"""
        <a href="#top">top</a><a href="mailto:a@b.com">mail</a>
        <a href="javascript:void(0)">js</a><a href="">empty</a>
        <a href="{foreign}">foreign</a>
        <script src="{foreign}.js"></script><script src="data:text/javascript,1"></script>
        """,
    )
    local_site.html("/foreign", "<p>should not be fetched</p>")
    base = await local_site.start()

    result = await crawl(make_config(base))

    assert result.pages == [base]
    assert result.assets == []
    assert local_site.hits["/foreign"] == 0


@pytest.mark.asyncio()
async def test_asset_failures_do_not_stop_other_assets(local_site, make_config, crawl, tmp_path):
    local_site.html(
        "/",
        '<script src="/gone.js"></script><script src="/js/ok.js"></script><script src="/js/ok.js"></script>',
    )
    local_site.text("/gone.js", "nope", status=404)
    local_site.text("/js/ok.js", "ok()", content_type="application/javascript")
    base = await local_site.start()
    config = make_config(base)
    storage = SnapshotWriter(config.output_dir, config.pages_dir, config.assets_dir)
    storage.reset()

    result = await crawl(config, storage)

    assert result.assets == [local_site.url("/gone.js"), local_site.url("/js/ok.js")]
    assert [e.to_dict() for e in result.asset_errors] == [{"url": local_site.url("/gone.js"), "status": 404}]
    assert (storage.assets_root / "js" / "ok.js").read_bytes() == b"ok()"
    assert local_site.hits["/js/ok.js"] == 1


@pytest.mark.asyncio()
async def test_asset_budget(local_site, make_config, crawl):
    local_site.html("/", "".join(f'<script src="/s{i}.js"></script>' for i in range(5)))
    for i in range(5):
        local_site.text(f"/s{i}.js", "x", content_type="application/javascript")
    base = await local_site.start()

    result = await crawl(make_config(base, max_assets=2))

    assert result.assets == [local_site.url("/s0.js"), local_site.url("/s1.js")]
    assert local_site.hits["/s2.js"] == 0


@pytest.mark.asyncio()
async def test_pages_are_fetched_concurrently(local_site, make_config, crawl):
    local_site.html("/", '<a href="/slow1">S1</a><a href="/slow2">S2</a>')
    local_site.stall("/slow1", SLOW_SLEEP)
    local_site.stall("/slow2", SLOW_SLEEP)
    base = await local_site.start()

    start = time.perf_counter()
    result = await crawl(make_config(base, concurrency=2))
    elapsed = time.perf_counter() - start

    assert elapsed < SLOW_SLEEP * 1.8
    assert {local_site.url("/slow1"), local_site.url("/slow2")} <= set(result.pages)


@pytest.mark.asyncio()
async def test_stop_returns_partial_results(local_site, make_config):
    local_site.html("/", '<a href="/hang">hang</a><script src="/app.js"></script>')
    local_site.stall("/hang", seconds=10)
    local_site.text("/app.js", "x", content_type="application/javascript")
    base = await local_site.start()

    async with AsyncCrawler(make_config(base, concurrency=1)) as crawler:
        task = asyncio.create_task(crawler.crawl())
        while local_site.hits["/hang"] == 0:
            await asyncio.sleep(0.02)
        crawler.stop()
        result = await asyncio.wait_for(task, timeout=3)

    assert result.cancelled is True
    assert crawler.phase is CrawlPhase.CANCELLED
    assert result.pages == [base, local_site.url("/hang")]
    assert result.page_errors[0].url == local_site.url("/hang")
    assert result.page_errors[0].error == "cancelled"
    # asset phase never started
    assert result.assets == [local_site.url("/app.js")]
    assert local_site.hits["/app.js"] == 0


@pytest.mark.asyncio()
async def test_crawl_requires_context_manager(make_config):
    crawler = AsyncCrawler(make_config("https://example.test/"))
    with pytest.raises(RuntimeError):
        await crawler.crawl()


def test_non_http_target_is_fatal(make_config):
    config = make_config("https://example.test/").model_copy(update={"target_url": "ftp://example.test/"})
    with pytest.raises(FatalConfigError):
        AsyncCrawler(config)
