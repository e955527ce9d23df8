# File: tests/conftest.py
from __future__ import annotations

import asyncio
from collections import Counter
from pathlib import Path
from typing import AsyncIterator, Awaitable, Callable

import pytest
import pytest_asyncio
from aiohttp import web

from site_monitor.config import MonitorConfig
from site_monitor.crawler.crawler import AsyncCrawler
from site_monitor.crawler.models import CrawlResult
from site_monitor.storage import SnapshotWriter


class LocalSite:
    """Tiny aiohttp site on 127.0.0.1 that counts hits per path."""

    def __init__(self, port: int) -> None:
        self.port = port
        self.hits: Counter[str] = Counter()
        self.release = asyncio.Event()

        @web.middleware
        async def count_hits(request: web.Request, handler):
            self.hits[request.path] += 1
            return await handler(request)

        self.app = web.Application(middlewares=[count_hits])
        self._runner: web.AppRunner | None = None

    def url(self, path: str = "/") -> str:
        return f"http://127.0.0.1:{self.port}{path}"

    def route(self, path: str, handler: Callable[[web.Request], Awaitable[web.StreamResponse]]) -> None:
        self.app.router.add_get(path, handler)

    def html(self, path: str, body: str, status: int = 200) -> None:
        async def handle(_):
            return web.Response(text=body, status=status, content_type="text/html")

        self.route(path, handle)

    def text(self, path: str, body: str, content_type: str = "text/plain", status: int = 200) -> None:
        async def handle(_):
            return web.Response(text=body, status=status, content_type=content_type)

        self.route(path, handle)

    def stall(self, path: str, seconds: float, body: str = "<h1>slow</h1>") -> None:
        """Respond after *seconds*, or as soon as the fixture tears down."""

        async def handle(_):
            try:
                await asyncio.wait_for(self.release.wait(), timeout=seconds)
            except asyncio.TimeoutError:
                pass
            return web.Response(text=body, content_type="text/html")

        self.route(path, handle)

    async def start(self) -> str:
        self._runner = web.AppRunner(self.app)
        await self._runner.setup()
        site = web.TCPSite(self._runner, "127.0.0.1", self.port)
        await site.start()
        return self.url()

    async def close(self) -> None:
        self.release.set()
        if self._runner is not None:
            await self._runner.cleanup()


@pytest_asyncio.fixture
async def local_site(unused_tcp_port: int) -> AsyncIterator[LocalSite]:
    site = LocalSite(unused_tcp_port)
    try:
        yield site
    finally:
        await site.close()


@pytest.fixture()
def make_config(tmp_path: Path) -> Callable[..., MonitorConfig]:
    """Factory for a MonitorConfig with short timeouts and a temp output dir."""

    def _make(target: str, **overrides) -> MonitorConfig:
        values = {
            "target_url": target,
            "output_dir": tmp_path / "out",
            "fetch_timeout_ms": 2000,
            "concurrency": 2,
            "user_agent": "TestAgent/1.0",
        }
        values.update(overrides)
        return MonitorConfig(**values)

    return _make


async def run_crawl(config: MonitorConfig, storage: SnapshotWriter | None = None) -> CrawlResult:
    """Run one crawl with an overall safety timeout."""
    async with AsyncCrawler(config, storage=storage) as crawler:
        return await asyncio.wait_for(crawler.crawl(), timeout=15.0)


@pytest.fixture()
def crawl() -> Callable[..., Awaitable[CrawlResult]]:
    return run_crawl
