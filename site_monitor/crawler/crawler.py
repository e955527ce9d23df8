# === FILE: site_monitor/crawler/crawler.py ===
from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, List, Optional

from aiohttp import ClientSession

from site_monitor.config import MonitorConfig
from site_monitor.crawler.assets import AssetCollector
from site_monitor.crawler.fetcher import Fetcher, open_session
from site_monitor.crawler.frontier import Frontier
from site_monitor.crawler.models import FETCH_ERROR, CrawlPhase, CrawlResult, ErrorRecord
from site_monitor.crawler.sitemap import SitemapSeeder
from site_monitor.crawler.urls import normalize_url
from site_monitor.errors import FatalConfigError, InvalidURL, NetworkError
from site_monitor.parser.html_parser import extract_links, extract_script_sources, is_skippable
from site_monitor.storage import SnapshotWriter

__all__ = ("AsyncCrawler",)


class AsyncCrawler:
    """Асинхронный краулер: sitemap → обход страниц пулом воркеров → загрузка скриптов."""

    def __init__(
        self,
        config: MonitorConfig,
        storage: Optional[SnapshotWriter] = None,
        session: Optional[ClientSession] = None,
    ) -> None:
        self.config = config
        target = normalize_url(config.target_url)
        if isinstance(target, InvalidURL):
            raise FatalConfigError(f"Unsupported TARGET_URL {config.target_url!r}: {target.reason}")
        self.target: str = target
        self.storage = storage
        self.session = session
        self._owns_session = session is None
        self.fetcher: Optional[Fetcher] = None
        self.phase = CrawlPhase.SEEDING

        self.frontier = Frontier(
            self.target,
            max_pages=config.max_pages,
            same_origin_only=config.same_origin_only,
            allow_query=config.allow_query,
        )
        self.assets = AssetCollector(
            self.target,
            max_assets=config.max_assets,
            same_origin_only=config.same_origin_only,
        )
        self.page_errors: List[ErrorRecord] = []
        self.asset_errors: List[ErrorRecord] = []
        self.seeded_from_sitemap = False
        self._stop_event = asyncio.Event()
        self.logger = logging.getLogger("SiteMonitor")

    async def __aenter__(self) -> AsyncCrawler:
        if self.session is None:
            self.session = open_session(self.config)
        self.fetcher = Fetcher(self.session, self.config)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._owns_session and self.session and not self.session.closed:
            await self.session.close()

    # ------------------------------------------------------------------ control

    def stop(self) -> None:
        """Прекратить выдачу новых URL и отменить текущие загрузки; собранное сохраняется."""
        if not self._stop_event.is_set():
            self.logger.warning("Остановка обхода по запросу (фаза %s)", self.phase.value)
            self._stop_event.set()

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    # ------------------------------------------------------------------ run

    async def crawl(self) -> CrawlResult:
        if self.fetcher is None:
            raise RuntimeError("Session not initialized; use 'async with AsyncCrawler(...)'")
        self.logger.info("Старт обхода: %s", self.target)
        start = time.monotonic()

        if not self.stopped:
            await self._unless_stopped(self._seed())

        if not self.stopped:
            self.phase = CrawlPhase.TRAVERSING
            await self._run_pool(self._page_worker, self.frontier.join())
        dropped = self.frontier.drain()
        if dropped:
            self.logger.info("Обход прерван, отброшено из очереди: %d", dropped)

        self.assets.close()
        if not self.stopped and len(self.assets):
            self.phase = CrawlPhase.ASSET_FETCHING
            queue: asyncio.Queue[str] = asyncio.Queue()
            for url in self.assets:
                queue.put_nowait(url)
            await self._run_pool(lambda: self._asset_worker(queue), queue.join())

        self.phase = CrawlPhase.CANCELLED if self.stopped else CrawlPhase.DONE
        duration = time.monotonic() - start
        visited = len(self.frontier.visited)
        self.logger.info(
            "Завершено: %d страниц, %d скриптов за %.2f с (ошибок: %d/%d)",
            visited,
            len(self.assets),
            duration,
            len(self.page_errors),
            len(self.asset_errors),
        )
        return self.result()

    def result(self) -> CrawlResult:
        return CrawlResult(
            pages=list(self.frontier.visited),
            assets=list(self.assets),
            page_errors=list(self.page_errors),
            asset_errors=list(self.asset_errors),
            seeded_from_sitemap=self.seeded_from_sitemap,
            cancelled=self.stopped,
        )

    # ------------------------------------------------------------------ phases

    async def _seed(self) -> None:
        seeder = SitemapSeeder(
            self.fetcher,
            self.target,
            same_origin_only=self.config.same_origin_only,
            allow_query=self.config.allow_query,
        )
        seeds = await seeder.seed()
        for url in seeds:
            self.frontier.enqueue(url)
        self.seeded_from_sitemap = self.frontier.pending() > 0
        # without a sitemap the queue is empty here, so the homepage goes first
        self.frontier.enqueue(self.config.target_url)
        self.logger.debug(
            "Seeding done: %d queued (sitemap: %s)", self.frontier.pending(), self.seeded_from_sitemap
        )

    async def _unless_stopped(self, step: Awaitable[None]) -> None:
        """Await *step*, cancelling it if stop() is called first."""
        task = asyncio.ensure_future(step)
        stopper = asyncio.create_task(self._stop_event.wait())
        try:
            await asyncio.wait({task, stopper}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            task.cancel()
            stopper.cancel()
            await asyncio.gather(task, stopper, return_exceptions=True)
        if not task.cancelled() and task.exception() is not None:
            raise task.exception()  # type: ignore[misc]

    async def _run_pool(
        self,
        worker: Callable[[], Awaitable[None]],
        until: Awaitable[None],
    ) -> None:
        """Run `concurrency` workers until *until* resolves, a worker crashes, or stop()."""
        workers = [asyncio.create_task(worker()) for _ in range(self.config.concurrency)]
        waiter = asyncio.ensure_future(until)
        stopper = asyncio.create_task(self._stop_event.wait())
        try:
            await asyncio.wait({waiter, stopper, *workers}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (*workers, waiter, stopper):
                task.cancel()
            await asyncio.gather(*workers, waiter, stopper, return_exceptions=True)
        for task in workers:
            if not task.cancelled() and task.exception() is not None:
                raise task.exception()  # type: ignore[misc]

    async def _page_worker(self) -> None:
        while True:
            url = await self.frontier.get()
            try:
                if self.stopped or not self.frontier.claim(url):
                    continue
                await self._visit(url)
            finally:
                self.frontier.task_done()

    async def _asset_worker(self, queue: asyncio.Queue[str]) -> None:
        while True:
            url = await queue.get()
            try:
                if not self.stopped:
                    await self._fetch_asset(url)
            finally:
                queue.task_done()

    # ------------------------------------------------------------------ items

    async def _visit(self, url: str) -> None:
        assert self.fetcher is not None
        try:
            result = await self.fetcher.fetch_text(url)
        except NetworkError as exc:
            self.logger.warning("Failed %s: %s", url, exc)
            self.page_errors.append(ErrorRecord.from_exception(url, exc))
            return
        except asyncio.CancelledError:
            self.page_errors.append(ErrorRecord(url, FETCH_ERROR, "cancelled"))
            raise
        if not result.ok:
            self.logger.warning("HTTP %s for %s", result.status, url)
            self.page_errors.append(ErrorRecord.from_status(url, result.status))
            return

        markup = str(result.body)
        base = result.final_url if result.redirected else self.frontier.base_of(url)
        if self.storage is not None:
            try:
                self.storage.write_page(url, markup)
            except (OSError, ValueError) as exc:
                self.logger.warning("Could not save %s: %s", url, exc)
                self.page_errors.append(ErrorRecord(url, FETCH_ERROR, f"write failed: {exc}"))

        for href in extract_links(markup):
            if not is_skippable(href):
                self.frontier.enqueue(href, base=base)
        for src in extract_script_sources(markup):
            if not is_skippable(src):
                self.assets.add(src, base=base)

    async def _fetch_asset(self, url: str) -> None:
        assert self.fetcher is not None
        try:
            result = await self.fetcher.fetch_binary(url)
        except NetworkError as exc:
            self.logger.warning("Failed asset %s: %s", url, exc)
            self.asset_errors.append(ErrorRecord.from_exception(url, exc))
            return
        except asyncio.CancelledError:
            self.asset_errors.append(ErrorRecord(url, FETCH_ERROR, "cancelled"))
            raise
        if not result.ok:
            self.logger.warning("HTTP %s for asset %s", result.status, url)
            self.asset_errors.append(ErrorRecord.from_status(url, result.status))
            return
        if self.storage is not None:
            try:
                self.storage.write_asset(url, bytes(result.body))
            except (OSError, ValueError) as exc:
                self.logger.warning("Could not save asset %s: %s", url, exc)
                self.asset_errors.append(ErrorRecord(url, FETCH_ERROR, f"write failed: {exc}"))
