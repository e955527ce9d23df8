# File: site_monitor/engine.py
"""site_monitor.engine: Оркестрация одного запуска: обход, снимки, манифест."""

from __future__ import annotations

import asyncio
import signal
from typing import Optional

from site_monitor.config import MonitorConfig
from site_monitor.crawler.crawler import AsyncCrawler
from site_monitor.logger import logger
from site_monitor.manifest import Manifest, build_manifest
from site_monitor.report.json_report import render_json
from site_monitor.storage import SnapshotWriter

__all__ = ["Engine", "start_run"]

_STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class Engine:
    """Фасад для CLI и тестов: один объект на один запуск мониторинга."""

    def __init__(self, config: MonitorConfig) -> None:
        self.config = config
        self.storage = SnapshotWriter(config.output_dir, config.pages_dir, config.assets_dir)
        self.crawler: Optional[AsyncCrawler] = None

    async def run(
        self,
        run_timeout: Optional[float] = None,
        handle_signals: bool = False,
    ) -> Manifest:
        """Обходит сайт, пишет снимки и manifest.json, возвращает Manifest.

        *run_timeout* и SIGINT/SIGTERM (если *handle_signals*) не прерывают
        запуск исключением: краулер останавливается, и манифест собирается
        из того, что успели получить.
        """
        crawler = AsyncCrawler(self.config, storage=self.storage)
        self.crawler = crawler
        self.storage.reset()
        loop = asyncio.get_running_loop()

        timer = loop.call_later(run_timeout, crawler.stop) if run_timeout else None
        installed = self._install_signals(loop, crawler) if handle_signals else []
        try:
            async with crawler:
                result = await crawler.crawl()
        finally:
            if timer is not None:
                timer.cancel()
            for sig in installed:
                loop.remove_signal_handler(sig)

        manifest = build_manifest(
            crawler.target,
            self.config.manifest_config(),
            result.pages,
            result.assets,
            result.page_errors,
            result.asset_errors,
            tmpDir=str(self.storage.root),
            outPagesDir=self.config.pages_dir,
            outAssetsDir=self.config.assets_dir,
        )
        path = render_json(manifest, self.storage.manifest_path)
        logger.info("Manifest written: %s", path)
        return manifest

    @staticmethod
    def _install_signals(loop: asyncio.AbstractEventLoop, crawler: AsyncCrawler) -> list:
        installed = []
        for sig in _STOP_SIGNALS:
            try:
                loop.add_signal_handler(sig, crawler.stop)
            except (NotImplementedError, RuntimeError):
                # Windows event loops and non-main threads have no signal support
                continue
            installed.append(sig)
        return installed


async def start_run(config: MonitorConfig, run_timeout: Optional[float] = None) -> Manifest:
    """
    Запускает один проход мониторинга и возвращает Manifest.

    Parameters
    ----------
    config : MonitorConfig
        Конфигурация запуска.
    run_timeout : float, optional
        Общий лимит времени; по истечении обход останавливается, манифест сохраняется.
    """
    return await Engine(config).run(run_timeout=run_timeout, handle_signals=True)
