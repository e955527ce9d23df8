# site_monitor/crawler/sitemap.py
"""
Sitemap seeder: tries the well-known sitemap locations of the target and
returns the first non-empty list of usable page URLs.

Seeding is best effort. Any failure (transport error, non-2xx, malformed or
empty document) moves on to the next candidate, and total failure is an
empty list, which the orchestrator treats as "start from the homepage".
"""
from __future__ import annotations

import logging
from typing import List, Sequence
from urllib.parse import urljoin

from site_monitor.crawler.fetcher import Fetcher
from site_monitor.crawler.urls import is_same_origin, normalize_url, resolve_url
from site_monitor.errors import InvalidURL
from site_monitor.parser.sitemap_parser import extract_locations

SITEMAP_PATHS: Sequence[str] = ("/sitemap.xml", "/sitemap_index.xml", "/sitemap-index.xml")


class SitemapSeeder:
    """Probes sitemap candidates in a fixed order and stops at the first hit."""

    def __init__(
        self,
        fetcher: Fetcher,
        target: str,
        same_origin_only: bool = True,
        allow_query: bool = False,
        paths: Sequence[str] = SITEMAP_PATHS,
    ) -> None:
        self.fetcher = fetcher
        self.target = target
        self.same_origin_only = same_origin_only
        self.allow_query = allow_query
        self.paths = tuple(paths)
        self.logger = logging.getLogger("SiteMonitor.sitemap")

    def candidates(self) -> List[str]:
        return [urljoin(self.target, p) for p in self.paths]

    async def seed(self) -> List[str]:
        """
        Ordered page URLs from the first usable sitemap (maybe empty).

        Entries are absolute but not normalized, so the frontier keeps the
        exact form for resolving relative links; duplicates by normalized
        form are dropped here.
        """
        for candidate in self.candidates():
            result = await self.fetcher.probe(candidate)
            if result is None:
                continue
            if not result.ok:
                self.logger.debug("Sitemap %s -> HTTP %s", candidate, result.status)
                continue
            urls = self._usable(extract_locations(str(result.body)))
            if urls:
                self.logger.info("Seeded %d URL(s) from %s", len(urls), candidate)
                return urls
            self.logger.debug("Sitemap %s has no usable <loc> entries", candidate)
        self.logger.info("No sitemap found for %s; starting from the homepage", self.target)
        return []

    def _usable(self, locations: List[str]) -> List[str]:
        seen: set[str] = set()
        out: List[str] = []
        for raw in locations:
            url = normalize_url(raw, self.target, allow_query=self.allow_query)
            if isinstance(url, InvalidURL):
                continue
            if self.same_origin_only and not is_same_origin(url, self.target):
                continue
            if url not in seen:
                seen.add(url)
                out.append(resolve_url(raw, self.target))
        return out
