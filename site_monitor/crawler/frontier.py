# site_monitor/crawler/frontier.py
"""
Frontier: the bounded, deduplicated work queue of pages to visit.

All bookkeeping methods are synchronous. Workers share one event loop, so a
method that never awaits runs to completion before any other worker resumes;
that makes :meth:`Frontier.claim` the single check-and-set that guarantees a
normalized URL is fetched at most once.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional, Set, Tuple

from site_monitor.crawler.urls import NormalizedURL, is_same_origin, normalize_url, resolve_url
from site_monitor.errors import InvalidURL


class Frontier:
    """Queue of pending pages plus the set of pages already claimed."""

    def __init__(
        self,
        target: str,
        max_pages: int,
        same_origin_only: bool = True,
        allow_query: bool = False,
    ) -> None:
        self.target = target
        self.max_pages = max_pages
        self.same_origin_only = same_origin_only
        self.allow_query = allow_query
        self._queue: asyncio.Queue[NormalizedURL] = asyncio.Queue()
        self._queued: Set[str] = set()
        self._visited: Set[str] = set()
        self._order: List[str] = []
        # normalized URL -> the absolute URL as first written in a link
        self._bases: Dict[str, str] = {}
        self.logger = logging.getLogger("SiteMonitor.frontier")

    # ------------------------------------------------------------------ enqueue

    def enqueue(self, raw: str, base: Optional[str] = None) -> bool:
        """
        Apply the enqueue policy to *raw* and queue it if accepted.

        Rejections (invalid, foreign origin, duplicate, over budget) are
        silent: the method logs at DEBUG and returns False.
        """
        url = normalize_url(raw, base or self.target, allow_query=self.allow_query)
        if isinstance(url, InvalidURL):
            self.logger.debug("Drop %r: %s", url.raw, url.reason)
            return False
        if self.same_origin_only and not is_same_origin(url, self.target):
            self.logger.debug("Drop %s: foreign origin", url)
            return False
        if url in self._visited or url in self._queued:
            return False
        if self._queue.qsize() + len(self._visited) >= self.max_pages:
            self.logger.debug("Drop %s: page budget reached", url)
            return False
        self._queued.add(url)
        self._bases[url] = resolve_url(raw, base or self.target)
        self._queue.put_nowait(url)
        return True

    # ------------------------------------------------------------------ consume

    async def get(self) -> NormalizedURL:
        url = await self._queue.get()
        self._queued.discard(url)
        return url

    def task_done(self) -> None:
        self._queue.task_done()

    async def join(self) -> None:
        await self._queue.join()

    def claim(self, url: str) -> bool:
        """
        Atomically mark *url* visited.

        True exactly once per URL and only while the visited budget has room;
        a False return means the caller must not fetch it.
        """
        if url in self._visited or self.exhausted:
            return False
        self._visited.add(url)
        self._order.append(url)
        return True

    def base_of(self, url: str) -> str:
        """
        Base for resolving relative references on the page *url*.

        Normalization drops the trailing slash, so `/blog/` and `/blog` share
        one key; the recorded link keeps the form relative links depend on.
        """
        return self._bases.get(url, url)

    def drain(self) -> int:
        """Discard everything still queued; returns how many entries were dropped."""
        dropped = 0
        while True:
            try:
                url = self._queue.get_nowait()
            except asyncio.QueueEmpty:
                return dropped
            self._queued.discard(url)
            self._queue.task_done()
            dropped += 1

    # ------------------------------------------------------------------ state

    @property
    def exhausted(self) -> bool:
        return len(self._visited) >= self.max_pages

    @property
    def visited(self) -> Tuple[str, ...]:
        """Visited URLs in the order they were claimed."""
        return tuple(self._order)

    def pending(self) -> int:
        return self._queue.qsize()

    def __contains__(self, url: object) -> bool:
        return url in self._visited or url in self._queued

    def __len__(self) -> int:
        return self._queue.qsize()
