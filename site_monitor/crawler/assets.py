# site_monitor/crawler/assets.py
"""
Asset collector: deduplicated, bounded set of script URLs found during traversal.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterator

from site_monitor.crawler.urls import is_same_origin, normalize_url
from site_monitor.errors import InvalidURL


class AssetCollector:
    """Insertion-ordered set of normalized asset URLs, frozen by :meth:`close`."""

    def __init__(self, target: str, max_assets: int, same_origin_only: bool = True) -> None:
        self.target = target
        self.max_assets = max_assets
        self.same_origin_only = same_origin_only
        # dict keeps insertion order, which the manifest preserves
        self._assets: Dict[str, None] = {}
        self._closed = False
        self.logger = logging.getLogger("SiteMonitor.assets")

    def add(self, raw: str, base: str | None = None) -> bool:
        """Normalize *raw* (query kept) against *base* and store it; False if ignored."""
        if self._closed:
            raise RuntimeError("asset set is closed; fetching has already started")
        url = normalize_url(raw, base or self.target, allow_query=True)
        if isinstance(url, InvalidURL):
            self.logger.debug("Drop asset %r: %s", url.raw, url.reason)
            return False
        if self.same_origin_only and not is_same_origin(url, self.target):
            return False
        if url in self._assets:
            return False
        if len(self._assets) >= self.max_assets:
            self.logger.debug("Drop asset %s: asset budget reached", url)
            return False
        self._assets[url] = None
        return True

    def close(self) -> None:
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._assets))

    def __len__(self) -> int:
        return len(self._assets)

    def __contains__(self, url: object) -> bool:
        return url in self._assets
