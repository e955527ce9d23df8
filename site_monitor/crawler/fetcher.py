# site_monitor/crawler/fetcher.py
"""
Fetcher module: performs single timed HTTP retrievals (text or binary).

Transport problems (DNS, refused connection, timeout) raise
:class:`~site_monitor.errors.NetworkError`. A non-2xx response is *not* an
error here: it comes back as a :class:`FetchResult` with ``ok=False`` and the
caller decides what to record.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Mapping, Optional

from aiohttp import ClientError, ClientSession, ClientTimeout

from site_monitor.config import MonitorConfig
from site_monitor.crawler.models import FetchResult
from site_monitor.errors import NetworkError

TEXT_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"
BINARY_ACCEPT = "*/*"


def open_session(config: MonitorConfig) -> ClientSession:
    """ClientSession with the identification header and the per-request timeout."""
    return ClientSession(
        timeout=ClientTimeout(total=config.timeout),
        headers={"User-Agent": config.user_agent},
        raise_for_status=False,
    )


class Fetcher:
    """Thin wrapper over an aiohttp session; one call is one request."""

    def __init__(self, session: ClientSession, config: MonitorConfig) -> None:
        self.session = session
        self.config = config
        self._timeout = ClientTimeout(total=config.timeout)
        self.logger = logging.getLogger("SiteMonitor.fetcher")

    async def fetch_text(self, url: str) -> FetchResult:
        """GET *url* and decode the body as text (undecodable bytes are replaced)."""
        return await self._fetch(url, {"Accept": TEXT_ACCEPT}, binary=False)

    async def fetch_binary(self, url: str) -> FetchResult:
        """GET *url* and return the raw body bytes."""
        return await self._fetch(url, {"Accept": BINARY_ACCEPT}, binary=True)

    async def _fetch(self, url: str, headers: Mapping[str, str], binary: bool) -> FetchResult:
        try:
            async with self.session.get(
                url,
                headers=headers,
                allow_redirects=True,
                timeout=self._timeout,
            ) as resp:
                body = await resp.read() if binary else await resp.text(errors="replace")
                result = FetchResult(
                    url=url,
                    ok=200 <= resp.status < 300,
                    status=resp.status,
                    body=body,
                    content_type=resp.headers.get("Content-Type", ""),
                    final_url=str(resp.url),
                    redirected=bool(resp.history),
                )
        except asyncio.TimeoutError as exc:
            raise NetworkError(url, "timeout", f"no response within {self.config.fetch_timeout_ms} ms") from exc
        except ClientError as exc:
            raise NetworkError(url, type(exc).__name__, str(exc) or None) from exc
        except (UnicodeError, ValueError) as exc:
            # malformed URL that slipped past normalization, or bad charset label
            raise NetworkError(url, type(exc).__name__, str(exc)) from exc

        self.logger.debug("GET %s -> %s (%s)", url, result.status, result.content_type or "?")
        return result

    async def probe(self, url: str) -> Optional[FetchResult]:
        """Text fetch that swallows transport errors; used where a miss is expected."""
        try:
            return await self.fetch_text(url)
        except NetworkError as exc:
            self.logger.debug("Probe %s failed: %s", url, exc)
            return None
