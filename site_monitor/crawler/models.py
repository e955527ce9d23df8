# site_monitor/crawler/models.py
"""
Data models for the SiteMonitor crawler.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

FETCH_ERROR = "fetch_error"


class CrawlPhase(str, enum.Enum):
    """Lifecycle of one run."""

    SEEDING = "seeding"
    TRAVERSING = "traversing"
    ASSET_FETCHING = "asset_fetching"
    DONE = "done"
    CANCELLED = "cancelled"


@dataclass(slots=True)
class FetchResult:
    """Outcome of a completed HTTP exchange (any status code)."""

    url: str
    ok: bool
    status: int
    body: Union[str, bytes]
    content_type: str = ""
    #: URL of the final response after redirects
    final_url: str = ""
    redirected: bool = False


@dataclass(slots=True)
class ErrorRecord:
    """A per-page or per-asset failure; ``status`` is an HTTP code or ``"fetch_error"``."""

    url: str
    status: Union[int, str]
    error: Optional[str] = None

    @classmethod
    def from_status(cls, url: str, status: int) -> ErrorRecord:
        return cls(url=url, status=status)

    @classmethod
    def from_exception(cls, url: str, exc: BaseException) -> ErrorRecord:
        return cls(url=url, status=FETCH_ERROR, error=str(exc))

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"url": self.url, "status": self.status}
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass(slots=True)
class CrawlResult:
    """Everything the orchestrator hands to the manifest builder."""

    pages: List[str] = field(default_factory=list)
    assets: List[str] = field(default_factory=list)
    page_errors: List[ErrorRecord] = field(default_factory=list)
    asset_errors: List[ErrorRecord] = field(default_factory=list)
    seeded_from_sitemap: bool = False
    cancelled: bool = False
