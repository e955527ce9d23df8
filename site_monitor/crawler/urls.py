# site_monitor/crawler/urls.py
"""
URL normalization utilities for SiteMonitor.

Two URLs are "the same page" iff their normalized forms are equal, so every
set and queue in the crawler stores only the output of :func:`normalize_url`.
"""
from __future__ import annotations

from typing import NewType, Optional, Tuple, Union
from urllib.parse import quote, urldefrag, urljoin, urlsplit, urlunsplit

from site_monitor.errors import InvalidURL

__all__ = ("NormalizedURL", "normalize_url", "resolve_url", "origin_of", "is_same_origin")

NormalizedURL = NewType("NormalizedURL", str)
Origin = Tuple[str, str, int]

_DEFAULT_PORTS = {"http": 80, "https": 443}
# RFC 3986 reserved + unreserved characters plus "%" so re-quoting is a no-op
_PATH_SAFE = "/%:@!$&'()*+,;=-._~"
_QUERY_SAFE = _PATH_SAFE + "?"


def normalize_url(
    raw: str,
    base: Optional[str] = None,
    allow_query: bool = False,
) -> Union[NormalizedURL, InvalidURL]:
    """
    Resolve *raw* against *base* and return its canonical form.

    Lowercases scheme and host, drops the default port and the fragment,
    drops the query unless *allow_query*, and strips trailing slashes from
    every path except the root. Anything that cannot be turned into an
    absolute http(s) URL comes back as :class:`InvalidURL`.
    """
    if raw is None or not str(raw).strip():
        return InvalidURL(str(raw or ""), "empty")
    candidate = str(raw).strip()
    try:
        absolute = urljoin(base, candidate) if base else candidate
        parts = urlsplit(absolute)
        host = parts.hostname
        port = parts.port
    except ValueError as exc:
        return InvalidURL(candidate, str(exc))

    scheme = parts.scheme.lower()
    if scheme not in _DEFAULT_PORTS:
        return InvalidURL(candidate, f"unsupported scheme {scheme or '<none>'!r}")
    if not host:
        return InvalidURL(candidate, "missing host")

    netloc = f"[{host}]" if ":" in host else host
    if port is not None and port != _DEFAULT_PORTS[scheme]:
        netloc = f"{netloc}:{port}"
    if parts.username is not None:
        userinfo = parts.username if parts.password is None else f"{parts.username}:{parts.password}"
        netloc = f"{userinfo}@{netloc}"

    path = quote(parts.path, safe=_PATH_SAFE) or "/"
    if path != "/":
        path = path.rstrip("/") or "/"
    query = quote(parts.query, safe=_QUERY_SAFE) if allow_query else ""

    return NormalizedURL(urlunsplit((scheme, netloc, path, query, "")))


def resolve_url(raw: str, base: Optional[str] = None) -> str:
    """
    Absolute form of *raw* as a browser would request it: resolved against
    *base* with the fragment removed, path and query left as written.

    Only meaningful for values that :func:`normalize_url` accepted.
    """
    candidate = str(raw).strip()
    return urldefrag(urljoin(base, candidate) if base else candidate).url


def origin_of(url: str) -> Optional[Origin]:
    """(scheme, host, port) of *url* with the default port filled in; None if unparsable."""
    try:
        parts = urlsplit(url)
        host = parts.hostname
        port = parts.port
    except ValueError:
        return None
    scheme = parts.scheme.lower()
    if scheme not in _DEFAULT_PORTS or not host:
        return None
    return scheme, host, port if port is not None else _DEFAULT_PORTS[scheme]


def is_same_origin(url: str, other: str) -> bool:
    origin = origin_of(url)
    return origin is not None and origin == origin_of(other)
