# === FILE: site_monitor/parser/html_parser.py ===
"""Token-level extraction of links and script references from raw markup.

The monitor only needs the *targets* of ``<a href>`` and ``<script src>``;
building a DOM for that is wasted work and breaks on the half-valid markup
real sites serve. Extraction is therefore attribute-pattern based:

* tag and attribute names are matched case-insensitively;
* attributes may appear in any order and be spread across lines;
* values may be double-quoted, single-quoted or bare;
* whitespace around ``=`` is allowed;
* entity references inside values are decoded (``&amp;`` → ``&``).

Malformed markup simply yields fewer matches; none of the functions raise.
"""
from __future__ import annotations

import html
import re
from collections.abc import Sequence

__all__: Sequence[str] = ("extract_links", "extract_script_sources", "is_skippable")

_ATTR_VALUE = r"""\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s"'=<>`]+))"""

# (?<![\w-]) keeps data-href / data-src from matching
_LINK_RE = re.compile(r"<a\s[^>]*?(?<![\w-])href" + _ATTR_VALUE, re.IGNORECASE)
_SCRIPT_RE = re.compile(r"<script\s[^>]*?(?<![\w-])src" + _ATTR_VALUE, re.IGNORECASE)

_SKIP_PREFIXES = ("#", "mailto:", "tel:", "javascript:", "data:")


def _values(pattern: re.Pattern[str], markup: str) -> list[str]:
    out: list[str] = []
    for match in pattern.finditer(markup or ""):
        value = next((g for g in match.groups() if g is not None), "")
        out.append(html.unescape(value).strip())
    return out


def extract_links(markup: str) -> list[str]:
    """Raw ``href`` values of every ``<a>`` tag, in document order."""
    return _values(_LINK_RE, markup)


def extract_script_sources(markup: str) -> list[str]:
    """Raw ``src`` values of every ``<script>`` tag, in document order."""
    return _values(_SCRIPT_RE, markup)


def is_skippable(raw: str | None) -> bool:
    """True for empty references and schemes that never lead to a fetchable page."""
    value = (raw or "").strip().lower()
    return value == "" or value.startswith(_SKIP_PREFIXES)
