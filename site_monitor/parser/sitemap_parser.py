# File: site_monitor/parser/sitemap_parser.py
"""site_monitor.parser.sitemap_parser: Извлечение URL из тегов <loc> в sitemap.xml."""

from __future__ import annotations

import html
import re
from typing import List

# <loc>, <sm:loc>, CDATA-обёртка и пробелы вокруг значения допускаются
_LOC_RE = re.compile(
    r"<(?:[\w.-]+:)?loc\b[^>]*>\s*(?:<!\[CDATA\[\s*)?([^<\s]+?)\s*(?:\]\]>\s*)?</(?:[\w.-]+:)?loc\s*>",
    re.IGNORECASE,
)


def extract_locations(xml_content: str) -> List[str]:
    """Возвращает значения всех <loc> в порядке документа.

    Документ не обязан быть корректным XML: обрезанный или битый sitemap
    просто даёт меньше совпадений (или ни одного), исключения не бросаются.

    Пример:
    ```python
    from site_monitor.parser.sitemap_parser import extract_locations

    extract_locations("<urlset><url><loc>https://a.test/</loc></url></urlset>")
    # ['https://a.test/']
    ```
    """
    if not xml_content:
        return []
    return [html.unescape(m.group(1)) for m in _LOC_RE.finditer(xml_content)]
