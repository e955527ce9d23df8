"""site_monitor.report: Запись manifest.json и HTML-просмотра манифеста, используемые CLI и engine."""

from __future__ import annotations

from site_monitor.report.html_report import render_html
from site_monitor.report.json_report import render_json

__all__ = ["render_json", "render_html"]
