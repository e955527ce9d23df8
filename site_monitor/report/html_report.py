"""site_monitor.report.html_report: HTML-просмотр манифеста с помощью Jinja2."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Union

from jinja2 import Environment, FileSystemLoader, select_autoescape

from site_monitor.manifest import Manifest

DEFAULT_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"
TEMPLATE_NAME = "manifest.html.j2"


def render_html(
    manifest: Manifest,
    template_dir: Union[Path, str, None],
    output_path: Union[Path, str],
) -> Path:
    """Рендерит HTML-отчёт по манифесту и сохраняет его по указанному пути.

    Args:
        manifest: объект Manifest.
        template_dir: директория с Jinja2-шаблонами (``None``: встроенный шаблон).
        output_path: путь к итоговому HTML-файлу.

    Returns:
        Path до сохранённого HTML-файла.
    """
    template_dir = Path(template_dir) if template_dir else DEFAULT_TEMPLATE_DIR
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    env = Environment(
        loader=FileSystemLoader(str(template_dir)),
        autoescape=select_autoescape(["html", "xml", "j2"]),
    )
    template = env.get_template(TEMPLATE_NAME)

    context: dict[str, Any] = {
        "manifest": manifest.to_dict(),
        "summary": manifest.summary(),
    }

    output_path.write_text(template.render(**context), encoding="utf-8")
    return output_path
