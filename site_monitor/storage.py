# File: site_monitor/storage.py
"""site_monitor.storage: Запись снимков страниц, скриптов и манифеста на диск.

Раскладка каталога вывода::

    <output_dir>/
        manifest.json
        <pages_dir>/index.html, about.html, docs/intro.html ...
        <assets_dir>/app.js, static/js/main.js ...
"""

from __future__ import annotations

import re
import shutil
from pathlib import Path
from typing import Union
from urllib.parse import urlsplit

from site_monitor.logger import get_logger

logger = get_logger("storage")

_DOT_RUNS = re.compile(r"\.\.+")
_UNSAFE = re.compile(r"[^a-zA-Z0-9/_\-.]")
_SLASH_RUNS = re.compile(r"/{2,}")


def sanitize_path_for_file(path: str) -> str:
    """Сохраняет структуру каталогов, но исключает обход вверх и странные символы."""
    cleaned = path.replace("\\", "/")
    cleaned = _DOT_RUNS.sub(".", cleaned)
    cleaned = _UNSAFE.sub("_", cleaned)
    cleaned = _SLASH_RUNS.sub("/", cleaned)
    cleaned = cleaned.lstrip("/")
    return cleaned or "index"


def page_relpath(url: str) -> str:
    """Относительный путь HTML-снимка страницы: ``/`` → ``index.html``."""
    path = urlsplit(url).path
    return sanitize_path_for_file("index" if path in ("", "/") else path) + ".html"


def asset_relpath(url: str) -> str:
    """Относительный путь файла скрипта по компоненту path его URL."""
    return sanitize_path_for_file(urlsplit(url).path)


class SnapshotWriter:
    """Файловый коллаборатор краулера: всё, что попадает на диск, идёт через него."""

    def __init__(self, root: Union[str, Path], pages_dir: str = "pages", assets_dir: str = "assets") -> None:
        self.root = Path(root)
        self.pages_root = self.root / pages_dir
        self.assets_root = self.root / assets_dir
        self.manifest_path = self.root / "manifest.json"

    def reset(self) -> None:
        """Удаляет результаты прошлого запуска и создаёт подкаталоги страниц и скриптов.

        Трогает только свои записи (страницы, скрипты, manifest.json): прочие
        файлы в каталоге вывода остаются на месте.
        """
        for managed in (self.pages_root, self.assets_root):
            if managed.is_dir() and not managed.is_symlink():
                shutil.rmtree(managed)
            elif managed.exists() or managed.is_symlink():
                managed.unlink()
        self.manifest_path.unlink(missing_ok=True)
        self.pages_root.mkdir(parents=True, exist_ok=True)
        self.assets_root.mkdir(parents=True, exist_ok=True)

    def write_page(self, url: str, markup: str) -> Path:
        target = self._inside(self.pages_root, page_relpath(url))
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(markup, encoding="utf-8")
        logger.debug("Saved page %s -> %s", url, target)
        return target

    def write_asset(self, url: str, data: bytes) -> Path:
        target = self._inside(self.assets_root, asset_relpath(url))
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        logger.debug("Saved asset %s -> %s", url, target)
        return target

    @staticmethod
    def _inside(base: Path, relpath: str) -> Path:
        target = (base / relpath).resolve()
        if not target.is_relative_to(base.resolve()):
            raise ValueError(f"refusing to write outside {base}: {relpath}")
        return target


__all__ = ["SnapshotWriter", "sanitize_path_for_file", "page_relpath", "asset_relpath"]
