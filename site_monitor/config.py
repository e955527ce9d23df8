# === FILE: site_monitor/config.py ===
"""
Модуль для загрузки и валидации конфигурации монитора SiteMonitor.
Используется Pydantic для описания схемы и проверки данных.

Источники (в порядке приоритета):
  1. переменные окружения (``TARGET_URL``, ``MAX_PAGES`` ...);
  2. необязательный YAML/JSON-файл;
  3. значения по умолчанию модели :class:`MonitorConfig`.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union
from urllib.parse import urlsplit

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from site_monitor.errors import FatalConfigError

DEFAULT_USER_AGENT = "website-monitoring-bot/1.0 (+https://github.com/)"

_TRUTHY = frozenset({"1", "true", "yes", "y", "on"})


class MonitorConfig(BaseModel):
    """Конфигурация одного запуска мониторинга."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    target_url: str = Field("https://example.com/", description="Корневой URL для обхода.")
    max_pages: int = Field(200, ge=1, description="Жесткий лимит по числу страниц.")
    max_assets: int = Field(2000, ge=0, description="Жесткий лимит по числу скриптов.")
    fetch_timeout_ms: int = Field(25000, gt=0, description="Таймаут на один запрос (мс).")
    same_origin_only: bool = Field(True, description="Отбрасывать ссылки на другие origin.")
    allow_query: bool = Field(False, description="Сохранять query-строку в URL страниц.")
    concurrency: int = Field(4, ge=1, description="Число одновременных загрузок.")
    output_dir: Path = Field(Path(".tmp_fetch"), description="Корень для снимков и манифеста.")
    pages_dir: str = Field("pages", min_length=1, description="Подкаталог для HTML страниц.")
    assets_dir: str = Field("assets", min_length=1, description="Подкаталог для скриптов.")
    user_agent: str = Field(DEFAULT_USER_AGENT, min_length=1, description="Заголовок User-Agent.")

    @field_validator("target_url")
    @classmethod
    def _check_scheme(cls, v: str) -> str:
        parts = urlsplit(v.strip())
        if parts.scheme.lower() not in ("http", "https"):
            raise ValueError(f"Unsupported TARGET_URL protocol: {parts.scheme or '<none>'}:")
        if not parts.hostname:
            raise ValueError(f"TARGET_URL has no host: {v!r}")
        return v.strip()

    @field_validator("pages_dir", "assets_dir")
    @classmethod
    def _check_subdir(cls, v: str) -> str:
        parts = Path(v).parts
        if not parts or Path(v).is_absolute() or ".." in parts:
            raise ValueError(f"output sub-directory must be a relative path below output_dir: {v!r}")
        return v

    @property
    def timeout(self) -> float:
        """Таймаут одного запроса в секундах."""
        return self.fetch_timeout_ms / 1000.0

    def manifest_config(self) -> Dict[str, Any]:
        """Срез конфигурации, который попадает в manifest.json."""
        return {
            "maxPages": self.max_pages,
            "maxAssets": self.max_assets,
            "timeoutMs": self.fetch_timeout_ms,
            "sameOriginOnly": self.same_origin_only,
            "allowQuery": self.allow_query,
        }


def env_int(raw: Optional[str], fallback: int) -> int:
    """Целое из окружения; пустое или нечисловое значение даёт *fallback*."""
    if not raw:
        return fallback
    try:
        return int(raw.strip())
    except ValueError:
        return fallback


def env_bool(raw: Optional[str], fallback: bool) -> bool:
    if raw is None:
        return fallback
    return raw.strip().lower() in _TRUTHY


def _env_str(raw: Optional[str], fallback: Any) -> Any:
    return raw if raw else fallback


# env var -> (field name, parser)
_ENV_FIELDS: Dict[str, Tuple[str, Callable[[Optional[str], Any], Any]]] = {
    "TARGET_URL": ("target_url", _env_str),
    "MAX_PAGES": ("max_pages", env_int),
    "MAX_ASSETS": ("max_assets", env_int),
    "FETCH_TIMEOUT_MS": ("fetch_timeout_ms", env_int),
    "SAME_ORIGIN_ONLY": ("same_origin_only", env_bool),
    "ALLOW_QUERY_URLS": ("allow_query", env_bool),
    "CONCURRENCY": ("concurrency", env_int),
    "OUTPUT_DIR": ("output_dir", _env_str),
    "OUT_PAGES_DIR": ("pages_dir", _env_str),
    "OUT_ASSETS_DIR": ("assets_dir", _env_str),
    "USER_AGENT": ("user_agent", _env_str),
}


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise FatalConfigError(f"Неправильный YAML в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise FatalConfigError(
            f"Верхний уровень YAML должен быть mapping, получено {type(data).__name__}"
        )
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise FatalConfigError(f"Неправильный JSON в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise FatalConfigError(
            f"Верхний уровень JSON должен быть mapping, получено {type(data).__name__}"
        )
    return data


def _read_file(path: Union[str, Path]) -> dict[str, Any]:
    path_obj = Path(path).expanduser().resolve()
    if not path_obj.is_file():
        raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        return _read_yaml(path_obj)
    if suffix == ".json":
        return _read_json(path_obj)
    raise FatalConfigError(f"Неподдерживаемый формат конфига: {suffix}")


def apply_env(data: Dict[str, Any], environ: Mapping[str, str]) -> Dict[str, Any]:
    """Накладывает переменные окружения поверх *data* (возвращает новый dict)."""
    merged = dict(data)
    defaults = MonitorConfig.model_fields
    for var, (name, parse) in _ENV_FIELDS.items():
        if var not in environ:
            continue
        fallback = merged.get(name, defaults[name].default)
        merged[name] = parse(environ.get(var), fallback)
    return merged


def load_config(
    path: Union[str, Path, None] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> MonitorConfig:
    """
    Собирает MonitorConfig из файла (если указан) и окружения.
    Любая ошибка валидации превращается в FatalConfigError: обход не начинается.
    """
    data = _read_file(path) if path is not None else {}
    data = apply_env(data, os.environ if environ is None else environ)
    try:
        return MonitorConfig(**data)
    except ValidationError as exc:
        raise FatalConfigError(str(exc)) from exc


__all__ = ["MonitorConfig", "load_config", "apply_env", "env_int", "env_bool", "DEFAULT_USER_AGENT"]
