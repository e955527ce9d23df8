# File: site_monitor/manifest.py
"""site_monitor.manifest: Сборка итогового манифеста одного запуска."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, TypedDict, Union

from site_monitor.crawler.models import ErrorRecord


class ErrorInfo(TypedDict, total=False):
    """Ошибка загрузки страницы или скрипта."""

    url: str
    status: Union[int, str]
    error: str


class ManifestConfig(TypedDict):
    """Срез конфигурации, сохраняемый в манифесте."""

    maxPages: int
    maxAssets: int
    timeoutMs: int
    sameOriginOnly: bool
    allowQuery: bool


def utc_now_iso() -> str:
    """Текущее время UTC в ISO-8601 с миллисекундами и суффиксом Z."""
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


@dataclass(frozen=True, slots=True)
class Manifest:
    """Снимок результатов одного запуска; после сборки не меняется."""

    target: str
    fetched_at: str
    config: ManifestConfig
    pages: Tuple[str, ...] = ()
    assets: Tuple[str, ...] = ()
    page_errors: Tuple[ErrorInfo, ...] = ()
    asset_errors: Tuple[ErrorInfo, ...] = ()
    extra: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Форма manifest.json (ключи в camelCase)."""
        return {
            "target": self.target,
            "fetchedAt": self.fetched_at,
            "config": dict(self.config),
            "pages": list(self.pages),
            "assets": list(self.assets),
            "pageErrors": [dict(e) for e in self.page_errors],
            "assetErrors": [dict(e) for e in self.asset_errors],
        }

    def json(self, *, pretty: bool = True) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=2 if pretty else None)

    def summary(self, **extra: Any) -> Dict[str, Any]:
        """Короткая сводка для вывода в stdout по завершении."""
        data: Dict[str, Any] = {
            "pagesFetched": len(self.pages),
            "assetsFetched": len(self.assets),
            "pageErrors": len(self.page_errors),
            "assetErrors": len(self.asset_errors),
        }
        data.update(self.extra)
        data.update(extra)
        return data


def _errors(records: Iterable[Union[ErrorRecord, Mapping[str, Any]]]) -> Tuple[ErrorInfo, ...]:
    out: List[ErrorInfo] = []
    for rec in records:
        data = rec.to_dict() if isinstance(rec, ErrorRecord) else dict(rec)
        out.append(ErrorInfo(**data))  # type: ignore[typeddict-item]
    return tuple(out)


def build_manifest(
    target: str,
    config: Mapping[str, Any],
    pages: Iterable[str],
    assets: Iterable[str],
    page_errors: Iterable[Union[ErrorRecord, Mapping[str, Any]]],
    asset_errors: Iterable[Union[ErrorRecord, Mapping[str, Any]]],
    fetched_at: Optional[str] = None,
    **extra: Any,
) -> Manifest:
    """Чистая агрегация: без сети и файловой системы."""
    return Manifest(
        target=target,
        fetched_at=fetched_at or utc_now_iso(),
        config=ManifestConfig(**config),  # type: ignore[typeddict-item]
        pages=tuple(pages),
        assets=tuple(assets),
        page_errors=_errors(page_errors),
        asset_errors=_errors(asset_errors),
        extra=dict(extra),
    )


__all__ = ["Manifest", "build_manifest", "utc_now_iso", "ErrorInfo", "ManifestConfig"]
