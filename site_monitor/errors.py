# File: site_monitor/errors.py
"""site_monitor.errors: Таксономия ошибок монитора.

* :class:`InvalidURL` – значение-результат нормализатора (не исключение);
  кандидат просто отбрасывается.
* :class:`NetworkError` – транспортная ошибка или таймаут одной загрузки;
  записывается в манифест, обход продолжается.
* :class:`FatalConfigError` – неверная конфигурация; запуск прерывается до
  первой загрузки.

Ответ с кодом не 2xx ошибкой не является: это обычный ``FetchResult``
с ``ok=False``, статус которого попадает в манифест.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

__all__ = ("SiteMonitorError", "NetworkError", "FatalConfigError", "InvalidURL")


class SiteMonitorError(Exception):
    """Базовое исключение пакета."""


class NetworkError(SiteMonitorError):
    """Transport-level failure of a single fetch (DNS, connection, timeout)."""

    def __init__(self, url: str, kind: str, detail: Optional[str] = None) -> None:
        self.url = url
        self.kind = kind
        self.detail = detail
        message = f"{kind} while fetching {url}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class FatalConfigError(SiteMonitorError, ValueError):
    """Конфигурация не позволяет начать обход (например, схема не http/https)."""


@dataclass(frozen=True, slots=True)
class InvalidURL:
    """Кандидат, который не удалось нормализовать."""

    raw: str
    reason: str

    def __bool__(self) -> bool:
        return False
