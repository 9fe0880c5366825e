"""Исключения, связанные с описанием и доступностью базы данных."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

LOGGER = logging.getLogger(__name__)


class DevdbDatabaseError(Exception):
    """Базовое исключение подсистемы базы данных с контекстом."""

    def __init__(self, message: str, *, context: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.context = context or {}
        super().__init__(message)
        LOGGER.error("%s | context=%s", message, self.context)


class InstanceValidationError(DevdbDatabaseError):
    """Некорректное описание экземпляра базы (пустое имя, неверный порт и т.п.)."""

    def __init__(self, field: str, value: Any, reason: str) -> None:
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(
            f"Invalid database instance field '{field}': {reason} (value={value!r})",
            context={"field": field, "reason": reason},
        )


class DatabaseNotReadyError(DevdbDatabaseError):
    """База не начала принимать соединения за отведённое время."""

    def __init__(self, url: str, timeout: float, last_error: Optional[str] = None) -> None:
        self.url = url
        self.timeout = timeout
        self.last_error = last_error
        super().__init__(
            f"Database at {url} not ready after {timeout:g} seconds",
            context={"url": url, "timeout": timeout, "last_error": last_error},
        )


class DatabaseProbeError(DevdbDatabaseError):
    """Ошибка выполнения запроса к запущенной базе."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(
            f"Database probe against {url} failed: {reason}",
            context={"url": url, "reason": reason},
        )
