"""Запись DATABASE_URL в .env, который читает REST-сервис."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from dotenv import dotenv_values, set_key

from devdb.database.models import DatabaseInstance

LOGGER = logging.getLogger(__name__)

DATABASE_URL_KEY = "DATABASE_URL"


def write_database_url(path: Path, instance: DatabaseInstance) -> str:
    """Создаёт или обновляет DATABASE_URL, остальные ключи файла не трогает."""

    path.parent.mkdir(parents=True, exist_ok=True)
    path.touch(exist_ok=True)
    url = instance.database_url()
    set_key(str(path), DATABASE_URL_KEY, url, quote_mode="never")
    LOGGER.info(
        "Wrote %s=%s to %s", DATABASE_URL_KEY, instance.database_url(mask_password=True), path
    )
    return url


def read_database_url(path: Path) -> Optional[str]:
    if not path.exists():
        return None
    return dotenv_values(path).get(DATABASE_URL_KEY)
