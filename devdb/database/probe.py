"""Проверки запущенной базы через psycopg2: готовность, идентичность, маркер."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Optional

import psycopg2
from psycopg2 import errors as pg_errors

from devdb.database.exceptions import DatabaseNotReadyError, DatabaseProbeError
from devdb.database.models import DatabaseInstance

LOGGER = logging.getLogger(__name__)

MARKER_TABLE = "devdb_persistence_marker"


def connect(instance: DatabaseInstance, *, timeout: int = 5) -> Any:
    """Открывает соединение с базой по DATABASE_URL экземпляра."""

    return psycopg2.connect(instance.database_url(), connect_timeout=timeout)


def is_ready(instance: DatabaseInstance) -> bool:
    """True, если база принимает соединения и отвечает на ``SELECT 1``."""

    return _try_select_one(instance) is None


def wait_until_ready(
    instance: DatabaseInstance,
    *,
    timeout: float = 30.0,
    interval: float = 1.0,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> float:
    """Ждёт готовности базы, возвращает затраченное время в секундах."""

    started = clock()
    last_error: Optional[str] = None
    while True:
        last_error = _try_select_one(instance)
        elapsed = clock() - started
        if last_error is None:
            LOGGER.info(
                "Database %s ready after %.1fs", instance.database_url(mask_password=True), elapsed
            )
            return elapsed
        if elapsed >= timeout:
            raise DatabaseNotReadyError(
                instance.database_url(mask_password=True), timeout, last_error
            )
        LOGGER.debug("Database not ready yet: %s", last_error)
        sleep(interval)


def server_identity(instance: DatabaseInstance) -> Dict[str, str]:
    """Имя текущей базы, пользователь и версия сервера."""

    row = _fetch_one(instance, "SELECT current_database(), current_user, version()")
    database, user, version = row
    return {"database": str(database), "user": str(user), "version": str(version)}


def write_marker(instance: DatabaseInstance, token: str) -> None:
    """Записывает маркер, по которому проверяется сохранность данных."""

    url = instance.database_url(mask_password=True)
    try:
        connection = connect(instance)
        try:
            with connection:
                with connection.cursor() as cursor:
                    cursor.execute(
                        f"CREATE TABLE IF NOT EXISTS {MARKER_TABLE} ("
                        "id serial PRIMARY KEY, token text NOT NULL, "
                        "created_at timestamptz NOT NULL DEFAULT now())"
                    )
                    cursor.execute(f"INSERT INTO {MARKER_TABLE} (token) VALUES (%s)", (token,))
        finally:
            connection.close()
    except psycopg2.Error as exc:
        raise DatabaseProbeError(url, str(exc).strip()) from exc
    LOGGER.info("Persistence marker written to %s", url)


def read_marker(instance: DatabaseInstance) -> Optional[str]:
    """Последний записанный маркер или None, если таблицы/записей нет."""

    url = instance.database_url(mask_password=True)
    try:
        connection = connect(instance)
        try:
            with connection.cursor() as cursor:
                cursor.execute(f"SELECT token FROM {MARKER_TABLE} ORDER BY id DESC LIMIT 1")
                row = cursor.fetchone()
        finally:
            connection.close()
    except pg_errors.UndefinedTable:
        return None
    except psycopg2.Error as exc:
        raise DatabaseProbeError(url, str(exc).strip()) from exc
    return None if row is None else str(row[0])


def _try_select_one(instance: DatabaseInstance) -> Optional[str]:
    """Выполняет ``SELECT 1``; возвращает текст ошибки или None при успехе."""

    try:
        connection = connect(instance, timeout=2)
    except psycopg2.Error as exc:
        return str(exc).strip()
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        return None
    except psycopg2.Error as exc:
        return str(exc).strip()
    finally:
        connection.close()


def _fetch_one(instance: DatabaseInstance, query: str) -> tuple:
    url = instance.database_url(mask_password=True)
    try:
        connection = connect(instance)
        try:
            with connection.cursor() as cursor:
                cursor.execute(query)
                row = cursor.fetchone()
        finally:
            connection.close()
    except psycopg2.Error as exc:
        raise DatabaseProbeError(url, str(exc).strip()) from exc
    if row is None:
        raise DatabaseProbeError(url, "query returned no rows")
    return tuple(row)
