"""Модель экземпляра PostgreSQL, запускаемого в контейнере."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, Optional
from urllib.parse import quote

from devdb.database.exceptions import InstanceValidationError

DEFAULT_CONTAINER_NAME = "rust-axum-rest-api"
DEFAULT_PASSWORD = "password"
DEFAULT_USER = "postgres"
DEFAULT_DATABASE = "rust-axum-rest-api"
DEFAULT_PORT = 5432
DEFAULT_IMAGE = "postgres"
DEFAULT_VOLUME_NAME = "pgdata"
POSTGRES_DATA_DIR = "/var/lib/postgresql/data"


@dataclass(slots=True, frozen=True)
class DatabaseInstance:
    """Параметры, с которыми создаётся контейнер с PostgreSQL.

    ``volume=None`` означает эфемерное хранилище: данные теряются при удалении
    контейнера. Именованный том монтируется в ``data_dir`` и переживает
    пересоздание контейнера.
    """

    name: str = DEFAULT_CONTAINER_NAME
    password: str = DEFAULT_PASSWORD
    user: str = DEFAULT_USER
    database: str = DEFAULT_DATABASE
    host_port: int = DEFAULT_PORT
    container_port: int = DEFAULT_PORT
    image: str = DEFAULT_IMAGE
    volume: Optional[str] = None
    data_dir: str = POSTGRES_DATA_DIR
    host: str = "localhost"

    def __post_init__(self) -> None:
        for field_name in ("name", "user", "database", "image", "host"):
            value = getattr(self, field_name)
            if not isinstance(value, str) or not value.strip():
                raise InstanceValidationError(field_name, value, "must be a non-empty string")
        for field_name in ("host_port", "container_port"):
            value = getattr(self, field_name)
            if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= 65535:
                raise InstanceValidationError(field_name, value, "must be a port in 1..65535")
        if self.volume is not None and (
            not isinstance(self.volume, str) or not self.volume.strip()
        ):
            raise InstanceValidationError("volume", self.volume, "volume name cannot be blank")
        if not isinstance(self.data_dir, str) or not self.data_dir.startswith("/"):
            raise InstanceValidationError("data_dir", self.data_dir, "must be an absolute path")

    @property
    def is_persistent(self) -> bool:
        return self.volume is not None

    def environment(self) -> Dict[str, str]:
        """Переменные окружения образа postgres."""

        return {
            "POSTGRES_PASSWORD": self.password,
            "POSTGRES_USER": self.user,
            "POSTGRES_DB": self.database,
        }

    def port_bindings(self) -> Dict[str, int]:
        """Публикация порта в формате docker SDK."""

        return {f"{self.container_port}/tcp": self.host_port}

    def volume_bindings(self) -> Dict[str, Dict[str, str]]:
        if self.volume is None:
            return {}
        return {self.volume: {"bind": self.data_dir, "mode": "rw"}}

    def database_url(self, *, mask_password: bool = False) -> str:
        """Строка подключения в формате DATABASE_URL."""

        password = "***" if mask_password else quote(self.password, safe="")
        user = quote(self.user, safe="")
        database = quote(self.database, safe="")
        return f"postgresql://{user}:{password}@{self.host}:{self.host_port}/{database}"

    def with_persistence(self, volume: str = DEFAULT_VOLUME_NAME) -> "DatabaseInstance":
        return replace(self, volume=volume)

    def without_persistence(self) -> "DatabaseInstance":
        return replace(self, volume=None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "password": self.password,
            "user": self.user,
            "database": self.database,
            "host_port": self.host_port,
            "container_port": self.container_port,
            "image": self.image,
            "volume": self.volume,
            "data_dir": self.data_dir,
            "host": self.host,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DatabaseInstance":
        if not isinstance(data, dict):
            raise InstanceValidationError("instance", data, "expected a JSON object")
        return cls(
            name=data.get("name", DEFAULT_CONTAINER_NAME),
            password=str(data.get("password", DEFAULT_PASSWORD)),
            user=data.get("user", DEFAULT_USER),
            database=data.get("database", DEFAULT_DATABASE),
            host_port=data.get("host_port", DEFAULT_PORT),
            container_port=data.get("container_port", DEFAULT_PORT),
            image=data.get("image", DEFAULT_IMAGE),
            volume=data.get("volume"),
            data_dir=data.get("data_dir", POSTGRES_DATA_DIR),
            host=data.get("host", "localhost"),
        )
