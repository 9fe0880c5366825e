"""Обёртка над docker-py с безопасной инициализацией."""

from __future__ import annotations

import logging
from typing import Any, Dict

import docker
from docker.errors import DockerException

from devdb.docker_api.exceptions import DockerAPIError
from devdb.utils.helpers import normalize_socket_path

LOGGER = logging.getLogger(__name__)


class DockerClientWrapper:
    """Управляет созданием и использованием docker API client."""

    def __init__(
        self,
        base_url: str = "",
        *,
        timeout: int = 60,
        raw_client: Any | None = None,
    ) -> None:
        self.base_url = normalize_socket_path(base_url)  # пусто: берём из окружения
        self.timeout = timeout
        self._client = raw_client or self._create_client()

    def _create_client(self) -> Any:
        try:
            if self.base_url:
                return docker.DockerClient(base_url=self.base_url, timeout=self.timeout)
            return docker.from_env(timeout=self.timeout)
        except DockerException as exc:
            LOGGER.error(
                "Docker client init error via %s: %s",
                self.base_url or "environment",
                exc,
            )
            raise DockerAPIError(
                f"Cannot connect to Docker: {exc}",
                context={"base_url": self.base_url or "environment"},
            ) from exc

    def get_raw_client(self) -> Any:
        """Возвращает внутренний docker client."""

        return self._client

    def ping(self) -> bool:
        """Проверяет доступность Docker."""

        try:
            self._client.ping()
            return True
        except DockerException as exc:
            LOGGER.error("Docker ping failed: %s", exc)
            return False

    def version(self) -> str:
        """Возвращает версию Docker Engine."""

        try:
            version_info: Dict[str, Any] = self._client.version()
        except DockerException as exc:
            raise DockerAPIError(str(exc)) from exc
        return str(version_info.get("Version", "unknown"))

    def close(self) -> None:
        close = getattr(self._client, "close", None)
        if callable(close):
            close()
