"""Исключения слоя docker_api и перевод ошибок docker SDK в них."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from docker.errors import APIError, DockerException, ImageNotFound, NotFound

LOGGER = logging.getLogger(__name__)

_PORT_IN_USE_MARKERS = ("port is already allocated", "address already in use")


class DockerAPIError(Exception):
    """Базовая ошибка работы с Docker, хранит контекст операции."""

    def __init__(self, message: str, *, context: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.context = context or {}
        super().__init__(message)
        LOGGER.error("%s | context=%s", message, self.context)


class ContainerNotFoundError(DockerAPIError):
    """Контейнер с указанным именем отсутствует."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Container '{name}' not found", context={"container": name})


class ContainerConflictError(DockerAPIError):
    """Имя контейнера уже занято другим контейнером."""

    def __init__(self, name: str, reason: str) -> None:
        self.name = name
        super().__init__(
            f"Container name '{name}' is already in use: {reason}",
            context={"container": name, "reason": reason},
        )


class PortAllocatedError(DockerAPIError):
    """Порт хоста уже занят."""

    def __init__(self, port: Optional[int], reason: str) -> None:
        self.port = port
        super().__init__(
            f"Host port {port} is already allocated: {reason}",
            context={"port": port, "reason": reason},
        )


class ImagePullError(DockerAPIError):
    """Не удалось найти или скачать образ."""

    def __init__(self, image: str, reason: str) -> None:
        self.image = image
        super().__init__(
            f"Failed to pull image '{image}': {reason}",
            context={"image": image, "reason": reason},
        )


def translate_docker_error(
    exc: DockerException,
    *,
    container: Optional[str] = None,
    image: Optional[str] = None,
    port: Optional[int] = None,
) -> DockerAPIError:
    """Сопоставляет исключение docker SDK с исключением devdb."""

    reason = _explain(exc)
    if isinstance(exc, ImageNotFound) and image:
        return ImagePullError(image, reason)
    if isinstance(exc, NotFound) and container:
        return ContainerNotFoundError(container)
    if isinstance(exc, APIError):
        lowered = reason.lower()
        if any(marker in lowered for marker in _PORT_IN_USE_MARKERS):
            return PortAllocatedError(port, reason)
        if exc.status_code == 409 and container:
            return ContainerConflictError(container, reason)
    context: Dict[str, Any] = {"container": container, "image": image}
    return DockerAPIError(reason, context={k: v for k, v in context.items() if v})


def _explain(exc: DockerException) -> str:
    explanation = getattr(exc, "explanation", None)
    if explanation:
        if isinstance(explanation, bytes):
            return explanation.decode("utf-8", errors="ignore")
        return str(explanation)
    return str(exc)
