"""Функции для работы с именованными томами Docker."""

from __future__ import annotations

import logging
from typing import Any, Dict

from docker.errors import DockerException, NotFound

from devdb.docker_api.client import DockerClientWrapper
from devdb.docker_api.exceptions import DockerAPIError, translate_docker_error

LOGGER = logging.getLogger(__name__)


def volume_exists(client: DockerClientWrapper, name: str) -> bool:
    raw = client.get_raw_client()
    try:
        raw.volumes.get(name)
        return True
    except NotFound:
        return False
    except DockerException as exc:
        raise translate_docker_error(exc) from exc


def ensure_volume(client: DockerClientWrapper, name: str) -> bool:
    """Создаёт том при отсутствии. Возвращает True, если том был создан."""

    if volume_exists(client, name):
        LOGGER.debug("Volume %s already exists", name)
        return False
    raw = client.get_raw_client()
    try:
        raw.volumes.create(name=name, labels={"devdb.managed": "true"})
    except DockerException as exc:
        raise translate_docker_error(exc) from exc
    LOGGER.info("Created volume %s", name)
    return True


def inspect_volume(client: DockerClientWrapper, name: str) -> Dict[str, Any]:
    """Возвращает driver и mountpoint тома."""

    raw = client.get_raw_client()
    try:
        volume = raw.volumes.get(name)
    except DockerException as exc:
        raise translate_docker_error(exc) from exc
    attrs = getattr(volume, "attrs", {}) or {}
    return {
        "name": volume.name,
        "driver": attrs.get("Driver"),
        "mountpoint": attrs.get("Mountpoint"),
        "created": attrs.get("CreatedAt"),
    }


def remove_volume(client: DockerClientWrapper, name: str, force: bool = False) -> bool:
    """Удаляет том. Возвращает False, если тома не было."""

    raw = client.get_raw_client()
    try:
        raw.volumes.get(name).remove(force=force)
    except NotFound:
        return False
    except DockerException as exc:
        raise DockerAPIError(
            f"Failed to remove volume '{name}': {exc}",
            context={"volume": name},
        ) from exc
    LOGGER.info("Removed volume %s", name)
    return True
