"""Функции для работы с контейнером базы через Docker client."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from docker.errors import DockerException, NotFound

from devdb.database.models import DatabaseInstance
from devdb.docker_api.client import DockerClientWrapper
from devdb.docker_api.exceptions import (
    ContainerNotFoundError,
    DockerAPIError,
    translate_docker_error,
)

LOGGER = logging.getLogger(__name__)

MANAGED_LABEL = "devdb.managed"
PROFILE_LABEL = "devdb.profile"
ABSENT = "absent"


def find_container(client: DockerClientWrapper, name: str) -> Optional[Any]:
    """Возвращает контейнер по имени или None."""

    raw = client.get_raw_client()
    try:
        return raw.containers.get(name)
    except NotFound:
        return None
    except DockerException as exc:
        raise translate_docker_error(exc, container=name) from exc


def run_container(
    client: DockerClientWrapper,
    instance: DatabaseInstance,
    *,
    profile: str = "default",
) -> Any:
    """Создаёт и запускает контейнер в фоне, аналог ``docker run -d``."""

    raw = client.get_raw_client()
    LOGGER.info(
        "Starting container %s from %s on port %s (%s)",
        instance.name,
        instance.image,
        instance.host_port,
        f"volume {instance.volume}" if instance.is_persistent else "ephemeral",
    )
    try:
        return raw.containers.run(
            instance.image,
            name=instance.name,
            environment=instance.environment(),
            ports=instance.port_bindings(),
            volumes=instance.volume_bindings() or None,
            labels={MANAGED_LABEL: "true", PROFILE_LABEL: profile},
            detach=True,
        )
    except DockerException as exc:
        error = translate_docker_error(
            exc,
            container=instance.name,
            image=instance.image,
            port=instance.host_port,
        )
        _discard_unstarted(client, instance.name)
        raise error from exc


def start_container(client: DockerClientWrapper, name: str) -> None:
    """Запускает остановленный контейнер."""

    container = _require(client, name)
    try:
        container.start()
    except DockerException as exc:
        raise translate_docker_error(exc, container=name) from exc


def stop_container(client: DockerClientWrapper, name: str, *, timeout: int = 10) -> None:
    """Останавливает контейнер."""

    container = _require(client, name)
    try:
        container.stop(timeout=timeout)
    except DockerException as exc:
        raise translate_docker_error(exc, container=name) from exc


def remove_container(client: DockerClientWrapper, name: str, force: bool = False) -> None:
    """Удаляет контейнер. Тома при этом не удаляются."""

    container = _require(client, name)
    try:
        container.remove(force=force)
    except DockerException as exc:
        raise translate_docker_error(exc, container=name) from exc


def container_status(client: DockerClientWrapper, name: str) -> str:
    """Статус контейнера (running, exited, created...) или ``absent``."""

    container = find_container(client, name)
    if container is None:
        return ABSENT
    return str(getattr(container, "status", "") or "unknown")


def describe_container(client: DockerClientWrapper, name: str) -> Dict[str, Any]:
    """Краткое описание контейнера для вывода в CLI."""

    container = _require(client, name)
    attrs = getattr(container, "attrs", {}) or {}
    image = getattr(container, "image", None)
    return {
        "id": getattr(container, "short_id", container.id),
        "name": container.name,
        "status": getattr(container, "status", "unknown"),
        "image": list(getattr(image, "tags", []) or []),
        "ports": _format_ports(attrs.get("NetworkSettings", {})),
        "mounts": _format_mounts(attrs.get("Mounts", [])),
        "labels": dict(getattr(container, "labels", {}) or {}),
    }


def fetch_logs(client: DockerClientWrapper, name: str, *, tail: int = 100) -> str:
    """Возвращает строку логов контейнера."""

    container = _require(client, name)
    try:
        data = container.logs(tail=tail)
    except DockerException as exc:
        raise translate_docker_error(exc, container=name) from exc
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="ignore")
    return str(data)


def _require(client: DockerClientWrapper, name: str) -> Any:
    container = find_container(client, name)
    if container is None:
        raise ContainerNotFoundError(name)
    return container


def _discard_unstarted(client: DockerClientWrapper, name: str) -> None:
    """Удаляет контейнер, который был создан, но не смог стартовать."""

    try:
        container = find_container(client, name)
        if container is not None and getattr(container, "status", "") == "created":
            container.remove(force=True)
            LOGGER.info("Removed unstarted container %s", name)
    except (DockerException, DockerAPIError) as exc:
        LOGGER.warning("Could not clean up container %s: %s", name, exc)


def _format_ports(network_settings: Dict[str, Any]) -> List[str]:
    ports = network_settings.get("Ports", {}) or {}
    result = []
    for container_port, mappings in ports.items():
        if not mappings:
            continue
        for mapping in mappings:
            result.append(f"{mapping.get('HostIp')}:{mapping.get('HostPort')} -> {container_port}")
    return result


def _format_mounts(mounts: List[Dict[str, Any]]) -> List[str]:
    result = []
    for mount in mounts or []:
        source = mount.get("Name") or mount.get("Source") or "?"
        result.append(f"{source} -> {mount.get('Destination')}")
    return result
