"""Запуск, остановка и проверка контейнера с базой разработки.

`DatabaseLauncher` объединяет функции из `devdb.docker_api` и проверки из
`devdb.database.probe`: выполняет документированную команду через SDK,
ждёт готовности сервера и проверяет, переживают ли данные пересоздание
контейнера.
"""

from __future__ import annotations

import logging
import re
import uuid
from dataclasses import dataclass, field
from types import ModuleType
from typing import Any, Dict, Optional

from devdb.database import probe as probe_module
from devdb.database.models import DatabaseInstance
from devdb.docker_api import containers, images, volumes
from devdb.docker_api.client import DockerClientWrapper
from devdb.docker_api.exceptions import ContainerConflictError

LOGGER = logging.getLogger(__name__)

# анонимные тома, которые образ postgres создаёт для VOLUME, не считаются хранилищем
_ANONYMOUS_VOLUME = re.compile(r"^[0-9a-f]{64}$")


@dataclass(slots=True)
class LaunchResult:
    """Результат ``up``: что было сделано с контейнером."""

    status: str  # created, started или running
    container_id: str
    created_volume: bool = False
    pulled_image: bool = False
    waited_seconds: Optional[float] = None


@dataclass(slots=True)
class InstanceStatus:
    """Состояние экземпляра для команды status."""

    container: str
    ready: bool
    url: str
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class PersistenceReport:
    """Итог проверки сохранности данных при пересоздании контейнера."""

    persistent: bool
    token: str
    survived: bool

    @property
    def as_expected(self) -> bool:
        """С томом данные должны сохраниться, без тома исчезнуть."""

        return self.survived == self.persistent


class DatabaseLauncher:
    """Высокоуровневые операции над контейнером базы."""

    def __init__(
        self,
        client: DockerClientWrapper,
        *,
        ready_timeout: float = 30.0,
        ready_interval: float = 1.0,
        pull_missing_images: bool = True,
        profile: str = "default",
        probe: ModuleType | Any = probe_module,
    ) -> None:
        self._client = client
        self._ready_timeout = ready_timeout
        self._ready_interval = ready_interval
        self._pull_missing_images = pull_missing_images
        self._profile = profile
        self._probe = probe

    def up(
        self,
        instance: DatabaseInstance,
        *,
        replace: bool = False,
        wait: bool = True,
    ) -> LaunchResult:
        """Гарантирует, что контейнер запущен с параметрами экземпляра."""

        existing = containers.find_container(self._client, instance.name)
        if existing is not None and replace:
            LOGGER.info("Replacing existing container %s", instance.name)
            containers.remove_container(self._client, instance.name, force=True)
            existing = None
        if existing is not None:
            mounted = _mounted_volume(existing, instance.data_dir)
            if mounted != instance.volume:
                raise ContainerConflictError(
                    instance.name,
                    f"it keeps data in {_storage_label(mounted)} but "
                    f"{_storage_label(instance.volume)} was requested; "
                    "use --replace to recreate it",
                )

        pulled_image = False
        created_volume = False
        if existing is None:
            pulled_image = images.ensure_image(
                self._client, instance.image, pull=self._pull_missing_images
            )
            if instance.volume is not None:
                created_volume = volumes.ensure_volume(self._client, instance.volume)
            container = containers.run_container(self._client, instance, profile=self._profile)
            status = "created"
        elif existing.status == "running":
            LOGGER.info("Container %s is already running", instance.name)
            container = existing
            status = "running"
        else:
            containers.start_container(self._client, instance.name)
            container = existing
            status = "started"

        waited = None
        if wait:
            waited = self._probe.wait_until_ready(
                instance,
                timeout=self._ready_timeout,
                interval=self._ready_interval,
            )
        return LaunchResult(
            status=status,
            container_id=str(getattr(container, "short_id", container.id)),
            created_volume=created_volume,
            pulled_image=pulled_image,
            waited_seconds=waited,
        )

    def down(self, instance: DatabaseInstance, *, remove_volume: bool = False) -> bool:
        """Останавливает и удаляет контейнер. Возвращает False, если его не было.

        Том удаляется только по явному запросу.
        """

        existing = containers.find_container(self._client, instance.name)
        removed = False
        if existing is not None:
            if existing.status in ("running", "restarting", "paused"):
                containers.stop_container(self._client, instance.name)
            containers.remove_container(self._client, instance.name, force=True)
            LOGGER.info("Removed container %s", instance.name)
            removed = True
        else:
            LOGGER.info("Container %s does not exist", instance.name)
        if remove_volume and instance.volume is not None:
            volumes.remove_volume(self._client, instance.volume, force=True)
        return removed

    def recreate(self, instance: DatabaseInstance, *, wait: bool = True) -> LaunchResult:
        """Удаляет контейнер (сохраняя том) и создаёт его заново."""

        self.down(instance, remove_volume=False)
        return self.up(instance, wait=wait)

    def status(self, instance: DatabaseInstance) -> InstanceStatus:
        container_state = containers.container_status(self._client, instance.name)
        details: Dict[str, Any] = {}
        ready = False
        if container_state != containers.ABSENT:
            details = containers.describe_container(self._client, instance.name)
        if instance.volume is not None and volumes.volume_exists(self._client, instance.volume):
            details["volume"] = volumes.inspect_volume(self._client, instance.volume)
        if container_state == "running":
            ready = bool(self._probe.is_ready(instance))
        return InstanceStatus(
            container=container_state,
            ready=ready,
            url=instance.database_url(mask_password=True),
            details=details,
        )

    def verify_persistence(self, instance: DatabaseInstance) -> PersistenceReport:
        """Пишет маркер, пересоздаёт контейнер и проверяет, сохранился ли маркер."""

        # контейнер создаётся заново, чтобы маркер попал в хранилище нужного типа
        self.up(instance, replace=True, wait=True)
        token = uuid.uuid4().hex
        self._probe.write_marker(instance, token)
        self.recreate(instance, wait=True)
        found = self._probe.read_marker(instance)
        report = PersistenceReport(
            persistent=instance.is_persistent,
            token=token,
            survived=found == token,
        )
        log = LOGGER.info if report.as_expected else LOGGER.warning
        log(
            "Persistence check for %s (%s): marker %s",
            instance.name,
            f"volume {instance.volume}" if instance.is_persistent else "ephemeral",
            "survived" if report.survived else "lost",
        )
        return report


def _mounted_volume(container: Any, data_dir: str) -> Optional[str]:
    """Имя именованного тома, смонтированного в каталог данных, или None."""

    attrs = getattr(container, "attrs", {}) or {}
    for mount in attrs.get("Mounts") or []:
        if mount.get("Destination") != data_dir or mount.get("Type") != "volume":
            continue
        name = mount.get("Name")
        if name and not _ANONYMOUS_VOLUME.match(name):
            return name
    return None


def _storage_label(volume: Optional[str]) -> str:
    return f"volume '{volume}'" if volume else "the container layer"
