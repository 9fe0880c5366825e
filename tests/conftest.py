"""Общие фикстуры: поддельный docker client и поддельные проверки базы."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest
from docker.errors import APIError, ImageNotFound, NotFound

from devdb.database.models import DatabaseInstance
from devdb.docker_api.client import DockerClientWrapper
from devdb.settings.registry import SettingsRegistry


class FakeImage:
    def __init__(self, tag: str) -> None:
        self.id = f"sha256:{abs(hash(tag)) % 10**12:012d}"
        self.tags = [tag]


class FakeContainer:
    def __init__(self, owner: "FakeRawClient", name: str, image: str, **kwargs: Any) -> None:
        self._owner = owner
        self.id = f"{name}-{owner.next_id()}"
        self.short_id = self.id[:12]
        self.name = name
        self.status = "running"
        self.image = FakeImage(image)
        self.run_kwargs = kwargs
        self.labels = dict(kwargs.get("labels") or {})
        self.volume: Optional[str] = None
        volumes = kwargs.get("volumes") or {}
        mounts = []
        for volume_name, binding in volumes.items():
            self.volume = volume_name
            mounts.append({"Type": "volume", "Name": volume_name, "Destination": binding["bind"]})
        ports = {
            container_port: [{"HostIp": "0.0.0.0", "HostPort": str(host_port)}]
            for container_port, host_port in (kwargs.get("ports") or {}).items()
        }
        self.attrs = {"NetworkSettings": {"Ports": ports}, "Mounts": mounts}
        self.data: Optional[str] = None  # данные внутри слоя контейнера

    def start(self) -> None:
        self.status = "running"

    def stop(self, timeout: int = 10) -> None:
        self.status = "exited"

    def remove(self, force: bool = False) -> None:
        if self.status == "running" and not force:
            raise APIError("cannot remove container", explanation="container is running")
        self._owner.container_map.pop(self.name, None)

    def logs(self, tail: int = 100) -> bytes:
        return b"database system is ready to accept connections\n"


class FakeVolume:
    def __init__(self, owner: "FakeRawClient", name: str) -> None:
        self._owner = owner
        self.name = name
        self.attrs = {"Driver": "local", "Mountpoint": f"/var/lib/docker/volumes/{name}/_data"}

    def remove(self, force: bool = False) -> None:
        self._owner.volume_map.pop(self.name, None)
        self._owner.volume_data.pop(self.name, None)


class FakeRawClient:
    """Минимальная имитация docker.DockerClient в памяти."""

    def __init__(self, local_images: Optional[List[str]] = None) -> None:
        self.container_map: Dict[str, FakeContainer] = {}
        self.volume_map: Dict[str, FakeVolume] = {}
        self.volume_data: Dict[str, str] = {}
        self.local_images = set(local_images or [])
        self.pulled: List[tuple] = []
        self.run_error: Optional[Exception] = None
        self.closed = False
        self._counter = 0
        outer = self

        class Containers:
            def get(self, name: str) -> FakeContainer:
                try:
                    return outer.container_map[name]
                except KeyError:
                    raise NotFound(f"No such container: {name}") from None

            def run(self, image: str, name: str, **kwargs: Any) -> FakeContainer:
                if name in outer.container_map:
                    raise APIError(
                        "Conflict",
                        response=SimpleNamespace(
                            status_code=409, url="/containers/create", reason="Conflict"
                        ),
                        explanation=f'The container name "/{name}" is already in use',
                    )
                container = FakeContainer(outer, name, image, **kwargs)
                outer.container_map[name] = container
                if outer.run_error is not None:
                    container.status = "created"
                    raise outer.run_error
                return container

            def list(self, all: bool = True) -> List[FakeContainer]:
                return list(outer.container_map.values())

        class Volumes:
            def get(self, name: str) -> FakeVolume:
                try:
                    return outer.volume_map[name]
                except KeyError:
                    raise NotFound(f"get {name}: no such volume") from None

            def create(self, name: str, **kwargs: Any) -> FakeVolume:
                volume = FakeVolume(outer, name)
                outer.volume_map[name] = volume
                return volume

        class Images:
            def get(self, image: str) -> FakeImage:
                if image not in outer.local_images:
                    raise ImageNotFound(f"No such image: {image}")
                return FakeImage(image)

            def pull(self, repository: str, tag: Optional[str] = None) -> FakeImage:
                outer.pulled.append((repository, tag))
                outer.local_images.add(repository)
                return FakeImage(f"{repository}:{tag}")

        self.containers = Containers()
        self.volumes = Volumes()
        self.images = Images()

    def next_id(self) -> str:
        self._counter += 1
        return f"{self._counter:04d}abcdef0123"

    def ping(self) -> bool:
        return True

    def version(self) -> Dict[str, str]:
        return {"Version": "27.0.3"}

    def close(self) -> None:
        self.closed = True


class FakeProbe:
    """Имитирует devdb.database.probe поверх FakeRawClient.

    Маркер пишется в том, если он смонтирован, иначе в слой контейнера,
    который пропадает вместе с контейнером.
    """

    def __init__(self, raw: FakeRawClient) -> None:
        self.raw = raw
        self.waits: List[str] = []

    def wait_until_ready(
        self, instance: DatabaseInstance, *, timeout: float, interval: float
    ) -> float:
        self.waits.append(instance.name)
        return 0.5

    def is_ready(self, instance: DatabaseInstance) -> bool:
        container = self.raw.container_map.get(instance.name)
        return container is not None and container.status == "running"

    def server_identity(self, instance: DatabaseInstance) -> Dict[str, str]:
        return {
            "database": instance.database,
            "user": instance.user,
            "version": "PostgreSQL 16.4",
        }

    def write_marker(self, instance: DatabaseInstance, token: str) -> None:
        container = self.raw.container_map[instance.name]
        if container.volume is not None:
            self.raw.volume_data[container.volume] = token
        else:
            container.data = token

    def read_marker(self, instance: DatabaseInstance) -> Optional[str]:
        container = self.raw.container_map[instance.name]
        if container.volume is not None:
            return self.raw.volume_data.get(container.volume)
        return container.data


@pytest.fixture
def raw_client() -> FakeRawClient:
    return FakeRawClient(local_images=["postgres"])


@pytest.fixture
def wrapper(raw_client: FakeRawClient) -> DockerClientWrapper:
    return DockerClientWrapper(raw_client=raw_client)


@pytest.fixture
def fake_probe(raw_client: FakeRawClient) -> FakeProbe:
    return FakeProbe(raw_client)


@pytest.fixture
def instance() -> DatabaseInstance:
    return DatabaseInstance()


@pytest.fixture
def fresh_registry(tmp_path):
    SettingsRegistry._instance = None  # type: ignore[attr-defined]
    registry = SettingsRegistry(tmp_path / "config.json")
    registry.reset_to_defaults()
    yield registry
    SettingsRegistry._instance = None  # type: ignore[attr-defined]
