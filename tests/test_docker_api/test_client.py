"""Тесты DockerClientWrapper и перевода ошибок docker SDK."""

from __future__ import annotations

from types import SimpleNamespace

import pytest
from docker.errors import APIError, DockerException, ImageNotFound, NotFound

from devdb.docker_api import client as client_module
from devdb.docker_api.client import DockerClientWrapper
from devdb.docker_api.exceptions import (
    ContainerConflictError,
    ContainerNotFoundError,
    DockerAPIError,
    ImagePullError,
    PortAllocatedError,
    translate_docker_error,
)


def test_ping_and_version(wrapper: DockerClientWrapper) -> None:
    assert wrapper.ping() is True
    assert wrapper.version() == "27.0.3"


def test_close_delegates(wrapper: DockerClientWrapper, raw_client) -> None:
    wrapper.close()
    assert raw_client.closed is True


def test_create_client_failure_is_wrapped(monkeypatch: pytest.MonkeyPatch) -> None:
    def broken_from_env(**kwargs):
        raise DockerException("Error while fetching server API version")

    monkeypatch.setattr(client_module.docker, "from_env", broken_from_env)
    with pytest.raises(DockerAPIError) as excinfo:
        DockerClientWrapper()
    assert "Cannot connect to Docker" in str(excinfo.value)


def test_base_url_is_normalized(monkeypatch: pytest.MonkeyPatch) -> None:
    created = {}

    def fake_client(base_url: str, timeout: int):
        created["base_url"] = base_url
        return SimpleNamespace()

    monkeypatch.setattr(client_module.docker, "DockerClient", fake_client)
    wrapper = DockerClientWrapper("/var/run/docker.sock", timeout=5)
    assert created["base_url"] == "unix:///var/run/docker.sock"
    assert wrapper.base_url == "unix:///var/run/docker.sock"


def test_translate_errors() -> None:
    conflict = APIError(
        "Conflict",
        response=SimpleNamespace(status_code=409, url="/containers/create", reason="Conflict"),
        explanation="name already in use",
    )
    assert isinstance(translate_docker_error(conflict, container="db"), ContainerConflictError)
    assert isinstance(
        translate_docker_error(NotFound("gone"), container="db"), ContainerNotFoundError
    )
    assert isinstance(
        translate_docker_error(ImageNotFound("no image"), image="postgres"), ImagePullError
    )
    port = APIError("500", explanation="listen tcp 0.0.0.0:5432: bind: address already in use")
    error = translate_docker_error(port, port=5432)
    assert isinstance(error, PortAllocatedError)
    assert error.port == 5432
    generic = translate_docker_error(DockerException("boom"))
    assert type(generic) is DockerAPIError
    assert generic.message == "boom"
