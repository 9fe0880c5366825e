"""Функции для работы с образами Docker."""

from __future__ import annotations

import logging

from docker.errors import DockerException, ImageNotFound

from devdb.docker_api.client import DockerClientWrapper
from devdb.docker_api.exceptions import ImagePullError, translate_docker_error

LOGGER = logging.getLogger(__name__)


def image_present(client: DockerClientWrapper, image: str) -> bool:
    raw = client.get_raw_client()
    try:
        raw.images.get(image)
        return True
    except ImageNotFound:
        return False
    except DockerException as exc:
        raise translate_docker_error(exc, image=image) from exc


def ensure_image(client: DockerClientWrapper, image: str, *, pull: bool = True) -> bool:
    """Скачивает образ, если его нет локально. Возвращает True при скачивании."""

    if image_present(client, image):
        return False
    if not pull:
        raise ImagePullError(image, "image is not present locally and pulling is disabled")
    repository, tag = split_image_reference(image)
    LOGGER.info("Pulling image %s:%s", repository, tag)
    raw = client.get_raw_client()
    try:
        raw.images.pull(repository, tag=tag)
    except DockerException as exc:
        raise ImagePullError(image, str(exc)) from exc
    return True


def split_image_reference(image: str) -> tuple[str, str]:
    """Делит ``repo[:tag]`` на репозиторий и тег (по умолчанию latest).

    Двоеточие в адресе реестра (``host:5000/repo``) тегом не считается.
    """

    if "@" in image:
        repository, digest = image.split("@", 1)
        return repository, digest
    last_segment = image.rsplit("/", 1)[-1]
    if ":" in last_segment:
        repository, tag = image.rsplit(":", 1)
        return repository, tag
    return image, "latest"
