"""Документированная команда ``docker run`` для базы разработки.

Модуль строит ту же команду, которую выполняет devdb через SDK, чтобы её
можно было скопировать в README или выполнить вручную.
"""

from __future__ import annotations

import shlex
from typing import List

from devdb.database.models import DEFAULT_VOLUME_NAME, DatabaseInstance


def build_run_arguments(instance: DatabaseInstance, *, detach: bool = True) -> List[str]:
    """Возвращает argv для ``docker run``."""

    args = ["docker", "run", "--name", instance.name]
    for key, value in instance.environment().items():
        args.extend(["-e", f"{key}={value}"])
    args.extend(["-p", f"{instance.host_port}:{instance.container_port}"])
    if instance.volume is not None:
        args.extend(["-v", f"{instance.volume}:{instance.data_dir}"])
    if detach:
        args.append("-d")
    args.append(instance.image)
    return args


def render_run_command(
    instance: DatabaseInstance,
    *,
    mask_password: bool = False,
    detach: bool = True,
) -> str:
    """Возвращает команду одной строкой с экранированием для shell."""

    args = build_run_arguments(instance, detach=detach)
    if mask_password:
        args = [
            "POSTGRES_PASSWORD=***" if arg.startswith("POSTGRES_PASSWORD=") else arg
            for arg in args
        ]
    return shlex.join(args)


def render_documentation(instance: DatabaseInstance, *, volume: str = DEFAULT_VOLUME_NAME) -> str:
    """Текст инструкции: эфемерный запуск и закомментированный вариант с томом."""

    ephemeral = instance.without_persistence()
    persistent = instance.with_persistence(instance.volume or volume)
    lines = [
        "# Start the development database",
        render_run_command(ephemeral),
        "",
        f"# Keep data between container restarts by mounting the '{persistent.volume}' volume:",
        f"# {render_run_command(persistent)}",
        "",
        f"# DATABASE_URL={ephemeral.database_url()}",
    ]
    return "\n".join(lines) + "\n"
