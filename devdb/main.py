"""Точка входа CLI devdb."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

from devdb import __version__
from devdb.database import probe as probe_module
from devdb.database.exceptions import DevdbDatabaseError
from devdb.database.launcher import DatabaseLauncher
from devdb.database.models import DEFAULT_VOLUME_NAME, DatabaseInstance
from devdb.docker_api.client import DockerClientWrapper
from devdb.docker_api.command import render_documentation, render_run_command
from devdb.docker_api.exceptions import DockerAPIError
from devdb.dotenv_file import write_database_url
from devdb.profiles.manager import ProfileManager
from devdb.profiles.models import Profile
from devdb.settings.exceptions import SettingsError
from devdb.settings.registry import SettingsRegistry
from devdb.utils.logger import configure_logging
from devdb.utils.paths import resolve_workspace_dir

LOGGER = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

Handler = Callable[[argparse.Namespace, "CommandContext"], int]


class CommandContext:
    """Общие объекты для обработчиков команд; Docker client создаётся лениво."""

    def __init__(
        self,
        settings: SettingsRegistry,
        profiles: ProfileManager,
        client_factory: Optional[Callable[[], DockerClientWrapper]] = None,
        probe: Any = probe_module,
    ) -> None:
        self.settings = settings
        self.profiles = profiles
        self.probe = probe
        self._client_factory = client_factory or self._default_client
        self._client: Optional[DockerClientWrapper] = None

    def _default_client(self) -> DockerClientWrapper:
        return DockerClientWrapper(
            self.settings.get_value("docker", "base_url", default=""),
            timeout=int(self.settings.get_value("docker", "timeout_sec", default=60)),
        )

    @property
    def client(self) -> DockerClientWrapper:
        if self._client is None:
            self._client = self._client_factory()
        return self._client

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def launcher(self, profile: str) -> DatabaseLauncher:
        return DatabaseLauncher(
            self.client,
            ready_timeout=float(self.settings.get_value("readiness", "timeout_sec")),
            ready_interval=float(self.settings.get_value("readiness", "interval_sec")),
            pull_missing_images=bool(self.settings.get_value("docker", "pull_missing_images")),
            profile=profile,
            probe=self.probe,
        )


def initialize_settings(config_path: Path) -> SettingsRegistry:
    """Получает singleton реестр настроек и загружает config.json."""

    registry = SettingsRegistry(config_path=config_path)
    registry.load_from_disk()
    return registry


def setup_logging_from_settings(
    base_dir: Path, settings: Any, level_override: Optional[str] = None
) -> None:
    """Настраивает логирование в соответствии с LoggingSettings."""

    logging_settings = settings.get_group("logging")
    if not logging_settings.get("enabled") and level_override is None:
        logging.disable(logging.CRITICAL)
        return

    logging.disable(logging.NOTSET)
    configure_logging(
        log_dir=base_dir / "logs",
        level_name=level_override or logging_settings.get("level", "INFO"),
        max_bytes=logging_settings.get("max_file_size_mb", 10) * 1024 * 1024,
        backup_count=logging_settings.get("max_archived_files", 5),
    )


def initialize_workdir(base_dir: Path) -> bool:
    """Создаёт рабочую структуру (~/.devdb, logs)."""

    try:
        base_dir.mkdir(parents=True, exist_ok=True)
        (base_dir / "logs").mkdir(exist_ok=True)
        return True
    except OSError as exc:
        LOGGER.error("Failed to initialize workspace %s: %s", base_dir, exc)
        return False


# ------------------------------------------------------------------ instances
def resolve_instance(args: argparse.Namespace, context: CommandContext) -> DatabaseInstance:
    """Экземпляр из профиля с учётом флагов --persistent/--volume/--ephemeral."""

    instance = context.profiles.get_profile(args.profile).instance
    volume = getattr(args, "volume", None)
    if volume:
        return instance.with_persistence(volume)
    if getattr(args, "persistent", False):
        return instance.with_persistence(instance.volume or DEFAULT_VOLUME_NAME)
    if getattr(args, "ephemeral", False):
        return instance.without_persistence()
    return instance


# ------------------------------------------------------------------- handlers
def cmd_command(args: argparse.Namespace, context: CommandContext) -> int:
    instance = resolve_instance(args, context)
    print(render_run_command(instance, mask_password=not args.show_password))
    return 0


def cmd_docs(args: argparse.Namespace, context: CommandContext) -> int:
    instance = context.profiles.get_profile(args.profile).instance
    sys.stdout.write(render_documentation(instance))
    return 0


def cmd_up(args: argparse.Namespace, context: CommandContext) -> int:
    instance = resolve_instance(args, context)
    wait = bool(context.settings.get_value("readiness", "wait_on_up")) and not args.no_wait
    result = context.launcher(args.profile).up(instance, replace=args.replace, wait=wait)
    context.profiles.touch(args.profile)
    print(f"{instance.name}: {result.status} ({result.container_id})")
    if result.created_volume:
        print(f"volume {instance.volume} created")
    if result.waited_seconds is not None:
        print(f"ready after {result.waited_seconds:.1f}s")
    print(instance.database_url(mask_password=True))
    return 0


def cmd_down(args: argparse.Namespace, context: CommandContext) -> int:
    instance = resolve_instance(args, context)
    if args.remove_volume and not instance.is_persistent:
        if args.ephemeral:
            raise ValueError("--remove-volume cannot be combined with --ephemeral")
        instance = instance.with_persistence(DEFAULT_VOLUME_NAME)
    removed = context.launcher(args.profile).down(instance, remove_volume=args.remove_volume)
    print(f"{instance.name}: {'removed' if removed else 'absent'}")
    if args.remove_volume:
        print(f"volume {instance.volume} removed")
    return 0


def cmd_status(args: argparse.Namespace, context: CommandContext) -> int:
    instance = resolve_instance(args, context)
    status = context.launcher(args.profile).status(instance)
    if args.json:
        payload: Dict[str, Any] = {
            "container": status.container,
            "ready": status.ready,
            "url": status.url,
            "details": status.details,
        }
        print(json.dumps(payload, indent=2))
        return 0
    print(f"container: {status.container}")
    print(f"ready:     {'yes' if status.ready else 'no'}")
    print(f"url:       {status.url}")
    for key in ("ports", "mounts"):
        for value in status.details.get(key, []):
            print(f"{key[:-1]}:      {value}")
    volume = status.details.get("volume")
    if volume:
        print(f"volume:    {volume['name']} ({volume['driver']}, {volume['mountpoint']})")
    return 0


def cmd_check(args: argparse.Namespace, context: CommandContext) -> int:
    instance = resolve_instance(args, context)
    timeout = args.timeout or float(context.settings.get_value("readiness", "timeout_sec"))
    interval = float(context.settings.get_value("readiness", "interval_sec"))
    context.probe.wait_until_ready(instance, timeout=timeout, interval=interval)
    identity = context.probe.server_identity(instance)
    print(f"database: {identity['database']}")
    print(f"user:     {identity['user']}")
    print(f"server:   {identity['version']}")
    return 0


def cmd_verify_persistence(args: argparse.Namespace, context: CommandContext) -> int:
    instance = resolve_instance(args, context)
    report = context.launcher(args.profile).verify_persistence(instance)
    mode = f"volume {instance.volume}" if report.persistent else "ephemeral"
    print(f"storage:  {mode}")
    print(f"marker:   {'survived' if report.survived else 'lost'} recreation")
    print(f"expected: {'yes' if report.as_expected else 'no'}")
    return 0 if report.as_expected else 1


def cmd_env(args: argparse.Namespace, context: CommandContext) -> int:
    instance = resolve_instance(args, context)
    write_database_url(Path(args.file), instance)
    print(f"DATABASE_URL written to {args.file}")
    return 0


def cmd_profiles(args: argparse.Namespace, context: CommandContext) -> int:
    action = args.profiles_action
    if action == "list":
        for profile in context.profiles.list_profiles():
            instance = profile.instance
            storage = instance.volume or "ephemeral"
            print(f"{profile.name}\t{instance.name}\t{instance.host_port}\t{storage}")
        return 0
    if action == "show":
        profile = context.profiles.get_profile(args.name)
        data = profile.to_dict()
        data["instance"]["password"] = "***"
        print(json.dumps(data, indent=2))
        return 0
    if action == "add":
        instance = DatabaseInstance.from_dict(_instance_overrides(args))
        profile = Profile(name=args.name, instance=instance, comment=args.comment)
        context.profiles.add_profile(profile)
        print(f"profile {args.name} added")
        return 0
    if action == "remove":
        context.profiles.delete_profile(args.name)
        print(f"profile {args.name} removed")
        return 0
    raise ValueError(f"Unknown profiles action: {action}")


def _instance_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    mapping = {
        "container": "name",
        "password": "password",
        "user": "user",
        "database": "database",
        "port": "host_port",
        "image": "image",
        "volume": "volume",
    }
    data: Dict[str, Any] = {}
    for option, field_name in mapping.items():
        value = getattr(args, option, None)
        if value is not None:
            data[field_name] = value
    return data


# --------------------------------------------------------------------- parser
def _add_storage_flags(parser: argparse.ArgumentParser) -> None:
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "--persistent",
        action="store_true",
        help=f"mount a named volume (default '{DEFAULT_VOLUME_NAME}') on the data directory",
    )
    group.add_argument("--volume", help="mount the given named volume on the data directory")
    group.add_argument(
        "--ephemeral",
        action="store_true",
        help="ignore the profile volume and keep data inside the container",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="devdb",
        description="Run the local PostgreSQL development database in Docker.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--profile", default=None, help="profile name (default from config)")
    parser.add_argument("--log-level", choices=LOG_LEVELS, default=None)
    subparsers = parser.add_subparsers(dest="command", required=True)

    command = subparsers.add_parser("command", help="print the docker run command")
    _add_storage_flags(command)
    command.add_argument("--show-password", action="store_true")
    command.set_defaults(handler=cmd_command)

    docs = subparsers.add_parser("docs", help="print the setup instructions")
    docs.set_defaults(handler=cmd_docs)

    up = subparsers.add_parser("up", help="create or start the database container")
    _add_storage_flags(up)
    up.add_argument("--replace", action="store_true", help="recreate an existing container")
    up.add_argument("--no-wait", action="store_true", help="do not wait for readiness")
    up.set_defaults(handler=cmd_up)

    down = subparsers.add_parser("down", help="stop and remove the database container")
    _add_storage_flags(down)
    down.add_argument(
        "--remove-volume",
        action="store_true",
        help=f"also delete the named volume (default '{DEFAULT_VOLUME_NAME}')",
    )
    down.set_defaults(handler=cmd_down)

    status = subparsers.add_parser("status", help="show container state and readiness")
    _add_storage_flags(status)
    status.add_argument("--json", action="store_true")
    status.set_defaults(handler=cmd_status)

    check = subparsers.add_parser("check", help="wait for the server and print its identity")
    check.add_argument("--timeout", type=float, default=None)
    check.set_defaults(handler=cmd_check)

    verify = subparsers.add_parser(
        "verify-persistence", help="check whether data survives container recreation"
    )
    _add_storage_flags(verify)
    verify.set_defaults(handler=cmd_verify_persistence)

    env = subparsers.add_parser("env", help="write DATABASE_URL to a dotenv file")
    env.add_argument("--file", default=".env")
    env.set_defaults(handler=cmd_env)

    profiles = subparsers.add_parser("profiles", help="manage database profiles")
    profile_actions = profiles.add_subparsers(dest="profiles_action", required=True)
    profile_actions.add_parser("list")
    show = profile_actions.add_parser("show")
    show.add_argument("name")
    add = profile_actions.add_parser("add")
    add.add_argument("name")
    add.add_argument("--container", help="container name")
    add.add_argument("--password")
    add.add_argument("--user")
    add.add_argument("--database")
    add.add_argument("--port", type=int)
    add.add_argument("--image")
    add.add_argument("--volume")
    add.add_argument("--comment", default="")
    remove = profile_actions.add_parser("remove")
    remove.add_argument("name")
    profiles.set_defaults(handler=cmd_profiles)

    return parser


def run(
    argv: Optional[Sequence[str]],
    context: CommandContext,
) -> int:
    """Разбирает аргументы и выполняет команду, переводя ошибки в код возврата."""

    parser = build_parser()
    args = parser.parse_args(argv)
    if args.profile is None:
        args.profile = context.settings.get_value("profiles", "default_profile")
    handler: Handler = args.handler
    try:
        return handler(args, context)
    except (DockerAPIError, DevdbDatabaseError, SettingsError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except (KeyError, ValueError) as exc:
        message = exc.args[0] if exc.args else str(exc)
        print(f"error: {message}", file=sys.stderr)
        return 1
    finally:
        context.close()


def main(argv: Optional[List[str]] = None) -> int:
    """Основная точка входа: готовит окружение и выполняет команду."""

    base_dir = resolve_workspace_dir()
    if not initialize_workdir(base_dir):
        return 1

    try:
        settings = initialize_settings(base_dir / "config.json")
    except SettingsError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    level_override = _peek_log_level(argv if argv is not None else sys.argv[1:])
    setup_logging_from_settings(base_dir, settings, level_override)

    try:
        profiles = ProfileManager(base_dir / "profiles.json")
    except (DevdbDatabaseError, ValueError) as exc:
        print(f"error: cannot load profiles: {exc}", file=sys.stderr)
        return 1
    LOGGER.debug("devdb %s, workspace %s", __version__, base_dir)
    return run(argv, CommandContext(settings, profiles))


def _peek_log_level(argv: Sequence[str]) -> Optional[str]:
    """Достаёт --log-level до полного разбора, чтобы логирование было готово заранее."""

    level: Optional[str] = None
    for index, value in enumerate(argv):
        if value == "--log-level" and index + 1 < len(argv):
            level = argv[index + 1]
        elif value.startswith("--log-level="):
            level = value.split("=", 1)[1]
    return level if level in LOG_LEVELS else None


if __name__ == "__main__":
    sys.exit(main())
