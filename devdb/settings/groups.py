"""Классы групп настроек с полной поддержкой валидации."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Tuple

from devdb.settings.exceptions import SettingsNotFoundError, SettingsValidationError
from devdb.settings.validators import (
    CompositeValidator,
    EnumValidator,
    RangeValidator,
    RegexValidator,
    TypeValidator,
    Validator,
)

DOCKER_URL_PATTERN = r"^$|^(unix|tcp|npipe|http|https|ssh)://.+$"
PROFILE_NAME_PATTERN = r"^[A-Za-z0-9][A-Za-z0-9_.-]*$"


def profile_name_validator() -> Validator:
    """Валидатор имени профиля: общий для настроек и ProfileManager."""

    return CompositeValidator(
        [
            TypeValidator(str),
            RegexValidator(
                PROFILE_NAME_PATTERN,
                "profile name (letters, digits, '.', '_', '-'; no leading symbol)",
            ),
        ]
    )


class SettingsGroup(ABC):
    """Абстрактная база для конкретных групп настроек."""

    group_name: str = ""

    def __init__(self) -> None:
        self._defaults: Dict[str, Any] = {}
        self._validators: Dict[str, Validator] = {}
        self._values: Dict[str, Any] = {}
        self._initialize_defaults()
        self._setup_validators()
        self.reset_to_defaults()

    @abstractmethod
    def _initialize_defaults(self) -> None:
        """Задаёт значения по умолчанию для группы."""

    @abstractmethod
    def _setup_validators(self) -> None:
        """Привязывает валидаторы к ключам группы."""

    def keys(self) -> Tuple[str, ...]:
        """Возвращает доступные ключи группы."""

        return tuple(self._defaults.keys())

    def get(self, key: str, default: Any = None) -> Any:
        """Возвращает значение настройки."""

        if key not in self._defaults:
            raise SettingsNotFoundError(self.group_name, key)
        return self._values.get(key, default)

    def validate(self, key: str, value: Any) -> Tuple[bool, str]:
        """Применяет соответствующий валидатор и возвращает результат."""

        validator = self._validators.get(key)
        if not validator:
            return True, ""
        return validator.validate(value)

    def set(self, key: str, value: Any) -> None:
        """Сохраняет значение, выбрасывая ошибку при невалидных данных."""

        if key not in self._defaults:
            raise SettingsNotFoundError(self.group_name, key)
        is_valid, error = self.validate(key, value)
        if not is_valid:
            raise SettingsValidationError(
                key=f"{self.group_name}.{key}",
                value=value,
                reason=error,
            )
        self._values[key] = value

    def to_dict(self) -> Dict[str, Any]:
        """Возвращает копию всех значений."""

        return dict(self._values)

    def get_default(self, key: str) -> Any:
        if key not in self._defaults:
            raise SettingsNotFoundError(self.group_name, key)
        return self._defaults[key]

    def from_dict(self, data: Dict[str, Any]) -> None:
        """Заполняет значениями из словаря (использует set для валидации)."""

        for key, value in data.items():
            if key in self._defaults:
                self.set(key, value)

    def reset_to_defaults(self) -> None:
        """Сбрасывает значения группы к дефолтным."""

        self._values = dict(self._defaults)


class LoggingSettings(SettingsGroup):
    """Настройки логирования приложения."""

    group_name = "logging"

    def _initialize_defaults(self) -> None:
        self._defaults = {
            "enabled": True,
            "level": "INFO",
            "max_file_size_mb": 10,
            "max_archived_files": 5,
        }

    def _setup_validators(self) -> None:
        self._validators = {
            "enabled": TypeValidator(bool),
            "level": EnumValidator(["DEBUG", "INFO", "WARNING", "ERROR"]),
            "max_file_size_mb": RangeValidator(1, 1000),
            "max_archived_files": RangeValidator(1, 50),
        }


class DockerSettings(SettingsGroup):
    """Параметры подключения к Docker daemon.

    Пустой ``base_url`` означает «взять из окружения» (DOCKER_HOST и т.п.).
    """

    group_name = "docker"

    def _initialize_defaults(self) -> None:
        self._defaults = {
            "base_url": "",
            "timeout_sec": 60,
            "pull_missing_images": True,
        }

    def _setup_validators(self) -> None:
        self._validators = {
            "base_url": CompositeValidator(
                [
                    TypeValidator(str),
                    RegexValidator(DOCKER_URL_PATTERN, "Docker URL (unix://, tcp://, ssh:// ...)"),
                ]
            ),
            "timeout_sec": RangeValidator(1, 600),
            "pull_missing_images": TypeValidator(bool),
        }


class ReadinessSettings(SettingsGroup):
    """Ожидание готовности PostgreSQL после старта контейнера."""

    group_name = "readiness"

    def _initialize_defaults(self) -> None:
        self._defaults = {
            "wait_on_up": True,
            "timeout_sec": 30,
            "interval_sec": 1.0,
        }

    def _setup_validators(self) -> None:
        self._validators = {
            "wait_on_up": TypeValidator(bool),
            "timeout_sec": RangeValidator(1, 600),
            "interval_sec": RangeValidator(0.1, 60),
        }


class ProfilesSettings(SettingsGroup):
    """Настройки менеджера профилей."""

    group_name = "profiles"

    def _initialize_defaults(self) -> None:
        self._defaults = {
            "default_profile": "default",
        }

    def _setup_validators(self) -> None:
        self._validators = {
            "default_profile": profile_name_validator(),
        }
