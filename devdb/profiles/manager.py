"""Менеджер профилей: загрузка, CRUD и сохранение profiles.json."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Dict, List

from devdb.profiles.models import DEFAULT_PROFILE, Profile
from devdb.settings.groups import profile_name_validator

_NAME_VALIDATOR = profile_name_validator()


class ProfileManager:
    """Работает со списком профилей. Профиль ``default`` существует всегда."""

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path
        self._logger = logging.getLogger(__name__)
        self._profiles: Dict[str, Profile] = {}
        self.load_from_disk()

    # ------------------------------------------------------------------ CRUD --
    def list_profiles(self) -> List[Profile]:
        return list(self._profiles.values())

    def get_profile(self, name: str) -> Profile:
        """Ищет профиль по имени."""

        try:
            return self._profiles[name]
        except KeyError:
            raise KeyError(f"Profile '{name}' not found") from None

    def add_profile(self, profile: Profile) -> None:
        is_valid, error = _NAME_VALIDATOR.validate(profile.name)
        if not is_valid:
            raise ValueError(f"Invalid profile name: {error}")
        if profile.name in self._profiles:
            raise ValueError(f"Profile '{profile.name}' already exists")
        if profile.created_at is None:
            profile.created_at = _now()
        self._profiles[profile.name] = profile
        self.save_to_disk()
        self._logger.info("Profile %s added", profile.name)

    def update_profile(self, profile: Profile) -> None:
        if profile.name not in self._profiles:
            raise KeyError(f"Profile '{profile.name}' not found")
        self._profiles[profile.name] = profile
        self.save_to_disk()

    def delete_profile(self, name: str) -> None:
        """Удаляет профиль, если он существует. ``default`` удалить нельзя."""

        if name == DEFAULT_PROFILE:
            raise ValueError("The default profile cannot be deleted")
        if name in self._profiles:
            self._profiles.pop(name)
            self.save_to_disk()
            self._logger.info("Profile %s deleted", name)

    def touch(self, name: str) -> None:
        """Отмечает время последнего использования профиля."""

        profile = self.get_profile(name)
        profile.last_used = _now()
        self.save_to_disk()

    # ------------------------------------------------------------- persistence --
    def load_from_disk(self) -> None:
        """Загружает profiles.json, создаёт файл с профилем default при отсутствии."""

        loaded: Dict[str, Profile] = {}
        if self._file_path.exists():
            content: Dict[str, Any] = json.loads(self._file_path.read_text(encoding="utf-8"))
            for entry in content.get("profiles", []):
                profile = Profile.from_dict(entry)
                loaded[profile.name] = profile
        self._profiles = loaded
        if DEFAULT_PROFILE not in self._profiles:
            self._profiles[DEFAULT_PROFILE] = Profile(
                name=DEFAULT_PROFILE,
                comment="Documented development database",
                created_at=_now(),
            )
            self.save_to_disk()

    def save_to_disk(self) -> None:
        payload = {
            "profiles": [profile.to_dict() for profile in self._profiles.values()],
        }
        self._file_path.parent.mkdir(parents=True, exist_ok=True)
        self._file_path.write_text(
            json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8"
        )


def _now() -> str:
    return datetime.now(UTC).isoformat()
