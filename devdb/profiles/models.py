"""Модель профиля: именованный экземпляр базы с метаданными."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from devdb.database.exceptions import InstanceValidationError
from devdb.database.models import DatabaseInstance

DEFAULT_PROFILE = "default"


@dataclass(slots=True)
class Profile:
    """Профиль, хранящийся в profiles.json."""

    name: str
    instance: DatabaseInstance = field(default_factory=DatabaseInstance)
    comment: str = ""
    created_at: Optional[str] = None
    last_used: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "instance": self.instance.to_dict(),
            "comment": self.comment,
            "created_at": self.created_at,
            "last_used": self.last_used,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Profile":
        name = data.get("name")
        if not isinstance(name, str) or not name:
            raise InstanceValidationError("name", name, "profile name is required")
        return cls(
            name=name,
            instance=DatabaseInstance.from_dict(data.get("instance", {})),
            comment=data.get("comment", ""),
            created_at=data.get("created_at"),
            last_used=data.get("last_used"),
        )
