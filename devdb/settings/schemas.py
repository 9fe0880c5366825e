"""Дефолтная схема config.json."""

from __future__ import annotations

from typing import Any, Dict

# DEFAULT_CONFIG служит шаблоном для начального config.json
DEFAULT_CONFIG: Dict[str, Any] = {
    "version": "1.0.0",
    "schema_version": 1,
    "logging": {
        "enabled": True,
        "level": "INFO",
        "max_file_size_mb": 10,
        "max_archived_files": 5,
    },
    "docker": {
        "base_url": "",
        "timeout_sec": 60,
        "pull_missing_images": True,
    },
    "readiness": {
        "wait_on_up": True,
        "timeout_sec": 30,
        "interval_sec": 1.0,
    },
    "profiles": {
        "default_profile": "default",
    },
}
