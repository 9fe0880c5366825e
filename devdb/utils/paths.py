"""Централизованное описание путей приложения."""

from __future__ import annotations

import os
from pathlib import Path


def resolve_workspace_dir() -> Path:
    """Возвращает рабочую директорию devdb (~/.devdb или $DEVDB_HOME/.devdb)."""

    home_dir = Path(os.environ.get("DEVDB_HOME", Path.home()))
    return home_dir / ".devdb"
