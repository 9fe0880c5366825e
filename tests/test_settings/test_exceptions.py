"""Тесты пользовательских исключений подсистемы настроек."""

from __future__ import annotations

from pathlib import Path

import pytest

from devdb.settings.exceptions import (
    SettingsIOError,
    SettingsNotFoundError,
    SettingsValidationError,
)


class TestSettingsNotFoundError:
    """Проверяет формирование сообщений для отсутствующих ключей."""

    def test_error_message_and_logging(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level("ERROR")
        error = SettingsNotFoundError("docker", "base_url")
        assert str(error) == "Setting 'docker.base_url' not found"
        assert "docker.base_url" in caplog.text

    def test_group_only(self) -> None:
        assert str(SettingsNotFoundError("theme")) == "Setting 'theme' not found"


class TestSettingsValidationError:
    def test_contains_reason_and_value(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level("ERROR")
        error = SettingsValidationError("logging.level", "INVALID", "unknown level")
        assert error.key == "logging.level"
        assert error.value == "INVALID"
        assert error.reason == "unknown level"
        assert "unknown level" in str(error)
        assert "INVALID" in caplog.text


class TestSettingsIOError:
    def test_contains_path(self, tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level("ERROR")
        fake_path = tmp_path / "config.json"
        error = SettingsIOError(fake_path, "permission denied")
        assert str(fake_path) in str(error)
        assert error.context["path"] == str(fake_path)
        assert "permission denied" in caplog.text
