"""Тесты SettingsRegistry."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from devdb.settings.exceptions import (
    SettingsIOError,
    SettingsNotFoundError,
    SettingsValidationError,
)
from devdb.settings.registry import SettingsRegistry


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    return tmp_path / "config.json"


@pytest.fixture
def registry(fresh_registry: SettingsRegistry) -> SettingsRegistry:
    return fresh_registry


def test_singleton_instance(registry: SettingsRegistry) -> None:
    another = SettingsRegistry()
    assert registry is another


def test_get_and_set_value(registry: SettingsRegistry) -> None:
    registry.set_value("readiness", "timeout_sec", 60)
    assert registry.get_value("readiness", "timeout_sec") == 60
    assert registry.is_dirty


def test_get_value_with_default(registry: SettingsRegistry) -> None:
    assert registry.get_value("docker", "unknown", default="fallback") == "fallback"


def test_set_value_invalid_raises(registry: SettingsRegistry) -> None:
    with pytest.raises(SettingsValidationError):
        registry.set_value("docker", "timeout_sec", 0)


def test_unknown_group_raises(registry: SettingsRegistry) -> None:
    with pytest.raises(SettingsNotFoundError):
        registry.get_value("theme", "key")


def test_save_and_load_persists_data(config_path: Path, registry: SettingsRegistry) -> None:
    registry.set_value("docker", "base_url", "tcp://127.0.0.1:2375")
    registry.save_to_disk()

    SettingsRegistry._instance = None  # type: ignore[attr-defined]
    loaded = SettingsRegistry(config_path)
    loaded.load_from_disk()
    assert loaded.get_value("docker", "base_url") == "tcp://127.0.0.1:2375"
    assert json.loads(config_path.read_text(encoding="utf-8"))["version"] == "1.0.0"


def test_load_creates_defaults_if_missing(config_path: Path, registry: SettingsRegistry) -> None:
    registry.load_from_disk()
    assert config_path.exists()
    content = json.loads(config_path.read_text(encoding="utf-8"))
    assert content["profiles"]["default_profile"] == "default"


def test_load_merges_partial_file(config_path: Path, registry: SettingsRegistry) -> None:
    config_path.write_text(json.dumps({"readiness": {"timeout_sec": 90}}), encoding="utf-8")
    registry.load_from_disk()
    assert registry.get_value("readiness", "timeout_sec") == 90
    assert registry.get_value("readiness", "interval_sec") == 1.0


def test_load_invalid_json_raises(config_path: Path, registry: SettingsRegistry) -> None:
    config_path.write_text("{not json", encoding="utf-8")
    with pytest.raises(SettingsIOError):
        registry.load_from_disk()


def test_load_invalid_value_raises(config_path: Path, registry: SettingsRegistry) -> None:
    config_path.write_text(json.dumps({"logging": {"level": "LOUD"}}), encoding="utf-8")
    with pytest.raises(SettingsValidationError):
        registry.load_from_disk()
