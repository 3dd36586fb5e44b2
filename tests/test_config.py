"""Tests for settings loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from bootmedic.core.errors import SettingsError
from bootmedic.utils.config import DEFAULT_STORAGE_DRIVERS, Settings, load_settings


def test_defaults_when_no_file(tmp_path: Path) -> None:
    settings = load_settings(root=tmp_path)
    assert settings == Settings()
    assert settings.encryption_timeout_ms == 5000
    assert settings.storage_drivers == DEFAULT_STORAGE_DRIVERS


def test_reads_root_settings(tmp_path: Path) -> None:
    (tmp_path / "bootmedic.yaml").write_text(
        "encryption_timeout_ms: 2000\nstorage_drivers: [stornvme]\n", encoding="utf-8"
    )
    settings = load_settings(root=tmp_path)
    assert settings.encryption_timeout_ms == 2000
    assert settings.storage_drivers == ("stornvme",)


def test_explicit_path_must_exist(tmp_path: Path) -> None:
    with pytest.raises(SettingsError, match="not found"):
        load_settings(tmp_path / "missing.yaml")


def test_unknown_keys_rejected(tmp_path: Path) -> None:
    path = tmp_path / "bootmedic.yaml"
    path.write_text("encryption_timeout: 10\n", encoding="utf-8")
    with pytest.raises(SettingsError):
        load_settings(path)


def test_invalid_yaml(tmp_path: Path) -> None:
    path = tmp_path / "bootmedic.yaml"
    path.write_text("a: [unclosed\n", encoding="utf-8")
    with pytest.raises(SettingsError):
        load_settings(path)
