"""Run settings loaded from ``bootmedic.yaml``."""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from bootmedic.core.errors import SettingsError
from bootmedic.utils.state import root_path

SETTINGS_FILENAME = "bootmedic.yaml"

DEFAULT_STORAGE_DRIVERS = (
    "stornvme",
    "storahci",
    "iaStorV",
    "iaStorAVC",
    "iaStorAC",
    "iaStorA",
    "nvme",
    "storvsc",
    "vmbus",
    "LSI_SAS",
    "megasas",
)


class Settings(BaseModel):
    """Tunables for a diagnosis run."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    encryption_timeout_ms: int = Field(default=5000, gt=0)
    recheck_attempts: int = Field(default=2, ge=0, le=5)
    recheck_backoff_seconds: float = Field(default=0.5, ge=0)
    boot_entry_id: str = "{default}"
    allow_safe_repair: bool = False
    policy_path: str | None = None
    storage_drivers: tuple[str, ...] = DEFAULT_STORAGE_DRIVERS


def load_settings(path: Path | None = None, root: str | Path | None = None) -> Settings:
    """Load settings from *path*, else ``<root>/bootmedic.yaml``, else defaults."""
    candidate = path if path is not None else root_path(root, SETTINGS_FILENAME)
    if not candidate.exists():
        if path is not None:
            raise SettingsError(f"Settings file not found: {path}")
        return Settings()

    try:
        data = yaml.safe_load(candidate.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise SettingsError(f"Invalid YAML in {candidate}: {exc}") from exc
    if not isinstance(data, dict):
        raise SettingsError(f"{candidate} must contain a mapping")

    try:
        return Settings.model_validate(data)
    except ValidationError as exc:
        raise SettingsError(f"Invalid settings in {candidate}: {exc}") from exc
