"""Shared test fixtures for the BootMedic test suite."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from bootmedic.core.facts.snapshot import SnapshotFacts
from bootmedic.models.boot import BootEnvironment, OSInstallation
from tests.helpers import facts_from, uefi_snapshot, write_snapshot


@pytest.fixture
def healthy_data() -> dict[str, Any]:
    """Snapshot data for a healthy UEFI machine (Scenario A)."""
    return uefi_snapshot()


@pytest.fixture
def healthy_facts(healthy_data: dict[str, Any]) -> SnapshotFacts:
    return facts_from(healthy_data)


@pytest.fixture
def healthy_snapshot(tmp_path: Path, healthy_data: dict[str, Any]) -> Path:
    """Healthy snapshot written to disk; returns the YAML path."""
    return write_snapshot(tmp_path / "snapshot.yaml", healthy_data)


def make_env(facts: SnapshotFacts) -> BootEnvironment:
    """Build the BootEnvironment for *facts*.

    Module-level so tests can import it directly:

        from tests.conftest import make_env
    """
    from bootmedic.core.diagnose.discovery import detect_environment

    return detect_environment(facts)


def make_install(drive: str = "C:") -> OSInstallation:
    return OSInstallation(
        drive_id=drive,
        windows_path=f"{drive}\\Windows",
        system_hive_path=f"{drive}\\Windows\\System32\\config\\SYSTEM",
    )
