"""Test helpers for building facts snapshots."""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any

import yaml

from bootmedic.core.facts.snapshot import SnapshotFacts
from bootmedic.utils.config import Settings

ESP_GUID = "{c12a7328-f81f-11d2-ba4b-00a0c93ec93b}"
BASIC_DATA_GUID = "{ebd0a0a2-b9e5-4433-87c0-68b6b72699c7}"

LOADER_SIZE = 1_572_864
KERNEL_SIZE = 11_534_336
EFI_LOADER_PATH = "\\Windows\\system32\\winload.efi"

STORE = "S:\\EFI\\Microsoft\\Boot\\BCD"
BOOTMGR = "S:\\EFI\\Microsoft\\Boot\\bootmgfw.efi"
LOADER = "C:\\Windows\\System32\\winload.efi"
KERNEL = "C:\\Windows\\System32\\ntoskrnl.exe"
HIVE = "C:\\Windows\\System32\\config\\SYSTEM"

RECOVERY_SIGNALS: dict[str, Any] = {
    "minint_key_present": True,
    "system_drive": "X:",
    "winpeshl_present": True,
    "edition_id": "WindowsPE",
}

LIVE_SIGNALS: dict[str, Any] = {
    "system_drive": "C:",
    "edition_id": "Professional",
    "installed_os_running": True,
    "explorer_shell_running": True,
    "update_service_running": True,
}

# No re-check delays in tests.
FAST_SETTINGS = Settings(recheck_backoff_seconds=0)


def uefi_snapshot(
    *,
    loader_size: int | None = LOADER_SIZE,
    bcd_loader_path: str = EFI_LOADER_PATH,
    encryption: str = "unlocked",
    second_install: bool = False,
) -> dict[str, Any]:
    """A healthy UEFI/GPT machine booted into WinPE.

    ``loader_size=None`` removes the loader file entirely.
    """
    files: dict[str, Any] = {
        BOOTMGR: 1_500_000,
        STORE: 32_768,
        KERNEL: KERNEL_SIZE,
        HIVE: 20_971_520,
    }
    if loader_size is not None:
        files[LOADER] = loader_size

    partitions: list[dict[str, Any]] = [
        {
            "partition_id": "0-1",
            "type_guid": ESP_GUID,
            "mount_point": "S:",
            "filesystem": "FAT32",
            "health": "Healthy",
            "disk_number": 0,
        },
        {
            "partition_id": "0-3",
            "type_guid": BASIC_DATA_GUID,
            "mount_point": "C:",
            "filesystem": "NTFS",
            "health": "Healthy",
            "disk_number": 0,
        },
    ]
    if second_install:
        partitions.append(
            {
                "partition_id": "1-1",
                "type_guid": BASIC_DATA_GUID,
                "mount_point": "D:",
                "filesystem": "NTFS",
                "disk_number": 1,
            }
        )
        files["D:\\Windows\\System32\\ntoskrnl.exe"] = KERNEL_SIZE
        files["D:\\Windows\\System32\\config\\SYSTEM"] = 20_971_520

    return {
        "firmware": {"firmware_type": "UEFI", "disk_layout": "GPT", "secure_boot": "enabled"},
        "partitions": partitions,
        "files": files,
        "boot_store": {
            STORE: {
                "{default}": {
                    "device_partition": "C:",
                    "os_device_partition": "C:",
                    "loader_path": bcd_loader_path,
                }
            }
        },
        "registry": {
            HIVE: {
                "Select": {"values": {"Current": 1}},
                "ControlSet001\\Services\\stornvme": {"values": {"Start": 0, "Type": 1}},
                "ControlSet001\\Services\\storahci": {"values": {"Start": 3}},
            }
        },
        "encryption": {"C:": encryption},
        "signals": dict(RECOVERY_SIGNALS),
    }


def facts_from(data: dict[str, Any]) -> SnapshotFacts:
    return SnapshotFacts.from_dict(copy.deepcopy(data))


def write_snapshot(path: Path, data: dict[str, Any]) -> Path:
    """Write *data* as a YAML snapshot and return its path."""
    path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
    return path


def write_issue_report(path: Path, source: str, findings: list[dict[str, Any]]) -> Path:
    path.write_text(
        yaml.safe_dump({"source": source, "findings": findings}, sort_keys=False),
        encoding="utf-8",
    )
    return path
