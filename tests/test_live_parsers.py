"""Tests for the tool-output parsers behind the live fact source."""

from __future__ import annotations

import json
import subprocess

import pytest

from bootmedic.core.errors import ProbeExecutionError
from bootmedic.core.facts.live import (
    LiveFacts,
    SubprocessExecutor,
    parse_bcdedit_entry,
    parse_lock_status,
    parse_partitions_json,
    parse_ramdisk_boot,
    parse_reg_query,
)
from bootmedic.models.facts import EncryptionLock

BCDEDIT_OUTPUT = """\
Windows Boot Loader
-------------------
identifier              {default}
device                  partition=C:
path                    \\Windows\\system32\\winload.efi
description             Windows 11
locale                  en-US
osdevice                partition=C:
systemroot              \\Windows
"""

REG_OUTPUT = """\

HKEY_LOCAL_MACHINE\\BOOTMEDIC_OFFLINE\\ControlSet001\\Services\\stornvme
    Start    REG_DWORD    0x0
    Type    REG_DWORD    0x1
    ImagePath    REG_EXPAND_SZ    \\SystemRoot\\System32\\drivers\\stornvme.sys
    Group    REG_SZ
    DependOnService    REG_MULTI_SZ    a\\0b

HKEY_LOCAL_MACHINE\\BOOTMEDIC_OFFLINE\\ControlSet001\\Services\\stornvme\\Parameters
HKEY_LOCAL_MACHINE\\BOOTMEDIC_OFFLINE\\ControlSet001\\Services\\stornvme\\StartOverride
"""

MANAGE_BDE_OUTPUT = """\
BitLocker Drive Encryption: Configuration Tool version 10.0.22621
Volume C: [OS]
[OS Volume]

    Size:                 475.83 GB
    BitLocker Version:    2.0
    Conversion Status:    Used Space Only Encrypted
    Lock Status:          Locked
"""


class TestBcdedit:
    def test_parses_default_entry(self) -> None:
        entry = parse_bcdedit_entry(BCDEDIT_OUTPUT)
        assert entry.device_partition == "C:"
        assert entry.os_device_partition == "C:"
        assert entry.loader_path == "\\Windows\\system32\\winload.efi"

    def test_unknown_device(self) -> None:
        entry = parse_bcdedit_entry("device                  unknown\n")
        assert entry.device_partition == "unknown"
        assert entry.loader_path is None


class TestRamdiskBoot:
    def test_winpe_boots_from_ramdisk(self) -> None:
        text = "identifier              {current}\ndevice                  ramdisk=[X:]\\sources\\boot.wim,{7619dcc8-fafe-11d9-b411-000476eba25f}\n"
        assert parse_ramdisk_boot(text) is True

    def test_installed_os(self) -> None:
        assert parse_ramdisk_boot(BCDEDIT_OUTPUT) is False

    def test_no_device_line(self) -> None:
        assert parse_ramdisk_boot("The boot configuration data store could not be opened.") is None

    def test_live_facts_reports_ramdisk_signal(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def fake_run(argv: list[str], **kwargs: object) -> subprocess.CompletedProcess[str]:
            stdout = "device                  ramdisk=[X:]\\sources\\boot.wim\n" if argv[0] == "bcdedit" else ""
            return subprocess.CompletedProcess(argv, 0, stdout=stdout, stderr="")

        monkeypatch.setattr(subprocess, "run", fake_run)
        monkeypatch.delenv("SystemRoot", raising=False)
        monkeypatch.delenv("SystemDrive", raising=False)
        assert LiveFacts().signals().ramdisk_boot is True


class TestRegQuery:
    def test_values_and_subkeys(self) -> None:
        key = parse_reg_query(REG_OUTPUT, "HKLM\\BOOTMEDIC_OFFLINE\\ControlSet001\\Services\\stornvme")
        assert key.values["Start"] == 0
        assert key.values["Type"] == 1
        assert key.values["Group"] == ""
        assert key.values["DependOnService"] == ["a", "b"]
        assert key.subkeys == ("Parameters", "StartOverride")


class TestLockStatus:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            (MANAGE_BDE_OUTPUT, EncryptionLock.LOCKED),
            ("    Lock Status:          Unlocked\n", EncryptionLock.UNLOCKED),
            ("ERROR: An error occurred (code 0x80310000)", EncryptionLock.UNKNOWN),
        ],
    )
    def test_lock_status(self, text: str, expected: EncryptionLock) -> None:
        assert parse_lock_status(text) == expected


class TestPartitions:
    def test_single_object_and_list(self) -> None:
        single = {
            "DiskNumber": 0,
            "PartitionNumber": 1,
            "GptType": "{c12a7328-f81f-11d2-ba4b-00a0c93ec93b}",
            "DriveLetter": "",
            "IsActive": False,
            "FileSystem": "FAT32",
            "HealthStatus": "Healthy",
        }
        parts = parse_partitions_json(json.dumps(single))
        assert len(parts) == 1
        assert parts[0].is_esp
        assert parts[0].mount_point is None
        assert parts[0].partition_id == "0-1"

        second = dict(single, PartitionNumber=3, GptType=None, DriveLetter="C", FileSystem="NTFS")
        parts = parse_partitions_json(json.dumps([single, second]))
        assert [p.mount_point for p in parts] == [None, "C:"]

    def test_empty_output(self) -> None:
        assert parse_partitions_json("  ") == []

    def test_garbage_is_operational_error(self) -> None:
        with pytest.raises(ProbeExecutionError):
            parse_partitions_json("Get-Partition : Access denied")


class TestSubprocessExecutor:
    def test_missing_tool(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def fake_run(*args: object, **kwargs: object) -> None:
            raise FileNotFoundError

        monkeypatch.setattr(subprocess, "run", fake_run)
        result = SubprocessExecutor().execute(["bootrec", "/fixboot"])
        assert result.exit_code == 127

    def test_captures_output(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def fake_run(argv: list[str], **kwargs: object) -> subprocess.CompletedProcess[str]:
            return subprocess.CompletedProcess(argv, 0, stdout="done\n", stderr="")

        monkeypatch.setattr(subprocess, "run", fake_run)
        result = SubprocessExecutor(timeout_s=5).execute(["bcdedit", "/export", "C:\\bcd"])
        assert result.exit_code == 0
        assert result.stdout == "done\n"
