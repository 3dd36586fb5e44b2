"""Live Windows fact source.

Shells out to bcdedit, reg, manage-bde, and PowerShell. All parsing of raw
tool output lives in this module; callers only see typed models.
"""

from __future__ import annotations

import json
import logging
import os
import re
import subprocess
from pathlib import Path

from bootmedic.core.errors import BootStoreReadError, ProbeExecutionError
from bootmedic.models.boot import DiskLayout, FirmwareType, SecureBootState
from bootmedic.models.decision import EnvironmentSignals
from bootmedic.models.facts import (
    BootEntry,
    CommandResult,
    EncryptionLock,
    FileFacts,
    FirmwareFacts,
    PartitionInfo,
    RegistryKey,
    RegistryLookup,
)

logger = logging.getLogger(__name__)

OFFLINE_HIVE_MOUNT = "HKLM\\BOOTMEDIC_OFFLINE"
DEFAULT_TOOL_TIMEOUT_S = 30

_PARTITIONS_PS = (
    "Get-Partition | ForEach-Object { $v = Get-Volume -Partition $_ -ErrorAction SilentlyContinue; "
    "[pscustomobject]@{DiskNumber=$_.DiskNumber; PartitionNumber=$_.PartitionNumber; "
    "GptType=$_.GptType; DriveLetter=[string]$_.DriveLetter; IsActive=$_.IsActive; "
    "FileSystem=$v.FileSystem; HealthStatus=[string]$v.HealthStatus} } | ConvertTo-Json -Compress"
)
_DISKS_PS = "Get-Disk | Select-Object Number,PartitionStyle | ConvertTo-Json -Compress"

_BCD_FIELD_RE = re.compile(r"^(?P<key>[A-Za-z]+)\s+(?P<value>.+?)\s*$")
_REG_VALUE_RE = re.compile(r"^\s{4}(?P<name>.+?)\s{4}(?P<type>REG_[A-Z_]+)(?:\s{4}(?P<data>.*))?$")
_HIVE_ABBREVIATIONS = {"HKLM": "HKEY_LOCAL_MACHINE", "HKCU": "HKEY_CURRENT_USER"}
_LOCK_STATUS_RE = re.compile(r"Lock Status:\s*(?P<status>\w+)", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Parsers
# ---------------------------------------------------------------------------


def _partition_ref(value: str | None) -> str | None:
    """'partition=C:' -> 'C:'; anything else is returned as-is."""
    if value is None:
        return None
    value = value.strip()
    if value.lower().startswith("partition="):
        return value.split("=", 1)[1].strip()
    return value


def parse_bcdedit_entry(text: str) -> BootEntry:
    """Extract device, osdevice, and path from ``bcdedit /enum`` output."""
    fields: dict[str, str] = {}
    for line in text.splitlines():
        match = _BCD_FIELD_RE.match(line.strip())
        if match:
            fields.setdefault(match.group("key").lower(), match.group("value"))
    return BootEntry(
        device_partition=_partition_ref(fields.get("device")),
        os_device_partition=_partition_ref(fields.get("osdevice")),
        loader_path=fields.get("path"),
    )


def parse_ramdisk_boot(text: str) -> bool | None:
    """True when the running entry boots from a ramdisk (WinPE / WinRE boot.wim)."""
    device = parse_bcdedit_entry(text).device_partition
    if device is None:
        return None
    return device.lower().startswith("ramdisk=")


def _reg_data(reg_type: str, data: str) -> object:
    data = data.strip()
    if reg_type in ("REG_DWORD", "REG_QWORD"):
        try:
            return int(data, 16) if data.lower().startswith("0x") else int(data)
        except ValueError:
            return data
    if reg_type == "REG_MULTI_SZ":
        return [part for part in data.split("\\0") if part]
    return data


def parse_reg_query(text: str, key_path: str) -> RegistryKey:
    """Parse ``reg query <key>`` output into values and direct subkey names."""
    values: dict[str, object] = {}
    subkeys: list[str] = []
    root, _, rest = key_path.rstrip("\\").partition("\\")
    full_key = f"{_HIVE_ABBREVIATIONS.get(root.upper(), root)}\\{rest}" if rest else root
    prefix = full_key.lower() + "\\"
    for line in text.splitlines():
        value_match = _REG_VALUE_RE.match(line)
        if value_match:
            values[value_match.group("name").strip()] = _reg_data(
                value_match.group("type"), value_match.group("data") or ""
            )
            continue
        stripped = line.strip()
        if stripped.lower().startswith(prefix):
            subkeys.append(stripped[len(prefix):].split("\\", 1)[0])
    return RegistryKey(values=values, subkeys=tuple(subkeys))


def parse_lock_status(text: str) -> EncryptionLock:
    match = _LOCK_STATUS_RE.search(text)
    if not match:
        return EncryptionLock.UNKNOWN
    status = match.group("status").lower()
    if status == "locked":
        return EncryptionLock.LOCKED
    if status == "unlocked":
        return EncryptionLock.UNLOCKED
    return EncryptionLock.UNKNOWN


def _as_list(payload: object) -> list[dict[str, object]]:
    if isinstance(payload, dict):
        return [payload]
    if isinstance(payload, list):
        return [p for p in payload if isinstance(p, dict)]
    return []


def parse_partitions_json(text: str) -> list[PartitionInfo]:
    """Parse the PowerShell partition listing emitted by ``_PARTITIONS_PS``."""
    if not text.strip():
        return []
    try:
        rows = _as_list(json.loads(text))
    except json.JSONDecodeError as exc:
        raise ProbeExecutionError(f"unparseable partition listing: {exc}") from exc

    partitions: list[PartitionInfo] = []
    for row in rows:
        letter = str(row.get("DriveLetter") or "").strip("\x00 ")
        partitions.append(
            PartitionInfo(
                partition_id=f"{row.get('DiskNumber')}-{row.get('PartitionNumber')}",
                type_guid=(str(row["GptType"]) if row.get("GptType") else None),
                mount_point=f"{letter}:" if letter else None,
                filesystem=(str(row["FileSystem"]) if row.get("FileSystem") else None),
                health=(str(row["HealthStatus"]) if row.get("HealthStatus") else None),
                disk_number=row.get("DiskNumber") if isinstance(row.get("DiskNumber"), int) else None,
                is_active=bool(row.get("IsActive")),
            )
        )
    return partitions


# ---------------------------------------------------------------------------
# Fact source
# ---------------------------------------------------------------------------


class LiveFacts:
    """Fact source backed by the running Windows / WinPE instance.

    Offline hives are loaded under ``OFFLINE_HIVE_MOUNT`` on first use and
    unloaded by ``close()``.
    """

    def __init__(self, *, tool_timeout_s: float = DEFAULT_TOOL_TIMEOUT_S) -> None:
        self._tool_timeout_s = tool_timeout_s
        self._loaded_hive: str | None = None
        self._partitions: list[PartitionInfo] | None = None

    def __enter__(self) -> LiveFacts:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        if self._loaded_hive is not None:
            self._run(["reg", "unload", OFFLINE_HIVE_MOUNT])
            self._loaded_hive = None

    def _run(self, argv: list[str], *, timeout_s: float | None = None) -> subprocess.CompletedProcess[str]:
        try:
            return subprocess.run(
                argv,
                capture_output=True,
                text=True,
                check=False,
                timeout=timeout_s or self._tool_timeout_s,
            )
        except FileNotFoundError as exc:
            raise ProbeExecutionError(f"{argv[0]} is not available") from exc

    def _powershell(self, script: str) -> str:
        try:
            proc = self._run(["powershell", "-NoProfile", "-NonInteractive", "-Command", script])
        except subprocess.TimeoutExpired as exc:
            raise ProbeExecutionError(f"powershell timed out after {exc.timeout}s") from exc
        if proc.returncode != 0:
            raise ProbeExecutionError(f"powershell failed: {proc.stderr.strip()}")
        return proc.stdout

    # -- FileSystemProbe ------------------------------------------------

    def stat(self, path: str) -> FileFacts:
        try:
            st = os.stat(path)
        except (FileNotFoundError, NotADirectoryError):
            return FileFacts(exists=False)
        except PermissionError:
            return FileFacts(exists=True, readable=False)
        except OSError as exc:
            raise ProbeExecutionError(f"cannot stat {path}: {exc}") from exc
        return FileFacts(exists=True, size_bytes=st.st_size, readable=os.access(path, os.R_OK))

    # -- PartitionTableProbe --------------------------------------------

    def partitions(self) -> list[PartitionInfo]:
        if self._partitions is None:
            self._partitions = parse_partitions_json(self._powershell(_PARTITIONS_PS))
        return list(self._partitions)

    # -- BootStoreReader ------------------------------------------------

    def read_entry(self, store_path: str, entry_id: str) -> BootEntry:
        try:
            proc = self._run(["bcdedit", "/store", store_path, "/enum", entry_id])
        except (ProbeExecutionError, subprocess.TimeoutExpired) as exc:
            raise BootStoreReadError(store_path, str(exc)) from exc
        if proc.returncode != 0:
            raise BootStoreReadError(store_path, (proc.stderr or proc.stdout).strip())
        return parse_bcdedit_entry(proc.stdout)

    # -- RegistryHiveReader ---------------------------------------------

    def _mount(self, hive_path: str) -> None:
        if self._loaded_hive == hive_path:
            return
        self.close()
        proc = self._run(["reg", "load", OFFLINE_HIVE_MOUNT, hive_path])
        if proc.returncode != 0:
            raise ProbeExecutionError(f"cannot load hive {hive_path}: {proc.stderr.strip()}")
        self._loaded_hive = hive_path

    def read_key(self, hive_path: str, key_path: str) -> RegistryKey | RegistryLookup:
        self._mount(hive_path)
        full_key = f"{OFFLINE_HIVE_MOUNT}\\{key_path}"
        proc = self._run(["reg", "query", full_key])
        if proc.returncode != 0:
            message = (proc.stderr or proc.stdout).lower()
            if "access is denied" in message:
                return RegistryLookup.ACCESS_DENIED
            return RegistryLookup.NOT_FOUND
        return parse_reg_query(proc.stdout, full_key)

    # -- EncryptionStatusProbe ------------------------------------------

    def status(self, volume_id: str, timeout_ms: int) -> EncryptionLock:
        try:
            proc = self._run(["manage-bde", "-status", volume_id], timeout_s=timeout_ms / 1000)
        except subprocess.TimeoutExpired:
            logger.warning("manage-bde timed out for %s", volume_id)
            return EncryptionLock.UNKNOWN
        except ProbeExecutionError as exc:
            logger.warning("%s", exc)
            return EncryptionLock.UNKNOWN
        return parse_lock_status(proc.stdout)

    # -- EnvironmentProbe -----------------------------------------------

    def _reg_value(self, key: str, name: str) -> str | None:
        try:
            proc = self._run(["reg", "query", key, "/v", name])
        except (ProbeExecutionError, subprocess.TimeoutExpired):
            return None
        if proc.returncode != 0:
            return None
        parsed = parse_reg_query(proc.stdout, key)
        value = parsed.values.get(name)
        return None if value is None else str(value)

    def _key_exists(self, key: str) -> bool | None:
        try:
            return self._run(["reg", "query", key]).returncode == 0
        except (ProbeExecutionError, subprocess.TimeoutExpired):
            return None

    def _process_running(self, image: str) -> bool | None:
        try:
            proc = self._run(["tasklist", "/FI", f"IMAGENAME eq {image}", "/NH"])
        except (ProbeExecutionError, subprocess.TimeoutExpired):
            return None
        return image.lower() in proc.stdout.lower()

    def _ramdisk_boot(self) -> bool | None:
        try:
            proc = self._run(["bcdedit", "/enum", "{current}"])
        except (ProbeExecutionError, subprocess.TimeoutExpired):
            return None
        if proc.returncode != 0:
            return None
        return parse_ramdisk_boot(proc.stdout)

    def _service_running(self, name: str) -> bool | None:
        try:
            proc = self._run(["sc", "query", name])
        except (ProbeExecutionError, subprocess.TimeoutExpired):
            return None
        if proc.returncode != 0:
            return False
        return "RUNNING" in proc.stdout

    def signals(self) -> EnvironmentSignals:
        system_drive = os.environ.get("SystemDrive")
        system_root = os.environ.get("SystemRoot")
        winpeshl = Path(system_root, "System32", "winpeshl.ini").exists() if system_root else None
        pagefile = Path(f"{system_drive}\\pagefile.sys").exists() if system_drive else None
        return EnvironmentSignals(
            minint_key_present=self._key_exists("HKLM\\SYSTEM\\CurrentControlSet\\Control\\MiniNT"),
            system_drive=system_drive,
            winpeshl_present=winpeshl,
            edition_id=self._reg_value("HKLM\\SOFTWARE\\Microsoft\\Windows NT\\CurrentVersion", "EditionID"),
            installed_os_running=pagefile,
            explorer_shell_running=self._process_running("explorer.exe"),
            update_service_running=self._service_running("wuauserv"),
            ramdisk_boot=self._ramdisk_boot(),
        )

    def firmware(self) -> FirmwareFacts:
        raw_type = os.environ.get("firmware_type", "").lower()
        firmware_type = {
            "uefi": FirmwareType.UEFI,
            "legacy": FirmwareType.LEGACY_BIOS,
        }.get(raw_type, FirmwareType.UNKNOWN)

        layout = DiskLayout.UNKNOWN
        try:
            disks = _as_list(json.loads(self._powershell(_DISKS_PS) or "null"))
        except (ProbeExecutionError, json.JSONDecodeError) as exc:
            logger.warning("disk layout unavailable: %s", exc)
            disks = []
        esp_disk = next((p.disk_number for p in self.partitions() if p.is_esp), None) if disks else None
        for disk in disks:
            if esp_disk is None or disk.get("Number") == esp_disk:
                style = str(disk.get("PartitionStyle", "")).upper()
                layout = {"GPT": DiskLayout.GPT, "MBR": DiskLayout.MBR}.get(style, DiskLayout.UNKNOWN)
                break

        secure_boot = SecureBootState.UNKNOWN
        if firmware_type == FirmwareType.UEFI:
            try:
                answer = self._powershell("Confirm-SecureBootUEFI").strip().lower()
            except ProbeExecutionError:
                answer = ""
            secure_boot = {
                "true": SecureBootState.ENABLED,
                "false": SecureBootState.DISABLED,
            }.get(answer, SecureBootState.UNKNOWN)

        return FirmwareFacts(firmware_type=firmware_type, disk_layout=layout, secure_boot=secure_boot)


class SubprocessExecutor:
    """CommandExecutor that runs argv with subprocess, once."""

    def __init__(self, *, timeout_s: float | None = None) -> None:
        self._timeout_s = timeout_s

    def execute(self, argv: list[str]) -> CommandResult:
        try:
            proc = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                check=False,
                timeout=self._timeout_s,
            )
        except FileNotFoundError:
            return CommandResult(exit_code=127, stderr=f"{argv[0]}: command not found")
        except subprocess.TimeoutExpired as exc:
            return CommandResult(exit_code=124, stderr=f"timed out after {exc.timeout}s")
        return CommandResult(exit_code=proc.returncode, stdout=proc.stdout, stderr=proc.stderr)
