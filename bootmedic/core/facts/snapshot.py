"""File-backed fact source.

A snapshot is a YAML (or JSON) document describing what the collaborators
would report on a machine. It lets a diagnosis be replayed offline, away from
the recovery environment that captured it.

    firmware: {firmware_type: UEFI, disk_layout: GPT, secure_boot: enabled}
    partitions:
      - {partition_id: "0-1", type_guid: "{c12a7328-...}", mount_point: "S:", filesystem: FAT32}
    files:
      'S:\\EFI\\Microsoft\\Boot\\bootmgfw.efi': 1572864
      'C:\\Windows\\System32\\winload.efi': {exists: true, size_bytes: 1572864}
      'D:\\pagefile.sys': {error: "sharing violation"}
    boot_store:
      'S:\\EFI\\Microsoft\\Boot\\BCD':
        '{default}': {device_partition: "C:", os_device_partition: "C:", loader_path: '\\Windows\\system32\\winload.efi'}
    registry:
      'C:\\Windows\\System32\\config\\SYSTEM':
        'Select': {values: {Current: 1}}
        'ControlSet001\\Services\\stornvme': {values: {Start: 0}}
    encryption: {"C:": unlocked}
    signals: {minint_key_present: true, system_drive: "X:"}
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from bootmedic.core.errors import BootStoreReadError, ProbeExecutionError, SettingsError
from bootmedic.models.decision import EnvironmentSignals
from bootmedic.models.facts import (
    BootEntry,
    EncryptionLock,
    FileFacts,
    FirmwareFacts,
    PartitionInfo,
    RegistryKey,
    RegistryLookup,
)

logger = logging.getLogger(__name__)


def normalize_path(path: str) -> str:
    """Case-fold a Windows path and unify separators for lookups."""
    return path.replace("/", "\\").rstrip("\\").lower()


class SnapshotDocument(BaseModel):
    """Schema of a facts snapshot file."""

    firmware: FirmwareFacts = Field(default_factory=FirmwareFacts)
    partitions: list[PartitionInfo] = Field(default_factory=list)
    files: dict[str, Any] = Field(default_factory=dict)
    boot_store: dict[str, Any] = Field(default_factory=dict)
    registry: dict[str, Any] = Field(default_factory=dict)
    encryption: dict[str, EncryptionLock] = Field(default_factory=dict)
    signals: EnvironmentSignals = Field(default_factory=EnvironmentSignals)


class SnapshotFacts:
    """Fact source backed by an in-memory snapshot document."""

    def __init__(self, document: SnapshotDocument) -> None:
        self.document = document
        self._files = {normalize_path(k): v for k, v in document.files.items()}
        self._stores = {normalize_path(k): v for k, v in document.boot_store.items()}
        self._hives = {normalize_path(k): v for k, v in document.registry.items()}
        self._encryption = {k.rstrip("\\").upper(): v for k, v in document.encryption.items()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SnapshotFacts:
        try:
            return cls(SnapshotDocument.model_validate(data))
        except ValidationError as exc:
            raise SettingsError(f"Invalid facts snapshot: {exc}") from exc

    @classmethod
    def from_file(cls, path: Path) -> SnapshotFacts:
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as exc:
            raise SettingsError(f"Cannot read facts snapshot {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise SettingsError(f"Facts snapshot {path} must be a mapping")
        return cls.from_dict(data)

    # -- FileSystemProbe ------------------------------------------------

    def stat(self, path: str) -> FileFacts:
        entry = self._files.get(normalize_path(path))
        if entry is None:
            return FileFacts(exists=False)
        if isinstance(entry, bool):
            return FileFacts(exists=entry, size_bytes=1 if entry else 0, readable=entry)
        if isinstance(entry, int):
            return FileFacts(exists=True, size_bytes=entry, readable=True)
        if isinstance(entry, dict):
            if "error" in entry:
                raise ProbeExecutionError(f"cannot stat {path}: {entry['error']}")
            return FileFacts(
                exists=entry.get("exists", True),
                size_bytes=entry.get("size_bytes", 0),
                readable=entry.get("readable", entry.get("exists", True)),
            )
        raise SettingsError(f"Unsupported file entry for {path!r}: {entry!r}")

    # -- PartitionTableProbe --------------------------------------------

    def partitions(self) -> list[PartitionInfo]:
        return list(self.document.partitions)

    # -- BootStoreReader ------------------------------------------------

    def read_entry(self, store_path: str, entry_id: str) -> BootEntry:
        store = self._stores.get(normalize_path(store_path))
        if store is None:
            raise BootStoreReadError(store_path, "store not found")
        if "error" in store:
            raise BootStoreReadError(store_path, str(store["error"]))
        entry = store.get(entry_id)
        if entry is None:
            raise BootStoreReadError(store_path, f"entry {entry_id} not found")
        return BootEntry.model_validate(entry)

    # -- RegistryHiveReader ---------------------------------------------

    def read_key(self, hive_path: str, key_path: str) -> RegistryKey | RegistryLookup:
        hive = self._hives.get(normalize_path(hive_path))
        if hive is None:
            return RegistryLookup.NOT_FOUND
        if "error" in hive:
            raise ProbeExecutionError(f"cannot load hive {hive_path}: {hive['error']}")

        wanted = normalize_path(key_path)
        keys = {normalize_path(k): v for k, v in hive.items()}
        value = keys.get(wanted)
        if value is None:
            return RegistryLookup.NOT_FOUND
        if value == RegistryLookup.ACCESS_DENIED.value:
            return RegistryLookup.ACCESS_DENIED
        if not isinstance(value, dict):
            raise SettingsError(f"Unsupported registry entry for {key_path!r}: {value!r}")

        prefix = wanted + "\\"
        subkeys = sorted(
            {k[len(prefix):].split("\\", 1)[0] for k in keys if k.startswith(prefix)}
        )
        return RegistryKey(values=dict(value.get("values", {})), subkeys=tuple(subkeys))

    # -- EncryptionStatusProbe ------------------------------------------

    def status(self, volume_id: str, timeout_ms: int) -> EncryptionLock:  # noqa: ARG002
        return self._encryption.get(volume_id.rstrip("\\").upper(), EncryptionLock.UNKNOWN)

    # -- EnvironmentProbe -----------------------------------------------

    def signals(self) -> EnvironmentSignals:
        return self.document.signals

    def firmware(self) -> FirmwareFacts:
        return self.document.firmware
