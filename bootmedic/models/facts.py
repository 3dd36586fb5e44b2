"""Typed results returned by the fact collaborators."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from bootmedic.models.boot import DiskLayout, FirmwareType, SecureBootState

ESP_TYPE_GUID = "c12a7328-f81f-11d2-ba4b-00a0c93ec93b"


class FileFacts(BaseModel):
    model_config = ConfigDict(frozen=True)

    exists: bool = False
    size_bytes: int = 0
    readable: bool = False


class PartitionInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    partition_id: str
    type_guid: str | None = None
    mount_point: str | None = None
    filesystem: str | None = None
    health: str | None = None
    disk_number: int | None = None
    is_active: bool = False

    @property
    def is_esp(self) -> bool:
        return (self.type_guid or "").strip("{}").lower() == ESP_TYPE_GUID


class BootEntry(BaseModel):
    """Logical fields of one BCD entry."""

    model_config = ConfigDict(frozen=True)

    device_partition: str | None = None
    os_device_partition: str | None = None
    loader_path: str | None = None


class RegistryLookup(StrEnum):
    NOT_FOUND = "not_found"
    ACCESS_DENIED = "access_denied"


class RegistryKey(BaseModel):
    """Values and direct subkey names of a registry key."""

    model_config = ConfigDict(frozen=True)

    values: dict[str, Any] = Field(default_factory=dict)
    subkeys: tuple[str, ...] = ()


class EncryptionLock(StrEnum):
    LOCKED = "locked"
    UNLOCKED = "unlocked"
    UNKNOWN = "unknown"


class FirmwareFacts(BaseModel):
    """Firmware-level facts about the machine."""

    firmware_type: FirmwareType = FirmwareType.UNKNOWN
    disk_layout: DiskLayout = DiskLayout.UNKNOWN
    secure_boot: SecureBootState = SecureBootState.UNKNOWN


class CommandResult(BaseModel):
    exit_code: int
    stdout: str = ""
    stderr: str = ""
