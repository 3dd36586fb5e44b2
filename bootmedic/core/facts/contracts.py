"""Narrow interfaces the diagnosis core consumes.

Implementations own every disk, registry, and boot-store access. Raw tool
output is parsed behind these interfaces; the core only sees typed models.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

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


class FileSystemProbe(Protocol):
    def stat(self, path: str) -> FileFacts: ...


class PartitionTableProbe(Protocol):
    def partitions(self) -> list[PartitionInfo]: ...


class BootStoreReader(Protocol):
    def read_entry(self, store_path: str, entry_id: str) -> BootEntry:
        """Return the entry's logical fields; raise BootStoreReadError on failure."""
        ...


class RegistryHiveReader(Protocol):
    def read_key(self, hive_path: str, key_path: str) -> RegistryKey | RegistryLookup: ...


class EncryptionStatusProbe(Protocol):
    def status(self, volume_id: str, timeout_ms: int) -> EncryptionLock: ...


class EnvironmentProbe(Protocol):
    def signals(self) -> EnvironmentSignals: ...

    def firmware(self) -> FirmwareFacts: ...


class CommandExecutor(Protocol):
    def execute(self, argv: list[str]) -> CommandResult: ...


@runtime_checkable
class FactSource(
    FileSystemProbe,
    PartitionTableProbe,
    BootStoreReader,
    RegistryHiveReader,
    EncryptionStatusProbe,
    EnvironmentProbe,
    Protocol,
):
    """All read-only collaborators behind one object."""
