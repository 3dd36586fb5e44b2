"""Repair-mode and command authorization models."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class RepairMode(StrEnum):
    """Safety state for the current run.

    DIAGNOSE_ONLY: no writes.
    REPAIR_SAFE: reversible writes only.
    REPAIR_FORCE: all writes, including partition format and BCD rewrite.
    """

    DIAGNOSE_ONLY = "DIAGNOSE_ONLY"
    REPAIR_SAFE = "REPAIR_SAFE"
    REPAIR_FORCE = "REPAIR_FORCE"


class OperationCategory(StrEnum):
    """Kinds of write operations a repair command can perform."""

    # Only ever allowed under REPAIR_FORCE
    PARTITION_WIPE = "partition_wipe"
    CROSS_DISK_BOOT_WRITE = "cross_disk_boot_write"
    FIRMWARE_ENTRY_EDIT = "firmware_entry_edit"
    BCD_DELETE = "bcd_delete"

    # Irreversible, denied under REPAIR_SAFE
    FORMAT = "format"
    BCD_REWRITE = "bcd_rewrite"
    BOOT_SECTOR_WRITE = "boot_sector_write"
    DISK_REPAIR = "disk_repair"
    FILE_DELETE = "file_delete"

    # Reversible
    BCD_EDIT = "bcd_edit"
    BCD_EXPORT = "bcd_export"
    BOOT_FILE_COPY = "boot_file_copy"
    REGISTRY_EDIT = "registry_edit"
    SYSTEM_FILE_REPAIR = "system_file_repair"
    DRIVER_INJECT = "driver_inject"
    ATTRIBUTE_CHANGE = "attribute_change"
    VOLUME_UNLOCK = "volume_unlock"


class CommandRequest(BaseModel):
    """A command a dispatcher wants to run."""

    model_config = ConfigDict(frozen=True)

    command_text: str
    is_destructive: bool = False
    # Declared by the dispatcher when it knows; otherwise looked up in policy.
    operation: OperationCategory | None = None


class AuthorizationRule(StrEnum):
    """Rules that can decide an authorization request."""

    NON_DESTRUCTIVE = "non_destructive"
    DIAGNOSE_ONLY = "diagnose_only_blocks_writes"
    FORCE_ONLY = "force_only"
    REPAIR_FORCE = "repair_force"
    SAFE_REVERSIBLE = "safe_reversible"
    SAFE_IRREVERSIBLE = "safe_irreversible"
    SAFE_UNCLASSIFIED = "safe_unclassified"


class AuthorizationResult(BaseModel):
    """Advisory allow/deny decision for one command."""

    model_config = ConfigDict(frozen=True)

    allowed: bool
    rule: AuthorizationRule
    reason: str
    mode: RepairMode
    operation: OperationCategory | None = None

    @property
    def rule_id(self) -> str:
        """Rule identifier, qualified by operation category where relevant."""
        if self.operation is not None and self.rule in (
            AuthorizationRule.FORCE_ONLY,
            AuthorizationRule.SAFE_REVERSIBLE,
            AuthorizationRule.SAFE_IRREVERSIBLE,
        ):
            return f"{self.rule.value}:{self.operation.value}"
        return self.rule.value


class EnvironmentSignals(BaseModel):
    """Independent signals used to classify the execution environment.

    None means the signal could not be determined.
    """

    # Recovery-context signals
    minint_key_present: bool | None = None
    system_drive: str | None = None
    winpeshl_present: bool | None = None
    edition_id: str | None = None
    ramdisk_boot: bool | None = None

    # Live-OS signals
    installed_os_running: bool | None = None
    explorer_shell_running: bool | None = None
    update_service_running: bool | None = None


class EnvironmentClassification(BaseModel):
    """Repair mode plus the signals that produced it."""

    model_config = ConfigDict(frozen=True)

    mode: RepairMode
    recovery_signals: tuple[str, ...] = ()
    live_signals: tuple[str, ...] = ()
    reason: str = ""
