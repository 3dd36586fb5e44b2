"""Boot environment, installation, and boot-chain models."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class FirmwareType(StrEnum):
    """Firmware interface the machine boots through."""

    UEFI = "UEFI"
    LEGACY_BIOS = "LegacyBIOS"
    UNKNOWN = "Unknown"


class DiskLayout(StrEnum):
    """Partition table style of the system disk."""

    GPT = "GPT"
    MBR = "MBR"
    UNKNOWN = "Unknown"


class SecureBootState(StrEnum):
    """Secure Boot state as reported by firmware."""

    ENABLED = "enabled"
    DISABLED = "disabled"
    VIOLATION = "violation"  # firmware refused the boot manager signature
    UNKNOWN = "unknown"


class EspInfo(BaseModel):
    """EFI System Partition facts."""

    model_config = ConfigDict(frozen=True)

    present: bool = False
    mounted: bool = False
    drive_id: str | None = None  # mount point, e.g. "S:"
    filesystem: str | None = None
    health: str | None = None


class BootEnvironment(BaseModel):
    """Firmware, disk layout, and ESP for the current run.

    Rebuilt on every run; a previous repair may have changed disk state.
    """

    model_config = ConfigDict(frozen=True)

    firmware_type: FirmwareType = FirmwareType.UNKNOWN
    disk_layout: DiskLayout = DiskLayout.UNKNOWN
    esp: EspInfo = Field(default_factory=EspInfo)
    secure_boot: SecureBootState = SecureBootState.UNKNOWN

    # Drive holding the boot manager files: the ESP for UEFI, the active
    # partition for legacy BIOS.
    system_partition_drive: str | None = None

    @property
    def boot_store_path(self) -> str | None:
        """Path of the BCD store this environment boots from."""
        drive = self.system_partition_drive
        if not drive:
            return None
        if self.firmware_type == FirmwareType.UEFI:
            return f"{drive}\\EFI\\Microsoft\\Boot\\BCD"
        return f"{drive}\\Boot\\BCD"

    @property
    def expected_loader_name(self) -> str:
        """Loader filename the BCD must point at for this firmware."""
        if self.firmware_type == FirmwareType.UEFI:
            return "winload.efi"
        return "winload.exe"


class OSInstallation(BaseModel):
    """An offline Windows installation discovered on a partition."""

    model_config = ConfigDict(frozen=True)

    drive_id: str
    windows_path: str
    system_hive_path: str
    is_current_os: bool = False
    confidence: int = Field(default=100, ge=0, le=100)

    @property
    def system32_path(self) -> str:
        return f"{self.windows_path}\\System32"

    @property
    def kernel_path(self) -> str:
        return f"{self.system32_path}\\ntoskrnl.exe"

    def loader_path(self, env: BootEnvironment) -> str:
        """Full path of the loader expected for *env*."""
        return f"{self.system32_path}\\{env.expected_loader_name}"


class ChainLinkName(StrEnum):
    """Links of the boot chain, in boot order."""

    FIRMWARE = "Firmware"
    BOOT_MANAGER = "BootManager"
    BCD = "BCD"
    LOADER = "Loader"
    KERNEL = "Kernel"


class ChainLink(BaseModel):
    """One hop of the boot chain."""

    model_config = ConfigDict(frozen=True)

    name: ChainLinkName
    required: bool = True
    present: bool = False
    readable: bool = False
    evidence_path: str | None = None

    @property
    def broken(self) -> bool:
        return self.required and not self.present
