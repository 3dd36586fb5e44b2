"""Build the boot environment and discover offline Windows installations."""

from __future__ import annotations

import logging

from bootmedic.core.errors import BootMedicError, ConfigurationError
from bootmedic.core.facts.contracts import FactSource
from bootmedic.models.boot import BootEnvironment, EspInfo, FirmwareType, OSInstallation
from bootmedic.models.facts import FirmwareFacts

logger = logging.getLogger(__name__)


def _drive(mount_point: str) -> str:
    return mount_point.rstrip("\\").upper()


def detect_environment(facts: FactSource) -> BootEnvironment:
    """Assemble firmware, disk layout, and ESP facts for this run.

    Firmware facts that cannot be read degrade to Unknown; a partition table
    that cannot be read raises, since nothing else can be located without it.
    """
    try:
        firmware = facts.firmware()
    except BootMedicError as exc:
        logger.warning("firmware facts unavailable: %s", exc)
        firmware = FirmwareFacts()
    partitions = facts.partitions()

    esp_part = next((p for p in partitions if p.is_esp), None)
    if esp_part is not None:
        esp = EspInfo(
            present=True,
            mounted=bool(esp_part.mount_point),
            drive_id=_drive(esp_part.mount_point) if esp_part.mount_point else None,
            filesystem=esp_part.filesystem,
            health=esp_part.health,
        )
    else:
        esp = EspInfo(present=False)

    if firmware.firmware_type == FirmwareType.UEFI:
        system_drive = esp.drive_id
    else:
        active = next((p for p in partitions if p.is_active and p.mount_point), None)
        system_drive = _drive(active.mount_point) if active and active.mount_point else None

    env = BootEnvironment(
        firmware_type=firmware.firmware_type,
        disk_layout=firmware.disk_layout,
        esp=esp,
        secure_boot=firmware.secure_boot,
        system_partition_drive=system_drive,
    )
    logger.debug(
        "environment: firmware=%s layout=%s esp=%s system=%s",
        env.firmware_type,
        env.disk_layout,
        esp.drive_id,
        system_drive,
    )
    return env


def discover_installations(facts: FactSource) -> list[OSInstallation]:
    """Find partitions holding a Windows directory with a SYSTEM hive."""
    try:
        running_drive = (facts.signals().system_drive or "").rstrip("\\").upper()
    except BootMedicError as exc:
        logger.warning("environment signals unavailable: %s", exc)
        running_drive = ""
    found: list[OSInstallation] = []

    for part in facts.partitions():
        if not part.mount_point or part.is_esp:
            continue
        drive = _drive(part.mount_point)
        windows = f"{drive}\\Windows"
        hive = f"{windows}\\System32\\config\\SYSTEM"
        try:
            if not facts.stat(hive).exists:
                continue
            kernel_ok = facts.stat(f"{windows}\\System32\\ntoskrnl.exe").exists
        except BootMedicError as exc:
            logger.warning("skipping %s: %s", drive, exc)
            continue
        found.append(
            OSInstallation(
                drive_id=drive,
                windows_path=windows,
                system_hive_path=hive,
                is_current_os=drive == running_drive,
                confidence=100 if kernel_ok else 60,
            )
        )

    found.sort(key=lambda i: (-i.confidence, i.drive_id))
    return found


def select_installation(
    installations: list[OSInstallation],
    target_drive: str | None = None,
) -> OSInstallation:
    """Pick the installation to diagnose.

    Raises ConfigurationError when nothing (or not the requested drive) was found.
    """
    if not installations:
        raise ConfigurationError("No Windows installation found on any mounted partition")

    if target_drive:
        wanted = _drive(target_drive)
        for install in installations:
            if install.drive_id == wanted:
                return install
        found = ", ".join(i.drive_id for i in installations)
        raise ConfigurationError(
            f"No Windows installation on {wanted} (found: {found})"
        )

    return installations[0]
