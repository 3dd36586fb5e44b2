"""Read-only boot-chain probes.

Each probe is ``probe(env, install) -> ProbeResult`` over a fact source that
was built for this run. Probes never write and never cache.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import ClassVar

from bootmedic.core.diagnose.chain import boot_manager_path, build_chain
from bootmedic.core.errors import ProbeExecutionError
from bootmedic.core.facts.contracts import FactSource
from bootmedic.core.timeouts import recheck
from bootmedic.models.boot import (
    BootEnvironment,
    ChainLinkName,
    DiskLayout,
    FirmwareType,
    OSInstallation,
    SecureBootState,
)
from bootmedic.models.evidence import IssueCode, ProbeId, ProbeResult
from bootmedic.models.facts import FileFacts, RegistryKey, RegistryLookup
from bootmedic.utils.config import Settings

logger = logging.getLogger(__name__)

Issue = tuple[IssueCode, str]


class Probe:
    """Base class: runs ``inspect`` and turns operational failures into results."""

    probe_id: ClassVar[ProbeId]

    def __init__(self, facts: FactSource, settings: Settings | None = None) -> None:
        self.facts = facts
        self.settings = settings or Settings()

    def __call__(self, env: BootEnvironment, install: OSInstallation) -> ProbeResult:
        try:
            return self.inspect(env, install)
        except (ProbeExecutionError, OSError) as exc:
            logger.warning("probe %s could not run: %s", self.probe_id, exc)
            return ProbeResult.error(self.probe_id, str(exc))

    def inspect(self, env: BootEnvironment, install: OSInstallation) -> ProbeResult:
        raise NotImplementedError

    def _result(self, evidence: list[str], issues: list[Issue], *, retried: bool = False) -> ProbeResult:
        if issues:
            return ProbeResult.fail(self.probe_id, evidence, issues, retried=retried)
        return ProbeResult.ok(self.probe_id, evidence, retried=retried)


def _describe(path: str, facts: FileFacts) -> str:
    if not facts.exists:
        return f"{path}: missing"
    return f"{path}: {facts.size_bytes} bytes"


class BootFilesProbe(Probe):
    """Boot manager and BCD store are where the firmware expects them."""

    probe_id = ProbeId.BOOT_FILES

    def inspect(self, env: BootEnvironment, install: OSInstallation) -> ProbeResult:
        evidence: list[str] = [f"firmware: {env.firmware_type.value}"]
        issues: list[Issue] = []

        if env.firmware_type == FirmwareType.UEFI:
            esp = env.esp
            if not esp.present:
                issues.append((IssueCode.ESP_MISSING, "No EFI System Partition found"))
                return self._result(evidence, issues)
            evidence.append(f"esp: {esp.drive_id or 'unmounted'} ({esp.filesystem or 'unknown fs'})")
            if not esp.mounted or not esp.drive_id:
                issues.append((IssueCode.ESP_UNMOUNTED, "EFI System Partition is not mounted"))
                return self._result(evidence, issues)
            if (esp.filesystem or "").upper() != "FAT32":
                issues.append(
                    (
                        IssueCode.ESP_NOT_FAT32,
                        f"EFI System Partition filesystem is {esp.filesystem or 'unknown'}, expected FAT32",
                    )
                )
        elif not env.system_partition_drive:
            issues.append((IssueCode.BOOT_MANAGER_MISSING, "No active system partition is mounted"))
            return self._result(evidence, issues)

        bootmgr = boot_manager_path(env)
        store = env.boot_store_path
        if bootmgr is None or store is None:
            issues.append((IssueCode.BOOT_MANAGER_MISSING, "System partition has no drive letter"))
            return self._result(evidence, issues)

        bootmgr_facts = self.facts.stat(bootmgr)
        evidence.append(_describe(bootmgr, bootmgr_facts))
        if not bootmgr_facts.exists:
            issues.append((IssueCode.BOOT_MANAGER_MISSING, f"Boot manager missing: {bootmgr}"))

        store_facts = self.facts.stat(store)
        evidence.append(_describe(store, store_facts))
        if not store_facts.exists:
            issues.append((IssueCode.BCD_MISSING, f"BCD store missing: {store}"))

        return self._result(evidence, issues)


class BCDRealityProbe(Probe):
    """The default BCD entry points at a partition that really holds Windows."""

    probe_id = ProbeId.BCD_REALITY

    def inspect(self, env: BootEnvironment, install: OSInstallation) -> ProbeResult:
        store = env.boot_store_path
        if store is None:
            return self._result(
                ["no system partition drive"],
                [(IssueCode.BCD_MISSING, "No BCD store location: system partition is not mounted")],
            )

        entry = self.facts.read_entry(store, self.settings.boot_entry_id)
        evidence = [
            f"device: {entry.device_partition or 'unset'}",
            f"osdevice: {entry.os_device_partition or 'unset'}",
        ]
        issues: list[Issue] = []

        for label, ref in (("device", entry.device_partition), ("osdevice", entry.os_device_partition)):
            mount = self._resolve(ref)
            if mount is None:
                issues.append(
                    (
                        IssueCode.BCD_DEVICE_UNRESOLVED,
                        f"BCD {label} '{ref or 'unset'}' does not resolve to an existing partition",
                    )
                )
                continue
            kernel = f"{mount}\\Windows\\System32\\ntoskrnl.exe"
            if not self.facts.stat(kernel).exists:
                issues.append(
                    (IssueCode.BCD_NO_WINDOWS, f"BCD {label} {mount} does not contain a Windows installation")
                )
            else:
                evidence.append(f"{label} {mount} contains Windows")

        return self._result(evidence, issues)

    def _resolve(self, ref: str | None) -> str | None:
        """Map a BCD partition reference to a mounted drive, or None."""
        if not ref or ref.strip().lower() == "unknown":
            return None
        wanted = ref.strip().rstrip("\\").upper()
        for part in self.facts.partitions():
            mount = (part.mount_point or "").rstrip("\\").upper()
            if wanted in (mount, part.partition_id.upper()) and mount:
                return mount
        return None


class LoaderFileProbe(Probe):
    """The OS loader exists and is not empty."""

    probe_id = ProbeId.LOADER_FILE

    def __init__(
        self,
        facts: FactSource,
        settings: Settings | None = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        super().__init__(facts, settings)
        self._sleep = sleep

    def inspect(self, env: BootEnvironment, install: OSInstallation) -> ProbeResult:
        path = install.loader_path(env)
        facts, retried = recheck(
            lambda: self.facts.stat(path),
            lambda f: f.exists and f.size_bytes > 0,
            attempts=self.settings.recheck_attempts,
            backoff_s=self.settings.recheck_backoff_seconds,
            sleep=self._sleep,
        )
        evidence = [_describe(path, facts) + (" (re-checked)" if retried else "")]

        if not facts.exists:
            return self._result(evidence, [(IssueCode.LOADER_MISSING, f"Loader file missing: {path}")], retried=retried)
        if facts.size_bytes <= 0:
            return self._result(evidence, [(IssueCode.LOADER_EMPTY, f"Loader file is empty: {path}")], retried=retried)
        return self._result(evidence, [], retried=retried)


def _as_int(value: object) -> int | None:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value, 0)
        except ValueError:
            return None
    return None


class DriverProbe(Probe):
    """At least one boot-critical storage driver will load at boot."""

    probe_id = ProbeId.DRIVERS

    def inspect(self, env: BootEnvironment, install: OSInstallation) -> ProbeResult:
        hive = install.system_hive_path
        if not self.facts.stat(hive).exists:
            return self._result(
                [f"{hive}: missing"],
                [(IssueCode.SYSTEM_HIVE_MISSING, f"SYSTEM hive missing: {hive}")],
            )

        control_set = self._control_set(hive)
        evidence = [f"control set: {control_set}"]
        registered: list[str] = []
        healthy: list[str] = []
        trapped: list[str] = []
        denied = 0

        for driver in self.settings.storage_drivers:
            key = self.facts.read_key(hive, f"{control_set}\\Services\\{driver}")
            if not isinstance(key, RegistryKey):
                if key == RegistryLookup.ACCESS_DENIED:
                    denied += 1
                    evidence.append(f"{driver}: access denied")
                continue
            registered.append(driver)

            start = _as_int(key.values.get("Start"))
            if start != 0:
                evidence.append(f"{driver}: Start={start}")
                continue
            if self._override_trap(hive, control_set, driver):
                trapped.append(driver)
                evidence.append(f"{driver}: Start=0 but StartOverride disables it")
                continue
            healthy.append(driver)
            evidence.append(f"{driver}: Start=0")

        if healthy:
            return self._result(evidence, [])
        if denied and not registered:
            raise ProbeExecutionError(f"access denied reading storage driver keys in {hive}")
        if trapped:
            return self._result(
                evidence,
                [
                    (
                        IssueCode.DRIVER_OVERRIDE_TRAP,
                        f"StartOverride disables boot storage driver(s): {', '.join(trapped)}",
                    )
                ],
            )
        if registered:
            return self._result(
                evidence,
                [
                    (
                        IssueCode.DRIVER_DISABLED,
                        f"Boot storage driver(s) not set to boot start: {', '.join(registered)}",
                    )
                ],
            )
        return self._result(
            evidence,
            [(IssueCode.DRIVER_MISSING, "No boot-critical storage driver is registered")],
        )

    def _control_set(self, hive: str) -> str:
        select = self.facts.read_key(hive, "Select")
        if select == RegistryLookup.ACCESS_DENIED:
            raise ProbeExecutionError(f"access denied reading Select in {hive}")
        if isinstance(select, RegistryKey):
            current = _as_int(select.values.get("Current"))
            if current:
                return f"ControlSet{current:03d}"
        return "ControlSet001"

    def _override_trap(self, hive: str, control_set: str, driver: str) -> bool:
        override = self.facts.read_key(hive, f"{control_set}\\Services\\{driver}\\StartOverride")
        if not isinstance(override, RegistryKey):
            return False
        return any(_as_int(v) not in (0, None) for v in override.values.values())


_LINK_ISSUES: dict[ChainLinkName, IssueCode] = {
    ChainLinkName.FIRMWARE: IssueCode.FIRMWARE_UNKNOWN,
    ChainLinkName.BOOT_MANAGER: IssueCode.BOOT_MANAGER_MISSING,
    ChainLinkName.BCD: IssueCode.BCD_MISSING,
    ChainLinkName.LOADER: IssueCode.LOADER_MISSING,
    ChainLinkName.KERNEL: IssueCode.KERNEL_MISSING,
}


class ChainLinkProbe(Probe):
    """Every link from firmware to kernel is present and the BCD is readable."""

    probe_id = ProbeId.CHAIN_LINKS

    def inspect(self, env: BootEnvironment, install: OSInstallation) -> ProbeResult:
        links = build_chain(env, install, self.facts, entry_id=self.settings.boot_entry_id)
        evidence: list[str] = []
        issues: list[Issue] = []

        for link in links:
            state = "present" if link.present else "MISSING"
            evidence.append(f"{link.name.value}: {state} ({link.evidence_path or 'n/a'})")
            if link.broken:
                issues.append((_LINK_ISSUES[link.name], f"Boot chain broken at {link.name.value}"))
            elif link.name == ChainLinkName.BCD and not link.readable:
                issues.append((IssueCode.BCD_UNREADABLE, f"BCD store is not readable: {link.evidence_path}"))

        mismatch = (env.firmware_type == FirmwareType.UEFI and env.disk_layout == DiskLayout.MBR) or (
            env.firmware_type == FirmwareType.LEGACY_BIOS and env.disk_layout == DiskLayout.GPT
        )
        if mismatch:
            issues.append(
                (
                    IssueCode.FIRMWARE_LAYOUT_MISMATCH,
                    f"{env.firmware_type.value} firmware cannot boot a {env.disk_layout.value} system disk",
                )
            )
        if env.secure_boot == SecureBootState.VIOLATION:
            issues.append((IssueCode.SECURE_BOOT_VIOLATION, "Secure Boot rejected the boot manager"))

        return self._result(evidence, issues)


PROBE_TYPES: tuple[type[Probe], ...] = (
    BootFilesProbe,
    BCDRealityProbe,
    LoaderFileProbe,
    DriverProbe,
    ChainLinkProbe,
)


def default_probes(facts: FactSource, settings: Settings | None = None) -> list[Probe]:
    """The fixed probe set, in execution order."""
    return [probe_type(facts, settings) for probe_type in PROBE_TYPES]
