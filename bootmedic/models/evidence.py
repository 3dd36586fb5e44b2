"""Probe results, evidence sets, and critical-check outcomes."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, computed_field


class IssueCode(StrEnum):
    """Stable vocabulary for problems found during diagnosis."""

    ESP_MISSING = "esp_missing"
    ESP_UNMOUNTED = "esp_unmounted"
    ESP_NOT_FAT32 = "esp_not_fat32"
    BOOT_MANAGER_MISSING = "boot_manager_missing"
    BCD_MISSING = "bcd_missing"
    BCD_UNREADABLE = "bcd_unreadable"
    BCD_DEVICE_UNRESOLVED = "bcd_device_unresolved"
    BCD_NO_WINDOWS = "bcd_no_windows"
    BCD_PATH_MISMATCH = "bcd_path_mismatch"
    LOADER_MISSING = "loader_missing"
    LOADER_EMPTY = "loader_empty"
    KERNEL_MISSING = "kernel_missing"
    SYSTEM_HIVE_MISSING = "system_hive_missing"
    DRIVER_MISSING = "driver_missing"
    DRIVER_DISABLED = "driver_disabled"
    DRIVER_OVERRIDE_TRAP = "driver_override_trap"
    SECURE_BOOT_VIOLATION = "secure_boot_violation"
    FIRMWARE_LAYOUT_MISMATCH = "firmware_layout_mismatch"
    FIRMWARE_UNKNOWN = "firmware_unknown"
    VOLUME_LOCKED = "volume_locked"
    PROBE_EXECUTION_FAILED = "probe_execution_failed"


class ProbeId(StrEnum):
    """Identifiers of the fixed probe set, in execution order."""

    BOOT_FILES = "boot_files"
    BCD_REALITY = "bcd_reality"
    LOADER_FILE = "loader_file"
    DRIVERS = "drivers"
    CHAIN_LINKS = "chain_links"


class ProbeStatus(StrEnum):
    """Outcome of a probe.

    FAILED: the inspection ran and the fact was false.
    ERROR: the inspection itself could not run.
    """

    PASSED = "passed"
    FAILED = "failed"
    ERROR = "error"


class ProbeResult(BaseModel):
    """Result of one read-only probe."""

    model_config = ConfigDict(frozen=True)

    probe_id: ProbeId
    status: ProbeStatus
    evidence: tuple[str, ...] = ()
    issues: tuple[str, ...] = ()
    codes: tuple[IssueCode, ...] = ()
    retried: bool = False  # evidence came from a re-check, not the first attempt

    @computed_field  # type: ignore[prop-decorator]
    @property
    def passed(self) -> bool:
        return self.status == ProbeStatus.PASSED

    @classmethod
    def ok(
        cls,
        probe_id: ProbeId,
        evidence: list[str],
        *,
        retried: bool = False,
    ) -> ProbeResult:
        return cls(
            probe_id=probe_id,
            status=ProbeStatus.PASSED,
            evidence=tuple(evidence),
            retried=retried,
        )

    @classmethod
    def fail(
        cls,
        probe_id: ProbeId,
        evidence: list[str],
        issues: list[tuple[IssueCode, str]],
        *,
        retried: bool = False,
    ) -> ProbeResult:
        return cls(
            probe_id=probe_id,
            status=ProbeStatus.FAILED,
            evidence=tuple(evidence),
            issues=tuple(message for _, message in issues),
            codes=tuple(code for code, _ in issues),
            retried=retried,
        )

    @classmethod
    def error(cls, probe_id: ProbeId, detail: str) -> ProbeResult:
        """Result for a probe whose inspection could not run."""
        return cls(
            probe_id=probe_id,
            status=ProbeStatus.ERROR,
            issues=(f"Probe could not run: {detail}",),
            codes=(IssueCode.PROBE_EXECUTION_FAILED,),
        )


class EvidenceSet(BaseModel):
    """Ordered, immutable collection of probe results."""

    model_config = ConfigDict(frozen=True)

    results: tuple[ProbeResult, ...] = ()

    def get(self, probe_id: ProbeId) -> ProbeResult | None:
        for result in self.results:
            if result.probe_id == probe_id:
                return result
        return None

    def ids(self) -> list[ProbeId]:
        return [r.probe_id for r in self.results]

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def passed_count(self) -> int:
        return sum(1 for r in self.results if r.passed)

    def failed(self) -> list[ProbeResult]:
        return [r for r in self.results if not r.passed]


class SecurityState(StrEnum):
    """Encryption lock state of the OS volume."""

    LOCKED = "locked"
    UNLOCKED = "unlocked"
    INCONCLUSIVE = "inconclusive"


class CheckOutcome(BaseModel):
    """Outcome of a Physical or Logical critical check."""

    model_config = ConfigDict(frozen=True)

    passed: bool
    detail: str = ""
    issues: tuple[str, ...] = ()
    codes: tuple[IssueCode, ...] = ()


class CriticalChecks(BaseModel):
    """The three checks the verdict is decided on."""

    model_config = ConfigDict(frozen=True)

    physical: CheckOutcome
    logical: CheckOutcome
    security: SecurityState = SecurityState.INCONCLUSIVE
    security_detail: str = Field(default="")
