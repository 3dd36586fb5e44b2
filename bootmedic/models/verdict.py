"""Verdict and diagnosis report models."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from bootmedic.models.boot import BootEnvironment, OSInstallation
from bootmedic.models.evidence import CriticalChecks, EvidenceSet, IssueCode


class ConfidenceLevel(StrEnum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class PrimaryCause(StrEnum):
    """Primary cause of a boot failure, in descending priority."""

    LOADER_MISSING = "Missing loader file"
    BCD_CORRUPTION = "BCD corruption"
    ESP_MISSING = "EFI System Partition missing"
    SECURE_BOOT_BLOCK = "Secure Boot block"
    DRIVER_MISSING = "Boot-critical storage driver missing"
    INSTALL_CORRUPT = "Windows installation corrupt"
    FIRMWARE_MISMATCH = "Firmware and disk layout mismatch"
    BITLOCKER_LOCK = "BitLocker volume locked"
    UNKNOWN = "Unknown"
    NONE = "None"


class Verdict(BaseModel):
    """Boot/no-boot decision with confidence."""

    model_config = ConfigDict(frozen=True)

    will_boot: bool
    confidence_score: int = Field(ge=0, le=100)
    confidence_level: ConfidenceLevel
    blocking_issues: tuple[str, ...] = ()
    issue_codes: tuple[IssueCode, ...] = ()
    primary_cause: PrimaryCause = PrimaryCause.UNKNOWN
    primary_issue: str | None = None  # the blocking issue that selected primary_cause


class DiagnosisStatus(StrEnum):
    COMPLETE = "complete"
    CONFIGURATION_ERROR = "configuration_error"


class DiagnosisReport(BaseModel):
    """Everything one diagnosis run produced.

    A configuration error (no Windows installation found) still yields a
    report, with ``verdict`` unset and ``error`` explaining why.
    """

    schema_version: str = "1.0"
    generated_at: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    status: DiagnosisStatus
    error: str | None = None

    environment: BootEnvironment | None = None
    installation: OSInstallation | None = None
    installations: list[OSInstallation] = Field(default_factory=list)

    evidence: EvidenceSet | None = None
    checks: CriticalChecks | None = None
    verdict: Verdict | None = None

    @property
    def exit_code(self) -> int:
        """0 will boot, 1 will not boot, 2 configuration error."""
        if self.verdict is None:
            return 2
        return 0 if self.verdict.will_boot else 1
