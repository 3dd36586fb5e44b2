"""Blocker candidates and the issue reports they are ranked from."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class BlockerCategory(StrEnum):
    BOOT_FAILURE = "BootFailure"
    HARDWARE = "Hardware"
    COMPATIBILITY = "Compatibility"
    REGISTRY_BLOCKER = "RegistryBlocker"


class BlockerSeverity(StrEnum):
    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class ReportSource(StrEnum):
    """Where a blocker candidate came from."""

    VERDICT = "verdict"
    DISK_HEALTH = "disk_health"
    REGISTRY = "registry"
    SETUP_LOG = "setup_log"


class Finding(BaseModel):
    """A single issue reported by a non-verdict source.

    ``severity`` and ``category`` are None when the source reported a value
    outside the known vocabulary.
    """

    issue: str
    severity: BlockerSeverity | None = None
    confidence: int = Field(default=50, ge=0, le=100)
    recommended_action: str = ""
    category: BlockerCategory | None = None


class IssueReport(BaseModel):
    """Findings from one of the secondary sources (disk, registry, setup log)."""

    source: ReportSource
    findings: list[Finding] = Field(default_factory=list)


class BlockerCandidate(BaseModel):
    """A ranked candidate cause for the machine not booting."""

    model_config = ConfigDict(frozen=True)

    issue: str
    category: BlockerCategory | None
    severity: BlockerSeverity | None
    confidence: int = Field(ge=0, le=100)
    recommended_action: str
    priority_score: float
    source: ReportSource
    rank: int | None = None
