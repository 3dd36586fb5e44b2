"""Pydantic data models for BootMedic."""

from bootmedic.models.blocker import (
    BlockerCandidate,
    BlockerCategory,
    BlockerSeverity,
    Finding,
    IssueReport,
    ReportSource,
)
from bootmedic.models.boot import (
    BootEnvironment,
    ChainLink,
    ChainLinkName,
    DiskLayout,
    EspInfo,
    FirmwareType,
    OSInstallation,
    SecureBootState,
)
from bootmedic.models.decision import (
    AuthorizationResult,
    AuthorizationRule,
    CommandRequest,
    EnvironmentClassification,
    EnvironmentSignals,
    OperationCategory,
    RepairMode,
)
from bootmedic.models.evidence import (
    CheckOutcome,
    CriticalChecks,
    EvidenceSet,
    IssueCode,
    ProbeId,
    ProbeResult,
    ProbeStatus,
    SecurityState,
)
from bootmedic.models.verdict import (
    ConfidenceLevel,
    DiagnosisReport,
    DiagnosisStatus,
    PrimaryCause,
    Verdict,
)

__all__ = [
    # Boot chain
    "FirmwareType",
    "DiskLayout",
    "SecureBootState",
    "EspInfo",
    "BootEnvironment",
    "OSInstallation",
    "ChainLinkName",
    "ChainLink",
    # Evidence
    "IssueCode",
    "ProbeId",
    "ProbeStatus",
    "ProbeResult",
    "EvidenceSet",
    "SecurityState",
    "CheckOutcome",
    "CriticalChecks",
    # Verdict
    "ConfidenceLevel",
    "PrimaryCause",
    "Verdict",
    "DiagnosisStatus",
    "DiagnosisReport",
    # Blockers
    "BlockerCategory",
    "BlockerSeverity",
    "ReportSource",
    "Finding",
    "IssueReport",
    "BlockerCandidate",
    # Decision
    "RepairMode",
    "OperationCategory",
    "CommandRequest",
    "AuthorizationRule",
    "AuthorizationResult",
    "EnvironmentSignals",
    "EnvironmentClassification",
]
