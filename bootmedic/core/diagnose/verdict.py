"""Verdict engine: EvidenceSet + critical checks -> Verdict.

Pure decision logic. No I/O and no report formatting happen here.
"""

from __future__ import annotations

from bootmedic.models.evidence import (
    CriticalChecks,
    EvidenceSet,
    IssueCode,
    ProbeId,
    SecurityState,
)
from bootmedic.models.verdict import ConfidenceLevel, PrimaryCause, Verdict

# First match wins, in this order.
CAUSE_PRIORITY: tuple[PrimaryCause, ...] = (
    PrimaryCause.LOADER_MISSING,
    PrimaryCause.BCD_CORRUPTION,
    PrimaryCause.ESP_MISSING,
    PrimaryCause.SECURE_BOOT_BLOCK,
    PrimaryCause.DRIVER_MISSING,
    PrimaryCause.INSTALL_CORRUPT,
    PrimaryCause.FIRMWARE_MISMATCH,
    PrimaryCause.BITLOCKER_LOCK,
    PrimaryCause.UNKNOWN,
)

CAUSE_BY_CODE: dict[IssueCode, PrimaryCause] = {
    IssueCode.LOADER_MISSING: PrimaryCause.LOADER_MISSING,
    IssueCode.LOADER_EMPTY: PrimaryCause.LOADER_MISSING,
    IssueCode.BCD_MISSING: PrimaryCause.BCD_CORRUPTION,
    IssueCode.BCD_UNREADABLE: PrimaryCause.BCD_CORRUPTION,
    IssueCode.BCD_DEVICE_UNRESOLVED: PrimaryCause.BCD_CORRUPTION,
    IssueCode.BCD_NO_WINDOWS: PrimaryCause.BCD_CORRUPTION,
    IssueCode.BCD_PATH_MISMATCH: PrimaryCause.BCD_CORRUPTION,
    IssueCode.ESP_MISSING: PrimaryCause.ESP_MISSING,
    IssueCode.ESP_UNMOUNTED: PrimaryCause.ESP_MISSING,
    IssueCode.ESP_NOT_FAT32: PrimaryCause.ESP_MISSING,
    IssueCode.BOOT_MANAGER_MISSING: PrimaryCause.ESP_MISSING,
    IssueCode.SECURE_BOOT_VIOLATION: PrimaryCause.SECURE_BOOT_BLOCK,
    IssueCode.DRIVER_MISSING: PrimaryCause.DRIVER_MISSING,
    IssueCode.DRIVER_DISABLED: PrimaryCause.DRIVER_MISSING,
    IssueCode.DRIVER_OVERRIDE_TRAP: PrimaryCause.DRIVER_MISSING,
    IssueCode.KERNEL_MISSING: PrimaryCause.INSTALL_CORRUPT,
    IssueCode.SYSTEM_HIVE_MISSING: PrimaryCause.INSTALL_CORRUPT,
    IssueCode.FIRMWARE_LAYOUT_MISMATCH: PrimaryCause.FIRMWARE_MISMATCH,
    IssueCode.FIRMWARE_UNKNOWN: PrimaryCause.FIRMWARE_MISMATCH,
    IssueCode.VOLUME_LOCKED: PrimaryCause.BITLOCKER_LOCK,
    IssueCode.PROBE_EXECUTION_FAILED: PrimaryCause.UNKNOWN,
}

INCONCLUSIVE_SECURITY_PENALTY = 10


def _collect_issues(evidence: EvidenceSet, checks: CriticalChecks) -> list[tuple[IssueCode, str]]:
    """Critical-check issues first, then probe issues in probe order, deduplicated."""
    pairs: list[tuple[IssueCode, str]] = []
    seen: set[str] = set()

    def add(code: IssueCode, message: str) -> None:
        if message not in seen:
            seen.add(message)
            pairs.append((code, message))

    for outcome in (checks.physical, checks.logical):
        if not outcome.passed:
            for code, message in zip(outcome.codes, outcome.issues, strict=True):
                add(code, message)
    if checks.security == SecurityState.LOCKED:
        add(IssueCode.VOLUME_LOCKED, "OS volume is locked by drive encryption")

    for result in evidence.failed():
        for code, message in zip(result.codes, result.issues, strict=True):
            add(code, message)
    return pairs


def select_primary_cause(
    pairs: list[tuple[IssueCode, str]],
    *,
    will_boot: bool,
) -> tuple[PrimaryCause, str | None]:
    """First issue whose cause ranks highest in CAUSE_PRIORITY."""
    if not pairs:
        return (PrimaryCause.NONE if will_boot else PrimaryCause.UNKNOWN), None
    for cause in CAUSE_PRIORITY:
        for code, message in pairs:
            if CAUSE_BY_CODE[code] == cause:
                return cause, message
    return PrimaryCause.UNKNOWN, pairs[0][1]


def _band(score: int) -> ConfidenceLevel:
    if score >= 80:
        return ConfidenceLevel.HIGH
    if score >= 60:
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.LOW


def score_confidence(
    evidence: EvidenceSet,
    checks: CriticalChecks,
    installation_count: int,
) -> tuple[int, ConfidenceLevel]:
    """Confidence score and level; zero whenever the physical check fails."""
    if not checks.physical.passed:
        return 0, ConfidenceLevel.LOW

    base = round(100 * evidence.passed_count / evidence.total) if evidence.total else 0

    if installation_count > 1:
        return min(base, max(30, base - 20)), ConfidenceLevel.LOW

    bcd_reality = evidence.get(ProbeId.BCD_REALITY)
    if bcd_reality is not None and not bcd_reality.passed:
        return min(base, max(40, base - 15)), ConfidenceLevel.MEDIUM

    score = base
    if checks.security == SecurityState.INCONCLUSIVE:
        score = max(0, score - INCONCLUSIVE_SECURITY_PENALTY)
    return score, _band(score)


def compute_verdict(
    evidence: EvidenceSet,
    checks: CriticalChecks,
    installation_count: int = 1,
) -> Verdict:
    """Decide whether the installation will boot.

    A failed physical check is a definitive NO with zero confidence, whatever
    the probes say. Otherwise the machine boots when the logical check passes
    and the volume is not definitively locked.
    """
    will_boot = (
        checks.physical.passed
        and checks.logical.passed
        and checks.security != SecurityState.LOCKED
    )
    pairs = _collect_issues(evidence, checks)
    score, level = score_confidence(evidence, checks, installation_count)
    cause, primary_issue = select_primary_cause(pairs, will_boot=will_boot)

    return Verdict(
        will_boot=will_boot,
        confidence_score=score,
        confidence_level=level,
        blocking_issues=tuple(message for _, message in pairs),
        issue_codes=tuple(code for code, _ in pairs),
        primary_cause=cause,
        primary_issue=primary_issue,
    )
