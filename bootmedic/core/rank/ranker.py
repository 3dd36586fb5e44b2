"""Root-cause ranker: verdict + secondary reports -> top-3 blockers."""

from __future__ import annotations

from collections.abc import Sequence

from bootmedic.core.rank.rules import recommended_action
from bootmedic.models.blocker import (
    BlockerCandidate,
    BlockerCategory,
    BlockerSeverity,
    IssueReport,
    ReportSource,
)
from bootmedic.models.verdict import PrimaryCause, Verdict

MAX_BLOCKERS = 3

SEVERITY_WEIGHT: dict[BlockerSeverity, int] = {
    BlockerSeverity.CRITICAL: 0,
    BlockerSeverity.HIGH: 10,
    BlockerSeverity.MEDIUM: 20,
    BlockerSeverity.LOW: 30,
}
UNCLASSIFIED_SEVERITY_WEIGHT = 15

CATEGORY_WEIGHT: dict[BlockerCategory, int] = {
    BlockerCategory.BOOT_FAILURE: 0,
    BlockerCategory.HARDWARE: 5,
    BlockerCategory.COMPATIBILITY: 10,
    BlockerCategory.REGISTRY_BLOCKER: 15,
}
UNCLASSIFIED_CATEGORY_WEIGHT = 20

# Category assumed for findings that do not name one.
SOURCE_CATEGORY: dict[ReportSource, BlockerCategory] = {
    ReportSource.VERDICT: BlockerCategory.BOOT_FAILURE,
    ReportSource.DISK_HEALTH: BlockerCategory.HARDWARE,
    ReportSource.REGISTRY: BlockerCategory.REGISTRY_BLOCKER,
    ReportSource.SETUP_LOG: BlockerCategory.COMPATIBILITY,
}


def priority_score(
    severity: BlockerSeverity | None,
    category: BlockerCategory | None,
    confidence: int,
) -> float:
    """Lower is more urgent."""
    severity_weight = SEVERITY_WEIGHT[severity] if severity is not None else UNCLASSIFIED_SEVERITY_WEIGHT
    category_weight = CATEGORY_WEIGHT[category] if category is not None else UNCLASSIFIED_CATEGORY_WEIGHT
    return severity_weight + (100 - confidence) / 10 + category_weight


def _candidate(
    *,
    issue: str,
    severity: BlockerSeverity | None,
    category: BlockerCategory | None,
    confidence: int,
    action: str,
    source: ReportSource,
) -> BlockerCandidate:
    return BlockerCandidate(
        issue=issue,
        category=category,
        severity=severity,
        confidence=confidence,
        recommended_action=action,
        priority_score=priority_score(severity, category, confidence),
        source=source,
    )


def verdict_candidate(verdict: Verdict) -> BlockerCandidate | None:
    """Blocker for the verdict's primary cause, or None when nothing is wrong.

    A NO verdict rests on a failed critical check, so its blocker is certain.
    On a YES verdict the blocker is only as likely as the evidence is weak.
    """
    if verdict.primary_cause == PrimaryCause.NONE:
        return None
    if verdict.will_boot:
        severity, confidence = BlockerSeverity.MEDIUM, 100 - verdict.confidence_score
    else:
        severity, confidence = BlockerSeverity.CRITICAL, 100
    return _candidate(
        issue=verdict.primary_issue or verdict.primary_cause.value,
        severity=severity,
        category=BlockerCategory.BOOT_FAILURE,
        confidence=confidence,
        action=recommended_action(verdict.primary_cause),
        source=ReportSource.VERDICT,
    )


def collect_candidates(
    verdict: Verdict | None,
    reports: Sequence[IssueReport] = (),
) -> list[BlockerCandidate]:
    """All candidates in source order: verdict first, then each report's findings."""
    candidates: list[BlockerCandidate] = []
    if verdict is not None:
        primary = verdict_candidate(verdict)
        if primary is not None:
            candidates.append(primary)

    for report in reports:
        for finding in report.findings:
            candidates.append(
                _candidate(
                    issue=finding.issue,
                    severity=finding.severity,
                    category=finding.category or SOURCE_CATEGORY[report.source],
                    confidence=finding.confidence,
                    action=finding.recommended_action,
                    source=report.source,
                )
            )
    return candidates


def rank_blockers(
    verdict: Verdict | None,
    reports: Sequence[IssueReport] = (),
) -> list[BlockerCandidate]:
    """Top three blockers, most urgent first, ranked 1..3.

    Ties keep insertion order.
    """
    candidates = collect_candidates(verdict, reports)
    ordered = sorted(candidates, key=lambda c: c.priority_score)
    return [
        candidate.model_copy(update={"rank": index})
        for index, candidate in enumerate(ordered[:MAX_BLOCKERS], start=1)
    ]
