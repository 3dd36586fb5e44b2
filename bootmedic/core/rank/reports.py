"""Load secondary issue reports (disk health, registry, setup log)."""

from __future__ import annotations

import logging
from enum import StrEnum
from pathlib import Path
from typing import Any, TypeVar

import yaml

from bootmedic.core.errors import SettingsError
from bootmedic.models.blocker import (
    BlockerCategory,
    BlockerSeverity,
    Finding,
    IssueReport,
    ReportSource,
)

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=StrEnum)


def _lookup(enum_type: type[E], raw: Any, *, field: str, issue: str) -> E | None:
    """Case-insensitive enum lookup; unknown values become None (unclassified)."""
    if raw is None:
        return None
    text = str(raw).strip().lower()
    for member in enum_type:
        if text in (member.value.lower(), member.name.lower()):
            return member
    logger.warning("unrecognized %s %r for %r; treating as unclassified", field, raw, issue)
    return None


def parse_issue_report(data: dict[str, Any]) -> IssueReport:
    """Build an IssueReport from a decoded document."""
    raw_source = data.get("source")
    source = _lookup(ReportSource, raw_source, field="source", issue="<report>")
    if source is None or source == ReportSource.VERDICT:
        raise SettingsError(
            f"Report source must be one of disk_health, registry, setup_log (got {raw_source!r})"
        )

    findings: list[Finding] = []
    for raw in data.get("findings", []):
        if not isinstance(raw, dict) or not raw.get("issue"):
            raise SettingsError(f"Finding must be a mapping with an 'issue': {raw!r}")
        issue = str(raw["issue"])
        findings.append(
            Finding(
                issue=issue,
                severity=_lookup(BlockerSeverity, raw.get("severity"), field="severity", issue=issue),
                category=_lookup(BlockerCategory, raw.get("category"), field="category", issue=issue),
                confidence=int(raw.get("confidence", 50)),
                recommended_action=str(raw.get("recommended_action", "")),
            )
        )
    return IssueReport(source=source, findings=findings)


def load_issue_report(path: Path) -> IssueReport:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        raise SettingsError(f"Cannot read report {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise SettingsError(f"Report {path} must be a mapping")
    return parse_issue_report(data)
