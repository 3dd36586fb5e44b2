"""Tests for loading secondary issue reports."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from bootmedic.core.errors import SettingsError
from bootmedic.core.rank.reports import load_issue_report, parse_issue_report
from bootmedic.models.blocker import BlockerCategory, BlockerSeverity, ReportSource
from tests.helpers import write_issue_report


def test_parses_findings(tmp_path: Path) -> None:
    path = write_issue_report(
        tmp_path / "disk.yaml",
        "disk_health",
        [
            {
                "issue": "SMART predictive failure",
                "severity": "critical",
                "confidence": 95,
                "recommended_action": "Replace the disk",
            }
        ],
    )
    report = load_issue_report(path)
    assert report.source == ReportSource.DISK_HEALTH
    finding = report.findings[0]
    assert finding.severity == BlockerSeverity.CRITICAL
    assert finding.category is None
    assert finding.confidence == 95


def test_category_matches_by_value_or_name() -> None:
    report = parse_issue_report(
        {
            "source": "setup_log",
            "findings": [
                {"issue": "a", "category": "RegistryBlocker"},
                {"issue": "b", "category": "registry_blocker"},
            ],
        }
    )
    assert [f.category for f in report.findings] == [BlockerCategory.REGISTRY_BLOCKER] * 2


def test_unknown_severity_is_unclassified(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="bootmedic"):
        report = parse_issue_report(
            {"source": "registry", "findings": [{"issue": "odd", "severity": "catastrophic"}]}
        )
    assert report.findings[0].severity is None
    assert "catastrophic" in caplog.text


@pytest.mark.parametrize("source", [None, "verdict", "event_log"])
def test_invalid_source_rejected(source: str | None) -> None:
    with pytest.raises(SettingsError):
        parse_issue_report({"source": source, "findings": []})


def test_finding_requires_issue() -> None:
    with pytest.raises(SettingsError):
        parse_issue_report({"source": "registry", "findings": [{"severity": "High"}]})


def test_non_mapping_file(tmp_path: Path) -> None:
    path = tmp_path / "bad.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(SettingsError):
        load_issue_report(path)
