"""Reusable Rich renderables for diagnosis output."""

from __future__ import annotations

from rich.panel import Panel
from rich.table import Table

from bootmedic.models.blocker import BlockerCandidate
from bootmedic.models.decision import AuthorizationResult, EnvironmentClassification, RepairMode
from bootmedic.models.evidence import CriticalChecks, EvidenceSet, ProbeStatus, SecurityState
from bootmedic.models.verdict import Verdict

_STATUS_ICONS = {
    ProbeStatus.PASSED: "[success]✓[/success]",
    ProbeStatus.FAILED: "[error]✗[/error]",
    ProbeStatus.ERROR: "[warning]![/warning]",
}

_SEVERITY_STYLES = {
    "Low": "severity.low",
    "Medium": "severity.medium",
    "High": "severity.high",
    "Critical": "severity.critical",
}

_MODE_STYLES = {
    RepairMode.DIAGNOSE_ONLY: "mode.diagnose",
    RepairMode.REPAIR_SAFE: "mode.safe",
    RepairMode.REPAIR_FORCE: "mode.force",
}


def checklist(checks: list[tuple[str, bool, str]]) -> Table:
    """Build a checklist table: (label, passed, detail)."""
    table = Table(show_header=False, show_lines=False, pad_edge=False, box=None)
    table.add_column("", width=3)
    table.add_column("Check", style="bold")
    table.add_column("Detail")

    for label, passed, detail in checks:
        icon = "[success]✓[/success]" if passed else "[error]✗[/error]"
        style = "" if passed else "error"
        table.add_row(icon, f"[{style}]{label}[/{style}]" if style else label, detail)

    return table


def critical_checks_table(checks: CriticalChecks) -> Table:
    security_ok = checks.security != SecurityState.LOCKED
    return checklist(
        [
            ("Physical", checks.physical.passed, checks.physical.detail),
            ("Logical", checks.logical.passed, checks.logical.detail),
            ("Security", security_ok, f"{checks.security.value} {checks.security_detail}".strip()),
        ]
    )


def evidence_table(evidence: EvidenceSet) -> Table:
    """One row per probe, in execution order."""
    table = Table(title="Boot-chain probes", show_lines=False, pad_edge=False)
    table.add_column("", width=3)
    table.add_column("Probe", style="bold")
    table.add_column("Evidence")
    table.add_column("Issues", style="error")

    for result in evidence.results:
        name = result.probe_id.value
        if result.retried:
            name += " [muted](re-checked)[/muted]"
        table.add_row(
            _STATUS_ICONS[result.status],
            name,
            "\n".join(result.evidence),
            "\n".join(result.issues),
        )
    return table


def blockers_table(blockers: list[BlockerCandidate]) -> Table:
    table = Table(title="Top blockers", show_lines=False, pad_edge=False)
    table.add_column("#", width=3)
    table.add_column("Issue", style="bold")
    table.add_column("Severity")
    table.add_column("Source", style="muted")
    table.add_column("Action")

    for blocker in blockers:
        severity = blocker.severity.value if blocker.severity else "unclassified"
        style = _SEVERITY_STYLES.get(severity, "")
        severity_text = f"[{style}]{severity}[/{style}]" if style else severity
        table.add_row(
            str(blocker.rank or ""),
            blocker.issue,
            severity_text,
            blocker.source.value,
            blocker.recommended_action,
        )
    return table


def verdict_panel(verdict: Verdict) -> Panel:
    if verdict.will_boot:
        headline = "[success]WILL BOOT[/success]"
    else:
        headline = "[error]WILL NOT BOOT[/error]"
    body = (
        f"{headline}  confidence {verdict.confidence_level.value} ({verdict.confidence_score}/100)\n"
        f"Primary cause: {verdict.primary_cause.value}"
    )
    return Panel(body, title="Verdict", expand=False)


def mode_panel(classification: EnvironmentClassification) -> Panel:
    style = _MODE_STYLES[classification.mode]
    recovery = ", ".join(classification.recovery_signals) or "none"
    live = ", ".join(classification.live_signals) or "none"
    body = (
        f"[{style}]{classification.mode.value}[/{style}]\n"
        f"{classification.reason}\n"
        f"[muted]recovery signals: {recovery}[/muted]\n"
        f"[muted]live signals: {live}[/muted]"
    )
    return Panel(body, title="Repair mode", expand=False)


def authorization_line(result: AuthorizationResult) -> str:
    if result.allowed:
        return f"[success]ALLOW[/success] ({result.rule_id}) {result.reason}"
    return f"[error]DENY[/error] ({result.rule_id}) {result.reason}"
