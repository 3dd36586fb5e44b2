"""Report writers: serialize a diagnosis into files under a report directory."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from bootmedic.branding import PRODUCT_NAME
from bootmedic.models.blocker import BlockerCandidate
from bootmedic.models.evidence import ProbeId
from bootmedic.models.verdict import DiagnosisReport

VERDICT_FILE = "verdict.json"
DIAGNOSIS_FILE = "diagnosis.json"
REPORT_FILE = "report.md"
BLOCKERS_FILE = "blockers.json"


def _probe_passed(report: DiagnosisReport, probe_id: ProbeId) -> bool:
    if report.evidence is None:
        return False
    result = report.evidence.get(probe_id)
    return bool(result and result.passed)


def verdict_payload(report: DiagnosisReport) -> dict[str, Any]:
    """Flat machine-readable summary of a diagnosis."""
    verdict = report.verdict
    env = report.environment
    evidence = report.evidence
    blocking_issue = None
    if verdict is not None:
        blocking_issue = verdict.primary_issue or next(iter(verdict.blocking_issues), None)
    return {
        "bootable": verdict.will_boot if verdict else False,
        "verdict": ("YES" if verdict.will_boot else "NO") if verdict else "UNKNOWN",
        "confidence": verdict.confidence_level.value if verdict else None,
        "confidence_score": verdict.confidence_score if verdict else 0,
        "firmware": env.firmware_type.value if env else None,
        "esp_mounted": bool(env and env.esp.mounted),
        "bcd_valid": _probe_passed(report, ProbeId.BCD_REALITY),
        "winload_present": _probe_passed(report, ProbeId.LOADER_FILE),
        "drivers_ok": _probe_passed(report, ProbeId.DRIVERS),
        "chain_intact": _probe_passed(report, ProbeId.CHAIN_LINKS),
        "blocking_issue": blocking_issue,
        "checks_passed": f"{evidence.passed_count}/{evidence.total}" if evidence else "0/0",
        "error": report.error,
    }


def _dump(path: Path, data: Any) -> None:
    path.write_text(json.dumps(data, indent=2, sort_keys=False), encoding="utf-8")


def write_verdict_json(out: Path, report: DiagnosisReport) -> Path:
    path = out / VERDICT_FILE
    _dump(path, verdict_payload(report))
    return path


def write_diagnosis_json(out: Path, report: DiagnosisReport) -> Path:
    """Write diagnosis.json, the full structured report."""
    path = out / DIAGNOSIS_FILE
    _dump(path, report.model_dump(mode="json"))
    return path


def write_blockers_json(out: Path, blockers: list[BlockerCandidate]) -> Path:
    path = out / BLOCKERS_FILE
    _dump(path, [b.model_dump(mode="json") for b in blockers])
    return path


def render_markdown(report: DiagnosisReport, blockers: list[BlockerCandidate] | None = None) -> str:
    """Human-readable markdown report."""
    lines: list[str] = []
    lines.append(f"# {PRODUCT_NAME} Diagnosis")
    lines.append("")
    lines.append(f"**Generated:** {report.generated_at}")
    lines.append(f"**Schema version:** {report.schema_version}")
    lines.append("")

    if report.verdict is None:
        lines.append("## Configuration Error")
        lines.append("")
        lines.append(f"> {report.error or 'Diagnosis did not complete.'}")
        lines.append("")
        return "\n".join(lines)

    verdict = report.verdict
    lines.append("## Verdict")
    lines.append("")
    lines.append(f"- **Will boot:** {'YES' if verdict.will_boot else 'NO'}")
    lines.append(f"- **Confidence:** {verdict.confidence_level.value} ({verdict.confidence_score}/100)")
    lines.append(f"- **Primary cause:** {verdict.primary_cause.value}")
    lines.append("")

    env = report.environment
    install = report.installation
    if env is not None:
        lines.append("## Environment")
        lines.append("")
        lines.append(f"- **Firmware:** {env.firmware_type.value}")
        lines.append(f"- **Disk layout:** {env.disk_layout.value}")
        lines.append(f"- **Secure Boot:** {env.secure_boot.value}")
        esp = env.esp
        if esp.present:
            lines.append(f"- **ESP:** {esp.drive_id or 'unmounted'} ({esp.filesystem or 'unknown fs'})")
        else:
            lines.append("- **ESP:** not found")
        lines.append(f"- **Boot store:** `{env.boot_store_path}`")
        if install is not None:
            lines.append(f"- **Windows:** `{install.windows_path}`")
        if len(report.installations) > 1:
            others = ", ".join(i.drive_id for i in report.installations if i != install)
            lines.append(f"- **Other installations:** {others}")
        lines.append("")

    if report.checks is not None:
        checks = report.checks
        lines.append("## Critical Checks")
        lines.append("")
        lines.append("| Check | Result | Detail |")
        lines.append("|-------|--------|--------|")
        lines.append(f"| Physical | {'pass' if checks.physical.passed else 'FAIL'} | {checks.physical.detail} |")
        lines.append(f"| Logical | {'pass' if checks.logical.passed else 'FAIL'} | {checks.logical.detail} |")
        lines.append(f"| Security | {checks.security.value} | {checks.security_detail} |")
        lines.append("")

    if report.evidence is not None:
        lines.append("## Probes")
        lines.append("")
        lines.append("| Probe | Status | Evidence |")
        lines.append("|-------|--------|----------|")
        for result in report.evidence.results:
            status = result.status.value + (" (re-checked)" if result.retried else "")
            lines.append(f"| {result.probe_id.value} | {status} | {'; '.join(result.evidence)} |")
        lines.append("")

    if verdict.blocking_issues:
        lines.append("## Blocking Issues")
        lines.append("")
        for issue in verdict.blocking_issues:
            lines.append(f"- {issue}")
        lines.append("")

    if blockers:
        lines.append("## Top Blockers")
        lines.append("")
        for blocker in blockers:
            severity = blocker.severity.value if blocker.severity else "unclassified"
            lines.append(f"### {blocker.rank}. {blocker.issue}")
            lines.append("")
            lines.append(f"- **Severity:** {severity}")
            lines.append(f"- **Source:** {blocker.source.value}")
            lines.append(f"- **Priority score:** {blocker.priority_score:g}")
            lines.append(f"- **Action:** {blocker.recommended_action}")
            lines.append("")

    return "\n".join(lines)


def write_report_md(
    out: Path,
    report: DiagnosisReport,
    blockers: list[BlockerCandidate] | None = None,
) -> Path:
    path = out / REPORT_FILE
    path.write_text(render_markdown(report, blockers), encoding="utf-8")
    return path


def write_all(
    out: Path,
    report: DiagnosisReport,
    blockers: list[BlockerCandidate] | None = None,
) -> list[Path]:
    """Write every artifact for *report* into *out* (created if missing)."""
    out.mkdir(parents=True, exist_ok=True)
    written = [
        write_verdict_json(out, report),
        write_diagnosis_json(out, report),
        write_report_md(out, report, blockers),
    ]
    if blockers is not None:
        written.append(write_blockers_json(out, blockers))
    return written
