"""Diagnose command: verdict, ranked blockers, and report files."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from bootmedic.cli.common import fail, open_facts, settings_or_exit
from bootmedic.models.blocker import BlockerCandidate
from bootmedic.models.verdict import DiagnosisReport


def run_diagnose(
    *,
    facts_path: str | None,
    live: bool,
    target_drive: str | None,
    report_paths: list[str],
    output_dir: str | None,
    config_path: Path | None,
    verbose: bool,
    root_path: str,
) -> None:
    """Run one diagnosis, write its artifacts, and exit with the verdict code."""
    from bootmedic.core.diagnose.engine import DiagnosisEngine
    from bootmedic.core.errors import BootMedicError
    from bootmedic.core.rank import load_issue_report, rank_blockers
    from bootmedic.report.writer import write_all
    from bootmedic.utils.state import reports_dir

    settings = settings_or_exit(config_path, root_path)

    try:
        reports = [load_issue_report(Path(p)) for p in report_paths]
    except BootMedicError as exc:
        fail(str(exc))

    with open_facts(facts_path, live) as facts:
        report = DiagnosisEngine(facts=facts, settings=settings).run(target_drive)

    blockers = rank_blockers(report.verdict, reports) if report.verdict is not None else None

    out = Path(output_dir) if output_dir else reports_dir(root_path, "diagnosis")
    write_all(out, report, blockers)

    _print_summary(report, blockers or [], out, verbose)
    sys.exit(report.exit_code)


def _print_summary(
    report: DiagnosisReport,
    blockers: list[BlockerCandidate],
    out: Path,
    verbose: bool,
) -> None:
    """Rich summary on stderr; the report directory on stdout."""
    from bootmedic.ui.console import err_console
    from bootmedic.ui.tables import (
        blockers_table,
        critical_checks_table,
        evidence_table,
        verdict_panel,
    )

    if report.verdict is None:
        err_console.print(f"[error]Configuration error:[/error] {report.error}")
        click.echo(str(out))
        return

    err_console.print(verdict_panel(report.verdict))
    if report.checks is not None:
        err_console.print(critical_checks_table(report.checks))
    if verbose and report.evidence is not None:
        err_console.print(evidence_table(report.evidence))
    if blockers:
        err_console.print(blockers_table(blockers))
    err_console.print(f"[muted]Reports written to {out}[/muted]")
    click.echo(str(out))
