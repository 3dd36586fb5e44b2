"""Rank command: re-rank blockers from a saved diagnosis."""

from __future__ import annotations

import json
from pathlib import Path

import click
from pydantic import ValidationError

from bootmedic.cli.common import fail


def run_rank(*, diagnosis_path: str, report_paths: list[str], as_json: bool) -> None:
    from bootmedic.core.errors import BootMedicError
    from bootmedic.core.rank import load_issue_report, rank_blockers
    from bootmedic.models.verdict import DiagnosisReport
    from bootmedic.ui.console import err_console
    from bootmedic.ui.tables import blockers_table

    try:
        report = DiagnosisReport.model_validate_json(Path(diagnosis_path).read_text(encoding="utf-8"))
    except (OSError, ValidationError) as exc:
        fail(f"cannot load diagnosis {diagnosis_path}: {exc}")

    try:
        reports = [load_issue_report(Path(p)) for p in report_paths]
    except BootMedicError as exc:
        fail(str(exc))

    blockers = rank_blockers(report.verdict, reports)

    if as_json:
        click.echo(json.dumps([b.model_dump(mode="json") for b in blockers], indent=2))
        return

    if not blockers:
        err_console.print("[success]No blockers found.[/success]")
        return
    err_console.print(blockers_table(blockers))
    for blocker in blockers:
        click.echo(f"{blocker.rank}. {blocker.issue}")
