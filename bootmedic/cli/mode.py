"""Mode command: show the classified repair mode."""

from __future__ import annotations

from pathlib import Path

import click

from bootmedic.cli.common import open_facts, settings_or_exit


def run_mode(
    *,
    facts_path: str | None,
    live: bool,
    allow_safe_repair: bool,
    config_path: Path | None,
    root_path: str,
) -> None:
    from bootmedic.core.gate.environment import classify_environment
    from bootmedic.ui.console import err_console
    from bootmedic.ui.tables import mode_panel

    settings = settings_or_exit(config_path, root_path)
    with open_facts(facts_path, live) as facts:
        signals = facts.signals()

    classification = classify_environment(
        signals,
        allow_safe_repair=allow_safe_repair or settings.allow_safe_repair,
    )
    err_console.print(mode_panel(classification))
    click.echo(classification.mode.value)
