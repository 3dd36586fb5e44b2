"""Authorize command: advisory allow/deny for one command."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from bootmedic.cli.common import fail, open_facts, settings_or_exit
from bootmedic.core.errors import BootMedicError


def run_authorize(
    *,
    command_text: str,
    destructive: bool,
    operation: str | None,
    facts_path: str | None,
    live: bool,
    allow_safe_repair: bool,
    config_path: Path | None,
    policy_path: Path | None,
    root_path: str,
) -> None:
    """Print ALLOW/DENY with the deciding rule; exit 0 on allow, 1 on deny."""
    from bootmedic.core.gate import authorize, classify_environment, load_policy
    from bootmedic.models.decision import CommandRequest, OperationCategory
    from bootmedic.ui.console import err_console
    from bootmedic.ui.tables import authorization_line

    settings = settings_or_exit(config_path, root_path)
    try:
        policy = load_policy(policy_path or settings.policy_path)
    except BootMedicError as exc:
        fail(str(exc))

    with open_facts(facts_path, live) as facts:
        signals = facts.signals()
    classification = classify_environment(
        signals,
        allow_safe_repair=allow_safe_repair or settings.allow_safe_repair,
    )

    request = CommandRequest(
        command_text=command_text,
        is_destructive=destructive,
        operation=OperationCategory(operation) if operation else None,
    )
    result = authorize(request, classification.mode, policy)

    err_console.print(f"[muted]mode {classification.mode.value}: {classification.reason}[/muted]")
    err_console.print(authorization_line(result))
    click.echo(f"{'allow' if result.allowed else 'deny'} {result.rule_id}")
    sys.exit(0 if result.allowed else 1)
