"""Run command: authorize a repair command, then execute it once."""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path

import click

from bootmedic.cli.common import fail, settings_or_exit
from bootmedic.core.errors import AuthorizationDenied, BootMedicError


def run_command(
    *,
    command: list[str],
    destructive: bool,
    operation: str | None,
    allow_safe_repair: bool,
    confirm: bool,
    config_path: Path | None,
    policy_path: Path | None,
    root_path: str,
) -> None:
    """Classify the live environment, authorize, confirm, and execute.

    Exits with the command's own exit code, or 1 when denied.
    """
    from bootmedic.core.facts.live import LiveFacts, SubprocessExecutor
    from bootmedic.core.gate import CommandDispatcher, classify_environment, load_policy
    from bootmedic.models.decision import CommandRequest, OperationCategory
    from bootmedic.ui.console import err_console
    from bootmedic.ui.tables import authorization_line
    from bootmedic.utils.locks import RepairLockError, repair_lock

    settings = settings_or_exit(config_path, root_path)
    try:
        policy = load_policy(policy_path or settings.policy_path)
    except BootMedicError as exc:
        fail(str(exc))

    with LiveFacts() as facts:
        signals = facts.signals()
    classification = classify_environment(
        signals,
        allow_safe_repair=allow_safe_repair or settings.allow_safe_repair,
    )

    command_text = subprocess.list2cmdline(command)
    request = CommandRequest(
        command_text=command_text,
        is_destructive=destructive,
        operation=OperationCategory(operation) if operation else None,
    )
    dispatcher = CommandDispatcher(
        executor=SubprocessExecutor(),
        mode=classification.mode,
        policy=policy,
    )

    if destructive and confirm:
        err_console.print(f"[muted]mode {classification.mode.value}: {classification.reason}[/muted]")
        err_console.print(f"About to run: [command]{command_text}[/command]")
        if not click.confirm("Proceed?", default=False, err=True):
            click.echo("Aborted.", err=True)
            sys.exit(1)

    try:
        with repair_lock(root_path, command_text):
            result = dispatcher.dispatch(request)
    except AuthorizationDenied as exc:
        err_console.print(authorization_line(exc.result))
        sys.exit(1)
    except RepairLockError as exc:
        fail(str(exc), code=1)

    if result.stdout:
        click.echo(result.stdout, nl=False)
    if result.stderr:
        click.echo(result.stderr, nl=False, err=True)
    sys.exit(result.exit_code)
