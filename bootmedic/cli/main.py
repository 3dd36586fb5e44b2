"""Main CLI entry point for BootMedic."""

from __future__ import annotations

import logging
from pathlib import Path

import click

from bootmedic import __version__
from bootmedic.branding import CLI_PRIMARY_COMMAND, PRODUCT_NAME
from bootmedic.models.decision import OperationCategory
from bootmedic.utils.state import resolve_root

# Commands shown in the "Diagnosis" section of help, in workflow order.
DIAGNOSIS_COMMANDS = ["diagnose", "rank"]

# Commands shown in the "Repair gate" section.
GATE_COMMANDS = ["mode", "authorize", "run"]

OPERATION_CHOICES = [category.value for category in OperationCategory]


class BootMedicGroup(click.Group):
    """Group with sectioned help output."""

    def format_commands(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        commands = []
        for subcommand in self.list_commands(ctx):
            cmd = self.commands.get(subcommand)
            if cmd is None or cmd.hidden:
                continue
            commands.append((subcommand, cmd.get_short_help_str(limit=150)))

        if not commands:
            return

        diagnosis = [(n, h) for n, h in commands if n in DIAGNOSIS_COMMANDS]
        gate = [(n, h) for n, h in commands if n in GATE_COMMANDS]
        diagnosis.sort(key=lambda x: DIAGNOSIS_COMMANDS.index(x[0]))
        gate.sort(key=lambda x: GATE_COMMANDS.index(x[0]))

        if diagnosis:
            with formatter.section("Diagnosis"):
                formatter.write_dl(diagnosis)
        if gate:
            with formatter.section("Repair gate"):
                formatter.write_dl(gate)

        formatter.write("\n")
        formatter.write(f"  Use '{CLI_PRIMARY_COMMAND} <command> --help' for details on any command.\n")


def _configure_logging(verbose: bool) -> None:
    from rich.logging import RichHandler

    from bootmedic.ui.console import err_console

    root_logger = logging.getLogger("bootmedic")
    for handler in list(root_logger.handlers):
        if isinstance(handler, RichHandler):
            root_logger.removeHandler(handler)
    root_logger.addHandler(RichHandler(console=err_console, show_path=False, markup=False))
    root_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


@click.group(cls=BootMedicGroup)
@click.version_option(version=__version__, prog_name=CLI_PRIMARY_COMMAND)
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output and debug logging")
@click.option(
    "--root",
    type=click.Path(file_okay=False, path_type=Path),
    default=resolve_root(),
    envvar="BOOTMEDIC_ROOT",
    show_default=True,
    help="State root for reports, settings, and the repair lock",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Settings file (defaults to <root>/bootmedic.yaml)",
)
@click.option(
    "--policy",
    "policy_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    envvar="BOOTMEDIC_POLICY",
    help="Command policy YAML (defaults to the packaged policy)",
)
@click.option(
    "--no-interactive",
    is_flag=True,
    envvar="BOOTMEDIC_NON_INTERACTIVE",
    help="Never prompt for confirmation (same as BOOTMEDIC_NON_INTERACTIVE=1)",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    root: Path,
    config_path: Path | None,
    policy_path: Path | None,
    no_interactive: bool,
) -> None:
    """Diagnose why a Windows installation will not boot, and gate the repairs."""
    from bootmedic.ui.policy import should_interact

    _configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["root"] = root
    ctx.obj["config_path"] = config_path
    ctx.obj["policy_path"] = policy_path
    ctx.obj["brand"] = {
        "product": PRODUCT_NAME,
        "primary_command": CLI_PRIMARY_COMMAND,
    }
    ctx.obj["interactive"] = should_interact(force=False if no_interactive else None)


def _facts_options(func):  # type: ignore[no-untyped-def]
    func = click.option(
        "--live",
        is_flag=True,
        help="Query the running Windows / WinPE instance",
    )(func)
    func = click.option(
        "--facts",
        "facts_path",
        type=click.Path(exists=True, dir_okay=False),
        help="Facts snapshot (YAML/JSON) to diagnose offline",
    )(func)
    return func


# ---------------------------------------------------------------------------
# Diagnosis
# ---------------------------------------------------------------------------


@cli.command(
    epilog="""\b
Examples:
  bootmedic diagnose --live
  bootmedic diagnose --live --target-drive D:
  bootmedic diagnose --facts snapshot.yaml --from disk_health.yaml --from setup_log.yaml
""",
)
@_facts_options
@click.option("--target-drive", help="Diagnose the installation on this drive (e.g. C:)")
@click.option(
    "--from",
    "from_",
    multiple=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Secondary issue report (disk_health, registry, setup_log). Repeatable.",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(file_okay=False),
    help="Output directory (defaults to <root>/reports/<timestamp>_diagnosis/)",
)
@click.pass_context
def diagnose(
    ctx: click.Context,
    facts_path: str | None,
    live: bool,
    target_drive: str | None,
    from_: tuple[str, ...],
    output: str | None,
) -> None:
    """Decide whether the installation will boot, and rank what blocks it.

    \b
    Exit codes:
      0  will boot
      1  will not boot
      2  configuration error (no installation, bad input)
    """
    from bootmedic.cli.diagnose import run_diagnose

    run_diagnose(
        facts_path=facts_path,
        live=live,
        target_drive=target_drive,
        report_paths=list(from_),
        output_dir=output,
        config_path=ctx.obj.get("config_path"),
        verbose=ctx.obj.get("verbose", False),
        root_path=str(ctx.obj.get("root", resolve_root())),
    )


@cli.command(
    epilog="""\b
Examples:
  bootmedic rank --diagnosis .bootmedic/reports/20260101_120000Z_diagnosis/diagnosis.json
  bootmedic rank --diagnosis diagnosis.json --from registry.yaml
""",
)
@click.option(
    "--diagnosis",
    "diagnosis_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="diagnosis.json written by 'bootmedic diagnose'",
)
@click.option(
    "--from",
    "from_",
    multiple=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Secondary issue report (disk_health, registry, setup_log). Repeatable.",
)
@click.option("--json", "as_json", is_flag=True, help="Print the ranked blockers as JSON on stdout")
def rank(diagnosis_path: str, from_: tuple[str, ...], as_json: bool) -> None:
    """Re-rank the top blockers from a saved diagnosis plus other reports."""
    from bootmedic.cli.rank import run_rank

    run_rank(diagnosis_path=diagnosis_path, report_paths=list(from_), as_json=as_json)


# ---------------------------------------------------------------------------
# Repair gate
# ---------------------------------------------------------------------------


@cli.command()
@_facts_options
@click.option(
    "--allow-safe-repair",
    is_flag=True,
    help="Permit reversible repairs when a live OS is detected",
)
@click.pass_context
def mode(ctx: click.Context, facts_path: str | None, live: bool, allow_safe_repair: bool) -> None:
    """Show the repair mode derived from the execution environment."""
    from bootmedic.cli.mode import run_mode

    run_mode(
        facts_path=facts_path,
        live=live,
        allow_safe_repair=allow_safe_repair,
        config_path=ctx.obj.get("config_path"),
        root_path=str(ctx.obj.get("root", resolve_root())),
    )


@cli.command(
    epilog="""\b
Examples:
  bootmedic authorize "bcdedit /enum all" --live
  bootmedic authorize "bcdedit /set {default} path \\Windows\\system32\\winload.efi" --destructive --live
  bootmedic authorize "bcdboot C:\\Windows /s T:" --destructive --operation cross_disk_boot_write --live
""",
)
@click.argument("command_text")
@click.option("--destructive", is_flag=True, help="The command writes to disk, registry, or firmware")
@click.option(
    "--operation",
    type=click.Choice(OPERATION_CHOICES),
    help="Declare the operation category instead of matching the policy patterns",
)
@_facts_options
@click.option("--allow-safe-repair", is_flag=True, help="Permit reversible repairs on a live OS")
@click.pass_context
def authorize(
    ctx: click.Context,
    command_text: str,
    destructive: bool,
    operation: str | None,
    facts_path: str | None,
    live: bool,
    allow_safe_repair: bool,
) -> None:
    """Check whether COMMAND_TEXT may run in the detected repair mode.

    Exits 0 when allowed and 1 when denied.
    """
    from bootmedic.cli.authorize import run_authorize

    run_authorize(
        command_text=command_text,
        destructive=destructive,
        operation=operation,
        facts_path=facts_path,
        live=live,
        allow_safe_repair=allow_safe_repair,
        config_path=ctx.obj.get("config_path"),
        policy_path=ctx.obj.get("policy_path"),
        root_path=str(ctx.obj.get("root", resolve_root())),
    )


@cli.command(
    context_settings={"ignore_unknown_options": True},
    epilog="""\b
Examples:
  bootmedic run --destructive -- bcdedit /export C:\\bcd-backup
  bootmedic run --destructive --yes -- bcdboot C:\\Windows /s S: /f UEFI
""",
)
@click.argument("command", nargs=-1, required=True, type=click.UNPROCESSED)
@click.option("--destructive", is_flag=True, help="The command writes to disk, registry, or firmware")
@click.option(
    "--operation",
    type=click.Choice(OPERATION_CHOICES),
    help="Declare the operation category instead of matching the policy patterns",
)
@click.option("--allow-safe-repair", is_flag=True, help="Permit reversible repairs on a live OS")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def run(
    ctx: click.Context,
    command: tuple[str, ...],
    destructive: bool,
    operation: str | None,
    allow_safe_repair: bool,
    yes: bool,
) -> None:
    """Authorize COMMAND against the live environment, then execute it once."""
    from bootmedic.cli.run import run_command

    run_command(
        command=list(command),
        destructive=destructive,
        operation=operation,
        allow_safe_repair=allow_safe_repair,
        confirm=not yes and ctx.obj.get("interactive", False),
        config_path=ctx.obj.get("config_path"),
        policy_path=ctx.obj.get("policy_path"),
        root_path=str(ctx.obj.get("root", resolve_root())),
    )


if __name__ == "__main__":
    cli()
