"""Helpers shared by the CLI commands."""

from __future__ import annotations

import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import NoReturn

import click

from bootmedic.core.errors import BootMedicError
from bootmedic.core.facts.contracts import FactSource
from bootmedic.utils.config import Settings, load_settings

CONFIG_ERROR_EXIT = 2


def fail(message: str, code: int = CONFIG_ERROR_EXIT) -> NoReturn:
    click.echo(f"Error: {message}", err=True)
    sys.exit(code)


def settings_or_exit(config_path: Path | None, root_path: str) -> Settings:
    try:
        return load_settings(config_path, root=root_path)
    except BootMedicError as exc:
        fail(str(exc))


@contextmanager
def open_facts(facts_path: str | None, live: bool) -> Iterator[FactSource]:
    """Yield the fact source selected by --facts / --live."""
    if facts_path and live:
        fail("--facts and --live are mutually exclusive")
    if not facts_path and not live:
        fail("specify a facts snapshot with --facts FILE, or --live")

    if live:
        from bootmedic.core.facts.live import LiveFacts

        with LiveFacts() as facts:
            yield facts
        return

    from bootmedic.core.facts.snapshot import SnapshotFacts

    assert facts_path is not None
    try:
        facts = SnapshotFacts.from_file(Path(facts_path))
    except BootMedicError as exc:
        fail(str(exc))
    yield facts
