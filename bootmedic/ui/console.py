"""Shared Rich Console and style definitions.

All human-facing chrome goes to stderr via ``err_console``; stdout carries
only machine-readable output (paths, JSON).
"""

from __future__ import annotations

from rich.console import Console
from rich.theme import Theme

BOOTMEDIC_THEME = Theme(
    {
        "info": "cyan",
        "success": "bold green",
        "warning": "bold yellow",
        "error": "bold red",
        "severity.low": "green",
        "severity.medium": "yellow",
        "severity.high": "red",
        "severity.critical": "bold red",
        "mode.diagnose": "bold cyan",
        "mode.safe": "bold yellow",
        "mode.force": "bold red",
        "heading": "bold cyan",
        "muted": "dim",
        "command": "bold white on dark_blue",
    }
)

err_console = Console(stderr=True, theme=BOOTMEDIC_THEME)
