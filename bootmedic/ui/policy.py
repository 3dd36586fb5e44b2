"""When to ask the operator for confirmation.

Rules (checked in order):
1. Explicit force parameter → honour it.
2. BOOTMEDIC_NON_INTERACTIVE or a known CI env var → False.
3. TERM=dumb → False.
4. stdin is not a TTY → False.
5. stderr is not a terminal (Rich detection) → False.
6. All pass → True.
"""

from __future__ import annotations

import os
import sys
from functools import lru_cache

from rich.console import Console

_NON_INTERACTIVE_ENV_VARS = frozenset({
    "BOOTMEDIC_NON_INTERACTIVE",
    "CI",
    "GITHUB_ACTIONS",
    "TF_BUILD",
})


def should_interact(*, force: bool | None = None) -> bool:
    """Return True if the session may prompt the operator."""
    if force is not None:
        return force

    for var in _NON_INTERACTIVE_ENV_VARS:
        if os.environ.get(var):
            return False

    if os.environ.get("TERM") == "dumb":
        return False

    if not _stdin_is_tty():
        return False

    return _stderr_is_terminal()


@lru_cache(maxsize=1)
def _stdin_is_tty() -> bool:
    return sys.stdin.isatty()


@lru_cache(maxsize=1)
def _stderr_is_terminal() -> bool:
    return Console(stderr=True).is_terminal
