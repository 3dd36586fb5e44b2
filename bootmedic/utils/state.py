"""Shared filesystem state path helpers."""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

DEFAULT_ROOT = Path(".bootmedic")


def resolve_root(root: str | Path | None = None) -> Path:
    """Resolve the canonical state root path."""
    if root is None:
        return DEFAULT_ROOT
    return Path(root)


def root_path(root: str | Path | None, *parts: str) -> Path:
    """Resolve a child path within the canonical state root."""
    resolved = resolve_root(root)
    for part in parts:
        resolved = resolved / part
    return resolved


def reports_dir(root: str | Path | None, label: str = "diagnosis") -> Path:
    """Return a fresh timestamped report directory under ``<root>/reports``."""
    timestamp = datetime.now(UTC).strftime("%Y%m%d_%H%M%SZ")
    return root_path(root, "reports", f"{timestamp}_{label}")


def repair_lock_path(root: str | Path | None) -> Path:
    """Return the lock file held while a repair command runs."""
    return root_path(root, "state", "repair.lock")
