"""Exclusive lock held while a repair command executes."""

from __future__ import annotations

import json
import os
import time
from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from bootmedic.utils.state import repair_lock_path


class RepairLockError(RuntimeError):
    """Raised when another repair already holds the lock."""


@dataclass(frozen=True)
class RepairLockInfo:
    pid: int
    command: str
    created_at: float

    def to_json(self) -> str:
        return json.dumps(
            {"pid": self.pid, "command": self.command, "created_at": self.created_at},
            sort_keys=True,
        )


def _pid_alive(pid: int) -> bool:
    if pid <= 0:
        return False
    try:
        os.kill(pid, 0)
        return True
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    except OSError:
        # Windows raises a generic OSError for unknown pids.
        return False


def read_lock_info(path: Path) -> RepairLockInfo | None:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
        return RepairLockInfo(
            pid=int(payload["pid"]),
            command=str(payload["command"]),
            created_at=float(payload["created_at"]),
        )
    except (OSError, json.JSONDecodeError, KeyError, TypeError, ValueError):
        return None


def _try_create(path: Path) -> int | None:
    try:
        return os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
    except FileExistsError:
        return None


@contextmanager
def repair_lock(root: str | Path | None, command: str) -> Generator[None, None, None]:
    """Hold ``<root>/state/repair.lock`` for the duration of the block.

    A lock left behind by a dead process is cleared once and re-acquired.
    """
    lock_path = repair_lock_path(root)
    lock_path.parent.mkdir(parents=True, exist_ok=True)

    fd = _try_create(lock_path)
    if fd is None:
        existing = read_lock_info(lock_path)
        if existing and _pid_alive(existing.pid):
            raise RepairLockError(
                f"another repair is running (pid={existing.pid}, command={existing.command!r})"
            )
        lock_path.unlink(missing_ok=True)
        fd = _try_create(lock_path)
        if fd is None:
            raise RepairLockError(f"could not acquire {lock_path}; remove it if stale")

    info = RepairLockInfo(pid=os.getpid(), command=command, created_at=time.time())
    try:
        try:
            os.write(fd, info.to_json().encode("utf-8"))
        finally:
            os.close(fd)
        yield
    finally:
        lock_path.unlink(missing_ok=True)
