"""Tests for authorize-then-execute dispatch."""

from __future__ import annotations

import pytest

from bootmedic.core.errors import AuthorizationDenied
from bootmedic.core.gate.dispatch import CommandDispatcher, split_command
from bootmedic.models.decision import CommandRequest, RepairMode
from bootmedic.models.facts import CommandResult


class RecordingExecutor:
    def __init__(self, exit_code: int = 0) -> None:
        self.calls: list[list[str]] = []
        self.exit_code = exit_code

    def execute(self, argv: list[str]) -> CommandResult:
        self.calls.append(argv)
        return CommandResult(exit_code=self.exit_code, stdout="ok")


def test_denied_command_never_reaches_executor() -> None:
    executor = RecordingExecutor()
    dispatcher = CommandDispatcher(executor=executor, mode=RepairMode.DIAGNOSE_ONLY)
    with pytest.raises(AuthorizationDenied):
        dispatcher.dispatch(CommandRequest(command_text="format S:", is_destructive=True))
    assert executor.calls == []
    assert dispatcher.history == []


def test_allowed_command_runs_once() -> None:
    executor = RecordingExecutor()
    dispatcher = CommandDispatcher(executor=executor, mode=RepairMode.REPAIR_SAFE)
    result = dispatcher.dispatch(
        CommandRequest(command_text="bcdedit /export C:\\bcd-backup", is_destructive=True)
    )
    assert result.exit_code == 0
    assert executor.calls == [["bcdedit", "/export", "C:\\bcd-backup"]]
    assert len(dispatcher.history) == 1


def test_failed_destructive_command_is_not_retried() -> None:
    executor = RecordingExecutor(exit_code=1)
    dispatcher = CommandDispatcher(executor=executor, mode=RepairMode.REPAIR_FORCE)
    result = dispatcher.dispatch(CommandRequest(command_text="bootrec /fixboot", is_destructive=True))
    assert result.exit_code == 1
    assert len(executor.calls) == 1


def test_read_only_runs_in_any_mode() -> None:
    executor = RecordingExecutor()
    dispatcher = CommandDispatcher(executor=executor, mode=RepairMode.DIAGNOSE_ONLY)
    dispatcher.dispatch(CommandRequest(command_text="bcdedit /enum {default}"))
    assert executor.calls == [["bcdedit", "/enum", "{default}"]]


def test_split_command_keeps_backslashes_and_strips_quotes() -> None:
    assert split_command('bcdboot "C:\\My Windows" /s S:') == ["bcdboot", "C:\\My Windows", "/s", "S:"]
