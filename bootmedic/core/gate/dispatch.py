"""Authorize-then-execute dispatch for repair commands."""

from __future__ import annotations

import logging
import shlex

from bootmedic.core.facts.contracts import CommandExecutor
from bootmedic.core.gate.authorize import require_authorized
from bootmedic.core.gate.policy import CommandPolicy
from bootmedic.models.decision import AuthorizationResult, CommandRequest, RepairMode
from bootmedic.models.facts import CommandResult

logger = logging.getLogger(__name__)


def split_command(command_text: str) -> list[str]:
    """Split Windows command text into argv, keeping backslashes intact."""
    tokens = shlex.split(command_text, posix=False)
    return [t[1:-1] if len(t) >= 2 and t[0] == t[-1] == "\"" else t for t in tokens]


class CommandDispatcher:
    """Runs commands through the executor only after the gate allows them.

    The repair mode is fixed for the dispatcher's lifetime (one run).
    Destructive commands are never retried.
    """

    def __init__(
        self,
        *,
        executor: CommandExecutor,
        mode: RepairMode,
        policy: CommandPolicy | None = None,
    ) -> None:
        self._executor = executor
        self._mode = mode
        self._policy = policy
        self.history: list[tuple[CommandRequest, AuthorizationResult, CommandResult]] = []

    @property
    def mode(self) -> RepairMode:
        return self._mode

    def dispatch(self, request: CommandRequest) -> CommandResult:
        """Authorize and execute once. Raises AuthorizationDenied on deny."""
        decision = require_authorized(request, self._mode, self._policy)
        argv = split_command(request.command_text)
        logger.info("executing %r (%s)", request.command_text, decision.rule_id)
        result = self._executor.execute(argv)
        if result.exit_code != 0:
            logger.warning("%r exited %d", request.command_text, result.exit_code)
        self.history.append((request, decision, result))
        return result
