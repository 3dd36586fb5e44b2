"""Command authorization filter.

Produces advisory allow/deny decisions. Execution happens elsewhere, and only
after an allow.
"""

from __future__ import annotations

import logging

from bootmedic.core.errors import AuthorizationDenied
from bootmedic.core.gate.policy import FORCE_ONLY_OPERATIONS, CommandPolicy, default_policy
from bootmedic.models.decision import (
    AuthorizationResult,
    AuthorizationRule,
    CommandRequest,
    OperationCategory,
    RepairMode,
)

logger = logging.getLogger(__name__)


def _restriction(operation: OperationCategory, policy: CommandPolicy) -> int:
    """0 reversible, 1 irreversible, 2 force-only."""
    if operation in FORCE_ONLY_OPERATIONS:
        return 2
    return 0 if policy.is_reversible(operation) else 1


def resolve_operation(request: CommandRequest, policy: CommandPolicy) -> OperationCategory | None:
    """Operation the gate decides on.

    The command text is always classified. A declared operation fills in when
    no rule matches and otherwise only counts when it is more restrictive
    than the classified one.
    """
    classified, rule_id = policy.classify(request.command_text)
    if classified is not None:
        logger.debug("classified %r as %s via rule %s", request.command_text, classified, rule_id)
    declared = request.operation
    if classified is None:
        return declared
    if declared is None or declared == classified:
        return classified
    if _restriction(declared, policy) > _restriction(classified, policy):
        return declared
    if _restriction(declared, policy) < _restriction(classified, policy):
        logger.warning(
            "ignoring declared operation %s for %r: policy classifies it as %s",
            declared,
            request.command_text,
            classified,
        )
    return classified


def authorize(
    request: CommandRequest,
    mode: RepairMode,
    policy: CommandPolicy | None = None,
) -> AuthorizationResult:
    """Allow or deny *request* under *mode*. Every denial names its rule."""
    active = policy or default_policy()

    if not request.is_destructive:
        return AuthorizationResult(
            allowed=True,
            rule=AuthorizationRule.NON_DESTRUCTIVE,
            reason="Read-only command",
            mode=mode,
        )

    operation = resolve_operation(request, active)

    if mode == RepairMode.DIAGNOSE_ONLY:
        result = AuthorizationResult(
            allowed=False,
            rule=AuthorizationRule.DIAGNOSE_ONLY,
            reason="Destructive commands are blocked in DIAGNOSE_ONLY mode",
            mode=mode,
            operation=operation,
        )
    elif operation in FORCE_ONLY_OPERATIONS and mode != RepairMode.REPAIR_FORCE:
        result = AuthorizationResult(
            allowed=False,
            rule=AuthorizationRule.FORCE_ONLY,
            reason=f"{operation.value} requires REPAIR_FORCE (running in {mode.value})",
            mode=mode,
            operation=operation,
        )
    elif mode == RepairMode.REPAIR_FORCE:
        result = AuthorizationResult(
            allowed=True,
            rule=AuthorizationRule.REPAIR_FORCE,
            reason="Recovery environment permits all writes",
            mode=mode,
            operation=operation,
        )
    elif operation is None:
        result = AuthorizationResult(
            allowed=False,
            rule=AuthorizationRule.SAFE_UNCLASSIFIED,
            reason="Destructive command matches no reversible operation in the policy",
            mode=mode,
        )
    elif active.is_reversible(operation):
        result = AuthorizationResult(
            allowed=True,
            rule=AuthorizationRule.SAFE_REVERSIBLE,
            reason=f"{operation.value} is reversible under policy '{active.name}'",
            mode=mode,
            operation=operation,
        )
    else:
        result = AuthorizationResult(
            allowed=False,
            rule=AuthorizationRule.SAFE_IRREVERSIBLE,
            reason=f"{operation.value} is not reversible; REPAIR_SAFE permits reversible writes only",
            mode=mode,
            operation=operation,
        )

    if not result.allowed:
        logger.warning("denied %r: %s", request.command_text, result.rule_id)
    return result


def require_authorized(
    request: CommandRequest,
    mode: RepairMode,
    policy: CommandPolicy | None = None,
) -> AuthorizationResult:
    """Like authorize, but raise AuthorizationDenied on deny."""
    result = authorize(request, mode, policy)
    if not result.allowed:
        raise AuthorizationDenied(result)
    return result
