"""Repair-mode gate and command authorization."""

from bootmedic.core.gate.authorize import authorize, require_authorized
from bootmedic.core.gate.dispatch import CommandDispatcher
from bootmedic.core.gate.environment import GateThresholds, classify_environment
from bootmedic.core.gate.policy import (
    FORCE_ONLY_OPERATIONS,
    CommandPolicy,
    CommandRule,
    default_policy,
    load_policy,
)

__all__ = [
    "authorize",
    "require_authorized",
    "classify_environment",
    "GateThresholds",
    "CommandDispatcher",
    "CommandPolicy",
    "CommandRule",
    "FORCE_ONLY_OPERATIONS",
    "default_policy",
    "load_policy",
]
