"""Repair-mode gate: classify the execution environment into a safety state."""

from __future__ import annotations

import logging

from pydantic import BaseModel, ConfigDict, Field

from bootmedic.models.decision import (
    EnvironmentClassification,
    EnvironmentSignals,
    RepairMode,
)

logger = logging.getLogger(__name__)

_PE_EDITIONS = {"windowspe", "winpe", "winre"}


class GateThresholds(BaseModel):
    """How many independent signals are needed before trusting a classification."""

    model_config = ConfigDict(frozen=True)

    min_recovery_signals: int = Field(default=2, ge=1)
    min_live_signals: int = Field(default=2, ge=1)


def recovery_signals(signals: EnvironmentSignals) -> list[str]:
    """Names of the signals that indicate a constrained recovery context."""
    found: list[str] = []
    if signals.minint_key_present:
        found.append("minint_key_present")
    if signals.system_drive and signals.system_drive.rstrip("\\").upper() == "X:":
        found.append("system_drive_x")
    if signals.winpeshl_present:
        found.append("winpeshl_present")
    if signals.edition_id and signals.edition_id.strip().lower() in _PE_EDITIONS:
        found.append("pe_edition")
    if signals.ramdisk_boot:
        found.append("ramdisk_boot")
    return found


def live_signals(signals: EnvironmentSignals) -> list[str]:
    """Names of the signals that indicate a live production OS."""
    found: list[str] = []
    if signals.installed_os_running:
        found.append("installed_os_running")
    if signals.explorer_shell_running:
        found.append("explorer_shell_running")
    if signals.update_service_running:
        found.append("update_service_running")
    return found


def classify_environment(
    signals: EnvironmentSignals,
    *,
    allow_safe_repair: bool = False,
    thresholds: GateThresholds | None = None,
) -> EnvironmentClassification:
    """Derive the repair mode from environment signals.

    Only detection decides REPAIR_FORCE. A live OS stays DIAGNOSE_ONLY unless
    the caller opts into REPAIR_SAFE. Mixed or insufficient signals fall back
    to DIAGNOSE_ONLY.
    """
    limits = thresholds or GateThresholds()
    recovery = recovery_signals(signals)
    live = live_signals(signals)

    if len(recovery) >= limits.min_recovery_signals and not live:
        mode = RepairMode.REPAIR_FORCE
        reason = f"recovery environment detected ({len(recovery)} signals)"
    elif len(live) >= limits.min_live_signals and not recovery:
        if allow_safe_repair:
            mode = RepairMode.REPAIR_SAFE
            reason = "live OS detected; reversible repairs enabled by opt-in"
        else:
            mode = RepairMode.DIAGNOSE_ONLY
            reason = "live OS detected; repairs disabled"
    else:
        mode = RepairMode.DIAGNOSE_ONLY
        reason = (
            f"inconclusive environment (recovery={len(recovery)}, live={len(live)}); "
            "defaulting to diagnose only"
        )

    logger.info("repair mode %s: %s", mode, reason)
    return EnvironmentClassification(
        mode=mode,
        recovery_signals=tuple(recovery),
        live_signals=tuple(live),
        reason=reason,
    )
