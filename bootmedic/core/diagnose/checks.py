"""Physical, Logical, and Security checks the verdict is decided on."""

from __future__ import annotations

import logging

from bootmedic.core.errors import BootMedicError, BootStoreReadError, InconclusiveResult
from bootmedic.core.facts.contracts import FactSource
from bootmedic.core.timeouts import bounded_call
from bootmedic.models.boot import BootEnvironment, OSInstallation
from bootmedic.models.evidence import CheckOutcome, CriticalChecks, IssueCode, SecurityState
from bootmedic.models.facts import EncryptionLock
from bootmedic.utils.config import Settings

logger = logging.getLogger(__name__)

_LOCK_STATES: dict[EncryptionLock, SecurityState] = {
    EncryptionLock.LOCKED: SecurityState.LOCKED,
    EncryptionLock.UNLOCKED: SecurityState.UNLOCKED,
    EncryptionLock.UNKNOWN: SecurityState.INCONCLUSIVE,
}


def check_physical(env: BootEnvironment, install: OSInstallation, facts: FactSource) -> CheckOutcome:
    """Loader and kernel exist with non-zero size."""
    loader = install.loader_path(env)
    issues: list[tuple[IssueCode, str]] = []
    try:
        loader_facts = facts.stat(loader)
        kernel_facts = facts.stat(install.kernel_path)
    except (BootMedicError, OSError) as exc:
        return CheckOutcome(
            passed=False,
            detail=f"physical check could not run: {exc}",
            issues=(f"Could not verify loader and kernel files: {exc}",),
            codes=(IssueCode.PROBE_EXECUTION_FAILED,),
        )

    if not loader_facts.exists:
        issues.append((IssueCode.LOADER_MISSING, f"Loader file missing: {loader}"))
    elif loader_facts.size_bytes <= 0:
        issues.append((IssueCode.LOADER_EMPTY, f"Loader file is empty: {loader}"))
    if not kernel_facts.exists:
        issues.append((IssueCode.KERNEL_MISSING, f"Kernel missing: {install.kernel_path}"))
    elif kernel_facts.size_bytes <= 0:
        issues.append((IssueCode.KERNEL_MISSING, f"Kernel is empty: {install.kernel_path}"))

    return CheckOutcome(
        passed=not issues,
        detail=f"{loader}: {loader_facts.size_bytes} bytes; kernel: {kernel_facts.size_bytes} bytes",
        issues=tuple(m for _, m in issues),
        codes=tuple(c for c, _ in issues),
    )


def loader_name_matches(loader_path: str | None, expected_name: str) -> bool:
    """True when the BCD path's filename is the expected loader (case-insensitive)."""
    if not loader_path:
        return False
    name = loader_path.replace("/", "\\").rsplit("\\", 1)[-1]
    return name.lower() == expected_name.lower()


def check_logical(
    env: BootEnvironment,
    facts: FactSource,
    *,
    entry_id: str = "{default}",
) -> CheckOutcome:
    """The BCD entry's path names the loader this firmware needs."""
    store = env.boot_store_path
    if store is None:
        return CheckOutcome(
            passed=False,
            detail="no BCD store location",
            issues=("BCD store location unknown: system partition is not mounted",),
            codes=(IssueCode.BCD_MISSING,),
        )
    try:
        entry = facts.read_entry(store, entry_id)
    except BootStoreReadError as exc:
        return CheckOutcome(
            passed=False,
            detail=str(exc),
            issues=(f"BCD entry {entry_id} could not be read: {exc.message}",),
            codes=(IssueCode.BCD_UNREADABLE,),
        )
    except BootMedicError as exc:
        return CheckOutcome(
            passed=False,
            detail=str(exc),
            issues=(f"BCD entry {entry_id} could not be read: {exc}",),
            codes=(IssueCode.BCD_UNREADABLE,),
        )

    expected = env.expected_loader_name
    if loader_name_matches(entry.loader_path, expected):
        return CheckOutcome(passed=True, detail=f"BCD path {entry.loader_path} matches {expected}")
    return CheckOutcome(
        passed=False,
        detail=f"BCD path {entry.loader_path or 'unset'} does not match {expected}",
        issues=(
            f"BCD mismatch: loader path {entry.loader_path or 'unset'} does not match "
            f"{expected} for {env.firmware_type.value} firmware",
        ),
        codes=(IssueCode.BCD_PATH_MISMATCH,),
    )


def check_security(install: OSInstallation, facts: FactSource, *, timeout_ms: int) -> tuple[SecurityState, str]:
    """Encryption lock state, bounded by *timeout_ms*; never raises."""
    volume = install.drive_id
    try:
        lock = bounded_call(
            lambda: facts.status(volume, timeout_ms),
            timeout_ms / 1000,
            label=f"encryption status of {volume}",
        )
    except InconclusiveResult as exc:
        return SecurityState.INCONCLUSIVE, str(exc)
    except (BootMedicError, OSError) as exc:
        logger.warning("encryption status unavailable for %s: %s", volume, exc)
        return SecurityState.INCONCLUSIVE, f"encryption status unavailable: {exc}"

    state = _LOCK_STATES[lock]
    return state, f"{volume}: {lock.value}"


def run_critical_checks(
    env: BootEnvironment,
    install: OSInstallation,
    facts: FactSource,
    settings: Settings,
) -> CriticalChecks:
    security, security_detail = check_security(
        install, facts, timeout_ms=settings.encryption_timeout_ms
    )
    return CriticalChecks(
        physical=check_physical(env, install, facts),
        logical=check_logical(env, facts, entry_id=settings.boot_entry_id),
        security=security,
        security_detail=security_detail,
    )
