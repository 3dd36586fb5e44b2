"""Error taxonomy for the diagnosis core."""

from __future__ import annotations

from bootmedic.models.decision import AuthorizationResult


class BootMedicError(Exception):
    """Base class for BootMedic errors."""


class ProbeExecutionError(BootMedicError):
    """An inspection could not run (I/O failure, inaccessible store).

    Distinct from an inspection that ran and found the fact to be false.
    """


class BootStoreReadError(ProbeExecutionError):
    """The BCD store could not be opened or the entry could not be read."""

    def __init__(self, store_path: str, message: str) -> None:
        super().__init__(f"{store_path}: {message}")
        self.store_path = store_path
        self.message = message


class InconclusiveResult(BootMedicError):
    """A query timed out or its backing tool was unavailable.

    Lowers confidence; never treated as a hard failure.
    """


class ConfigurationError(BootMedicError):
    """No Windows installation could be found to diagnose."""


class AuthorizationDenied(BootMedicError):
    """A destructive command was blocked by the repair-mode gate."""

    def __init__(self, result: AuthorizationResult) -> None:
        super().__init__(f"Denied by rule {result.rule_id}: {result.reason}")
        self.result = result
        self.rule_id = result.rule_id
        self.reason = result.reason


class PolicyError(BootMedicError):
    """The command policy file is malformed."""


class SettingsError(BootMedicError):
    """The settings file is malformed."""
