"""DiagnosisEngine: discover -> probe -> check -> verdict."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from bootmedic.core.diagnose.aggregator import EvidenceAggregator, ProbeCallable
from bootmedic.core.diagnose.checks import run_critical_checks
from bootmedic.core.diagnose.discovery import (
    detect_environment,
    discover_installations,
    select_installation,
)
from bootmedic.core.diagnose.probes import default_probes
from bootmedic.core.diagnose.verdict import compute_verdict
from bootmedic.core.errors import BootMedicError, ConfigurationError
from bootmedic.core.facts.contracts import FactSource
from bootmedic.models.verdict import DiagnosisReport, DiagnosisStatus
from bootmedic.utils.config import Settings

logger = logging.getLogger(__name__)


class DiagnosisEngine:
    """Read-only diagnosis over a fact source.

    Usage:
        engine = DiagnosisEngine(facts=SnapshotFacts.from_file(path))
        report = engine.run(target_drive="C:")
    """

    def __init__(
        self,
        *,
        facts: FactSource,
        settings: Settings | None = None,
        probes: Sequence[ProbeCallable] | None = None,
    ) -> None:
        self._facts = facts
        self._settings = settings or Settings()
        self._probes = probes
        self._aggregator = EvidenceAggregator()

    def run(self, target_drive: str | None = None) -> DiagnosisReport:
        """Run one diagnosis.

        Environment and installations are rebuilt on every call. A missing
        installation, or a partition table that cannot be read, ends the run
        early with a configuration_error report.
        """
        try:
            env = detect_environment(self._facts)
            installations = discover_installations(self._facts)
        except BootMedicError as exc:
            logger.error("environment detection failed: %s", exc)
            return DiagnosisReport(
                status=DiagnosisStatus.CONFIGURATION_ERROR,
                error=f"Environment detection failed: {exc}",
            )
        try:
            install = select_installation(installations, target_drive)
        except ConfigurationError as exc:
            logger.error("diagnosis stopped: %s", exc)
            return DiagnosisReport(
                status=DiagnosisStatus.CONFIGURATION_ERROR,
                error=str(exc),
                environment=env,
                installations=installations,
            )

        probes = self._probes if self._probes is not None else default_probes(self._facts, self._settings)
        evidence = self._aggregator.run(probes, env, install)
        checks = run_critical_checks(env, install, self._facts, self._settings)
        verdict = compute_verdict(evidence, checks, installation_count=len(installations))

        logger.info(
            "verdict for %s: will_boot=%s confidence=%d (%s) cause=%s",
            install.drive_id,
            verdict.will_boot,
            verdict.confidence_score,
            verdict.confidence_level,
            verdict.primary_cause,
        )
        return DiagnosisReport(
            status=DiagnosisStatus.COMPLETE,
            environment=env,
            installation=install,
            installations=installations,
            evidence=evidence,
            checks=checks,
            verdict=verdict,
        )


def run_diagnosis(
    facts: FactSource,
    target_drive: str | None = None,
    *,
    settings: Settings | None = None,
) -> DiagnosisReport:
    """Convenience wrapper around DiagnosisEngine.run."""
    return DiagnosisEngine(facts=facts, settings=settings).run(target_drive)
