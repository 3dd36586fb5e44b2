"""Evidence aggregation with per-probe failure isolation."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from bootmedic.models.boot import BootEnvironment, OSInstallation
from bootmedic.models.evidence import EvidenceSet, ProbeId, ProbeResult

logger = logging.getLogger(__name__)

ProbeCallable = Callable[[BootEnvironment, OSInstallation], ProbeResult]


class EvidenceAggregator:
    """Runs probes in order and collects an immutable EvidenceSet."""

    def run(
        self,
        probes: Sequence[ProbeCallable],
        env: BootEnvironment,
        install: OSInstallation,
    ) -> EvidenceSet:
        """Execute every probe; one probe raising never aborts the run.

        A probe without a ``probe_id`` is skipped and logged, since its
        result could not be attributed to any link of the chain.
        """
        results: list[ProbeResult] = []
        for probe in probes:
            probe_id = getattr(probe, "probe_id", None)
            if not isinstance(probe_id, ProbeId):
                logger.error("skipping %r: no probe_id", probe)
                continue
            try:
                result = probe(env, install)
            except Exception as exc:  # noqa: BLE001 - isolate any probe failure
                logger.exception("probe %s raised", probe_id)
                result = ProbeResult.error(probe_id, f"{type(exc).__name__}: {exc}")
            results.append(result)
        return EvidenceSet(results=tuple(results))
