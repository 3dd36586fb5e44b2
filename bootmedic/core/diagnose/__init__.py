"""Boot-viability diagnosis."""

from bootmedic.core.diagnose.aggregator import EvidenceAggregator
from bootmedic.core.diagnose.engine import DiagnosisEngine, run_diagnosis
from bootmedic.core.diagnose.probes import (
    BCDRealityProbe,
    BootFilesProbe,
    ChainLinkProbe,
    DriverProbe,
    LoaderFileProbe,
    Probe,
    default_probes,
)
from bootmedic.core.diagnose.verdict import compute_verdict

__all__ = [
    "DiagnosisEngine",
    "run_diagnosis",
    "EvidenceAggregator",
    "compute_verdict",
    "Probe",
    "BootFilesProbe",
    "BCDRealityProbe",
    "LoaderFileProbe",
    "DriverProbe",
    "ChainLinkProbe",
    "default_probes",
]
