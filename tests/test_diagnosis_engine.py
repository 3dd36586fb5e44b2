"""End-to-end diagnosis over snapshot facts: the reference boot scenarios."""

from __future__ import annotations

import time

from bootmedic.core.diagnose.engine import DiagnosisEngine, run_diagnosis
from bootmedic.core.errors import ProbeExecutionError
from bootmedic.core.facts.snapshot import SnapshotFacts
from bootmedic.core.rank import parse_issue_report, rank_blockers
from bootmedic.models.blocker import ReportSource
from bootmedic.models.boot import FirmwareType
from bootmedic.models.evidence import IssueCode, ProbeId, SecurityState
from bootmedic.models.facts import EncryptionLock, FirmwareFacts, PartitionInfo
from bootmedic.models.verdict import ConfidenceLevel, DiagnosisStatus, PrimaryCause
from bootmedic.utils.config import Settings
from tests.helpers import FAST_SETTINGS, LOADER, facts_from, uefi_snapshot


class TestScenarios:
    def test_a_healthy_uefi_machine_boots(self) -> None:
        report = run_diagnosis(facts_from(uefi_snapshot()), settings=FAST_SETTINGS)
        assert report.status == DiagnosisStatus.COMPLETE
        assert report.verdict is not None
        assert report.verdict.will_boot
        assert report.verdict.confidence_level == ConfidenceLevel.HIGH
        assert report.evidence is not None
        assert report.evidence.passed_count == 5
        assert report.exit_code == 0

    def test_b_missing_loader_is_definitive_no(self) -> None:
        report = run_diagnosis(facts_from(uefi_snapshot(loader_size=None)), settings=FAST_SETTINGS)
        verdict = report.verdict
        assert verdict is not None
        assert not verdict.will_boot
        assert verdict.confidence_score == 0
        assert verdict.primary_cause == PrimaryCause.LOADER_MISSING
        assert report.exit_code == 1

    def test_c_legacy_loader_name_on_uefi(self) -> None:
        data = uefi_snapshot(bcd_loader_path="\\Windows\\system32\\winload.exe")
        report = run_diagnosis(facts_from(data), settings=FAST_SETTINGS)
        assert report.checks is not None
        assert not report.checks.logical.passed
        assert report.verdict is not None
        assert not report.verdict.will_boot

        blockers = rank_blockers(report.verdict)
        assert blockers[0].issue.startswith("BCD mismatch")
        assert blockers[0].rank == 1

    def test_c_bcd_mismatch_outranks_secondary_findings(self) -> None:
        data = uefi_snapshot(bcd_loader_path="\\Windows\\system32\\winload.exe")
        report = run_diagnosis(facts_from(data), settings=FAST_SETTINGS)
        disk = parse_issue_report(
            {
                "source": "disk_health",
                "findings": [{"issue": "SMART warning", "severity": "Critical", "confidence": 60}],
            }
        )
        blockers = rank_blockers(report.verdict, [disk])
        assert [b.issue.split(":")[0] for b in blockers] == ["BCD mismatch", "SMART warning"]
        assert blockers[0].source == ReportSource.VERDICT

    def test_d_two_installations_force_low(self) -> None:
        report = run_diagnosis(facts_from(uefi_snapshot(second_install=True)), settings=FAST_SETTINGS)
        assert len(report.installations) == 2
        assert report.installation is not None
        assert report.installation.drive_id == "C:"
        assert report.evidence is not None
        assert report.evidence.passed_count == report.evidence.total == 5
        assert report.verdict is not None
        assert report.verdict.confidence_level == ConfidenceLevel.LOW


class TestDiagnosisEngine:
    def test_no_installation_is_configuration_error(self) -> None:
        data = uefi_snapshot()
        data["files"] = {}
        report = run_diagnosis(facts_from(data), settings=FAST_SETTINGS)
        assert report.status == DiagnosisStatus.CONFIGURATION_ERROR
        assert report.verdict is None
        assert report.error is not None
        assert "No Windows installation" in report.error
        assert report.exit_code == 2

    def test_unknown_target_drive_is_configuration_error(self) -> None:
        report = run_diagnosis(facts_from(uefi_snapshot()), "F:", settings=FAST_SETTINGS)
        assert report.status == DiagnosisStatus.CONFIGURATION_ERROR
        assert "F:" in (report.error or "")

    def test_target_drive_selects_installation(self) -> None:
        report = run_diagnosis(facts_from(uefi_snapshot(second_install=True)), "d:", settings=FAST_SETTINGS)
        assert report.installation is not None
        assert report.installation.drive_id == "D:"

    def test_probe_error_does_not_abort_run(self) -> None:
        data = uefi_snapshot()
        data["registry"]["C:\\Windows\\System32\\config\\SYSTEM"] = {"error": "hive in use"}
        report = run_diagnosis(facts_from(data), settings=FAST_SETTINGS)
        assert report.evidence is not None
        assert report.evidence.total == 5
        drivers = report.evidence.get(ProbeId.DRIVERS)
        assert drivers is not None
        assert drivers.status == "error"
        # Physical and logical still pass, so the machine is expected to boot.
        assert report.verdict is not None
        assert report.verdict.will_boot

    def test_custom_probes(self) -> None:
        from bootmedic.models.evidence import ProbeResult

        class AlwaysPasses:
            probe_id = ProbeId.BOOT_FILES

            def __call__(self, env, install):  # type: ignore[no-untyped-def]
                return ProbeResult.ok(self.probe_id, ["stub"])

        engine = DiagnosisEngine(facts=facts_from(uefi_snapshot()), settings=FAST_SETTINGS, probes=[AlwaysPasses()])
        report = engine.run()
        assert report.evidence is not None
        assert report.evidence.ids() == [ProbeId.BOOT_FILES]


class _SlowEncryption(SnapshotFacts):
    def status(self, volume_id: str, timeout_ms: int) -> EncryptionLock:
        time.sleep(0.5)
        return EncryptionLock.LOCKED


class TestSecurityTimeout:
    def test_timeout_is_inconclusive_not_failure(self) -> None:
        facts = _SlowEncryption.from_dict(uefi_snapshot())
        settings = Settings(encryption_timeout_ms=20, recheck_backoff_seconds=0)
        report = run_diagnosis(facts, settings=settings)
        assert report.checks is not None
        assert report.checks.security == SecurityState.INCONCLUSIVE
        assert "timed out" in report.checks.security_detail
        assert report.verdict is not None
        assert report.verdict.will_boot
        assert report.verdict.confidence_score == 90

    def test_unknown_lock_state_is_inconclusive(self) -> None:
        report = run_diagnosis(facts_from(uefi_snapshot(encryption="unknown")), settings=FAST_SETTINGS)
        assert report.checks is not None
        assert report.checks.security == SecurityState.INCONCLUSIVE
        assert report.verdict is not None
        assert report.verdict.will_boot

    def test_locked_volume(self) -> None:
        report = run_diagnosis(facts_from(uefi_snapshot(encryption="locked")), settings=FAST_SETTINGS)
        assert report.verdict is not None
        assert not report.verdict.will_boot
        assert report.verdict.primary_cause == PrimaryCause.BITLOCKER_LOCK


class _NoPartitionTable(SnapshotFacts):
    def partitions(self) -> list[PartitionInfo]:
        raise ProbeExecutionError("powershell failed: Get-Partition is not recognized")


class _NoFirmwareFacts(SnapshotFacts):
    def firmware(self) -> FirmwareFacts:
        raise ProbeExecutionError("powershell failed: access denied")


class TestCollaboratorFailures:
    def test_unreadable_partition_table_yields_report(self) -> None:
        report = run_diagnosis(_NoPartitionTable.from_dict(uefi_snapshot()), settings=FAST_SETTINGS)
        assert report.status == DiagnosisStatus.CONFIGURATION_ERROR
        assert report.verdict is None
        assert "Get-Partition" in (report.error or "")
        assert report.exit_code == 2

    def test_unreadable_firmware_degrades_to_unknown(self) -> None:
        report = run_diagnosis(_NoFirmwareFacts.from_dict(uefi_snapshot()), settings=FAST_SETTINGS)
        assert report.status == DiagnosisStatus.COMPLETE
        assert report.environment is not None
        assert report.environment.firmware_type == FirmwareType.UNKNOWN
        assert report.verdict is not None

    def test_malformed_file_entry_fails_physical_check(self) -> None:
        data = uefi_snapshot()
        data["files"][LOADER] = "not-a-size"
        report = run_diagnosis(facts_from(data), settings=FAST_SETTINGS)
        assert report.checks is not None
        assert not report.checks.physical.passed
        assert report.checks.physical.codes == (IssueCode.PROBE_EXECUTION_FAILED,)
        assert report.verdict is not None
        assert not report.verdict.will_boot
