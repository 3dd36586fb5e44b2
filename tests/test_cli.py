"""CLI tests for bootmedic commands."""

from __future__ import annotations

import json
from pathlib import Path

from click.testing import CliRunner

from bootmedic import __version__
from bootmedic.cli.main import cli
from tests.helpers import LIVE_SIGNALS, uefi_snapshot, write_snapshot


def _invoke(tmp_path: Path, *args: str):  # type: ignore[no-untyped-def]
    runner = CliRunner()
    return runner.invoke(cli, ["--root", str(tmp_path / ".bootmedic"), "--no-interactive", *args])


class TestHelp:
    def test_sections(self) -> None:
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "Diagnosis" in result.stdout
        assert "Repair gate" in result.stdout
        assert "authorize" in result.stdout

    def test_version(self) -> None:
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout


class TestDiagnose:
    def test_healthy_snapshot_exits_zero(self, tmp_path: Path, healthy_snapshot: Path) -> None:
        out = tmp_path / "out"
        result = _invoke(tmp_path, "diagnose", "--facts", str(healthy_snapshot), "-o", str(out))
        assert result.exit_code == 0, result.output
        assert str(out) in result.stdout
        assert (out / "verdict.json").exists()
        assert (out / "diagnosis.json").exists()
        assert (out / "report.md").exists()

    def test_missing_loader_exits_one(self, tmp_path: Path) -> None:
        snapshot = write_snapshot(tmp_path / "broken.yaml", uefi_snapshot(loader_size=None))
        out = tmp_path / "out"
        result = _invoke(tmp_path, "diagnose", "--facts", str(snapshot), "-o", str(out))
        assert result.exit_code == 1
        verdict = json.loads((out / "verdict.json").read_text(encoding="utf-8"))
        assert verdict["verdict"] == "NO"
        assert (out / "blockers.json").exists()

    def test_default_output_under_root(self, tmp_path: Path, healthy_snapshot: Path) -> None:
        result = _invoke(tmp_path, "diagnose", "--facts", str(healthy_snapshot))
        assert result.exit_code == 0
        reports = list((tmp_path / ".bootmedic" / "reports").iterdir())
        assert len(reports) == 1
        assert reports[0].name.endswith("_diagnosis")

    def test_requires_a_fact_source(self, tmp_path: Path) -> None:
        result = _invoke(tmp_path, "diagnose")
        assert result.exit_code == 2
        assert "--facts" in result.stderr

    def test_unknown_target_drive_is_configuration_error(
        self, tmp_path: Path, healthy_snapshot: Path
    ) -> None:
        result = _invoke(
            tmp_path, "diagnose", "--facts", str(healthy_snapshot), "--target-drive", "Q:", "-o", str(tmp_path / "o")
        )
        assert result.exit_code == 2
        assert "Configuration error" in result.stderr


class TestRank:
    def test_json_output(self, tmp_path: Path) -> None:
        snapshot = write_snapshot(tmp_path / "broken.yaml", uefi_snapshot(loader_size=None))
        out = tmp_path / "out"
        _invoke(tmp_path, "diagnose", "--facts", str(snapshot), "-o", str(out))

        result = _invoke(tmp_path, "rank", "--diagnosis", str(out / "diagnosis.json"), "--json")
        assert result.exit_code == 0, result.output
        blockers = json.loads(result.stdout)
        assert blockers[0]["rank"] == 1
        assert "winload.efi" in blockers[0]["issue"]

    def test_bad_diagnosis_file(self, tmp_path: Path) -> None:
        bogus = tmp_path / "diagnosis.json"
        bogus.write_text("{}", encoding="utf-8")
        result = _invoke(tmp_path, "rank", "--diagnosis", str(bogus))
        assert result.exit_code == 2
        assert "cannot load diagnosis" in result.stderr


class TestRepairGate:
    def test_mode_in_recovery(self, tmp_path: Path, healthy_snapshot: Path) -> None:
        result = _invoke(tmp_path, "mode", "--facts", str(healthy_snapshot))
        assert result.exit_code == 0
        assert result.stdout.strip() == "REPAIR_FORCE"

    def test_mode_on_live_os(self, tmp_path: Path) -> None:
        data = uefi_snapshot()
        data["signals"] = dict(LIVE_SIGNALS)
        snapshot = write_snapshot(tmp_path / "live.yaml", data)
        result = _invoke(tmp_path, "mode", "--facts", str(snapshot))
        assert result.stdout.strip() == "DIAGNOSE_ONLY"

    def test_authorize_allows_in_recovery(self, tmp_path: Path, healthy_snapshot: Path) -> None:
        result = _invoke(
            tmp_path,
            "authorize",
            "bcdboot C:\\Windows /s S: /f UEFI",
            "--destructive",
            "--facts",
            str(healthy_snapshot),
        )
        assert result.exit_code == 0
        assert result.stdout.startswith("allow")

    def test_authorize_denies_on_live_os(self, tmp_path: Path) -> None:
        data = uefi_snapshot()
        data["signals"] = dict(LIVE_SIGNALS)
        snapshot = write_snapshot(tmp_path / "live.yaml", data)
        result = _invoke(
            tmp_path,
            "authorize",
            "format S: /fs:fat32 /q",
            "--destructive",
            "--operation",
            "format",
            "--facts",
            str(snapshot),
        )
        assert result.exit_code == 1
        assert result.stdout.strip() == "deny diagnose_only_blocks_writes"
