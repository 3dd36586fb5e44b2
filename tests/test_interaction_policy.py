"""Tests for bootmedic.ui.policy: when the CLI may prompt."""

from __future__ import annotations

from collections.abc import Iterator
from unittest.mock import patch

import pytest

from bootmedic.ui.policy import _stderr_is_terminal, _stdin_is_tty, should_interact


@pytest.fixture(autouse=True)
def _clear_caches() -> Iterator[None]:
    _stdin_is_tty.cache_clear()
    _stderr_is_terminal.cache_clear()
    yield
    _stdin_is_tty.cache_clear()
    _stderr_is_terminal.cache_clear()


def _interactive_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for var in ("CI", "GITHUB_ACTIONS", "TF_BUILD", "BOOTMEDIC_NON_INTERACTIVE"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.delenv("TERM", raising=False)


class TestForce:
    def test_force_wins(self) -> None:
        assert should_interact(force=True) is True
        assert should_interact(force=False) is False


class TestEnvironment:
    @pytest.mark.parametrize("var", ["CI", "GITHUB_ACTIONS", "TF_BUILD", "BOOTMEDIC_NON_INTERACTIVE"])
    def test_env_var_disables(self, monkeypatch: pytest.MonkeyPatch, var: str) -> None:
        _interactive_env(monkeypatch)
        monkeypatch.setenv(var, "1")
        assert should_interact() is False

    def test_dumb_terminal(self, monkeypatch: pytest.MonkeyPatch) -> None:
        _interactive_env(monkeypatch)
        monkeypatch.setenv("TERM", "dumb")
        assert should_interact() is False


class TestTerminals:
    def test_non_tty_stdin(self, monkeypatch: pytest.MonkeyPatch) -> None:
        _interactive_env(monkeypatch)
        with patch("bootmedic.ui.policy._stdin_is_tty", return_value=False):
            assert should_interact() is False

    def test_all_terminals(self, monkeypatch: pytest.MonkeyPatch) -> None:
        _interactive_env(monkeypatch)
        with (
            patch("bootmedic.ui.policy._stdin_is_tty", return_value=True),
            patch("bootmedic.ui.policy._stderr_is_terminal", return_value=True),
        ):
            assert should_interact() is True
