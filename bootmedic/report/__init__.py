"""Persisted diagnosis artifacts."""

from bootmedic.report.writer import render_markdown, verdict_payload, write_all

__all__ = ["render_markdown", "verdict_payload", "write_all"]
