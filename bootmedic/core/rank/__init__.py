"""Root-cause ranking."""

from bootmedic.core.rank.ranker import priority_score, rank_blockers
from bootmedic.core.rank.reports import load_issue_report, parse_issue_report

__all__ = [
    "rank_blockers",
    "priority_score",
    "load_issue_report",
    "parse_issue_report",
]
