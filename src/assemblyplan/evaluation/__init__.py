"""Evaluation helpers (staff conflicts, issue reports, statistics)."""

from .conflicts import ConflictKind, ConflictReport, StaffConflict, detect_conflicts
from .report import (
    Issue,
    IssueKind,
    Severity,
    collect_issues,
    seniority_distribution,
    shift_statistics,
)

__all__ = [
    "ConflictKind",
    "StaffConflict",
    "ConflictReport",
    "detect_conflicts",
    "IssueKind",
    "Severity",
    "Issue",
    "collect_issues",
    "shift_statistics",
    "seniority_distribution",
]
