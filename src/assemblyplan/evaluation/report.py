"""Session issue list and per-shift statistics."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum

import pandas as pd

from assemblyplan.evaluation.conflicts import ConflictReport, detect_conflicts
from assemblyplan.planning.partition import ShiftPartition
from assemblyplan.scenario.contract.models import AssemblySettings, Group, Session, WeekVariant
from assemblyplan.staff import StaffLookup
from assemblyplan.validation import ViolationKind, shift_occupancy, validate_shift

__all__ = [
    "UNASSIGNED_ERROR_LIMIT",
    "IssueKind",
    "Severity",
    "Issue",
    "collect_issues",
    "shift_statistics",
    "seniority_distribution",
]

UNASSIGNED_ERROR_LIMIT = 5


class IssueKind(str, Enum):
    CAPACITY = "capacity"
    ELIGIBILITY = "eligibility"
    CONSTRAINT = "constraint"
    CONFLICT = "conflict"
    UNASSIGNED = "unassigned"


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True, slots=True)
class Issue:
    kind: IssueKind
    severity: Severity
    message: str
    group_id: str | None = None
    shift_id: str | None = None


def collect_issues(
    session: Session,
    partition: ShiftPartition,
    *,
    lookup: StaffLookup | None = None,
    conflicts: ConflictReport | None = None,
) -> list[Issue]:
    """Gather every problem of a partition into one ordered list.

    Order: per shift (capacity, eligibility, constraint), then conflicts, then the
    unassigned summary. Nothing here blocks; severities only rank the problems.

    Parameters
    ----------
    session:
        Loaded session providing groups, constraints, day, and settings.
    partition:
        Current shift partition.
    lookup:
        Staff lookup; built from ``session.roster`` when omitted.
    conflicts:
        Precomputed conflict report; detected here when omitted.
    """

    settings = session.settings
    if lookup is None:
        lookup = StaffLookup(session.roster, settings.shifts)
    groups = session.group_map()
    issues: list[Issue] = []

    for shift in settings.shifts.shifts:
        members = [groups[gid] for gid in partition.groups_in(shift.id) if gid in groups]
        validation = validate_shift(lookup, shift.id, members, session.day, settings.max_capacity)
        total = validation.occupancy.total
        if total > settings.max_capacity:
            issues.append(
                Issue(
                    kind=IssueKind.CAPACITY,
                    severity=Severity.ERROR,
                    message=f"{shift.label}: capacity exceeded ({total}/{settings.max_capacity})",
                    shift_id=shift.id,
                )
            )
        elif total > settings.max_capacity * settings.alert_threshold:
            issues.append(
                Issue(
                    kind=IssueKind.CAPACITY,
                    severity=Severity.WARNING,
                    message=f"{shift.label}: nearly full ({total}/{settings.max_capacity})",
                    shift_id=shift.id,
                )
            )
        for violation in validation.violations:
            if violation.kind is not ViolationKind.ELIGIBILITY:
                continue
            for group_id in violation.group_ids:
                issues.append(
                    Issue(
                        kind=IssueKind.ELIGIBILITY,
                        severity=Severity.ERROR,
                        message=f"{group_id} is not on a short week but sits in {shift.label}",
                        group_id=group_id,
                        shift_id=shift.id,
                    )
                )
        for group in members:
            if shift.id in session.constraints.forbidden_for(group.id):
                issues.append(
                    Issue(
                        kind=IssueKind.CONSTRAINT,
                        severity=Severity.ERROR,
                        message=f"{group.id} is placed in forbidden shift {shift.label}",
                        group_id=group.id,
                        shift_id=shift.id,
                    )
                )

    report = conflicts
    if report is None:
        report = detect_conflicts(lookup, session.day, partition.as_mapping())
    for group_id, messages in report.by_group.items():
        for message in messages:
            issues.append(
                Issue(
                    kind=IssueKind.CONFLICT,
                    severity=Severity.WARNING,
                    message=f"{group_id}: {message}",
                    group_id=group_id,
                    shift_id=partition.shift_of(group_id),
                )
            )

    unassigned = len(partition.unassigned)
    if unassigned:
        issues.append(
            Issue(
                kind=IssueKind.UNASSIGNED,
                severity=Severity.ERROR if unassigned > UNASSIGNED_ERROR_LIMIT else Severity.WARNING,
                message=f"{unassigned} group(s) not assigned to any shift",
            )
        )
    return issues


def shift_statistics(
    partition: ShiftPartition,
    groups: Mapping[str, Group],
    settings: AssemblySettings,
    *,
    lookup: StaffLookup | None = None,
    day: str | None = None,
) -> pd.DataFrame:
    """One row per shift with group counts, students, and occupancy.

    ``occupancy_pct`` is students over ``max_capacity``. When ``lookup`` and ``day`` are given
    the frame also carries ``people`` (students plus effective staff) and ``people_pct``.
    """

    rows: list[dict[str, object]] = []
    for shift in settings.shifts.shifts:
        members = [groups[gid] for gid in partition.groups_in(shift.id) if gid in groups]
        students = sum(g.students for g in members)
        short = sum(1 for g in members if g.week_variant is WeekVariant.SHORT)
        long = sum(1 for g in members if g.week_variant is WeekVariant.LONG)
        row: dict[str, object] = {
            "shift_id": shift.id,
            "label": shift.label,
            "groups": len(members),
            "students": students,
            "short_week": short,
            "long_week": long,
            "occupancy_pct": round(students / settings.max_capacity * 100),
        }
        if lookup is not None and day is not None:
            people = shift_occupancy(lookup, shift.id, members, day).total
            row["people"] = people
            row["people_pct"] = round(people / settings.max_capacity * 100)
        rows.append(row)
    return pd.DataFrame(rows)


def seniority_distribution(
    partition: ShiftPartition, groups: Mapping[str, Group]
) -> dict[str, int]:
    """Count placed groups per leading grade digit (``"other"`` when the id has none)."""

    counts: dict[str, int] = {}
    for shift_id in partition.shift_ids:
        for group_id in partition.groups_in(shift_id):
            group = groups.get(group_id)
            if group is None:
                continue
            match = re.match(r"^(\d)", group.id)
            key = match.group(1) if match else "other"
            counts[key] = counts.get(key, 0) + 1
    return dict(sorted(counts.items()))
