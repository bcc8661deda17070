"""Shift occupancy and eligibility checks.

Occupancy counts every student plus the accompanying staff resolved for the shift's going
period. A group whose roster lookup fails, or lists nobody, is still counted with one adult:
missing data never undercounts the room, at the price of overcounting a genuinely
unaccompanied group.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum

from assemblyplan.scenario.contract.models import Group
from assemblyplan.staff import StaffFound, StaffLookup, StaffLookupResult

MIN_STAFF_PER_GROUP = 1


class ViolationKind(str, Enum):
    CAPACITY = "capacity"
    ELIGIBILITY = "eligibility"


@dataclass(frozen=True, slots=True)
class Violation:
    """Structured validation problem for one shift."""

    kind: ViolationKind
    shift_id: str
    message: str
    group_ids: tuple[str, ...] = ()
    actual: int | None = None
    limit: int | None = None


@dataclass(frozen=True, slots=True)
class GroupOccupancy:
    group_id: str
    students: int
    staff: int

    @property
    def total(self) -> int:
        return self.students + self.staff


@dataclass(frozen=True, slots=True)
class ShiftOccupancy:
    shift_id: str
    groups: tuple[GroupOccupancy, ...] = ()

    @property
    def students(self) -> int:
        return sum(g.students for g in self.groups)

    @property
    def staff(self) -> int:
        return sum(g.staff for g in self.groups)

    @property
    def total(self) -> int:
        return self.students + self.staff


@dataclass(frozen=True, slots=True)
class ShiftValidation:
    occupancy: ShiftOccupancy
    max_capacity: int
    violations: tuple[Violation, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return not self.violations

    @property
    def messages(self) -> list[str]:
        return [v.message for v in self.violations]


def effective_staff_count(result: StaffLookupResult) -> int:
    """Number of going staff, floored at one adult per group."""
    if isinstance(result, StaffFound):
        return max(MIN_STAFF_PER_GROUP, len(result.names))
    return MIN_STAFF_PER_GROUP


def shift_occupancy(
    lookup: StaffLookup,
    shift_id: str,
    groups: Iterable[Group],
    day: str,
) -> ShiftOccupancy:
    """Compute students + effective going staff for the groups placed in ``shift_id``."""

    rows = []
    for group in groups:
        staff = lookup.shift_staff(shift_id, group.id, day)
        rows.append(
            GroupOccupancy(
                group_id=group.id,
                students=group.students,
                staff=effective_staff_count(staff.going),
            )
        )
    return ShiftOccupancy(shift_id=shift_id, groups=tuple(rows))


def validate_shift(
    lookup: StaffLookup,
    shift_id: str,
    groups: Sequence[Group],
    day: str,
    max_capacity: int,
) -> ShiftValidation:
    """Evaluate every rule for one shift and report all violations.

    Violations are advisory: the caller decides whether an over-capacity or ineligible
    placement blocks anything.

    A restricted shift admits only groups tagged as short week. Groups with a missing or
    unrecognised tag are flagged as well, not only those tagged long; auto-assignment uses
    the same predicate, so it never places a group this check would reject.
    """

    shift = lookup.shift(shift_id)
    occupancy = shift_occupancy(lookup, shift_id, groups, day)
    violations: list[Violation] = []

    if occupancy.total > max_capacity:
        violations.append(
            Violation(
                kind=ViolationKind.CAPACITY,
                shift_id=shift_id,
                message=f"{shift.label}: capacity exceeded ({occupancy.total}/{max_capacity})",
                group_ids=tuple(g.id for g in groups),
                actual=occupancy.total,
                limit=max_capacity,
            )
        )

    if shift.restricted:
        ineligible = tuple(g.id for g in groups if not g.allows_restricted_shift)
        if ineligible:
            violations.append(
                Violation(
                    kind=ViolationKind.ELIGIBILITY,
                    shift_id=shift_id,
                    message=(
                        f"{shift.label}: groups not on a short week: {', '.join(ineligible)}"
                    ),
                    group_ids=ineligible,
                )
            )

    return ShiftValidation(
        occupancy=occupancy,
        max_capacity=max_capacity,
        violations=tuple(violations),
    )


def validate_partition(
    lookup: StaffLookup,
    assignments: Mapping[str, Sequence[str]],
    groups: Mapping[str, Group],
    day: str,
    max_capacity: int,
) -> dict[str, ShiftValidation]:
    """Validate each shift of ``assignments`` (shift id -> group ids)."""

    results: dict[str, ShiftValidation] = {}
    for shift_id, group_ids in assignments.items():
        members = [groups[gid] for gid in group_ids if gid in groups]
        results[shift_id] = validate_shift(lookup, shift_id, members, day, max_capacity)
    return results


__all__ = [
    "MIN_STAFF_PER_GROUP",
    "ViolationKind",
    "Violation",
    "GroupOccupancy",
    "ShiftOccupancy",
    "ShiftValidation",
    "effective_staff_count",
    "shift_occupancy",
    "validate_shift",
    "validate_partition",
]
