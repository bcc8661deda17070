"""Staff handoff conflicts between consecutive shifts."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum

from assemblyplan.staff import StaffLookup, staff_names


class ConflictKind(str, Enum):
    HANDOFF = "handoff"
    DOUBLE_GOING = "double_going"
    DOUBLE_RETURNING = "double_returning"


@dataclass(frozen=True, slots=True)
class StaffConflict:
    """One staff member needed by ``previous_group`` in shift k and ``next_group`` in k+1."""

    kind: ConflictKind
    staff: str
    previous_shift: str
    next_shift: str
    previous_group: str
    next_group: str


@dataclass(slots=True)
class ConflictReport:
    """Conflict records plus per-group messages.

    Groups without conflicts are absent from ``by_group``.
    """

    records: list[StaffConflict] = field(default_factory=list)
    by_group: dict[str, list[str]] = field(default_factory=dict)

    def _add_message(self, group_id: str, message: str) -> None:
        messages = self.by_group.setdefault(group_id, [])
        if message not in messages:
            messages.append(message)

    def add(self, conflict: StaffConflict) -> None:
        self.records.append(conflict)
        prev, nxt, staff = conflict.previous_group, conflict.next_group, conflict.staff
        if conflict.kind is ConflictKind.HANDOFF:
            self._add_message(prev, f"Conflict with {nxt} ({staff})")
            self._add_message(nxt, f"Conflict with {prev} ({staff})")
        elif conflict.kind is ConflictKind.DOUBLE_GOING:
            self._add_message(prev, f"Consecutive going legs ({staff}) with {nxt}")
            self._add_message(nxt, f"Consecutive going legs ({staff}) with {prev}")
        else:
            self._add_message(prev, f"Consecutive returning legs ({staff}) with {nxt}")
            self._add_message(nxt, f"Consecutive returning legs ({staff}) with {prev}")

    def conflicted_groups(self) -> set[str]:
        return set(self.by_group)

    def message_count(self) -> int:
        return sum(len(messages) for messages in self.by_group.values())


def _staff_multimaps(
    lookup: StaffLookup,
    shift_id: str,
    group_ids: Sequence[str],
    day: str,
) -> tuple[dict[str, list[str]], dict[str, list[str]]]:
    """Return ``(going, returning)`` maps: staff name -> group ids, sentinel excluded."""

    going: dict[str, list[str]] = defaultdict(list)
    returning: dict[str, list[str]] = defaultdict(list)
    for group_id in group_ids:
        staff = lookup.shift_staff(shift_id, group_id, day)
        for name in staff_names(staff.going):
            going[name].append(group_id)
        for name in staff_names(staff.returning):
            returning[name].append(group_id)
    return going, returning


def _cross(
    report: ConflictReport,
    kind: ConflictKind,
    current: Mapping[str, list[str]],
    following: Mapping[str, list[str]],
    previous_shift: str,
    next_shift: str,
    *,
    skip_same_group: bool,
) -> None:
    for staff, previous_groups in current.items():
        next_groups = following.get(staff)
        if not next_groups:
            continue
        for prev in previous_groups:
            for nxt in next_groups:
                if skip_same_group and prev == nxt:
                    continue
                report.add(
                    StaffConflict(
                        kind=kind,
                        staff=staff,
                        previous_shift=previous_shift,
                        next_shift=next_shift,
                        previous_group=prev,
                        next_group=nxt,
                    )
                )


def detect_conflicts(
    lookup: StaffLookup,
    day: str,
    assignments: Mapping[str, Sequence[str]],
    *,
    include_consecutive_legs: bool = False,
) -> ConflictReport:
    """Cross-reference staff between every adjacent shift pair.

    Parameters
    ----------
    lookup:
        Staff lookup bound to the roster and shift calendar.
    day:
        Weekday of the assembly.
    assignments:
        Shift id -> group ids. Shifts are visited in the lookup's calendar order, not mapping
        order; shifts missing from the mapping count as empty.
    include_consecutive_legs:
        Also flag staff going (or returning) with different groups in two consecutive shifts.

    Returns
    -------
    ConflictReport
        Every ``(previous, next)`` pair for a staff member returning in shift k and going in
        k+1 is recorded (full cross product), with a symmetric message on both groups.
    """

    report = ConflictReport()
    for current, following in lookup.shifts.adjacent_pairs():
        going_now, returning_now = _staff_multimaps(
            lookup, current.id, assignments.get(current.id, ()), day
        )
        going_next, returning_next = _staff_multimaps(
            lookup, following.id, assignments.get(following.id, ()), day
        )
        _cross(
            report,
            ConflictKind.HANDOFF,
            returning_now,
            going_next,
            current.id,
            following.id,
            skip_same_group=False,
        )
        if include_consecutive_legs:
            _cross(
                report,
                ConflictKind.DOUBLE_GOING,
                going_now,
                going_next,
                current.id,
                following.id,
                skip_same_group=True,
            )
            _cross(
                report,
                ConflictKind.DOUBLE_RETURNING,
                returning_now,
                returning_next,
                current.id,
                following.id,
                skip_same_group=True,
            )
    return report


__all__ = ["ConflictKind", "StaffConflict", "ConflictReport", "detect_conflicts"]
