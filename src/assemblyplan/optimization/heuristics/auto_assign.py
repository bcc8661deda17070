"""Greedy auto-assignment of groups to shifts.

The heuristic walks groups in shuffled order and places each one in the first shift of a
seniority-biased preference list that still has room, falling back to the least-loaded
eligible shift. It never revisits a placed group: a group that finds no room stays in the
leftover list even when moving an earlier group would have made space.

Capacity here counts students only. The validator adds accompanying staff, so a partition
accepted by this pass can still exceed the ceiling once staff are counted; use
:meth:`AutoAssignResult.validator_gap` to surface those shifts.
"""

from __future__ import annotations

import random as _random
from collections.abc import Iterable, Mapping, MutableSequence, Sequence
from dataclasses import dataclass, field
from typing import Protocol, TypeVar

from assemblyplan.planning.partition import ShiftPartition
from assemblyplan.scenario.contract.models import ConstraintSet, Group
from assemblyplan.scheduling import ShiftCalendar, ShiftDefinition, default_shifts
from assemblyplan.staff import StaffLookup
from assemblyplan.validation import shift_occupancy

__all__ = [
    "RandomSource",
    "AutoAssignResult",
    "PRIMARY_VARIANT_PROBABILITY",
    "EARLY_SENIORITY_MAX",
    "LATE_SENIORITY_MIN",
    "shuffled",
    "variant_shifts",
    "is_eligible",
    "preference_order",
    "auto_assign",
]

PRIMARY_VARIANT_PROBABILITY = 0.6
EARLY_SENIORITY_MAX = 2
LATE_SENIORITY_MIN = 4

T = TypeVar("T")


class RandomSource(Protocol):
    """Minimal randomness interface; :class:`random.Random` satisfies it."""

    def random(self) -> float:
        """Return the next float in ``[0, 1)``."""


def shuffled(items: Iterable[T], rng: RandomSource) -> list[T]:
    """Fisher-Yates shuffle driven only by ``rng.random()``."""

    result: MutableSequence[T] = list(items)
    for i in range(len(result) - 1, 0, -1):
        j = int(rng.random() * (i + 1))
        result[i], result[j] = result[j], result[i]
    return list(result)


def variant_shifts(group: Group, shifts: ShiftCalendar) -> list[ShiftDefinition]:
    """Shifts the group's week variant allows, in calendar order."""
    return [s for s in shifts.shifts if not s.restricted or group.allows_restricted_shift]


def is_eligible(group: Group, shift: ShiftDefinition, constraints: ConstraintSet) -> bool:
    if shift.id in constraints.forbidden_for(group.id):
        return False
    if shift.restricted and not group.allows_restricted_shift:
        return False
    return True


def _swap_leading(order: list[ShiftDefinition]) -> list[ShiftDefinition]:
    if len(order) < 2:
        return order
    return [order[1], order[0], *order[2:]]


def preference_order(
    group: Group, shifts: ShiftCalendar, rng: RandomSource
) -> list[ShiftDefinition]:
    """Seniority-biased shift preference for ``group``.

    Junior groups (grade <= 2) prefer early shifts, senior groups (grade >= 4) prefer late
    ones, including the restricted shift when their week variant allows it. Each biased
    list comes in a primary form (probability 0.6) and a secondary form with the two leading
    shifts swapped. Other grades get a uniformly shuffled list.
    """

    allowed = variant_shifts(group, shifts)
    seniority = group.seniority
    if seniority <= EARLY_SENIORITY_MAX:
        regular = [s for s in allowed if not s.restricted]
        restricted = [s for s in allowed if s.restricted]
        order = regular if rng.random() < PRIMARY_VARIANT_PROBABILITY else _swap_leading(regular)
        return order + restricted
    if seniority >= LATE_SENIORITY_MIN:
        latest_first = list(reversed(allowed))
        if rng.random() < PRIMARY_VARIANT_PROBABILITY:
            return latest_first
        return _swap_leading(latest_first)
    return shuffled(allowed, rng)


@dataclass(slots=True)
class AutoAssignResult:
    """Outcome of :func:`auto_assign`.

    Attributes
    ----------
    partition:
        Complete partition; its ``unassigned`` bucket equals ``leftover``.
    leftover:
        Groups no eligible shift could admit, in processing order.
    student_load:
        Raw students per shift as seen by the capacity pre-filter.
    seed:
        Seed used to build the default random source, when one was built.
    """

    partition: ShiftPartition
    leftover: tuple[str, ...]
    student_load: dict[str, int]
    seed: int | None = None
    processing_order: tuple[str, ...] = field(default_factory=tuple)

    @property
    def placed_count(self) -> int:
        return len(self.partition.all_group_ids()) - len(self.leftover)

    def validator_gap(
        self,
        lookup: StaffLookup,
        groups: Mapping[str, Group],
        day: str,
        max_capacity: int,
    ) -> dict[str, int]:
        """Shifts whose staff-inclusive occupancy exceeds ``max_capacity``.

        Returns shift id -> occupancy for every shift that passed the students-only check but
        fails the validator's rule.
        """

        gaps: dict[str, int] = {}
        for shift_id in self.partition.shift_ids:
            members = [groups[g] for g in self.partition.groups_in(shift_id)]
            total = shift_occupancy(lookup, shift_id, members, day).total
            if total > max_capacity:
                gaps[shift_id] = total
        return gaps


def auto_assign(
    groups: Sequence[Group],
    constraints: ConstraintSet | None = None,
    *,
    shifts: ShiftCalendar | None = None,
    max_capacity: int = 499,
    rng: RandomSource | None = None,
    seed: int | None = None,
) -> AutoAssignResult:
    """Distribute ``groups`` across ``shifts`` honouring constraints and capacity.

    Parameters
    ----------
    groups:
        Full group set. Every group ends in exactly one shift bucket or in ``leftover``.
    constraints:
        Forbidden shifts per group.
    shifts:
        Shift calendar, defaults to :func:`~assemblyplan.scheduling.default_shifts`.
    max_capacity:
        Student ceiling per shift (staff are not counted by this pass).
    rng:
        Random source; takes precedence over ``seed``.
    seed:
        Seed for a fresh :class:`random.Random` when ``rng`` is not given. ``None`` draws from
        system entropy, so results are not reproducible.
    """

    calendar = shifts or default_shifts()
    constraints = constraints or ConstraintSet()
    source: RandomSource = rng if rng is not None else _random.Random(seed)

    buckets: dict[str, list[str]] = {shift_id: [] for shift_id in calendar.ids()}
    load: dict[str, int] = {shift_id: 0 for shift_id in calendar.ids()}
    leftover: list[str] = []

    def has_room(shift: ShiftDefinition, students: int) -> bool:
        return load[shift.id] + students <= max_capacity

    order = shuffled(groups, source)
    for group in order:
        preferred = preference_order(group, calendar, source)
        chosen: ShiftDefinition | None = None
        for shift in preferred:
            if is_eligible(group, shift, constraints) and has_room(shift, group.students):
                chosen = shift
                break
        if chosen is None:
            candidates = [
                s
                for s in calendar.shifts
                if is_eligible(group, s, constraints) and has_room(s, group.students)
            ]
            if candidates:
                chosen = min(candidates, key=lambda s: load[s.id])
        if chosen is None:
            leftover.append(group.id)
            continue
        buckets[chosen.id].append(group.id)
        load[chosen.id] += group.students

    partition = ShiftPartition.from_buckets(calendar, buckets, leftover)
    return AutoAssignResult(
        partition=partition,
        leftover=tuple(leftover),
        student_load=load,
        seed=seed if rng is None else None,
        processing_order=tuple(group.id for group in order),
    )
