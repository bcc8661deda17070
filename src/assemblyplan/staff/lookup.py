"""Accompanying-staff lookup for a group travelling to and from a shift."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from assemblyplan.core.errors import AssemblyValueError
from assemblyplan.scenario.contract.models import StaffRoster
from assemblyplan.scheduling import ShiftCalendar, ShiftDefinition, default_shifts

NOT_FOUND_LABEL = "Non trovato"


@dataclass(frozen=True, slots=True)
class StaffFound:
    """Roster cell with at least one staff name."""

    names: tuple[str, ...]

    def display_names(self) -> list[str]:
        return list(self.names)


@dataclass(frozen=True, slots=True)
class StaffNotFound:
    """No roster record for the resolved group/day/period."""

    def display_names(self) -> list[str]:
        return [NOT_FOUND_LABEL]


StaffLookupResult = Union[StaffFound, StaffNotFound]


@dataclass(frozen=True, slots=True)
class ShiftStaff:
    """Staff accompanying a group to the venue (``going``) and collecting it (``returning``)."""

    going: StaffLookupResult
    returning: StaffLookupResult


def staff_names(result: StaffLookupResult) -> tuple[str, ...]:
    """Names carried by a lookup result; empty for :class:`StaffNotFound`."""
    if isinstance(result, StaffFound):
        return result.names
    return ()


class StaffLookup:
    """Resolve going/returning staff through the shift -> period table.

    Parameters
    ----------
    roster:
        Staff roster indexed by group, day, and period.
    shifts:
        Shift calendar supplying each shift's ``(going_period, returning_period)`` pair.
    """

    def __init__(self, roster: StaffRoster, shifts: ShiftCalendar | None = None) -> None:
        self.roster = roster
        self.shifts = shifts or default_shifts()
        self._by_id: dict[str, ShiftDefinition] = {shift.id: shift for shift in self.shifts.shifts}

    def shift(self, shift_id: str) -> ShiftDefinition:
        try:
            return self._by_id[shift_id]
        except KeyError as exc:
            raise AssemblyValueError(f"Unknown shift '{shift_id}'") from exc

    def period_pair(self, shift_id: str) -> tuple[int, int]:
        shift = self.shift(shift_id)
        return shift.going_period, shift.returning_period

    def lookup(self, group_id: str, day: str, period: int) -> StaffLookupResult:
        cell = self.roster.names(group_id, day, period)
        if cell is None:
            return StaffNotFound()
        names = tuple(name.strip() for name in cell if name and name.strip())
        if not names:
            return StaffNotFound()
        return StaffFound(names)

    def shift_staff(self, shift_id: str, group_id: str, day: str) -> ShiftStaff:
        going_period, returning_period = self.period_pair(shift_id)
        return ShiftStaff(
            going=self.lookup(group_id, day, going_period),
            returning=self.lookup(group_id, day, returning_period),
        )


__all__ = [
    "NOT_FOUND_LABEL",
    "StaffFound",
    "StaffNotFound",
    "StaffLookupResult",
    "ShiftStaff",
    "StaffLookup",
    "staff_names",
]
