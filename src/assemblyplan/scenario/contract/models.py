"""Pydantic models describing assemblyplan session inputs."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from enum import Enum
from typing import cast

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from assemblyplan.core.errors import AssemblyValueError
from assemblyplan.scheduling import ShiftCalendar, default_shifts
from assemblyplan.scheduling.venue import VenueLayout

DEFAULT_SENIORITY = 3
_LEADING_DIGIT = re.compile(r"^(\d)")


class WeekVariant(str, Enum):
    """Weekly timetable variant of a group (six-day "long" or five-day "short" week)."""

    LONG = "long"
    SHORT = "short"

    @classmethod
    def parse(cls, value: object) -> WeekVariant | None:
        """Normalise free-text tags (``"Lunga"``, ``"settimana corta"``, ``"short"``)."""
        if value is None:
            return None
        if isinstance(value, WeekVariant):
            return value
        text = str(value).strip().lower()
        if not text or text == "nan":
            return None
        if "corta" in text or "short" in text:
            return cls.SHORT
        if "lunga" in text or "long" in text:
            return cls.LONG
        return None


def normalize_day(day: str) -> str:
    """Title-case a weekday label so ``"MERCOLEDÌ"`` and ``"mercoledì"`` share a key."""
    cleaned = day.strip()
    if not cleaned:
        return cleaned
    return cleaned[0].upper() + cleaned[1:].lower()


class Group(BaseModel):
    """School class attending the assembly.

    Attributes
    ----------
    id:
        Unique group label (grade digit + section, e.g. ``1Ac``).
    students:
        Number of students travelling with the group.
    seats:
        Seats declared by the source table. Informative only; packing always reserves
        ``students + 1``.
    week_variant:
        :class:`WeekVariant` or ``None`` when the source tag is missing/unrecognised.
    location:
        Home building label, display only.
    source_shift:
        Shift label declared by the source table, if any.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    students: int = 0
    seats: int = 0
    week_variant: WeekVariant | None = None
    location: str = ""
    source_shift: str | None = None

    @field_validator("id")
    @classmethod
    def _id_not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("Group.id must be non-empty")
        return value.strip()

    @field_validator("students", "seats")
    @classmethod
    def _non_negative(cls, value: int) -> int:
        if value < 0:
            raise ValueError("Group student/seat counts must be non-negative")
        return value

    @field_validator("week_variant", mode="before")
    @classmethod
    def _parse_variant(cls, value: object) -> WeekVariant | None:
        return WeekVariant.parse(value)

    @field_validator("source_shift", mode="before")
    @classmethod
    def _blank_shift(cls, value: object) -> str | None:
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @property
    def seniority(self) -> int:
        """Grade digit leading the id (``5Bu`` -> 5); mid-range default when absent."""
        match = _LEADING_DIGIT.match(self.id)
        return int(match.group(1)) if match else DEFAULT_SENIORITY

    @property
    def allows_restricted_shift(self) -> bool:
        return self.week_variant is WeekVariant.SHORT


def _as_shift_list(shifts: object) -> tuple[object, ...]:
    if shifts is None:
        return ()
    if isinstance(shifts, str):
        return (shifts,)
    return tuple(cast(Iterable[object], shifts))


class ConstraintSet(BaseModel):
    """Forbidden shifts per group id."""

    model_config = ConfigDict(frozen=True)

    forbidden: dict[str, frozenset[str]] = Field(default_factory=dict)

    @field_validator("forbidden", mode="before")
    @classmethod
    def _coerce_sets(cls, value: object) -> object:
        if isinstance(value, Mapping):
            return {
                str(group_id).strip(): frozenset(str(s).strip() for s in _as_shift_list(shifts))
                for group_id, shifts in value.items()
            }
        return value

    def forbidden_for(self, group_id: str) -> frozenset[str]:
        direct = self.forbidden.get(group_id)
        if direct is not None:
            return direct
        folded = group_id.casefold()
        for key, shifts in self.forbidden.items():
            if key.casefold() == folded:
                return shifts
        return frozenset()

    def with_forbidden(self, group_id: str, shift_ids: Iterable[str]) -> ConstraintSet:
        """Return a copy with ``group_id``'s forbidden set replaced."""
        updated = dict(self.forbidden)
        updated[group_id] = frozenset(shift_ids)
        return ConstraintSet(forbidden=updated)

    def without(self, group_id: str) -> ConstraintSet:
        updated = {k: v for k, v in self.forbidden.items() if k != group_id}
        return ConstraintSet(forbidden=updated)

    def check_shifts(self, calendar: ShiftCalendar) -> None:
        """Raise :class:`AssemblyValueError` when a constraint names an unknown shift."""
        known = set(calendar.ids())
        for group_id, shifts in self.forbidden.items():
            unknown = sorted(shifts - known)
            if unknown:
                raise AssemblyValueError(
                    f"Constraint for group '{group_id}' references unknown shifts: {unknown}"
                )


class StaffRoster(BaseModel):
    """Accompanying staff per group, weekday, and lesson period.

    ``entries[group_id][day][period]`` holds the ordered staff names teaching that group in
    that period. Day keys are title-cased on input.
    """

    model_config = ConfigDict(frozen=True)

    entries: dict[str, dict[str, dict[int, tuple[str, ...]]]] = Field(default_factory=dict)

    @field_validator("entries", mode="before")
    @classmethod
    def _normalise_days(cls, value: object) -> object:
        if not isinstance(value, Mapping):
            return value
        normalised: dict[str, dict[str, dict[int, tuple[str, ...]]]] = {}
        for group_id, days in value.items():
            per_day: dict[str, dict[int, tuple[str, ...]]] = {}
            for day, periods in (days or {}).items():
                slot = per_day.setdefault(normalize_day(str(day)), {})
                for period, names in (periods or {}).items():
                    slot[int(period)] = tuple(str(name) for name in names)
            normalised[str(group_id).strip()] = per_day
        return normalised

    def resolve_group_key(self, group_id: str) -> str | None:
        """Case-insensitive match of ``group_id`` against the roster keys."""
        if group_id in self.entries:
            return group_id
        folded = group_id.casefold()
        for key in self.entries:
            if key.casefold() == folded:
                return key
        return None

    def names(self, group_id: str, day: str, period: int) -> tuple[str, ...] | None:
        """Return the raw roster cell, or ``None`` when group/day/period is unknown."""
        key = self.resolve_group_key(group_id)
        if key is None:
            return None
        return self.entries[key].get(normalize_day(day), {}).get(period)

    def group_ids(self) -> list[str]:
        return list(self.entries)


class AssemblySettings(BaseModel):
    """Caller-side configuration for the allocation engine.

    Attributes
    ----------
    max_capacity:
        Venue capacity ceiling per shift (people, students + staff). Defaults to 499.
    alert_threshold:
        Fraction of ``max_capacity`` above which a shift is reported as nearly full.
    shifts:
        Ordered :class:`~assemblyplan.scheduling.ShiftCalendar`.
    """

    max_capacity: int = 499
    alert_threshold: float = 0.9
    shifts: ShiftCalendar = Field(default_factory=default_shifts)

    @field_validator("max_capacity")
    @classmethod
    def _capacity_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("AssemblySettings.max_capacity must be > 0")
        return value

    @field_validator("alert_threshold")
    @classmethod
    def _threshold_fraction(cls, value: float) -> float:
        if not 0 < value <= 1:
            raise ValueError("AssemblySettings.alert_threshold must be in (0, 1]")
        return value


class Session(BaseModel):
    """Top-level container for one planning session.

    Only validated data reaches this point: group ids are unique (case-insensitively) and every
    constraint references a shift of ``settings.shifts``. The loader drops constraints for
    unknown groups before building the session.

    Attributes
    ----------
    name:
        Human-readable session label surfaced in CLI output and telemetry.
    day:
        Weekday of the assembly, used for staff lookups.
    groups / roster / constraints / settings:
        Inputs of the allocation engine.
    venue:
        Optional :class:`~assemblyplan.scheduling.venue.VenueLayout`; the default auditorium is
        used when ``None``.
    """

    name: str
    day: str
    groups: list[Group]
    roster: StaffRoster = Field(default_factory=StaffRoster)
    constraints: ConstraintSet = Field(default_factory=ConstraintSet)
    settings: AssemblySettings = Field(default_factory=AssemblySettings)
    venue: VenueLayout | None = None

    @field_validator("day")
    @classmethod
    def _normalise_day(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Session.day must be non-empty")
        return normalize_day(value)

    @model_validator(mode="after")
    def _check_references(self) -> Session:
        seen: set[str] = set()
        for group in self.groups:
            folded = group.id.casefold()
            if folded in seen:
                raise ValueError(f"Duplicate group id '{group.id}'")
            seen.add(folded)
        self.constraints.check_shifts(self.settings.shifts)
        return self

    def group_ids(self) -> list[str]:
        return [group.id for group in self.groups]

    def group_map(self) -> dict[str, Group]:
        return {group.id: group for group in self.groups}


__all__ = [
    "DEFAULT_SENIORITY",
    "WeekVariant",
    "Group",
    "ConstraintSet",
    "StaffRoster",
    "AssemblySettings",
    "Session",
    "normalize_day",
]
