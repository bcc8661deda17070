"""Shift-level timeline primitives (assembly shifts and their staff periods)."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import time

from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator, model_validator


class ShiftDefinition(BaseModel):
    """One assembly shift within a school day.

    Attributes
    ----------
    id:
        Stable identifier used in constraints, partitions, and snapshots (e.g. ``first``).
    label:
        Display label (e.g. ``Primo turno``). Also matched against the shift declared in the
        groups CSV.
    start / end:
        Time of day bounding the shift. Only used to order shifts and to check that adjacent
        shifts hand off (shift ``k`` ends before shift ``k+1`` starts).
    going_period / returning_period:
        Lesson periods whose teachers accompany a group to the venue and collect it afterwards.
    restricted:
        When ``True`` only groups whose week variant allows it (short week) may use the shift.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    start: time
    end: time
    going_period: int
    returning_period: int
    restricted: bool = False

    @field_validator("id", "label")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("ShiftDefinition id/label must be non-empty")
        return value.strip()

    @field_validator("going_period", "returning_period")
    @classmethod
    def _period_positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("ShiftDefinition periods must be >= 1")
        return value

    @field_validator("end")
    @classmethod
    def _end_after_start(cls, value: time, info: ValidationInfo) -> time:
        start = info.data.get("start")
        if start is not None and value <= start:
            raise ValueError("ShiftDefinition.end must be after start")
        return value

    @field_validator("returning_period")
    @classmethod
    def _return_not_before_going(cls, value: int, info: ValidationInfo) -> int:
        going = info.data.get("going_period")
        if going is not None and value < going:
            raise ValueError("returning_period must be >= going_period")
        return value

    def matches_label(self, declared: str | None) -> bool:
        """Return ``True`` when a free-text declared shift refers to this shift."""
        if not declared or not declared.strip():
            return False
        needle = declared.strip().lower()
        return needle == self.id.lower() or needle in self.label.lower()


class ShiftCalendar(BaseModel):
    """Ordered set of shifts for one assembly day."""

    model_config = ConfigDict(frozen=True)

    shifts: tuple[ShiftDefinition, ...]

    @model_validator(mode="after")
    def _ordered_and_unique(self) -> ShiftCalendar:
        if not self.shifts:
            raise ValueError("ShiftCalendar requires at least one shift")
        seen: set[str] = set()
        for shift in self.shifts:
            if shift.id in seen:
                raise ValueError(f"Duplicate shift id '{shift.id}'")
            seen.add(shift.id)
        for previous, current in zip(self.shifts, self.shifts[1:]):
            if current.start < previous.end:
                raise ValueError(
                    f"Shift '{current.id}' starts before '{previous.id}' ends; "
                    "shifts must be listed in chronological order"
                )
        return self

    def ids(self) -> list[str]:
        return [shift.id for shift in self.shifts]

    def get(self, shift_id: str) -> ShiftDefinition:
        for shift in self.shifts:
            if shift.id == shift_id:
                return shift
        raise KeyError(shift_id)

    def adjacent_pairs(self) -> list[tuple[ShiftDefinition, ShiftDefinition]]:
        """Return ``(k, k+1)`` shift pairs in chronological order."""
        return list(zip(self.shifts, self.shifts[1:]))

    def resolve_label(self, declared: str | None) -> ShiftDefinition | None:
        """Map a declared shift label (``"Primo"``, ``"first"``) to a shift, if any."""
        for shift in self.shifts:
            if shift.matches_label(declared):
                return shift
        return None

    @classmethod
    def from_definitions(cls, shifts: Iterable[ShiftDefinition]) -> ShiftCalendar:
        return cls(shifts=tuple(shifts))


def default_shifts() -> ShiftCalendar:
    """Return the four-shift calendar used by the school assembly."""

    return ShiftCalendar(
        shifts=(
            ShiftDefinition(
                id="first",
                label="Primo turno",
                start=time(8, 0),
                end=time(9, 0),
                going_period=1,
                returning_period=2,
            ),
            ShiftDefinition(
                id="second",
                label="Secondo turno",
                start=time(9, 15),
                end=time(10, 15),
                going_period=2,
                returning_period=3,
            ),
            # third shift stays on site longer: accompanied in period 3, collected in period 5
            ShiftDefinition(
                id="third",
                label="Terzo turno",
                start=time(10, 30),
                end=time(11, 30),
                going_period=3,
                returning_period=5,
            ),
            ShiftDefinition(
                id="fourth",
                label="Quarto turno",
                start=time(11, 45),
                end=time(12, 45),
                going_period=5,
                returning_period=6,
                restricted=True,
            ),
        )
    )


def shift_ids(shifts: Sequence[ShiftDefinition]) -> list[str]:
    return [shift.id for shift in shifts]


__all__ = [
    "ShiftDefinition",
    "ShiftCalendar",
    "default_shifts",
    "shift_ids",
]
