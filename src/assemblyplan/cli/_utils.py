"""CLI helper utilities for assemblyplan."""

from __future__ import annotations

from collections.abc import Sequence

import typer

from assemblyplan.scenario.contract.models import ConstraintSet, Group
from assemblyplan.scheduling import ShiftCalendar


def parse_constraint_args(forbid_args: Sequence[str] | None) -> dict[str, list[str]]:
    """Parse ``GROUP=shift1,shift2`` strings into a mapping.

    Repeating a group merges its shifts. Shift names are returned as given; resolving them
    against a calendar is left to :func:`apply_constraint_overrides`.
    """

    parsed: dict[str, list[str]] = {}
    if not forbid_args:
        return parsed
    for arg in forbid_args:
        if "=" not in arg:
            raise typer.BadParameter(f"Constraints must be GROUP=shift[,shift] (got '{arg}')")
        raw_group, raw_shifts = arg.split("=", 1)
        group = raw_group.strip()
        if not group:
            raise typer.BadParameter(f"Constraint missing group id in '{arg}'")
        shifts = [part.strip() for part in raw_shifts.split(",") if part.strip()]
        if not shifts:
            raise typer.BadParameter(f"Constraint for '{group}' lists no shifts")
        bucket = parsed.setdefault(group, [])
        bucket.extend(s for s in shifts if s not in bucket)
    return parsed


def apply_constraint_overrides(
    constraints: ConstraintSet,
    overrides: dict[str, list[str]],
    groups: Sequence[Group],
    calendar: ShiftCalendar,
) -> ConstraintSet:
    """Replace the forbidden set of every overridden group.

    Raises
    ------
    typer.BadParameter
        If a group id or shift name is unknown.
    """

    folded = {group.id.casefold(): group.id for group in groups}
    updated = constraints
    for raw_group, names in overrides.items():
        group_id = folded.get(raw_group.casefold())
        if group_id is None:
            raise typer.BadParameter(f"Unknown group '{raw_group}' in --forbid")
        shift_ids: list[str] = []
        for name in names:
            if name in calendar.ids():
                shift_ids.append(name)
                continue
            shift = calendar.resolve_label(name)
            if shift is None:
                allowed = ", ".join(calendar.ids())
                raise typer.BadParameter(f"Unknown shift '{name}' in --forbid. Allowed: {allowed}.")
            shift_ids.append(shift.id)
        updated = updated.with_forbidden(group_id, shift_ids)
    return updated


def parse_seat(value: str) -> tuple[str, int]:
    """Parse ``B12`` style seat references into ``(row, number)``."""

    text = value.strip().upper()
    row, number = text[:1], text[1:]
    if not row.isalpha() or not number.isdigit():
        raise typer.BadParameter(f"Seat must look like 'B12' (got '{value}')")
    return row, int(number)


__all__ = ["parse_constraint_args", "apply_constraint_overrides", "parse_seat"]
