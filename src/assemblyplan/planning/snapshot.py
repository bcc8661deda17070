"""JSON session snapshots (export/import of a partition, day, and constraints)."""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import AliasChoices, BaseModel, Field, ValidationError

from assemblyplan.core.errors import AssemblyValueError
from assemblyplan.planning.partition import ShiftPartition
from assemblyplan.scenario.contract.models import ConstraintSet, Group, normalize_day
from assemblyplan.scheduling import ShiftCalendar

SNAPSHOT_SCHEMA_VERSION = "1.0"


class SessionSnapshot(BaseModel):
    """Serialised form of a planning session.

    Bucket entries are kept loosely typed (``Any``) so that stale or hand-edited files still
    load; :func:`import_snapshot` filters them against the current group set.
    """

    schema_version: str = SNAPSHOT_SCHEMA_VERSION
    shifts: dict[str, Any] = Field(default_factory=dict)
    unassigned: list[Any] = Field(
        default_factory=list, validation_alias=AliasChoices("unassigned", "unassignedClasses")
    )
    selected_day: str | None = Field(
        default=None, validation_alias=AliasChoices("selected_day", "selectedDay")
    )
    constraints: dict[str, Any] = Field(default_factory=dict)
    saved_at: str | None = None


@dataclass(slots=True)
class ImportedSession:
    partition: ShiftPartition
    constraints: ConstraintSet
    day: str | None = None
    warnings: list[str] = field(default_factory=list)


def _iso_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def build_snapshot(
    partition: ShiftPartition,
    *,
    day: str | None = None,
    constraints: ConstraintSet | None = None,
) -> SessionSnapshot:
    forbidden = (constraints or ConstraintSet()).forbidden
    return SessionSnapshot(
        shifts={sid: list(ids) for sid, ids in partition.as_mapping().items()},
        unassigned=list(partition.unassigned),
        selected_day=day,
        constraints={gid: sorted(shifts) for gid, shifts in forbidden.items()},
        saved_at=_iso_now(),
    )


def export_snapshot(
    path: str | Path,
    partition: ShiftPartition,
    *,
    day: str | None = None,
    constraints: ConstraintSet | None = None,
) -> Path:
    """Write the session snapshot JSON to ``path`` and return the resolved path."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    snapshot = build_snapshot(partition, day=day, constraints=constraints)
    path.write_text(json.dumps(snapshot.model_dump(), indent=2, ensure_ascii=False), encoding="utf-8")
    return path


def _restore_constraints(
    raw: Mapping[str, Any],
    groups: Sequence[Group],
    shifts: ShiftCalendar,
    warnings: list[str],
) -> ConstraintSet:
    folded = {group.id.casefold(): group.id for group in groups}
    known_shifts = set(shifts.ids())
    forbidden: dict[str, list[str]] = {}
    for raw_group, raw_shifts in raw.items():
        group_id = folded.get(str(raw_group).strip().casefold())
        if group_id is None:
            warnings.append(f"Constraint for unknown group '{raw_group}' dropped")
            continue
        if not isinstance(raw_shifts, (list, tuple)):
            warnings.append(f"Constraint for '{group_id}' is not a list of shifts; dropped")
            continue
        kept: list[str] = []
        for value in raw_shifts:
            shift_id = str(value)
            if shift_id not in known_shifts:
                resolved = shifts.resolve_label(shift_id)
                if resolved is None:
                    warnings.append(
                        f"Constraint for '{group_id}' references unknown shift '{value}'; ignored"
                    )
                    continue
                shift_id = resolved.id
            kept.append(shift_id)
        forbidden[group_id] = kept
    return ConstraintSet(forbidden=forbidden)


def _section_keys(name: str) -> tuple[str, ...]:
    alias = SessionSnapshot.model_fields[name].validation_alias
    if isinstance(alias, AliasChoices):
        return tuple(choice for choice in alias.choices if isinstance(choice, str))
    return (name,)


def _parse_sections(payload: Mapping[str, Any], warnings: list[str]) -> SessionSnapshot:
    """Validate each top-level section on its own; a malformed section is dropped."""

    kept: dict[str, Any] = {}
    for name in SessionSnapshot.model_fields:
        key = next((k for k in _section_keys(name) if k in payload), None)
        if key is None:
            continue
        try:
            SessionSnapshot.model_validate({key: payload[key]})
        except ValidationError:
            warnings.append(f"Snapshot section '{key}' has the wrong type; ignored")
            continue
        kept[key] = payload[key]
    return SessionSnapshot.model_validate(kept)


def restore_snapshot(
    payload: object,
    groups: Sequence[Group],
    shifts: ShiftCalendar,
) -> ImportedSession:
    """Validate a decoded snapshot against the current groups and shifts.

    Sections are checked one by one: a section of the wrong type (``shifts`` given as a list,
    a numeric ``selected_day``) is discarded with a warning and the rest still loads. The
    camelCase keys ``selectedDay`` and ``unassignedClasses`` of older exports are accepted.

    Raises
    ------
    AssemblyValueError
        If the payload is not a JSON object.
    """

    if not isinstance(payload, Mapping):
        raise AssemblyValueError("Snapshot must be a JSON object")

    warnings: list[str] = []
    snapshot = _parse_sections(payload, warnings)
    if "shifts" not in payload:
        warnings.append("Snapshot has no 'shifts' section; all groups left unassigned")
    partition, partition_warnings = ShiftPartition.restore(snapshot.shifts, groups, shifts)
    warnings.extend(partition_warnings)
    constraints = _restore_constraints(snapshot.constraints, groups, shifts, warnings)
    day = normalize_day(snapshot.selected_day) if snapshot.selected_day else None
    return ImportedSession(partition=partition, constraints=constraints, day=day, warnings=warnings)


def import_snapshot(
    path: str | Path,
    groups: Sequence[Group],
    shifts: ShiftCalendar,
) -> ImportedSession:
    """Load a snapshot file written by :func:`export_snapshot` (or an older tool)."""

    path = Path(path)
    with path.open("r", encoding="utf-8") as handle:
        try:
            payload = json.load(handle)
        except json.JSONDecodeError as exc:
            raise AssemblyValueError(f"Snapshot {path} is not valid JSON: {exc.msg}") from exc
    return restore_snapshot(payload, groups, shifts)


__all__ = [
    "SNAPSHOT_SCHEMA_VERSION",
    "SessionSnapshot",
    "ImportedSession",
    "build_snapshot",
    "export_snapshot",
    "restore_snapshot",
    "import_snapshot",
]
