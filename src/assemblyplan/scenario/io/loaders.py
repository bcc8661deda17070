"""Session loading utilities (YAML metadata + CSV tables)."""

from __future__ import annotations

import io
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any, cast

import pandas as pd
import yaml
from pydantic import TypeAdapter

from assemblyplan.core.errors import AssemblyValueError
from assemblyplan.scenario.contract.models import (
    AssemblySettings,
    ConstraintSet,
    Group,
    Session,
    StaffRoster,
)
from assemblyplan.scheduling import ShiftCalendar, ShiftDefinition, default_shifts
from assemblyplan.scheduling.venue import VenueLayout

__all__ = [
    "PERIOD_LABELS",
    "read_csv",
    "parse_groups_csv",
    "parse_roster_text",
    "parse_roster_csv",
    "load_session",
]

# column aliases accepted by the groups table, first match wins
GROUP_COLUMNS: dict[str, tuple[str, ...]] = {
    "id": ("Classe", "id", "group", "group_id"),
    "students": ("Alunni", "students"),
    "seats": ("Posti", "seats"),
    "week_variant": ("Settimana", "week_variant", "week"),
    "location": ("Sede", "location"),
    "source_shift": ("Turno", "shift", "source_shift"),
}

PERIOD_LABELS: dict[str, int] = {
    "8h10": 1,
    "9h10": 2,
    "10h10": 3,
    "11h10": 4,
    "12h10": 5,
    "13h10": 6,
    "14h00": 7,
}

_BARE_GROUP_ID = re.compile(r"^\d[A-Za-z]+$")


def read_csv(path: Path) -> pd.DataFrame:
    """Load a CSV file as strings, keeping blank cells as empty strings."""
    return pd.read_csv(path, dtype=str, keep_default_na=False, encoding="utf-8")


def _as_optional_string(value: object) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    if pd.isna(cast("Any", value)):
        return None
    return str(value)


def _coerce_int(value: object) -> int:
    text = _as_optional_string(value)
    if text is None:
        return 0
    try:
        return int(float(text))
    except ValueError as exc:
        raise AssemblyValueError(f"Expected an integer, got '{text}'") from exc


def _pick_column(frame: pd.DataFrame, aliases: tuple[str, ...]) -> str | None:
    lowered = {str(column).strip().lower(): column for column in frame.columns}
    for alias in aliases:
        column = lowered.get(alias.lower())
        if column is not None:
            return cast(str, column)
    return None


def parse_groups_csv(path: str | Path) -> list[Group]:
    """Parse the groups table.

    Accepts the Italian headers of the school export (``Turno``, ``Classe``, ``Alunni``,
    ``Posti``, ``Settimana``, ``Sede``) or their English aliases. Rows with a blank id are
    skipped; blank counts become zero.
    """

    frame = read_csv(Path(path))
    columns = {field: _pick_column(frame, aliases) for field, aliases in GROUP_COLUMNS.items()}
    if columns["id"] is None:
        raise AssemblyValueError(f"Groups table {path} has no 'Classe'/'id' column")

    rows: list[dict[str, object]] = []
    for record in frame.to_dict("records"):
        group_id = _as_optional_string(record.get(columns["id"]))
        if group_id is None:
            continue
        row: dict[str, object] = {"id": group_id}
        for field in ("students", "seats"):
            column = columns[field]
            row[field] = _coerce_int(record.get(column)) if column else 0
        for field in ("week_variant", "location", "source_shift"):
            column = columns[field]
            value = _as_optional_string(record.get(column)) if column else None
            if value is not None:
                row[field] = value
        rows.append(row)
    return TypeAdapter(list[Group]).validate_python(rows)


def _roster_frame(text: str) -> pd.DataFrame:
    lines = [line for line in text.splitlines() if line.strip()]
    if not lines:
        return pd.DataFrame()
    width = max(line.count(",") + 1 for line in lines)
    return pd.read_csv(
        io.StringIO("\n".join(lines)),
        header=None,
        names=list(range(width)),
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=True,
    )


def parse_roster_text(text: str) -> StaffRoster:
    """Parse the block-format staff timetable.

    Each block opens with a ``Classe <id>`` line (or a row whose only value is a bare id such
    as ``1Ac`` in the second column), followed by an ``Ora,Lunedì,...`` day header and one row
    per lesson hour (``8h10`` ... ``14h00`` map to periods 1-7). Multiple staff in a cell are
    separated by ``/``. Rows with unknown hour labels are ignored.
    """

    frame = _roster_frame(text)
    entries: dict[str, dict[str, dict[int, list[str]]]] = {}
    current: str | None = None
    days: list[str] = []

    for raw in frame.itertuples(index=False, name=None):
        cells = [_as_optional_string(cell) or "" for cell in raw]
        head = cells[0] if cells else ""
        rest = cells[1:]

        if head.lower().startswith("classe"):
            current = re.sub(r"(?i)^classe", "", head).strip()
            entries.setdefault(current, {})
            days = []
            continue
        if not head and rest and _BARE_GROUP_ID.match(rest[0]) and not any(rest[1:]):
            current = rest[0]
            entries.setdefault(current, {})
            days = []
            continue
        if current is None:
            continue
        if head.lower().startswith("ora") or (not head and rest and rest[0].lower().startswith("luned")):
            days = rest
            continue

        period = PERIOD_LABELS.get(head.lower().replace(" ", ""))
        if period is None:
            continue
        for day, cell in zip(days, rest):
            if not day or not cell:
                continue
            names = [name.strip() for name in cell.split("/") if name.strip()]
            if names:
                entries[current].setdefault(day, {})[period] = names

    return StaffRoster(entries=entries)


def parse_roster_csv(path: str | Path) -> StaffRoster:
    """Read and parse a block-format staff timetable file."""
    return parse_roster_text(Path(path).read_text(encoding="utf-8"))


def _resolve_constraints(
    raw: Mapping[str, object],
    groups: list[Group],
    calendar: ShiftCalendar,
    warnings: list[str],
) -> ConstraintSet:
    folded = {group.id.casefold(): group.id for group in groups}
    forbidden: dict[str, list[str]] = {}
    for raw_group, raw_shifts in raw.items():
        group_id = folded.get(str(raw_group).strip().casefold())
        if group_id is None:
            warnings.append(f"Constraint for unknown group '{raw_group}' dropped")
            continue
        values = [raw_shifts] if isinstance(raw_shifts, str) else list(cast(list, raw_shifts or []))
        resolved: list[str] = []
        for value in values:
            text = str(value).strip()
            if text in calendar.ids():
                resolved.append(text)
                continue
            shift = calendar.resolve_label(text)
            # unresolved names are kept so check_shifts reports them
            resolved.append(shift.id if shift is not None else text)
        forbidden[group_id] = resolved
    constraints = ConstraintSet(forbidden=forbidden)
    constraints.check_shifts(calendar)
    return constraints


def load_session(yaml_path: str | Path) -> tuple[Session, list[str]]:
    """Load a :class:`Session` from a YAML file referencing the groups and roster CSVs.

    Parameters
    ----------
    yaml_path:
        Path to ``session.yaml``. ``data.groups`` is required; ``data.roster`` is optional
        (an empty roster makes every staff lookup a miss).

    Returns
    -------
    tuple[Session, list[str]]
        The validated session and the non-fatal warnings raised while loading (constraints
        for unknown groups, roster entries for groups missing from the table).

    Notes
    -----
    Optional top-level keys: ``settings`` (``max_capacity``, ``alert_threshold``),
    ``shifts`` (list of shift definitions replacing the default calendar), ``constraints``
    (group id -> forbidden shift ids or labels), and ``venue`` (a full venue layout).
    """

    base_path = Path(yaml_path).resolve()
    with base_path.open("r", encoding="utf-8") as handle:
        meta = yaml.safe_load(handle) or {}
    if not isinstance(meta, Mapping):
        raise AssemblyValueError(f"Session file {base_path} must contain a mapping")
    root = base_path.parent
    data_section = meta.get("data", {}) or {}

    def require(name: str) -> Path:
        if name not in data_section:
            raise AssemblyValueError(f"Session file {base_path} is missing data.{name}")
        candidate = root / data_section[name]
        if not candidate.exists():
            raise FileNotFoundError(candidate)
        return candidate

    warnings: list[str] = []
    groups = parse_groups_csv(require("groups"))
    roster = parse_roster_csv(require("roster")) if "roster" in data_section else StaffRoster()

    known = {group.id.casefold() for group in groups}
    for roster_group in roster.group_ids():
        if roster_group.casefold() not in known:
            warnings.append(f"Roster lists group '{roster_group}' missing from the groups table")

    settings_raw = dict(meta.get("settings") or {})
    if "shifts" in meta:
        shifts = TypeAdapter(list[ShiftDefinition]).validate_python(meta["shifts"])
        settings_raw["shifts"] = ShiftCalendar.from_definitions(shifts)
    else:
        settings_raw.setdefault("shifts", default_shifts())
    settings = AssemblySettings.model_validate(settings_raw)

    constraints = _resolve_constraints(
        meta.get("constraints") or {}, groups, settings.shifts, warnings
    )

    venue = None
    if "venue" in meta:
        venue = TypeAdapter(VenueLayout).validate_python(meta["venue"])

    if not meta.get("day"):
        raise AssemblyValueError(f"Session file {base_path} must set the assembly day")
    session = Session(
        name=str(meta.get("name") or base_path.stem),
        day=str(meta["day"]),
        groups=groups,
        roster=roster,
        constraints=constraints,
        settings=settings,
        venue=venue,
    )
    return session, warnings
