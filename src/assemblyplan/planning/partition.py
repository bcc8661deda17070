"""Immutable shift partition snapshots.

A partition places every known group in exactly one bucket: one per shift plus the
``unassigned`` bucket. Every mutation returns a new snapshot so callers can keep undo history
without copying state by hand.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

from assemblyplan.core.errors import AssemblyValueError
from assemblyplan.scenario.contract.models import Group
from assemblyplan.scheduling import ShiftCalendar

UNASSIGNED = "unassigned"


@dataclass(frozen=True)
class ShiftPartition:
    """Shift id -> ordered group ids, plus the unassigned bucket.

    Attributes
    ----------
    shift_ids:
        Shift ids in calendar order.
    buckets:
        Mapping with one entry per shift id.
    unassigned:
        Group ids not placed in any shift.
    """

    shift_ids: tuple[str, ...]
    buckets: Mapping[str, tuple[str, ...]]
    unassigned: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if set(self.buckets) != set(self.shift_ids):
            raise AssemblyValueError(
                f"Partition buckets {sorted(self.buckets)} do not match shifts {list(self.shift_ids)}"
            )
        seen: set[str] = set()
        for group_id in self.all_group_ids():
            if group_id in seen:
                raise AssemblyValueError(f"Group '{group_id}' appears in more than one bucket")
            seen.add(group_id)

    @classmethod
    def empty(cls, groups: Iterable[Group], shifts: ShiftCalendar) -> ShiftPartition:
        ids = tuple(shifts.ids())
        return cls(
            shift_ids=ids,
            buckets={shift_id: () for shift_id in ids},
            unassigned=tuple(group.id for group in groups),
        )

    @classmethod
    def from_buckets(
        cls,
        shifts: ShiftCalendar,
        buckets: Mapping[str, Sequence[str]],
        unassigned: Sequence[str] = (),
    ) -> ShiftPartition:
        ids = tuple(shifts.ids())
        return cls(
            shift_ids=ids,
            buckets={shift_id: tuple(buckets.get(shift_id, ())) for shift_id in ids},
            unassigned=tuple(unassigned),
        )

    @classmethod
    def from_source_declared(
        cls, groups: Sequence[Group], shifts: ShiftCalendar
    ) -> ShiftPartition:
        """Seed the partition from the shift each group declares in the source table."""

        buckets: dict[str, list[str]] = {shift_id: [] for shift_id in shifts.ids()}
        unassigned: list[str] = []
        for group in groups:
            shift = shifts.resolve_label(group.source_shift)
            if shift is None:
                unassigned.append(group.id)
            else:
                buckets[shift.id].append(group.id)
        return cls.from_buckets(shifts, buckets, unassigned)

    @classmethod
    def restore(
        cls,
        raw_buckets: Mapping[str, Iterable[object]],
        groups: Sequence[Group],
        shifts: ShiftCalendar,
    ) -> tuple[ShiftPartition, list[str]]:
        """Rebuild a partition from an imported snapshot against the current group set.

        Unknown groups, duplicate references, malformed entries, and unknown shift keys are
        discarded with a warning; groups not mentioned anywhere end up unassigned.
        """

        known = {group.id for group in groups}
        folded = {group.id.casefold(): group.id for group in groups}
        warnings: list[str] = []
        buckets: dict[str, list[str]] = {shift_id: [] for shift_id in shifts.ids()}
        placed: set[str] = set()

        for key, entries in raw_buckets.items():
            if key in buckets:
                shift_id = key
            else:
                shift = shifts.resolve_label(str(key))
                if shift is None:
                    warnings.append(f"Unknown shift '{key}' ignored")
                    continue
                shift_id = shift.id
            if not isinstance(entries, (list, tuple)):
                warnings.append(f"Shift '{key}' does not hold a list of groups; ignored")
                continue
            for entry in entries:
                group_id = _entry_group_id(entry)
                if group_id is None:
                    warnings.append(f"Malformed entry in shift '{key}' ignored: {entry!r}")
                    continue
                resolved = group_id if group_id in known else folded.get(group_id.casefold())
                if resolved is None:
                    warnings.append(f"Unknown group '{group_id}' dropped from shift '{key}'")
                    continue
                if resolved in placed:
                    warnings.append(f"Group '{resolved}' listed more than once; keeping first")
                    continue
                placed.add(resolved)
                buckets[shift_id].append(resolved)

        unassigned = [group.id for group in groups if group.id not in placed]
        return cls.from_buckets(shifts, buckets, unassigned), warnings

    def all_group_ids(self) -> list[str]:
        ids = [gid for shift_id in self.shift_ids for gid in self.buckets[shift_id]]
        ids.extend(self.unassigned)
        return ids

    def groups_in(self, shift_id: str) -> tuple[str, ...]:
        if shift_id == UNASSIGNED:
            return self.unassigned
        try:
            return self.buckets[shift_id]
        except KeyError as exc:
            raise AssemblyValueError(f"Unknown shift '{shift_id}'") from exc

    def shift_of(self, group_id: str) -> str | None:
        """Shift id holding ``group_id``; :data:`UNASSIGNED` or ``None`` when unknown."""
        for shift_id in self.shift_ids:
            if group_id in self.buckets[shift_id]:
                return shift_id
        if group_id in self.unassigned:
            return UNASSIGNED
        return None

    def move(self, group_id: str, target: str) -> ShiftPartition:
        """Return a partition with ``group_id`` appended to ``target``."""

        source = self.shift_of(group_id)
        if source is None:
            raise AssemblyValueError(f"Unknown group '{group_id}'")
        if target != UNASSIGNED and target not in self.buckets:
            raise AssemblyValueError(f"Unknown shift '{target}'")
        if source == target:
            return self

        buckets = {sid: tuple(g for g in ids if g != group_id) for sid, ids in self.buckets.items()}
        unassigned = tuple(g for g in self.unassigned if g != group_id)
        if target == UNASSIGNED:
            unassigned = unassigned + (group_id,)
        else:
            buckets[target] = buckets[target] + (group_id,)
        return ShiftPartition(shift_ids=self.shift_ids, buckets=buckets, unassigned=unassigned)

    def reset(self) -> ShiftPartition:
        """Move every group back to the unassigned bucket, sorted by id."""
        return ShiftPartition(
            shift_ids=self.shift_ids,
            buckets={shift_id: () for shift_id in self.shift_ids},
            unassigned=tuple(sorted(self.all_group_ids())),
        )

    def as_mapping(self) -> dict[str, list[str]]:
        return {shift_id: list(self.buckets[shift_id]) for shift_id in self.shift_ids}

    def check_complete(self, group_ids: Iterable[str]) -> None:
        """Raise unless the partition holds exactly ``group_ids``."""
        expected = sorted(group_ids)
        actual = sorted(self.all_group_ids())
        if expected != actual:
            missing = sorted(set(expected) - set(actual))
            extra = sorted(set(actual) - set(expected))
            raise AssemblyValueError(
                f"Partition does not cover the group set (missing={missing}, extra={extra})"
            )


def _entry_group_id(entry: object) -> str | None:
    if isinstance(entry, str):
        return entry.strip() or None
    if isinstance(entry, Mapping):
        for key in ("id", "group_id", "classId"):
            value = entry.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    return None


def format_shift_listing(partition: ShiftPartition, shifts: ShiftCalendar) -> str:
    """Plain-text listing, one block per shift with sorted group ids."""

    lines: list[str] = []
    for shift in shifts.shifts:
        lines.append(f"{shift.label}:")
        lines.append(", ".join(sorted(partition.groups_in(shift.id))))
        lines.append("")
    return "\n".join(lines)


__all__ = ["UNASSIGNED", "ShiftPartition", "format_shift_listing"]
