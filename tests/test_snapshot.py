import json

import pytest

from assemblyplan.core.errors import AssemblyValueError
from assemblyplan.planning import ShiftPartition, export_snapshot, import_snapshot
from assemblyplan.planning.snapshot import restore_snapshot
from assemblyplan.scenario.contract.models import ConstraintSet, Group
from assemblyplan.scheduling import default_shifts

GROUPS = [Group(id=gid, students=20) for gid in ("1A", "2B", "3C")]


def test_export_then_import_restores_session(tmp_path):
    shifts = default_shifts()
    partition = ShiftPartition.from_buckets(shifts, {"first": ["1A"], "third": ["3C"]}, ["2B"])
    constraints = ConstraintSet(forbidden={"2B": ["fourth"]})
    path = export_snapshot(
        tmp_path / "out" / "session.json", partition, day="Mercoledì", constraints=constraints
    )

    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["shifts"]["first"] == ["1A"]
    assert payload["selected_day"] == "Mercoledì"

    imported = import_snapshot(path, GROUPS, shifts)
    assert imported.partition == partition
    assert imported.constraints.forbidden_for("2B") == frozenset({"fourth"})
    assert imported.day == "Mercoledì"
    assert imported.warnings == []


def test_import_discards_stale_references():
    payload = {
        "shifts": {"first": ["1A", "7Q"], "second": [{"id": "2B"}]},
        "constraints": {"7Q": ["first"], "3C": ["first", "decimo"], "1A": "first"},
        "selected_day": "LUNEDÌ",
    }
    imported = restore_snapshot(payload, GROUPS, default_shifts())
    assert imported.partition.groups_in("first") == ("1A",)
    assert imported.partition.unassigned == ("3C",)
    assert imported.constraints.forbidden_for("3C") == frozenset({"first"})
    assert imported.constraints.forbidden_for("1A") == frozenset()
    assert imported.day == "Lunedì"
    assert len(imported.warnings) == 4


def test_missing_shifts_section_leaves_everyone_unassigned():
    imported = restore_snapshot({"selected_day": None}, GROUPS, default_shifts())
    assert imported.partition.unassigned == ("1A", "2B", "3C")
    assert imported.warnings


@pytest.mark.parametrize("payload", [[1, 2], "text", None])
def test_non_object_payload_raises(payload):
    with pytest.raises(AssemblyValueError):
        restore_snapshot(payload, GROUPS, default_shifts())


@pytest.mark.parametrize(
    "section",
    [{"selected_day": 3}, {"constraints": ["1A"]}, {"unassigned": "1A"}, {"schema_version": 2}],
)
def test_wrong_typed_section_is_dropped_and_rest_kept(section):
    payload = {"shifts": {"first": ["1A"]}, **section}
    imported = restore_snapshot(payload, GROUPS, default_shifts())
    assert imported.partition.groups_in("first") == ("1A",)
    assert imported.partition.unassigned == ("2B", "3C")
    [key] = section
    assert any(key in warning for warning in imported.warnings)


def test_wrong_typed_shifts_section_leaves_groups_unassigned():
    payload = {"shifts": ["first"], "selected_day": "martedì", "constraints": {"2B": ["first"]}}
    imported = restore_snapshot(payload, GROUPS, default_shifts())
    assert imported.partition.unassigned == ("1A", "2B", "3C")
    assert imported.day == "Martedì"
    assert imported.constraints.forbidden_for("2B") == frozenset({"first"})
    assert any("shifts" in warning for warning in imported.warnings)


def test_import_accepts_camel_case_export(tmp_path):
    path = tmp_path / "assemblea.json"
    payload = {
        "shifts": {
            "Primo turno": [{"shiftName": "Primo turno", "classId": "1A", "students": 20}],
            "Secondo turno": [],
            "Terzo turno": [{"shiftName": "Terzo turno", "classId": "3C", "students": 20}],
            "Quarto turno": [],
        },
        "unassignedClasses": [{"classId": "2B"}],
        "constraints": {"2B": ["Quarto turno"]},
        "selectedDay": "Martedì",
    }
    path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")

    imported = import_snapshot(path, GROUPS, default_shifts())
    assert imported.day == "Martedì"
    assert imported.partition.groups_in("first") == ("1A",)
    assert imported.partition.groups_in("third") == ("3C",)
    assert imported.partition.unassigned == ("2B",)
    assert imported.constraints.forbidden_for("2B") == frozenset({"fourth"})
    assert imported.warnings == []


def test_invalid_json_raises(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(AssemblyValueError):
        import_snapshot(path, GROUPS, default_shifts())
