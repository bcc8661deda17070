import pytest

from assemblyplan.core.errors import AssemblyValueError
from assemblyplan.planning import UNASSIGNED, ShiftPartition, format_shift_listing
from assemblyplan.scenario.contract.models import Group
from assemblyplan.scheduling import default_shifts


def _groups() -> list[Group]:
    return [
        Group(id="1A", students=20, source_shift="Primo turno"),
        Group(id="2B", students=20, source_shift="secondo"),
        Group(id="3C", students=20, source_shift="Quinto turno"),
        Group(id="4D", students=20),
    ]


def test_empty_partition_holds_every_group_unassigned():
    partition = ShiftPartition.empty(_groups(), default_shifts())
    assert partition.unassigned == ("1A", "2B", "3C", "4D")
    assert all(partition.groups_in(s) == () for s in partition.shift_ids)


def test_seed_from_declared_shift_labels():
    partition = ShiftPartition.from_source_declared(_groups(), default_shifts())
    assert partition.groups_in("first") == ("1A",)
    assert partition.groups_in("second") == ("2B",)
    assert partition.unassigned == ("3C", "4D")


def test_move_returns_new_partition():
    partition = ShiftPartition.empty(_groups(), default_shifts())
    moved = partition.move("2B", "third").move("1A", "third")
    assert moved.groups_in("third") == ("2B", "1A")
    assert moved.shift_of("2B") == "third"
    assert partition.shift_of("2B") == UNASSIGNED
    back = moved.move("2B", UNASSIGNED)
    assert back.unassigned[-1] == "2B"
    back.check_complete(g.id for g in _groups())


def test_move_rejects_unknown_group_or_shift():
    partition = ShiftPartition.empty(_groups(), default_shifts())
    with pytest.raises(AssemblyValueError):
        partition.move("9Z", "first")
    with pytest.raises(AssemblyValueError):
        partition.move("1A", "fifth")


def test_reset_sorts_unassigned():
    partition = ShiftPartition.from_source_declared(_groups(), default_shifts())
    reset = partition.move("4D", "first").reset()
    assert reset.unassigned == ("1A", "2B", "3C", "4D")
    assert reset.as_mapping() == {"first": [], "second": [], "third": [], "fourth": []}


def test_duplicate_group_is_rejected():
    with pytest.raises(AssemblyValueError):
        ShiftPartition.from_buckets(default_shifts(), {"first": ["1A"], "second": ["1A"]})


def test_check_complete_reports_missing_and_extra():
    partition = ShiftPartition.from_buckets(default_shifts(), {"first": ["1A", "9Z"]})
    with pytest.raises(AssemblyValueError, match="missing=\\['2B'\\], extra=\\['9Z'\\]"):
        partition.check_complete(["1A", "2B"])


def test_restore_discards_unknown_and_duplicate_references():
    raw = {
        "first": ["1A", {"id": "2b"}, "9Z"],
        "Terzo turno": [{"classId": "3C"}, "1A", 42],
        "Sesto turno": ["4D"],
        "second": "not-a-list",
    }
    partition, warnings = ShiftPartition.restore(raw, _groups(), default_shifts())
    assert partition.groups_in("first") == ("1A", "2B")
    assert partition.groups_in("third") == ("3C",)
    assert partition.unassigned == ("4D",)
    assert len(warnings) == 5
    assert any("9Z" in w for w in warnings)
    assert any("Sesto turno" in w for w in warnings)


def test_format_shift_listing_sorts_ids():
    partition = ShiftPartition.from_buckets(
        default_shifts(), {"first": ["2B", "1A"], "fourth": ["3C"]}, ["4D"]
    )
    text = format_shift_listing(partition, default_shifts())
    assert text.splitlines()[:3] == ["Primo turno:", "1A, 2B", ""]
    assert "Quarto turno:\n3C\n" in text
    assert "4D" not in text
