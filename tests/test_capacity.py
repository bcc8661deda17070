from assemblyplan.scenario.contract.models import Group, StaffRoster
from assemblyplan.staff import StaffFound, StaffLookup, StaffNotFound
from assemblyplan.validation import (
    ViolationKind,
    effective_staff_count,
    shift_occupancy,
    validate_partition,
    validate_shift,
)

DAY = "Lunedì"


def _lookup() -> StaffLookup:
    roster = StaffRoster(entries={"1A": {DAY: {1: ["Bianchi", "Verdi"]}}})
    return StaffLookup(roster)


def test_effective_staff_floor():
    assert effective_staff_count(StaffNotFound()) == 1
    assert effective_staff_count(StaffFound(("A", "B", "C"))) == 3


def test_occupancy_counts_students_and_staff():
    groups = [Group(id="1A", students=20), Group(id="2B", students=15)]
    occupancy = shift_occupancy(_lookup(), "first", groups, DAY)
    assert occupancy.students == 35
    # 1A has two going staff, 2B has no record and counts one adult
    assert occupancy.staff == 3
    assert occupancy.total == 38


def test_capacity_violation_reports_totals():
    groups = [Group(id="1A", students=20)]
    result = validate_shift(_lookup(), "first", groups, DAY, max_capacity=21)
    assert not result.ok
    [violation] = result.violations
    assert violation.kind is ViolationKind.CAPACITY
    assert (violation.actual, violation.limit) == (22, 21)
    assert violation.message == "Primo turno: capacity exceeded (22/21)"


def test_capacity_at_ceiling_is_accepted():
    groups = [Group(id="1A", students=20)]
    assert validate_shift(_lookup(), "first", groups, DAY, max_capacity=22).ok


def test_restricted_shift_eligibility():
    groups = [
        Group(id="1A", students=10, week_variant="Corta"),
        Group(id="2B", students=10, week_variant="Lunga"),
        Group(id="3C", students=10),
    ]
    result = validate_shift(_lookup(), "fourth", groups, DAY, max_capacity=499)
    [violation] = result.violations
    assert violation.kind is ViolationKind.ELIGIBILITY
    assert violation.group_ids == ("2B", "3C")


def test_unrestricted_shift_accepts_any_variant():
    groups = [Group(id="2B", students=10, week_variant="Lunga")]
    assert validate_shift(_lookup(), "first", groups, DAY, max_capacity=499).ok


def test_removing_group_never_increases_occupancy():
    groups = [Group(id=f"{i}X", students=5 * i) for i in range(1, 6)]
    lookup = _lookup()
    total = shift_occupancy(lookup, "second", groups, DAY).total
    for index in range(len(groups)):
        reduced = groups[:index] + groups[index + 1 :]
        assert shift_occupancy(lookup, "second", reduced, DAY).total < total


def test_validate_partition_covers_each_shift():
    groups = {"1A": Group(id="1A", students=300), "2B": Group(id="2B", students=250)}
    results = validate_partition(
        _lookup(), {"first": ["1A", "2B"], "second": []}, groups, DAY, max_capacity=499
    )
    assert set(results) == {"first", "second"}
    assert not results["first"].ok
    assert results["second"].ok
    assert results["second"].occupancy.total == 0
