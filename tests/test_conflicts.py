from assemblyplan.evaluation import ConflictKind, detect_conflicts
from assemblyplan.scenario.contract.models import StaffRoster
from assemblyplan.staff import StaffLookup

DAY = "Mercoledì"


def _lookup(entries) -> StaffLookup:
    return StaffLookup(StaffRoster(entries=entries))


def test_handoff_conflict_is_reported_once_per_group():
    # Rossi collects 1A after the first shift (period 2) and takes 2B to the second (period 2)
    lookup = _lookup({"1A": {DAY: {2: ["Rossi"]}}, "2B": {DAY: {2: ["Rossi"]}}})
    report = detect_conflicts(lookup, DAY, {"first": ["1A"], "second": ["2B"]})
    assert report.by_group == {
        "1A": ["Conflict with 2B (Rossi)"],
        "2B": ["Conflict with 1A (Rossi)"],
    }
    assert len(report.records) == 1
    assert report.records[0].kind is ConflictKind.HANDOFF


def test_conflicts_only_between_adjacent_shifts():
    lookup = _lookup({"1A": {DAY: {2: ["Rossi"]}}, "2B": {DAY: {3: ["Rossi"]}}})
    report = detect_conflicts(lookup, DAY, {"first": ["1A"], "third": ["2B"]})
    assert report.by_group == {}


def test_cross_product_of_groups_sharing_staff():
    lookup = _lookup(
        {
            "1A": {DAY: {2: ["Rossi"]}},
            "1B": {DAY: {2: ["Rossi"]}},
            "2A": {DAY: {2: ["Rossi"]}},
            "2B": {DAY: {2: ["Rossi"]}},
        }
    )
    report = detect_conflicts(lookup, DAY, {"first": ["1A", "1B"], "second": ["2A", "2B"]})
    assert len(report.records) == 4
    assert sorted(report.by_group["1A"]) == ["Conflict with 2A (Rossi)", "Conflict with 2B (Rossi)"]
    assert sorted(report.by_group["2B"]) == ["Conflict with 1A (Rossi)", "Conflict with 1B (Rossi)"]


def test_conflicts_are_symmetric():
    lookup = _lookup(
        {
            "1A": {DAY: {2: ["Rossi", "Neri"]}, "Lunedì": {2: ["Gallo"]}},
            "2B": {DAY: {2: ["Rossi"], 3: ["Ferri"]}},
            "3C": {DAY: {2: ["Neri"], 3: ["Sala"]}},
            "4D": {DAY: {3: ["Ferri", "Sala"]}},
        }
    )
    report = detect_conflicts(
        lookup, DAY, {"first": ["1A"], "second": ["2B", "3C"], "third": ["4D"]}
    )
    for group_id, messages in report.by_group.items():
        for message in messages:
            other = message.split("Conflict with ", 1)[1].split(" ", 1)[0]
            assert any(group_id in m for m in report.by_group[other])
    assert report.conflicted_groups() == {"1A", "2B", "3C", "4D"}


def test_missing_roster_never_conflicts():
    report = detect_conflicts(_lookup({}), DAY, {"first": ["1A"], "second": ["2B"]})
    assert report.records == []
    assert report.message_count() == 0


def test_consecutive_going_legs_are_opt_in():
    lookup = _lookup({"1A": {DAY: {1: ["Verdi"]}}, "2B": {DAY: {2: ["Verdi"]}}})
    assignments = {"first": ["1A"], "second": ["2B"]}
    assert detect_conflicts(lookup, DAY, assignments).by_group == {}
    report = detect_conflicts(lookup, DAY, assignments, include_consecutive_legs=True)
    assert report.by_group == {
        "1A": ["Consecutive going legs (Verdi) with 2B"],
        "2B": ["Consecutive going legs (Verdi) with 1A"],
    }
