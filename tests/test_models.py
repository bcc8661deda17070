from datetime import time

import pytest
from pydantic import ValidationError

from assemblyplan.core.errors import AssemblyValueError
from assemblyplan.scenario.contract.models import (
    AssemblySettings,
    ConstraintSet,
    Group,
    Session,
    StaffRoster,
    WeekVariant,
)
from assemblyplan.scheduling import (
    ShiftCalendar,
    ShiftDefinition,
    Side,
    default_shifts,
    default_venue,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("Corta", WeekVariant.SHORT),
        ("settimana corta", WeekVariant.SHORT),
        ("Lunga", WeekVariant.LONG),
        ("long week", WeekVariant.LONG),
        ("", None),
        ("sei giorni", None),
        (None, None),
    ],
)
def test_week_variant_parse(raw, expected):
    assert WeekVariant.parse(raw) == expected


def test_group_seniority_from_leading_digit():
    assert Group(id="5Bu", students=20).seniority == 5
    assert Group(id="1Ac", students=20).seniority == 1
    assert Group(id="Aula", students=20).seniority == 3


def test_group_restricted_shift_requires_short_week():
    assert Group(id="1A", week_variant="Corta").allows_restricted_shift
    assert not Group(id="1A", week_variant="Lunga").allows_restricted_shift
    assert not Group(id="1A").allows_restricted_shift


def test_group_rejects_negative_students():
    with pytest.raises(ValidationError):
        Group(id="1A", students=-1)


def test_group_rejects_blank_id():
    with pytest.raises(ValidationError):
        Group(id="  ")


def test_default_shifts_period_pairs():
    calendar = default_shifts()
    pairs = [(s.going_period, s.returning_period) for s in calendar.shifts]
    assert calendar.ids() == ["first", "second", "third", "fourth"]
    assert pairs == [(1, 2), (2, 3), (3, 5), (5, 6)]
    assert [s.restricted for s in calendar.shifts] == [False, False, False, True]


def test_shift_calendar_rejects_overlap():
    with pytest.raises(ValidationError):
        ShiftCalendar(
            shifts=(
                ShiftDefinition(
                    id="a",
                    label="A",
                    start=time(8),
                    end=time(9),
                    going_period=1,
                    returning_period=2,
                ),
                ShiftDefinition(
                    id="b",
                    label="B",
                    start=time(8, 30),
                    end=time(9, 30),
                    going_period=2,
                    returning_period=3,
                ),
            )
        )


def test_shift_label_resolution():
    calendar = default_shifts()
    assert calendar.resolve_label("Primo turno").id == "first"
    assert calendar.resolve_label("QUARTO").id == "fourth"
    assert calendar.resolve_label("third").id == "third"
    assert calendar.resolve_label("Quinto turno") is None
    assert calendar.resolve_label("") is None


def test_constraint_set_rejects_unknown_shift():
    constraints = ConstraintSet(forbidden={"1A": ["first", "tenth"]})
    with pytest.raises(AssemblyValueError, match="tenth"):
        constraints.check_shifts(default_shifts())


def test_session_rejects_constraint_on_unknown_shift():
    with pytest.raises(ValidationError, match="tenth"):
        Session(
            name="s",
            day="Lunedì",
            groups=[Group(id="1A")],
            constraints=ConstraintSet(forbidden={"1A": ["tenth"]}),
        )


def test_constraint_set_accepts_single_shift_string():
    constraints = ConstraintSet(forbidden={"1A": "first", "2B": None})
    assert constraints.forbidden_for("1A") == frozenset({"first"})
    assert constraints.forbidden_for("2B") == frozenset()


def test_constraint_lookup_is_case_insensitive():
    constraints = ConstraintSet(forbidden={"1Ac": ["first"]})
    assert constraints.forbidden_for("1AC") == frozenset({"first"})
    assert constraints.forbidden_for("2B") == frozenset()


def test_roster_normalises_days():
    roster = StaffRoster(entries={"1A": {"MERCOLEDÌ": {2: ["Rossi"]}}})
    assert roster.names("1a", "mercoledì", 2) == ("Rossi",)
    assert roster.names("1A", "Lunedì", 2) is None


def test_settings_validation():
    with pytest.raises(ValidationError):
        AssemblySettings(max_capacity=0)
    with pytest.raises(ValidationError):
        AssemblySettings(alert_threshold=1.5)
    assert AssemblySettings().max_capacity == 499


def test_session_rejects_duplicate_group_ids():
    with pytest.raises(ValidationError):
        Session(name="dup", day="Lunedì", groups=[Group(id="1A"), Group(id="1a")])


def test_session_normalises_day():
    session = Session(name="s", day="mercoledì", groups=[Group(id="1A")])
    assert session.day == "Mercoledì"


def test_default_venue_bin_capacities():
    venue = default_venue()
    capacities = {
        (block.name, side.value): len(venue.seat_order(block, side))
        for block in venue.blocks
        for side in (Side.LEFT, Side.RIGHT)
    }
    assert capacities == {
        ("front", "left"): 45,
        ("front", "right"): 45,
        ("middle", "left"): 102,
        ("middle", "right"): 102,
        ("back", "left"): 102,
        ("back", "right"): 102,
    }
    assert venue.total_seats() == 498
    assert "J" not in venue.rows and "K" not in venue.rows


def test_venue_locate_seat():
    venue = default_venue()
    assert venue.locate("A", 1) == ("front", Side.LEFT)
    assert venue.locate("D", 19) == ("middle", Side.RIGHT)
    assert venue.locate("S", 29) == ("back", Side.RIGHT)
    assert venue.locate("D", 14) is None
    assert venue.locate("J", 1) is None
