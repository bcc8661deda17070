from pathlib import Path

import pytest

from assemblyplan.core.errors import AssemblyValueError
from assemblyplan.scenario.contract.models import WeekVariant
from assemblyplan.scenario.io import load_session, parse_groups_csv, parse_roster_text
from assemblyplan.staff import StaffFound, StaffLookup

DEMO = Path(__file__).resolve().parents[1] / "examples" / "demo" / "session.yaml"

ROSTER = """\
Classe 1Ac,,,,,,
Ora,Lunedì,Martedì,Mercoledì,Giovedì,Venerdì,Sabato
8h10,Neri,,Bianchi / Verdi,,,
9h10,,,Rossi,,,
18h30,,,Ignored,,,
Classe 2Bu,,,,,,
Ora,Lunedì,Martedì,Mercoledì,Giovedì,Venerdì,Sabato
14h00,,,,,,Conti
"""


def _write_session(tmp_path: Path, extra: str = "") -> Path:
    (tmp_path / "groups.csv").write_text(
        "Turno,Classe,Alunni,Posti,Settimana,Sede\n"
        "Primo turno,1Ac,24,25,Lunga,Sede Centrale\n"
        "Quarto turno,2Bu,18,19,Corta,Borgo S. Antonio\n"
        ",,,,,\n",
        encoding="utf-8",
    )
    (tmp_path / "roster.csv").write_text(
        ROSTER + "Classe 9Zz,,,,,,\n", encoding="utf-8"
    )
    path = tmp_path / "session.yaml"
    path.write_text(
        "name: test-session\n"
        "day: mercoledì\n"
        "data:\n"
        "  groups: groups.csv\n"
        "  roster: roster.csv\n" + extra,
        encoding="utf-8",
    )
    return path


def test_parse_roster_blocks():
    roster = parse_roster_text(ROSTER)
    assert roster.names("1Ac", "Mercoledì", 1) == ("Bianchi", "Verdi")
    assert roster.names("1Ac", "Lunedì", 1) == ("Neri",)
    assert roster.names("1Ac", "Mercoledì", 2) == ("Rossi",)
    assert roster.names("2Bu", "Sabato", 7) == ("Conti",)
    assert set(roster.entries["1Ac"]["Mercoledì"]) == {1, 2}


def test_parse_roster_bare_group_rows():
    text = ",1Ac,,,,,\n,Lunedì,Martedì,Mercoledì,Giovedì,Venerdì,Sabato\n10h10,Gallo,,,,,\n"
    roster = parse_roster_text(text)
    assert roster.names("1Ac", "Lunedì", 3) == ("Gallo",)


def test_parse_groups_csv_with_english_headers(tmp_path):
    path = tmp_path / "groups.csv"
    path.write_text(
        "id,students,week_variant,shift\n3Cc,21,short,first\n4Dd,,long,\n", encoding="utf-8"
    )
    groups = parse_groups_csv(path)
    assert [g.id for g in groups] == ["3Cc", "4Dd"]
    assert groups[0].week_variant is WeekVariant.SHORT
    assert groups[0].source_shift == "first"
    assert groups[1].students == 0
    assert groups[1].source_shift is None


def test_parse_groups_csv_requires_id_column(tmp_path):
    path = tmp_path / "groups.csv"
    path.write_text("name,students\nx,1\n", encoding="utf-8")
    with pytest.raises(AssemblyValueError):
        parse_groups_csv(path)


def test_load_session_from_yaml(tmp_path):
    path = _write_session(
        tmp_path,
        "settings:\n  max_capacity: 300\n"
        "constraints:\n  1ac: [Quarto turno, second]\n  7Xx: [first]\n",
    )
    session, warnings = load_session(path)
    assert session.name == "test-session"
    assert session.day == "Mercoledì"
    assert session.group_ids() == ["1Ac", "2Bu"]
    assert session.settings.max_capacity == 300
    assert session.constraints.forbidden_for("1Ac") == frozenset({"fourth", "second"})
    assert any("7Xx" in w for w in warnings)
    assert any("9Zz" in w for w in warnings)

    lookup = StaffLookup(session.roster, session.settings.shifts)
    assert lookup.shift_staff("first", "1Ac", session.day).returning == StaffFound(("Rossi",))


def test_load_session_with_custom_shifts(tmp_path):
    path = _write_session(
        tmp_path,
        "shifts:\n"
        "  - {id: early, label: Early, start: '08:00', end: '09:00',"
        " going_period: 1, returning_period: 2}\n"
        "  - {id: late, label: Late, start: '10:00', end: '11:00',"
        " going_period: 3, returning_period: 4, restricted: true}\n",
    )
    session, _ = load_session(path)
    assert session.settings.shifts.ids() == ["early", "late"]


def test_load_session_unknown_shift_in_constraints(tmp_path):
    path = _write_session(tmp_path, "constraints:\n  1Ac: [tenth]\n")
    with pytest.raises(AssemblyValueError, match="tenth"):
        load_session(path)


def test_load_session_missing_file(tmp_path):
    path = _write_session(tmp_path)
    (tmp_path / "roster.csv").unlink()
    with pytest.raises(FileNotFoundError):
        load_session(path)


def test_demo_session_loads():
    session, warnings = load_session(DEMO)
    assert warnings == []
    assert len(session.groups) == 7
    assert session.constraints.forbidden_for("5Bc") == frozenset({"first"})
