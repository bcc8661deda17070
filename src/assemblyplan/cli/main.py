from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import click
import pandas as pd
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from assemblyplan.cli._utils import apply_constraint_overrides, parse_constraint_args, parse_seat
from assemblyplan.core.errors import AssemblyValueError
from assemblyplan.evaluation import (
    Severity,
    collect_issues,
    detect_conflicts,
    seniority_distribution,
    shift_statistics,
)
from assemblyplan.optimization.heuristics import auto_assign
from assemblyplan.planning import (
    ShiftPartition,
    export_snapshot,
    format_shift_listing,
    import_snapshot,
)
from assemblyplan.scenario.contract import Session, normalize_day
from assemblyplan.scenario.io import load_session
from assemblyplan.seating import assign_seats
from assemblyplan.staff import StaffLookup
from assemblyplan.telemetry import RunTelemetryLogger

app = typer.Typer(add_completion=False, no_args_is_help=True)
console = Console()
SEVERITY_STYLE = {Severity.ERROR: "red", Severity.WARNING: "yellow"}


def _enable_rich_tracebacks():
    """Enable rich tracebacks with local variables and customized formatting."""
    import rich.traceback as _rt

    _rt.install(show_locals=True, width=140, extra_lines=2)


def _load(
    session_path: Path,
    *,
    day: str | None = None,
    max_capacity: int | None = None,
    forbid: list[str] | None = None,
) -> Session:
    """Load a session, print loader warnings, and apply CLI overrides."""

    try:
        session, warnings = load_session(session_path)
    except (AssemblyValueError, FileNotFoundError) as exc:
        raise typer.BadParameter(str(exc)) from exc
    for msg in warnings:
        console.print(escape(f"[session:{session.name}] {msg}"))

    updates: dict[str, Any] = {}
    if day:
        updates["day"] = normalize_day(day)
    if max_capacity is not None:
        updates["settings"] = session.settings.model_copy(update={"max_capacity": max_capacity})
    overrides = parse_constraint_args(forbid)
    if overrides:
        updates["constraints"] = apply_constraint_overrides(
            session.constraints, overrides, session.groups, session.settings.shifts
        )
    return session.model_copy(update=updates) if updates else session


def _partition(session: Session, snapshot: Path | None) -> tuple[Session, ShiftPartition]:
    """Partition from a snapshot file, or from the shifts declared in the groups table."""

    if snapshot is None:
        return session, ShiftPartition.from_source_declared(session.groups, session.settings.shifts)
    try:
        imported = import_snapshot(snapshot, session.groups, session.settings.shifts)
    except (AssemblyValueError, FileNotFoundError) as exc:
        raise typer.BadParameter(str(exc)) from exc
    for msg in imported.warnings:
        console.print(escape(f"[snapshot:{snapshot.name}] {msg}"))
    if imported.constraints.forbidden:
        merged = session.constraints
        for group_id, shifts in imported.constraints.forbidden.items():
            merged = merged.with_forbidden(group_id, shifts)
        session = session.model_copy(update={"constraints": merged})
    return session, imported.partition


def _shift_table(session: Session, partition: ShiftPartition, lookup: StaffLookup) -> Table:
    frame = shift_statistics(
        partition,
        session.group_map(),
        session.settings,
        lookup=lookup,
        day=session.day,
    )
    table = Table(title=f"Session: {session.name} ({session.day})")
    table.add_column("Shift")
    table.add_column("Groups", justify="right")
    table.add_column("Students", justify="right")
    table.add_column("People", justify="right")
    table.add_column("Occupancy", justify="right")
    table.add_column("Members")
    for row in frame.to_dict("records"):
        members = ", ".join(sorted(partition.groups_in(str(row["shift_id"]))))
        table.add_row(
            str(row["label"]),
            str(row["groups"]),
            str(row["students"]),
            f"{row['people']}/{session.settings.max_capacity}",
            f"{row['people_pct']}%",
            members or "-",
        )
    return table


def _partition_frame(session: Session, partition: ShiftPartition) -> pd.DataFrame:
    groups = session.group_map()
    records: list[dict[str, Any]] = []
    for shift in session.settings.shifts.shifts:
        for group_id in partition.groups_in(shift.id):
            records.append(
                {
                    "shift_id": shift.id,
                    "shift_label": shift.label,
                    "group_id": group_id,
                    "students": groups[group_id].students,
                }
            )
    for group_id in partition.unassigned:
        records.append(
            {
                "shift_id": "",
                "shift_label": "",
                "group_id": group_id,
                "students": groups[group_id].students,
            }
        )
    return pd.DataFrame.from_records(
        records, columns=["shift_id", "shift_label", "group_id", "students"]
    )


@app.command()
def assign(
    session_path: Path = typer.Argument(..., help="Session YAML file."),
    seed: int | None = typer.Option(None, "--seed", help="RNG seed for a reproducible run."),
    day: str | None = typer.Option(None, "--day", help="Override the assembly weekday."),
    max_capacity: int | None = typer.Option(
        None, "--max-capacity", help="Override the per-shift capacity ceiling.", min=1
    ),
    forbid: list[str] | None = typer.Option(
        None,
        "--forbid",
        help="Forbid shifts for a group, e.g. --forbid 1Ac=first,second (repeatable).",
    ),
    out_json: Path | None = typer.Option(
        None, "--out-json", help="Write the resulting session snapshot JSON."
    ),
    out_csv: Path | None = typer.Option(None, "--out-csv", help="Write the partition as CSV."),
    telemetry_log: Path | None = typer.Option(
        None,
        "--telemetry-log",
        help="Append run telemetry to a JSONL file (e.g. telemetry/runs.jsonl).",
        writable=True,
        dir_okay=False,
    ),
    debug: bool = typer.Option(False, "--debug", help="Verbose tracebacks."),
):
    """Distribute every group across the shifts automatically."""
    if debug:
        _enable_rich_tracebacks()

    session = _load(session_path, day=day, max_capacity=max_capacity, forbid=forbid)
    settings = session.settings
    lookup = StaffLookup(session.roster, settings.shifts)

    def run():
        return auto_assign(
            session.groups,
            session.constraints,
            shifts=settings.shifts,
            max_capacity=settings.max_capacity,
            seed=seed,
        )

    if telemetry_log:
        with RunTelemetryLogger(
            log_path=telemetry_log,
            command="assign",
            session=session.name,
            session_path=str(session_path),
            seed=seed,
            config={
                "max_capacity": settings.max_capacity,
                "shifts": settings.shifts.ids(),
                "constrained_groups": len(session.constraints.forbidden),
            },
            context={"source": "cli.assign", "day": session.day},
        ) as run_logger:
            result = run()
            gap = result.validator_gap(lookup, session.group_map(), session.day, settings.max_capacity)
            run_logger.finalize(
                metrics={
                    "groups": len(session.groups),
                    "placed": result.placed_count,
                    "leftover": len(result.leftover),
                    "student_load": result.student_load,
                    "over_capacity_with_staff": gap,
                }
            )
    else:
        result = run()
        gap = result.validator_gap(lookup, session.group_map(), session.day, settings.max_capacity)

    partition = result.partition
    console.print(_shift_table(session, partition, lookup))
    if result.leftover:
        console.print(f"[yellow]Unassigned:[/yellow] {', '.join(result.leftover)}")
    for shift_id, total in gap.items():
        label = settings.shifts.get(shift_id).label
        console.print(
            f"[yellow]{label} exceeds {settings.max_capacity} once staff are counted ({total}).[/]"
        )
    report = detect_conflicts(lookup, session.day, partition.as_mapping())
    if report.by_group:
        console.print(f"[yellow]{len(report.by_group)} group(s) with staff conflicts.[/]")

    if out_json:
        export_snapshot(out_json, partition, day=session.day, constraints=session.constraints)
        console.print(f"Snapshot saved to {out_json}")
    if out_csv:
        out_csv.parent.mkdir(parents=True, exist_ok=True)
        _partition_frame(session, partition).to_csv(str(out_csv), index=False)
        console.print(f"Partition saved to {out_csv}")


@app.command()
def validate(
    session_path: Path = typer.Argument(..., help="Session YAML file."),
    snapshot: Path | None = typer.Option(
        None, "--snapshot", help="Session snapshot JSON to validate instead of the declared shifts."
    ),
    day: str | None = typer.Option(None, "--day", help="Override the assembly weekday."),
    max_capacity: int | None = typer.Option(
        None, "--max-capacity", help="Override the per-shift capacity ceiling.", min=1
    ),
    forbid: list[str] | None = typer.Option(None, "--forbid", help="GROUP=shift[,shift]"),
    strict: bool = typer.Option(False, "--strict", help="Exit with status 1 on any error."),
):
    """Report capacity, eligibility, constraint, conflict, and unassigned issues."""
    session = _load(session_path, day=day, max_capacity=max_capacity, forbid=forbid)
    session, partition = _partition(session, snapshot)
    issues = collect_issues(session, partition)

    if not issues:
        console.print("[green]No issues found.[/green]")
        return
    table = Table(title=f"Issues: {session.name}")
    table.add_column("Severity")
    table.add_column("Kind")
    table.add_column("Message")
    for issue in issues:
        style = SEVERITY_STYLE[issue.severity]
        table.add_row(f"[{style}]{issue.severity.value}[/{style}]", issue.kind.value, escape(issue.message))
    console.print(table)
    errors = sum(1 for issue in issues if issue.severity is Severity.ERROR)
    console.print(f"{errors} error(s), {len(issues) - errors} warning(s)")
    if strict and errors:
        raise typer.Exit(1)


@app.command()
def conflicts(
    session_path: Path = typer.Argument(..., help="Session YAML file."),
    snapshot: Path | None = typer.Option(None, "--snapshot", help="Session snapshot JSON."),
    day: str | None = typer.Option(None, "--day", help="Override the assembly weekday."),
    consecutive_legs: bool = typer.Option(
        False,
        "--consecutive-legs",
        help="Also flag staff accompanying different groups in two consecutive shifts.",
    ),
):
    """List staff handoff conflicts between consecutive shifts."""
    session = _load(session_path, day=day)
    session, partition = _partition(session, snapshot)
    lookup = StaffLookup(session.roster, session.settings.shifts)
    report = detect_conflicts(
        lookup,
        session.day,
        partition.as_mapping(),
        include_consecutive_legs=consecutive_legs,
    )
    if not report.by_group:
        console.print("[green]No staff conflicts.[/green]")
        return
    table = Table(title=f"Staff conflicts ({session.day})")
    table.add_column("Group")
    table.add_column("Shift")
    table.add_column("Conflicts")
    for group_id in sorted(report.by_group):
        shift_id = partition.shift_of(group_id) or ""
        table.add_row(group_id, shift_id, escape("\n".join(report.by_group[group_id])))
    console.print(table)


@app.command()
def seat(
    session_path: Path = typer.Argument(..., help="Session YAML file."),
    shift: str = typer.Argument(..., help="Shift id or label to seat."),
    snapshot: Path | None = typer.Option(None, "--snapshot", help="Session snapshot JSON."),
    move: list[str] | None = typer.Option(
        None, "--move", help="Manual seat override SOURCE=TARGET, e.g. --move B3=C4 (repeatable)."
    ),
    out_csv: Path | None = typer.Option(None, "--out-csv", help="Write the seat map as CSV."),
):
    """Seat the groups of one shift in the venue."""
    session = _load(session_path)
    session, partition = _partition(session, snapshot)
    calendar = session.settings.shifts
    target = calendar.get(shift) if shift in calendar.ids() else calendar.resolve_label(shift)
    if target is None:
        raise typer.BadParameter(f"Unknown shift '{shift}'. Allowed: {', '.join(calendar.ids())}.")

    groups = session.group_map()
    members = [groups[gid] for gid in partition.groups_in(target.id)]
    seat_map = assign_seats(members, session.venue)
    for entry in move or []:
        if "=" not in entry:
            raise typer.BadParameter(f"Seat moves must be SOURCE=TARGET (got '{entry}')")
        raw_source, raw_target = entry.split("=", 1)
        try:
            seat_map = seat_map.move(parse_seat(raw_source), parse_seat(raw_target), session.venue)
        except AssemblyValueError as exc:
            raise typer.BadParameter(str(exc)) from exc

    counts = seat_map.seat_counts()
    table = Table(title=f"Seating: {target.label}")
    table.add_column("Group")
    table.add_column("Seats", justify="right")
    table.add_column("Block")
    table.add_column("From")
    for group_id in seat_map.seated_ids():
        first = next(a for a in seat_map.assignments if a.group_id == group_id)
        table.add_row(
            f"[{seat_map.colors[group_id]}]{group_id}[/]",
            str(counts[group_id]),
            f"{first.block}/{first.side}",
            f"{first.row}{first.seat}",
        )
    console.print(table)
    if seat_map.unseated:
        console.print(f"[red]Unseated:[/red] {', '.join(seat_map.unseated)}")
    if out_csv:
        out_csv.parent.mkdir(parents=True, exist_ok=True)
        seat_map.to_dataframe().to_csv(str(out_csv), index=False)
        console.print(f"Seat map saved to {out_csv}")


@app.command()
def stats(
    session_path: Path = typer.Argument(..., help="Session YAML file."),
    snapshot: Path | None = typer.Option(None, "--snapshot", help="Session snapshot JSON."),
    fmt: str = typer.Option(
        "table",
        "--format",
        help="Output format (table|json).",
        click_type=click.Choice(["table", "json"], case_sensitive=False),
    ),
    out_csv: Path | None = typer.Option(None, "--out-csv", help="Write the statistics as CSV."),
):
    """Per-shift statistics and grade distribution."""
    session = _load(session_path)
    session, partition = _partition(session, snapshot)
    lookup = StaffLookup(session.roster, session.settings.shifts)
    groups = session.group_map()
    frame = shift_statistics(partition, groups, session.settings, lookup=lookup, day=session.day)
    distribution = seniority_distribution(partition, groups)

    if fmt.lower() == "json":
        payload = {"shifts": frame.to_dict("records"), "grades": distribution}
        typer.echo(json.dumps(payload, indent=2, ensure_ascii=False, default=str))
    else:
        table = Table(title=f"Statistics: {session.name}")
        for column in frame.columns:
            table.add_column(str(column))
        for row in frame.itertuples(index=False):
            table.add_row(*[str(value) for value in row])
        console.print(table)
        grades = ", ".join(f"{grade}: {count}" for grade, count in distribution.items())
        console.print(f"Groups per grade: {grades or '-'}")
    if out_csv:
        out_csv.parent.mkdir(parents=True, exist_ok=True)
        frame.to_csv(str(out_csv), index=False)


@app.command()
def shifts(
    session_path: Path = typer.Argument(..., help="Session YAML file."),
    snapshot: Path | None = typer.Option(None, "--snapshot", help="Session snapshot JSON."),
):
    """Print the plain-text shift listing."""
    session = _load(session_path)
    session, partition = _partition(session, snapshot)
    typer.echo(format_shift_listing(partition, session.settings.shifts))


if __name__ == "__main__":
    app()
