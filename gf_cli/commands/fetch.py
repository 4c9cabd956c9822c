"""Fetch commands: raw session records and normalized activities."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer
from rich.table import Table

from gf_cli.commands.common import (
    authenticate,
    exit_with_error,
    fetch_session_records,
    get_state,
    load_or_fetch_records,
    print_json_payload,
    resolve_query_range,
)
from gf_cli.core.api import APIError
from gf_cli.core.auth import AuthError
from gf_cli.core.config import resolve_activity_types, resolve_output_dir
from gf_cli.core.series import (
    build_cumulative_series,
    dedupe_activities,
    normalize_records,
    sort_activities,
)
from gf_cli.exporters.csv_export import write_activities_csv
from gf_cli.exporters.json_export import RecordFileError, records_payload, write_json
from gf_cli.utils.date_ranges import validate_date
from gf_cli.utils.formatting import (
    activity_type_label,
    format_miles,
    format_minutes,
    format_timestamp,
)


def fetch_command(
    ctx: typer.Context,
    start_date: Optional[str] = typer.Option(None, help="Start date YYYY-MM-DD", callback=validate_date),
    end_date: Optional[str] = typer.Option(None, help="End date YYYY-MM-DD", callback=validate_date),
    last_days: Optional[int] = typer.Option(None, help="Fetch last N days"),
    year: Optional[int] = typer.Option(None, help="Fetch one calendar year"),
    this_year: bool = typer.Option(False, help="Fetch this year"),
    activity_type: Optional[List[int]] = typer.Option(
        None, "--activity-type", help="Google Fit activity type code (repeatable)"
    ),
    output_file: Optional[Path] = typer.Option(None, "--output", help="Raw records JSON file"),
    csv_file: Optional[Path] = typer.Option(None, "--csv", help="Also write activities as CSV"),
) -> None:
    """Fetch sessions with their aggregate buckets and save the raw records."""
    state = get_state(ctx)
    start, end = resolve_query_range(state, start_date, end_date, last_days, year, this_year)
    codes = resolve_activity_types(state.config, activity_type)

    try:
        api = authenticate(state)
        records = fetch_session_records(
            api=api,
            start=start,
            end=end,
            activity_types=codes,
            console=state.console,
            verbose=state.verbose,
        )
    except (AuthError, APIError) as exc:
        exit_with_error(state, str(exc))

    out_path = output_file or (resolve_output_dir(state.config) / "gf-records.json")
    write_json(out_path, records_payload(records, start, end, codes))

    activities = sort_activities(dedupe_activities(normalize_records(records)))
    points = build_cumulative_series(activities)
    if csv_file is not None:
        write_activities_csv(csv_file, activities, points)

    bucket_count = sum(len(buckets) for _, buckets in records)
    summary = {
        "range": {"start": start.isoformat(), "end": end.isoformat()},
        "sessions": len(records),
        "buckets": bucket_count,
        "activities": len(activities),
        "total_miles": points[-1].cumulative_miles if points else 0.0,
        "records_file": str(out_path),
        "csv_file": str(csv_file) if csv_file else None,
    }

    if state.json_output:
        print_json_payload(state, summary)
        return

    if state.plain_output:
        for key in ("sessions", "buckets", "activities", "total_miles", "records_file", "csv_file"):
            if summary[key] is not None:
                typer.echo(f"{key}\t{summary[key]}")
        return

    state.console.print(
        f"Fetched {len(records)} sessions ({bucket_count} buckets) "
        f"from {start.isoformat()} to {end.isoformat()}"
    )
    state.console.print(f"{len(activities)} activities, {summary['total_miles']:.2f} mi total")
    state.console.print(f"Saved records to: {out_path}")
    if csv_file is not None:
        state.console.print(f"Saved CSV to: {csv_file}")


def activities_command(
    ctx: typer.Context,
    start_date: Optional[str] = typer.Option(None, help="Start date YYYY-MM-DD", callback=validate_date),
    end_date: Optional[str] = typer.Option(None, help="End date YYYY-MM-DD", callback=validate_date),
    last_days: Optional[int] = typer.Option(None, help="List last N days"),
    year: Optional[int] = typer.Option(None, help="List one calendar year"),
    this_year: bool = typer.Option(False, help="List this year"),
    activity_type: Optional[List[int]] = typer.Option(
        None, "--activity-type", help="Google Fit activity type code (repeatable)"
    ),
    input_file: Optional[Path] = typer.Option(None, "--input", help="Use a saved records file"),
    limit: int = typer.Option(50, help="Rows to show in the table (most recent N)"),
) -> None:
    """List deduplicated activities in chronological order with running totals."""
    state = get_state(ctx)
    start, end = resolve_query_range(state, start_date, end_date, last_days, year, this_year)
    codes = resolve_activity_types(state.config, activity_type)

    try:
        records = load_or_fetch_records(state, input_file, start, end, codes)
    except (AuthError, APIError, RecordFileError) as exc:
        exit_with_error(state, str(exc))

    activities = sort_activities(dedupe_activities(normalize_records(records)))
    points = build_cumulative_series(activities)
    totals = {point.timestamp: point.cumulative_miles for point in points}

    if state.json_output:
        print_json_payload(
            state,
            {
                "activities": [
                    {**activity.to_dict(), "cumulative_miles": totals.get(activity.timestamp)}
                    for activity in activities
                ],
                "total_miles": points[-1].cumulative_miles if points else 0.0,
            },
        )
        return

    if state.plain_output:
        typer.echo("timestamp\ttype\tname\tduration_min\tmiles\tcumulative")
        for activity in activities:
            total = totals.get(activity.timestamp)
            typer.echo(
                "\t".join(
                    [
                        activity.timestamp.isoformat(),
                        str(activity.activity_class),
                        activity.name,
                        str(activity.duration_minutes),
                        f"{activity.distance_miles:.2f}",
                        f"{total:.2f}" if total is not None else "-",
                    ]
                )
            )
        typer.echo(f"total\t{len(activities)}")
        return

    table = Table(title=f"Activities ({len(activities)} total)")
    table.add_column("Date")
    table.add_column("Type")
    table.add_column("Name")
    table.add_column("Duration")
    table.add_column("Distance")
    table.add_column("Cumulative")

    for activity in activities[-limit:] if limit > 0 else activities:
        total = totals.get(activity.timestamp)
        table.add_row(
            format_timestamp(activity.timestamp),
            activity_type_label(activity.activity_class),
            activity.name or "Untitled",
            format_minutes(activity.duration_minutes),
            format_miles(activity.distance_miles),
            f"{total:.2f} mi" if total is not None else "-",
        )

    state.console.print(table)
    total_miles = points[-1].cumulative_miles if points else 0.0
    state.console.print(f"Total distance: {total_miles:.2f} mi over {len(points)} activities")
