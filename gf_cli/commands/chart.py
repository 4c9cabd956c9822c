"""Chart command: cumulative distance over time as SVG."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import List, Optional

import typer

from gf_cli.commands.common import (
    diagnostics_console,
    exit_with_error,
    get_state,
    load_or_fetch_records,
    print_json_payload,
    resolve_query_range,
)
from gf_cli.core.api import APIError
from gf_cli.core.auth import AuthError
from gf_cli.core.config import resolve_activity_types
from gf_cli.core.render import RenderError, render_svg
from gf_cli.core.series import run_pipeline
from gf_cli.exporters.json_export import RecordFileError, write_json
from gf_cli.utils.date_ranges import parse_date, validate_date


def chart_command(
    ctx: typer.Context,
    start_date: Optional[str] = typer.Option(None, help="Start date YYYY-MM-DD", callback=validate_date),
    end_date: Optional[str] = typer.Option(None, help="End date YYYY-MM-DD", callback=validate_date),
    last_days: Optional[int] = typer.Option(None, help="Chart last N days"),
    year: Optional[int] = typer.Option(None, help="Chart one calendar year"),
    this_year: bool = typer.Option(False, help="Chart this year"),
    activity_type: Optional[List[int]] = typer.Option(
        None, "--activity-type", help="Google Fit activity type code (repeatable)"
    ),
    input_file: Optional[Path] = typer.Option(None, "--input", help="Use a saved records file"),
    anchor: Optional[str] = typer.Option(
        None, help="First month tick YYYY-MM-DD (default: config, then range start)", callback=validate_date
    ),
    months: Optional[int] = typer.Option(None, help="Months on the date axis (default: 12)"),
    y_max: Optional[int] = typer.Option(None, help="Top of the miles axis (default: 1000)"),
    y_step: Optional[int] = typer.Option(None, help="Miles between ticks (default: 100)"),
    output_file: Optional[Path] = typer.Option(None, "--output", help="Write SVG to file instead of stdout"),
    output_format: str = typer.Option("svg", "--format", help="Output format: svg|json"),
) -> None:
    """Render cumulative distance over time as an SVG line chart."""
    state = get_state(ctx)
    if output_format not in {"svg", "json"}:
        raise typer.BadParameter("--format must be svg or json")

    writes_stdout = output_format == "svg" and output_file is None
    console = diagnostics_console(state) if writes_stdout else state.console

    start, end = resolve_query_range(state, start_date, end_date, last_days, year, this_year)
    codes = resolve_activity_types(state.config, activity_type)

    # Build chart axes: CLI flags > config > defaults
    chart_cfg = state.config.get("chart", {})
    anchor_raw = anchor or chart_cfg.get("anchor_date") or ""
    anchor_day = parse_date(anchor_raw) if anchor_raw else start.replace(day=1)
    month_count = months if months is not None else int(chart_cfg.get("months", 12))
    top = y_max if y_max is not None else int(chart_cfg.get("y_max", 1000))
    step = y_step if y_step is not None else int(chart_cfg.get("y_step", 100))
    if month_count < 1:
        raise typer.BadParameter("--months must be at least 1")
    if step <= 0 or top < 0:
        raise typer.BadParameter("--y-step must be positive and --y-max non-negative")

    try:
        records = load_or_fetch_records(state, input_file, start, end, codes, console=console)
    except (AuthError, APIError, RecordFileError) as exc:
        exit_with_error(state, str(exc), console=console if writes_stdout else None)

    result = run_pipeline(records, anchor=anchor_day, months=month_count, y_max=top, y_step=step)

    if output_format == "json" or state.json_output:
        payload = {
            "chart": result.descriptor.to_dict(),
            "activities": [activity.to_dict() for activity in result.activities],
        }
        if output_file is not None:
            write_json(output_file, payload)
            state.console.print(f"Wrote chart data to: {output_file}")
            return
        print_json_payload(state, payload)
        return

    try:
        svg = render_svg(result.descriptor)
    except RenderError as exc:
        exit_with_error(state, str(exc), console=console if writes_stdout else None)

    if output_file is not None:
        output_file.parent.mkdir(parents=True, exist_ok=True)
        output_file.write_bytes(svg)
    else:
        sys.stdout.buffer.write(svg)
        sys.stdout.buffer.flush()

    total = result.points[-1].cumulative_miles if result.points else 0.0
    console.print(
        f"Charted {len(result.points)} of {len(result.activities)} activities, {total:.2f} mi total"
    )
    if output_file is not None:
        console.print(f"Chart written to: {output_file}")
