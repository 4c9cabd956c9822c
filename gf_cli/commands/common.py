"""Shared command helpers."""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, NoReturn, Optional, Sequence, Tuple

import typer
from rich.console import Console

from gf_cli.core.api import GoogleFitAPI
from gf_cli.core.auth import GoogleFitAuth
from gf_cli.core.state import CLIState
from gf_cli.exporters.json_export import read_records
from gf_cli.utils.date_ranges import range_bounds_utc, resolve_date_range

Record = Tuple[Dict[str, Any], List[Dict[str, Any]]]


def get_state(ctx: typer.Context) -> CLIState:
    """Extract validated CLI state from Typer context."""
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=2)
    return state


def authenticate(state: CLIState) -> GoogleFitAPI:
    """Load a cached token and return a configured API client."""
    auth = GoogleFitAuth(config=state.config)
    token = auth.access_token()

    api_cfg = state.config.get("api", {})
    return GoogleFitAPI(
        token=token,
        rate_limit_delay=float(api_cfg.get("rate_limit_delay", 0.2)),
        max_retries=int(api_cfg.get("max_retries", 3)),
        timeout_seconds=int(api_cfg.get("timeout_seconds", 30)),
    )


def print_json_payload(state: CLIState, payload: Any) -> None:
    """Print JSON payload with plain-mode fallback for piping."""
    if state.plain_output:
        typer.echo(json.dumps(payload, separators=(",", ":")))
        return
    state.console.print_json(data=payload)


def diagnostics_console(state: CLIState) -> Console:
    """Console for progress messages when stdout carries command output."""
    return Console(stderr=True, quiet=state.quiet, no_color=state.plain_output)


def resolve_query_range(
    state: CLIState,
    start_date: Optional[str],
    end_date: Optional[str],
    last_days: Optional[int],
    year: Optional[int],
    this_year: bool,
) -> Tuple[date, date]:
    default_start = str(state.config.get("query", {}).get("start_date") or "2020-01-01")
    return resolve_date_range(
        start_date=start_date,
        end_date=end_date,
        last_days=last_days,
        year=year,
        this_year=this_year,
        default_start=default_start,
    )


def fetch_session_records(
    api: GoogleFitAPI,
    start: date,
    end: date,
    activity_types: Sequence[int],
    console: Optional[Console] = None,
    verbose: bool = False,
) -> List[Record]:
    """Fetch sessions in the range and the aggregate buckets of each one.

    Any API failure propagates; partial results are never returned.
    """
    start_at, end_at = range_bounds_utc(start, end)
    sessions = api.list_sessions(start_at, end_at, activity_types)
    if console is not None and verbose:
        console.print(f"Found {len(sessions)} sessions from {start.isoformat()} to {end.isoformat()}")

    records: List[Record] = []
    for index, session in enumerate(sessions, 1):
        buckets = api.aggregate_session(session)
        if console is not None and verbose:
            console.print(
                f"[{index}/{len(sessions)}] {session.get('name') or 'Untitled'}: {len(buckets)} buckets"
            )
        records.append((session, buckets))
    return records


def load_or_fetch_records(
    state: CLIState,
    input_file: Optional[Path],
    start: date,
    end: date,
    activity_types: Sequence[int],
    console: Optional[Console] = None,
) -> List[Record]:
    """Read records from a saved file when given, else query the provider."""
    if input_file is not None:
        return read_records(input_file)
    api = authenticate(state)
    return fetch_session_records(
        api=api,
        start=start,
        end=end,
        activity_types=activity_types,
        console=console or state.console,
        verbose=state.verbose,
    )


def exit_with_error(state: CLIState, message: str, console: Optional[Console] = None) -> NoReturn:
    """Report a fatal error in the active output mode and exit 1."""
    if state.json_output:
        print_json_payload(state, {"status": "error", "message": message})
    elif state.plain_output:
        typer.echo("status\terror", err=console is not None)
        typer.echo(f"message\t{message}", err=console is not None)
    else:
        (console or state.console).print(f"Error: {message}")
    raise typer.Exit(code=1)
