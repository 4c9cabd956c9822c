"""Formatting helpers used by exports and console output."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from gf_cli.core.constants import ACTIVITY_TYPE_NAMES


def format_minutes(minutes: Optional[int]) -> str:
    """Format whole minutes as H:MM or M min."""
    if minutes is None:
        return "N/A"
    if minutes < 0:
        return f"{minutes} min"
    h, m = divmod(int(minutes), 60)
    if h:
        return f"{h}:{m:02d}"
    return f"{m} min"


def format_miles(miles: Optional[float]) -> str:
    """Format a mile distance, showing '-' when no distance was recorded."""
    if not miles:
        return "-"
    return f"{float(miles):.2f} mi"


def format_timestamp(moment: datetime) -> str:
    """Render an instant in local time as YYYY-MM-DD HH:MM."""
    return moment.astimezone().strftime("%Y-%m-%d %H:%M")


def activity_type_label(code: int) -> str:
    return ACTIVITY_TYPE_NAMES.get(code, f"Type {code}")
