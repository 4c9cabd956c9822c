"""CSV export of normalized activities."""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Dict, Iterable, Optional

from gf_cli.core.models import Activity, CumulativePoint

FIELDS = [
    "timestamp",
    "name",
    "activity_class",
    "duration_minutes",
    "distance_miles",
    "cumulative_miles",
    "description",
]


def write_activities_csv(
    path: Path,
    activities: Iterable[Activity],
    points: Iterable[CumulativePoint] = (),
) -> Path:
    """Write one row per activity; cumulative_miles is blank for zero-distance rows."""
    totals: Dict[object, float] = {point.timestamp: point.cumulative_miles for point in points}
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="") as handle:
        writer = csv.DictWriter(handle, fieldnames=FIELDS)
        writer.writeheader()
        for activity in activities:
            total: Optional[float] = totals.get(activity.timestamp)
            writer.writerow(
                {
                    "timestamp": activity.timestamp.isoformat(),
                    "name": activity.name,
                    "activity_class": activity.activity_class,
                    "duration_minutes": activity.duration_minutes,
                    "distance_miles": f"{activity.distance_miles:.2f}",
                    "cumulative_miles": f"{total:.2f}" if total is not None else "",
                    "description": activity.description,
                }
            )
    return path

