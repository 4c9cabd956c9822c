"""Normalization and cumulative-distance series building."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, timezone
from functools import reduce
from itertools import accumulate
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from gf_cli.core.chart import build_chart_descriptor
from gf_cli.core.constants import (
    DEFAULT_CHART_MONTHS,
    DEFAULT_Y_MAX,
    DEFAULT_Y_STEP,
    DISTANCE_DELTA_SOURCE_ID,
    METERS_PER_MILE,
)
from gf_cli.core.models import Activity, ChartDescriptor, CumulativePoint

SessionRecord = Dict[str, Any]
BucketRecord = Dict[str, Any]
SessionBuckets = Tuple[SessionRecord, Sequence[BucketRecord]]


def round_miles(meters: float) -> float:
    """Convert meters to miles, rounding half up at the second decimal."""
    scaled = 100 * (meters / METERS_PER_MILE)
    fraction, _ = math.modf(scaled)
    if fraction >= 0.5:
        return math.ceil(scaled) / 100
    return math.floor(scaled) / 100


def _millis(value: Any) -> int:
    # int64 fields arrive as JSON strings.
    return int(value or 0)


def _distance_values(bucket: BucketRecord) -> Iterable[float]:
    for dataset in bucket.get("dataset") or []:
        if dataset.get("dataSourceId") != DISTANCE_DELTA_SOURCE_ID:
            continue
        for point in dataset.get("point") or []:
            for value in point.get("value") or []:
                if "fpVal" in value:
                    yield float(value["fpVal"])


def last_distance_meters(bucket: BucketRecord) -> Optional[float]:
    """Return the last aggregated distance-delta value in a bucket.

    Only one value per bucket is expected; when several are present the last
    one in scan order wins.
    """
    return reduce(lambda _, value: value, _distance_values(bucket), None)


def _description(bucket: BucketRecord) -> str:
    wrapper = bucket.get("session") or {}
    return str(wrapper.get("description") or bucket.get("description") or "")


def normalize_activity(session: SessionRecord, bucket: BucketRecord) -> Activity:
    """Map one session and one of its aggregate buckets to an Activity."""
    start_ms = _millis(bucket.get("startTimeMillis"))
    end_ms = _millis(bucket.get("endTimeMillis"))

    meters = last_distance_meters(bucket)
    distance = round_miles(meters) if meters is not None else 0.0

    return Activity(
        name=str(session.get("name") or ""),
        duration_minutes=(end_ms - start_ms) // 1000 // 60,
        distance_miles=distance,
        description=_description(bucket),
        timestamp=datetime.fromtimestamp(start_ms // 1000, tz=timezone.utc),
        activity_class=int(session.get("activityType") or 0),
    )


def normalize_records(records: Iterable[SessionBuckets]) -> List[Activity]:
    """Normalize every bucket of every session, preserving input order."""
    return [
        normalize_activity(session, bucket)
        for session, buckets in records
        for bucket in buckets
    ]


def dedupe_activities(activities: Iterable[Activity]) -> List[Activity]:
    """Keep only the first activity seen for each timestamp."""
    seen: Set[datetime] = set()
    unique: List[Activity] = []
    for activity in activities:
        if activity.timestamp in seen:
            continue
        seen.add(activity.timestamp)
        unique.append(activity)
    return unique


def sort_activities(activities: Iterable[Activity]) -> List[Activity]:
    return sorted(activities, key=lambda item: item.timestamp)


def build_cumulative_series(activities: Iterable[Activity]) -> List[CumulativePoint]:
    """Fold distance-bearing activities into a running total.

    Zero-distance activities (no distance sample) are skipped and do not
    advance the total.
    """
    bearing = [activity for activity in activities if activity.distance_miles != 0.0]
    totals = accumulate(activity.distance_miles for activity in bearing)
    return [
        CumulativePoint(timestamp=activity.timestamp, cumulative_miles=total)
        for activity, total in zip(bearing, totals)
    ]


@dataclass(frozen=True)
class PipelineResult:
    activities: List[Activity]
    points: List[CumulativePoint]
    descriptor: ChartDescriptor


def run_pipeline(
    records: Iterable[SessionBuckets],
    anchor: date,
    months: int = DEFAULT_CHART_MONTHS,
    y_max: int = DEFAULT_Y_MAX,
    y_step: int = DEFAULT_Y_STEP,
) -> PipelineResult:
    """Normalize, dedupe, sort and accumulate records into a chart descriptor."""
    activities = sort_activities(dedupe_activities(normalize_records(records)))
    points = build_cumulative_series(activities)
    descriptor = build_chart_descriptor(
        points,
        anchor=anchor,
        months=months,
        y_max=y_max,
        y_step=y_step,
    )
    return PipelineResult(activities=activities, points=points, descriptor=descriptor)
