"""Chart descriptor assembly for the cumulative distance series."""

from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, List, Tuple

from gf_cli.core.constants import (
    DEFAULT_CHART_MONTHS,
    DEFAULT_Y_MAX,
    DEFAULT_Y_STEP,
    X_AXIS_NAME,
    Y_AXIS_NAME,
)
from gf_cli.core.models import ChartDescriptor, CumulativePoint, Tick
from gf_cli.utils.date_ranges import add_months


def distance_ticks(y_max: int = DEFAULT_Y_MAX, y_step: int = DEFAULT_Y_STEP) -> List[Tick]:
    """Evenly spaced distance ticks from 0 through y_max inclusive."""
    if y_step <= 0:
        raise ValueError("y_step must be positive")
    return [Tick(value=float(value), label=str(value)) for value in range(0, y_max + 1, y_step)]


def month_ticks(anchor: date, months: int = DEFAULT_CHART_MONTHS) -> List[Tick]:
    """One tick per month boundary from the anchor's month through months later, local time."""
    first = anchor.replace(day=1)
    ticks: List[Tick] = []
    for offset in range(months + 1):
        day = add_months(first, offset)
        moment = datetime(day.year, day.month, day.day)
        ticks.append(Tick(value=float(int(moment.timestamp())), label=day.strftime("%Y-%m")))
    return ticks


def series_xy(points: Iterable[CumulativePoint]) -> Tuple[Tuple[float, ...], Tuple[float, ...]]:
    xs: List[float] = []
    ys: List[float] = []
    for point in points:
        xs.append(float(int(point.timestamp.timestamp())))
        ys.append(point.cumulative_miles)
    return tuple(xs), tuple(ys)


def build_chart_descriptor(
    points: Iterable[CumulativePoint],
    anchor: date,
    months: int = DEFAULT_CHART_MONTHS,
    y_max: int = DEFAULT_Y_MAX,
    y_step: int = DEFAULT_Y_STEP,
) -> ChartDescriptor:
    """Wrap the cumulative series in fixed date and distance axes.

    Points outside the axis range are passed through untouched.
    """
    xs, ys = series_xy(points)
    return ChartDescriptor(
        x_name=X_AXIS_NAME,
        y_name=Y_AXIS_NAME,
        x_ticks=tuple(month_ticks(anchor, months)),
        y_ticks=tuple(distance_ticks(y_max, y_step)),
        xs=xs,
        ys=ys,
    )
