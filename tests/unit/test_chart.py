from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from gf_cli.core.chart import build_chart_descriptor, distance_ticks, month_ticks, series_xy
from gf_cli.core.models import CumulativePoint


def _point(seconds: int, miles: float) -> CumulativePoint:
    return CumulativePoint(timestamp=datetime.fromtimestamp(seconds, tz=timezone.utc), cumulative_miles=miles)


def test_distance_ticks_default_range() -> None:
    ticks = distance_ticks()
    assert [t.value for t in ticks] == [float(v) for v in range(0, 1001, 100)]
    assert [t.label for t in ticks] == [str(v) for v in range(0, 1001, 100)]
    assert len(ticks) == 11


def test_distance_ticks_custom_step() -> None:
    assert [t.label for t in distance_ticks(y_max=500, y_step=250)] == ["0", "250", "500"]


def test_distance_ticks_rejects_non_positive_step() -> None:
    with pytest.raises(ValueError):
        distance_ticks(y_step=0)


def test_month_ticks_span_one_year_inclusive() -> None:
    ticks = month_ticks(date(2020, 1, 1))
    assert len(ticks) == 13
    assert ticks[0].label == "2020-01"
    assert ticks[11].label == "2020-12"
    assert ticks[12].label == "2021-01"
    assert ticks[0].value == float(int(datetime(2020, 1, 1).timestamp()))
    assert ticks[6].value == float(int(datetime(2020, 7, 1).timestamp()))
    assert ticks[12].value == float(int(datetime(2021, 1, 1).timestamp()))


def test_month_ticks_are_increasing_from_mid_year_anchor() -> None:
    ticks = month_ticks(date(2021, 7, 1), months=6)
    assert [t.label for t in ticks] == [
        "2021-07",
        "2021-08",
        "2021-09",
        "2021-10",
        "2021-11",
        "2021-12",
        "2022-01",
    ]
    values = [t.value for t in ticks]
    assert values == sorted(values)


def test_series_xy_uses_epoch_seconds() -> None:
    xs, ys = series_xy([_point(100, 0.5), _point(200, 1.5)])
    assert xs == (100.0, 200.0)
    assert ys == (0.5, 1.5)


def test_build_chart_descriptor_assembles_axes_and_series() -> None:
    descriptor = build_chart_descriptor([_point(100, 0.5), _point(200, 1.5)], anchor=date(2020, 1, 1))
    assert descriptor.x_name == "Date"
    assert descriptor.y_name == "Miles"
    assert len(descriptor.x_ticks) == 13
    assert [t.value for t in descriptor.y_ticks] == [float(v) for v in range(0, 1001, 100)]
    assert descriptor.xs == (100.0, 200.0)
    assert descriptor.ys == (0.5, 1.5)


def test_build_chart_descriptor_keeps_out_of_range_points() -> None:
    far_future = int(datetime(2030, 1, 1, tzinfo=timezone.utc).timestamp())
    descriptor = build_chart_descriptor([_point(far_future, 5000.0)], anchor=date(2020, 1, 1))
    assert descriptor.xs == (float(far_future),)
    assert descriptor.ys == (5000.0,)


def test_chart_descriptor_to_dict() -> None:
    payload = build_chart_descriptor([_point(100, 0.5)], anchor=date(2020, 1, 1), months=1).to_dict()
    assert payload["series"] == {"x": [100.0], "y": [0.5]}
    assert [t["label"] for t in payload["x_axis"]["ticks"]] == ["2020-01", "2020-02"]
    assert payload["y_axis"]["name"] == "Miles"
    assert payload["y_axis"]["ticks"][-1] == {"value": 1000.0, "label": "1000"}


def test_month_ticks_snap_mid_month_anchor_to_first() -> None:
    ticks = month_ticks(date(2020, 1, 15), months=2)
    assert [t.label for t in ticks] == ["2020-01", "2020-02", "2020-03"]
    assert ticks[0].value == float(int(datetime(2020, 1, 1).timestamp()))
    assert ticks[2].value == float(int(datetime(2020, 3, 1).timestamp()))
