"""Lightweight data models used across the pipeline and commands."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Tuple


@dataclass(frozen=True)
class Activity:
    """One normalized exercise record."""

    name: str
    duration_minutes: int
    distance_miles: float
    description: str
    timestamp: datetime
    activity_class: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "duration_minutes": self.duration_minutes,
            "distance_miles": self.distance_miles,
            "description": self.description,
            "timestamp": self.timestamp.isoformat(),
            "activity_class": self.activity_class,
        }


@dataclass(frozen=True)
class CumulativePoint:
    """Running distance total at the time of one distance-bearing activity."""

    timestamp: datetime
    cumulative_miles: float


@dataclass(frozen=True)
class Tick:
    value: float
    label: str


@dataclass(frozen=True)
class ChartDescriptor:
    """Axis ticks plus the cumulative series, ready for a renderer."""

    x_name: str
    y_name: str
    x_ticks: Tuple[Tick, ...]
    y_ticks: Tuple[Tick, ...]
    xs: Tuple[float, ...]
    ys: Tuple[float, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "x_axis": {
                "name": self.x_name,
                "ticks": [{"value": t.value, "label": t.label} for t in self.x_ticks],
            },
            "y_axis": {
                "name": self.y_name,
                "ticks": [{"value": t.value, "label": t.label} for t in self.y_ticks],
            },
            "series": {"x": list(self.xs), "y": list(self.ys)},
        }
