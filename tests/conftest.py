from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Dict, List

import pytest
from typer.testing import CliRunner

from gf_cli.core.constants import DISTANCE_DELTA_SOURCE_ID


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


def make_bucket(
    start_ms: int,
    end_ms: int,
    meters: List[float] | None = None,
    description: str = "",
    source_id: str = DISTANCE_DELTA_SOURCE_ID,
) -> Dict[str, Any]:
    points = [{"value": [{"fpVal": value}]} for value in (meters or [])]
    return {
        "startTimeMillis": str(start_ms),
        "endTimeMillis": str(end_ms),
        "session": {"description": description},
        "dataset": [
            {
                "dataSourceId": "derived:com.google.activity.summary:com.google.android.gms:aggregated",
                "point": [{"value": [{"intVal": 1}, {"intVal": 3600000}]}],
            },
            {"dataSourceId": source_id, "point": points},
        ],
    }


@pytest.fixture()
def bucket_factory() -> Callable[..., Dict[str, Any]]:
    return make_bucket


@pytest.fixture()
def sample_session_ride() -> Dict[str, Any]:
    return {
        "id": "ride-1",
        "name": "Morning Ride",
        "activityType": 1,
        "startTimeMillis": "1577880000000",
        "endTimeMillis": "1577883600000",
    }


@pytest.fixture()
def sample_session_spin() -> Dict[str, Any]:
    return {
        "id": "spin-1",
        "name": "Spin Class",
        "activityType": 17,
        "startTimeMillis": "1577966400000",
        "endTimeMillis": "1577970000000",
    }


@pytest.fixture()
def sample_records(
    sample_session_ride: Dict[str, Any],
    sample_session_spin: Dict[str, Any],
) -> List[Any]:
    return [
        (
            sample_session_ride,
            [make_bucket(1577880000000, 1577883600000, [16093.44], "Lakeshore loop")],
        ),
        (
            sample_session_spin,
            [make_bucket(1577966400000, 1577970000000, [], "Indoor")],
        ),
        (
            {**sample_session_ride, "id": "ride-1-dup", "name": "Morning Ride (copy)"},
            [make_bucket(1577880000000, 1577883600000, [16093.44])],
        ),
    ]


@pytest.fixture()
def records_file(tmp_path: Path, sample_records: List[Any]) -> Path:
    path = tmp_path / "records.json"
    payload = {
        "range": {"start": "2020-01-01", "end": "2020-12-31"},
        "activity_types": [1, 17],
        "records": [{"session": session, "buckets": buckets} for session, buckets in sample_records],
    }
    path.write_text(json.dumps(payload, indent=2) + "\n")
    return path


@pytest.fixture()
def client_secret_file(tmp_path: Path) -> Path:
    path = tmp_path / "client_secret.json"
    path.write_text(
        json.dumps(
            {
                "installed": {
                    "client_id": "client-123.apps.googleusercontent.com",
                    "client_secret": "shh",
                    "redirect_uris": ["urn:ietf:wg:oauth:2.0:oob", "http://localhost"],
                }
            }
        )
    )
    return path


@pytest.fixture()
def write_temp_json(tmp_path: Path):
    def _write(name: str, payload: Any) -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(payload, indent=2) + "\n")
        return path

    return _write


@pytest.fixture()
def write_temp_toml(tmp_path: Path):
    def _write(name: str, content: str) -> Path:
        path = tmp_path / name
        path.write_text(content.strip() + "\n")
        return path

    return _write
