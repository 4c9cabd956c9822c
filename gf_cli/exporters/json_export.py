"""JSON export helpers."""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Sequence, Tuple


class RecordFileError(RuntimeError):
    """Raised when a saved raw record file cannot be read."""


def write_json(path: Path, payload: Any) -> Path:
    """Write payload as pretty JSON and return path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2) + "\n")
    return path


def records_payload(
    records: Sequence[Tuple[Dict[str, Any], Sequence[Dict[str, Any]]]],
    start: date,
    end: date,
    activity_types: Sequence[int],
) -> Dict[str, Any]:
    """Shape fetched session/bucket pairs for saving to disk."""
    return {
        "range": {"start": start.isoformat(), "end": end.isoformat()},
        "activity_types": list(activity_types),
        "records": [
            {"session": session, "buckets": list(buckets)} for session, buckets in records
        ],
    }


def read_records(path: Path) -> List[Tuple[Dict[str, Any], List[Dict[str, Any]]]]:
    """Load session/bucket pairs previously written by `gf fetch`."""
    try:
        data = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as exc:
        raise RecordFileError(f"Cannot read record file {path}: {exc}") from exc

    rows = data.get("records") if isinstance(data, dict) else None
    if not isinstance(rows, list):
        raise RecordFileError(f"Record file {path} has no 'records' list")

    records: List[Tuple[Dict[str, Any], List[Dict[str, Any]]]] = []
    for index, row in enumerate(rows):
        if not isinstance(row, dict):
            continue
        session = row.get("session") or {}
        buckets = row.get("buckets") or []
        if not isinstance(session, dict):
            raise RecordFileError(f"Record file {path}: records[{index}].session must be an object")
        if not isinstance(buckets, list) or not all(isinstance(bucket, dict) for bucket in buckets):
            raise RecordFileError(f"Record file {path}: records[{index}].buckets must be a list of objects")
        records.append((dict(session), list(buckets)))
    return records
