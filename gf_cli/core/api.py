"""Google Fit REST client with retry and rate limiting."""

from __future__ import annotations

import time
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

import requests

from gf_cli.core.constants import (
    ACTIVITY_SEGMENT_TYPE,
    API_BASE,
    DISTANCE_DELTA_TYPE,
    MIN_SESSION_BUCKET_MILLIS,
)
from gf_cli.utils.date_ranges import to_rfc3339

# Upper bound on session pages fetched per run.
MAX_SESSION_PAGES = 100


class APIError(RuntimeError):
    """Raised for API failures after retries."""


class GoogleFitAPI:
    """Thin wrapper around the Google Fit REST API."""

    def __init__(
        self,
        token: str,
        base_url: str = API_BASE,
        rate_limit_delay: float = 0.2,
        max_retries: int = 3,
        timeout_seconds: int = 30,
    ) -> None:
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.rate_limit_delay = rate_limit_delay
        self.max_retries = max_retries
        self.timeout_seconds = timeout_seconds
        self._has_sent_request = False

    @property
    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
        }

    def _request(
        self,
        method: str,
        path: str,
        params: Optional[Any] = None,
        json_data: Optional[Dict[str, Any]] = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        last_error: Optional[Exception] = None

        for attempt in range(1, self.max_retries + 1):
            try:
                if self.rate_limit_delay > 0 and self._has_sent_request:
                    time.sleep(self.rate_limit_delay)

                self._has_sent_request = True
                response = requests.request(
                    method=method,
                    url=url,
                    headers=self._headers,
                    params=params,
                    json=json_data,
                    timeout=self.timeout_seconds,
                )
                if response.status_code in (429, 500, 502, 503, 504):
                    raise requests.HTTPError(response.text, response=response)
                if 400 <= response.status_code < 500:
                    raise APIError(
                        f"API request failed for {method} {path}: "
                        f"{response.status_code} {response.text.strip()}"
                    )
                response.raise_for_status()

                if not response.text:
                    return {}
                return response.json()
            except (requests.RequestException, ValueError) as exc:
                last_error = exc
                if attempt >= self.max_retries:
                    break
                time.sleep(min(2**attempt, 8))

        raise APIError(f"API request failed for {method} {path}: {last_error}")

    def get(self, path: str, params: Optional[Any] = None) -> Any:
        return self._request("GET", path, params=params)

    def post(self, path: str, payload: Dict[str, Any]) -> Any:
        return self._request("POST", path, json_data=payload)

    def list_sessions_page(
        self,
        start: datetime,
        end: datetime,
        activity_types: Iterable[int],
        page_token: Optional[str] = None,
    ) -> Dict[str, Any]:
        params: List[tuple] = [("startTime", to_rfc3339(start)), ("endTime", to_rfc3339(end))]
        params.extend(("activityType", int(code)) for code in activity_types)
        if page_token:
            params.append(("pageToken", page_token))
        return self.get("/sessions", params=params)

    def list_sessions(
        self,
        start: datetime,
        end: datetime,
        activity_types: Iterable[int],
    ) -> List[Dict[str, Any]]:
        """Fetch every session in [start, end], following page tokens."""
        codes = list(activity_types)
        sessions: List[Dict[str, Any]] = []
        page_token: Optional[str] = None

        for _ in range(MAX_SESSION_PAGES):
            payload = self.list_sessions_page(start, end, codes, page_token=page_token)
            page = payload.get("session") or []
            sessions.extend(page)

            page_token = payload.get("nextPageToken")
            if not page or not page_token or payload.get("hasMoreData") is False:
                break

        return sessions

    def aggregate_session(self, session: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Aggregate activity segments and distance deltas bucketed by session."""
        payload = {
            "aggregateBy": [
                {"dataTypeName": ACTIVITY_SEGMENT_TYPE},
                {"dataTypeName": DISTANCE_DELTA_TYPE},
            ],
            "bucketBySession": {"minDurationMillis": MIN_SESSION_BUCKET_MILLIS},
            "startTimeMillis": int(session.get("startTimeMillis") or 0),
            "endTimeMillis": int(session.get("endTimeMillis") or 0),
        }
        response = self.post("/dataset:aggregate", payload)
        return list(response.get("bucket") or [])
