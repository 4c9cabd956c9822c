"""Static constants and mappings for Google Fit CLI."""

from __future__ import annotations

API_BASE = "https://www.googleapis.com/fitness/v1/users/me"
OAUTH_AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
OAUTH_TOKEN_URI = "https://oauth2.googleapis.com/token"
OAUTH_SCOPE = "https://www.googleapis.com/auth/fitness.activity.read"
OOB_REDIRECT_URI = "urn:ietf:wg:oauth:2.0:oob"

ACTIVITY_SEGMENT_TYPE = "com.google.activity.segment"
DISTANCE_DELTA_TYPE = "com.google.distance.delta"
DISTANCE_DELTA_SOURCE_ID = "derived:com.google.distance.delta:com.google.android.gms:aggregated"
MIN_SESSION_BUCKET_MILLIS = 100

METERS_PER_MILE = 1609.344

# https://developers.google.com/fit/rest/v1/reference/activity-types
ACTIVITY_TYPE_NAMES = {
    1: "Biking",
    7: "Walking",
    8: "Running",
    15: "Mountain Biking",
    16: "Road Biking",
    17: "Spinning",
    18: "Stationary Biking",
    19: "Utility Biking",
    35: "Hiking",
    93: "Walking (Fitness)",
}

DEFAULT_ACTIVITY_TYPES = [1, 15, 16, 17, 18, 19, 8, 7, 35, 93]

DEFAULT_START_DATE = "2020-01-01"
DEFAULT_CHART_MONTHS = 12
DEFAULT_Y_MAX = 1000
DEFAULT_Y_STEP = 100
X_AXIS_NAME = "Date"
Y_AXIS_NAME = "Miles"
