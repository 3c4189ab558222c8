"""
Configuration: time-range registry, API endpoints, page sizes.

TIME_RANGES maps each selectable range key to its lookback window,
bucket interval, and label style ("time" or "day").
"""

import os

import pandas as pd

# ---------------------------------------------------------------------------
# Stats Provider: override with environment variables
# ---------------------------------------------------------------------------
API_URL = os.environ.get(
    "HYPERKNOW_API_URL",
    "https://backend-ai-cloud-explains.onrender.com/user_stats",
).rstrip("/")
BASE_URL = os.environ.get("HYPERKNOW_BASE_URL", "http://localhost:8000").rstrip("/")
HTTP_TIMEOUT = float(os.environ.get("HYPERKNOW_HTTP_TIMEOUT", "15"))
DEMO_MODE = os.environ.get("HYPERKNOW_DEMO", "").strip().lower() in {"1", "true", "yes", "on"}

DASHBOARD_STATS_PATH = "/api/v1/dashboard/stats"

# Legacy stats service endpoints (all POST)
ENDPOINTS: dict[str, str] = {
    "total_users": "get_overall_registered_user_count",
    "total_conversations": "get_overall_conversation_count",
    "education_stats": "get_education_stats",
    "conversations": "get_user_conversation_info",
    "notes": "get_user_note_info",
    "daily_users": "get_daily_registered_user_count",
    "daily_conversations": "get_daily_conversation_count",
}

# ---------------------------------------------------------------------------
# Product identity
# ---------------------------------------------------------------------------
PRODUCT_NAME = "Hyperknow"

# ---------------------------------------------------------------------------
# Time-range registry
# ---------------------------------------------------------------------------
# lookback: window subtracted from "now" to get the start instant
# interval: bucket width; buckets are aligned to the Unix epoch
# label: "time" renders HH:MM, "day" renders e.g. "Jan 5"
TIME_RANGES: dict[str, dict] = {
    "12h": {
        "lookback": pd.Timedelta(hours=12),
        "interval": pd.Timedelta(hours=1),
        "label": "time",
        "title": "12 Hours",
    },
    "1d": {
        "lookback": pd.Timedelta(hours=24),
        "interval": pd.Timedelta(hours=2),
        "label": "time",
        "title": "1 Day",
    },
    "7d": {
        "lookback": pd.Timedelta(days=7),
        "interval": pd.Timedelta(days=1),
        "label": "day",
        "title": "7 Days",
    },
    "30d": {
        "lookback": pd.Timedelta(days=30),
        "interval": pd.Timedelta(days=1),
        "label": "day",
        "title": "30 Days",
    },
    # History view ranges: "2d" and "1w" end on today's bucket, so the
    # lookback is one bucket shorter than the name suggests.
    "2d": {
        "lookback": pd.Timedelta(days=1),
        "interval": pd.Timedelta(days=1),
        "label": "day",
        "title": "2 Days",
    },
    "1w": {
        "lookback": pd.Timedelta(days=6),
        "interval": pd.Timedelta(days=1),
        "label": "day",
        "title": "1 Week",
    },
    "1m": {
        "lookback": pd.Timedelta(days=30),
        "interval": pd.Timedelta(days=1),
        "label": "day",
        "title": "1 Month",
    },
    "3m": {
        "lookback": pd.Timedelta(days=90),
        "interval": pd.Timedelta(days=1),
        "label": "day",
        "title": "3 Months",
    },
    "6m": {
        "lookback": pd.Timedelta(days=180),
        "interval": pd.Timedelta(days=1),
        "label": "day",
        "title": "6 Months",
    },
}

DASHBOARD_TIME_RANGES = ["12h", "1d", "7d", "30d"]
HISTORY_TIME_RANGES = ["2d", "1w", "1m", "3m", "6m"]
DEFAULT_TIME_RANGE = "7d"
DEFAULT_HISTORY_RANGE = "1w"

# Server-side date windows for the daily-count endpoints: (days, months)
# subtracted from today.
HISTORY_DATE_OFFSETS: dict[str, dict[str, int]] = {
    "2d": {"days": 1},
    "1w": {"days": 6},
    "1m": {"months": 1},
    "3m": {"months": 3},
    "6m": {"months": 6},
}

# Record fields probed, in order, when no timestamp field is given
TIMESTAMP_FIELDS = ("created_at", "generated_at")

# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------
CONVERSATIONS_PER_PAGE = 50
NOTES_PER_PAGE = 25
BACKGROUND_ITEMS_PER_PAGE = 25
LATEST_USERS_LIMIT = 10

# Education stats categories: key -> (payload field, display title)
BACKGROUND_CATEGORIES: dict[str, tuple[str, str]] = {
    "education": ("education_levels", "Education Levels"),
    "fields": ("study_fields", "Study Fields"),
    "institutions": ("institutions", "Institutions"),
}
