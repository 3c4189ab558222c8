"""
Dashboard-ready output functions.

These are the entry points for the Streamlit front end. Each returns
plain dicts, DataFrames or Page objects suitable for rendering cards,
charts and tables.
"""

import logging
from typing import Any

import pandas as pd

from .config import (
    BACKGROUND_CATEGORIES,
    BACKGROUND_ITEMS_PER_PAGE,
    CONVERSATIONS_PER_PAGE,
    DASHBOARD_TIME_RANGES,
    HISTORY_TIME_RANGES,
    LATEST_USERS_LIMIT,
    NOTES_PER_PAGE,
    TIME_RANGES,
)
from .pagination import Page, paginate
from .timeseries import resolve_now, bucketize, to_chart_data
from .transforms import build_category_frame, build_daily_counts_frame, build_users_frame

logger = logging.getLogger(__name__)


def get_growth_charts(
    stats: dict,
    time_range: str,
    now: Any = None,
    display_tz: str | None = None,
) -> dict:
    """User-growth and conversation-activity series for one time range.

    Both series share a single "now" so their x-axes line up.

    Parameters
    ----------
    stats : v1 stats payload (all_users_timeline, conversation_history).
    time_range : Key into config.TIME_RANGES.

    Returns
    -------
    {
        "time_range": "7d",
        "users": DataFrame(bucket_start, label, count),
        "conversations": DataFrame(bucket_start, label, count),
        "users_chart": [{"label": "Jan 5", "users": 3}, ...],
        "conversations_chart": [{"label": "Jan 5", "conversations": 1}, ...],
    }
    """
    now = resolve_now(now)
    users = bucketize(
        stats.get("all_users_timeline") or [],
        time_range,
        now=now,
        timestamp_field="created_at",
        display_tz=display_tz,
    )
    conversations = bucketize(
        stats.get("conversation_history") or [],
        time_range,
        now=now,
        display_tz=display_tz,
    )
    return {
        "time_range": time_range,
        "users": users,
        "conversations": conversations,
        "users_chart": to_chart_data(users, "users"),
        "conversations_chart": to_chart_data(conversations, "conversations"),
    }


def get_recent_conversations_page(conversations: pd.DataFrame, page: int = 1) -> Page:
    """One page of the newest-first conversation table."""
    return paginate(conversations, page, CONVERSATIONS_PER_PAGE)


def get_conversation_title(conversation) -> str:
    topic = conversation.get("topic")
    if pd.isna(topic) or not str(topic).strip():
        return "(untitled)"
    return str(topic)


def get_notes_page(notes: pd.DataFrame, page: int = 1) -> Page:
    """One page of the newest-first notes table."""
    return paginate(notes, page, NOTES_PER_PAGE)


def get_background_page(
    education_stats: dict | None,
    category: str = "education",
    page: int = 1,
) -> dict:
    """Title and one page of an education-stats category.

    Returns
    -------
    {"category": ..., "title": "Education Levels", "total_users": int,
     "page": Page}
    """
    frame = build_category_frame(education_stats, category)
    _, title = BACKGROUND_CATEGORIES[category]
    return {
        "category": category,
        "title": title,
        "total_users": int((education_stats or {}).get("total_users") or 0),
        "page": paginate(frame, page, BACKGROUND_ITEMS_PER_PAGE),
    }


def get_latest_users(stats: dict, limit: int = LATEST_USERS_LIMIT) -> pd.DataFrame:
    """Newest registered users from the v1 stats payload."""
    users = build_users_frame(stats.get("latest_users"))
    return users.head(limit).reset_index(drop=True)


def get_paid_subscription_users(stats: dict) -> pd.DataFrame:
    return build_users_frame(stats.get("paid_subscription_users"))


def get_available_time_ranges(view: str = "dashboard") -> list[tuple[str, str]]:
    """(key, title) pairs for a range selector.

    view='dashboard' gives 12h/1d/7d/30d; view='history' gives 2d/1w/1m/3m/6m.
    """
    if view == "dashboard":
        keys = DASHBOARD_TIME_RANGES
    elif view == "history":
        keys = HISTORY_TIME_RANGES
    else:
        raise ValueError(f"Unknown view: {view!r}")
    return [(key, TIME_RANGES[key]["title"]) for key in keys]


def get_daily_history_chart(rows: list[dict] | None, value_name: str = "count") -> list[dict]:
    """Server-side daily counts as chart points labelled YYYY-MM-DD."""
    frame = build_daily_counts_frame(rows)
    return [
        {"label": date.strftime("%Y-%m-%d"), value_name: int(count)}
        for date, count in zip(frame["date"], frame["count"])
        if pd.notna(date)
    ]
