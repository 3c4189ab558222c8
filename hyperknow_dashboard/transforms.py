"""
Data transforms: reshape raw JSON payloads from the stats service into
tidy DataFrames for tables and cards.
"""

import logging

import pandas as pd

from .config import BACKGROUND_CATEGORIES

logger = logging.getLogger(__name__)


CONVERSATION_COLUMNS = [
    "conversation_id",
    "user_id",
    "topic",
    "generated_at",
    "word_count",
    "character_count",
    "estimated_reading_time",
    "article_path",
    "quality_rating",
    "understandability",
    "further_comments",
]
NOTE_COLUMNS = ["user_id", "file_name", "created_at", "last_modified"]
USER_COLUMNS = ["user_id", "email", "username", "created_at"]
SUBSCRIPTION_COLUMNS = ["tier", "status"]
CATEGORY_COLUMNS = ["name", "count", "percentage"]
DAILY_COLUMNS = ["date", "count"]


def _records_frame(records: list[dict] | None, columns: list[str]) -> pd.DataFrame:
    """Build a DataFrame with the given columns; optional fields become NA."""
    df = pd.DataFrame(records or [])
    for col in columns:
        if col not in df.columns:
            df[col] = None
    return df


def _parse_utc(series: pd.Series) -> pd.Series:
    return pd.to_datetime(series, utc=True, errors="coerce", format="ISO8601")


def build_conversations_frame(conversations: list[dict] | None) -> pd.DataFrame:
    """Conversation table, newest first.

    Returns
    -------
    DataFrame with columns:
        conversation_id, user_id, topic, generated_at, word_count,
        character_count, estimated_reading_time, article_path,
        quality_rating, understandability, further_comments
    """
    df = _records_frame(conversations, CONVERSATION_COLUMNS)[CONVERSATION_COLUMNS].copy()
    if df.empty:
        logger.warning("No conversations returned, empty conversation table")
        return df

    df["generated_at"] = _parse_utc(df["generated_at"])
    for col in ("quality_rating", "understandability"):
        df[col] = pd.to_numeric(df[col], errors="coerce")

    df = df.sort_values("generated_at", ascending=False, na_position="last").reset_index(drop=True)
    logger.info("Built conversations frame with %d rows", len(df))
    return df


def build_notes_frame(notes: list[dict] | None) -> pd.DataFrame:
    """Notes table, newest first. last_modified is optional."""
    df = _records_frame(notes, NOTE_COLUMNS)[NOTE_COLUMNS].copy()
    if df.empty:
        logger.warning("No notes returned, empty notes table")
        return df

    df["created_at"] = _parse_utc(df["created_at"])
    df["last_modified"] = _parse_utc(df["last_modified"])

    df = df.sort_values("created_at", ascending=False, na_position="last").reset_index(drop=True)
    logger.info("Built notes frame with %d rows", len(df))
    return df


def build_users_frame(users: list[dict] | None) -> pd.DataFrame:
    """User table, newest first.

    Subscription columns (tier, status) are kept when any record carries
    them, as in the paid_subscription_users payload.
    """
    records = users or []
    columns = list(USER_COLUMNS)
    if any(col in record for record in records for col in SUBSCRIPTION_COLUMNS):
        columns += SUBSCRIPTION_COLUMNS

    df = _records_frame(records, columns)[columns].copy()
    if df.empty:
        return df

    df["created_at"] = _parse_utc(df["created_at"])
    df = df.sort_values("created_at", ascending=False, na_position="last").reset_index(drop=True)
    logger.info("Built users frame with %d rows", len(df))
    return df


def build_category_frame(education_stats: dict | None, category: str) -> pd.DataFrame:
    """One education-stats category as name/count/percentage rows.

    Parameters
    ----------
    education_stats : 'data' object from get_education_stats.
    category : 'education', 'fields' or 'institutions'.

    Returns
    -------
    DataFrame sorted by count descending (ties keep payload order).
    """
    if category not in BACKGROUND_CATEGORIES:
        raise ValueError(f"Unknown background category: {category!r}")

    field, _ = BACKGROUND_CATEGORIES[category]
    entries = (education_stats or {}).get(field) or {}

    rows = [
        {
            "name": name,
            "count": int(stat.get("count", 0) or 0),
            "percentage": float(stat.get("percentage", 0.0) or 0.0),
        }
        for name, stat in entries.items()
    ]
    df = pd.DataFrame(rows, columns=CATEGORY_COLUMNS)
    if df.empty:
        return df

    df = df.sort_values("count", ascending=False, kind="stable").reset_index(drop=True)
    logger.info("Built %s category frame with %d rows", category, len(df))
    return df


def build_daily_counts_frame(rows: list[dict] | None) -> pd.DataFrame:
    """Server-side daily counts as date/count rows, oldest first."""
    df = _records_frame(rows, DAILY_COLUMNS)[DAILY_COLUMNS].copy()
    if df.empty:
        return df

    df["date"] = pd.to_datetime(df["date"], errors="coerce")
    df["count"] = pd.to_numeric(df["count"], errors="coerce").fillna(0).astype("int64")
    return df.sort_values("date").reset_index(drop=True)
