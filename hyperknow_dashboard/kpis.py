"""
Stat-card computations: pure functions with no side effects.
"""

import logging

import pandas as pd

logger = logging.getLogger(__name__)


def average_rating(conversations: list[dict] | pd.DataFrame | None) -> float:
    """Mean quality_rating over conversations that have a (non-zero) rating.

    Returns 0.0 when nothing has been rated.
    """
    if conversations is None:
        return 0.0

    if isinstance(conversations, pd.DataFrame):
        if conversations.empty or "quality_rating" not in conversations.columns:
            return 0.0
        ratings = pd.to_numeric(conversations["quality_rating"], errors="coerce")
    else:
        ratings = pd.to_numeric(
            pd.Series([c.get("quality_rating") for c in conversations], dtype="object"),
            errors="coerce",
        )

    rated = ratings[ratings.notna() & (ratings != 0)]
    if rated.empty:
        return 0.0
    return float(rated.mean())


def get_stat_cards(
    total_users: int | None,
    total_conversations: int | None,
    notes: list | pd.DataFrame | None,
    conversations: list | pd.DataFrame | None,
) -> dict:
    """Values for the four top-level cards.

    Returns
    -------
    {"total_users": int, "total_conversations": int,
     "total_notes": int, "avg_rating": float}
    """
    return {
        "total_users": int(total_users or 0),
        "total_conversations": int(total_conversations or 0),
        "total_notes": 0 if notes is None else len(notes),
        "avg_rating": round(average_rating(conversations), 1),
    }


def get_subscription_summary(stats: dict | None) -> dict:
    """Cards for the v1 stats payload: users, paid subscriptions, conversations."""
    stats = stats or {}
    return {
        "total_users": int(stats.get("total_users") or 0),
        "paid_subscription_count": int(stats.get("paid_subscription_count") or 0),
        "conversation_count": len(stats.get("conversation_history") or []),
    }
