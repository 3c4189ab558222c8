"""
Simulated payload generator for the Hyperknow dashboard.

Produces JSON-shaped records matching the stats service responses so the
dashboard can run offline (HYPERKNOW_DEMO=1) and tests have realistic
input. All values are synthetic.
"""

import numpy as np
import pandas as pd

from .config import HISTORY_DATE_OFFSETS

# ---------------------------------------------------------------------------
# Vocabulary for synthetic records
# ---------------------------------------------------------------------------
_TOPICS = [
    "Photosynthesis and the Calvin cycle",
    "Introduction to linear algebra",
    "The French Revolution",
    "Supply and demand curves",
    "Organic chemistry: functional groups",
    "Recursion in Python",
    "Cellular respiration",
    "Newton's laws of motion",
    "The Cold War",
    "Bayes' theorem explained",
]

_EDUCATION_LEVELS = {
    "Undergraduate": 0.46,
    "Graduate": 0.22,
    "High School": 0.17,
    "PhD": 0.08,
    "Other": 0.07,
}

_STUDY_FIELDS = {
    "Computer Science": 0.24,
    "Biology": 0.14,
    "Economics": 0.12,
    "Mathematics": 0.11,
    "Physics": 0.09,
    "History": 0.08,
    "Chemistry": 0.08,
    "Psychology": 0.07,
    "Engineering": 0.07,
}

_INSTITUTIONS = {
    "UC Berkeley": 0.18,
    "University of Toronto": 0.15,
    "NYU": 0.13,
    "University of Michigan": 0.12,
    "UCLA": 0.11,
    "Georgia Tech": 0.09,
    "University of Washington": 0.08,
    "Imperial College London": 0.07,
    "National University of Singapore": 0.07,
}

_TIERS = ["pro", "pro", "team"]
_STATUSES = ["active", "active", "active", "trialing", "past_due"]


def _iso(ts: pd.Timestamp) -> str:
    return ts.strftime("%Y-%m-%dT%H:%M:%SZ")


def _random_instants(
    rng: np.random.Generator,
    n: int,
    now: pd.Timestamp,
    span: pd.Timedelta,
) -> list[pd.Timestamp]:
    """n instants in (now - span, now], skewed towards recent activity."""
    fractions = rng.power(2.0, size=n)  # density grows towards 1.0 (now)
    seconds = span.total_seconds()
    return sorted(now - pd.Timedelta(seconds=seconds * (1 - f)) for f in fractions)


def _resolve(now: pd.Timestamp | None) -> pd.Timestamp:
    now = pd.Timestamp.now(tz="UTC") if now is None else pd.Timestamp(now)
    if now.tzinfo is None:
        now = now.tz_localize("UTC")
    return now.floor("s")


def generate_users(
    n_users: int = 240,
    now: pd.Timestamp | None = None,
    span_days: int = 200,
    seed: int = 42,
) -> list[dict]:
    """Simulated user records (user_id, email, username, created_at), oldest first."""
    rng = np.random.default_rng(seed)
    now = _resolve(now)
    users = []
    for i, created in enumerate(_random_instants(rng, n_users, now, pd.Timedelta(days=span_days))):
        handle = f"student{i + 1:04d}"
        users.append({
            "user_id": f"u-{i + 1:05d}",
            "email": f"{handle}@example.edu",
            "username": handle if rng.random() > 0.1 else "",
            "created_at": _iso(created),
        })
    return users


def generate_conversations(
    users: list[dict],
    n_conversations: int = 600,
    now: pd.Timestamp | None = None,
    span_days: int = 120,
    seed: int = 7,
) -> list[dict]:
    """Simulated conversation-info records as returned by get_user_conversation_info."""
    rng = np.random.default_rng(seed)
    now = _resolve(now)
    rows = []
    for i, generated in enumerate(
        _random_instants(rng, n_conversations, now, pd.Timedelta(days=span_days))
    ):
        user = users[int(rng.integers(len(users)))] if users else {"user_id": "u-00000"}
        words = int(rng.normal(1400, 350))
        words = max(words, 200)
        conversation_id = f"c-{i + 1:06d}"
        row = {
            "conversation_id": conversation_id,
            "user_id": user["user_id"],
            "topic": _TOPICS[int(rng.integers(len(_TOPICS)))],
            "generated_at": _iso(generated),
            "word_count": words,
            "character_count": int(words * rng.uniform(5.4, 6.2)),
            "estimated_reading_time": max(1, round(words / 238)),
            "article_path": f"articles/{user['user_id']}/{conversation_id}.md",
        }
        # Roughly a third of conversations get feedback
        if rng.random() < 0.35:
            row["quality_rating"] = int(rng.integers(2, 6))
            row["understandability"] = int(rng.integers(2, 6))
            if rng.random() < 0.3:
                row["further_comments"] = "Clear explanation, would like more examples."
        rows.append(row)
    return rows


def generate_notes(
    users: list[dict],
    n_notes: int = 90,
    now: pd.Timestamp | None = None,
    span_days: int = 90,
    seed: int = 11,
) -> list[dict]:
    """Simulated note records as returned by get_user_note_info."""
    rng = np.random.default_rng(seed)
    now = _resolve(now)
    rows = []
    for i, created in enumerate(_random_instants(rng, n_notes, now, pd.Timedelta(days=span_days))):
        user = users[int(rng.integers(len(users)))] if users else {"user_id": "u-00000"}
        row = {
            "file_name": f"note_{i + 1:04d}.md",
            "created_at": _iso(created),
            "user_id": user["user_id"],
        }
        if rng.random() < 0.5:
            edited = created + pd.Timedelta(hours=float(rng.uniform(0.5, 72)))
            row["last_modified"] = _iso(min(edited, now))
        rows.append(row)
    return rows


def _category_stats(rng: np.random.Generator, weights: dict[str, float], total: int) -> dict:
    counts = rng.multinomial(total, list(weights.values()))
    return {
        name: {"count": int(c), "percentage": round(100 * c / total, 2) if total else 0.0}
        for name, c in zip(weights, counts)
    }


def generate_education_stats(total_users: int = 240, seed: int = 3) -> dict:
    """Simulated 'data' object from get_education_stats."""
    rng = np.random.default_rng(seed)
    return {
        "total_users": total_users,
        "education_levels": _category_stats(rng, _EDUCATION_LEVELS, total_users),
        "study_fields": _category_stats(rng, _STUDY_FIELDS, total_users),
        "institutions": _category_stats(rng, _INSTITUTIONS, total_users),
    }


def generate_daily_counts(
    events: list[dict],
    time_range: str,
    timestamp_field: str,
    today: pd.Timestamp | None = None,
) -> list[dict]:
    """Per-day counts shaped like get_daily_*_count responses.

    Days run from the range's start date to today inclusive.
    """
    end = _resolve(today).tz_convert(None).normalize()
    start = end - pd.DateOffset(**HISTORY_DATE_OFFSETS[time_range])
    days = pd.date_range(start, end, freq="D")

    stamps = pd.to_datetime(
        pd.Series([e.get(timestamp_field) for e in events], dtype="object"),
        utc=True,
        errors="coerce",
    ).dt.tz_convert(None).dt.normalize()
    counts = stamps.value_counts()

    return [
        {"date": day.strftime("%Y-%m-%d"), "count": int(counts.get(day, 0))}
        for day in days
    ]


def generate_dashboard_stats(now: pd.Timestamp | None = None) -> dict:
    """Simulated v1 payload from GET /api/v1/dashboard/stats."""
    now = _resolve(now)
    rng = np.random.default_rng(99)
    users = generate_users(now=now)
    conversations = generate_conversations(users, now=now)

    paid = []
    for idx in sorted(rng.choice(len(users), size=min(18, len(users)), replace=False)):
        user = users[int(idx)]
        paid.append({
            **user,
            "tier": _TIERS[int(rng.integers(len(_TIERS)))],
            "status": _STATUSES[int(rng.integers(len(_STATUSES)))],
            "stripe_subscription_id": f"sub_{int(rng.integers(10**9, 10**10))}",
        })

    return {
        "total_users": len(users),
        "latest_users": list(reversed(users[-20:])),
        "paid_subscription_count": len(paid),
        "paid_subscription_users": paid,
        "conversation_history": [
            {"conversation_id": c["conversation_id"], "user_id": c["user_id"], "created_at": c["generated_at"]}
            for c in conversations
        ],
        "all_users_timeline": [
            {"user_id": u["user_id"], "created_at": u["created_at"]} for u in users
        ],
    }


def generate_dashboard_data(now: pd.Timestamp | None = None) -> dict:
    """Simulated result of client.fetch_dashboard_data(), with no errors."""
    now = _resolve(now)
    users = generate_users(now=now)
    conversations = generate_conversations(users, now=now)
    notes = generate_notes(users, now=now)
    return {
        "data": {
            "total_users": len(users),
            "total_conversations": len(conversations),
            "education_stats": generate_education_stats(len(users)),
            "conversations": conversations,
            "notes": notes,
        },
        "errors": {},
    }
