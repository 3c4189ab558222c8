"""
Hyperknow — End-to-end dashboard pipeline.

Fetches (or simulates) every stats collection, builds the dashboard-ready
frames and chart series, and prints smoke-test summaries.

Usage:
    python main.py            # live stats service
    HYPERKNOW_DEMO=1 python main.py
"""

import logging
import sys
from pathlib import Path

import pandas as pd

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent))

from hyperknow_dashboard.client import StatsClient, fetch_dashboard_data
from hyperknow_dashboard.config import DASHBOARD_TIME_RANGES, DEMO_MODE, PRODUCT_NAME
from hyperknow_dashboard.dashboard import (
    get_background_page,
    get_growth_charts,
    get_latest_users,
    get_notes_page,
    get_recent_conversations_page,
)
from hyperknow_dashboard.exceptions import DashboardError
from hyperknow_dashboard.kpis import get_stat_cards, get_subscription_summary
from hyperknow_dashboard.simulator import generate_dashboard_data, generate_dashboard_stats
from hyperknow_dashboard.timeseries import expected_bucket_count
from hyperknow_dashboard.transforms import build_conversations_frame, build_notes_frame

# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def main() -> int:
    """Run the dashboard pipeline and print smoke-test outputs."""

    print("=" * 70)
    print(f"  {PRODUCT_NAME.upper()} — Internal Usage Dashboard")
    print(f"  Pipeline Smoke Test ({'simulated' if DEMO_MODE else 'live'} data)")
    print("=" * 70)
    print()

    now = pd.Timestamp.now(tz="UTC")

    # ------------------------------------------------------------------
    # 1. Load source data
    # ------------------------------------------------------------------
    print("[ 1 ] LOADING SOURCE DATA")
    print("-" * 40)

    if DEMO_MODE:
        overview = generate_dashboard_data(now)
        stats = generate_dashboard_stats(now)
    else:
        client = StatsClient()
        overview = fetch_dashboard_data(client)
        try:
            stats = client.dashboard_stats()
        except DashboardError as e:
            logger.warning("Could not load v1 dashboard stats: %s", e)
            stats = {}

    data = overview["data"]
    for name, value in data.items():
        size = len(value) if isinstance(value, (list, dict)) else value
        print(f"  {name:22s} | {size}")
    for name, message in overview["errors"].items():
        print(f"  [ERROR] {name}: {message}")

    # ------------------------------------------------------------------
    # 2. Build frames
    # ------------------------------------------------------------------
    print("\n")
    print("[ 2 ] BUILDING TABLES")
    print("-" * 40)

    conversations = build_conversations_frame(data["conversations"])
    notes = build_notes_frame(data["notes"])
    print(f"\nconversations: {len(conversations)} rows")
    if not conversations.empty:
        print(conversations[["conversation_id", "topic", "generated_at"]].head(5).to_string(index=False))
    print(f"\nnotes: {len(notes)} rows")
    if not notes.empty:
        print(notes[["file_name", "user_id", "created_at"]].head(5).to_string(index=False))

    # ------------------------------------------------------------------
    # 3. Dashboard outputs
    # ------------------------------------------------------------------
    print("\n")
    print("[ 3 ] DASHBOARD OUTPUTS")
    print("-" * 40)

    cards = get_stat_cards(
        data["total_users"], data["total_conversations"], notes, conversations
    )
    print("\nStat cards:")
    for key, value in cards.items():
        print(f"  {key:20s} | {value}")

    if stats:
        print("\nSubscription summary:")
        for key, value in get_subscription_summary(stats).items():
            print(f"  {key:24s} | {value}")

        latest = get_latest_users(stats)
        if not latest.empty:
            print("\nLatest users:")
            print(latest[["email", "username", "created_at"]].to_string(index=False))

    page = get_recent_conversations_page(conversations, 1)
    print(f"\nRecent conversations: {page.caption('conversations')} (page {page.page}/{page.total_pages})")
    page = get_notes_page(notes, 1)
    print(f"Notes: {page.caption('notes')} (page {page.page}/{page.total_pages})")

    background = get_background_page(data["education_stats"], "education")
    print(f"\n{background['title']} ({background['total_users']} users):")
    if not background["page"].items.empty:
        print(background["page"].items.to_string(index=False))

    # ------------------------------------------------------------------
    # 4. Growth charts and acceptance checks
    # ------------------------------------------------------------------
    print("\n")
    print("[ 4 ] GROWTH CHARTS")
    print("-" * 40)

    all_ok = True
    if stats:
        for time_range in DASHBOARD_TIME_RANGES:
            try:
                charts = get_growth_charts(stats, time_range, now=now)
            except DashboardError as e:
                all_ok = False
                print(f"\n  [FAIL] {time_range:>4s}: {e}")
                continue
            users, convs = charts["users"], charts["conversations"]
            expected = expected_bucket_count(time_range, now)
            ok = len(users) == len(convs) == expected and users["bucket_start"].is_monotonic_increasing
            all_ok &= ok
            print(
                f"\n  [{'PASS' if ok else 'FAIL'}] {time_range:>4s}: {len(users)} buckets "
                f"(expect {expected}), users={users['count'].sum()}, "
                f"conversations={convs['count'].sum()}"
            )
            print("        " + ", ".join(f"{p['label']}={p['users']}" for p in charts["users_chart"][-4:]))
    else:
        print("\n  [INFO] No v1 stats payload, growth charts skipped")

    print("\n" + "=" * 70)
    print("  Pipeline complete.")
    print("=" * 70)
    return 0 if all_ok else 1


if __name__ == "__main__":
    sys.exit(main())
