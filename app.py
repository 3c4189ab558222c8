"""
Hyperknow — Interactive Usage Dashboard

Run with:  streamlit run app.py
Offline:   HYPERKNOW_DEMO=1 streamlit run app.py
"""

import logging
import sys
from pathlib import Path

import streamlit as st
import plotly.graph_objects as go
import pandas as pd

sys.path.insert(0, str(Path(__file__).resolve().parent))

from hyperknow_dashboard.client import StatsClient, fetch_dashboard_data
from hyperknow_dashboard.config import (
    BACKGROUND_CATEGORIES,
    DEFAULT_HISTORY_RANGE,
    DEFAULT_TIME_RANGE,
    DEMO_MODE,
    PRODUCT_NAME,
)
from hyperknow_dashboard.dashboard import (
    get_available_time_ranges,
    get_background_page,
    get_conversation_title,
    get_daily_history_chart,
    get_growth_charts,
    get_latest_users,
    get_notes_page,
    get_paid_subscription_users,
    get_recent_conversations_page,
)
from hyperknow_dashboard.exceptions import DashboardError
from hyperknow_dashboard.kpis import get_stat_cards, get_subscription_summary
from hyperknow_dashboard.simulator import (
    generate_daily_counts,
    generate_dashboard_data,
    generate_dashboard_stats,
)
from hyperknow_dashboard.transforms import build_conversations_frame, build_notes_frame

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Page config
# ---------------------------------------------------------------------------
st.set_page_config(
    page_title=f"{PRODUCT_NAME} User Dashboard",
    page_icon="📊",
    layout="wide",
    initial_sidebar_state="expanded",
)

LINE_COLOR = "#333333"


# ---------------------------------------------------------------------------
# Data loading (cached)
# ---------------------------------------------------------------------------
@st.cache_data(ttl=300)
def load_all_data():
    if DEMO_MODE:
        now = pd.Timestamp.now(tz="UTC")
        overview = generate_dashboard_data(now)
        stats = generate_dashboard_stats(now)
        stats_error = None
    else:
        client = StatsClient()
        overview = fetch_dashboard_data(client)
        stats_error = None
        try:
            stats = client.dashboard_stats()
        except DashboardError as e:
            logger.warning("Could not load v1 dashboard stats: %s", e)
            stats, stats_error = {}, str(e)

    data = overview["data"]
    return {
        "totals": {
            "total_users": data["total_users"],
            "total_conversations": data["total_conversations"],
        },
        "education_stats": data["education_stats"],
        "conversations": build_conversations_frame(data["conversations"]),
        "notes": build_notes_frame(data["notes"]),
        "stats": stats,
        "errors": {**overview["errors"], **({"dashboard_stats": stats_error} if stats_error else {})},
    }


def init_state():
    defaults = {
        "time_range": DEFAULT_TIME_RANGE,
        "conversations_page": 1,
        "notes_page": 1,
        "background_category": "education",
        "background_page": 1,
    }
    for key, value in defaults.items():
        st.session_state.setdefault(key, value)


try:
    data = load_all_data()
except DashboardError as e:
    st.error(f"Error loading dashboard: {e}")
    st.stop()

init_state()

# ---------------------------------------------------------------------------
# Sidebar
# ---------------------------------------------------------------------------
st.sidebar.title(PRODUCT_NAME)
st.sidebar.markdown("Internal Usage Dashboard")
st.sidebar.divider()

page = st.sidebar.radio(
    "Navigate",
    ["Dashboard", "Recent Conversations", "User Background", "Notes"],
)

st.sidebar.divider()
if st.sidebar.button("Refresh data"):
    load_all_data.clear()
    st.rerun()
st.sidebar.caption(f"© {pd.Timestamp.now().year} hyperknow.io • Internal Data")

for name, message in data["errors"].items():
    st.warning(f"Failed to load {name}: {message}")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def stat_card(label: str, value, decimals: int = 0):
    st.markdown(
        f"""
        <div style="background: #EEEEEE; border: 1px solid rgba(0,0,0,0.1);
                    border-radius: 8px; padding: 16px; margin-bottom: 8px;">
            <div style="font-size: 13px; color: #666; font-weight: 600;">{label}</div>
            <div style="font-size: 28px; font-weight: 700; color: #222; margin: 4px 0;">{value:,.{decimals}f}</div>
        </div>
        """,
        unsafe_allow_html=True,
    )


def line_chart(series: pd.DataFrame, title: str, y_title: str):
    fig = go.Figure(go.Scatter(
        x=series["label"],
        y=series["count"],
        mode="lines+markers",
        line=dict(color=LINE_COLOR, width=2, shape="spline"),
        marker=dict(size=6, color=LINE_COLOR),
        name=y_title,
    ))
    fig.update_layout(
        title=title,
        xaxis_type="category",
        yaxis_title=y_title,
        height=320,
        plot_bgcolor="rgba(0,0,0,0)",
        margin=dict(l=10, r=10, t=40, b=40),
    )
    st.plotly_chart(fig, use_container_width=True)


def page_controls(state_key: str, current, position: str = "top"):
    """First / Prev / Next / Last buttons bound to st.session_state[state_key]."""
    prefix = f"{state_key}_{position}"
    cols = st.columns([1, 1, 3, 1, 1])
    with cols[0]:
        if st.button("First", key=f"{prefix}_first", disabled=not current.has_previous):
            st.session_state[state_key] = 1
            st.rerun()
    with cols[1]:
        if st.button("◀", key=f"{prefix}_prev", disabled=not current.has_previous):
            st.session_state[state_key] = current.page - 1
            st.rerun()
    with cols[2]:
        st.markdown(f"<div style='text-align:center;'>Page {current.page} of {current.total_pages}</div>",
                    unsafe_allow_html=True)
    with cols[3]:
        if st.button("▶", key=f"{prefix}_next", disabled=not current.has_next):
            st.session_state[state_key] = current.page + 1
            st.rerun()
    with cols[4]:
        if st.button("Last", key=f"{prefix}_last", disabled=not current.has_next):
            st.session_state[state_key] = current.total_pages
            st.rerun()


@st.cache_data(ttl=300)
def load_daily_history(kind: str, time_range: str) -> list[dict]:
    """Server-side daily counts for the history charts."""
    if DEMO_MODE:
        timeline = "all_users_timeline" if kind == "users" else "conversation_history"
        events = data["stats"].get(timeline) or []
        return generate_daily_counts(events, time_range, "created_at")
    return StatsClient().daily_counts(kind, time_range)


def format_dt(ts) -> str:
    return ts.strftime("%b %d, %Y %H:%M:%S") if pd.notna(ts) else "-"


# ===========================================================================
# PAGE: Dashboard
# ===========================================================================
if page == "Dashboard":
    st.title(f"{PRODUCT_NAME} User Dashboard")

    cards = get_stat_cards(
        data["totals"]["total_users"],
        data["totals"]["total_conversations"],
        data["notes"],
        data["conversations"],
    )
    cols = st.columns(4)
    with cols[0]:
        stat_card("Total Users", cards["total_users"])
    with cols[1]:
        stat_card("Total Conversations", cards["total_conversations"])
    with cols[2]:
        stat_card("Total Notes", cards["total_notes"])
    with cols[3]:
        stat_card("Avg Rating", cards["avg_rating"], decimals=1)

    stats = data["stats"]
    if stats:
        summary = get_subscription_summary(stats)
        cols = st.columns(3)
        with cols[0]:
            stat_card("Registered Users", summary["total_users"])
        with cols[1]:
            stat_card("Paid Subscriptions", summary["paid_subscription_count"])
        with cols[2]:
            stat_card("Conversations (history)", summary["conversation_count"])

        st.divider()

        ranges = get_available_time_ranges("dashboard")
        keys = [key for key, _ in ranges]
        time_range = st.radio(
            "Time range",
            keys,
            index=keys.index(st.session_state["time_range"]),
            format_func=dict(ranges).get,
            horizontal=True,
        )
        st.session_state["time_range"] = time_range

        try:
            charts = get_growth_charts(stats, time_range)
        except DashboardError as e:
            st.error(f"Failed to load chart data: {e}")
        else:
            col1, col2 = st.columns(2)
            with col1:
                line_chart(charts["users"], "User Growth", "Users")
            with col2:
                line_chart(charts["conversations"], "Conversation Activity", "Conversations")

        st.subheader("Daily History")
        history_ranges = get_available_time_ranges("history")
        history_keys = [key for key, _ in history_ranges]
        col1, col2 = st.columns(2)
        for col, kind, title in ((col1, "users", "Daily New Users"), (col2, "conversations", "Daily Conversations")):
            with col:
                state_key = f"history_range_{kind}"
                st.session_state.setdefault(state_key, DEFAULT_HISTORY_RANGE)
                selected = st.selectbox(
                    title,
                    history_keys,
                    index=history_keys.index(st.session_state[state_key]),
                    format_func=dict(history_ranges).get,
                    key=f"{state_key}_select",
                )
                st.session_state[state_key] = selected
                try:
                    points = get_daily_history_chart(load_daily_history(kind, selected))
                except DashboardError as e:
                    st.error(f"Failed to load chart data: {e}")
                else:
                    line_chart(pd.DataFrame(points, columns=["label", "count"]), title, "Count")

        st.subheader("Latest Users")
        latest = get_latest_users(stats)
        if latest.empty:
            st.info("No users yet.")
        else:
            latest = latest.assign(
                username=latest["username"].fillna("").replace("", "-"),
                created_at=latest["created_at"].apply(format_dt),
            )
            st.dataframe(latest[["email", "username", "created_at"]],
                         use_container_width=True, hide_index=True)

        st.subheader("Paid Subscription Users")
        paid = get_paid_subscription_users(stats)
        if paid.empty:
            st.info("No paid subscriptions.")
        else:
            display_cols = [c for c in ["email", "username", "tier", "status"] if c in paid.columns]
            st.dataframe(paid[display_cols], use_container_width=True, hide_index=True)
    else:
        st.info("Growth charts unavailable: the v1 stats endpoint did not respond.")


# ===========================================================================
# PAGE: Recent Conversations
# ===========================================================================
elif page == "Recent Conversations":
    conversations = data["conversations"]
    st.title("Recent Conversations")
    st.caption(f"Total Conversations: **{len(conversations)}**")

    current = get_recent_conversations_page(conversations, st.session_state["conversations_page"])
    st.session_state["conversations_page"] = current.page
    st.caption(current.caption("conversations"))
    page_controls("conversations_page", current)

    for _, conv in current.items.iterrows():
        with st.container(border=True):
            head, when = st.columns([3, 1])
            head.subheader(get_conversation_title(conv))
            when.caption(format_dt(conv["generated_at"]))

            c1, c2 = st.columns(2)
            c1.markdown(f"**User ID:** {conv['user_id']}")
            c2.markdown(f"**Conversation ID:** {conv['conversation_id']}")
            c1.markdown(f"**Word Count:** {conv['word_count']:,}" if pd.notna(conv["word_count"]) else "**Word Count:** -")
            c2.markdown(f"**Character Count:** {conv['character_count']:,}" if pd.notna(conv["character_count"]) else "**Character Count:** -")
            c1.markdown(f"**Reading Time:** {conv['estimated_reading_time']} min")
            c2.markdown(f"**Article Path:** `{conv['article_path']}`")

            has_rating = pd.notna(conv["quality_rating"])
            has_understand = pd.notna(conv["understandability"])
            has_comments = isinstance(conv["further_comments"], str) and conv["further_comments"]
            if has_rating or has_understand or has_comments:
                st.markdown("**Additional Information**")
                if has_rating:
                    c1.markdown(f"**Quality Rating:** {conv['quality_rating']:g}/5")
                if has_understand:
                    c2.markdown(f"**Understandability:** {conv['understandability']:g}/5")
                if has_comments:
                    st.markdown(f"**Comments:** {conv['further_comments']}")

    if current.total_pages > 1:
        page_controls("conversations_page", current, "bottom")


# ===========================================================================
# PAGE: User Background
# ===========================================================================
elif page == "User Background":
    st.title("User Background")

    education_stats = data["education_stats"]
    if not education_stats:
        st.warning("No education statistics available.")
    else:
        categories = list(BACKGROUND_CATEGORIES)
        category = st.radio(
            "Category",
            categories,
            index=categories.index(st.session_state["background_category"]),
            format_func=lambda c: BACKGROUND_CATEGORIES[c][1],
            horizontal=True,
        )
        if category != st.session_state["background_category"]:
            st.session_state["background_category"] = category
            st.session_state["background_page"] = 1

        view = get_background_page(education_stats, category, st.session_state["background_page"])
        current = view["page"]
        st.session_state["background_page"] = current.page

        st.subheader(view["title"])
        st.caption(f"Total users: {view['total_users']} · {current.caption('items')}")

        for _, row in current.items.iterrows():
            left, right = st.columns([3, 1])
            left.markdown(f"**{row['name']}**  \n{row['count']} user{'s' if row['count'] != 1 else ''}")
            right.markdown(f"**{row['percentage']:.1f}%**")
            st.progress(min(max(row["percentage"] / 100, 0.0), 1.0))

        if current.total_pages > 1:
            page_controls("background_page", current)


# ===========================================================================
# PAGE: Notes
# ===========================================================================
elif page == "Notes":
    notes = data["notes"]
    st.title("Notes")
    st.caption(f"Total Notes: **{len(notes)}**")

    current = get_notes_page(notes, st.session_state["notes_page"])
    st.session_state["notes_page"] = current.page
    st.caption(current.caption("notes"))
    page_controls("notes_page", current)

    for _, note in current.items.iterrows():
        with st.container(border=True):
            head, who = st.columns([3, 1])
            head.subheader(f"📄 {note['file_name']}")
            who.caption(f"User ID: {note['user_id']}")
            st.markdown(f"**Created:** {format_dt(note['created_at'])}")
            if pd.notna(note["last_modified"]):
                st.markdown(f"**Last Modified:** {format_dt(note['last_modified'])}")

    if current.total_pages > 1:
        page_controls("notes_page", current, "bottom")
