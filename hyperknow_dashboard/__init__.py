"""
Hyperknow — Internal Usage Dashboard

Analytics backend that pulls aggregate statistics (users, conversations,
education demographics, notes) from the Hyperknow stats service and turns
them into dashboard-ready cards, tables and time-series charts.

To point at another backend:
    Set HYPERKNOW_API_URL (legacy POST endpoints) and HYPERKNOW_BASE_URL
    (v1 API) before importing, or pass api_url/base_url to
    client.StatsClient.

To connect to Streamlit/Dash:
    Call dashboard.get_growth_charts(stats, "7d") for line-chart series
    and the get_*_page() helpers for paginated tables.

To add a new time range:
    Add an entry to config.TIME_RANGES with its lookback, interval and
    label style, then list its key in DASHBOARD_TIME_RANGES or
    HISTORY_TIME_RANGES.
"""

from .exceptions import DashboardError, InvalidTimestamp, StatsProviderError, UnsupportedRange
from .timeseries import bucketize, to_chart_data

__all__ = [
    "DashboardError",
    "InvalidTimestamp",
    "StatsProviderError",
    "UnsupportedRange",
    "bucketize",
    "to_chart_data",
]
