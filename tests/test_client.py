"""Tests for hyperknow_dashboard.client: StatsClient transport, endpoints, fan-out."""

from unittest.mock import MagicMock

import pandas as pd
import pytest
import requests

from hyperknow_dashboard.client import StatsClient, fetch_dashboard_data, get_date_range
from hyperknow_dashboard.exceptions import StatsProviderError, UnsupportedRange

API = "http://stats.test/user_stats"
BASE = "http://api.test"


def make_response(json_data=None, status=200, reason="OK", json_error=False):
    resp = MagicMock()
    resp.ok = 200 <= status < 300
    resp.status_code = status
    resp.reason = reason
    if json_error:
        resp.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        resp.json.return_value = json_data
    return resp


def make_client(response=None):
    session = MagicMock()
    if response is not None:
        session.request.return_value = response
    return StatsClient(api_url=API, base_url=BASE, timeout=5.0, session=session), session


class TestGetDateRange:
    def test_week_steps_back_six_days(self):
        dates = get_date_range("1w", pd.Timestamp("2024-03-31 10:00"))
        assert dates == {"start_date": "2024-03-25", "end_date": "2024-03-31"}

    def test_two_days(self):
        dates = get_date_range("2d", pd.Timestamp("2024-03-01 23:59"))
        assert dates == {"start_date": "2024-02-29", "end_date": "2024-03-01"}

    def test_calendar_months(self):
        today = pd.Timestamp("2024-03-31")
        assert get_date_range("1m", today)["start_date"] == "2024-02-29"
        assert get_date_range("3m", today)["start_date"] == "2023-12-31"
        assert get_date_range("6m", today)["start_date"] == "2023-09-30"

    def test_dashboard_ranges_are_not_history_ranges(self):
        with pytest.raises(UnsupportedRange):
            get_date_range("7d")


class TestStatsClient:
    def test_overall_user_count(self):
        client, session = make_client(make_response({"count": 42}))
        assert client.overall_user_count() == 42
        session.request.assert_called_once_with(
            "POST", f"{API}/get_overall_registered_user_count", timeout=5.0
        )

    def test_json_headers_set_on_session(self):
        _, session = make_client()
        session.headers.update.assert_called_once()
        headers = session.headers.update.call_args[0][0]
        assert headers["Content-Type"] == "application/json"

    def test_conversation_info_defaults_to_empty_list(self):
        client, _ = make_client(make_response({}))
        assert client.conversation_info() == []

    def test_note_info(self):
        notes = [{"file_name": "a.md", "created_at": "2024-01-01T00:00:00Z", "user_id": "u-1"}]
        client, _ = make_client(make_response({"notes": notes}))
        assert client.note_info() == notes

    def test_education_stats(self):
        client, _ = make_client(make_response({"data": {"total_users": 3}}))
        assert client.education_stats() == {"total_users": 3}

    def test_daily_counts_posts_date_window(self):
        rows = [{"date": "2024-03-30", "count": 2}]
        client, session = make_client(make_response({"data": rows}))
        result = client.daily_counts("conversations", "1w", today=pd.Timestamp("2024-03-31"))
        assert result == rows
        session.request.assert_called_once_with(
            "POST",
            f"{API}/get_daily_conversation_count",
            timeout=5.0,
            json={"start_date": "2024-03-25", "end_date": "2024-03-31"},
        )

    def test_daily_counts_rejects_unknown_kind(self):
        client, _ = make_client()
        with pytest.raises(ValueError):
            client.daily_counts("notes", "1w")

    def test_dashboard_stats_uses_get(self):
        payload = {"total_users": 1, "latest_users": []}
        client, session = make_client(make_response(payload))
        assert client.dashboard_stats() == payload
        session.request.assert_called_once_with(
            "GET", f"{BASE}/api/v1/dashboard/stats", timeout=5.0
        )

    def test_non_2xx_raises(self):
        client, _ = make_client(make_response(status=503, reason="Service Unavailable"))
        with pytest.raises(StatsProviderError) as exc_info:
            client.overall_conversation_count()
        assert exc_info.value.status_code == 503
        assert "get_overall_conversation_count" in str(exc_info.value)

    def test_transport_error_raises(self):
        client, session = make_client()
        session.request.side_effect = requests.ConnectionError("connection refused")
        with pytest.raises(StatsProviderError, match="connection refused"):
            client.overall_user_count()

    def test_non_object_body_raises(self):
        client, _ = make_client(make_response([1, 2, 3]))
        with pytest.raises(StatsProviderError, match="unexpected response shape"):
            client.conversation_info()

    def test_invalid_json_raises(self):
        client, _ = make_client(make_response(json_error=True))
        with pytest.raises(StatsProviderError, match="not valid JSON"):
            client.note_info()


class TestFetchDashboardData:
    def _client(self):
        client = MagicMock(spec=StatsClient)
        client.overall_user_count.return_value = 10
        client.overall_conversation_count.return_value = 25
        client.education_stats.return_value = {"total_users": 10}
        client.conversation_info.return_value = [{"conversation_id": "c-1"}]
        client.note_info.return_value = []
        return client

    def test_all_collections_loaded(self):
        result = fetch_dashboard_data(self._client())
        assert result["errors"] == {}
        assert result["data"] == {
            "total_users": 10,
            "total_conversations": 25,
            "education_stats": {"total_users": 10},
            "conversations": [{"conversation_id": "c-1"}],
            "notes": [],
        }

    def test_failure_only_blanks_its_collection(self):
        client = self._client()
        client.note_info.side_effect = StatsProviderError(
            "get_user_note_info", "Internal Server Error", 500
        )
        result = fetch_dashboard_data(client)
        assert result["data"]["notes"] is None
        assert result["data"]["total_users"] == 10
        assert list(result["errors"]) == ["notes"]
        assert "500" in result["errors"]["notes"]

    def test_every_call_made_once(self):
        client = self._client()
        fetch_dashboard_data(client)
        for method in ("overall_user_count", "overall_conversation_count",
                       "education_stats", "conversation_info", "note_info"):
            getattr(client, method).assert_called_once_with()

    def test_null_count_is_zero_and_bad_count_blanks_its_collection(self):
        client = StatsClient(api_url=API, base_url=BASE, timeout=5.0, session=MagicMock())
        client.session.request.side_effect = lambda method, url, **kwargs: (
            make_response({"count": "n/a"}) if url.endswith("get_overall_conversation_count")
            else make_response({"count": None, "data": {}, "conversations": [], "notes": []})
        )
        result = fetch_dashboard_data(client)
        assert result["data"]["total_users"] == 0
        assert result["data"]["total_conversations"] is None
        assert list(result["errors"]) == ["total_conversations"]

    @pytest.mark.parametrize("body", [None, [], ["not", "an", "object"]])
    def test_non_object_body_only_blanks_its_collection(self, body):
        client = StatsClient(api_url=API, base_url=BASE, timeout=5.0, session=MagicMock())
        client.session.request.side_effect = lambda method, url, **kwargs: (
            make_response(body) if url.endswith("get_user_note_info")
            else make_response({"count": 7, "data": {"total_users": 7}, "conversations": []})
        )
        result = fetch_dashboard_data(client)
        assert result["data"]["notes"] is None
        assert "unexpected response shape" in result["errors"]["notes"]
        assert result["data"]["total_users"] == 7
        assert result["data"]["education_stats"] == {"total_users": 7}
        assert result["data"]["conversations"] == []
