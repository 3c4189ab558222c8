"""Tests for hyperknow_dashboard.timeseries: bucketize, alignment, labels, errors."""

from datetime import datetime
from types import SimpleNamespace

import pandas as pd
import pytest

from hyperknow_dashboard.config import TIME_RANGES
from hyperknow_dashboard.exceptions import InvalidTimestamp, UnsupportedRange
from hyperknow_dashboard.timeseries import (
    align_to_interval,
    bucketize,
    expected_bucket_count,
    format_bucket_label,
    parse_event_timestamps,
    to_chart_data,
    to_utc_timestamp,
)

NOW = pd.Timestamp("2024-01-10T15:30:00Z")


def ev(ts: str, field: str = "created_at") -> dict:
    return {field: ts}


class TestEmptyInput:
    @pytest.mark.parametrize("time_range", list(TIME_RANGES))
    def test_all_zero_with_expected_length(self, time_range):
        series = bucketize([], time_range, now=NOW)
        assert len(series) == expected_bucket_count(time_range, NOW)
        assert (series["count"] == 0).all()
        assert list(series.columns) == ["bucket_start", "label", "count"]

    @pytest.mark.parametrize("time_range", list(TIME_RANGES))
    def test_length_matches_ceil_formula(self, time_range):
        config = TIME_RANGES[time_range]
        ratio = config["lookback"] / config["interval"]
        expected = -int(-ratio // 1) + 1  # ceil(ratio) + 1
        assert len(bucketize([], time_range, now=NOW)) == expected

    def test_known_lengths(self):
        assert len(bucketize([], "12h", now=NOW)) == 13
        assert len(bucketize([], "1d", now=NOW)) == 13
        assert len(bucketize([], "7d", now=NOW)) == 8
        assert len(bucketize([], "30d", now=NOW)) == 31
        assert len(bucketize([], "2d", now=NOW)) == 2
        assert len(bucketize([], "1w", now=NOW)) == 7


class TestCounting:
    def test_start_boundary_is_inclusive(self):
        now = pd.Timestamp("2024-01-02T12:00:00Z")
        series = bucketize([ev("2024-01-02T00:00:00Z")], "12h", now=now)
        assert len(series) == 13
        assert series["count"].iloc[0] == 1
        assert series["label"].iloc[0] == "00:00"
        assert series["count"].sum() == 1

    def test_now_boundary_is_inclusive(self):
        now = pd.Timestamp("2024-01-02T12:00:00Z")
        series = bucketize([ev("2024-01-02T12:00:00Z")], "12h", now=now)
        assert series["count"].iloc[-1] == 1
        assert series["label"].iloc[-1] == "12:00"

    def test_same_day_events_land_in_one_bucket(self):
        events = [
            ev("2024-01-05T08:00:00Z"),
            ev("2024-01-05T12:00:00Z"),
            ev("2024-01-05T23:59:59Z"),
        ]
        series = bucketize(events, "7d", now=NOW)
        assert len(series) == 8
        assert (series["count"] == 3).sum() == 1
        assert (series["count"] == 0).sum() == 7
        assert series.loc[series["count"] == 3, "label"].item() == "Jan 5"

    def test_events_outside_window_are_ignored(self):
        events = [
            ev("2024-01-03T15:29:59Z"),  # one second before start, same bucket as start
            ev("2024-01-03T15:30:00Z"),  # exactly start
            ev("2024-01-10T15:30:01Z"),  # after now
            ev("2023-06-01T00:00:00Z"),
        ]
        series = bucketize(events, "7d", now=NOW)
        assert series["count"].sum() == 1
        assert series["label"].iloc[0] == "Jan 3"
        assert series["count"].iloc[0] == 1

    def test_sum_equals_len_when_all_in_window(self):
        events = [ev(f"2024-01-10T{h:02d}:15:00Z") for h in range(4, 15)]
        series = bucketize(events, "12h", now=NOW)
        assert series["count"].sum() == len(events)
        assert (series["count"] >= 0).all()

    def test_sum_never_exceeds_input(self):
        events = [ev(f"2024-01-{d:02d}T10:00:00Z") for d in range(1, 11)]
        series = bucketize(events, "7d", now=NOW)
        assert series["count"].sum() < len(events)
        assert series["count"].sum() == 7  # Jan 4 .. Jan 10

    def test_arbitrary_order(self):
        events = [ev("2024-01-10T14:00:00Z"), ev("2024-01-10T04:00:00Z"), ev("2024-01-10T09:00:00Z")]
        forward = bucketize(events, "12h", now=NOW)
        backward = bucketize(list(reversed(events)), "12h", now=NOW)
        pd.testing.assert_frame_equal(forward, backward)

    def test_offset_timestamps_are_converted_to_utc(self):
        # 01:00 at +02:00 is 23:00 UTC on the previous day
        series = bucketize([ev("2024-01-05T01:00:00+02:00")], "7d", now=NOW)
        assert series.loc[series["count"] == 1, "label"].item() == "Jan 4"


class TestOrdering:
    def test_strictly_ascending_unique_keys(self):
        series = bucketize([], "30d", now=NOW)
        assert series["bucket_start"].is_monotonic_increasing
        assert series["bucket_start"].is_unique

    def test_idempotent(self):
        events = [ev("2024-01-09T10:00:00Z"), ev("2024-01-10T01:00:00Z")]
        first = bucketize(events, "1d", now=NOW)
        second = bucketize(events, "1d", now=NOW)
        pd.testing.assert_frame_equal(first, second)

    def test_epoch_alignment_is_stable_across_now(self):
        a = bucketize([], "1d", now=pd.Timestamp("2024-01-10T12:10:00Z"))
        b = bucketize([], "1d", now=pd.Timestamp("2024-01-10T14:50:00Z"))
        overlap = set(a["bucket_start"]) & set(b["bucket_start"])
        assert len(overlap) == 12
        for key in overlap:
            assert key.hour % 2 == 0 and key.minute == 0

    def test_keys_are_interval_aligned(self):
        series = bucketize([], "12h", now=NOW)
        assert series["bucket_start"].iloc[0] == pd.Timestamp("2024-01-10T03:00:00Z")
        assert series["bucket_start"].iloc[-1] == pd.Timestamp("2024-01-10T15:00:00Z")


class TestEventShapes:
    def test_generated_at_is_probed(self):
        series = bucketize([ev("2024-01-10T10:00:00Z", "generated_at")], "12h", now=NOW)
        assert series["count"].sum() == 1

    def test_explicit_field(self):
        events = [{"created_at": "2020-01-01T00:00:00Z", "generated_at": "2024-01-10T10:00:00Z"}]
        assert bucketize(events, "12h", now=NOW)["count"].sum() == 0
        assert bucketize(events, "12h", now=NOW, timestamp_field="generated_at")["count"].sum() == 1

    def test_attribute_objects(self):
        events = [SimpleNamespace(created_at="2024-01-10T10:00:00Z")]
        assert bucketize(events, "12h", now=NOW)["count"].sum() == 1

    def test_datetime_values(self):
        events = [{"created_at": datetime(2024, 1, 10, 10, 0)}]
        assert bucketize(events, "12h", now=NOW)["count"].sum() == 1

    def test_naive_now_is_utc(self):
        a = bucketize([], "12h", now="2024-01-10T15:30:00")
        b = bucketize([], "12h", now=NOW)
        pd.testing.assert_frame_equal(a, b)


class TestErrors:
    @pytest.mark.parametrize("bad", ["not-a-date", "2024-13-45T00:00:00Z", "", None, 12345])
    def test_invalid_timestamp_fails_whole_call(self, bad):
        events = [ev("2024-01-10T10:00:00Z"), {"created_at": bad}]
        with pytest.raises(InvalidTimestamp) as exc_info:
            bucketize(events, "12h", now=NOW)
        assert exc_info.value.index == 1
        assert isinstance(exc_info.value, ValueError)

    @pytest.mark.parametrize("bad", ["9999-12-31T00:00:00Z", "0001-01-01T00:00:00Z", "now", "today"])
    def test_out_of_range_and_relative_literals(self, bad):
        with pytest.raises(InvalidTimestamp) as exc_info:
            bucketize([{"created_at": bad}], "7d", now=NOW)
        assert exc_info.value.index == 0

    def test_out_of_range_datetime_object(self):
        with pytest.raises(InvalidTimestamp):
            bucketize([{"created_at": datetime(1, 1, 1)}], "7d", now=NOW)

    def test_missing_field(self):
        with pytest.raises(InvalidTimestamp, match="event #0"):
            bucketize([{"user_id": "u-1"}], "12h", now=NOW)

    def test_unsupported_range(self):
        with pytest.raises(UnsupportedRange) as exc_info:
            bucketize([], "5y", now=NOW)
        assert "12h" in exc_info.value.supported

    def test_unsupported_range_checked_before_events(self):
        with pytest.raises(UnsupportedRange):
            bucketize([{"created_at": "garbage"}], "", now=NOW)


class TestHelpers:
    def test_to_utc_timestamp_localizes_naive(self):
        ts = to_utc_timestamp("2024-01-10T10:00:00")
        assert str(ts.tz) == "UTC"
        assert ts.hour == 10

    def test_parse_event_timestamps_dtype(self):
        stamps = parse_event_timestamps([ev("2024-01-10T10:00:00Z")])
        assert str(stamps.dtype) == "datetime64[ns, UTC]"
        assert len(parse_event_timestamps([])) == 0

    def test_align_to_interval(self):
        ts = pd.Timestamp("2024-01-10T15:47:12Z")
        assert align_to_interval(ts, pd.Timedelta(hours=2)) == pd.Timestamp("2024-01-10T14:00:00Z")
        assert align_to_interval(ts, pd.Timedelta(days=1)) == pd.Timestamp("2024-01-10T00:00:00Z")

    def test_day_label_has_no_padding(self):
        assert format_bucket_label(pd.Timestamp("2024-03-05T00:00:00Z"), "day") == "Mar 5"

    def test_display_tz_only_changes_labels(self):
        now = pd.Timestamp("2024-01-02T12:00:00Z")
        utc = bucketize([], "12h", now=now)
        ny = bucketize([], "12h", now=now, display_tz="America/New_York")
        assert ny["label"].iloc[0] == "19:00"
        pd.testing.assert_series_equal(utc["bucket_start"], ny["bucket_start"])

    def test_to_chart_data(self):
        series = bucketize([ev("2024-01-10T15:00:00Z")], "12h", now=NOW)
        points = to_chart_data(series, "users")
        assert len(points) == 13
        assert points[-1] == {"label": "15:00", "users": 1}
        assert set(points[0]) == {"label", "users"}
