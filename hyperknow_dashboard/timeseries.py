"""
Time-series bucketing for the growth charts.

Turns a collection of timestamped records (user registrations, generated
conversations) into a gap-free series of per-interval counts ready for a
category-axis line chart.

Buckets are aligned to the Unix epoch, not to the window start, so two
calls with different "now" values produce identical bucket boundaries
wherever their windows overlap.
"""

import logging
import re
from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any

import pandas as pd

from .config import TIME_RANGES, TIMESTAMP_FIELDS
from .exceptions import InvalidTimestamp, UnsupportedRange

logger = logging.getLogger(__name__)

_EPOCH = pd.Timestamp("1970-01-01", tz="UTC")
_ISO_DATE = re.compile(r"\s*\d{4}-\d{2}-\d{2}")


def get_time_range(time_range: str) -> dict:
    """Return the registry entry for a time range key.

    Raises
    ------
    UnsupportedRange if the key is not registered in config.TIME_RANGES.
    """
    if not isinstance(time_range, str) or time_range not in TIME_RANGES:
        raise UnsupportedRange(time_range, list(TIME_RANGES))
    return TIME_RANGES[time_range]


def to_utc_timestamp(value: Any, index: int = 0, field: str | None = None) -> pd.Timestamp:
    """Parse an ISO-8601 string or datetime into a UTC pd.Timestamp.

    Naive values are taken to be UTC already. Anything else (None, empty
    strings, numbers, non-ISO text such as "now", dates outside the
    nanosecond range) raises InvalidTimestamp.
    """
    if not isinstance(value, (str, datetime)):
        raise InvalidTimestamp(index, value, field)
    if isinstance(value, str) and not _ISO_DATE.match(value):
        raise InvalidTimestamp(index, value, field)

    # OutOfBoundsDatetime is a ValueError
    try:
        if isinstance(value, str):
            ts = pd.to_datetime(value, utc=True, format="ISO8601")
        else:
            ts = pd.Timestamp(value)
            ts = ts.tz_localize("UTC") if ts.tzinfo is None else ts.tz_convert("UTC")
        ts = ts.as_unit("ns")
    except (ValueError, TypeError, OverflowError) as exc:
        raise InvalidTimestamp(index, value, field) from exc

    if pd.isna(ts):
        raise InvalidTimestamp(index, value, field)
    return ts


def _read_timestamp(event: Any, timestamp_field: str | None) -> tuple[str | None, Any]:
    names = (timestamp_field,) if timestamp_field else TIMESTAMP_FIELDS
    for name in names:
        if isinstance(event, Mapping):
            value = event.get(name)
        else:
            value = getattr(event, name, None)
        if value is not None:
            return name, value
    return timestamp_field, None


def parse_event_timestamps(
    events: Iterable[Any],
    timestamp_field: str | None = None,
) -> pd.Series:
    """Extract and parse every event's timestamp.

    Parameters
    ----------
    events : Records as dicts (JSON objects) or attribute-style objects.
    timestamp_field : Field to read. If None, each record is probed for
                      created_at, then generated_at.

    Returns
    -------
    Series of dtype datetime64[ns, UTC], one entry per event, input order.

    Raises
    ------
    InvalidTimestamp on the first event with a missing or unparseable
    timestamp. There is no partial result.
    """
    stamps = []
    for i, event in enumerate(events):
        field, raw = _read_timestamp(event, timestamp_field)
        stamps.append(to_utc_timestamp(raw, index=i, field=field))
    return pd.Series(stamps, dtype="datetime64[ns, UTC]")


def interval_ordinal(ts, interval: pd.Timedelta):
    """Number of whole intervals between the epoch and ts (floor division).

    Works on a scalar Timestamp or a datetime Series.
    """
    return (ts - _EPOCH) // interval


def align_to_interval(ts: pd.Timestamp, interval: pd.Timedelta) -> pd.Timestamp:
    """Floor a timestamp to the start of its epoch-aligned interval."""
    return _EPOCH + interval_ordinal(ts, interval) * interval


def format_bucket_label(
    bucket_start: pd.Timestamp,
    style: str,
    display_tz: str | None = None,
) -> str:
    """Render a bucket start as 'HH:MM' (style='time') or 'Jan 5' (style='day')."""
    if display_tz:
        bucket_start = bucket_start.tz_convert(display_tz)
    if style == "time":
        return bucket_start.strftime("%H:%M")
    return f"{bucket_start.strftime('%b')} {bucket_start.day}"


def resolve_now(now: Any) -> pd.Timestamp:
    if now is None:
        return pd.Timestamp.now(tz="UTC")
    return to_utc_timestamp(now, field="now")


def expected_bucket_count(time_range: str, now: Any) -> int:
    """Number of buckets bucketize() returns for (time_range, now)."""
    config = get_time_range(time_range)
    now = resolve_now(now)
    interval = config["interval"]
    start = now - config["lookback"]
    return int(interval_ordinal(now, interval) - interval_ordinal(start, interval)) + 1


def bucketize(
    events: Iterable[Any],
    time_range: str,
    now: Any = None,
    timestamp_field: str | None = None,
    display_tz: str | None = None,
) -> pd.DataFrame:
    """Count events per fixed interval over a lookback window.

    Parameters
    ----------
    events : Timestamped records in any order.
    time_range : Key into config.TIME_RANGES (e.g. "12h", "7d").
    now : End of the window. Sampled once when None; naive values are UTC.
    timestamp_field : Field holding the ISO-8601 timestamp (optional).
    display_tz : Time zone for labels only. Alignment is always UTC epoch.

    Returns
    -------
    DataFrame with columns bucket_start, label, count. One row per interval
    from floor(now - lookback) to floor(now), ascending, including
    zero-count buckets. Events in [now - lookback, now] are each counted
    once; events outside the window are ignored.

    Raises
    ------
    UnsupportedRange, InvalidTimestamp.
    """
    config = get_time_range(time_range)
    now = resolve_now(now)
    interval = config["interval"]
    start = now - config["lookback"]

    first = int(interval_ordinal(start, interval))
    last = int(interval_ordinal(now, interval))
    ordinals = pd.RangeIndex(first, last + 1)

    stamps = parse_event_timestamps(events, timestamp_field)
    in_window = stamps[(stamps >= start) & (stamps <= now)]

    # reindex drops any ordinal outside the generated key set
    counts = (
        interval_ordinal(in_window, interval)
        .value_counts()
        .reindex(ordinals, fill_value=0)
        .astype("int64")
    )

    bucket_starts = [_EPOCH + ordinal * interval for ordinal in ordinals]
    series = pd.DataFrame({
        "bucket_start": pd.DatetimeIndex(bucket_starts),
        "label": [format_bucket_label(b, config["label"], display_tz) for b in bucket_starts],
        "count": counts.to_numpy(),
    })

    logger.debug(
        "Bucketized %d/%d events into %d '%s' buckets",
        len(in_window), len(stamps), len(series), time_range,
    )
    return series


def to_chart_data(series: pd.DataFrame, value_name: str = "count") -> list[dict]:
    """Project a bucketized series to [{'label': ..., value_name: ...}] points.

    The bucket key is dropped; order is preserved.
    """
    return [
        {"label": label, value_name: int(count)}
        for label, count in zip(series["label"], series["count"])
    ]
