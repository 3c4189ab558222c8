"""
HTTP client for the Hyperknow stats service.

StatsClient wraps one requests.Session. fetch_dashboard_data() fans the
five overview calls out over a thread pool and joins on all of them; a
failed call only blanks its own collection.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any

import pandas as pd
import requests

from .config import (
    API_URL,
    BASE_URL,
    DASHBOARD_STATS_PATH,
    ENDPOINTS,
    HISTORY_DATE_OFFSETS,
    HTTP_TIMEOUT,
)
from .exceptions import StatsProviderError, UnsupportedRange

logger = logging.getLogger(__name__)

_JSON_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


def get_date_range(time_range: str, today: pd.Timestamp | None = None) -> dict[str, str]:
    """Return {'start_date', 'end_date'} (YYYY-MM-DD) for a history range.

    '2d' and '1w' step back 1 and 6 days; '1m', '3m', '6m' step back
    calendar months.
    """
    if time_range not in HISTORY_DATE_OFFSETS:
        raise UnsupportedRange(time_range, list(HISTORY_DATE_OFFSETS))

    end = (today if today is not None else pd.Timestamp.now()).normalize()
    start = end - pd.DateOffset(**HISTORY_DATE_OFFSETS[time_range])
    return {
        "start_date": start.strftime("%Y-%m-%d"),
        "end_date": end.strftime("%Y-%m-%d"),
    }


class StatsClient:
    """Thin JSON client for the stats endpoints."""

    def __init__(
        self,
        api_url: str = API_URL,
        base_url: str = BASE_URL,
        timeout: float = HTTP_TIMEOUT,
        session: requests.Session | None = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(_JSON_HEADERS)

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------
    def _request(self, method: str, url: str, name: str, **kwargs) -> Any:
        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise StatsProviderError(name, str(exc)) from exc

        if not resp.ok:
            raise StatsProviderError(name, resp.reason or "HTTP error", resp.status_code)

        try:
            body = resp.json()
        except ValueError as exc:
            raise StatsProviderError(name, "response is not valid JSON", resp.status_code) from exc

        if not isinstance(body, dict):
            raise StatsProviderError(name, "unexpected response shape", resp.status_code)
        return body

    def _post(self, key: str, payload: dict | None = None) -> dict:
        endpoint = ENDPOINTS[key]
        url = f"{self.api_url}/{endpoint}"
        if payload is None:
            return self._request("POST", url, endpoint)
        return self._request("POST", url, endpoint, json=payload)

    # ------------------------------------------------------------------
    # Legacy stats service
    # ------------------------------------------------------------------
    def _count(self, key: str) -> int:
        raw = self._post(key).get("count") or 0
        try:
            return int(raw)
        except (TypeError, ValueError) as exc:
            raise StatsProviderError(ENDPOINTS[key], f"count is not a number: {raw!r}") from exc

    def overall_user_count(self) -> int:
        return self._count("total_users")

    def overall_conversation_count(self) -> int:
        return self._count("total_conversations")

    def education_stats(self) -> dict:
        return self._post("education_stats").get("data") or {}

    def conversation_info(self) -> list[dict]:
        return self._post("conversations").get("conversations") or []

    def note_info(self) -> list[dict]:
        return self._post("notes").get("notes") or []

    def daily_counts(
        self,
        kind: str,
        time_range: str,
        today: pd.Timestamp | None = None,
    ) -> list[dict]:
        """Server-side daily counts for 'users' or 'conversations'."""
        if kind not in ("users", "conversations"):
            raise ValueError(f"kind must be 'users' or 'conversations', got {kind!r}")
        payload = get_date_range(time_range, today)
        return self._post(f"daily_{kind}", payload).get("data") or []

    # ------------------------------------------------------------------
    # v1 API
    # ------------------------------------------------------------------
    def dashboard_stats(self) -> dict:
        """Full stats payload: totals, latest users, subscriptions, timelines."""
        return self._request("GET", f"{self.base_url}{DASHBOARD_STATS_PATH}", DASHBOARD_STATS_PATH)


def fetch_dashboard_data(client: StatsClient, max_workers: int = 5) -> dict:
    """Fetch every overview collection concurrently.

    Returns
    -------
    Dict with structure:
    {
        "data": {
            "total_users": int | None,
            "total_conversations": int | None,
            "education_stats": dict | None,
            "conversations": list | None,
            "notes": list | None,
        },
        "errors": {"notes": "Failed to fetch get_user_note_info: 500 ...", ...},
    }
    """
    calls = {
        "total_users": client.overall_user_count,
        "total_conversations": client.overall_conversation_count,
        "education_stats": client.education_stats,
        "conversations": client.conversation_info,
        "notes": client.note_info,
    }

    results: dict[str, Any] = {}
    errors: dict[str, str] = {}
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        future_to_name = {executor.submit(func): name for name, func in calls.items()}
        for future in as_completed(future_to_name):
            name = future_to_name[future]
            try:
                results[name] = future.result()
            except StatsProviderError as exc:
                logger.warning("Could not load %s: %s", name, exc)
                errors[name] = str(exc)

    data = {name: results.get(name) for name in calls}
    logger.info("Fetched %d/%d dashboard collections", len(results), len(calls))
    return {"data": data, "errors": errors}
