"""Errors raised by the dashboard data layer."""

from typing import Any


class DashboardError(Exception):
    """Base class for all dashboard data errors."""


class InvalidTimestamp(DashboardError, ValueError):
    """An event's timestamp is missing or cannot be parsed."""

    def __init__(self, index: int, value: Any, field: str | None = None):
        self.index = index
        self.value = value
        self.field = field
        where = f"field '{field}' of " if field else ""
        super().__init__(f"Invalid timestamp in {where}event #{index}: {value!r}")


class UnsupportedRange(DashboardError, ValueError):
    """A time range key outside the registered set."""

    def __init__(self, time_range: Any, supported: list[str] | None = None):
        self.time_range = time_range
        self.supported = supported or []
        msg = f"Unsupported time range: {time_range!r}"
        if self.supported:
            msg += f" (expected one of {', '.join(self.supported)})"
        super().__init__(msg)


class StatsProviderError(DashboardError):
    """A stats endpoint failed, returned a non-2xx status, or sent bad JSON."""

    def __init__(self, endpoint: str, message: str, status_code: int | None = None):
        self.endpoint = endpoint
        self.status_code = status_code
        if status_code is not None:
            message = f"{status_code} {message}"
        super().__init__(f"Failed to fetch {endpoint}: {message}")
