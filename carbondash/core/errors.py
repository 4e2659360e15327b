"""Error taxonomy shared by providers and the dashboard service."""
from __future__ import annotations

from typing import Optional


class DashboardError(RuntimeError):
    """Base error whose message is safe to show to the user."""

    code = "dashboard_error"


class ConfigurationError(DashboardError):
    """Raised when a required credential is not configured."""

    code = "configuration_error"


class InvalidLocation(DashboardError):
    """Raised when a postcode cannot be resolved to coordinates."""

    code = "invalid_location"


class RegionNotFound(DashboardError):
    """Raised for valid postcodes outside the supported grid regions."""

    code = "region_not_found"


class UpstreamError(DashboardError):
    """Raised when an upstream dependency fails or answers with a non-2xx status."""

    code = "upstream_error"

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MalformedResponse(DashboardError):
    """Raised when a 2xx upstream response does not have the expected shape."""

    code = "malformed_response"


class EmptySeries(DashboardError):
    """Raised when there is no intensity data to act on."""

    code = "empty_series"


__all__ = [
    "DashboardError",
    "ConfigurationError",
    "InvalidLocation",
    "RegionNotFound",
    "UpstreamError",
    "MalformedResponse",
    "EmptySeries",
]
