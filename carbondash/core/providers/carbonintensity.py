"""National Grid ESO Carbon Intensity API: regional forecast around now."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, Optional, Tuple

from carbondash.core.abstractions import CarbonIntensityFetcher, CarbonReadings, Location
from carbondash.core.concurrency import gather
from carbondash.core.errors import RegionNotFound, UpstreamError
from carbondash.core.providers.base import HttpProvider
from carbondash.core.schemas import (
    IntensityPeriod,
    NationalIntensityResponse,
    RegionalIntensityResponse,
    RegionLookupResponse,
)

WINDOW = timedelta(hours=24)
WINDOW_FORMAT = "%Y-%m-%dT%H:%MZ"

REGION_HELP = "Could not determine carbon intensity region for this postcode. Please ensure it is a valid mainland UK postcode."


def carbon_window(now: datetime, span: timedelta = WINDOW) -> Tuple[str, str]:
    """Return the ``(from, to)`` pair spanning ``now - span`` to ``now + span`` in UTC."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    now = now.astimezone(timezone.utc)
    return (now - span).strftime(WINDOW_FORMAT), (now + span).strftime(WINDOW_FORMAT)


def forecast_by_period(periods: Iterable[IntensityPeriod]) -> Dict[str, Optional[float]]:
    series: Dict[str, Optional[float]] = {}
    for period in periods:
        series.setdefault(period.from_, period.intensity.forecast)
    return series


class CarbonIntensityRegionalFetcher(HttpProvider, CarbonIntensityFetcher):
    """Regional and national forecast series keyed by interval start."""

    name = "carbonintensity"

    def __init__(self, *, base_url: str = "https://api.carbonintensity.org.uk", **kwargs) -> None:
        super().__init__(**kwargs)
        self.base_url = base_url.rstrip("/")

    def fetch(self, location: Location, now: datetime) -> CarbonReadings:
        region_id, region_name = self.lookup_region(location.outcode or location.postcode)
        start, end = carbon_window(now)
        regional, national = gather(
            lambda: self._regional(start, end, region_id),
            lambda: self._national(start, end),
        )
        label = region_name or regional.data.shortname or f"region {region_id}"
        self._log.info(
            "Fetched %s regional and %s national periods for region %s",
            len(regional.data.data),
            len(national.data),
            region_id,
        )
        return CarbonReadings(
            primary=forecast_by_period(regional.data.data),
            secondary=forecast_by_period(national.data),
            region_label=label,
            region_id=str(region_id),
        )

    def lookup_region(self, postcode: str) -> Tuple[int, Optional[str]]:
        response = self._request("GET", f"{self.base_url}/regional/postcode/{postcode}")
        if response.status_code >= 500:
            raise UpstreamError(
                "Failed to look up carbon intensity region.", status_code=response.status_code
            )
        if not response.ok:
            message = self._error_message(response)
            if message:
                raise RegionNotFound(
                    f"Carbon Intensity API Error: {message}. This may not be a mainland UK postcode."
                )
            raise RegionNotFound(REGION_HELP)

        payload = self._parse(RegionLookupResponse, self._json(response))
        if not payload.data:
            raise RegionNotFound(REGION_HELP)
        block = payload.data[0]
        region_id = block.resolved_region_id()
        if region_id is None:
            raise RegionNotFound(REGION_HELP)
        return region_id, block.shortname

    def _regional(self, start: str, end: str, region_id: int) -> RegionalIntensityResponse:
        url = f"{self.base_url}/regional/intensity/{start}/{end}/regionid/{region_id}"
        response = self._request("GET", url)
        if not response.ok:
            raise UpstreamError("Failed to fetch regional carbon data.", status_code=response.status_code)
        return self._parse(RegionalIntensityResponse, self._json(response))

    def _national(self, start: str, end: str) -> NationalIntensityResponse:
        response = self._request("GET", f"{self.base_url}/intensity/{start}/{end}")
        if not response.ok:
            raise UpstreamError("Failed to fetch national carbon data.", status_code=response.status_code)
        return self._parse(NationalIntensityResponse, self._json(response))


__all__ = ["CarbonIntensityRegionalFetcher", "carbon_window", "forecast_by_period"]
