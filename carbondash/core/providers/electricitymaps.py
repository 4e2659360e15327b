"""Electricity Maps carbon intensity history keyed by coordinates."""
from __future__ import annotations

from datetime import datetime
from typing import Dict, Optional

from carbondash.core.abstractions import CarbonIntensityFetcher, CarbonReadings, Location
from carbondash.core.errors import ConfigurationError, UpstreamError
from carbondash.core.providers.base import HttpProvider
from carbondash.core.schemas import IntensityHistoryResponse

GRID_LABEL = "your local grid"


class ElectricityMapsHistoryFetcher(HttpProvider, CarbonIntensityFetcher):
    """Recent grid intensity at a location. There is no national reference series.

    The provider decides the history window itself, so ``now`` is unused.
    """

    name = "electricitymaps"

    def __init__(
        self,
        *,
        api_key: Optional[str],
        base_url: str = "https://api.electricitymap.org/v3",
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")

    def fetch(self, location: Location, now: datetime) -> CarbonReadings:
        if not self.api_key:
            raise ConfigurationError(
                "Electricity Maps API Key is missing. Please set ELECTRICITYMAPS_API_KEY."
            )

        response = self._request(
            "GET",
            f"{self.base_url}/carbon-intensity/history",
            params={"lat": location.latitude, "lon": location.longitude},
            headers={"auth-token": self.api_key},
        )
        if not response.ok:
            message = self._error_message(response) or f"HTTP {response.status_code}"
            raise UpstreamError(f"Carbon Intensity API Error: {message}", status_code=response.status_code)

        payload = self._json(response)
        if not isinstance(payload, dict) or "history" not in payload:
            raise UpstreamError("Carbon Intensity API Error: response did not include a history.")
        data = self._parse(IntensityHistoryResponse, payload)

        primary: Dict[str, Optional[float]] = {}
        for entry in data.history:
            primary.setdefault(entry.timestamp, entry.carbon_intensity)
        return CarbonReadings(primary=primary, secondary=None, region_label=data.zone or GRID_LABEL)


__all__ = ["ElectricityMapsHistoryFetcher", "GRID_LABEL"]
