"""OpenWeather weather provider."""
from __future__ import annotations

from typing import Optional

from carbondash.core.abstractions import Location, WeatherProvider, WeatherSnapshot
from carbondash.core.errors import ConfigurationError, UpstreamError
from carbondash.core.providers.base import HttpProvider
from carbondash.core.schemas import CurrentWeatherResponse

PLACEHOLDER_API_KEY = "YOUR_OPENWEATHERMAP_API_KEY"


class OpenWeatherProvider(HttpProvider, WeatherProvider):
    """Integration with the OpenWeather current weather endpoint."""

    name = "openweather"

    def __init__(
        self,
        *,
        api_key: Optional[str],
        base_url: str = "https://api.openweathermap.org/data/2.5/weather",
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.api_key = api_key
        self.base_url = base_url

    def get_weather(self, location: Location) -> WeatherSnapshot:  # noqa: D401
        """Return current conditions from OpenWeather."""
        if not self.api_key or self.api_key == PLACEHOLDER_API_KEY:
            raise ConfigurationError(
                "OpenWeatherMap API Key is missing. Please set OPENWEATHERMAP_API_KEY."
            )

        params = {
            "lat": location.latitude,
            "lon": location.longitude,
            "appid": self.api_key,
            "units": "metric",
        }
        response = self._request("GET", self.base_url, params=params)
        if not response.ok:
            message = self._error_message(response) or f"HTTP {response.status_code}"
            raise UpstreamError(f"Weather API Error: {message}", status_code=response.status_code)

        data = self._parse(CurrentWeatherResponse, self._json(response))
        condition = data.weather[0]
        return WeatherSnapshot(
            place=data.name,
            description=condition.description,
            icon_id=condition.icon,
            temperature_c=data.main.temp,
            feels_like_c=data.main.feels_like,
            humidity_pct=data.main.humidity,
        )


__all__ = ["OpenWeatherProvider"]
