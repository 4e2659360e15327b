"""Core abstractions for the carbon dashboard domain."""
from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Mapping, Optional, Protocol, Tuple


ICON_URL_TEMPLATE = "https://openweathermap.org/img/wn/{icon}@2x.png"


@dataclass(frozen=True, slots=True)
class Location:
    """Coordinates resolved from a postcode."""

    latitude: float
    longitude: float
    postcode: str
    outcode: Optional[str] = None
    region_id: Optional[str] = None
    region_name: Optional[str] = None


@dataclass(frozen=True, slots=True)
class WeatherSnapshot:
    """Current conditions in provider-native metric units."""

    place: str
    description: str
    icon_id: str
    temperature_c: float
    feels_like_c: float
    humidity_pct: int

    @property
    def icon_url(self) -> str:
        return ICON_URL_TEMPLATE.format(icon=self.icon_id)


@dataclass(frozen=True, slots=True)
class IntensitySample:
    """A paired carbon intensity reading in gCO2/kWh.

    ``timestamp_iso`` is the upstream value verbatim. ``display_label`` is
    cosmetic and never used for ordering.
    """

    timestamp_iso: str
    local_intensity: float
    national_intensity: Optional[float]
    display_label: str


IntensitySeries = Tuple[IntensitySample, ...]


@dataclass(frozen=True, slots=True)
class CarbonReadings:
    """Raw intensity series keyed by upstream timestamp."""

    primary: Mapping[str, Optional[float]]
    secondary: Optional[Mapping[str, Optional[float]]]
    region_label: str
    region_id: Optional[str] = None


@dataclass(frozen=True, slots=True)
class TipRequest:
    region_label: str
    current_intensity: float
    reference_intensity: Optional[float]


class FetchPhase(str, enum.Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class FetchState:
    phase: FetchPhase = FetchPhase.IDLE
    error: Optional[str] = None
    error_code: Optional[str] = None


@dataclass(frozen=True, slots=True)
class DashboardState:
    """Read-only snapshot handed to the presentation layer."""

    fetch_state: FetchState = FetchState()
    location: Optional[Location] = None
    weather: Optional[WeatherSnapshot] = None
    series: Optional[IntensitySeries] = None
    region_label: str = ""
    tips: Optional[str] = None
    tips_loading: bool = False


class LocationResolver(Protocol):
    """Turns free-text postcodes into coordinates."""

    def resolve(self, postcode: str) -> Location:
        ...


class WeatherProvider(Protocol):
    """A data source capable of returning current weather."""

    name: str

    def get_weather(self, location: Location) -> WeatherSnapshot:
        """Fetch the current conditions at the location."""
        ...


class CarbonIntensityFetcher(Protocol):
    """Returns local (and optionally national) intensity series around ``now``."""

    name: str

    def fetch(self, location: Location, now: datetime) -> CarbonReadings:
        ...


class TipGenerator(Protocol):
    def generate(self, tip_request: TipRequest) -> str:
        """Return freeform energy-saving advice for the request."""
        ...
