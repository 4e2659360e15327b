from __future__ import annotations

from datetime import datetime, timezone

import pytest
import requests

from carbondash.core.abstractions import Location
from carbondash.core.errors import (
    ConfigurationError,
    InvalidLocation,
    MalformedResponse,
    RegionNotFound,
    UpstreamError,
)
from carbondash.core.providers.carbonintensity import CarbonIntensityRegionalFetcher, carbon_window
from carbondash.core.providers.electricitymaps import GRID_LABEL, ElectricityMapsHistoryFetcher
from carbondash.core.providers.openweather import OpenWeatherProvider
from carbondash.core.providers.postcodes import PostcodesIoResolver, normalize_postcode


LONDON = Location(latitude=51.5, longitude=-0.14, postcode="SW1A0AA", outcode="SW1A")
HISTORY_URL = "https://emaps.test/v3/carbon-intensity/history"


def test_normalize_postcode_strips_whitespace_and_upper_cases() -> None:
    assert normalize_postcode(" sw1a \t0aa ") == "SW1A0AA"
    assert normalize_postcode(None) == ""


def test_postcode_whitespace_is_stripped_before_request(requests_mock, postcode_payload) -> None:
    requests_mock.get("https://api.postcodes.io/postcodes/SW1A0AA", json=postcode_payload)

    location = PostcodesIoResolver().resolve("SW1A 0AA")

    assert "SW1A0AA" in requests_mock.last_request.url
    assert location.latitude == 51.5
    assert location.longitude == -0.14
    assert location.postcode == "SW1A0AA"
    assert location.outcode == "SW1A"
    assert location.region_id is None


def test_postcode_lookup_failure_is_invalid_location(requests_mock) -> None:
    requests_mock.get(
        "https://api.postcodes.io/postcodes/XX11XX",
        status_code=404,
        json={"status": 404, "error": "Invalid postcode"},
    )

    with pytest.raises(InvalidLocation, match="Invalid UK Postcode"):
        PostcodesIoResolver().resolve("xx1 1xx")


def test_blank_postcode_is_rejected_without_request(requests_mock) -> None:
    with pytest.raises(InvalidLocation, match="Please enter a postcode"):
        PostcodesIoResolver().resolve("   ")

    assert requests_mock.call_count == 0


def test_postcode_without_coordinates_is_malformed(requests_mock) -> None:
    requests_mock.get(
        "https://api.postcodes.io/postcodes/SW1A0AA",
        json={"status": 200, "result": {"postcode": "SW1A 0AA", "latitude": None, "longitude": None}},
    )

    with pytest.raises(MalformedResponse):
        PostcodesIoResolver().resolve("SW1A 0AA")


def test_postcode_transport_failure_is_upstream_error(requests_mock) -> None:
    requests_mock.get("https://api.postcodes.io/postcodes/SW1A0AA", exc=requests.ConnectionError)

    with pytest.raises(UpstreamError):
        PostcodesIoResolver().resolve("SW1A 0AA")


def test_openweather_normalization(requests_mock, weather_payload) -> None:
    provider = OpenWeatherProvider(api_key="test", base_url="https://weather.test/data")
    requests_mock.get("https://weather.test/data", json=weather_payload)

    snapshot = provider.get_weather(LONDON)

    query = requests_mock.last_request.qs
    assert query["units"] == ["metric"]
    assert query["lat"] == ["51.5"]
    assert snapshot.place == "Westminster"
    assert snapshot.description == "light rain"
    assert snapshot.icon_id == "10d"
    assert snapshot.icon_url == "https://openweathermap.org/img/wn/10d@2x.png"
    assert snapshot.temperature_c == 11.6
    assert snapshot.feels_like_c == 10.4
    assert snapshot.humidity_pct == 81


@pytest.mark.parametrize("api_key", [None, "", "YOUR_OPENWEATHERMAP_API_KEY"])
def test_openweather_requires_credential(requests_mock, api_key) -> None:
    provider = OpenWeatherProvider(api_key=api_key)

    with pytest.raises(ConfigurationError):
        provider.get_weather(LONDON)

    assert requests_mock.call_count == 0


def test_openweather_failure_carries_provider_message(requests_mock) -> None:
    provider = OpenWeatherProvider(api_key="bad", base_url="https://weather.test/data")
    requests_mock.get(
        "https://weather.test/data",
        status_code=401,
        json={"cod": 401, "message": "Invalid API key."},
    )

    with pytest.raises(UpstreamError, match="Weather API Error: Invalid API key.") as excinfo:
        provider.get_weather(LONDON)

    assert excinfo.value.status_code == 401


def test_openweather_unexpected_shape_is_malformed(requests_mock) -> None:
    provider = OpenWeatherProvider(api_key="test", base_url="https://weather.test/data")
    requests_mock.get("https://weather.test/data", json={"name": "Nowhere", "weather": [], "main": {}})

    with pytest.raises(MalformedResponse):
        provider.get_weather(LONDON)


def test_carbon_window_spans_a_day_either_side() -> None:
    now = datetime(2024, 3, 10, 12, 7, 45, tzinfo=timezone.utc)

    assert carbon_window(now) == ("2024-03-09T12:07Z", "2024-03-11T12:07Z")


def test_regional_fetch_returns_both_series(upstreams, now, urls) -> None:
    readings = CarbonIntensityRegionalFetcher().fetch(LONDON, now)

    assert readings.region_id == "13"
    assert readings.region_label == "London"
    assert readings.primary["2024-03-10T12:00Z"] == 120
    assert readings.primary["2024-03-10T11:30Z"] is None
    assert readings.secondary == {
        "2024-03-10T11:00Z": 200,
        "2024-03-10T11:30Z": 190,
        "2024-03-10T12:00Z": 180,
    }
    requested = {request.url for request in upstreams.request_history}
    assert urls.regional in requested
    assert urls.national in requested


def test_region_lookup_accepts_top_level_region_id(requests_mock) -> None:
    requests_mock.get(
        "https://api.carbonintensity.org.uk/regional/postcode/RG10",
        json={"data": [{"regionid": 12, "shortname": "South England", "data": []}]},
    )

    assert CarbonIntensityRegionalFetcher().lookup_region("RG10") == (12, "South England")


def test_region_lookup_error_message_is_user_legible(requests_mock) -> None:
    requests_mock.get(
        "https://api.carbonintensity.org.uk/regional/postcode/BT1",
        status_code=400,
        json={"error": {"code": "400 Bad Request", "message": "Please enter a valid postcode"}},
    )

    with pytest.raises(RegionNotFound, match="This may not be a mainland UK postcode"):
        CarbonIntensityRegionalFetcher().lookup_region("BT1")


def test_region_lookup_outage_is_upstream_error(requests_mock) -> None:
    requests_mock.get(
        "https://api.carbonintensity.org.uk/regional/postcode/SW1A",
        status_code=503,
        json={"error": {"code": "503 Service Unavailable", "message": "Try again later"}},
    )

    with pytest.raises(UpstreamError, match="look up carbon intensity region") as excinfo:
        CarbonIntensityRegionalFetcher().lookup_region("SW1A")

    assert excinfo.value.status_code == 503
    assert not isinstance(excinfo.value, RegionNotFound)


@pytest.mark.parametrize(
    "payload",
    [
        {"data": []},
        {"data": [{"shortname": "Somewhere", "data": [{}]}]},
    ],
)
def test_region_lookup_without_region_is_region_not_found(requests_mock, payload) -> None:
    requests_mock.get("https://api.carbonintensity.org.uk/regional/postcode/ZE1", json=payload)

    with pytest.raises(RegionNotFound, match="valid mainland UK postcode"):
        CarbonIntensityRegionalFetcher().lookup_region("ZE1")


def test_national_failure_names_the_national_series(upstreams, now, urls) -> None:
    upstreams.get(urls.national, status_code=500, text="server error")

    with pytest.raises(UpstreamError, match="national carbon data"):
        CarbonIntensityRegionalFetcher().fetch(LONDON, now)


def test_regional_failure_is_reported_first(upstreams, now, urls) -> None:
    upstreams.get(urls.regional, status_code=502, text="bad gateway")
    upstreams.get(urls.national, status_code=500, text="server error")

    with pytest.raises(UpstreamError, match="regional carbon data"):
        CarbonIntensityRegionalFetcher().fetch(LONDON, now)


def test_history_fetch_uses_coordinates_and_auth_header(requests_mock, now) -> None:
    fetcher = ElectricityMapsHistoryFetcher(api_key="emaps-key", base_url="https://emaps.test/v3")
    requests_mock.get(
        HISTORY_URL,
        json={
            "zone": "GB",
            "history": [
                {"datetime": "2024-03-10T11:00:00.000Z", "carbonIntensity": 210},
                {"datetime": "2024-03-10T10:00:00.000Z", "carbonIntensity": 230},
            ],
        },
    )

    readings = fetcher.fetch(LONDON, now)

    assert requests_mock.last_request.headers["auth-token"] == "emaps-key"
    assert requests_mock.last_request.qs["lon"] == ["-0.14"]
    assert readings.secondary is None
    assert readings.region_label == "GB"
    assert readings.primary == {
        "2024-03-10T11:00:00.000Z": 210,
        "2024-03-10T10:00:00.000Z": 230,
    }


def test_history_without_zone_uses_generic_label(requests_mock, now) -> None:
    fetcher = ElectricityMapsHistoryFetcher(api_key="emaps-key", base_url="https://emaps.test/v3")
    requests_mock.get(HISTORY_URL, json={"history": []})

    assert fetcher.fetch(LONDON, now).region_label == GRID_LABEL


def test_history_missing_field_is_upstream_error(requests_mock, now) -> None:
    fetcher = ElectricityMapsHistoryFetcher(api_key="emaps-key", base_url="https://emaps.test/v3")
    requests_mock.get(HISTORY_URL, json={"zone": "GB"})

    with pytest.raises(UpstreamError, match="history"):
        fetcher.fetch(LONDON, now)


def test_history_requires_credential(requests_mock, now) -> None:
    with pytest.raises(ConfigurationError):
        ElectricityMapsHistoryFetcher(api_key=None).fetch(LONDON, now)

    assert requests_mock.call_count == 0
