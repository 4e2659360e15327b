from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

NOW = datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc)

POSTCODE_URL = "https://api.postcodes.io/postcodes/SW1A0AA"
WEATHER_URL = "https://api.openweathermap.org/data/2.5/weather"
REGION_URL = "https://api.carbonintensity.org.uk/regional/postcode/SW1A"
REGIONAL_URL = (
    "https://api.carbonintensity.org.uk/regional/intensity/"
    "2024-03-09T12:00Z/2024-03-11T12:00Z/regionid/13"
)
NATIONAL_URL = "https://api.carbonintensity.org.uk/intensity/2024-03-09T12:00Z/2024-03-11T12:00Z"


def _period(start: str, forecast):
    return {"from": start, "to": None, "intensity": {"forecast": forecast, "index": "moderate"}}


@pytest.fixture()
def now() -> datetime:
    return NOW


@pytest.fixture()
def postcode_payload() -> dict:
    return {
        "status": 200,
        "result": {"postcode": "SW1A 0AA", "outcode": "SW1A", "latitude": 51.5, "longitude": -0.14},
    }


@pytest.fixture()
def weather_payload() -> dict:
    return {
        "name": "Westminster",
        "weather": [{"id": 500, "description": "light rain", "icon": "10d"}],
        "main": {"temp": 11.6, "feels_like": 10.4, "humidity": 81, "pressure": 1012},
    }


@pytest.fixture()
def region_payload() -> dict:
    return {"data": [{"shortname": "London", "data": [{"regionid": 13}]}]}


@pytest.fixture()
def regional_payload() -> dict:
    return {
        "data": {
            "regionid": 13,
            "shortname": "London",
            "data": [
                _period("2024-03-10T12:00Z", 120),
                _period("2024-03-10T11:00Z", 150),
                _period("2024-03-10T11:30Z", None),
                _period("2024-03-10T12:30Z", 110),
            ],
        }
    }


@pytest.fixture()
def national_payload() -> dict:
    return {
        "data": [
            _period("2024-03-10T11:00Z", 200),
            _period("2024-03-10T11:30Z", 190),
            _period("2024-03-10T12:00Z", 180),
        ]
    }


@pytest.fixture()
def upstreams(
    requests_mock,
    postcode_payload,
    weather_payload,
    region_payload,
    regional_payload,
    national_payload,
):
    """Register successful responses for every upstream of a cycle at ``NOW``."""
    requests_mock.get(POSTCODE_URL, json=postcode_payload)
    requests_mock.get(WEATHER_URL, json=weather_payload)
    requests_mock.get(REGION_URL, json=region_payload)
    requests_mock.get(REGIONAL_URL, json=regional_payload)
    requests_mock.get(NATIONAL_URL, json=national_payload)
    return requests_mock


@pytest.fixture()
def urls() -> SimpleNamespace:
    return SimpleNamespace(
        postcode=POSTCODE_URL,
        weather=WEATHER_URL,
        region=REGION_URL,
        regional=REGIONAL_URL,
        national=NATIONAL_URL,
    )
