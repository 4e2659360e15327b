"""Pydantic schemas for the upstream JSON payloads the dashboard consumes.

Only the fields the dashboard reads are declared; anything else in the
payload is ignored. Providers validate at the boundary and convert
:class:`pydantic.ValidationError` into ``MalformedResponse``.
"""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

__all__ = [
    "PostcodeResult",
    "PostcodeLookupResponse",
    "WeatherCondition",
    "MainReadings",
    "CurrentWeatherResponse",
    "Intensity",
    "IntensityPeriod",
    "NationalIntensityResponse",
    "RegionalIntensityBlock",
    "RegionalIntensityResponse",
    "RegionLookupEntry",
    "RegionLookupBlock",
    "RegionLookupResponse",
    "HistoryEntry",
    "IntensityHistoryResponse",
    "GenerateContentResponse",
]


# -- postcodes.io ------------------------------------------------------------
class PostcodeResult(BaseModel):
    latitude: float
    longitude: float
    postcode: Optional[str] = None
    outcode: Optional[str] = None


class PostcodeLookupResponse(BaseModel):
    result: PostcodeResult


# -- OpenWeather -------------------------------------------------------------
class WeatherCondition(BaseModel):
    description: str
    icon: str


class MainReadings(BaseModel):
    temp: float
    feels_like: float
    humidity: int


class CurrentWeatherResponse(BaseModel):
    name: str = ""
    weather: List[WeatherCondition] = Field(min_length=1)
    main: MainReadings


# -- Carbon Intensity API (National Grid ESO) -------------------------------
class Intensity(BaseModel):
    forecast: Optional[float] = None
    actual: Optional[float] = None
    index: Optional[str] = None


class IntensityPeriod(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_: str = Field(alias="from")
    to: Optional[str] = None
    intensity: Intensity


class NationalIntensityResponse(BaseModel):
    data: List[IntensityPeriod]


class RegionalIntensityBlock(BaseModel):
    regionid: Optional[int] = None
    shortname: Optional[str] = None
    data: List[IntensityPeriod]


class RegionalIntensityResponse(BaseModel):
    data: RegionalIntensityBlock


class RegionLookupEntry(BaseModel):
    regionid: Optional[int] = None


class RegionLookupBlock(BaseModel):
    regionid: Optional[int] = None
    shortname: Optional[str] = None
    data: List[RegionLookupEntry] = Field(default_factory=list)

    def resolved_region_id(self) -> Optional[int]:
        if self.regionid is not None:
            return self.regionid
        if self.data:
            return self.data[0].regionid
        return None


class RegionLookupResponse(BaseModel):
    data: List[RegionLookupBlock] = Field(default_factory=list)


# -- Electricity Maps ----------------------------------------------------------
class HistoryEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    timestamp: str = Field(alias="datetime")
    carbon_intensity: Optional[float] = Field(default=None, alias="carbonIntensity")


class IntensityHistoryResponse(BaseModel):
    zone: Optional[str] = None
    history: List[HistoryEntry]


# -- Gemini generateContent ----------------------------------------------------
class Part(BaseModel):
    text: Optional[str] = None


class Content(BaseModel):
    parts: List[Part] = Field(default_factory=list)


class Candidate(BaseModel):
    content: Optional[Content] = None


class GenerateContentResponse(BaseModel):
    candidates: List[Candidate] = Field(default_factory=list)

    def first_text(self) -> Optional[str]:
        if not self.candidates:
            return None
        content = self.candidates[0].content
        if content is None or not content.parts:
            return None
        return content.parts[0].text
