"""REST API views exposing the dashboard state to the presentation layer."""
from __future__ import annotations

import math
from dataclasses import asdict
from functools import lru_cache
from typing import Any, Dict, Optional
from uuid import uuid4
from zoneinfo import ZoneInfo

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from carbondash.core.abstractions import CarbonIntensityFetcher, DashboardState, WeatherSnapshot
from carbondash.core.providers.base import RequestConfig
from carbondash.core.providers.carbonintensity import CarbonIntensityRegionalFetcher
from carbondash.core.providers.electricitymaps import ElectricityMapsHistoryFetcher
from carbondash.core.providers.gemini import GeminiTipGenerator
from carbondash.core.providers.openweather import OpenWeatherProvider
from carbondash.core.providers.postcodes import PostcodesIoResolver
from carbondash.core.services.dashboard import DashboardService
from carbondash.core.services.registry import DashboardRegistry

SESSION_KEY = "dashboard_id"
NATIONAL_LEGEND = "National Average"


def _build_carbon_fetcher(request_config: RequestConfig) -> CarbonIntensityFetcher:
    provider = settings.CARBON_PROVIDER
    if provider == "region-forecast":
        return CarbonIntensityRegionalFetcher(
            base_url=settings.CARBON_INTENSITY_BASE_URL, request_config=request_config
        )
    if provider == "coordinate-history":
        return ElectricityMapsHistoryFetcher(
            api_key=settings.ELECTRICITYMAPS_API_KEY,
            base_url=settings.ELECTRICITYMAPS_BASE_URL,
            request_config=request_config,
        )
    raise ImproperlyConfigured(f"Unknown CARBON_PROVIDER {provider!r}")


def build_dashboard_service() -> DashboardService:
    request_config = RequestConfig(timeout=settings.UPSTREAM_TIMEOUT)
    return DashboardService(
        resolver=PostcodesIoResolver(base_url=settings.POSTCODES_BASE_URL, request_config=request_config),
        weather_provider=OpenWeatherProvider(
            api_key=settings.OPENWEATHERMAP_API_KEY,
            base_url=settings.OPENWEATHER_BASE_URL,
            request_config=request_config,
        ),
        carbon_fetcher=_build_carbon_fetcher(request_config),
        tip_generator=GeminiTipGenerator(
            api_key=settings.GEMINI_API_KEY,
            model=settings.GEMINI_MODEL,
            base_url=settings.GEMINI_BASE_URL,
            request_config=request_config,
        ),
        time_zone=ZoneInfo(settings.DASHBOARD_TIME_ZONE),
    )


@lru_cache(maxsize=1)
def get_dashboard_registry() -> DashboardRegistry:
    return DashboardRegistry(build_dashboard_service, max_sessions=settings.DASHBOARD_MAX_SESSIONS)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _serialize_weather(weather: Optional[WeatherSnapshot]) -> Optional[Dict[str, Any]]:
    if weather is None:
        return None
    payload = asdict(weather)
    payload["icon_url"] = weather.icon_url
    payload["temperature_display"] = _round_half_up(weather.temperature_c)
    payload["feels_like_display"] = _round_half_up(weather.feels_like_c)
    return payload


def serialize_state(state: DashboardState) -> Dict[str, Any]:
    fetch_state = state.fetch_state
    return {
        "fetch_state": {
            "phase": fetch_state.phase.value,
            "error": fetch_state.error,
            "error_code": fetch_state.error_code,
        },
        "location": asdict(state.location) if state.location else None,
        "weather": _serialize_weather(state.weather),
        "series": [asdict(sample) for sample in state.series] if state.series is not None else None,
        "region_label": state.region_label,
        "tips": state.tips,
        "tips_loading": state.tips_loading,
        "legend": {
            "local": f"Your Area ({state.region_label})",
            "national": NATIONAL_LEGEND,
        },
    }


class DashboardMixin:
    """Resolve the dashboard service that belongs to the caller's session."""

    permission_classes = [AllowAny]

    def get_service(self, request) -> DashboardService:
        session_id = request.session.get(SESSION_KEY)
        if not session_id:
            session_id = uuid4().hex
            request.session[SESSION_KEY] = session_id
        return get_dashboard_registry().get(session_id)


class DashboardView(DashboardMixin, APIView):
    """Return the current dashboard snapshot."""

    def get(self, request, *args, **kwargs):  # noqa: D401
        state = self.get_service(request).snapshot()
        return Response(serialize_state(state), status=status.HTTP_200_OK)


class PostcodeView(DashboardMixin, APIView):
    """Run a fetch cycle for the submitted postcode."""

    def post(self, request, *args, **kwargs):  # noqa: D401
        postcode = request.data.get("postcode") if isinstance(request.data, dict) else None
        if postcode is None:
            return Response({"detail": "postcode is required"}, status=status.HTTP_400_BAD_REQUEST)
        if not isinstance(postcode, str):
            return Response({"detail": "postcode must be a string"}, status=status.HTTP_400_BAD_REQUEST)
        state = self.get_service(request).submit_postcode(postcode)
        return Response(serialize_state(state), status=status.HTTP_200_OK)


class TipsView(DashboardMixin, APIView):
    """Generate energy-saving tips from the sample nearest to now."""

    def post(self, request, *args, **kwargs):  # noqa: D401
        state = self.get_service(request).request_tips()
        return Response(serialize_state(state), status=status.HTTP_200_OK)


class ErrorView(DashboardMixin, APIView):
    """Dismiss the currently displayed error."""

    def delete(self, request, *args, **kwargs):  # noqa: D401
        state = self.get_service(request).dismiss_error()
        return Response(serialize_state(state), status=status.HTTP_200_OK)
