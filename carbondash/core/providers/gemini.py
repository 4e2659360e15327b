"""Household energy-saving tips from the Gemini generateContent endpoint."""
from __future__ import annotations

from typing import Optional

from carbondash.core.abstractions import TipGenerator, TipRequest
from carbondash.core.errors import ConfigurationError, MalformedResponse, UpstreamError
from carbondash.core.providers.base import HttpProvider
from carbondash.core.schemas import GenerateContentResponse

DEFAULT_MODEL = "gemini-2.0-flash"


def format_intensity(value: float) -> str:
    """Render ``120.0`` as ``120`` and keep fractional values as given."""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def build_tip_prompt(tip_request: TipRequest) -> str:
    comparison = ""
    if tip_request.reference_intensity is not None:
        comparison = (
            f" (compared to a national average of "
            f"{format_intensity(tip_request.reference_intensity)} gCO2/kWh)"
        )
    return (
        f"Given that the current carbon intensity in {tip_request.region_label} is "
        f"{format_intensity(tip_request.current_intensity)} gCO2/kWh{comparison}, "
        "provide 3 concise and actionable tips for a UK household to reduce their "
        "electricity carbon footprint. Format the response as a simple list."
    )


class GeminiTipGenerator(HttpProvider, TipGenerator):
    """Single-turn prompt relay; the returned text is not interpreted."""

    name = "gemini"

    def __init__(
        self,
        *,
        api_key: Optional[str],
        model: str = DEFAULT_MODEL,
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    def generate(self, tip_request: TipRequest) -> str:
        if not self.api_key:
            raise ConfigurationError("Gemini API Key is missing. Please set GEMINI_API_KEY.")

        prompt = build_tip_prompt(tip_request)
        self._log.info("Requesting tips for %s", tip_request.region_label)
        payload = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
        response = self._request(
            "POST",
            self.endpoint,
            params={"key": self.api_key},
            json=payload,
            headers={"Content-Type": "application/json"},
        )
        if not response.ok:
            raise UpstreamError(
                f"Gemini API call failed: {response.status_code} {response.text[:200]}".rstrip(),
                status_code=response.status_code,
            )

        text = self._parse(GenerateContentResponse, self._json(response)).first_text()
        if text is None:
            raise MalformedResponse("Gemini API returned an unexpected response structure.")
        return text


__all__ = ["GeminiTipGenerator", "build_tip_prompt", "format_intensity"]
