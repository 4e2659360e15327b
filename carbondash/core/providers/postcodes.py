"""postcodes.io location resolver."""
from __future__ import annotations

import re
from typing import Optional

from carbondash.core.abstractions import Location, LocationResolver
from carbondash.core.errors import InvalidLocation
from carbondash.core.providers.base import HttpProvider
from carbondash.core.schemas import PostcodeLookupResponse

_WHITESPACE = re.compile(r"\s+")


def normalize_postcode(raw: Optional[str]) -> str:
    """Strip all whitespace and upper-case, ``"sw1a 0aa"`` -> ``"SW1A0AA"``."""
    return _WHITESPACE.sub("", raw or "").upper()


class PostcodesIoResolver(HttpProvider, LocationResolver):
    """Resolve UK postcodes to coordinates via postcodes.io."""

    name = "postcodes.io"

    def __init__(self, *, base_url: str = "https://api.postcodes.io", **kwargs) -> None:
        super().__init__(**kwargs)
        self.base_url = base_url.rstrip("/")

    def resolve(self, postcode: str) -> Location:
        code = normalize_postcode(postcode)
        if not code:
            raise InvalidLocation("Please enter a postcode.")

        response = self._request("GET", f"{self.base_url}/postcodes/{code}")
        if not response.ok:
            raise InvalidLocation("Invalid UK Postcode. Please check the postcode entered.")

        result = self._parse(PostcodeLookupResponse, self._json(response)).result
        self._log.debug("Resolved %s to %s,%s", code, result.latitude, result.longitude)
        return Location(
            latitude=result.latitude,
            longitude=result.longitude,
            postcode=code,
            outcode=result.outcode,
        )


__all__ = ["PostcodesIoResolver", "normalize_postcode"]
