from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Type, TypeVar

import requests
from pydantic import BaseModel, ValidationError
from requests import Response

from carbondash.core.errors import MalformedResponse, UpstreamError


ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass
class RequestConfig:
    timeout: float = 10.0


class HttpProvider:
    """Base class for upstream JSON APIs: timeouts, logging and validation."""

    name = "http"

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        request_config: Optional[RequestConfig] = None,
    ) -> None:
        self.request_config = request_config or RequestConfig()
        self.session = session or requests.Session()
        self._log = logging.getLogger(self.__class__.__name__)

    def _request(self, method: str, url: str, **kwargs) -> Response:
        try:
            response = self.session.request(
                method,
                url,
                timeout=self.request_config.timeout,
                **kwargs,
            )
        except requests.Timeout as exc:
            self._log.error("Request to %s timed out", self.name, exc_info=exc)
            raise UpstreamError(f"{self.name} request timed out") from exc
        except requests.RequestException as exc:
            self._log.error("Request to %s failed", self.name, exc_info=exc)
            raise UpstreamError(f"{self.name} request failed") from exc
        if not response.ok:
            self._log.warning(
                "%s returned %s: %s", self.name, response.status_code, response.text[:500]
            )
        return response

    def _json(self, response: Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            self._log.error("Failed to decode JSON from %s", self.name, exc_info=exc)
            raise MalformedResponse(f"{self.name} returned invalid JSON") from exc

    def _parse(self, model: Type[ModelT], payload: Any) -> ModelT:
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            self._log.error("Unexpected %s payload: %s", self.name, exc)
            raise MalformedResponse(f"{self.name} returned an unexpected response structure") from exc

    @staticmethod
    def _error_message(response: Response) -> Optional[str]:
        """Best-effort extraction of a provider supplied error message."""
        try:
            body = response.json()
        except ValueError:
            return None
        if not isinstance(body, dict):
            return None
        message = body.get("message")
        if isinstance(message, str):
            return message
        error = body.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return error["message"]
        if isinstance(error, str):
            return error
        return None


__all__ = ["HttpProvider", "RequestConfig"]
