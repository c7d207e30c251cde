from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import requests
from requests import Response


logger = logging.getLogger(__name__)


class ProviderError(RuntimeError):
    """Base provider error."""


class NetworkError(ProviderError):
    """Transport failure, timeout, server error or undecodable body."""


class RateLimited(ProviderError):
    """Raised when a provider reports a quota/usage limit issue."""


class InvalidKey(ProviderError):
    """Raised when a provider rejects the configured credentials."""


class NotFound(ProviderError):
    """Raised when a lookup has no answer for the requested input."""


class SensorUnavailable(ProviderError):
    """The device position cannot be read."""


class PermissionDenied(SensorUnavailable):
    """The user refused access to the device position."""


class PositionUnavailable(SensorUnavailable):
    """The device has no usable positioning capability."""


@dataclass
class RequestConfig:
    timeout: float = 10.0
    headers: Dict[str, str] = field(default_factory=dict)


class HttpProvider:
    """Base class that adds timeouts and error mapping for HTTP providers.

    Every request is attempted once. Retrying is left to the caller, which
    usually moves on to its next fallback instead.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        request_config: Optional[RequestConfig] = None,
    ) -> None:
        self.request_config = request_config or RequestConfig()
        self.session = session or self._build_session(self.request_config)
        self._log = logging.getLogger(self.__class__.__name__)

    def _build_session(self, config: RequestConfig) -> requests.Session:
        session = requests.Session()
        session.headers.update(config.headers)
        return session

    def _handle_response(self, response: Response) -> Response:
        if response.status_code == 429:
            self._log.warning("Quota exceeded: %s", response.text)
            raise RateLimited("quota exceeded")
        if response.status_code in (401, 403):
            self._log.error("Credentials rejected: %s", response.status_code)
            raise InvalidKey(f"HTTP {response.status_code}")
        if response.status_code == 404:
            raise NotFound("HTTP 404")
        if response.status_code >= 400:
            self._log.error("Provider returned %s: %s", response.status_code, response.text)
            raise NetworkError(f"HTTP {response.status_code}")
        return response

    def _request(self, method: str, url: str, **kwargs) -> Response:
        try:
            response = self.session.request(
                method,
                url,
                timeout=self.request_config.timeout,
                **kwargs,
            )
        except requests.Timeout as exc:
            self._log.error("Request timed out", exc_info=exc)
            raise NetworkError("timeout") from exc
        except requests.RequestException as exc:
            self._log.error("Request failed", exc_info=exc)
            raise NetworkError("request failed") from exc
        return self._handle_response(response)

    def _get_json(self, url: str, **kwargs) -> Any:
        response = self._request("GET", url, **kwargs)
        try:
            return response.json()
        except ValueError as exc:
            self._log.error("Failed to decode JSON", exc_info=exc)
            raise NetworkError("invalid json") from exc


__all__ = [
    "HttpProvider",
    "InvalidKey",
    "NetworkError",
    "NotFound",
    "PermissionDenied",
    "PositionUnavailable",
    "ProviderError",
    "RateLimited",
    "RequestConfig",
    "SensorUnavailable",
]
