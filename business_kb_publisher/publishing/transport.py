"""
HTTP transport for the MediaWiki Action API.

The client talks to the remote API only through a Transport, so tests can
inject a fake one. RequestsTransport owns a requests.Session, which keeps the
login cookies for the lifetime of one publish attempt.
"""

import logging
from typing import Protocol
from urllib.parse import urlparse

import requests
from requests.adapters import HTTPAdapter

from business_kb_publisher.constants import ACTION_API_RATE_LIMIT
from business_kb_publisher.publishing.errors import NetworkError, UnknownRemoteError
from business_kb_publisher.utils.rate_limiting import get_rate_limiter

logger = logging.getLogger(__name__)

_action_api_rate_limiter = get_rate_limiter("action_api", requests_per_second=ACTION_API_RATE_LIMIT)


class Transport(Protocol):
    """Request/response transport for one publish attempt."""

    host: str

    def get(self, params: dict) -> dict:
        ...

    def post(self, data: dict) -> dict:
        ...

    def close(self) -> None:
        ...


def host_of(api_url: str) -> str:
    """Host name identifying a deployment ("test.wikidata.org")."""
    return urlparse(api_url).netloc or api_url


class RequestsTransport:
    """
    Transport backed by requests.

    Raises:
        NetworkError: Timeouts, connection failures and HTTP 5xx
        UnknownRemoteError: Other HTTP errors and non-JSON bodies
    """

    def __init__(
        self,
        api_url: str,
        timeout: float = 30.0,
        user_agent: str = "business-kb-publisher",
        session: requests.Session | None = None,
    ):
        self.api_url = api_url
        self.host = host_of(api_url)
        self.timeout = timeout
        if session is None:
            session = requests.Session()
            # Retries are decided by the publish client, not urllib3
            adapter = HTTPAdapter(pool_connections=1, pool_maxsize=2, max_retries=0)
            session.mount("http://", adapter)
            session.mount("https://", adapter)
        session.headers.update({"User-Agent": user_agent, "Accept": "application/json"})
        self.session = session

    def get(self, params: dict) -> dict:
        return self._request("GET", params=params)

    def post(self, data: dict) -> dict:
        return self._request("POST", data=data)

    def close(self) -> None:
        self.session.close()

    def _request(self, method: str, params: dict | None = None, data: dict | None = None) -> dict:
        action = (params or data or {}).get("action", "?")
        if params is not None:
            params = {**params, "format": "json"}
        if data is not None:
            data = {**data, "format": "json"}

        _action_api_rate_limiter()
        try:
            response = self.session.request(
                method, self.api_url, params=params, data=data, timeout=self.timeout
            )
        except requests.exceptions.Timeout as e:
            raise NetworkError(f"Timed out calling {self.host} ({action}): {e}") from e
        except requests.exceptions.ConnectionError as e:
            raise NetworkError(f"Could not connect to {self.host} ({action}): {e}") from e
        except requests.exceptions.RequestException as e:
            raise UnknownRemoteError(f"Request to {self.host} failed ({action}): {e}") from e

        if response.status_code >= 500:
            raise NetworkError(f"{self.host} returned HTTP {response.status_code} ({action})")
        if response.status_code >= 400:
            raise UnknownRemoteError(f"{self.host} returned HTTP {response.status_code} ({action})")

        try:
            return response.json()
        except ValueError as e:
            raise UnknownRemoteError(f"Non-JSON response from {self.host} ({action})") from e
