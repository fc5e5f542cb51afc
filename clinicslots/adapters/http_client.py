"""
Blocking JSON-over-HTTPS client shared by provider adapters.
"""

import logging
from typing import Any, Dict, Optional

import requests

from ..domain.exceptions import ProviderFetchError

logger = logging.getLogger(__name__)


DEFAULT_TIMEOUT_SECONDS = 10.0


class BookingHttpClient:
    """
    Thin wrapper around requests for provider booking APIs.

    Every call is bounded by the configured timeout. Network errors,
    non-success statuses and non-JSON bodies are all reported as
    ProviderFetchError so adapters only handle one failure type.
    """

    def __init__(
        self,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        headers: Optional[Dict[str, str]] = None
    ):
        """
        Initialize the client.

        Args:
            timeout_seconds: Connect/read timeout applied to every request
            headers: Extra headers sent with every request
        """
        if timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be greater than zero, got {timeout_seconds}")

        self.timeout_seconds = timeout_seconds
        self.headers = {"Accept": "application/json"}
        if headers:
            self.headers.update(headers)

    def get_json(self, url: str) -> Any:
        """
        GET a URL and decode its JSON body.

        Raises:
            ProviderFetchError: If the request fails or the body is not JSON
        """
        logger.debug("GET %s", url)
        try:
            response = requests.get(url, headers=self.headers, timeout=self.timeout_seconds)
            response.raise_for_status()
        except requests.exceptions.RequestException as exc:
            raise ProviderFetchError(f"GET {url} failed: {exc}") from exc

        return self._decode(response, url)

    def post_json(self, url: str, payload: Dict[str, Any]) -> Any:
        """
        POST a JSON payload and decode the JSON response.

        Raises:
            ProviderFetchError: If the request fails or the body is not JSON
        """
        logger.debug("POST %s", url)
        try:
            response = requests.post(
                url,
                headers=self.headers,
                json=payload,
                timeout=self.timeout_seconds
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as exc:
            raise ProviderFetchError(f"POST {url} failed: {exc}") from exc

        return self._decode(response, url)

    @staticmethod
    def _decode(response: requests.Response, url: str) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise ProviderFetchError(f"Response from {url} is not valid JSON: {exc}") from exc
