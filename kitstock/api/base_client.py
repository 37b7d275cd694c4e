"""HTTP client for key-authenticated JSON REST backends."""

import logging
import httpx
from typing import Any, Dict, Optional
from tenacity import (
    before_sleep_log,
    retry,
    stop_after_attempt,
    wait_exponential,
    wait_none,
    retry_if_exception_type
)

from ..utils.config import get_config
from ..utils.logger import get_api_logger


class BaseClient:
    """
    httpx client that authenticates with an API key and retries transport failures.

    The key is sent twice, as ``apikey`` and as a bearer token, which is what
    the Supabase gateway expects. HTTP error statuses are never retried; they
    are returned for the subclass to map onto exceptions.
    """

    user_agent = "KitStock/1.0"

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
        transport: Optional[httpx.BaseTransport] = None
    ):
        """
        Args:
            base_url: Project URL; ``https://`` is assumed when no scheme is given
            api_key: Key sent on every request
            headers: Extra default headers
            transport: Optional httpx transport (used to stub the network)
        """
        if not base_url.startswith(("https://", "http://")):
            base_url = f"https://{base_url}"
        self.base_url = base_url.rstrip("/")
        self.config = get_config()
        self.logger = get_api_logger()

        default_headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": self.user_agent
        }
        if api_key:
            default_headers["apikey"] = api_key
            default_headers["Authorization"] = f"Bearer {api_key}"
        if headers:
            default_headers.update(headers)

        self.client = httpx.Client(
            base_url=self.base_url,
            headers=default_headers,
            timeout=self.config.api.timeout,
            follow_redirects=True,
            transport=transport
        )

    def _make_request_with_retry(self, method: str, url: str, **kwargs) -> httpx.Response:
        """
        Send a request, retrying timeouts and dropped connections.

        Each retry is logged on the ``api`` channel at WARNING. The last
        transport error is re-raised once the attempts are used up.
        """
        api = self.config.api

        @retry(
            stop=stop_after_attempt(api.max_retries),
            wait=wait_exponential(multiplier=api.retry_delay) if api.exponential_backoff else wait_none(),
            retry=retry_if_exception_type((httpx.TimeoutException, httpx.NetworkError)),
            before_sleep=before_sleep_log(self.logger, logging.WARNING),
            reraise=True
        )
        def _request():
            self.logger.debug(f"{method} {url}")
            response = self.client.request(method, url, **kwargs)
            self.logger.debug(f"Response: {response.status_code}")
            return response

        return _request()

    def request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, str]] = None,
        json: Any = None,
        prefer: Optional[str] = None
    ) -> httpx.Response:
        """Send a JSON request; ``prefer`` sets the PostgREST ``Prefer`` header."""
        headers = {"Prefer": prefer} if prefer else None
        return self._make_request_with_retry(method, endpoint, params=params, json=json, headers=headers)

    @staticmethod
    def error_message(response: httpx.Response) -> str:
        """Best human-readable message from an error response body."""
        try:
            body = response.json()
        except ValueError:
            return response.text or f"HTTP {response.status_code}"
        if isinstance(body, dict):
            return body.get("message") or body.get("error") or str(body)
        return str(body)

    def close(self):
        """Close the HTTP client."""
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
