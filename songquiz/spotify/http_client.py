"""
Lightweight HTTP client for the Spotify Web API.

Wraps requests.Session with per-request bearer tokens, a single
re-authorization on 401, rate limit handling, and retries on transient
errors.
"""

import logging
import time
from typing import Any, Callable, Dict, Optional

import requests
from requests.exceptions import ConnectionError, RequestException, Timeout

from .exceptions import (
    SpotifyAPIError,
    SpotifyNotFoundError,
    SpotifyRateLimitError,
    SpotifyTokenExpiredError,
    TransientNetworkError,
)

logger = logging.getLogger(__name__)

BASE_URL = "https://api.spotify.com/v1"
MAX_RETRIES = 4
BASE_DELAY = 2  # seconds
MAX_DELAY = 16  # seconds


def _calculate_backoff_delay(attempt: int) -> float:
    """Calculate exponential backoff delay, capped at MAX_DELAY."""
    return min(BASE_DELAY * (2 ** attempt), MAX_DELAY)


class SpotifyHTTPClient:
    """
    HTTP client for Spotify Web API requests.

    The bearer token is pulled from ``token_provider`` before every request,
    so a token refreshed elsewhere is picked up immediately. On a 401 the
    rejected token is reported through ``on_unauthorized``, a fresh one is
    pulled, and the request is retried once; a second 401 is terminal.
    """

    def __init__(
        self,
        token_provider: Callable[[], str],
        on_unauthorized: Optional[Callable[[str], None]] = None,
        session: Optional[requests.Session] = None,
        timeout: float = 30,
    ):
        """
        Initialize the HTTP client.

        Args:
            token_provider: Returns a currently valid access token. May raise
                AuthUnavailableError, which propagates to the caller.
            on_unauthorized: Called with the token the API just rejected.
            session: Optional requests session to reuse.
            timeout: Per-request timeout in seconds.
        """
        self._token_provider = token_provider
        self._on_unauthorized = on_unauthorized
        self._timeout = timeout
        self._session = session or requests.Session()

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self._session.close()

    def get(self, path: str, params: Optional[Dict] = None) -> Any:
        """Send a GET request to a path relative to BASE_URL."""
        return self._request_url("GET", f"{BASE_URL}{path}", params=params)

    # -----------------------------------------------------------------
    # Internal request handling
    # -----------------------------------------------------------------

    @staticmethod
    def _headers(token: str) -> Dict[str, str]:
        # Bearer auth is per request; the session may be shared with the
        # token endpoint.
        return {
            "Accept": "application/json",
            "Authorization": f"Bearer {token}",
        }

    def _request_url(
        self,
        method: str,
        url: str,
        params: Optional[Dict] = None,
    ) -> Any:
        """
        Execute an HTTP request with retry and error handling.

        Retries on 429 (rate limit), 5xx, and network errors.
        On 401, re-authorizes once before failing. The re-authorized
        retry does not count against MAX_RETRIES.
        """
        reauthorized = False
        token = self._token_provider()
        attempt = 0

        while True:
            try:
                response = self._session.request(
                    method,
                    url,
                    params=params,
                    headers=self._headers(token),
                    timeout=self._timeout,
                )

                # --- Success ---
                if response.status_code == 204:
                    return None
                if response.ok:
                    try:
                        return response.json()
                    except ValueError as e:
                        raise TransientNetworkError(
                            f"Invalid JSON from {url}: {e}"
                        )

                # --- 401 Unauthorized: re-authorize once ---
                if response.status_code == 401:
                    if not reauthorized:
                        logger.info("401 received, re-authorizing and retrying")
                        reauthorized = True
                        if self._on_unauthorized:
                            self._on_unauthorized(token)
                        token = self._token_provider()
                        continue
                    raise SpotifyTokenExpiredError(
                        "Token rejected again after re-authorization"
                    )

                # --- 404 Not Found ---
                if response.status_code == 404:
                    raise SpotifyNotFoundError(
                        f"Resource not found: {url}"
                    )

                # --- 429 Rate Limited ---
                if response.status_code == 429:
                    if attempt >= MAX_RETRIES:
                        retry_after = int(
                            response.headers.get("Retry-After", 60)
                        )
                        raise SpotifyRateLimitError(
                            f"Rate limited after {MAX_RETRIES + 1} attempts",
                            retry_after=retry_after,
                        )
                    retry_after = int(
                        response.headers.get("Retry-After", 1)
                    )
                    delay = max(
                        retry_after,
                        _calculate_backoff_delay(attempt),
                    )
                    logger.warning(
                        "Rate limited (429), retry %d/%d in %ss",
                        attempt + 1, MAX_RETRIES + 1, delay,
                    )
                    time.sleep(delay)
                    attempt += 1
                    continue

                # --- 5xx Server Error ---
                if response.status_code >= 500:
                    if attempt >= MAX_RETRIES:
                        raise SpotifyAPIError(
                            f"Server error {response.status_code} "
                            f"after {MAX_RETRIES + 1} attempts"
                        )
                    delay = _calculate_backoff_delay(attempt)
                    logger.warning(
                        "Server error %d, retry %d/%d in %ss",
                        response.status_code,
                        attempt + 1, MAX_RETRIES + 1, delay,
                    )
                    time.sleep(delay)
                    attempt += 1
                    continue

                # --- Other client errors (400, 403, etc.) ---
                try:
                    body = response.json()
                    msg = body.get("error", {}).get(
                        "message", response.text
                    )
                except (ValueError, AttributeError):
                    msg = response.text
                raise SpotifyAPIError(
                    f"API error {response.status_code}: {msg}"
                )

            except (ConnectionError, Timeout, RequestException) as e:
                if attempt >= MAX_RETRIES:
                    raise TransientNetworkError(
                        f"Network error after {MAX_RETRIES + 1} "
                        f"attempts: {e}"
                    )
                delay = _calculate_backoff_delay(attempt)
                logger.warning(
                    "Network error, retry %d/%d in %ss: %s",
                    attempt + 1, MAX_RETRIES + 1, delay, e,
                )
                time.sleep(delay)
                attempt += 1
