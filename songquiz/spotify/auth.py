"""
Spotify authentication protocol calls.

Handles authorization URL generation and the two token endpoint grants
(authorization code with PKCE, and refresh token). Token state, storage,
and retry policy live in lifecycle.py; this module only speaks OAuth.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import urlencode

import requests

from .credentials import SpotifyCredentials
from .exceptions import (
    SpotifyAuthError,
    SpotifyTokenError,
    TokenExchangeFailedError,
)
from .pkce import PKCEChallenge

logger = logging.getLogger(__name__)


# Scopes the quiz needs: profile for the account banner, library and
# playlists for future track sources.
DEFAULT_SCOPES = [
    "user-read-private",
    "user-read-email",
    "playlist-read-private",
    "playlist-read-collaborative",
    "user-library-read",
]

# A credential is refreshed this many seconds before it actually expires.
REFRESH_SKEW_SECONDS = 300


@dataclass
class TokenInfo:
    """
    Structured container for OAuth token information.

    ``expires_at`` is absolute (epoch seconds): issuance time plus the
    advertised lifetime.
    """

    access_token: str
    expires_at: float
    refresh_token: Optional[str] = None
    token_type: str = "Bearer"
    scope: Optional[str] = None

    @classmethod
    def from_dict(
        cls,
        data: Dict[str, Any],
        now: Optional[float] = None,
    ) -> "TokenInfo":
        """
        Create TokenInfo from a token endpoint response.

        Args:
            data: Token dictionary from Spotify.
            now: Issuance time used when ``expires_at`` is absent.

        Raises:
            SpotifyTokenError: If required fields are missing.
        """
        if not isinstance(data, dict):
            raise SpotifyTokenError(
                f"Token data must be a dictionary, got {type(data)}"
            )

        missing = [k for k in ("access_token",) if not data.get(k)]
        if "expires_at" not in data and "expires_in" not in data:
            missing.append("expires_in")
        if missing:
            raise SpotifyTokenError(f"Token missing required fields: {missing}")

        expires_at = data.get("expires_at")
        if expires_at is None:
            issued_at = time.time() if now is None else now
            try:
                expires_at = issued_at + int(data["expires_in"])
            except (TypeError, ValueError):
                raise SpotifyTokenError(
                    f"Invalid expires_in: {data['expires_in']!r}"
                )

        return cls(
            access_token=data["access_token"],
            expires_at=float(expires_at),
            refresh_token=data.get("refresh_token"),
            token_type=data.get("token_type", "Bearer"),
            scope=data.get("scope"),
        )

    def is_usable(
        self,
        now: Optional[float] = None,
        skew: float = REFRESH_SKEW_SECONDS,
    ) -> bool:
        """True while the token has more than ``skew`` seconds left."""
        if not self.access_token:
            return False
        current = time.time() if now is None else now
        return current < self.expires_at - skew


class SpotifyAuthManager:
    """
    Speaks the Spotify accounts service OAuth protocol for a PKCE client.

    Stateless regarding tokens: it operates on values passed to it.

    Example:
        auth_manager = SpotifyAuthManager(credentials)
        pkce = PKCEChallenge.generate()
        url = auth_manager.get_auth_url(pkce, state="xyz")
        token_info = auth_manager.exchange_code(code, pkce.code_verifier)
        token_info = auth_manager.refresh_token(token_info.refresh_token)
    """

    _AUTHORIZE_URL = "https://accounts.spotify.com/authorize"
    _TOKEN_URL = "https://accounts.spotify.com/api/token"

    def __init__(
        self,
        credentials: SpotifyCredentials,
        scopes: Optional[List[str]] = None,
        session: Optional[requests.Session] = None,
        timeout: float = 30,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the auth manager.

        Args:
            credentials: Client id and redirect URI.
            scopes: Optional list of OAuth scopes. Defaults to DEFAULT_SCOPES.
            session: Optional requests session (shared connection pool).
            timeout: Token endpoint timeout in seconds.
            clock: Source of the current time for expiry computation.
        """
        self._credentials = credentials
        self._scopes = scopes or DEFAULT_SCOPES
        self._scope_string = " ".join(self._scopes)
        self._session = session or requests.Session()
        self._timeout = timeout
        self._clock = clock

    @property
    def credentials(self) -> SpotifyCredentials:
        return self._credentials

    def get_auth_url(self, pkce: PKCEChallenge, state: Optional[str] = None) -> str:
        """
        Build the authorization URL for one PKCE attempt.

        Args:
            pkce: The challenge pair for this attempt.
            state: Optional state parameter for CSRF protection.
        """
        params = {
            "client_id": self._credentials.client_id,
            "response_type": "code",
            "redirect_uri": self._credentials.redirect_uri,
            "scope": self._scope_string,
            "code_challenge_method": pkce.method,
            "code_challenge": pkce.code_challenge,
        }
        if state:
            params["state"] = state

        url = f"{self._AUTHORIZE_URL}?{urlencode(params)}"
        logger.debug("Generated auth URL: %s...", url[:50])
        return url

    def exchange_code(self, code: str, code_verifier: str) -> TokenInfo:
        """
        Exchange an authorization code for tokens.

        Raises:
            SpotifyAuthError: If code or verifier is missing.
            TokenExchangeFailedError: If the token endpoint rejects the code.
        """
        if not code:
            raise SpotifyAuthError("Authorization code is required")
        if not code_verifier:
            raise SpotifyAuthError("Code verifier is required")

        token_info = self._post_token(
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": self._credentials.redirect_uri,
                "client_id": self._credentials.client_id,
                "code_verifier": code_verifier,
            },
            action="Token exchange",
        )
        logger.info("Successfully exchanged code for token")
        return token_info

    def refresh_token(self, refresh_token: str) -> TokenInfo:
        """
        Trade a refresh token for a new access token.

        Spotify may or may not rotate the refresh token. When the response
        omits one, the original is carried over.

        Raises:
            TokenExchangeFailedError: If refresh fails.
        """
        if not refresh_token:
            raise TokenExchangeFailedError(
                "Cannot refresh: no refresh_token available"
            )

        token_info = self._post_token(
            {
                "grant_type": "refresh_token",
                "refresh_token": refresh_token,
                "client_id": self._credentials.client_id,
            },
            action="Token refresh",
        )
        if not token_info.refresh_token:
            token_info.refresh_token = refresh_token
        logger.info("Successfully refreshed token")
        return token_info

    def _post_token(self, form: Dict[str, str], action: str) -> TokenInfo:
        """POST a form-encoded grant to the token endpoint."""
        try:
            response = self._session.post(
                self._TOKEN_URL,
                data=form,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            logger.error("%s failed: %s", action, e)
            raise TokenExchangeFailedError(f"{action} failed: {e}")

        if not 200 <= response.status_code < 300:
            try:
                error_msg = response.json().get(
                    "error_description", response.text
                )
            except (ValueError, AttributeError):
                error_msg = response.text
            raise TokenExchangeFailedError(
                f"{action} failed: {error_msg}",
                status_code=response.status_code,
            )

        try:
            token_data = response.json()
        except ValueError as e:
            raise TokenExchangeFailedError(f"{action} returned invalid JSON: {e}")

        if not token_data:
            raise TokenExchangeFailedError(f"No token returned from {action.lower()}")

        try:
            return TokenInfo.from_dict(token_data, now=self._clock())
        except SpotifyTokenError as e:
            raise TokenExchangeFailedError(f"{action} failed: {e}")
