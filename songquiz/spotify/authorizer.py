"""
Interactive authorizers for the PKCE login step.

An authorizer shows the Spotify consent page to the user and hands back
the authorization code from the redirect. The token lifecycle manager
does not care how that happens; it only calls ``authorize``.
"""

import logging
import webbrowser
from dataclasses import dataclass
from typing import Callable, Optional, Protocol
from urllib.parse import urlparse

from spotipy.oauth2 import (
    SpotifyOAuth,
    SpotifyOauthError,
    start_local_http_server,
)

from .exceptions import AuthUnavailableError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthorizationRequest:
    """Everything an authorizer needs to run one consent round trip."""

    url: str
    redirect_uri: str
    state: str


class InteractiveAuthorizer(Protocol):
    """Presents the login UI and returns the authorization code.

    Returns None when the user declines or abandons the prompt. Raises
    AuthUnavailableError when the flow itself errors.
    """

    def authorize(self, request: AuthorizationRequest) -> Optional[str]: ...


def _check_state(expected: str, received: Optional[str]) -> None:
    if received != expected:
        raise AuthUnavailableError(
            "OAuth state mismatch; possible forged redirect"
        )


class LoopbackAuthorizer:
    """
    Opens the consent page in a browser and catches the redirect on a
    one-shot local HTTP server bound to the redirect URI's port.

    Only loopback redirect URIs (127.0.0.1 / localhost with an explicit
    port) are supported.
    """

    def __init__(
        self,
        timeout: float = 300,
        open_browser: Callable[[str], bool] = webbrowser.open,
    ):
        self._timeout = timeout
        self._open_browser = open_browser

    def authorize(self, request: AuthorizationRequest) -> Optional[str]:
        parsed = urlparse(request.redirect_uri)
        if parsed.hostname not in ("127.0.0.1", "localhost") or not parsed.port:
            raise AuthUnavailableError(
                f"Redirect URI {request.redirect_uri} is not a loopback address "
                "with an explicit port"
            )

        try:
            server = start_local_http_server(parsed.port)
        except OSError as e:
            raise AuthUnavailableError(
                f"Cannot listen on port {parsed.port}: {e}"
            )

        try:
            server.timeout = self._timeout
            logger.info("Opening Spotify login page in browser")
            if not self._open_browser(request.url):
                logger.warning("Could not open a browser; visit %s", request.url)
            server.handle_request()

            if server.error is not None:
                logger.warning("Authorization denied: %s", server.error)
                return None
            if server.auth_code is None:
                logger.warning(
                    "No authorization callback within %ss", self._timeout
                )
                return None
            _check_state(request.state, getattr(server, "state", None))
            return server.auth_code
        finally:
            server.server_close()


class ConsoleAuthorizer:
    """
    Prints the consent URL and asks the user to paste back the URL they
    were redirected to. Useful on headless hosts.
    """

    def __init__(
        self,
        input_func: Callable[[str], str] = input,
        output_func: Callable[[str], None] = print,
    ):
        self._input = input_func
        self._output = output_func

    def authorize(self, request: AuthorizationRequest) -> Optional[str]:
        self._output(f"Open this URL to log in to Spotify:\n{request.url}")
        response = self._input("Paste the URL you were redirected to: ").strip()
        if not response:
            return None

        try:
            state, code = SpotifyOAuth.parse_auth_response_url(response)
        except SpotifyOauthError as e:
            logger.warning("Authorization denied: %s", e)
            return None

        _check_state(request.state, state)
        return code
