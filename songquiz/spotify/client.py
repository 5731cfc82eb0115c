"""
Spotify client facade.

Wires the credential lifecycle, the HTTP client, and the catalog API
together so callers construct one object instead of four.
"""

import logging
from typing import List, Optional

import requests

from .api import SpotifyCatalogAPI
from .auth import SpotifyAuthManager, TokenInfo
from .authorizer import InteractiveAuthorizer
from .credentials import SpotifyCredentials
from .http_client import SpotifyHTTPClient
from .lifecycle import TokenLifecycleManager
from .store import CredentialStore

logger = logging.getLogger(__name__)


class SpotifyClient:
    """
    Unified Spotify client facade.

    Example:
        client = SpotifyClient(
            SpotifyCredentials.from_env(),
            store=MemoryCredentialStore(),
            authorizer=LoopbackAuthorizer(),
        )
        client.lifecycle.ensure_valid_credential()
        genres = client.api.get_available_genre_seeds()
    """

    def __init__(
        self,
        credentials: SpotifyCredentials,
        store: CredentialStore,
        authorizer: InteractiveAuthorizer,
        scopes: Optional[List[str]] = None,
        timeout: float = 30,
        session: Optional[requests.Session] = None,
        load_persisted: bool = True,
    ):
        """
        Initialize the Spotify client.

        Args:
            credentials: Client id and redirect URI.
            store: Durable secret storage for tokens.
            authorizer: Presents the login UI when a fresh login is needed.
            scopes: Optional OAuth scopes (defaults to DEFAULT_SCOPES).
            timeout: HTTP timeout in seconds for every call.
            session: Optional shared requests session.
            load_persisted: Restore a stored credential on construction.
        """
        self._session = session or requests.Session()
        self._auth_manager = SpotifyAuthManager(
            credentials, scopes=scopes, session=self._session, timeout=timeout
        )
        self._lifecycle = TokenLifecycleManager(
            self._auth_manager,
            store,
            authorizer,
            load_persisted=load_persisted,
        )
        self._http = SpotifyHTTPClient(
            token_provider=self._current_access_token,
            on_unauthorized=self._lifecycle.invalidate,
            session=self._session,
            timeout=timeout,
        )
        self._api = SpotifyCatalogAPI(self._http)
        logger.debug("SpotifyClient initialized (state=%s)", self._lifecycle.state)

    def _current_access_token(self) -> str:
        return self._lifecycle.ensure_valid_credential().access_token

    @property
    def lifecycle(self) -> TokenLifecycleManager:
        return self._lifecycle

    @property
    def api(self) -> SpotifyCatalogAPI:
        return self._api

    @property
    def token_info(self) -> Optional[TokenInfo]:
        return self._lifecycle.token_info

    def close(self) -> None:
        """Release the HTTP connection pool."""
        self._http.close()
