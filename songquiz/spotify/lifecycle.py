"""
Token lifecycle management.

Owns the credential state machine: loading persisted tokens, refreshing
ahead of expiry, running the interactive PKCE flow when nothing else
works, and mirroring every change to the credential store. Every other
component obtains its bearer token through ``ensure_valid_credential``.
"""

import logging
import secrets
import threading
import time
from dataclasses import replace
from enum import StrEnum
from typing import Callable, Optional

from .auth import REFRESH_SKEW_SECONDS, SpotifyAuthManager, TokenInfo
from .authorizer import AuthorizationRequest, InteractiveAuthorizer
from .exceptions import (
    AuthUnavailableError,
    MissingVerifierError,
    SpotifyError,
    TokenExchangeFailedError,
)
from .pkce import PKCEChallenge
from .store import (
    ACCESS_TOKEN_KEY,
    CODE_VERIFIER_KEY,
    CREDENTIAL_KEYS,
    EXPIRES_AT_KEY,
    REFRESH_TOKEN_KEY,
    CredentialStore,
    CredentialStoreError,
)

logger = logging.getLogger(__name__)


class AuthState(StrEnum):
    """Credential lifecycle states."""
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"
    REFRESHING = "refreshing"
    FAILED = "failed"


class TokenLifecycleManager:
    """
    Keeps a usable Spotify credential available.

    Calls that need a token are serialized on a re-entrant lock, so when
    several callers notice an expired token at once only the first one
    refreshes (or prompts); the rest wait and reuse its result.

    Example:
        manager = TokenLifecycleManager(auth_manager, store, LoopbackAuthorizer())
        token_info = manager.ensure_valid_credential()
    """

    def __init__(
        self,
        auth_manager: SpotifyAuthManager,
        store: CredentialStore,
        authorizer: InteractiveAuthorizer,
        clock: Callable[[], float] = time.time,
        refresh_skew: float = REFRESH_SKEW_SECONDS,
        load_persisted: bool = True,
    ):
        self._auth_manager = auth_manager
        self._store = store
        self._authorizer = authorizer
        self._clock = clock
        self._skew = refresh_skew
        self._lock = threading.RLock()
        self._token: Optional[TokenInfo] = None
        self._state = AuthState.UNAUTHENTICATED

        if load_persisted:
            self.load()

    # -----------------------------------------------------------------
    # Introspection
    # -----------------------------------------------------------------

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def token_info(self) -> Optional[TokenInfo]:
        return self._token

    @property
    def access_token(self) -> Optional[str]:
        return self._token.access_token if self._token else None

    @property
    def is_authenticated(self) -> bool:
        """True if a credential is held that is still outside the refresh skew."""
        return self._is_usable(self._token)

    def _is_usable(self, token: Optional[TokenInfo]) -> bool:
        return token is not None and token.is_usable(
            now=self._clock(), skew=self._skew
        )

    # -----------------------------------------------------------------
    # Startup
    # -----------------------------------------------------------------

    def load(self) -> None:
        """
        Restore the persisted credential.

        A usable credential goes straight to AUTHENTICATED. A stale one is
        refreshed if a refresh token exists; refresh failure purges storage
        and leaves the manager UNAUTHENTICATED without raising.
        """
        with self._lock:
            access_token = self._store.get(ACCESS_TOKEN_KEY)
            refresh_token = self._store.get(REFRESH_TOKEN_KEY)
            raw_expiry = self._store.get(EXPIRES_AT_KEY)

            if not access_token and not refresh_token:
                logger.debug("No persisted Spotify credential")
                self._state = AuthState.UNAUTHENTICATED
                return

            try:
                expires_at = float(raw_expiry) if raw_expiry else 0.0
            except ValueError:
                logger.warning("Ignoring unparseable stored expiry %r", raw_expiry)
                expires_at = 0.0

            self._token = TokenInfo(
                access_token=access_token or "",
                expires_at=expires_at,
                refresh_token=refresh_token,
            )

            if self._is_usable(self._token):
                logger.info("Restored persisted Spotify credential")
                self._state = AuthState.AUTHENTICATED
                return

            if not refresh_token:
                logger.info("Persisted credential expired and cannot be refreshed")
                self.purge()
                return

            try:
                self.refresh_access_token()
            except TokenExchangeFailedError as e:
                logger.warning("Startup refresh failed: %s", e)
                self._state = AuthState.UNAUTHENTICATED

    # -----------------------------------------------------------------
    # Entry point
    # -----------------------------------------------------------------

    def ensure_valid_credential(self) -> TokenInfo:
        """
        Return a usable credential, refreshing or re-authorizing as needed.

        Raises:
            AuthUnavailableError: If no credential could be obtained.
            MissingVerifierError: If the PKCE verifier vanished mid-flow.
        """
        with self._lock:
            if self._is_usable(self._token):
                return self._token

            if self._token and self._token.refresh_token:
                try:
                    return self.refresh_access_token()
                except TokenExchangeFailedError as e:
                    logger.warning(
                        "Refresh failed, falling back to interactive login: %s", e
                    )

            return self.authenticate()

    def invalidate(self, rejected_token: Optional[str] = None) -> None:
        """
        Mark the held access token as unusable after the API rejected it.

        If ``rejected_token`` is given and a different token is already held
        (another caller replaced it), nothing happens.
        """
        with self._lock:
            if self._token is None:
                return
            if rejected_token and rejected_token != self._token.access_token:
                logger.debug("Rejected token already replaced")
                return
            logger.info("Access token rejected by API, invalidating")
            self._token = replace(self._token, expires_at=0.0)

    # -----------------------------------------------------------------
    # Grants
    # -----------------------------------------------------------------

    def authenticate(self) -> TokenInfo:
        """
        Run one interactive PKCE authorization.

        The verifier is persisted for the duration of the redirect round
        trip and deleted afterwards whatever the outcome.

        Raises:
            AuthUnavailableError: If the user declines or any step fails.
            MissingVerifierError: If the verifier is gone at exchange time.
        """
        with self._lock:
            self._state = AuthState.AUTHENTICATING
            pkce = PKCEChallenge.generate()
            state = secrets.token_urlsafe(16)

            try:
                self._store.set(CODE_VERIFIER_KEY, pkce.code_verifier)
                request = AuthorizationRequest(
                    url=self._auth_manager.get_auth_url(pkce, state=state),
                    redirect_uri=self._auth_manager.credentials.redirect_uri,
                    state=state,
                )
                code = self._authorizer.authorize(request)
                if not code:
                    raise AuthUnavailableError("Spotify authorization was declined")

                verifier = self._store.get(CODE_VERIFIER_KEY)
                if not verifier:
                    raise MissingVerifierError(
                        "PKCE code verifier missing at code exchange"
                    )

                token_info = self._auth_manager.exchange_code(code, verifier)
                self._persist(token_info)
            except (AuthUnavailableError, MissingVerifierError):
                self._state = AuthState.FAILED
                raise
            except (SpotifyError, CredentialStoreError) as e:
                self._state = AuthState.FAILED
                logger.error("Spotify authorization failed: %s", e)
                raise AuthUnavailableError(f"Authorization failed: {e}") from e
            finally:
                self._store.delete(CODE_VERIFIER_KEY)

            self._token = token_info
            self._state = AuthState.AUTHENTICATED
            logger.info("Spotify authorization complete")
            return token_info

    def refresh_access_token(self) -> TokenInfo:
        """
        Refresh the access token with the stored refresh token.

        On failure every persisted credential value is purged so a stale
        refresh token is never retried silently.

        Raises:
            TokenExchangeFailedError: If there is no refresh token or the
                token endpoint rejects it.
        """
        with self._lock:
            refresh_token = self._token.refresh_token if self._token else None
            if not refresh_token:
                refresh_token = self._store.get(REFRESH_TOKEN_KEY)
            if not refresh_token:
                raise TokenExchangeFailedError(
                    "Cannot refresh: no refresh_token available"
                )

            self._state = AuthState.REFRESHING
            try:
                token_info = self._auth_manager.refresh_token(refresh_token)
                self._persist(token_info)
            except (TokenExchangeFailedError, CredentialStoreError) as e:
                self.purge()
                self._state = AuthState.FAILED
                if isinstance(e, TokenExchangeFailedError):
                    raise
                raise TokenExchangeFailedError(f"Token refresh failed: {e}") from e

            self._token = token_info
            self._state = AuthState.AUTHENTICATED
            return token_info

    # -----------------------------------------------------------------
    # Storage
    # -----------------------------------------------------------------

    def _persist(self, token_info: TokenInfo) -> None:
        self._store.set(ACCESS_TOKEN_KEY, token_info.access_token)
        if token_info.refresh_token:
            self._store.set(REFRESH_TOKEN_KEY, token_info.refresh_token)
        else:
            self._store.delete(REFRESH_TOKEN_KEY)
        self._store.set(EXPIRES_AT_KEY, repr(token_info.expires_at))

    def purge(self) -> None:
        """Forget the credential in memory and in the store."""
        with self._lock:
            for key in CREDENTIAL_KEYS:
                self._store.delete(key)
            self._token = None
            self._state = AuthState.UNAUTHENTICATED
            logger.info("Purged stored Spotify credentials")

    def logout(self) -> None:
        """Drop all credential state, including a leftover verifier."""
        with self._lock:
            self.purge()
            self._store.delete(CODE_VERIFIER_KEY)
