"""
Spotify integration module.

This module provides PKCE OAuth credential management and read-only
catalog access for the quiz, with optional Redis caching of genre data.

Architecture:
    - credentials.py: SpotifyCredentials for config/DI
    - pkce.py: PKCE verifier/challenge generation
    - store.py: CredentialStore implementations (memory, encrypted file)
    - authorizer.py: Interactive authorizers (browser loopback, console)
    - auth.py: SpotifyAuthManager for the OAuth protocol calls
    - lifecycle.py: TokenLifecycleManager for token state and refresh
    - http_client.py: SpotifyHTTPClient with 401 re-auth and retries
    - api.py: SpotifyCatalogAPI for catalog lookups
    - cache.py: Genre caches (LRU, Redis)
    - client.py: SpotifyClient facade wiring the above
    - exceptions.py: Exception hierarchy

Usage:
    from songquiz.spotify import (
        SpotifyClient,
        SpotifyCredentials,
        EncryptedFileCredentialStore,
        LoopbackAuthorizer,
    )

    client = SpotifyClient(
        SpotifyCredentials.from_env(),
        store=EncryptedFileCredentialStore("~/.songquiz/credentials.json", secret),
        authorizer=LoopbackAuthorizer(),
    )
    tracks = client.api.search_tracks("year:1990-1999")
"""

from .credentials import SpotifyCredentials

from .auth import (
    SpotifyAuthManager,
    TokenInfo,
    DEFAULT_SCOPES,
    REFRESH_SKEW_SECONDS,
)

from .pkce import PKCEChallenge

from .store import (
    CredentialStore,
    CredentialStoreError,
    MemoryCredentialStore,
    EncryptedFileCredentialStore,
)

from .authorizer import (
    AuthorizationRequest,
    InteractiveAuthorizer,
    LoopbackAuthorizer,
    ConsoleAuthorizer,
)

from .lifecycle import AuthState, TokenLifecycleManager

from .http_client import SpotifyHTTPClient

from .api import SpotifyCatalogAPI

from .cache import GenreCache, LRUGenreCache, RedisGenreCache

from .client import SpotifyClient

from .exceptions import (
    SpotifyError,
    SpotifyAuthError,
    AuthUnavailableError,
    MissingVerifierError,
    SpotifyTokenError,
    TokenExchangeFailedError,
    SpotifyTokenExpiredError,
    SpotifyAPIError,
    TransientNetworkError,
    SpotifyRateLimitError,
    SpotifyNotFoundError,
)


__all__ = [
    # Credentials
    'SpotifyCredentials',

    # Auth
    'SpotifyAuthManager',
    'TokenInfo',
    'DEFAULT_SCOPES',
    'REFRESH_SKEW_SECONDS',
    'PKCEChallenge',
    'AuthState',
    'TokenLifecycleManager',

    # Storage
    'CredentialStore',
    'CredentialStoreError',
    'MemoryCredentialStore',
    'EncryptedFileCredentialStore',

    # Authorizers
    'AuthorizationRequest',
    'InteractiveAuthorizer',
    'LoopbackAuthorizer',
    'ConsoleAuthorizer',

    # API
    'SpotifyHTTPClient',
    'SpotifyCatalogAPI',

    # Cache
    'GenreCache',
    'LRUGenreCache',
    'RedisGenreCache',

    # Client (facade)
    'SpotifyClient',

    # Exceptions
    'SpotifyError',
    'SpotifyAuthError',
    'AuthUnavailableError',
    'MissingVerifierError',
    'SpotifyTokenError',
    'TokenExchangeFailedError',
    'SpotifyTokenExpiredError',
    'SpotifyAPIError',
    'TransientNetworkError',
    'SpotifyRateLimitError',
    'SpotifyNotFoundError',
]
