"""
Spotify module exceptions.

Provides a clean exception hierarchy for Spotify auth and catalog operations.
"""


class SpotifyError(Exception):
    """Base exception for all Spotify-related errors."""
    pass


class SpotifyAuthError(SpotifyError):
    """Raised when authentication/authorization fails."""
    pass


class AuthUnavailableError(SpotifyAuthError):
    """Raised when no usable credential can be obtained.

    Terminal for the current call: the user declined the login prompt or
    the interactive flow errored. Callers surface it instead of retrying.
    """
    pass


class MissingVerifierError(SpotifyAuthError):
    """Raised when the PKCE code verifier is absent at code exchange time."""
    pass


class SpotifyTokenError(SpotifyAuthError):
    """Raised when token operations fail."""
    pass


class TokenExchangeFailedError(SpotifyTokenError):
    """Raised when the token endpoint rejects a code exchange or refresh."""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code


class SpotifyTokenExpiredError(SpotifyTokenError):
    """Raised when a token was rejected and could not be replaced."""
    pass


class SpotifyAPIError(SpotifyError):
    """Raised when a Spotify API call fails."""
    pass


class TransientNetworkError(SpotifyAPIError):
    """Raised when a request fails at the transport or parsing level."""
    pass


class SpotifyRateLimitError(SpotifyAPIError):
    """Raised when rate limited by Spotify API."""

    def __init__(self, message: str, retry_after: int = None):
        super().__init__(message)
        self.retry_after = retry_after


class SpotifyNotFoundError(SpotifyAPIError):
    """Raised when a requested resource is not found."""
    pass
