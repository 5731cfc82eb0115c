"""
Spotify credentials management.

Provides a clean dataclass for the PKCE public-client credentials,
keeping Flask config lookups out of the auth layer.
"""

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class SpotifyCredentials:
    """
    Immutable container for Spotify OAuth client settings.

    PKCE clients do not carry a client secret; the code verifier
    proves possession instead.

    Attributes:
        client_id: The Spotify application client ID.
        redirect_uri: The OAuth callback URL registered for the app.

    Example:
        credentials = SpotifyCredentials.from_flask_config(current_app.config)

        credentials = SpotifyCredentials(
            client_id='your_client_id',
            redirect_uri='http://127.0.0.1:8888/callback'
        )
    """

    client_id: str
    redirect_uri: str

    def __post_init__(self):
        """Validate credentials on creation."""
        if not self.client_id:
            raise ValueError("client_id is required")
        if not self.redirect_uri:
            raise ValueError("redirect_uri is required")

    @classmethod
    def from_flask_config(cls, config: dict) -> 'SpotifyCredentials':
        """
        Create credentials from Flask app config.

        Raises:
            ValueError: If required config keys are missing.
        """
        return cls(
            client_id=config.get('SPOTIFY_CLIENT_ID') or '',
            redirect_uri=config.get('SPOTIFY_REDIRECT_URI') or '',
        )

    @classmethod
    def from_env(cls) -> 'SpotifyCredentials':
        """
        Create credentials from environment variables.

        Raises:
            ValueError: If required environment variables are missing.
        """
        return cls(
            client_id=os.getenv('SPOTIFY_CLIENT_ID', ''),
            redirect_uri=os.getenv('SPOTIFY_REDIRECT_URI', ''),
        )
