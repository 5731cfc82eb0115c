"""
Pytest configuration and shared fixtures for songquiz tests.

This module provides common fixtures used across all test modules,
including catalog track payloads, credential fixtures, mock Spotify
collaborators, and a Flask app wired to fake services.
"""

import pytest
from unittest.mock import Mock, MagicMock
import time

from songquiz.spotify.api import SpotifyCatalogAPI
from songquiz.spotify.credentials import SpotifyCredentials
from songquiz.spotify.lifecycle import TokenLifecycleManager
from songquiz.spotify.store import MemoryCredentialStore


# =============================================================================
# Sample Data Fixtures
# =============================================================================

def make_track_data(
    track_id,
    popularity=50,
    release_date="1995-06-01",
    preview_url="default",
    artist_ids=("artist1",),
    album_id="album1",
):
    """Build a Spotify track object as the catalog returns it."""
    if preview_url == "default":
        preview_url = f"https://p.scdn.co/mp3-preview/{track_id}"
    return {
        "id": track_id,
        "name": f"Track {track_id}",
        "uri": f"spotify:track:{track_id}",
        "popularity": popularity,
        "preview_url": preview_url,
        "artists": [
            {"id": artist_id, "name": f"Artist {artist_id}"}
            for artist_id in artist_ids
        ],
        "album": {
            "id": album_id,
            "name": f"Album {album_id}",
            "images": [{"url": f"https://i.scdn.co/image/{album_id}"}],
            "release_date": release_date,
        },
        "external_urls": {"spotify": f"https://open.spotify.com/track/{track_id}"},
    }


@pytest.fixture
def track_factory():
    """Factory for raw Spotify track dictionaries."""
    return make_track_data


@pytest.fixture
def sample_token_response():
    """A token endpoint response for a fresh login."""
    return {
        'access_token': 'test_access_token_12345',
        'token_type': 'Bearer',
        'expires_in': 3600,
        'refresh_token': 'test_refresh_token_67890',
        'scope': 'user-read-private user-read-email',
    }


@pytest.fixture
def credentials():
    """Valid SpotifyCredentials for testing."""
    return SpotifyCredentials(
        client_id='test_client_id',
        redirect_uri='http://127.0.0.1:8888/callback',
    )


# =============================================================================
# Mock Fixtures
# =============================================================================

@pytest.fixture
def memory_store():
    """An empty in-memory credential store."""
    return MemoryCredentialStore()


@pytest.fixture
def mock_authorizer():
    """An authorizer that approves the login with a fixed code."""
    authorizer = Mock()
    authorizer.authorize.return_value = 'auth_code_123'
    return authorizer


@pytest.fixture
def mock_lifecycle():
    """A lifecycle manager that always has a valid credential."""
    lifecycle = Mock(spec=TokenLifecycleManager)
    lifecycle.ensure_valid_credential.return_value = Mock(
        access_token='test_access_token', expires_at=time.time() + 3600
    )
    return lifecycle


@pytest.fixture
def mock_api():
    """A catalog API mock with empty defaults."""
    api = MagicMock(spec=SpotifyCatalogAPI)
    api.get_available_genre_seeds.return_value = [
        'pop', 'rock', 'hip-hop', 'jazz', 'k-pop', 'classical',
    ]
    api.get_recommendations.return_value = []
    api.search_tracks.return_value = []
    api.get_artists_genres.return_value = {}
    api.get_artist_genres.return_value = []
    api.get_album_genres.return_value = []
    return api


# =============================================================================
# Flask App Fixtures
# =============================================================================

@pytest.fixture
def services():
    """Fake QuizServices bundle for route tests."""
    from songquiz import QuizServices

    return QuizServices(spotify=Mock(), genre_catalog=Mock(), discovery=Mock())


@pytest.fixture
def app(services):
    """Create a Flask application for testing."""
    from songquiz import create_app

    app = create_app('testing', services=services)
    app.config['TESTING'] = True
    return app


@pytest.fixture
def client(app):
    """Provide Flask test client."""
    return app.test_client()
